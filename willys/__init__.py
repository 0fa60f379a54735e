"""Unofficial API client and shopping tools for Willys.se.

Willys exposes no public API, so this package drives the same endpoints the
web shop uses: a browser login bootstraps session cookies, after which all
search, cart and delivery calls go over plain HTTP with a CSRF token.
"""

__version__ = "0.1.0"
