"""Authenticated HTTP session for the Willys web shop.

Willys has no public API. The endpoints used by the web shop expect a
browser-like client: a cookie jar from a logged-in session, browser headers,
and an ``X-CSRF-TOKEN`` header on state-changing calls. :class:`WillysSession`
wraps an ``httpx.AsyncClient`` with those properties and recovers from
expired credentials on its own:

1. A protected request answered with 401 triggers a forced CSRF token refresh
   and one retry.
2. If the retry is also 401 and a username/password pair is held, the session
   logs in again over HTTP (at most ``max_auth_retry_attempts`` times between
   successful logins) and retries a final time.
3. Once the attempt budget is spent, callers get an AuthenticationError.

Usage:
    async with WillysSession("https://www.willys.se") as session:
        await session.login_with_browser(username, password)
        response = await session.execute("GET", "/axfood/rest/cart")
"""

from __future__ import annotations

import asyncio
import logging
from http.cookiejar import Cookie
from typing import Any, Optional
from urllib.parse import urlparse

import httpx

from willys.api import endpoints
from willys.api.auth import (
    BrowserBootstrapper,
    SessionBootstrapper,
    browser_cookie_to_jar_cookie,
    domain_matches,
)
from willys.api.credentials import WillysCredentials
from willys.api.errors import APIError, AuthenticationError, ValidationError, WillysError
from willys.api.validation import validate_login
from willys.core.config import Config, load_config

logger = logging.getLogger(__name__)

CSRF_HEADER = "X-CSRF-TOKEN"


class WillysSession:
    """Cookie-holding HTTP session with CSRF handling and re-authentication.

    The credentials (token, username, password) are the only shared mutable
    state. Mutations happen under ``self._lock``; the cached token is read
    without it, and re-checked under the lock before fetching.
    """

    def __init__(
        self,
        base_url: str,
        username: str = "",
        password: str = "",
        config: Optional[Config] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the session.

        Args:
            base_url: Shop root, e.g. "https://www.willys.se"
            username: Account identifier used for automatic re-login
            password: Account password used for automatic re-login
            config: Config instance (uses load_config() if None)
            transport: Custom httpx transport (used by tests)

        Raises:
            ValidationError: If base_url is empty or not http(s)
        """
        if not base_url:
            raise ValidationError("base_url", "base URL cannot be empty")
        parsed = urlparse(base_url)
        if parsed.scheme not in ("http", "https"):
            raise ValidationError("base_url", "base URL must use http or https scheme")
        if not parsed.hostname:
            raise ValidationError("base_url", "invalid base URL format")

        self.config = config or load_config()
        self.base_url = base_url.rstrip("/")
        self.host = parsed.hostname
        self._credentials = WillysCredentials(username=username, password=password)
        self._lock = asyncio.Lock()
        self._auth_attempts = 0

        http = self.config.http
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=http.timeout,
            limits=httpx.Limits(
                max_connections=http.max_connections,
                max_keepalive_connections=http.max_keepalive_connections,
                keepalive_expiry=http.keepalive_expiry,
            ),
            follow_redirects=True,
            transport=transport,
        )
        self._closed = False

    async def __aenter__(self) -> "WillysSession":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    # -------------------------------------------------------------------------
    # State accessors
    # -------------------------------------------------------------------------

    @property
    def auth_attempts(self) -> int:
        """Re-login attempts since the last successful login."""
        return self._auth_attempts

    @property
    def csrf_token(self) -> str | None:
        return self._credentials.csrf_token

    @property
    def credentials(self) -> dict:
        """Display-safe view of the held credentials."""
        return self._credentials.to_dict()

    async def set_credentials(self, username: str, password: str) -> None:
        async with self._lock:
            self._credentials.username = username
            self._credentials.password = password

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    def get_cookies(self) -> list[Cookie]:
        """Cookies the jar would send to the base domain."""
        return [
            cookie
            for cookie in self._client.cookies.jar
            if domain_matches(cookie.domain, self.host)
        ]

    def set_cookies(self, cookies: dict[str, str]) -> None:
        """Add plain name/value cookies scoped to the base host."""
        for name, value in cookies.items():
            self._client.cookies.set(name, value, domain=self.host, path="/")

    def import_browser_cookies(self, cookies: list[dict[str, Any]]) -> int:
        """Copy cookies captured from a browser context into the jar.

        Cookies for other domains are skipped.

        Returns:
            Number of cookies imported
        """
        imported = 0
        for raw in cookies:
            cookie = browser_cookie_to_jar_cookie(raw, self.host)
            if cookie is None:
                continue
            self._client.cookies.jar.set_cookie(cookie)
            imported += 1
        return imported

    def is_authenticated(self) -> bool:
        """True once the jar holds any cookie for the base domain."""
        return len(self.get_cookies()) > 0

    # -------------------------------------------------------------------------
    # CSRF token
    # -------------------------------------------------------------------------

    async def get_csrf_token(self) -> str:
        """Return the cached CSRF token, fetching it once if absent."""
        token = self._credentials.csrf_token
        if token:
            return token

        async with self._lock:
            # Another caller may have fetched it while we waited
            if self._credentials.csrf_token:
                return self._credentials.csrf_token
            return await self._fetch_csrf_token_locked()

    async def fetch_csrf_token(self) -> str:
        """Discard the cached token and fetch a new one."""
        async with self._lock:
            self._credentials.clear_token()
            return await self._fetch_csrf_token_locked()

    async def _fetch_csrf_token_locked(self) -> str:
        try:
            response = await self._client.get(endpoints.CSRF_TOKEN, headers=self._build_headers())
        except httpx.HTTPError as exc:
            raise AuthenticationError("failed to fetch CSRF token", exc) from exc

        if response.status_code != 200:
            raise AuthenticationError(
                f"CSRF token request failed with status {response.status_code}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError("failed to parse CSRF token", exc) from exc

        # Served either as a bare JSON string or as {"token": "..."}
        token = None
        if isinstance(payload, str):
            token = payload
        elif isinstance(payload, dict):
            token = payload.get("token")

        if not token or not isinstance(token, str):
            raise AuthenticationError("empty CSRF token")

        self._credentials.csrf_token = token
        logger.debug("Fetched CSRF token (%d chars)", len(token))
        return token

    # -------------------------------------------------------------------------
    # Requests
    # -------------------------------------------------------------------------

    def _build_headers(self) -> dict[str, str]:
        """Browser-like headers; the shop filters requests that lack them."""
        return {
            "Content-Type": "application/json",
            "Accept": "application/json, text/plain, */*",
            "Accept-Language": self.config.http.accept_language,
            "User-Agent": self.config.http.user_agent,
            "Origin": self.base_url,
            "Referer": self.base_url + "/",
            "Connection": "keep-alive",
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
        }

    async def _send(
        self,
        method: str,
        path: str,
        json: Any,
        params: Optional[dict[str, Any]],
        needs_csrf: bool,
        cancel: Optional[asyncio.Event],
    ) -> httpx.Response:
        if cancel is not None and cancel.is_set():
            raise asyncio.CancelledError(f"request to {path} cancelled")

        headers = self._build_headers()
        if needs_csrf:
            headers[CSRF_HEADER] = await self.get_csrf_token()

        try:
            return await self._client.request(
                method, path, json=json, params=params, headers=headers
            )
        except httpx.HTTPError as exc:
            raise APIError(0, path, "request failed", exc) from exc

    async def execute(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict[str, Any]] = None,
        needs_csrf: bool = False,
        cancel: Optional[asyncio.Event] = None,
    ) -> httpx.Response:
        """Send a request, attaching CSRF protection and recovering from 401s.

        Args:
            method: HTTP method
            path: Endpoint path relative to the base URL
            json: JSON body
            params: Query parameters
            needs_csrf: Attach the CSRF header and enable 401 recovery
            cancel: If set before a request is dispatched, abort with
                asyncio.CancelledError. A request already in flight completes.

        Returns:
            The response. Status handling is left to the caller.

        Raises:
            APIError: On transport failure (status_code 0)
            AuthenticationError: If the token cannot be fetched or the
                re-authentication budget is exhausted
        """
        response = await self._send(method, path, json, params, needs_csrf, cancel)
        if response.status_code != 401 or not needs_csrf:
            return response

        logger.info("Unauthorized at %s, refreshing CSRF token", path)
        await self.fetch_csrf_token()
        response = await self._send(method, path, json, params, needs_csrf, cancel)
        if response.status_code != 401:
            return response

        attempts = self._auth_attempts
        if attempts >= self.config.auth.max_auth_retry_attempts:
            raise AuthenticationError("maximum authentication retry attempts exceeded")

        username = self._credentials.username
        password = self._credentials.password
        if not (username and password):
            return response

        self._auth_attempts += 1
        logger.warning(
            "Still unauthorized at %s, re-authenticating (attempt %d)", path, self._auth_attempts
        )
        # Re-login failures surface immediately instead of being retried
        try:
            await self.login(username, password, cancel=cancel)
        except WillysError as exc:
            raise AuthenticationError("failed to re-authenticate", exc) from exc

        response = await self._send(method, path, json, params, needs_csrf, cancel)
        if response.status_code == 401:
            raise AuthenticationError(f"still unauthorized at {path} after re-authentication")
        return response

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    async def initialize_session(self, cancel: Optional[asyncio.Event] = None) -> None:
        """Load the shop front page so the server issues session cookies."""
        response = await self.execute("GET", "/", cancel=cancel)
        if response.status_code != 200:
            raise APIError(response.status_code, "/", "unexpected status initializing session")

    async def login(
        self,
        username: str,
        password: str,
        cancel: Optional[asyncio.Event] = None,
    ) -> None:
        """Log in over plain HTTP.

        Used for re-authentication in the middle of a session. The first login
        normally goes through :meth:`login_with_browser`.

        Raises:
            ValidationError: If username/password fail local checks
            AuthenticationError: If the credentials are rejected
            APIError: If the login endpoint fails otherwise
        """
        validate_login(username, password, self.config.auth.min_password_length)

        try:
            await self.initialize_session(cancel=cancel)
        except APIError as exc:
            raise AuthenticationError("failed to initialize session", exc) from exc

        try:
            response = await self.execute(
                "POST",
                endpoints.LOGIN,
                json={"username": username, "password": password},
                cancel=cancel,
            )
        except APIError as exc:
            raise AuthenticationError("login request failed", exc) from exc

        if response.status_code in (401, 403):
            raise AuthenticationError("invalid username or password")

        if response.status_code not in (200, 201):
            detail = response.text or "no additional details provided"
            raise APIError(response.status_code, endpoints.LOGIN, f"login failed - {detail}")

        await self._complete_login(username, password)
        logger.info("Logged in over HTTP")

    async def login_with_browser(
        self,
        username: str,
        password: str,
        bootstrapper: Optional[SessionBootstrapper] = None,
    ) -> None:
        """Bootstrap the session from a real browser login.

        The bootstrapper returns the browser's cookies, which are copied into
        this session's jar before the first token fetch.

        Raises:
            ValidationError: If username/password fail local checks
            AuthenticationError: If the browser login fails or no token can
                be fetched afterwards
        """
        validate_login(username, password, self.config.auth.min_password_length)

        if bootstrapper is None:
            bootstrapper = BrowserBootstrapper(self.config)

        browser_cookies = await bootstrapper.obtain_cookies(self.base_url, username, password)
        imported = self.import_browser_cookies(browser_cookies)
        logger.info("Imported %d of %d browser cookies", imported, len(browser_cookies))

        await self._complete_login(username, password)

    async def _complete_login(self, username: str, password: str) -> None:
        async with self._lock:
            self._credentials.username = username
            self._credentials.password = password
            self._auth_attempts = 0
            self._credentials.clear_token()
            try:
                await self._fetch_csrf_token_locked()
            except AuthenticationError as exc:
                raise AuthenticationError("failed to fetch CSRF token after login", exc) from exc

