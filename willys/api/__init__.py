"""API access to Willys.se.

Main components:
- session: Authenticated HTTP session (CSRF token, re-authentication)
- auth: Browser-driven session bootstrap
- client: WillysAPIClient for search, cart and delivery calls
- ranking: Preference-based filtering and sorting of search results
- tools: LangChain tools for agent use

Usage:
    # Run a command against the shop
    willys search mjölk --sort-by cheapest
"""

from willys.api.client import WillysAPIClient
from willys.api.credentials import WillysCredentials
from willys.api.errors import (
    APIError,
    AuthenticationError,
    ErrorKind,
    NotFoundError,
    ValidationError,
    WillysError,
)
from willys.api.models import (
    CartItem,
    CartSummary,
    CustomerInfo,
    DeliveryAddress,
    DeliveryInfo,
    Product,
    SearchPreferences,
    TimeSlot,
)
from willys.api.ranking import rank_products
from willys.api.session import WillysSession

__all__ = [
    # Session
    "WillysSession",
    "WillysCredentials",
    # Client
    "WillysAPIClient",
    "rank_products",
    # Models
    "Product",
    "SearchPreferences",
    "CartItem",
    "CartSummary",
    "DeliveryAddress",
    "TimeSlot",
    "DeliveryInfo",
    "CustomerInfo",
    # Errors
    "ErrorKind",
    "WillysError",
    "ValidationError",
    "AuthenticationError",
    "APIError",
    "NotFoundError",
]
