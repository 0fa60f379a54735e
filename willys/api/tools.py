"""LangChain tools for the grocery shopping agent.

Wraps :class:`WillysAPIClient` operations as tools an agent can call. Each
tool returns a JSON string; failures come back as ``{"error": {...}}`` with
the error kind so the agent can tell bad input apart from session or
upstream problems.

Usage:
    client = WillysAPIClient(session)
    tools = create_tools(client)

Tools:
    - search_groceries: Search products with optional filters and sorting
    - add_to_cart / remove_from_cart / view_cart: Cart management
    - get_available_time_slots / select_delivery_time: Home delivery
    - proceed_to_checkout: Checkout link for payment
"""

import json
import logging
from typing import Any, Optional

from langchain_core.tools import BaseTool, tool

from willys.api.client import WillysAPIClient
from willys.api.errors import ValidationError, WillysError
from willys.api.models import DeliveryAddress, SearchPreferences

logger = logging.getLogger(__name__)


def _ok(payload: Any) -> str:
    return json.dumps(payload, ensure_ascii=False)


def _error(exc: WillysError) -> str:
    logger.info("Tool call failed: %s", exc.kind.value)
    return json.dumps({"error": exc.to_dict()}, ensure_ascii=False)


def create_tools(client: WillysAPIClient) -> list[BaseTool]:
    """Build the agent tools bound to one client."""

    @tool
    async def search_groceries(
        query: str,
        page: int = 0,
        size: int = 30,
        preferences: Optional[dict] = None,
    ) -> str:
        """Search for products on Willys.se with optional filters and sorting.

        Args:
            query: Search query (e.g., "mjölk", "bröd", "grönsaker")
            page: Page number for pagination (default 0)
            size: Number of results per page (default 30)
            preferences: Optional dict with price_sensitivity, max_price_per_unit
                (kr/kg or kr/l), required_labels (e.g. ["KRAV", "Ekologisk"]),
                preferred_labels, and sort_by ("cheapest", "best_value",
                "highest_quality")
        """
        prefs = SearchPreferences.from_dict(preferences) if preferences else None
        try:
            products = await client.search_products(query, page, size, prefs)
        except WillysError as exc:
            return _error(exc)
        return _ok({"products": [p.to_dict() for p in products], "count": len(products)})

    @tool
    async def add_to_cart(product_code: str, quantity: int = 1) -> str:
        """Add a product to the cart.

        Search first to get the product code. Codes look like "101233933_ST"
        (per piece) or "101233933_KG" (by weight).

        Args:
            product_code: The exact product code from search results
            quantity: Quantity to add (default 1)
        """
        try:
            cart = await client.add_to_cart(product_code, quantity)
        except WillysError as exc:
            return _error(exc)
        return _ok(cart.to_dict())

    @tool
    async def view_cart() -> str:
        """View current cart contents with totals and fees."""
        try:
            cart = await client.get_cart()
        except WillysError as exc:
            return _error(exc)
        return _ok(cart.to_dict())

    @tool
    async def remove_from_cart(product_code: str, quantity: int = 0) -> str:
        """Remove a product from the cart.

        Args:
            product_code: Product code to remove
            quantity: How many to remove (default 0 removes all)
        """
        try:
            cart = await client.remove_from_cart(product_code, quantity)
        except WillysError as exc:
            return _error(exc)
        return _ok(cart.to_dict())

    @tool
    async def get_available_time_slots(postal_code: str) -> str:
        """Get available home delivery time slots for a postal code.

        Args:
            postal_code: Postal code to check (e.g., "11151")
        """
        try:
            slots = await client.get_available_time_slots(postal_code)
        except WillysError as exc:
            return _error(exc)
        return _ok({"slots": [s.to_dict() for s in slots], "count": len(slots)})

    @tool
    async def select_delivery_time(address: dict, delivery_date: str, time_slot: str) -> str:
        """Select a delivery address and time slot.

        Args:
            address: Dict with first_name, last_name, address, postal_code and
                city, plus optional door_code and message_to_driver
            delivery_date: Delivery date as YYYY-MM-DD
            time_slot: Window as "HH:MM-HH:MM" (e.g., "15:00-17:00")
        """
        if not isinstance(address, dict):
            return _error(ValidationError("address", "required"))
        delivery_address = DeliveryAddress.from_dict(address)
        try:
            slot = await client.find_time_slot(delivery_address.postal_code, delivery_date, time_slot)
            info = await client.setup_delivery(delivery_address, slot)
        except WillysError as exc:
            return _error(exc)
        return _ok(info.to_dict())

    @tool
    async def proceed_to_checkout() -> str:
        """Get the checkout URL where the customer completes payment."""
        return _ok(
            {
                "checkout_url": client.get_checkout_url(),
                "message": "Visit this URL to complete payment",
            }
        )

    return [
        search_groceries,
        add_to_cart,
        view_cart,
        remove_from_cart,
        get_available_time_slots,
        select_delivery_time,
        proceed_to_checkout,
    ]
