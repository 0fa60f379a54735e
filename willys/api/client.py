"""Willys API Client.

Provides typed methods for searching products, managing the cart and
scheduling home delivery on Willys.se, layered on :class:`WillysSession`.

The cart lives on the server; every read re-fetches it and nothing is cached
between calls. Concurrent mutations are last-write-wins.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx

from willys.api import endpoints
from willys.api.errors import APIError, AuthenticationError, NotFoundError, ValidationError
from willys.api.models import (
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
from willys.api.validation import (
    validate_delivery_address,
    validate_delivery_date,
    validate_postal_code,
    validate_product_code,
    validate_quantity,
    validate_search_params,
    validate_time_slot,
)

logger = logging.getLogger(__name__)

PICK_UNIT = "pieces"


def _json(response: httpx.Response, endpoint: str, what: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise APIError(response.status_code, endpoint, f"failed to parse {what}", exc) from exc


def _cart_payload(product_code: str, quantity: int) -> dict[str, Any]:
    return {
        "products": [
            {
                "productCodePost": product_code,
                "qty": quantity,
                "pickUnit": PICK_UNIT,
                "hideDiscountToolTip": False,
                "noReplacementFlag": False,
            }
        ]
    }


class WillysAPIClient:
    """Client for the Willys web shop API.

    Usage:
        async with WillysSession(base_url, username, password) as session:
            await session.login_with_browser(username, password)
            client = WillysAPIClient(session)
            products = await client.search_products("mjölk", size=5)
            cart = await client.add_to_cart(products[0].code, 2)
    """

    def __init__(self, session: WillysSession):
        self.session = session
        self.config = session.config

    # -------------------------------------------------------------------------
    # Account
    # -------------------------------------------------------------------------

    async def get_customer_info(self, *, cancel: Optional[asyncio.Event] = None) -> CustomerInfo:
        """Fetch the logged-in customer's profile."""
        response = await self.session.execute("GET", endpoints.CUSTOMER, cancel=cancel)

        if response.status_code == 401:
            raise AuthenticationError("not authenticated")
        if response.status_code != 200:
            raise APIError(response.status_code, endpoints.CUSTOMER, "get customer info failed")

        return CustomerInfo.from_api(_json(response, endpoints.CUSTOMER, "customer info"))

    def is_authenticated(self) -> bool:
        return self.session.is_authenticated()

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    async def search_products(
        self,
        query: str,
        page: int = 0,
        size: int = 30,
        preferences: Optional[SearchPreferences] = None,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> list[Product]:
        """Search for products, optionally filtered and ranked.

        Args:
            query: Search term (e.g., "mjölk", "bröd")
            page: Zero-based page number
            size: Results per page (1-100)
            preferences: Filter/sort directives; None keeps the shop's order

        Returns:
            List of matching products
        """
        validate_search_params(query, page, size)

        params = {"q": query, "page": page, "size": size}
        response = await self.session.execute("GET", endpoints.SEARCH, params=params, cancel=cancel)
        if response.status_code != 200:
            raise APIError(response.status_code, endpoints.SEARCH, "search failed")

        data = _json(response, endpoints.SEARCH, "search results")
        if not isinstance(data, dict):
            raise APIError(response.status_code, endpoints.SEARCH, "failed to parse search results")

        products = [Product.from_api(raw) for raw in data.get("results") or []]
        logger.debug("Search returned %d products", len(products))

        return rank_products(products, preferences, self.config.ranking)

    # -------------------------------------------------------------------------
    # Cart
    # -------------------------------------------------------------------------

    async def get_cart(self, *, cancel: Optional[asyncio.Event] = None) -> CartSummary:
        """Get current cart contents and totals."""
        response = await self.session.execute("GET", endpoints.CART, cancel=cancel)
        if response.status_code != 200:
            raise APIError(response.status_code, endpoints.CART, "get cart failed")

        data = _json(response, endpoints.CART, "cart response")
        if not isinstance(data, dict):
            raise APIError(response.status_code, endpoints.CART, "failed to parse cart response")

        return CartSummary.from_api(data)

    async def add_to_cart(
        self,
        product_code: str,
        quantity: int,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> CartSummary:
        """Add a product to the cart.

        Args:
            product_code: Code from search results, e.g. "101233933_ST"
            quantity: Number of items (1-999)

        Returns:
            The cart after the update

        Raises:
            NotFoundError: If the product code doesn't exist
        """
        validate_product_code(product_code)
        validate_quantity(quantity)

        response = await self.session.execute(
            "POST",
            endpoints.CART_ADD_PRODUCTS,
            json=_cart_payload(product_code, quantity),
            needs_csrf=True,
            cancel=cancel,
        )

        if response.status_code == 404:
            raise NotFoundError("product", product_code)
        if response.status_code not in (200, 201):
            raise APIError(response.status_code, endpoints.CART_ADD_PRODUCTS, "add to cart failed")

        logger.info("Added %dx %s to cart", quantity, product_code)
        return await self.get_cart(cancel=cancel)

    async def remove_from_cart(
        self,
        product_code: str,
        quantity: int = 0,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> CartSummary:
        """Remove some or all of a product from the cart.

        A quantity of 0 or less removes the product entirely. Otherwise the
        cart is re-read and the quantity decremented (not below 0). This
        read-then-write is not atomic; a concurrent change elsewhere can race it.

        Returns:
            The cart after the update, or the unchanged cart if the product
            wasn't in it
        """
        validate_product_code(product_code)

        if quantity <= 0:
            new_quantity = 0
        else:
            current = await self.get_cart(cancel=cancel)
            item = current.find(product_code)
            if item is None:
                return current
            new_quantity = max(item.quantity - quantity, 0)

        response = await self.session.execute(
            "POST",
            endpoints.CART_ADD_PRODUCTS,
            json=_cart_payload(product_code, new_quantity),
            needs_csrf=True,
            cancel=cancel,
        )
        if response.status_code not in (200, 201):
            raise APIError(response.status_code, endpoints.CART_ADD_PRODUCTS, "remove from cart failed")

        logger.info("Set %s quantity to %d", product_code, new_quantity)
        return await self.get_cart(cancel=cancel)

    async def clear_cart(self, *, cancel: Optional[asyncio.Event] = None) -> None:
        """Remove everything from the cart."""
        response = await self.session.execute("DELETE", endpoints.CART, needs_csrf=True, cancel=cancel)
        if response.status_code not in (200, 204):
            raise APIError(response.status_code, endpoints.CART, "clear cart failed")

    # -------------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------------

    async def check_deliverability(
        self, postal_code: str, *, cancel: Optional[asyncio.Event] = None
    ) -> bool:
        """Check whether home delivery is offered for a postal code.

        Any non-200 answer is treated as "not deliverable".
        """
        validate_postal_code(postal_code)

        path = f"{endpoints.SHIPPING_DELIVERY}/{postal_code}/deliverability"
        response = await self.session.execute("GET", path, params={"b2b": "false"}, cancel=cancel)
        if response.status_code != 200:
            return False

        data = _json(response, path, "deliverability response")
        if not isinstance(data, dict):
            raise APIError(response.status_code, path, "failed to parse deliverability response")
        return bool(data.get("deliverable", False))

    async def set_delivery_mode(self, *, cancel: Optional[asyncio.Event] = None) -> None:
        """Switch the cart to home delivery."""
        response = await self.session.execute(
            "POST",
            endpoints.CART_DELIVERY_MODE,
            params={"newSuggestedStoreId": ""},
            needs_csrf=True,
            cancel=cancel,
        )
        if response.status_code not in (200, 204):
            raise APIError(response.status_code, endpoints.CART_DELIVERY_MODE, "set delivery mode failed")

    async def set_delivery_address(
        self, address: DeliveryAddress, *, cancel: Optional[asyncio.Event] = None
    ) -> None:
        """Submit the delivery address, then the postal code."""
        validate_delivery_address(address)

        # The form uses addressLine1/town rather than address/city
        params = {
            "firstName": address.first_name,
            "lastName": address.last_name,
            "addressLine1": address.address,
            "addressLine2": "",
            "postalCode": address.postal_code,
            "town": address.city,
            "cellphone": "",
            "longitude": "",
            "latitude": "",
        }
        if address.door_code:
            params["doorCode"] = address.door_code
        if address.message_to_driver:
            params["messageToDriver"] = address.message_to_driver

        response = await self.session.execute(
            "POST", endpoints.CART_DELIVERY_ADDRESS, params=params, needs_csrf=True, cancel=cancel
        )
        if response.status_code not in (200, 204):
            raise APIError(response.status_code, endpoints.CART_DELIVERY_ADDRESS, "set delivery address failed")

        response = await self.session.execute(
            "POST",
            endpoints.CART_POSTAL_CODE,
            params={"postalCode": address.postal_code},
            needs_csrf=True,
            cancel=cancel,
        )
        if response.status_code not in (200, 204):
            raise APIError(response.status_code, endpoints.CART_POSTAL_CODE, "set postal code failed")

    async def get_available_time_slots(
        self, postal_code: str, *, cancel: Optional[asyncio.Event] = None
    ) -> list[TimeSlot]:
        """List home delivery slots for a postal code."""
        validate_postal_code(postal_code)

        params = {"postalCode": postal_code, "b2b": "false"}
        response = await self.session.execute(
            "GET", endpoints.SLOT_HOME_DELIVERY, params=params, cancel=cancel
        )
        if response.status_code != 200:
            raise APIError(response.status_code, endpoints.SLOT_HOME_DELIVERY, "get time slots failed")

        data = _json(response, endpoints.SLOT_HOME_DELIVERY, "time slots response")
        if not isinstance(data, dict):
            raise APIError(response.status_code, endpoints.SLOT_HOME_DELIVERY, "failed to parse time slots response")

        timezone = self.config.delivery.timezone
        return [TimeSlot.from_api(raw, timezone) for raw in data.get("slots") or []]

    async def select_time_slot(self, slot: TimeSlot, *, cancel: Optional[asyncio.Event] = None) -> None:
        """Book a slot, echoing its routing reference back unchanged."""
        path = f"{endpoints.SLOT_IN_CART}/{quote(slot.slot_id, safe='')}"
        response = await self.session.execute(
            "POST",
            path,
            json=slot.routing_reference(),
            params={"isTmsSlot": "true"},
            needs_csrf=True,
            cancel=cancel,
        )
        if response.status_code not in (200, 204):
            raise APIError(response.status_code, path, "select time slot failed")

    async def find_time_slot(
        self,
        postal_code: str,
        delivery_date: str,
        time_slot: str,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> TimeSlot:
        """Find the available slot matching a date and "HH:MM-HH:MM" window.

        Raises:
            ValidationError: If the inputs are malformed, or no available slot
                matches (the message lists the windows that are available)
        """
        start, end = validate_time_slot(time_slot)
        validate_delivery_date(delivery_date, max_days_ahead=self.config.delivery.max_days_ahead)

        slots = await self.get_available_time_slots(postal_code, cancel=cancel)
        if not slots:
            raise ValidationError("postal_code", f"no delivery slots available for postal code {postal_code}")

        for slot in slots:
            if slot.available and slot.date == delivery_date and slot.start_time == start and slot.end_time == end:
                return slot

        by_date: dict[str, list[str]] = {}
        for slot in slots:
            if slot.available:
                by_date.setdefault(slot.date, []).append(slot.window)
        available = "\n".join(f"{day}: {', '.join(windows)}" for day, windows in sorted(by_date.items()))

        raise ValidationError(
            "time_slot",
            f"no matching time slot for {delivery_date} {start}-{end}. Available slots:\n{available}",
        )

    async def setup_delivery(
        self,
        address: DeliveryAddress,
        slot: TimeSlot,
        *,
        cancel: Optional[asyncio.Event] = None,
    ) -> DeliveryInfo:
        """Configure home delivery: deliverability, mode, address, slot."""
        validate_delivery_address(address)
        if not await self.check_deliverability(address.postal_code, cancel=cancel):
            raise ValidationError(
                "postal_code", f"delivery not available for postal code {address.postal_code}"
            )

        await self.set_delivery_mode(cancel=cancel)
        await self.set_delivery_address(address, cancel=cancel)
        await self.select_time_slot(slot, cancel=cancel)

        picking_fee = self.config.delivery.default_picking_fee
        logger.info("Delivery booked for %s %s", slot.date, slot.window)
        return DeliveryInfo(
            address=address,
            time_slot=slot,
            picking_fee=picking_fee,
            delivery_fee=slot.fee,
            total_fee=picking_fee + slot.fee,
        )

    def get_checkout_url(self) -> str:
        """URL where the customer completes payment in a browser."""
        return self.session.base_url + endpoints.CHECKOUT
