"""Typed models for Willys API payloads.

Responses are translated into plain dataclasses at the edge so the rest of
the package never handles raw JSON. Field names follow Python conventions;
``from_api`` constructors map from the service's camelCase shape.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Union
from zoneinfo import ZoneInfo


# Cart prices arrive as a number, a string, or {"value": number}
FlexiblePrice = Union[int, float, str, dict, None]


def parse_price(value: FlexiblePrice) -> float:
    """Coerce a cart price field to float.

    Unparseable or missing values become 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        if not value:
            return 0.0
        try:
            return float(value)
        except ValueError:
            return 0.0
    if isinstance(value, dict):
        if "value" in value:
            return parse_price(value["value"])
        return 0.0
    return 0.0


@dataclass
class Product:
    """A product from search results.

    Attributes:
        code: Product code (e.g., "101233933_ST")
        name: Product name
        price_value: Absolute price as a number
        price: Display price (e.g., "24,90 kr")
        compare_price: Unit-normalized price (e.g., "49,80 kr")
        compare_price_unit: Unit for compare_price (e.g., "kg")
        display_volume: Package size (e.g., "500g")
        manufacturer: Brand or producer
        labels: Quality and origin labels (e.g., "ekologisk", "svensk_flagga")
        online: Whether the product can be ordered online
        out_of_stock: Whether the product is currently out of stock
        savings_amount: Campaign savings, if any
        image_url: Product image URL
    """

    code: str
    name: str
    price_value: float = 0.0
    price: str = ""
    compare_price: str = ""
    compare_price_unit: str = ""
    display_volume: str = ""
    manufacturer: str = ""
    labels: list[str] = field(default_factory=list)
    online: bool = False
    out_of_stock: bool = False
    savings_amount: float | None = None
    image_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "Product":
        image = data.get("image") or {}
        savings = data.get("savingsAmount")
        return cls(
            code=data.get("code") or "",
            name=data.get("name") or "",
            price_value=float(data.get("priceValue") or 0.0),
            price=data.get("price") or "",
            compare_price=data.get("comparePrice") or "",
            compare_price_unit=data.get("comparePriceUnit") or "",
            display_volume=data.get("displayVolume") or "",
            manufacturer=data.get("manufacturer") or "",
            labels=list(data.get("labels") or []),
            online=bool(data.get("online", False)),
            out_of_stock=bool(data.get("outOfStock", False)),
            savings_amount=float(savings) if savings is not None else None,
            image_url=image.get("url") or "",
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SearchPreferences:
    """Filter and sort directives for search results.

    Attributes:
        price_sensitivity: "cheapest", "balanced" or "quality" (informational)
        max_price_per_unit: Drop products whose compare price exceeds this (0 = off)
        required_labels: Every label must match one of the product's labels
        preferred_labels: Labels the caller would like (informational)
        sort_by: "cheapest", "best_value" or "highest_quality"
    """

    price_sensitivity: str = ""
    max_price_per_unit: float = 0.0
    required_labels: tuple[str, ...] = ()
    preferred_labels: tuple[str, ...] = ()
    sort_by: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchPreferences":
        """Build preferences from loosely-typed tool arguments."""

        def _strings(value: Any) -> tuple[str, ...]:
            if not isinstance(value, (list, tuple)):
                return ()
            return tuple(v for v in value if isinstance(v, str))

        max_price = data.get("max_price_per_unit")
        return cls(
            price_sensitivity=data.get("price_sensitivity") or "",
            max_price_per_unit=float(max_price) if isinstance(max_price, (int, float)) else 0.0,
            required_labels=_strings(data.get("required_labels")),
            preferred_labels=_strings(data.get("preferred_labels")),
            sort_by=data.get("sort_by") or "",
        )


@dataclass
class CartItem:
    """An item in the shopping cart.

    Attributes:
        product_code: Product code
        name: Product name
        quantity: Quantity in cart
        price: Price per unit
        total_price: Line total (price * quantity)
        image_url: Product image URL
    """

    product_code: str
    name: str
    quantity: int = 1
    price: float = 0.0
    total_price: float = 0.0
    image_url: str = ""


@dataclass
class CartSummary:
    """Snapshot of the server-side cart."""

    items: list[CartItem] = field(default_factory=list)
    total_price: float = 0.0
    item_count: int = 0
    delivery_fee: float = 0.0
    picking_fee: float = 0.0
    final_total: float = 0.0

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CartSummary":
        total_price = parse_price(data.get("totalPrice"))
        delivery_fee = parse_price(data.get("deliveryFee"))
        picking_fee = parse_price(data.get("pickingFee"))

        items = []
        item_count = 0
        for product in data.get("products") or []:
            quantity = int(product.get("quantity") or 0)
            price = parse_price(product.get("price"))
            image = product.get("image") or {}
            items.append(
                CartItem(
                    product_code=product.get("code") or "",
                    name=product.get("name") or "",
                    quantity=quantity,
                    price=price,
                    total_price=price * quantity,
                    image_url=image.get("url") or "",
                )
            )
            item_count += quantity

        return cls(
            items=items,
            total_price=total_price,
            item_count=item_count,
            delivery_fee=delivery_fee,
            picking_fee=picking_fee,
            final_total=total_price + delivery_fee + picking_fee,
        )

    def find(self, product_code: str) -> CartItem | None:
        for item in self.items:
            if item.product_code == product_code:
                return item
        return None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DeliveryAddress:
    """Home delivery address."""

    first_name: str
    last_name: str
    address: str
    postal_code: str
    city: str
    door_code: str = ""
    message_to_driver: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DeliveryAddress":
        def _get(key: str) -> str:
            value = data.get(key)
            return value if isinstance(value, str) else ""

        return cls(
            first_name=_get("first_name"),
            last_name=_get("last_name"),
            address=_get("address"),
            postal_code=_get("postal_code"),
            city=_get("city"),
            door_code=_get("door_code"),
            message_to_driver=_get("message_to_driver"),
        )


@dataclass(frozen=True)
class TimeSlot:
    """A deliverable window.

    The routing fields (earliest_date_time through profitability) come from the
    delivery planning system and must be sent back unchanged when the slot is
    selected.
    """

    slot_id: str
    date: str
    start_time: str
    end_time: str
    fee: float = 0.0
    available: bool = False
    earliest_date_time: int = 0
    latest_date_time: int = 0
    route_id: int = 0
    resource_key: str = ""
    schedule_key: str = ""
    preceding_stop_id: int = 0
    stop_number: int = 0
    profitability: float = 0.0

    @classmethod
    def from_api(cls, data: dict[str, Any], timezone: str = "Europe/Stockholm") -> "TimeSlot":
        """Build a slot from one entry of the slot listing.

        startTime/endTime are epoch milliseconds, rendered in the shop's
        timezone.
        """
        tz = ZoneInfo(timezone)
        start = datetime.fromtimestamp(int(data.get("startTime") or 0) // 1000, tz)
        end = datetime.fromtimestamp(int(data.get("endTime") or 0) // 1000, tz)
        cost = data.get("deliveryCost") or {}
        ref = data.get("tmsDeliveryWindowReference") or {}

        return cls(
            slot_id=data.get("code") or "",
            date=start.strftime("%Y-%m-%d"),
            start_time=start.strftime("%H:%M"),
            end_time=end.strftime("%H:%M"),
            fee=float(cost.get("value") or 0.0),
            available=bool(data.get("available", False)),
            earliest_date_time=ref.get("earliestDateTime", 0),
            latest_date_time=ref.get("latestDateTime", 0),
            route_id=ref.get("routeID", 0),
            resource_key=ref.get("resourceKey", ""),
            schedule_key=ref.get("scheduleKey", ""),
            preceding_stop_id=ref.get("precedingStopId", 0),
            stop_number=ref.get("stopNumber", 0),
            profitability=ref.get("profitability", 0.0),
        )

    def routing_reference(self) -> dict[str, Any]:
        """Payload for slot selection, echoing the routing fields verbatim."""
        return {
            "earliestDateTime": self.earliest_date_time,
            "latestDateTime": self.latest_date_time,
            "routeID": self.route_id,
            "resourceKey": self.resource_key,
            "scheduleKey": self.schedule_key,
            "precedingStopId": self.preceding_stop_id,
            "stopNumber": self.stop_number,
            "profitability": self.profitability,
        }

    @property
    def window(self) -> str:
        return f"{self.start_time}-{self.end_time}"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class DeliveryInfo:
    """Result of a completed delivery setup."""

    address: DeliveryAddress
    time_slot: TimeSlot
    picking_fee: float
    delivery_fee: float
    total_fee: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CustomerInfo:
    """Logged-in customer profile."""

    customer_id: str = ""
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone_number: str = ""
    plus_customer: bool = False

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CustomerInfo":
        return cls(
            customer_id=data.get("customerId") or "",
            email=data.get("email") or "",
            first_name=data.get("firstName") or "",
            last_name=data.get("lastName") or "",
            phone_number=data.get("phoneNumber") or "",
            plus_customer=bool(data.get("plusCustomer", False)),
        )
