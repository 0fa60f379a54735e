"""Local input validation.

Every check here runs before any network call and raises
:class:`~willys.api.errors.ValidationError` on failure.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from willys.api.errors import ValidationError
from willys.api.models import DeliveryAddress
from willys.core.config import load_config

POSTAL_CODE_RE = re.compile(r"^\d{5}$|^\d{3} ?\d{2}$", re.ASCII)
PRODUCT_CODE_RE = re.compile(r"^\d+_(ST|KG)$", re.ASCII)
TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$", re.ASCII)

MAX_ADDRESS_LENGTH = 100
MAX_NAME_LENGTH = 50
MAX_CITY_LENGTH = 50
MAX_DOOR_CODE_LENGTH = 20
MAX_MESSAGE_LENGTH = 500

MIN_QUANTITY = 1
MAX_QUANTITY = 999
MAX_PAGE_SIZE = 100


def validate_postal_code(postal_code: str) -> None:
    if not postal_code:
        raise ValidationError("postal_code", "cannot be empty")
    if not POSTAL_CODE_RE.fullmatch(postal_code):
        raise ValidationError("postal_code", "invalid format (expected: 12345 or 123 45)")


def validate_product_code(code: str) -> None:
    if not code:
        raise ValidationError("product_code", "cannot be empty")
    if not PRODUCT_CODE_RE.fullmatch(code):
        raise ValidationError("product_code", "invalid format (expected: 123456_ST or 123456_KG)")


def validate_quantity(quantity: int) -> None:
    if quantity < MIN_QUANTITY:
        raise ValidationError("quantity", f"must be at least {MIN_QUANTITY}")
    if quantity > MAX_QUANTITY:
        raise ValidationError("quantity", f"max {MAX_QUANTITY}")


def _check_length(field: str, value: str, limit: int, required: bool = True) -> None:
    if required and not value:
        raise ValidationError(field, "required")
    if len(value) > limit:
        raise ValidationError(field, f"max {limit} characters")


def validate_delivery_address(address: DeliveryAddress) -> None:
    _check_length("first_name", address.first_name, MAX_NAME_LENGTH)
    _check_length("last_name", address.last_name, MAX_NAME_LENGTH)
    _check_length("address", address.address, MAX_ADDRESS_LENGTH)
    _check_length("city", address.city, MAX_CITY_LENGTH)
    _check_length("door_code", address.door_code, MAX_DOOR_CODE_LENGTH, required=False)
    _check_length("message_to_driver", address.message_to_driver, MAX_MESSAGE_LENGTH, required=False)
    validate_postal_code(address.postal_code)


def validate_delivery_date(
    date_str: str,
    today: date | None = None,
    max_days_ahead: int | None = None,
) -> date:
    """Check a YYYY-MM-DD delivery date is within the booking window.

    Args:
        date_str: Requested date
        today: Reference date, defaults to the local date
        max_days_ahead: Size of the booking window, defaults to the
            configured delivery.max_days_ahead

    Returns:
        The parsed date
    """
    if not date_str:
        raise ValidationError("delivery_date", "cannot be empty")

    try:
        delivery_date = datetime.strptime(date_str, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("delivery_date", "invalid format (expected: YYYY-MM-DD)") from None

    if today is None:
        today = date.today()
    if max_days_ahead is None:
        max_days_ahead = load_config().delivery.max_days_ahead

    if delivery_date < today:
        raise ValidationError("delivery_date", "cannot be in the past")
    if delivery_date > today + timedelta(days=max_days_ahead):
        raise ValidationError("delivery_date", f"max {max_days_ahead} days ahead")

    return delivery_date


def validate_time_slot(time_slot: str) -> tuple[str, str]:
    """Split and check an "HH:MM-HH:MM" window.

    Returns:
        (start, end) as zero-padded strings
    """
    if not time_slot:
        raise ValidationError("time_slot", "cannot be empty")

    parts = time_slot.split("-")
    if len(parts) != 2:
        raise ValidationError("time_slot", "invalid format (expected: HH:MM-HH:MM)")

    start, end = parts[0].strip(), parts[1].strip()
    if not TIME_RE.fullmatch(start):
        raise ValidationError("time_slot", f"invalid start time: {start}")
    if not TIME_RE.fullmatch(end):
        raise ValidationError("time_slot", f"invalid end time: {end}")

    # Zero-padded HH:MM compares correctly as text
    if end <= start:
        raise ValidationError("time_slot", "end time must be after start time")

    return start, end


def validate_search_params(query: str, page: int, size: int) -> None:
    if not query:
        raise ValidationError("query", "search query cannot be empty")
    if page < 0:
        raise ValidationError("page", "page number cannot be negative")
    if size <= 0 or size > MAX_PAGE_SIZE:
        raise ValidationError("size", f"page size must be between 1 and {MAX_PAGE_SIZE}")


def validate_login(username: str, password: str, min_password_length: int | None = None) -> None:
    if min_password_length is None:
        min_password_length = load_config().auth.min_password_length
    if not username:
        raise ValidationError("username", "username cannot be empty")
    if not password:
        raise ValidationError("password", "password cannot be empty")
    if len(password) < min_password_length:
        raise ValidationError("password", f"password must be at least {min_password_length} characters")
