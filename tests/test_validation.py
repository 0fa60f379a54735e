from datetime import date, timedelta

import pytest

from willys.api.errors import ValidationError
from willys.api.models import DeliveryAddress
from willys.api.validation import (
    validate_delivery_address,
    validate_delivery_date,
    validate_login,
    validate_postal_code,
    validate_product_code,
    validate_quantity,
    validate_search_params,
    validate_time_slot,
)
from willys.core.config import load_config


@pytest.mark.parametrize("code", ["11151", "111 51", "98765"])
def test_valid_postal_codes(code):
    validate_postal_code(code)


@pytest.mark.parametrize(
    "code",
    ["", "1115", "111511", "abcde", "111-51", "11151\n", "111  51", "111\t51", "１１１５１", "١٢٣٤٥"],
)
def test_invalid_postal_codes(code):
    with pytest.raises(ValidationError) as exc_info:
        validate_postal_code(code)
    assert exc_info.value.field == "postal_code"


@pytest.mark.parametrize("code", ["101233933_ST", "101233933_KG", "1_ST"])
def test_valid_product_codes(code):
    validate_product_code(code)


@pytest.mark.parametrize("code", ["", "101233933", "101233933_st", "_ST", "abc_ST", "101233933_ST ", "１２３_ST"])
def test_invalid_product_codes(code):
    with pytest.raises(ValidationError):
        validate_product_code(code)


@pytest.mark.parametrize("quantity", [1, 500, 999])
def test_quantity_in_range(quantity):
    validate_quantity(quantity)


@pytest.mark.parametrize("quantity", [0, -1, 1000])
def test_quantity_out_of_range(quantity):
    with pytest.raises(ValidationError) as exc_info:
        validate_quantity(quantity)
    assert exc_info.value.field == "quantity"


def test_time_slot_valid():
    assert validate_time_slot("15:00-17:00") == ("15:00", "17:00")
    assert validate_time_slot("08:00 - 10:30") == ("08:00", "10:30")


@pytest.mark.parametrize(
    "slot",
    ["", "15:00", "17:00-15:00", "15:00-15:00", "9:00-10:00", "24:00-25:00", "15:60-16:00", "a-b-c", "１５:00-17:00"],
)
def test_time_slot_invalid(slot):
    with pytest.raises(ValidationError) as exc_info:
        validate_time_slot(slot)
    assert exc_info.value.field == "time_slot"


class TestDeliveryDate:
    today = date(2024, 1, 15)

    def test_today_and_limit_accepted(self):
        assert validate_delivery_date("2024-01-15", today=self.today) == self.today
        assert validate_delivery_date("2024-01-29", today=self.today) == date(2024, 1, 29)

    def test_past_rejected(self):
        with pytest.raises(ValidationError, match="past"):
            validate_delivery_date("2024-01-14", today=self.today)

    def test_too_far_ahead_rejected(self):
        with pytest.raises(ValidationError, match="14 days"):
            validate_delivery_date("2024-01-30", today=self.today)

    @pytest.mark.parametrize("value", ["", "15/01/2024", "2024-13-01", "tomorrow"])
    def test_malformed_rejected(self, value):
        with pytest.raises(ValidationError) as exc_info:
            validate_delivery_date(value, today=self.today)
        assert exc_info.value.field == "delivery_date"


def _address(**overrides):
    fields = dict(
        first_name="Anna",
        last_name="Svensson",
        address="Drottninggatan 1",
        postal_code="11151",
        city="Stockholm",
    )
    fields.update(overrides)
    return DeliveryAddress(**fields)


def test_address_valid():
    validate_delivery_address(_address(door_code="1234", message_to_driver="Ring på"))


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"first_name": ""}, "first_name"),
        ({"last_name": "x" * 51}, "last_name"),
        ({"address": "x" * 101}, "address"),
        ({"city": ""}, "city"),
        ({"door_code": "1" * 21}, "door_code"),
        ({"message_to_driver": "x" * 501}, "message_to_driver"),
        ({"postal_code": "123"}, "postal_code"),
    ],
)
def test_address_invalid(overrides, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_delivery_address(_address(**overrides))
    assert exc_info.value.field == field


@pytest.mark.parametrize(
    "query,page,size,field",
    [("", 0, 30, "query"), ("mjölk", -1, 30, "page"), ("mjölk", 0, 0, "size"), ("mjölk", 0, 101, "size")],
)
def test_search_params_invalid(query, page, size, field):
    with pytest.raises(ValidationError) as exc_info:
        validate_search_params(query, page, size)
    assert exc_info.value.field == field


def test_login_password_length():
    validate_login("kund@example.com", "123456")
    with pytest.raises(ValidationError, match="at least 6"):
        validate_login("kund@example.com", "12345")


def test_login_password_length_override():
    validate_login("kund@example.com", "1234", min_password_length=4)
    with pytest.raises(ValidationError, match="at least 10"):
        validate_login("kund@example.com", "123456789", min_password_length=10)


def test_limits_default_to_config():
    config = load_config()
    too_short = "x" * (config.auth.min_password_length - 1)
    with pytest.raises(ValidationError, match=f"at least {config.auth.min_password_length}"):
        validate_login("kund@example.com", too_short)

    today = date(2024, 1, 15)
    last_day = today + timedelta(days=config.delivery.max_days_ahead)
    assert validate_delivery_date(last_day.isoformat(), today=today) == last_day
    with pytest.raises(ValidationError, match=f"{config.delivery.max_days_ahead} days"):
        validate_delivery_date((last_day + timedelta(days=1)).isoformat(), today=today)
