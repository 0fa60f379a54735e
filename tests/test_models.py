import pytest

from conftest import ROUTING_REFERENCE
from willys.api.models import (
    CartSummary,
    CustomerInfo,
    DeliveryAddress,
    Product,
    SearchPreferences,
    TimeSlot,
    parse_price,
)


@pytest.mark.parametrize(
    "raw,expected",
    [
        (12, 12.0),
        (12.5, 12.5),
        ("24.90", 24.9),
        ({"value": 59}, 59.0),
        ({"value": "19.5"}, 19.5),
        ({"formattedValue": "59 kr"}, 0.0),
        ("", 0.0),
        ("24,90 kr", 0.0),
        (None, 0.0),
        (True, 0.0),
        ([1, 2], 0.0),
    ],
)
def test_parse_price(raw, expected):
    assert parse_price(raw) == pytest.approx(expected)


def test_product_from_api():
    product = Product.from_api(
        {
            "code": "101233933_ST",
            "name": "Mellanmjölk 1,5%",
            "priceValue": 15.9,
            "price": "15,90 kr",
            "comparePrice": "15,90 kr",
            "comparePriceUnit": "l",
            "displayVolume": "1l",
            "manufacturer": "Arla",
            "labels": ["svensk_flagga"],
            "online": True,
            "outOfStock": False,
            "savingsAmount": 2,
            "image": {"url": "https://assets.axfood.se/image.png"},
        }
    )

    assert product.code == "101233933_ST"
    assert product.price_value == 15.9
    assert product.labels == ["svensk_flagga"]
    assert product.savings_amount == 2.0
    assert product.image_url.endswith("image.png")


def test_product_from_sparse_payload():
    product = Product.from_api({"code": "1_ST", "name": "X", "labels": None, "image": None})

    assert product.labels == []
    assert product.savings_amount is None
    assert product.image_url == ""


def test_cart_summary_totals():
    cart = CartSummary.from_api(
        {
            "products": [
                {"code": "1_ST", "name": "Mjölk", "quantity": 2, "price": "12.50"},
                {"code": "2_KG", "name": "Äpplen", "quantity": 1, "price": {"value": 29.9}},
            ],
            "totalPrice": 54.9,
            "deliveryFee": "49",
            "pickingFee": {"value": 59},
        }
    )

    assert cart.item_count == 3
    assert cart.items[0].total_price == pytest.approx(25.0)
    assert cart.items[1].price == pytest.approx(29.9)
    assert cart.final_total == pytest.approx(54.9 + 49 + 59)
    assert cart.find("2_KG").name == "Äpplen"
    assert cart.find("3_ST") is None


def test_empty_cart():
    cart = CartSummary.from_api({})
    assert cart.items == []
    assert cart.final_total == 0.0


def test_time_slot_from_api_renders_stockholm_time():
    slot = TimeSlot.from_api(
        {
            "code": "HD-20240115-1500",
            # 2024-01-15 15:00 and 17:00 in Stockholm (UTC+1)
            "startTime": 1705327200000,
            "endTime": 1705334400000,
            "available": True,
            "deliveryCost": {"value": 49.0},
            "tmsDeliveryWindowReference": ROUTING_REFERENCE,
        }
    )

    assert slot.slot_id == "HD-20240115-1500"
    assert slot.date == "2024-01-15"
    assert slot.window == "15:00-17:00"
    assert slot.fee == 49.0
    assert slot.available is True
    assert slot.routing_reference() == ROUTING_REFERENCE


def test_time_slot_summer_time():
    # 2024-07-01 08:00 UTC is 10:00 in Stockholm (UTC+2)
    slot = TimeSlot.from_api({"code": "S", "startTime": 1719820800000, "endTime": 1719828000000})
    assert slot.window == "10:00-12:00"
    assert slot.available is False


def test_search_preferences_from_loose_dict():
    prefs = SearchPreferences.from_dict(
        {
            "max_price_per_unit": 30,
            "required_labels": ["KRAV", 7, "Ekologisk"],
            "preferred_labels": "not a list",
            "sort_by": "best_value",
        }
    )

    assert prefs.max_price_per_unit == 30.0
    assert prefs.required_labels == ("KRAV", "Ekologisk")
    assert prefs.preferred_labels == ()
    assert prefs.sort_by == "best_value"


def test_delivery_address_from_dict_ignores_non_strings():
    address = DeliveryAddress.from_dict({"first_name": "Anna", "postal_code": 11151, "city": "Stockholm"})
    assert address.first_name == "Anna"
    assert address.postal_code == ""


def test_customer_info_from_api():
    info = CustomerInfo.from_api({"customerId": "42", "firstName": "Anna", "plusCustomer": True})
    assert info.customer_id == "42"
    assert info.first_name == "Anna"
    assert info.plus_customer is True
