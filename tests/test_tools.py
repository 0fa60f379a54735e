"""Tests for the agent tools' JSON responses."""

import json

import pytest

from conftest import delivery_day, slot_payload
from willys.api.tools import create_tools


@pytest.fixture
def tools(client):
    return {t.name: t for t in create_tools(client)}


async def test_tool_names(tools):
    assert set(tools) == {
        "search_groceries",
        "add_to_cart",
        "view_cart",
        "remove_from_cart",
        "get_available_time_slots",
        "select_delivery_time",
        "proceed_to_checkout",
    }


async def test_search_returns_products(tools, shop):
    shop.route(
        "GET",
        "/search",
        (
            200,
            {
                "results": [
                    {"code": "2_ST", "name": "Dyr", "comparePrice": "30,00 kr"},
                    {"code": "1_ST", "name": "Billig", "comparePrice": "10,00 kr"},
                ]
            },
        ),
    )

    result = json.loads(
        await tools["search_groceries"].ainvoke(
            {"query": "mjölk", "preferences": {"sort_by": "cheapest"}}
        )
    )

    assert result["count"] == 2
    assert [p["code"] for p in result["products"]] == ["1_ST", "2_ST"]


async def test_validation_error_shape(tools, shop):
    result = json.loads(await tools["add_to_cart"].ainvoke({"product_code": "bad", "quantity": 1}))

    assert result == {
        "error": {
            "kind": "validation",
            "message": "product_code: invalid format (expected: 123456_ST or 123456_KG)",
            "field": "product_code",
        }
    }
    assert shop.requests == []


async def test_not_found_error_shape(tools, shop):
    shop.route("POST", "/axfood/rest/cart/addProducts", (404, {}))

    result = json.loads(await tools["add_to_cart"].ainvoke({"product_code": "999_ST"}))

    assert result["error"]["kind"] == "not_found"
    assert result["error"]["id"] == "999_ST"


async def test_api_error_shape(tools, shop):
    shop.route("GET", "/axfood/rest/cart", (500, {}))

    result = json.loads(await tools["view_cart"].ainvoke({}))

    assert result["error"]["kind"] == "api"
    assert result["error"]["status_code"] == 500
    assert result["error"]["endpoint"] == "/axfood/rest/cart"


async def test_view_cart(tools, shop):
    shop.route(
        "GET",
        "/axfood/rest/cart",
        (200, {"products": [{"code": "1_ST", "name": "Mjölk", "quantity": 2, "price": 10}], "totalPrice": 20}),
    )

    result = json.loads(await tools["view_cart"].ainvoke({}))

    assert result["item_count"] == 2
    assert result["items"][0]["name"] == "Mjölk"
    assert result["final_total"] == 20.0


async def test_select_delivery_time(tools, shop):
    day = delivery_day()
    shop.route("GET", "/axfood/rest/slot/homeDelivery", (200, {"slots": [slot_payload("HD1", day, 15, 17)]}))
    shop.route("GET", "/axfood/rest/shipping/delivery/11151/deliverability", (200, {"deliverable": True}))
    for path in (
        "/axfood/rest/cart/delivery-mode/homeDelivery",
        "/axfood/rest/cart/delivery-address",
        "/axfood/rest/cart/postal-code",
        "/axfood/rest/slot/slotInCart/HD1",
    ):
        shop.route("POST", path, (200, {}))

    result = json.loads(
        await tools["select_delivery_time"].ainvoke(
            {
                "address": {
                    "first_name": "Anna",
                    "last_name": "Svensson",
                    "address": "Drottninggatan 1",
                    "postal_code": "11151",
                    "city": "Stockholm",
                },
                "delivery_date": day.isoformat(),
                "time_slot": "15:00-17:00",
            }
        )
    )

    assert result["time_slot"]["slot_id"] == "HD1"
    assert result["total_fee"] == 108.0


async def test_select_delivery_time_unknown_slot(tools, shop):
    day = delivery_day()
    shop.route("GET", "/axfood/rest/slot/homeDelivery", (200, {"slots": [slot_payload("HD1", day, 15, 17)]}))

    result = json.loads(
        await tools["select_delivery_time"].ainvoke(
            {
                "address": {"first_name": "Anna", "postal_code": "11151"},
                "delivery_date": day.isoformat(),
                "time_slot": "08:00-10:00",
            }
        )
    )

    assert result["error"]["kind"] == "validation"
    assert result["error"]["field"] == "time_slot"


async def test_proceed_to_checkout(tools):
    result = json.loads(await tools["proceed_to_checkout"].ainvoke({}))
    assert result["checkout_url"] == "https://www.willys.se/kassa"
