"""Shared fixtures: an in-process fake of the Willys web shop."""

import asyncio
import json
from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

import httpx
import pytest

from willys.api.client import WillysAPIClient
from willys.api.session import WillysSession
from willys.core.config import Config

BASE_URL = "https://www.willys.se"
USERNAME = "kund@example.com"
PASSWORD = "hemligt123"

ROUTING_REFERENCE = {
    "earliestDateTime": 1705327200000,
    "latestDateTime": 1705334400000,
    "routeID": 4711,
    "resourceKey": "VAN-12",
    "scheduleKey": "STHLM-NORTH",
    "precedingStopId": 998877,
    "stopNumber": 7,
    "profitability": 0.87,
}


class FakeShop:
    """Routes requests to per-(method, path) handlers and records every request.

    A handler is either a callable taking the request or a
    ``(status, json_body)`` tuple that is turned into a fresh response each call.
    """

    def __init__(self):
        self.routes = {}
        self.requests: list[httpx.Request] = []
        self.token_counter = 0
        self.route("GET", "/axfood/rest/csrf-token", self._token)

    def route(self, method, path, handler):
        self.routes[(method, path)] = handler

    async def _token(self, request):
        # Yield so concurrent callers can pile up behind the session lock
        await asyncio.sleep(0.01)
        self.token_counter += 1
        return httpx.Response(200, json=f"token-{self.token_counter}")

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"message": "no route"})
        if isinstance(handler, tuple):
            status, body = handler
            return httpx.Response(status, json=body)
        response = handler(request)
        if asyncio.iscoroutine(response):
            response = await response
        return response

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request):
        return json.loads(request.content)


@pytest.fixture
def config():
    return Config()


@pytest.fixture
def shop():
    return FakeShop()


@pytest.fixture
async def session(shop, config):
    s = WillysSession(BASE_URL, config=config, transport=httpx.MockTransport(shop))
    yield s
    await s.close()


@pytest.fixture
async def client(session):
    return WillysAPIClient(session)


def slot_payload(code, day: date, start_hour, end_hour, available=True, cost=49.0):
    """One entry of the slot listing, timestamps in Stockholm local time."""
    tz = ZoneInfo("Europe/Stockholm")
    start = datetime.combine(day, time(start_hour), tz)
    end = datetime.combine(day, time(end_hour), tz)
    return {
        "code": code,
        "startTime": int(start.timestamp() * 1000),
        "endTime": int(end.timestamp() * 1000),
        "available": available,
        "deliveryCost": {"value": cost},
        "tmsDeliveryWindowReference": dict(ROUTING_REFERENCE),
    }


def delivery_day(days_ahead=2) -> date:
    return date.today() + timedelta(days=days_ahead)
