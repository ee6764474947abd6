"""Pytest configuration and fixtures"""
from typing import Callable, List

import httpx
import pytest

from mall_client.auth.session import SessionStore
from mall_client.cart import CartStore
from mall_client.config import Settings
from mall_client.services.request import RequestPipeline
from mall_client.storage import MemoryStorage

BASE_URL = "http://mall.test/api"


class RecordingNavigator:
    """Counts login redirects and snapshots the session at redirect time."""

    def __init__(self, session: SessionStore | None = None):
        self.session = session
        self.calls = 0
        self.token_at_redirect: List = []

    def redirect_to_login(self) -> None:
        self.calls += 1
        if self.session is not None:
            self.token_at_redirect.append(self.session.token)


def envelope(data=None, code: int = 200, message: str = "success", status: int = 200) -> httpx.Response:
    """Build an API response with the standard envelope."""
    return httpx.Response(status, json={"code": code, "message": message, "data": data})


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cart(storage):
    return CartStore(storage)


@pytest.fixture
def session(storage):
    return SessionStore(storage)


@pytest.fixture
def logged_in_session(session):
    session.login("token-abc123", {"id": 1, "phone": "13800000000", "nickname": "Alice"})
    return session


@pytest.fixture
def navigator(session):
    return RecordingNavigator(session)


@pytest.fixture
def settings():
    return Settings(base_url=BASE_URL, timeout=5.0)


@pytest.fixture
def make_pipeline(session, navigator, settings) -> Callable[..., RequestPipeline]:
    """Factory: pipeline whose HTTP traffic is answered by `handler`."""

    def _make(handler, **overrides) -> RequestPipeline:
        client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
        return RequestPipeline(
            overrides.get("session", session),
            overrides.get("navigator", navigator),
            overrides.get("settings", settings),
            client=client,
        )

    return _make


@pytest.fixture
def sample_product():
    """Sample product payload"""
    return {
        "id": 101,
        "name": "Cotton T-Shirt",
        "category_id": 3,
        "sku": "TS-101",
        "price": 59.9,
        "original_price": 79.9,
        "stock": 20,
        "sales": 340,
        "images": ["https://img.mall.test/ts-101.jpg"],
        "description": "Plain tee",
        "specs": [{"name": "color", "value": "white"}, {"name": "size", "value": "M"}],
        "attributes": [],
        "status": 1,
        "is_featured": True,
        "is_new": False,
        "weight": 0.2,
    }


