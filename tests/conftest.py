"""Shared test fixtures and configuration."""

import base64
import hashlib
import json
import os
from typing import Any, Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

# Set up test environment variables before importing modules
os.environ.setdefault("MERCHANT_ID", "PGTESTPAYUAT")
os.environ.setdefault("SALT_KEY", "099eb0cd-02cf-4e2a-8aca-3e6c6aff0399")
os.environ.setdefault("SALT_INDEX", "1")
os.environ.setdefault("CALLBACK_BASE_URL", "https://relay.example.com")
os.environ.setdefault("PHONEPE_BASE_URL", "https://gateway.test")

from phonepe_relay.main import app  # noqa: E402
from phonepe_relay.providers.phonepe.adapter import PhonePeAdapter  # noqa: E402
from phonepe_relay.providers.registry import get_adapter  # noqa: E402
from phonepe_relay.settings import Settings, get_settings  # noqa: E402

MERCHANT_ID = "PGTESTPAYUAT"
SALT_KEY = "099eb0cd-02cf-4e2a-8aca-3e6c6aff0399"
GATEWAY = "https://gateway.test"


def checksum(message: str, key: str = SALT_KEY, index: int = 1) -> str:
    return hashlib.sha256((message + key).encode("utf-8")).hexdigest() + f"###{index}"


def b64_json(data: Dict[str, Any]) -> str:
    return base64.b64encode(json.dumps(data).encode("utf-8")).decode("ascii")


class FakeGateway:
    """Records every outbound request and answers with ``reply`` (a Response, dict or exception)."""

    def __init__(self, reply: Any = None):
        self.reply = reply if reply is not None else {"success": True}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.reply, Exception):
            raise self.reply
        if isinstance(self.reply, httpx.Response):
            return self.reply
        return httpx.Response(200, json=self.reply)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "MERCHANT_ID": MERCHANT_ID,
        "SALT_KEY": SALT_KEY,
        "SALT_INDEX": 1,
        "CALLBACK_BASE_URL": "https://relay.example.com",
        "PHONEPE_BASE_URL": GATEWAY,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_adapter(gateway) -> Callable[..., PhonePeAdapter]:
    def _make(**overrides: Any) -> PhonePeAdapter:
        return PhonePeAdapter(make_settings(**overrides), transport=gateway.transport)

    return _make


@pytest.fixture
def adapter(make_adapter) -> PhonePeAdapter:
    return make_adapter()


@pytest.fixture
def make_client(make_adapter):
    """Test client whose adapter talks to the FakeGateway instead of PhonePe."""

    def _make(**overrides: Any) -> TestClient:
        adapter = make_adapter(**overrides)
        app.dependency_overrides[get_adapter] = lambda: adapter
        app.dependency_overrides[get_settings] = lambda: adapter.settings
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()


@pytest.fixture
def valid_pay_body() -> Dict[str, Any]:
    return {"amount": 10, "mobile": "9123456789", "name": "Asha Verma"}


@pytest.fixture
def pay_success_reply() -> Dict[str, Any]:
    return {
        "success": True,
        "code": "PAYMENT_INITIATED",
        "message": "Payment initiated",
        "data": {
            "merchantId": MERCHANT_ID,
            "merchantTransactionId": "MT7850590068188104",
            "instrumentResponse": {
                "type": "PAY_PAGE",
                "redirectInfo": {
                    "url": "https://mercury-uat.phonepe.com/transact/simulator?token=abc",
                    "method": "GET",
                },
            },
        },
    }
