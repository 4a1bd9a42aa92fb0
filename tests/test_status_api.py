"""Tests for GET /status/{transaction_id}."""

import httpx
import pytest

from conftest import MERCHANT_ID, checksum


def _status_reply(success, code, state=None, **data):
    reply = {"success": success, "code": code, "message": f"{code} message"}
    if state is not None:
        reply["data"] = {"merchantId": MERCHANT_ID, "merchantTransactionId": "MT123", "state": state, **data}
    return reply


class TestStatusSuccess:
    """Tests for states reported by the gateway."""

    def test_completed(self, client, gateway):
        gateway.reply = _status_reply(True, "PAYMENT_SUCCESS", "COMPLETED", amount=1000)

        response = client.get("/status/MT123")

        assert response.status_code == 200
        data = response.json()
        assert data["transactionId"] == "MT123"
        assert data["status"] == "COMPLETED"
        assert data["result"] == "approved"
        assert data["code"] == "PAYMENT_SUCCESS"
        assert data["message"] == "PAYMENT_SUCCESS message"
        assert data["data"]["amount"] == 1000
        assert data["timestamp"]

    def test_outbound_request(self, client, gateway):
        gateway.reply = _status_reply(True, "PAYMENT_PENDING", "PENDING")

        client.get("/status/MT123")

        sent = gateway.requests[0]
        assert sent.method == "GET"
        assert str(sent.url) == f"https://gateway.test/pg/v1/status/{MERCHANT_ID}/MT123"
        assert sent.headers["x-verify"] == checksum(f"/pg/v1/status/{MERCHANT_ID}/MT123")
        assert sent.headers["x-merchant-id"] == MERCHANT_ID
        assert sent.content == b""

    def test_pending(self, client, gateway):
        gateway.reply = _status_reply(True, "PAYMENT_PENDING", "PENDING")

        data = client.get("/status/MT123").json()

        assert data["status"] == "PENDING"
        assert data["result"] == "pending"

    def test_failed_payment_is_a_status_not_an_error(self, client, gateway):
        gateway.reply = _status_reply(False, "PAYMENT_ERROR", "FAILED")

        response = client.get("/status/MT123")

        assert response.status_code == 200
        assert response.json()["status"] == "FAILED"
        assert response.json()["result"] == "declined"


class TestStatusFailures:
    """Tests for translation of gateway failures on status checks."""

    def test_not_found_is_rejected(self, client, gateway):
        gateway.reply = {"success": False, "code": "TRANSACTION_NOT_FOUND", "message": "No transaction"}

        response = client.get("/status/MT404")

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "TRANSACTION_NOT_FOUND"
        assert data["message"] == "No transaction"
        assert data["transactionId"] == "MT404"

    def test_rejected_with_non_object_data(self, client, gateway):
        gateway.reply = {"success": False, "code": "X", "message": ["no"], "data": "oops"}

        response = client.get("/status/MT123")

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "X"
        assert data["message"] == '["no"]'

    def test_success_without_state_is_malformed(self, client, gateway):
        gateway.reply = {"success": True, "code": "PAYMENT_SUCCESS", "data": {}}

        response = client.get("/status/MT123")

        assert response.status_code == 502
        assert response.json()["code"] == "MALFORMED_UPSTREAM_SUCCESS"

    def test_unreachable(self, client, gateway):
        gateway.reply = httpx.ConnectError("refused")

        response = client.get("/status/MT123")

        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_UNAVAILABLE"

    def test_non_json(self, client, gateway):
        gateway.reply = httpx.Response(500, text="oops")

        response = client.get("/status/MT123")

        assert response.status_code == 502
        assert response.json()["code"] == "UPSTREAM_PROTOCOL_ERROR"

    def test_invalid_transaction_id(self, client, gateway):
        response = client.get("/status/abc$def")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_TRANSACTION_ID"
        assert gateway.requests == []

    def test_missing_config(self, make_client, gateway):
        client = make_client(SALT_INDEX=None)

        response = client.get("/status/MT123")

        assert response.status_code == 500
        assert response.json()["missing"] == ["SALT_INDEX"]
        assert gateway.requests == []


class TestStatusMap:
    """Tests for state/code normalization."""

    @pytest.mark.parametrize("state,code,expected", [
        ("COMPLETED", None, "approved"),
        ("FAILED", None, "declined"),
        ("PENDING", "PAYMENT_ERROR", "pending"),
        (None, "PAYMENT_SUCCESS", "approved"),
        (None, "PAYMENT_DECLINED", "declined"),
        (None, None, "pending"),
    ])
    def test_map(self, adapter, state, code, expected):
        assert adapter._status_map(state, code) == expected
