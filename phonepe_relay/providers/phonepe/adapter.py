import base64
import binascii
import json
import logging
from decimal import Decimal
from typing import Any, Dict

import httpx

from ...errors import (
    MalformedUpstreamSuccess,
    PaymentRejected,
    ServerConfigurationError,
    UpstreamProtocolError,
    UpstreamUnavailable,
)
from ...schemas.relay import CallbackDetails, PaymentIntent, PayResponse, StatusResponse
from ...settings import GatewayConfig, Settings
from ...utils.http import client
from ...utils.ids import new_transaction_id, new_user_id
from ...utils.observability import RelayObserver
from ...utils.security import (
    PAY_PATH,
    STATUS_PATH,
    b64encode_json,
    pay_checksum,
    status_checksum,
    verify_callback_checksum,
)
from ...validation import to_minor_units
from .schemas import GatewayReply, PayPayload, SignedRequest

logger = logging.getLogger(__name__)


class PhonePeAdapter:
    """
    PhonePe Standard Checkout (PAY_PAGE):
      - POST /pg/v1/pay                                   (initiate, returns redirect url)
      - GET  /pg/v1/status/{merchantId}/{transactionId}   (status)
    Each request makes at most one upstream call. Failures are raised as RelayError
    subclasses from ``_call``; nothing from httpx escapes this class.
    """

    name = "PhonePe"

    def __init__(
        self,
        settings: Settings,
        observer: RelayObserver | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.settings = settings
        self.observer = observer or RelayObserver()
        self.transport = transport
        self._config: GatewayConfig | None = None

    @property
    def max_amount(self) -> Decimal:
        return self.settings.MAX_AMOUNT

    def config(self) -> GatewayConfig:
        if self._config is None:
            self._config = self.settings.gateway_config()
        return self._config

    # ---- payload & signing ----
    def build_pay_payload(self, intent: PaymentIntent, transaction_id: str | None = None) -> PayPayload:
        cfg = self.config()
        transaction_id = transaction_id or new_transaction_id()
        return_url = f"{cfg.callback_base_url}/callback/{transaction_id}"
        return PayPayload(
            merchantId=cfg.merchant_id,
            merchantTransactionId=transaction_id,
            merchantUserId=new_user_id(),
            amount=to_minor_units(intent.amount),
            redirectUrl=return_url,
            callbackUrl=return_url,
            mobileNumber=intent.mobile,
        )

    def sign(self, payload: PayPayload) -> SignedRequest:
        cfg = self.config()
        encoded = b64encode_json(payload.model_dump_json())
        return SignedRequest(
            request=encoded,
            x_verify=pay_checksum(encoded, cfg.salt_key.get_secret_value(), cfg.salt_index),
        )

    # ---- transport ----
    async def _call(
        self,
        kind: str,
        method: str,
        path: str,
        headers: Dict[str, str],
        json_body: Dict[str, Any] | None = None,
        log_params: Dict[str, Any] | None = None,
    ) -> GatewayReply:
        cfg = self.config()
        url = f"{cfg.base_url}{path}"
        self.observer.upstream_call(kind, url, log_params)

        try:
            async with client(cfg.timeout_sec, self.transport) as c:
                resp = await c.request(method, url, json=json_body, headers=headers)
        except httpx.TimeoutException as e:
            self.observer.upstream_failed(kind, e)
            raise UpstreamUnavailable("PhonePe did not respond in time", error_code="UPSTREAM_TIMEOUT") from e
        except httpx.HTTPError as e:
            self.observer.upstream_failed(kind, e)
            raise UpstreamUnavailable("PhonePe is unreachable") from e

        self.observer.upstream_reply(kind, resp.status_code, resp.text)

        try:
            js = resp.json()
        except ValueError as e:
            raise UpstreamProtocolError(
                "Invalid response from PhonePe",
                details={"upstreamStatus": resp.status_code},
            ) from e
        if not isinstance(js, dict):
            raise UpstreamProtocolError(
                "Invalid response from PhonePe",
                details={"upstreamStatus": resp.status_code},
            )
        return GatewayReply.model_validate(js)

    # ---- Adapter API ----
    async def pay(self, intent: PaymentIntent) -> PayResponse:
        payload = self.build_pay_payload(intent)
        transaction_id = payload.merchantTransactionId
        self.observer.request_received("pay", transaction_id, payload.model_dump())

        signed = self.sign(payload)
        reply = await self._call(
            "pay",
            "POST",
            PAY_PATH,
            headers={
                "Content-Type": "application/json",
                "X-VERIFY": signed.x_verify,
                "accept": "application/json",
            },
            json_body=signed.body(),
            log_params={"merchantTransactionId": transaction_id, "amount": payload.amount},
        )

        if reply.success is not True:
            self.observer.response_translated("pay", transaction_id, "rejected", code=reply.code)
            raise PaymentRejected(
                "Payment initiation failed",
                error_code=reply.code or "UNKNOWN",
                details={
                    "message": reply.message or "Unknown error",
                    "transactionId": transaction_id,
                    "details": reply.model_dump(exclude_none=True),
                },
            )

        url = reply.redirect_url()
        if not url:
            self.observer.response_translated("pay", transaction_id, "malformed", code=reply.code)
            raise MalformedUpstreamSuccess(
                "PhonePe reported success without a redirect URL",
                details={"transactionId": transaction_id, "upstreamCode": reply.code},
            )

        self.observer.response_translated("pay", transaction_id, "ok")
        return PayResponse(url=url, transactionId=transaction_id)

    async def status(self, transaction_id: str) -> StatusResponse:
        cfg = self.config()
        self.observer.request_received("status", transaction_id)
        path = f"{STATUS_PATH}/{cfg.merchant_id}/{transaction_id}"
        reply = await self._call(
            "status",
            "GET",
            path,
            headers={
                "Content-Type": "application/json",
                "X-VERIFY": status_checksum(
                    cfg.merchant_id, transaction_id, cfg.salt_key.get_secret_value(), cfg.salt_index
                ),
                "X-MERCHANT-ID": cfg.merchant_id,
                "accept": "application/json",
            },
            log_params={"merchantTransactionId": transaction_id},
        )

        state = reply.state()
        # A FAILED payment comes back with success=false but is still a valid answer
        if state:
            self.observer.response_translated("status", transaction_id, "ok", state=state)
            return StatusResponse(
                transactionId=transaction_id,
                status=state,
                result=self._status_map(state, reply.code),
                data=reply.data_dict() or None,
                message=reply.message,
                code=reply.code,
            )

        if reply.success is not True:
            self.observer.response_translated("status", transaction_id, "rejected", code=reply.code)
            raise PaymentRejected(
                "Status check failed",
                error_code=reply.code or "UNKNOWN",
                details={
                    "message": reply.message or "Unknown error",
                    "transactionId": transaction_id,
                    "details": reply.model_dump(exclude_none=True),
                },
            )

        self.observer.response_translated("status", transaction_id, "malformed", code=reply.code)
        raise MalformedUpstreamSuccess(
            "PhonePe reported success without a payment state",
            details={"transactionId": transaction_id, "upstreamCode": reply.code},
        )

    def read_callback(self, transaction_id: str, body: Dict[str, Any], x_verify: str | None) -> CallbackDetails:
        """
        Two shapes arrive on /callback:
          - server-to-server: {"response": base64(json)} signed in X-VERIFY
          - redirectMode=POST browser form: code, transactionId, ... at top level
        Nothing here raises; a bad body just yields empty details.
        """
        self.observer.request_received("callback", transaction_id, {"fields": sorted(body)})
        response_b64 = body.get("response")
        if not isinstance(response_b64, str) or not response_b64:
            # The browser form carries only the code, so the outcome is mapped from it
            code = _opt_str(body.get("code"))
            return CallbackDetails(
                code=code,
                result=self._status_map(None, code) if code else None,
                merchantTransactionId=_opt_str(body.get("transactionId") or body.get("merchantTransactionId")),
            )

        signature_valid = None
        try:
            cfg = self.config()
        except ServerConfigurationError:
            logger.warning("Callback %s: checksum not verified, gateway config incomplete", transaction_id)
        else:
            signature_valid = verify_callback_checksum(
                response_b64, x_verify or "", cfg.salt_key.get_secret_value(), cfg.salt_index
            )

        try:
            decoded = json.loads(base64.b64decode(response_b64, validate=True))
        except (binascii.Error, ValueError):
            logger.warning("Callback %s: response is not base64 JSON", transaction_id)
            decoded = {}
        if not isinstance(decoded, dict):
            decoded = {}
        data = decoded.get("data") if isinstance(decoded.get("data"), dict) else {}

        code = _opt_str(decoded.get("code"))
        state = _opt_str(data.get("state"))
        details = CallbackDetails(
            signatureValid=signature_valid,
            code=code,
            state=state,
            result=self._status_map(state, code) if (state or code) else None,
            merchantTransactionId=_opt_str(data.get("merchantTransactionId")),
        )
        self.observer.response_translated(
            "callback", transaction_id, "ok", signatureValid=signature_valid, code=details.code, state=details.state
        )
        return details

    # ---- Utils ----
    def _status_map(self, state: str | None, code: str | None = None) -> str:
        s = (state or "").upper()
        if s == "COMPLETED":
            return "approved"
        if s == "FAILED":
            return "declined"
        if s:
            return "pending"
        c = (code or "").upper()
        if c == "PAYMENT_SUCCESS":
            return "approved"
        if c in {"PAYMENT_ERROR", "PAYMENT_DECLINED", "TIMED_OUT"}:
            return "declined"
        return "pending"


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)
