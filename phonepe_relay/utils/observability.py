import json
import logging
from typing import Any, Dict, Iterable

REDACTED = "***"
SENSITIVE_KEYS = frozenset({
    "mobile",
    "mobileNumber",
    "name",
    "redirectUrl",
    "callbackUrl",
    "X-VERIFY",
    "x_verify",
    "request",
    "SALT_KEY",
    "salt_key",
})
MAX_BODY_CHARS = 2000


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def redact(params: Dict[str, Any], keys: Iterable[str] = SENSITIVE_KEYS) -> Dict[str, Any]:
    keys = set(keys)
    out: Dict[str, Any] = {}
    for k, v in params.items():
        if k in keys:
            out[k] = REDACTED
        elif isinstance(v, dict):
            out[k] = redact(v, keys)
        else:
            out[k] = v
    return out


def truncate(text: str | None, limit: int = MAX_BODY_CHARS) -> str:
    text = text or ""
    return text if len(text) <= limit else text[:limit] + "...(truncated)"


class RelayObserver:
    """
    Logs the three seams of every relayed request:
      request received -> upstream call (+ raw reply) -> response translated
    Params go through ``redact`` first; secrets and payer PII never reach the log.
    """

    def __init__(self, gateway: str = "phonepe", logger: logging.Logger | None = None):
        self.gateway = gateway
        self.logger = logger or logging.getLogger("phonepe_relay.relay")

    def _emit(self, level: int, event: str, fields: Dict[str, Any]) -> None:
        record = {"gateway": self.gateway, "event": event, **fields}
        self.logger.log(level, "%s %s", event, json.dumps(record, default=str), extra={"relay": record})

    def request_received(self, kind: str, transaction_id: str | None, params: Dict[str, Any] | None = None) -> None:
        self._emit(logging.INFO, "request_received", {
            "kind": kind,
            "transactionId": transaction_id,
            "params": redact(params or {}),
        })

    def upstream_call(self, kind: str, url: str, params: Dict[str, Any] | None = None) -> None:
        self._emit(logging.INFO, "upstream_call", {"kind": kind, "url": url, "params": redact(params or {})})

    def upstream_reply(self, kind: str, status: int | None, body: str | None) -> None:
        self._emit(logging.DEBUG, "upstream_reply", {"kind": kind, "status": status, "body": truncate(body)})

    def upstream_failed(self, kind: str, error: BaseException) -> None:
        self._emit(logging.WARNING, "upstream_failed", {"kind": kind, "error": repr(error)})

    def response_translated(self, kind: str, transaction_id: str | None, outcome: str, **fields: Any) -> None:
        level = logging.INFO if outcome == "ok" else logging.WARNING
        self._emit(level, "response_translated", {
            "kind": kind,
            "transactionId": transaction_id,
            "outcome": outcome,
            **fields,
        })
