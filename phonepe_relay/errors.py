"""
Relay error taxonomy.

    RelayError
    ├── InputValidationError      400  client-fixable, no upstream call made
    ├── ServerConfigurationError  500  operator-fixable, never carries secret values
    ├── UpstreamUnavailable       502  transport failure or timeout, safe to retry
    ├── UpstreamProtocolError     502  gateway answered with something that is not JSON
    ├── PaymentRejected           400  gateway said no, carries its code/message
    └── MalformedUpstreamSuccess  502  gateway said yes but left out required fields

The FastAPI exception handler in ``main`` renders ``to_dict()`` with ``status_code``.
"""
from typing import Any, Dict


class RelayError(Exception):
    status_code: int = 500
    default_error_code: str = "RELAY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: Dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.message,
            "code": self.error_code,
        }
        body.update(self.details)
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class InputValidationError(RelayError):
    status_code = 400
    default_error_code = "VALIDATION_ERROR"


class ServerConfigurationError(RelayError):
    status_code = 500
    default_error_code = "SERVER_CONFIGURATION_ERROR"


class UpstreamUnavailable(RelayError):
    status_code = 502
    default_error_code = "UPSTREAM_UNAVAILABLE"


class UpstreamProtocolError(RelayError):
    status_code = 502
    default_error_code = "UPSTREAM_PROTOCOL_ERROR"


class PaymentRejected(RelayError):
    """Business failure reported by the gateway; ``error_code`` is the gateway's own code."""

    status_code = 400
    default_error_code = "UNKNOWN"


class MalformedUpstreamSuccess(RelayError):
    status_code = 502
    default_error_code = "MALFORMED_UPSTREAM_SUCCESS"
