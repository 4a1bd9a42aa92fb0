import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from .errors import InputValidationError
from .schemas.relay import PaymentIntent

REQUIRED_FIELDS = ("amount", "mobile", "name")
MOBILE_RE = re.compile(r"[6-9][0-9]{9}")
NAME_MIN_LEN = 2
NAME_MAX_LEN = 50


def to_minor_units(amount: Decimal) -> int:
    """Rupees -> paisa, nearest integer, halves away from zero (10.005 -> 1001)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_amount(value: Any, max_amount: Decimal) -> Decimal:
    if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
        raise InputValidationError("Amount must be a number", error_code="INVALID_AMOUNT")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InputValidationError("Amount must be a number", error_code="INVALID_AMOUNT")
    if not amount.is_finite():
        raise InputValidationError("Amount must be a number", error_code="INVALID_AMOUNT")
    if amount <= 0 or amount > max_amount:
        raise InputValidationError(
            f"Amount must be greater than 0 and at most {max_amount}",
            error_code="INVALID_AMOUNT",
            details={"max": str(max_amount)},
        )
    if to_minor_units(amount) < 1:
        raise InputValidationError(
            "Amount rounds to less than 0.01",
            error_code="INVALID_AMOUNT",
            details={"max": str(max_amount)},
        )
    return amount


def validate_payment_intent(body: Any, max_amount: Decimal) -> PaymentIntent:
    """
    Checks run in a fixed order and the first failure wins:
    missing fields -> mobile format -> amount bounds -> name length.
    """
    if not isinstance(body, dict):
        raise InputValidationError("Request body must be a JSON object", error_code="INVALID_BODY")

    missing = [f for f in REQUIRED_FIELDS if _is_blank(body.get(f))]
    if missing:
        raise InputValidationError(
            "Missing required fields",
            error_code="MISSING_FIELDS",
            details={"required": list(REQUIRED_FIELDS), "missing": missing},
        )

    raw_mobile = body["mobile"]
    mobile = "" if isinstance(raw_mobile, bool) else str(raw_mobile).strip()
    if not MOBILE_RE.fullmatch(mobile):
        raise InputValidationError(
            "Mobile number must be 10 digits starting with 6-9",
            error_code="INVALID_MOBILE",
        )

    amount = parse_amount(body["amount"], max_amount)

    name = body["name"]
    if not isinstance(name, str) or not NAME_MIN_LEN <= len(name.strip()) <= NAME_MAX_LEN:
        raise InputValidationError(
            f"Name must be between {NAME_MIN_LEN} and {NAME_MAX_LEN} characters",
            error_code="INVALID_NAME",
        )

    return PaymentIntent(amount=amount, mobile=mobile, name=name.strip())


def validate_transaction_id(transaction_id: str) -> str:
    # PhonePe accepts up to 35 chars of [A-Za-z0-9_-]
    if not re.fullmatch(r"[A-Za-z0-9_-]{1,35}", transaction_id or ""):
        raise InputValidationError("Invalid transaction id", error_code="INVALID_TRANSACTION_ID")
    return transaction_id
