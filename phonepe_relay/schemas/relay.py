from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ====== INBOUND ======

class PaymentIntent(BaseModel):
    """Validated payer input; built by ``validation.validate_payment_intent``."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    mobile: str
    name: str


# ====== OUTBOUND TO CLIENT ======

class PayResponse(BaseModel):
    success: bool = True
    url: str
    transactionId: str


class StatusResponse(BaseModel):
    transactionId: str
    status: str | None = Field(default=None, description="gateway state: COMPLETED | PENDING | FAILED")
    result: str = Field(description="approved | declined | pending")
    data: Dict[str, Any] | None = None
    message: str | None = None
    code: str | None = None
    timestamp: str = Field(default_factory=now_iso)


class CallbackDetails(BaseModel):
    """What could be read out of a gateway callback body. Every field is optional."""

    signatureValid: bool | None = None
    code: str | None = None
    state: str | None = None
    result: str | None = Field(default=None, description="approved | declined | pending")
    merchantTransactionId: str | None = None


class CallbackAck(BaseModel):
    message: str = "Callback received"
    transactionId: str
    timestamp: str = Field(default_factory=now_iso)
    signatureValid: bool | None = None
    code: str | None = None
    state: str | None = None
    result: str | None = None
    verification: StatusResponse | None = None
