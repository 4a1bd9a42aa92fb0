import json
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, field_validator

# Field order below is the key order of the serialized payload, and PhonePe
# verifies X-VERIFY over those exact bytes. Do not reorder.


class PaymentInstrument(BaseModel):
    type: str = "PAY_PAGE"


class PayPayload(BaseModel):
    model_config = ConfigDict(frozen=True)

    merchantId: str
    merchantTransactionId: str
    merchantUserId: str
    amount: int  # paisa
    redirectUrl: str
    redirectMode: str = "POST"
    callbackUrl: str
    mobileNumber: str
    paymentInstrument: PaymentInstrument = PaymentInstrument()


class SignedRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    request: str  # base64(payload JSON bytes)
    x_verify: str

    def body(self) -> Dict[str, str]:
        return {"request": self.request}


class GatewayReply(BaseModel):
    """
    Loose view over a PhonePe JSON reply; unknown fields are kept.
    Declared fields accept any JSON value: ``code`` and ``message`` are
    stringified, and a non-object ``data`` reads as empty.
    """

    model_config = ConfigDict(extra="allow")

    success: Any = None
    code: str | None = None
    message: str | None = None
    data: Any = None

    @field_validator("code", "message", mode="before")
    @classmethod
    def _stringify(cls, value: Any) -> str | None:
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value) if isinstance(value, (dict, list)) else str(value)

    def data_dict(self) -> Dict[str, Any]:
        return self.data if isinstance(self.data, dict) else {}

    def redirect_url(self) -> str | None:
        instrument = self.data_dict().get("instrumentResponse")
        redirect_info = instrument.get("redirectInfo") if isinstance(instrument, dict) else None
        url = redirect_info.get("url") if isinstance(redirect_info, dict) else None
        return url if isinstance(url, str) and url else None

    def state(self) -> str | None:
        state = self.data_dict().get("state")
        return str(state) if state else None
