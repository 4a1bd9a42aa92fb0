from decimal import Decimal
from typing import Any, Dict, Protocol

from ..schemas.relay import CallbackDetails, PaymentIntent, PayResponse, StatusResponse


class GatewayAdapter(Protocol):
    name: str

    @property
    def max_amount(self) -> Decimal: ...

    async def pay(self, intent: PaymentIntent) -> PayResponse:
        ...

    async def status(self, transaction_id: str) -> StatusResponse:
        ...

    # Never raises; unreadable bodies give empty details
    def read_callback(self, transaction_id: str, body: Dict[str, Any], x_verify: str | None) -> CallbackDetails:
        ...
