from typing import Any

from fastapi import APIRouter, Depends, Request

from ..errors import InputValidationError
from ..providers.base import GatewayAdapter
from ..providers.registry import get_adapter
from ..schemas.relay import PayResponse, StatusResponse
from ..validation import validate_payment_intent, validate_transaction_id

router = APIRouter()


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InputValidationError("Invalid JSON", error_code="INVALID_BODY")


@router.post("/pay", response_model=PayResponse)
async def pay(request: Request, adapter: GatewayAdapter = Depends(get_adapter)):
    """
    In:  {"amount": 10, "mobile": "9123456789", "name": "Asha"}
    Out: {"success": true, "url": "<PhonePe pay page>", "transactionId": "MT..."}
    Validation runs before the gateway config is even looked at.
    """
    body = await _json_body(request)
    intent = validate_payment_intent(body, adapter.max_amount)
    return await adapter.pay(intent)


@router.get("/status/{transaction_id}", response_model=StatusResponse)
async def status(transaction_id: str, adapter: GatewayAdapter = Depends(get_adapter)):
    return await adapter.status(validate_transaction_id(transaction_id))
