import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException

from ..errors import RelayError
from ..providers.base import GatewayAdapter
from ..providers.registry import get_adapter
from ..schemas.relay import CallbackAck, StatusResponse, now_iso
from ..settings import Settings, get_settings
from ..validation import validate_transaction_id

logger = logging.getLogger(__name__)

router = APIRouter()


async def _callback_body(request: Request) -> Dict[str, Any]:
    content_type = request.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            payload = await request.json()
        except ValueError:
            logger.warning("Callback body is not valid JSON")
            return {}
        return payload if isinstance(payload, dict) else {}
    if "form" in content_type:
        try:
            form = await request.form()
        except (HTTPException, MultiPartException) as e:
            logger.warning("Callback form body could not be parsed: %s", e)
            return {}
        return {k: v for k, v in form.items() if isinstance(v, str)}
    return {}


async def _cross_check(adapter: GatewayAdapter, transaction_id: str) -> StatusResponse | None:
    # Best effort only, a failed status call must not fail the acknowledgement
    try:
        return await adapter.status(validate_transaction_id(transaction_id))
    except RelayError as e:
        logger.warning("Callback %s: status cross-check failed: %s", transaction_id, e)
        return None


@router.post("/callback/{transaction_id}", response_model=CallbackAck, response_model_exclude_none=True)
async def callback_post(
    transaction_id: str,
    request: Request,
    x_verify: str | None = Header(default=None),
    adapter: GatewayAdapter = Depends(get_adapter),
    settings: Settings = Depends(get_settings),
):
    """
    PhonePe posts here twice per payment: the S2S callback ({"response": base64})
    and, with redirectMode=POST, the payer's browser form. Always acknowledged.
    """
    body = await _callback_body(request)
    details = adapter.read_callback(transaction_id, body, x_verify)

    ack = CallbackAck(
        transactionId=transaction_id,
        signatureValid=details.signatureValid,
        code=details.code,
        state=details.state,
        result=details.result,
    )
    if settings.CALLBACK_VERIFY_STATUS:
        ack.verification = await _cross_check(adapter, transaction_id)
    return ack


@router.get("/callback/{transaction_id}", response_class=PlainTextResponse)
async def callback_get(transaction_id: str, request: Request):
    logger.info("GET callback for %s, query fields=%s", transaction_id, sorted(request.query_params.keys()))
    return PlainTextResponse(f"Payment callback received for {transaction_id} at {now_iso()}")
