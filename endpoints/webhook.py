import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from adapters.line import SIGNATURE_HEADER, LineAdapter
from core.errors import WebhookRejected
from dependencies.services import get_dispatch_service, get_line_adapter
from schemas.webhook import ErrorResponse, WebhookResponse
from services.dispatch_service import DispatchService

router = APIRouter()
logger = logging.getLogger(__name__)

@router.post("/webhook", response_model=WebhookResponse)
async def webhook(
    request: Request,
    adapter: LineAdapter = Depends(get_line_adapter),
    dispatch_service: DispatchService = Depends(get_dispatch_service),
):
    body = await request.body()
    try:
        adapter.verify_signature(request.headers.get(SIGNATURE_HEADER), body)
        payload = adapter.load_payload(body)
    except WebhookRejected as exc:
        # LINE retries any non-2xx delivery, and a bad signature never recovers
        logger.warning(
            "Webhook rejected",
            extra={"reason": str(exc), "body_len": len(body)},
        )
        return JSONResponse(status_code=200, content=ErrorResponse(error=str(exc)).model_dump())

    try:
        events = adapter.parse_events(payload)
        if not events:
            logger.info("Webhook verified successfully")
            return WebhookResponse()

        logger.info("Webhook received events", extra={"event_count": len(events)})
        await dispatch_service.dispatch_batch(events)
    except Exception:
        logger.exception("Webhook handling failed", extra={"body_len": len(body)})
        return Response(status_code=500)

    return WebhookResponse()
