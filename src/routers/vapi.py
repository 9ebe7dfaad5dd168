"""
VAPI Webhook Router - Handle VAPI voice call events.

VAPI posts call lifecycle events (status-update, end-of-call-report,
call.started / call.ended / call.failed) to this endpoint with the shared
secret in the X-Vapi-Secret header.

Authentication failures return 401. Everything after authentication,
including malformed payloads, collaborators that cannot be built and
processing errors, is acknowledged with 200 so VAPI does not start
redelivering.
"""
import hmac
import json
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.exceptions import HTTPException

from src.config import VAPI_WEBHOOK_SECRET
from src.dependencies import get_call_webhook_service
from src.exceptions import AuthorizationError, VoiceRefException
from src.services import CallWebhookService

logger = logging.getLogger(__name__)


class AcknowledgingRoute(APIRoute):
    """
    Route that answers 200 for any failure other than an API error.

    Dependency resolution runs inside the route handler, so errors while
    building the webhook service (missing VAPI settings, no database pool)
    are caught here too. AuthorizationError and other API errors still
    reach the registered exception handlers.
    """

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def acknowledging_handler(request: Request) -> Response:
            try:
                return await handler(request)
            except (VoiceRefException, HTTPException):
                raise
            except Exception as e:
                logger.exception(f"VAPI webhook failed before processing: {e}")
                return JSONResponse({"received": True, "action": "error"})

        return acknowledging_handler


router = APIRouter(prefix="/vapi", tags=["VAPI Webhooks"], route_class=AcknowledgingRoute)


def get_vapi_webhook_secret() -> str:
    return VAPI_WEBHOOK_SECRET


async def verify_vapi_secret(
    x_vapi_secret: Optional[str] = Header(None, alias="X-Vapi-Secret"),
    secret: str = Depends(get_vapi_webhook_secret),
) -> None:
    """
    Verify VAPI webhook request using X-Vapi-Secret header.

    Fails closed: without a configured secret every request is rejected.
    """
    if not secret:
        logger.error("VAPI_WEBHOOK_SECRET not set, rejecting webhook")
        raise AuthorizationError("Invalid signature")

    if not x_vapi_secret:
        logger.warning("No X-Vapi-Secret header provided")
        raise AuthorizationError("Invalid signature")

    if not hmac.compare_digest(x_vapi_secret, secret):
        logger.warning("X-Vapi-Secret mismatch")
        raise AuthorizationError("Invalid signature")


@router.post("/events")
async def vapi_webhook(
    request: Request,
    _: None = Depends(verify_vapi_secret),
    service: CallWebhookService = Depends(get_call_webhook_service),
):
    """Handle VAPI webhook events. Always answers 200 once authenticated."""
    body = await request.body()
    try:
        payload_dict = json.loads(body)
    except ValueError as e:
        logger.error(f"Failed to parse VAPI webhook payload: {e}")
        return {"received": True, "action": "invalid_payload"}

    if not isinstance(payload_dict, dict):
        logger.error("VAPI webhook payload is not a JSON object")
        return {"received": True, "action": "invalid_payload"}

    try:
        result = await service.handle_event(payload_dict)
    except Exception as e:
        logger.exception(f"Error processing VAPI webhook: {e}")
        return {"received": True, "action": "error"}

    logger.info(f"VAPI webhook processed: {result}")
    return {"received": True, **result}
