"""
Cron trigger for dispatching due reference calls.

The scheduler (e.g. a platform cron job) calls this endpoint every few
minutes with "Authorization: Bearer <CRON_SECRET>".
"""
import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from src.config import CRON_SECRET
from src.dependencies import get_call_dispatch_service
from src.exceptions import AuthorizationError
from src.models import DispatchResponse
from src.services import CallDispatchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["Cron"])


def get_cron_secret() -> str:
    return CRON_SECRET


async def verify_cron_secret(
    authorization: Optional[str] = Header(None),
    secret: str = Depends(get_cron_secret),
) -> None:
    """Reject requests without the configured bearer secret. Fails closed when unset."""
    if not secret:
        logger.error("CRON_SECRET not set, rejecting cron request")
        raise AuthorizationError()
    if not authorization or not hmac.compare_digest(authorization, f"Bearer {secret}"):
        logger.warning("Cron request with invalid authorization")
        raise AuthorizationError()


@router.api_route("/dispatch-calls", methods=["GET", "POST"], response_model=DispatchResponse)
async def dispatch_calls(
    _: None = Depends(verify_cron_secret),
    service: CallDispatchService = Depends(get_call_dispatch_service),
):
    """Place every scheduled call that is due within the lookahead window."""
    result = await service.dispatch_due_calls()
    logger.info(
        f"Cron dispatch: processed={result.processed}, successful={result.successful}, "
        f"failed={result.failed}, skipped={result.skipped}"
    )
    return result
