"""
Call dispatch service - places scheduled calls when they come due.

Triggered by the cron endpoint. Every due row is claimed with a conditional
scheduled -> in_progress update before VAPI is called, so overlapping scans
place each call at most once. One failing call never stops the others.
"""
import asyncio
import logging
from datetime import timedelta

import asyncpg

from src.config import DISPATCH_LOOKAHEAD_MINUTES
from src.models import DispatchItemResult, DispatchResponse, ReferenceContactStatus
from src.repositories import (
    ReferenceCheckRepository,
    ReferenceContactRepository,
    ScheduledCallRepository,
)
from src.services.vapi_service import VapiService
from src.utils import utc_now

logger = logging.getLogger(__name__)


class CallDispatchService:
    """Service for dispatching due calls to VAPI."""

    def __init__(
        self,
        call_repo: ScheduledCallRepository,
        contact_repo: ReferenceContactRepository,
        check_repo: ReferenceCheckRepository,
        vapi_service: VapiService,
        lookahead_minutes: int = DISPATCH_LOOKAHEAD_MINUTES,
    ):
        self.call_repo = call_repo
        self.contact_repo = contact_repo
        self.check_repo = check_repo
        self.vapi_service = vapi_service
        self.lookahead = timedelta(minutes=lookahead_minutes)

    async def _dispatch_one(self, row: asyncpg.Record) -> DispatchItemResult:
        call_id = row["id"]

        claimed = await self.call_repo.claim_for_dispatch(call_id)
        if not claimed:
            logger.info(f"Call {call_id} already claimed by another scan, skipping")
            return DispatchItemResult(scheduled_call_id=str(call_id), success=False, skipped=True)

        try:
            vapi_call_id = await self.vapi_service.place_call(
                assistant_id=claimed["vapi_assistant_id"],
                to_number=claimed["phone_number"],
                customer_name=claimed["reference_name"],
            )
        except Exception as e:
            logger.error(f"Dispatch of call {call_id} failed: {e}")
            if await self.call_repo.mark_dispatch_failed(call_id, str(e)):
                await self.contact_repo.update_status(claimed["reference_contact_id"], ReferenceContactStatus.FAILED.value)
                await self.check_repo.complete_if_all_references_done(claimed["reference_check_id"])
            return DispatchItemResult(scheduled_call_id=str(call_id), success=False, error="Call could not be placed")

        await self.call_repo.set_vapi_call_id(call_id, vapi_call_id)
        logger.info(f"Dispatched call {call_id} -> VAPI call {vapi_call_id}")
        return DispatchItemResult(scheduled_call_id=str(call_id), success=True, vapi_call_id=vapi_call_id)

    async def dispatch_due_calls(self) -> DispatchResponse:
        """
        Place every scheduled call due within the lookahead window.

        Overdue calls (missed by an earlier scan) are included.
        """
        due_before = utc_now() + self.lookahead
        rows = await self.call_repo.list_due(due_before)

        if not rows:
            return DispatchResponse(
                success=True,
                message="No calls to process",
                processed=0,
                successful=0,
                failed=0,
                skipped=0,
            )

        logger.info(f"Dispatching {len(rows)} due call(s)")
        outcomes = await asyncio.gather(
            *(self._dispatch_one(row) for row in rows),
            return_exceptions=True,
        )

        results = []
        for row, outcome in zip(rows, outcomes):
            if isinstance(outcome, BaseException):
                # Repository errors while claiming or recording the outcome
                logger.error(f"Unexpected error dispatching call {row['id']}: {outcome}")
                outcome = DispatchItemResult(scheduled_call_id=str(row["id"]), success=False, error="Dispatch failed")
            results.append(outcome)

        successful = sum(1 for r in results if r.success)
        skipped = sum(1 for r in results if r.skipped)
        failed = len(results) - successful - skipped

        return DispatchResponse(
            success=True,
            message=f"Processed {len(results)} call(s)",
            processed=len(results),
            successful=successful,
            failed=failed,
            skipped=skipped,
            results=results,
        )
