"""
Scheduled call repository - handles scheduled_calls database operations.

Every status transition is a conditional UPDATE ... RETURNING, so concurrent
cron scans and duplicate webhook deliveries can never move a call backwards
or out of a terminal state. A None result means "someone else got there first".
"""
import asyncpg
import json
import uuid
from datetime import datetime
from typing import Optional

ACTIVE_CALL_CONSTRAINT = "uq_scheduled_calls_active_contact"


class ScheduledCallRepository:
    """Repository for scheduled call database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(
        self,
        reference_check_id: uuid.UUID,
        reference_contact_id: uuid.UUID,
        phone_number: str,
        reference_name: str,
        scheduled_time: datetime,
        vapi_assistant_id: str,
        custom_questions: Optional[list[str]] = None,
    ) -> Optional[asyncpg.Record]:
        """
        Create a scheduled call in 'scheduled' status.

        In the same transaction the reference contact moves to 'scheduled'
        and a pending reference check moves to 'in_progress'.

        Returns:
            The new row, or None if the contact already has a scheduled or
            in-progress call (enforced by uq_scheduled_calls_active_contact)
        """
        async with self.pool.acquire() as conn:
            try:
                async with conn.transaction():
                    row = await conn.fetchrow(
                        """
                        INSERT INTO refcheck.scheduled_calls
                        (reference_check_id, reference_contact_id, phone_number, reference_name,
                         scheduled_time, vapi_assistant_id, custom_questions, status)
                        VALUES ($1, $2, $3, $4, $5, $6, $7, 'scheduled')
                        RETURNING *
                        """,
                        reference_check_id,
                        reference_contact_id,
                        phone_number,
                        reference_name,
                        scheduled_time,
                        vapi_assistant_id,
                        json.dumps(custom_questions or []),
                    )
                    await conn.execute(
                        """
                        UPDATE refcheck.reference_contacts
                        SET status = 'scheduled'
                        WHERE id = $1 AND status NOT IN ('completed', 'failed')
                        """,
                        reference_contact_id
                    )
                    await conn.execute(
                        """
                        UPDATE refcheck.reference_checks
                        SET status = 'in_progress', updated_at = NOW()
                        WHERE id = $1 AND status = 'pending'
                        """,
                        reference_check_id
                    )
            except asyncpg.UniqueViolationError as e:
                if e.constraint_name != ACTIVE_CALL_CONSTRAINT:
                    raise
                return None
        return row

    async def get_by_id(self, call_id: uuid.UUID) -> Optional[asyncpg.Record]:
        """Get a scheduled call by ID."""
        return await self.pool.fetchrow(
            "SELECT * FROM refcheck.scheduled_calls WHERE id = $1",
            call_id
        )

    async def get_by_vapi_call_id(self, vapi_call_id: str) -> Optional[asyncpg.Record]:
        """Get a scheduled call by the live VAPI call ID."""
        return await self.pool.fetchrow(
            "SELECT * FROM refcheck.scheduled_calls WHERE vapi_call_id = $1",
            vapi_call_id
        )

    async def get_undispatched_by_assistant_id(self, vapi_assistant_id: str) -> Optional[asyncpg.Record]:
        """
        Get a call whose VAPI call ID has not been stored yet, by assistant ID.

        Each scheduled call gets its own assistant, so this resolves webhooks
        that arrive before the dispatcher recorded the call ID.
        """
        return await self.pool.fetchrow(
            """
            SELECT * FROM refcheck.scheduled_calls
            WHERE vapi_assistant_id = $1 AND vapi_call_id IS NULL
            """,
            vapi_assistant_id
        )

    async def get_active_for_contact(self, contact_id: uuid.UUID) -> Optional[asyncpg.Record]:
        """Get the non-terminal call of a reference contact, if any."""
        return await self.pool.fetchrow(
            """
            SELECT * FROM refcheck.scheduled_calls
            WHERE reference_contact_id = $1 AND status IN ('scheduled', 'in_progress')
            ORDER BY created_at DESC
            LIMIT 1
            """,
            contact_id
        )

    async def list_for_check(self, check_id: uuid.UUID) -> list[asyncpg.Record]:
        """List all calls of a reference check."""
        return await self.pool.fetch(
            """
            SELECT * FROM refcheck.scheduled_calls
            WHERE reference_check_id = $1
            ORDER BY scheduled_time
            """,
            check_id
        )

    async def list_due(self, due_before: datetime, limit: int = 100) -> list[asyncpg.Record]:
        """List calls still in 'scheduled' status that are due before the given time."""
        return await self.pool.fetch(
            """
            SELECT * FROM refcheck.scheduled_calls
            WHERE status = 'scheduled' AND scheduled_time <= $1
            ORDER BY scheduled_time
            LIMIT $2
            """,
            due_before,
            limit
        )

    async def claim_for_dispatch(self, call_id: uuid.UUID) -> Optional[asyncpg.Record]:
        """Move a call from 'scheduled' to 'in_progress'. Returns None if already claimed."""
        return await self.pool.fetchrow(
            """
            UPDATE refcheck.scheduled_calls
            SET status = 'in_progress', dispatched_at = NOW(), updated_at = NOW()
            WHERE id = $1 AND status = 'scheduled'
            RETURNING *
            """,
            call_id
        )

    async def set_vapi_call_id(self, call_id: uuid.UUID, vapi_call_id: str) -> None:
        """Store the live VAPI call ID after a successful dispatch."""
        await self.pool.execute(
            """
            UPDATE refcheck.scheduled_calls
            SET vapi_call_id = COALESCE(vapi_call_id, $2), updated_at = NOW()
            WHERE id = $1
            """,
            call_id,
            vapi_call_id
        )

    async def mark_dispatch_failed(self, call_id: uuid.UUID, error_message: str) -> Optional[asyncpg.Record]:
        """Mark a claimed call as failed because VAPI refused to place it."""
        return await self.pool.fetchrow(
            """
            UPDATE refcheck.scheduled_calls
            SET status = 'failed', error_message = $2, ended_at = NOW(), updated_at = NOW()
            WHERE id = $1 AND status = 'in_progress'
            RETURNING *
            """,
            call_id,
            error_message
        )

    async def mark_started(self, call_id: uuid.UUID, vapi_call_id: str) -> Optional[asyncpg.Record]:
        """Record that the call was picked up. No-op for terminal calls."""
        return await self.pool.fetchrow(
            """
            UPDATE refcheck.scheduled_calls
            SET status = 'in_progress',
                vapi_call_id = COALESCE(vapi_call_id, $2),
                started_at = COALESCE(started_at, NOW()),
                updated_at = NOW()
            WHERE id = $1 AND status IN ('scheduled', 'in_progress')
            RETURNING *
            """,
            call_id,
            vapi_call_id
        )

    async def finalize(
        self,
        call_id: uuid.UUID,
        status: str,
        vapi_call_id: Optional[str] = None,
        transcript: Optional[str] = None,
        duration_seconds: Optional[int] = None,
        recording_url: Optional[str] = None,
        ended_reason: Optional[str] = None,
        error_message: Optional[str] = None,
    ) -> Optional[asyncpg.Record]:
        """
        Move a call into a terminal status with its results.

        Returns:
            The updated row, or None if the call was already terminal
        """
        return await self.pool.fetchrow(
            """
            UPDATE refcheck.scheduled_calls
            SET status = $2,
                vapi_call_id = COALESCE(vapi_call_id, $3),
                transcript = $4,
                duration_seconds = $5,
                recording_url = $6,
                ended_reason = $7,
                error_message = COALESCE($8, error_message),
                ended_at = NOW(),
                updated_at = NOW()
            WHERE id = $1 AND status NOT IN ('completed', 'failed', 'no_answer')
            RETURNING *
            """,
            call_id,
            status,
            vapi_call_id,
            transcript,
            duration_seconds,
            recording_url,
            ended_reason,
            error_message,
        )
