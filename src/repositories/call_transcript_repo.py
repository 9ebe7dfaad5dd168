"""
Call transcript repository - immutable formatted transcripts of completed calls.
"""
import asyncpg
import json
import uuid
from typing import Optional


class CallTranscriptRepository:
    """Repository for call transcript database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(
        self,
        scheduled_call_id: uuid.UUID,
        raw_transcript: str,
        formatted_transcript: str,
        turns: list[dict],
    ) -> Optional[uuid.UUID]:
        """
        Store the transcript of a call once.

        Returns:
            The new transcript ID, or None if the call already has one
        """
        return await self.pool.fetchval(
            """
            INSERT INTO refcheck.call_transcripts (scheduled_call_id, raw_transcript, formatted_transcript, turns)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (scheduled_call_id) DO NOTHING
            RETURNING id
            """,
            scheduled_call_id,
            raw_transcript,
            formatted_transcript,
            json.dumps(turns),
        )

    async def get_by_call_id(self, scheduled_call_id: uuid.UUID) -> Optional[asyncpg.Record]:
        """Get the transcript of a scheduled call."""
        return await self.pool.fetchrow(
            "SELECT * FROM refcheck.call_transcripts WHERE scheduled_call_id = $1",
            scheduled_call_id
        )
