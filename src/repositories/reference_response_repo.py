"""
Reference response repository - written answers a reference submits instead of taking a call.
"""
import asyncpg
import uuid
from typing import Optional


class ReferenceResponseRepository:
    """Repository for reference response database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def submit(
        self,
        reference_contact_id: uuid.UUID,
        answers: list[tuple[uuid.UUID, str]],
    ) -> Optional[int]:
        """
        Store a reference's answers and mark the reference completed.

        The status update is the gate: it only succeeds for a contact that is
        not yet terminal, and the answers are written in the same transaction.

        Args:
            reference_contact_id: The answering reference
            answers: (question_id, response_text) pairs

        Returns:
            Number of answers stored, or None if the reference was already finished
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                claimed = await conn.fetchval(
                    """
                    UPDATE refcheck.reference_contacts
                    SET status = 'completed', completed_at = NOW()
                    WHERE id = $1 AND status NOT IN ('completed', 'failed')
                    RETURNING id
                    """,
                    reference_contact_id
                )
                if claimed is None:
                    return None

                await conn.executemany(
                    """
                    INSERT INTO refcheck.reference_responses (reference_contact_id, question_id, response_text)
                    VALUES ($1, $2, $3)
                    """,
                    [(reference_contact_id, question_id, text) for question_id, text in answers]
                )
        return len(answers)

    async def list_for_contact(self, reference_contact_id: uuid.UUID) -> list[asyncpg.Record]:
        """List a reference's answers in question order."""
        return await self.pool.fetch(
            """
            SELECT r.*, q.question_text, q.order_num
            FROM refcheck.reference_responses r
            JOIN refcheck.questions q ON q.id = r.question_id
            WHERE r.reference_contact_id = $1
            ORDER BY q.order_num
            """,
            reference_contact_id
        )
