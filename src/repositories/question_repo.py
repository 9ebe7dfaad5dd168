"""
Question repository - the ordered question set of a reference check.
"""
import asyncpg
import uuid


class QuestionRepository:
    """Repository for reference check question database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create_many(self, reference_check_id: uuid.UUID, questions: list[dict]) -> int:
        """
        Insert questions for a check.

        Args:
            reference_check_id: The check the questions belong to
            questions: Dicts with question_text, category, order_num, source

        Returns:
            Number of questions inserted
        """
        if not questions:
            return 0

        await self.pool.executemany(
            """
            INSERT INTO refcheck.questions (reference_check_id, question_text, category, order_num, source)
            VALUES ($1, $2, $3, $4, $5)
            """,
            [
                (reference_check_id, q["question_text"], q["category"], q["order_num"], q["source"])
                for q in questions
            ]
        )
        return len(questions)

    async def list_for_check(self, check_id: uuid.UUID) -> list[asyncpg.Record]:
        """List the questions of a check in asking order."""
        return await self.pool.fetch(
            """
            SELECT * FROM refcheck.questions
            WHERE reference_check_id = $1
            ORDER BY order_num
            """,
            check_id
        )
