"""
Reference check repository - handles reference_checks database operations.
"""
import asyncpg
import uuid
from typing import Optional, Tuple


class ReferenceCheckRepository:
    """Repository for reference check database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(
        self,
        candidate_name: str,
        candidate_email: str,
        position: str,
        company: str,
        job_description: Optional[str] = None,
        hiring_manager_email: Optional[str] = None,
    ) -> asyncpg.Record:
        """Create a new reference check in 'pending' status."""
        return await self.pool.fetchrow(
            """
            INSERT INTO refcheck.reference_checks
            (candidate_name, candidate_email, position, company, job_description, hiring_manager_email, status)
            VALUES ($1, $2, $3, $4, $5, $6, 'pending')
            RETURNING *
            """,
            candidate_name,
            candidate_email,
            position,
            company,
            job_description,
            hiring_manager_email,
        )

    async def get_by_id(self, check_id: uuid.UUID) -> Optional[asyncpg.Record]:
        """Get a reference check by ID."""
        return await self.pool.fetchrow(
            "SELECT * FROM refcheck.reference_checks WHERE id = $1",
            check_id
        )

    async def list_checks(
        self,
        status: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> Tuple[list[asyncpg.Record], int]:
        """
        List reference checks, newest first.

        Returns:
            Tuple of (rows, total count)
        """
        conditions = []
        params = []
        param_idx = 1

        if status:
            conditions.append(f"status = ${param_idx}")
            params.append(status)
            param_idx += 1

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""

        total = await self.pool.fetchval(
            f"SELECT COUNT(*) FROM refcheck.reference_checks {where_clause}",
            *params
        )

        rows = await self.pool.fetch(
            f"""
            SELECT * FROM refcheck.reference_checks
            {where_clause}
            ORDER BY created_at DESC
            LIMIT ${param_idx} OFFSET ${param_idx + 1}
            """,
            *params, limit, offset
        )
        return rows, total

    async def complete_if_all_references_done(self, check_id: uuid.UUID) -> bool:
        """
        Mark the check completed when every reference contact is terminal.

        Single conditional statement, so concurrent webhook deliveries complete
        the check at most once. Returns True only for the caller that completed it.
        """
        row = await self.pool.fetchrow(
            """
            UPDATE refcheck.reference_checks rc
            SET status = 'completed', completed_at = NOW(), updated_at = NOW()
            WHERE rc.id = $1
              AND rc.status != 'completed'
              AND EXISTS (
                  SELECT 1 FROM refcheck.reference_contacts c WHERE c.reference_check_id = rc.id
              )
              AND NOT EXISTS (
                  SELECT 1 FROM refcheck.reference_contacts c
                  WHERE c.reference_check_id = rc.id
                    AND c.status NOT IN ('completed', 'failed')
              )
            RETURNING rc.id
            """,
            check_id
        )
        return row is not None
