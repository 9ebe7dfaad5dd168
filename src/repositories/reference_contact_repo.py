"""
Reference contact repository - the people vouching for a candidate.
"""
import asyncpg
import uuid
from typing import Optional


class ReferenceContactRepository:
    """Repository for reference contact database operations."""

    def __init__(self, pool: asyncpg.Pool):
        self.pool = pool

    async def create(
        self,
        reference_check_id: uuid.UUID,
        name: str,
        email: str,
        phone: Optional[str] = None,
        relationship: Optional[str] = None,
        company: Optional[str] = None,
    ) -> asyncpg.Record:
        """Create a reference contact in 'pending' status."""
        return await self.pool.fetchrow(
            """
            INSERT INTO refcheck.reference_contacts
            (reference_check_id, name, email, phone, relationship, company, status)
            VALUES ($1, $2, $3, $4, $5, $6, 'pending')
            RETURNING *
            """,
            reference_check_id,
            name,
            email,
            phone,
            relationship,
            company,
        )

    async def get_by_id(self, contact_id: uuid.UUID) -> Optional[asyncpg.Record]:
        """Get a reference contact by ID."""
        return await self.pool.fetchrow(
            "SELECT * FROM refcheck.reference_contacts WHERE id = $1",
            contact_id
        )

    async def list_for_check(self, check_id: uuid.UUID) -> list[asyncpg.Record]:
        """List all reference contacts of a check in creation order."""
        return await self.pool.fetch(
            """
            SELECT * FROM refcheck.reference_contacts
            WHERE reference_check_id = $1
            ORDER BY created_at
            """,
            check_id
        )

    async def update_status(self, contact_id: uuid.UUID, status: str) -> bool:
        """
        Update a contact's status unless it is already terminal.

        Returns:
            True if the row was updated
        """
        row = await self.pool.fetchrow(
            """
            UPDATE refcheck.reference_contacts
            SET status = $2,
                completed_at = CASE WHEN $2 IN ('completed', 'failed') THEN NOW() ELSE completed_at END
            WHERE id = $1 AND status NOT IN ('completed', 'failed')
            RETURNING id
            """,
            contact_id,
            status
        )
        return row is not None
