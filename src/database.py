"""
Database connection management and migrations.
"""
import asyncpg
import logging
from typing import Optional
from src.config import DATABASE_URL

logger = logging.getLogger(__name__)

# Global connection pool
_db_pool: Optional[asyncpg.Pool] = None


async def get_db_pool() -> asyncpg.Pool:
    """Get or create the database connection pool.

    Pool configuration optimized for Supabase Session Mode Pooler:
    - setup callback validates connections on acquire (like SQLAlchemy pool_pre_ping)
    - max_inactive_connection_lifetime matches Supabase pooler timeout (~5 min)
    - command_timeout bounds every query so no request blocks indefinitely
    """
    global _db_pool
    if _db_pool is None:
        # Convert SQLAlchemy URL to asyncpg format
        raw_url = DATABASE_URL.replace("postgresql+asyncpg://", "postgresql://")

        async def setup_connection(conn):
            """Validate connection on acquire - equivalent to pool_pre_ping."""
            await conn.execute("SELECT 1")

        _db_pool = await asyncpg.create_pool(
            raw_url,
            min_size=2,
            max_size=10,
            command_timeout=30,
            max_inactive_connection_lifetime=300.0,
            setup=setup_connection,
        )
        logger.info("Database connection pool created (min=2, max=10, idle_lifetime=300s)")
    return _db_pool


async def close_db_pool():
    """Close the database connection pool."""
    global _db_pool
    if _db_pool is not None:
        await _db_pool.close()
        _db_pool = None
        logger.info("Database connection pool closed")


async def run_schema_migrations(pool: asyncpg.Pool):
    """Create the refcheck schema and its tables if they don't exist."""
    try:
        await pool.execute("CREATE SCHEMA IF NOT EXISTS refcheck;")

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS refcheck.reference_checks (
                id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                candidate_name       VARCHAR(200) NOT NULL,
                candidate_email      VARCHAR(320) NOT NULL,
                position             VARCHAR(200) NOT NULL,
                job_description      TEXT,
                company              VARCHAR(200) NOT NULL,
                hiring_manager_email VARCHAR(320),
                status               VARCHAR(20) NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'in_progress', 'completed')),
                created_at           TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at           TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                completed_at         TIMESTAMPTZ
            );
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS refcheck.reference_contacts (
                id                 UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                reference_check_id UUID NOT NULL REFERENCES refcheck.reference_checks(id) ON DELETE CASCADE,
                name               VARCHAR(200) NOT NULL,
                email              VARCHAR(320) NOT NULL,
                phone              VARCHAR(32),
                relationship       VARCHAR(200),
                company            VARCHAR(200),
                status             VARCHAR(20) NOT NULL DEFAULT 'pending'
                    CHECK (status IN ('pending', 'invitation_sent', 'scheduled', 'completed', 'failed')),
                created_at         TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                completed_at       TIMESTAMPTZ
            );
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS refcheck.questions (
                id                 UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                reference_check_id UUID NOT NULL REFERENCES refcheck.reference_checks(id) ON DELETE CASCADE,
                question_text      TEXT NOT NULL,
                category           VARCHAR(50) NOT NULL DEFAULT 'standard',
                order_num          INTEGER NOT NULL,
                source             VARCHAR(20) NOT NULL DEFAULT 'standard'
                    CHECK (source IN ('standard', 'ai_generated'))
            );
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS refcheck.scheduled_calls (
                id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                reference_check_id   UUID NOT NULL REFERENCES refcheck.reference_checks(id),
                reference_contact_id UUID NOT NULL REFERENCES refcheck.reference_contacts(id),
                phone_number         VARCHAR(32) NOT NULL,
                reference_name       VARCHAR(200) NOT NULL,
                scheduled_time       TIMESTAMPTZ NOT NULL,
                vapi_assistant_id    VARCHAR(100) NOT NULL,
                vapi_call_id         VARCHAR(100) UNIQUE,
                status               VARCHAR(20) NOT NULL DEFAULT 'scheduled'
                    CHECK (status IN ('scheduled', 'in_progress', 'completed', 'failed', 'no_answer')),
                custom_questions     JSONB NOT NULL DEFAULT '[]',
                transcript           TEXT,
                duration_seconds     INTEGER,
                recording_url        TEXT,
                ended_reason         VARCHAR(100),
                error_message        TEXT,
                dispatched_at        TIMESTAMPTZ,
                started_at           TIMESTAMPTZ,
                ended_at             TIMESTAMPTZ,
                created_at           TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                updated_at           TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS refcheck.call_transcripts (
                id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                scheduled_call_id    UUID NOT NULL UNIQUE REFERENCES refcheck.scheduled_calls(id),
                raw_transcript       TEXT NOT NULL,
                formatted_transcript TEXT NOT NULL,
                turns                JSONB NOT NULL DEFAULT '[]',
                created_at           TIMESTAMPTZ NOT NULL DEFAULT NOW()
            );
        """)

        await pool.execute("""
            CREATE TABLE IF NOT EXISTS refcheck.reference_responses (
                id                   UUID PRIMARY KEY DEFAULT gen_random_uuid(),
                reference_contact_id UUID NOT NULL REFERENCES refcheck.reference_contacts(id) ON DELETE CASCADE,
                question_id          UUID NOT NULL REFERENCES refcheck.questions(id) ON DELETE CASCADE,
                response_text        TEXT NOT NULL,
                created_at           TIMESTAMPTZ NOT NULL DEFAULT NOW(),
                UNIQUE (reference_contact_id, question_id)
            );
        """)

        await pool.execute("""
            CREATE INDEX IF NOT EXISTS idx_reference_contacts_check ON refcheck.reference_contacts(reference_check_id);
            CREATE INDEX IF NOT EXISTS idx_questions_check ON refcheck.questions(reference_check_id, order_num);
            CREATE INDEX IF NOT EXISTS idx_scheduled_calls_due ON refcheck.scheduled_calls(status, scheduled_time);
            CREATE INDEX IF NOT EXISTS idx_scheduled_calls_contact ON refcheck.scheduled_calls(reference_contact_id);
            CREATE UNIQUE INDEX IF NOT EXISTS uq_scheduled_calls_active_contact
                ON refcheck.scheduled_calls(reference_contact_id)
                WHERE status IN ('scheduled', 'in_progress');
            CREATE INDEX IF NOT EXISTS idx_reference_responses_contact ON refcheck.reference_responses(reference_contact_id);
        """)

        logger.info("Schema migrations completed")
    except Exception as e:
        logger.warning(f"Schema migration warning (may be ok if already done): {e}")
