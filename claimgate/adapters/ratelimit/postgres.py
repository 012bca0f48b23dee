"""
PostgreSQL rate-limit store - Implements RateLimitStore protocol.

This module provides the PostgreSQL implementation of the domain's
rate-limit port using psycopg3 with raw SQL, so several API workers
share one set of counters.

Atomicity:
---------
Each apply() runs in a single transaction that first takes a
transaction-scoped advisory lock on the key (pg_advisory_xact_lock).
Concurrent attempts from the same client therefore serialize on that
key only, and the read-modify-write cannot lose increments - including
the very first insert, where there is no row yet to lock with
SELECT ... FOR UPDATE.

Any psycopg error is reported as RateLimitStoreUnavailable; the domain
limiter decides whether to fail open or closed.
"""

import logging
from pathlib import Path

import psycopg
from psycopg_pool import ConnectionPool

from claimgate.domain.exceptions import RateLimitStoreUnavailable
from claimgate.domain.models import RateLimitDecision, RateLimitEntry
from claimgate.domain.ports import RateLimitTransition

logger = logging.getLogger(__name__)


class PostgresRateLimitStore:
    """
    Implements RateLimitStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def apply(self, key: str, now: float, transition: RateLimitTransition) -> RateLimitDecision:
        """
        Atomically apply ``transition`` to the counter for ``key``.

        Args:
            key: Client identifier
            now: Current epoch seconds
            transition: Pure fixed-window rule from the domain

        Returns:
            Decision produced by the rule

        Raises:
            RateLimitStoreUnavailable: Database unreachable or query failed
        """
        lock_sql = "SELECT pg_advisory_xact_lock(hashtext(%s))"

        select_sql = """
            SELECT count, expires_at
            FROM rate_limits
            WHERE client_key = %s
        """

        upsert_sql = """
            INSERT INTO rate_limits (client_key, count, expires_at)
            VALUES (%s, %s, %s)
            ON CONFLICT (client_key) DO UPDATE
            SET count = EXCLUDED.count,
                expires_at = EXCLUDED.expires_at
        """

        try:
            with self._pool.connection() as conn, conn.cursor() as cursor:
                cursor.execute(lock_sql, (key,))
                cursor.execute(select_sql, (key,))
                row = cursor.fetchone()

                current = RateLimitEntry(count=row[0], expires_at=row[1]) if row else None
                entry, decision = transition(current)

                # DENIED leaves the entry untouched - skip the write
                if entry != current:
                    cursor.execute(upsert_sql, (key, entry.count, entry.expires_at))
                conn.commit()
                return decision
        except psycopg.Error as e:
            raise RateLimitStoreUnavailable(str(e)) from e

    def get(self, key: str) -> RateLimitEntry | None:
        """Read the stored entry for ``key`` (expired or not)."""
        sql = "SELECT count, expires_at FROM rate_limits WHERE client_key = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (key,))
            row = cursor.fetchone()
        return RateLimitEntry(count=row[0], expires_at=row[1]) if row else None

    def purge_expired(self, now: float) -> int:
        """
        Delete entries whose window has passed.

        Expired rows are already reset lazily on the next attempt; this
        only keeps abandoned keys from piling up.

        Returns:
            Number of rows deleted
        """
        sql = "DELETE FROM rate_limits WHERE expires_at <= %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (now,))
            conn.commit()
            return cursor.rowcount


MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def run_migrations(pool: ConnectionPool, migrations_dir: Path = MIGRATIONS_DIR) -> list[str]:
    """
    Apply the rate-limit schema files in filename order.

    Every file is idempotent DDL, so this runs on each startup. Files are
    applied in one transaction: a failing file leaves the schema as it was.

    Returns:
        Names of the files applied

    Raises:
        RuntimeError: If a file could not be applied
    """
    sql_files = sorted(migrations_dir.glob("*.sql")) if migrations_dir.is_dir() else []
    if not sql_files:
        logger.warning("No schema files under %s, rate_limits table must already exist", migrations_dir)
        return []

    applied: list[str] = []
    with pool.connection() as conn:
        for sql_file in sql_files:
            try:
                conn.execute(sql_file.read_text())
            except psycopg.Error as e:
                logger.error("Schema file %s failed: %s", sql_file.name, e)
                raise RuntimeError(f"Rate-limit schema setup failed at {sql_file.name}") from e
            applied.append(sql_file.name)

    logger.info("Rate-limit schema ready (%s)", ", ".join(applied))
    return applied
