"""Rate-limit store adapters - In-process and PostgreSQL counters."""

from .memory import InMemoryRateLimitStore
from .postgres import PostgresRateLimitStore, run_migrations

__all__ = ["InMemoryRateLimitStore", "PostgresRateLimitStore", "run_migrations"]
