"""Repository adapters - Database implementations."""

from .memory import InMemoryAccountRepository
from .postgres import PostgresAccountRepository, create_pool, run_migrations

__all__ = ["InMemoryAccountRepository", "PostgresAccountRepository", "create_pool", "run_migrations"]
