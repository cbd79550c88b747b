"""Account store adapters - Database and in-memory implementations."""

from .memory import InMemoryAccountStore
from .postgres import PostgresAccountStore, run_migrations

__all__ = ["InMemoryAccountStore", "PostgresAccountStore", "run_migrations"]
