"""
PostgreSQL account store adapter - Implements AccountStore protocol.

This module provides the PostgreSQL implementation of the domain's
store port using psycopg3 with raw SQL.

Concurrency Design:
------------------
1. **Unique constraints**: accounts_email_key and accounts_referral_code_key
   reject the second writer. insert() maps the violated constraint to an
   InsertResult instead of checking first (no check-then-act race).

2. **Referral credit**: a single ``coins = coins + %s`` UPDATE keyed by
   referral code. Postgres serializes the row update, so N concurrent
   credits always add up to N bonuses.

3. **OTP consumption**: SELECT FOR UPDATE locks the row while the code is
   compared (secrets.compare_digest) and cleared, so one OTP verifies
   one account exactly once.

4. **Password activation**: conditional ``UPDATE ... WHERE is_verified``;
   the state check and the write are the same statement.

Driver errors are logged and re-raised as the domain's StoreError.
"""

import logging
import secrets
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import asdict
from pathlib import Path
from typing import Any

import psycopg
from psycopg import sql
from psycopg.errors import UniqueViolation
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from referly.domain.exceptions import StoreError
from referly.domain.ports import Account, Address, InsertResult, UpdateResult

logger = logging.getLogger(__name__)

EMAIL_CONSTRAINT = "accounts_email_key"
PROFILE_COLUMNS = frozenset({"first_name", "last_name", "email", "phone_number"})

_ACCOUNT_COLUMNS = """
    id, first_name, last_name, email, phone_number, password_hash, otp,
    is_verified, referral_code, referred_by, coins, address, created_at
"""


@contextmanager
def _store_errors() -> Iterator[None]:
    """Translate psycopg failures into StoreError."""
    try:
        yield
    except psycopg.Error as e:
        logger.exception("Account store operation failed")
        raise StoreError(str(e)) from e


def _parse_id(account_id: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(account_id)
    except (TypeError, ValueError):
        return None


def _row_to_account(row: dict[str, Any]) -> Account:
    address = row["address"]
    return Account(
        id=str(row["id"]),
        first_name=row["first_name"],
        last_name=row["last_name"],
        email=row["email"],
        phone_number=row["phone_number"],
        password_hash=row["password_hash"],
        otp=row["otp"],
        is_verified=row["is_verified"],
        referral_code=row["referral_code"],
        referred_by=row["referred_by"],
        coins=row["coins"],
        address=Address(**address) if address is not None else None,
        created_at=row["created_at"],
    )


class PostgresAccountStore:
    """
    Implements AccountStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize store with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def insert(self, account: Account) -> InsertResult:
        """
        Insert a new pending account.

        Relies on the UNIQUE constraints rather than a prior lookup. If the
        referral code collides, the email is checked as well so a duplicate
        registration is never reported as a retryable code collision.
        """
        insert_sql = """
            INSERT INTO accounts (
                id, first_name, last_name, email, phone_number, otp,
                is_verified, referral_code, referred_by, coins, created_at
            )
            VALUES (%s, %s, %s, %s, %s, %s, FALSE, %s, %s, %s, NOW())
        """
        params = (
            _parse_id(account.id),
            account.first_name,
            account.last_name,
            account.email,
            account.phone_number,
            account.otp,
            account.referral_code,
            account.referred_by,
            account.coins,
        )

        with _store_errors():
            try:
                with self._pool.connection() as conn:
                    conn.execute(insert_sql, params)
                    conn.commit()
            except UniqueViolation as e:
                if e.diag.constraint_name == EMAIL_CONSTRAINT:
                    return InsertResult.EMAIL_TAKEN
                if self.get_by_email(account.email) is not None:
                    return InsertResult.EMAIL_TAKEN
                return InsertResult.REFERRAL_CODE_TAKEN
            return InsertResult.CREATED

    def get_by_id(self, account_id: str) -> Account | None:
        parsed = _parse_id(account_id)
        if parsed is None:
            return None
        return self._fetch_one(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE id = %s", parsed)

    def get_by_email(self, email: str) -> Account | None:
        return self._fetch_one(f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE email = %s", email)

    def get_by_referral_code(self, referral_code: str) -> Account | None:
        return self._fetch_one(
            f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE referral_code = %s", referral_code
        )

    def credit_coins(self, referral_code: str, amount: int) -> bool:
        """Atomic in-place increment; never a read-modify-write."""
        credit_sql = """
            UPDATE accounts
            SET coins = coins + %s
            WHERE referral_code = %s
        """
        with _store_errors(), self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(credit_sql, (amount, referral_code))
            conn.commit()
            return cursor.rowcount == 1

    def consume_otp(self, email: str, otp: str) -> str | None:
        """
        Verify and clear a pending OTP under a row lock.

        The constant-time comparison always runs, against a placeholder
        when the email is unknown or the OTP was already consumed.
        """
        select_sql = """
            SELECT id, otp
            FROM accounts
            WHERE email = %s
            FOR UPDATE
        """
        verify_sql = """
            UPDATE accounts
            SET is_verified = TRUE, otp = NULL
            WHERE id = %s AND otp IS NOT NULL
        """

        with _store_errors(), self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(select_sql, (email,))
            row = cursor.fetchone()

            stored_otp = row[1] if row is not None and row[1] is not None else "000000"
            otp_valid = secrets.compare_digest(stored_otp.encode(), otp.encode())

            if row is None or row[1] is None or not otp_valid:
                conn.commit()
                return None

            cursor.execute(verify_sql, (row[0],))
            conn.commit()
            return str(row[0])

    def set_password_hash(self, account_id: str, password_hash: str) -> UpdateResult:
        parsed = _parse_id(account_id)
        if parsed is None:
            return UpdateResult.NOT_FOUND

        update_sql = """
            UPDATE accounts
            SET password_hash = %s
            WHERE id = %s AND is_verified
        """

        with _store_errors(), self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(update_sql, (password_hash, parsed))
            if cursor.rowcount == 1:
                conn.commit()
                return UpdateResult.UPDATED
            cursor.execute("SELECT 1 FROM accounts WHERE id = %s", (parsed,))
            exists = cursor.fetchone() is not None
            conn.commit()
            return UpdateResult.NOT_VERIFIED if exists else UpdateResult.NOT_FOUND

    def update_profile(self, account_id: str, changes: dict[str, str]) -> UpdateResult:
        """
        Partial update of profile columns.

        Column names are restricted to PROFILE_COLUMNS; referred_by and the
        lifecycle columns cannot be touched through this path.
        """
        parsed = _parse_id(account_id)
        if parsed is None:
            return UpdateResult.NOT_FOUND
        unknown = set(changes) - PROFILE_COLUMNS
        if unknown:
            raise ValueError(f"Not a profile column: {', '.join(sorted(unknown))}")

        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(column)) for column in changes
        )
        update_sql = sql.SQL("UPDATE accounts SET {} WHERE id = %s").format(assignments)

        with _store_errors():
            try:
                with self._pool.connection() as conn, conn.cursor() as cursor:
                    cursor.execute(update_sql, (*changes.values(), parsed))
                    conn.commit()
                    updated = cursor.rowcount == 1
            except UniqueViolation:
                return UpdateResult.EMAIL_TAKEN
        return UpdateResult.UPDATED if updated else UpdateResult.NOT_FOUND

    def set_address(self, account_id: str, address: Address) -> UpdateResult:
        parsed = _parse_id(account_id)
        if parsed is None:
            return UpdateResult.NOT_FOUND

        with _store_errors(), self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                "UPDATE accounts SET address = %s WHERE id = %s",
                (Jsonb(asdict(address)), parsed),
            )
            conn.commit()
            return UpdateResult.UPDATED if cursor.rowcount == 1 else UpdateResult.NOT_FOUND

    def ping(self) -> None:
        with _store_errors(), self._pool.connection() as conn:
            conn.execute("SELECT 1")

    def _fetch_one(self, query: str, param: Any) -> Account | None:
        with _store_errors(), self._pool.connection() as conn:
            with conn.cursor(row_factory=dict_row) as cursor:
                cursor.execute(query, (param,))
                row = cursor.fetchone()
        return _row_to_account(row) if row is not None else None


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: referly/adapters/store/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning("Migrations directory not found: %s", migrations_dir)
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info("Running %d migration(s)", len(sql_files))

    for sql_file in sql_files:
        logger.info("Executing migration: %s", sql_file.name)
        try:
            with pool.connection() as conn:
                conn.execute(sql_file.read_text())
            logger.info("Migration complete: %s", sql_file.name)
        except psycopg.Error as e:
            logger.error("Migration failed: %s - %s", sql_file.name, e)
            raise StoreError(f"Database migration failed: {sql_file.name}") from e
