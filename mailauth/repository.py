"""Postgres-backed account persistence."""

from __future__ import annotations

import logging
from typing import Callable

import psycopg
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool, PoolTimeout

from .domain.account import Account
from .errors import StorageError
from .security.tokens import generate_token

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS accounts (
    email TEXT NOT NULL,
    token TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    CONSTRAINT accounts_email_key UNIQUE (email),
    CONSTRAINT accounts_token_key UNIQUE (token)
)
"""

MAX_TOKEN_ATTEMPTS = 3


class AccountRepository:
    """Account store whose find-or-create is atomic under concurrent callers.

    Uniqueness of ``email`` and ``token`` is enforced by the database. Creation
    inserts with ``ON CONFLICT DO NOTHING`` and re-reads the row by email in the
    same transaction, so concurrent registrations of one email converge on a
    single row instead of racing a check-then-insert.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        token_factory: Callable[[], str] = generate_token,
        max_token_attempts: int = MAX_TOKEN_ATTEMPTS,
    ) -> None:
        """Store the connection pool and the token source used for new accounts."""
        self._pool = pool
        self._token_factory = token_factory
        self._max_token_attempts = max_token_attempts

    def create_schema(self) -> None:
        """Create the ``accounts`` relation and its unique constraints if absent."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    cur.execute(SCHEMA_SQL)
                conn.commit()
        except (psycopg.Error, PoolTimeout) as exc:
            raise StorageError("failed to create account schema") from exc

    def find_by_token(self, token: str) -> Account | None:
        """Return the account whose token matches exactly, or ``None``."""
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        """
                        SELECT email, token, created_at
                        FROM accounts
                        WHERE token = %s
                        """,
                        (token,),
                    )
                    row = cur.fetchone()
        except (psycopg.Error, PoolTimeout) as exc:
            raise StorageError("account lookup failed") from exc
        if not row:
            return None
        return self._map_record(row)

    def find_or_create_by_email(self, email: str) -> Account:
        """Return the account for ``email``, creating it with a fresh token if needed."""
        try:
            with self._pool.connection() as conn:
                for attempt in range(1, self._max_token_attempts + 1):
                    token = self._token_factory()
                    with conn.transaction():
                        with conn.cursor(row_factory=tuple_row) as cur:
                            cur.execute(
                                """
                                INSERT INTO accounts (email, token)
                                VALUES (%s, %s)
                                ON CONFLICT DO NOTHING
                                RETURNING email, token, created_at
                                """,
                                (email, token),
                            )
                            row = cur.fetchone()
                            created = row is not None
                            if not created:
                                cur.execute(
                                    """
                                    SELECT email, token, created_at
                                    FROM accounts
                                    WHERE email = %s
                                    """,
                                    (email,),
                                )
                                row = cur.fetchone()
                    if row:
                        if created:
                            logger.info("account created for %s", email)
                        return self._map_record(row)
                    # the conflict was on the token column, not the email
                    logger.warning("token collision creating account (attempt %d)", attempt)
        except (psycopg.Error, PoolTimeout) as exc:
            raise StorageError("account find-or-create failed") from exc
        raise StorageError(f"no unique token after {self._max_token_attempts} attempts")

    def _map_record(self, row: tuple) -> Account:
        """Convert a raw database tuple into the domain ``Account`` dataclass."""
        return Account(email=row[0], token=row[1], created_at=row[2])
