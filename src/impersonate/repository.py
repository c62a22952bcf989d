"""User resolution for impersonation.

ImpersonateRepository turns "an identifier or an already-resolved user" into a
user, and reads the users referenced by stored impersonation state.

Two providers ship with the package:
- PostgresUserProvider: looks users up with a psycopg cursor
- MappingUserProvider: in-memory lookup, for tests and fixtures
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

import psycopg
from psycopg.rows import dict_row, kwargs_row

from .base import (
    Identifier,
    ImpersonateError,
    NotFoundError,
    is_identifier,
)
from .contracts import Storage, UserProvider

# Known row factories that return dict-like objects (iteration yields keys, not values)
_DICT_LIKE_FACTORIES = frozenset({dict_row, kwargs_row})


class PostgresUserProvider:
    """Find users by primary key in a PostgreSQL table.

    Example:
        provider = PostgresUserProvider(conn.cursor(), table="users")
        user = provider.find_by_id("5b0c...")
        if user:
            print(user["email"])

    Rows are returned as dicts built from column names and tuple values, so the
    cursor must use the default (tuple) row factory.
    """

    def __init__(
        self,
        cursor: psycopg.Cursor[tuple[Any, ...]],
        table: str = "users",
        id_column: str = "id",
        schema: str | None = None,
    ) -> None:
        for name in (table, id_column, schema):
            if name is not None and not name.isidentifier():
                raise ValueError(f"Invalid SQL identifier: {name}")

        if (
            hasattr(cursor, "row_factory")
            and cursor.row_factory in _DICT_LIKE_FACTORIES
        ):
            raise ValueError(
                "PostgresUserProvider requires tuple row factory (the default). "
                "Remove row_factory=dict_row or kwargs_row from your cursor/connection."
            )

        self.cursor = cursor
        self.table = f"{schema}.{table}" if schema else table
        self.id_column = id_column

    def _handle_error(self, e: psycopg.Error) -> None:
        """Convert psycopg errors to ImpersonateError, preserving SQLSTATE."""
        raise ImpersonateError(str(e), getattr(e, "sqlstate", None)) from e

    def find_by_id(self, identifier: Identifier) -> Optional[dict[str, Any]]:
        """Return the user row as a dict, or None."""
        sql = f"SELECT * FROM {self.table} WHERE {self.id_column} = %s"
        try:
            self.cursor.execute(sql, (identifier,))
            row = self.cursor.fetchone()
            if row is None:
                return None
            columns = [desc[0] for desc in self.cursor.description]
            return dict(zip(columns, row))
        except psycopg.Error as e:
            self._handle_error(e)


class MappingUserProvider:
    """Look users up in a plain mapping of identifier -> user."""

    def __init__(self, users: Mapping[Identifier, Any] | None = None) -> None:
        self.users = dict(users or {})

    def add(self, identifier: Identifier, user: Any) -> Any:
        self.users[identifier] = user
        return user

    def find_by_id(self, identifier: Identifier) -> Optional[Any]:
        """Look up by key; "2" also matches 2 and vice versa (form posts send strings)."""
        user = self.users.get(identifier)
        if user is not None:
            return user
        if isinstance(identifier, str) and identifier.lstrip("-").isdigit():
            return self.users.get(int(identifier))
        if isinstance(identifier, int) and not isinstance(identifier, bool):
            return self.users.get(str(identifier))
        return None


class ImpersonateRepository:
    """Resolves user references for the manager."""

    def __init__(self, provider: UserProvider, storage: Storage) -> None:
        self.provider = provider
        self.storage = storage

    def find_user(self, identifier: Identifier) -> Any:
        """Look a user up by identifier.

        Raises:
            NotFoundError: If no user has this identifier.
        """
        user = self.provider.find_by_id(identifier)
        if user is None:
            raise NotFoundError(f"User not found: {identifier}")
        return user

    def resolve(self, ref: Any) -> Any:
        """Return ``ref`` unchanged if it is a user, otherwise look it up."""
        if is_identifier(ref):
            return self.find_user(ref)
        return ref

    def get_impersonator_in_storage(self) -> Any:
        return self.find_user(self.storage.get_impersonator_identifier())

    def get_impersonated_in_storage(self) -> Any:
        return self.find_user(self.storage.get_impersonated_identifier())
