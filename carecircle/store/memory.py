"""In-process store for tests and local runs without PostgreSQL.

Rows are completed against the ORM table definitions, so a row read back
from ``MemoryStore`` has the same keys and scalar defaults as one read from
``SqlAlchemyStore``. Foreign-key cascades mirror the ``ON DELETE`` rules of
the real schema.
"""

import copy
import uuid
from collections.abc import Callable, Iterable, Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import UniqueConstraint

from carecircle.core.exceptions import StoreError
from carecircle.store.base import CareStore, Row
from carecircle.store.sql import TABLES

_DEPENDENT_TABLES = (
    "caregiver_patients",
    "patient_notes",
    "tasks",
    "medications",
    "medication_logs",
    "mood_entries",
    "memories",
    "care_team_members",
    "appointments",
)

# table -> [(child table, child column, action)]
CASCADES: dict[str, list[tuple[str, str, str]]] = {
    "profiles": [
        ("patients", "id", "cascade"),
        ("caregiver_patients", "caregiver_id", "cascade"),
        ("patient_notes", "caregiver_id", "cascade"),
        ("audit_logs", "user_id", "set_null"),
    ],
    "patients": [(table, "patient_id", "cascade") for table in _DEPENDENT_TABLES],
    "medications": [("medication_logs", "medication_id", "cascade")],
}

# Python renditions of the schema's CHECK constraints
CHECKS: dict[str, list[tuple[str, Callable[[Row], bool]]]] = {
    "caregiver_patients": [
        ("ck_no_self_link", lambda row: row.get("caregiver_id") != row.get("patient_id")),
    ],
}

_TIMESTAMP_COLUMNS = ("created_at", "updated_at")


def _matches(row: Row, where: Mapping[str, Any] | None) -> bool:
    return all(row.get(name) == value for name, value in (where or {}).items())


def _unique_keys(table: str) -> list[tuple[str, tuple[str, ...]]]:
    """(constraint name, columns) of every uniqueness rule on ``table``."""
    sa_table = TABLES[table].__table__
    keys: dict[tuple[str, ...], str] = {
        tuple(sa_table.primary_key.columns.keys()): f"{table}_pkey",
    }
    for constraint in sa_table.constraints:
        if isinstance(constraint, UniqueConstraint):
            columns = tuple(constraint.columns.keys())
            keys[columns] = constraint.name or f"{table}_{'_'.join(columns)}_key"
    for index in sa_table.indexes:
        if index.unique:
            columns = tuple(column.key for column in index.columns)
            keys.setdefault(columns, index.name or f"{table}_{'_'.join(columns)}_key")
    for column in sa_table.columns:
        if column.unique:
            keys.setdefault((column.key,), f"{table}_{column.key}_key")
    return [(name, columns) for columns, name in keys.items()]


def _check_integrity(table: str, rows: list[Row], changed: list[Row]) -> None:
    """Raise ``StoreError`` if a changed row breaks a CHECK or UNIQUE rule.

    NULLs never collide, as in PostgreSQL.
    """
    for row in changed:
        for name, predicate in CHECKS.get(table, []):
            if not predicate(row):
                raise StoreError(
                    f'new row for relation "{table}" violates check constraint "{name}"'
                )
        for name, columns in _unique_keys(table):
            key = tuple(row.get(column) for column in columns)
            if None in key:
                continue
            if any(
                other is not row and tuple(other.get(c) for c in columns) == key
                for other in rows
            ):
                raise StoreError(
                    f'duplicate key value violates unique constraint "{name}"'
                )


class MemoryStore(CareStore):
    """``CareStore`` keeping rows in dicts.

    Args:
        tables: Optional seed data, ``{table: [row, ...]}``. Seed rows are
            completed the same way inserted rows are.
    """

    def __init__(self, tables: Mapping[str, Iterable[Mapping[str, Any]]] | None = None):
        self._tables: dict[str, list[Row]] = {name: [] for name in TABLES}
        for table, rows in (tables or {}).items():
            for row in rows:
                self._append(table, self._complete(table, row))

    def _rows(self, table: str) -> list[Row]:
        try:
            return self._tables[table]
        except KeyError:
            raise StoreError(f"Unknown table: {table}") from None

    def _complete(self, table: str, row: Mapping[str, Any]) -> Row:
        columns = TABLES[table].__table__.columns
        unknown = set(row) - set(columns.keys())
        if unknown:
            raise StoreError(
                f"Unknown column: {table}.{', '.join(sorted(unknown))}"
            )

        now = datetime.now(UTC)
        completed: Row = {}
        for column in columns:
            if column.key in row:
                completed[column.key] = row[column.key]
            elif column.key == "id":
                completed["id"] = uuid.uuid4()
            elif column.key in _TIMESTAMP_COLUMNS:
                completed[column.key] = now
            elif column.default is not None and column.default.is_scalar:
                completed[column.key] = column.default.arg
            else:
                completed[column.key] = None
        return completed

    def count(self, table: str) -> int:
        """Number of rows currently held for ``table``."""
        return len(self._rows(table))

    async def select(
        self,
        table: str,
        *,
        where: Mapping[str, Any] | None = None,
        where_not: Mapping[str, Any] | None = None,
        where_in: Mapping[str, Sequence[Any]] | None = None,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        rows = [
            row
            for row in self._rows(table)
            if _matches(row, where)
            and all(
                row.get(name) is not None and row.get(name) != value
                for name, value in (where_not or {}).items()
            )
            and all(
                row.get(name) in list(values)
                for name, values in (where_in or {}).items()
            )
        ]

        if order_by is not None:
            # NULLs sort last in either direction
            present = [row for row in rows if row.get(order_by) is not None]
            missing = [row for row in rows if row.get(order_by) is None]
            present.sort(key=lambda row: row[order_by], reverse=descending)
            rows = present + missing

        if limit is not None:
            rows = rows[:limit]

        return copy.deepcopy(rows)

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        completed = self._complete(table, row)
        self._append(table, completed)
        return copy.deepcopy(completed)

    def _append(self, table: str, row: Row) -> None:
        rows = self._rows(table)
        _check_integrity(table, rows, [row])
        rows.append(row)

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        where: Mapping[str, Any],
    ) -> None:
        if not where:
            raise StoreError(f"Refusing unfiltered update of {table}")
        columns = TABLES[table].__table__.columns.keys()
        unknown = set(values) - set(columns)
        if unknown:
            raise StoreError(f"Unknown column: {table}.{', '.join(sorted(unknown))}")

        # A rejected update leaves every row untouched
        now = datetime.now(UTC)
        staged: list[Row] = []
        changed: list[Row] = []
        for row in self._rows(table):
            if _matches(row, where):
                row = {**row, **values}
                if "updated_at" in row and "updated_at" not in values:
                    row["updated_at"] = now
                changed.append(row)
            staged.append(row)

        _check_integrity(table, staged, changed)
        self._tables[table] = staged

    async def delete(self, table: str, *, where: Mapping[str, Any]) -> None:
        if not where:
            raise StoreError(f"Refusing unfiltered delete of {table}")
        self._delete_matching(table, where)

    def _delete_matching(self, table: str, where: Mapping[str, Any]) -> None:
        rows = self._rows(table)
        doomed = [row for row in rows if _matches(row, where)]
        self._tables[table] = [row for row in rows if not _matches(row, where)]

        for child_table, child_column, action in CASCADES.get(table, []):
            for row in doomed:
                if action == "cascade":
                    self._delete_matching(child_table, {child_column: row["id"]})
                else:
                    for child in self._rows(child_table):
                        if child.get(child_column) == row["id"]:
                            child[child_column] = None
