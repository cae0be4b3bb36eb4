"""PostgreSQL-backed store using async SQLAlchemy.

Every operation opens its own ``AsyncSession`` so the aggregator can run
reads concurrently; an ``AsyncSession`` must never be shared across
concurrent tasks. Writes are committed one statement at a time.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import ColumnElement, Select, delete, inspect, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from carecircle.core.exceptions import StoreError
from carecircle.logging_config import get_logger
from carecircle.models import (
    Appointment,
    AuditLog,
    Base,
    CareTeamMember,
    CaregiverLink,
    Medication,
    MedicationLog,
    Memory,
    MoodEntry,
    Patient,
    PatientNote,
    Profile,
    Task,
)
from carecircle.store.base import CareStore, Row

logger = get_logger(__name__)

TABLES: dict[str, type[Base]] = {
    model.__tablename__: model
    for model in (
        Appointment,
        AuditLog,
        CareTeamMember,
        CaregiverLink,
        Medication,
        MedicationLog,
        Memory,
        MoodEntry,
        Patient,
        PatientNote,
        Profile,
        Task,
    )
}


def _to_row(obj: Base) -> Row:
    """Copy the mapped column values of an ORM object into a dict."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


class SqlAlchemyStore(CareStore):
    """``CareStore`` over the ORM models in ``carecircle.models``."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self._session_maker = session_maker

    def _model(self, table: str) -> type[Base]:
        try:
            return TABLES[table]
        except KeyError:
            raise StoreError(f"Unknown table: {table}") from None

    def _column(self, model: type[Base], name: str) -> ColumnElement[Any]:
        try:
            return model.__table__.c[name]
        except KeyError:
            raise StoreError(
                f"Unknown column: {model.__tablename__}.{name}"
            ) from None

    def _criteria(
        self,
        model: type[Base],
        where: Mapping[str, Any] | None = None,
        where_not: Mapping[str, Any] | None = None,
        where_in: Mapping[str, Sequence[Any]] | None = None,
    ) -> list[ColumnElement[bool]]:
        criteria = []
        for name, value in (where or {}).items():
            column = self._column(model, name)
            criteria.append(column.is_(None) if value is None else column == value)
        for name, value in (where_not or {}).items():
            criteria.append(self._column(model, name) != value)
        for name, values in (where_in or {}).items():
            criteria.append(self._column(model, name).in_(list(values)))
        return criteria

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
        model = self._model(table)
        stmt: Select[Any] = select(model).where(
            *self._criteria(model, where, where_not, where_in)
        )
        if order_by is not None:
            column = self._column(model, order_by)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_maker() as session:
                result = await session.execute(stmt)
                return [_to_row(obj) for obj in result.scalars().all()]
        except SQLAlchemyError as exc:
            logger.error("Store read failed", table=table, error=str(exc))
            raise StoreError(str(exc)) from exc

    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        model = self._model(table)
        try:
            async with self._session_maker() as session:
                obj = model(**row)
                session.add(obj)
                try:
                    await session.commit()
                except SQLAlchemyError:
                    await session.rollback()
                    raise
                await session.refresh(obj)
                return _to_row(obj)
        except SQLAlchemyError as exc:
            logger.error("Store insert failed", table=table, error=str(exc))
            raise StoreError(str(exc)) from exc
        except TypeError as exc:
            # Unknown keyword for the mapped class
            raise StoreError(str(exc)) from exc

    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        where: Mapping[str, Any],
    ) -> None:
        if not where:
            raise StoreError(f"Refusing unfiltered update of {table}")
        model = self._model(table)
        for name in values:
            self._column(model, name)
        stmt = (
            update(model)
            .where(*self._criteria(model, where))
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        await self._write(table, stmt)

    async def delete(self, table: str, *, where: Mapping[str, Any]) -> None:
        if not where:
            raise StoreError(f"Refusing unfiltered delete of {table}")
        model = self._model(table)
        stmt = (
            delete(model)
            .where(*self._criteria(model, where))
            .execution_options(synchronize_session=False)
        )
        await self._write(table, stmt)

    async def _write(self, table: str, stmt: Any) -> None:
        try:
            async with self._session_maker() as session:
                try:
                    await session.execute(stmt)
                    await session.commit()
                except SQLAlchemyError:
                    await session.rollback()
                    raise
        except SQLAlchemyError as exc:
            logger.error("Store write failed", table=table, error=str(exc))
            raise StoreError(str(exc)) from exc
