"""Store interface used by every CareCircle service.

Services never touch SQLAlchemy sessions directly. They talk to a
``CareStore`` through four operation shapes:

1. ``select``: filtered, ordered, limited read of one table
2. ``select_related``: ``select`` plus one level of foreign-key expansion,
   optionally as a correlated count
3. ``insert``: write one row and return it as stored
4. ``update`` / ``delete``: filtered writes that report only success

Rows cross this boundary as plain dicts keyed by column name. Any failure
is raised as ``StoreError``.
"""

import abc
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

Row = dict[str, Any]


@dataclass(frozen=True)
class Embed:
    """Describes one foreign-key expansion for ``select_related``.

    The expanded value is written to ``row[name]``:
    - ``count=True``: the number of related rows
    - ``many=True``: the list of related rows
    - otherwise: the first related row, or None
    """

    name: str
    table: str
    local_key: str
    foreign_key: str
    many: bool = False
    count: bool = False


class CareStore(abc.ABC):
    """Table-scoped CRUD over the care database."""

    @abc.abstractmethod
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
        """Return rows of ``table`` matching every filter.

        Args:
            table: Table name
            where: Column equality filters
            where_not: Column inequality filters
            where_in: Column membership filters
            order_by: Column to sort by
            descending: Sort direction for ``order_by``
            limit: Maximum number of rows
        """

    @abc.abstractmethod
    async def insert(self, table: str, row: Mapping[str, Any]) -> Row:
        """Insert one row and return it with store-generated columns."""

    @abc.abstractmethod
    async def update(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        where: Mapping[str, Any],
    ) -> None:
        """Set ``values`` on every row matching ``where``."""

    @abc.abstractmethod
    async def delete(self, table: str, *, where: Mapping[str, Any]) -> None:
        """Delete every row matching ``where``. Cascades are the store's job."""

    async def select_one(self, table: str, **where: Any) -> Row | None:
        """Return the first row matching the equality filters, or None."""
        rows = await self.select(table, where=where, limit=1)
        return rows[0] if rows else None

    async def select_related(
        self,
        table: str,
        embeds: Sequence[Embed],
        **query: Any,
    ) -> list[Row]:
        """``select`` with each row expanded by ``embeds``.

        Related rows are fetched with one ``where_in`` query per embed, so
        the cost does not grow with the number of base rows.
        """
        rows = await self.select(table, **query)

        for embed in embeds:
            keys = list(
                {row[embed.local_key] for row in rows if row.get(embed.local_key)}
            )
            related = (
                await self.select(embed.table, where_in={embed.foreign_key: keys})
                if keys
                else []
            )

            grouped: dict[Any, list[Row]] = defaultdict(list)
            for related_row in related:
                grouped[related_row[embed.foreign_key]].append(related_row)

            for row in rows:
                matches = grouped.get(row.get(embed.local_key), [])
                if embed.count:
                    row[embed.name] = len(matches)
                elif embed.many:
                    row[embed.name] = matches
                else:
                    row[embed.name] = matches[0] if matches else None

        return rows
