"""Parameterized SQL fragments for asyncpg positional placeholders.

Both the filter builders and the partial-update builder draw their
``$N`` tokens from a shared :class:`QueryParams`, so a caller can keep
numbering after a builder has run::

    update = sql_for_partial_update({"numEmployees": 3}, {"numEmployees": "num_employees"})
    handle_token = update.params.bind("acme")  # "$2"
    await pool.fetchrow(f"update companies set {update.set_cols} where handle = {handle_token}", *update.values)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from app.services.repository import RepositoryValidationError


class QueryParams:
    """Ordered bind values paired with the ``$N`` token handed out for each."""

    def __init__(self) -> None:
        self._values: list[Any] = []

    def bind(self, value: Any) -> str:
        self._values.append(value)
        return f"${len(self._values)}"

    @property
    def values(self) -> list[Any]:
        return list(self._values)


@dataclass(slots=True)
class PartialUpdate:
    set_cols: str
    params: QueryParams

    @property
    def values(self) -> list[Any]:
        return self.params.values


@dataclass(slots=True)
class WhereClause:
    where_cols: str = ""
    params: QueryParams = field(default_factory=QueryParams)

    @property
    def values(self) -> list[Any]:
        return self.params.values


def sql_for_partial_update(
    data: Mapping[str, Any],
    columns: Mapping[str, str] | None = None,
    *,
    params: QueryParams | None = None,
) -> PartialUpdate:
    """Build the ``SET`` list for a partial update.

    ``{"firstName": "Aliya", "age": 32}`` with ``{"firstName": "first_name"}``
    yields ``'"first_name"=$1, "age"=$2'`` bound to ``["Aliya", 32]``.
    Fields without a column entry are used as the column name. ``None``
    values are bound as-is so a column can be cleared.
    """
    if not data:
        raise RepositoryValidationError("No data")

    columns = columns or {}
    params = params if params is not None else QueryParams()
    set_cols = [f'"{columns.get(name, name)}"={params.bind(value)}' for name, value in data.items()]
    return PartialUpdate(set_cols=", ".join(set_cols), params=params)


def join_predicates(predicates: list[str], params: QueryParams) -> WhereClause:
    if not predicates:
        return WhereClause(params=params)
    return WhereClause(where_cols="WHERE " + " AND ".join(predicates), params=params)


def contains_pattern(value: Any) -> str:
    return f"%{value}%"
