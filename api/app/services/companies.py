from __future__ import annotations

import logging
from collections.abc import Mapping
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]
from asyncpg import exceptions as pg_exc

from app.services.database import get_database
from app.services.repository import (
    PostgresRepository,
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)
from app.services.sql import QueryParams, WhereClause, contains_pattern, join_predicates, sql_for_partial_update

logger = logging.getLogger(__name__)

COMPANY_COLUMNS: dict[str, str] = {
    "handle": "handle",
    "name": "name",
    "description": "description",
    "numEmployees": "num_employees",
    "logoUrl": "logo_url",
}
COMPANY_UPDATABLE_FIELDS = {"name", "description", "numEmployees", "logoUrl"}

_COMPANY_RETURNING = """
  handle,
  name,
  description,
  num_employees as "numEmployees",
  logo_url as "logoUrl"
"""


def sql_for_companies_where(filters: Mapping[str, Any], *, params: QueryParams | None = None) -> WhereClause:
    """Build the ``WHERE`` clause for a company search.

    ``{"nameLike": "hall", "minEmployees": 3}`` yields
    ``WHERE name ILIKE $1 AND num_employees >= $2`` bound to ``["%hall%", 3]``.
    Keys other than ``nameLike``, ``minEmployees`` and ``maxEmployees`` are
    ignored, as are ``None`` values.
    """
    params = params if params is not None else QueryParams()
    predicates: list[str] = []
    for key, value in filters.items():
        if value is None:
            continue
        if key == "nameLike":
            predicates.append(f"name ILIKE {params.bind(contains_pattern(value))}")
        elif key == "minEmployees":
            predicates.append(f"num_employees >= {params.bind(value)}")
        elif key == "maxEmployees":
            predicates.append(f"num_employees <= {params.bind(value)}")
    return join_predicates(predicates, params)


class CompanyRepository(PostgresRepository):
    async def create_company(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        handle = fields.get("handle")
        if not handle:
            raise RepositoryValidationError("handle is required")

        duplicate = await self.database.fetchrow("select handle from companies where handle = $1", handle)
        if duplicate:
            raise RepositoryConflictError(f"Duplicate company: {handle}")

        try:
            row = await self.database.fetchrow(
                f"""
                insert into companies (handle, name, description, num_employees, logo_url)
                values ($1, $2, $3, $4, $5)
                returning {_COMPANY_RETURNING}
                """,
                handle,
                fields.get("name"),
                fields.get("description"),
                fields.get("numEmployees"),
                fields.get("logoUrl"),
            )
        except pg_exc.UniqueViolationError as exc:
            raise RepositoryConflictError(f"Duplicate company: {handle}") from exc

        logger.info("company created handle=%s", handle)
        return self._company_row_to_dict(row)

    async def list_companies(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        filters = dict(filters or {})
        min_employees = self._coerce_filter_int(filters, "minEmployees")
        max_employees = self._coerce_filter_int(filters, "maxEmployees")
        if min_employees is not None and max_employees is not None and min_employees > max_employees:
            raise RepositoryValidationError("Invalid filter: minEmployees cannot be greater than maxEmployees")

        where = sql_for_companies_where(filters)
        rows = await self.database.fetch(
            f"""
            select {_COMPANY_RETURNING}
            from companies
            {where.where_cols}
            order by name
            """,
            *where.values,
        )
        return [self._company_row_to_dict(row) for row in rows]

    async def get_company(self, handle: str) -> dict[str, Any]:
        row = await self.database.fetchrow(
            f"""
            select {_COMPANY_RETURNING}
            from companies
            where handle = $1
            """,
            handle,
        )
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        job_rows = await self.database.fetch(
            """
            select id, title, salary, equity::text as equity
            from jobs
            where company_handle = $1
            order by id
            """,
            handle,
        )
        company = self._company_row_to_dict(row)
        company["jobs"] = [
            {
                "id": job_row["id"],
                "title": job_row["title"],
                "salary": job_row["salary"],
                "equity": job_row["equity"],
            }
            for job_row in job_rows
        ]
        return company

    async def update_company(self, handle: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        fields = dict(fields)
        self._reject_fields(fields, {"handle"}, "Cannot update handle.")
        self._reject_unknown_fields(fields, COMPANY_UPDATABLE_FIELDS)

        update = sql_for_partial_update(fields, COMPANY_COLUMNS)
        handle_token = update.params.bind(handle)
        row = await self.database.fetchrow(
            f"""
            update companies
            set {update.set_cols}
            where handle = {handle_token}
            returning {_COMPANY_RETURNING}
            """,
            *update.values,
        )
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")

        logger.info("company updated handle=%s fields=%s", handle, ",".join(fields))
        return self._company_row_to_dict(row)

    async def delete_company(self, handle: str) -> None:
        row = await self.database.fetchrow("delete from companies where handle = $1 returning handle", handle)
        if not row:
            raise RepositoryNotFoundError(f"No company: {handle}")
        logger.info("company deleted handle=%s", handle)

    def _coerce_filter_int(self, filters: dict[str, Any], key: str) -> int | None:
        value = filters.get(key)
        if value is None:
            return None
        coerced = self._coerce_int(value)
        if coerced is None:
            raise RepositoryValidationError(f"{key} must be an integer")
        filters[key] = coerced
        return coerced

    @staticmethod
    def _company_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "handle": row["handle"],
            "name": row["name"],
            "description": row["description"],
            "numEmployees": row["numEmployees"],
            "logoUrl": row["logoUrl"],
        }


@lru_cache
def get_company_repository() -> CompanyRepository:
    return CompanyRepository(get_database())
