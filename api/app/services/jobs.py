from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from typing import Any

import asyncpg  # type: ignore[import-untyped]

from app.services.database import get_database
from app.services.repository import (
    PostgresRepository,
    RepositoryNotFoundError,
    RepositoryValidationError,
)
from app.services.sql import QueryParams, WhereClause, contains_pattern, join_predicates, sql_for_partial_update

logger = logging.getLogger(__name__)

JOB_COLUMNS: dict[str, str] = {
    "id": "id",
    "title": "title",
    "salary": "salary",
    "equity": "equity",
    "companyHandle": "company_handle",
}
JOB_UPDATABLE_FIELDS = {"title", "salary", "equity"}
JOB_IMMUTABLE_FIELDS = {"id", "companyHandle", "company_handle"}
JOB_FILTER_KEYS = frozenset({"title", "minSalary", "hasEquity"})

_JOB_RETURNING = """
  id,
  title,
  salary,
  equity::text as equity,
  company_handle as "companyHandle"
"""


def sql_for_jobs_where(filters: Mapping[str, Any], *, params: QueryParams | None = None) -> WhereClause:
    """Build the ``WHERE`` clause for a job search.

    ``{"title": "j1", "minSalary": 1}`` yields
    ``WHERE title ILIKE $1 AND salary >= $2`` bound to ``["%j1%", 1]``.
    ``hasEquity`` only narrows when true. Any key outside ``title``,
    ``minSalary`` and ``hasEquity`` rejects the whole filter.
    """
    unknown = sorted(set(filters) - JOB_FILTER_KEYS)
    if unknown:
        raise RepositoryValidationError(f"unsupported filters: {', '.join(unknown)}")

    params = params if params is not None else QueryParams()
    predicates: list[str] = []
    for key, value in filters.items():
        if value is None:
            continue
        if key == "title":
            predicates.append(f"title ILIKE {params.bind(contains_pattern(value))}")
        elif key == "minSalary":
            predicates.append(f"salary >= {params.bind(value)}")
        elif key == "hasEquity" and value is True:
            predicates.append("equity > 0")
    return join_predicates(predicates, params)


class JobRepository(PostgresRepository):
    async def create_job(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        company_handle = fields.get("companyHandle")
        equity = self._coerce_equity(fields.get("equity"))
        company = await self.database.fetchrow(
            "select handle from companies where handle = $1",
            company_handle,
        )
        if not company:
            raise RepositoryValidationError(f"Company doesn't exist: {company_handle}")

        row = await self.database.fetchrow(
            f"""
            insert into jobs (title, salary, equity, company_handle)
            values ($1, $2, $3, $4)
            returning {_JOB_RETURNING}
            """,
            fields.get("title"),
            fields.get("salary"),
            equity,
            company_handle,
        )
        job = self._job_row_to_dict(row)
        logger.info("job created id=%s company_handle=%s", job["id"], company_handle)
        return job

    async def list_jobs(self, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
        filters = dict(filters or {})
        raw_min_salary = filters.get("minSalary")
        if raw_min_salary is not None:
            min_salary = self._coerce_int(raw_min_salary)
            if min_salary is None:
                raise RepositoryValidationError("minSalary must be an integer")
            if min_salary < 0:
                raise RepositoryValidationError("minSalary must be greater than or equal to 0")
            filters["minSalary"] = min_salary

        where = sql_for_jobs_where(filters)
        rows = await self.database.fetch(
            f"""
            select {_JOB_RETURNING}
            from jobs
            {where.where_cols}
            order by title
            """,
            *where.values,
        )
        return [self._job_row_to_dict(row) for row in rows]

    async def get_job(self, job_id: int) -> dict[str, Any]:
        try:
            row = await self.database.fetchrow(
                f"""
                select {_JOB_RETURNING}
                from jobs
                where id = $1
                """,
                job_id,
            )
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        return self._job_row_to_dict(row)

    async def update_job(self, job_id: int, fields: Mapping[str, Any]) -> dict[str, Any]:
        fields = dict(fields)
        self._reject_fields(fields, JOB_IMMUTABLE_FIELDS, "Cannot update id and/or companyHandle.")
        self._reject_unknown_fields(fields, JOB_UPDATABLE_FIELDS)
        if "equity" in fields:
            fields["equity"] = self._coerce_equity(fields["equity"])

        update = sql_for_partial_update(fields, JOB_COLUMNS)
        id_token = update.params.bind(job_id)
        try:
            row = await self.database.fetchrow(
                f"""
                update jobs
                set {update.set_cols}
                where id = {id_token}
                returning {_JOB_RETURNING}
                """,
                *update.values,
            )
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")

        logger.info("job updated id=%s fields=%s", job_id, ",".join(fields))
        return self._job_row_to_dict(row)

    async def delete_job(self, job_id: int) -> None:
        try:
            row = await self.database.fetchrow("delete from jobs where id = $1 returning id", job_id)
        except asyncpg.DataError as exc:
            raise RepositoryNotFoundError(f"No job: {job_id}") from exc
        if not row:
            raise RepositoryNotFoundError(f"No job: {job_id}")
        logger.info("job deleted id=%s", job_id)

    @staticmethod
    def _coerce_equity(value: Any) -> Decimal | None:
        if value is None:
            return None
        try:
            equity = Decimal(str(value))
        except InvalidOperation as exc:
            raise RepositoryValidationError("equity must be a decimal string") from exc
        if not equity.is_finite() or not Decimal(0) <= equity <= Decimal(1):
            raise RepositoryValidationError("equity must be between 0 and 1")
        return equity

    @staticmethod
    def _job_row_to_dict(row: asyncpg.Record) -> dict[str, Any]:
        return {
            "id": row["id"],
            "title": row["title"],
            "salary": row["salary"],
            "equity": row["equity"],
            "companyHandle": row["companyHandle"],
        }


@lru_cache
def get_job_repository() -> JobRepository:
    return JobRepository(get_database())
