from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Coroutine
from pathlib import Path
from typing import Any, TypeVar

import asyncpg  # type: ignore[import-untyped]
import pytest

from app.services.companies import CompanyRepository
from app.services.database import Database
from app.services.jobs import JobRepository
from app.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryValidationError,
)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "db" / "schema.sql"

T = TypeVar("T")


@pytest.fixture(scope="session")
def database_url() -> str:
    url = os.getenv("JOBLY_DATABASE_URL") or os.getenv("DATABASE_URL")
    if not url:
        pytest.skip("integration tests require JOBLY_DATABASE_URL or DATABASE_URL")
    return url


@pytest.fixture(autouse=True)
def seed_tables(database_url: str) -> int:
    return _run(_reset_and_seed(database_url))


def test_create_company_and_conflict(database_url: str) -> None:
    new_company = {
        "handle": "new",
        "name": "New",
        "description": "New Description",
        "numEmployees": 1,
        "logoUrl": "http://new.img",
    }

    async def scenario(companies: CompanyRepository, _: JobRepository) -> None:
        assert await companies.create_company(new_company) == new_company
        with pytest.raises(RepositoryConflictError):
            await companies.create_company(new_company)

    _run(_with_repositories(database_url, scenario))


def test_list_companies_filters(database_url: str) -> None:
    async def scenario(companies: CompanyRepository, _: JobRepository) -> None:
        everything = await companies.list_companies()
        assert [row["handle"] for row in everything] == ["c1", "c2", "c3"]

        by_name = await companies.list_companies({"nameLike": "C2"})
        assert [row["handle"] for row in by_name] == ["c2"]

        by_range = await companies.list_companies({"minEmployees": 2, "maxEmployees": 3, "unknown": "x"})
        assert [row["handle"] for row in by_range] == ["c2", "c3"]

        with pytest.raises(RepositoryValidationError):
            await companies.list_companies({"minEmployees": 5, "maxEmployees": 2})

    _run(_with_repositories(database_url, scenario))


def test_get_company_with_jobs(database_url: str, seed_tables: int) -> None:
    async def scenario(companies: CompanyRepository, _: JobRepository) -> None:
        company = await companies.get_company("c1")
        assert company["jobs"] == [{"id": seed_tables, "title": "j1", "salary": 1, "equity": "0.1"}]

        with pytest.raises(RepositoryNotFoundError):
            await companies.get_company("nope")

    _run(_with_repositories(database_url, scenario))


def test_update_and_delete_company(database_url: str) -> None:
    async def scenario(companies: CompanyRepository, _: JobRepository) -> None:
        updated = await companies.update_company("c1", {"name": "New", "numEmployees": None, "logoUrl": None})
        assert updated == {
            "handle": "c1",
            "name": "New",
            "description": "Desc1",
            "numEmployees": None,
            "logoUrl": None,
        }

        await companies.delete_company("c1")
        with pytest.raises(RepositoryNotFoundError):
            await companies.get_company("c1")
        with pytest.raises(RepositoryNotFoundError):
            await companies.delete_company("missing-handle")

    _run(_with_repositories(database_url, scenario))


def test_create_job_echoes_input(database_url: str) -> None:
    new_job = {"title": "new", "salary": 1, "equity": "1.0", "companyHandle": "c1"}

    async def scenario(_: CompanyRepository, jobs: JobRepository) -> None:
        job = await jobs.create_job(new_job)
        assert job == {"id": job["id"], **new_job}

        with pytest.raises(RepositoryValidationError):
            await jobs.create_job({**new_job, "companyHandle": "invalid-company-handle"})

    _run(_with_repositories(database_url, scenario))


def test_list_jobs_filters(database_url: str, seed_tables: int) -> None:
    j1 = {"id": seed_tables, "title": "j1", "salary": 1, "equity": "0.1", "companyHandle": "c1"}

    async def scenario(_: CompanyRepository, jobs: JobRepository) -> None:
        assert await jobs.list_jobs() == [j1]
        assert await jobs.list_jobs({"title": "J1"}) == [j1]
        assert await jobs.list_jobs({"minSalary": 1}) == [j1]
        assert await jobs.list_jobs({"minSalary": 2}) == []
        assert await jobs.list_jobs({"hasEquity": True}) == [j1]

        with pytest.raises(RepositoryValidationError):
            await jobs.list_jobs({"minSalary": -1})
        with pytest.raises(RepositoryValidationError):
            await jobs.list_jobs({"invalidFilter": "invalid"})

    _run(_with_repositories(database_url, scenario))


def test_update_job_round_trips_nulls(database_url: str, seed_tables: int) -> None:
    async def scenario(_: CompanyRepository, jobs: JobRepository) -> None:
        job = await jobs.update_job(seed_tables, {"title": "Updated", "salary": None, "equity": None})
        assert job == {"id": seed_tables, "title": "Updated", "salary": None, "equity": None, "companyHandle": "c1"}
        assert await jobs.get_job(seed_tables) == job

        with pytest.raises(RepositoryValidationError):
            await jobs.update_job(seed_tables, {"id": 1, "companyHandle": "x", "title": "y"})
        with pytest.raises(RepositoryNotFoundError):
            await jobs.update_job(-1, {"title": "Updated"})

        await jobs.delete_job(seed_tables)
        with pytest.raises(RepositoryNotFoundError):
            await jobs.get_job(seed_tables)
        with pytest.raises(RepositoryNotFoundError):
            await jobs.get_job(-1)

    _run(_with_repositories(database_url, scenario))


def _run(coro: Coroutine[Any, Any, T]) -> T:
    return asyncio.run(coro)


async def _with_repositories(
    database_url: str,
    scenario: Callable[[CompanyRepository, JobRepository], Awaitable[None]],
) -> None:
    database = Database(database_url=database_url, min_pool_size=1, max_pool_size=2)
    try:
        await scenario(CompanyRepository(database), JobRepository(database))
    finally:
        await database.close()


async def _reset_and_seed(database_url: str) -> int:
    conn = await asyncpg.connect(database_url)
    try:
        await conn.execute(SCHEMA_PATH.read_text(encoding="utf-8"))
        await conn.execute("truncate table jobs, companies restart identity cascade")
        await conn.execute(
            """
            insert into companies (handle, name, num_employees, description, logo_url)
            values ('c1', 'C1', 1, 'Desc1', 'http://c1.img'),
                   ('c2', 'C2', 2, 'Desc2', 'http://c2.img'),
                   ('c3', 'C3', 3, 'Desc3', 'http://c3.img')
            """
        )
        return await conn.fetchval(
            """
            insert into jobs (title, salary, equity, company_handle)
            values ('j1', 1, 0.1, 'c1')
            returning id
            """
        )
    finally:
        await conn.close()
