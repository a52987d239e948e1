from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.security import get_admin_principal
from app.schemas.common import DeletedOut
from app.schemas.jobs import JobCreateRequest, JobEnvelope, JobListEnvelope, JobOut, JobPatchRequest
from app.services.jobs import get_job_repository
from app.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post("", response_model=JobEnvelope, status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreateRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_job_repository),
) -> JobEnvelope:
    try:
        row = await repository.create_job(payload.model_dump(by_alias=True))
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.get("", response_model=JobListEnvelope)
async def list_jobs(
    request: Request,
    title: str | None = Query(default=None, min_length=1),
    min_salary: int | None = Query(default=None, alias="minSalary"),
    has_equity: bool | None = Query(default=None, alias="hasEquity"),
    repository=Depends(get_job_repository),
) -> JobListEnvelope:
    # Unrecognized query parameters are forwarded so the job filter builder can reject them.
    filters: dict[str, object] = dict(request.query_params)
    filters.update(title=title, minSalary=min_salary, hasEquity=has_equity)
    try:
        rows = await repository.list_jobs(filters)
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return JobListEnvelope(jobs=[JobOut(**row) for row in rows])


@router.get("/{job_id}", response_model=JobEnvelope)
async def get_job(job_id: int, repository=Depends(get_job_repository)) -> JobEnvelope:
    try:
        row = await repository.get_job(job_id)
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.patch("/{job_id}", response_model=JobEnvelope)
async def patch_job(
    job_id: int,
    payload: JobPatchRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_job_repository),
) -> JobEnvelope:
    try:
        row = await repository.update_job(job_id, payload.submitted_fields())
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return JobEnvelope(job=JobOut(**row))


@router.delete("/{job_id}", response_model=DeletedOut)
async def delete_job(
    job_id: int,
    principal=Depends(get_admin_principal),
    repository=Depends(get_job_repository),
) -> DeletedOut:
    try:
        await repository.delete_job(job_id)
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return DeletedOut(deleted=str(job_id))
