from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from app.core.security import get_admin_principal
from app.schemas.common import DeletedOut
from app.schemas.companies import (
    CompanyCreateRequest,
    CompanyDetailEnvelope,
    CompanyDetailOut,
    CompanyEnvelope,
    CompanyListEnvelope,
    CompanyOut,
    CompanyPatchRequest,
)
from app.services.companies import get_company_repository
from app.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post("", response_model=CompanyEnvelope, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CompanyCreateRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_company_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.create_company(payload.model_dump(by_alias=True))
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.get("", response_model=CompanyListEnvelope)
async def list_companies(
    request: Request,
    name_like: str | None = Query(default=None, alias="nameLike", min_length=1),
    min_employees: int | None = Query(default=None, alias="minEmployees", ge=0),
    max_employees: int | None = Query(default=None, alias="maxEmployees", ge=0),
    repository=Depends(get_company_repository),
) -> CompanyListEnvelope:
    # Unrecognized query parameters are forwarded and dropped by the company filter builder.
    filters: dict[str, object] = dict(request.query_params)
    filters.update(nameLike=name_like, minEmployees=min_employees, maxEmployees=max_employees)
    try:
        rows = await repository.list_companies(filters)
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompanyListEnvelope(companies=[CompanyOut(**row) for row in rows])


@router.get("/{handle}", response_model=CompanyDetailEnvelope)
async def get_company(handle: str, repository=Depends(get_company_repository)) -> CompanyDetailEnvelope:
    try:
        row = await repository.get_company(handle)
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompanyDetailEnvelope(company=CompanyDetailOut(**row))


@router.patch("/{handle}", response_model=CompanyEnvelope)
async def patch_company(
    handle: str,
    payload: CompanyPatchRequest,
    principal=Depends(get_admin_principal),
    repository=Depends(get_company_repository),
) -> CompanyEnvelope:
    try:
        row = await repository.update_company(handle, payload.submitted_fields())
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return CompanyEnvelope(company=CompanyOut(**row))


@router.delete("/{handle}", response_model=DeletedOut)
async def delete_company(
    handle: str,
    principal=Depends(get_admin_principal),
    repository=Depends(get_company_repository),
) -> DeletedOut:
    try:
        await repository.delete_company(handle)
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return DeletedOut(deleted=handle)
