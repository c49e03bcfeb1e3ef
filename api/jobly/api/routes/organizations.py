from fastapi import APIRouter, Depends, HTTPException, Request, status as http_status

from jobly.schemas.organizations import (
    OrganizationCreateRequest,
    OrganizationDeletedResponse,
    OrganizationDetailResponse,
    OrganizationListResponse,
    OrganizationResponse,
    OrganizationUpdateRequest,
)
from jobly.services.filters import OrganizationFilters
from jobly.services.organizations import get_organization_repository
from jobly.services.repository import (
    RepositoryConflictError,
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post("", response_model=OrganizationResponse, status_code=http_status.HTTP_201_CREATED)
async def create_organization(
    payload: OrganizationCreateRequest,
    repository=Depends(get_organization_repository),
) -> OrganizationResponse:
    try:
        row = await repository.create(payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryConflictError as exc:
        raise HTTPException(status_code=http_status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return OrganizationResponse(organization=row)


@router.get("", response_model=OrganizationListResponse)
async def list_organizations(
    request: Request,
    repository=Depends(get_organization_repository),
) -> OrganizationListResponse:
    """Accepts name, minEmployees and maxEmployees; any other query key is a 400."""
    try:
        filters = OrganizationFilters.from_mapping(dict(request.query_params))
        rows = await repository.list(filters)
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return OrganizationListResponse(organizations=rows)


@router.get("/{handle}", response_model=OrganizationDetailResponse)
async def get_organization(handle: str, repository=Depends(get_organization_repository)) -> OrganizationDetailResponse:
    try:
        row = await repository.get(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return OrganizationDetailResponse(organization=row)


@router.patch("/{handle}", response_model=OrganizationResponse)
async def patch_organization(
    handle: str,
    payload: OrganizationUpdateRequest,
    repository=Depends(get_organization_repository),
) -> OrganizationResponse:
    try:
        row = await repository.update(handle, payload.model_dump(exclude_unset=True))
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return OrganizationResponse(organization=row)


@router.delete("/{handle}", response_model=OrganizationDeletedResponse)
async def delete_organization(handle: str, repository=Depends(get_organization_repository)) -> OrganizationDeletedResponse:
    try:
        await repository.remove(handle)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return OrganizationDeletedResponse(deleted=handle)
