from fastapi import APIRouter, Depends, HTTPException, Request, status as http_status

from jobly.schemas.postings import (
    PostingCreateRequest,
    PostingDeletedResponse,
    PostingListResponse,
    PostingResponse,
    PostingUpdateRequest,
)
from jobly.services.filters import PostingFilters
from jobly.services.postings import get_posting_repository
from jobly.services.repository import (
    RepositoryNotFoundError,
    RepositoryUnavailableError,
    RepositoryValidationError,
)

router = APIRouter()


@router.post("", response_model=PostingResponse, status_code=http_status.HTTP_201_CREATED)
async def create_posting(
    payload: PostingCreateRequest,
    repository=Depends(get_posting_repository),
) -> PostingResponse:
    try:
        row = await repository.create(payload.model_dump())
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PostingResponse(posting=row)


@router.get("", response_model=PostingListResponse)
async def list_postings(
    request: Request,
    repository=Depends(get_posting_repository),
) -> PostingListResponse:
    try:
        filters = PostingFilters.from_mapping(dict(request.query_params))
        rows = await repository.list(filters)
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return PostingListResponse(postings=rows)


@router.get("/{posting_id}", response_model=PostingResponse)
async def get_posting(posting_id: int, repository=Depends(get_posting_repository)) -> PostingResponse:
    try:
        row = await repository.get(posting_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PostingResponse(posting=row)


@router.patch("/{posting_id}", response_model=PostingResponse)
async def patch_posting(
    posting_id: int,
    payload: PostingUpdateRequest,
    repository=Depends(get_posting_repository),
) -> PostingResponse:
    try:
        row = await repository.update(posting_id, payload.model_dump(exclude_unset=True))
    except RepositoryValidationError as exc:
        raise HTTPException(status_code=http_status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PostingResponse(posting=row)


@router.delete("/{posting_id}", response_model=PostingDeletedResponse)
async def delete_posting(posting_id: int, repository=Depends(get_posting_repository)) -> PostingDeletedResponse:
    try:
        await repository.remove(posting_id)
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=http_status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    except RepositoryNotFoundError as exc:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    return PostingDeletedResponse(deleted=posting_id)
