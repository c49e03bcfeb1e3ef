from fastapi import APIRouter, Depends, HTTPException, status

from jobly.core.db import get_database
from jobly.services.repository import RepositoryUnavailableError

router = APIRouter()


@router.get("/")
async def root() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(db=Depends(get_database)) -> dict[str, str]:
    try:
        await db.fetchrow("SELECT 1 AS ok")
    except RepositoryUnavailableError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    return {"status": "ready"}
