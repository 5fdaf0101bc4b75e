"""
ReadSync Backend — Reading Record Route Handlers
=================================================

What:  POST/GET /reading-records and GET/DELETE /reading-records/{fileId}.
How:   Resolve the caller with require_user, delegate to
       ReadingRecordService, wrap the result in the success envelope.
Who:   Called by reader clients syncing per-document progress.

Every route here requires `Authorization: Bearer <token>`. The auth
dependency is declared before the session dependency and fails first.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from readsync.database import get_db_session
from readsync.dependencies import authenticated_body, require_user
from readsync.schemas.common import ApiResponse, ErrorResponse
from readsync.schemas.reading_record import (
    RecordDetailData,
    RecordListData,
    SyncData,
    SyncRequest,
)
from readsync.services.identity_base import AuthUser
from readsync.services.reading_record_service import reading_record_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reading-records", tags=["Reading Records"])

_AUTH_ERRORS = {
    401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


@router.post(
    "",
    response_model=ApiResponse[SyncData],
    response_model_exclude_none=True,
    responses={400: {"description": "Invalid input", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Create or replace the caller's record for a file",
)
async def sync_record(
    user: AuthUser = Depends(require_user),
    body: SyncRequest = Depends(authenticated_body(SyncRequest)),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[SyncData]:
    """
    Upsert keyed on (caller, fileId). Body: SyncRequest (`{fileId, record}`),
    read only after the caller is authenticated.

    Fields missing from `record` are reset to their defaults rather than
    kept from the previous sync.
    """
    data = await reading_record_service.upsert(
        db=db, user_id=user.id, file_id=body.file_id, record=body.record
    )
    return ApiResponse(message="Sync successful", data=data)


@router.get(
    "",
    response_model=ApiResponse[RecordListData],
    response_model_exclude_none=True,
    responses={400: {"description": "Invalid paging or sort", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="List the caller's records with reading progress",
)
async def list_records(
    limit: Optional[int] = Query(default=None, description="Page size (default 50)"),
    offset: Optional[int] = Query(default=None, description="Rows to skip (default 0)"),
    sort: Optional[str] = Query(default=None, description="Sort column (default last_read)"),
    order: Optional[str] = Query(default=None, description="asc or desc (default desc)"),
    user: AuthUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[RecordListData]:
    data = await reading_record_service.list(
        db=db, user_id=user.id, limit=limit, offset=offset, sort=sort, order=order
    )
    return ApiResponse(data=data)


@router.get(
    "/{fileId}",
    response_model=ApiResponse[RecordDetailData],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Missing fileId", "model": ErrorResponse},
        404: {"description": "No record for this file", "model": ErrorResponse},
        **_AUTH_ERRORS,
    },
    summary="Get the caller's record for one file",
)
async def get_record(
    file_id: str = Path(alias="fileId"),
    user: AuthUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[RecordDetailData]:
    data = await reading_record_service.get(db=db, user_id=user.id, file_id=file_id)
    return ApiResponse(data=data)


@router.delete(
    "/{fileId}",
    response_model=ApiResponse[None],
    response_model_exclude_none=True,
    responses={400: {"description": "Missing fileId", "model": ErrorResponse}, **_AUTH_ERRORS},
    summary="Delete the caller's record for one file",
)
async def delete_record(
    file_id: str = Path(alias="fileId"),
    user: AuthUser = Depends(require_user),
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse[None]:
    """Idempotent: deleting a record that does not exist still succeeds."""
    await reading_record_service.delete(db=db, user_id=user.id, file_id=file_id)
    return ApiResponse(message="Record deleted")
