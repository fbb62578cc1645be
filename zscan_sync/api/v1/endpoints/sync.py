"""
sync.py - Claim/Update endpoint.

ENDPOINT: POST /zscan
PURPOSE: Single entry point for the two client verbs.

RESPONSE CODES:
- 200 OK: claim -> JSON array of records; update -> "Updated.\\n"
- 400 Bad Request: bad Content-Length, malformed JSON/verb/record
- 403 Forbidden: dataset missing, not claimable, or authentication failed
- 500 Internal Server Error: storage failure (transaction rolled back)
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import ValidationError

from zscan_sync.database import ScanStore
from zscan_sync.schemas.sync import (
    ClaimRequest,
    RejectionResponse,
    UpdateRequest,
    sync_request_adapter,
)
from zscan_sync.services.sync import (
    PasscodeHasher,
    SyncError,
    SyncErrorKind,
    UpdateBatch,
    claim,
    submit,
)

logger = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_KIND = {
    SyncErrorKind.FORMAT_ERROR: status.HTTP_400_BAD_REQUEST,
    SyncErrorKind.NOT_FOUND: status.HTTP_403_FORBIDDEN,
    SyncErrorKind.NOT_CLAIMABLE: status.HTTP_403_FORBIDDEN,
    SyncErrorKind.AUTH_FAILURE: status.HTTP_403_FORBIDDEN,
    SyncErrorKind.ALREADY_EXISTS: status.HTTP_403_FORBIDDEN,
    SyncErrorKind.STORAGE_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def get_store(request: Request) -> ScanStore:
    return request.app.state.store


def get_hasher(request: Request) -> PasscodeHasher:
    return request.app.state.hasher


def _reject(error: SyncError) -> HTTPException:
    return HTTPException(
        status_code=STATUS_BY_KIND[error.kind],
        detail={"status": "rejected", **error.to_dict()},
    )


def _bad_request(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "status": "rejected",
            "code": SyncErrorKind.FORMAT_ERROR.value,
            "message": message,
            "details": {},
        },
    )


def _check_content_length(request: Request) -> None:
    raw = request.headers.get("content-length", "")
    limit = request.app.state.settings.MAX_CONTENT_LENGTH
    if not raw.isdigit() or not 1 <= int(raw) <= limit:
        raise _bad_request("Content-Length missing or out of range")


@router.post(
    "",
    responses={
        400: {"model": RejectionResponse, "description": "Bad request"},
        403: {"model": RejectionResponse, "description": "Forbidden"},
        500: {"model": RejectionResponse, "description": "Storage failure"},
    },
    summary="Claim a dataset or update its records",
)
async def sync(
    request: Request,
    store: ScanStore = Depends(get_store),
    hasher: PasscodeHasher = Depends(get_hasher),
) -> Response:
    _check_content_length(request)
    body = await request.body()

    try:
        payload = sync_request_adapter.validate_json(body)
    except ValidationError as e:
        logger.warning("Malformed sync request: %d validation error(s)", e.error_count())
        raise _bad_request("Request body is not a valid claim or update request")

    if isinstance(payload, ClaimRequest):
        return await run_in_threadpool(_handle_claim, store, hasher, payload)
    return await run_in_threadpool(_handle_update, store, hasher, payload)


def _handle_claim(store: ScanStore, hasher: PasscodeHasher, payload: ClaimRequest) -> Response:
    result = claim(store, payload.dsname, payload.dspass, hasher=hasher)
    if not result.ok:
        raise _reject(result.error)

    return JSONResponse(content=[entry.as_wire() for entry in result.value])


def _handle_update(store: ScanStore, hasher: PasscodeHasher, payload: UpdateRequest) -> Response:
    batch = UpdateBatch()
    for index, (sequence, isbn, timestamp, canceled) in enumerate(payload.recset):
        staged = batch.add(sequence, isbn, timestamp, canceled)
        if not staged.ok:
            logger.warning("Update record %d rejected: %s", index, staged.error.message)
            raise _reject(staged.error)

    result = submit(store, batch, payload.dsname, payload.dspass, hasher=hasher)
    if not result.ok:
        raise _reject(result.error)

    return PlainTextResponse("Updated.\n")
