"""
HTTP server implementation for MintDB.

This module provides a REST API over RecordService:
- POST   /api/v1/records        create a record
- GET    /api/v1/records/{id}   read a record
- PUT    /api/v1/records/{id}   replace a record's mutable fields
- DELETE /api/v1/records/{id}   delete a record, returning it
- GET    /health                liveness

Invariants:
    - HTTP endpoints have same semantics as RecordService
    - Error bodies are {"error": ..., "error_code": ...}

How to change safely:
    - Keep endpoints in sync with RecordService operations
    - Document all endpoints via the generated OpenAPI schema
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import APIRouter, Depends, FastAPI, Path, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .._version import __version__
from ..config import ServerConfig
from ..errors import (
    MintDbError,
    NotFoundError,
    RecordEncodingError,
    RecordTooLargeError,
)
from ..handlers import RecordService
from ..records.codec import U64_MAX
from ..records.types import Record, RecordPayload
from ..storage.base import create_storage_backend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Records"])


# --- Request/Response Models ---


class RecordPayloadRequest(BaseModel):
    """Mutable record fields."""

    title: str = Field(..., description="Asset title")
    creator: str = Field(..., description="Asset creator")
    collection: str = Field(..., description="Collection the asset belongs to")
    external_reference: str = Field(..., description="Opaque locator, e.g. a metadata URL")
    price: int = Field(..., ge=0, le=U64_MAX, description="Price")

    def to_payload(self) -> RecordPayload:
        return RecordPayload(
            title=self.title,
            creator=self.creator,
            collection=self.collection,
            external_reference=self.external_reference,
            price=self.price,
        )


class RecordResponse(BaseModel):
    """Record response."""

    id: int
    title: str
    creator: str
    collection: str
    external_reference: str
    price: int
    created_at: int
    updated_at: int | None = None

    @classmethod
    def from_record(cls, record: Record) -> RecordResponse:
        return cls(**record.to_dict())


class ErrorResponse(BaseModel):
    """Error response."""

    error: str
    error_code: str


# --- Dependencies ---


def get_record_service(request: Request) -> RecordService:
    """Get the record service from app state."""
    return request.app.state.record_service


RecordId = Annotated[int, Path(ge=0, le=U64_MAX, description="Record identifier")]

_NOT_FOUND = {404: {"model": ErrorResponse}}
_INVALID = {
    413: {"model": ErrorResponse},
    422: {"description": "Invalid record"},
}


# --- Record Routes ---


@router.post(
    "/records",
    response_model=RecordResponse,
    status_code=201,
    responses=_INVALID,
)
async def create_record(
    body: RecordPayloadRequest,
    service: RecordService = Depends(get_record_service),
):
    """Create a record. The identifier and created_at are assigned by the server."""
    record = await service.create_record(body.to_payload())
    return RecordResponse.from_record(record)


@router.get("/records/{record_id}", response_model=RecordResponse, responses=_NOT_FOUND)
async def read_record(
    record_id: RecordId,
    service: RecordService = Depends(get_record_service),
):
    """Get a record by identifier."""
    record = await service.read_record(record_id)
    return RecordResponse.from_record(record)


@router.put(
    "/records/{record_id}",
    response_model=RecordResponse,
    responses={**_NOT_FOUND, **_INVALID},
)
async def update_record(
    record_id: RecordId,
    body: RecordPayloadRequest,
    service: RecordService = Depends(get_record_service),
):
    """
    Replace every mutable field of a record.

    id and created_at are preserved; updated_at is set to the current time.
    """
    record = await service.update_record(record_id, body.to_payload())
    return RecordResponse.from_record(record)


@router.delete("/records/{record_id}", response_model=RecordResponse, responses=_NOT_FOUND)
async def delete_record(
    record_id: RecordId,
    service: RecordService = Depends(get_record_service),
):
    """Delete a record. Returns the removed record as a receipt."""
    record = await service.delete_record(record_id)
    return RecordResponse.from_record(record)


# --- Error handling ---


def _error_status(exc: MintDbError) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, RecordTooLargeError):
        return 413
    if isinstance(exc, RecordEncodingError):
        return 422
    return 500


async def handle_mintdb_error(request: Request, exc: MintDbError) -> JSONResponse:
    """Translate MintDbError into a JSON error response."""
    status = _error_status(exc)
    if status == 500:
        logger.error(f"Storage failure handling {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        {"error": exc.message, "error_code": exc.code},
        status_code=status,
    )


# --- Application ---


def create_http_app(
    service: RecordService | None = None,
    config: ServerConfig | None = None,
) -> FastAPI:
    """Create the HTTP application.

    Args:
        service: RecordService to serve. If omitted, one is opened from
            config when the application starts and closed on shutdown.
        config: Server configuration (loaded from env if not provided)

    Returns:
        FastAPI application
    """
    config = config or ServerConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Manage record service lifecycle."""
        if service is not None:
            yield
            return

        backend = create_storage_backend(config.storage)
        owned = RecordService.open(backend, max_record_size=config.storage.max_record_size)
        app.state.record_service = owned
        try:
            yield
        finally:
            owned.close()

    app = FastAPI(
        title="MintDB Record Server",
        description="Create, read, update and delete minted asset records.",
        version=__version__,
        lifespan=lifespan,
    )

    if service is not None:
        app.state.record_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.http.cors_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(MintDbError, handle_mintdb_error)
    app.include_router(router, prefix="/api/v1")

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "mintdb-record-server"}

    return app
