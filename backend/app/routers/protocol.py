"""
Protocol router for JSON upload and the free-form protocol document.

Endpoints:
- POST /upload - Upload a protocol JSON file (normalized before storing)
- GET / - Latest protocol document
- POST, PUT / - Replace the protocol document
- DELETE / - Clear the protocol document
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from pydantic import BaseModel

from app.config import settings
from app.document_registry import PROTOCOL, get_document_kind
from app.routers.documents import (
    SaveResponse,
    document_response,
    get_document_store,
    load_or_404,
    read_json_object,
    save_document,
)
from app.services.document_store import DocumentStore
from protocol_viewer import ProtocolUploadError, normalize_protocol_data, parse_protocol_bytes

logger = logging.getLogger(__name__)

router = APIRouter()

PROTOCOL_KIND = get_document_kind(PROTOCOL)


# =============================================================================
# Response Models
# =============================================================================

class UploadResponse(BaseModel):
    """Response model for protocol upload."""
    success: bool
    message: str
    version: int
    sections: int


# =============================================================================
# Helper Functions
# =============================================================================

def parse_protocol_upload(data: bytes) -> dict:
    """
    Decode and parse uploaded bytes as one JSON object.

    Raises:
        HTTPException: 400 if the bytes are empty, not UTF-8, not JSON, or
            not a JSON object. Nothing is stored in that case.
    """
    try:
        return parse_protocol_bytes(data)
    except ProtocolUploadError as e:
        logger.warning(f"Rejected upload: {e}")
        raise HTTPException(status_code=400, detail=str(e))


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/upload", response_model=UploadResponse)
async def upload_protocol(
    file: Optional[UploadFile] = File(None),
    expected_version: Optional[int] = Query(None, ge=0),
    store: DocumentStore = Depends(get_document_store),
):
    """
    Upload a protocol JSON file.

    Embedded JSON strings are unwrapped before the document replaces the
    stored protocol.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file uploaded")
    logger.info(f"File upload received: {file.filename}")

    data = await file.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        logger.warning(f"Rejected {file.filename}: larger than {settings.max_upload_bytes} bytes")
        raise HTTPException(status_code=413, detail="File too large")

    document = normalize_protocol_data(parse_protocol_upload(data))
    saved = save_document(store, PROTOCOL_KIND, document, expected_version)
    logger.info(f"Stored {file.filename} as protocol version {saved.version}")

    return UploadResponse(
        success=True,
        message="Protocol JSON uploaded successfully",
        version=saved.version,
        sections=len(document),
    )


@router.get("")
async def get_protocol(store: DocumentStore = Depends(get_document_store)):
    """Get the latest protocol document."""
    return document_response(load_or_404(store, PROTOCOL_KIND))


@router.post("", response_model=SaveResponse)
@router.put("", response_model=SaveResponse)
async def save_protocol(
    request: Request,
    expected_version: Optional[int] = Query(None, ge=0),
    store: DocumentStore = Depends(get_document_store),
):
    """Replace the protocol document with the request body, stored as sent."""
    body = await read_json_object(request)
    return save_document(store, PROTOCOL_KIND, body, expected_version)


@router.delete("", response_model=SaveResponse)
async def clear_protocol(
    expected_version: Optional[int] = Query(None, ge=0),
    store: DocumentStore = Depends(get_document_store),
):
    """Clear the protocol document. The kind stays present, with an empty body."""
    logger.info("Clearing protocol document")
    return save_document(store, PROTOCOL_KIND, {}, expected_version)
