"""
Document API router: the four fixed-shape sibling documents and their defaults.

Each kind is a single latest document read with GET and upserted with POST or
PUT. Writes are validated by the kind's pydantic model.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ValidationError

from app.document_registry import (
    DRUG_ORDERING_RESUPPLY,
    INVENTORY_DEFAULTS,
    ROLES_ACCESS,
    RTSM_INFO,
    DocumentKindConfig,
    get_defaults,
    get_document_kind,
    get_known_roles,
)
from app.services.document_store import (
    DocumentStore,
    DocumentStoreError,
    StoredDocument,
    VersionConflictError,
)
from protocol_viewer.json_sniffer import loads_strict

logger = logging.getLogger(__name__)

router = APIRouter()

VERSION_HEADER = "X-Document-Version"


# =============================================================================
# Response Models
# =============================================================================

class SaveResponse(BaseModel):
    """Response model for a document write."""
    success: bool
    message: str
    version: int
    updatedAt: str
    data: Any = None


# =============================================================================
# Helper Functions
# =============================================================================

def get_document_store(request: Request) -> DocumentStore:
    """Store created by the composition root (dependency injection)."""
    return request.app.state.document_store


async def read_json_object(request: Request) -> Dict[str, Any]:
    """Parse the request body, which must be a JSON object."""
    raw = await request.body()
    try:
        body = loads_strict(raw.decode("utf-8"))
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="Request body is not valid UTF-8")
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON format")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body


def load_or_404(store: DocumentStore, kind: DocumentKindConfig) -> StoredDocument:
    try:
        doc = store.load(kind.slug)
    except DocumentStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    if doc is None:
        logger.info(f"No stored {kind.slug} document")
        raise HTTPException(status_code=404, detail=kind.not_found_message)
    return doc


def document_response(doc: StoredDocument) -> JSONResponse:
    """The stored body, with its version in a response header."""
    return JSONResponse(content=doc.body, headers={VERSION_HEADER: str(doc.version)})


def save_document(
    store: DocumentStore,
    kind: DocumentKindConfig,
    body: Dict[str, Any],
    expected_version: Optional[int],
) -> SaveResponse:
    """Validate and upsert ``body``, mapping store errors to HTTP errors."""
    try:
        shaped = kind.validate(body)
    except ValidationError as e:
        raise HTTPException(
            status_code=422,
            detail=[{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()],
        )
    try:
        doc = store.save(kind.slug, shaped, expected_version=expected_version)
    except VersionConflictError as e:
        logger.warning(f"Rejected stale write: {e}")
        raise HTTPException(status_code=409, detail=str(e))
    except DocumentStoreError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SaveResponse(
        success=True,
        message=f"{kind.label} saved",
        version=doc.version,
        updatedAt=doc.updated_at.isoformat(),
        data=doc.body,
    )


def _kind(slug: str) -> DocumentKindConfig:
    kind = get_document_kind(slug)
    if kind is None:
        raise HTTPException(status_code=404, detail=f"Unknown document kind: {slug}")
    return kind


def _register_document_routes(slug: str):
    """GET, POST and PUT for one sibling document kind."""
    kind = _kind(slug)

    @router.get(f"/{slug}", name=f"get_{slug}")
    def get_document(store: DocumentStore = Depends(get_document_store)):
        return document_response(load_or_404(store, kind))

    async def put_document(
        request: Request,
        expected_version: Optional[int] = Query(None, ge=0),
        store: DocumentStore = Depends(get_document_store),
    ) -> SaveResponse:
        body = await read_json_object(request)
        return save_document(store, kind, body, expected_version)

    router.add_api_route(f"/{slug}", put_document, methods=["POST"], name=f"post_{slug}", response_model=SaveResponse)
    router.add_api_route(f"/{slug}", put_document, methods=["PUT"], name=f"put_{slug}", response_model=SaveResponse)


for _slug in (RTSM_INFO, ROLES_ACCESS, INVENTORY_DEFAULTS, DRUG_ORDERING_RESUPPLY):
    _register_document_routes(_slug)


# =============================================================================
# Defaults
# =============================================================================

@router.get("/defaults/{slug}")
def get_document_defaults(slug: str):
    """Seed document for a kind, from document_defaults.yaml."""
    _kind(slug)
    defaults = get_defaults(slug)
    if defaults is None:
        raise HTTPException(status_code=404, detail=f"No defaults for {slug}")
    return defaults


@router.get("/known-roles")
def list_known_roles():
    """Role types offered by the role matrix editor."""
    return {"roles": get_known_roles()}
