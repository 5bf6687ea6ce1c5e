"""
HTTP client for the protocol extraction backend.

Every failure (connection error, timeout, non-2xx response, unparseable
body) surfaces as ProtocolApiError so pages can fall back to the session
mirror or keep the local edit.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import requests

from dashboard.config import get_dashboard_settings

logger = logging.getLogger(__name__)

VERSION_HEADER = "X-Document-Version"


class ProtocolApiError(Exception):
    """A backend call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_conflict(self) -> bool:
        return self.status_code == 409


@dataclass
class FetchedDocument:
    body: Any
    version: Optional[int] = None


def document_path(slug: str) -> str:
    return f"/api/{slug}"


class ProtocolApiClient:
    """Thin wrapper around the REST API with one requests.Session."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None, session=None):
        settings = get_dashboard_settings()
        self.base_url = (base_url or settings.api_base).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.api_timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            response = self._session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ProtocolApiError(f"Backend unavailable: {e}") from e
        if response.status_code >= 400:
            detail = _error_detail(response)
            logger.warning(f"{method} {path} returned {response.status_code}: {detail}")
            raise ProtocolApiError(detail, status_code=response.status_code)
        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ProtocolApiError(f"Backend returned invalid JSON: {e}", response.status_code) from e

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def get_document(self, slug: str) -> Optional[FetchedDocument]:
        """Latest document of ``slug``, or None when the backend has none."""
        try:
            response = self._request("GET", document_path(slug))
        except ProtocolApiError as e:
            if e.status_code == 404:
                return None
            raise
        version = response.headers.get(VERSION_HEADER)
        return FetchedDocument(body=self._json(response), version=int(version) if version else None)

    def save_document(self, slug: str, body: Dict[str, Any], expected_version: Optional[int] = None) -> Dict[str, Any]:
        params = {"expected_version": expected_version} if expected_version is not None else None
        return self._json(self._request("POST", document_path(slug), json=body, params=params))

    def clear_protocol(self) -> Dict[str, Any]:
        return self._json(self._request("DELETE", document_path("protocol")))

    def upload_protocol(self, filename: str, content: bytes) -> Dict[str, Any]:
        """Send a protocol JSON file as multipart form data."""
        files = {"file": (filename, content, "application/json")}
        return self._json(self._request("POST", "/api/protocol/upload", files=files))

    # ------------------------------------------------------------------
    # Reference data
    # ------------------------------------------------------------------

    def get_defaults(self, slug: str) -> Optional[Dict[str, Any]]:
        try:
            return self._json(self._request("GET", f"/api/defaults/{slug}"))
        except ProtocolApiError as e:
            if e.status_code == 404:
                return None
            raise

    def get_known_roles(self) -> List[str]:
        return self._json(self._request("GET", "/api/known-roles")).get("roles", [])

    def status(self) -> Dict[str, Any]:
        return self._json(self._request("GET", "/status"))


def _error_detail(response: requests.Response) -> str:
    """Human-readable message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        return "; ".join(
            f"{'.'.join(str(p) for p in item.get('loc', []))}: {item.get('msg', '')}" for item in detail
        )
    return str(detail or body)
