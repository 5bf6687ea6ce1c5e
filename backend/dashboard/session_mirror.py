"""
Tab-session mirror of the dashboard's documents, and the load/save policy
that combines it with the backend.

Reads try the backend first, then the mirror, then (for the sibling kinds)
the seed defaults. Saves write the mirror first so a failed backend call
never loses the user's edit.
"""

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, MutableMapping, Optional, cast

import streamlit as st

from dashboard.api_client import ProtocolApiClient, ProtocolApiError

logger = logging.getLogger(__name__)

MIRROR_PREFIX = "mirror::"

# Used when no Streamlit script context exists (unit tests, scripts)
_FAKE_STREAMLIT_SESSION: Dict[str, Any] = {}


def _get_session_state() -> MutableMapping[str, Any]:
    """The active Streamlit session_state, or a module-level dict outside a runtime."""
    try:
        return cast(MutableMapping[str, Any], st.session_state)
    except RuntimeError:
        return _FAKE_STREAMLIT_SESSION


class SessionMirror:
    """Best-effort copy of each document kind, scoped to the browser tab session."""

    def __init__(self, state: Optional[MutableMapping[str, Any]] = None):
        self._state = state if state is not None else _get_session_state()

    @staticmethod
    def _key(slug: str) -> str:
        return f"{MIRROR_PREFIX}{slug}"

    def read(self, slug: str) -> Optional[Any]:
        value = self._state.get(self._key(slug))
        return copy.deepcopy(value) if value is not None else None

    def write(self, slug: str, body: Any) -> None:
        self._state[self._key(slug)] = copy.deepcopy(body)

    def clear(self, slug: str) -> None:
        self._state.pop(self._key(slug), None)


@dataclass
class LoadResult:
    """A document and where it came from: api, mirror, defaults or none."""
    body: Any
    source: str
    version: Optional[int] = None
    error: Optional[str] = None

    @property
    def found(self) -> bool:
        return self.source != "none"


@dataclass
class SaveResult:
    saved_remotely: bool
    version: Optional[int] = None
    error: Optional[str] = None
    conflict: bool = False


class DocumentSync:
    """Load/save policy for one dashboard session."""

    def __init__(
        self,
        client: ProtocolApiClient,
        mirror: SessionMirror,
        local_defaults: Optional[Callable[[str], Optional[Dict[str, Any]]]] = None,
    ):
        self.client = client
        self.mirror = mirror
        self._local_defaults = local_defaults
        self.versions: Dict[str, Optional[int]] = {}

    def load(self, slug: str, use_defaults: bool = False) -> LoadResult:
        """Backend first, then the mirror, then seed defaults if asked."""
        error = None
        try:
            fetched = self.client.get_document(slug)
            if fetched is not None:
                self.versions[slug] = fetched.version
                self.mirror.write(slug, fetched.body)
                return LoadResult(fetched.body, "api", fetched.version)
        except ProtocolApiError as e:
            error = str(e)
            logger.warning(f"Falling back to session mirror for {slug}: {e}")

        mirrored = self.mirror.read(slug)
        if mirrored is not None:
            return LoadResult(mirrored, "mirror", error=error)

        if use_defaults:
            defaults = self._defaults(slug)
            if defaults is not None:
                return LoadResult(defaults, "defaults", error=error)
        return LoadResult(None, "none", error=error)

    def _defaults(self, slug: str) -> Optional[Dict[str, Any]]:
        try:
            defaults = self.client.get_defaults(slug)
            if defaults is not None:
                return defaults
        except ProtocolApiError as e:
            logger.info(f"Backend defaults for {slug} unavailable: {e}")
        return self._local_defaults(slug) if self._local_defaults else None

    def save(self, slug: str, body: Dict[str, Any], check_version: bool = False) -> SaveResult:
        """
        Mirror ``body`` then push it to the backend.

        With ``check_version`` the write only succeeds if nobody saved since
        this session last loaded or saved the kind.
        """
        self.mirror.write(slug, body)
        expected = self.versions.get(slug) if check_version else None
        try:
            response = self.client.save_document(slug, body, expected_version=expected)
        except ProtocolApiError as e:
            logger.warning(f"Saving {slug} to backend failed, kept in session: {e}")
            return SaveResult(False, error=str(e), conflict=e.is_conflict)
        version = response.get("version")
        self.versions[slug] = version
        return SaveResult(True, version=version)

    def clear_protocol(self) -> SaveResult:
        self.mirror.write("protocol", {})
        try:
            response = self.client.clear_protocol()
        except ProtocolApiError as e:
            logger.warning(f"Clearing protocol on backend failed: {e}")
            return SaveResult(False, error=str(e))
        self.versions["protocol"] = response.get("version")
        return SaveResult(True, version=response.get("version"))
