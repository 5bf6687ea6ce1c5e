"""
Registry of the five document kinds.

Each kind has a URL slug, a display label, the message returned when nothing
is stored yet, and (for the fixed-shape kinds) the pydantic model that
validates writes. Seed defaults are read from document_defaults.yaml.
"""

import copy
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Type

import yaml
from pydantic import BaseModel

from app.document_models import (
    DrugOrderingResupply,
    InventoryDefaults,
    RolesAccess,
    RtsmInfo,
)

logger = logging.getLogger(__name__)

DEFAULTS_YAML_PATH = Path(__file__).parent / "document_defaults.yaml"

PROTOCOL = "protocol"
RTSM_INFO = "rtsm-info"
ROLES_ACCESS = "roles-access"
INVENTORY_DEFAULTS = "inventory-defaults"
DRUG_ORDERING_RESUPPLY = "drug-ordering-resupply"


@dataclass(frozen=True)
class DocumentKindConfig:
    """Configuration for a single document kind."""

    slug: str
    label: str
    not_found_message: str
    # None for free-form documents
    model: Optional[Type[BaseModel]] = None

    @property
    def is_free_form(self) -> bool:
        return self.model is None

    def validate(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Shape ``body`` for storage.

        Raises:
            pydantic.ValidationError: If a fixed-shape body has wrong field types.
        """
        if self.model is None:
            return body
        return self.model.model_validate(body).model_dump()


DOCUMENT_KINDS: Dict[str, DocumentKindConfig] = {
    PROTOCOL: DocumentKindConfig(
        slug=PROTOCOL,
        label="Protocol",
        not_found_message="No protocol data found",
    ),
    RTSM_INFO: DocumentKindConfig(
        slug=RTSM_INFO,
        label="RTSM Info",
        not_found_message="No RTSM info found",
        model=RtsmInfo,
    ),
    ROLES_ACCESS: DocumentKindConfig(
        slug=ROLES_ACCESS,
        label="Roles & Access",
        not_found_message="No roles found",
        model=RolesAccess,
    ),
    INVENTORY_DEFAULTS: DocumentKindConfig(
        slug=INVENTORY_DEFAULTS,
        label="Inventory Defaults",
        not_found_message="No inventory found",
        model=InventoryDefaults,
    ),
    DRUG_ORDERING_RESUPPLY: DocumentKindConfig(
        slug=DRUG_ORDERING_RESUPPLY,
        label="Drug Ordering / Resupply",
        not_found_message="No drug ordering resupply data found",
        model=DrugOrderingResupply,
    ),
}


def get_document_kind(slug: str) -> Optional[DocumentKindConfig]:
    """Get configuration for a specific kind."""
    return DOCUMENT_KINDS.get(slug)


def get_document_slugs() -> List[str]:
    """Get all kind slugs in display order."""
    return list(DOCUMENT_KINDS.keys())


# =============================================================================
# DEFAULTS
# =============================================================================

def load_document_defaults(path: Path = DEFAULTS_YAML_PATH) -> Dict[str, Any]:
    """
    Load seed defaults from YAML.

    Returns:
        The parsed file, or an empty dict if it is missing.
    """
    if not path.exists():
        logger.warning(f"Document defaults not found at {path}")
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


_DEFAULTS = load_document_defaults()


def get_defaults(slug: str) -> Optional[Dict[str, Any]]:
    """Validated copy of the seed document for ``slug``, or None."""
    raw = _DEFAULTS.get("defaults", {}).get(slug)
    kind = get_document_kind(slug)
    if raw is None or kind is None:
        return None
    return kind.validate(copy.deepcopy(raw))


def get_known_roles() -> List[str]:
    """Closed list of role types offered by the role matrix editor."""
    return list(_DEFAULTS.get("known_roles", []))
