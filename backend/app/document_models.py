"""
Pydantic models for the fixed-shape sibling documents.

The protocol document itself is free-form JSON and has no model. The other
four kinds are validated on write: unknown top-level fields are dropped and
missing fields take the defaults below.
"""

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field


BuiltOn = Literal["Pulse", "Elosity", ""]


# =============================================================================
# RTSM INFO
# =============================================================================

class RtsmInfo(BaseModel):
    """Protocol identity plus the free-form RTSM form contents."""
    protocolNumber: str = ""
    protocolDescription: str = ""
    builtOn: BuiltOn = ""
    formData: Dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# ROLES & ACCESS
# =============================================================================

class SystemRole(BaseModel):
    roleType: str = ""
    permissionLevel: str = ""
    blindedStatus: Literal["Blinded", "Unblinded"] = "Unblinded"
    prmRole: str = ""


class RoleMatrixEntry(BaseModel):
    """Roles that a user of ``addingUser`` type may grant."""
    addingUser: str = ""
    allowedRoles: List[str] = Field(default_factory=list)


class RolesAccess(BaseModel):
    systemRoles: List[SystemRole] = Field(default_factory=list)
    roleMatrix: List[RoleMatrixEntry] = Field(default_factory=list)


# =============================================================================
# INVENTORY DEFAULTS
# =============================================================================

class LimitRow(BaseModel):
    """Study-wide or site-level setting with its default and limit flag."""
    data: str = ""
    default: str = ""
    limit: str = ""


class InventoryRow(BaseModel):
    data: str = ""
    default: str = ""


class SupplyDepotRow(BaseModel):
    depotId: str = ""
    location: str = ""
    shipsCountries: str = ""
    shipsDepots: str = ""
    drugRelease: str = ""
    integration: str = ""
    address: str = ""


class ReturnDepotRow(BaseModel):
    depotId: str = ""
    location: str = ""
    shipsCountries: str = ""
    address: str = ""


class InventoryDefaults(BaseModel):
    studyRows: List[LimitRow] = Field(default_factory=list)
    siteRows: List[LimitRow] = Field(default_factory=list)
    invRows: List[InventoryRow] = Field(default_factory=list)
    supplyRows: List[SupplyDepotRow] = Field(default_factory=list)
    returnRows: List[ReturnDepotRow] = Field(default_factory=list)


# =============================================================================
# DRUG ORDERING / RESUPPLY
# =============================================================================

class ShipmentTypes(BaseModel):
    initial: bool = False
    threshold: bool = False
    predictive: bool = False
    bundling: bool = False
    manual: bool = False


class BundlingAllowed(BaseModel):
    initial: bool = False
    threshold: bool = False
    predictive: bool = False
    manual: bool = False


class PartialShipments(BaseModel):
    initial: bool = False
    threshold: bool = False
    predictive: bool = False
    bundled: bool = False


class SpecialConditions(BaseModel):
    allowOneKit: bool = False
    ruleA: bool = False
    ruleB: bool = False


class PredictiveRule(BaseModel):
    schedule: str = ""
    visitType: str = ""
    projections: str = ""


class Couriers(BaseModel):
    fedex: bool = False
    ups: bool = False
    dhl: bool = False
    usps: bool = False
    world: bool = False
    tnt: bool = False
    speed: bool = False
    marken: bool = False
    other: bool = False
    otherText: str = ""


class KitStatusInExpiry(BaseModel):
    available: bool = False
    dnd: bool = False
    dns: bool = False
    qTransit: bool = False
    qOnSite: bool = False


class DrugOrderingResupply(BaseModel):
    """Shipment, trigger, courier and alert settings for drug resupply."""
    shipmentNumberText: str = ""
    shipmentTypes: ShipmentTypes = Field(default_factory=ShipmentTypes)
    defaultInitialTrigger: str = ""
    thresholdResupply: str = ""
    predictiveTrigger: str = ""
    defaultSupplyStrategy: str = ""
    bundlingAllowed: BundlingAllowed = Field(default_factory=BundlingAllowed)
    shipmentBundlingText: str = ""
    partialShipments: PartialShipments = Field(default_factory=PartialShipments)
    specialConditions: SpecialConditions = Field(default_factory=SpecialConditions)
    predictiveRules: List[PredictiveRule] = Field(default_factory=list)
    manualLotsToDisplay: str = ""
    supplyCouriers: Couriers = Field(default_factory=Couriers)
    returnCouriers: Couriers = Field(default_factory=Couriers)
    largeShipmentQty: str = ""
    largeShipmentNote: str = ""
    unackShipmentAlert: str = ""
    unackReturnAlert: str = ""
    expiryAlertSite: str = ""
    expiryAlertDepot: str = ""
    kitStatusInExpiry: KitStatusInExpiry = Field(default_factory=KitStatusInExpiry)
    siteInventoryAlert: str = ""
    depotInventoryAlert: str = ""
    depotAlertFootnote: str = ""
