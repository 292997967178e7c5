"""
Store Workspace Schemas
Pydantic models for backend payloads and submissions
"""

from .common import CamelModel, Identifier, Page, Quantity, normalize_filter_values
from .inventory import (
    Allocation, AllocationLineInput, BomLine, InventoryCodes, InwardLine,
    InwardLineSubmission, InwardRecord, InwardSubmission, InwardType, Material,
    MaterialCreate, MaterialMovements, MaterialUpdate, OutwardLine,
    OutwardLineSubmission, OutwardRecord, OutwardStatus, OutwardSubmission,
    Project, ProjectCreate, TransferLine, TransferLineSubmission,
    TransferRecord, TransferSubmission
)
from .procurement import (
    DecisionSubmission, ProcurementDecision, ProcurementRequest,
    ProcurementRequestSubmission, ProcurementStatus
)
from .auth import AccessType, LoginRequest, LoginResponse, UserPayload, UserProfile
from .workspace import BootstrapSnapshot

__all__ = [
    # Common
    "CamelModel", "Identifier", "Page", "Quantity", "normalize_filter_values",

    # Inventory
    "Allocation", "AllocationLineInput", "BomLine", "InventoryCodes",
    "InwardLine", "InwardLineSubmission", "InwardRecord", "InwardSubmission",
    "InwardType", "Material", "MaterialCreate", "MaterialMovements",
    "MaterialUpdate", "OutwardLine", "OutwardLineSubmission", "OutwardRecord",
    "OutwardStatus", "OutwardSubmission", "Project", "ProjectCreate",
    "TransferLine", "TransferLineSubmission", "TransferRecord",
    "TransferSubmission",

    # Procurement
    "DecisionSubmission", "ProcurementDecision", "ProcurementRequest",
    "ProcurementRequestSubmission", "ProcurementStatus",

    # Auth
    "AccessType", "LoginRequest", "LoginResponse", "UserPayload", "UserProfile",

    # Workspace
    "BootstrapSnapshot",
]
