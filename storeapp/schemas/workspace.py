"""Workspace bootstrap snapshot"""

from pydantic import Field
from typing import Dict, List, Optional

from storeapp.schemas.common import CamelModel
from storeapp.schemas.auth import UserProfile
from storeapp.schemas.inventory import (
    BomLine, InventoryCodes, InwardRecord, Material, OutwardRecord, Project,
    TransferRecord
)
from storeapp.schemas.procurement import ProcurementRequest


class BootstrapSnapshot(CamelModel):
    """Everything the workspace screens need, in one response"""
    user: Optional[UserProfile] = None
    projects: List[Project] = Field(default_factory=list)
    assigned_projects: List[Project] = Field(default_factory=list)
    bom: Dict[str, List[BomLine]] = Field(default_factory=dict)
    materials: List[Material] = Field(default_factory=list)
    inward_history: List[InwardRecord] = Field(default_factory=list)
    outward_history: List[OutwardRecord] = Field(default_factory=list)
    transfer_history: List[TransferRecord] = Field(default_factory=list)
    procurement_requests: List[ProcurementRequest] = Field(default_factory=list)
    inventory_codes: InventoryCodes = Field(default_factory=InventoryCodes)
