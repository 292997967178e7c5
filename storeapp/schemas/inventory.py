"""Materials, projects, BOM allocations and movement register schemas"""

from pydantic import Field, field_validator, model_validator
from typing import Dict, List, Optional
from datetime import date
from decimal import Decimal
from enum import Enum

from storeapp.schemas.common import CamelModel, Identifier, Quantity


# Enums
class InwardType(str, Enum):
    SUPPLY = "SUPPLY"
    RETURN = "RETURN"


class OutwardStatus(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"


# Reference data
class Material(CamelModel):
    id: Identifier
    code: str
    name: str
    part_no: Optional[str] = None
    line_type: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    required_qty: Optional[Quantity] = None
    ordered_qty: Optional[Quantity] = None
    received_qty: Optional[Quantity] = None
    utilized_qty: Optional[Quantity] = None
    balance_qty: Optional[Quantity] = None


class MaterialCreate(CamelModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    part_no: Optional[str] = None
    line_type: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None

    @field_validator("code", "name")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class MaterialUpdate(CamelModel):
    code: Optional[str] = None
    name: Optional[str] = None
    part_no: Optional[str] = None
    line_type: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None


class Project(CamelModel):
    id: Identifier
    code: Optional[str] = None
    name: str


class ProjectCreate(CamelModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


# BOM / allocations
class BomLine(CamelModel):
    """
    One allocation row as the backend returns it for a project

    ``qty`` and ``allocated_qty`` both carry the required quantity; older
    backends send only one of them.
    """
    id: Optional[Identifier] = None
    project_id: Optional[Identifier] = None
    material_id: Optional[Identifier] = None
    code: Optional[str] = None
    name: Optional[str] = None
    part_no: Optional[str] = None
    line_type: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    qty: Optional[Quantity] = None
    allocated_qty: Optional[Quantity] = None
    ordered_qty: Optional[Quantity] = None
    received_qty: Optional[Quantity] = None
    issued_qty: Optional[Quantity] = None
    balance_qty: Optional[Quantity] = None

    @model_validator(mode="after")
    def fill_material_id(self):
        # Some payloads only carry the material's id as ``id``
        if self.material_id is None and self.id is not None:
            self.material_id = self.id
        return self

    @property
    def required_qty(self) -> Decimal:
        if self.allocated_qty is not None:
            return self.allocated_qty
        return self.qty if self.qty is not None else Decimal("0")


class Allocation(CamelModel):
    """Planned total quantity of a material for a project"""
    project_id: Identifier
    material_id: Identifier
    required_qty: Quantity = Decimal("0")


class AllocationLineInput(CamelModel):
    material_id: Identifier
    quantity: Quantity


# Inward
class InwardLine(CamelModel):
    id: Optional[Identifier] = None
    material_id: Optional[Identifier] = None
    code: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    ordered_qty: Quantity = Decimal("0")
    received_qty: Quantity = Decimal("0")


class InwardRecord(CamelModel):
    id: Optional[Identifier] = None
    project_id: Optional[Identifier] = None
    project_name: Optional[str] = None
    code: Optional[str] = None
    type: Optional[InwardType] = None
    entry_date: Optional[date] = Field(None, alias="date")
    delivery_date: Optional[date] = None
    invoice_no: Optional[str] = None
    supplier_name: Optional[str] = None
    items: Optional[int] = None
    lines: Optional[List[InwardLine]] = None


class InwardLineSubmission(CamelModel):
    material_id: Identifier
    ordered_qty: Quantity
    received_qty: Quantity


class InwardSubmission(CamelModel):
    code: Optional[str] = None
    project_id: Identifier
    type: InwardType = InwardType.SUPPLY
    invoice_no: Optional[str] = None
    invoice_date: Optional[date] = None
    delivery_date: Optional[date] = None
    vehicle_no: Optional[str] = None
    remarks: Optional[str] = None
    supplier_name: Optional[str] = None
    lines: List[InwardLineSubmission]


# Outward
class OutwardLine(CamelModel):
    id: Optional[Identifier] = None
    material_id: Optional[Identifier] = None
    code: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    issue_qty: Quantity = Decimal("0")


class OutwardRecord(CamelModel):
    id: Optional[Identifier] = None
    project_id: Optional[Identifier] = None
    project_name: Optional[str] = None
    code: Optional[str] = None
    entry_date: Optional[date] = Field(None, alias="date")
    issue_to: Optional[str] = None
    status: Optional[OutwardStatus] = None
    close_date: Optional[date] = None
    items: Optional[int] = None
    lines: Optional[List[OutwardLine]] = None


class OutwardLineSubmission(CamelModel):
    material_id: Identifier
    issue_qty: Quantity


class OutwardSubmission(CamelModel):
    code: Optional[str] = None
    project_id: Identifier
    issue_to: str
    status: OutwardStatus = OutwardStatus.OPEN
    entry_date: Optional[date] = Field(None, alias="date")
    close_date: Optional[date] = None
    lines: List[OutwardLineSubmission]


# Transfer
class TransferLine(CamelModel):
    id: Optional[Identifier] = None
    material_id: Optional[Identifier] = None
    code: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    transfer_qty: Quantity = Decimal("0")


class TransferRecord(CamelModel):
    id: Optional[Identifier] = None
    code: Optional[str] = None
    from_project_id: Optional[Identifier] = None
    from_project_name: Optional[str] = None
    from_site: Optional[str] = None
    to_project_id: Optional[Identifier] = None
    to_project_name: Optional[str] = None
    to_site: Optional[str] = None
    transfer_date: Optional[date] = None
    remarks: Optional[str] = None
    lines: Optional[List[TransferLine]] = None


class TransferLineSubmission(CamelModel):
    material_id: Identifier
    transfer_qty: Quantity


class TransferSubmission(CamelModel):
    code: Optional[str] = None
    from_project_id: Identifier
    to_project_id: Identifier
    from_site: Optional[str] = None
    to_site: Optional[str] = None
    remarks: Optional[str] = None
    lines: List[TransferLineSubmission]


# Register codes and material history
class InventoryCodes(CamelModel):
    inward_code: Optional[str] = None
    outward_code: Optional[str] = None
    transfer_code: Optional[str] = None


class MaterialMovements(CamelModel):
    inwards: List[InwardRecord] = Field(default_factory=list)
    outwards: List[OutwardRecord] = Field(default_factory=list)


BomByProject = Dict[str, List[BomLine]]
