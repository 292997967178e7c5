"""Procurement request schemas"""

from pydantic import Field, model_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from storeapp.schemas.common import CamelModel, Identifier, Quantity


class ProcurementStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ProcurementDecision(str, Enum):
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ProcurementRequest(CamelModel):
    """
    Request to raise a project's allocated quantity for a material

    ``captured_required_qty`` is the allocation at the time the request was
    raised; approving it moves the allocation to ``proposed_required_qty``.
    """
    id: Identifier
    project_id: Optional[Identifier] = None
    project_code: Optional[str] = None
    project_name: Optional[str] = None
    material_id: Optional[Identifier] = None
    material_code: Optional[str] = None
    material_name: Optional[str] = None
    captured_required_qty: Quantity = Decimal("0")
    requested_increase: Quantity = Decimal("0")
    proposed_required_qty: Optional[Quantity] = None
    reason: Optional[str] = None
    status: ProcurementStatus = ProcurementStatus.PENDING
    requested_by: Optional[str] = None
    requested_at: Optional[datetime] = None
    resolved_by: Optional[str] = None
    resolved_at: Optional[datetime] = None
    resolution_note: Optional[str] = None

    @model_validator(mode="after")
    def derive_proposed_qty(self):
        if self.proposed_required_qty is None:
            self.proposed_required_qty = self.captured_required_qty + self.requested_increase
        return self

    @property
    def is_pending(self) -> bool:
        return self.status == ProcurementStatus.PENDING


class ProcurementRequestSubmission(CamelModel):
    project_id: Identifier
    material_id: Identifier
    increase_qty: Quantity = Field(..., gt=0)
    reason: str = Field(..., min_length=1)


class DecisionSubmission(CamelModel):
    decision: ProcurementDecision
    note: Optional[str] = None
