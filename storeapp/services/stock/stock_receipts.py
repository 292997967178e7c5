"""
Stock Receipts - inward register submission
Builds the inward payload from the materials picked on the form
"""
from typing import Any, Optional
from dataclasses import dataclass, field
from datetime import date

from storeapp.schemas.inventory import InwardLineSubmission, InwardSubmission, InwardType
from storeapp.services.stock.stock_inquiry import ProjectBalance
from storeapp.services.stock.stock_movements import (
    NO_INWARD_LINES, NO_PROJECT, ZERO, LineSelection, logger, normalize_id, reject
)

INWARD_FIELDS = ("ordered_qty", "received_qty")


@dataclass
class InwardDraft:
    """Inward register form state"""
    project_id: Optional[str] = None
    type: InwardType = InwardType.SUPPLY
    invoice_no: Optional[str] = None
    invoice_date: Optional[date] = None
    delivery_date: Optional[date] = None
    vehicle_no: Optional[str] = None
    supplier_name: Optional[str] = None
    remarks: Optional[str] = None
    selection: LineSelection = field(default_factory=lambda: LineSelection(INWARD_FIELDS))

    def set_project(self, project_id: Any) -> None:
        """Switching project drops the materials picked for the old one"""
        project_id = normalize_id(project_id)
        if project_id != self.project_id:
            self.selection.clear()
        self.project_id = project_id

    def set_line(self, material_id: Any, ordered_qty: Any = None, received_qty: Any = None) -> bool:
        return self.selection.set_line(material_id, ordered_qty=ordered_qty, received_qty=received_qty)

    def reset_header(self) -> None:
        """Clear per-entry fields after a successful save, keeping the project"""
        self.invoice_no = None
        self.invoice_date = None
        self.delivery_date = None
        self.vehicle_no = None
        self.supplier_name = None
        self.remarks = None
        self.selection.clear()


def build_inward_submission(
    draft: InwardDraft,
    balance: ProjectBalance,
    code: Optional[str] = None
) -> InwardSubmission:
    """
    Validate an inward draft and build its payload

    Only materials allocated to the project are kept. An empty ordered
    quantity defaults to the received quantity.

    Raises:
        MovementRejected: no project selected or no line left to submit
    """
    if not draft.project_id:
        reject(NO_PROJECT, "Inward")

    lines = []
    for material_id, values in draft.selection.items():
        received = values["received_qty"]
        ordered = values["ordered_qty"] if values["ordered_qty"] > ZERO else received
        if ordered <= ZERO and received <= ZERO:
            continue
        if not balance.is_allocated(material_id):
            logger.warning(
                f"Inward: material {material_id} is not allocated to project "
                f"{draft.project_id}; line dropped"
            )
            continue
        lines.append(InwardLineSubmission(
            material_id=material_id,
            ordered_qty=max(ordered, ZERO),
            received_qty=max(received, ZERO)
        ))

    if not lines:
        reject(NO_INWARD_LINES, "Inward")

    return InwardSubmission(
        code=code or None,
        project_id=draft.project_id,
        type=draft.type,
        invoice_no=draft.invoice_no or None,
        invoice_date=draft.invoice_date,
        delivery_date=draft.delivery_date,
        vehicle_no=draft.vehicle_no or None,
        remarks=draft.remarks or None,
        supplier_name=draft.supplier_name or None,
        lines=lines
    )
