"""
Stock Issues - outward register submission
Builds the outward payload for materials issued out of a project's stock
"""
from typing import Any, Optional
from dataclasses import dataclass, field
from datetime import date

from storeapp.schemas.inventory import OutwardLineSubmission, OutwardStatus, OutwardSubmission
from storeapp.services.stock.stock_inquiry import ProjectBalance
from storeapp.services.stock.stock_movements import (
    NO_ISSUE_TO, NO_OUTWARD_LINES, NO_PROJECT, ZERO, LineSelection, logger,
    normalize_id, reject
)

OUTWARD_FIELDS = ("issue_qty",)


@dataclass
class OutwardDraft:
    """Outward register form state"""
    project_id: Optional[str] = None
    issue_to: str = ""
    status: OutwardStatus = OutwardStatus.OPEN
    entry_date: date = field(default_factory=date.today)
    close_date: Optional[date] = None
    selection: LineSelection = field(default_factory=lambda: LineSelection(OUTWARD_FIELDS))

    def set_project(self, project_id: Any) -> None:
        project_id = normalize_id(project_id)
        if project_id != self.project_id:
            self.selection.clear()
        self.project_id = project_id

    def set_line(self, material_id: Any, issue_qty: Any = None) -> bool:
        return self.selection.set_line(material_id, issue_qty=issue_qty)

    def reset_header(self) -> None:
        self.issue_to = ""
        self.status = OutwardStatus.OPEN
        self.close_date = None
        self.selection.clear()


def build_outward_submission(
    draft: OutwardDraft,
    balance: ProjectBalance,
    code: Optional[str] = None
) -> OutwardSubmission:
    """
    Validate an outward draft and build its payload

    Only materials with a positive balance in the project survive.

    Raises:
        MovementRejected: no project, no recipient, or no line left to submit
    """
    if not draft.project_id:
        reject(NO_PROJECT, "Outward")
    issue_to = (draft.issue_to or "").strip()
    if not issue_to:
        reject(NO_ISSUE_TO, "Outward")

    in_stock = {row.material_id for row in balance.available_for_outward()}

    lines = []
    for material_id, values in draft.selection.items():
        issue_qty = values["issue_qty"]
        if issue_qty <= ZERO:
            continue
        if material_id not in in_stock:
            logger.warning(
                f"Outward: material {material_id} has no balance in project "
                f"{draft.project_id}; line dropped"
            )
            continue
        lines.append(OutwardLineSubmission(material_id=material_id, issue_qty=issue_qty))

    if not lines:
        reject(NO_OUTWARD_LINES, "Outward")

    return OutwardSubmission(
        code=code or None,
        project_id=draft.project_id,
        issue_to=issue_to,
        status=draft.status,
        entry_date=draft.entry_date,
        close_date=draft.close_date if draft.status == OutwardStatus.CLOSED else None,
        lines=lines
    )
