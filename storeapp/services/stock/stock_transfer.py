"""
Stock Transfer - site/project transfer submission
Builds the transfer payload moving stock between projects or sites
"""
from typing import Any, Optional
from dataclasses import dataclass, field

from storeapp.schemas.inventory import TransferLineSubmission, TransferSubmission
from storeapp.services.stock.stock_inquiry import ProjectBalance
from storeapp.services.stock.stock_movements import (
    NO_DESTINATION_PROJECT, NO_SOURCE_PROJECT, NO_TRANSFER_LINES, SAME_SITE,
    SITES_REQUIRED, ZERO, LineSelection, logger, normalize_id, reject
)

TRANSFER_FIELDS = ("transfer_qty",)


@dataclass
class TransferDraft:
    """Transfer form state"""
    from_project_id: Optional[str] = None
    to_project_id: Optional[str] = None
    from_site: str = ""
    to_site: str = ""
    remarks: Optional[str] = None
    selection: LineSelection = field(default_factory=lambda: LineSelection(TRANSFER_FIELDS))

    def set_source(self, project_id: Any) -> None:
        """Picked materials belong to the source project's stock"""
        project_id = normalize_id(project_id)
        if project_id != self.from_project_id:
            self.selection.clear()
        self.from_project_id = project_id

    def set_destination(self, project_id: Any) -> None:
        self.to_project_id = normalize_id(project_id)

    def set_line(self, material_id: Any, transfer_qty: Any = None) -> bool:
        return self.selection.set_line(material_id, transfer_qty=transfer_qty)

    def reset_header(self) -> None:
        self.from_site = ""
        self.to_site = ""
        self.remarks = None
        self.selection.clear()


def build_transfer_submission(
    draft: TransferDraft,
    balance: ProjectBalance,
    code: Optional[str] = None
) -> TransferSubmission:
    """
    Validate a transfer draft and build its payload

    ``balance`` is the source project's reconciliation; only materials with a
    positive balance there may be transferred. A transfer inside one project
    needs two different site names (compared case-insensitively).

    Raises:
        MovementRejected: missing source/destination, identical
            project and site, or no line left to submit
    """
    if not draft.from_project_id:
        reject(NO_SOURCE_PROJECT, "Transfer")
    if not draft.to_project_id:
        reject(NO_DESTINATION_PROJECT, "Transfer")

    from_site = (draft.from_site or "").strip()
    to_site = (draft.to_site or "").strip()
    if draft.from_project_id == draft.to_project_id:
        if not from_site or not to_site:
            reject(SITES_REQUIRED, "Transfer")
        if from_site.casefold() == to_site.casefold():
            reject(SAME_SITE, "Transfer")

    in_stock = {row.material_id for row in balance.available_for_transfer()}

    lines = []
    for material_id, values in draft.selection.items():
        transfer_qty = values["transfer_qty"]
        if transfer_qty <= ZERO:
            continue
        if material_id not in in_stock:
            logger.warning(
                f"Transfer: material {material_id} has no balance in project "
                f"{draft.from_project_id}; line dropped"
            )
            continue
        lines.append(TransferLineSubmission(material_id=material_id, transfer_qty=transfer_qty))

    if not lines:
        reject(NO_TRANSFER_LINES, "Transfer")

    return TransferSubmission(
        code=code or None,
        from_project_id=draft.from_project_id,
        to_project_id=draft.to_project_id,
        from_site=from_site or None,
        to_site=to_site or None,
        remarks=draft.remarks or None,
        lines=lines
    )
