"""
Stock Inquiry - project balance reconciliation
Derives allocated/ordered/received/issued/transferred/balance figures per
material for one project from the BOM and the movement registers
"""
from typing import Any, Dict, Iterable, List, Optional, Union
from dataclasses import dataclass, field
from decimal import Decimal
import locale

from storeapp.core.exceptions import AllocationUnavailableError
from storeapp.core.logging import get_logger
from storeapp.schemas.inventory import (
    Allocation, BomLine, InwardRecord, Material, OutwardRecord, TransferRecord
)

logger = get_logger("business")

ZERO = Decimal("0")

AllocationLike = Union[Allocation, BomLine]


@dataclass
class MaterialBalance:
    """Composite row shown on the BOM, inward, outward and transfer screens"""
    material_id: str
    code: Optional[str] = None
    name: Optional[str] = None
    part_no: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    line_type: Optional[str] = None
    allocated: bool = True
    allocated_qty: Decimal = ZERO
    ordered_qty: Decimal = ZERO
    received_qty: Decimal = ZERO
    utilized_qty: Decimal = ZERO
    transferred_in_qty: Decimal = ZERO
    transferred_out_qty: Decimal = ZERO

    @property
    def issued_qty(self) -> Decimal:
        return self.utilized_qty

    @property
    def net_qty(self) -> Decimal:
        """Unclamped stock position; negative means more left than arrived"""
        return (
            self.received_qty
            - self.utilized_qty
            - self.transferred_out_qty
            + self.transferred_in_qty
        )

    @property
    def balance_qty(self) -> Decimal:
        return max(ZERO, self.net_qty)

    @property
    def over_issued(self) -> bool:
        return self.net_qty < ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            'materialId': self.material_id,
            'code': self.code,
            'name': self.name,
            'unit': self.unit,
            'allocatedQty': float(self.allocated_qty),
            'orderedQty': float(self.ordered_qty),
            'receivedQty': float(self.received_qty),
            'utilizedQty': float(self.utilized_qty),
            'transferredInQty': float(self.transferred_in_qty),
            'transferredOutQty': float(self.transferred_out_qty),
            'balanceQty': float(self.balance_qty),
            'overIssued': self.over_issued
        }


@dataclass
class ProjectBalance:
    """
    Reconciliation result for one project

    ``rows`` holds one entry per allocated material, ordered by code.
    ``orphans`` holds movement activity on materials the project has no
    allocation for; it is reported, never folded into ``rows``.
    """
    project_id: str
    rows: List[MaterialBalance] = field(default_factory=list)
    orphans: List[MaterialBalance] = field(default_factory=list)

    def row(self, material_id: Any) -> Optional[MaterialBalance]:
        key = str(material_id)
        for row in self.rows:
            if row.material_id == key:
                return row
        return None

    def is_allocated(self, material_id: Any) -> bool:
        return self.row(material_id) is not None

    def available_for_inward(self) -> List[MaterialBalance]:
        """Only allocated materials may be inwarded"""
        return list(self.rows)

    def available_for_outward(self) -> List[MaterialBalance]:
        """Only materials with stock on hand may be issued"""
        return [row for row in self.rows if row.balance_qty > ZERO]

    def available_for_transfer(self) -> List[MaterialBalance]:
        return self.available_for_outward()

    def over_issued(self) -> List[MaterialBalance]:
        return [row for row in self.rows if row.over_issued]


def _code_sort_key(row: MaterialBalance) -> str:
    return locale.strxfrm((row.code or row.material_id or "").casefold())


def allocations_from_bom(project_id: Any, bom_lines: Iterable[BomLine]) -> List[Allocation]:
    """Convert backend BOM rows into allocation entries"""
    allocations = []
    for line in bom_lines:
        if line.material_id is None:
            continue
        allocations.append(Allocation(
            project_id=str(project_id),
            material_id=line.material_id,
            required_qty=line.required_qty
        ))
    return allocations


def reconcile_project(
    project_id: Any,
    allocations: Optional[Iterable[AllocationLike]],
    inwards: Iterable[InwardRecord] = (),
    outwards: Iterable[OutwardRecord] = (),
    transfers: Iterable[TransferRecord] = (),
    materials: Optional[Iterable[Material]] = None
) -> ProjectBalance:
    """
    Build the per-material balance rows for a project

    The allocation set is the universe of rows. Inward, outward and transfer
    lines are summed per material for records touching the project; a
    transfer counts as outflow for its source project and inflow for its
    destination (both when it moves stock between two sites of one project).
    Records without a line list contribute nothing.

    Raises:
        AllocationUnavailableError: when ``allocations`` is None, i.e. the
            allocation set could not be obtained
    """
    if allocations is None:
        raise AllocationUnavailableError(project_id)

    project_key = str(project_id)
    directory = {material.id: material for material in (materials or [])}

    buckets: Dict[str, MaterialBalance] = {}

    # 1. Allocation set
    for allocation in allocations:
        if allocation.material_id is None:
            continue
        if allocation.project_id is not None and allocation.project_id != project_key:
            continue
        row = buckets.get(allocation.material_id)
        if row is None:
            row = _new_row(allocation.material_id, directory, allocation)
            buckets[allocation.material_id] = row
        # One allocation per (project, material)
        row.allocated_qty = _required_qty(allocation)

    allocated_ids = set(buckets)

    def bucket(material_id: str) -> MaterialBalance:
        row = buckets.get(material_id)
        if row is None:
            row = _new_row(material_id, directory, None)
            row.allocated = False
            buckets[material_id] = row
        return row

    # 2. Inward lines
    for record in inwards:
        if record.project_id != project_key:
            continue
        for line in record.lines or []:
            if line.material_id is None:
                continue
            row = bucket(line.material_id)
            row.ordered_qty += line.ordered_qty
            row.received_qty += line.received_qty
            _fill_labels(row, line)

    # 3. Outward lines
    for record in outwards:
        if record.project_id != project_key:
            continue
        for line in record.lines or []:
            if line.material_id is None:
                continue
            row = bucket(line.material_id)
            row.utilized_qty += line.issue_qty
            _fill_labels(row, line)

    # 4. Transfer lines
    for record in transfers:
        outgoing = record.from_project_id == project_key
        incoming = record.to_project_id == project_key
        if not (outgoing or incoming):
            continue
        for line in record.lines or []:
            if line.material_id is None:
                continue
            row = bucket(line.material_id)
            if outgoing:
                row.transferred_out_qty += line.transfer_qty
            if incoming:
                row.transferred_in_qty += line.transfer_qty
            _fill_labels(row, line)

    rows = sorted(
        (row for key, row in buckets.items() if key in allocated_ids),
        key=_code_sort_key
    )
    orphans = sorted(
        (row for key, row in buckets.items() if key not in allocated_ids),
        key=_code_sort_key
    )

    if orphans:
        logger.warning(
            f"Project {project_key}: movement activity on unallocated materials "
            f"{[row.code or row.material_id for row in orphans]}"
        )
    for row in rows:
        if row.over_issued:
            logger.warning(
                f"Project {project_key}: material {row.code or row.material_id} "
                f"is over-issued by {-row.net_qty}"
            )

    return ProjectBalance(project_id=project_key, rows=rows, orphans=orphans)


def _required_qty(allocation: AllocationLike) -> Decimal:
    if isinstance(allocation, BomLine):
        return allocation.required_qty
    return allocation.required_qty or ZERO


def _new_row(
    material_id: str,
    directory: Dict[str, Material],
    source: Optional[AllocationLike]
) -> MaterialBalance:
    row = MaterialBalance(material_id=material_id)
    material = directory.get(material_id)
    if material is not None:
        row.code = material.code
        row.name = material.name
        row.part_no = material.part_no
        row.unit = material.unit
        row.category = material.category
        row.line_type = material.line_type
    if isinstance(source, BomLine):
        row.code = row.code or source.code
        row.name = row.name or source.name
        row.part_no = row.part_no or source.part_no
        row.unit = row.unit or source.unit
        row.category = row.category or source.category
        row.line_type = row.line_type or source.line_type
    return row


def _fill_labels(row: MaterialBalance, line: Any) -> None:
    """Movement lines carry code/name/unit; use them when nothing else did"""
    row.code = row.code or getattr(line, "code", None)
    row.name = row.name or getattr(line, "name", None)
    row.unit = row.unit or getattr(line, "unit", None)
