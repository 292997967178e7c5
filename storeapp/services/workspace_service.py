"""
Workspace Service
Project workspace state: bootstrap snapshot, register submissions,
procurement requests and per-material movement history
"""
from typing import Any, Dict, List, Optional, Tuple
from decimal import Decimal

from storeapp.core.exceptions import AllocationUnavailableError, ValidationError
from storeapp.core.logging import get_logger
from storeapp.schemas.inventory import (
    BomLine, InventoryCodes, InwardRecord, Material, MaterialMovements, OutwardRecord,
    Project, TransferRecord
)
from storeapp.schemas.procurement import ProcurementRequest, ProcurementRequestSubmission
from storeapp.schemas.workspace import BootstrapSnapshot
from storeapp.services.base import BaseStore, STALE
from storeapp.services.stock.stock_inquiry import ProjectBalance, reconcile_project
from storeapp.services.stock.stock_issues import OutwardDraft, build_outward_submission
from storeapp.services.stock.stock_movements import normalize_id, to_quantity
from storeapp.services.stock.stock_receipts import InwardDraft, build_inward_submission
from storeapp.services.stock.stock_transfer import TransferDraft, build_transfer_submission

logger = get_logger("business")

PROCUREMENT_REQUIRED = "Project, material, quantity and reason are required"


class WorkspaceStore(BaseStore):
    """
    Cached bootstrap snapshot for the signed-in user

    Register submissions go through the submission gate against the current
    reconciliation, then the snapshot and the register codes are reloaded.
    """

    name = "workspace"

    def __init__(self, client, session):
        super().__init__(client, session)
        self.projects: List[Project] = []
        self.assigned_projects: List[Project] = []
        self.materials: List[Material] = []
        self.bom_by_project: Dict[str, List[BomLine]] = {}
        self.procurement_requests: List[ProcurementRequest] = []
        self.inward_history: List[InwardRecord] = []
        self.outward_history: List[OutwardRecord] = []
        self.transfer_history: List[TransferRecord] = []
        self.codes = InventoryCodes()
        self.selected_project_id: Optional[str] = None

    # Snapshot

    async def bootstrap(self) -> Tuple[bool, Any]:
        success, result = await self._fetch(
            "bootstrap",
            lambda: self.client.bootstrap(self.token),
            lambda data: BootstrapSnapshot.model_validate(data or {})
        )
        if success:
            self._apply_snapshot(result)
        return success, result

    def _apply_snapshot(self, snapshot: BootstrapSnapshot) -> None:
        self.projects = snapshot.projects
        # An empty assignment list means the user sees every project
        self.assigned_projects = snapshot.assigned_projects or snapshot.projects
        self.materials = snapshot.materials
        self.bom_by_project = {str(key): lines for key, lines in snapshot.bom.items()}
        self.procurement_requests = snapshot.procurement_requests
        self.inward_history = snapshot.inward_history
        self.outward_history = snapshot.outward_history
        self.transfer_history = snapshot.transfer_history
        self.codes = snapshot.inventory_codes
        if not self.selected_project_id and self.assigned_projects:
            self.selected_project_id = self.assigned_projects[0].id
        logger.info(
            f"workspace: loaded {len(self.assigned_projects)} projects, "
            f"{len(self.materials)} materials"
        )

    async def refresh_codes(self) -> Tuple[bool, Any]:
        """Next register codes; a code the backend leaves out keeps its old value"""
        success, result = await self._fetch(
            "codes",
            lambda: self.client.inventory_codes(self.token),
            lambda data: InventoryCodes.model_validate(data or {}),
            track=False
        )
        if success:
            self.codes = InventoryCodes(
                inward_code=result.inward_code or self.codes.inward_code,
                outward_code=result.outward_code or self.codes.outward_code,
                transfer_code=result.transfer_code or self.codes.transfer_code
            )
            return True, self.codes
        if result != STALE:
            self.error = result
        return success, result

    def select_project(self, project_id: Any) -> None:
        self.selected_project_id = normalize_id(project_id)

    # Reconciliation

    def project_balance(self, project_id: Any) -> ProjectBalance:
        """
        Balance rows for a project from the cached snapshot

        Raises:
            AllocationUnavailableError: the snapshot carries no BOM entry for
                the project
        """
        key = str(project_id)
        if key not in self.bom_by_project:
            raise AllocationUnavailableError(key)
        return reconcile_project(
            key,
            self.bom_by_project[key],
            inwards=self.inward_history,
            outwards=self.outward_history,
            transfers=self.transfer_history,
            materials=self.materials
        )

    def _gate_balance(self, project_id: Optional[str]) -> ProjectBalance:
        # Without a project the gate rejects before looking at rows
        if not project_id:
            return ProjectBalance(project_id="")
        return self.project_balance(project_id)

    # Register submissions

    async def submit_inward(self, draft: InwardDraft) -> Tuple[bool, Any]:
        """
        Raises:
            MovementRejected: the draft fails the submission gate
            AllocationUnavailableError: the project's allocations are unknown
        """
        payload = build_inward_submission(
            draft, self._gate_balance(draft.project_id), self.codes.inward_code
        )
        return await self._submit("inward", self.client.create_inward, payload.to_payload(), draft)

    async def submit_outward(self, draft: OutwardDraft) -> Tuple[bool, Any]:
        payload = build_outward_submission(
            draft, self._gate_balance(draft.project_id), self.codes.outward_code
        )
        return await self._submit("outward", self.client.create_outward, payload.to_payload(), draft)

    async def submit_transfer(self, draft: TransferDraft) -> Tuple[bool, Any]:
        payload = build_transfer_submission(
            draft, self._gate_balance(draft.from_project_id), self.codes.transfer_code
        )
        return await self._submit("transfer", self.client.create_transfer, payload.to_payload(), draft)

    async def _submit(self, register: str, send, payload: Dict[str, Any], draft) -> Tuple[bool, Any]:
        success, result = await self._mutate(
            f"{register} {payload.get('code') or ''}".strip(),
            lambda: send(self.token, payload)
        )
        if not success:
            return success, result
        draft.reset_header()
        await self.bootstrap()
        await self.refresh_codes()
        return True, result

    async def submit_procurement_request(
        self,
        project_id: Any,
        material_id: Any,
        increase_qty: Any,
        reason: Optional[str]
    ) -> Tuple[bool, Any]:
        """
        Ask for a project's allocation of a material to be raised

        Raises:
            ValidationError: a field is missing or the increase is not positive
        """
        project_id = normalize_id(project_id)
        material_id = normalize_id(material_id)
        reason = (reason or "").strip()
        increase = to_quantity(increase_qty)
        if not project_id or not material_id or not reason or increase == Decimal("0"):
            raise ValidationError(PROCUREMENT_REQUIRED)
        if increase < 0:
            raise ValidationError("Increase quantity must be greater than zero")

        payload = ProcurementRequestSubmission(
            project_id=project_id,
            material_id=material_id,
            increase_qty=increase,
            reason=reason
        )
        success, result = await self._mutate(
            f"procurement request {project_id}/{material_id}",
            lambda: self.client.create_procurement_request(self.token, payload.to_payload())
        )
        if success:
            await self.bootstrap()
        return success, result

    # Material history

    async def material_inward_history(self, material_id: Any) -> Tuple[bool, Any]:
        return await self._fetch(
            f"inward history {material_id}",
            lambda: self.client.material_inward_history(self.token, material_id),
            lambda data: [InwardRecord.model_validate(item) for item in (data or [])],
            track=False
        )

    async def material_movements(self, material_id: Any) -> Tuple[bool, Any]:
        return await self._fetch(
            f"movements {material_id}",
            lambda: self.client.material_movements(self.token, material_id),
            lambda data: MaterialMovements.model_validate(data or {}),
            track=False
        )

    def find_procurement_request(self, request_id: Any) -> Optional[ProcurementRequest]:
        key = str(request_id)
        for request in self.procurement_requests:
            if request.id == key:
                return request
        return None
