"""
Stock Allocation - project BOM maintenance
Loads, creates, updates and removes the per-project material allocations
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
from decimal import Decimal, InvalidOperation

from storeapp.core.exceptions import (
    AllocationUnavailableError, BatchAllocationError, StoreAppException, ValidationError
)
from storeapp.core.logging import get_logger
from storeapp.schemas.common import quantity_to_json
from storeapp.schemas.inventory import Allocation, AllocationLineInput, BomLine, Material, Project
from storeapp.services.base import BaseStore, SAVE_IN_PROGRESS, STALE, StoreStatus, collect_pages
from storeapp.services.stock.stock_inquiry import allocations_from_bom

logger = get_logger("business")

INVALID_QUANTITY = "Required quantity must be zero or greater"

LineInput = Union[AllocationLineInput, Dict[str, Any]]


def validate_quantity(value: Any) -> Decimal:
    """Allocated quantities are finite and never negative"""
    if value is None or isinstance(value, bool) or (isinstance(value, str) and not value.strip()):
        raise ValidationError(INVALID_QUANTITY)
    try:
        quantity = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(INVALID_QUANTITY)
    if not quantity.is_finite() or quantity < 0:
        raise ValidationError(INVALID_QUANTITY)
    return quantity


def parse_bom_response(data: Any) -> List[BomLine]:
    """The BOM endpoint answers with a bare list or ``{"materials": [...]}``"""
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("materials") or []
    if not isinstance(data, list):
        raise ValidationError("Unexpected BOM response")
    return [BomLine.model_validate(item) for item in data]


class AllocationService(BaseStore):
    """
    Project allocation maintenance

    BOM rows are cached per project with their own load status. Every write
    drops the project's cache and loads it again.
    """

    name = "allocations"

    def __init__(self, client, session):
        super().__init__(client, session)
        self.projects: List[Project] = []
        self.materials: List[Material] = []
        self.bom_by_project: Dict[str, List[BomLine]] = {}
        self.bom_status_by_project: Dict[str, StoreStatus] = {}

    async def load_allocation_data(self) -> Tuple[bool, Any]:
        """All projects and all materials, for the allocation pickers"""
        async def load():
            projects = await collect_pages(
                lambda params: self.client.admin_projects(self.token, params), Project
            )
            materials = await collect_pages(
                lambda params: self.client.search_materials(self.token, params), Material
            )
            return projects, materials

        success, result = await self._fetch("load", load)
        if success:
            self.projects, self.materials = result
        elif result != STALE:
            self.projects = []
            self.materials = []
        return success, result

    async def fetch_project_bom(self, project_id: Any) -> Tuple[bool, Any]:
        """
        Load a project's BOM rows
        Returns (success, rows_or_message)
        """
        key = str(project_id)
        self.bom_status_by_project[key] = StoreStatus.LOADING
        success, result = await self._fetch(
            f"bom {key}",
            lambda: self.client.project_allocations(self.token, key),
            parse_bom_response,
            track=False
        )
        if success:
            self.bom_by_project[key] = result
            self.bom_status_by_project[key] = StoreStatus.SUCCEEDED
        elif result != STALE:
            self.bom_by_project.pop(key, None)
            self.bom_status_by_project[key] = StoreStatus.FAILED
            self.error = result
        return success, result

    async def list_allocations(self, project_id: Any) -> List[Allocation]:
        """
        Allocation set for a project, loading it when not cached

        Raises:
            AllocationUnavailableError: the BOM could not be loaded
        """
        key = str(project_id)
        if self.bom_status_by_project.get(key) != StoreStatus.SUCCEEDED:
            success, result = await self.fetch_project_bom(key)
            if not success:
                raise AllocationUnavailableError(key, f"Allocations for project {key} are unavailable: {result}")
        return allocations_from_bom(key, self.bom_by_project.get(key, []))

    def invalidate(self, project_id: Any) -> None:
        key = str(project_id)
        self.bom_by_project.pop(key, None)
        self.bom_status_by_project.pop(key, None)

    async def _reload_bom(self, project_id: str, error: Optional[str] = None) -> None:
        """Invalidate and refetch after a save; a save error outranks a refetch error"""
        self.invalidate(project_id)
        await self.fetch_project_bom(project_id)
        if error is not None:
            self.error = error

    async def create(self, project_id: Any, lines: Iterable[LineInput]) -> Tuple[bool, Any]:
        """
        Allocate materials to a project, one request per line, in order

        All quantities are checked before anything is sent. The batch is not
        atomic: it stops at the first rejected line and the failure payload is
        a BatchAllocationError listing what was committed, what failed and
        what was never sent.
        Returns (success, committed_lines_or_error)
        """
        key = str(project_id)
        payloads = self._validate_lines(key, lines)

        if self.saving:
            return False, SAVE_IN_PROGRESS

        self.saving = True
        self.error = None
        committed: List[Dict[str, Any]] = []
        failure: Optional[BatchAllocationError] = None
        try:
            for index, payload in enumerate(payloads):
                try:
                    await self.client.create_project_allocation(self.token, key, payload)
                except StoreAppException as e:
                    message = e.message or "Unable to create project allocations"
                    failure = BatchAllocationError(
                        message,
                        committed=committed,
                        failed={**payload, "message": message},
                        pending=payloads[index + 1:]
                    )
                    logger.error(
                        f"allocations: batch for project {key} stopped at material "
                        f"{payload['materialId']} after {len(committed)} of {len(payloads)}: {message}"
                    )
                    break
                committed.append(payload)
        finally:
            self.saving = False

        await self._reload_bom(key, failure.message if failure else None)
        if failure:
            return False, failure

        logger.info(f"allocations: {len(committed)} lines allocated to project {key}")
        return True, committed

    async def update(self, project_id: Any, material_id: Any, quantity: Any) -> Tuple[bool, Any]:
        key = str(project_id)
        payload = {
            "projectId": key,
            "materialId": str(material_id),
            "quantity": quantity_to_json(validate_quantity(quantity))
        }
        if self.saving:
            return False, SAVE_IN_PROGRESS
        success, result = await self._mutate(
            f"update {key}/{material_id}",
            lambda: self.client.update_bom_allocation(self.token, key, material_id, payload)
        )
        await self._reload_bom(key, None if success else result)
        return success, result

    async def delete(self, project_id: Any, material_id: Any) -> Tuple[bool, Any]:
        key = str(project_id)
        if self.saving:
            return False, SAVE_IN_PROGRESS
        success, result = await self._mutate(
            f"delete {key}/{material_id}",
            lambda: self.client.delete_project_allocation(self.token, key, str(material_id))
        )
        await self._reload_bom(key, None if success else result)
        return success, result

    def _validate_lines(self, project_id: str, lines: Iterable[LineInput]) -> List[Dict[str, Any]]:
        payloads = []
        seen = set()
        for line in lines:
            if isinstance(line, AllocationLineInput):
                material_id, quantity = line.material_id, line.quantity
            else:
                material_id = line.get("material_id", line.get("materialId"))
                quantity = line.get("quantity")
            if material_id is None or str(material_id).strip() == "":
                raise ValidationError("Select a material")
            material_id = str(material_id)
            if material_id in seen:
                raise ValidationError(f"Material {material_id} is listed more than once")
            seen.add(material_id)
            payloads.append({
                "projectId": project_id,
                "materialId": material_id,
                "quantity": quantity_to_json(validate_quantity(quantity))
            })
        if not payloads:
            raise ValidationError("Select at least one material to allocate")
        return payloads
