"""
Stock Master - material directory maintenance
Search, create, update, delete, import and export of materials
"""
from typing import Any, Dict, Optional, Tuple, Type, TypeVar, Union
from pathlib import Path
import pydantic

from storeapp.core.exceptions import StoreAppException, ValidationError
from storeapp.core.logging import get_logger
from storeapp.schemas.common import Page
from storeapp.schemas.inventory import Material, MaterialCreate, MaterialUpdate
from storeapp.services.base import PagedStore, STALE

logger = get_logger("business")

IMPORT_SUFFIXES = (".xlsx", ".xls")
EXPORT_FILENAME = "materials.xlsx"
NOTHING_TO_EXPORT = "Nothing to export"

FormT = TypeVar("FormT", MaterialCreate, MaterialUpdate)


def validate_material_form(model: Type[FormT], payload: Union[FormT, Dict[str, Any]]) -> FormT:
    """
    Check a material form before it is sent

    Raises:
        ValidationError: a field is missing, blank or of the wrong type
    """
    if isinstance(payload, model):
        return payload
    try:
        return model.model_validate(payload)
    except pydantic.ValidationError as e:
        error = e.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or "material"
        raise ValidationError(f"Invalid material {field}: {error['msg']}") from e


class MaterialStore(PagedStore):
    """
    Material directory
    Every successful mutation re-runs the last search
    """

    name = "materials"
    filter_keys = ("categories", "units", "lineTypes")

    async def fetch(self, query: Optional[Dict[str, Any]] = None) -> Tuple[bool, Any]:
        """
        Load one page of the material search
        Returns (success, page_or_message)
        """
        query = self._remember_query(query)
        success, result = await self._fetch(
            "search",
            lambda: self.client.search_materials(self.token, query),
            lambda data: Page[Material].model_validate(data or {})
        )
        if success:
            self._apply_page(result, query)
        elif result != STALE:
            self._reset_page()
        return success, result

    async def refresh(self) -> Tuple[bool, Any]:
        return await self.fetch(self.last_query)

    async def create(self, payload: Union[MaterialCreate, Dict[str, Any]]) -> Tuple[bool, Any]:
        payload = validate_material_form(MaterialCreate, payload)
        success, result = await self._mutate(
            f"create {payload.code}",
            lambda: self.client.create_material(self.token, payload.to_payload())
        )
        if success:
            await self.refresh()
        return success, result

    async def update(
        self,
        material_id: Any,
        payload: Union[MaterialUpdate, Dict[str, Any]]
    ) -> Tuple[bool, Any]:
        payload = validate_material_form(MaterialUpdate, payload)
        success, result = await self._mutate(
            f"update {material_id}",
            lambda: self.client.update_material(self.token, material_id, payload.to_payload())
        )
        if success:
            await self.refresh()
        return success, result

    async def delete(self, material_id: Any) -> Tuple[bool, Any]:
        success, result = await self._mutate(
            f"delete {material_id}",
            lambda: self.client.delete_material(self.token, material_id)
        )
        if success:
            await self.refresh()
            return True, str(material_id)
        return success, result

    async def import_file(self, path: Union[str, Path]) -> Tuple[bool, Any]:
        """
        Upload a workbook of materials; the backend reports what it imported

        Raises:
            ValidationError: not an existing .xlsx/.xls file
        """
        path = Path(path)
        if path.suffix.lower() not in IMPORT_SUFFIXES:
            raise ValidationError("Choose an .xlsx or .xls file to import")
        if not path.is_file():
            raise ValidationError(f"File not found: {path}")

        success, result = await self._mutate(
            f"import {path.name}",
            lambda: self.client.import_materials(self.token, path)
        )
        if success:
            await self.refresh()
        return success, result

    async def export(self) -> Tuple[bool, Any]:
        """
        Download the directory as a workbook
        Returns (success, bytes_or_message)
        """
        try:
            content = await self.client.export_materials(self.token)
        except StoreAppException as e:
            self.error = e.message or "Unable to export materials"
            logger.error(f"materials: export failed: {self.error}")
            return False, self.error
        if not content:
            return False, NOTHING_TO_EXPORT
        return True, content

    async def export_to(self, target: Union[str, Path]) -> Tuple[bool, Any]:
        """
        Save the exported workbook; a directory target gets ``materials.xlsx``
        Returns (success, path_or_message)
        """
        success, result = await self.export()
        if not success:
            return success, result

        path = Path(target)
        if path.is_dir():
            path = path / EXPORT_FILENAME
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(result)
        logger.info(f"materials: exported {len(result)} bytes to {path}")
        return True, path
