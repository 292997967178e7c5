"""
Project Administration
Paginated project search plus create/update/delete for the admin portal
"""
from typing import Any, Dict, List, Optional, Tuple, Union

from storeapp.schemas.common import Page
from storeapp.schemas.inventory import Project, ProjectCreate
from storeapp.services.base import PagedStore, STALE, collect_pages


class ProjectStore(PagedStore):
    """Project directory of the admin portal"""

    name = "projects"
    filter_keys = ("prefixes",)

    def __init__(self, client, session):
        super().__init__(client, session)
        self.all_projects: List[Project] = []

    async def search(self, query: Optional[Dict[str, Any]] = None) -> Tuple[bool, Any]:
        query = self._remember_query(query)
        success, result = await self._fetch(
            "search",
            lambda: self.client.admin_search_projects(self.token, query),
            lambda data: Page[Project].model_validate(data or {})
        )
        if success:
            self._apply_page(result, query)
        elif result != STALE:
            self._reset_page()
        return success, result

    async def load_all(self) -> Tuple[bool, Any]:
        """Every project, for pickers; walks /admin/projects page by page"""
        success, result = await self._fetch(
            "load all",
            lambda: collect_pages(lambda params: self.client.admin_projects(self.token, params), Project)
        )
        if success:
            self.all_projects = result
        elif result != STALE:
            self.all_projects = []
        return success, result

    async def create(self, payload: Union[ProjectCreate, Dict[str, Any]]) -> Tuple[bool, Any]:
        if not isinstance(payload, ProjectCreate):
            payload = ProjectCreate.model_validate(payload)
        success, result = await self._mutate(
            f"create {payload.code}",
            lambda: self.client.admin_create_project(self.token, payload.to_payload())
        )
        if success:
            await self.search(self.last_query)
        return success, result

    async def update(self, project_id: Any, payload: Union[ProjectCreate, Dict[str, Any]]) -> Tuple[bool, Any]:
        if not isinstance(payload, ProjectCreate):
            payload = ProjectCreate.model_validate(payload)
        success, result = await self._mutate(
            f"update {project_id}",
            lambda: self.client.admin_update_project(self.token, project_id, payload.to_payload())
        )
        if success:
            await self.search(self.last_query)
        return success, result

    async def delete(self, project_id: Any) -> Tuple[bool, Any]:
        success, result = await self._mutate(
            f"delete {project_id}",
            lambda: self.client.admin_delete_project(self.token, project_id)
        )
        if success:
            await self.search(self.last_query)
        return success, result
