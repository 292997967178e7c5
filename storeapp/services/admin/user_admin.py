"""
User Administration
Search, create, update and delete of workspace users

Role rules applied before anything is sent:
    - elevated roles always get access to all projects
    - project-scoped roles must be given at least one project
    - other roles carry no project list
"""
from typing import Any, Dict, List, Optional, Tuple, Union

from storeapp.core.config import settings
from storeapp.core.exceptions import ValidationError
from storeapp.schemas.auth import AccessType, UserPayload, UserProfile
from storeapp.schemas.common import Page
from storeapp.schemas.inventory import Project
from storeapp.services.base import PagedStore, STALE, collect_pages


def build_user_payload(fields: Union[UserPayload, Dict[str, Any]], creating: bool) -> UserPayload:
    """
    Validate the user form and apply the role rules

    Raises:
        ValidationError: name missing, password missing on create, unknown
            role, or no project for a project-scoped role
    """
    if isinstance(fields, UserPayload):
        fields = fields.model_dump()

    name = (fields.get("name") or "").strip()
    password = (fields.get("password") or "").strip()
    email = (fields.get("email") or "").strip()
    role = (fields.get("role") or "USER").strip().upper()
    access_type = fields.get("access_type") or fields.get("accessType") or AccessType.PROJECTS
    project_ids = fields.get("project_ids")
    if project_ids is None:
        project_ids = fields.get("projectIds") or []

    if not name:
        raise ValidationError("Name is required")
    if creating and not password:
        raise ValidationError("Password is required for new users")
    if role not in settings.USER_ROLES:
        raise ValidationError(f"Unknown role: {role}")

    if role in settings.ELEVATED_ROLES:
        access_type = AccessType.ALL
    if role in settings.PROJECT_SCOPED_ROLES:
        if not project_ids:
            raise ValidationError("Select at least one project")
    else:
        project_ids = []

    return UserPayload(
        name=name,
        email=email or None,
        password=password or None,
        role=role,
        access_type=access_type,
        project_ids=list(project_ids)
    )


class UserStore(PagedStore):
    """User directory of the admin portal"""

    name = "users"
    filter_keys = ("roles", "accessTypes", "projects")

    def __init__(self, client, session):
        super().__init__(client, session)
        self.projects: List[Project] = []

    async def search(self, query: Optional[Dict[str, Any]] = None) -> Tuple[bool, Any]:
        """
        Load one page of users; ``role``, ``accessType`` and ``projectId``
        may be lists and are sent as repeated query keys
        """
        query = self._remember_query(query)
        success, result = await self._fetch(
            "search",
            lambda: self.client.admin_search_users(self.token, query),
            lambda data: Page[UserProfile].model_validate(data or {})
        )
        if success:
            self._apply_page(result, query)
        elif result != STALE:
            self._reset_page()
        return success, result

    async def load_projects(self) -> Tuple[bool, Any]:
        """Projects offered when assigning users"""
        success, result = await self._fetch(
            "projects",
            lambda: collect_pages(lambda params: self.client.admin_projects(self.token, params), Project)
        )
        if success:
            self.projects = result
        elif result != STALE:
            self.projects = []
        return success, result

    async def create(self, fields: Union[UserPayload, Dict[str, Any]]) -> Tuple[bool, Any]:
        payload = build_user_payload(fields, creating=True)
        success, result = await self._mutate(
            f"create {payload.email or payload.name}",
            lambda: self.client.admin_create_user(self.token, payload.to_payload())
        )
        if success:
            await self.search(self.last_query)
        return success, result

    async def update(self, user_id: Any, fields: Union[UserPayload, Dict[str, Any]]) -> Tuple[bool, Any]:
        # Blank password keeps the current one
        payload = build_user_payload(fields, creating=False)
        success, result = await self._mutate(
            f"update {user_id}",
            lambda: self.client.admin_update_user(self.token, user_id, payload.to_payload())
        )
        if success:
            await self.search(self.last_query)
        return success, result

    async def delete(self, user_id: Any) -> Tuple[bool, Any]:
        success, result = await self._mutate(
            f"delete {user_id}",
            lambda: self.client.admin_delete_user(self.token, user_id)
        )
        if success:
            await self.search(self.last_query)
        return success, result
