"""
Store Backend API Client
Async HTTP wrapper exposing one call per backend endpoint
"""
from typing import Any, Dict, Optional, Union
from pathlib import Path
from urllib.parse import quote
import httpx

from storeapp.core.config import settings
from storeapp.core.exceptions import APIError
from storeapp.core.logging import get_logger

logger = get_logger("api")

JSONBody = Union[Dict[str, Any], list]

MALFORMED_RESPONSE = "Unexpected response from the store server"


def build_query_string(params: Optional[Dict[str, Any]] = None) -> str:
    """
    Encode query parameters the way the backend expects them

    None and empty-string values are skipped; lists become repeated keys with
    blank members dropped, and an empty list is skipped entirely.
    """
    parts = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple, set)):
            for item in value:
                if item is None or item == "":
                    continue
                parts.append(f"{quote(str(key), safe='')}={quote(_query_value(item), safe='')}")
            continue
        if value == "":
            continue
        parts.append(f"{quote(str(key), safe='')}={quote(_query_value(value), safe='')}")
    return f"?{'&'.join(parts)}" if parts else ""


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _segment(value: Any) -> str:
    """Path segment for an identifier"""
    return quote(str(value), safe='')


class StoreApiClient:
    """
    Typed calls for every backend endpoint

    One ``httpx.AsyncClient`` is shared by all calls so cookies set by the
    backend are sent back on later requests.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        token_header: Optional[str] = None
    ):
        self.base_url = (base_url or settings.API_BASE_URL).rstrip("/")
        self.token_header = token_header or settings.AUTH_TOKEN_HEADER
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout if timeout is not None else settings.REQUEST_TIMEOUT,
            transport=transport,
        )

    async def __aenter__(self) -> "StoreApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[JSONBody] = None,
        token: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        response_type: str = "json",
        files: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send one request and decode the response

        Raises:
            APIError: for non-2xx responses (message taken from the body's
                ``error`` or ``message`` field) and transport failures,
                and for 2xx bodies that are not JSON
        """
        headers = {}
        if files is None:
            headers["Content-Type"] = "application/json"
        if token:
            headers[self.token_header] = token

        url = f"{path}{build_query_string(params)}"
        logger.debug(f"{method} {url}")

        try:
            response = await self._client.request(
                method,
                url,
                headers=headers,
                json=body if files is None and body is not None else None,
                files=files,
            )
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise APIError("Unable to reach the store server", status_code=0) from e

        if not response.is_success:
            message = self._error_message(response)
            logger.warning(f"{method} {url} -> {response.status_code}: {message}")
            raise APIError(message, status_code=response.status_code)

        if response.status_code == 204:
            return None
        if response.headers.get("content-length") == "0" or not response.content:
            return None

        if response_type == "blob":
            return response.content

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{method} {url} -> {response.status_code}: body is not JSON")
            raise APIError(MALFORMED_RESPONSE, status_code=response.status_code) from e

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}
        return payload.get("error") or payload.get("message") or "Request failed"

    # Authentication

    async def login(self, payload: Dict[str, Any]) -> Any:
        return await self.request("/auth/login", method="POST", body=payload)

    async def session(self, token: str) -> Any:
        return await self.request("/auth/session", token=token)

    async def logout(self, token: str) -> Any:
        return await self.request("/auth/logout", method="POST", token=token)

    # Workspace

    async def bootstrap(self, token: str) -> Any:
        return await self.request("/app/bootstrap", token=token)

    async def inventory_codes(self, token: str) -> Any:
        return await self.request("/inventory/codes", token=token)

    async def material_inward_history(self, token: str, material_id: Any) -> Any:
        return await self.request(f"/app/materials/{_segment(material_id)}/inwards", token=token)

    async def material_movements(self, token: str, material_id: Any) -> Any:
        return await self.request(f"/app/materials/{_segment(material_id)}/movements", token=token)

    # Material directory

    async def list_materials(self, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("/materials", token=token, params=params)

    async def search_materials(self, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("/materials/search", token=token, params=params)

    async def create_material(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/materials", method="POST", token=token, body=payload)

    async def update_material(self, token: str, material_id: Any, payload: Dict[str, Any]) -> Any:
        return await self.request(
            f"/materials/{_segment(material_id)}", method="PUT", token=token, body=payload
        )

    async def delete_material(self, token: str, material_id: Any) -> Any:
        return await self.request(f"/materials/{_segment(material_id)}", method="DELETE", token=token)

    async def import_materials(self, token: str, file: Union[str, Path]) -> Any:
        path = Path(file)
        with path.open("rb") as handle:
            files = {"file": (path.name, handle.read())}
        return await self.request("/materials/import", method="POST", token=token, files=files)

    async def export_materials(self, token: str) -> Optional[bytes]:
        return await self.request("/materials/export", token=token, response_type="blob")

    # Movement registers

    async def create_inward(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/inwards", method="POST", token=token, body=payload)

    async def create_outward(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/outwards", method="POST", token=token, body=payload)

    async def create_transfer(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/transfers", method="POST", token=token, body=payload)

    # Project administration

    async def admin_projects(self, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("/admin/projects", token=token, params=params)

    async def admin_search_projects(self, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("/admin/projects/search", token=token, params=params)

    async def admin_create_project(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/admin/projects", method="POST", token=token, body=payload)

    async def admin_update_project(self, token: str, project_id: Any, payload: Dict[str, Any]) -> Any:
        return await self.request(
            f"/admin/projects/{_segment(project_id)}", method="PUT", token=token, body=payload
        )

    async def admin_delete_project(self, token: str, project_id: Any) -> Any:
        return await self.request(f"/admin/projects/{_segment(project_id)}", method="DELETE", token=token)

    # User administration

    async def admin_users(self, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("/admin/users", token=token, params=params)

    async def admin_search_users(self, token: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("/admin/users/search", token=token, params=params)

    async def admin_create_user(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/admin/users", method="POST", token=token, body=payload)

    async def admin_update_user(self, token: str, user_id: Any, payload: Dict[str, Any]) -> Any:
        return await self.request(
            f"/admin/users/{_segment(user_id)}", method="PUT", token=token, body=payload
        )

    async def admin_delete_user(self, token: str, user_id: Any) -> Any:
        return await self.request(f"/admin/users/{_segment(user_id)}", method="DELETE", token=token)

    async def admin_analytics(self, token: str) -> Any:
        return await self.request("/admin/analytics", token=token)

    # BOM allocations

    async def project_allocations(self, token: str, project_id: Any) -> Any:
        return await self.request(f"/bom/projects/{_segment(project_id)}", token=token)

    async def create_project_allocation(self, token: str, project_id: Any, payload: Dict[str, Any]) -> Any:
        return await self.request(
            f"/bom/projects/{_segment(project_id)}/materials", method="POST", token=token, body=payload
        )

    async def update_bom_allocation(
        self, token: str, project_id: Any, material_id: Any, payload: Dict[str, Any]
    ) -> Any:
        return await self.request(
            f"/bom/projects/{_segment(project_id)}/materials/{_segment(material_id)}",
            method="PUT",
            token=token,
            body=payload,
        )

    async def delete_project_allocation(self, token: str, project_id: Any, material_id: Any) -> Any:
        return await self.request(
            f"/bom/projects/{_segment(project_id)}/materials/{_segment(material_id)}",
            method="DELETE",
            token=token,
        )

    # Procurement

    async def list_procurement_requests(self, token: str) -> Any:
        return await self.request("/procurement/requests", token=token)

    async def create_procurement_request(self, token: str, payload: Dict[str, Any]) -> Any:
        return await self.request("/procurement/requests", method="POST", token=token, body=payload)

    async def resolve_procurement_request(self, token: str, request_id: Any, payload: Dict[str, Any]) -> Any:
        return await self.request(
            f"/procurement/requests/{_segment(request_id)}/decision",
            method="POST",
            token=token,
            body=payload,
        )
