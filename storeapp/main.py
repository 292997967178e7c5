"""
Store Workspace Application
Wires the API client, the signed-in session and the stores together
"""
from typing import Optional
import httpx

from storeapp.api.client import StoreApiClient
from storeapp.core.config import settings
from storeapp.core.logging import get_logger, setup_logging
from storeapp.schemas.procurement import ProcurementRequest
from storeapp.services.admin.project_admin import ProjectStore
from storeapp.services.admin.user_admin import UserStore
from storeapp.services.auth_service import AuthService, TokenStore
from storeapp.services.procurement_service import ProcurementService
from storeapp.services.stock.stock_allocation import AllocationService
from storeapp.services.stock.stock_master import MaterialStore
from storeapp.services.workspace_service import WorkspaceStore

logger = get_logger("business")


class StoreApp:
    """
    One client session against the store backend

    Usage:
        async with StoreApp() as app:
            await app.start()
            balance = app.workspace.project_balance(app.workspace.selected_project_id)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_store: Optional[TokenStore] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.client = StoreApiClient(base_url=base_url, transport=transport)
        self.auth = AuthService(self.client, token_store)
        self.workspace = WorkspaceStore(self.client, self.auth)
        self.materials = MaterialStore(self.client, self.auth)
        self.projects = ProjectStore(self.client, self.auth)
        self.users = UserStore(self.client, self.auth)
        self.allocations = AllocationService(self.client, self.auth)
        self.procurement = ProcurementService(
            self.client, self.auth, on_resolved=self.on_procurement_resolved
        )

    async def __aenter__(self) -> "StoreApp":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def start(self) -> bool:
        """Restore a stored session and load the workspace when it is valid"""
        restored, _ = await self.auth.restore_session()
        if restored:
            await self.workspace.bootstrap()
        return restored

    async def sign_in(self, mode: str, email: str, password: str) -> bool:
        success, _ = await self.auth.login(mode, {"email": email, "password": password})
        if success:
            await self.workspace.bootstrap()
        return success

    async def on_procurement_resolved(self, request: ProcurementRequest) -> None:
        # An approved request changed the allocation on the backend
        logger.info(f"Procurement request {request.id} resolved; reloading allocations")
        await self.workspace.bootstrap()
        if request.project_id is not None:
            self.allocations.invalidate(request.project_id)
            await self.allocations.fetch_project_bom(request.project_id)


def create_app(base_url: Optional[str] = None, log_to_file: bool = False) -> StoreApp:
    setup_logging(settings.LOG_LEVEL, log_to_file=log_to_file)
    return StoreApp(base_url=base_url)
