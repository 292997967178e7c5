"""
Store Workspace Services
Client-side stores holding backend state for the workspace and admin portal
"""

from .auth_service import AuthService, TokenStore
from .base import BaseStore, PagedStore, StoreStatus
from .procurement_service import ProcurementService
from .workspace_service import WorkspaceStore

__all__ = [
    "AuthService",
    "TokenStore",
    "BaseStore",
    "PagedStore",
    "StoreStatus",
    "ProcurementService",
    "WorkspaceStore",
]
