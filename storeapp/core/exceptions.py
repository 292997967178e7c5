"""
Custom Application Exceptions
"""
from typing import Any, Dict, List, Optional


class StoreAppException(Exception):
    """Base exception for the store client"""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class InsufficientPermissionsError(StoreAppException):
    """Raised when user lacks required permissions"""
    pass


class ValidationError(StoreAppException):
    """Raised when input is rejected before any request is sent"""
    pass


class MovementRejected(ValidationError):
    """Raised when a register submission fails the submission gate"""
    pass


class BusinessLogicError(StoreAppException):
    """Raised when business rules are violated"""
    pass


class AllocationUnavailableError(BusinessLogicError):
    """Raised when a project's allocation set cannot be obtained"""

    def __init__(self, project_id: Any, message: Optional[str] = None):
        super().__init__(message or f"Allocations for project {project_id} are unavailable")
        self.project_id = project_id


class BatchAllocationError(BusinessLogicError):
    """
    Raised when a batch allocation create stops part way.

    Lines in ``committed`` were already applied by the backend.
    """

    def __init__(
        self,
        message: str,
        committed: List[Dict[str, Any]],
        failed: Dict[str, Any],
        pending: List[Dict[str, Any]]
    ):
        super().__init__(message)
        self.committed = committed
        self.failed = failed
        self.pending = pending


class IntegrationError(StoreAppException):
    """Raised when external system integration fails"""
    pass


class APIError(IntegrationError):
    """Raised for any non-success response from the backend"""

    def __init__(self, message: str, status_code: int = 0):
        super().__init__(message)
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


class SessionError(StoreAppException):
    """Raised when a stored session token is no longer valid"""
    pass
