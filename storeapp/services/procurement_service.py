"""
Procurement Service
Listing and approval/rejection of allocation increase requests
"""
from typing import Any, Awaitable, Callable, List, Optional, Tuple, Union

from storeapp.core.exceptions import BusinessLogicError, ValidationError
from storeapp.core.logging import get_logger
from storeapp.schemas.procurement import (
    DecisionSubmission, ProcurementDecision, ProcurementRequest, ProcurementStatus
)
from storeapp.services.base import BaseStore, STALE

logger = get_logger("business")

ResolvedCallback = Callable[[ProcurementRequest], Awaitable[Any]]


def can_decide(request: Optional[ProcurementRequest]) -> bool:
    """Only pending requests can be approved or rejected"""
    return request is not None and request.status == ProcurementStatus.PENDING


class ProcurementService(BaseStore):
    """
    Procurement requests and their decisions

    Approving a request changes the project's allocation on the backend, so
    ``on_resolved`` is awaited after every decision to reload whatever was
    derived from the old allocation.
    """

    name = "procurement"

    def __init__(self, client, session, on_resolved: Optional[ResolvedCallback] = None):
        super().__init__(client, session)
        self.requests: List[ProcurementRequest] = []
        self.on_resolved = on_resolved

    async def list_requests(self) -> Tuple[bool, Any]:
        success, result = await self._fetch(
            "list",
            lambda: self.client.list_procurement_requests(self.token),
            lambda data: [ProcurementRequest.model_validate(item) for item in (data or [])]
        )
        if success:
            self.requests = result
        elif result != STALE:
            self.requests = []
        return success, result

    def find(self, request_id: Any) -> Optional[ProcurementRequest]:
        key = str(request_id)
        for request in self.requests:
            if request.id == key:
                return request
        return None

    can_decide = staticmethod(can_decide)

    async def decide(
        self,
        request_id: Any,
        decision: Union[ProcurementDecision, str],
        note: Optional[str] = None
    ) -> Tuple[bool, Any]:
        """
        Approve or reject a request
        Returns (success, response_or_message)

        Raises:
            ValidationError: the decision is neither APPROVED nor REJECTED
            BusinessLogicError: the request is known to be resolved already
        """
        try:
            decision = ProcurementDecision(str(getattr(decision, "value", decision)).upper())
        except ValueError:
            raise ValidationError(f"Decision must be APPROVED or REJECTED, got {decision!r}")

        cached = self.find(request_id)
        if cached is not None and not can_decide(cached):
            logger.warning(f"procurement: request {request_id} is already {cached.status.value}")
            raise BusinessLogicError(f"Request has already been {cached.status.value.lower()}")

        payload = DecisionSubmission(decision=decision, note=(note or "").strip() or None)
        success, result = await self._mutate(
            f"{decision.value.lower()} request {request_id}",
            lambda: self.client.resolve_procurement_request(self.token, request_id, payload.to_payload())
        )
        if not success:
            return success, result

        await self.list_requests()
        if self.on_resolved is not None:
            resolved = self.find(request_id) or cached
            if resolved is not None:
                await self.on_resolved(resolved)
        return True, result
