"""
Tests for Procurement Service
Listing and deciding allocation increase requests
"""

import pytest

from storeapp.core.exceptions import BusinessLogicError, ValidationError
from storeapp.schemas.procurement import ProcurementRequest, ProcurementStatus
from storeapp.services.procurement_service import ProcurementService, can_decide

from tests.records import qty


@pytest.fixture
def resolved():
    return []


@pytest.fixture
def procurement(api_client, admin_session, resolved) -> ProcurementService:
    async def on_resolved(request):
        resolved.append(request)

    return ProcurementService(api_client, admin_session, on_resolved=on_resolved)


@pytest.fixture
def pending_request(backend, seeded):
    entry = {
        "id": 900,
        "projectId": seeded["tower"],
        "materialId": seeded["steel"],
        "capturedRequiredQty": 50,
        "requestedIncrease": 30,
        "reason": "Extra slab",
        "status": "PENDING",
        "requestedBy": "Store Keeper",
    }
    backend.procurement.append(entry)
    return entry


class TestCanDecide:
    """Only pending requests can be decided"""

    def test_pending_only(self):
        assert can_decide(ProcurementRequest(id=1))
        assert not can_decide(ProcurementRequest(id=2, status="APPROVED"))
        assert not can_decide(ProcurementRequest(id=3, status="REJECTED"))
        assert not can_decide(None)
        assert ProcurementService.can_decide(ProcurementRequest(id=4))


class TestDecide:
    """Test suite for ProcurementService.decide"""

    async def test_list_requests(self, procurement, pending_request):
        success, requests = await procurement.list_requests()

        assert success is True
        assert [r.id for r in requests] == ["900"]
        assert requests[0].proposed_required_qty == qty(80)

    async def test_approve_updates_allocation_and_notifies(self, procurement, backend, pending_request, seeded, resolved):
        await procurement.list_requests()

        success, _ = await procurement.decide(900, "approved", note="  ok for phase 2 ")

        assert success is True
        assert pending_request["status"] == "APPROVED"
        assert pending_request["resolutionNote"] == "ok for phase 2"
        steel_row = next(r for r in backend.bom[seeded["tower"]] if str(r["materialId"]) == seeded["steel"])
        assert steel_row["allocatedQty"] == 80

        assert procurement.find(900).status == ProcurementStatus.APPROVED
        assert [r.id for r in resolved] == ["900"]

    async def test_reject_leaves_allocation(self, procurement, backend, pending_request, seeded, resolved):
        success, _ = await procurement.decide("900", "REJECTED")

        assert success is True
        steel_row = next(r for r in backend.bom[seeded["tower"]] if str(r["materialId"]) == seeded["steel"])
        assert steel_row["allocatedQty"] == 50
        assert pending_request["resolutionNote"] is None
        assert resolved[0].status == ProcurementStatus.REJECTED

    async def test_invalid_decision(self, procurement, backend, pending_request):
        with pytest.raises(ValidationError):
            await procurement.decide(900, "MAYBE")

        assert backend.count_calls("/decision") == 0

    async def test_resolved_request_refused_locally(self, procurement, backend, pending_request):
        pending_request["status"] = "APPROVED"
        await procurement.list_requests()

        with pytest.raises(BusinessLogicError, match="already been approved"):
            await procurement.decide(900, "REJECTED")

        assert backend.count_calls("/decision") == 0

    async def test_backend_conflict_reported(self, procurement, backend, pending_request, resolved):
        # Cache still shows PENDING; the backend knows better
        await procurement.list_requests()
        pending_request["status"] = "REJECTED"

        success, message = await procurement.decide(900, "APPROVED")

        assert (success, message) == (False, "Request already resolved")
        assert procurement.error == "Request already resolved"
        assert resolved == []
