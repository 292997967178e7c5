"""
Tests for Workspace Service
Bootstrap snapshot, register submissions and procurement requests
"""

import pytest

from storeapp.core.exceptions import AllocationUnavailableError, MovementRejected, ValidationError
from storeapp.services.base import StoreStatus
from storeapp.services.stock.stock_issues import OutwardDraft
from storeapp.services.stock.stock_movements import NO_OUTWARD_LINES, NO_PROJECT, SAME_SITE
from storeapp.services.stock.stock_receipts import InwardDraft
from storeapp.services.stock.stock_transfer import TransferDraft
from storeapp.services.workspace_service import PROCUREMENT_REQUIRED, WorkspaceStore

from tests.records import qty


@pytest.fixture
def workspace(api_client, user_session) -> WorkspaceStore:
    return WorkspaceStore(api_client, user_session)


async def receive(workspace: WorkspaceStore, project_id: str, material_id: str, quantity) -> None:
    draft = InwardDraft(project_id=project_id, supplier_name="Acme")
    draft.set_line(material_id, received_qty=quantity)
    success, _ = await workspace.submit_inward(draft)
    assert success


class TestBootstrap:
    """Test suite for WorkspaceStore.bootstrap"""

    async def test_snapshot_applied(self, workspace, seeded):
        success, snapshot = await workspace.bootstrap()

        assert success is True
        assert snapshot.user.email == "storekeeper@example.com"
        assert workspace.status == StoreStatus.SUCCEEDED
        assert [p.code for p in workspace.projects] == ["TWR-01", "BRG-02"]
        assert set(workspace.bom_by_project) == {seeded["tower"], seeded["bridge"]}
        assert workspace.codes.inward_code == "INW-0001"
        assert workspace.codes.transfer_code == "TRF-0001"

    async def test_unassigned_user_sees_every_project(self, workspace, seeded):
        await workspace.bootstrap()

        assert [p.id for p in workspace.assigned_projects] == [seeded["tower"], seeded["bridge"]]
        assert workspace.selected_project_id == seeded["tower"]

    async def test_assigned_projects_drive_selection(self, workspace, backend, seeded):
        backend.assigned_projects = [backend.projects[1]]

        await workspace.bootstrap()

        assert [p.id for p in workspace.assigned_projects] == [seeded["bridge"]]
        assert workspace.selected_project_id == seeded["bridge"]

    async def test_explicit_selection_survives_reload(self, workspace, seeded):
        workspace.select_project(int(seeded["bridge"]))

        await workspace.bootstrap()

        assert workspace.selected_project_id == seeded["bridge"]

    async def test_failed_bootstrap(self, workspace, backend):
        backend.fail_bootstrap = True

        success, message = await workspace.bootstrap()

        assert (success, message) == (False, "Bootstrap unavailable")
        assert workspace.status == StoreStatus.FAILED
        assert workspace.error == "Bootstrap unavailable"

    async def test_refresh_codes_keeps_codes_the_backend_omits(self, workspace, api_client, monkeypatch):
        await workspace.bootstrap()

        async def partial_codes(token):
            return {"inwardCode": "INW-0042"}

        monkeypatch.setattr(api_client, "inventory_codes", partial_codes)
        success, codes = await workspace.refresh_codes()

        assert success is True
        assert codes.inward_code == "INW-0042"
        assert codes.outward_code == "OUT-0001"
        assert codes.transfer_code == "TRF-0001"


class TestProjectBalance:
    """Reconciliation against the cached snapshot"""

    async def test_balance_for_allocated_project(self, workspace, seeded):
        await workspace.bootstrap()

        balance = workspace.project_balance(seeded["tower"])

        assert balance.row(seeded["cement"]).allocated_qty == qty(100)
        assert balance.row(seeded["cement"]).balance_qty == qty(0)
        assert balance.row(seeded["cement"]).code == "CEM-001"
        assert balance.available_for_outward() == []

    async def test_project_without_bom_entry_is_unavailable(self, workspace):
        await workspace.bootstrap()

        with pytest.raises(AllocationUnavailableError):
            workspace.project_balance("999")


class TestSubmissions:
    """Register submissions through the gate and the backend"""

    async def test_inward_submission_reloads_snapshot_and_codes(self, workspace, backend, seeded):
        await workspace.bootstrap()
        draft = InwardDraft(project_id=seeded["tower"], invoice_no="INV-1", supplier_name="Acme")
        draft.set_line(seeded["cement"], ordered_qty=50, received_qty=40)

        success, record = await workspace.submit_inward(draft)

        assert success is True
        assert record["code"] == "INW-0001"
        assert backend.inwards[0]["lines"][0]["receivedQty"] == 40
        assert workspace.codes.inward_code == "INW-0002"
        assert workspace.project_balance(seeded["tower"]).row(seeded["cement"]).balance_qty == qty(40)
        assert draft.invoice_no is None
        assert len(draft.selection) == 0
        assert draft.project_id == seeded["tower"]

    async def test_outward_then_transfer(self, workspace, backend, seeded):
        await workspace.bootstrap()
        await receive(workspace, seeded["tower"], seeded["cement"], 40)

        outward = OutwardDraft(project_id=seeded["tower"], issue_to="Block C crew")
        outward.set_line(seeded["cement"], issue_qty=15)
        success, _ = await workspace.submit_outward(outward)
        assert success is True

        transfer = TransferDraft(from_project_id=seeded["tower"], to_project_id=seeded["bridge"])
        transfer.set_line(seeded["cement"], transfer_qty=5)
        success, record = await workspace.submit_transfer(transfer)
        assert success is True
        assert record["code"] == "TRF-0001"

        row = workspace.project_balance(seeded["tower"]).row(seeded["cement"])
        assert (row.received_qty, row.utilized_qty, row.transferred_out_qty) == (qty(40), qty(15), qty(5))
        assert row.balance_qty == qty(20)
        assert outward.issue_to == ""

    async def test_rejected_transfer_never_reaches_backend(self, workspace, backend, seeded):
        await workspace.bootstrap()
        await receive(workspace, seeded["tower"], seeded["cement"], 10)
        draft = TransferDraft(
            from_project_id=seeded["tower"], to_project_id=seeded["tower"], from_site="Yard", to_site="YARD"
        )
        draft.set_line(seeded["cement"], transfer_qty=1)

        with pytest.raises(MovementRejected, match=SAME_SITE):
            await workspace.submit_transfer(draft)

        assert backend.count_calls("/transfers") == 0
        assert len(draft.selection) == 1

    async def test_outward_of_empty_stock_rejected(self, workspace, backend, seeded):
        await workspace.bootstrap()
        draft = OutwardDraft(project_id=seeded["tower"], issue_to="Crew")
        draft.set_line(seeded["steel"], issue_qty=2)

        with pytest.raises(MovementRejected, match=NO_OUTWARD_LINES):
            await workspace.submit_outward(draft)

        assert backend.count_calls("/outwards") == 0

    async def test_inward_without_project_rejected(self, workspace, backend, seeded):
        draft = InwardDraft()
        draft.set_line(seeded["cement"], received_qty=1)

        with pytest.raises(MovementRejected, match=NO_PROJECT):
            await workspace.submit_inward(draft)

        assert backend.count_calls("/inwards") == 0

    async def test_backend_failure_keeps_draft(self, workspace, backend, seeded):
        await workspace.bootstrap()
        backend.tokens.clear()
        draft = InwardDraft(project_id=seeded["tower"], supplier_name="Acme")
        draft.set_line(seeded["cement"], received_qty=3)

        success, message = await workspace.submit_inward(draft)

        assert (success, message) == (False, "Session expired")
        assert draft.supplier_name == "Acme"
        assert len(draft.selection) == 1
        assert workspace.saving is False


class TestProcurementRequests:
    """Test suite for WorkspaceStore.submit_procurement_request"""

    @pytest.mark.parametrize("project,material,increase,reason", [
        (None, "m", 5, "more floors"),
        ("p", None, 5, "more floors"),
        ("p", "m", 0, "more floors"),
        ("p", "m", 5, "   "),
    ])
    async def test_required_fields(self, workspace, backend, project, material, increase, reason):
        with pytest.raises(ValidationError, match=PROCUREMENT_REQUIRED):
            await workspace.submit_procurement_request(project, material, increase, reason)

        assert backend.count_calls("/procurement") == 0

    async def test_negative_increase(self, workspace):
        with pytest.raises(ValidationError, match="greater than zero"):
            await workspace.submit_procurement_request("p", "m", "-3", "typo")

    async def test_request_is_recorded_and_snapshot_reloaded(self, workspace, backend, seeded):
        success, entry = await workspace.submit_procurement_request(
            seeded["tower"], seeded["steel"], "25", " Extra slab "
        )

        assert success is True
        assert backend.procurement[0]["requestedIncrease"] == 25
        assert backend.procurement[0]["reason"] == "Extra slab"

        request = workspace.find_procurement_request(entry["id"])
        assert request is not None
        assert request.is_pending
        assert request.captured_required_qty == qty(50)
        assert request.proposed_required_qty == qty(75)


class TestMaterialHistory:
    """Per-material movement lookups"""

    async def test_inward_history_and_movements(self, workspace, seeded):
        await workspace.bootstrap()
        await receive(workspace, seeded["tower"], seeded["cement"], 12)
        outward = OutwardDraft(project_id=seeded["tower"], issue_to="Crew")
        outward.set_line(seeded["cement"], issue_qty=2)
        await workspace.submit_outward(outward)

        success, inwards = await workspace.material_inward_history(seeded["cement"])
        assert success is True
        assert [record.code for record in inwards] == ["INW-0001"]

        success, movements = await workspace.material_movements(seeded["cement"])
        assert success is True
        assert [record.code for record in movements.outwards] == ["OUT-0001"]
        assert movements.outwards[0].lines[0].issue_qty == qty(2)

    async def test_lookup_failure_leaves_store_status_alone(self, workspace, backend, seeded):
        await workspace.bootstrap()
        backend.tokens.clear()

        success, message = await workspace.material_movements(seeded["cement"])

        assert (success, message) == (False, "Session expired")
        assert workspace.status == StoreStatus.SUCCEEDED
        assert workspace.error is None
