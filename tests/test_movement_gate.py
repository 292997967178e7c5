"""
Tests for the register submission gate
Inward, outward and transfer payload building and rejection rules
"""

import pytest
from datetime import date

from storeapp.core.exceptions import MovementRejected, ValidationError
from storeapp.schemas.inventory import OutwardStatus
from storeapp.services.stock.stock_inquiry import reconcile_project
from storeapp.services.stock.stock_issues import OutwardDraft, build_outward_submission
from storeapp.services.stock.stock_movements import (
    NO_DESTINATION_PROJECT, NO_INWARD_LINES, NO_ISSUE_TO, NO_OUTWARD_LINES, NO_PROJECT,
    NO_SOURCE_PROJECT, NO_TRANSFER_LINES, SAME_SITE, SITES_REQUIRED, LineSelection, to_quantity
)
from storeapp.services.stock.stock_receipts import InwardDraft, build_inward_submission
from storeapp.services.stock.stock_transfer import TransferDraft, build_transfer_submission

from tests.records import allocation, inward, outward, qty


@pytest.fixture
def balance():
    """P1: material 10 has 30 in stock, 11 is allocated but empty"""
    return reconcile_project(
        "P1",
        [allocation(10, 100), allocation(11, 100)],
        inwards=[inward("P1", (10, 50, 50))],
        outwards=[outward("P1", (10, 20))],
    )


class TestLineSelection:
    """Test suite for LineSelection"""

    def test_zero_or_blank_quantities_remove_line(self):
        selection = LineSelection(("issue_qty",))
        assert selection.set_line(10, issue_qty="4")
        assert 10 in selection

        assert not selection.set_line(10, issue_qty="")
        assert 10 not in selection
        assert not selection.set_line(11, issue_qty=-2)
        assert len(selection) == 0

    def test_non_numeric_quantity_rejected(self):
        selection = LineSelection(("issue_qty",))

        with pytest.raises(ValidationError):
            selection.set_line(10, issue_qty="a lot")
        with pytest.raises(ValidationError):
            selection.set_line(10, issue_qty=float("inf"))

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            LineSelection(("issue_qty",)).set_line(10, transfer_qty=1)

    def test_to_quantity(self):
        assert to_quantity(None) == qty(0)
        assert to_quantity(" 2.50 ") == qty("2.5")
        assert to_quantity(3) == qty(3)


class TestInwardGate:
    """Test suite for build_inward_submission"""

    def test_builds_payload_for_allocated_lines(self, balance):
        draft = InwardDraft(invoice_no="INV-9", supplier_name="Acme")
        draft.set_project("P1")
        draft.set_line(10, ordered_qty=10, received_qty=8)
        draft.set_line(99, ordered_qty=5, received_qty=5)

        submission = build_inward_submission(draft, balance, code="INW-0001")
        payload = submission.to_payload()

        assert payload["code"] == "INW-0001"
        assert payload["projectId"] == "P1"
        assert payload["type"] == "SUPPLY"
        assert payload["invoiceNo"] == "INV-9"
        assert payload["lines"] == [{"materialId": "10", "orderedQty": 10, "receivedQty": 8}]

    def test_ordered_defaults_to_received(self, balance):
        draft = InwardDraft(project_id="P1")
        draft.set_line(11, received_qty="2.5")

        submission = build_inward_submission(draft, balance)

        assert submission.lines[0].ordered_qty == qty("2.5")
        assert submission.to_payload()["lines"][0]["orderedQty"] == 2.5

    def test_received_may_exceed_ordered(self, balance):
        draft = InwardDraft(project_id="P1")
        draft.set_line(10, ordered_qty=5, received_qty=7)

        line = build_inward_submission(draft, balance).lines[0]

        assert (line.ordered_qty, line.received_qty) == (qty(5), qty(7))

    def test_rejects_without_project(self, balance):
        draft = InwardDraft()
        draft.set_line(10, received_qty=1)

        with pytest.raises(MovementRejected, match=NO_PROJECT):
            build_inward_submission(draft, balance)

    def test_rejects_when_only_unallocated_lines(self, balance):
        draft = InwardDraft(project_id="P1")
        draft.set_line(99, received_qty=4)

        with pytest.raises(MovementRejected) as exc_info:
            build_inward_submission(draft, balance)

        assert exc_info.value.message == NO_INWARD_LINES

    def test_changing_project_clears_selection(self):
        draft = InwardDraft()
        draft.set_project("P1")
        draft.set_line(10, received_qty=1)

        draft.set_project("P2")

        assert len(draft.selection) == 0


class TestOutwardGate:
    """Test suite for build_outward_submission"""

    def test_only_in_stock_materials_survive(self, balance):
        draft = OutwardDraft(project_id="P1", issue_to="  Block C crew ", entry_date=date(2024, 3, 1))
        draft.set_line(10, issue_qty=5)
        draft.set_line(11, issue_qty=5)

        payload = build_outward_submission(draft, balance, code="OUT-0002").to_payload()

        assert payload["issueTo"] == "Block C crew"
        assert payload["date"] == "2024-03-01"
        assert payload["status"] == "OPEN"
        assert "closeDate" not in payload
        assert payload["lines"] == [{"materialId": "10", "issueQty": 5}]

    def test_close_date_sent_for_closed_entries(self, balance):
        draft = OutwardDraft(
            project_id="P1", issue_to="Crew", status=OutwardStatus.CLOSED, close_date=date(2024, 3, 9)
        )
        draft.set_line(10, issue_qty=1)

        payload = build_outward_submission(draft, balance).to_payload()

        assert payload["closeDate"] == "2024-03-09"

    @pytest.mark.parametrize("project_id,issue_to,message", [
        (None, "Crew", NO_PROJECT),
        ("P1", "   ", NO_ISSUE_TO),
    ])
    def test_rejects_missing_header_fields(self, balance, project_id, issue_to, message):
        draft = OutwardDraft(project_id=project_id, issue_to=issue_to)
        draft.set_line(10, issue_qty=1)

        with pytest.raises(MovementRejected) as exc_info:
            build_outward_submission(draft, balance)

        assert exc_info.value.message == message

    def test_rejects_when_nothing_in_stock_selected(self, balance):
        draft = OutwardDraft(project_id="P1", issue_to="Crew")
        draft.set_line(11, issue_qty=3)

        with pytest.raises(MovementRejected) as exc_info:
            build_outward_submission(draft, balance)

        assert exc_info.value.message == NO_OUTWARD_LINES


class TestTransferGate:
    """Test suite for build_transfer_submission"""

    def test_builds_cross_project_payload(self, balance):
        draft = TransferDraft(to_project_id="P2", from_site=" Yard ", remarks="urgent")
        draft.set_source("P1")
        draft.set_line(10, transfer_qty=10)

        payload = build_transfer_submission(draft, balance, code="TRF-0003").to_payload()

        assert payload == {
            "code": "TRF-0003",
            "fromProjectId": "P1",
            "toProjectId": "P2",
            "fromSite": "Yard",
            "remarks": "urgent",
            "lines": [{"materialId": "10", "transferQty": 10}],
        }

    def test_same_project_same_site_rejected(self, balance):
        """Identical site and project, compared case-insensitively, is refused"""
        draft = TransferDraft(from_project_id="P1", to_project_id="P1", from_site="Yard ", to_site=" yard")
        draft.set_line(10, transfer_qty=1)

        with pytest.raises(MovementRejected) as exc_info:
            build_transfer_submission(draft, balance)

        assert exc_info.value.message == SAME_SITE

    def test_same_project_needs_both_sites(self, balance):
        draft = TransferDraft(from_project_id="P1", to_project_id="P1", from_site="Yard")
        draft.set_line(10, transfer_qty=1)

        with pytest.raises(MovementRejected) as exc_info:
            build_transfer_submission(draft, balance)

        assert exc_info.value.message == SITES_REQUIRED

    def test_same_project_different_sites_allowed(self, balance):
        draft = TransferDraft(from_project_id="P1", to_project_id="P1", from_site="Yard", to_site="Block C")
        draft.set_line(10, transfer_qty=1)

        submission = build_transfer_submission(draft, balance)

        assert submission.to_site == "Block C"

    @pytest.mark.parametrize("source,destination,message", [
        (None, "P2", NO_SOURCE_PROJECT),
        ("P1", None, NO_DESTINATION_PROJECT),
    ])
    def test_rejects_missing_projects(self, balance, source, destination, message):
        draft = TransferDraft(from_project_id=source, to_project_id=destination)
        draft.set_line(10, transfer_qty=1)

        with pytest.raises(MovementRejected) as exc_info:
            build_transfer_submission(draft, balance)

        assert exc_info.value.message == message

    def test_rejects_empty_selection(self, balance):
        draft = TransferDraft(from_project_id="P1", to_project_id="P2")
        draft.set_line(10, transfer_qty=0)

        with pytest.raises(MovementRejected) as exc_info:
            build_transfer_submission(draft, balance)

        assert exc_info.value.message == NO_TRANSFER_LINES

    def test_rejection_messages_are_distinct(self):
        messages = [
            NO_PROJECT, NO_INWARD_LINES, NO_ISSUE_TO, NO_OUTWARD_LINES, NO_SOURCE_PROJECT,
            NO_DESTINATION_PROJECT, NO_TRANSFER_LINES, SITES_REQUIRED, SAME_SITE,
        ]
        assert len(set(messages)) == len(messages)
