"""Stock Services - allocations, balance reconciliation and movement registers"""

from .stock_allocation import AllocationService
from .stock_inquiry import MaterialBalance, ProjectBalance, reconcile_project
from .stock_issues import OutwardDraft, build_outward_submission
from .stock_master import MaterialStore
from .stock_movements import LineSelection
from .stock_receipts import InwardDraft, build_inward_submission
from .stock_transfer import TransferDraft, build_transfer_submission
