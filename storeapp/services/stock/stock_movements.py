"""
Stock Movements - register line selection and submission gate helpers
Shared by the inward, outward and transfer registers
"""
from typing import Any, Dict, Iterator, Optional, Tuple
from decimal import Decimal, InvalidOperation

from storeapp.core.exceptions import MovementRejected, ValidationError
from storeapp.core.logging import get_logger

logger = get_logger("business")

ZERO = Decimal("0")

# Rejection messages shown to the user
NO_PROJECT = "Select a project before submitting."
NO_INWARD_LINES = "Choose at least one material with an ordered or received quantity."
NO_ISSUE_TO = "Enter who the material is issued to."
NO_OUTWARD_LINES = "Choose at least one in-stock material with an issue quantity."
NO_SOURCE_PROJECT = "Select the project the material is transferred from."
NO_DESTINATION_PROJECT = "Select the destination project for the transfer."
NO_TRANSFER_LINES = "Choose at least one in-stock material with a transfer quantity."
SITES_REQUIRED = "Provide both source and destination site names for same-project transfers."
SAME_SITE = "Source and destination sites must differ for transfers."


def to_quantity(value: Any) -> Decimal:
    """
    Parse a quantity typed into a register form

    Empty input counts as zero. Anything that is not a finite number is
    rejected.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return ZERO
    if isinstance(value, bool):
        raise ValidationError("Quantity must be a number")
    try:
        quantity = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Quantity must be a number, got {value!r}")
    if not quantity.is_finite():
        raise ValidationError("Quantity must be a finite number")
    return quantity


def reject(message: str, register: str) -> None:
    logger.warning(f"{register} submission rejected: {message}")
    raise MovementRejected(message)


class LineSelection:
    """
    Materials picked on a register form with the quantities entered for them

    A line whose quantities are all zero (or negative) is removed instead of
    stored, so the selection only ever holds lines worth submitting.
    """

    def __init__(self, fields: Tuple[str, ...]):
        self.fields = fields
        self._lines: Dict[str, Dict[str, Decimal]] = {}

    def set_line(self, material_id: Any, **quantities: Any) -> bool:
        """
        Store or drop a line; returns True when the line is kept
        """
        unknown = set(quantities) - set(self.fields)
        if unknown:
            raise ValidationError(f"Unknown quantity fields: {sorted(unknown)}")

        key = str(material_id)
        values = {name: to_quantity(quantities.get(name)) for name in self.fields}
        if all(value <= ZERO for value in values.values()):
            self._lines.pop(key, None)
            return False
        self._lines[key] = values
        return True

    def remove(self, material_id: Any) -> None:
        self._lines.pop(str(material_id), None)

    def clear(self) -> None:
        self._lines.clear()

    def get(self, material_id: Any) -> Optional[Dict[str, Decimal]]:
        return self._lines.get(str(material_id))

    def items(self) -> Iterator[Tuple[str, Dict[str, Decimal]]]:
        return iter(list(self._lines.items()))

    def __len__(self) -> int:
        return len(self._lines)

    def __contains__(self, material_id: Any) -> bool:
        return str(material_id) in self._lines


def normalize_id(value: Any) -> Optional[str]:
    """Form selections hold ids as ints or strings; blank means unset"""
    if value is None:
        return None
    text = str(value).strip()
    return text or None
