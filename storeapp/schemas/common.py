"""
Store Workspace Common Schemas
Shared Pydantic models and field types for backend payloads
"""
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer
from pydantic.alias_generators import to_camel
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar
from decimal import Decimal, InvalidOperation

T = TypeVar('T')


def _to_identifier(value: Any) -> Any:
    """Backend ids arrive as numbers or strings; keep one representation"""
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        raise ValueError("identifier cannot be a boolean")
    if isinstance(value, (int, Decimal)):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return value


def _to_quantity(value: Any) -> Any:
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, float):
        # Go through str so 0.1 stays 0.1
        value = Decimal(str(value))
    elif isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError("quantity must be a number")
    if isinstance(value, Decimal) and not value.is_finite():
        raise ValueError("quantity must be a finite number")
    return value


def quantity_to_json(value: Decimal) -> Any:
    return int(value) if value == value.to_integral_value() else float(value)


Identifier = Annotated[str, BeforeValidator(_to_identifier)]

Quantity = Annotated[
    Decimal,
    BeforeValidator(_to_quantity),
    PlainSerializer(quantity_to_json, when_used="json"),
]


class CamelModel(BaseModel):
    """Base model mapping snake_case fields to the backend's camelCase keys"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys, unset optionals dropped"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Page(CamelModel, Generic[T]):
    """
    Paginated response returned by the search endpoints

    ``filters`` holds the facet values the backend offers for the result set
    (categories, units, prefixes, roles...).
    """
    items: List[T] = Field(default_factory=list)
    total_items: Optional[int] = None
    total_pages: Optional[int] = None
    page: Optional[int] = None
    has_next: bool = False
    filters: Dict[str, List[Optional[str]]] = Field(default_factory=dict)


def normalize_filter_values(values: Optional[List[Optional[str]]]) -> List[str]:
    """Trim, drop blanks, de-duplicate and sort facet values"""
    cleaned = {(value or "").strip() for value in (values or [])}
    return sorted(value for value in cleaned if value)
