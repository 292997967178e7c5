"""
Base Store
Shared request bookkeeping for the client-side stores
"""
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from enum import Enum
import pydantic

from storeapp.api.client import MALFORMED_RESPONSE, StoreApiClient
from storeapp.core.config import settings
from storeapp.core.exceptions import StoreAppException
from storeapp.core.logging import get_logger
from storeapp.schemas.common import Page, normalize_filter_values

logger = get_logger("business")

STALE = "stale"
SAVE_IN_PROGRESS = "Another save is already in progress"

Result = Tuple[bool, Any]


class StoreStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class BaseStore:
    """
    Request status, last error and the one-save-at-a-time rule

    Each fetch action keeps its own generation number. A response that
    comes back after a newer fetch of the same action was started is dropped
    and reported as ``(False, STALE)``.
    """

    name = "store"

    def __init__(self, client: StoreApiClient, session):
        self.client = client
        self.session = session
        self.status = StoreStatus.IDLE
        self.error: Optional[str] = None
        self.saving = False
        self._generations: Dict[str, int] = {}

    @property
    def token(self) -> Optional[str]:
        return self.session.token

    def clear_error(self) -> None:
        self.error = None

    def _next_generation(self, action: str) -> int:
        self._generations[action] = self._generations.get(action, 0) + 1
        return self._generations[action]

    def _is_stale(self, action: str, generation: int) -> bool:
        return generation != self._generations.get(action)

    async def _fetch(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        parse: Optional[Callable[[Any], Any]] = None,
        track: bool = True
    ) -> Result:
        """
        Run a read request with status tracking
        Side lookups pass ``track=False`` to leave status and error alone.
        Returns (success, parsed_payload_or_message)
        """
        generation = self._next_generation(action)
        if track:
            self.status = StoreStatus.LOADING
            self.error = None

        try:
            data = await call()
            result = parse(data) if parse else data
        except (StoreAppException, pydantic.ValidationError) as e:
            if self._is_stale(action, generation):
                logger.debug(f"{self.name}: dropped failed stale response for {action}")
                return False, STALE
            message = _message(e)
            if track:
                self.status = StoreStatus.FAILED
                self.error = message
            logger.error(f"{self.name}: {action} failed: {message}")
            return False, message

        if self._is_stale(action, generation):
            logger.debug(f"{self.name}: dropped stale response for {action}")
            return False, STALE

        if track:
            self.status = StoreStatus.SUCCEEDED
        return True, result

    async def _mutate(
        self,
        action: str,
        call: Callable[[], Awaitable[Any]],
        parse: Optional[Callable[[Any], Any]] = None
    ) -> Result:
        """
        Run a write request; refused while another save is running
        Returns (success, parsed_payload_or_message)
        """
        if self.saving:
            logger.warning(f"{self.name}: {action} refused, save in progress")
            return False, SAVE_IN_PROGRESS

        self.saving = True
        self.error = None
        try:
            data = await call()
            result = parse(data) if parse else data
        except (StoreAppException, pydantic.ValidationError) as e:
            message = _message(e)
            self.error = message
            logger.error(f"{self.name}: {action} failed: {message}")
            return False, message
        finally:
            self.saving = False

        logger.info(f"{self.name}: {action} succeeded")
        return True, result


def _message(error: Exception) -> str:
    if isinstance(error, StoreAppException):
        return error.message or "Request failed"
    return MALFORMED_RESPONSE


class PagedStore(BaseStore):
    """Store backed by one of the paginated search endpoints"""

    # Facet keys (camelCase, as sent by the backend) kept in available_filters
    filter_keys: Tuple[str, ...] = ()

    def __init__(self, client: StoreApiClient, session):
        super().__init__(client, session)
        self.items: list = []
        self.total_items = 0
        self.total_pages = 1
        self.page = 1
        self.available_filters: Dict[str, List[str]] = {key: [] for key in self.filter_keys}
        self.last_query: Dict[str, Any] = {}

    def _remember_query(self, query: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Copy of the query with page and size filled in, kept for refetches"""
        query = dict(query or {})
        query.setdefault("page", 1)
        query.setdefault("size", settings.DEFAULT_PAGE_SIZE)
        self.last_query = query
        return query

    def _apply_page(self, page: Page, query: Dict[str, Any]) -> None:
        self.items = list(page.items)
        self.total_items = page.total_items if page.total_items is not None else len(self.items)
        self.total_pages = max(1, page.total_pages or 1)
        self.page = page.page or query.get("page") or 1
        self.available_filters = {
            key: normalize_filter_values(page.filters.get(key))
            for key in self.filter_keys
        }

    def _reset_page(self) -> None:
        self.items = []
        self.total_items = 0
        self.total_pages = 1


async def collect_pages(
    call: Callable[[Dict[str, Any]], Awaitable[Any]],
    model: Any,
    page_size: Optional[int] = None
) -> list:
    """
    Walk a paginated endpoint from page 1 while the backend reports hasNext

    Raises whatever ``call`` raises; a partial walk is never returned.
    """
    size = page_size or settings.LOOKUP_PAGE_SIZE
    items: list = []
    page_number = 1
    while True:
        page = Page[model].model_validate(await call({"page": page_number, "size": size}) or {})
        items.extend(page.items)
        if not page.has_next:
            return items
        page_number += 1
