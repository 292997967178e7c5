"""Backend REST API access"""

from .client import StoreApiClient, build_query_string

__all__ = ["StoreApiClient", "build_query_string"]
