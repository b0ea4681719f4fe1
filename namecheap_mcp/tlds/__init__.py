"""TLD catalog cache and query pipeline."""

from namecheap_mcp.tlds.cache import (
    SORT_FIELDS,
    CatalogSnapshot,
    CatalogSource,
    TldCache,
    TldPage,
    TldQuery,
    filter_records,
    paginate,
    sort_records,
)

__all__ = [
    "SORT_FIELDS",
    "CatalogSnapshot",
    "CatalogSource",
    "TldCache",
    "TldPage",
    "TldQuery",
    "filter_records",
    "paginate",
    "sort_records",
]
