"""Contracts for the collaborators the catalog core depends on.

The store adapters in ``catalogquery.catalog.repository`` and the HTTP
clients in ``catalogquery.infrastructure`` implement these; tests swap
in in-memory fakes.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

from catalogquery.catalog.filters import ComposedFilter, FilterParams
from catalogquery.catalog.models import Product, ProductCategory

PRODUCT_CONTENT_TYPE = "products:product"


@dataclass(frozen=True)
class Tag:
    """Tag known to the tag service."""

    id: str
    name: str | None = None


@dataclass(frozen=True)
class SortSpec:
    """Sort order for product listings.

    Attributes:
        field: Product field name.
        direction: 1 for ascending, -1 for descending.
    """

    field: str = "code"
    direction: int = 1


@dataclass(frozen=True)
class SegmentCountContext:
    """Query context handed to the segment counter.

    Attributes:
        content_type: Content type being counted.
        common: Base scoping filter.
        params: Caller filter parameters.
    """

    content_type: str
    common: dict[str, Any] = field(default_factory=dict)
    params: FilterParams = field(default_factory=FilterParams)


class CategoryStore(Protocol):
    """Read access to product categories."""

    async def get(self, category_id: str) -> ProductCategory | None:
        """Get a category by ID."""
        ...

    async def ids_with_order_prefix(self, order: str) -> list[str]:
        """Get IDs of every category whose order starts with ``order``."""
        ...

    async def inactive_ids(self) -> list[str]:
        """Get IDs of every disabled or archived category."""
        ...


class ProductStore(Protocol):
    """Read access to products through composed filters."""

    async def find(
        self,
        flt: ComposedFilter,
        sort: SortSpec,
        offset: int = 0,
        limit: int | None = None,
    ) -> Sequence[Product]:
        """Find products matching a filter."""
        ...

    async def count(self, flt: ComposedFilter) -> int:
        """Count products matching a filter."""
        ...

    async def get(self, product_id: str) -> Product | None:
        """Get product by ID."""
        ...


class TagService(Protocol):
    """Lookup of known tags."""

    async def find_tags(self, content_type: str) -> list[Tag]:
        """List tags defined for a content type."""
        ...


class SegmentResolver(Protocol):
    """Resolution of segment membership."""

    async def resolve_ids(
        self,
        segment: str | None,
        segment_data: str | None,
    ) -> list[str]:
        """Get IDs of entities belonging to a segment."""
        ...


class SegmentCounter(Protocol):
    """Per-segment entity counts."""

    async def count_by_segment(self, context: SegmentCountContext) -> dict[str, int]:
        """Count entities per segment definition."""
        ...
