"""Catalog query service.

High-level read operations over the product catalog. Product list and
count go through the same FilterComposer, so a list and its count never
disagree. Tag group counts start from the composer's base filter (scope
plus hidden deleted products) narrowed to each tag.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Generic, Literal, TypeVar

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from catalogquery.catalog.composer import FilterComposer
from catalogquery.catalog.filters import CategoryListParams, FilterParams
from catalogquery.catalog.hierarchy import CategoryHierarchyResolver
from catalogquery.catalog.models import Product, ProductCategory
from catalogquery.catalog.ports import (
    PRODUCT_CONTENT_TYPE,
    SegmentCountContext,
    SegmentCounter,
    SegmentResolver,
    SortSpec,
    Tag,
    TagService,
)
from catalogquery.catalog.repository import CategoryRepository, ProductRepository
from catalogquery.domain.exceptions import (
    DomainError,
    SegmentResolutionFailed,
    TagServiceUnavailable,
)
from catalogquery.infrastructure.config import settings

T = TypeVar("T")

GroupBucket = Literal["byTag", "bySegment"]

logger = structlog.get_logger()


@dataclass
class PaginatedResult(Generic[T]):
    """Paginated result container.

    Attributes:
        items: List of items.
        total: Total count.
        page: Current page.
        page_size: Items per page.
        total_pages: Total number of pages.
    """

    items: list[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        """Check if there's a previous page."""
        return self.page > 1


@dataclass
class GroupCounts:
    """Product counts grouped by tag and by segment."""

    by_tag: dict[str, int] = field(default_factory=dict)
    by_segment: dict[str, int] = field(default_factory=dict)


class CatalogQueryService:
    """Service for catalog read operations.

    Example usage:
        async with async_session_factory() as session:
            service = CatalogQueryService.from_session(
                session, tag_client, segment_client
            )
            page = await service.list_products(
                {"scope_id": "tenant-1"},
                FilterParams(category_id="cat-1", per_page=50),
            )
    """

    def __init__(
        self,
        products: ProductRepository,
        categories: CategoryRepository,
        composer: FilterComposer,
        tags: TagService,
        segment_counter: SegmentCounter,
        tag_timeout: float | None = None,
        segment_timeout: float | None = None,
    ) -> None:
        """Initialize service.

        Args:
            products: Product repository.
            categories: Category repository.
            composer: Product filter composer.
            tags: Tag service.
            segment_counter: Per-segment count capability.
            tag_timeout: Seconds to wait for the tag service.
            segment_timeout: Seconds to wait for segment counts.
        """
        self.products = products
        self.categories = categories
        self.composer = composer
        self.tags = tags
        self.segment_counter = segment_counter
        self.tag_timeout = tag_timeout if tag_timeout is not None else settings.tag_service_timeout
        self.segment_timeout = (
            segment_timeout if segment_timeout is not None else settings.segment_timeout
        )

    @classmethod
    def from_session(
        cls,
        session: AsyncSession,
        tags: TagService,
        segments: SegmentResolver,
        segment_counter: SegmentCounter | None = None,
    ) -> "CatalogQueryService":
        """Wire a service around a database session.

        Args:
            session: Async SQLAlchemy session.
            tags: Tag service.
            segments: Segment membership resolver.
            segment_counter: Per-segment counter (defaults to ``segments``).

        Returns:
            Configured service.
        """
        categories = CategoryRepository(session)
        return cls(
            products=ProductRepository(session),
            categories=categories,
            composer=FilterComposer(CategoryHierarchyResolver(categories), segments),
            tags=tags,
            segment_counter=segment_counter or segments,  # type: ignore[arg-type]
        )

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def list_products(
        self,
        common: Mapping[str, Any] | None,
        params: FilterParams,
    ) -> PaginatedResult[Product]:
        """List products with filters, sorting and pagination.

        Args:
            common: Base scoping constraints.
            params: Filter parameters.

        Returns:
            Paginated product results.
        """
        composition = await self.composer.compose(common, params)

        page = composition.pagination.page or 1
        page_size = min(
            composition.pagination.per_page or settings.default_per_page,
            settings.max_per_page,
        )

        sort = SortSpec()
        if params.sort_field:
            sort = SortSpec(field=params.sort_field, direction=params.sort_direction or 1)

        items = await self.products.find(
            composition.filter,
            sort,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        total = await self.products.count(composition.filter)

        return PaginatedResult(
            items=list(items),
            total=total,
            page=page,
            page_size=page_size,
        )

    async def count_products(
        self,
        common: Mapping[str, Any] | None,
        params: FilterParams,
    ) -> int:
        """Count products matching filters.

        Args:
            common: Base scoping constraints.
            params: Filter parameters.

        Returns:
            Count of matching products.
        """
        composition = await self.composer.compose(common, params)
        return await self.products.count(composition.filter)

    async def group_counts(
        self,
        common: Mapping[str, Any] | None,
        params: FilterParams,
        only: GroupBucket | str,
    ) -> GroupCounts:
        """Count products per tag or per segment.

        Per-tag counts cover every non-deleted product in scope carrying the
        tag; per-segment counts come from the segment counter.

        Args:
            common: Base scoping constraints.
            params: Filter parameters.
            only: Bucket to fill, "byTag" or "bySegment".

        Returns:
            Group counts with the requested bucket filled.

        Raises:
            TagServiceUnavailable: If tags cannot be listed in time.
            SegmentResolutionFailed: If segment counts fail or time out.
        """
        counts = GroupCounts()

        if only == "byTag":
            base = self.composer.base(common)
            tags = await self._find_tags()
            for tag in tags:
                counts.by_tag[tag.id] = await self.products.count(replace(base, tag=tag.id))

        elif only == "bySegment":
            context = SegmentCountContext(
                content_type=PRODUCT_CONTENT_TYPE,
                common=dict(common or {}),
                params=params,
            )
            counts.by_segment = await self._count_by_segment(context)

        else:
            logger.warning("Unknown group count bucket", only=only)

        return counts

    async def count_by_tags(self) -> dict[str, int]:
        """Count non-deleted products per known tag.

        Returns:
            Mapping of tag ID to product count.
        """
        counts = await self.group_counts(None, FilterParams(), "byTag")
        return counts.by_tag

    async def _find_tags(self) -> list[Tag]:
        """List product tags, mapping failures to TagServiceUnavailable."""
        try:
            return list(
                await asyncio.wait_for(
                    self.tags.find_tags(PRODUCT_CONTENT_TYPE),
                    timeout=self.tag_timeout,
                )
            )
        except DomainError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning("Tag lookup timed out", timeout=self.tag_timeout)
            raise TagServiceUnavailable(
                f"Tag service timed out after {self.tag_timeout}s"
            ) from e
        except Exception as e:
            logger.error("Tag lookup failed", error=str(e))
            raise TagServiceUnavailable(f"Tag lookup failed: {e}") from e

    async def _count_by_segment(self, context: SegmentCountContext) -> dict[str, int]:
        """Count per segment, mapping failures to SegmentResolutionFailed."""
        segment = context.params.segment
        try:
            return dict(
                await asyncio.wait_for(
                    self.segment_counter.count_by_segment(context),
                    timeout=self.segment_timeout,
                )
            )
        except DomainError:
            raise
        except asyncio.TimeoutError as e:
            logger.warning(
                "Segment counts timed out",
                segment=segment,
                timeout=self.segment_timeout,
            )
            raise SegmentResolutionFailed(
                f"Segment counts timed out after {self.segment_timeout}s",
                segment=segment,
                timed_out=True,
            ) from e
        except Exception as e:
            logger.error("Segment counts failed", segment=segment, error=str(e))
            raise SegmentResolutionFailed(
                f"Segment counts failed: {e}",
                segment=segment,
            ) from e

    async def product_detail(self, product_id: str) -> Product | None:
        """Get product by ID."""
        return await self.products.get(product_id)

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(
        self,
        common: Mapping[str, Any] | None,
        params: CategoryListParams,
    ) -> list[ProductCategory]:
        """List categories sorted by order.

        Args:
            common: Base scoping constraints.
            params: Category listing parameters.

        Returns:
            Matching categories.
        """
        return list(await self.categories.find(dict(common or {}), params))

    async def count_categories(self) -> int:
        """Count all categories."""
        return await self.categories.count()

    async def category_detail(self, category_id: str) -> ProductCategory | None:
        """Get category by ID."""
        return await self.categories.get(category_id)
