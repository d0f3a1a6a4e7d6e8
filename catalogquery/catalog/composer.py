"""Product filter composition.

Merges the caller's base scope and filter parameters into a single
``ComposedFilter``. Steps run in a fixed order and later steps replace
what earlier ones set:

    1. copy the base scope
    2. hide deleted products
    3. product type
    4. category subtree, or hide inactive categories
    5. ID list (in or out), with a pagination floor
    6. tag
    7. free-text search
    8. segment membership, replacing any ID list from step 5

Step 8 is an override, not an intersection: when a request carries both
``ids`` and a segment, the segment's members are the ID constraint.
"""

import asyncio
from collections.abc import Mapping
from dataclasses import replace
from typing import Any

import structlog

from catalogquery.catalog.filters import (
    ComposedFilter,
    Composition,
    FilterParams,
    IdConstraint,
    PaginationArgs,
)
from catalogquery.catalog.hierarchy import CategoryHierarchyResolver
from catalogquery.catalog.models import ProductStatus
from catalogquery.catalog.ports import SegmentResolver
from catalogquery.catalog.search import TextSearchNormalizer
from catalogquery.domain.exceptions import SegmentResolutionFailed
from catalogquery.infrastructure.config import settings

logger = structlog.get_logger()

# Scope keys replaced by explicit composition steps
_COMPOSED_FIELDS = ("status", "type", "category_id", "id")


class FilterComposer:
    """Builds product filters from caller parameters.

    Example usage:
        composer = FilterComposer(category_resolver, segment_resolver)
        composition = await composer.compose(
            {"scope_id": "tenant-1"},
            FilterParams(category_id="cat-1", search_value="AB_12"),
        )
        products = await store.find(composition.filter, SortSpec())
    """

    def __init__(
        self,
        categories: CategoryHierarchyResolver,
        segments: SegmentResolver,
        normalizer: TextSearchNormalizer | None = None,
        segment_timeout: float | None = None,
        id_list_per_page: int | None = None,
    ) -> None:
        """Initialize composer.

        Args:
            categories: Category hierarchy resolver.
            segments: Segment membership resolver.
            normalizer: Search normalizer (default TextSearchNormalizer()).
            segment_timeout: Seconds to wait for segment resolution.
            id_list_per_page: Page size applied to unpaginated ID-list queries.
        """
        self.categories = categories
        self.segments = segments
        self.normalizer = normalizer or TextSearchNormalizer()
        self.segment_timeout = (
            segment_timeout if segment_timeout is not None else settings.segment_timeout
        )
        self.id_list_per_page = id_list_per_page or settings.id_list_per_page

    def base(self, common: Mapping[str, Any] | None) -> ComposedFilter:
        """Build the filter every composition starts from.

        Copies the base scope (minus fields set by later steps) and hides
        deleted products.

        Args:
            common: Base scoping constraints.

        Returns:
            Filter with only scope and status constraints.
        """
        scope = dict(common or {})
        for name in _COMPOSED_FIELDS:
            scope.pop(name, None)

        return ComposedFilter(
            scope=tuple(sorted(scope.items())),
            excluded_status=ProductStatus.DELETED.value,
        )

    async def compose(
        self,
        common: Mapping[str, Any] | None,
        params: FilterParams,
    ) -> Composition:
        """Compose a product filter.

        Args:
            common: Base scoping constraints (field -> required value).
            params: Caller filter parameters.

        Returns:
            Composed filter and the effective pagination arguments.

        Raises:
            CategoryNotFound: If the requested category does not exist.
            CategoryInactive: If the requested category is not active.
            SegmentResolutionFailed: If segment resolution errors or times out.
        """
        base = self.base(common)
        pagination = PaginationArgs(page=params.page, per_page=params.per_page)

        resolution = await self.categories.resolve(params.category_id)
        category = resolution.to_constraint()

        ids = None
        if params.ids:
            ids = IdConstraint(ids=tuple(params.ids), exclude=params.exclude_ids)
            if pagination.is_empty:
                pagination = PaginationArgs(page=1, per_page=self.id_list_per_page)

        search = self.normalizer.normalize(params.search_value)

        if params.segment or params.segment_data:
            members = await self._resolve_segment(params)
            if ids is not None:
                logger.info(
                    "Segment membership replaces ID list",
                    segment=params.segment,
                    id_count=len(ids.ids),
                    member_count=len(members),
                )
            ids = IdConstraint(ids=tuple(members), exclude=False)

        return Composition(
            filter=replace(
                base,
                type=params.type or None,
                category=category,
                ids=ids,
                tag=params.tag or None,
                search=search,
            ),
            pagination=pagination,
        )

    async def _resolve_segment(self, params: FilterParams) -> list[str]:
        """Resolve segment members, mapping failures to SegmentResolutionFailed."""
        try:
            return await asyncio.wait_for(
                self.segments.resolve_ids(params.segment, params.segment_data),
                timeout=self.segment_timeout,
            )
        except SegmentResolutionFailed:
            raise
        except asyncio.TimeoutError as e:
            logger.warning(
                "Segment resolution timed out",
                segment=params.segment,
                timeout=self.segment_timeout,
            )
            raise SegmentResolutionFailed(
                f"Segment resolution timed out after {self.segment_timeout}s",
                segment=params.segment,
                timed_out=True,
            ) from e
        except Exception as e:
            logger.error(
                "Segment resolution failed",
                segment=params.segment,
                error=str(e),
            )
            raise SegmentResolutionFailed(
                f"Segment resolution failed: {e}",
                segment=params.segment,
            ) from e
