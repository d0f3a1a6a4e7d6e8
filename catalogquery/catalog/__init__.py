"""Product catalog queries.

Filter composition over the category hierarchy, free-text search and
segment membership, plus the list, count and group-count operations
built on it.
"""

from catalogquery.catalog.composer import FilterComposer
from catalogquery.catalog.filters import (
    CategoryListParams,
    ComposedFilter,
    Composition,
    FilterParams,
    IdConstraint,
    PaginationArgs,
    SearchPredicate,
)
from catalogquery.catalog.hierarchy import CategoryHierarchyResolver, CategoryResolution
from catalogquery.catalog.models import (
    CategoryStatus,
    Product,
    ProductBarcode,
    ProductCategory,
    ProductStatus,
    ProductTag,
    ProductType,
)
from catalogquery.catalog.ports import SegmentCountContext, SortSpec, Tag
from catalogquery.catalog.repository import CategoryRepository, ProductRepository
from catalogquery.catalog.search import TextSearchNormalizer
from catalogquery.catalog.service import CatalogQueryService, GroupCounts, PaginatedResult

__all__ = [
    # Models
    "CategoryStatus",
    "Product",
    "ProductBarcode",
    "ProductCategory",
    "ProductStatus",
    "ProductTag",
    "ProductType",
    # Filters
    "CategoryListParams",
    "ComposedFilter",
    "Composition",
    "FilterParams",
    "IdConstraint",
    "PaginationArgs",
    "SearchPredicate",
    # Composition
    "CategoryHierarchyResolver",
    "CategoryResolution",
    "FilterComposer",
    "TextSearchNormalizer",
    # Repository
    "CategoryRepository",
    "ProductRepository",
    # Service
    "CatalogQueryService",
    "GroupCounts",
    "PaginatedResult",
    "SegmentCountContext",
    "SortSpec",
    "Tag",
]
