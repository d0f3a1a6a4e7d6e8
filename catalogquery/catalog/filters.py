"""Filter parameter and predicate types.

``FilterParams`` and ``CategoryListParams`` are the caller-facing inputs
(camelCase keys accepted). ``ComposedFilter`` is the immutable predicate
the composer produces and the store adapters execute.
"""

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from catalogquery.catalog.models import ProductStatus


class FilterParams(BaseModel):
    """Product search and filter parameters."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    type: str | None = Field(default=None, description="Product type equality")
    category_id: str | None = Field(default=None, description="Category subtree root")
    search_value: str | None = Field(default=None, description="Free-text search")
    tag: str | None = Field(default=None, description="Required tag ID")
    ids: list[str] | None = Field(default=None, description="Product ID list")
    exclude_ids: bool = Field(default=False, description="Treat ids as an exclusion list")
    segment: str | None = Field(default=None, description="Saved segment ID")
    segment_data: str | None = Field(default=None, description="Inline segment definition")
    sort_field: str | None = Field(default=None, description="Sort field")
    sort_direction: Literal[1, -1] | None = Field(default=None, description="1 asc, -1 desc")
    page: int | None = Field(default=None, ge=1, description="Page number (1-based)")
    per_page: int | None = Field(default=None, ge=1, description="Items per page")


class CategoryListParams(BaseModel):
    """Category listing parameters."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    parent_id: str | None = None
    search_value: str | None = None
    status: str | None = None
    meta: Any = None


@dataclass(frozen=True)
class PaginationArgs:
    """Pagination arguments as supplied by the caller (both optional)."""

    page: int | None = None
    per_page: int | None = None

    @property
    def is_empty(self) -> bool:
        """Check whether the caller supplied neither page nor per_page."""
        return not self.page and not self.per_page


@dataclass(frozen=True)
class IdConstraint:
    """Membership constraint on an ID column.

    Attributes:
        ids: IDs to match.
        exclude: True for NOT IN, False for IN.
    """

    ids: tuple[str, ...]
    exclude: bool = False


@dataclass(frozen=True)
class SearchPredicate:
    """Free-text search disjunction.

    Matches when any of these hold:
        name ~* text_pattern
        code ~* text_pattern
        code ~* code_pattern
        barcodes contains barcode (exact)
    """

    text_pattern: str
    code_pattern: str
    barcode: str


@dataclass(frozen=True)
class ComposedFilter:
    """Immutable product predicate.

    Attributes:
        scope: Equality constraints copied from the base filter, sorted by field.
        excluded_status: Status that never matches.
        type: Required product type.
        category: Category inclusion or exclusion set.
        ids: Product ID inclusion or exclusion set.
        tag: Required tag ID.
        search: Free-text disjunction.
    """

    scope: tuple[tuple[str, Any], ...] = ()
    excluded_status: str = ProductStatus.DELETED.value
    type: str | None = None
    category: IdConstraint | None = None
    ids: IdConstraint | None = None
    tag: str | None = None
    search: SearchPredicate | None = None


@dataclass(frozen=True)
class Composition:
    """Result of composing a filter.

    Attributes:
        filter: The composed product predicate.
        pagination: Pagination arguments after composition defaults.
    """

    filter: ComposedFilter
    pagination: PaginationArgs = field(default_factory=PaginationArgs)
