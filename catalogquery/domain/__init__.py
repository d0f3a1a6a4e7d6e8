"""Domain layer: errors raised by catalog query operations."""

from catalogquery.domain.exceptions import (
    CategoryError,
    CategoryInactive,
    CategoryNotFound,
    DomainError,
    InvalidMetaFilter,
    SegmentResolutionFailed,
    StoreUnavailable,
    TagServiceUnavailable,
)

__all__ = [
    "DomainError",
    "CategoryError",
    "CategoryNotFound",
    "CategoryInactive",
    "SegmentResolutionFailed",
    "TagServiceUnavailable",
    "InvalidMetaFilter",
    "StoreUnavailable",
]
