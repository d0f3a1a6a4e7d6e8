"""Domain exceptions.

Errors raised while composing filters or running catalog queries.
Every error carries a ``retryable`` flag so callers can tell transient
failures (timeouts, unavailable services) from permanent input errors.
"""

from typing import Any


class DomainError(Exception):
    """Base class for all domain exceptions.

    All domain errors should inherit from this class to allow
    catching domain-specific errors at the application layer.
    """

    retryable: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize domain error.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


# ============================================================================
# Category Errors
# ============================================================================


class CategoryError(DomainError):
    """Base class for category filter errors."""

    pass


class CategoryNotFound(CategoryError):
    """Raised when a category filter references a missing category."""

    def __init__(self, category_id: str) -> None:
        """Initialize category not found error.

        Args:
            category_id: ID of the requested category.
        """
        super().__init__(
            f"Product category {category_id} not found",
            details={"category_id": category_id},
        )


class CategoryInactive(CategoryError):
    """Raised when a category filter references a disabled or archived category."""

    def __init__(self, category_id: str, status: str) -> None:
        """Initialize category inactive error.

        Args:
            category_id: ID of the requested category.
            status: Current status of the category.
        """
        super().__init__(
            f"Product category {category_id} is not active (status '{status}')",
            details={"category_id": category_id, "status": status},
        )


# ============================================================================
# External Service Errors
# ============================================================================


class SegmentResolutionFailed(DomainError):
    """Raised when the segment service errors or times out."""

    def __init__(
        self,
        message: str,
        segment: str | None = None,
        timed_out: bool = False,
    ) -> None:
        """Initialize segment resolution error.

        Args:
            message: Description of the failure.
            segment: Segment that was being resolved, if any.
            timed_out: Whether the failure was a timeout.
        """
        super().__init__(
            message,
            details={"segment": segment, "timed_out": timed_out},
        )
        self.timed_out = timed_out
        self.retryable = timed_out


class TagServiceUnavailable(DomainError):
    """Raised when the tag service errors or times out."""

    retryable = True

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize tag service error.

        Args:
            message: Description of the failure.
            status_code: HTTP status returned by the tag service, if any.
        """
        super().__init__(message, details={"status_code": status_code})
        self.status_code = status_code


class StoreUnavailable(DomainError):
    """Raised when the underlying database cannot serve a read."""

    retryable = True

    def __init__(self, operation: str, reason: str) -> None:
        """Initialize store unavailable error.

        Args:
            operation: Store operation that failed.
            reason: Driver error message.
        """
        super().__init__(
            f"Catalog store unavailable during {operation}: {reason}",
            details={"operation": operation, "reason": reason},
        )


# ============================================================================
# Filter Input Errors
# ============================================================================


class InvalidMetaFilter(DomainError):
    """Raised when a category meta value cannot be read as a number.

    Never escapes a query: the caller recovers by falling back to an
    equality match on the raw value.
    """

    def __init__(self, meta: Any) -> None:
        """Initialize invalid meta filter error.

        Args:
            meta: The meta value that failed numeric coercion.
        """
        super().__init__(
            f"Meta filter {meta!r} is not numeric",
            details={"meta": meta},
        )
