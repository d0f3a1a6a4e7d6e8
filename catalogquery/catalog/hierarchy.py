"""Category hierarchy resolution.

Turns a category filter into the set of category IDs a product may (or
may not) belong to, using the ``order`` prefix encoding instead of a
recursive tree walk.
"""

from dataclasses import dataclass

import structlog

from catalogquery.catalog.filters import IdConstraint
from catalogquery.catalog.ports import CategoryStore
from catalogquery.domain.exceptions import CategoryInactive, CategoryNotFound

logger = structlog.get_logger()


@dataclass(frozen=True)
class CategoryResolution:
    """Resolved category constraint.

    Attributes:
        ids: Category IDs in the set.
        exclude: True when the set lists categories to hide.
    """

    ids: frozenset[str]
    exclude: bool = False

    def to_constraint(self) -> IdConstraint:
        """Convert to an ID constraint with a stable ID order."""
        return IdConstraint(ids=tuple(sorted(self.ids)), exclude=self.exclude)


class CategoryHierarchyResolver:
    """Resolves category filters against a category store.

    Example usage:
        resolver = CategoryHierarchyResolver(CategoryRepository(session))
        subtree = await resolver.resolve("cat-electronics")
        hidden = await resolver.resolve(None)
    """

    def __init__(self, store: CategoryStore) -> None:
        """Initialize resolver.

        Args:
            store: Category store to query.
        """
        self.store = store

    async def resolve(self, category_id: str | None = None) -> CategoryResolution:
        """Resolve a category filter.

        Args:
            category_id: Root of the requested subtree, or None for the
                default visibility rule.

        Returns:
            The category and all its descendants when ``category_id`` is
            given, otherwise the disabled and archived categories to exclude.

        Raises:
            CategoryNotFound: If the category does not exist.
            CategoryInactive: If the category is disabled or archived.
        """
        if not category_id:
            inactive = await self.store.inactive_ids()
            return CategoryResolution(ids=frozenset(inactive), exclude=True)

        category = await self.store.get(category_id)
        if category is None:
            raise CategoryNotFound(category_id)
        if not category.is_active:
            raise CategoryInactive(category_id, category.status)

        subtree = await self.store.ids_with_order_prefix(category.order)

        logger.debug(
            "Resolved category subtree",
            category_id=category_id,
            order=category.order,
            category_count=len(subtree),
        )

        return CategoryResolution(ids=frozenset(subtree), exclude=False)
