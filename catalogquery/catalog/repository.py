"""Repositories for catalog database reads.

Translates composed filters into SQLAlchemy statements. Driver failures
surface as ``StoreUnavailable``.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Float, and_, case, cast, func, or_, select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from catalogquery.catalog.filters import CategoryListParams, ComposedFilter, IdConstraint
from catalogquery.catalog.models import (
    CategoryStatus,
    Product,
    ProductBarcode,
    ProductCategory,
    ProductTag,
)
from catalogquery.catalog.ports import SortSpec
from catalogquery.domain.exceptions import InvalidMetaFilter, StoreUnavailable

HIDDEN_CATEGORY_STATUSES = (CategoryStatus.DISABLED.value, CategoryStatus.ARCHIVED.value)

# Text metas never satisfy a numeric bound
NUMERIC_META_PATTERN = r"^[-+]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][-+]?[0-9]+)?$"


def _case_insensitive(pattern: str) -> str:
    """Prefix an inline case-insensitive flag (Python re and PostgreSQL AREs)."""
    return f"(?i){pattern}"


def _membership(column: Any, constraint: IdConstraint) -> ColumnElement[bool]:
    """Build an IN / NOT IN clause. NULL values pass a NOT IN."""
    if constraint.exclude:
        return or_(column.is_(None), column.not_in(constraint.ids))
    return column.in_(constraint.ids)


def product_conditions(flt: ComposedFilter) -> list[ColumnElement[bool]]:
    """Translate a composed filter into WHERE conditions.

    Args:
        flt: Composed product filter.

    Returns:
        Conditions to AND together.

    Raises:
        ValueError: If the scope references an unknown product column.
    """
    conditions: list[ColumnElement[bool]] = []
    columns = Product.__table__.c

    for name, value in flt.scope:
        if name not in columns:
            raise ValueError(f"Unknown product field in base filter: {name}")
        conditions.append(columns[name] == value)

    conditions.append(Product.status != flt.excluded_status)

    if flt.type is not None:
        conditions.append(Product.type == flt.type)

    if flt.category is not None:
        conditions.append(_membership(Product.category_id, flt.category))

    if flt.ids is not None:
        conditions.append(_membership(Product.id, flt.ids))

    if flt.tag is not None:
        conditions.append(Product.tag_rows.any(ProductTag.tag_id == flt.tag))

    if flt.search is not None:
        search = flt.search
        conditions.append(
            or_(
                Product.name.regexp_match(_case_insensitive(search.text_pattern)),
                Product.code.regexp_match(_case_insensitive(search.text_pattern)),
                Product.code.regexp_match(_case_insensitive(search.code_pattern)),
                Product.barcode_rows.any(ProductBarcode.value == search.barcode),
            )
        )

    return conditions


@dataclass(frozen=True)
class MetaFilter:
    """Category meta constraint: ``meta <= value`` or ``meta == value``."""

    value: Any
    numeric: bool


def _as_number(meta: Any) -> float:
    """Read a meta value as a finite number.

    Raises:
        InvalidMetaFilter: If the value is not a numeric string or number.
    """
    if isinstance(meta, bool):
        raise InvalidMetaFilter(meta)
    try:
        number = float(meta)
    except (TypeError, ValueError) as e:
        raise InvalidMetaFilter(meta) from e
    if not math.isfinite(number):
        raise InvalidMetaFilter(meta)
    return number


def parse_meta_filter(meta: Any) -> MetaFilter:
    """Interpret a meta filter value.

    Numeric values compare as an upper bound, everything else as equality.
    """
    try:
        return MetaFilter(value=_as_number(meta), numeric=True)
    except InvalidMetaFilter:
        return MetaFilter(value=meta if isinstance(meta, str) else str(meta), numeric=False)


def category_conditions(
    common: dict[str, Any] | None,
    params: CategoryListParams,
) -> list[ColumnElement[bool]]:
    """Build WHERE conditions for a category listing.

    Args:
        common: Base scoping constraints.
        params: Category listing parameters.

    Returns:
        Conditions to AND together.
    """
    conditions: list[ColumnElement[bool]] = []
    columns = ProductCategory.__table__.c

    for name, value in (common or {}).items():
        if name == "status":
            continue
        if name not in columns:
            raise ValueError(f"Unknown category field in base filter: {name}")
        conditions.append(columns[name] == value)

    if params.status and params.status != CategoryStatus.ACTIVE.value:
        conditions.append(ProductCategory.status == params.status)
    else:
        conditions.append(
            or_(
                ProductCategory.status.is_(None),
                ProductCategory.status.not_in(HIDDEN_CATEGORY_STATUSES),
            )
        )

    if params.parent_id:
        conditions.append(ProductCategory.parent_id == params.parent_id)

    if params.search_value:
        conditions.append(ProductCategory.name.icontains(params.search_value, autoescape=True))

    if params.meta is not None and params.meta != "":
        meta = parse_meta_filter(params.meta)
        if meta.numeric:
            numeric_meta = case(
                (
                    ProductCategory.meta.regexp_match(NUMERIC_META_PATTERN),
                    cast(ProductCategory.meta, Float),
                ),
                else_=None,
            )
            conditions.append(numeric_meta <= meta.value)
        else:
            conditions.append(ProductCategory.meta == meta.value)

    return conditions


class ProductRepository:
    """Repository for product reads.

    Example usage:
        async with async_session_factory() as session:
            repo = ProductRepository(session)
            products = await repo.find(flt, SortSpec(), offset=0, limit=20)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def find(
        self,
        flt: ComposedFilter,
        sort: SortSpec,
        offset: int = 0,
        limit: int | None = None,
    ) -> Sequence[Product]:
        """Find products matching a filter.

        Args:
            flt: Composed product filter.
            sort: Sort order.
            offset: Result offset.
            limit: Maximum results, None for all.

        Returns:
            Sequence of matching products.
        """
        sort_column = self._get_sort_column(sort.field)
        query = select(Product).where(and_(*product_conditions(flt)))

        if sort.direction < 0:
            query = query.order_by(sort_column.desc(), Product.id.desc())
        else:
            query = query.order_by(sort_column.asc(), Product.id.asc())

        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        try:
            result = await self.session.execute(query)
        except DBAPIError as e:
            raise StoreUnavailable("product find", str(e.orig)) from e
        return result.scalars().all()

    async def count(self, flt: ComposedFilter) -> int:
        """Count products matching a filter.

        Args:
            flt: Composed product filter.

        Returns:
            Count of matching products.
        """
        query = select(func.count(Product.id)).where(and_(*product_conditions(flt)))

        try:
            result = await self.session.execute(query)
        except DBAPIError as e:
            raise StoreUnavailable("product count", str(e.orig)) from e
        return result.scalar_one()

    async def get(self, product_id: str) -> Product | None:
        """Get product by ID.

        Args:
            product_id: Product ID.

        Returns:
            Product if found, None otherwise.
        """
        try:
            result = await self.session.execute(
                select(Product).where(Product.id == product_id)
            )
        except DBAPIError as e:
            raise StoreUnavailable("product get", str(e.orig)) from e
        return result.scalar_one_or_none()

    def _get_sort_column(self, sort_field: str) -> Any:
        """Get SQLAlchemy column for sorting.

        Args:
            sort_field: Sort field name.

        Returns:
            SQLAlchemy column.
        """
        columns = {
            "code": Product.code,
            "name": Product.name,
            "type": Product.type,
            "status": Product.status,
            "categoryId": Product.category_id,
            "category_id": Product.category_id,
            "unitPrice": Product.unit_price,
            "unit_price": Product.unit_price,
            "createdAt": Product.created_at,
            "created_at": Product.created_at,
        }
        return columns.get(sort_field, Product.code)


class CategoryRepository:
    """Repository for product category reads.

    Implements the category store used by CategoryHierarchyResolver.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _execute(self, operation: str, query: Any) -> Any:
        try:
            return await self.session.execute(query)
        except DBAPIError as e:
            raise StoreUnavailable(operation, str(e.orig)) from e

    async def get(self, category_id: str) -> ProductCategory | None:
        """Get category by ID.

        Args:
            category_id: Category ID.

        Returns:
            Category if found, None otherwise.
        """
        result = await self._execute(
            "category get",
            select(ProductCategory).where(ProductCategory.id == category_id),
        )
        return result.scalar_one_or_none()

    async def ids_with_order_prefix(self, order: str) -> list[str]:
        """Get IDs of every category whose order starts with a prefix.

        Args:
            order: Order prefix.

        Returns:
            Matching category IDs.
        """
        result = await self._execute(
            "category prefix scan",
            select(ProductCategory.id).where(
                ProductCategory.order.startswith(order, autoescape=True)
            ),
        )
        return list(result.scalars().all())

    async def inactive_ids(self) -> list[str]:
        """Get IDs of every category that is neither NULL-status nor active.

        Returns:
            Disabled and archived category IDs.
        """
        result = await self._execute(
            "category status scan",
            select(ProductCategory.id).where(
                and_(
                    ProductCategory.status.is_not(None),
                    ProductCategory.status != CategoryStatus.ACTIVE.value,
                )
            ),
        )
        return list(result.scalars().all())

    async def find(
        self,
        common: dict[str, Any] | None,
        params: CategoryListParams,
    ) -> Sequence[ProductCategory]:
        """List categories, sorted by order.

        Args:
            common: Base scoping constraints.
            params: Category listing parameters.

        Returns:
            Matching categories.
        """
        query = (
            select(ProductCategory)
            .where(and_(*category_conditions(common, params)))
            .order_by(ProductCategory.order.asc())
        )
        result = await self._execute("category find", query)
        return result.scalars().all()

    async def count(self) -> int:
        """Count all categories.

        Returns:
            Total category count.
        """
        result = await self._execute(
            "category count",
            select(func.count(ProductCategory.id)),
        )
        return result.scalar_one()
