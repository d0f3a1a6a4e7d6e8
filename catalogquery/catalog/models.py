"""SQLAlchemy models for the product catalog.

Defines Product, its barcode and tag child rows, and ProductCategory.
Categories carry an ``order`` path where every descendant's order starts
with its ancestor's order, so a subtree is a single prefix scan.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalogquery.infrastructure.database import Base


class ProductStatus(str, Enum):
    """Product lifecycle status."""

    ACTIVE = "active"
    DELETED = "deleted"


class ProductType(str, Enum):
    """Product type discriminator."""

    PRODUCT = "product"
    SERVICE = "service"


class CategoryStatus(str, Enum):
    """Category visibility status. NULL in storage counts as active."""

    ACTIVE = "active"
    DISABLED = "disabled"
    ARCHIVED = "archived"


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProductCategory(Base):
    """Product category node.

    Attributes:
        id: Unique category identifier.
        scope_id: Tenant scope the category belongs to.
        name: Display name.
        code: Short category code, unique among siblings.
        order: Path encoding (e.g. "ELEC/AUDIO/").
        parent_id: Parent category ID (None for root).
        status: Visibility status (None is treated as active).
        meta: Free-form marker, numeric strings compare as numbers.
        created_at: Creation timestamp.
    """

    __tablename__ = "product_categories"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    scope_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    order: Mapped[str] = mapped_column(String(1000), nullable=False, index=True)
    parent_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("product_categories.id"),
        nullable=True,
        index=True,
    )
    status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    meta: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<ProductCategory(id={self.id}, order={self.order})>"

    @staticmethod
    def build_order(parent_order: str | None, code: str) -> str:
        """Build the order path for a category.

        The trailing separator keeps sibling codes that share a prefix
        ("TV" and "TVS") from matching each other's subtrees.

        Args:
            parent_order: Order of the parent category, None for a root.
            code: Code of the category.

        Returns:
            Order path for the category.
        """
        return f"{parent_order or ''}{code}/"

    @property
    def is_active(self) -> bool:
        """Check whether the category is visible."""
        return self.status in (None, CategoryStatus.ACTIVE.value)

    def to_dict(self) -> dict:
        """Convert to dictionary.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "order": self.order,
            "parent_id": self.parent_id,
            "status": self.status,
            "meta": self.meta,
            "description": self.description,
        }


class Product(Base):
    """Product entity in the catalog.

    Attributes:
        id: Unique product identifier.
        scope_id: Tenant scope the product belongs to.
        code: Catalog SKU.
        name: Product name.
        type: Product type discriminator.
        status: Lifecycle status.
        category_id: Owning category.
        unit_price: Unit price.
        created_at: Creation timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    scope_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    code: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    type: Mapped[str] = mapped_column(
        String(30), nullable=False, default=ProductType.PRODUCT.value
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ProductStatus.ACTIVE.value, index=True
    )
    category_id: Mapped[str | None] = mapped_column(
        String(32),
        ForeignKey("product_categories.id"),
        nullable=True,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    # Relationships
    barcode_rows: Mapped[list["ProductBarcode"]] = relationship(
        "ProductBarcode",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductBarcode.position",
        lazy="selectin",
    )
    tag_rows: Mapped[list["ProductTag"]] = relationship(
        "ProductTag",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, code={self.code}, name={self.name[:30]}...)>"

    @property
    def barcodes(self) -> list[str]:
        """Barcodes in their stored order."""
        return [row.value for row in self.barcode_rows]

    @property
    def tag_ids(self) -> list[str]:
        """IDs of tags attached to the product."""
        return [row.tag_id for row in self.tag_rows]

    def to_dict(self) -> dict:
        """Convert to dictionary.

        Returns:
            Dictionary representation.
        """
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "type": self.type,
            "status": self.status,
            "category_id": self.category_id,
            "barcodes": self.barcodes,
            "tag_ids": self.tag_ids,
            "description": self.description,
            "unit_price": float(self.unit_price) if self.unit_price is not None else None,
        }


class ProductBarcode(Base):
    """Barcode attached to a product, kept in caller-supplied order."""

    __tablename__ = "product_barcodes"

    product_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    value: Mapped[str] = mapped_column(String(100), nullable=False, index=True)

    product: Mapped["Product"] = relationship("Product", back_populates="barcode_rows")


class ProductTag(Base):
    """Tag reference attached to a product."""

    __tablename__ = "product_tags"

    product_id: Mapped[str] = mapped_column(
        String(32),
        ForeignKey("products.id", ondelete="CASCADE"),
        primary_key=True,
    )
    tag_id: Mapped[str] = mapped_column(String(32), primary_key=True, index=True)

    product: Mapped["Product"] = relationship("Product", back_populates="tag_rows")
