"""Shared fixtures for catalog tests.

Repository and service tests run against an in-memory SQLite database
seeded with a small category tree:

    ELEC/             cat-elec     active
    ELEC/AUDIO/       cat-audio    (no status)
    ELEC/AUDIO/HEAD/  cat-head     active
    ELEC/TV/          cat-tv       disabled
    ELECTRO/          cat-electro  active
    HOME/             cat-home     archived
"""

from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalogquery.catalog.models import (
    Product,
    ProductBarcode,
    ProductCategory,
    ProductTag,
)
from catalogquery.catalog.ports import Tag
from catalogquery.catalog.service import CatalogQueryService
from catalogquery.infrastructure.database import Base


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def session() -> AsyncGenerator[AsyncSession, None]:
    """Create a session on a fresh in-memory database."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session

    await engine.dispose()


def make_category(
    category_id: str,
    code: str,
    parent: ProductCategory | None = None,
    status: str | None = "active",
    meta: str | None = None,
    scope_id: str = "tenant-1",
) -> ProductCategory:
    """Build a category whose order extends its parent's order."""
    return ProductCategory(
        id=category_id,
        scope_id=scope_id,
        name=code.title(),
        code=code,
        order=ProductCategory.build_order(parent.order if parent else None, code),
        parent_id=parent.id if parent else None,
        status=status,
        meta=meta,
    )


def make_product(
    product_id: str,
    code: str,
    name: str,
    category_id: str | None,
    tags: tuple[str, ...] = (),
    barcodes: tuple[str, ...] = (),
    status: str = "active",
    product_type: str = "product",
    scope_id: str = "tenant-1",
) -> Product:
    """Build a product with tag and barcode rows."""
    return Product(
        id=product_id,
        scope_id=scope_id,
        code=code,
        name=name,
        type=product_type,
        status=status,
        category_id=category_id,
        tag_rows=[ProductTag(tag_id=tag) for tag in tags],
        barcode_rows=[
            ProductBarcode(position=i, value=value) for i, value in enumerate(barcodes)
        ],
    )


@pytest_asyncio.fixture
async def catalog(session: AsyncSession) -> AsyncSession:
    """Seed the sample catalog and return the session."""
    elec = make_category("cat-elec", "ELEC")
    audio = make_category("cat-audio", "AUDIO", parent=elec, status=None, meta="5")
    head = make_category("cat-head", "HEAD", parent=audio, meta="12")
    tv = make_category("cat-tv", "TV", parent=elec, status="disabled")
    electro = make_category("cat-electro", "ELECTRO", meta="vip")
    home = make_category("cat-home", "HOME", status="archived")
    session.add_all([elec, audio, head, tv, electro, home])
    await session.flush()

    session.add_all(
        [
            make_product(
                "p-headphones",
                "AB512",
                "Studio Headphones",
                "cat-head",
                tags=("t-sale",),
                barcodes=("4006381333931", "4006381333948"),
            ),
            make_product(
                "p-speaker",
                "SPK-100",
                "Bluetooth Speaker",
                "cat-audio",
                tags=("t-sale", "t-new"),
            ),
            make_product("p-amp", "xAB512", "Amplifier", "cat-elec", tags=("t-new",)),
            make_product("p-tv", "TV-55", "Television 55", "cat-tv", tags=("t-sale",)),
            make_product("p-lamp", "LMP-1", "Desk Lamp", "cat-home"),
            make_product("p-cable", "CBL.10", "Cable 10m", "cat-electro", tags=("t-sale",)),
            make_product(
                "p-old",
                "AB512-OLD",
                "Old Headphones",
                "cat-head",
                tags=("t-sale",),
                status="deleted",
            ),
            make_product(
                "p-giftcard",
                "GIFT-CARD",
                "Gift Card",
                None,
                product_type="service",
            ),
            make_product(
                "p-other",
                "AB599",
                "Other Tenant Headphones",
                "cat-head",
                scope_id="tenant-2",
            ),
        ]
    )
    await session.commit()
    return session


# ============================================================================
# External Service Fakes
# ============================================================================


@pytest.fixture
def tag_service() -> AsyncMock:
    """Create a fake tag service knowing three tags."""
    service = AsyncMock()
    service.find_tags = AsyncMock(
        return_value=[Tag(id="t-sale", name="Sale"), Tag(id="t-new", name="New"), Tag(id="t-empty")]
    )
    return service


@pytest.fixture
def segment_service() -> AsyncMock:
    """Create a fake segment service."""
    service = AsyncMock()
    service.resolve_ids = AsyncMock(return_value=["p-speaker", "p-cable"])
    service.count_by_segment = AsyncMock(return_value={"seg-vip": 2, "seg-new": 0})
    return service


@pytest.fixture
def service(
    catalog: AsyncSession,
    tag_service: AsyncMock,
    segment_service: AsyncMock,
) -> CatalogQueryService:
    """Create a catalog query service over the seeded catalog."""
    return CatalogQueryService.from_session(catalog, tag_service, segment_service)
