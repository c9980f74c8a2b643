from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from order_hub.context import CallerContext
from order_hub.database import Base, get_session, make_session_factory
from order_hub.db_models import (
    BusinessPartner, Client, DocBaseType, DocType, Organization, Product,
)

GTIN_EA = "4006381333931"
BARCODE_EA = "BARCODE123"
# valid EAN-13, but stored as an internal barcode, not as GTIN
GTIN_SHAPED_BARCODE = "5901234123457"


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # pysqlite needs explicit BEGIN for SAVEPOINT to work
    @event.listens_for(eng.sync_engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(eng.sync_engine, "begin")
    def _begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
async def seed(session_factory):
    """Two organizations of client 1, partners, sales order doc types and products."""
    async with session_factory() as db:
        db.add_all([
            Client(id=1, code="C1", name="Main client"),
            Client(id=2, code="C2", name="Other client"),
        ])
        db.add_all([
            Organization(id=1, client_id=1, code="HQ", name="Headquarters"),
            Organization(id=2, client_id=1, code="BR", name="Branch"),
        ])
        db.add_all([
            BusinessPartner(id=1, client_id=1, org_id=1, code="C001", name="Customer One"),
            BusinessPartner(id=2, client_id=1, org_id=2, code="C002", name="Branch Customer"),
            BusinessPartner(id=3, client_id=1, org_id=1, code="C003", name="Inactive", is_active=False),
        ])
        db.add_all([
            DocType(id=1, client_id=1, doc_base_type=DocBaseType.sales_order, name="Standard Order",
                    is_default=True, document_no_prefix="SO-", next_document_no=1000),
            DocType(id=2, client_id=1, doc_base_type=DocBaseType.sales_order, name="Web Order",
                    document_no_prefix="WEB-", next_document_no=1),
            DocType(id=3, client_id=1, doc_base_type=DocBaseType.purchase_order, name="Purchase Order",
                    is_default=True, document_no_prefix="PO-", next_document_no=1),
        ])
        db.add_all([
            Product(id=1, client_id=1, code="P-100", name="Drill bit", gtin=GTIN_EA, stock_uom="EA"),
            Product(id=2, client_id=1, code="P-200", name="Legacy item", barcode=BARCODE_EA, stock_uom="EA"),
            Product(id=3, client_id=1, code="P-300", name="Cable", gtin="96385074", stock_uom="M"),
            Product(id=4, client_id=1, code="P-400", name="Relabelled", barcode=GTIN_SHAPED_BARCODE, stock_uom="EA"),
            Product(id=5, client_id=2, code="X-100", name="Other tenant", gtin="036000291452", stock_uom="EA"),
            Product(id=6, client_id=1, code="P-600", name="Retired", gtin="10012345678902", stock_uom="EA",
                    is_active=False),
        ])
        await db.commit()
    return None


@pytest.fixture
async def db(session_factory, seed):
    async with session_factory() as session:
        yield session


@pytest.fixture
def ctx() -> CallerContext:
    return CallerContext(client_id=1, org_id=1)


@pytest.fixture
def attachments_root(tmp_path: Path) -> Path:
    return tmp_path / "attachments"


@pytest.fixture
async def client(session_factory, seed, attachments_root):
    from order_hub.main import app
    from order_hub.routers.sales_orders import get_attachments_root

    async def _session():
        async with session_factory() as session:
            try:
                yield session
            finally:
                if session.in_transaction():
                    await session.rollback()

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_attachments_root] = lambda: attachments_root
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


def dec(value) -> Decimal:
    return Decimal(str(value))
