# order_hub/repositories.py
"""
Collaborator interfaces consumed by the order pipeline, and their
SQLAlchemy (AsyncSession) implementations.

Lookups return None for "not found"; turning that into an error is the
caller's decision.
"""
from __future__ import annotations
from typing import List, Optional, Protocol

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from order_hub.db_models import (
    AttachmentEntityType, AttachmentEntry, BusinessPartner, DocBaseType, DocType,
    Product, SalesOrder, SalesOrderLine,
)


# ============================================================================
# Interfaces
# ============================================================================

class ProductRepository(Protocol):
    async def get_by_gtin(self, gtin: str, client_id: int) -> Optional[Product]: ...
    async def get_by_barcode(self, barcode: str, client_id: int) -> Optional[Product]: ...
    async def get_by_id(self, product_id: int) -> Optional[Product]: ...


class PartnerRepository(Protocol):
    async def get_by_code(self, code: str, org_id: int) -> Optional[BusinessPartner]: ...


class DocTypeRepository(Protocol):
    async def get_by_name(self, name: str, base_type: DocBaseType, client_id: int) -> Optional[DocType]: ...
    async def get_default(self, base_type: DocBaseType, client_id: int) -> Optional[DocType]: ...
    async def next_document_no(self, doc_type: DocType) -> str: ...


class OrderRepository(Protocol):
    async def add(self, order: SalesOrder) -> SalesOrder: ...
    async def get(self, order_id: int) -> Optional[SalesOrder]: ...
    async def list_lines(self, order_id: int) -> List[SalesOrderLine]: ...


class AttachmentRepository(Protocol):
    async def add(self, entry: AttachmentEntry) -> AttachmentEntry: ...
    async def list_by_owner(self, entity_type: AttachmentEntityType, entity_id: int) -> List[AttachmentEntry]: ...
    async def get(self, entity_type: AttachmentEntityType, entity_id: int, attachment_id: int) -> Optional[AttachmentEntry]: ...
    async def owner_exists(self, entity_type: AttachmentEntityType, entity_id: int) -> bool: ...


# ============================================================================
# SQLAlchemy implementations
# ============================================================================

class SqlProductRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_gtin(self, gtin: str, client_id: int) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(
                Product.client_id == client_id,
                Product.gtin == gtin,
                Product.is_active == True,
            )
            .order_by(Product.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_barcode(self, barcode: str, client_id: int) -> Optional[Product]:
        stmt = (
            select(Product)
            .where(
                Product.client_id == client_id,
                Product.barcode == barcode,
                Product.is_active == True,
            )
            .order_by(Product.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        return await self.db.get(Product, product_id)


class SqlPartnerRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str, org_id: int) -> Optional[BusinessPartner]:
        stmt = select(BusinessPartner).where(
            BusinessPartner.org_id == org_id,
            BusinessPartner.code == code,
            BusinessPartner.is_active == True,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()


class SqlDocTypeRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_name(self, name: str, base_type: DocBaseType, client_id: int) -> Optional[DocType]:
        stmt = select(DocType).where(
            DocType.client_id == client_id,
            DocType.doc_base_type == base_type,
            DocType.name == name,
            DocType.is_active == True,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_default(self, base_type: DocBaseType, client_id: int) -> Optional[DocType]:
        stmt = (
            select(DocType)
            .where(
                DocType.client_id == client_id,
                DocType.doc_base_type == base_type,
                DocType.is_default == True,
                DocType.is_active == True,
            )
            .order_by(DocType.id)
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def next_document_no(self, doc_type: DocType) -> str:
        """Allocate the next document number; the row stays locked until commit."""
        stmt = (
            select(DocType)
            .where(DocType.id == doc_type.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        locked = result.scalar_one()
        number = locked.next_document_no
        locked.next_document_no = number + 1
        return f"{locked.document_no_prefix}{number}"


class SqlOrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, order: SalesOrder) -> SalesOrder:
        self.db.add(order)
        await self.db.flush()
        return order

    async def get(self, order_id: int) -> Optional[SalesOrder]:
        stmt = (
            select(SalesOrder)
            .options(selectinload(SalesOrder.doc_type))
            .where(SalesOrder.id == order_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def list_lines(self, order_id: int) -> List[SalesOrderLine]:
        stmt = (
            select(SalesOrderLine)
            .where(SalesOrderLine.order_id == order_id)
            .order_by(SalesOrderLine.line_no)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())


# Every attachment owner type maps to the table holding its records
OWNER_MODELS = {
    AttachmentEntityType.sales_order: SalesOrder,
    AttachmentEntityType.business_partner: BusinessPartner,
    AttachmentEntityType.product: Product,
}


class SqlAttachmentRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, entry: AttachmentEntry) -> AttachmentEntry:
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def list_by_owner(self, entity_type: AttachmentEntityType, entity_id: int) -> List[AttachmentEntry]:
        stmt = (
            select(AttachmentEntry)
            .where(
                AttachmentEntry.entity_type == entity_type,
                AttachmentEntry.entity_id == entity_id,
            )
            .order_by(AttachmentEntry.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def get(self, entity_type: AttachmentEntityType, entity_id: int, attachment_id: int) -> Optional[AttachmentEntry]:
        stmt = select(AttachmentEntry).where(
            AttachmentEntry.id == attachment_id,
            AttachmentEntry.entity_type == entity_type,
            AttachmentEntry.entity_id == entity_id,
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def owner_exists(self, entity_type: AttachmentEntityType, entity_id: int) -> bool:
        model = OWNER_MODELS[entity_type]
        stmt = select(func.count()).select_from(model).where(model.id == entity_id)
        result = await self.db.execute(stmt)
        return (result.scalar() or 0) > 0
