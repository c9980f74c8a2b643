# order_hub/db_models.py
"""
SQLAlchemy ORM Models for Order Hub.

Tenancy (clients, organizations), master data (partners, document types,
products), sales orders and generic attachments.
"""
from __future__ import annotations
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
import enum

from sqlalchemy import (
    String, Integer, BigInteger, Boolean, Text, Date, DateTime,
    Numeric, ForeignKey, Index, UniqueConstraint,
    Enum as SQLEnum, func
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from order_hub.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY
BigIntPK = BigInteger().with_variant(Integer, "sqlite")

# ============================================================================
# ENUMS
# ============================================================================

class DocBaseType(str, enum.Enum):
    sales_order = "sales_order"
    purchase_order = "purchase_order"
    sales_invoice = "sales_invoice"


class OrderDocStatus(str, enum.Enum):
    drafted = "drafted"
    completed = "completed"


class AttachmentType(str, enum.Enum):
    data = "data"
    generated = "generated"
    url = "url"


class AttachmentEntityType(str, enum.Enum):
    sales_order = "sales_order"
    business_partner = "business_partner"
    product = "product"


# ============================================================================
# MIXIN for updated_at
# ============================================================================

class TimestampMixin:
    """Mixin for created_at and updated_at columns."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=func.now(),
        onupdate=func.now(),
        nullable=False
    )


# ============================================================================
# 1. CLIENTS (tenants)
# ============================================================================

class Client(TimestampMixin, Base):
    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    code: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    organizations: Mapped[List["Organization"]] = relationship(back_populates="client")


# ============================================================================
# 2. ORGANIZATIONS
# ============================================================================

class Organization(TimestampMixin, Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    client: Mapped["Client"] = relationship(back_populates="organizations")

    __table_args__ = (
        UniqueConstraint("client_id", "code", name="uq_organizations_code"),
    )


# ============================================================================
# 3. BUSINESS PARTNERS
# ============================================================================

class BusinessPartner(TimestampMixin, Base):
    __tablename__ = "business_partners"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    org_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("org_id", "code", name="uq_business_partners_code"),
    )


# ============================================================================
# 4. DOCUMENT TYPES (+ document number sequence)
# ============================================================================

class DocType(TimestampMixin, Base):
    __tablename__ = "doc_types"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    doc_base_type: Mapped[DocBaseType] = mapped_column(
        SQLEnum(DocBaseType, name="doc_base_type"),
        nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    document_no_prefix: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    next_document_no: Mapped[int] = mapped_column(Integer, default=1000, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("client_id", "doc_base_type", "name", name="uq_doc_types_name"),
    )


# ============================================================================
# 5. PRODUCTS
# ============================================================================

class Product(TimestampMixin, Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    code: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    gtin: Mapped[Optional[str]] = mapped_column(String(14))
    barcode: Mapped[Optional[str]] = mapped_column(String(100))
    stock_uom: Mapped[str] = mapped_column(String(10), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        UniqueConstraint("client_id", "code", name="uq_products_code"),
        Index("idx_products_gtin", "client_id", "gtin"),
        Index("idx_products_barcode", "client_id", "barcode"),
    )


# ============================================================================
# 6. SALES ORDERS
# ============================================================================

class SalesOrder(TimestampMixin, Base):
    __tablename__ = "sales_orders"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    client_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    org_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("organizations.id", ondelete="RESTRICT"), nullable=False)
    doc_type_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("doc_types.id", ondelete="RESTRICT"), nullable=False)
    document_no: Mapped[str] = mapped_column(String(50), nullable=False)
    ship_bpartner_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("business_partners.id", ondelete="RESTRICT"), nullable=False
    )
    date_ordered: Mapped[date] = mapped_column(Date, nullable=False)
    date_promised: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[OrderDocStatus] = mapped_column(
        SQLEnum(OrderDocStatus, name="order_doc_status"),
        default=OrderDocStatus.drafted,
        nullable=False
    )
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Relationships
    doc_type: Mapped["DocType"] = relationship()
    ship_bpartner: Mapped["BusinessPartner"] = relationship()
    lines: Mapped[List["SalesOrderLine"]] = relationship(
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="SalesOrderLine.line_no",
    )

    __table_args__ = (
        UniqueConstraint("doc_type_id", "document_no", name="uq_sales_orders_document_no"),
        Index("idx_sales_orders_partner", "ship_bpartner_id"),
    )


# ============================================================================
# 7. SALES ORDER LINES
# ============================================================================

class SalesOrderLine(TimestampMixin, Base):
    __tablename__ = "sales_order_lines"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    order_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("sales_orders.id", ondelete="CASCADE"), nullable=False)
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False)
    qty_ordered: Mapped[Decimal] = mapped_column(Numeric(12, 3), nullable=False)
    uom: Mapped[str] = mapped_column(String(10), nullable=False)
    price_actual: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    order: Mapped["SalesOrder"] = relationship(back_populates="lines")

    __table_args__ = (
        UniqueConstraint("order_id", "line_no", name="uq_sales_order_lines_no"),
        Index("idx_sales_order_lines_product", "product_id"),
    )


# ============================================================================
# 8. ATTACHMENT ENTRIES (generic owner reference)
# ============================================================================

class AttachmentEntry(Base):
    __tablename__ = "attachment_entries"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True)
    entity_type: Mapped[AttachmentEntityType] = mapped_column(
        SQLEnum(AttachmentEntityType, name="attachment_entity_type"),
        nullable=False
    )
    entity_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    type: Mapped[AttachmentType] = mapped_column(
        SQLEnum(AttachmentType, name="attachment_type"),
        default=AttachmentType.data,
        nullable=False
    )
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255))
    storage_path: Mapped[Optional[str]] = mapped_column(String(500))
    url: Mapped[Optional[str]] = mapped_column(Text)
    size_bytes: Mapped[Optional[int]] = mapped_column(BigInteger)
    sha256: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=func.now(), nullable=False)

    __table_args__ = (
        Index("idx_attachment_entries_owner", "entity_type", "entity_id"),
    )
