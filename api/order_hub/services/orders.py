# order_hub/services/orders.py
"""
Sales order creation.

`OrderAggregateBuilder` collects the header and the ordered lines and writes
them in one go; `SalesOrderService` runs the whole request (document type,
ship-to partner, product resolution, commit) inside a single unit of work so
that a failure at any step leaves nothing behind.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.context import CallerContext
from order_hub.database import unit_of_work
from order_hub.db_models import (
    BusinessPartner, DocBaseType, DocType, OrderDocStatus, SalesOrder, SalesOrderLine,
)
from order_hub.errors import DocTypeNotFound, OrderHubError, PartnerNotFound, ValidationFailure
from order_hub.repositories import (
    DocTypeRepository, OrderRepository, PartnerRepository, ProductRepository,
    SqlDocTypeRepository, SqlOrderRepository, SqlPartnerRepository, SqlProductRepository,
)
from order_hub.services.order_lines import OrderLine, OrderLineBuilder
from order_hub.services.products import ProductResolver

log = logging.getLogger(__name__)

LINE_NO_STEP = 10


@dataclass(frozen=True)
class OrderLineRequest:
    code: str
    qty: Any
    price: Optional[Decimal] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class OrderHeader:
    ship_bpartner_code: str
    doc_type_name: Optional[str] = None
    date_promised: Optional[date] = None


@dataclass
class OrderAggregateBuilder:
    """Accumulates one sales order and commits header and lines together."""

    orders: OrderRepository
    doc_types: DocTypeRepository
    ctx: CallerContext
    doc_type: Optional[DocType] = None
    ship_bpartner: Optional[BusinessPartner] = None
    date_promised: Optional[date] = None
    lines: List[OrderLine] = field(default_factory=list)

    def add_line(self, line: OrderLine) -> None:
        self.lines.append(line)

    async def create_and_complete(self) -> SalesOrder:
        if self.doc_type is None:
            raise ValidationFailure("Document type not set")
        if self.ship_bpartner is None:
            raise ValidationFailure("Ship-to business partner not set")
        if not self.lines:
            raise ValidationFailure("A sales order needs at least one line")

        document_no = await self.doc_types.next_document_no(self.doc_type)
        order = SalesOrder(
            client_id=self.ctx.client_id,
            org_id=self.ctx.org_id,
            doc_type_id=self.doc_type.id,
            document_no=document_no,
            ship_bpartner_id=self.ship_bpartner.id,
            date_ordered=date.today(),
            date_promised=self.date_promised,
            status=OrderDocStatus.drafted,
            lines=[
                SalesOrderLine(
                    line_no=LINE_NO_STEP * i,
                    product_id=line.product_id,
                    qty_ordered=line.qty.value,
                    uom=line.qty.uom,
                    price_actual=line.unit_price,
                    description=line.description,
                )
                for i, line in enumerate(self.lines, start=1)
            ],
        )
        order = await self.orders.add(order)
        await self._complete(order)
        return order

    async def _complete(self, order: SalesOrder) -> None:
        order.status = OrderDocStatus.completed
        order.completed_at = datetime.now(timezone.utc)
        await self.orders.add(order)


class SalesOrderService:
    def __init__(
        self,
        db: AsyncSession,
        ctx: CallerContext,
        *,
        doc_types: Optional[DocTypeRepository] = None,
        partners: Optional[PartnerRepository] = None,
        products: Optional[ProductRepository] = None,
        orders: Optional[OrderRepository] = None,
        line_builder: Optional[OrderLineBuilder] = None,
    ):
        self.db = db
        self.ctx = ctx
        self.doc_types = doc_types or SqlDocTypeRepository(db)
        self.partners = partners or SqlPartnerRepository(db)
        self.products = products or SqlProductRepository(db)
        self.orders = orders or SqlOrderRepository(db)
        self.resolver = ProductResolver(self.products, ctx.client_id)
        self.line_builder = line_builder or OrderLineBuilder()

    async def create_order(self, header: OrderHeader, lines: Sequence[OrderLineRequest]) -> SalesOrder:
        """
        Create and complete a sales order, or persist nothing at all.

        Raises:
            ValidationFailure: no lines, or a line that cannot be built
            DocTypeNotFound: unknown (or no default) sales order document type
            PartnerNotFound: ship-to partner not in the caller's organization
            ProductNotFound: a line code matches neither a GTIN nor a barcode
            InvalidQuantity: negative, non-finite or missing quantity
        """
        if not lines:
            raise ValidationFailure("A sales order needs at least one line")

        try:
            async with unit_of_work(self.db):
                builder = OrderAggregateBuilder(orders=self.orders, doc_types=self.doc_types, ctx=self.ctx)
                builder.doc_type = await self._resolve_doc_type(header.doc_type_name)
                builder.ship_bpartner = await self._resolve_ship_partner(header.ship_bpartner_code)
                builder.date_promised = header.date_promised

                for req in lines:
                    product = await self.resolver.resolve(req.code)
                    builder.add_line(
                        self.line_builder.build(product, req.qty, req.price, req.description)
                    )

                order = await builder.create_and_complete()
        except OrderHubError as e:
            log.warning("sales order rejected (%s): %s", e.kind, e.message)
            raise

        log.info(
            "sales order %s created: id=%s partner=%s lines=%d",
            order.document_no, order.id, header.ship_bpartner_code, len(lines),
        )
        return order

    async def _resolve_doc_type(self, name: Optional[str]) -> DocType:
        name = (name or "").strip()
        if name:
            doc_type = await self.doc_types.get_by_name(name, DocBaseType.sales_order, self.ctx.client_id)
        else:
            doc_type = await self.doc_types.get_default(DocBaseType.sales_order, self.ctx.client_id)
        if doc_type is None:
            raise DocTypeNotFound(name or None)
        return doc_type

    async def _resolve_ship_partner(self, code: str) -> BusinessPartner:
        code = (code or "").strip()
        partner = await self.partners.get_by_code(code, self.ctx.org_id) if code else None
        if partner is None:
            raise PartnerNotFound(code, self.ctx.org_id)
        return partner
