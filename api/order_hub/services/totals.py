# order_hub/services/totals.py
"""
Read-side projection of a persisted sales order: line details, order totals
and the response validity window.

Always computed from what was stored, never from the create request, so a
product that lost its GTIN since the order was placed shows without one.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Callable, List, Optional, Sequence
from zoneinfo import ZoneInfo

from order_hub.db_models import Product, SalesOrderLine
from order_hub.errors import SalesOrderNotFound
from order_hub.repositories import OrderRepository, ProductRepository

log = logging.getLogger(__name__)

EXPIRY_FORMAT = "%Y-%m-%d %H:%M:%S %Z"


@dataclass(frozen=True)
class OrderLineDetail:
    product_code: str
    gtin_code: Optional[str]
    description: Optional[str]
    quantity: Decimal
    unit_price: Decimal
    line_amount: Decimal


@dataclass(frozen=True)
class OrderTotals:
    total_amount: Decimal
    total_quantity: Decimal


@dataclass(frozen=True)
class SalesOrderProjection:
    sales_order_id: int
    document_no: str
    doc_type_name: Optional[str]
    totals: OrderTotals
    lines: List[OrderLineDetail]
    expiry_date: datetime
    formatted_expiry_date: str


def compute_totals(lines: Sequence[OrderLineDetail]) -> OrderTotals:
    total_amount = sum((ln.line_amount for ln in lines), Decimal("0"))
    total_quantity = sum((ln.quantity for ln in lines), Decimal("0"))
    return OrderTotals(total_amount=total_amount, total_quantity=total_quantity)


def resolve_timezone(name: Optional[str]) -> Optional[tzinfo]:
    """IANA zone for `name`; None means system local time."""
    return ZoneInfo(name) if name else None


class TotalsCalculator:
    def __init__(
        self,
        orders: OrderRepository,
        products: ProductRepository,
        expiry_hours: int = 24,
        tz: Optional[tzinfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.orders = orders
        self.products = products
        self.expiry_hours = expiry_hours
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    async def project_order(self, order_id: int) -> SalesOrderProjection:
        order = await self.orders.get(order_id)
        if order is None:
            raise SalesOrderNotFound(order_id)

        details = [await self.line_detail(ln) for ln in await self.orders.list_lines(order_id)]
        expiry = self.expiry_date()

        return SalesOrderProjection(
            sales_order_id=order.id,
            document_no=order.document_no,
            doc_type_name=order.doc_type.name if order.doc_type is not None else None,
            totals=compute_totals(details),
            lines=details,
            expiry_date=expiry,
            formatted_expiry_date=format_expiry(expiry),
        )

    async def line_detail(self, line: SalesOrderLine) -> OrderLineDetail:
        product = await self.products.get_by_id(line.product_id)
        if product is None:
            log.warning("product %s of order line %s no longer exists", line.product_id, line.id)
            product_code = ""
        else:
            product_code = product.code

        quantity = Decimal(line.qty_ordered)
        unit_price = Decimal(line.price_actual)
        return OrderLineDetail(
            product_code=product_code,
            gtin_code=_current_gtin(product),
            description=line.description,
            quantity=quantity,
            unit_price=unit_price,
            line_amount=quantity * unit_price,
        )

    def expiry_date(self) -> datetime:
        now_utc = self.clock().astimezone(timezone.utc)
        expiry = now_utc + timedelta(hours=self.expiry_hours)
        return expiry.astimezone(self.tz) if self.tz is not None else expiry.astimezone()


def format_expiry(expiry: datetime) -> str:
    return expiry.strftime(EXPIRY_FORMAT)


def _current_gtin(product: Optional[Product]) -> Optional[str]:
    # optional enrichment: never fails the projection
    if product is None:
        return None
    try:
        gtin = (product.gtin or "").strip()
    except Exception as e:
        log.debug("Could not read GTIN of product %s: %s", getattr(product, "id", None), e)
        return None
    return gtin or None
