# order_hub/services/order_lines.py
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlalchemy import Numeric

from order_hub.db_models import Product, SalesOrderLine
from order_hub.errors import InvalidQuantity, ValidationFailure


@dataclass(frozen=True)
class Quantity:
    value: Decimal
    uom: str


@dataclass(frozen=True)
class OrderLine:
    """A validated, not yet persisted sales order line."""
    product_id: int
    qty: Quantity
    unit_price: Decimal
    description: Optional[str] = None


@dataclass(frozen=True)
class DecimalLimit:
    """Largest magnitude and finest step a NUMERIC(precision, scale) column stores exactly."""
    precision: int
    scale: int

    @classmethod
    def of(cls, column) -> "DecimalLimit":
        col_type: Numeric = column.type
        return cls(precision=col_type.precision, scale=col_type.scale)

    @property
    def integer_digits(self) -> int:
        return self.precision - self.scale

    def admits(self, value: Decimal) -> bool:
        if abs(value) >= Decimal(10) ** self.integer_digits:
            return False
        # trailing zeros beyond the scale are fine, significant digits are not
        return value == value.quantize(Decimal(1).scaleb(-self.scale))


QTY_LIMIT = DecimalLimit.of(SalesOrderLine.__table__.c.qty_ordered)
PRICE_LIMIT = DecimalLimit.of(SalesOrderLine.__table__.c.price_actual)


def _to_decimal(raw: Any) -> Optional[Decimal]:
    if raw is None:
        return None
    if isinstance(raw, Decimal):
        return raw
    try:
        # str() keeps 9.99 from becoming 9.9900000000000002131628...
        return Decimal(str(raw))
    except (InvalidOperation, ValueError):
        return None


class OrderLineBuilder:
    """Bind raw line input to a resolved product."""

    def build(
        self,
        product: Product,
        raw_qty: Any,
        raw_price: Any = None,
        description: Optional[str] = None,
    ) -> OrderLine:
        qty = _to_decimal(raw_qty)
        if qty is None or not qty.is_finite() or qty < 0 or not QTY_LIMIT.admits(qty):
            raise InvalidQuantity(raw_qty)

        uom = (product.stock_uom or "").strip()
        if not uom:
            raise ValidationFailure(
                f"Product '{product.code}' has no stock unit of measure",
                {"productCode": product.code},
            )

        if raw_price is None:
            price = Decimal("0")
        else:
            price = _to_decimal(raw_price)
            if price is None or not price.is_finite():
                raise ValidationFailure(f"Invalid price {raw_price!r}", {"price": str(raw_price)})
            if not PRICE_LIMIT.admits(price):
                raise ValidationFailure(
                    f"Price {raw_price!r} exceeds {PRICE_LIMIT.integer_digits} integer digits "
                    f"or {PRICE_LIMIT.scale} decimal places",
                    {"price": str(raw_price)},
                )

        description = (description or "").strip() or None

        return OrderLine(
            product_id=product.id,
            qty=Quantity(value=qty, uom=uom),
            unit_price=price,
            description=description,
        )
