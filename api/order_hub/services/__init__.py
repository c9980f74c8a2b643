# order_hub/services/__init__.py
"""
Business logic services for Order Hub.
"""
from order_hub.services.attachments import AttachmentLinkStore, EntityRef
from order_hub.services.order_lines import OrderLine, OrderLineBuilder
from order_hub.services.orders import OrderAggregateBuilder, OrderHeader, OrderLineRequest, SalesOrderService
from order_hub.services.payments import HttpPaymentGateway
from order_hub.services.products import ProductResolver
from order_hub.services.totals import TotalsCalculator

__all__ = [
    "AttachmentLinkStore",
    "EntityRef",
    "HttpPaymentGateway",
    "OrderAggregateBuilder",
    "OrderHeader",
    "OrderLine",
    "OrderLineBuilder",
    "OrderLineRequest",
    "ProductResolver",
    "SalesOrderService",
    "TotalsCalculator",
]
