# order_hub/routers/sales_orders.py
"""
Sales Order Router - order creation, read-back and order attachments.
"""
from __future__ import annotations
import logging
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Header, UploadFile
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from order_hub.context import CallerContext
from order_hub.database import get_session
from order_hub.db_models import AttachmentEntityType, AttachmentEntry
from order_hub.errors import MalformedIdentifier, OrderHubError, PaymentFailure
from order_hub.models import (
    JsonError, JsonOrderPaymentCreateRequest, JsonSalesOrder, JsonSalesOrderAttachment,
    JsonSalesOrderCreateRequest, JsonSalesOrderLineDetail,
)
from order_hub.repositories import SqlOrderRepository, SqlProductRepository
from order_hub.services.attachments import AttachmentLinkStore, EntityRef
from order_hub.services.orders import OrderHeader, OrderLineRequest, SalesOrderService
from order_hub.services.payments import HttpPaymentGateway, PaymentGateway
from order_hub.services.totals import SalesOrderProjection, TotalsCalculator, resolve_timezone
from order_hub.settings import settings

log = logging.getLogger(__name__)

API_PREFIX = "/api/v2/orders/sales"

# error bodies of every endpoint, see main.py handlers
ERROR_RESPONSES = {
    400: {"model": JsonError, "description": "Malformed identifier"},
    404: {"model": JsonError, "description": "Not found"},
    422: {"model": JsonError, "description": "Request rejected"},
    500: {"model": JsonError, "description": "Storage failure"},
}

router = APIRouter(prefix=API_PREFIX, tags=["Sales Orders"], responses=ERROR_RESPONSES)

# ============================================================================
# Dependencies
# ============================================================================

def get_caller_context(
    x_client_id: Optional[int] = Header(default=None),
    x_org_id: Optional[int] = Header(default=None),
) -> CallerContext:
    return CallerContext(
        client_id=x_client_id if x_client_id is not None else settings.DEFAULT_CLIENT_ID,
        org_id=x_org_id if x_org_id is not None else settings.DEFAULT_ORG_ID,
    )


def get_attachments_root() -> Path:
    return settings.ATTACHMENTS_ROOT


def get_payment_gateway() -> PaymentGateway:
    return HttpPaymentGateway(settings.PAYMENT_SERVICE_URL, timeout=settings.PAYMENT_TIMEOUT)


def get_totals_calculator(db: AsyncSession = Depends(get_session)) -> TotalsCalculator:
    return TotalsCalculator(
        orders=SqlOrderRepository(db),
        products=SqlProductRepository(db),
        expiry_hours=settings.EXPIRY_HOURS,
        tz=resolve_timezone(settings.EXPIRY_TIMEZONE),
    )


def get_attachment_store(
    db: AsyncSession = Depends(get_session),
    root: Path = Depends(get_attachments_root),
) -> AttachmentLinkStore:
    return AttachmentLinkStore(db, root)

# ============================================================================
# Helpers
# ============================================================================

def _to_json_order(projection: SalesOrderProjection) -> JsonSalesOrder:
    return JsonSalesOrder(
        sales_order_id=str(projection.sales_order_id),
        document_no=projection.document_no,
        total_amount=projection.totals.total_amount,
        total_quantity=projection.totals.total_quantity,
        order_lines=[
            JsonSalesOrderLineDetail(
                product_code=ln.product_code,
                gtin_code=ln.gtin_code,
                description=ln.description,
                quantity=ln.quantity,
                unit_price=ln.unit_price,
                line_amount=ln.line_amount,
            )
            for ln in projection.lines
        ],
        expiry_date=projection.expiry_date,
        formatted_expiry_date=projection.formatted_expiry_date,
        doc_type_name=projection.doc_type_name,
    )


def _to_json_attachment(order_id: int, entry: AttachmentEntry) -> JsonSalesOrderAttachment:
    return JsonSalesOrderAttachment(
        sales_order_id=str(order_id),
        id=entry.id,
        type=entry.type.value,
        filename=entry.filename,
        mime_type=entry.mime_type,
        url=entry.url or f"{API_PREFIX}/{order_id}/attachments/{entry.id}/content",
    )


def _parse_order_id(raw: str) -> int:
    try:
        order_id = int(raw.strip())
    except ValueError:
        order_id = 0
    if order_id <= 0:
        raise MalformedIdentifier(f"Invalid sales order id '{raw}'", {"salesOrderId": raw})
    return order_id


def _order_ref(sales_order_id: str) -> EntityRef:
    return EntityRef.parse(AttachmentEntityType.sales_order, sales_order_id)

# ============================================================================
# Endpoints
# ============================================================================

@router.post("/payment")
async def create_order_payment(
    request: JsonOrderPaymentCreateRequest,
    gateway: PaymentGateway = Depends(get_payment_gateway),
):
    """Forward to the payment service: empty 200 on success, 422 on any failure."""
    try:
        await gateway.create_payment(request.model_dump(mode="json", by_alias=True, exclude_none=True))
    except OrderHubError:
        raise
    except Exception as e:
        log.error("payment creation failed: %s", e, exc_info=True)
        raise PaymentFailure(str(e) or e.__class__.__name__) from e
    return Response(status_code=200)


@router.post("", response_model=JsonSalesOrder)
async def create_sales_order(
    request: JsonSalesOrderCreateRequest,
    db: AsyncSession = Depends(get_session),
    ctx: CallerContext = Depends(get_caller_context),
    totals: TotalsCalculator = Depends(get_totals_calculator),
):
    """
    Create and complete a sales order.

    Line codes are resolved as GTIN first, internal barcode second. Either the
    whole order is stored or nothing is.
    """
    service = SalesOrderService(db, ctx)
    order = await service.create_order(
        OrderHeader(
            ship_bpartner_code=request.ship_bpartner_code,
            doc_type_name=request.doc_type_name,
            date_promised=request.date_promised,
        ),
        [
            OrderLineRequest(code=ln.gtin_code, qty=ln.qty, price=ln.price, description=ln.description)
            for ln in request.lines
        ],
    )
    return _to_json_order(await totals.project_order(order.id))


@router.get("/{sales_order_id}", response_model=JsonSalesOrder)
async def get_sales_order(
    sales_order_id: str,
    totals: TotalsCalculator = Depends(get_totals_calculator),
):
    return _to_json_order(await totals.project_order(_parse_order_id(sales_order_id)))


@router.get("/{sales_order_id}/attachments", response_model=List[JsonSalesOrderAttachment])
async def get_attachments(
    sales_order_id: str,
    store: AttachmentLinkStore = Depends(get_attachment_store),
):
    ref = _order_ref(sales_order_id)
    return [_to_json_attachment(ref.id, e) for e in await store.list_for(ref)]


@router.post("/{sales_order_id}/attachments", response_model=JsonSalesOrderAttachment)
async def attach_file(
    sales_order_id: str,
    file: UploadFile = File(...),
    store: AttachmentLinkStore = Depends(get_attachment_store),
):
    ref = _order_ref(sales_order_id)
    data = await file.read()
    entry = await store.create(ref, file.filename, data)
    return _to_json_attachment(ref.id, entry)


@router.get("/{sales_order_id}/attachments/{attachment_id}/content")
async def download_attachment(
    sales_order_id: str,
    attachment_id: int,
    store: AttachmentLinkStore = Depends(get_attachment_store),
):
    ref = _order_ref(sales_order_id)
    entry = await store.get(ref, attachment_id)
    data = store.read_content(entry)
    headers = {"Content-Disposition": f'attachment; filename="{entry.filename}"'}
    return Response(content=data, media_type=entry.mime_type or "application/octet-stream", headers=headers)
