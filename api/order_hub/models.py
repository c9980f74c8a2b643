from __future__ import annotations
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, ConfigDict, Field


class JsonModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------
# Sales order create
# ---------------------------------------------------------
class JsonSalesOrderLine(JsonModel):
    gtin_code: str = Field(alias="gtinCode", description="GTIN or internal barcode")
    qty: Optional[Decimal] = None
    price: Optional[Decimal] = None
    description: Optional[str] = None

class JsonSalesOrderCreateRequest(JsonModel):
    doc_type_name: Optional[str] = Field(default=None, alias="docTypeName")
    ship_bpartner_code: str = Field(alias="shipBPartnerCode")
    date_promised: Optional[date] = Field(default=None, alias="datePromised")
    lines: List[JsonSalesOrderLine] = Field(default_factory=list)

# ---------------------------------------------------------
# Sales order response
# ---------------------------------------------------------
class JsonSalesOrderLineDetail(JsonModel):
    product_code: str = Field(alias="productCode")
    gtin_code: Optional[str] = Field(default=None, alias="gtinCode")
    description: Optional[str] = None
    quantity: Decimal
    unit_price: Decimal = Field(alias="unitPrice")
    line_amount: Decimal = Field(alias="lineAmount")

class JsonSalesOrder(JsonModel):
    sales_order_id: str = Field(alias="salesOrderId")
    document_no: str = Field(alias="documentNo")
    total_amount: Decimal = Field(alias="totalAmount")
    total_quantity: Decimal = Field(alias="totalQuantity")
    order_lines: List[JsonSalesOrderLineDetail] = Field(alias="orderLines")
    expiry_date: datetime = Field(alias="expiryDate")
    formatted_expiry_date: str = Field(alias="formattedExpiryDate")
    doc_type_name: Optional[str] = Field(default=None, alias="docTypeName")

# ---------------------------------------------------------
# Attachments
# ---------------------------------------------------------
class JsonSalesOrderAttachment(JsonModel):
    sales_order_id: str = Field(alias="salesOrderId")
    id: int
    type: str
    filename: str
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    url: Optional[str] = None

# ---------------------------------------------------------
# Payment pass-through (forwarded as-is)
# ---------------------------------------------------------
class JsonOrderPaymentCreateRequest(JsonModel):
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    org_code: Optional[str] = Field(default=None, alias="orgCode")
    order_identifier: Optional[str] = Field(default=None, alias="orderIdentifier")
    bpartner_identifier: Optional[str] = Field(default=None, alias="bpartnerIdentifier")
    currency_code: Optional[str] = Field(default=None, alias="currencyCode")
    amount: Optional[Decimal] = None
    transaction_date: Optional[date] = Field(default=None, alias="transactionDate")

# ---------------------------------------------------------
# Errors
# ---------------------------------------------------------
class JsonError(BaseModel):
    kind: str
    message: str
    details: Optional[Dict[str, Any]] = None
