from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import httpx
import pytest
from sqlalchemy import func, select

from order_hub.db_models import SalesOrder
from order_hub.errors import PaymentFailure
from order_hub.main import app
from order_hub.routers.sales_orders import API_PREFIX, get_payment_gateway
from order_hub.services.payments import HttpPaymentGateway
from conftest import BARCODE_EA, GTIN_EA


async def order_count(session_factory) -> int:
    async with session_factory() as db:
        return (await db.execute(select(func.count()).select_from(SalesOrder))).scalar()


def order_payload(code: str, partner: str = "C001", **extra) -> dict:
    return {
        "shipBPartnerCode": partner,
        "lines": [{"gtinCode": code, "qty": 2, "price": "9.99"}],
        **extra,
    }


class FakeGateway:
    def __init__(self, error: Exception = None):
        self.error = error
        self.payloads = []

    async def create_payment(self, payload):
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error


# ---------------------------------------------------------------------------
# Create order
# ---------------------------------------------------------------------------

async def test_create_order_by_gtin(client):
    before = datetime.now(timezone.utc)
    resp = await client.post(API_PREFIX, json=order_payload(GTIN_EA))

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["salesOrderId"]
    assert body["documentNo"] == "SO-1000"
    assert body["docTypeName"] == "Standard Order"
    assert Decimal(body["totalAmount"]) == Decimal("19.98")
    assert Decimal(body["totalQuantity"]) == Decimal("2")

    [line] = body["orderLines"]
    assert line["productCode"] == "P-100"
    assert line["gtinCode"] == GTIN_EA
    assert Decimal(line["quantity"]) == Decimal("2")
    assert Decimal(line["unitPrice"]) == Decimal("9.99")
    assert Decimal(line["lineAmount"]) == Decimal("19.98")

    expiry = datetime.fromisoformat(body["expiryDate"].replace("Z", "+00:00"))
    assert before + timedelta(hours=24) <= expiry <= datetime.now(timezone.utc) + timedelta(hours=24)
    assert body["formattedExpiryDate"].startswith(expiry.strftime("%Y-%m-%d %H:%M:%S"))


async def test_create_order_by_barcode(client):
    resp = await client.post(API_PREFIX, json=order_payload(BARCODE_EA))

    assert resp.status_code == 200, resp.text
    body = resp.json()
    [line] = body["orderLines"]
    assert line["productCode"] == "P-200"
    assert line["gtinCode"] is None
    assert Decimal(body["totalAmount"]) == Decimal("19.98")
    assert Decimal(body["totalQuantity"]) == Decimal("2")


async def test_named_doc_type_and_promised_date(client):
    resp = await client.post(API_PREFIX, json=order_payload(GTIN_EA, docTypeName="Web Order", datePromised="2026-11-02"))

    assert resp.status_code == 200, resp.text
    assert resp.json()["documentNo"] == "WEB-1"
    assert resp.json()["docTypeName"] == "Web Order"


async def test_unknown_partner(client, session_factory):
    resp = await client.post(API_PREFIX, json=order_payload(GTIN_EA, partner="NOBODY"))

    assert resp.status_code == 422
    body = resp.json()
    assert body["kind"] == "PartnerNotFound"
    assert body["details"]["code"] == "NOBODY"
    assert await order_count(session_factory) == 0


async def test_org_header_selects_partner_scope(client):
    resp = await client.post(API_PREFIX, json=order_payload(GTIN_EA, partner="C002"))
    assert resp.json()["kind"] == "PartnerNotFound"

    resp = await client.post(API_PREFIX, json=order_payload(GTIN_EA, partner="C002"), headers={"X-Org-Id": "2"})
    assert resp.status_code == 200, resp.text


async def test_unknown_product(client, session_factory):
    payload = {
        "shipBPartnerCode": "C001",
        "lines": [
            {"gtinCode": GTIN_EA, "qty": 1, "price": "1"},
            {"gtinCode": " NOPE-1 ", "qty": 1},
        ],
    }
    resp = await client.post(API_PREFIX, json=payload)

    assert resp.status_code == 422
    body = resp.json()
    assert body["kind"] == "ProductNotFound"
    assert body["details"]["code"] == "NOPE-1"
    assert await order_count(session_factory) == 0


async def test_negative_quantity(client):
    payload = {"shipBPartnerCode": "C001", "lines": [{"gtinCode": GTIN_EA, "qty": -1}]}
    resp = await client.post(API_PREFIX, json=payload)

    assert resp.status_code == 422
    assert resp.json()["kind"] == "InvalidQuantity"


async def test_unknown_doc_type(client):
    resp = await client.post(API_PREFIX, json=order_payload(GTIN_EA, docTypeName="Nope"))

    assert resp.status_code == 422
    assert resp.json()["kind"] == "DocTypeNotFound"


@pytest.mark.parametrize("payload", [
    {"shipBPartnerCode": "C001", "lines": []},
    {"shipBPartnerCode": "C001"},
    {"lines": [{"gtinCode": GTIN_EA, "qty": 1}]},
    {"shipBPartnerCode": "C001", "lines": [{"qty": 1}]},
])
async def test_malformed_request(client, payload):
    resp = await client.post(API_PREFIX, json=payload)

    assert resp.status_code == 422
    assert resp.json()["kind"] == "ValidationFailure"


# ---------------------------------------------------------------------------
# Read back
# ---------------------------------------------------------------------------

async def test_get_order(client):
    created = (await client.post(API_PREFIX, json=order_payload(GTIN_EA))).json()

    resp = await client.get(f"{API_PREFIX}/{created['salesOrderId']}")

    assert resp.status_code == 200
    body = resp.json()
    assert body["documentNo"] == created["documentNo"]
    assert body["totalAmount"] == created["totalAmount"]
    assert body["orderLines"] == created["orderLines"]


async def test_get_unknown_order(client):
    resp = await client.get(f"{API_PREFIX}/999")

    assert resp.status_code == 404
    assert resp.json()["kind"] == "SalesOrderNotFound"


@pytest.mark.parametrize("raw_id", ["abc", "0", "-7", "1.5"])
async def test_get_order_with_malformed_id(client, raw_id):
    resp = await client.get(f"{API_PREFIX}/{raw_id}")

    assert resp.status_code == 400
    body = resp.json()
    assert body["kind"] == "MalformedIdentifier"
    assert body["details"]["salesOrderId"] == raw_id


async def test_error_body_is_documented(client):
    schema = (await client.get("/openapi.json")).json()

    assert "JsonError" in schema["components"]["schemas"]
    responses = schema["paths"][f"{API_PREFIX}/{{sales_order_id}}"]["get"]["responses"]
    assert responses["400"]["content"]["application/json"]["schema"]["$ref"].endswith("/JsonError")


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

async def test_attachment_upload_list_download(client):
    order_id = (await client.post(API_PREFIX, json=order_payload(GTIN_EA))).json()["salesOrderId"]

    resp = await client.post(
        f"{API_PREFIX}/{order_id}/attachments",
        files={"file": ("note.txt", b"hello", "text/plain")},
    )
    assert resp.status_code == 200, resp.text
    created = resp.json()
    assert created["salesOrderId"] == order_id
    assert created["filename"] == "note.txt"
    assert created["mimeType"] == "text/plain"
    assert created["type"] == "data"

    listed = (await client.get(f"{API_PREFIX}/{order_id}/attachments")).json()
    assert listed == [created]

    content = await client.get(created["url"])
    assert content.status_code == 200
    assert content.content == b"hello"
    assert "note.txt" in content.headers["content-disposition"]


async def test_attachments_of_other_order_stay_separate(client):
    first = (await client.post(API_PREFIX, json=order_payload(GTIN_EA))).json()["salesOrderId"]
    second = (await client.post(API_PREFIX, json=order_payload(GTIN_EA))).json()["salesOrderId"]
    resp = await client.post(f"{API_PREFIX}/{first}/attachments", files={"file": ("a.pdf", b"%PDF", "application/pdf")})
    attachment_id = resp.json()["id"]

    assert (await client.get(f"{API_PREFIX}/{second}/attachments")).json() == []
    resp = await client.get(f"{API_PREFIX}/{second}/attachments/{attachment_id}/content")
    assert resp.status_code == 404
    assert resp.json()["kind"] == "AttachmentNotFound"


async def test_attachment_for_unknown_order(client):
    resp = await client.post(f"{API_PREFIX}/4242/attachments", files={"file": ("a.txt", b"a", "text/plain")})

    assert resp.status_code == 404
    assert resp.json()["kind"] == "AttachmentOwnerNotFound"
    assert (await client.get(f"{API_PREFIX}/4242/attachments")).json() == []


@pytest.mark.parametrize("raw_id", ["abc", "0", "-3"])
async def test_malformed_attachment_owner(client, raw_id):
    resp = await client.get(f"{API_PREFIX}/{raw_id}/attachments")

    assert resp.status_code == 400
    assert resp.json()["kind"] == "MalformedAttachmentOwner"


# ---------------------------------------------------------------------------
# Payment pass-through
# ---------------------------------------------------------------------------

PAYMENT = {
    "orgCode": "HQ",
    "orderIdentifier": "SO-1000",
    "bpartnerIdentifier": "C001",
    "currencyCode": "EUR",
    "amount": "19.98",
    "transactionDate": "2026-10-19",
    "externalPaymentId": "pay-77",
}


async def test_payment_success(client):
    gateway = FakeGateway()
    app.dependency_overrides[get_payment_gateway] = lambda: gateway

    resp = await client.post(f"{API_PREFIX}/payment", json=PAYMENT)

    assert resp.status_code == 200
    assert resp.content == b""
    [forwarded] = gateway.payloads
    assert forwarded["orderIdentifier"] == "SO-1000"
    assert forwarded["externalPaymentId"] == "pay-77"
    assert Decimal(forwarded["amount"]) == Decimal("19.98")


@pytest.mark.parametrize("error", [RuntimeError("boom"), PaymentFailure("declined")])
async def test_payment_failure(client, error):
    app.dependency_overrides[get_payment_gateway] = lambda: FakeGateway(error)

    resp = await client.post(f"{API_PREFIX}/payment", json=PAYMENT)

    assert resp.status_code == 422
    assert resp.json()["kind"] == "PaymentFailure"


async def test_payment_not_configured(client):
    app.dependency_overrides[get_payment_gateway] = lambda: HttpPaymentGateway(None)

    resp = await client.post(f"{API_PREFIX}/payment", json=PAYMENT)

    assert resp.status_code == 422
    assert resp.json()["kind"] == "PaymentFailure"


async def test_http_gateway_posts_payload():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"id": 1})

    gateway = HttpPaymentGateway("http://payments.local/api/", transport=httpx.MockTransport(handler))
    await gateway.create_payment({"orderIdentifier": "SO-1000"})

    assert str(seen[0].url) == "http://payments.local/api/payments"
    assert seen[0].method == "POST"


async def test_http_gateway_rejection():
    transport = httpx.MockTransport(lambda request: httpx.Response(500, text="ledger closed"))
    gateway = HttpPaymentGateway("http://payments.local", transport=transport)

    with pytest.raises(PaymentFailure) as exc:
        await gateway.create_payment({"orderIdentifier": "SO-1000"})

    assert exc.value.details["status"] == 500
    assert exc.value.details["body"] == "ledger closed"


async def test_http_gateway_unreachable():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    gateway = HttpPaymentGateway("http://payments.local", transport=httpx.MockTransport(handler))

    with pytest.raises(PaymentFailure):
        await gateway.create_payment({})


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

async def test_health(client, session_factory, monkeypatch):
    monkeypatch.setattr("order_hub.database._async_session_factory", session_factory)

    resp = await client.get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["database"]["status"] == "healthy"
