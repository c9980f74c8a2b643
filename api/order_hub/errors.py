# order_hub/errors.py
"""
Request-scoped errors raised by the order pipeline and the attachment store.

Every error carries a stable `kind` (rendered to the client) and the HTTP
status the API layer answers with.
"""
from __future__ import annotations
from typing import Any, Dict, Optional


class OrderHubError(Exception):
    """Base app error."""

    kind = "OrderHubError"
    status_code = 422

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationFailure(OrderHubError):
    kind = "ValidationFailure"


class ProductNotFound(OrderHubError):
    kind = "ProductNotFound"

    def __init__(self, code: str):
        super().__init__(f"No product found for GTIN or barcode '{code}'", {"code": code})
        self.code = code


class PartnerNotFound(OrderHubError):
    kind = "PartnerNotFound"

    def __init__(self, code: str, org_id: int):
        super().__init__(
            f"Business partner '{code}' not found in organization {org_id}",
            {"code": code, "orgId": org_id},
        )
        self.code = code


class DocTypeNotFound(OrderHubError):
    kind = "DocTypeNotFound"

    def __init__(self, name: Optional[str]):
        if name:
            msg = f"Sales order document type '{name}' not found"
        else:
            msg = "No default sales order document type configured"
        super().__init__(msg, {"name": name})
        self.name = name


class InvalidQuantity(OrderHubError):
    kind = "InvalidQuantity"

    def __init__(self, qty: Any):
        super().__init__(f"Quantity must be a finite, non-negative number the order line can store (got {qty!r})", {"qty": str(qty)})


class PaymentFailure(OrderHubError):
    kind = "PaymentFailure"


class SalesOrderNotFound(OrderHubError):
    kind = "SalesOrderNotFound"
    status_code = 404

    def __init__(self, order_id: int):
        super().__init__(f"Sales order {order_id} not found", {"salesOrderId": order_id})


class AttachmentOwnerNotFound(OrderHubError):
    kind = "AttachmentOwnerNotFound"
    status_code = 404


class AttachmentNotFound(OrderHubError):
    kind = "AttachmentNotFound"
    status_code = 404


class MalformedAttachmentOwner(OrderHubError):
    kind = "MalformedAttachmentOwner"
    status_code = 400


class StorageFailure(OrderHubError):
    kind = "StorageFailure"
    status_code = 500


class MalformedIdentifier(OrderHubError):
    kind = "MalformedIdentifier"
    status_code = 400
