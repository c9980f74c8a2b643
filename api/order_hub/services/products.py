# order_hub/services/products.py
"""
Product resolution for scanner input.

Scanned codes may be a real GTIN or a legacy internal barcode; the caller
never has to say which.
"""
from __future__ import annotations
import logging
from typing import Optional

from order_hub.db_models import Product
from order_hub.errors import ProductNotFound
from order_hub.repositories import ProductRepository
from order_hub.services.gtin import parse_gtin

log = logging.getLogger(__name__)


class ProductResolver:
    """Resolve a code to a product: GTIN first, internal barcode second."""

    def __init__(self, products: ProductRepository, client_id: int):
        self.products = products
        self.client_id = client_id

    async def find(self, code: Optional[str]) -> Optional[Product]:
        code = (code or "").strip()
        if not code:
            return None

        gtin = parse_gtin(code)
        if gtin is not None:
            product = await self.products.get_by_gtin(gtin, self.client_id)
            if product is not None:
                return product

        log.debug("code %r not resolved as GTIN, trying barcode", code)
        return await self.products.get_by_barcode(code, self.client_id)

    async def resolve(self, code: Optional[str]) -> Product:
        product = await self.find(code)
        if product is None:
            raise ProductNotFound((code or "").strip())
        return product
