"""Product catalog operations (suppliers manage their own products)."""

from __future__ import annotations

import logging
from typing import Any

from solarify.application.dtos.product import ProductResult
from solarify.application.dtos.user import UserResult
from solarify.application.interfaces.repositories import IProductRepository
from solarify.domain.exceptions import (
    AuthorizationException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.shared.utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)

_EDITABLE_FIELDS = frozenset({
    "name", "description", "category", "price_value", "currency_code",
    "stock", "image_url", "image_hint",
})
_TEXT_FIELDS = ("name", "description", "category", "image_hint")


def _clean(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _EDITABLE_FIELDS
    if unknown:
        raise ValidationException(
            f"Unknown product fields: {', '.join(sorted(unknown))}", field=sorted(unknown)[0]
        )
    if fields.get("price_value") is not None and fields["price_value"] < 0:
        raise ValidationException("Price must not be negative", field="price_value")
    if fields.get("stock") is not None and fields["stock"] < 0:
        raise ValidationException("Stock must not be negative", field="stock")
    cleaned = dict(fields)
    for key in _TEXT_FIELDS:
        if key in cleaned:
            cleaned[key] = sanitize_text(cleaned[key])
    if cleaned.get("currency_code"):
        cleaned["currency_code"] = cleaned["currency_code"].upper()
    return cleaned


class ProductService:
    """Create, update, delete and browse products."""

    def __init__(self, product_repo: IProductRepository) -> None:
        self.product_repo = product_repo

    async def create_product(self, supplier: UserResult, fields: dict[str, Any]) -> ProductResult:
        product = await self.product_repo.create(
            supplier.id, supplier.display_name, _clean(fields)
        )
        logger.info("Product %s created by supplier %s", product.id, supplier.id)
        return product

    async def get_product(self, product_id: str) -> ProductResult:
        product = await self.product_repo.get_by_id(product_id)
        if not product:
            raise ResourceNotFoundException("product", product_id)
        return product

    async def list_products(
        self,
        category: str | None = None,
        supplier_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[ProductResult]:
        return await self.product_repo.list_products(
            category=category, supplier_id=supplier_id, skip=skip, limit=limit
        )

    async def _owned(self, supplier_id: str, product_id: str, action: str) -> ProductResult:
        product = await self.get_product(product_id)
        if product.supplier_id != supplier_id:
            raise AuthorizationException("product", action)
        return product

    async def update_product(
        self, supplier_id: str, product_id: str, fields: dict[str, Any]
    ) -> ProductResult:
        """Update one of the supplier's own products."""
        await self._owned(supplier_id, product_id, "update")
        if not fields:
            raise ValidationException("At least one field is required")
        updated = await self.product_repo.update(product_id, _clean(fields))
        if not updated:
            raise ResourceNotFoundException("product", product_id)
        return updated

    async def delete_product(self, supplier_id: str, product_id: str) -> None:
        """Delete one of the supplier's own products."""
        await self._owned(supplier_id, product_id, "delete")
        await self.product_repo.delete(product_id)
        logger.info("Product %s deleted by supplier %s", product_id, supplier_id)
