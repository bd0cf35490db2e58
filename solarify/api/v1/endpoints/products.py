"""Product catalog API. Suppliers manage their own listings; anyone may browse."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response

from solarify.api.v1.dependencies import SupplierUser, get_product_service
from solarify.application.use_cases.products import ProductService
from solarify.core.constants import MAX_PAGE_SIZE
from solarify.core.limiter import limit_writes
from solarify.schemas.product import ProductCreateRequest, ProductResponse, ProductUpdateRequest

router = APIRouter()

ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]


@router.get("", response_model=list[ProductResponse])
async def list_products(
    product_service: ProductServiceDep,
    category: str | None = Query(None),
    supplier_id: str | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(MAX_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
):
    """Newest first, optionally filtered by category or supplier."""
    products = await product_service.list_products(
        category=category, supplier_id=supplier_id, skip=skip, limit=limit
    )
    return [ProductResponse.model_validate(p) for p in products]


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(product_id: str, product_service: ProductServiceDep):
    return ProductResponse.model_validate(await product_service.get_product(product_id))


@router.post("", response_model=ProductResponse, status_code=201)
@limit_writes
async def create_product(
    request: Request,
    body: ProductCreateRequest,
    supplier: SupplierUser,
    product_service: ProductServiceDep,
):
    product = await product_service.create_product(supplier, body.model_dump())
    return ProductResponse.model_validate(product)


@router.patch("/{product_id}", response_model=ProductResponse)
@limit_writes
async def update_product(
    request: Request,
    product_id: str,
    body: ProductUpdateRequest,
    supplier: SupplierUser,
    product_service: ProductServiceDep,
):
    product = await product_service.update_product(
        supplier.id, product_id, body.model_dump(exclude_unset=True)
    )
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=204)
@limit_writes
async def delete_product(
    request: Request,
    product_id: str,
    supplier: SupplierUser,
    product_service: ProductServiceDep,
):
    await product_service.delete_product(supplier.id, product_id)
    return Response(status_code=204)
