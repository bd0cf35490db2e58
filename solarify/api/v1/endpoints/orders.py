"""Cart checkout and order status API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from solarify.api.v1.dependencies import CurrentUser, SupplierUser, get_order_service
from solarify.application.use_cases.orders import OrderService
from solarify.core.limiter import limit_writes
from solarify.schemas.order import CheckoutRequest, OrderResponse, OrderStatusUpdateRequest

router = APIRouter()

OrderServiceDep = Annotated[OrderService, Depends(get_order_service)]


@router.post("", response_model=OrderResponse, status_code=201)
@limit_writes
async def checkout(
    request: Request,
    body: CheckoutRequest,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
):
    """Place an order (or an inquiry) for the cart; stock is reserved immediately."""
    order = await order_service.checkout(
        current_user,
        [(item.product_id, item.quantity) for item in body.items],
        notes=body.notes,
        inquiry=body.inquiry,
    )
    return OrderResponse.model_validate(order)


@router.get("/mine", response_model=list[OrderResponse])
async def list_my_orders(current_user: CurrentUser, order_service: OrderServiceDep):
    return [OrderResponse.model_validate(o) for o in await order_service.list_my_orders(current_user.id)]


@router.get("/supplier", response_model=list[OrderResponse])
async def list_supplier_orders(supplier: SupplierUser, order_service: OrderServiceDep):
    """Orders containing at least one of the supplier's products."""
    return [OrderResponse.model_validate(o) for o in await order_service.list_supplier_orders(supplier.id)]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(order_id: str, current_user: CurrentUser, order_service: OrderServiceDep):
    return OrderResponse.model_validate(await order_service.get_order(current_user, order_id))


@router.patch("/{order_id}/status", response_model=OrderResponse)
@limit_writes
async def update_order_status(
    request: Request,
    order_id: str,
    body: OrderStatusUpdateRequest,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
):
    order = await order_service.update_status(current_user, order_id, body.status)
    return OrderResponse.model_validate(order)
