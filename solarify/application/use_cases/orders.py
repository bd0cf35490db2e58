"""Cart checkout and the order status machine."""

from __future__ import annotations

import logging

from solarify.application.dtos.order import OrderCreate, OrderItem, OrderResult
from solarify.application.dtos.user import UserResult
from solarify.application.interfaces.repositories import IOrderRepository, IProductRepository
from solarify.application.services.notification_service import NotificationService
from solarify.domain.enums import NotificationType, OrderStatus, UserRole
from solarify.domain.exceptions import (
    AuthorizationException,
    InsufficientStockException,
    InvalidStatusTransitionException,
    ResourceNotFoundException,
    ValidationException,
)
from solarify.shared.utils.sanitization import sanitize_text

logger = logging.getLogger(__name__)

# Allowed status changes: current -> targets
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.INQUIRY: frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED}),
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.COMPLETED}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

# Statuses in which the customer may still cancel
CUSTOMER_CANCELLABLE = frozenset({OrderStatus.INQUIRY, OrderStatus.PENDING})


class OrderService:
    """Checkout, order lists and status updates."""

    def __init__(
        self,
        order_repo: IOrderRepository,
        product_repo: IProductRepository,
        notifications: NotificationService,
        tax_rate: float = 0.0,
    ) -> None:
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.notifications = notifications
        self.tax_rate = tax_rate

    async def checkout(
        self,
        customer: UserResult,
        cart: list[tuple[str, int]],
        notes: str | None = None,
        inquiry: bool = False,
    ) -> OrderResult:
        """Turn cart lines (product_id, quantity) into an order and reserve stock.

        Quantities for the same product are merged. All products must share a
        currency. Stock is checked for every line before any is decremented.
        """
        if not cart:
            raise ValidationException("Cart is empty", field="items")
        quantities: dict[str, int] = {}
        for product_id, quantity in cart:
            if quantity < 1:
                raise ValidationException("Quantity must be at least 1", field="quantity")
            quantities[product_id] = quantities.get(product_id, 0) + quantity

        items: list[OrderItem] = []
        for product_id, quantity in quantities.items():
            product = await self.product_repo.get_by_id(product_id)
            if not product:
                raise ResourceNotFoundException("product", product_id)
            if product.stock < quantity:
                raise InsufficientStockException(product_id, quantity, product.stock)
            items.append(
                OrderItem(
                    product_id=product.id,
                    product_name=product.name,
                    supplier_id=product.supplier_id,
                    supplier_name=product.supplier_name,
                    unit_price=product.price_value,
                    currency_code=product.currency_code,
                    quantity=quantity,
                    line_total=round(product.price_value * quantity, 2),
                )
            )
        currencies = {item.currency_code for item in items}
        if len(currencies) > 1:
            raise ValidationException(
                "All cart items must use the same currency", field="currency_code"
            )

        subtotal = round(sum(item.line_total for item in items), 2)
        tax_amount = round(subtotal * self.tax_rate / 100, 2)
        supplier_ids = tuple(dict.fromkeys(item.supplier_id for item in items))
        status = OrderStatus.INQUIRY if inquiry else OrderStatus.PENDING

        for item in items:
            await self.product_repo.adjust_stock(item.product_id, -item.quantity)
        order = await self.order_repo.create(
            OrderCreate(
                customer_id=customer.id,
                customer_name=customer.display_name,
                items=tuple(items),
                supplier_ids=supplier_ids,
                currency_code=currencies.pop(),
                subtotal=subtotal,
                tax_rate=self.tax_rate,
                tax_amount=tax_amount,
                total_amount=round(subtotal + tax_amount, 2),
                status=status.value,
                notes=sanitize_text(notes),
            )
        )
        logger.info("Order %s placed by %s (%d items)", order.id, customer.id, len(items))
        for supplier_id in supplier_ids:
            await self.notifications.notify(
                supplier_id,
                NotificationType.ORDER_PLACED,
                "New order" if not inquiry else "New order inquiry",
                f"{customer.display_name} placed an order ({order.currency_code} "
                f"{order.total_amount:,.2f}).",
                action_url=f"/supplier/orders/{order.id}",
                metadata={"order_id": order.id},
            )
        return order

    async def get_order(self, user: UserResult, order_id: str) -> OrderResult:
        """Return order to its customer, a supplier with items in it, or an admin."""
        order = await self.order_repo.get_by_id(order_id)
        if not order:
            raise ResourceNotFoundException("order", order_id)
        if (
            user.role != UserRole.ADMIN.value
            and user.id != order.customer_id
            and user.id not in order.supplier_ids
        ):
            raise AuthorizationException("order", "read")
        return order

    async def list_my_orders(self, customer_id: str) -> list[OrderResult]:
        return await self.order_repo.list_by_customer(customer_id)

    async def list_supplier_orders(self, supplier_id: str) -> list[OrderResult]:
        return await self.order_repo.list_by_supplier(supplier_id)

    async def update_status(self, user: UserResult, order_id: str, target: str) -> OrderResult:
        """Move the order along the status machine.

        Suppliers in the order advance it; the customer may only cancel an
        inquiry or pending order. Cancelling restores stock.
        """
        order = await self.get_order(user, order_id)
        try:
            target_status = OrderStatus(target)
        except ValueError as e:
            raise ValidationException(f"Unknown order status: {target}", field="status") from e
        current = OrderStatus(order.status)
        if target_status not in ORDER_TRANSITIONS[current]:
            raise InvalidStatusTransitionException("order", current.value, target_status.value)

        is_supplier = user.id in order.supplier_ids or user.role == UserRole.ADMIN.value
        if not is_supplier:
            if target_status is not OrderStatus.CANCELLED or current not in CUSTOMER_CANCELLABLE:
                raise AuthorizationException("order", "update_status")

        if target_status is OrderStatus.CANCELLED:
            for item in order.items:
                await self.product_repo.adjust_stock(item.product_id, item.quantity)
        await self.order_repo.update_status(order_id, target_status.value)
        logger.info("Order %s: %s -> %s", order_id, current.value, target_status.value)
        await self.notifications.notify(
            order.customer_id,
            NotificationType.ORDER_STATUS_UPDATED,
            "Order updated",
            f"Your order is now {target_status.value}.",
            action_url=f"/orders/{order_id}",
            metadata={"order_id": order_id, "status": target_status.value},
        )
        updated = await self.order_repo.get_by_id(order_id)
        return updated or order
