"""Order service layer (Use Cases).

Orchestrates order placement, status management, vendor fulfillment
and cancellation.  All write operations are atomic; the service
defines the unit-of-work boundary.

Placement pipeline:
1. Idempotency-key look-up.
2. Customer must exist and be active.
3. Inventory check: every line validated before any stock moves.
4. Pricing from the live product snapshots.
5. Inventory commit: compare-and-decrement per line, compensated on
   a lost race.
6. Split lines into one sub-order per vendor.
7. Allocate the order number from the per-day counter.
8. Persist order + sub-orders + lines, history and outbox events.
9. After commit, notify (fire-and-forget).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, Optional
from uuid import UUID

import structlog
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.customers.exceptions import CustomerNotFound, InactiveCustomer
from modules.orders.constants import OrderStatus, PaymentStatus
from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusChanged,
    VendorOrderStatusChanged,
)
from modules.orders.exceptions import (
    IdempotencyKeyConflict,
    InvalidTransition,
    OrderNotCancellable,
    OrderNotFound,
    VendorOrderAccessDenied,
)
from modules.orders.notifications import CeleryOrderNotifier
from modules.orders.numbering import OrderNumberGenerator
from modules.orders.pricing import PricingEngine
from modules.orders.repositories.interfaces import OrderDraft
from modules.orders.splitting import split_by_vendor
from modules.products.inventory import InventoryReservation

if TYPE_CHECKING:
    from modules.customers.models import Customer
    from modules.customers.repositories.interfaces import ICustomerRepository
    from modules.orders.dtos import (
        CreateOrderDTO,
        UpdateStatusDTO,
        UpdateVendorOrderStatusDTO,
    )
    from modules.orders.models import Order
    from modules.orders.notifications import OrderNotifier
    from modules.orders.repositories.interfaces import IOrderRepository
    from modules.products.repositories.interfaces import IProductRepository
    from modules.vendors.models import Vendor

logger = structlog.get_logger(__name__)


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).  Pricing,
    numbering, inventory and notification collaborators default to the
    production implementations and can be replaced in tests.
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        customer_repository: ICustomerRepository,
        product_repository: IProductRepository,
        pricing: Optional[PricingEngine] = None,
        notifier: Optional[OrderNotifier] = None,
        numbering: Optional[OrderNumberGenerator] = None,
        inventory: Optional[InventoryReservation] = None,
    ) -> None:
        self._order_repo = order_repository
        self._customer_repo = customer_repository
        self._product_repo = product_repository
        self._pricing = pricing or PricingEngine()
        self._notifier = notifier or CeleryOrderNotifier()
        self._numbering = numbering or OrderNumberGenerator(order_repository)
        self._inventory = inventory or InventoryReservation(product_repository)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, dto: CreateOrderDTO, user: Any = None) -> Order:
        """Place an order: reserve stock, price, split and persist.

        Raises:
            IdempotencyKeyConflict: the key belongs to another customer's order.
            CustomerNotFound: customer does not exist.
            InactiveCustomer: customer is inactive.
            ProductNotFound: a product does not exist.
            ProductInactive: a product is disabled.
            InvalidQuantity: a line asks for fewer than one unit.
            InsufficientStock: not enough stock, checked or lost to a race.
            OrderNumberUnavailable: the order counter could not be advanced.
        """
        log = logger.bind(customer_id=str(dto.customer_id))
        log.info("order.creation_started", item_count=len(dto.items))

        # 0. Idempotency check
        if dto.idempotency_key:
            existing = self._order_repo.get_by_idempotency_key(dto.idempotency_key)
            if existing:
                if existing.customer_id != dto.customer_id:
                    log.warning("order.idempotency_conflict", key=dto.idempotency_key)
                    raise IdempotencyKeyConflict()
                log.info(
                    "order.idempotency_hit",
                    order_id=str(existing.id),
                    key=dto.idempotency_key,
                )
                return existing

        # 1. Validate customer
        customer = self._customer_repo.get_by_id(str(dto.customer_id))
        if not customer:
            raise CustomerNotFound(f"Customer {dto.customer_id} not found.")
        if not customer.is_active:
            raise InactiveCustomer(f"Customer {dto.customer_id} is inactive.")

        # 2. Validate all lines before any stock moves
        snapshots = self._inventory.check(dto.items)

        # 3. Price from the snapshots, in cart order
        quote = self._pricing.quote(
            (snapshot, item.quantity) for snapshot, item in zip(snapshots, dto.items)
        )

        # 4. Reserve stock
        self._inventory.commit(dto.items)

        # 5. Split, number and persist
        groups = split_by_vendor(quote.lines)
        order_number = self._numbering.next_number()
        now = timezone.now()

        order = self._order_repo.create(
            OrderDraft(
                order_number=order_number,
                customer_id=dto.customer_id,
                shipping_address=dto.shipping_address.model_dump(),
                payment=dto.payment,
                payment_status=PaymentStatus.COMPLETED,
                paid_at=now,
                quote=quote,
                groups=groups,
                notes=dto.notes or "",
                idempotency_key=dto.idempotency_key,
            )
        )

        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                order_number=order.order_number,
                customer_id=dto.customer_id,
                total_price=order.total_price,
                vendor_ids=tuple(group.vendor_id for group in groups),
            )
        )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.PENDING,
            notes="Order created",
            user=user,
        )

        log.info(
            "order.created",
            order_id=str(order.id),
            order_number=order.order_number,
            total_price=str(order.total_price),
            vendor_count=len(groups),
        )
        transaction.on_commit(lambda: self._notify_created(order))

        # Re-fetch with prefetch for output
        order_with_relations = self._order_repo.get_by_id(str(order.id))
        return order_with_relations or order

    @transaction.atomic
    def update_status(
        self,
        order_id: UUID,
        dto: UpdateStatusDTO,
        user: Any = None,
    ) -> Order:
        """Transition an order to a new status.

        Acquires a row-level lock (``SELECT FOR UPDATE``) on the order
        before validating the transition, so concurrent changes of the
        same order are serialized.  A move to ``cancelled`` goes through
        :meth:`cancel_order` so stock is always released.

        Raises:
            OrderNotFound: order does not exist.
            InvalidTransition: transition is not in the lifecycle table.
            OrderNotCancellable: cancellation outside pending/processing.
        """
        if dto.status == OrderStatus.CANCELLED:
            return self.cancel_order(order_id, notes=dto.notes, user=user)

        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(
            order_id=str(order_id),
            current_status=order.status,
            new_status=dto.status,
        )

        if not order.can_transition_to(dto.status):
            log.warning("order.invalid_transition")
            raise InvalidTransition(order.status, dto.status)

        old_status = order.status
        order.apply_status(dto.status, timezone.now())
        if dto.status == OrderStatus.RETURNED and dto.return_reason:
            order.return_reason = dto.return_reason
        order.add_domain_event(
            OrderStatusChanged(
                aggregate_id=order.id,
                old_status=old_status,
                new_status=dto.status,
            )
        )
        self._order_repo.save(order)

        self._order_repo.add_history(
            order_id=order.id,
            status=dto.status,
            notes=dto.notes,
            old_status=old_status,
            user=user,
        )

        log.info("order.status_updated")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def cancel_order(
        self,
        order_id: UUID,
        notes: str = "",
        user: Any = None,
        customer: Optional[Customer] = None,
    ) -> Order:
        """Cancel an order and release its reserved stock.

        Acquires a row-level lock on the order **first** so concurrent
        cancellations cannot release stock twice: the second one finds
        the order already cancelled.  When ``customer`` is given, only
        that customer's orders can be cancelled.

        Raises:
            OrderNotFound: order does not exist or belongs to someone else.
            OrderNotCancellable: order is past processing or already closed.
        """
        # 1. Lock the order row
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), current_status=order.status)
        if customer is not None and order.customer_id != customer.id:
            log.warning("order.access_denied", customer_id=str(customer.id))
            raise OrderNotFound(f"Order {order_id} not found.")

        # 2. Validate the transition
        if not order.is_cancellable:
            log.warning("order.cancel_not_allowed")
            raise OrderNotCancellable(order.status)

        # 3. Release stock
        self._inventory.release(list(order.items.all()))

        # 4. Update status on the already-locked row
        old_status = order.status
        order.apply_status(OrderStatus.CANCELLED, timezone.now())
        order.add_domain_event(OrderCancelled(aggregate_id=order.id, old_status=old_status))
        self._order_repo.save(order)

        # 5. Record history
        self._order_repo.add_history(
            order_id=order.id,
            status=OrderStatus.CANCELLED,
            notes=notes or "Order cancelled",
            old_status=old_status,
            user=user,
        )

        log.info("order.cancelled")
        return self._order_repo.get_by_id(str(order_id))

    @transaction.atomic
    def update_vendor_order_status(
        self,
        order_id: UUID,
        vendor: Vendor,
        dto: UpdateVendorOrderStatusDTO,
    ) -> Order:
        """Move the acting vendor's sub-order to a new status.

        The parent order row is locked for the duration; the parent's
        own status is left untouched.

        Raises:
            OrderNotFound: order does not exist.
            VendorOrderAccessDenied: the vendor has no sub-order here, or
                the parent order is cancelled or returned.
            InvalidTransition: transition is not in the sub-order table.
        """
        order = self._order_repo.get_for_update(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")

        log = logger.bind(order_id=str(order_id), vendor_id=str(vendor.id))

        vendor_order = next(
            (vo for vo in order.vendor_orders.all() if vo.vendor_id == vendor.id),
            None,
        )
        if vendor_order is None:
            log.warning("vendor_order.access_denied")
            raise VendorOrderAccessDenied()
        if order.is_terminal:
            log.warning("vendor_order.parent_closed", parent_status=order.status)
            raise VendorOrderAccessDenied(
                f"Order {order.order_number} is {order.status}; sub-orders are closed."
            )
        if not vendor_order.can_transition_to(dto.status):
            log.warning(
                "vendor_order.invalid_transition",
                current_status=vendor_order.status,
                new_status=dto.status,
            )
            raise InvalidTransition(vendor_order.status, dto.status)

        old_status = vendor_order.status
        vendor_order.apply_status(dto.status, timezone.now())
        if dto.tracking_number:
            vendor_order.tracking_number = dto.tracking_number
        self._order_repo.save_vendor_order(vendor_order)

        order.add_domain_event(
            VendorOrderStatusChanged(
                aggregate_id=order.id,
                vendor_id=vendor.id,
                old_status=old_status,
                new_status=dto.status,
            )
        )
        self._order_repo.save(order)

        log.info(
            "vendor_order.status_updated",
            old_status=old_status,
            new_status=dto.status,
        )
        return self._order_repo.get_by_id(str(order_id))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str, customer: Optional[Customer] = None) -> Order:
        """Retrieve a single order by ID, optionally scoped to its owner.

        Raises:
            OrderNotFound: if the order does not exist, or ``customer``
                is given and does not own it.
        """
        order = self._order_repo.get_by_id(order_id)
        if not order or (customer is not None and order.customer_id != customer.id):
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def list_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """Return orders, optionally filtered."""
        return self._order_repo.list(filters)

    def list_customer_orders(self, customer: Customer) -> QuerySet:
        """Return the orders placed by ``customer``."""
        return self._order_repo.list({"customer_id": customer.id})

    def list_vendor_orders(self, vendor: Vendor) -> QuerySet:
        """Return orders holding a sub-order of ``vendor``."""
        return self._order_repo.list_for_vendor(vendor.id)

    # ------------------------------------------------------------------
    # Notification
    # ------------------------------------------------------------------

    def _notify_created(self, order: Order) -> None:
        """Fire-and-forget: failures are logged, never raised."""
        try:
            self._notifier.notify_order_created(order)
        except Exception as exc:
            logger.warning(
                "order.notification_failed",
                order_id=str(order.id),
                error=str(exc),
            )
