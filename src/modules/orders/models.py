"""Order aggregate: Order, VendorOrder, OrderItem, history and sequences.

Business rules implemented:
- Order number ``ORDYYMMDDSSSS`` assigned once by the numbering service.
- Every line snapshots vendor, name, image, unit price and discount at
  placement time; lines are immutable afterwards.
- ``line_total`` is always ``quantity * unit_price``.
- Each line belongs to exactly one vendor sub-order of the same order,
  so sub-orders partition the order's lines by construction.
- ``items_price``/``tax_price``/``shipping_price``/``total_price`` are
  derived by the pricing engine and not editable.
- Each status change appends an ``OrderStatusHistory`` record.
- Idempotency via the ``idempotency_key`` unique constraint.
- Customer, product and vendor FKs use PROTECT to preserve history.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from modules.core.models import BaseModel, SoftDeleteModel
from modules.orders.constants import (
    CANCELLABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    VENDOR_ORDER_TRANSITIONS,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    VendorOrderStatus,
)
from shared.domain.events import DomainEventMixin

if TYPE_CHECKING:
    from modules.orders.pricing import PriceQuote

logger = structlog.get_logger(__name__)

MONEY = {"max_digits": 12, "decimal_places": 2}


class Order(DomainEventMixin, SoftDeleteModel):
    """Order aggregate root.

    ``order_number`` is the human-readable identifier shown to customers;
    the UUIDv7 ``id`` is used for internal references and API look-ups.
    ``shipping_address`` is a snapshot of the address submitted at
    checkout (name, phone, street, city, state, zip_code, country).
    """

    order_number = models.CharField(max_length=20, unique=True, editable=False)
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.PENDING,
    )
    shipping_address = models.JSONField(default=dict)

    payment_id = models.CharField(max_length=255)
    payment_method = models.CharField(max_length=20, choices=PaymentMethod.choices)
    payment_result_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )

    items_price = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)
    tax_price = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)
    shipping_price = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)
    total_price = models.DecimalField(**MONEY, default=Decimal("0.00"), editable=False)

    paid_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    return_requested_at = models.DateTimeField(null=True, blank=True)
    return_reason = models.TextField(blank=True, default="")
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    idempotency_key = models.CharField(
        max_length=255,
        unique=True,
        null=True,
        blank=True,
    )

    class Meta:
        db_table = "orders"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="orders_status_idx"),
            models.Index(fields=["-created_at"], name="orders_created_idx"),
        ]

    # ------------------------------------------------------------------
    # State machine helpers
    # ------------------------------------------------------------------

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATES

    @property
    def is_cancellable(self) -> bool:
        return self.status in CANCELLABLE_STATES

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def apply_status(self, new_status: str, at: datetime) -> None:
        """Set the status and stamp the timestamp the new state owns."""
        self.status = new_status
        if new_status == OrderStatus.DELIVERED:
            self.delivered_at = at
        elif new_status == OrderStatus.CANCELLED:
            self.cancelled_at = at
        elif new_status == OrderStatus.RETURNED:
            self.return_requested_at = at

    # ------------------------------------------------------------------
    # Pricing
    # ------------------------------------------------------------------

    def apply_quote(self, quote: PriceQuote) -> None:
        self.items_price = quote.items_price
        self.tax_price = quote.tax_price
        self.shipping_price = quote.shipping_price
        self.total_price = quote.total_price

    @property
    def totals_reconcile(self) -> bool:
        return self.total_price == self.items_price + self.tax_price + self.shipping_price

    def __str__(self) -> str:
        return f"{self.order_number} ({self.status})"


class VendorOrder(BaseModel):
    """The slice of an order fulfilled by one vendor.

    Status moves independently from the parent order and only through
    the owning vendor.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="vendor_orders",
    )
    vendor = models.ForeignKey(
        "vendors.Vendor",
        on_delete=models.PROTECT,
        related_name="sub_orders",
    )
    position = models.PositiveIntegerField(default=0)
    status = models.CharField(
        max_length=20,
        choices=VendorOrderStatus.choices,
        default=VendorOrderStatus.PENDING,
    )
    tracking_number = models.CharField(max_length=100, blank=True, default="")
    shipped_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "vendor_orders"
        ordering = ["position"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "vendor"],
                name="vendor_orders_one_per_vendor",
            ),
        ]

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in VENDOR_ORDER_TRANSITIONS.get(self.status, set())

    def apply_status(self, new_status: str, at: datetime) -> None:
        self.status = new_status
        if new_status == VendorOrderStatus.SHIPPED:
            self.shipped_at = at
        elif new_status == VendorOrderStatus.DELIVERED:
            self.delivered_at = at

    def __str__(self) -> str:
        return f"{self.order_id}/{self.vendor_id} ({self.status})"


class OrderItem(BaseModel):
    """Order line with an order-time snapshot of the product.

    ``vendor``, ``name``, ``image_url``, ``unit_price`` and ``discount``
    are copied from the product when the order is placed and never
    follow later catalog edits.  Lines cannot be modified once saved.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="items",
    )
    vendor_order = models.ForeignKey(
        "orders.VendorOrder",
        on_delete=models.CASCADE,
        related_name="items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    vendor = models.ForeignKey(
        "vendors.Vendor",
        on_delete=models.PROTECT,
        related_name="order_items",
    )
    position = models.PositiveIntegerField(default=0)
    name = models.CharField(max_length=255)
    image_url = models.CharField(max_length=500, blank=True, default="")
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(**MONEY)
    discount = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))
    line_total = models.DecimalField(**MONEY, editable=False)

    class Meta:
        db_table = "order_items"
        ordering = ["position"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(quantity__gte=1),
                name="order_items_quantity_positive",
            ),
        ]

    def clean(self) -> None:
        super().clean()
        if self.quantity is not None and self.quantity < 1:
            raise ValidationError({"quantity": "Quantity must be at least 1."})

    def save(self, *args: Any, **kwargs: Any) -> None:
        if not self._state.adding:
            raise ValidationError("Order items are immutable once placed.")
        self.line_total = self.quantity * self.unit_price
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"{self.name} x{self.quantity} (${self.line_total})"


class OrderStatusHistory(BaseModel):
    """Append-only audit trail for order status transitions.

    ``user`` is ``None`` when the change was made by the system.
    """

    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.CASCADE,
        related_name="status_history",
    )
    old_status = models.CharField(  # noqa: DJ01
        max_length=20,
        choices=OrderStatus.choices,
        null=True,
        blank=True,
    )
    new_status = models.CharField(max_length=20, choices=OrderStatus.choices)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )
    notes = models.TextField(blank=True, default="")

    class Meta:
        db_table = "order_status_history"
        ordering = ["created_at"]
        indexes = [
            models.Index(
                fields=["order", "created_at"],
                name="osh_order_created_idx",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.order} : {self.old_status} -> {self.new_status}"


class OrderSequence(models.Model):
    """Per-day counter backing order numbers.

    One row per local calendar day; ``last_value`` is the sequence of the
    most recent number handed out that day.
    """

    day = models.DateField(primary_key=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "order_sequences"

    def __str__(self) -> str:
        return f"{self.day:%Y-%m-%d}: {self.last_value}"
