"""Order domain constants.

Status choices, the two lifecycle state machines, payment enumerations
and pricing defaults.
"""

from decimal import Decimal

from django.db import models


class OrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"
    RETURNED = "returned", "Returned"


class VendorOrderStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    SHIPPED = "shipped", "Shipped"
    DELIVERED = "delivered", "Delivered"
    CANCELLED = "cancelled", "Cancelled"


class PaymentStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class PaymentMethod(models.TextChoices):
    STRIPE = "stripe", "Stripe"
    PAYPAL = "paypal", "PayPal"
    COD = "cod", "Cash on delivery"
    BANK_TRANSFER = "bank_transfer", "Bank transfer"


VALID_TRANSITIONS: dict[str, set[str]] = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED, OrderStatus.RETURNED},
    OrderStatus.DELIVERED: {OrderStatus.RETURNED},
    OrderStatus.CANCELLED: set(),
    OrderStatus.RETURNED: set(),
}

TERMINAL_STATES: set[str] = {OrderStatus.CANCELLED, OrderStatus.RETURNED}

CANCELLABLE_STATES: set[str] = {OrderStatus.PENDING, OrderStatus.PROCESSING}

VENDOR_ORDER_TRANSITIONS: dict[str, set[str]] = {
    VendorOrderStatus.PENDING: {VendorOrderStatus.PROCESSING, VendorOrderStatus.CANCELLED},
    VendorOrderStatus.PROCESSING: {VendorOrderStatus.SHIPPED, VendorOrderStatus.CANCELLED},
    VendorOrderStatus.SHIPPED: {VendorOrderStatus.DELIVERED},
    VendorOrderStatus.DELIVERED: set(),
    VendorOrderStatus.CANCELLED: set(),
}

DEFAULT_TAX_RATE = Decimal("0.10")
DEFAULT_SHIPPING_FLAT_FEE = Decimal("10.00")

ORDER_NUMBER_PREFIX = "ORD"
ORDER_NUMBER_SEQUENCE_DIGITS = 4
