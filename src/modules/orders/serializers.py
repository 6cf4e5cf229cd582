"""Order DRF serializers for API input/output.

The serializer operates at the Interface layer (API Views).
Business logic lives in the Service Layer, which receives
Pydantic DTOs from ``dtos.py``.
"""

from __future__ import annotations

from rest_framework import serializers

from modules.orders.constants import (
    OrderStatus,
    PaymentMethod,
    VendorOrderStatus,
)
from modules.orders.models import Order, OrderItem, OrderStatusHistory, VendorOrder

# ---------------------------------------------------------------------------
# Input Serializers
# ---------------------------------------------------------------------------


class CreateOrderItemSerializer(serializers.Serializer):
    """Validates a single item in an order creation request."""

    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class ShippingAddressSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=30)
    street = serializers.CharField(max_length=255)
    city = serializers.CharField(max_length=100)
    state = serializers.CharField(max_length=100)
    zip_code = serializers.CharField(max_length=20)
    country = serializers.CharField(max_length=100)


class PaymentInfoSerializer(serializers.Serializer):
    payment_id = serializers.CharField(max_length=255)
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices)


class CreateOrderSerializer(serializers.Serializer):
    """Validates the order creation request payload."""

    customer_id = serializers.UUIDField(required=False)
    items = CreateOrderItemSerializer(many=True, allow_empty=False)
    shipping_address = ShippingAddressSerializer()
    payment = PaymentInfoSerializer()
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    notes = serializers.CharField(required=False, default="", allow_blank=True)
    return_reason = serializers.CharField(required=False, default="", allow_blank=True)


class CancelOrderSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, default="", allow_blank=True)


class UpdateVendorOrderStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=VendorOrderStatus.choices)
    tracking_number = serializers.CharField(
        required=False, default="", allow_blank=True, max_length=100
    )


# ---------------------------------------------------------------------------
# Output Serializers (Read)
# ---------------------------------------------------------------------------


class OrderItemSerializer(serializers.ModelSerializer):
    """Read serializer for order lines (order-time snapshot)."""

    class Meta:
        model = OrderItem
        fields = [
            "id",
            "product_id",
            "vendor_id",
            "name",
            "image_url",
            "quantity",
            "unit_price",
            "discount",
            "line_total",
        ]
        read_only_fields = fields


class VendorOrderSummarySerializer(serializers.ModelSerializer):
    """Read serializer for a vendor sub-order without its lines."""

    vendor_name = serializers.CharField(source="vendor.name", read_only=True)

    class Meta:
        model = VendorOrder
        fields = [
            "id",
            "vendor_id",
            "vendor_name",
            "status",
            "tracking_number",
            "shipped_at",
            "delivered_at",
        ]
        read_only_fields = fields


class VendorOrderSerializer(VendorOrderSummarySerializer):
    """Read serializer for a vendor sub-order with its lines."""

    items = OrderItemSerializer(many=True, read_only=True)

    class Meta(VendorOrderSummarySerializer.Meta):
        fields = [*VendorOrderSummarySerializer.Meta.fields, "items"]
        read_only_fields = fields


class StatusHistorySerializer(serializers.ModelSerializer):
    """Read serializer for order status history records."""

    class Meta:
        model = OrderStatusHistory
        fields = [
            "id",
            "old_status",
            "new_status",
            "notes",
            "created_at",
        ]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    """Read serializer for orders with lines, sub-orders and history."""

    items = OrderItemSerializer(many=True, read_only=True)
    vendor_orders = VendorOrderSerializer(many=True, read_only=True)
    status_history = StatusHistorySerializer(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "shipping_address",
            "payment_id",
            "payment_method",
            "payment_result_status",
            "payment_status",
            "items_price",
            "tax_price",
            "shipping_price",
            "total_price",
            "paid_at",
            "delivered_at",
            "cancelled_at",
            "return_requested_at",
            "return_reason",
            "tracking_number",
            "notes",
            "created_at",
            "updated_at",
            "items",
            "vendor_orders",
            "status_history",
        ]
        read_only_fields = fields


class OrderListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for order list (no nested relations)."""

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "payment_status",
            "total_price",
            "created_at",
        ]
        read_only_fields = fields


class VendorScopedOrderSerializer(serializers.ModelSerializer):
    """Order as one vendor sees it.

    ``items`` holds only the lines that vendor sells and ``vendor_order``
    is its own sub-order. The vendor's id comes from the serializer
    context. Lines and sub-orders are read from the prefetch cache.
    """

    items = serializers.SerializerMethodField()
    vendor_order = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "customer_id",
            "status",
            "shipping_address",
            "payment_status",
            "created_at",
            "items",
            "vendor_order",
        ]
        read_only_fields = fields

    @property
    def _vendor_id(self):
        return self.context["vendor_id"]

    def get_items(self, order: Order) -> list:
        lines = [item for item in order.items.all() if item.vendor_id == self._vendor_id]
        return OrderItemSerializer(lines, many=True).data

    def get_vendor_order(self, order: Order) -> dict | None:
        for sub_order in order.vendor_orders.all():
            if sub_order.vendor_id == self._vendor_id:
                return VendorOrderSummarySerializer(sub_order).data
        return None
