"""Unit tests for Order DRF Serializers.

Covers:
- CreateOrderItemSerializer: field validation.
- CreateOrderSerializer: nested items, address and payment validation.
- Status update serializers: allowed choices.
- OrderSerializer: nested read output (lines, sub-orders, history).
- OrderListSerializer: lightweight list output.
- VendorScopedOrderSerializer: one vendor's lines and sub-order.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.orders.serializers import (
    CreateOrderItemSerializer,
    CreateOrderSerializer,
    OrderListSerializer,
    OrderSerializer,
    UpdateStatusSerializer,
    UpdateVendorOrderStatusSerializer,
    VendorScopedOrderSerializer,
)

pytestmark = pytest.mark.unit

ADDRESS = {
    "name": "Alice Morgan",
    "phone": "+1 555 0101",
    "street": "742 Evergreen Terrace",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}


def _payload(**overrides) -> dict:
    data = {
        "customer_id": str(uuid4()),
        "items": [{"product_id": str(uuid4()), "quantity": 2}],
        "shipping_address": dict(ADDRESS),
        "payment": {"payment_id": "pi_1", "payment_method": "stripe"},
    }
    data.update(overrides)
    return data


@pytest.fixture()
def order(order_service, make_order_dto, make_product, vendor_b):
    return order_service.create_order(
        make_order_dto(
            (make_product(price="15.00", name="Serializer Product"), 2),
            (make_product(price="4.00", vendor=vendor_b), 1),
        )
    )


# ===========================================================================
# Input
# ===========================================================================


class TestCreateOrderItemSerializer:
    def test_valid_data(self):
        serializer = CreateOrderItemSerializer(data={"product_id": str(uuid4()), "quantity": 3})
        assert serializer.is_valid(), serializer.errors

    def test_missing_product_id(self):
        serializer = CreateOrderItemSerializer(data={"quantity": 1})
        assert not serializer.is_valid()
        assert "product_id" in serializer.errors

    def test_zero_quantity_invalid(self):
        serializer = CreateOrderItemSerializer(data={"product_id": str(uuid4()), "quantity": 0})
        assert not serializer.is_valid()
        assert "quantity" in serializer.errors

    def test_non_numeric_quantity_invalid(self):
        serializer = CreateOrderItemSerializer(
            data={"product_id": str(uuid4()), "quantity": "lots"}
        )
        assert not serializer.is_valid()


class TestCreateOrderSerializer:
    def test_valid_data(self):
        serializer = CreateOrderSerializer(data=_payload())
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["notes"] == ""
        assert "payment_result_status" not in serializer.validated_data["payment"]

    def test_customer_id_optional(self):
        data = _payload()
        del data["customer_id"]
        serializer = CreateOrderSerializer(data=data)
        assert serializer.is_valid(), serializer.errors
        assert "customer_id" not in serializer.validated_data

    def test_empty_items_invalid(self):
        serializer = CreateOrderSerializer(data=_payload(items=[]))
        assert not serializer.is_valid()
        assert "items" in serializer.errors

    def test_repeated_products_valid(self):
        product_id = str(uuid4())
        serializer = CreateOrderSerializer(
            data=_payload(
                items=[
                    {"product_id": product_id, "quantity": 1},
                    {"product_id": product_id, "quantity": 1},
                ]
            )
        )
        assert serializer.is_valid(), serializer.errors
        assert len(serializer.validated_data["items"]) == 2

    def test_missing_shipping_address_invalid(self):
        data = _payload()
        del data["shipping_address"]
        serializer = CreateOrderSerializer(data=data)
        assert not serializer.is_valid()
        assert "shipping_address" in serializer.errors

    def test_unknown_payment_method_invalid(self):
        serializer = CreateOrderSerializer(
            data=_payload(payment={"payment_id": "pi_1", "payment_method": "barter"})
        )
        assert not serializer.is_valid()
        assert "payment" in serializer.errors

    def test_notes_provided(self):
        serializer = CreateOrderSerializer(data=_payload(notes="Leave at the door"))
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["notes"] == "Leave at the door"


class TestStatusSerializers:
    def test_order_status_accepts_returned(self):
        serializer = UpdateStatusSerializer(data={"status": "returned", "return_reason": "Late"})
        assert serializer.is_valid(), serializer.errors

    def test_order_status_rejects_unknown(self):
        assert not UpdateStatusSerializer(data={"status": "confirmed"}).is_valid()

    def test_vendor_status_rejects_returned(self):
        assert not UpdateVendorOrderStatusSerializer(data={"status": "returned"}).is_valid()

    def test_vendor_status_tracking_optional(self):
        serializer = UpdateVendorOrderStatusSerializer(data={"status": "shipped"})
        assert serializer.is_valid(), serializer.errors
        assert serializer.validated_data["tracking_number"] == ""


# ===========================================================================
# Output
# ===========================================================================


class TestOrderSerializer:
    def test_serializes_order_with_nested_relations(self, order):
        data = OrderSerializer(order).data

        assert data["order_number"] == order.order_number
        assert data["status"] == "pending"
        # 2 * 15.00 + 4.00 = 34.00; tax 3.40; shipping 10.00
        assert data["total_price"] == "47.40"
        assert len(data["items"]) == 2
        assert len(data["vendor_orders"]) == 2
        assert len(data["status_history"]) == 1

    def test_line_snapshot_fields(self, order):
        line = OrderSerializer(order).data["items"][0]

        assert line["name"] == "Serializer Product"
        assert line["quantity"] == 2
        assert line["unit_price"] == "15.00"
        assert line["line_total"] == "30.00"
        assert line["image_url"].startswith("https://")

    def test_sub_order_carries_vendor_and_lines(self, order, vendor_a):
        sub_order = OrderSerializer(order).data["vendor_orders"][0]

        assert sub_order["vendor_id"] == vendor_a.id
        assert sub_order["vendor_name"] == vendor_a.name
        assert sub_order["status"] == "pending"
        assert len(sub_order["items"]) == 1


class TestOrderListSerializer:
    def test_serializes_lightweight(self, order):
        data = OrderListSerializer(order).data

        assert set(data) == {
            "id",
            "order_number",
            "customer_id",
            "status",
            "payment_status",
            "total_price",
            "created_at",
        }
        assert data["payment_status"] == "completed"


class TestVendorScopedOrderSerializer:
    def test_narrows_to_one_vendor(self, order, vendor_b):
        data = VendorScopedOrderSerializer(order, context={"vendor_id": vendor_b.id}).data

        assert [item["vendor_id"] for item in data["items"]] == [vendor_b.id]
        assert data["items"][0]["line_total"] == "4.00"
        assert data["vendor_order"]["vendor_name"] == vendor_b.name
        assert "items" not in data["vendor_order"]

    def test_vendor_without_sub_order(self, order):
        data = VendorScopedOrderSerializer(order, context={"vendor_id": uuid4()}).data

        assert data["items"] == []
        assert data["vendor_order"] is None
