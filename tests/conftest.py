from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from modules.customers.models import Customer
from modules.products.models import Product, ProductStatus
from modules.vendors.models import Vendor

User = get_user_model()


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def user():
    return User.objects.create_user(username="shopper", password="testpass123")


@pytest.fixture()
def auth_client(user):
    """APIClient with a force-authenticated Django user."""
    client = APIClient()
    client.force_authenticate(user=user)
    return client


@pytest.fixture()
def staff_user():
    return User.objects.create_user(username="backoffice", password="testpass123", is_staff=True)


@pytest.fixture()
def admin_client(staff_user):
    """APIClient authenticated as a staff member (back office)."""
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture()
def stranger_client():
    """APIClient for another shopper with their own customer profile."""
    stranger = User.objects.create_user(username="stranger", password="testpass123")
    Customer.objects.create(name="Carla Dias", email="carla@example.com", user=stranger)
    client = APIClient()
    client.force_authenticate(user=stranger)
    return client


@pytest.fixture()
def vendor_a():
    vendor_user = User.objects.create_user(username="vendor-a", password="testpass123")
    return Vendor.objects.create(
        name="Alpha Gadgets", email="alpha@vendors.example.com", user=vendor_user
    )


@pytest.fixture()
def vendor_b():
    vendor_user = User.objects.create_user(username="vendor-b", password="testpass123")
    return Vendor.objects.create(
        name="Beta Apparel", email="beta@vendors.example.com", user=vendor_user
    )


@pytest.fixture()
def customer(user):
    return Customer.objects.create(
        name="Alice Morgan", email="alice@example.com", phone="+1 555 0101", user=user
    )


@pytest.fixture()
def inactive_customer():
    return Customer.objects.create(
        name="Inactive Customer", email="inactive@example.com", is_active=False
    )


@pytest.fixture()
def make_product(vendor_a):
    """Factory for catalog products; owned by ``vendor_a`` unless told otherwise."""
    counter = {"n": 0}

    def _make(
        price="10.00",
        stock=10,
        vendor=None,
        status=ProductStatus.ACTIVE,
        name=None,
        discount="0.00",
    ) -> Product:
        counter["n"] += 1
        sku = f"SKU-{counter['n']:03d}"
        return Product.objects.create(
            vendor=vendor or vendor_a,
            sku=sku,
            name=name or f"Product {sku}",
            price=Decimal(price),
            discount=Decimal(discount),
            stock_quantity=stock,
            status=status,
            images=[{"public_id": sku.lower(), "url": f"https://img.example.com/{sku}.jpg"}],
        )

    return _make


SHIPPING_ADDRESS = {
    "name": "Alice Morgan",
    "phone": "+1 555 0101",
    "street": "742 Evergreen Terrace",
    "city": "Springfield",
    "state": "IL",
    "zip_code": "62701",
    "country": "US",
}

PAYMENT = {
    "payment_id": "pi_test_123",
    "payment_method": "stripe",
}


@pytest.fixture()
def order_payload(customer):
    """Build an order creation payload from ``(product, quantity)`` pairs."""

    def _payload(*lines, notes="", customer_id=None) -> dict:
        return {
            "customer_id": str(customer_id or customer.id),
            "items": [
                {"product_id": str(product.id), "quantity": quantity}
                for product, quantity in lines
            ],
            "shipping_address": dict(SHIPPING_ADDRESS),
            "payment": dict(PAYMENT),
            "notes": notes,
        }

    return _payload


@pytest.fixture()
def order_service():
    from modules.customers.repositories import CustomerDjangoRepository
    from modules.orders.repositories import OrderDjangoRepository
    from modules.orders.services import OrderService
    from modules.products.repositories import ProductDjangoRepository

    return OrderService(
        order_repository=OrderDjangoRepository(),
        customer_repository=CustomerDjangoRepository(),
        product_repository=ProductDjangoRepository(),
    )


@pytest.fixture()
def make_order_dto(customer):
    """Build a ``CreateOrderDTO`` from ``(product, quantity)`` pairs."""
    from modules.orders.dtos import (
        CreateOrderDTO,
        CreateOrderItemDTO,
        PaymentInfoDTO,
        ShippingAddressDTO,
    )

    def _dto(*lines, customer_id=None, idempotency_key=None, notes=""):
        return CreateOrderDTO(
            customer_id=customer_id or customer.id,
            items=[
                CreateOrderItemDTO(product_id=product.id, quantity=quantity)
                for product, quantity in lines
            ],
            shipping_address=ShippingAddressDTO(**SHIPPING_ADDRESS),
            payment=PaymentInfoDTO(**PAYMENT),
            notes=notes,
            idempotency_key=idempotency_key,
        )

    return _dto
