"""Unit tests for the Product model.

Covers:
- Valid creation with vendor ownership.
- SKU uppercase normalisation and uniqueness.
- Price, discount and stock validation (application + DB constraints).
- Availability: status and archival.
- Primary image extraction.
- Soft delete lifecycle.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import ProtectedError

from modules.products.models import Product, ProductStatus

pytestmark = pytest.mark.unit


def _build(vendor, **overrides) -> Product:
    defaults = {
        "vendor": vendor,
        "sku": f"TST-{uuid.uuid4().hex[:6].upper()}",
        "name": "Test Product",
        "price": Decimal("29.90"),
        "stock_quantity": 100,
    }
    defaults.update(overrides)
    return Product(**defaults)


class TestProductCreation:
    def test_create_product_with_valid_data(self, vendor_a):
        product = _build(vendor_a)
        product.full_clean()
        product.save()
        product.refresh_from_db()
        assert product.vendor_id == vendor_a.id
        assert product.status == ProductStatus.ACTIVE
        assert product.discount == Decimal("0.00")
        assert product.images == []

    def test_id_is_uuid7(self, make_product):
        assert make_product().id.version == 7

    def test_vendor_protect_prevents_delete(self, make_product, vendor_a):
        make_product()
        with pytest.raises(ProtectedError):
            vendor_a.hard_delete()


class TestSku:
    def test_sku_uppercased_and_stripped_on_save(self, vendor_a):
        product = _build(vendor_a, sku="  abc-123 ")
        product.save()
        assert product.sku == "ABC-123"

    def test_duplicate_sku_raises(self, vendor_a, vendor_b):
        _build(vendor_a, sku="DUP-1").save()
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                _build(vendor_b, sku="dup-1").save()


class TestValidation:
    @pytest.mark.parametrize("price", [Decimal("0"), Decimal("-1.00")])
    def test_non_positive_price_fails_clean(self, vendor_a, price):
        with pytest.raises(ValidationError):
            _build(vendor_a, price=price).full_clean()

    def test_zero_price_rejected_by_database(self, vendor_a):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                _build(vendor_a, price=Decimal("0")).save()

    def test_discount_above_hundred_fails_clean(self, vendor_a):
        with pytest.raises(ValidationError):
            _build(vendor_a, discount=Decimal("120")).full_clean()

    def test_negative_stock_fails_clean(self, vendor_a):
        with pytest.raises(ValidationError):
            _build(vendor_a, stock_quantity=-1).full_clean()

    def test_zero_stock_is_valid(self, vendor_a):
        _build(vendor_a, stock_quantity=0).full_clean()


class TestAvailability:
    def test_active_product_is_active(self, make_product):
        assert make_product().is_active is True

    def test_inactive_status(self, make_product):
        assert make_product(status=ProductStatus.INACTIVE).is_active is False

    def test_archived_product_is_not_active(self, make_product):
        product = make_product()
        product.delete()
        assert product.is_active is False
        assert not Product.objects.alive().filter(pk=product.pk).exists()
        assert Product.objects.filter(pk=product.pk).exists()


class TestPrimaryImage:
    def test_first_image_url(self, make_product):
        product = make_product()
        assert product.primary_image_url == product.images[0]["url"]

    def test_no_images(self, vendor_a):
        assert _build(vendor_a).primary_image_url == ""

    def test_malformed_image_entry(self, vendor_a):
        assert _build(vendor_a, images=["not-a-dict"]).primary_image_url == ""


class TestDisplay:
    def test_str_representation(self, vendor_a):
        product = _build(vendor_a, sku="WEAR-001", name="Organic Cotton T-Shirt")
        assert str(product) == "WEAR-001 - Organic Cotton T-Shirt"
