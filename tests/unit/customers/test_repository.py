"""Unit tests for CustomerDjangoRepository."""

from __future__ import annotations

import uuid

import pytest
from django.contrib.auth.models import AnonymousUser

from modules.customers.models import Customer
from modules.customers.repositories import CustomerDjangoRepository, ICustomerRepository

pytestmark = pytest.mark.unit


def _make_customer(**overrides) -> Customer:
    defaults = {
        "name": "Maria Silva",
        "email": f"{uuid.uuid4().hex[:8]}@example.com",
    }
    defaults.update(overrides)
    return Customer.objects.create(**defaults)


@pytest.fixture()
def repo() -> CustomerDjangoRepository:
    return CustomerDjangoRepository()


def test_implements_interface(repo):
    assert isinstance(repo, ICustomerRepository)


class TestGetById:
    def test_returns_customer_when_found(self, repo):
        customer = _make_customer()
        assert repo.get_by_id(str(customer.id)) == customer

    def test_returns_none_when_not_found(self, repo):
        assert repo.get_by_id(str(uuid.uuid4())) is None

    def test_returns_none_for_invalid_uuid(self, repo):
        assert repo.get_by_id("not-a-uuid") is None

    def test_soft_deleted_customer_is_hidden(self, repo):
        customer = _make_customer()
        customer.delete()

        assert repo.get_by_id(str(customer.id)) is None

    def test_inactive_customer_is_still_returned(self, repo):
        customer = _make_customer(is_active=False)

        found = repo.get_by_id(str(customer.id))

        assert found is not None
        assert found.is_active is False


class TestGetByEmail:
    def test_lookup_is_case_insensitive(self, repo):
        customer = _make_customer(email="Alice@Example.com")

        assert customer.email == "alice@example.com"
        assert repo.get_by_email("  ALICE@example.COM ") == customer

    def test_returns_none_when_not_found(self, repo):
        assert repo.get_by_email("nobody@example.com") is None


class TestGetByUser:
    def test_returns_linked_profile(self, repo, django_user_model):
        user = django_user_model.objects.create_user(username="maria", password="x")
        customer = _make_customer(user=user)

        assert repo.get_by_user(user) == customer

    def test_user_without_profile(self, repo, django_user_model):
        user = django_user_model.objects.create_user(username="nobody", password="x")
        assert repo.get_by_user(user) is None

    def test_anonymous_user(self, repo):
        assert repo.get_by_user(AnonymousUser()) is None
        assert repo.get_by_user(None) is None

    def test_archived_profile_is_hidden(self, repo, django_user_model):
        user = django_user_model.objects.create_user(username="gone", password="x")
        _make_customer(user=user).delete()

        assert repo.get_by_user(user) is None


class TestSave:
    def test_persists_changes(self, repo):
        customer = _make_customer()
        customer.name = "Maria Souza"

        result = repo.save(customer)

        assert result is customer
        assert Customer.objects.get(id=customer.id).name == "Maria Souza"
