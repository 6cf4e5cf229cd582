"""Unit tests for the Order status state machine.

Covers:
- Model-level helpers (can_transition_to, is_terminal, apply_status).
- All valid transitions (happy path) and their timestamps.
- Invalid transitions (skip states, reverse, terminal states).
- History recording on every transition.
- Domain events queued for the outbox on every transition.
"""

from __future__ import annotations

from uuid import uuid4

import pytest

from modules.core.exceptions import ConflictError
from modules.core.models import OutboxEvent
from modules.orders.constants import (
    CANCELLABLE_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    OrderStatus,
)
from modules.orders.dtos import UpdateStatusDTO
from modules.orders.exceptions import InvalidTransition, OrderNotCancellable, OrderNotFound
from modules.orders.models import OrderStatusHistory

pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def product(make_product):
    return make_product(price="10.00", stock=100)


@pytest.fixture()
def pending_order(order_service, make_order_dto, product):
    """An order in PENDING status."""
    return order_service.create_order(make_order_dto((product, 1)))


def _move(service, order_id, *statuses, notes=""):
    order = None
    for status in statuses:
        order = service.update_status(order_id, UpdateStatusDTO(status=status, notes=notes))
    return order


# ===========================================================================
# Model-level helpers
# ===========================================================================


class TestCanTransitionTo:
    def test_pending_to_processing(self, pending_order):
        assert pending_order.can_transition_to(OrderStatus.PROCESSING) is True

    def test_pending_to_cancelled(self, pending_order):
        assert pending_order.can_transition_to(OrderStatus.CANCELLED) is True

    def test_pending_to_shipped_rejected(self, pending_order):
        assert pending_order.can_transition_to(OrderStatus.SHIPPED) is False

    def test_pending_to_returned_rejected(self, pending_order):
        assert pending_order.can_transition_to(OrderStatus.RETURNED) is False


class TestIsTerminal:
    def test_pending_is_not_terminal(self, pending_order):
        assert pending_order.is_terminal is False

    def test_delivered_is_not_terminal(self, order_service, pending_order):
        order = _move(
            order_service,
            pending_order.id,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        )
        assert order.is_terminal is False

    def test_cancelled_is_terminal(self, order_service, pending_order):
        order = order_service.cancel_order(pending_order.id)
        assert order.is_terminal is True

    def test_terminal_states_constant(self):
        assert TERMINAL_STATES == {OrderStatus.CANCELLED, OrderStatus.RETURNED}
        assert CANCELLABLE_STATES == {OrderStatus.PENDING, OrderStatus.PROCESSING}


# ===========================================================================
# Valid Transitions (Happy Path)
# ===========================================================================


class TestValidTransitions:
    def test_pending_to_processing(self, order_service, pending_order):
        order = _move(order_service, pending_order.id, OrderStatus.PROCESSING)
        assert order.status == OrderStatus.PROCESSING

    def test_processing_to_shipped(self, order_service, pending_order):
        order = _move(order_service, pending_order.id, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
        assert order.status == OrderStatus.SHIPPED

    def test_shipped_to_delivered_stamps_delivered_at(self, order_service, pending_order):
        order = _move(
            order_service,
            pending_order.id,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        )
        assert order.status == OrderStatus.DELIVERED
        assert order.delivered_at is not None

    def test_shipped_to_returned(self, order_service, pending_order):
        order = _move(
            order_service,
            pending_order.id,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.RETURNED,
        )
        assert order.status == OrderStatus.RETURNED
        assert order.return_requested_at is not None

    def test_delivered_to_returned_records_reason(self, order_service, pending_order):
        _move(
            order_service,
            pending_order.id,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
        )
        order = order_service.update_status(
            pending_order.id,
            UpdateStatusDTO(status=OrderStatus.RETURNED, return_reason="Wrong size"),
        )
        assert order.status == OrderStatus.RETURNED
        assert order.return_reason == "Wrong size"

    def test_status_update_to_cancelled_releases_stock(self, order_service, pending_order, product):
        order = _move(order_service, pending_order.id, OrderStatus.CANCELLED)

        product.refresh_from_db()
        assert order.status == OrderStatus.CANCELLED
        assert order.cancelled_at is not None
        assert product.stock_quantity == 100


# ===========================================================================
# Invalid Transitions
# ===========================================================================


class TestInvalidTransitions:
    def test_pending_to_shipped_rejected(self, order_service, pending_order):
        with pytest.raises(InvalidTransition, match="Cannot transition"):
            _move(order_service, pending_order.id, OrderStatus.SHIPPED)

    def test_pending_to_delivered_rejected(self, order_service, pending_order):
        with pytest.raises(InvalidTransition):
            _move(order_service, pending_order.id, OrderStatus.DELIVERED)

    def test_shipped_to_processing_rejected(self, order_service, pending_order):
        """Reverse transition forbidden."""
        _move(order_service, pending_order.id, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
        with pytest.raises(InvalidTransition):
            _move(order_service, pending_order.id, OrderStatus.PROCESSING)

    def test_invalid_transition_is_a_conflict(self, order_service, pending_order):
        with pytest.raises(ConflictError):
            _move(order_service, pending_order.id, OrderStatus.DELIVERED)

    def test_rejected_transition_leaves_order_untouched(self, order_service, pending_order):
        with pytest.raises(InvalidTransition):
            _move(order_service, pending_order.id, OrderStatus.DELIVERED)

        pending_order.refresh_from_db()
        assert pending_order.status == OrderStatus.PENDING
        assert pending_order.delivered_at is None

    def test_update_nonexistent_order_raises(self, order_service):
        with pytest.raises(OrderNotFound):
            _move(order_service, uuid4(), OrderStatus.PROCESSING)


class TestTerminalStateImmutability:
    def test_cancelled_to_any_rejected(self, order_service, pending_order):
        order_service.cancel_order(pending_order.id)

        for target in OrderStatus:
            with pytest.raises(ConflictError):
                _move(order_service, pending_order.id, target)

    def test_returned_to_any_rejected(self, order_service, pending_order):
        _move(
            order_service,
            pending_order.id,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.RETURNED,
        )
        for target in OrderStatus:
            with pytest.raises(ConflictError):
                _move(order_service, pending_order.id, target)

    def test_cancel_shipped_rejected(self, order_service, pending_order):
        _move(order_service, pending_order.id, OrderStatus.PROCESSING, OrderStatus.SHIPPED)
        with pytest.raises(OrderNotCancellable, match="Cannot cancel"):
            order_service.cancel_order(pending_order.id)


# ===========================================================================
# History Recording
# ===========================================================================


class TestStatusHistory:
    def test_creation_records_initial_history(self, pending_order):
        history = list(pending_order.status_history.all())
        assert len(history) == 1
        assert history[0].old_status is None
        assert history[0].new_status == OrderStatus.PENDING
        assert history[0].notes == "Order created"

    def test_transition_records_old_and_new_status(self, order_service, pending_order):
        _move(order_service, pending_order.id, OrderStatus.PROCESSING, notes="Packed")

        last = OrderStatusHistory.objects.filter(order=pending_order).order_by("created_at").last()
        assert last.old_status == OrderStatus.PENDING
        assert last.new_status == OrderStatus.PROCESSING
        assert last.notes == "Packed"

    def test_full_lifecycle_produces_correct_history_count(self, order_service, pending_order):
        _move(
            order_service,
            pending_order.id,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.RETURNED,
        )
        # 1 (creation) + 4 transitions
        assert OrderStatusHistory.objects.filter(order=pending_order).count() == 5

    def test_acting_user_is_recorded(self, order_service, pending_order, user):
        order_service.update_status(
            pending_order.id, UpdateStatusDTO(status=OrderStatus.PROCESSING), user=user
        )
        last = OrderStatusHistory.objects.filter(order=pending_order).order_by("created_at").last()
        assert last.user == user


# ===========================================================================
# Transition map
# ===========================================================================


class TestTransitionsMapCompleteness:
    def test_all_statuses_have_transition_entry(self):
        for status in OrderStatus:
            assert status in VALID_TRANSITIONS, f"{status} missing from VALID_TRANSITIONS"

    def test_terminal_states_have_empty_transitions(self):
        for state in TERMINAL_STATES:
            assert VALID_TRANSITIONS[state] == set()

    def test_no_self_transitions(self):
        for state, targets in VALID_TRANSITIONS.items():
            assert state not in targets, f"Self-transition not allowed for {state}"


# ===========================================================================
# Domain events
# ===========================================================================


class TestDomainEvents:
    def test_status_change_writes_outbox_row(self, order_service, pending_order):
        _move(order_service, pending_order.id, OrderStatus.PROCESSING)

        event = OutboxEvent.objects.get(
            aggregate_id=str(pending_order.id), event_type="OrderStatusChanged"
        )
        assert event.payload["old_status"] == OrderStatus.PENDING
        assert event.payload["new_status"] == OrderStatus.PROCESSING

    def test_cancel_writes_outbox_row(self, order_service, pending_order):
        order_service.cancel_order(pending_order.id)

        assert OutboxEvent.objects.filter(
            aggregate_id=str(pending_order.id), event_type="OrderCancelled"
        ).exists()
