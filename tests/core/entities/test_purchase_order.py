"""Tests for purchase order entity and lifecycle."""

from datetime import timedelta

import pytest

from venue_inventory.core.entities.purchase_order import (
    DeliveryStatus,
    PaymentMethod,
    PaymentTerms,
    PurchaseOrderStatus,
)
from venue_inventory.core.exceptions import (
    InvalidStateError,
    InvalidTransitionError,
    PurchaseOrderItemNotFoundError,
    ValidationFailedError,
)


def advance(order, to: PurchaseOrderStatus):
    """Walk a draft order forward to `to`."""
    steps = [
        (PurchaseOrderStatus.PENDING, lambda: order.submit("alice")),
        (PurchaseOrderStatus.APPROVED, lambda: order.approve("bob")),
        (PurchaseOrderStatus.ORDERED, lambda: order.order("carol")),
        (PurchaseOrderStatus.RECEIVED, lambda: order.receive("dave")),
    ]
    for status, step in steps:
        if order.status is to:
            break
        step()
    return order


class TestTotals:
    def test_totals_derived_on_create(self, make_order):
        order = make_order(("balloon", 2, 100))

        assert order.items[0].total_price == 200
        assert order.subtotal == 200
        assert order.tax == 32
        assert order.total == 232
        assert order.status is PurchaseOrderStatus.DRAFT

    def test_adding_item_recomputes_totals(self, make_order):
        order = make_order(("balloon", 2, 100))
        order.add_item(
            {"product_id": "table", "product_name": "Table", "quantity": 1, "unit": "pcs",
             "unit_price": 50},
            actor="alice",
        )

        assert order.subtotal == 250
        assert order.tax == 40
        assert order.total == 290
        assert order.updated_by == "alice"

    def test_money_rounded_to_cents(self, make_order):
        order = make_order(("napkin", 3, 0.333))
        assert order.items[0].total_price == 1.0
        assert order.tax == 0.16

    def test_create_rejects_empty_items(self, make_order):
        with pytest.raises(ValidationFailedError) as exc_info:
            make_order()
        assert exc_info.value.field == "items"

    def test_create_rejects_duplicate_products(self, make_order):
        with pytest.raises(ValidationFailedError) as exc_info:
            make_order(("balloon", 1, 1), ("balloon", 2, 1))
        assert exc_info.value.field == "items[1].product_id"

    def test_create_rejects_bad_item(self, make_order):
        with pytest.raises(ValidationFailedError):
            make_order(("balloon", 1, 1), supplier_name="")

    def test_validate_detects_drifted_total(self, make_order):
        order = make_order(("balloon", 2, 100))
        order.total = 240
        with pytest.raises(ValidationFailedError) as exc_info:
            order.validate()
        assert exc_info.value.field == "total"

    def test_validate_tolerates_sub_cent_drift(self, make_order):
        order = make_order(("balloon", 2, 100))
        order.total = 232.004
        order.validate()

    def test_credit_terms_set_due_date(self, make_order, t0):
        order = make_order(
            ("balloon", 1, 10),
            payment_terms=PaymentTerms(method=PaymentMethod.CREDIT, credit_days=30),
            created_at=t0,
        )
        assert order.payment_terms.due_date == t0 + timedelta(days=30)


class TestItems:
    def test_update_item(self, make_order):
        order = make_order(("balloon", 2, 100))
        item = order.update_item("balloon", {"quantity": 3}, actor="bob")

        assert item.total_price == 300
        assert order.total == 348

    def test_update_item_ignores_supplied_total(self, make_order):
        order = make_order(("balloon", 2, 100))
        order.update_item("balloon", {"total_price": 1})
        assert order.items[0].total_price == 200

    def test_update_missing_item(self, make_order):
        order = make_order(("balloon", 2, 100))
        with pytest.raises(PurchaseOrderItemNotFoundError):
            order.update_item("table", {"quantity": 1})

    def test_add_duplicate_item(self, make_order):
        order = make_order(("balloon", 2, 100))
        with pytest.raises(ValidationFailedError):
            order.add_item(order.items[0].model_dump())

    def test_remove_last_item_rejected(self, make_order):
        order = make_order(("balloon", 2, 100))
        before = order.model_dump()
        with pytest.raises(ValidationFailedError):
            order.remove_item("balloon")
        assert order.model_dump() == before

    def test_remove_item(self, make_order):
        order = make_order(("balloon", 2, 100), ("table", 1, 50))
        order.remove_item("balloon")
        assert [i.product_id for i in order.items] == ["table"]
        assert order.total == 58

    def test_items_frozen_after_approval(self, make_order):
        order = advance(make_order(("balloon", 2, 100)), PurchaseOrderStatus.APPROVED)
        with pytest.raises(InvalidStateError):
            order.update_item("balloon", {"quantity": 5})
        with pytest.raises(InvalidStateError):
            order.remove_item("balloon")

    def test_items_editable_while_pending(self, make_order):
        order = advance(make_order(("balloon", 2, 100)), PurchaseOrderStatus.PENDING)
        order.update_item("balloon", {"unit_price": 50})
        assert order.total == 116


class TestLifecycle:
    def test_happy_path(self, make_order, t0):
        order = make_order(("balloon", 2, 100))
        order.submit("alice", at=t0)
        order.approve("bob", at=t0)
        order.order("carol", at=t0)
        order.receive("dave", at=t0)

        assert order.status is PurchaseOrderStatus.RECEIVED
        assert order.approved_by == "bob"
        assert order.ordered_by == "carol"
        assert order.received_by == "dave"
        assert order.actual_delivery_date == t0
        assert order.updated_by == "dave"

    def test_cannot_skip_approval(self, make_order):
        order = make_order(("balloon", 2, 100))
        with pytest.raises(InvalidTransitionError) as exc_info:
            order.order("carol")
        assert exc_info.value.details["status"] == "draft"
        assert order.status is PurchaseOrderStatus.DRAFT

    def test_approve_requires_pending(self, make_order):
        order = make_order(("balloon", 2, 100))
        with pytest.raises(InvalidTransitionError):
            order.approve("bob")

    def test_transition_requires_actor(self, make_order):
        order = make_order(("balloon", 2, 100))
        order.submit("alice")
        with pytest.raises(InvalidTransitionError):
            order.approve("  ")
        assert order.status is PurchaseOrderStatus.PENDING
        assert order.approved_by is None

    def test_cancel_requires_reason(self, make_order):
        order = make_order(("balloon", 2, 100))
        with pytest.raises(InvalidTransitionError):
            order.cancel("alice", "")
        assert order.status is PurchaseOrderStatus.DRAFT

    def test_cancel_reason_length_limit(self, make_order):
        order = make_order(("balloon", 2, 100))
        with pytest.raises(ValidationFailedError) as exc_info:
            order.cancel("erin", "x" * 501)
        assert exc_info.value.field == "cancellation_reason"
        assert order.status is PurchaseOrderStatus.DRAFT
        assert order.cancellation_reason is None

        order.cancel("erin", "  " + "x" * 500 + "  ")
        assert order.cancellation_reason == "x" * 500

    @pytest.mark.parametrize(
        "status",
        [
            PurchaseOrderStatus.DRAFT,
            PurchaseOrderStatus.PENDING,
            PurchaseOrderStatus.APPROVED,
            PurchaseOrderStatus.ORDERED,
        ],
    )
    def test_cancel_from_non_terminal(self, make_order, status):
        order = advance(make_order(("balloon", 2, 100)), status)
        order.cancel("erin", "venue closed")

        assert order.status is PurchaseOrderStatus.CANCELLED
        assert order.cancelled_by == "erin"
        assert order.cancellation_reason == "venue closed"

    def test_terminal_states_reject_transitions(self, make_order):
        received = advance(make_order(("balloon", 2, 100)), PurchaseOrderStatus.RECEIVED)
        with pytest.raises(InvalidTransitionError):
            received.cancel("erin", "too late")

        cancelled = make_order(("balloon", 2, 100))
        cancelled.cancel("erin", "not needed")
        with pytest.raises(InvalidTransitionError):
            cancelled.submit("alice")

    def test_predicates(self, make_order):
        order = make_order(("balloon", 2, 100))
        assert order.can_be_submitted()
        assert order.can_be_deleted()
        assert not order.can_be_approved()

        order.submit("alice")
        assert order.can_be_approved()
        assert order.can_be_modified()
        assert not order.can_be_deleted()


class TestDelivery:
    def test_delivery_status(self, make_order, t0):
        order = make_order(("balloon", 1, 1), expected_delivery_date=t0 + timedelta(days=2))

        assert order.days_until_delivery(t0) == 2
        assert order.delivery_status(t0) is DeliveryStatus.SOON
        assert order.delivery_status(t0 - timedelta(days=10)) is DeliveryStatus.SCHEDULED
        assert order.delivery_status(t0 + timedelta(days=3)) is DeliveryStatus.OVERDUE
        assert order.is_overdue(t0 + timedelta(days=3))

    def test_unknown_without_expected_date(self, make_order):
        order = make_order(("balloon", 1, 1))
        assert order.days_until_delivery() is None
        assert order.delivery_status() is DeliveryStatus.UNKNOWN

    def test_received_orders_are_delivered(self, make_order, t0):
        order = make_order(("balloon", 1, 1), expected_delivery_date=t0 - timedelta(days=5))
        advance(order, PurchaseOrderStatus.RECEIVED)
        assert not order.is_overdue(t0)
        assert order.delivery_status(t0) is DeliveryStatus.DELIVERED
