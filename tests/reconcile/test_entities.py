"""Tests for order payment capabilities."""

from __future__ import annotations

from orderledger.reconcile.entities import OrderKind
from tests.reconcile.fixtures import create_order


class TestOrderPaymentCapabilities:
    """Tests for kind, bank charges and multi-delivery derivation."""

    def test_simple_order_charges_the_total(self) -> None:
        """Without payment data the whole total is one bank charge."""
        order = create_order(total_cents=10000)

        assert order.kind is OrderKind.SIMPLE
        assert order.bank_charges() == [10000]
        assert order.is_multi_delivery is False

    def test_multi_charge_order_reports_posted_charges(self) -> None:
        """Two deliveries are two bank charges."""
        order = create_order(total_cents=10327, final_charges_cents=[5255, 5072])

        assert order.kind is OrderKind.MULTI_CHARGE
        assert order.bank_charges() == [5255, 5072]
        assert order.is_multi_delivery is True

    def test_gift_card_order_without_posted_charges(self) -> None:
        """The bank pays the total minus the gift card portion."""
        order = create_order(total_cents=10726, non_bank_amount_cents=726)

        assert order.kind is OrderKind.GIFT_CARD_CAPABLE
        assert order.bank_charges() == [10000]
        assert order.is_multi_delivery is False

    def test_pending_payment_has_no_charges(self) -> None:
        """An empty charge list means nothing has posted yet."""
        order = create_order(final_charges_cents=[])

        assert order.bank_charges() == []
        assert order.is_multi_delivery is False
