"""Bank charge validation run before any order is matched.

An order is only reconciled once its bank charges account for the amount
the retailer says it charged; otherwise a charge is still pending or
something was charged twice.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from orderledger.reconcile.money import format_dollars

# Wider than the matcher tolerance: points and gift card math are rounded
# independently by the retailer.
CHARGE_TOLERANCE_CENTS = 2


class ChargeFailure(Enum):
    """Why bank charges do not reconcile with the order."""

    MISSING_CHARGE = "missing_charge"
    EXCESS_CHARGE = "excess_charge"


@dataclass(frozen=True)
class ChargeValidation:
    """Result of validating an order's bank charges."""

    valid: bool
    bank_charges_sum_cents: int
    expected_sum_cents: int
    difference_cents: int  # bank sum - expected, signed
    reason: str = ""
    failure: ChargeFailure | None = None

    @property
    def retryable(self) -> bool:
        """A missing charge will usually post later; an excess one will not."""
        return self.failure is ChargeFailure.MISSING_CHARGE


def validate_charges(
    bank_charges_cents: Sequence[int],
    order_total_cents: int,
    non_bank_amount_cents: int = 0,
) -> ChargeValidation:
    """Check that bank charges sum to the order total minus non-bank payments.

    Args:
        bank_charges_cents: Actual card charges for the order
        order_total_cents: Grand total of the order
        non_bank_amount_cents: Points, gift cards and rewards applied

    Returns:
        ChargeValidation; invalid results carry a reason and a failure kind
    """
    bank_sum = sum(bank_charges_cents)
    expected = order_total_cents - non_bank_amount_cents
    diff = bank_sum - expected

    if abs(diff) <= CHARGE_TOLERANCE_CENTS:
        return ChargeValidation(
            valid=True,
            bank_charges_sum_cents=bank_sum,
            expected_sum_cents=expected,
            difference_cents=diff,
        )

    if diff < 0:
        failure = ChargeFailure.MISSING_CHARGE
        reason = (
            f"bank charges ({format_dollars(bank_sum)}) are less than expected "
            f"({format_dollars(expected)}) - missing {format_dollars(-diff)}, "
            "likely a charge hasn't posted yet"
        )
    else:
        failure = ChargeFailure.EXCESS_CHARGE
        reason = (
            f"bank charges ({format_dollars(bank_sum)}) exceed expected "
            f"({format_dollars(expected)}) by {format_dollars(diff)} - "
            "possible duplicate or extra charge"
        )

    return ChargeValidation(
        valid=False,
        bank_charges_sum_cents=bank_sum,
        expected_sum_cents=expected,
        difference_cents=diff,
        reason=reason,
        failure=failure,
    )


def validate_charges_simple(
    bank_charges_cents: Sequence[int], order_total_cents: int
) -> ChargeValidation:
    """Validate charges for orders without non-bank payments."""
    return validate_charges(bank_charges_cents, order_total_cents, 0)
