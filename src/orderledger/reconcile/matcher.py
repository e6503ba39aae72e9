"""Order to ledger transaction matching.

Match criteria:
- Transaction not already claimed in this run (``used_ids``)
- Date within tolerance of the order date
- Amount within tolerance, sign-aware (purchases match expenses, returns
  match credits)
- Best match is the closest date; ties keep the earliest transaction in
  input order
"""

from __future__ import annotations

from collections.abc import Sequence, Set
from dataclasses import dataclass
from datetime import date

from orderledger.reconcile.entities import LedgerTransaction, Order
from orderledger.reconcile.errors import InvalidInputError
from orderledger.reconcile.logger import MatcherLogger


@dataclass(frozen=True)
class MatcherConfig:
    """Matcher tolerances.

    Attributes:
        amount_tolerance_cents: Maximum amount difference (default: 1)
        date_tolerance_days: Maximum days between order and posting (default: 5)
    """

    amount_tolerance_cents: int = 1
    date_tolerance_days: int = 5


@dataclass
class MatchResult:
    """A ledger transaction matched to an order (or to one of its charges)."""

    transaction: LedgerTransaction
    date_diff_days: int
    amount_diff_cents: int


@dataclass
class MultiMatchResult:
    """Matches for a multi-charge order, aligned 1:1 with the charge list.

    ``len(matches)`` always equals the charge count; use ``found_count`` to
    report how many charges actually matched.
    """

    matches: list[MatchResult | None]
    amounts_cents: list[int]
    all_found: bool

    @property
    def found_count(self) -> int:
        return sum(1 for match in self.matches if match is not None)

    @property
    def transactions(self) -> list[LedgerTransaction]:
        """Matched transactions in charge order (misses omitted)."""
        return [match.transaction for match in self.matches if match is not None]


class TransactionMatcher:
    """Matches orders to ledger transactions.

    The ``used_ids`` set passed to every call is owned by the caller and
    shared by all orders of one run, so no transaction is claimed twice.
    """

    def __init__(
        self,
        config: MatcherConfig | None = None,
        matcher_logger: MatcherLogger | None = None,
    ) -> None:
        self._config = config or MatcherConfig()
        self._logger = matcher_logger or MatcherLogger()

    @property
    def config(self) -> MatcherConfig:
        return self._config

    def find_match(
        self,
        order: Order,
        transactions: Sequence[LedgerTransaction],
        used_ids: Set[str],
        *,
        amount_cents: int | None = None,
    ) -> MatchResult | None:
        """Find the best matching transaction for an order.

        Does not claim the transaction; callers add it to ``used_ids``.

        Args:
            order: Order to match
            transactions: Candidate ledger transactions
            used_ids: Transaction ids already claimed in this run
            amount_cents: Signed target amount overriding the order total,
                e.g. the bank charge when a gift card paid part of the order

        Returns:
            MatchResult or None if no transaction qualifies
        """
        target = order.total_cents if amount_cents is None else amount_cents
        return self._best_match(target, order.order_date, transactions, used_ids)

    def find_multiple_matches(
        self,
        order: Order,
        transactions: Sequence[LedgerTransaction],
        used_ids: set[str],
        charges_cents: Sequence[int],
    ) -> MultiMatchResult:
        """Find one distinct transaction per bank charge.

        Matched ids are added to ``used_ids`` only when every charge matched.

        Args:
            order: Multi-charge order
            transactions: Candidate ledger transactions
            used_ids: Transaction ids already claimed in this run
            charges_cents: Positive bank charge amounts, in posting order

        Returns:
            MultiMatchResult aligned with charges_cents

        Raises:
            InvalidInputError: No charges, or a non-positive charge
        """
        if not charges_cents:
            raise InvalidInputError(f"order {order.order_id}: no charges provided")

        matches: list[MatchResult | None] = []
        matched_this_round: set[str] = set()

        for i, charge in enumerate(charges_cents):
            if charge <= 0:
                raise InvalidInputError(
                    f"order {order.order_id}: invalid charge at index {i}: "
                    f"{charge} cents (must be positive)"
                )
            match = self._best_match(
                charge,
                order.order_date,
                transactions,
                used_ids,
                matched_this_round,
            )
            if match is not None:
                matched_this_round.add(match.transaction.transaction_id)
                self._logger.charge_matched(
                    order.order_id, i, charge, match.transaction.transaction_id
                )
            else:
                self._logger.charge_unmatched(order.order_id, i, charge)
            # Keep index alignment on misses
            matches.append(match)

        all_found = all(match is not None for match in matches)
        if all_found:
            used_ids.update(matched_this_round)

        self._logger.multi_match_complete(
            order.order_id, len(charges_cents), len(matched_this_round)
        )

        return MultiMatchResult(
            matches=matches,
            amounts_cents=list(charges_cents),
            all_found=all_found,
        )

    def _best_match(
        self,
        target_cents: int,
        order_date: date,
        transactions: Sequence[LedgerTransaction],
        *excluded: Set[str],
    ) -> MatchResult | None:
        is_return = target_cents < 0
        magnitude = abs(target_cents)

        best: MatchResult | None = None
        for txn in transactions:
            if any(txn.transaction_id in ids for ids in excluded):
                continue

            date_diff = abs((txn.posted_at - order_date).days)
            if date_diff > self._config.date_tolerance_days:
                continue

            # Returns match credits, purchases match expenses
            if is_return and txn.amount_cents < 0:
                continue
            if not is_return and txn.amount_cents > 0:
                continue

            amount_diff = abs(magnitude - abs(txn.amount_cents))
            if amount_diff > self._config.amount_tolerance_cents:
                continue

            # Strict comparison keeps the earliest candidate on ties
            if best is None or date_diff < best.date_diff_days:
                best = MatchResult(
                    transaction=txn,
                    date_diff_days=date_diff,
                    amount_diff_cents=amount_diff,
                )

        return best
