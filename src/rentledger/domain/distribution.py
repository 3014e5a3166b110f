"""Split a batch amount (e.g. one cleaning invoice) across properties."""

import logging
from datetime import date, timedelta
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Optional, Sequence

from rentledger.database.base import Database
from rentledger.domain.entities import (
    CENT,
    CommitResult,
    DistributionLine,
    DistributionMode,
    DistributionPlan,
    NormalizedTransaction,
    ReconciliationScope,
    Selection,
    TransactionKind,
)
from rentledger.domain.errors import InvalidDistribution, NotFoundError, property_not_found
from rentledger.domain.reconciliation import ReconciliationCommitter
from rentledger.parsing import SOURCE_TAGS

logger = logging.getLogger(__name__)

ONE = Decimal("1")
ZERO = Decimal("0")

# Revenue window used to weight a revenue-proportional split
REVENUE_WINDOW_DAYS = 30


def _validate(total_amount: Decimal, selections: Sequence[Selection]) -> None:
    if not selections:
        raise InvalidDistribution("At least one property must be selected")
    seen = set()
    for selection in selections:
        if selection.property_id in seen:
            raise InvalidDistribution(
                f"Property {selection.property_id} is selected more than once"
            )
        seen.add(selection.property_id)
        for field_name in ("quantity", "unit_value", "weight"):
            value = getattr(selection, field_name)
            if value is not None and value < 0:
                raise InvalidDistribution(
                    f"Negative {field_name.replace('_', ' ')} for property {selection.property_id}"
                )
    if total_amount < 0:
        raise InvalidDistribution("Amount to distribute cannot be negative")


def _with_remainder(total_amount: Decimal, shares: list[Decimal], selections) -> tuple[DistributionLine, ...]:
    """Build lines from rounded-down shares; the last line takes the remainder."""
    lines = []
    allocated = ZERO
    for index, selection in enumerate(selections):
        if index == len(selections) - 1:
            amount = total_amount - allocated
        else:
            amount = shares[index]
            allocated += amount
        lines.append(DistributionLine(selection.property_id, ONE, amount, amount))
    return tuple(lines)


class DistributionPlanner:
    """Pure distribution arithmetic. All amounts are in cents."""

    def plan(
        self,
        total_amount: Decimal,
        selections: Sequence[Selection],
        mode: DistributionMode = DistributionMode.EQUAL,
    ) -> DistributionPlan:
        """Split ``total_amount`` across ``selections``.

        Args:
            total_amount: Amount to distribute
            selections: Selected properties, in the order lines are produced
            mode: equal, weighted (quantity x unit value) or proportional (by weight)

        Returns:
            DistributionPlan whose line amounts sum exactly to ``total_amount``,
            except in weighted mode where a mismatch is reported in ``warnings``

        Raises:
            InvalidDistribution: On empty, duplicate or contradictory input
        """
        mode = DistributionMode(mode)
        total_amount = Decimal(total_amount).quantize(CENT, rounding=ROUND_HALF_UP)
        selections = tuple(selections)
        _validate(total_amount, selections)

        if mode == DistributionMode.WEIGHTED:
            return self._weighted(total_amount, selections)
        if total_amount == 0:
            raise InvalidDistribution("Amount to distribute must be positive")
        if mode == DistributionMode.PROPORTIONAL:
            return self._proportional(total_amount, selections)
        return self._equal(total_amount, selections)

    def _equal(self, total_amount, selections) -> DistributionPlan:
        share = (total_amount / len(selections)).quantize(CENT, rounding=ROUND_DOWN)
        lines = _with_remainder(total_amount, [share] * len(selections), selections)
        return DistributionPlan(total_amount, total_amount, DistributionMode.EQUAL, lines)

    def _proportional(self, total_amount, selections) -> DistributionPlan:
        weights = [selection.weight if selection.weight is not None else ZERO for selection in selections]
        weight_sum = sum(weights, ZERO)
        if weight_sum == 0:
            logger.debug("All weights are zero, falling back to an equal split")
            plan = self._equal(total_amount, selections)
            return DistributionPlan(
                plan.total_amount,
                plan.requested_amount,
                DistributionMode.PROPORTIONAL,
                plan.lines,
                ("No weights available; split equally",),
            )
        shares = [
            (total_amount * weight / weight_sum).quantize(CENT, rounding=ROUND_DOWN)
            for weight in weights
        ]
        lines = _with_remainder(total_amount, shares, selections)
        return DistributionPlan(total_amount, total_amount, DistributionMode.PROPORTIONAL, lines)

    def _weighted(self, requested_amount, selections) -> DistributionPlan:
        lines = []
        for selection in selections:
            if selection.quantity is None or selection.unit_value is None:
                raise InvalidDistribution(
                    f"Weighted split needs quantity and unit value for property {selection.property_id}"
                )
            amount = (selection.quantity * selection.unit_value).quantize(CENT, rounding=ROUND_HALF_UP)
            lines.append(
                DistributionLine(selection.property_id, selection.quantity, selection.unit_value, amount)
            )
        allocated = sum((line.line_amount for line in lines), ZERO)
        if allocated == 0:
            raise InvalidDistribution("Weighted split allocates nothing")

        warnings = ()
        if allocated != requested_amount:
            warnings = (
                f"Allocated {allocated} but {requested_amount} was requested "
                f"(difference {requested_amount - allocated})",
            )
        return DistributionPlan(allocated, requested_amount, DistributionMode.WEIGHTED, tuple(lines), warnings)


class DistributionService:
    """Plans backed by ledger data, and committing plans as expenses."""

    def __init__(self, db: Database, committer: Optional[ReconciliationCommitter] = None):
        self.db = db
        self.planner = DistributionPlanner()
        self.committer = committer or ReconciliationCommitter(db)

    def plan(self, total_amount, selections, mode=DistributionMode.EQUAL) -> DistributionPlan:
        selections = tuple(selections)
        for selection in selections:
            if self.db.get_property(selection.property_id) is None:
                raise NotFoundError(property_not_found(selection.property_id))
        return self.planner.plan(total_amount, selections, mode)

    def plan_by_revenue(
        self, total_amount: Decimal, property_ids: Sequence[int], payment_date: date
    ) -> DistributionPlan:
        """Split proportionally to each property's revenue in the 30 days before payment.

        Falls back to an equal split when none of the properties had revenue.
        """
        end = payment_date - timedelta(days=1)
        start = payment_date - timedelta(days=REVENUE_WINDOW_DAYS)
        revenue = self.db.sum_revenue_by_property(list(property_ids), start, end)
        selections = [
            Selection(property_id=pid, weight=revenue.get(pid, ZERO)) for pid in property_ids
        ]
        return self.plan(total_amount, selections, DistributionMode.PROPORTIONAL)

    def commit_plan(
        self,
        plan: DistributionPlan,
        payment_date: date,
        category: str,
        source_tag: str,
        description: Optional[str] = None,
        accept_mismatch: bool = False,
        timeout: Optional[float] = None,
    ) -> CommitResult:
        """Record a plan as one expense per line.

        The batch replaces whatever ``source_tag`` recorded for the plan's
        properties on ``payment_date``, so committing it again is harmless.

        Raises:
            InvalidDistribution: If the plan doesn't add up and the mismatch
                wasn't explicitly accepted, or ``source_tag`` belongs to an
                import source
        """
        if not plan.is_balanced and not accept_mismatch:
            raise InvalidDistribution(
                f"Plan allocates {plan.total_amount} but {plan.requested_amount} was requested"
            )
        if not source_tag or not source_tag.strip():
            raise InvalidDistribution("A source tag is required to commit a distribution")
        if source_tag in SOURCE_TAGS:
            raise InvalidDistribution(
                f"'{source_tag}' is an import source; use a tag of its own for distributions"
            )

        transactions = [
            NormalizedTransaction(
                property_id=line.property_id,
                date=payment_date,
                amount=line.line_amount,
                category=category,
                kind=TransactionKind.EXPENSE,
                source_tag=source_tag,
                description=description,
            )
            for line in plan.lines
            if line.line_amount != 0
        ]
        scope = ReconciliationScope(
            source_tag=source_tag,
            start_date=payment_date,
            end_date=payment_date,
            property_ids=frozenset(line.property_id for line in plan.lines),
        )
        return self.committer.commit(transactions, scope, timeout=timeout)
