"""Tests for batch distribution planning and commits."""

import pytest
from datetime import date
from decimal import Decimal

from rentledger.domain.distribution import DistributionPlanner
from rentledger.domain.entities import DistributionMode, Selection, TransactionKind
from rentledger.domain.errors import InvalidDistribution, NotFoundError
from rentledger.parsing import AIRBNB_PAYOUT, SOURCE_TAGS


def amounts(plan):
    return [line.line_amount for line in plan.lines]


@pytest.fixture
def planner():
    return DistributionPlanner()


def test_equal_split(planner):
    """Test an evenly divisible equal split."""
    plan = planner.plan(Decimal("1500.00"), [Selection(1), Selection(2), Selection(3)])
    assert amounts(plan) == [Decimal("500.00")] * 3
    assert plan.total_amount == Decimal("1500.00")
    assert plan.is_balanced


def test_equal_split_remainder_goes_to_last_line(planner):
    """Test that cents left over by rounding land on the last line."""
    plan = planner.plan(Decimal("1000.00"), [Selection(1), Selection(2), Selection(3)])
    assert amounts(plan) == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]
    assert sum(amounts(plan)) == Decimal("1000.00")


@pytest.mark.parametrize("total", ["0.01", "0.05", "10.00", "99.99", "1234.57"])
@pytest.mark.parametrize("count", [1, 2, 3, 7])
def test_equal_split_always_balances(planner, total, count):
    plan = planner.plan(Decimal(total), [Selection(i) for i in range(1, count + 1)])
    assert sum(amounts(plan)) == Decimal(total)
    assert all(amount >= 0 for amount in amounts(plan))


def test_proportional_split(planner):
    """Test a split by weights."""
    selections = [Selection(1, weight=Decimal("3")), Selection(2, weight=Decimal("1"))]
    plan = planner.plan(Decimal("100.00"), selections, DistributionMode.PROPORTIONAL)
    assert amounts(plan) == [Decimal("75.00"), Decimal("25.00")]
    assert plan.mode == DistributionMode.PROPORTIONAL


def test_proportional_split_rounding(planner):
    selections = [Selection(i, weight=Decimal("1")) for i in (1, 2, 3)]
    plan = planner.plan(Decimal("100.00"), selections, DistributionMode.PROPORTIONAL)
    assert amounts(plan) == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]


def test_proportional_split_without_weights_falls_back_to_equal(planner):
    selections = [Selection(1, weight=Decimal("0")), Selection(2)]
    plan = planner.plan(Decimal("100.00"), selections, DistributionMode.PROPORTIONAL)
    assert amounts(plan) == [Decimal("50.00"), Decimal("50.00")]
    assert plan.warnings


def test_weighted_split_matching_total(planner):
    """Test quantity x unit value lines that add up to the request."""
    selections = [
        Selection(1, quantity=Decimal("2"), unit_value=Decimal("150.00")),
        Selection(2, quantity=Decimal("1"), unit_value=Decimal("200.00")),
    ]
    plan = planner.plan(Decimal("500.00"), selections, DistributionMode.WEIGHTED)
    assert amounts(plan) == [Decimal("300.00"), Decimal("200.00")]
    assert plan.lines[0].quantity == Decimal("2")
    assert plan.is_balanced
    assert plan.warnings == ()


def test_weighted_split_mismatch_is_reported(planner):
    """Test that a weighted plan never silently rescales."""
    selections = [
        Selection(1, quantity=Decimal("2"), unit_value=Decimal("150.00")),
        Selection(2, quantity=Decimal("1"), unit_value=Decimal("150.00")),
    ]
    plan = planner.plan(Decimal("500.00"), selections, DistributionMode.WEIGHTED)

    assert plan.total_amount == Decimal("450.00")
    assert plan.requested_amount == Decimal("500.00")
    assert plan.discrepancy == Decimal("50.00")
    assert not plan.is_balanced
    assert "450.00" in plan.warnings[0]


def test_weighted_split_rounds_half_up(planner):
    selections = [Selection(1, quantity=Decimal("3"), unit_value=Decimal("0.335"))]
    plan = planner.plan(Decimal("1.01"), selections, DistributionMode.WEIGHTED)
    assert amounts(plan) == [Decimal("1.01")]


def test_weighted_split_requires_quantity_and_unit_value(planner):
    with pytest.raises(InvalidDistribution, match="quantity and unit value"):
        planner.plan(Decimal("100"), [Selection(1, quantity=Decimal("1"))], DistributionMode.WEIGHTED)


def test_weighted_split_allocating_nothing(planner):
    selections = [Selection(1, quantity=Decimal("0"), unit_value=Decimal("10"))]
    with pytest.raises(InvalidDistribution):
        planner.plan(Decimal("100"), selections, DistributionMode.WEIGHTED)


@pytest.mark.parametrize(
    "total, selections",
    [
        (Decimal("100"), []),
        (Decimal("100"), [Selection(1), Selection(1)]),
        (Decimal("-1"), [Selection(1)]),
        (Decimal("0"), [Selection(1)]),
        (Decimal("100"), [Selection(1, weight=Decimal("-1"))]),
    ],
)
def test_invalid_input(planner, total, selections):
    """Test empty, duplicate, negative and zero input."""
    with pytest.raises(InvalidDistribution):
        planner.plan(total, selections)


def test_mode_accepts_plain_strings(planner):
    plan = planner.plan(Decimal("10.00"), [Selection(1)], "equal")
    assert plan.mode == DistributionMode.EQUAL


def test_service_plan_unknown_property(distribution_service):
    with pytest.raises(NotFoundError):
        distribution_service.plan(Decimal("100.00"), [Selection(999)])


def test_commit_plan_records_expenses(distribution_service, transaction_service, properties):
    """Test committing a plan as one expense per property."""
    thera, sevilha = properties["Thera by Yoo"], properties["Sevilha 307"]
    plan = distribution_service.plan(Decimal("1000.00"), [Selection(thera), Selection(sevilha)])
    result = distribution_service.commit_plan(
        plan, date(2025, 2, 5), "cleaning", "cleaning_invoice", description="Limpeza fevereiro"
    )

    assert result.inserted_count == 2
    rows = transaction_service.list_transactions(source_tag="cleaning_invoice")
    assert sorted(row.amount for row in rows) == [Decimal("500.00"), Decimal("500.00")]
    assert all(row.kind == TransactionKind.EXPENSE for row in rows)
    assert all(row.description == "Limpeza fevereiro" for row in rows)


def test_commit_plan_twice_is_idempotent(distribution_service, transaction_service, properties):
    """Test that re-committing the same distribution replaces it."""
    selections = [Selection(properties["Thera by Yoo"]), Selection(properties["MaxHaus 43R"])]
    plan = distribution_service.plan(Decimal("300.00"), selections)
    distribution_service.commit_plan(plan, date(2025, 2, 5), "cleaning", "cleaning_invoice")
    second = distribution_service.commit_plan(plan, date(2025, 2, 5), "cleaning", "cleaning_invoice")

    assert second.deleted_count == 2
    assert len(transaction_service.list_transactions(source_tag="cleaning_invoice")) == 2


def test_commit_unbalanced_plan_requires_acceptance(distribution_service, transaction_service, properties):
    selections = [Selection(properties["Thera by Yoo"], quantity=Decimal("1"), unit_value=Decimal("90"))]
    plan = distribution_service.plan(Decimal("100.00"), selections, DistributionMode.WEIGHTED)

    with pytest.raises(InvalidDistribution):
        distribution_service.commit_plan(plan, date(2025, 2, 5), "cleaning", "cleaning_invoice")
    assert transaction_service.list_transactions() == []

    result = distribution_service.commit_plan(
        plan, date(2025, 2, 5), "cleaning", "cleaning_invoice", accept_mismatch=True
    )
    assert result.inserted_count == 1


def test_commit_plan_requires_source_tag(distribution_service, properties):
    plan = distribution_service.plan(Decimal("10.00"), [Selection(properties["Thera by Yoo"])])
    with pytest.raises(InvalidDistribution):
        distribution_service.commit_plan(plan, date(2025, 2, 5), "cleaning", "  ")


@pytest.mark.parametrize("source_tag", SOURCE_TAGS)
def test_commit_plan_refuses_import_source_tags(
    distribution_service, import_service, transaction_service, properties, fixtures_dir, source_tag
):
    """Test that a distribution can't replace rows owned by an import."""
    import_service.commit(AIRBNB_PAYOUT, (fixtures_dir / "airbnb_payout_jan.csv").read_bytes())
    before = transaction_service.list_transactions()
    payout_row = before[0]
    plan = distribution_service.plan(Decimal("10.00"), [Selection(payout_row.property_id)])

    with pytest.raises(InvalidDistribution, match="import source"):
        distribution_service.commit_plan(plan, payout_row.date, "cleaning", source_tag)

    assert transaction_service.list_transactions() == before


def test_plan_by_revenue(distribution_service, transaction_service, properties):
    """Test weights taken from the 30 days of revenue before payment."""
    thera, sevilha = properties["Thera by Yoo"], properties["Sevilha 307"]
    transaction_service.create_transaction(thera, date(2025, 1, 20), Decimal("3000"), "revenue", "rent")
    transaction_service.create_transaction(sevilha, date(2025, 1, 25), Decimal("1000"), "revenue", "rent")
    # Outside the window or not revenue
    transaction_service.create_transaction(sevilha, date(2024, 12, 1), Decimal("9000"), "revenue", "rent")
    transaction_service.create_transaction(sevilha, date(2025, 1, 26), Decimal("500"), "expense", "taxes")

    plan = distribution_service.plan_by_revenue(Decimal("400.00"), [thera, sevilha], date(2025, 2, 1))

    assert amounts(plan) == [Decimal("300.00"), Decimal("100.00")]


def test_plan_by_revenue_without_revenue(distribution_service, properties):
    ids = [properties["Thera by Yoo"], properties["Sevilha 307"]]
    plan = distribution_service.plan_by_revenue(Decimal("100.00"), ids, date(2025, 2, 1))
    assert amounts(plan) == [Decimal("50.00"), Decimal("50.00")]
    assert plan.warnings
