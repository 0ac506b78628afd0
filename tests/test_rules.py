from datetime import datetime
from decimal import Decimal

import pytest

from aggregation import categorized_spending
from models import (
    BudgetRule,
    InvalidConfiguration,
    PeriodType,
    SpendingBucket,
    TransactionType,
)
from rules import (
    FiftyThirtyTwentyResult,
    PayYourselfFirstResult,
    evaluate_50_30_20,
    evaluate_50_30_20_for_history,
    evaluate_50_30_20_for_period,
    evaluate_pay_yourself_first,
    evaluate_pay_yourself_first_for_history,
    evaluate_pay_yourself_first_for_period,
    evaluate_selected_rule,
)
from schemas import RuleConfigIn, SavingGoalIn, TransactionIn


def _txn(amount: str, txn_type: TransactionType, category: str, when: datetime):
    return TransactionIn(
        amount=Decimal(amount), type=txn_type, category=category, date=when
    )


def _march_transactions() -> list[TransactionIn]:
    return [
        _txn("4000", TransactionType.income, "Salary", datetime(2025, 3, 1, 9, 0)),
        _txn("1200", TransactionType.expense, "Rent", datetime(2025, 3, 2)),
        _txn("300", TransactionType.expense, "Dining", datetime(2025, 3, 8)),
        _txn("200", TransactionType.expense, "Investment", datetime(2025, 3, 20)),
        _txn("3000", TransactionType.income, "Salary", datetime(2025, 2, 1)),
        _txn("700", TransactionType.expense, "Shopping", datetime(2025, 2, 14)),
    ]


def test_50_30_20_end_to_end_scenario() -> None:
    march = [t for t in _march_transactions() if t.date.month == 3]
    result = evaluate_50_30_20(Decimal("4000"), categorized_spending(march))

    assert result.needs.spent == 1200
    assert result.needs.allocation == 2000
    assert result.needs.percent_used == 60
    assert result.needs.over_budget is False
    assert result.needs.remaining == 800

    assert result.wants.spent == 300
    assert result.wants.allocation == 1200
    assert result.wants.percent_used == 25

    assert result.savings.spent == 200
    assert result.savings.allocation == 800
    assert result.savings.percent_used == 25

    assert result.total_spent == 1700
    assert result.total_budget == 4000


def test_50_30_20_never_flags_savings_over_budget() -> None:
    result = evaluate_50_30_20(
        Decimal("1000"),
        {SpendingBucket.needs: Decimal("600"), SpendingBucket.savings: Decimal("500")},
    )
    assert result.needs.over_budget is True
    assert result.needs.remaining == 0
    assert result.savings.spent > result.savings.allocation
    assert result.savings.over_budget is False
    assert result.savings.percent_used == 250
    assert result.over_budget == {
        SpendingBucket.needs: True,
        SpendingBucket.wants: False,
        SpendingBucket.savings: False,
    }


def test_50_30_20_zero_income_reports_zero_percentages() -> None:
    result = evaluate_50_30_20(
        0,
        {
            SpendingBucket.needs: Decimal("100"),
            SpendingBucket.wants: Decimal("40"),
            SpendingBucket.savings: Decimal("10"),
        },
    )
    for bucket in SpendingBucket:
        assert result.bucket(bucket).percent_used == 0
        assert result.bucket(bucket).remaining == 0
    assert result.total_spent == 150


def test_pay_yourself_first_over_budget() -> None:
    result = evaluate_pay_yourself_first(
        Decimal("5000"), 20, Decimal("4200"), Decimal("800")
    )
    assert result.savings_target == 1000
    assert result.available_for_expenses == 4000
    assert result.remaining_budget == -200
    assert result.expenses_over_budget is True
    assert result.is_on_track is False
    assert result.savings_gap == 200
    assert result.savings_progress == 80


def test_pay_yourself_first_on_track() -> None:
    result = evaluate_pay_yourself_first(
        Decimal("3000"), 10, Decimal("1500"), Decimal("450")
    )
    assert result.savings_target == 300
    assert result.is_on_track is True
    assert result.savings_gap == 0
    assert result.remaining_budget == 1200
    assert result.expenses_over_budget is False


def test_pay_yourself_first_zero_income() -> None:
    result = evaluate_pay_yourself_first(0, 20, Decimal("50"), Decimal("0"))
    assert result.savings_target == 0
    assert result.savings_progress == 0
    assert result.remaining_budget == -50
    assert result.is_on_track is True


def test_history_variants_use_every_transaction() -> None:
    txns = _march_transactions()
    fifty = evaluate_50_30_20_for_history(Decimal("7000"), txns)
    assert fifty.needs.spent == 1200
    assert fifty.wants.spent == 1000
    assert fifty.savings.spent == 200

    pyf = evaluate_pay_yourself_first_for_history(Decimal("7000"), 20, txns)
    assert pyf.total_expenses == 2200
    assert pyf.actual_savings == 200


def test_50_30_20_for_period_windows_by_settings() -> None:
    config = RuleConfigIn(
        selected_rule=BudgetRule.fifty_thirty_twenty,
        rule_period=PeriodType.monthly,
        period_start_date=datetime(2025, 3, 1),
    )
    outcome = evaluate_50_30_20_for_period(
        _march_transactions(), config, now=datetime(2025, 3, 16, 12, 0)
    )
    assert outcome.bounds.label == "March 2025"
    assert outcome.period_income == 4000
    assert 0 < outcome.period_progress < 100
    assert isinstance(outcome.result, FiftyThirtyTwentyResult)
    assert outcome.result.wants.spent == 300
    assert outcome.result.total_spent == 1700


def test_pay_yourself_first_for_period_windows_by_settings() -> None:
    config = RuleConfigIn(
        selected_rule=BudgetRule.pay_yourself_first,
        savings_percentage=10,
        rule_period=PeriodType.monthly,
        period_start_date=datetime(2025, 2, 10),
    )
    outcome = evaluate_pay_yourself_first_for_period(
        _march_transactions(), config, now=datetime(2025, 4, 1)
    )
    assert outcome.bounds.label == "February 2025"
    assert outcome.period_progress == 100.0
    assert isinstance(outcome.result, PayYourselfFirstResult)
    assert outcome.result.period_income == 3000
    assert outcome.result.savings_target == 300
    assert outcome.result.total_expenses == 700
    assert outcome.result.actual_savings == 0
    assert outcome.result.savings_gap == 300


def test_period_variant_rejects_custom_period_without_days() -> None:
    config = RuleConfigIn(
        rule_period=PeriodType.custom, period_start_date=datetime(2025, 3, 1)
    )
    with pytest.raises(InvalidConfiguration):
        evaluate_50_30_20_for_period(_march_transactions(), config)


def test_evaluate_selected_rule_dispatches_on_rule() -> None:
    now = datetime(2025, 3, 16)
    base = dict(rule_period=PeriodType.monthly, period_start_date=datetime(2025, 3, 1))

    pyf = evaluate_selected_rule(
        _march_transactions(),
        RuleConfigIn(selected_rule=BudgetRule.pay_yourself_first, **base),
        now=now,
    )
    assert isinstance(pyf.result, PayYourselfFirstResult)

    goal = SavingGoalIn(
        name="Laptop",
        target=Decimal("1200"),
        saved=Decimal("0"),
        deadline=datetime(2025, 9, 1),
        created_at=datetime(2025, 3, 1),
    )
    smart = evaluate_selected_rule(
        _march_transactions(),
        RuleConfigIn(selected_rule=BudgetRule.smart_goal, **base),
        goals=[goal],
        now=now,
    )
    assert len(smart) == 1
    assert smart[0].goal_name == "Laptop"
    # Required 200/month against 4000 of March income.
    assert smart[0].savings_as_percent_of_income == 5
    assert smart[0].is_affordable is True
