from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Mapping, Optional, Protocol, Sequence, Union

from aggregation import (
    ZERO,
    TransactionLike,
    categorized_spending,
    current_month_income,
    filter_by_period,
    percent_of,
    split_expenses,
    summarize_period,
    to_decimal,
)
from config import get_settings, local_now
from models import (
    BudgetRule,
    ForecastStatus,
    SpendingBucket,
    parse_budget_rule,
    parse_period_config,
)
from periods import PeriodBounds, as_instant, bounds_for, get_progress_percentage
from schemas import RuleConfigIn

ALLOCATION_SHARES = {
    SpendingBucket.needs: Decimal("0.5"),
    SpendingBucket.wants: Decimal("0.3"),
    SpendingBucket.savings: Decimal("0.2"),
}

HUNDRED = Decimal("100")


class SavingGoalLike(Protocol):
    target: Union[Decimal, int, float]
    saved: Union[Decimal, int, float]
    deadline: datetime
    created_at: datetime


def _format_money(amount: Decimal) -> str:
    return f"{get_settings().currency_symbol}{amount:.2f}"


@dataclass(frozen=True)
class BucketResult:
    allocation: Decimal
    spent: Decimal
    remaining: Decimal
    percent_used: Decimal
    over_budget: bool


@dataclass(frozen=True)
class FiftyThirtyTwentyResult:
    needs: BucketResult
    wants: BucketResult
    savings: BucketResult
    total_budget: Decimal
    total_spent: Decimal

    def bucket(self, bucket: SpendingBucket) -> BucketResult:
        return getattr(self, SpendingBucket(bucket).value)

    @property
    def over_budget(self) -> dict[SpendingBucket, bool]:
        return {b: self.bucket(b).over_budget for b in SpendingBucket}


@dataclass(frozen=True)
class PayYourselfFirstResult:
    period_income: Decimal
    savings_percentage: int
    savings_target: Decimal
    actual_savings: Decimal
    savings_progress: Decimal
    available_for_expenses: Decimal
    total_expenses: Decimal
    remaining_budget: Decimal
    is_on_track: bool
    savings_gap: Decimal
    expenses_over_budget: bool


@dataclass(frozen=True)
class SmartGoalResult:
    goal_name: Optional[str]
    target: Decimal
    saved: Decimal
    remaining: Decimal
    progress_percentage: Decimal
    deadline: datetime
    months_remaining: int
    required_monthly_saving: Decimal
    current_monthly_pace: Decimal
    months_to_goal: Optional[int]
    is_on_track: bool
    forecast_status: ForecastStatus
    forecast_message: str
    savings_as_percent_of_income: Decimal
    is_affordable: bool
    days_until_deadline: int


@dataclass(frozen=True)
class PeriodRuleResult:
    bounds: PeriodBounds
    period_income: Decimal
    period_progress: float
    result: Union[FiftyThirtyTwentyResult, PayYourselfFirstResult]


def evaluate_50_30_20(
    period_income: Decimal,
    spending_by_bucket: Mapping[SpendingBucket, Decimal],
) -> FiftyThirtyTwentyResult:
    income = to_decimal(period_income)
    buckets: dict[SpendingBucket, BucketResult] = {}
    for bucket, share in ALLOCATION_SHARES.items():
        allocation = income * share
        spent = to_decimal(spending_by_bucket.get(bucket, ZERO))
        buckets[bucket] = BucketResult(
            allocation=allocation,
            spent=spent,
            remaining=max(ZERO, allocation - spent),
            percent_used=percent_of(spent, allocation),
            # Going past the savings allocation is never a violation.
            over_budget=bucket != SpendingBucket.savings and spent > allocation,
        )
    return FiftyThirtyTwentyResult(
        needs=buckets[SpendingBucket.needs],
        wants=buckets[SpendingBucket.wants],
        savings=buckets[SpendingBucket.savings],
        total_budget=income,
        total_spent=sum((b.spent for b in buckets.values()), ZERO),
    )


def evaluate_pay_yourself_first(
    period_income: Decimal,
    savings_percent: int,
    non_savings_expense_total: Decimal,
    savings_category_total: Decimal,
) -> PayYourselfFirstResult:
    """
    Pay-Yourself-First: a fixed share of income goes to savings up front and
    the rest is the expense budget. Actual savings are the expenses booked
    under savings categories, not whatever is left over.
    """
    income = to_decimal(period_income)
    expenses = to_decimal(non_savings_expense_total)
    actual_savings = to_decimal(savings_category_total)

    savings_target = income * Decimal(savings_percent) / HUNDRED
    available = income - savings_target
    return PayYourselfFirstResult(
        period_income=income,
        savings_percentage=savings_percent,
        savings_target=savings_target,
        actual_savings=actual_savings,
        savings_progress=percent_of(actual_savings, savings_target),
        available_for_expenses=available,
        total_expenses=expenses,
        remaining_budget=available - expenses,
        is_on_track=actual_savings >= savings_target,
        savings_gap=max(ZERO, savings_target - actual_savings),
        expenses_over_budget=expenses > available,
    )


def _months_between(start: datetime, end: datetime) -> int:
    return (end.year - start.year) * 12 + (end.month - start.month)


def evaluate_smart_goal(
    goal: SavingGoalLike,
    now: Optional[datetime] = None,
    monthly_income: Union[Decimal, int] = ZERO,
) -> SmartGoalResult:
    now = now or local_now()
    settings = get_settings()
    target = to_decimal(goal.target)
    saved = to_decimal(goal.saved)
    deadline = as_instant(goal.deadline)
    income = to_decimal(monthly_income)

    months_remaining = max(0, _months_between(now, deadline))
    amount_remaining = max(ZERO, target - saved)
    required = amount_remaining / max(1, months_remaining)

    # Average pace since the goal was created, scaled to a 30-day month.
    days_since_creation = max(1, (now - as_instant(goal.created_at)).days)
    pace = saved / days_since_creation * 30

    is_on_track = pace >= required
    months_to_goal = math.ceil(amount_remaining / pace) if pace > 0 else None

    if saved >= target:
        status = ForecastStatus.achieved
        message = "Goal achieved!"
    elif months_remaining == 0:
        status = ForecastStatus.deadline_passed
        message = "Deadline has passed"
    elif pace == 0:
        status = ForecastStatus.no_pace
        message = (
            f"You need to save {_format_money(required)}/month to reach your goal"
        )
    elif is_on_track:
        status = ForecastStatus.on_track
        message = (
            f"On track! At this pace, you'll reach your goal in {months_to_goal} months"
        )
    else:
        status = ForecastStatus.behind
        message = (
            f"You need to save an additional {_format_money(required - pace)}/month "
            "to meet your deadline"
        )

    share_of_income = percent_of(required, income)
    return SmartGoalResult(
        goal_name=getattr(goal, "name", None),
        target=target,
        saved=saved,
        remaining=amount_remaining,
        progress_percentage=percent_of(saved, target),
        deadline=deadline,
        months_remaining=months_remaining,
        required_monthly_saving=required,
        current_monthly_pace=pace,
        months_to_goal=months_to_goal,
        is_on_track=is_on_track,
        forecast_status=status,
        forecast_message=message,
        savings_as_percent_of_income=share_of_income,
        is_affordable=income > 0 and share_of_income <= settings.affordability_pct,
        days_until_deadline=max(0, (deadline - now).days),
    )


def evaluate_all_smart_goals(
    goals: Iterable[SavingGoalLike],
    monthly_income: Union[Decimal, int],
    now: Optional[datetime] = None,
) -> list[SmartGoalResult]:
    now = now or local_now()
    return [evaluate_smart_goal(goal, now, monthly_income) for goal in goals]


def _period_bounds_for(config: RuleConfigIn) -> PeriodBounds:
    period = parse_period_config(config.rule_period, config.custom_period_days)
    return bounds_for(period, config.period_start_date)


def evaluate_50_30_20_for_period(
    transactions: Sequence[TransactionLike],
    config: RuleConfigIn,
    now: Optional[datetime] = None,
) -> PeriodRuleResult:
    now = now or local_now()
    bounds = _period_bounds_for(config)
    in_period = filter_by_period(transactions, bounds)
    summary = summarize_period(transactions, bounds)
    return PeriodRuleResult(
        bounds=bounds,
        period_income=summary.income,
        period_progress=get_progress_percentage(bounds.start, bounds.end, now),
        result=evaluate_50_30_20(summary.income, categorized_spending(in_period)),
    )


def evaluate_pay_yourself_first_for_period(
    transactions: Sequence[TransactionLike],
    config: RuleConfigIn,
    now: Optional[datetime] = None,
) -> PeriodRuleResult:
    now = now or local_now()
    bounds = _period_bounds_for(config)
    summary = summarize_period(transactions, bounds)
    return PeriodRuleResult(
        bounds=bounds,
        period_income=summary.income,
        period_progress=get_progress_percentage(bounds.start, bounds.end, now),
        result=evaluate_pay_yourself_first(
            summary.income,
            config.savings_percentage,
            summary.non_savings_expenses,
            summary.savings,
        ),
    )


def evaluate_50_30_20_for_history(
    income: Decimal, transactions: Iterable[TransactionLike]
) -> FiftyThirtyTwentyResult:
    """Un-windowed 50/30/20 over every expense in ``transactions``."""
    return evaluate_50_30_20(income, categorized_spending(transactions))


def evaluate_pay_yourself_first_for_history(
    income: Decimal, savings_percent: int, transactions: Iterable[TransactionLike]
) -> PayYourselfFirstResult:
    non_savings, savings = split_expenses(transactions)
    return evaluate_pay_yourself_first(income, savings_percent, non_savings, savings)


def evaluate_selected_rule(
    transactions: Sequence[TransactionLike],
    config: RuleConfigIn,
    goals: Iterable[SavingGoalLike] = (),
    now: Optional[datetime] = None,
    monthly_income: Optional[Decimal] = None,
) -> Union[PeriodRuleResult, list[SmartGoalResult]]:
    now = now or local_now()
    rule = parse_budget_rule(config.selected_rule)

    if rule == BudgetRule.fifty_thirty_twenty:
        return evaluate_50_30_20_for_period(transactions, config, now)
    if rule == BudgetRule.pay_yourself_first:
        return evaluate_pay_yourself_first_for_period(transactions, config, now)
    if monthly_income is None:
        monthly_income = current_month_income(transactions, now)
    return evaluate_all_smart_goals(goals, monthly_income, now)
