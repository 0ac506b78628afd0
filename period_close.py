import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Sequence

from aggregation import TransactionLike, percent_of, summarize_period
from config import local_now
from models import PeriodConfig, parse_budget_rule, parse_period_config
from periods import as_instant, bounds_for, is_period_complete, next_start_for
from schemas import HistoricalPeriodOut, RuleConfigIn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeriodCloseResult:
    snapshot: HistoricalPeriodOut
    next_period_start: datetime


@dataclass(frozen=True)
class CatchUpResult:
    period_start_date: datetime
    closed: list[PeriodCloseResult] = field(default_factory=list)


def _close(
    transactions: Sequence[TransactionLike],
    period: PeriodConfig,
    period_start: datetime,
    selected_rule: str,
    savings_percentage: int,
    now: datetime,
) -> PeriodCloseResult:
    bounds = bounds_for(period, period_start)
    summary = summarize_period(transactions, bounds)

    snapshot = HistoricalPeriodOut(
        period_type=bounds.period_type,
        start_date=bounds.start,
        end_date=bounds.end,
        total_income=summary.income,
        total_expenses=summary.expenses,
        total_savings=summary.savings,
        budget_adherence=percent_of(summary.income - summary.expenses, summary.income),
        savings_rate=percent_of(summary.savings, summary.income),
        is_complete=True,
        rule_data={
            "selected_rule": selected_rule,
            "savings_percentage": savings_percentage,
            "expense_breakdown": dict(summary.breakdown),
            "closed_at": now.isoformat(),
            "closed_early": not is_period_complete(bounds.end, now),
        },
    )
    next_start = next_start_for(period, bounds.end)
    logger.info(
        f"period_close: type={bounds.period_type.value} "
        f"start={bounds.start.isoformat()} end={bounds.end.isoformat()} "
        f"income={summary.income} expenses={summary.expenses} "
        f"savings={summary.savings} next_start={next_start.isoformat()}"
    )
    return PeriodCloseResult(snapshot=snapshot, next_period_start=next_start)


def close_period(
    all_transactions: Sequence[TransactionLike],
    rule_config: RuleConfigIn,
    now: Optional[datetime] = None,
) -> PeriodCloseResult:
    """
    Snapshot the period that starts at ``rule_config.period_start_date``.

    Nothing is stored here: the caller inserts ``snapshot`` into its history
    and saves ``next_period_start`` as the new period start, ideally in one
    database transaction.
    """
    period = parse_period_config(rule_config.rule_period, rule_config.custom_period_days)
    rule = parse_budget_rule(rule_config.selected_rule)
    now = now or local_now()
    return _close(
        all_transactions,
        period,
        as_instant(rule_config.period_start_date),
        rule.value,
        rule_config.savings_percentage,
        now,
    )


def should_auto_reset(rule_config: RuleConfigIn, now: Optional[datetime] = None) -> bool:
    if not rule_config.auto_reset_enabled:
        return False
    period = parse_period_config(rule_config.rule_period, rule_config.custom_period_days)
    bounds = bounds_for(period, rule_config.period_start_date)
    return is_period_complete(bounds.end, now)


def catch_up_periods(
    all_transactions: Sequence[TransactionLike],
    rule_config: RuleConfigIn,
    now: Optional[datetime] = None,
    max_periods: int = 365,
) -> CatchUpResult:
    """Close every fully elapsed period, oldest first."""
    period = parse_period_config(rule_config.rule_period, rule_config.custom_period_days)
    rule = parse_budget_rule(rule_config.selected_rule)
    now = now or local_now()

    start = as_instant(rule_config.period_start_date)
    closed: list[PeriodCloseResult] = []
    while len(closed) < max_periods:
        bounds = bounds_for(period, start)
        if not is_period_complete(bounds.end, now):
            break
        result = _close(
            all_transactions,
            period,
            start,
            rule.value,
            rule_config.savings_percentage,
            now,
        )
        closed.append(result)
        start = result.next_period_start

    if is_period_complete(bounds_for(period, start).end, now):
        logger.warning(
            f"period_catch_up: limit reached max_periods={max_periods} "
            f"next_start={start.isoformat()}"
        )

    logger.info(f"period_catch_up: closed={len(closed)} next_start={start.isoformat()}")
    return CatchUpResult(period_start_date=start, closed=closed)
