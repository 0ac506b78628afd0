from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from typing import Iterable, Optional, Protocol, Union

from categories import categorize, is_savings_category
from config import local_now
from models import SpendingBucket, TransactionType
from periods import PeriodBounds, as_instant

ZERO = Decimal("0")


class TransactionLike(Protocol):
    amount: Union[Decimal, int, float]
    type: Union[TransactionType, str]
    category: str
    date: datetime


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _is_type(txn: TransactionLike, txn_type: TransactionType) -> bool:
    return txn.type == txn_type


def filter_by_period(
    transactions: Iterable[TransactionLike], bounds: PeriodBounds
) -> list[TransactionLike]:
    return [txn for txn in transactions if bounds.contains(txn.date)]


def aggregate_income(transactions: Iterable[TransactionLike]) -> Decimal:
    return sum(
        (
            to_decimal(txn.amount)
            for txn in transactions
            if _is_type(txn, TransactionType.income)
        ),
        ZERO,
    )


def aggregate_expenses(transactions: Iterable[TransactionLike]) -> Decimal:
    return sum(
        (
            to_decimal(txn.amount)
            for txn in transactions
            if _is_type(txn, TransactionType.expense)
        ),
        ZERO,
    )


def aggregate_expense_breakdown(
    transactions: Iterable[TransactionLike],
) -> dict[str, Decimal]:
    """Expense totals keyed by the exact category string, in first-seen order."""
    totals: dict[str, Decimal] = {}
    for txn in transactions:
        if not _is_type(txn, TransactionType.expense):
            continue
        totals[txn.category] = totals.get(txn.category, ZERO) + to_decimal(txn.amount)
    return {category: amount for category, amount in totals.items() if amount > 0}


def split_expenses(transactions: Iterable[TransactionLike]) -> tuple[Decimal, Decimal]:
    """Return ``(non_savings_total, savings_total)`` for expense transactions."""
    non_savings = ZERO
    savings = ZERO
    for txn in transactions:
        if not _is_type(txn, TransactionType.expense):
            continue
        if is_savings_category(txn.category):
            savings += to_decimal(txn.amount)
        else:
            non_savings += to_decimal(txn.amount)
    return non_savings, savings


def aggregate_savings(transactions: Iterable[TransactionLike]) -> Decimal:
    return split_expenses(transactions)[1]


def categorized_spending(
    transactions: Iterable[TransactionLike],
) -> dict[SpendingBucket, Decimal]:
    spending = {bucket: ZERO for bucket in SpendingBucket}
    for txn in transactions:
        if not _is_type(txn, TransactionType.expense):
            continue
        spending[categorize(txn.category)] += to_decimal(txn.amount)
    return spending


@dataclass(frozen=True)
class PeriodSummary:
    bounds: PeriodBounds
    income: Decimal
    expenses: Decimal
    savings: Decimal
    non_savings_expenses: Decimal
    transaction_count: int
    breakdown: dict[str, Decimal] = field(default_factory=dict)


def summarize_period(
    transactions: Iterable[TransactionLike], bounds: PeriodBounds
) -> PeriodSummary:
    in_period = filter_by_period(transactions, bounds)
    non_savings, savings = split_expenses(in_period)
    return PeriodSummary(
        bounds=bounds,
        income=aggregate_income(in_period),
        expenses=aggregate_expenses(in_period),
        savings=savings,
        non_savings_expenses=non_savings,
        transaction_count=len(in_period),
        breakdown=aggregate_expense_breakdown(in_period),
    )


def current_month_income(
    transactions: Iterable[TransactionLike], now: Optional[datetime] = None
) -> Decimal:
    now = now or local_now()
    month_start = datetime.combine(now.date().replace(day=1), time.min)
    return aggregate_income(
        txn for txn in transactions if as_instant(txn.date) >= month_start
    )


def percent_of(part: Decimal, whole: Decimal) -> Decimal:
    """``part / whole * 100``, or 0 when ``whole`` is 0."""
    if whole == 0:
        return ZERO
    return part / whole * 100
