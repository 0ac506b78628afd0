from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class InvalidConfiguration(ValueError):
    pass


class TransactionType(str, Enum):
    income = "income"
    expense = "expense"


class PeriodType(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    semi_annual = "semi-annual"
    annual = "annual"
    custom = "custom"


class BudgetRule(str, Enum):
    fifty_thirty_twenty = "50-30-20"
    pay_yourself_first = "pay-yourself-first"
    smart_goal = "smart-goal"


class SpendingBucket(str, Enum):
    needs = "needs"
    wants = "wants"
    savings = "savings"


class ForecastStatus(str, Enum):
    achieved = "achieved"
    deadline_passed = "deadline_passed"
    no_pace = "no_pace"
    on_track = "on_track"
    behind = "behind"


@dataclass(frozen=True)
class CalendarPeriod:
    period_type: PeriodType

    kind = "calendar"


@dataclass(frozen=True)
class CustomPeriod:
    days: int

    kind = "custom"

    @property
    def period_type(self) -> PeriodType:
        return PeriodType.custom


PeriodConfig = Union[CalendarPeriod, CustomPeriod]


def parse_period_type(value: Union[str, PeriodType]) -> PeriodType:
    try:
        return PeriodType(value)
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid period type: {value}") from exc


def parse_period_config(
    period_type: Union[str, PeriodType], custom_days: Optional[int] = None
) -> PeriodConfig:
    """
    Build the tagged period variant from loose settings values.

    ``custom_days`` is only read for custom periods, where it must be a
    positive integer.
    """
    kind = parse_period_type(period_type)
    if kind != PeriodType.custom:
        return CalendarPeriod(kind)
    if (
        custom_days is None
        or isinstance(custom_days, bool)
        or not isinstance(custom_days, int)
        or custom_days <= 0
    ):
        raise InvalidConfiguration("Custom period requires valid customDays value")
    return CustomPeriod(custom_days)


def parse_budget_rule(value: Union[str, BudgetRule]) -> BudgetRule:
    try:
        return BudgetRule(value)
    except ValueError as exc:
        raise InvalidConfiguration(f"Invalid budget rule: {value}") from exc
