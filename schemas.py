from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from models import (
    BudgetRule,
    PeriodConfig,
    PeriodType,
    TransactionType,
    parse_period_config,
)


class TransactionIn(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount: Decimal = Field(..., gt=0)
    type: TransactionType
    category: str = Field(default="", max_length=100)
    date: datetime


class SavingGoalIn(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(default=None, max_length=120)
    target: Decimal = Field(..., gt=0)
    saved: Decimal = Field(default=Decimal("0"), ge=0)
    deadline: datetime
    created_at: datetime


class RuleConfigIn(BaseModel):
    """User rule settings as stored by the application.

    ``custom_period_days`` is checked lazily by :meth:`period_config` so that a
    half-configured custom period can still be loaded and edited.
    """

    model_config = ConfigDict(frozen=True)

    selected_rule: BudgetRule = BudgetRule.fifty_thirty_twenty
    savings_percentage: int = Field(default=20, ge=1, le=100)
    rule_period: PeriodType = PeriodType.monthly
    period_start_date: datetime
    custom_period_days: Optional[int] = None
    auto_reset_enabled: bool = True

    def period_config(self) -> PeriodConfig:
        return parse_period_config(self.rule_period, self.custom_period_days)


class HistoricalPeriodOut(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    period_type: PeriodType
    start_date: datetime
    end_date: datetime
    total_income: Decimal
    total_expenses: Decimal
    total_savings: Decimal
    budget_adherence: Decimal
    savings_rate: Decimal
    is_complete: bool = True
    rule_data: dict[str, Any] = Field(default_factory=dict)
