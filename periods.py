import logging
import math
from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta
from typing import Optional, Union
from zoneinfo import ZoneInfo

from config import get_settings, local_now
from models import (
    CustomPeriod,
    PeriodConfig,
    PeriodType,
    parse_period_config,
    parse_period_type,
)

logger = logging.getLogger(__name__)

# Instants are compared at millisecond resolution: a period ends one
# resolution step before the next one starts.
PERIOD_RESOLUTION = timedelta(milliseconds=1)

END_OF_DAY = time(23, 59, 59, 999000)

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)

_UNIT_MONTHS = {
    PeriodType.monthly: 1,
    PeriodType.quarterly: 3,
    PeriodType.semi_annual: 6,
    PeriodType.annual: 12,
}

PERIOD_OPTIONS = [
    {
        "value": PeriodType.weekly.value,
        "label": "Weekly",
        "description": "Reset every week (Monday to Sunday)",
    },
    {
        "value": PeriodType.monthly.value,
        "label": "Monthly",
        "description": "Reset at the beginning of each month",
    },
    {
        "value": PeriodType.quarterly.value,
        "label": "Quarterly",
        "description": "Reset every 3 months",
    },
    {
        "value": PeriodType.semi_annual.value,
        "label": "Semi-Annual",
        "description": "Reset every 6 months",
    },
    {
        "value": PeriodType.annual.value,
        "label": "Annual",
        "description": "Reset once a year",
    },
    {
        "value": PeriodType.custom.value,
        "label": "Custom",
        "description": "Set your own period length",
    },
]


@dataclass(frozen=True)
class PeriodBounds:
    start: datetime
    end: datetime
    period_type: PeriodType
    label: str

    def contains(self, when: Union[date, datetime]) -> bool:
        instant = as_instant(when)
        return self.start <= instant < self.end + PERIOD_RESOLUTION


@dataclass(frozen=True)
class PeriodStatus:
    bounds: PeriodBounds
    is_complete: bool
    days_remaining: int
    progress_percentage: float


def as_instant(value: Union[date, datetime]) -> datetime:
    """Naive local wall-clock instant; aware values are moved into the configured timezone."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value
        return value.astimezone(ZoneInfo(get_settings().timezone)).replace(tzinfo=None)
    return datetime.combine(value, time.min)


def _short_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def _add_months(base: date, months: int) -> date:
    total_months = base.month - 1 + months
    year = base.year + total_months // 12
    month = total_months % 12 + 1
    return date(year, month, 1)


def _unit_start(period_type: PeriodType, day: date) -> date:
    if period_type == PeriodType.weekly:
        return day - timedelta(days=day.weekday())
    if period_type == PeriodType.monthly:
        return day.replace(day=1)
    if period_type == PeriodType.quarterly:
        return date(day.year, (day.month - 1) // 3 * 3 + 1, 1)
    if period_type == PeriodType.semi_annual:
        return date(day.year, 1 if day.month <= 6 else 7, 1)
    return date(day.year, 1, 1)


def _following_unit_start(period_type: PeriodType, unit_start: date) -> date:
    if period_type == PeriodType.weekly:
        return unit_start + timedelta(weeks=1)
    return _add_months(unit_start, _UNIT_MONTHS[period_type])


def _calendar_label(period_type: PeriodType, start: date) -> str:
    if period_type == PeriodType.weekly:
        return f"Week of {_short_date(start)}"
    if period_type == PeriodType.monthly:
        return f"{MONTH_NAMES[start.month - 1]} {start.year}"
    if period_type == PeriodType.quarterly:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    if period_type == PeriodType.semi_annual:
        return f"{'H1' if start.month <= 6 else 'H2'} {start.year}"
    return f"Year {start.year}"


def bounds_for(config: PeriodConfig, anchor: Optional[datetime] = None) -> PeriodBounds:
    anchor = as_instant(anchor) if anchor is not None else local_now()

    if isinstance(config, CustomPeriod):
        last_day = anchor.date() + timedelta(days=config.days - 1)
        end = datetime.combine(last_day, END_OF_DAY)
        bounds = PeriodBounds(
            start=anchor,
            end=end,
            period_type=PeriodType.custom,
            label=(
                f"Custom {config.days} days "
                f"({_short_date(anchor)} - {_short_date(last_day)})"
            ),
        )
    else:
        period_type = config.period_type
        unit_start = _unit_start(period_type, anchor.date())
        next_start = _following_unit_start(period_type, unit_start)
        bounds = PeriodBounds(
            start=datetime.combine(unit_start, time.min),
            end=datetime.combine(next_start, time.min) - PERIOD_RESOLUTION,
            period_type=period_type,
            label=_calendar_label(period_type, unit_start),
        )

    logger.debug(
        f"period_bounds: type={bounds.period_type.value} "
        f"start={bounds.start.isoformat()} end={bounds.end.isoformat()}"
    )
    return bounds


def get_period_bounds(
    period_type: Union[str, PeriodType],
    anchor: Optional[datetime] = None,
    custom_days: Optional[int] = None,
) -> PeriodBounds:
    """
    Bounds of the period of ``period_type`` containing ``anchor``.

    Calendar types snap to the enclosing week (Monday start), month, quarter,
    half-year or year. Custom periods are a rolling window that starts exactly
    at ``anchor`` and ends on the last instant of its ``custom_days``-th day.
    """
    return bounds_for(parse_period_config(period_type, custom_days), anchor)


def next_start_for(config: PeriodConfig, current_period_end: datetime) -> datetime:
    end = as_instant(current_period_end)
    if isinstance(config, CustomPeriod):
        return datetime.combine(end.date() + timedelta(days=1), time.min)
    unit_start = _unit_start(config.period_type, end.date())
    following = _following_unit_start(config.period_type, unit_start)
    return datetime.combine(following, time.min)


def get_next_period_start(
    period_type: Union[str, PeriodType],
    current_period_end: datetime,
    custom_days: Optional[int] = None,
) -> datetime:
    return next_start_for(
        parse_period_config(period_type, custom_days), current_period_end
    )


def _previous_bounds(config: PeriodConfig, current: PeriodBounds) -> PeriodBounds:
    if isinstance(config, CustomPeriod):
        first_day = current.start.date() - timedelta(days=config.days)
        previous = bounds_for(config, datetime.combine(first_day, time.min))
        # The current window may start mid-day; close the gap up to it.
        return replace(previous, end=current.start - PERIOD_RESOLUTION)
    return bounds_for(config, current.start - PERIOD_RESOLUTION)


def historical_periods(
    period_type: Union[str, PeriodType],
    lookback_count: Optional[int] = None,
    now: Optional[datetime] = None,
    custom_days: Optional[int] = None,
) -> list[PeriodBounds]:
    """The ``lookback_count`` most recent periods up to the current one, oldest first."""
    config = parse_period_config(period_type, custom_days)
    if lookback_count is None:
        lookback_count = get_settings().history_lookback
    if lookback_count <= 0:
        return []

    current = bounds_for(config, now)
    periods = [current]
    while len(periods) < lookback_count:
        periods.append(_previous_bounds(config, periods[-1]))
    periods.reverse()
    return periods


def is_period_complete(period_end: datetime, now: Optional[datetime] = None) -> bool:
    now = now or local_now()
    return now > as_instant(period_end)


def get_days_remaining(period_end: datetime, now: Optional[datetime] = None) -> int:
    now = now or local_now()
    diff = (as_instant(period_end) - now).total_seconds()
    return max(0, math.ceil(diff / 86400))


def get_progress_percentage(
    start: datetime, end: datetime, now: Optional[datetime] = None
) -> float:
    now = now or local_now()
    start = as_instant(start)
    end = as_instant(end)
    if now <= start:
        return 0.0
    if now >= end:
        return 100.0
    total = (end - start).total_seconds()
    elapsed = (now - start).total_seconds()
    return min(100.0, max(0.0, elapsed / total * 100))


def period_status(
    period_type: Union[str, PeriodType],
    period_start: datetime,
    custom_days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> PeriodStatus:
    now = now or local_now()
    bounds = get_period_bounds(period_type, period_start, custom_days)
    return PeriodStatus(
        bounds=bounds,
        is_complete=is_period_complete(bounds.end, now),
        days_remaining=get_days_remaining(bounds.end, now),
        progress_percentage=get_progress_percentage(bounds.start, bounds.end, now),
    )


def format_period_label(
    period_type: Union[str, PeriodType], start: datetime, end: datetime
) -> str:
    period_type = parse_period_type(period_type)
    short_start = f"{MONTH_NAMES[start.month - 1][:3]} {start.day}"
    short_end = f"{MONTH_NAMES[end.month - 1][:3]} {end.day}, {end.year}"

    if period_type == PeriodType.weekly:
        return f"Week: {short_start} - {short_end}"
    if period_type == PeriodType.monthly:
        return f"{MONTH_NAMES[start.month - 1]} {start.year}"
    if period_type == PeriodType.quarterly:
        return f"Q{(start.month - 1) // 3 + 1} {start.year}"
    if period_type == PeriodType.semi_annual:
        return f"{'H1' if start.month <= 6 else 'H2'} {start.year}"
    if period_type == PeriodType.annual:
        return f"{start.year}"
    return f"{short_start} - {short_end}"
