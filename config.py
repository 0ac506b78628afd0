import os
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo


class Settings:
    def __init__(
        self,
        timezone: str,
        currency_symbol: str,
        affordability_pct: int,
        history_lookback: int,
    ) -> None:
        self.timezone = timezone
        self.currency_symbol = currency_symbol
        self.affordability_pct = affordability_pct
        self.history_lookback = history_lookback


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    timezone = os.getenv("BUDGET_TIMEZONE", "UTC")
    currency_symbol = os.getenv("BUDGET_CURRENCY_SYMBOL", "$")
    affordability_pct = int(os.getenv("BUDGET_AFFORDABILITY_PCT", "30"))
    history_lookback = int(os.getenv("BUDGET_HISTORY_LOOKBACK", "6"))
    return Settings(
        timezone=timezone,
        currency_symbol=currency_symbol,
        affordability_pct=affordability_pct,
        history_lookback=history_lookback,
    )


def local_now() -> datetime:
    """Current wall-clock time in the configured timezone, as a naive datetime."""
    settings = get_settings()
    tz = ZoneInfo(settings.timezone)
    return datetime.now(tz).replace(tzinfo=None)
