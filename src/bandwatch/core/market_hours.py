"""Trading session checks for the supported asset classes."""

from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..config.symbols import AssetClass

NEW_YORK = ZoneInfo("America/New_York")

STOCK_OPEN_MINUTE = 9 * 60 + 30
STOCK_CLOSE_MINUTE = 16 * 60
FOREX_ROLLOVER_HOUR_UTC = 22


def is_market_open(asset_class: AssetClass, now: Optional[datetime] = None) -> bool:
    """
    Check whether the market for ``asset_class`` is in session.

    Stocks trade Monday to Friday 09:30-16:00 New York time. Forex and metals
    trade from Sunday 22:00 UTC until Friday 22:00 UTC.

    Args:
        asset_class: Asset class to check
        now: Aware datetime to evaluate (defaults to the current time)
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    if asset_class is AssetClass.STOCK:
        local = now.astimezone(NEW_YORK)
        if local.weekday() >= 5:
            return False
        minute_of_day = local.hour * 60 + local.minute
        return STOCK_OPEN_MINUTE <= minute_of_day < STOCK_CLOSE_MINUTE

    utc = now.astimezone(timezone.utc)
    weekday = utc.weekday()  # Monday == 0
    if weekday == 5:
        return False
    if weekday == 6 and utc.hour < FOREX_ROLLOVER_HOUR_UTC:
        return False
    if weekday == 4 and utc.hour >= FOREX_ROLLOVER_HOUR_UTC:
        return False
    return True
