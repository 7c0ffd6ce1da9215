"""
Calendar date used to bucket menu item view metrics.

All metric rows share a single convention: the calendar date of the view in
the configured METRICS_TIMEZONE. There is no time-of-day bucketing.

Example: with METRICS_TIMEZONE="America/Sao_Paulo" a view at 01:30 UTC on
         Jan 2nd is recorded on Jan 1st (22:30 local time).
"""
from datetime import datetime, date
from typing import Optional

import pytz

from recipe_catalog.core.config import get_settings


def get_metrics_date(dt: Optional[datetime] = None, timezone_name: Optional[str] = None) -> date:
    """
    Convert a moment to the date its metric row belongs to.

    Args:
        dt: The moment of the view. Defaults to now. Naive values are taken as UTC.
        timezone_name: IANA timezone string. Defaults to METRICS_TIMEZONE.

    Returns:
        The calendar date in the metrics timezone

    Examples:
        >>> get_metrics_date(datetime(2024, 1, 2, 1, 30, tzinfo=pytz.UTC), "America/Sao_Paulo")
        datetime.date(2024, 1, 1)
        >>> get_metrics_date(datetime(2024, 1, 2, 1, 30), "UTC")
        datetime.date(2024, 1, 2)
    """
    tz = pytz.timezone(timezone_name or get_settings().METRICS_TIMEZONE)

    if dt is None:
        dt = datetime.now(pytz.UTC)
    elif dt.tzinfo is None:
        dt = pytz.UTC.localize(dt)

    return dt.astimezone(tz).date()
