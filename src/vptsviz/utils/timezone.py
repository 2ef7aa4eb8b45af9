"""Centralized timezone resolution utilities."""

import logging
from typing import Optional

import pandas as pd
import pytz
from pytz import BaseTzInfo

logger = logging.getLogger(__name__)


def resolve_pytz(tz_string: Optional[str]) -> BaseTzInfo:
    """Resolve an IANA timezone name to a pytz timezone object.

    Falls back to UTC if the name is unknown (with a warning) or missing
    (silently: radar timestamps are UTC by convention).

    Args:
        tz_string: IANA timezone (e.g. 'Europe/Brussels', 'UTC').

    Returns:
        pytz timezone object (always valid).
    """
    if not tz_string:
        return pytz.utc

    try:
        return pytz.timezone(tz_string)
    except pytz.UnknownTimeZoneError:
        logger.warning(
            f"Unknown timezone '{tz_string}'; falling back to UTC.",
            extra={"timezone": tz_string},
        )
        return pytz.utc


def localize_series(series: pd.Series, tz_string: Optional[str]) -> pd.Series:
    """Convert a datetime Series to the display timezone.

    Naive values are taken to be UTC.

    Args:
        series: datetime64 Series (naive or tz-aware).
        tz_string: Target IANA timezone; ``None`` keeps UTC.

    Returns:
        tz-aware Series in the resolved timezone.
    """
    tz = resolve_pytz(tz_string)
    values = pd.to_datetime(series, utc=True)
    return values.dt.tz_convert(tz)
