"""
VPTS Profile Records and Parsing (Functional Core)

Pure functions only. No I/O, no side effects beyond logging.
Turns raw CSV rows (dicts of strings or an untyped DataFrame) into typed
profile records / a typed profile frame, and groups them per timestamp.

Package Location: src/vptsviz/analysis/profiles.py

Profile frame:
    The tabular form used throughout the package is a DataFrame with the
    columns ``[datetime, height, dd, ff, dens, sd_vvp]``.  ``datetime`` is a
    UTC-aware ``datetime64``, ``height`` is ``int64`` and the remaining
    columns are ``float64``.  Any extra columns of the source file (``radar``,
    ``sd_vvp_threshold``, ...) are carried along untouched.

Parse policy:
    A row whose required field cannot be parsed is dropped and the drop is
    logged once per call.  With ``strict=True`` the first bad row raises
    :class:`VptsParseError` instead.  A missing required column is always
    fatal.
"""

from __future__ import annotations

import logging
import math
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Tuple

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column layout
# ---------------------------------------------------------------------------

REQUIRED_COLUMNS: Tuple[str, ...] = ("datetime", "height", "dd", "ff", "dens", "sd_vvp")
FLOAT_COLUMNS: Tuple[str, ...] = ("dd", "ff", "dens", "sd_vvp")


class VptsParseError(ValueError):
    """
    Raised when VPTS data cannot be turned into typed records.

    Raised when:
    - A required column is missing from the source
    - A field fails to parse and ``strict`` parsing was requested
    """
    pass


class ProfileRecord(NamedTuple):
    """One altitude bin at one timestamp."""

    timestamp: pd.Timestamp
    height: int
    dd: float
    ff: float
    dens: float
    sd_vvp: float


class ProfileGroup(NamedTuple):
    """All records sharing one timestamp (order irrelevant)."""

    timestamp: pd.Timestamp
    records: Tuple[ProfileRecord, ...]


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any, field: str = "datetime") -> pd.Timestamp:
    """
    Parse a timestamp into a UTC-aware ``pandas.Timestamp``.

    Naive values are interpreted as UTC, matching the VPTS convention of
    ``2016-09-01T00:02:00Z``-style stamps.

    Raises:
        VptsParseError: For empty or unparseable input.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise VptsParseError(f"Field '{field}' is empty")
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError) as exc:
        raise VptsParseError(f"Field '{field}': cannot parse {value!r} as a date") from exc
    if ts is pd.NaT:
        raise VptsParseError(f"Field '{field}' is empty")
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def parse_float(value: Any, field: str) -> float:
    """
    Parse a floating point field.

    ``NaN`` is a legitimate float but not a legitimate measurement, so empty
    cells, ``NA`` and ``nan`` are all rejected.

    Raises:
        VptsParseError: For empty, non-numeric or NaN input.
    """
    if isinstance(value, bool):
        raise VptsParseError(f"Field '{field}': boolean {value!r} is not numeric")
    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise VptsParseError(f"Field '{field}' is empty")
    try:
        number = float(value)
    except (ValueError, TypeError) as exc:
        raise VptsParseError(f"Field '{field}': cannot parse {value!r} as a number") from exc
    if math.isnan(number):
        raise VptsParseError(f"Field '{field}' is NaN")
    return number


def parse_height(value: Any, field: str = "height") -> int:
    """
    Parse an altitude as an integer number of metres.

    Decimal input is truncated toward zero (``"250.9"`` -> ``250``).

    Raises:
        VptsParseError: For empty, non-numeric or infinite input.
    """
    number = parse_float(value, field)
    if math.isinf(number):
        raise VptsParseError(f"Field '{field}' is infinite")
    return int(number)


def parse_record(row: Mapping[str, Any]) -> ProfileRecord:
    """
    Build a :class:`ProfileRecord` from one raw CSV row.

    Args:
        row: Mapping of column name to raw value (e.g. a ``csv.DictReader``
            row).  Extra keys are ignored.

    Returns:
        The typed record.

    Raises:
        VptsParseError: If a required key is missing or a field fails to parse.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in row]
    if missing:
        raise VptsParseError(f"Row is missing required fields: {missing}")

    return ProfileRecord(
        timestamp=parse_timestamp(row["datetime"]),
        height=parse_height(row["height"]),
        dd=parse_float(row["dd"], "dd"),
        ff=parse_float(row["ff"], "ff"),
        dens=parse_float(row["dens"], "dens"),
        sd_vvp=parse_float(row["sd_vvp"], "sd_vvp"),
    )


# ---------------------------------------------------------------------------
# Frame-level parsing
# ---------------------------------------------------------------------------

def parse_frame(raw_df: pd.DataFrame, strict: bool = False) -> pd.DataFrame:
    """
    Cast an untyped VPTS DataFrame into a typed profile frame.

    Vectorised counterpart of :func:`parse_record`: every required column is
    coerced with ``errors='coerce'`` and rows where any coercion failed are
    collected into one invalid-row mask.

    Args:
        raw_df: DataFrame as read from CSV (any dtypes).
        strict: Raise on the first invalid row instead of dropping.

    Returns:
        New DataFrame with typed required columns, invalid rows removed and
        the index reset.  Original row order is preserved.

    Raises:
        VptsParseError: If required columns are missing, or if *strict* and
            any row is invalid.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in raw_df.columns]
    if missing:
        raise VptsParseError(f"VPTS data is missing required columns: {missing}")

    df = raw_df.copy()

    # stamps may mix Z, offset and naive forms within one file
    df["datetime"] = pd.to_datetime(df["datetime"], utc=True, errors="coerce", format="mixed")
    for col in ("height",) + FLOAT_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

    invalid = df["datetime"].isna()
    for col in ("height",) + FLOAT_COLUMNS:
        invalid |= df[col].isna()
    invalid |= np.isinf(df["height"])

    if invalid.any():
        first = int(np.flatnonzero(invalid.to_numpy())[0])
        bad_cols = [
            c for c in REQUIRED_COLUMNS
            if pd.isna(df[c].iloc[first]) or (c == "height" and np.isinf(df[c].iloc[first]))
        ]
        if strict:
            raise VptsParseError(
                f"Row {first} has unparseable required fields: {bad_cols}"
            )
        logger.warning(
            f"Dropped {int(invalid.sum())} of {len(df)} VPTS rows with "
            f"unparseable required fields (first at row {first}: {bad_cols})",
            extra={"dropped_rows": int(invalid.sum()), "total_rows": len(df)},
        )
        df = df.loc[~invalid].copy()

    df["height"] = np.trunc(df["height"]).astype(np.int64)
    return df.reset_index(drop=True)


def frame_to_records(df: pd.DataFrame) -> List[ProfileRecord]:
    """Convert a typed profile frame into a list of :class:`ProfileRecord`."""
    return [
        ProfileRecord(
            timestamp=row.datetime,
            height=int(row.height),
            dd=float(row.dd),
            ff=float(row.ff),
            dens=float(row.dens),
            sd_vvp=float(row.sd_vvp),
        )
        for row in df[list(REQUIRED_COLUMNS)].itertuples(index=False)
    ]


def records_to_frame(records: Iterable[ProfileRecord]) -> pd.DataFrame:
    """Convert profile records into a typed profile frame."""
    rows = list(records)
    if not rows:
        return pd.DataFrame(
            {
                "datetime": pd.Series([], dtype="datetime64[ns, UTC]"),
                "height": pd.Series([], dtype=np.int64),
                **{c: pd.Series([], dtype=float) for c in FLOAT_COLUMNS},
            }
        )
    df = pd.DataFrame(rows, columns=list(ProfileRecord._fields))
    df = df.rename(columns={"timestamp": "datetime"})
    df["datetime"] = pd.to_datetime(df["datetime"], utc=True)
    df["height"] = df["height"].astype(np.int64)
    for col in FLOAT_COLUMNS:
        df[col] = df[col].astype(float)
    return df


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def group_by_timestamp(records: Iterable[ProfileRecord]) -> List[ProfileGroup]:
    """
    Group records by timestamp, preserving first-seen group order.

    Two records with equal timestamps share a group regardless of their
    other fields; records keep their input order within a group.

    Args:
        records: Any iterable of :class:`ProfileRecord`.

    Returns:
        List of :class:`ProfileGroup`, one per distinct timestamp.
    """
    buckets: Dict[pd.Timestamp, List[ProfileRecord]] = {}
    for record in records:
        buckets.setdefault(record.timestamp, []).append(record)
    return [ProfileGroup(ts, tuple(recs)) for ts, recs in buckets.items()]


# ---------------------------------------------------------------------------
# Metadata inference
# ---------------------------------------------------------------------------

def infer_interval(df: pd.DataFrame) -> float:
    """
    Infer the altitude bin thickness from the height steps in the data.

    Uses the smallest positive difference between distinct heights.

    Raises:
        ValueError: If fewer than two distinct heights are present.
    """
    heights = np.unique(df["height"].to_numpy(dtype=float))
    if heights.size < 2:
        raise ValueError("Cannot infer bin interval from fewer than two distinct heights")
    return float(np.diff(heights).min())


def infer_vvp_threshold(df: pd.DataFrame, default: float = 2.0) -> float:
    """
    Read the radar's own ``sd_vvp_threshold`` column when present.

    Returns *default* when the column is absent or holds no numeric value.
    """
    if "sd_vvp_threshold" not in df.columns:
        return default
    values = pd.to_numeric(df["sd_vvp_threshold"], errors="coerce").dropna()
    if values.empty:
        return default
    return float(values.iloc[0])
