"""
Migration Traffic Rate Calculations (Functional Core)

Pure functions only. No I/O, no side effects apart from one warning log
record for a degenerate altitude window.

Package Location: src/vptsviz/analysis/mtr.py

MTR per timestamp:
    For all altitude bins of one profile, clamp the requested altitude
    window to the heights actually observed (the top bin is reported by its
    lower edge, hence ``+ interval``), keep bins whose ``sd_vvp`` reaches the
    quality threshold, and sum ``weight * ff * dens * 3.6`` over them.  The
    sum is scaled by ``0.001 * interval`` (bin thickness in km).  With ``ff``
    in m/s and ``dens`` in birds/km^3 the result is birds/km/h.

    ``NaN`` is returned when no bin survives the filters.  It is a valid
    "missing" data point, not an error.

Directional weighting:
    With ``alpha`` (degrees) set, each bin is weighted by the cosine of the
    angle between its track ``dd`` and ``alpha``, i.e.
    ``cos(radians(dd - alpha))``.  ``legacy_cosine=True`` reproduces the
    earlier formula ``cos(dd - alpha) * pi / 180``, which takes the cosine
    of a degree value; it exists only to compare against results produced
    with that formula.
"""

from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .profiles import REQUIRED_COLUMNS, ProfileGroup, ProfileRecord, group_by_timestamp

logger = logging.getLogger(__name__)

# km/h per m/s
_MS_TO_KMH: float = 3.6
# interval (m) -> km
_M_TO_KM: float = 0.001

DEFAULT_ALT_MIN: float = 0.0
DEFAULT_ALT_MAX: float = math.inf
DEFAULT_INTERVAL: float = 200.0
DEFAULT_VVP_THRESH: float = 2.0

ProfileData = Union[pd.DataFrame, ProfileGroup, Sequence[ProfileRecord]]


class InvalidArgument(ValueError):
    """
    Raised when an MTR parameter is not a usable number.

    Raised when:
    - ``alt_min`` is not a finite real number
    - ``alt_max`` is neither a finite real number nor ``+inf``
    - ``alpha`` is given but is not a finite real number
    - ``interval`` is not a finite positive number, or ``vvp_thresh`` is
      not a finite real number
    """
    pass


class MtrResult(NamedTuple):
    """MTR of one profile; ``mtr`` is NaN when no bin survived filtering."""

    timestamp: pd.Timestamp
    mtr: float


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def compute_mtr(
    data: ProfileData,
    alt_min: float = DEFAULT_ALT_MIN,
    alt_max: float = DEFAULT_ALT_MAX,
    interval: float = DEFAULT_INTERVAL,
    vvp_thresh: float = DEFAULT_VVP_THRESH,
    alpha: Optional[float] = None,
    legacy_cosine: bool = False,
) -> float:
    """
    Compute the Migration Traffic Rate of a single vertical profile.

    Args:
        data: The altitude bins of one timestamp, as a profile frame
            (columns ``height, dd, ff, dens, sd_vvp``), a
            :class:`ProfileGroup` or a sequence of :class:`ProfileRecord`.
            Treated as an unordered set.
        alt_min: Lower altitude bound in metres (inclusive).
        alt_max: Upper altitude bound in metres (inclusive), may be ``inf``.
        interval: Bin thickness in metres.
        vvp_thresh: Minimum ``sd_vvp`` for a bin to count.
        alpha: Migration direction in degrees for directional weighting;
            ``None`` weights every bin with 1.
        legacy_cosine: Use ``cos(dd - alpha) * pi / 180`` instead of
            ``cos(radians(dd - alpha))``.

    Returns:
        MTR as a float, or ``NaN`` when no bin survives the filters.

    Raises:
        InvalidArgument: If a parameter is not a usable number.

    Example:
        >>> rec = ProfileRecord(pd.Timestamp("2016-09-01", tz="UTC"), 200, 0.0, 10.0, 5.0, 3.0)
        >>> compute_mtr([rec])
        36.0
    """
    _validate_params(alt_min, alt_max, interval, vvp_thresh, alpha)
    _warn_degenerate_window(alt_min, alt_max)
    bins = _bin_arrays(data)
    return _mtr_from_arrays(
        bins, alt_min, alt_max, interval, vvp_thresh, alpha, legacy_cosine
    )


def mtr_series(
    df: pd.DataFrame,
    alt_min: float = DEFAULT_ALT_MIN,
    alt_max: float = DEFAULT_ALT_MAX,
    interval: float = DEFAULT_INTERVAL,
    vvp_thresh: float = DEFAULT_VVP_THRESH,
    alpha: Optional[float] = None,
    legacy_cosine: bool = False,
) -> pd.DataFrame:
    """
    Compute the MTR for every timestamp of a profile frame.

    Parameters are validated once for the whole series (and a degenerate
    window warned about once), then each timestamp group is aggregated with
    the same rules as :func:`compute_mtr`.

    Args:
        df: Typed profile frame with a ``datetime`` column.
        alt_min, alt_max, interval, vvp_thresh, alpha, legacy_cosine:
            See :func:`compute_mtr`.

    Returns:
        DataFrame with columns ``[datetime, mtr]``, one row per distinct
        timestamp in first-seen order.  Empty input gives an empty frame with
        the same columns.
    """
    result = integrate_profile(
        df,
        alt_min=alt_min,
        alt_max=alt_max,
        interval=interval,
        vvp_thresh=vvp_thresh,
        alpha=alpha,
        legacy_cosine=legacy_cosine,
    )
    return result[["datetime", "mtr"]]


def integrate_profile(
    df: pd.DataFrame,
    alt_min: float = DEFAULT_ALT_MIN,
    alt_max: float = DEFAULT_ALT_MAX,
    interval: float = DEFAULT_INTERVAL,
    vvp_thresh: float = DEFAULT_VVP_THRESH,
    alpha: Optional[float] = None,
    legacy_cosine: bool = False,
) -> pd.DataFrame:
    """
    Vertically integrate every profile of a profile frame.

    Alongside the MTR this reports the vertically integrated density
    ``vid = 0.001 * interval * sum(dens)`` (birds/km^2) over the same bins
    that feed the MTR, and ``n_bins``, the number of those bins.

    Args:
        df: Typed profile frame with a ``datetime`` column.
        alt_min, alt_max, interval, vvp_thresh, alpha, legacy_cosine:
            See :func:`compute_mtr`.

    Returns:
        DataFrame with columns ``[datetime, mtr, vid, n_bins]`` in first-seen
        timestamp order.  ``mtr`` and ``vid`` are NaN where ``n_bins == 0``.

    Raises:
        ValueError: If a required column is missing or a row has no
            ``datetime``.
    """
    _validate_params(alt_min, alt_max, interval, vvp_thresh, alpha)
    _warn_degenerate_window(alt_min, alt_max)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Profile frame is missing required columns: {missing}")
    n_undated = int(df["datetime"].isna().sum())
    if n_undated:
        raise ValueError(f"Profile frame has {n_undated} rows without a datetime")

    rows: List[Dict[str, Any]] = []
    for ts, grp in df.groupby("datetime", sort=False):
        bins = _bin_arrays(grp)
        selected = _select_bins(bins, alt_min, alt_max, interval, vvp_thresh)
        n_bins = int(selected["height"].size) if selected is not None else 0
        rows.append({
            "datetime": ts,
            "mtr": _mtr_from_selected(selected, interval, alpha, legacy_cosine),
            "vid": _vid_from_selected(selected, interval),
            "n_bins": n_bins,
        })

    if not rows:
        return pd.DataFrame(
            {
                "datetime": pd.Series([], dtype=df["datetime"].dtype),
                "mtr": pd.Series([], dtype=float),
                "vid": pd.Series([], dtype=float),
                "n_bins": pd.Series([], dtype=np.int64),
            }
        )
    return pd.DataFrame(rows, columns=["datetime", "mtr", "vid", "n_bins"])


def mtr_results(
    records: Iterable[ProfileRecord],
    alt_min: float = DEFAULT_ALT_MIN,
    alt_max: float = DEFAULT_ALT_MAX,
    interval: float = DEFAULT_INTERVAL,
    vvp_thresh: float = DEFAULT_VVP_THRESH,
    alpha: Optional[float] = None,
    legacy_cosine: bool = False,
) -> List[MtrResult]:
    """
    Record-based pipeline: group records by timestamp and aggregate each.

    Returns:
        One :class:`MtrResult` per timestamp, in first-seen order.
    """
    _validate_params(alt_min, alt_max, interval, vvp_thresh, alpha)
    _warn_degenerate_window(alt_min, alt_max)
    return [
        MtrResult(
            group.timestamp,
            _mtr_from_arrays(
                _bin_arrays(group),
                alt_min, alt_max, interval, vvp_thresh, alpha, legacy_cosine,
            ),
        )
        for group in group_by_timestamp(records)
    ]


def results_to_frame(results: Iterable[MtrResult]) -> pd.DataFrame:
    """Convert :class:`MtrResult` items to a ``[datetime, mtr]`` DataFrame."""
    items = list(results)
    return pd.DataFrame(
        {
            "datetime": pd.to_datetime([r.timestamp for r in items], utc=True),
            "mtr": np.array([r.mtr for r in items], dtype=float),
        }
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _is_real(value: Any) -> bool:
    # bool is an Integral subclass, but True/False are not altitudes.
    return isinstance(value, numbers.Real) and not isinstance(value, (bool, np.bool_))


def _validate_params(
    alt_min: Any,
    alt_max: Any,
    interval: Any,
    vvp_thresh: Any,
    alpha: Any,
) -> None:
    """Raise :class:`InvalidArgument` for unusable parameters."""
    if not _is_real(alt_min) or not math.isfinite(alt_min):
        raise InvalidArgument(f"alt_min must be a finite number, got {alt_min!r}")
    if not _is_real(alt_max) or not (math.isfinite(alt_max) or alt_max == math.inf):
        raise InvalidArgument(
            f"alt_max must be a finite number or +inf, got {alt_max!r}"
        )
    if alpha is not None and (not _is_real(alpha) or not math.isfinite(alpha)):
        raise InvalidArgument(
            f"alpha must be a finite number of degrees or None, got {alpha!r}"
        )
    if not _is_real(interval) or not math.isfinite(interval) or interval <= 0:
        raise InvalidArgument(
            f"interval must be a finite positive number, got {interval!r}"
        )
    if not _is_real(vvp_thresh) or not math.isfinite(vvp_thresh):
        raise InvalidArgument(f"vvp_thresh must be a finite number, got {vvp_thresh!r}")


def _warn_degenerate_window(alt_min: float, alt_max: float) -> None:
    if alt_max <= alt_min:
        logger.warning(
            f"alt_min ({alt_min}) should be smaller than alt_max ({alt_max})",
            extra={"alt_min": alt_min, "alt_max": alt_max},
        )


def _bin_arrays(data: ProfileData) -> Dict[str, np.ndarray]:
    """Extract float arrays ``height, dd, ff, dens, sd_vvp`` from any input form."""
    fields = ("height", "dd", "ff", "dens", "sd_vvp")

    if isinstance(data, pd.DataFrame):
        missing = [c for c in fields if c not in data.columns]
        if missing:
            raise ValueError(f"Profile data is missing required columns: {missing}")
        return {f: data[f].to_numpy(dtype=float) for f in fields}

    records = data.records if isinstance(data, ProfileGroup) else data
    return {
        f: np.array([getattr(r, f) for r in records], dtype=float)
        for f in fields
    }


def _select_bins(
    bins: Dict[str, np.ndarray],
    alt_min: float,
    alt_max: float,
    interval: float,
    vvp_thresh: float,
) -> Optional[Dict[str, np.ndarray]]:
    """
    Apply the altitude window and quality filter.

    Returns:
        The surviving bins, or ``None`` when nothing survives.
    """
    heights = bins["height"]
    if heights.size == 0:
        return None

    eff_min = max(alt_min, float(np.nanmin(heights)))
    eff_max = min(alt_max, float(np.nanmax(heights)) + interval)

    mask = (heights >= eff_min) & (heights <= eff_max)
    mask &= bins["sd_vvp"] >= vvp_thresh

    if not mask.any():
        return None
    return {name: values[mask] for name, values in bins.items()}


def _mtr_from_arrays(
    bins: Dict[str, np.ndarray],
    alt_min: float,
    alt_max: float,
    interval: float,
    vvp_thresh: float,
    alpha: Optional[float],
    legacy_cosine: bool,
) -> float:
    selected = _select_bins(bins, alt_min, alt_max, interval, vvp_thresh)
    return _mtr_from_selected(selected, interval, alpha, legacy_cosine)


def _mtr_from_selected(
    selected: Optional[Dict[str, np.ndarray]],
    interval: float,
    alpha: Optional[float],
    legacy_cosine: bool,
) -> float:
    if selected is None:
        return math.nan

    if alpha is None:
        weight = np.ones_like(selected["dd"])
    elif legacy_cosine:
        weight = np.cos(selected["dd"] - alpha) * np.pi / 180
    else:
        weight = np.cos(np.radians(selected["dd"] - alpha))

    contrib = weight * selected["ff"] * selected["dens"] * _MS_TO_KMH
    contrib = contrib[~np.isnan(contrib)]

    return float(_M_TO_KM * interval * contrib.sum())


def _vid_from_selected(
    selected: Optional[Dict[str, np.ndarray]],
    interval: float,
) -> float:
    if selected is None:
        return math.nan
    dens = selected["dens"]
    return float(_M_TO_KM * interval * dens[~np.isnan(dens)].sum())
