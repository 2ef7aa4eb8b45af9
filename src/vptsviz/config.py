"""
Run Settings

Aggregator and rendering parameters for one run, loaded from an optional
``settings.json`` and overridden by CLI flags.

Package Location: src/vptsviz/config.py

Example ``settings.json``::

    {
        "alt_min": 200,
        "alt_max": null,
        "interval": null,
        "vvp_thresh": 2,
        "alpha": null,
        "title": "bejab 2016-09-01",
        "timezone": "Europe/Brussels",
        "width": 960,
        "height": 420
    }

``alt_max: null`` means no upper bound.  ``interval: null`` and
``vvp_thresh: null`` mean "infer from the data" (bin spacing and the
``sd_vvp_threshold`` column respectively).
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd

from .analysis.mtr import (
    DEFAULT_ALT_MAX,
    DEFAULT_ALT_MIN,
    DEFAULT_INTERVAL,
    DEFAULT_VVP_THRESH,
)
from .analysis.profiles import infer_interval, infer_vvp_threshold

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    """Parameters of one MTR computation and report run."""

    # --- Aggregation ---
    alt_min: float = DEFAULT_ALT_MIN
    alt_max: float = DEFAULT_ALT_MAX
    interval: Optional[float] = DEFAULT_INTERVAL   # None -> infer from data
    vvp_thresh: Optional[float] = DEFAULT_VVP_THRESH  # None -> infer from data
    alpha: Optional[float] = None
    legacy_cosine: bool = False
    strict: bool = False

    # --- Rendering ---
    title: Optional[str] = None
    timezone: Optional[str] = None
    width: int = 960
    height: int = 420

    def merged(self, **overrides: Any) -> "Settings":
        """Return a copy with every non-``None`` override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown settings: {sorted(unknown)}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def mtr_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for ``compute_mtr`` / ``integrate_profile``.

        ``interval`` and ``vvp_thresh`` must already be resolved.
        """
        if self.interval is None or self.vvp_thresh is None:
            raise ValueError("interval and vvp_thresh must be resolved before use")
        return {
            "alt_min": self.alt_min,
            "alt_max": self.alt_max,
            "interval": self.interval,
            "vvp_thresh": self.vvp_thresh,
            "alpha": self.alpha,
            "legacy_cosine": self.legacy_cosine,
        }

    def resolved_for(self, profiles: pd.DataFrame) -> "Settings":
        """Fill ``interval`` / ``vvp_thresh`` from *profiles* where unset.

        Args:
            profiles: Typed profile frame.

        Returns:
            Settings with both values resolved.
        """
        settings = self
        if settings.interval is None:
            interval = infer_interval(profiles)
            logger.info(f"Inferred bin interval: {interval} m", extra={"interval": interval})
            settings = replace(settings, interval=interval)
        if settings.vvp_thresh is None:
            thresh = infer_vvp_threshold(profiles)
            logger.info(f"Using sd_vvp threshold: {thresh}", extra={"vvp_thresh": thresh})
            settings = replace(settings, vvp_thresh=thresh)
        return settings

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dict (infinite ``alt_max`` becomes ``None``)."""
        data = asdict(self)
        if data["alt_max"] == math.inf:
            data["alt_max"] = None
        return data


def load_settings(path: Path) -> Settings:
    """
    Read a ``settings.json`` file into :class:`Settings`.

    Args:
        path: Path to the JSON file.

    Returns:
        Settings with defaults for every key the file omits.

    Raises:
        FileNotFoundError: If *path* does not exist.
        ValueError: If the file is not a JSON object or has unknown keys.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Settings file not found: {path}")

    try:
        with path.open() as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Failed to parse {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a JSON object")

    known = {f.name for f in fields(Settings)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"Unknown keys in {path}: {sorted(unknown)}")

    if "alt_max" in raw and raw["alt_max"] is None:
        raw["alt_max"] = math.inf
    if "alt_min" in raw and raw["alt_min"] is None:
        raw["alt_min"] = DEFAULT_ALT_MIN

    return Settings(**raw)
