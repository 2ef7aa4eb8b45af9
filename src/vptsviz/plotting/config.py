"""
Chart Configuration

Immutable configuration passed to the pure plotting functions.  Every
``with_*`` setter returns a new :class:`ChartConfig`, so one base config can
be shared between several charts without one chart's changes leaking into
another::

    base = ChartConfig().with_width(500).with_height(250)
    first = plot_vpi(base.with_data(mtr_day1))
    second = plot_vpi(base.with_data(mtr_day2))

Package Location: src/vptsviz/plotting/config.py
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional


@dataclass(frozen=True)
class ChartConfig:
    """Size, labelling and data of one chart."""

    width: int = 960
    height: int = 420
    title: Optional[str] = None
    timezone: Optional[str] = None
    data: Any = None

    def __post_init__(self) -> None:
        for name in ("width", "height"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")

    def with_width(self, width: int) -> "ChartConfig":
        return replace(self, width=width)

    def with_height(self, height: int) -> "ChartConfig":
        return replace(self, height=height)

    def with_title(self, title: Optional[str]) -> "ChartConfig":
        return replace(self, title=title)

    def with_timezone(self, timezone: Optional[str]) -> "ChartConfig":
        return replace(self, timezone=timezone)

    def with_data(self, data: Any) -> "ChartConfig":
        return replace(self, data=data)

    def require_data(self) -> Any:
        """Return ``data`` or raise ``ValueError`` when it was never set."""
        if self.data is None:
            raise ValueError("ChartConfig has no data; call with_data(...) first")
        return self.data
