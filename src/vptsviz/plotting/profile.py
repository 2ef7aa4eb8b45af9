"""
Single Vertical Profile Plot (Functional Core)

Pure function – no file I/O, no side effects.
Input: ``ChartConfig`` whose ``data`` is one ``ProfileGroup`` (or a profile
frame holding a single timestamp).
Output: plotly.graph_objects.Figure with two panels sharing the height axis:
density (left) and ground speed (right).

Package Location: src/vptsviz/plotting/profile.py

Quality flag:
    Bins with ``sd_vvp`` below ``vvp_thresh`` are drawn in grey so that the
    bins excluded from the MTR remain visible but distinguishable.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from ..analysis.mtr import DEFAULT_VVP_THRESH
from ..analysis.profiles import ProfileGroup, records_to_frame
from ..utils.timezone import resolve_pytz
from .config import ChartConfig

_OK_COLOR = 'steelblue'
_LOW_QUALITY_COLOR = 'lightgray'


def plot_profile(
    config: ChartConfig,
    vvp_thresh: float = DEFAULT_VVP_THRESH,
) -> go.Figure:
    """
    Build the density / speed profile of one timestamp.

    Args:
        config: Chart configuration.  ``config.data`` is a
            :class:`ProfileGroup` or a profile frame with a single distinct
            ``datetime``.
        vvp_thresh: Bins with ``sd_vvp`` below this are greyed out.

    Returns:
        ``plotly.graph_objects.Figure``.

    Raises:
        ValueError: If no data is set, or a frame spans several timestamps.
    """
    data = config.require_data()

    if isinstance(data, ProfileGroup):
        df = records_to_frame(data.records)
        timestamp = data.timestamp
    else:
        df = data
        stamps = pd.unique(df['datetime'])
        if len(stamps) != 1:
            raise ValueError(
                f"plot_profile needs exactly one timestamp, got {len(stamps)}"
            )
        timestamp = pd.Timestamp(stamps[0])

    df = df.sort_values('height')
    ok = (df['sd_vvp'] >= vvp_thresh).to_numpy()
    colors = np.where(ok, _OK_COLOR, _LOW_QUALITY_COLOR)

    fig = make_subplots(
        rows=1, cols=2,
        shared_yaxes=True,
        horizontal_spacing=0.04,
        subplot_titles=['Density', 'Ground speed'],
    )

    customdata = np.column_stack([df['dd'], df['sd_vvp']])

    fig.add_trace(go.Bar(
        x=df['dens'],
        y=df['height'],
        orientation='h',
        marker=dict(color=colors),
        name='dens',
        customdata=customdata,
        hovertemplate=(
            "Height: %{y} m<br>"
            "Density: %{x:.2f} birds/km³<br>"
            "sd_vvp: %{customdata[1]:.2f}<extra></extra>"
        ),
    ), row=1, col=1)

    fig.add_trace(go.Scatter(
        x=df['ff'],
        y=df['height'],
        mode='markers+lines',
        marker=dict(color=colors, size=7),
        line=dict(color=_LOW_QUALITY_COLOR, width=1),
        name='ff',
        customdata=customdata,
        hovertemplate=(
            "Height: %{y} m<br>"
            "Speed: %{x:.1f} m/s<br>"
            "Direction: %{customdata[0]:.0f}°<extra></extra>"
        ),
    ), row=1, col=2)

    title = config.title or 'Vertical Profile'
    fig.update_layout(
        title=f'{title} – {_format_timestamp(timestamp, config.timezone)}',
        width=config.width,
        height=config.height,
        showlegend=False,
        template='plotly_white',
        bargap=0.05,
    )
    fig.update_yaxes(title_text='Height [m]', row=1, col=1)
    fig.update_xaxes(title_text='dens [birds/km³]', rangemode='tozero', row=1, col=1)
    fig.update_xaxes(title_text='ff [m/s]', rangemode='tozero', row=1, col=2)
    return fig


def _format_timestamp(ts: pd.Timestamp, tz_string: Optional[str]) -> str:
    ts = pd.Timestamp(ts)
    if ts.tzinfo is None:
        ts = ts.tz_localize('UTC')
    return ts.tz_convert(resolve_pytz(tz_string)).strftime('%Y-%m-%d %H:%M %Z')
