"""
Vertical Profile Time-Series Plot (Functional Core)

Pure function – no file I/O, no side effects.
Input: ``ChartConfig`` whose ``data`` is a typed profile frame.
Output: plotly.graph_objects.Figure (time x height heatmap).

Package Location: src/vptsviz/plotting/vpts.py

Cell values:
    One cell per (timestamp, height).  Duplicate bins are averaged.  Bins
    that are absent from a profile, or whose ``sd_vvp`` falls below
    ``vvp_thresh`` when one is given, are left empty (NaN) rather than drawn
    as zero.
"""

from __future__ import annotations

from typing import Dict, Optional

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from ..utils.timezone import localize_series
from .config import ChartConfig

# quantity -> (colorbar title, colorscale)
_QUANTITIES: Dict[str, tuple] = {
    'dens':   ('Density [birds/km³]', 'Viridis'),
    'ff':     ('Speed [m/s]',         'Plasma'),
    'dd':     ('Direction [°]',       'Twilight'),
    'sd_vvp': ('sd_vvp [m/s]',        'Cividis'),
}


def plot_vpts(
    config: ChartConfig,
    quantity: str = 'dens',
    vvp_thresh: Optional[float] = None,
) -> go.Figure:
    """
    Build a time x height heatmap of one profile quantity.

    Args:
        config: Chart configuration.  ``config.data`` must be a profile frame
            with at least ``datetime``, ``height``, ``sd_vvp`` and the
            *quantity* column.
        quantity: Column to colour by: ``'dens'`` (default), ``'ff'``,
            ``'dd'`` or ``'sd_vvp'``.
        vvp_thresh: When given, blank out bins with ``sd_vvp`` below it.

    Returns:
        ``plotly.graph_objects.Figure``.

    Raises:
        ValueError: If no data is set, *quantity* is unknown or required
            columns are missing.
    """
    if quantity not in _QUANTITIES:
        raise ValueError(
            f"Unknown quantity '{quantity}'; expected one of {sorted(_QUANTITIES)}"
        )
    df = config.require_data()
    _validate_columns(df, required=['datetime', 'height', 'sd_vvp', quantity])

    df = df[['datetime', 'height', 'sd_vvp', quantity]].copy()
    df['datetime'] = localize_series(df['datetime'], config.timezone)

    if vvp_thresh is not None:
        df.loc[df['sd_vvp'] < vvp_thresh, quantity] = np.nan

    grid = df.pivot_table(
        index='height',
        columns='datetime',
        values=quantity,
        aggfunc='mean',
        dropna=False,
    ).sort_index()

    colorbar_title, colorscale = _QUANTITIES[quantity]

    fig = go.Figure(go.Heatmap(
        x=grid.columns,
        y=grid.index,
        z=grid.to_numpy(dtype=float),
        colorscale=colorscale,
        colorbar=dict(title=colorbar_title),
        hoverongaps=False,
        hovertemplate=(
            "Time: %{x}<br>"
            "Height: %{y} m<br>"
            f"{quantity}: " "%{z:.2f}<extra></extra>"
        ),
    ))

    fig.update_layout(
        title=config.title or 'Vertical Profile Time Series',
        width=config.width,
        height=config.height,
        xaxis=dict(title='Time', type='date'),
        yaxis=dict(title='Height [m]', rangemode='tozero'),
        template='plotly_white',
    )
    return fig


def _validate_columns(df: pd.DataFrame, required: list[str]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"Profile data is missing required columns: {missing}"
        )
