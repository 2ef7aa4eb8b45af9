"""
Vertically Integrated Profile (MTR) Time-Series Plot (Functional Core)

Pure function – no file I/O, no side effects.
Input: ``ChartConfig`` whose ``data`` is a ``[datetime, mtr]`` DataFrame.
Output: plotly.graph_objects.Figure.

Package Location: src/vptsviz/plotting/vpi.py

Missing values:
    Timestamps whose MTR is NaN (no bin survived filtering) are kept on the
    x-axis and drawn as a break in the line (``connectgaps=False``) so that
    data gaps stay visible instead of being bridged.
"""

from __future__ import annotations

import numpy as np
import pandas as pd
import plotly.graph_objects as go

from ..utils.timezone import localize_series
from .config import ChartConfig

_LINE_COLOR = 'steelblue'


def plot_vpi(config: ChartConfig) -> go.Figure:
    """
    Build the MTR time-series chart.

    Args:
        config: Chart configuration.  ``config.data`` must be a DataFrame
            with columns::

                datetime : datetime-like (UTC if naive)
                mtr      : float, NaN where no data survived filtering

            An optional ``vid`` column adds a second trace on a secondary
            y-axis.

    Returns:
        ``plotly.graph_objects.Figure`` ready for ``fig.show()`` or
        serialisation.

    Raises:
        ValueError: If no data is set or required columns are missing.
    """
    df = config.require_data()
    _validate_columns(df, required=['datetime', 'mtr'])

    df = df.copy()
    df['datetime'] = localize_series(df['datetime'], config.timezone)
    df = df.sort_values('datetime')

    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=df['datetime'],
        y=df['mtr'],
        mode='lines+markers',
        line=dict(color=_LINE_COLOR, width=2),
        marker=dict(size=4),
        connectgaps=False,
        name='MTR',
        hovertemplate=(
            "<b>MTR</b><br>"
            "Time: %{x}<br>"
            "MTR: %{y:.1f} birds/km/h<extra></extra>"
        ),
    ))

    has_vid = 'vid' in df.columns
    if has_vid:
        fig.add_trace(go.Scatter(
            x=df['datetime'],
            y=df['vid'],
            mode='lines',
            line=dict(color='darkorange', width=1, dash='dot'),
            connectgaps=False,
            name='VID',
            yaxis='y2',
            hovertemplate=(
                "<b>VID</b><br>"
                "Time: %{x}<br>"
                "VID: %{y:.1f} birds/km²<extra></extra>"
            ),
        ))

    n_missing = int(np.isnan(df['mtr'].to_numpy(dtype=float)).sum())
    title = config.title or 'Migration Traffic Rate'
    if n_missing:
        title = f'{title} ({n_missing} profiles without data)'

    layout = dict(
        title=title,
        width=config.width,
        height=config.height,
        xaxis=dict(title=f'Time ({_tz_label(df["datetime"])})', type='date'),
        yaxis=dict(title='MTR [birds/km/h]', rangemode='tozero'),
        hovermode='x unified',
        template='plotly_white',
        showlegend=has_vid,
    )
    if has_vid:
        layout['yaxis2'] = dict(
            title='VID [birds/km²]',
            overlaying='y',
            side='right',
            rangemode='tozero',
            showgrid=False,
        )
    fig.update_layout(**layout)

    return fig


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _validate_columns(df: pd.DataFrame, required: list[str]) -> None:
    """
    Raise ValueError if any required columns are absent.

    Args:
        df: DataFrame to check.
        required: List of column names that must be present.

    Raises:
        ValueError: Listing the missing columns.
    """
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"MTR data is missing required columns: {missing}"
        )


def _tz_label(series: pd.Series) -> str:
    tz = series.dt.tz
    return str(tz) if tz is not None else 'UTC'
