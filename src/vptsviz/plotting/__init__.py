"""
vptsviz Plotting Package (Functional Core)

Pure plotting functions only – no file I/O, no side effects.
Every public function takes an immutable ``ChartConfig`` (size, title,
display timezone, data) and returns a ``plotly.graph_objects.Figure``.

Modules:
    config:  ChartConfig with chainable ``with_*`` setters returning copies.
    vpi:     MTR time series (NaN profiles rendered as gaps).
    vpts:    Time x height heatmap of a profile quantity.
    profile: Density / speed profile of a single timestamp.
"""

from .config import ChartConfig
from .vpi import plot_vpi
from .vpts import plot_vpts
from .profile import plot_profile

__all__ = [
    'ChartConfig',
    'plot_vpi',
    'plot_vpts',
    'plot_profile',
]
