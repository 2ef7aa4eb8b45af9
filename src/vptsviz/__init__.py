"""
vptsviz - Bird Radar Vertical Profile Time Series Visualisation

A modular Python package that turns VPTS CSV data into Migration Traffic
Rate series and interactive Plotly reports, using the Functional Core,
Imperative Shell architecture.

Structure:
- data/     : Imperative Shell (CSV reading, HTTP fetch)
- analysis/ : Functional Core (parsing, grouping, MTR integration)
- plotting/ : Pure Plotly figure builders driven by ChartConfig
- reports/  : Imperative Shell (report orchestration, HTML/CSV output)
- utils/    : Logging and timezone helpers
"""

__version__ = "0.1.0"
