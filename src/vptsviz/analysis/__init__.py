"""
vptsviz Analysis Package (Functional Core)

This package contains pure transformation functions with no I/O.
All functions accept data structures (DataFrames, records) and
return transformed data.

Modules:
- profiles: Typed profile records, field parsing, grouping by timestamp
- mtr:      Migration Traffic Rate and vertical integration
"""

from .profiles import (
    REQUIRED_COLUMNS,
    VptsParseError,
    ProfileRecord,
    ProfileGroup,
    parse_timestamp,
    parse_float,
    parse_height,
    parse_record,
    parse_frame,
    frame_to_records,
    records_to_frame,
    group_by_timestamp,
    infer_interval,
    infer_vvp_threshold,
)

from .mtr import (
    InvalidArgument,
    MtrResult,
    compute_mtr,
    mtr_series,
    mtr_results,
    integrate_profile,
    results_to_frame,
)

__all__ = [
    # Profiles
    'REQUIRED_COLUMNS',
    'VptsParseError',
    'ProfileRecord',
    'ProfileGroup',
    'parse_timestamp',
    'parse_float',
    'parse_height',
    'parse_record',
    'parse_frame',
    'frame_to_records',
    'records_to_frame',
    'group_by_timestamp',
    'infer_interval',
    'infer_vvp_threshold',
    # MTR
    'InvalidArgument',
    'MtrResult',
    'compute_mtr',
    'mtr_series',
    'mtr_results',
    'integrate_profile',
    'results_to_frame',
]
