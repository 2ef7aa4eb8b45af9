"""
vptsviz Data Package (Imperative Shell)

This package handles all I/O for the vptsviz system: obtaining VPTS CSV
files from disk or over HTTP and passing them to the functional core.

Modules:
- loader: Local/remote CSV reading and typed profile frame construction
"""

from .loader import (
    VptsLoadError,
    is_remote,
    read_raw,
    read_vpts,
    fetch_vpts,
    load_vpts,
)

__all__ = [
    'VptsLoadError',
    'is_remote',
    'read_raw',
    'read_vpts',
    'fetch_vpts',
    'load_vpts',
]
