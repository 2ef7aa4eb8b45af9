"""
VPTS Data Loader (Imperative Shell)

Reads VPTS CSV files from disk or over HTTP(S) and hands the raw table to
the functional core for typing (``analysis.profiles.parse_frame``).

Package Location: src/vptsviz/data/loader.py

Failures to obtain the file are reported as :class:`VptsLoadError`, chained
to the underlying exception.  There is no retry.  Parse failures surface as
``VptsParseError`` from the core.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Union
from urllib.error import URLError
from urllib.parse import urlparse

import pandas as pd

from ..analysis.profiles import parse_frame

log = logging.getLogger(__name__)

_REMOTE_SCHEMES = ("http", "https", "ftp")

Source = Union[str, Path]


class VptsLoadError(IOError):
    """Raised when a VPTS source cannot be read or fetched."""
    pass


def is_remote(source: Source) -> bool:
    """Return ``True`` when *source* is a URL with a remote scheme."""
    if isinstance(source, Path):
        return False
    return urlparse(str(source)).scheme.lower() in _REMOTE_SCHEMES


def read_raw(source: Source) -> pd.DataFrame:
    """
    Read a VPTS CSV (local path or URL) into an untyped DataFrame.

    Every column is read as text so that typing is left entirely to
    ``parse_frame``; empty cells stay ``NaN``.

    Args:
        source: Local file path or ``http(s)://`` URL.

    Returns:
        Raw DataFrame, one row per altitude bin per timestamp.

    Raises:
        VptsLoadError: If the file is missing, unreadable, empty or the
            remote fetch fails.
    """
    if not is_remote(source):
        path = Path(source)
        if not path.exists():
            raise VptsLoadError(f"VPTS file not found: {path}")
        source = path

    try:
        raw_df = pd.read_csv(source, dtype=str, keep_default_na=True)
    except pd.errors.EmptyDataError as exc:
        raise VptsLoadError(f"VPTS source is empty: {source}") from exc
    except (OSError, URLError, pd.errors.ParserError) as exc:
        raise VptsLoadError(f"Failed to read VPTS source {source}: {exc}") from exc

    log.info(
        f"Read {len(raw_df)} rows from {source}",
        extra={"source": str(source), "rows": len(raw_df)},
    )
    return raw_df


def read_vpts(path: Source, strict: bool = False) -> pd.DataFrame:
    """
    Read and type a local VPTS CSV file.

    Args:
        path: Path to the CSV file.
        strict: Raise on the first unparseable row instead of dropping it.

    Returns:
        Typed profile frame (see ``analysis.profiles``).
    """
    return parse_frame(read_raw(Path(path)), strict=strict)


def fetch_vpts(url: str, strict: bool = False) -> pd.DataFrame:
    """
    Fetch and type a remote VPTS CSV file.

    Args:
        url: ``http(s)://`` or ``ftp://`` URL of the CSV.
        strict: Raise on the first unparseable row instead of dropping it.

    Returns:
        Typed profile frame.

    Raises:
        ValueError: If *url* is not a remote URL.
    """
    if not is_remote(url):
        raise ValueError(f"Not a remote URL: {url!r}")
    return parse_frame(read_raw(url), strict=strict)


def load_vpts(source: Source, strict: bool = False) -> pd.DataFrame:
    """Dispatch to :func:`fetch_vpts` or :func:`read_vpts` based on *source*."""
    if is_remote(source):
        return fetch_vpts(str(source), strict=strict)
    return read_vpts(source, strict=strict)
