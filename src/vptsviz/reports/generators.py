"""
vptsviz Report Generator (Imperative Shell)

Thin orchestration layer: loads a VPTS source through ``data.loader``,
resolves data-derived settings, calls the functional core to integrate the
profiles, calls the plotting functions to build figures, writes CSV/HTML.

No analysis logic lives here.

Package Location: src/vptsviz/reports/generators.py

Usage::

    from pathlib import Path
    from vptsviz.config import Settings
    from vptsviz.reports.generators import ReportGenerator

    gen = ReportGenerator(output_dir=Path("reports"), settings=Settings(alt_min=200))
    gen.generate("data/example_vpts_20160901.csv")
    # Writes:
    #   reports/example_vpts_20160901/mtr.csv
    #   reports/example_vpts_20160901/VPI_MTR.html
    #   reports/example_vpts_20160901/VPTS_Profile.html
    #   reports/example_vpts_20160901/Profile_Peak.html
    #   reports/example_vpts_20160901/index.html
"""

from __future__ import annotations

import html
import logging
from pathlib import Path, PurePosixPath
from typing import Dict, Optional
from urllib.parse import urlparse

import pandas as pd
import plotly.graph_objects as go

from ..analysis.mtr import integrate_profile
from ..config import Settings
from ..data.loader import Source, is_remote, load_vpts
from ..plotting import ChartConfig, plot_profile, plot_vpi, plot_vpts

log = logging.getLogger(__name__)

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: sans-serif; margin: 1.5em; }}
.chart {{ margin-bottom: 2em; }}
</style>
</head>
<body>
<h1>{title}</h1>
<p>{summary}</p>
{charts}
</body>
</html>
"""


class ReportGenerator:
    """
    Generates and saves the MTR / VPTS report set for one VPTS source.

    Responsibilities
    ----------------
    - Load and type the source via ``data.loader``.
    - Resolve ``interval`` / ``vvp_thresh`` from the data when the settings
      leave them unset.
    - Call the functional core (``integrate_profile``) and the pure plotting
      functions.
    - Write the MTR table and the Plotly figures to disk.

    Args:
        output_dir: Root directory for report output.  A sub-directory named
            after the source file stem is created for each source.
        settings: Aggregation and rendering parameters.
    """

    def __init__(self, output_dir: Path, settings: Optional[Settings] = None) -> None:
        self.output_dir = Path(output_dir)
        self.settings = settings or Settings()

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def generate(self, source: Source) -> Dict[str, Path]:
        """
        Produce every report file for *source*.

        Errors in individual charts are caught and printed so that a failure
        in one chart does not prevent the others from being saved.  Load and
        parse errors are not caught.

        Args:
            source: Local path or URL of the VPTS CSV.

        Returns:
            Mapping of output name (``'mtr_csv'``, ``'vpi'``, ``'vpts'``,
            ``'profile'``, ``'index'``) to the written path.
        """
        name = _source_stem(source)
        report_dir = self.output_dir / name
        report_dir.mkdir(parents=True, exist_ok=True)

        print(f"[{name}] Loading {source}…")
        profiles = load_vpts(source, strict=self.settings.strict)
        if profiles.empty:
            print(f"[{name}] No valid profile rows – skipping")
            return {}

        settings = self.settings.resolved_for(profiles)
        integrated = integrate_profile(profiles, **settings.mtr_kwargs())
        written: Dict[str, Path] = {}

        csv_path = report_dir / 'mtr.csv'
        write_mtr_csv(integrated, csv_path)
        written['mtr_csv'] = csv_path
        print(f"[{name}] MTR table saved → {csv_path}")

        base = (
            ChartConfig()
            .with_width(settings.width)
            .with_height(settings.height)
            .with_timezone(settings.timezone)
        )
        figures: Dict[str, go.Figure] = {}

        # ---- MTR time series ----
        try:
            figures['vpi'] = plot_vpi(
                base.with_title(_chart_title(settings.title, 'Migration Traffic Rate'))
                .with_data(integrated)
            )
            out_path = report_dir / 'VPI_MTR.html'
            figures['vpi'].write_html(str(out_path))
            written['vpi'] = out_path
            print(f"[{name}] MTR chart saved → {out_path}")
        except Exception as exc:
            print(f"[{name}] MTR chart FAILED: {exc}")
            log.exception("MTR chart failed", extra={"source": str(source)})

        # ---- Profile heatmap ----
        try:
            figures['vpts'] = plot_vpts(
                base.with_title(_chart_title(settings.title, 'Vertical Profile Time Series'))
                .with_data(profiles),
                vvp_thresh=settings.vvp_thresh,
            )
            out_path = report_dir / 'VPTS_Profile.html'
            figures['vpts'].write_html(str(out_path))
            written['vpts'] = out_path
            print(f"[{name}] Profile chart saved → {out_path}")
        except Exception as exc:
            print(f"[{name}] Profile chart FAILED: {exc}")
            log.exception("Profile chart failed", extra={"source": str(source)})

        # ---- Profile at peak MTR ----
        peak = _peak_timestamp(integrated)
        if peak is not None:
            try:
                figures['profile'] = plot_profile(
                    base.with_title(_chart_title(settings.title, 'Peak profile'))
                    .with_data(profiles.loc[profiles['datetime'] == peak]),
                    vvp_thresh=settings.vvp_thresh,
                )
                out_path = report_dir / 'Profile_Peak.html'
                figures['profile'].write_html(str(out_path))
                written['profile'] = out_path
                print(f"[{name}] Peak profile chart saved → {out_path}")
            except Exception as exc:
                print(f"[{name}] Peak profile chart FAILED: {exc}")
                log.exception("Peak profile chart failed", extra={"source": str(source)})

        if figures:
            index_path = report_dir / 'index.html'
            index_path.write_text(
                _render_page(figures, integrated, settings, name),
                encoding='utf-8',
            )
            written['index'] = index_path
            print(f"[{name}] Report page saved → {index_path}")

        return written


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

def _source_stem(source: Source) -> str:
    """Report directory name: the file stem of a path or URL."""
    if is_remote(source):
        stem = PurePosixPath(urlparse(str(source)).path).stem
    else:
        stem = Path(source).stem
    return stem or 'vpts'


def _chart_title(title: Optional[str], suffix: str) -> str:
    return f'{title} – {suffix}' if title else suffix


def _peak_timestamp(integrated: pd.DataFrame) -> Optional[pd.Timestamp]:
    """Timestamp of the highest MTR, or None when every profile is empty."""
    if not integrated['mtr'].notna().any():
        return None
    return integrated.loc[integrated['mtr'].idxmax(), 'datetime']


def write_mtr_csv(integrated: pd.DataFrame, path: Path) -> None:
    """Write an integrated MTR frame to CSV with ISO-8601 UTC timestamps."""
    out = integrated.copy()
    out['datetime'] = pd.to_datetime(out['datetime'], utc=True).dt.strftime('%Y-%m-%dT%H:%M:%SZ')
    out.to_csv(path, index=False)


def _render_page(
    figures: Dict[str, go.Figure],
    integrated: pd.DataFrame,
    settings: Settings,
    name: str,
) -> str:
    """Embed every figure into one standalone HTML page."""
    divs = []
    for i, fig in enumerate(figures.values()):
        divs.append(
            '<div class="chart">'
            + fig.to_html(full_html=False, include_plotlyjs=(i == 0))
            + '</div>'
        )

    n_profiles = len(integrated)
    n_missing = int(integrated['mtr'].isna().sum())
    alt_max = 'open' if settings.alt_max == float('inf') else f'{settings.alt_max:g} m'
    summary = (
        f'{n_profiles} profiles ({n_missing} without data). '
        f'Altitude window {settings.alt_min:g} m – {alt_max}, '
        f'bin {settings.interval:g} m, sd_vvp ≥ {settings.vvp_thresh:g}'
    )
    if settings.alpha is not None:
        summary += f', direction {settings.alpha:g}°'

    return _PAGE_TEMPLATE.format(
        title=html.escape(settings.title or name),
        summary=html.escape(summary),
        charts='\n'.join(divs),
    )


# ---------------------------------------------------------------------------
# Convenience entry-point
# ---------------------------------------------------------------------------

def generate_report(
    source: Source,
    output_dir: Path,
    settings: Optional[Settings] = None,
) -> Dict[str, Path]:
    """
    Convenience function: create a ``ReportGenerator`` and run one source.

    Example::

        from pathlib import Path
        from vptsviz.reports.generators import generate_report

        generate_report("data/example_vpts_20160901.csv", Path("reports"))
    """
    return ReportGenerator(output_dir=output_dir, settings=settings).generate(source)
