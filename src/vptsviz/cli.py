"""
vptsviz Unified Command-Line Interface

Exposes two subcommands:

    vptsviz mtr    --input <csv|url> [--output mtr.csv] [...]   Print/write the MTR series
    vptsviz report --input <csv|url> --output <dir> [...]      Write the HTML report set

Both accept ``--config settings.json``; explicit flags override the file.

The package must be installed (``pip install -e .``) for the ``vptsviz``
entry point to be available.

Package Location: src/vptsviz/cli.py
"""

from __future__ import annotations

import argparse
import math
import sys
import traceback
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import Settings, load_settings
from .utils.logging import configure_logging

_AUTO = "auto"


# ===========================================================================
# Shared helpers
# ===========================================================================

def _die(message: str) -> None:
    """Print an error message and exit with status 1.

    Args:
        message: Human-readable error text.
    """
    print(f"\n❌  Error: {message}", file=sys.stderr)
    sys.exit(1)


def _float_or_auto(text: str):
    """argparse type: a float, or the literal ``auto``."""
    if text.lower() == _AUTO:
        return _AUTO
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number or '{_AUTO}', got {text!r}")


def _alt_max(text: str) -> float:
    """argparse type: a float, or ``inf`` / ``none`` for no upper bound."""
    if text.lower() in ("inf", "none"):
        return math.inf
    try:
        return float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number or 'inf', got {text!r}")


def _resolve_settings(args: argparse.Namespace) -> Settings:
    """Combine ``--config`` file and explicit flags into one Settings.

    Args:
        args: Parsed CLI arguments.

    Returns:
        Settings; ``interval`` / ``vvp_thresh`` may still be ``None``
        (``auto``) and are resolved against the data later.
    """
    settings = Settings()
    if args.config:
        try:
            settings = load_settings(Path(args.config))
        except (OSError, ValueError, TypeError) as exc:
            _die(f"Invalid settings file: {exc}")

    settings = settings.merged(
        alt_min=args.alt_min,
        alt_max=args.alt_max,
        alpha=args.alpha,
        legacy_cosine=True if args.legacy_cosine else None,
        strict=True if args.strict else None,
        title=getattr(args, "title", None),
        timezone=getattr(args, "timezone", None),
        width=getattr(args, "width", None),
        height=getattr(args, "height", None),
    )

    # 'auto' has to be applied explicitly: merged() skips None overrides.
    if args.interval == _AUTO:
        settings = replace(settings, interval=None)
    elif args.interval is not None:
        settings = replace(settings, interval=args.interval)
    if args.vvp_thresh == _AUTO:
        settings = replace(settings, vvp_thresh=None)
    elif args.vvp_thresh is not None:
        settings = replace(settings, vvp_thresh=args.vvp_thresh)

    return settings


# ===========================================================================
# Subcommand handlers
# ===========================================================================

# ---------------------------------------------------------------------------
# mtr
# ---------------------------------------------------------------------------

def handle_mtr(args: argparse.Namespace) -> None:
    """Compute the MTR series of one source and print or save it.

    Args:
        args: Parsed CLI arguments.
    """
    from .analysis import VptsParseError, integrate_profile
    from .data import VptsLoadError, load_vpts
    from .reports.generators import write_mtr_csv

    settings = _resolve_settings(args)

    try:
        profiles = load_vpts(args.input, strict=settings.strict)
    except (VptsLoadError, VptsParseError) as exc:
        _die(str(exc))

    if profiles.empty:
        _die(f"No valid profile rows in {args.input}")

    # InvalidArgument is a ValueError, as are inference failures.
    try:
        settings = settings.resolved_for(profiles)
        integrated = integrate_profile(profiles, **settings.mtr_kwargs())
    except ValueError as exc:
        _die(str(exc))

    if args.output:
        out_path = Path(args.output)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        write_mtr_csv(integrated, out_path)
        print(f"✅  {len(integrated)} profiles → {out_path}")
    else:
        columns = ["datetime", "mtr", "vid", "n_bins"] if args.all_columns else ["datetime", "mtr"]
        print(integrated[columns].to_string(index=False))


# ---------------------------------------------------------------------------
# report
# ---------------------------------------------------------------------------

def handle_report(args: argparse.Namespace) -> None:
    """Generate the HTML report set for one or more sources.

    Args:
        args: Parsed CLI arguments.
    """
    from .reports.generators import ReportGenerator

    settings = _resolve_settings(args)
    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"\n📊  Generating reports")
    print(f"    Output: {output_dir}")
    print(f"    Inputs: {', '.join(args.input)}")

    gen = ReportGenerator(output_dir, settings)
    errors: List[str] = []
    for source in args.input:
        try:
            written = gen.generate(source)
            if not written:
                errors.append(source)
        except Exception as exc:
            errors.append(source)
            print(f"      ❌  {source} failed: {exc}")
            if args.verbose:
                traceback.print_exc()

    succeeded = len(args.input) - len(errors)
    print(
        f"\n✅  Done.  {succeeded}/{len(args.input)} sources reported "
        f"successfully."
    )
    if errors:
        print(f"    Failed sources: {', '.join(errors)}")
        sys.exit(1)


# ===========================================================================
# Argument parser construction
# ===========================================================================

def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Aggregation and logging flags shared by every subcommand."""
    parser.add_argument(
        "--config",
        default=None,
        metavar="JSON",
        help="Settings file; explicit flags override its values.",
    )
    parser.add_argument(
        "--alt-min",
        type=float,
        default=None,
        metavar="M",
        help="Lower altitude bound in metres (default: 0).",
    )
    parser.add_argument(
        "--alt-max",
        type=_alt_max,
        default=None,
        metavar="M",
        help="Upper altitude bound in metres, or 'inf' (default: inf).",
    )
    parser.add_argument(
        "--interval",
        type=_float_or_auto,
        default=None,
        metavar="M",
        help="Bin thickness in metres, or 'auto' to infer it (default: 200).",
    )
    parser.add_argument(
        "--vvp-thresh",
        type=_float_or_auto,
        default=None,
        metavar="X",
        help=(
            "Minimum sd_vvp of a bin, or 'auto' to use the file's "
            "sd_vvp_threshold column (default: 2)."
        ),
    )
    parser.add_argument(
        "--alpha",
        type=float,
        default=None,
        metavar="DEG",
        help="Migration direction for cosine weighting (default: none).",
    )
    parser.add_argument(
        "--legacy-cosine",
        action="store_true",
        default=False,
        help="Weight with cos(dd - alpha) * pi/180 (degrees fed to cosine).",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Fail on the first unparseable row instead of dropping it.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        metavar="LEVEL",
        help="Logging level (default: WARNING).",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=False,
        help="Emit log records as single-line JSON.",
    )


def _build_parser() -> argparse.ArgumentParser:
    """Construct and return the top-level argument parser.

    Returns:
        Configured ``ArgumentParser`` with ``mtr`` and ``report``
        subcommands attached.
    """
    parser = argparse.ArgumentParser(
        prog="vptsviz",
        description=(
            "vptsviz – bird radar vertical profile time series\n"
            "Migration Traffic Rate computation and interactive reports."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subs = parser.add_subparsers(dest="command", metavar="<command>")
    subs.required = True

    # ------------------------------------------------------------------
    # mtr
    # ------------------------------------------------------------------
    p_mtr = subs.add_parser(
        "mtr",
        help="Compute the MTR per timestamp of one VPTS file.",
        description=(
            "Compute the Migration Traffic Rate for every profile of a VPTS\n"
            "CSV file (local path or http(s) URL).  Prints a table, or writes\n"
            "CSV when --output is given."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_mtr.add_argument(
        "--input",
        required=True,
        metavar="SRC",
        help="VPTS CSV path or URL.",
    )
    p_mtr.add_argument(
        "--output",
        default=None,
        metavar="CSV",
        help="Write datetime, mtr, vid, n_bins to this CSV instead of printing.",
    )
    p_mtr.add_argument(
        "--all-columns",
        action="store_true",
        default=False,
        help="Also print vid and n_bins.",
    )
    _add_common_arguments(p_mtr)
    p_mtr.set_defaults(func=handle_mtr)

    # ------------------------------------------------------------------
    # report
    # ------------------------------------------------------------------
    p_rep = subs.add_parser(
        "report",
        help="Write MTR and profile charts as HTML.",
        description=(
            "Compute the MTR series and write, per input:\n"
            "  <output>/<stem>/mtr.csv\n"
            "  <output>/<stem>/VPI_MTR.html\n"
            "  <output>/<stem>/VPTS_Profile.html\n"
            "  <output>/<stem>/Profile_Peak.html\n"
            "  <output>/<stem>/index.html"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p_rep.add_argument(
        "--input",
        required=True,
        nargs="+",
        metavar="SRC",
        help="One or more VPTS CSV paths or URLs.",
    )
    p_rep.add_argument(
        "--output",
        required=True,
        metavar="DIR",
        help="Root output directory.",
    )
    p_rep.add_argument("--title", default=None, help="Chart title prefix.")
    p_rep.add_argument(
        "--timezone",
        default=None,
        metavar="TZ",
        help="IANA timezone for the time axis (default: UTC).",
    )
    p_rep.add_argument("--width", type=int, default=None, metavar="PX", help="Chart width.")
    p_rep.add_argument("--height", type=int, default=None, metavar="PX", help="Chart height.")
    p_rep.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Print full tracebacks for any per-source errors.",
    )
    _add_common_arguments(p_rep)
    p_rep.set_defaults(func=handle_report)

    return parser


# ===========================================================================
# Entry point
# ===========================================================================

def main(argv: Optional[List[str]] = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate handler.

    This function is registered as the ``vptsviz`` console script entry point
    in ``pyproject.toml``.
    """
    parser = _build_parser()
    args   = parser.parse_args(argv)
    try:
        configure_logging(args.log_level, json_format=args.log_json)
    except ValueError as exc:
        _die(str(exc))
    args.func(args)


if __name__ == "__main__":
    main()
