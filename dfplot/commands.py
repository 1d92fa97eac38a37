"""CLI Commands
-------------

The `dfplot` console entry point.  One subcommand per chart type:

    dfplot scatter data.csv -x time -y a b -o chart.html
    dfplot bar data.ndjson -x country -y sales costs -g region --barmode proportion
    dfplot box data.json -y latency -g host
    dfplot histogram data.csv -y age

Without `-o` the chart opens interactively.
"""

__all__ = [
    "build_parser",
    "run",
    "main",
]

# Keep this list minimal as this py will actually be executed
import argparse
import logging
import sys
from typing import Any, Dict, Optional, Sequence

from dfplot.utils import dict_without_none

logger = logging.getLogger(__name__)

BARMODES = ["group", "overlay", "relative", "stack", "proportion"]
SCATTER_MODES = ["markers", "lines", "lines+markers"]


def _add_common_args(sp: argparse.ArgumentParser, with_x: bool) -> None:
    """Arguments shared by every chart type."""

    sp.add_argument("input", help="Input table (.csv, .json, .ndjson or .jsonl)")
    if with_x:
        sp.add_argument("-x", "--x", default=None, help="x column (row index if omitted)")
    sp.add_argument("-y", "--y", nargs="+", default=["y"], help="One or more value columns")
    sp.add_argument("-g", "--group", nargs="+", default=[], help="Group columns, one trace per category combination")
    sp.add_argument("-o", "--output", default=None, help="Write a standalone HTML file instead of showing the chart")
    sp.add_argument("--title", default=None, help="Chart title")
    sp.add_argument("--width", type=int, default=800)
    sp.add_argument("--height", type=int, default=None)
    sp.add_argument("--config", default=None, help="JSON/YAML file with Vega-Lite config overrides")
    sp.add_argument(
        "--infer-schema-length",
        type=int,
        default=100,
        help="Rows used to infer column types (0 = scan all rows)",
    )
    sp.add_argument("-v", "--verbose", action="store_true", help="Debug logging and full tracebacks")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dfplot", description="Plot columns of a tabular file")
    subparsers = parser.add_subparsers(dest="plot", required=True)

    sp = subparsers.add_parser("scatter", help="Scatter/line chart of numeric x against numeric y")
    _add_common_args(sp, with_x=True)
    sp.add_argument("--mode", choices=SCATTER_MODES, default="markers")

    sp = subparsers.add_parser("histogram", help="Histogram of numeric or categorical columns")
    _add_common_args(sp, with_x=False)

    sp = subparsers.add_parser("box", help="Box plot of numeric columns")
    _add_common_args(sp, with_x=False)

    sp = subparsers.add_parser("bar", help="Bar chart with categorical x")
    _add_common_args(sp, with_x=True)
    sp.add_argument("-b", "--barmode", choices=BARMODES, default="group")

    return parser


def _to_pp_desc(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed arguments into a `PlotDescriptor` payload."""

    desc = {
        "plot": args.plot,
        "input": args.input,
        "y": args.y,
        "x": getattr(args, "x", None),
        "group": args.group,
        "output": args.output,
        "title": args.title,
        "width": args.width,
        "height": args.height,
        "barmode": getattr(args, "barmode", None),
        "mode": getattr(args, "mode", None),
    }
    desc = dict_without_none(desc)
    desc["infer_schema_length"] = args.infer_schema_length or None
    return desc


def run(argv: Optional[Sequence[str]] = None) -> int:
    """Parse ``argv``, build the chart and return a process exit code."""

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    # Imported here so `--help` stays fast
    import altair as alt
    from dfplot.pp import load_custom_config, plot_to_output

    # Whole tables are embedded in the output, so lift the 5000 row default
    alt.data_transformers.disable_max_rows()

    try:
        plot_to_output(_to_pp_desc(args), custom_config=load_custom_config(args.config))
    except Exception as e:
        logger.error(str(e), exc_info=args.verbose)
        return 1
    return 0


def main() -> None:
    """Console entry point."""
    sys.exit(run())
