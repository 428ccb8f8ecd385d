"""Command line entry: peel an SVG file and optionally write a report."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from svgunmask.config import LOG_FORMAT, settings
from svgunmask.engine.config import PeelingOptions
from svgunmask.errors import UnmaskError
from svgunmask.unmask import SvgUnmask

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="svg-unmask",
        description="Peel an SVG document layer by layer, topmost content first",
    )
    parser.add_argument("input", help="SVG file to analyze")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=settings.default_max_steps,
        help=f"Maximum number of peeling steps (default: {settings.default_max_steps})",
    )
    parser.add_argument("-o", "--output", help="Directory for step snapshots and the report")
    parser.add_argument(
        "--no-semantic-groups",
        action="store_true",
        help="Remove elements one at a time instead of whole semantic groups",
    )
    parser.add_argument(
        "--no-basic-shapes",
        action="store_true",
        help="Keep peeling after only a few basic shapes remain",
    )
    parser.add_argument("--single-step", action="store_true", help="Perform one peeling step only")
    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)
    args = build_parser().parse_args(argv)

    path = Path(args.input)
    if not path.is_file():
        print(f"File not found: {args.input}", file=sys.stderr)
        return 1

    options = PeelingOptions(
        max_steps=args.max_steps,
        stop_at_basic_shapes=not args.no_basic_shapes,
        preserve_semantic_groups=not args.no_semantic_groups,
        content_recovery=False,
    )

    unmask = SvgUnmask()
    try:
        loaded = unmask.load_svg(path.read_bytes())
        print(
            f"Loaded {path.name}: {loaded.element_count} elements, "
            f"{loaded.layer_analysis.semantic_groups} semantic groups"
        )

        if args.single_step:
            step = unmask.perform_single_step(options)
            if step is None:
                print("Nothing to remove")
            else:
                print(f"Step 1: {step.description} ({len(step.remaining_elements)} remaining)")
            if args.output:
                print(f"Saved: {unmask.save_results(args.output)}")
            return 0

        result = unmask.perform_peeling(options, output_directory=args.output)
    except (UnmaskError, UnicodeDecodeError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    for i, step in enumerate(result.steps, start=1):
        print(f"Step {i}: {step.description}")
    stats = result.statistics
    print(
        f"Done: {stats.total_steps} steps, {stats.total_removed} removed, "
        f"{stats.remaining_elements} remaining"
    )
    if args.output:
        print(f"Saved: {args.output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
