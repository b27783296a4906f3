"""Command-line interface: merge selected slides into a copy of a target deck.

Usage:
    # Merge all slides from source to target
    slidemerge -s source.pptx -t target.pptx

    # Merge specific slides
    slidemerge -s source.pptx -t target.pptx --slides 1,3,5-7

    # Specify a custom output file
    slidemerge -s source.pptx -t target.pptx -o merged.pptx --slides 2-4
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml
from pydantic import ValidationError

from slidemerge.errors import ArgumentError, SlideMergeError
from slidemerge.merge.merger import SlideMerger
from slidemerge.schemas.merge_schema import MergeConfig, MergeReport

_EPILOG = """\
Slide number formats:
  Single slides: 1,3,5
  Ranges: 2-5,8-10
  Mixed: 1,3-5,7,9-12

The target's slide masters, layouts and theme are preserved. The target file
itself is never modified; the merged deck is written to the output path.
"""


class _ArgumentParser(argparse.ArgumentParser):
    """Raise ArgumentError instead of exiting with status 2."""

    def error(self, message):
        raise ArgumentError(message)


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="slidemerge",
        description="Merge selected slides from one PowerPoint file into another, keeping the target's design",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-s", "--source", type=Path, required=True,
                        help="Source PowerPoint file (.pptx)")
    parser.add_argument("-t", "--target", type=Path, required=True,
                        help="Target PowerPoint file (.pptx); its masters and layouts are preserved")
    parser.add_argument("-o", "--output", type=Path, default=None,
                        help="Output file (default: <target>_merged.pptx next to the target)")
    parser.add_argument("--slides", type=str, default=None,
                        help="Slides to copy, e.g. '1,3,5-7' (default: all slides)")
    parser.add_argument("-c", "--config", type=Path, default=None,
                        help="Optional merge config YAML")
    parser.add_argument("--malformed", choices=["repair", "reject"], default=None,
                        help="What to do with slides that have no content (overrides config)")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Show debug logging")
    return parser


def load_config(args: argparse.Namespace) -> MergeConfig:
    config = MergeConfig.from_yaml(args.config) if args.config else MergeConfig()
    if args.malformed:
        config = config.model_copy(update={"malformed_slide_policy": args.malformed})
    return config


def print_summary(report: MergeReport) -> None:
    print(f"Successfully merged presentations. Output saved as: {report.output}")
    print(f"  Copied slides:  {', '.join(map(str, report.copied)) or 'none'}")
    if report.skipped:
        print(f"  Skipped (out of range): {', '.join(map(str, report.skipped))}")
    if report.repaired:
        print(f"  Replaced with empty slides: {', '.join(map(str, report.repaired))}")
    print(f"  Slides: {report.target_slide_count} -> {report.output_slide_count}")
    print("The master slide from the target presentation has been preserved.")


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    if argv is None:
        argv = sys.argv[1:]
    if not argv:
        parser.print_help()
        return 0

    try:
        args = parser.parse_args(argv)
    except ArgumentError as e:
        print(f"Error: {e}", file=sys.stderr)
        print(file=sys.stderr)
        parser.print_help(sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s: %(message)s",
    )

    try:
        config = load_config(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (ValidationError, yaml.YAMLError) as e:
        print(f"Error: invalid merge config {args.config}: {e}", file=sys.stderr)
        return 1

    try:
        report = SlideMerger(config).merge(args.source, args.target, args.output, args.slides)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except SlideMergeError as e:
        print(f"Error during merge: {e}", file=sys.stderr)
        if e.__cause__ is not None:
            print(f"Inner exception: {e.__cause__}", file=sys.stderr)
        return 1

    print_summary(report)
    return 0


if __name__ == "__main__":
    sys.exit(main())
