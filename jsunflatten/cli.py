"""Command-line interface for the control-flow deflattener."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .errors import DeflattenError, MissingInput, ParseFailure
from .options import DeflattenOptions
from .pipeline import DeflattenPipeline

logger = logging.getLogger(__name__)

EPILOG = """\
example:
  js_unflatten.py demo.js _$fl _$hC

outputs (next to the input unless --output-dir is given):
  <name>_processed.js           normalized source
  <name>_condition_mapping.json condition and code block mapping
  <name>_simple_mapping.json    index to code block mapping
  <name>_control_flow.json      control flow sequence
  <name>_reordered.js           code reordered by control flow
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="js_unflatten.py",
        description=__doc__,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("input_file", nargs="?", type=Path, help="Flattened JavaScript file")
    parser.add_argument(
        "control_flow_var",
        nargs="?",
        default=None,
        help="Name of the order array variable",
    )
    parser.add_argument(
        "condition_var",
        nargs="?",
        default=None,
        help="Name of the discriminant variable tested by the if chains",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with default options; command-line values take precedence",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Directory for the generated files",
    )
    parser.add_argument(
        "--source-type",
        choices=("script", "module"),
        default=None,
        help="Parse the input as a classic script or as an ES module",
    )
    parser.add_argument(
        "--tolerant",
        action="store_true",
        default=None,
        help="Let the parser recover from some syntax errors",
    )
    parser.add_argument(
        "--no-simplify",
        dest="simplify_less_than",
        action="store_false",
        default=None,
        help="Keep '<' comparisons instead of rewriting them into '==='",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Log debug details")
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only log warnings")
    return parser


def configure_logging(args: argparse.Namespace) -> None:
    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def resolve_options(args: argparse.Namespace) -> DeflattenOptions:
    options = DeflattenOptions.load(args.config) if args.config else DeflattenOptions()
    return options.merged(
        control_flow_var=args.control_flow_var,
        condition_var=args.condition_var,
        output_dir=args.output_dir,
        source_type=args.source_type,
        tolerant=args.tolerant,
        simplify_less_than=args.simplify_less_than,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.input_file is None:
        parser.print_help(sys.stderr)
        return 1

    configure_logging(args)
    try:
        if not args.input_file.is_file():
            raise MissingInput(args.input_file)
        options = resolve_options(args)
        logger.info("processing %s", args.input_file)
        logger.info("control flow variable: %s", options.control_flow_var)
        logger.info("condition variable: %s", options.condition_var)
        artifacts = DeflattenPipeline(options).run_file(args.input_file)
    except ParseFailure as exc:
        print(f"error: {exc.stage}: {exc}", file=sys.stderr)
        return 1
    except (DeflattenError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    print("generated files:")
    for path, description in artifacts.describe():
        print(f"  {path} - {description}")
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
