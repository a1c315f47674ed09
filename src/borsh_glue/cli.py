"""
Command line entry point.

    borsh-glue --schema programs/my-program/src --output contract-logic

Scans the schema directory, writes the class and schema modules to the
output directory and logs analyzer warnings. Exit status is 1 on any
generation error, in which case nothing is written.
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

from borsh_glue import __version__
from borsh_glue.analyzer import analyze_layouts
from borsh_glue.config import load_config
from borsh_glue.errors import GlueError
from borsh_glue.output import generate_output
from borsh_glue.serialization import layouts_to_json, layouts_to_yaml
from borsh_glue.walker import generate_layouts


logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "contract-logic"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="borsh-glue",
        description="Generate TypeScript classes and borsh-js schemas from Rust layouts",
    )
    parser.add_argument("-s", "--schema", help="Directory of Rust sources to scan")
    parser.add_argument("-o", "--output", default=DEFAULT_OUTPUT,
                        help=f"Output directory (default: {DEFAULT_OUTPUT})")
    parser.add_argument("-c", "--config",
                        help="YAML configuration file (default: <schema>/borsh-glue.yaml if present)")
    parser.add_argument("--dump-layouts", metavar="FILE",
                        help="Also write the intermediate layouts (.json, otherwise YAML)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _dump_layouts(layouts, path: str) -> None:
    if path.endswith(".json"):
        content = layouts_to_json(layouts)
    else:
        content = layouts_to_yaml(layouts)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)
    logger.info("Wrote intermediate layouts to %s", path)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    if not args.schema:
        logger.warning("No --schema <directory> provided. No schema was generated.")
        return 0

    try:
        config = load_config(args.config, schema_dir=args.schema)
        layouts = generate_layouts(args.schema, config)

        report = analyze_layouts(layouts)
        for warning in report.warnings:
            logger.warning(warning)

        generate_output(layouts, args.output, config)
        if args.dump_layouts:
            _dump_layouts(layouts, args.dump_layouts)
    except (GlueError, OSError) as e:
        logger.error("%s", e)
        return 1

    logger.info(
        "Generated %d layout(s) into %s", len(layouts), os.path.abspath(args.output)
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
