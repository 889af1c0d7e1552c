"""Inspect a SCATFUN tabulated BSDF file.

Usage:
    scatfun-info PATH [options]

Options:
    --precision {float32,float64}  In-memory precision (default: float32)
    --header-only                  Print the raw header without decoding the table
    --verbose                      Enable debug logging

Example:
    scatfun-info coated_copper.bsdf --precision float64
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

import numpy as np

from scatfun.core.errors import FormatError
from scatfun.core.table import ScatteringTable
from scatfun.io.header import read_header
from scatfun.io.reader import ReadOptions, open_table_file, read_table


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="scatfun-info",
        description="Inspect a SCATFUN tabulated BSDF file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("path", type=Path, help="SCATFUN file to inspect")
    parser.add_argument(
        "--precision",
        choices=("float32", "float64"),
        default="float32",
        help="In-memory precision (default: float32)",
    )
    parser.add_argument(
        "--header-only",
        action="store_true",
        help="Print the raw header without decoding the table",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def describe_table(table: ScatteringTable) -> list[str]:
    """Format a table summary as report lines."""
    lines = [f"{key:>16}: {value}" for key, value in table.summary().items()]
    lengths = table.slice_length
    empty = int(np.count_nonzero(lengths == 0))
    lines.append(f"{'empty slices':>16}: {empty} of {table.pair_count}")
    if table.elevation_count:
        lines.append(
            f"{'elevation range':>16}: "
            f"[{float(table.elevations[0]):.4f}, {float(table.elevations[-1]):.4f}]"
        )
    return lines


def _print_header(path: Path) -> int:
    try:
        with open_table_file(path) as stream:
            header = read_header(stream, path)
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    for key, value in vars(header).items():
        print(f"{key:>22}: {value}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.header_only:
        return _print_header(args.path)

    try:
        table = read_table(args.path, options=ReadOptions(precision=args.precision))
    except FormatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"{args.path}:")
    for line in describe_table(table):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
