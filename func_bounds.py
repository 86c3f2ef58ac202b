#!/usr/bin/env python3
"""Command-line interface for the heuristic function boundary finder."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

from funcbounds import (
    AnalysisError,
    FileMemorySource,
    FunctionAnalysis,
    JsonFunctionRegistry,
    RegistryError,
)
from funcbounds.capstone_decoder import CapstoneDecoder


def parse_int(value: str) -> int:
    try:
        return int(value, 0)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("dump", type=Path, help="Raw memory dump to analyse")
    parser.add_argument(
        "--load-address",
        type=parse_int,
        default=0,
        help="Virtual address the first byte of the dump is mapped at",
    )
    parser.add_argument(
        "--base",
        type=parse_int,
        default=None,
        help="Start of the analysed region (defaults to the load address)",
    )
    parser.add_argument(
        "--size",
        type=parse_int,
        default=None,
        help="Length of the analysed region (defaults to the rest of the dump)",
    )
    parser.add_argument(
        "--bits",
        type=int,
        choices=(32, 64),
        default=32,
        help="Address width used to decode x86 code",
    )
    parser.add_argument(
        "--registry",
        type=Path,
        default=None,
        help="Override the default <dump>.functions.json registry path",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        help="Verbosity of diagnostic output on stderr",
    )
    return parser.parse_args(argv)


def validate_inputs(dump_path: Path) -> None:
    if not dump_path.is_file():
        raise SystemExit(f"missing input file: {dump_path}")


def resolve_region(args: argparse.Namespace, source: FileMemorySource) -> Tuple[int, int]:
    base = args.load_address if args.base is None else args.base
    available = source.load_address + source.size - base
    if base < source.load_address or available < 0:
        raise SystemExit(f"region base 0x{base:X} lies outside of the dump")
    size = available if args.size is None else args.size
    if size < 0:
        raise SystemExit("region size must be non-negative")
    return base, size


def main(argv: Optional[list] = None) -> int:
    start_time = time.perf_counter()
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")
    validate_inputs(args.dump)

    source = FileMemorySource(args.dump, args.load_address)
    base, size = resolve_region(args, source)
    registry_path = args.registry or args.dump.with_suffix(".functions.json")

    try:
        analysis = FunctionAnalysis(source, CapstoneDecoder(args.bits), base, size)
        candidates = analysis.analyze()
        registry = JsonFunctionRegistry(registry_path)
        installed = analysis.export_boundaries(registry, candidates)
        registry.save()
    except (AnalysisError, RegistryError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    for candidate in candidates.iter_resolved():
        print(f"{candidate.start:08X}-{candidate.end:08X}")
    print(f"{installed} of {len(candidates)} candidate(s) resolved")
    print(f"registry written to {registry_path}")

    total_time = time.perf_counter() - start_time
    print(f"total execution time: {total_time:.2f}s")
    return 0


if __name__ == "__main__":
    sys.exit(main())
