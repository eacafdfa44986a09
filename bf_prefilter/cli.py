"""Command line tool for building and inspecting prefilter files."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from . import evaluation, plist_format
from .bloom_filter import DEFAULT_MURMUR_SEED, BloomFilter
from .errors import InvalidParameterError
from .formatting import describe, fingerprint


logger = logging.getLogger(__name__)


def _seed(value: str) -> int:
    try:
        seed = int(value, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid seed: {value!r}") from None
    if not 0 <= seed <= 0xFFFFFFFF:
        raise argparse.ArgumentTypeError("seed must be an unsigned 32-bit integer")
    return seed


def load_keywords(path: Path) -> List[str]:
    """Read newline separated keywords, trimming whitespace and skipping blanks."""
    with open(path, "r", encoding="utf-8") as f:
        keywords = [line.strip() for line in f]
    return [k for k in keywords if k]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bloom-filter-builder",
        description="A tool for building and working with Bloom filters",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="\nExamples:\n  bloom-filter-builder build --input-path urls.txt --false-positive-tolerance 0.0001 --output-path filter.plist\n  bloom-filter-builder read --filter-path filter.plist\n  bloom-filter-builder check --filter-path filter.plist --keyword example.com\n        ",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser = subparsers.add_parser(
        "build", help="Build a bloom filter from a keyword file"
    )
    build_parser.add_argument(
        "--input-path", required=True, type=Path,
        help="Path to input file with keywords (newline separated)",
    )
    build_parser.add_argument(
        "--false-positive-tolerance", required=True, type=float,
        help="False positive tolerance (0.0 < rate < 1.0)",
    )
    build_parser.add_argument(
        "--output-path", required=True, type=Path,
        help="Path where the bloom filter plist will be saved",
    )
    build_parser.add_argument(
        "--murmur-seed", type=_seed, default=DEFAULT_MURMUR_SEED,
        help="Murmur hash seed, decimal or 0x-prefixed hex (default: 0x9747b28c)",
    )
    build_parser.add_argument(
        "--num-bits", type=int,
        help="Number of bits (calculated automatically if not set)",
    )
    build_parser.add_argument(
        "--num-hashes", type=int,
        help="Number of hashes (calculated automatically if not set)",
    )

    read_parser = subparsers.add_parser(
        "read", help="Read and display information about a bloom filter"
    )
    read_parser.add_argument(
        "--filter-path", required=True, type=Path,
        help="Path to the bloom filter plist file",
    )

    check_parser = subparsers.add_parser(
        "check", help="Check if a keyword might be in the bloom filter"
    )
    check_parser.add_argument(
        "--filter-path", required=True, type=Path,
        help="Path to the bloom filter plist file",
    )
    check_parser.add_argument("--keyword", required=True, help="Keyword to check")

    evaluate_parser = subparsers.add_parser(
        "evaluate", help="Measure false positive rate and throughput on synthetic data"
    )
    evaluate_parser.add_argument(
        "--items", type=int, default=evaluation.NUM_ITEMS,
        help="Number of synthetic items to generate",
    )
    evaluate_parser.add_argument(
        "--false-positive-tolerance", type=float,
        default=evaluation.FALSE_POSITIVE_TOLERANCE,
        help="False positive tolerance (0.0 < rate < 1.0)",
    )
    evaluate_parser.add_argument(
        "--murmur-seed", type=_seed, default=DEFAULT_MURMUR_SEED,
        help="Murmur hash seed, decimal or 0x-prefixed hex",
    )
    evaluate_parser.add_argument(
        "--query-ops", type=int, default=evaluation.QUERY_OPS,
        help="Number of membership queries in the throughput benchmark",
    )
    return parser


def run_build(args: argparse.Namespace) -> None:
    if not 0.0 < args.false_positive_tolerance < 1.0:
        raise InvalidParameterError(
            "False positive tolerance must be between 0.0 and 1.0 (exclusive)"
        )
    if args.num_bits is not None and args.num_bits <= 0:
        raise InvalidParameterError("Number of bits must be positive")
    if args.num_hashes is not None and args.num_hashes <= 0:
        raise InvalidParameterError("Number of hashes must be positive")

    keywords = load_keywords(args.input_path)
    if not keywords:
        raise InvalidParameterError("No keywords found in input file")
    logger.debug("loaded %d keywords from %s", len(keywords), args.input_path)

    if args.num_bits is not None and args.num_hashes is not None:
        bloom = BloomFilter(
            args.num_bits,
            args.num_hashes,
            len(keywords),
            args.false_positive_tolerance,
            murmur_seed=args.murmur_seed,
        )
        bloom.update(keywords)
    else:
        if args.num_bits is not None or args.num_hashes is not None:
            logger.warning("--num-bits and --num-hashes must be given together; sizing automatically")
        bloom = BloomFilter.from_items(
            keywords, args.false_positive_tolerance, murmur_seed=args.murmur_seed
        )

    plist_format.dump(bloom, args.output_path, num_items=len(keywords))

    print(f"Bloom filter successfully written to: {args.output_path}")
    print(f"Items processed: {len(keywords)}")
    print(f"Number of bits: {bloom.num_bits}")
    print(f"Number of hashes: {bloom.num_hashes}")
    print(f"False positive tolerance: {bloom.false_positive_tolerance}")


def run_read(args: argparse.Namespace) -> None:
    contents = plist_format.load(args.filter_path)
    bloom = contents.to_filter()

    print("Bloom Filter Information:")
    print("========================")
    print(f"Number of items: {contents.number_of_items}")
    print(f"Number of bits: {contents.number_of_bits}")
    print(f"Number of bytes: {contents.number_of_bytes}")
    print(f"Number of hashes: {contents.number_of_hashes}")
    print(f"False positive tolerance: {contents.false_positive_tolerance}")
    print(f"Murmur seed: 0x{contents.murmur_seed:X}")
    print(f"Fingerprint (xxh64): {fingerprint(bloom)}")
    print()
    print("Detailed Information:")
    print(describe(bloom))


def run_check(args: argparse.Namespace) -> bool:
    bloom = plist_format.load(args.filter_path).to_filter()
    found = bloom.contains(args.keyword)
    verdict = "might be" if found else "is definitely not"
    print(f"Keyword '{args.keyword}' {verdict} in the bloom filter")
    return found


def run_evaluate(args: argparse.Namespace) -> None:
    if args.items < 2:
        raise InvalidParameterError("evaluation needs at least 2 items")
    evaluation.run_all(
        args.items,
        args.false_positive_tolerance,
        murmur_seed=args.murmur_seed,
        query_ops=args.query_ops,
    )


COMMANDS = {
    "build": run_build,
    "read": run_read,
    "check": run_check,
    "evaluate": run_evaluate,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        COMMANDS[args.command](args)
    except (ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
