import sys
import argparse
import time
from typing import Optional

from .errors import FastqError
from .fastq import open_paired_fastq
from .readqc import (
    ReadQCConfig, run_readqc,
    DEFAULT_LOW_QUALITY, DEFAULT_LOW_BASE_THRESHOLD,
    DEFAULT_MAX_PAIRS, MIN_MAX_PAIRS, DEFAULT_QUALITY_BASE,
)


# --- OPTION PARSERS ---

def parse_quality_base(value) -> Optional[int]:
    """Parse the -q option: '33', '64', or 'auto' (returns None)."""
    value = str(value).strip().lower()
    if value == "auto":
        return None
    if value in ("33", "64"):
        return int(value)
    raise argparse.ArgumentTypeError(
        f"Quality base value should be 33, 64 or auto, got '{value}'"
    )


def parse_max_pairs(value) -> int:
    """Parse the -N option, enforcing the minimum pair count."""
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid pair count: '{value}'")
    if n < MIN_MAX_PAIRS:
        raise argparse.ArgumentTypeError(
            f"Maximum pairs to check should be at least {MIN_MAX_PAIRS}, got {n}"
        )
    return n


def parse_low_bases(value) -> float:
    """Parse the -n option: a base count (>= 1) or a fraction of read length."""
    try:
        n = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid low base threshold: '{value}'")
    if n < 0:
        raise argparse.ArgumentTypeError(f"Low base threshold must be non-negative, got {n}")
    return n


# --- COMMAND: READQC ---

def readqc_command(args):
    start_time = time.time()
    verbose = getattr(args, 'verbose', False)

    config = ReadQCConfig(
        low_quality=args.low_quality,
        low_base_threshold=args.low_bases,
        max_pairs=args.max_pairs,
        verbose=verbose,
    )
    check_length = not getattr(args, 'no_length_check', False)

    try:
        with open_paired_fastq(args.read1, args.read2,
                               quality_base=args.quality_base,
                               check_length=check_length) as reader:
            if verbose:
                print(f"[seqtools] Checking {args.read1} / {args.read2}...", file=sys.stderr)
                if args.quality_base is None:
                    if reader.quality_base is None:
                        print(f"[Warning] Quality base could not be detected, "
                              f"assuming {DEFAULT_QUALITY_BASE}.", file=sys.stderr)
                    else:
                        print(f"[seqtools] Quality base value detected: {reader.quality_base}",
                              file=sys.stderr)

            result = run_readqc(reader, config)
    except FastqError as exc:
        sys.exit(f"Error: {exc}")

    try:
        print(result.format())
        sys.stdout.flush()
    except BrokenPipeError:
        sys.stderr.close()
        return

    if verbose:
        duration = time.time() - start_time
        print(f"[seqtools] Done. Checked {result.total_pairs} pairs, "
              f"{result.low_quality_pairs} low quality, in {duration:.2f}s.", file=sys.stderr)


def get_seqtools_version():
    try:
        from . import __version__
        return f"seqtools {__version__}"
    except ImportError:
        return "seqtools (unknown version)"


# --- MAIN ---

def main(argv=None):
    parser = argparse.ArgumentParser(
        description="seqtools: Tools for manipulating high throughput sequencing data")
    parser.add_argument('--version', action='version', version=get_seqtools_version(), help="Show seqtools version and exit")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- READQC ---
    qc = subparsers.add_parser("readqc", help="Check quality of sequencing reads")
    qc.add_argument("read1", help="Read 1 FASTQ file (plain, gzip or zstd; '-' for stdin)")
    qc.add_argument("read2", help="Read 2 FASTQ file (plain, gzip or zstd)")
    qc.add_argument("-v", "--verbose", action="store_true", help="Show verbose messages")

    enc_group = qc.add_argument_group("Input Options")
    enc_group.add_argument("-q", "--quality-base", type=parse_quality_base, default=None,
                           metavar="{33,64,auto}",
                           help="Quality base value, 33 or 64 (default: auto-detect)")
    enc_group.add_argument("--no-length-check", action="store_true",
                           help="Accept records whose quality and sequence lengths differ")

    thr_group = qc.add_argument_group("Thresholds")
    thr_group.add_argument("-L", "--low-quality", type=int, default=DEFAULT_LOW_QUALITY,
                           help=f"Maximum low base quality value (default: {DEFAULT_LOW_QUALITY})")
    thr_group.add_argument("-n", "--low-bases", type=parse_low_bases, default=DEFAULT_LOW_BASE_THRESHOLD,
                           help="Minimum bad bases for a low quality read; values below 1 are "
                                f"a fraction of read length (default: {DEFAULT_LOW_BASE_THRESHOLD})")
    thr_group.add_argument("-N", "--max-pairs", type=parse_max_pairs, default=DEFAULT_MAX_PAIRS,
                           help=f"Maximum pairs to check, at least {MIN_MAX_PAIRS} (default: {DEFAULT_MAX_PAIRS})")

    args = parser.parse_args(argv)
    if args.command == "readqc":
        readqc_command(args)


if __name__ == "__main__":
    main()
