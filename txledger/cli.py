"""
cli.py - Command-Line Entry Point

Usage:
    txledger transactions.csv > accounts.csv
    python -m txledger transactions.csv --sort --verbose

Reads transaction records from the input CSV, applies them in order, and
writes one summary row per client to stdout. Rejected records and events
are reported on stderr and skipped. Exit status is 1 when the input cannot
be read or the output cannot be written.
"""

from __future__ import annotations
from typing import Iterable, List, Optional
import argparse
import csv
import sys

from .core import Event, RecordError, TxProcessingError, describe_event
from .engine import TxEngine
from .records import read_events, write_summaries


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="txledger",
        description="Apply a CSV log of client transactions and print the resulting account balances.",
    )
    parser.add_argument("input", help="Path to the input transactions CSV")
    parser.add_argument("--sort", action="store_true", help="Order output rows by client id")
    parser.add_argument("--verbose", action="store_true", help="Trace every event on stderr")
    return parser


def report_record_error(error: RecordError) -> None:
    print(f"failed to parse record: {error}", file=sys.stderr)


def apply_events(engine: TxEngine, events: Iterable[Event]) -> int:
    """
    Feed events to the engine, skipping the ones it rejects.

    LedgerInvariantError is deliberately not caught here.

    Returns:
        Number of rejected events
    """
    rejected = 0
    for event in events:
        try:
            engine.process(event)
        except TxProcessingError as e:
            rejected += 1
            # verbose engines already traced the rejection
            if not engine.verbose:
                print(f"failed to process {describe_event(event)}: {e}", file=sys.stderr)
    return rejected


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    engine = TxEngine(verbose=args.verbose)

    try:
        stream = open(args.input, newline="", encoding="utf-8-sig")
    except OSError as e:
        print(f"error: cannot open {args.input}: {e}", file=sys.stderr)
        return 1

    with stream:
        try:
            rejected = apply_events(engine, read_events(stream, on_error=report_record_error))
        except RecordError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            print(f"error: cannot read {args.input}: {e}", file=sys.stderr)
            return 1

    summaries = engine.summaries()
    if args.sort:
        summaries.sort(key=lambda s: s.client)

    try:
        write_summaries(sys.stdout, summaries)
        sys.stdout.flush()
    except OSError as e:
        print(f"error: cannot write output: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        applied = sum(n for key, n in engine.stats.items() if key.startswith("applied:"))
        print(f"{applied} events applied, {rejected} rejected", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
