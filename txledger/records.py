"""
records.py - CSV Record Adapters

Thin adapters between delimited text and the engine:
1. read_events(): input records -> typed Events
2. write_summaries(): ClientSummary list -> output records

Input format (header required, column order free, `amount` optional for
dispute/resolve/chargeback):

    type,client,tx,amount
    deposit,1,1,1.0
    dispute,1,1,

Output format:

    client,available,held,total,locked
    1,1.5,0,1.5,false
"""

from __future__ import annotations
from typing import Callable, Dict, Iterable, Iterator, List, Optional, TextIO
import csv

from .amount import Amount, ParseAmountError
from .core import (
    Event, EVENT_TYPES, AMOUNT_EVENTS,
    MAX_CLIENT_ID, MAX_TX_ID,
    RecordError,
)
from .engine import ClientSummary


REQUIRED_COLUMNS = ("type", "client", "tx")
OUTPUT_COLUMNS = ("client", "available", "held", "total", "locked")

# Handler type for rejected records: called once per skipped record.
RecordErrorHandler = Callable[[RecordError], None]


# ============================================================================
# INPUT
# ============================================================================

def read_events(stream: TextIO, on_error: Optional[RecordErrorHandler] = None) -> Iterator[Event]:
    """
    Parse CSV records into Events, lazily.

    Blank lines are ignored and empty input yields nothing. A record that
    cannot be turned into an Event, including one the csv module itself
    cannot split (e.g. an oversized field), is passed to `on_error` and skipped;
    without a handler its RecordError is raised instead.

    Args:
        stream: Text stream positioned at the header row
        on_error: Optional callback receiving each RecordError

    Yields:
        One Event per valid record, in input order

    Raises:
        RecordError: Incomplete header (always), or a bad record
                     when no on_error handler is given
    """
    reader = csv.reader(stream)
    columns = _read_header(reader)
    if columns is None:
        return

    while True:
        try:
            row = next(reader)
        except StopIteration:
            return
        except csv.Error as e:
            # the reader resumes at the next line
            error = RecordError(f"malformed record: {e}", reader.line_num)
            if on_error is None:
                raise error from e
            on_error(error)
            continue
        if not any(field.strip() for field in row):
            continue
        try:
            yield parse_record(row, columns, line=reader.line_num)
        except RecordError as e:
            if on_error is None:
                raise
            on_error(e)


def parse_record(row: List[str], columns: Dict[str, int], line: Optional[int] = None) -> Event:
    """
    Convert one raw record to an Event.

    Args:
        row: Raw record fields
        columns: Column name -> field index, as produced from the header
        line: Line number used in error messages

    Raises:
        RecordError: Unknown type, bad identifier, missing or malformed amount
    """
    width = max(columns.values()) + 1
    if len(row) > width:
        raise RecordError(f"expected at most {width} fields, found {len(row)}", line, row)

    def field(name: str) -> str:
        index = columns.get(name)
        if index is None or index >= len(row):
            return ""
        return row[index].strip()

    kind = field("type").lower()
    event_type = EVENT_TYPES.get(kind)
    if event_type is None:
        raise RecordError(f"unknown transaction type {field('type')!r}", line, row)

    client = _parse_uint(field("client"), "client", MAX_CLIENT_ID, line, row)
    tx = _parse_uint(field("tx"), "tx", MAX_TX_ID, line, row)

    if kind not in AMOUNT_EVENTS:
        return event_type(client=client, tx=tx)

    text = field("amount")
    if not text:
        raise RecordError(f"{kind} requires an amount", line, row)
    try:
        amount = Amount.parse(text)
    except ParseAmountError as e:
        raise RecordError(f"invalid amount {text!r}: {e}", line, row) from e
    return event_type(client=client, tx=tx, amount=amount)


def _read_header(reader) -> Optional[Dict[str, int]]:
    for row in reader:
        names = [name.strip().lower() for name in row]
        if not any(names):
            continue
        missing = [name for name in REQUIRED_COLUMNS if name not in names]
        if missing:
            raise RecordError(f"header is missing columns: {', '.join(missing)}", reader.line_num, row)
        return {name: index for index, name in enumerate(names) if name}
    return None


def _parse_uint(text: str, name: str, maximum: int, line: Optional[int], row: List[str]) -> int:
    if not text.isascii() or not text.isdigit():
        raise RecordError(f"invalid {name} {text!r}", line, row)
    value = int(text)
    if value > maximum:
        raise RecordError(f"{name} {value} out of range (max {maximum})", line, row)
    return value


# ============================================================================
# OUTPUT
# ============================================================================

def write_summaries(stream: TextIO, summaries: Iterable[ClientSummary]) -> None:
    """
    Write client summaries as CSV.

    Amounts use the canonical Amount text form; locked is written as
    `true` / `false`.
    """
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(OUTPUT_COLUMNS)
    for summary in summaries:
        writer.writerow([
            summary.client,
            summary.available,
            summary.held,
            summary.total,
            "true" if summary.locked else "false",
        ])
