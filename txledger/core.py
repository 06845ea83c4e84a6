"""
Core types for the transaction ledger.

This module provides the shared vocabulary used by the engine and the
record adapters:
1. Identifier aliases and their valid ranges: ClientID, TxID
2. Immutable event records: Deposit, Withdrawal, Dispute, Resolve, Chargeback
3. Exceptions: LedgerError and the recoverable / fatal error families

Events are plain data. All behaviour lives in the engine.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from .amount import Amount


# ============================================================================
# IDENTIFIERS
# ============================================================================

# Client identifier: unsigned 16-bit integer.
ClientID = int

# Transaction identifier: unsigned 32-bit integer, unique per deposit
# across the whole input stream.
TxID = int

MAX_CLIENT_ID = 2 ** 16 - 1
MAX_TX_ID = 2 ** 32 - 1

# Canonical (lowercase) event type names as they appear in input records.
EVENT_DEPOSIT = "deposit"
EVENT_WITHDRAWAL = "withdrawal"
EVENT_DISPUTE = "dispute"
EVENT_RESOLVE = "resolve"
EVENT_CHARGEBACK = "chargeback"


# ============================================================================
# EVENTS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Deposit:
    """Credit `amount` to the client's available funds."""
    client: ClientID
    tx: TxID
    amount: Amount

    kind = EVENT_DEPOSIT


@dataclass(frozen=True, slots=True)
class Withdrawal:
    """Debit `amount` from the client's available funds."""
    client: ClientID
    tx: TxID
    amount: Amount

    kind = EVENT_WITHDRAWAL


@dataclass(frozen=True, slots=True)
class Dispute:
    """Hold the funds of deposit `tx` pending investigation."""
    client: ClientID
    tx: TxID

    kind = EVENT_DISPUTE


@dataclass(frozen=True, slots=True)
class Resolve:
    """Release the held funds of disputed deposit `tx`."""
    client: ClientID
    tx: TxID

    kind = EVENT_RESOLVE


@dataclass(frozen=True, slots=True)
class Chargeback:
    """Reverse disputed deposit `tx` and lock the account."""
    client: ClientID
    tx: TxID

    kind = EVENT_CHARGEBACK


Event = Union[Deposit, Withdrawal, Dispute, Resolve, Chargeback]

EVENT_TYPES = {
    EVENT_DEPOSIT: Deposit,
    EVENT_WITHDRAWAL: Withdrawal,
    EVENT_DISPUTE: Dispute,
    EVENT_RESOLVE: Resolve,
    EVENT_CHARGEBACK: Chargeback,
}

# Event types whose record carries an amount.
AMOUNT_EVENTS = frozenset({EVENT_DEPOSIT, EVENT_WITHDRAWAL})


def describe_event(event: Event) -> str:
    """One-line human description used in traces and error reports."""
    text = f"{event.kind} client={event.client} tx={event.tx}"
    amount = getattr(event, "amount", None)
    if amount is not None:
        text += f" amount={amount}"
    return text


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all ledger-related errors."""
    pass


class TxProcessingError(LedgerError):
    """
    An event was rejected by the engine.

    Recoverable: the engine state is unchanged and processing can continue
    with the next event.

    Attributes:
        event: The rejected event (None when raised outside process())
    """
    message = "transaction rejected"

    def __init__(self, event: Optional[Event] = None, message: Optional[str] = None):
        self.event = event
        super().__init__(message or self.message)


class AmountOverflow(TxProcessingError):
    """Raised when a deposit would push the account total past the Amount domain."""
    message = "amount overflow"


class InsufficientFunds(TxProcessingError):
    """Raised when available funds do not cover a withdrawal or a dispute hold."""
    message = "insufficient funds"


class DepositNotFound(TxProcessingError):
    """Raised when a dispute, resolve or chargeback references an unknown deposit."""
    message = "deposit not found"


class TxAlreadyDisputed(TxProcessingError):
    """Raised when disputing a transaction that is already under dispute."""
    message = "transaction is already disputed"


class TxNotDisputed(TxProcessingError):
    """Raised when resolving or charging back a transaction that is not disputed."""
    message = "transaction is not disputed"


class AccountLocked(TxProcessingError):
    """Raised when any event targets a locked account."""
    message = "account is locked"


class RecordError(LedgerError):
    """
    An input record could not be turned into an Event.

    Attributes:
        line: 1-based line number of the record in the input
        row: The raw record fields
    """

    def __init__(self, message: str, line: Optional[int] = None, row: Optional[Sequence[str]] = None):
        self.line = line
        self.row = list(row) if row is not None else None
        prefix = f"line {line}: " if line is not None else ""
        super().__init__(f"{prefix}{message}")


class LedgerInvariantError(LedgerError):
    """
    Internal consistency violation.

    Never part of the recoverable taxonomy: it signals a defect or broken
    input guarantees, and the run must abort instead of continuing with
    corrupted state.
    """
    pass


class DuplicateTransaction(LedgerInvariantError):
    """Raised when a deposit reuses a transaction id already seen."""
    pass
