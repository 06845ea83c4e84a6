"""
txledger - Client Transaction Ledger

Applies a sequential log of deposits, withdrawals, disputes, resolves and
chargebacks to per-client accounts using exact fixed-point amounts.

Usage:
    from txledger import TxEngine, Amount, Deposit, Dispute, TxProcessingError

    engine = TxEngine()
    engine.process(Deposit(client=1, tx=1, amount=Amount.parse("1.0")))
    engine.process(Dispute(client=1, tx=1))

    for summary in engine.summaries():
        print(summary.client, summary.available, summary.held, summary.total)
"""

# Amounts
from .amount import (
    Amount,
    format_amount,
    ParseAmountError,
    InvalidNumber,
    TooLarge,
    MultipleDots,
    TooPrecise,
    MAX_UNITS,
    PRECISION,
    SCALE,
)

# Core types
from .core import (
    ClientID,
    TxID,
    Event,
    Deposit,
    Withdrawal,
    Dispute,
    Resolve,
    Chargeback,
    describe_event,
    LedgerError,
    TxProcessingError,
    AmountOverflow,
    InsufficientFunds,
    DepositNotFound,
    TxAlreadyDisputed,
    TxNotDisputed,
    AccountLocked,
    RecordError,
    LedgerInvariantError,
    DuplicateTransaction,
    MAX_CLIENT_ID,
    MAX_TX_ID,
)

# Engine
from .engine import Account, ClientSummary, TxEngine

# Record adapters
from .records import read_events, parse_record, write_summaries

__all__ = [
    # Amounts
    'Amount', 'format_amount',
    'ParseAmountError', 'InvalidNumber', 'TooLarge', 'MultipleDots', 'TooPrecise',
    'MAX_UNITS', 'PRECISION', 'SCALE',
    # Core
    'ClientID', 'TxID', 'Event',
    'Deposit', 'Withdrawal', 'Dispute', 'Resolve', 'Chargeback', 'describe_event',
    'LedgerError', 'TxProcessingError', 'AmountOverflow', 'InsufficientFunds',
    'DepositNotFound', 'TxAlreadyDisputed', 'TxNotDisputed', 'AccountLocked',
    'RecordError', 'LedgerInvariantError', 'DuplicateTransaction',
    'MAX_CLIENT_ID', 'MAX_TX_ID',
    # Engine
    'Account', 'ClientSummary', 'TxEngine',
    # Records
    'read_events', 'parse_record', 'write_summaries',
]

__version__ = '1.0.0'
