"""
engine.py - Stateful Transaction Ledger Engine

The TxEngine is the central state manager of the system. It is the only
component that mutates account state, and it does so one event at a time.

Key responsibilities:
    - Applies deposit, withdrawal, dispute, resolve and chargeback events
    - Tracks deposits so later disputes can recover the original amount
    - Tracks which deposits are currently disputed
    - Rejects invalid events with a TxProcessingError, leaving state untouched
    - Aborts with a LedgerInvariantError when internal consistency breaks

Dispute lifecycle of a deposit:

    Clean --dispute--> Disputed --resolve----> Clean
                                --chargeback-> Charged back (account locked)
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Set, Tuple, Any
import sys

from .amount import Amount
from .core import (
    # Types
    ClientID, TxID, Event,
    Deposit, Withdrawal, Dispute, Resolve, Chargeback,
    describe_event,
    # Exceptions
    TxProcessingError, AmountOverflow, InsufficientFunds, DepositNotFound,
    TxAlreadyDisputed, TxNotDisputed, AccountLocked,
    LedgerInvariantError, DuplicateTransaction,
)


# ============================================================================
# ACCOUNT STATE
# ============================================================================

@dataclass(slots=True)
class Account:
    """
    Balances of a single client.

    Invariant: available + held is always representable as an Amount.
    Invariant: once locked, the account never changes again.

    Attributes:
        available: Funds the client can withdraw
        held: Funds frozen by open disputes
        locked: Set by a chargeback, never cleared
    """
    available: Amount = field(default_factory=Amount.zero)
    held: Amount = field(default_factory=Amount.zero)
    locked: bool = False

    @property
    def total(self) -> Amount:
        total = self.available.checked_add(self.held)
        if total is None:
            raise LedgerInvariantError("invariant violated: total is too big")
        return total

    def deposit(self, amount: Amount) -> None:
        if self.total.checked_add(amount) is None:
            raise AmountOverflow()
        self.available = _expect(
            self.available.checked_add(amount), "invariant violated: total < available"
        )

    def withdraw(self, amount: Amount) -> None:
        available = self.available.checked_sub(amount)
        if available is None:
            raise InsufficientFunds()
        self.available = available

    def hold(self, amount: Amount) -> None:
        available = self.available.checked_sub(amount)
        if available is None:
            raise InsufficientFunds()
        self.held = _expect(self.held.checked_add(amount), "invariant violated: total is too big")
        self.available = available

    def release(self, amount: Amount) -> None:
        held = _expect(self.held.checked_sub(amount), "invariant violated: not enough money is held")
        self.available = _expect(
            self.available.checked_add(amount), "invariant violated: total is too big"
        )
        self.held = held

    def chargeback(self, amount: Amount) -> None:
        self.held = _expect(self.held.checked_sub(amount), "invariant violated: not enough money is held")
        self.locked = True


@dataclass(frozen=True, slots=True)
class ClientSummary:
    """Point-in-time balances of one client, as written to the output."""
    client: ClientID
    available: Amount
    held: Amount
    total: Amount
    locked: bool


def _expect(value: Optional[Amount], message: str) -> Amount:
    """Unwrap a checked arithmetic result that the preceding guards make infallible."""
    if value is None:
        raise LedgerInvariantError(message)
    return value


# ============================================================================
# ENGINE
# ============================================================================

class TxEngine:
    """
    Sequential transaction processor holding all client accounts.

    Every event is fully applied (or fully rejected) before the next one is
    considered. Rejections raise a TxProcessingError subclass and never
    modify state. Independent engines share nothing, so any number of them
    can coexist.

    Thread Safety:
        Not thread-safe. Each thread should maintain its own TxEngine instance.

    Example:
        engine = TxEngine()
        engine.process(Deposit(client=1, tx=1, amount=Amount.parse("1.5")))
        try:
            engine.process(Withdrawal(client=1, tx=2, amount=Amount.parse("2")))
        except TxProcessingError as e:
            print(e)  # insufficient funds
        for summary in engine.summaries():
            ...
    """

    def __init__(self, verbose: bool = False):
        """
        Create an empty engine.

        Args:
            verbose: Print a trace line per processed event to stderr (default: False)
        """
        self.verbose = verbose
        self.accounts: Dict[ClientID, Account] = {}
        # Deposit ledger: tx -> (owning client, deposited amount)
        self.deposits: Dict[TxID, Tuple[ClientID, Amount]] = {}
        self.disputed: Set[TxID] = set()
        self.stats: Counter = Counter()
        self._handlers: Dict[type, Callable[[Any], None]] = {
            Deposit: self._deposit,
            Withdrawal: self._withdraw,
            Dispute: self._dispute,
            Resolve: self._resolve,
            Chargeback: self._chargeback,
        }

    # ========================================================================
    # READ-ONLY ACCESS
    # ========================================================================

    def summaries(self) -> List[ClientSummary]:
        """
        Summaries of every client referenced so far.

        One entry per client, in the order clients were first seen. The
        order carries no meaning beyond that.
        """
        return [
            ClientSummary(
                client=client,
                available=account.available,
                held=account.held,
                total=account.total,
                locked=account.locked,
            )
            for client, account in self.accounts.items()
        ]

    def get_account(self, client: ClientID) -> Optional[Account]:
        """Copy of a client's account, or None if the client was never referenced."""
        account = self.accounts.get(client)
        return replace(account) if account is not None else None

    def list_clients(self) -> List[ClientID]:
        return list(self.accounts)

    def is_disputed(self, tx: TxID) -> bool:
        return tx in self.disputed

    def deposit_amount(self, client: ClientID, tx: TxID) -> Amount:
        """
        Amount of deposit `tx` made by `client`.

        Raises:
            DepositNotFound: No such deposit for this client
        """
        record = self.deposits.get(tx)
        if record is None or record[0] != client:
            raise DepositNotFound()
        return record[1]

    def verify_holds(self) -> Dict[str, Any]:
        """
        Audit held funds against the open disputes.

        For every client, held must equal the sum of its currently disputed
        deposits, and available + held must be representable.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every account passes
            - 'discrepancies': List[Dict] - one entry per failing client with
              client, expected_held, actual_held (and 'error' for totals)

        Example:
            result = engine.verify_holds()
            assert result['valid'], result['discrepancies']
        """
        expected: Dict[ClientID, int] = {}
        for tx in self.disputed:
            client, amount = self.deposits[tx]
            expected[client] = expected.get(client, 0) + amount.units

        discrepancies = []
        for client, account in self.accounts.items():
            expected_held = expected.get(client, 0)
            if account.held.units != expected_held:
                discrepancies.append({
                    'client': client,
                    'expected_held': expected_held,
                    'actual_held': account.held.units,
                })
            if account.available.checked_add(account.held) is None:
                discrepancies.append({
                    'client': client,
                    'error': 'total not representable',
                })

        return {
            'valid': len(discrepancies) == 0,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # EVENT PROCESSING (Mutating)
    # ========================================================================

    def process(self, event: Event) -> None:
        """
        Apply a single event.

        Args:
            event: Deposit, Withdrawal, Dispute, Resolve or Chargeback

        Raises:
            TxProcessingError: The event was rejected; state is unchanged
            LedgerInvariantError: Internal consistency violation (fatal)
            TypeError: Not an event
        """
        handler = self._handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported event type: {type(event).__name__}")

        try:
            handler(event)
        except TxProcessingError as e:
            if e.event is None:
                e.event = event
            self.stats[f"rejected:{type(e).__name__}"] += 1
            if self.verbose:
                print(f"✗ REJECTED: {describe_event(event)}: {e}", file=sys.stderr)
            raise

        self.stats[f"applied:{event.kind}"] += 1
        if self.verbose:
            print(f"✓ APPLIED: {describe_event(event)}", file=sys.stderr)

    def _account(self, client: ClientID) -> Account:
        """Get or lazily create an unlocked account for `client`."""
        account = self.accounts.get(client)
        if account is None:
            account = self.accounts[client] = Account()
        if account.locked:
            raise AccountLocked()
        return account

    def _deposit(self, event: Deposit) -> None:
        existing = self.accounts.get(event.client)
        locked = existing is not None and existing.locked
        if event.tx in self.deposits and not locked:
            raise DuplicateTransaction(f"duplicate transaction id {event.tx}")
        account = self._account(event.client)
        account.deposit(event.amount)
        self.deposits[event.tx] = (event.client, event.amount)

    def _withdraw(self, event: Withdrawal) -> None:
        self._account(event.client).withdraw(event.amount)

    def _dispute(self, event: Dispute) -> None:
        amount = self.deposit_amount(event.client, event.tx)
        if event.tx in self.disputed:
            raise TxAlreadyDisputed()
        self._account(event.client).hold(amount)
        self.disputed.add(event.tx)

    def _resolve(self, event: Resolve) -> None:
        amount = self.deposit_amount(event.client, event.tx)
        if event.tx not in self.disputed:
            raise TxNotDisputed()
        self._account(event.client).release(amount)
        self.disputed.discard(event.tx)

    def _chargeback(self, event: Chargeback) -> None:
        amount = self.deposit_amount(event.client, event.tx)
        if event.tx not in self.disputed:
            raise TxNotDisputed()
        self._account(event.client).chargeback(amount)
        self.disputed.discard(event.tx)
