"""
Ledger Invariant Conformance Tests

INVARIANTS, for every client c after any sequence of events:
    available(c) + held(c) = total(c)
    total(c) = Σ deposits(c) - Σ withdrawals(c) - Σ chargebacks(c)
        (successful events only; holds redistribute but never change total)
    held(c) = Σ amounts of c's currently disputed deposits
    locked(c) ⟹ no later event for c succeeds
    a disputed tx cannot be disputed again until resolved or charged back

The engine is checked step by step against a small reference model that
predicts the outcome (applied, or which error) of every event.
"""

import pytest
from hypothesis import given, settings, note
from hypothesis import strategies as st
from typing import Dict, List, Optional, Set, Tuple

from txledger import (
    TxEngine, Amount, MAX_UNITS,
    Deposit, Withdrawal, Dispute, Resolve, Chargeback,
    TxProcessingError, AmountOverflow, InsufficientFunds, DepositNotFound,
    TxAlreadyDisputed, TxNotDisputed, AccountLocked,
)


# =============================================================================
# STRATEGIES FOR PROPERTY-BASED TESTING
# =============================================================================

@st.composite
def event_sequence(draw, clients=(1,), max_units=10 ** 8, max_size=60):
    """
    Generate an adversarial event sequence.

    Deposits get fresh tx ids. Disputes, resolves and chargebacks reference
    any tx id seen so far, plus one that was never issued, for any client,
    so they regularly hit unknown, foreign, resolved or locked deposits.
    """
    size = draw(st.integers(min_value=1, max_value=max_size))
    amounts = st.integers(min_value=0, max_value=max_units).map(Amount)
    kinds = ["deposit"] * 10 + ["withdrawal"] * 10 + ["dispute"] * 10 + ["resolve"] * 10 + ["chargeback"]

    events = [Deposit(client=clients[0], tx=1, amount=draw(amounts))]
    next_deposit = 2
    next_withdrawal = 1_000_000
    for _ in range(size - 1):
        kind = draw(st.sampled_from(kinds))
        client = draw(st.sampled_from(clients))
        if kind == "deposit":
            events.append(Deposit(client=client, tx=next_deposit, amount=draw(amounts)))
            next_deposit += 1
        elif kind == "withdrawal":
            events.append(Withdrawal(client=client, tx=next_withdrawal, amount=draw(amounts)))
            next_withdrawal += 1
        else:
            tx = draw(st.integers(min_value=1, max_value=next_deposit))
            event_type = {"dispute": Dispute, "resolve": Resolve, "chargeback": Chargeback}[kind]
            events.append(event_type(client=client, tx=tx))
    return events


# =============================================================================
# REFERENCE MODEL
# =============================================================================

class Model:
    """Plain-integer bookkeeping of what the engine should hold."""

    def __init__(self):
        self.available: Dict[int, int] = {}
        self.held: Dict[int, int] = {}
        self.total: Dict[int, int] = {}
        self.locked: Set[int] = set()
        self.deposits: Dict[int, Tuple[int, int]] = {}
        self.disputed: Set[int] = set()

    def touch(self, client: int) -> None:
        self.available.setdefault(client, 0)
        self.held.setdefault(client, 0)
        self.total.setdefault(client, 0)

    def expected_error(self, event) -> Optional[type]:
        """Error type the engine must raise for `event`, or None if it applies."""
        client = event.client
        if isinstance(event, (Deposit, Withdrawal)):
            self.touch(client)
            if client in self.locked:
                return AccountLocked
            if isinstance(event, Deposit):
                if self.available[client] + self.held[client] + event.amount.units > MAX_UNITS:
                    return AmountOverflow
                return None
            if event.amount.units > self.available[client]:
                return InsufficientFunds
            return None

        record = self.deposits.get(event.tx)
        if record is None or record[0] != client:
            return DepositNotFound
        if isinstance(event, Dispute):
            if event.tx in self.disputed:
                return TxAlreadyDisputed
            if client in self.locked:
                return AccountLocked
            if record[1] > self.available[client]:
                return InsufficientFunds
            return None
        if event.tx not in self.disputed:
            return TxNotDisputed
        if client in self.locked:
            return AccountLocked
        return None

    def apply(self, event) -> None:
        client = event.client
        if isinstance(event, Deposit):
            self.available[client] += event.amount.units
            self.total[client] += event.amount.units
            self.deposits[event.tx] = (client, event.amount.units)
        elif isinstance(event, Withdrawal):
            self.available[client] -= event.amount.units
            self.total[client] -= event.amount.units
        else:
            amount = self.deposits[event.tx][1]
            if isinstance(event, Dispute):
                self.available[client] -= amount
                self.held[client] += amount
                self.disputed.add(event.tx)
            elif isinstance(event, Resolve):
                self.available[client] += amount
                self.held[client] -= amount
                self.disputed.discard(event.tx)
            else:
                self.held[client] -= amount
                self.total[client] -= amount
                self.disputed.discard(event.tx)
                self.locked.add(client)


def _run(events: List) -> Tuple[TxEngine, Model]:
    """Apply events to an engine and the model, checking every outcome."""
    engine = TxEngine()
    model = Model()
    for event in events:
        expected = model.expected_error(event)
        note(f"{event} -> {expected.__name__ if expected else 'applied'}")
        if expected is None:
            engine.process(event)
            model.apply(event)
        else:
            with pytest.raises(expected):
                engine.process(event)
    return engine, model


def _assert_matches(engine: TxEngine, model: Model) -> None:
    summaries = {s.client: s for s in engine.summaries()}
    assert set(summaries) == set(model.total)
    for client, summary in summaries.items():
        assert summary.available.units == model.available[client]
        assert summary.held.units == model.held[client]
        assert summary.total.units == model.total[client]
        assert summary.available.units + summary.held.units == summary.total.units
        assert summary.locked == (client in model.locked)
    assert engine.disputed == model.disputed
    assert engine.verify_holds()['valid']


# =============================================================================
# PROPERTY TESTS
# =============================================================================

class TestLedgerModel:
    """The engine agrees with the reference model on every event."""

    @given(event_sequence())
    @settings(max_examples=300)
    def test_single_client(self, events):
        engine, model = _run(events)
        _assert_matches(engine, model)

    @given(event_sequence(clients=(1, 2, 3)))
    @settings(max_examples=200)
    def test_multiple_clients(self, events):
        """Clients never see each other's deposits or disputes."""
        engine, model = _run(events)
        _assert_matches(engine, model)

    @given(event_sequence(max_units=MAX_UNITS, max_size=20))
    @settings(max_examples=200)
    def test_near_overflow_amounts(self, events):
        """Full-range amounts exercise the overflow guard."""
        engine, model = _run(events)
        _assert_matches(engine, model)


class TestLockMonotonicity:
    """Once locked, an account stays frozen."""

    @given(event_sequence(clients=(1, 2)))
    @settings(max_examples=200)
    def test_no_success_after_lock(self, events):
        engine = TxEngine()
        locked_at: Dict[int, object] = {}
        for event in events:
            try:
                engine.process(event)
            except TxProcessingError:
                continue
            assert event.client not in locked_at, f"{event} applied after lock"
            account = engine.get_account(event.client)
            if account.locked:
                locked_at[event.client] = event
        for client in locked_at:
            assert engine.get_account(client).locked


class TestDisputeExclusivity:
    """Dispute state transitions are strictly ordered."""

    @given(event_sequence())
    @settings(max_examples=200)
    def test_transitions(self, events):
        engine = TxEngine()
        for event in events:
            was_disputed = engine.is_disputed(event.tx)
            try:
                engine.process(event)
            except TxProcessingError:
                assert engine.is_disputed(event.tx) == was_disputed
                continue
            if isinstance(event, Dispute):
                assert not was_disputed
                assert engine.is_disputed(event.tx)
            elif isinstance(event, (Resolve, Chargeback)):
                assert was_disputed
                assert not engine.is_disputed(event.tx)
