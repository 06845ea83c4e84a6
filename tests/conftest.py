"""
conftest.py - Shared pytest fixtures for txledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Fresh engines (quiet and verbose)
- A funded engine with a couple of deposits
- A helper writing CSV input files
"""

import pytest

from txledger import TxEngine, Amount, Deposit


@pytest.fixture
def engine():
    """Empty, quiet engine."""
    return TxEngine()


@pytest.fixture
def verbose_engine():
    """Empty engine tracing every event to stderr."""
    return TxEngine(verbose=True)


@pytest.fixture
def funded_engine():
    """
    Engine where client 1 deposited 1.0 (tx 1) and 2.0 (tx 2).

    available=3, held=0, nothing disputed.
    """
    eng = TxEngine()
    eng.process(Deposit(client=1, tx=1, amount=Amount.parse("1.0")))
    eng.process(Deposit(client=1, tx=2, amount=Amount.parse("2.0")))
    return eng


@pytest.fixture
def write_csv(tmp_path):
    """Write lines to a CSV file under tmp_path and return its path."""
    def _write(lines, name="transactions.csv"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path
    return _write
