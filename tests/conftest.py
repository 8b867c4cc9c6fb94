"""
conftest.py - Shared pytest fixtures for debtledger tests

Provides common fixtures used across unit, conformance and functional tests:
- Empty and pre-populated ledgers
- The three-party cycle from the documentation
- A deliberately unbalanced ledger for the fatal-error path
"""

import pytest

from debtledger import Ledger, transaction

from tests.builders import usd


# =============================================================================
# BASIC FIXTURES
# =============================================================================

@pytest.fixture
def empty_ledger():
    """Fresh ledger with no balances."""
    return Ledger("test")


@pytest.fixture
def chain_ledger():
    """Alice owes Bob 20, Bob owes Charlie 20: Bob nets out."""
    ledger = Ledger("chain")
    ledger.add_transaction(transaction("Alice", "Bob", (20, "USD")))
    ledger.add_transaction(transaction("Bob", "Charlie", (20, "USD")))
    return ledger


@pytest.fixture
def cycle_ledger():
    """
    Alice owes Bob 20, Bob owes Charlie 50, Charlie owes Alice 35.

    Net: Alice +15, Bob -30, Charlie +15.
    """
    ledger = Ledger("cycle")
    ledger.add_transaction(transaction("Alice", "Bob", (20, "USD")))
    ledger.add_transaction(transaction("Bob", "Charlie", (50, "USD")))
    ledger.add_transaction(transaction("Charlie", "Alice", (35, "USD")))
    return ledger


@pytest.fixture
def unbalanced_ledger():
    """Test-mode ledger holding a single non-zero balance."""
    ledger = Ledger("broken", test_mode=True)
    ledger.set_balance("A", usd("10"))
    return ledger
