"""
Core types and pure functions for the debt ledger.

This module provides the foundational data structures shared by the ledger and the
settlement engine:
1. Protocols: MoneyLike, the only contract the core has with money values
2. Immutable data structures: Transaction (input) and Payment (output)
3. Exceptions: LedgerError and the InvalidTransaction family
4. Allocation: deterministic even splitting of an amount across parties

Nothing in this module mutates state. The core never inspects a concrete money
representation; it only adds, negates, compares, and splits MoneyLike values.
"""

from __future__ import annotations
from collections.abc import Iterable, Set as AbstractSet
from dataclasses import dataclass
from decimal import ROUND_HALF_EVEN, getcontext
from typing import Any, Hashable, List, Optional, Protocol, Tuple, runtime_checkable


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# Money arithmetic must be exact. The global context is configured once at import
# time so that sums of balances never lose digits.
#
# PRECONDITION: No other code should modify the global Decimal context.
# If thread-local contexts are needed, use decimal.localcontext().
#
_LEDGER_DECIMAL_CONTEXT = getcontext()
_LEDGER_DECIMAL_CONTEXT.prec = 50
_LEDGER_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Parties per payment when settling one payer against one payee.
DEFAULT_GROUP_SIZE = 2

# A payment always involves at least a payer and a payee.
MIN_GROUP_SIZE = 2

# Largest subset the zero-sum pre-pass searches for. The search is C(n, k) per size,
# so it stays at pairs and triples whatever the group size.
MAX_ZERO_SUM_SUBSET = 3


# ============================================================================
# TYPE ALIASES
# ============================================================================

# Opaque party identifier. Must be hashable and totally ordered against the other
# parties of the same ledger (names, account ids, ...).
Party = Hashable


# ============================================================================
# PROTOCOLS
# ============================================================================

@runtime_checkable
class MoneyLike(Protocol):
    """
    Signed monetary amount tagged with a currency.

    debtledger.money.Money is the default implementation. Any value offering these
    operations can be recorded in a Ledger and settled.
    """

    @property
    def currency_code(self) -> str:
        """Return the ISO code of the currency this amount is denominated in."""
        ...

    def is_zero(self) -> bool:
        ...

    def is_positive(self) -> bool:
        ...

    def is_negative(self) -> bool:
        ...

    def allocate_to(self, number: int) -> List[Any]:
        """
        Split into `number` shares that sum exactly to this amount.

        Any remainder must be handed out one smallest unit at a time starting with
        the first share.
        """
        ...

    def __add__(self, other: Any) -> Any:
        ...

    def __sub__(self, other: Any) -> Any:
        ...

    def __neg__(self) -> Any:
        ...

    def __lt__(self, other: Any) -> bool:
        ...


# ============================================================================
# EXCEPTIONS
# ============================================================================

class LedgerError(Exception):
    """Base exception for all caller-correctable ledger errors."""
    pass


class InvalidTransaction(LedgerError):
    """Raised when a transaction violates its construction invariants."""
    pass


class NonPositiveAmount(InvalidTransaction):
    """Raised when a transaction amount is zero or negative."""
    pass


class EmptyDebtorSet(InvalidTransaction):
    """Raised when a transaction has no debtors."""
    pass


class EmptyCreditorSet(InvalidTransaction):
    """Raised when a transaction has no creditors."""
    pass


class SelfSettlement(InvalidTransaction):
    """Raised when the sole debtor of a transaction is also its sole creditor."""
    pass


class CurrencyMismatch(LedgerError):
    """Raised when arithmetic or comparison mixes two different currencies."""
    pass


class UnknownCurrency(LedgerError):
    """Raised when a currency code is not present in the currency registry."""
    pass


class InternalConsistencyError(RuntimeError):
    """
    Raised when the conservation invariant is found broken.

    This is a programming error, not a user input problem, so it deliberately does
    not derive from LedgerError: handlers for caller errors must not swallow it.
    """
    pass


# ============================================================================
# ALLOCATION
# ============================================================================

def _as_parties(value: Any) -> Tuple[Party, ...]:
    """
    Normalise one side of a transaction to an ordered tuple of unique parties.

    Strings and other non-iterables are a single party. Lists and tuples keep their
    order; sets are sorted so their order does not depend on hashing. Duplicates are
    dropped, keeping the first occurrence.

    A tuple is read as a sequence of parties. Wrap it in a list to use a tuple as
    a single party identifier.
    """
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return (value,)
    if isinstance(value, AbstractSet):
        value = sorted(value)
    return tuple(dict.fromkeys(value))


def allocate(amount: MoneyLike, parties: Tuple[Party, ...]) -> List[Tuple[Party, MoneyLike]]:
    """
    Split an amount evenly across an ordered tuple of parties.

    The shares always sum exactly to `amount`. When the amount does not divide
    evenly, the first parties in tuple order each receive one extra smallest unit,
    so the result is the same on every run.

    Args:
        amount: Amount to split
        parties: Non-empty ordered tuple of parties

    Returns:
        List of (party, share) pairs in the order of `parties`

    Example:
        allocate(Money.of("10", "USD"), ("a", "b", "c"))
        # [("a", 3.34 USD), ("b", 3.33 USD), ("c", 3.33 USD)]
    """
    if not parties:
        raise ValueError("Cannot allocate an amount to zero parties")
    if len(parties) == 1:
        return [(parties[0], amount)]
    return list(zip(parties, amount.allocate_to(len(parties))))


def sum_amounts(values: Iterable[MoneyLike]) -> Optional[MoneyLike]:
    """
    Add up money values with +.

    Returns None for an empty iterable, since the core has no currency-free zero.
    """
    total = None
    for value in values:
        total = value if total is None else total + value
    return total


def _describe(debtors: Tuple[Party, ...], creditors: Tuple[Party, ...], amount: MoneyLike) -> str:
    verb = "owes" if len(debtors) == 1 else "owe"
    payers = ", ".join(str(p) for p in debtors)
    payees = ", ".join(str(p) for p in creditors)
    return f"{payers} {verb} {payees} {amount}"


# ============================================================================
# CORE DATA STRUCTURES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transaction:
    """
    An obligation: every debtor owes every creditor part of `amount`.

    Each side shares the amount evenly (see allocate()), so a transaction with
    debtors (A, B) and creditor C for 10 USD debits A and B by 5 USD each and
    credits C by 10 USD.

    Attributes:
        debtors: Ordered tuple of parties that owe (at least one)
        creditors: Ordered tuple of parties that are owed (at least one)
        amount: Strictly positive MoneyLike amount

    A single party may be passed instead of a sequence for either side. A party may
    appear on both sides of a multi-party transaction (one person splitting a bill
    they paid), but never as the sole debtor and sole creditor at once.

    This class is immutable (frozen=True) and memory-optimized (slots=True).
    All fields are validated in __post_init__.

    Raises:
        EmptyDebtorSet, EmptyCreditorSet, NonPositiveAmount, SelfSettlement
    """
    debtors: Tuple[Party, ...]
    creditors: Tuple[Party, ...]
    amount: MoneyLike

    def __post_init__(self):
        debtors = _as_parties(self.debtors)
        creditors = _as_parties(self.creditors)
        object.__setattr__(self, 'debtors', debtors)
        object.__setattr__(self, 'creditors', creditors)

        if not debtors:
            raise EmptyDebtorSet("Transaction must have at least one debtor")
        if not creditors:
            raise EmptyCreditorSet("Transaction must have at least one creditor")
        if not isinstance(self.amount, MoneyLike):
            raise TypeError(f"Transaction amount must be a money value, got {type(self.amount)}")
        if not self.amount.is_positive():
            raise NonPositiveAmount(
                f"Transaction amount {self.amount} is less than or equal to 0"
            )
        if len(debtors) == 1 and len(creditors) == 1 and debtors[0] == creditors[0]:
            raise SelfSettlement(f"{debtors[0]} cannot owe themselves")

    @property
    def currency_code(self) -> str:
        return self.amount.currency_code

    def debits(self) -> List[Tuple[Party, MoneyLike]]:
        """Return each debtor's share of the amount."""
        return allocate(self.amount, self.debtors)

    def credits(self) -> List[Tuple[Party, MoneyLike]]:
        """Return each creditor's share of the amount."""
        return allocate(self.amount, self.creditors)

    def __str__(self) -> str:
        return _describe(self.debtors, self.creditors, self.amount)


@dataclass(frozen=True, slots=True)
class Payment:
    """
    One settling transfer produced by the settlement engine.

    With the default group size a payment has exactly one payer and one payee.
    Grouped settlement may put several parties on one side; they then share the
    amount under the same rule as Transaction (see allocate()).

    Attributes:
        payers: Ordered tuple of paying parties
        payees: Ordered tuple of receiving parties
        amount: Strictly positive MoneyLike amount
    """
    payers: Tuple[Party, ...]
    payees: Tuple[Party, ...]
    amount: MoneyLike

    def __post_init__(self):
        payers = _as_parties(self.payers)
        payees = _as_parties(self.payees)
        object.__setattr__(self, 'payers', payers)
        object.__setattr__(self, 'payees', payees)
        if not payers or not payees:
            raise ValueError("Payment must have at least one payer and one payee")
        if set(payers) & set(payees):
            raise ValueError("A party cannot pay itself")
        if not self.amount.is_positive():
            raise ValueError(f"Payment amount must be positive, got {self.amount}")

    @property
    def payer(self) -> Party:
        """The single payer. Raises ValueError for a grouped payment."""
        if len(self.payers) != 1:
            raise ValueError(f"Payment has {len(self.payers)} payers")
        return self.payers[0]

    @property
    def payee(self) -> Party:
        """The single payee. Raises ValueError for a grouped payment."""
        if len(self.payees) != 1:
            raise ValueError(f"Payment has {len(self.payees)} payees")
        return self.payees[0]

    @property
    def parties(self) -> Tuple[Party, ...]:
        return self.payers + self.payees

    @property
    def currency_code(self) -> str:
        return self.amount.currency_code

    def debits(self) -> List[Tuple[Party, MoneyLike]]:
        return allocate(self.amount, self.payers)

    def credits(self) -> List[Tuple[Party, MoneyLike]]:
        return allocate(self.amount, self.payees)

    def __str__(self) -> str:
        return _describe(self.payers, self.payees, self.amount)


# ============================================================================
# CONSTRUCTION HELPERS
# ============================================================================

def _to_money(amount: Any) -> MoneyLike:
    """Accept a money value or an (amount, currency_code) tuple."""
    # Imported here to keep the core independent of the concrete Money type.
    from .money import Money

    if isinstance(amount, MoneyLike):
        return amount
    if isinstance(amount, tuple) and len(amount) == 2:
        value, code = amount
        return Money.of(value, code)
    raise TypeError(f"Expected a money value or (amount, currency) tuple, got {amount!r}")


def transaction(debtor: Party, creditor: Party, amount: Any) -> Transaction:
    """
    Build a one-to-one Transaction: `debtor` owes `creditor` the amount.

    Example:
        transaction("Alice", "Bob", (20, "USD"))   # Alice owes Bob 20.00 USD
    """
    return Transaction((debtor,), (creditor,), _to_money(amount))


def multi_party_transaction(debtors: Any, creditors: Any, amount: Any) -> Transaction:
    """
    Build a Transaction between groups of parties.

    Example:
        # Alice paid a 30 USD dinner for herself, Bob and Carol
        multi_party_transaction(["Alice", "Bob", "Carol"], ["Alice"], (30, "USD"))
    """
    return Transaction(debtors, creditors, _to_money(amount))
