"""
ledger.py - Running net balances between parties

The Ledger is the only stateful object in the package. It folds Transactions into
one signed net balance per party and currency, and hands snapshots of those
balances to the settlement engine.

Key responsibilities:
    - Applies each transaction atomically (every share or none)
    - Keeps the conservation law: balances of one currency always sum to zero
    - Drops parties whose balance returns to exactly zero
    - Serialises mutation behind a lock so settlement always reads a consistent snapshot
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
import threading

from .core import (
    # Types
    Transaction, Payment, MoneyLike, Party,
    sum_amounts,
    # Constants
    DEFAULT_GROUP_SIZE,
    # Exceptions
    LedgerError, CurrencyMismatch,
)
from .settlement import settle_balances


class Ledger:
    """
    Zero-sum ledger of who owes money and who is owed money.

    Balances are signed: negative means the party owes, positive means the party is
    owed. Each currency is tracked independently; there is no currency conversion.

    Thread Safety:
        add_transaction(), set_balance() and every read take the same lock, so the
        ledger can be shared by several producers. Settlement runs on a snapshot
        taken under the lock and never mutates the ledger.

    Example:
        ledger = Ledger()
        ledger.add_transaction(transaction("Alice", "Bob", (20, "USD")))
        ledger.add_transaction(transaction("Bob", "Charlie", (20, "USD")))

        for payment in ledger.settle():
            print(payment)
        # Alice owes Charlie 20.00 USD
    """

    def __init__(self, name: str = "ledger", verbose: bool = False, test_mode: bool = False):
        """
        Create an empty ledger.

        Args:
            name: Ledger identifier used in verbose output
            verbose: Print a line for every applied or rejected transaction (default: False)
            test_mode: Enable set_balance() for building deliberately broken states
        """
        self.name = name
        self.verbose = verbose
        self._test_mode = test_mode
        # currency code -> {party -> non-zero balance}
        self._balances: Dict[str, Dict[Party, MoneyLike]] = {}
        self.transaction_count: int = 0
        self._lock = threading.RLock()

    # ========================================================================
    # READS
    # ========================================================================

    def net_balances(self, currency_code: str) -> Dict[Party, MoneyLike]:
        """
        Return a snapshot of every non-zero balance in one currency.

        The returned dict is a copy; mutating it does not affect the ledger.

        Args:
            currency_code: Currency to read

        Returns:
            Mapping of party to signed balance (empty if the currency is unknown)
        """
        with self._lock:
            return dict(self._balances.get(currency_code, {}))

    def all_currencies(self) -> Set[str]:
        """Return the currency codes that have at least one non-zero balance."""
        with self._lock:
            return set(self._balances)

    def balance(self, party: Party, currency_code: str) -> Optional[MoneyLike]:
        """Return one party's balance, or None if it is zero."""
        with self._lock:
            return self._balances.get(currency_code, {}).get(party)

    def to_list(self) -> List[Tuple[Party, MoneyLike]]:
        """
        Return every non-zero balance as (party, balance) pairs.

        Ordered by currency code, then by party.
        """
        with self._lock:
            return [
                (party, book[party])
                for code, book in sorted(self._balances.items())
                for party in sorted(book)
            ]

    def is_balanced(self, currency_code: str) -> bool:
        """Return True if the balances of a currency sum to exactly zero."""
        total = sum_amounts(self.net_balances(currency_code).values())
        return total is None or total.is_zero()

    def verify_conservation(self) -> Dict[str, Any]:
        """
        Verify that the conservation law holds for every currency.

        Returns:
            Dict with keys:
            - 'valid': bool - True if every currency sums to zero
            - 'totals': Dict[str, MoneyLike] - Sum of balances per currency
            - 'discrepancies': List[Dict] - One entry per currency whose total is
              not zero, with keys currency and total

        Example:
            result = ledger.verify_conservation()
            assert result['valid'], f"Conservation violated: {result['discrepancies']}"
        """
        with self._lock:
            snapshot = {code: list(book.values()) for code, book in self._balances.items()}

        totals = {}
        discrepancies = []
        for code in sorted(snapshot):
            total = sum_amounts(snapshot[code])
            totals[code] = total
            if not total.is_zero():
                discrepancies.append({'currency': code, 'total': total})

        return {
            'valid': len(discrepancies) == 0,
            'totals': totals,
            'discrepancies': discrepancies,
        }

    # ========================================================================
    # MUTATION
    # ========================================================================

    def add_transaction(self, transaction: Transaction) -> None:
        """
        Fold a transaction into the running balances.

        Every debtor is debited and every creditor credited by their share (see
        core.allocate()), so the balances of the transaction's currency still sum
        to zero afterwards. The update is all-or-nothing: new balances are computed
        first and only then written.

        Args:
            transaction: Validated Transaction to record

        Raises:
            TypeError: If `transaction` is not a Transaction
            CurrencyMismatch: If a share cannot be combined with an existing balance
        """
        if not isinstance(transaction, Transaction):
            raise TypeError(f"Expected a Transaction, got {type(transaction)}")

        deltas = [(party, -share) for party, share in transaction.debits()]
        deltas.extend(transaction.credits())
        code = transaction.currency_code

        with self._lock:
            try:
                updated = self._fold(code, deltas)
            except CurrencyMismatch as e:
                if self.verbose:
                    print(f"✗ REJECTED: {transaction}: {e}")
                raise
            self._commit(code, updated)
            self.transaction_count += 1

        if self.verbose:
            print(f"✓ APPLIED [{self.name}]: {transaction}")

    def add_transactions(self, transactions: Iterable[Transaction]) -> None:
        """Fold several transactions in order. Each one is applied atomically."""
        for tx in transactions:
            self.add_transaction(tx)

    def set_balance(self, party: Party, amount: MoneyLike) -> None:
        """
        Overwrite a party's balance directly.

        WARNING: This bypasses the conservation law and is only available in test
        mode. Use add_transaction() to change balances.

        Raises:
            LedgerError: If called when test_mode is False
        """
        if not self._test_mode:
            raise LedgerError(
                "set_balance() is disabled in production mode. "
                "Use add_transaction() to modify balances. "
                "Set test_mode=True when creating Ledger for testing."
            )
        with self._lock:
            self._commit(amount.currency_code, {party: amount})

    def _fold(self, code: str, deltas: List[Tuple[Party, MoneyLike]]) -> Dict[Party, MoneyLike]:
        """Compute the new balances of every party touched by `deltas`."""
        book = self._balances.get(code, {})
        updated: Dict[Party, MoneyLike] = {}
        for party, delta in deltas:
            current = updated.get(party, book.get(party))
            updated[party] = delta if current is None else current + delta
        return updated

    def _commit(self, code: str, updated: Dict[Party, MoneyLike]) -> None:
        book = self._balances.setdefault(code, {})
        for party, value in updated.items():
            if value.is_zero():
                book.pop(party, None)
            else:
                book[party] = value
        if not book:
            del self._balances[code]

    # ========================================================================
    # SETTLEMENT
    # ========================================================================

    def settle_currency(
        self,
        currency_code: str,
        max_group_size: int = DEFAULT_GROUP_SIZE,
    ) -> List[Payment]:
        """
        Compute the payments that clear every balance in one currency.

        The ledger is not modified; calling this twice returns the same payments.

        Args:
            currency_code: Currency to settle
            max_group_size: Maximum parties in one payment (default 2: one payer, one payee)

        Returns:
            Payments in the order the engine produced them

        Raises:
            InternalConsistencyError: If the balances do not sum to zero
        """
        return self._settle_snapshot(currency_code, self.net_balances(currency_code), max_group_size)

    def settle(self, max_group_size: int = DEFAULT_GROUP_SIZE) -> List[Payment]:
        """
        Compute the payments that clear every balance in every currency.

        Currencies are settled independently, in sorted currency-code order.
        All currencies are read from one snapshot taken under the lock, so a
        concurrent add_transaction() lands either before every currency or after.
        The ledger is not modified.
        """
        with self._lock:
            snapshot = {code: dict(book) for code, book in self._balances.items()}

        payments: List[Payment] = []
        for code in sorted(snapshot):
            payments.extend(self._settle_snapshot(code, snapshot[code], max_group_size))
        return payments

    def _settle_snapshot(
        self,
        currency_code: str,
        balances: Dict[Party, MoneyLike],
        max_group_size: int,
    ) -> List[Payment]:
        payments = settle_balances(balances, max_group_size)
        if self.verbose:
            print(f"[{self.name}] {currency_code}: {len(payments)} payment(s)")
        return payments

    # ========================================================================
    # LEDGER OPERATIONS
    # ========================================================================

    def clone(self) -> Ledger:
        """
        Create an independent copy of this ledger.

        Balances are immutable values, so copying the per-currency dicts is enough.
        """
        cloned = Ledger(self.name, verbose=self.verbose, test_mode=self._test_mode)
        with self._lock:
            cloned._balances = {code: dict(book) for code, book in self._balances.items()}
            cloned.transaction_count = self.transaction_count
        return cloned

    def __repr__(self) -> str:
        with self._lock:
            parties = sum(len(book) for book in self._balances.values())
            currencies = len(self._balances)
            count = self.transaction_count
        return (
            f"Ledger({self.name!r}, {parties} open balance(s), "
            f"{currencies} currency(ies), {count} transaction(s))"
        )

