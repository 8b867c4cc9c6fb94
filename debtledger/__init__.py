"""
debtledger - Track debts between parties and settle them with few payments

Usage:
    from debtledger import Ledger, transaction

    ledger = Ledger()

    # Alice owes Bob 20, Bob owes Charlie 20
    ledger.add_transaction(transaction("Alice", "Bob", (20, "USD")))
    ledger.add_transaction(transaction("Bob", "Charlie", (20, "USD")))

    for payment in ledger.settle():
        print(payment)
    # Alice owes Charlie 20.00 USD

    # Split a bill: Alice paid 30 for herself, Bob and Carol
    ledger.add_transaction(
        multi_party_transaction(["Alice", "Bob", "Carol"], ["Alice"], (30, "USD"))
    )

    # Let up to three parties share one payment
    payments = ledger.settle(max_group_size=3)
"""

# Core types
from .core import (
    MoneyLike,
    Party,
    Transaction,
    Payment,
    allocate,
    sum_amounts,
    transaction,
    multi_party_transaction,
    LedgerError,
    InvalidTransaction,
    NonPositiveAmount,
    EmptyDebtorSet,
    EmptyCreditorSet,
    SelfSettlement,
    CurrencyMismatch,
    UnknownCurrency,
    InternalConsistencyError,
    DEFAULT_GROUP_SIZE,
    MIN_GROUP_SIZE,
    MAX_ZERO_SUM_SUBSET,
)

# Money
from .money import (
    Currency,
    Money,
    CURRENCIES,
    get_currency,
    register_currency,
)

# Ledger
from .ledger import Ledger

# Settlement
from .settlement import settle_balances, apply_payments

__all__ = [
    # Core
    'MoneyLike', 'Party', 'Transaction', 'Payment',
    'allocate', 'sum_amounts', 'transaction', 'multi_party_transaction',
    'LedgerError', 'InvalidTransaction', 'NonPositiveAmount', 'EmptyDebtorSet',
    'EmptyCreditorSet', 'SelfSettlement', 'CurrencyMismatch', 'UnknownCurrency',
    'InternalConsistencyError',
    'DEFAULT_GROUP_SIZE', 'MIN_GROUP_SIZE', 'MAX_ZERO_SUM_SUBSET',
    # Money
    'Currency', 'Money', 'CURRENCIES', 'get_currency', 'register_currency',
    # Ledger
    'Ledger',
    # Settlement
    'settle_balances', 'apply_payments',
]

__version__ = '0.1.0'
