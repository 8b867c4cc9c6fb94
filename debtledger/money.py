"""
money.py - Exact, currency-tagged monetary amounts

Money is the default MoneyLike implementation used by the ledger. Amounts are
Decimal throughout; binary floats are rejected at construction so that rounding
can never break the conservation law.

Usage:
    from debtledger.money import Money

    price = Money.of("29.99", "GBP")
    total = price + Money.from_string("1,000", "GBP")   # 1029.99 GBP
    shares = Money.of(10, "USD").allocate_to(3)          # 3.34, 3.33, 3.33 USD
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_EVEN
from typing import Dict, List, Union
import re

from .core import CurrencyMismatch, UnknownCurrency


# ============================================================================
# CURRENCIES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO-4217 currency definition.

    Attributes:
        code: Three-letter currency code (e.g., "USD")
        name: Human-readable name
        exponent: Number of decimal places of the minor unit (2 for cents)
    """
    code: str
    name: str
    exponent: int = 2

    def __str__(self) -> str:
        return self.code


CURRENCIES: Dict[str, Currency] = {
    c.code: c for c in (
        Currency("USD", "US Dollar"),
        Currency("EUR", "Euro"),
        Currency("GBP", "Pound Sterling"),
        Currency("CHF", "Swiss Franc"),
        Currency("CAD", "Canadian Dollar"),
        Currency("AUD", "Australian Dollar"),
        Currency("CNY", "Yuan Renminbi"),
        Currency("INR", "Indian Rupee"),
        Currency("JPY", "Yen", exponent=0),
        Currency("KRW", "Won", exponent=0),
        Currency("KWD", "Kuwaiti Dinar", exponent=3),
    )
}


def get_currency(code: str) -> Currency:
    """
    Look up a currency by code (case-insensitive).

    Raises:
        UnknownCurrency: If the code is not registered
    """
    try:
        return CURRENCIES[code.upper()]
    except (KeyError, AttributeError):
        raise UnknownCurrency(f"Unknown currency: {code!r}") from None


def register_currency(currency: Currency) -> None:
    """Add a currency to the registry, replacing any previous definition of its code."""
    CURRENCIES[currency.code.upper()] = currency


# ============================================================================
# MONEY
# ============================================================================

_AMOUNT_PATTERN = re.compile(r"[+-]?\d+(\.\d+)?")


@dataclass(frozen=True, slots=True, eq=False)
class Money:
    """
    An immutable signed amount in one currency.

    Arithmetic between two Money values requires the same currency and raises
    CurrencyMismatch otherwise. Comparisons follow the same rule, except that a
    zero amount compares equal to (and orders against) zero of any currency.

    Attributes:
        amount: Exact Decimal amount (int and str inputs are converted)
        currency: Currency (a currency code is looked up in the registry)
    """
    amount: Decimal
    currency: Currency

    def __post_init__(self):
        amount = self.amount
        if isinstance(amount, (bool, float)):
            raise TypeError(f"Money amount must be Decimal, int or str, got {type(amount)}")
        if isinstance(amount, (int, str)):
            try:
                amount = Decimal(amount)
            except InvalidOperation:
                raise ValueError(f"Invalid money amount: {self.amount!r}") from None
        if not isinstance(amount, Decimal):
            raise TypeError(f"Money amount must be Decimal, int or str, got {type(amount)}")
        if not amount.is_finite():
            raise ValueError(f"Money amount must be finite, got {amount}")
        currency = self.currency
        if not isinstance(currency, Currency):
            currency = get_currency(currency)
        object.__setattr__(self, 'amount', amount)
        object.__setattr__(self, 'currency', currency)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def of(cls, amount: Union[Decimal, int, str], currency: Union[Currency, str]) -> Money:
        return cls(amount, currency)

    @classmethod
    def zero(cls, currency: Union[Currency, str]) -> Money:
        return cls(Decimal("0"), currency)

    @classmethod
    def from_string(cls, text: str, currency: Union[Currency, str]) -> Money:
        """
        Parse a human-entered amount such as "1,000,000", "-3" or "29.99".

        Thousands separators (",") are ignored in the integer part. The result is
        rounded to the currency's minor unit with banker's rounding, so "29.9999"
        becomes 30.00.

        Raises:
            ValueError: If the text is not a plain signed decimal number
        """
        if not isinstance(currency, Currency):
            currency = get_currency(currency)
        integer, dot, fraction = text.strip().partition(".")
        cleaned = integer.replace(",", "") + dot + fraction
        if not _AMOUNT_PATTERN.fullmatch(cleaned):
            raise ValueError(f"Could not parse amount: {text!r}")
        quantum = Decimal(1).scaleb(-currency.exponent)
        return cls(Decimal(cleaned).quantize(quantum, rounding=ROUND_HALF_EVEN), currency)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def currency_code(self) -> str:
        return self.currency.code

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    def _check_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatch(
                f"Cannot combine {self.currency_code} with {other.currency_code}"
            )

    def _check_comparable(self, other: Money) -> None:
        if self.is_zero() or other.is_zero():
            return
        self._check_currency(other)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other)
        return Money(self.amount - other.amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __abs__(self) -> Money:
        return Money(abs(self.amount), self.currency)

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        if self.is_zero() and other.is_zero():
            return True
        return self.currency == other.currency and self.amount == other.amount

    def __hash__(self) -> int:
        if self.is_zero():
            return hash(Decimal("0"))
        return hash((self.amount, self.currency.code))

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_comparable(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_comparable(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_comparable(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_comparable(other)
        return self.amount >= other.amount

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def _unit_exponent(self) -> int:
        """Exponent of the smallest unit: the currency minor unit or finer."""
        return min(self.amount.as_tuple().exponent, -self.currency.exponent)

    def allocate(self, ratios: List[int]) -> List[Money]:
        """
        Split this amount by integer ratios without losing a single unit.

        Each share is floored to the smallest unit; the units left over are handed
        out one at a time starting with the first share. Negative amounts split
        symmetrically.

        Args:
            ratios: Positive integer weights, one per share

        Returns:
            Shares in the same order as `ratios`, summing exactly to this amount

        Raises:
            ValueError: If ratios is empty or contains a non-positive weight
        """
        if not ratios:
            raise ValueError("Cannot allocate to an empty list of ratios")
        for ratio in ratios:
            if isinstance(ratio, bool) or not isinstance(ratio, int) or ratio <= 0:
                raise ValueError(f"Ratio must be a positive integer, got {ratio!r}")

        exponent = self._unit_exponent()
        units = int(self.amount.scaleb(-exponent))
        sign = -1 if units < 0 else 1
        magnitude = abs(units)
        ratio_total = sum(ratios)

        shares = [magnitude * ratio // ratio_total for ratio in ratios]
        remainder = magnitude - sum(shares)
        for i in range(remainder):
            shares[i] += 1

        return [Money(Decimal(sign * share).scaleb(exponent), self.currency) for share in shares]

    def allocate_to(self, number: int) -> List[Money]:
        """Split this amount into `number` even shares (see allocate())."""
        if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
            raise ValueError(f"Number of shares must be a positive integer, got {number!r}")
        return self.allocate([1] * number)

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def __str__(self) -> str:
        places = max(self.currency.exponent, -self.amount.as_tuple().exponent)
        return f"{self.amount:.{places}f} {self.currency_code}"

    def __repr__(self) -> str:
        return f"Money('{self.amount}', '{self.currency_code}')"
