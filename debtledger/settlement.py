"""
settlement.py - Greedy settlement of net balances

Turns a zero-sum mapping of party -> balance into a short list of Payments that
clears every balance.

Finding the true minimum number of payments is NP-hard (it amounts to splitting the
parties into as many zero-sum subsets as possible). The engine instead uses a
deterministic greedy heuristic:

1. Debtors and creditors go into two max-heaps keyed by magnitude, ties broken by
   ascending party order.
2. The largest debtor pays the largest creditor min(debt, credit). Whoever is not
   cleared goes back on its heap with the remainder.
3. Both heaps must run out together; anything else means the input was not zero-sum.

Every payment clears at least one party, so n parties never need more than n - 1
payments.

With max_group_size > 2, two refinements are layered on top of the same heaps:
- Zero-sum pre-pass: disjoint pairs and triples (never more than max_group_size
  parties) whose balances cancel are settled among themselves first, saving one
  payment per subset. Larger subsets are left to the greedy pass, which keeps the
  search polynomial in the number of parties.
- Same-sign grouping: when the smaller side of a match has further parties of
  equal (or even-split) magnitude waiting on its heap, they join the same payment as
  long as the total stays within the opposite party's magnitude and the payment
  stays within max_group_size parties.
"""

from __future__ import annotations
from itertools import combinations
from typing import Dict, List, Mapping, Tuple
import heapq

from .core import (
    Payment, MoneyLike, Party,
    DEFAULT_GROUP_SIZE, MIN_GROUP_SIZE, MAX_ZERO_SUM_SUBSET,
    CurrencyMismatch, InternalConsistencyError,
    sum_amounts,
)


# Heap entry: (-magnitude, party). Smallest entry = largest magnitude, then lowest party.
_HeapEntry = Tuple[MoneyLike, Party]


# ============================================================================
# PUBLIC API
# ============================================================================

def settle_balances(
    balances: Mapping[Party, MoneyLike],
    max_group_size: int = DEFAULT_GROUP_SIZE,
) -> List[Payment]:
    """
    Compute payments that bring every balance to exactly zero.

    Pure function: `balances` is not modified, and the same input always yields the
    same payments in the same order.

    Args:
        balances: Mapping of party to signed balance in a single currency
                  (negative = owes, positive = is owed). Zero entries are ignored.
        max_group_size: Maximum number of parties in one payment, payers and payees
                        together. 2 (the default) means one payer and one payee.

    Returns:
        Ordered list of Payments

    Raises:
        ValueError: If max_group_size is not an integer >= 2
        CurrencyMismatch: If the balances are in more than one currency
        InternalConsistencyError: If the balances do not sum to zero
    """
    if isinstance(max_group_size, bool) or not isinstance(max_group_size, int):
        raise ValueError(f"max_group_size must be an integer, got {max_group_size!r}")
    if max_group_size < MIN_GROUP_SIZE:
        raise ValueError(f"max_group_size must be at least {MIN_GROUP_SIZE}, got {max_group_size}")

    open_balances = {party: value for party, value in balances.items() if not value.is_zero()}
    if not open_balances:
        return []

    currencies = {value.currency_code for value in open_balances.values()}
    if len(currencies) > 1:
        raise CurrencyMismatch(f"Cannot settle several currencies together: {sorted(currencies)}")
    _check_conservation(open_balances)

    if max_group_size == MIN_GROUP_SIZE:
        return _match_greedy(open_balances, max_group_size)

    groups, remaining = _zero_sum_groups(open_balances, max_group_size)
    payments: List[Payment] = []
    for group in groups:
        payments.extend(_match_greedy(group, max_group_size))
    payments.extend(_match_greedy(remaining, max_group_size))
    return payments


def apply_payments(
    balances: Mapping[Party, MoneyLike],
    payments: List[Payment],
) -> Dict[Party, MoneyLike]:
    """
    Return the balances left after making every payment.

    Payers are credited (their debt shrinks) and payees debited by their share of
    each payment. Parties that end at exactly zero are dropped, so a complete
    settlement returns an empty dict.
    """
    result = {party: value for party, value in balances.items() if not value.is_zero()}
    for payment in payments:
        for party, share in payment.debits():
            result[party] = share if party not in result else result[party] + share
        for party, share in payment.credits():
            result[party] = -share if party not in result else result[party] - share
        for party in payment.parties:
            if party in result and result[party].is_zero():
                del result[party]
    return result


# ============================================================================
# INVARIANT CHECKS
# ============================================================================

def _check_conservation(balances: Mapping[Party, MoneyLike]) -> None:
    total = sum_amounts(balances.values())
    if total is not None and not total.is_zero():
        raise InternalConsistencyError(
            f"Balances sum to {total} instead of zero across {len(balances)} party(ies)"
        )


# ============================================================================
# ZERO-SUM PRE-PASS
# ============================================================================

def _zero_sum_groups(
    balances: Mapping[Party, MoneyLike],
    max_group_size: int,
) -> Tuple[List[Dict[Party, MoneyLike]], Dict[Party, MoneyLike]]:
    """
    Split off disjoint subsets whose balances cancel exactly.

    Sizes are tried from 2 up to max_group_size, capped at MAX_ZERO_SUM_SUBSET;
    within a size, candidates are visited in sorted party order and the first
    disjoint matches win. The work is C(n, k) per size, so the cap bounds it at
    O(n ** 3).

    Returns:
        (groups, remaining): each group and the leftover are zero-sum mappings
    """
    remaining = dict(balances)
    groups: List[Dict[Party, MoneyLike]] = []

    for size in range(2, min(max_group_size, MAX_ZERO_SUM_SUBSET) + 1):
        if len(remaining) < size:
            break
        used = set()
        for combo in combinations(sorted(remaining), size):
            if used.intersection(combo):
                continue
            if sum_amounts(remaining[p] for p in combo).is_zero():
                groups.append({p: remaining[p] for p in combo})
                used.update(combo)
        for party in used:
            del remaining[party]

    return groups, remaining


# ============================================================================
# GREEDY MATCHING
# ============================================================================

def _match_greedy(balances: Mapping[Party, MoneyLike], max_group_size: int) -> List[Payment]:
    """
    Pair the largest debtor with the largest creditor until both heaps are empty.

    Raises:
        InternalConsistencyError: If one heap empties before the other
    """
    debtors: List[_HeapEntry] = []
    creditors: List[_HeapEntry] = []
    for party, value in balances.items():
        if value.is_negative():
            debtors.append((value, party))
        elif value.is_positive():
            creditors.append((-value, party))
    heapq.heapify(debtors)
    heapq.heapify(creditors)

    # One side of a payment may hold everyone but the single party on the other side.
    capacity = max_group_size - 1
    payments: List[Payment] = []

    while debtors and creditors:
        debt_key, debtor = heapq.heappop(debtors)
        credit_key, creditor = heapq.heappop(creditors)
        debt, credit = -debt_key, -credit_key

        if not credit < debt:
            payers, amount = _take_group(debtors, debtor, debt, credit, capacity)
            payees = (creditor,)
            leftover = credit - amount
            if not leftover.is_zero():
                heapq.heappush(creditors, (-leftover, creditor))
        else:
            payees, amount = _take_group(creditors, creditor, credit, debt, capacity)
            payers = (debtor,)
            leftover = debt - amount
            if not leftover.is_zero():
                heapq.heappush(debtors, (-leftover, debtor))

        payments.append(Payment(payers, payees, amount))

    if debtors or creditors:
        unmatched = [party for _, party in debtors + creditors]
        raise InternalConsistencyError(f"Settlement left unmatched balances for {unmatched}")

    return payments


def _take_group(
    heap: List[_HeapEntry],
    party: Party,
    magnitude: MoneyLike,
    limit: MoneyLike,
    capacity: int,
) -> Tuple[Tuple[Party, ...], MoneyLike]:
    """
    Gather `party` and, capacity permitting, the next parties of the same sign.

    A candidate joins only if the group total stays within `limit` and an even
    split of the new total gives every member exactly their own magnitude, so the
    grouped payment clears all of them. The heap yields magnitudes in descending
    order, which is the order the split hands out its remainder.

    Returns:
        (members, total): the group in payment order and the amount it settles
    """
    members = [party]
    magnitudes = [magnitude]
    total = magnitude

    while len(members) < capacity and heap:
        key, candidate = heap[0]
        candidate_magnitude = -key
        new_total = total + candidate_magnitude
        if limit < new_total:
            break
        if new_total.allocate_to(len(members) + 1) != magnitudes + [candidate_magnitude]:
            break
        heapq.heappop(heap)
        members.append(candidate)
        magnitudes.append(candidate_magnitude)
        total = new_total

    return tuple(members), total
