"""Net balance per person: positive = is owed money, negative = owes money."""
from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, Sequence


def aggregate(people: Sequence, expenses: Iterable, settled: Iterable = ()) -> "OrderedDict[int, float]":
    """
    Reduce a group's ledger to one balance per person.

    Keys follow the order of ``people`` so that anyone without activity still shows up
    with 0.0, and so the debt walk downstream sees a stable order. ``settled`` holds
    transfers already paid; each one moves its amount back from the payer's debt.
    No rounding is applied here.
    """
    balances: OrderedDict[int, float] = OrderedDict((p.id, 0.0) for p in people)

    for e in expenses:
        balances[e.paid_by_id] = balances.get(e.paid_by_id, 0.0) + e.amount
        for s in e.shares:
            balances[s.person_id] = balances.get(s.person_id, 0.0) - s.amount

    for t in settled:
        balances[t.from_id] = balances.get(t.from_id, 0.0) + t.amount
        balances[t.to_id] = balances.get(t.to_id, 0.0) - t.amount

    return balances
