"""Turn net balances into a short list of payments (who owes whom)."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from groupsettle.errors import InvariantViolation

EPSILON = 0.01


@dataclass(slots=True)
class Transaction:
    from_id: int
    to_id: int
    amount: float


def simplify(balances: Mapping[int, float], people: Optional[Sequence] = None) -> list[Transaction]:
    """
    Greedy two-cursor matching of debtors against creditors.

    Debtors and creditors keep the order they have in ``balances`` (people order);
    nothing is sorted, so the pairing is deterministic for a given ledger. Emits at
    most ``len(debtors) + len(creditors) - 1`` transactions.

    Raises InvariantViolation when one side runs out while the other still holds more
    than EPSILON, which only happens if the balances did not sum to zero.
    """
    if people is not None:
        balances = {p.id: balances.get(p.id, 0.0) for p in people}

    rows = [(pid, bal) for pid, bal in balances.items() if abs(bal) > EPSILON]
    creditors = [[pid, bal] for pid, bal in rows if bal > 0]
    debtors = [[pid, bal] for pid, bal in rows if bal < 0]

    out: list[Transaction] = []
    i, j = 0, 0
    while i < len(debtors) and j < len(creditors):
        debtor = debtors[i]
        creditor = creditors[j]
        amount = min(-debtor[1], creditor[1])
        if amount > 0:
            out.append(Transaction(from_id=debtor[0], to_id=creditor[0], amount=amount))
            debtor[1] += amount
            creditor[1] -= amount
        if abs(debtor[1]) < EPSILON:
            i += 1
        if abs(creditor[1]) < EPSILON:
            j += 1

    remaining = {
        pid: bal
        for pid, bal in debtors[i:] + creditors[j:]
        if round(abs(bal), 2) > EPSILON
    }
    if remaining:
        raise InvariantViolation(balances=dict(balances), remaining=remaining)
    return out
