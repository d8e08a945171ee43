"""
Keep a group's pending settlements in step with its ledger.

recompute() re-derives the pending (settled=False) rows from scratch: it reads the
rows already settled, folds them into the balances, simplifies, deletes the old
pending rows and inserts the new ones, all in one session transaction held under
the group's lock. Settled rows are never touched; they are the only history kept.

Callers that change the ledger themselves (expense create/delete) must enter
locked_group() before their first write and call recompute() inside it.
"""
from __future__ import annotations

from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from groupsettle.errors import InvariantViolation, NotFound, Unavailable
from groupsettle.logging import get_logger
from groupsettle.models import Expense, Group, Settlement
from groupsettle.services.balances import aggregate
from groupsettle.services.ledger import Ledger, check_group_access, get_group_ledger
from groupsettle.services.locks import group_lock
from groupsettle.services.simplifier import Transaction, simplify
from groupsettle.services.store import SettlementStore

log = get_logger(__name__)


@dataclass(slots=True)
class RecomputeResult:
    settlements_count: int
    preserved_count: int


def _context_expenses(ledger: Ledger, transactions: Sequence[Transaction]) -> list:
    """Most recent expense linking each debtor to the creditor, else the latest expense."""
    latest: dict[tuple[int, int], int] = {}
    for e in ledger.expenses:
        for s in e.shares:
            if s.person_id != e.paid_by_id:
                latest[(s.person_id, e.paid_by_id)] = e.id
    fallback = ledger.expenses[-1].id if ledger.expenses else None
    return [latest.get((t.from_id, t.to_id), fallback) for t in transactions]


def _refresh_settled_amounts(db: Session, group_id: int, settled: Sequence[Settlement]) -> None:
    totals: dict[int, float] = defaultdict(float)
    for s in settled:
        if s.expense_id is not None:
            totals[s.expense_id] += s.amount
    for expense in db.query(Expense).filter(Expense.group_id == group_id):
        expense.settled_amount = round(totals.get(expense.id, 0.0), 2)
    db.flush()


@contextmanager
def _db_errors(db: Session, group_id: Optional[int]) -> Iterator[None]:
    """Roll back on any failure; storage errors surface as Unavailable."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        log.error("settlements.persistence_failed", group_id=group_id, error=str(exc))
        raise Unavailable() from exc
    except Exception:
        db.rollback()
        raise


def _lock_group_row(db: Session, group_id: int) -> None:
    # no-op on sqlite, row lock elsewhere
    db.query(Group.id).filter(Group.id == group_id).with_for_update().first()


@contextmanager
def locked_group(db: Session, group_id: int) -> Iterator[None]:
    """
    Hold the group's process lock and its row lock for the rest of the block.

    Enter this before writing anything that belongs to the group; taking it after a
    flush leaves the session holding a database write lock while it waits.
    The process lock is reentrant, so recompute() may be called inside.
    """
    with group_lock(group_id), _db_errors(db, group_id):
        _lock_group_row(db, group_id)
        yield


def _reconcile(db: Session, group_id: int, requester_id: int) -> RecomputeResult:
    ledger = get_group_ledger(db, group_id, requester_id)
    store = SettlementStore(db)

    settled = store.find_many_by_group(group_id, settled=True)
    balances = aggregate(ledger.people, ledger.expenses, settled)
    try:
        transactions = simplify(balances)
    except InvariantViolation as exc:
        log.error(
            "settlements.invariant_violation",
            group_id=group_id,
            balances={str(k): v for k, v in exc.balances.items()},
            remaining={str(k): v for k, v in exc.remaining.items()},
        )
        raise

    store.delete_many(group_id, settled=False)
    expense_ids = _context_expenses(ledger, transactions)
    store.insert_many(
        group_id,
        (
            {"from_id": t.from_id, "to_id": t.to_id, "amount": round(t.amount, 2), "expense_id": eid}
            for t, eid in zip(transactions, expense_ids)
        ),
    )
    _refresh_settled_amounts(db, group_id, settled)
    return RecomputeResult(settlements_count=len(transactions), preserved_count=len(settled))


def recompute(db: Session, group_id: int, requester_id: int) -> RecomputeResult:
    """
    Replace the group's pending settlements with a fresh set derived from the ledger.

    Anything already flushed in ``db`` (a new or deleted expense) is committed together
    with the new settlements, or rolled back with them on failure.
    """
    with locked_group(db, group_id), _db_errors(db, group_id):
        result = _reconcile(db, group_id, requester_id)
        db.commit()
    log.info(
        "settlements.recompute",
        group_id=group_id,
        count=result.settlements_count,
        preserved=result.preserved_count,
    )
    return result


def list_settlements(db: Session, group_id: int, requester_id: int) -> list[Settlement]:
    with _db_errors(db, group_id):
        check_group_access(db, group_id, requester_id)
        return SettlementStore(db).find_many_by_group(group_id)


def settle(db: Session, settlement_id: int, requester_id: int) -> Settlement:
    """Mark one settlement as paid, then re-derive what is still pending."""
    store = SettlementStore(db)
    with _db_errors(db, None):
        settlement = store.get(settlement_id)
    if not settlement:
        raise NotFound("Settlement not found")
    group_id = settlement.group_id

    with locked_group(db, group_id), _db_errors(db, group_id):
        check_group_access(db, group_id, requester_id)
        marked = store.mark_settled([settlement_id])
        if marked == 0 and store.get(settlement_id) is None:
            # removed by a concurrent recompute while we waited for the lock
            raise NotFound("Settlement not found")
        _reconcile(db, group_id, requester_id)
        db.commit()
    log.info("settlements.settle", group_id=group_id, settlement_id=settlement_id, changed=bool(marked))
    with _db_errors(db, group_id):
        return store.get(settlement_id)


def settle_all(db: Session, group_id: int, requester_id: int) -> int:
    """Mark every pending settlement of the group as paid; returns how many were flipped."""
    store = SettlementStore(db)
    with locked_group(db, group_id), _db_errors(db, group_id):
        check_group_access(db, group_id, requester_id)
        count = store.mark_all_settled(group_id)
        _reconcile(db, group_id, requester_id)
        db.commit()
    log.info("settlements.settle_all", group_id=group_id, count=count)
    return count
