"""Read-only ledger snapshots (people, expenses, shares) for a group."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from groupsettle.errors import Forbidden, NotFound
from groupsettle.models import Expense, Group, Person, User


@dataclass(frozen=True, slots=True)
class LedgerPerson:
    id: int
    name: str


@dataclass(frozen=True, slots=True)
class LedgerShare:
    expense_id: int
    person_id: int
    amount: float


@dataclass(frozen=True, slots=True)
class LedgerExpense:
    id: int
    description: str
    amount: float
    paid_by_id: int
    created_at: Optional[datetime]
    shares: tuple[LedgerShare, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Ledger:
    group_id: int
    people: tuple[LedgerPerson, ...]
    expenses: tuple[LedgerExpense, ...]


def check_group_access(db: Session, group_id: int, requester_id: int) -> Group:
    group = db.query(Group).filter(Group.id == group_id).first()
    if not group:
        raise NotFound("Group not found")
    allowed = (
        db.query(Group.id)
        .filter(
            Group.id == group_id,
            or_(Group.owner_id == requester_id, Group.members.any(User.id == requester_id)),
        )
        .first()
    )
    if not allowed:
        raise Forbidden()
    return group


def get_group_ledger(db: Session, group_id: int, requester_id: int) -> Ledger:
    check_group_access(db, group_id, requester_id)

    people = db.query(Person).filter(Person.group_id == group_id).order_by(Person.id).all()
    expenses = (
        db.query(Expense)
        .options(selectinload(Expense.shares))
        .filter(Expense.group_id == group_id)
        .order_by(Expense.created_at.asc(), Expense.id.asc())
        .all()
    )
    return Ledger(
        group_id=group_id,
        people=tuple(LedgerPerson(id=p.id, name=p.name) for p in people),
        expenses=tuple(
            LedgerExpense(
                id=e.id,
                description=e.description,
                amount=e.amount,
                paid_by_id=e.paid_by_id,
                created_at=e.created_at,
                shares=tuple(
                    LedgerShare(expense_id=e.id, person_id=s.person_id, amount=s.amount)
                    for s in e.shares
                ),
            )
            for e in expenses
        ),
    )
