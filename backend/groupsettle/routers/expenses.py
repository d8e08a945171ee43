"""Expenses: create, list, get, delete. Every mutation re-derives the group's settlements."""
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, selectinload

from groupsettle.database import get_db
from groupsettle.logging import get_logger
from groupsettle.models import User, Person, Expense, Share
from groupsettle.schemas import ExpenseCreate, ExpenseResponse
from groupsettle.auth import get_current_user
from groupsettle.services.ledger import check_group_access
from groupsettle.services.reconciler import locked_group, recompute
from groupsettle.services.splits import SplitError, compute_shares, default_share_values

router = APIRouter(prefix="/expenses", tags=["expenses"])
log = get_logger(__name__)


def _expense_response(exp: Expense) -> ExpenseResponse:
    return ExpenseResponse.model_validate(exp)


@router.post("", response_model=ExpenseResponse)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    check_group_access(db, data.group_id, current_user.id)
    person_ids = {
        p.id for p in db.query(Person.id).filter(Person.group_id == data.group_id).all()
    }
    if data.paid_by_id not in person_ids:
        raise HTTPException(status_code=400, detail="Payer must be a person in this group")
    if any(p.person_id not in person_ids for p in data.participants):
        raise HTTPException(status_code=400, detail="All participants must be people in this group")

    try:
        shares = compute_shares(
            data.amount,
            data.split_mode,
            [(p.person_id, p.value) for p in data.participants],
        )
    except SplitError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    expense = Expense(
        group_id=data.group_id,
        paid_by_id=data.paid_by_id,
        amount=data.amount,
        description=data.description,
        split_mode=data.split_mode,
    )
    expense.shares = [Share(person_id=pid, amount=amt) for pid, amt in shares]
    with locked_group(db, data.group_id):
        db.add(expense)
        db.flush()
        # commits the expense together with the new settlements
        recompute(db, data.group_id, current_user.id)
    db.refresh(expense)
    log.info("expenses.created", group_id=data.group_id, expense_id=expense.id, amount=expense.amount)
    return _expense_response(expense)


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    group_id: int,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    check_group_access(db, group_id, current_user.id)
    expenses = (
        db.query(Expense)
        .options(selectinload(Expense.shares))
        .filter(Expense.group_id == group_id)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return [_expense_response(e) for e in expenses]


@router.get("/split-defaults", response_model=dict[int, float])
def split_defaults(
    split_mode: str,
    amount: float = Query(0, ge=0),
    person_ids: list[int] = Query([]),
    current_user: User = Depends(get_current_user),
):
    try:
        return default_share_values(split_mode, person_ids, amount)
    except SplitError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    check_group_access(db, expense.group_id, current_user.id)
    return _expense_response(expense)


@router.delete("/{expense_id}", status_code=204)
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    group_id = expense.group_id
    check_group_access(db, group_id, current_user.id)
    with locked_group(db, group_id):
        db.delete(expense)
        db.flush()
        recompute(db, group_id, current_user.id)
    log.info("expenses.deleted", group_id=group_id, expense_id=expense_id)
