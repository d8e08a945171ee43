"""Groups: create, list, get, update, delete, members, people, balances."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_
from sqlalchemy.orm import Session

from groupsettle.database import get_db
from groupsettle.models import User, Group, Person, Expense, Share, Settlement
from groupsettle.schemas import (
    GroupCreate, GroupUpdate, GroupResponse, GroupAddMember, MemberInfo,
    PersonCreate, PersonResponse, BalanceItem,
)
from groupsettle.auth import get_current_user
from groupsettle.services.balances import aggregate
from groupsettle.services.ledger import check_group_access, get_group_ledger
from groupsettle.services.locks import forget_group

router = APIRouter(prefix="/groups", tags=["groups"])


def _member_info(user: User) -> MemberInfo:
    return MemberInfo(id=user.id, name=user.name, email=user.email)


def _group_response(group: Group) -> GroupResponse:
    return GroupResponse(
        id=group.id,
        name=group.name,
        description=group.description,
        owner_id=group.owner_id,
        created_at=group.created_at,
        member_ids=[u.id for u in group.members],
        members=[_member_info(u) for u in group.members],
        people=[PersonResponse.model_validate(p) for p in group.people],
    )


@router.get("", response_model=list[GroupResponse])
def list_groups(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    groups = (
        db.query(Group)
        .filter(or_(Group.owner_id == current_user.id, Group.members.any(User.id == current_user.id)))
        .order_by(Group.id)
        .all()
    )
    return [_group_response(g) for g in groups]


@router.post("", response_model=GroupResponse)
def create_group(
    data: GroupCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    members = [current_user]
    if data.member_ids:
        others = db.query(User).filter(User.id.in_(data.member_ids)).all()
        for u in others:
            if u not in members:
                members.append(u)
    names = [n.strip() for n in data.people if n.strip()]
    group = Group(name=data.name, description=data.description, owner_id=current_user.id)
    group.members = members
    group.people = [Person(name=n) for n in names]
    db.add(group)
    db.commit()
    db.refresh(group)
    return _group_response(group)


@router.get("/{group_id}", response_model=GroupResponse)
def get_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = check_group_access(db, group_id, current_user.id)
    return _group_response(group)


@router.patch("/{group_id}", response_model=GroupResponse)
def update_group(
    group_id: int,
    data: GroupUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = check_group_access(db, group_id, current_user.id)
    if data.name is not None:
        group.name = data.name
    if data.description is not None:
        group.description = data.description
    db.commit()
    db.refresh(group)
    return _group_response(group)


@router.delete("/{group_id}", status_code=204)
def delete_group(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = check_group_access(db, group_id, current_user.id)
    if group.owner_id != current_user.id:
        raise HTTPException(status_code=403, detail="Only the group owner can delete it")
    db.delete(group)
    db.commit()
    forget_group(group_id)


@router.post("/{group_id}/members", response_model=GroupResponse)
def add_group_member(
    group_id: int,
    data: GroupAddMember,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    group = check_group_access(db, group_id, current_user.id)
    user = db.query(User).filter(User.email == data.email).first()
    if not user:
        raise HTTPException(status_code=404, detail="No user found with that email")
    if user in group.members:
        raise HTTPException(status_code=400, detail="User already in group")
    group.members.append(user)
    db.commit()
    db.refresh(group)
    return _group_response(group)


@router.post("/{group_id}/people", response_model=PersonResponse)
def add_person(
    group_id: int,
    data: PersonCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    check_group_access(db, group_id, current_user.id)
    person = Person(group_id=group_id, name=data.name.strip())
    db.add(person)
    db.commit()
    db.refresh(person)
    return PersonResponse.model_validate(person)


def _person_in_use(db: Session, person_id: int) -> bool:
    if db.query(Expense.id).filter(Expense.paid_by_id == person_id).first():
        return True
    if db.query(Share.id).filter(Share.person_id == person_id).first():
        return True
    return db.query(Settlement.id).filter(
        or_(Settlement.from_id == person_id, Settlement.to_id == person_id)
    ).first() is not None


@router.delete("/{group_id}/people/{person_id}", status_code=204)
def delete_person(
    group_id: int,
    person_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    check_group_access(db, group_id, current_user.id)
    person = db.query(Person).filter(Person.id == person_id, Person.group_id == group_id).first()
    if not person:
        raise HTTPException(status_code=404, detail="Person not in this group")
    if _person_in_use(db, person_id):
        raise HTTPException(status_code=400, detail="Person has expenses or settlements and cannot be removed")
    db.delete(person)
    db.commit()


@router.get("/{group_id}/balances", response_model=list[BalanceItem])
def get_balances(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Net balance per person from expenses alone (payments already settled are not applied)."""
    ledger = get_group_ledger(db, group_id, current_user.id)
    names = {p.id: p.name for p in ledger.people}
    balances = aggregate(ledger.people, ledger.expenses)
    return [
        BalanceItem(person_id=pid, name=names.get(pid, str(pid)), balance=round(bal, 2))
        for pid, bal in balances.items()
    ]
