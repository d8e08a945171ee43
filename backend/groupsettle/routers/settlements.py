"""Settlements: list who owes whom, recompute, mark as settled."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from groupsettle.database import get_db
from groupsettle.models import User
from groupsettle.schemas import RecomputeResponse, SettleAllResponse, SettlementResponse
from groupsettle.auth import get_current_user
from groupsettle.services import reconciler

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("/group/{group_id}", response_model=list[SettlementResponse])
def list_settlements(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    settlements = reconciler.list_settlements(db, group_id, current_user.id)
    return [SettlementResponse.model_validate(s) for s in settlements]


@router.post("/group/{group_id}/recompute", response_model=RecomputeResponse)
def recompute_settlements(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    result = reconciler.recompute(db, group_id, current_user.id)
    return RecomputeResponse(
        settlements_count=result.settlements_count,
        preserved_count=result.preserved_count,
    )


@router.post("/group/{group_id}/settle-all", response_model=SettleAllResponse)
def settle_all(
    group_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return SettleAllResponse(count=reconciler.settle_all(db, group_id, current_user.id))


@router.post("/{settlement_id}/settle", response_model=SettlementResponse)
def settle(
    settlement_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    settlement = reconciler.settle(db, settlement_id, current_user.id)
    return SettlementResponse.model_validate(settlement)
