"""Rounds: history of a room's rounds and starting a new one."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from roomsplit.database import get_db
from roomsplit.models import User, Round
from roomsplit.money import ZERO
from roomsplit.schemas import RoundCreate, RoundResponse, RoundHistoryItem, SettlementResponse
from roomsplit.auth import get_current_user, require_admin, require_membership
from roomsplit.routers.expenses import expense_response
from roomsplit.services.round_manager import RoundLifecycleManager

router = APIRouter(prefix="/rounds", tags=["rounds"])


def _history_item(rnd: Round) -> RoundHistoryItem:
    return RoundHistoryItem(
        id=rnd.id,
        room_id=rnd.room_id,
        status=rnd.status,
        created_at=rnd.created_at,
        cleared_at=rnd.cleared_at,
        settlements_generated_at=rnd.settlements_generated_at,
        expense_count=len(rnd.expenses),
        total_amount=sum((e.amount for e in rnd.expenses), ZERO),
        expenses=[expense_response(e) for e in rnd.expenses],
        settlements=[SettlementResponse.model_validate(s) for s in rnd.settlements],
    )


@router.get("", response_model=list[RoundHistoryItem])
def list_rounds(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_membership(db, room_id, current_user)
    rounds = db.query(Round).filter(Round.room_id == room_id).order_by(Round.id.desc()).all()
    return [_history_item(r) for r in rounds]


@router.post("", response_model=RoundResponse)
def create_round(
    data: RoundCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_admin(db, data.room_id, current_user, "start new rounds")
    rnd = RoundLifecycleManager(db).create_round(data.room_id)
    return RoundResponse.model_validate(rnd)
