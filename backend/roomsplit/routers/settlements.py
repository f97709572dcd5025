"""Settlements: generate who owes whom for the open round, mark paid, confirm."""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from roomsplit.database import get_db
from roomsplit.models import User, Room, Settlement, SettlementStatus
from roomsplit.schemas import (
    BalanceEntry, BalanceSummary, GenerationResponse, SettlementCreate, SettlementResponse, SettlementUpdate,
)
from roomsplit.auth import get_current_user, require_admin, require_membership
from roomsplit.routers.rooms import member_info
from roomsplit.services.balance_calculator import compute_balances, read_ledger, total_amount
from roomsplit.services.ledger_store import LedgerStore
from roomsplit.services.round_manager import RoundLifecycleManager
from roomsplit.services.settlement_calculator import compute_settlements

router = APIRouter(prefix="/settlements", tags=["settlements"])


@router.get("", response_model=list[SettlementResponse])
def list_settlements(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_membership(db, room_id, current_user)
    store = LedgerStore(db)
    open_round = store.get_open_round(room_id)
    if not open_round:
        return []
    return [SettlementResponse.model_validate(s) for s in store.list_settlements(open_round.id)]


@router.post("", response_model=GenerationResponse)
def generate_settlements(
    data: SettlementCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_admin(db, data.room_id, current_user, "generate settlements")
    result = RoundLifecycleManager(db).generate_settlements(data.room_id)
    return GenerationResponse(
        round_id=result.round_id,
        nothing_to_settle=result.nothing_to_settle,
        round_cleared=result.round_cleared,
        settlements=[SettlementResponse.model_validate(s) for s in result.settlements],
    )


@router.get("/balances", response_model=BalanceSummary)
def get_balances(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Live balances and suggested transfers for the open round. Nothing is stored."""
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    require_membership(db, room_id, current_user)

    store = LedgerStore(db)
    open_round = store.get_open_round(room_id)
    members = [member_info(m) for m in room.memberships]
    if not open_round:
        return BalanceSummary(room_id=room_id, members=members)

    ledger = read_ledger(store.list_members(room_id), store.list_expenses(open_round.id))
    balances = compute_balances(ledger)
    return BalanceSummary(
        room_id=room_id,
        round_id=open_round.id,
        total_amount=total_amount(ledger),
        members=members,
        balances=[BalanceEntry(user_id=uid, balance=bal) for uid, bal in sorted(balances.items())],
        settlements=compute_settlements(balances),
    )


@router.put("/{settlement_id}", response_model=SettlementResponse)
def update_settlement(
    settlement_id: int,
    data: SettlementUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    settlement = db.query(Settlement).filter(Settlement.id == settlement_id).first()
    if not settlement:
        raise HTTPException(status_code=404, detail="Settlement not found")
    require_membership(db, settlement.room_id, current_user)

    manager = RoundLifecycleManager(db)
    if data.status == SettlementStatus.PAID:
        settlement = manager.mark_paid(settlement_id, current_user.id)
    elif data.status == SettlementStatus.CONFIRMED:
        settlement = manager.confirm(settlement_id, current_user.id)
    else:
        raise HTTPException(status_code=400, detail="Invalid status")
    return SettlementResponse.model_validate(settlement)
