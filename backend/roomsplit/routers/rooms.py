"""Rooms: list, create or join, get with members and the open round."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from roomsplit.database import get_db
from roomsplit.models import User, Room, Membership, MemberRole, Expense
from roomsplit.schemas import RoomCreate, RoomResponse, RoomSummary, RoomDetail, MemberInfo, RoundResponse
from roomsplit.auth import get_current_user, get_membership, require_membership
from roomsplit.routers.expenses import expense_response
from roomsplit.services.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/rooms", tags=["rooms"])


def member_info(membership: Membership) -> MemberInfo:
    user = membership.user
    return MemberInfo(id=user.id, name=user.name, email=user.email, role=membership.role)


@router.get("", response_model=list[RoomSummary])
def list_rooms(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    memberships = (
        db.query(Membership)
        .filter(Membership.user_id == current_user.id)
        .order_by(Membership.joined_at.desc(), Membership.id.desc())
        .all()
    )
    out = []
    for m in memberships:
        expense_count = db.query(func.count(Expense.id)).filter(Expense.room_id == m.room_id).scalar()
        out.append(RoomSummary(
            id=m.room.id,
            name=m.room.name,
            created_at=m.room.created_at,
            role=m.role,
            member_count=len(m.room.memberships),
            expense_count=expense_count or 0,
        ))
    return out


@router.post("", response_model=RoomResponse)
def create_or_join_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if data.join_code is not None:
        room = db.query(Room).filter(Room.id == data.join_code).first()
        if not room:
            raise HTTPException(status_code=400, detail="Invalid room code")
        if get_membership(db, room.id, current_user.id):
            raise HTTPException(status_code=400, detail="Already a member of this room")
        db.add(Membership(user_id=current_user.id, room_id=room.id, role=MemberRole.MEMBER))
        db.commit()
        db.refresh(room)
        logger.info(f"User {current_user.id} joined room {room.id}")
        return RoomResponse.model_validate(room)

    if not data.name or not data.name.strip():
        raise HTTPException(status_code=400, detail="Room name is required")
    room = Room(name=data.name.strip())
    db.add(room)
    db.flush()
    db.add(Membership(user_id=current_user.id, room_id=room.id, role=MemberRole.ADMIN))
    LedgerStore(db).create_round(room.id)
    db.commit()
    db.refresh(room)
    logger.info(f"User {current_user.id} created room {room.id}")
    return RoomResponse.model_validate(room)


@router.get("/{room_id}", response_model=RoomDetail)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    room = db.query(Room).filter(Room.id == room_id).first()
    if not room:
        raise HTTPException(status_code=404, detail="Room not found")
    require_membership(db, room_id, current_user)

    open_round = LedgerStore(db).get_open_round(room_id)
    expenses = sorted(open_round.expenses, key=lambda e: e.id, reverse=True) if open_round else []
    return RoomDetail(
        id=room.id,
        name=room.name,
        created_at=room.created_at,
        members=[member_info(m) for m in room.memberships],
        open_round=RoundResponse.model_validate(open_round) if open_round else None,
        expenses=[expense_response(e) for e in expenses],
    )
