"""Expenses of a room's open round: create, list, update, delete."""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from roomsplit.database import get_db
from roomsplit.models import User, Expense
from roomsplit.schemas import ExpenseCreate, ExpenseUpdate, ExpenseResponse
from roomsplit.auth import get_current_user, get_membership, require_membership
from roomsplit.services.ledger_store import LedgerStore
from roomsplit.services.round_manager import RoundLifecycleManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])


def expense_response(exp: Expense) -> ExpenseResponse:
    return ExpenseResponse.model_validate(exp)


def _check_payer(db: Session, room_id: int, payer_id: int) -> None:
    if not get_membership(db, room_id, payer_id):
        raise HTTPException(status_code=400, detail="Payer must be a room member")


def _get_own_expense(db: Session, expense_id: int, user: User) -> Expense:
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    require_membership(db, expense.room_id, user)
    if expense.created_by != user.id:
        raise HTTPException(status_code=403, detail="Can only change expenses you created")
    RoundLifecycleManager(db).lock_ledger(expense.round)
    return expense


@router.get("", response_model=list[ExpenseResponse])
def list_expenses(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_membership(db, room_id, current_user)
    open_round = LedgerStore(db).get_open_round(room_id)
    if not open_round:
        return []
    expenses = (
        db.query(Expense)
        .filter(Expense.round_id == open_round.id)
        .order_by(Expense.created_at.desc(), Expense.id.desc())
        .all()
    )
    return [expense_response(e) for e in expenses]


@router.post("", response_model=ExpenseResponse)
def create_expense(
    data: ExpenseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    require_membership(db, data.room_id, current_user)
    payer_id = data.payer_id or current_user.id
    if payer_id != current_user.id:
        _check_payer(db, data.room_id, payer_id)

    manager = RoundLifecycleManager(db)
    open_round = manager.open_round_for(data.room_id)
    manager.lock_ledger(open_round)

    expense = Expense(
        room_id=data.room_id,
        round_id=open_round.id,
        payer_id=payer_id,
        created_by=current_user.id,
        title=data.title,
        amount=data.amount,
        notes=data.notes,
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info(f"Expense {expense.id} ({expense.amount}) added to round {open_round.id}")
    return expense_response(expense)


@router.get("/{expense_id}", response_model=ExpenseResponse)
def get_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = db.query(Expense).filter(Expense.id == expense_id).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    require_membership(db, expense.room_id, current_user)
    return expense_response(expense)


@router.put("/{expense_id}", response_model=ExpenseResponse)
def update_expense(
    expense_id: int,
    data: ExpenseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = _get_own_expense(db, expense_id, current_user)

    if data.payer_id is not None:
        _check_payer(db, expense.room_id, data.payer_id)
        expense.payer_id = data.payer_id
    if data.title is not None:
        expense.title = data.title
    if data.amount is not None:
        expense.amount = data.amount
    if data.notes is not None:
        expense.notes = data.notes

    db.commit()
    db.refresh(expense)
    return expense_response(expense)


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    expense = _get_own_expense(db, expense_id, current_user)
    db.delete(expense)
    db.commit()
    return {"message": "Expense deleted successfully"}
