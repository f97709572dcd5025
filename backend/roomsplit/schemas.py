"""Pydantic schemas for request/response."""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from roomsplit.models import MemberRole, RoundStatus, SettlementStatus


# ----- User -----
class UserBase(BaseModel):
    email: EmailStr
    name: Optional[str] = None


class UserCreate(UserBase):
    password: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(UserBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MemberInfo(BaseModel):
    id: int
    name: Optional[str] = None
    email: EmailStr
    role: MemberRole = MemberRole.MEMBER


# ----- Room -----
class RoomCreate(BaseModel):
    name: Optional[str] = None
    join_code: Optional[int] = None


class RoomResponse(BaseModel):
    id: int
    name: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoomSummary(RoomResponse):
    role: MemberRole
    member_count: int = 0
    expense_count: int = 0


# ----- Round -----
class RoundCreate(BaseModel):
    room_id: int


class RoundResponse(BaseModel):
    id: int
    room_id: int
    status: RoundStatus
    created_at: Optional[datetime] = None
    cleared_at: Optional[datetime] = None
    settlements_generated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Expense -----
class ExpenseBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    notes: Optional[str] = None


class ExpenseCreate(ExpenseBase):
    room_id: int
    payer_id: Optional[int] = None


class ExpenseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    payer_id: Optional[int] = None
    notes: Optional[str] = None


class ExpenseResponse(ExpenseBase):
    id: int
    room_id: int
    round_id: int
    payer_id: int
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Ledger -----
class LedgerEntry(BaseModel):
    payer_id: int
    amount: Decimal


class Ledger(BaseModel):
    member_ids: list[int]
    entries: list[LedgerEntry] = []


# ----- Settlement -----
class SettlementItem(BaseModel):
    from_user_id: int
    to_user_id: int
    amount: Decimal


class SettlementCreate(BaseModel):
    room_id: int


class SettlementUpdate(BaseModel):
    status: SettlementStatus


class SettlementResponse(SettlementItem):
    id: int
    room_id: int
    round_id: int
    status: SettlementStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GenerationResponse(BaseModel):
    round_id: int
    nothing_to_settle: bool = False
    round_cleared: bool = False
    settlements: list[SettlementResponse] = []


class BalanceEntry(BaseModel):
    user_id: int
    balance: Decimal


class BalanceSummary(BaseModel):
    room_id: int
    round_id: Optional[int] = None
    total_amount: Decimal = Decimal("0")
    members: list[MemberInfo] = []
    balances: list[BalanceEntry] = []
    settlements: list[SettlementItem] = []


class RoundHistoryItem(RoundResponse):
    expense_count: int = 0
    total_amount: Decimal = Decimal("0")
    expenses: list[ExpenseResponse] = []
    settlements: list[SettlementResponse] = []


class RoomDetail(RoomResponse):
    members: list[MemberInfo] = []
    open_round: Optional[RoundResponse] = None
    expenses: list[ExpenseResponse] = []
