"""Persistence for rounds and settlements.

Every write that guards an engine invariant is a conditional statement
(insert against a unique index, or UPDATE ... WHERE <expected state>), so two
racing requests can never both succeed. Nothing here commits; a failed claim
rolls back the caller's transaction.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from roomsplit.errors import AlreadyGenerated, BalanceMismatch, RoundAlreadyOpen
from roomsplit.models import Expense, Membership, Round, RoundStatus, Settlement, SettlementStatus
from roomsplit.schemas import SettlementItem

logger = logging.getLogger(__name__)


class LedgerStore:
    def __init__(self, db: Session):
        self.db = db

    def list_members(self, room_id: int) -> list[int]:
        rows = (
            self.db.query(Membership.user_id)
            .filter(Membership.room_id == room_id)
            .order_by(Membership.user_id)
            .all()
        )
        return [r.user_id for r in rows]

    def list_expenses(self, round_id: int) -> list[Expense]:
        return self.db.query(Expense).filter(Expense.round_id == round_id).order_by(Expense.id).all()

    def get_open_round(self, room_id: int) -> Optional[Round]:
        return (
            self.db.query(Round)
            .filter(Round.room_id == room_id, Round.status == RoundStatus.OPEN)
            .first()
        )

    def get_round(self, round_id: int) -> Optional[Round]:
        return self.db.query(Round).filter(Round.id == round_id).first()

    def get_settlement(self, settlement_id: int) -> Optional[Settlement]:
        return self.db.query(Settlement).filter(Settlement.id == settlement_id).first()

    def list_settlements(self, round_id: int) -> list[Settlement]:
        return self.db.query(Settlement).filter(Settlement.round_id == round_id).order_by(Settlement.id).all()

    def create_round(self, room_id: int) -> Round:
        """Insert an OPEN round; the partial unique index rejects a second one."""
        rnd = Round(room_id=room_id, status=RoundStatus.OPEN)
        self.db.add(rnd)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.warning(f"Lost race creating a round for room {room_id}")
            raise RoundAlreadyOpen()
        return rnd

    def claim_ledger_change(self, round_id: int) -> bool:
        """
        Bump the round's ledger version before an expense is added, changed or
        removed. False once the round is cleared or its settlements exist.
        """
        updated = (
            self.db.query(Round)
            .filter(
                Round.id == round_id,
                Round.status == RoundStatus.OPEN,
                Round.settlements_generated_at.is_(None),
            )
            .update({Round.ledger_version: Round.ledger_version + 1}, synchronize_session=False)
        )
        return updated == 1

    def insert_settlements(
        self, round_obj: Round, transfers: list[SettlementItem], ledger_version: int
    ) -> list[Settlement]:
        """
        Claim the round's one settlement batch, then insert it as PENDING rows.
        ledger_version is the version the transfers were computed from; if an
        expense changed since, nothing is written.
        """
        claimed = (
            self.db.query(Round)
            .filter(
                Round.id == round_obj.id,
                Round.settlements_generated_at.is_(None),
                Round.ledger_version == ledger_version,
            )
            .update({Round.settlements_generated_at: datetime.now(timezone.utc)}, synchronize_session=False)
        )
        if claimed != 1:
            self.db.rollback()
            generated_at = (
                self.db.query(Round.settlements_generated_at).filter(Round.id == round_obj.id).scalar()
            )
            if generated_at is not None:
                raise AlreadyGenerated()
            logger.error(f"Ledger of round {round_obj.id} changed while settlements were generated")
            raise BalanceMismatch("Expenses changed while settlements were being generated")

        settlements = [
            Settlement(
                room_id=round_obj.room_id,
                round_id=round_obj.id,
                from_user_id=t.from_user_id,
                to_user_id=t.to_user_id,
                amount=t.amount,
                status=SettlementStatus.PENDING,
            )
            for t in transfers
        ]
        self.db.add_all(settlements)
        self.db.flush()
        return settlements

    def update_settlement_status(
        self, settlement_id: int, expected: SettlementStatus, next_status: SettlementStatus
    ) -> bool:
        """Compare-and-swap the status. False means someone else changed it first."""
        updated = (
            self.db.query(Settlement)
            .filter(Settlement.id == settlement_id, Settlement.status == expected)
            .update({Settlement.status: next_status}, synchronize_session=False)
        )
        return updated == 1

    def all_settlements_confirmed(self, round_id: int) -> bool:
        outstanding = (
            self.db.query(Settlement)
            .filter(Settlement.round_id == round_id, Settlement.status != SettlementStatus.CONFIRMED)
            .count()
        )
        return outstanding == 0

    def close_round(self, round_id: int, cleared_at: datetime) -> bool:
        """OPEN -> CLEARED. False if the round was no longer open."""
        updated = (
            self.db.query(Round)
            .filter(Round.id == round_id, Round.status == RoundStatus.OPEN)
            .update(
                {Round.status: RoundStatus.CLEARED, Round.cleared_at: cleared_at},
                synchronize_session=False,
            )
        )
        return updated == 1
