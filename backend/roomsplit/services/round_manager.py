"""Round lifecycle: OPEN -> CLEARED, settlement generation and the hand-off to the next round."""
import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session

from roomsplit.errors import (
    AlreadyGenerated, InvalidTransition, NoOpenRound, NotFound, RoundAlreadyOpen, RoundLocked,
)
from roomsplit.models import Round, RoundStatus, Settlement
from roomsplit.services import settlement_status
from roomsplit.services.balance_calculator import compute_balances, read_ledger
from roomsplit.services.ledger_store import LedgerStore
from roomsplit.services.settlement_calculator import compute_settlements

logger = logging.getLogger(__name__)


class GenerationResult:
    """Outcome of generating a round's settlement batch."""

    def __init__(self, round_id: int, settlements: list[Settlement], round_cleared: bool = False):
        self.round_id = round_id
        self.settlements = settlements
        self.round_cleared = round_cleared

    @property
    def nothing_to_settle(self) -> bool:
        return not self.settlements


class RoundLifecycleManager:
    """Runs the engine operations for one request; commits once per operation."""

    def __init__(self, db: Session, store: Optional[LedgerStore] = None):
        self.db = db
        self.store = store or LedgerStore(db)

    def create_round(self, room_id: int) -> Round:
        if self.store.get_open_round(room_id) is not None:
            raise RoundAlreadyOpen()
        rnd = self.store.create_round(room_id)
        self.db.commit()
        self.db.refresh(rnd)
        logger.info(f"Opened round {rnd.id} for room {room_id}")
        return rnd

    def open_round_for(self, room_id: int) -> Round:
        """Current open round, creating one if the room has none."""
        rnd = self.store.get_open_round(room_id)
        if rnd is not None:
            return rnd
        try:
            return self.create_round(room_id)
        except RoundAlreadyOpen:
            # another request opened it in the meantime
            return self.store.get_open_round(room_id)

    def lock_ledger(self, rnd: Round) -> None:
        """
        Claim the round's ledger for an expense write in the caller's transaction.
        The claim is re-checked in the database, so a round whose settlements were
        generated after ``rnd`` was loaded is still refused.
        """
        if rnd.status != RoundStatus.OPEN:
            raise RoundLocked("Cannot change expenses in a cleared round")
        if rnd.settlements_generated_at is not None:
            raise RoundLocked("Settlements were already generated for this round")
        round_id = rnd.id
        if not self.store.claim_ledger_change(round_id):
            self.db.rollback()
            logger.warning(f"Expense change refused; round {round_id} was locked concurrently")
            raise RoundLocked("Settlements were already generated for this round")

    def generate_settlements(self, room_id: int) -> GenerationResult:
        rnd = self.store.get_open_round(room_id)
        if rnd is None:
            raise NoOpenRound()
        if rnd.settlements_generated_at is not None:
            raise AlreadyGenerated()

        ledger_version = rnd.ledger_version
        ledger = read_ledger(self.store.list_members(room_id), self.store.list_expenses(rnd.id))
        balances = compute_balances(ledger)
        transfers = compute_settlements(balances)

        settlements = self.store.insert_settlements(rnd, transfers, ledger_version)
        self.db.commit()
        round_id = rnd.id
        logger.info(f"Generated {len(settlements)} settlement(s) for round {round_id} of room {room_id}")

        if not settlements:
            cleared = self.try_close_round(round_id)
            return GenerationResult(round_id, [], round_cleared=cleared)
        for s in settlements:
            self.db.refresh(s)
        return GenerationResult(round_id, settlements)

    def try_close_round(self, round_id: int) -> bool:
        """
        Clear the round once its settlement batch is fully confirmed and open the
        room's next round. Returns True only for the call that actually cleared it;
        a round that is already cleared or not yet settled is left alone.
        """
        rnd = self.store.get_round(round_id)
        if rnd is None:
            raise NotFound("Round not found")
        if rnd.status == RoundStatus.CLEARED or rnd.settlements_generated_at is None:
            return False
        if not self.store.all_settlements_confirmed(round_id):
            return False

        room_id = rnd.room_id
        if not self.store.close_round(round_id, datetime.now(timezone.utc)):
            self.db.rollback()
            logger.info(f"Round {round_id} was already cleared by another request")
            return False
        successor = self.store.create_round(room_id)
        self.db.commit()
        logger.info(f"Cleared round {round_id} of room {room_id}; opened round {successor.id}")
        return True

    def mark_paid(self, settlement_id: int, acting_user_id: int) -> Settlement:
        s = self._get_open_settlement(settlement_id)
        new_status = settlement_status.mark_paid(s, acting_user_id)
        self._swap_status(s, new_status)
        return s

    def confirm(self, settlement_id: int, acting_user_id: int) -> Settlement:
        s = self._get_open_settlement(settlement_id)
        new_status = settlement_status.confirm(s, acting_user_id)
        self._swap_status(s, new_status)
        self.try_close_round(s.round_id)
        self.db.refresh(s)
        return s

    def _get_open_settlement(self, settlement_id: int) -> Settlement:
        s = self.store.get_settlement(settlement_id)
        if s is None:
            raise NotFound("Settlement not found")
        if s.round.status != RoundStatus.OPEN:
            raise InvalidTransition("Cannot update settlements in a cleared round")
        return s

    def _swap_status(self, s: Settlement, new_status) -> None:
        expected = s.status
        if not self.store.update_settlement_status(s.id, expected, new_status):
            self.db.rollback()
            logger.warning(f"Settlement {s.id} changed concurrently; expected {expected.value}")
            raise InvalidTransition("Settlement status changed concurrently")
        self.db.commit()
        self.db.refresh(s)
        logger.info(f"Settlement {s.id} moved {expected.value} -> {new_status.value}")
