"""Settlement status machine: PENDING -> PAID -> CONFIRMED.

Status only moves forward, one step at a time. The debtor marks a settlement
paid, the creditor confirms it. There is no way back from CONFIRMED and no
dispute state.
"""
from roomsplit.errors import InvalidTransition, NotSettlementParty
from roomsplit.models import SettlementStatus

TRANSITIONS: dict[SettlementStatus, SettlementStatus] = {
    SettlementStatus.PENDING: SettlementStatus.PAID,
    SettlementStatus.PAID: SettlementStatus.CONFIRMED,
}


def next_status(current: SettlementStatus, target: SettlementStatus) -> SettlementStatus:
    current, target = SettlementStatus(current), SettlementStatus(target)
    if TRANSITIONS.get(current) != target:
        raise InvalidTransition(f"Cannot move settlement from {current.value} to {target.value}")
    return target


def mark_paid(settlement, acting_user_id: int) -> SettlementStatus:
    """Validate PENDING -> PAID for the debtor. Returns the new status without applying it."""
    if settlement.from_user_id != acting_user_id:
        raise NotSettlementParty("Only the payer can mark settlement as paid")
    return next_status(settlement.status, SettlementStatus.PAID)


def confirm(settlement, acting_user_id: int) -> SettlementStatus:
    """Validate PAID -> CONFIRMED for the creditor. Returns the new status without applying it."""
    if settlement.to_user_id != acting_user_id:
        raise NotSettlementParty("Only the receiver can confirm settlement")
    return next_status(settlement.status, SettlementStatus.CONFIRMED)
