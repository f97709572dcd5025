"""Net balance per member for one round (positive = is owed money, negative = owes money)."""
from decimal import Decimal
from typing import Callable, Iterable

from roomsplit.errors import DegenerateRoom, InvalidAmount
from roomsplit.money import ZERO, from_minor_units, to_minor_units, to_money
from roomsplit.schemas import Ledger, LedgerEntry

SharePolicy = Callable[[Decimal, list[int]], dict[int, Decimal]]


def read_ledger(member_ids: Iterable[int], expenses: Iterable) -> Ledger:
    """
    Build a ledger from the room's current members and a round's expenses.
    expenses: anything with payer_id and amount (ORM rows, LedgerEntry, ...).
    """
    entries = []
    for e in expenses:
        amount = to_money(e.amount)
        if amount <= ZERO:
            raise InvalidAmount(f"Expense amount must be positive, got {amount}")
        entries.append(LedgerEntry(payer_id=e.payer_id, amount=amount))
    return Ledger(member_ids=sorted(set(member_ids)), entries=entries)


def equal_shares(total: Decimal, member_ids: list[int]) -> dict[int, Decimal]:
    """
    Split total equally in minor units. Cents that don't divide evenly go one
    each to the lowest member ids, so the shares always add up to total.
    """
    base, remainder = divmod(to_minor_units(total), len(member_ids))
    return {
        uid: from_minor_units(base + (1 if i < remainder else 0))
        for i, uid in enumerate(sorted(member_ids))
    }


def compute_balances(ledger: Ledger, share_policy: SharePolicy = equal_shares) -> dict[int, Decimal]:
    if not ledger.member_ids:
        raise DegenerateRoom("Cannot compute a fair share for a room with no members")

    shares = share_policy(total_amount(ledger), ledger.member_ids)

    balances: dict[int, Decimal] = {uid: ZERO - shares[uid] for uid in ledger.member_ids}
    for e in ledger.entries:
        # a payer who has left the room is still owed what they paid
        balances[e.payer_id] = balances.get(e.payer_id, ZERO) + e.amount
    return balances


def total_amount(ledger: Ledger) -> Decimal:
    return sum((e.amount for e in ledger.entries), ZERO)
