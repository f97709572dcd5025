"""Minimize number of transfers so everyone is settled (who owes whom)."""
import heapq
import logging
from decimal import Decimal

from roomsplit.errors import BalanceMismatch
from roomsplit.money import EPSILON, ZERO, is_negligible, to_money
from roomsplit.schemas import SettlementItem

logger = logging.getLogger(__name__)


def compute_settlements(balances: dict[int, Decimal]) -> list[SettlementItem]:
    """
    balances: user_id -> net balance (positive = is owed money, negative = owes money).
    Returns a list of at most n - 1 transfers for n non-zero balances; empty when
    everyone is already settled. Balances are rounded to the minor unit first, so
    sub-cent inputs are settled in whole cents; raises BalanceMismatch if the
    rounded balances don't net to zero.
    """
    balances = {uid: to_money(bal) for uid, bal in balances.items()}
    residual = sum(balances.values(), ZERO)
    if abs(residual) >= EPSILON:
        logger.error(f"Balances do not net to zero (residual {residual}): {balances}")
        raise BalanceMismatch(f"Balances do not net to zero (residual {residual})")

    # heap entries: (-amount, user_id) so the largest amount, then lowest id, pops first
    debtors = []
    creditors = []
    for uid, bal in balances.items():
        if is_negligible(bal):
            continue
        if bal > 0:
            creditors.append((-bal, uid))
        else:
            debtors.append((bal, uid))
    heapq.heapify(debtors)
    heapq.heapify(creditors)

    out: list[SettlementItem] = []
    while debtors and creditors:
        d_neg, du = heapq.heappop(debtors)
        c_neg, cu = heapq.heappop(creditors)
        d_amount, c_amount = -d_neg, -c_neg
        transfer = min(d_amount, c_amount)
        out.append(SettlementItem(from_user_id=du, to_user_id=cu, amount=transfer))

        d_amount -= transfer
        c_amount -= transfer
        if not is_negligible(d_amount):
            heapq.heappush(debtors, (-d_amount, du))
        if not is_negligible(c_amount):
            heapq.heappush(creditors, (-c_amount, cu))

    if debtors or creditors:
        left = [(uid, -amt) for amt, uid in creditors] + [(uid, amt) for amt, uid in debtors]
        logger.error(f"Unmatched balances left after simplification: {left}")
        raise BalanceMismatch(f"Unmatched balances left after simplification: {left}")
    return out
