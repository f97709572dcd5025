import random
from decimal import Decimal

import pytest

from roomsplit.errors import DegenerateRoom, InvalidAmount
from roomsplit.schemas import LedgerEntry
from roomsplit.services.balance_calculator import compute_balances, equal_shares, read_ledger, total_amount


def entry(payer_id, amount):
    return LedgerEntry(payer_id=payer_id, amount=Decimal(amount))


def test_one_payer_for_everyone():
    ledger = read_ledger([1, 2, 3], [entry(1, "300")])
    assert compute_balances(ledger) == {1: Decimal("200"), 2: Decimal("-100"), 3: Decimal("-100")}


def test_two_payers():
    ledger = read_ledger([1, 2], [entry(1, "50"), entry(2, "150")])
    assert compute_balances(ledger) == {1: Decimal("-50"), 2: Decimal("50")}


def test_same_payer_twice():
    ledger = read_ledger([1, 2, 3, 4], [entry(1, "100"), entry(1, "100")])
    balances = compute_balances(ledger)
    assert balances[1] == Decimal("150")
    assert balances[2] == balances[3] == balances[4] == Decimal("-50")


def test_no_expenses_all_zero():
    balances = compute_balances(read_ledger([1, 2, 3], []))
    assert all(b == 0 for b in balances.values())
    assert set(balances) == {1, 2, 3}


def test_no_members_is_degenerate():
    with pytest.raises(DegenerateRoom):
        compute_balances(read_ledger([], [entry(1, "10")]))


def test_non_positive_amount_rejected():
    with pytest.raises(InvalidAmount):
        read_ledger([1, 2], [entry(1, "0")])


def test_uneven_split_gives_leftover_cents_to_lowest_ids():
    shares = equal_shares(Decimal("100.00"), [7, 3, 5])
    assert shares == {3: Decimal("33.34"), 5: Decimal("33.33"), 7: Decimal("33.33")}
    assert sum(shares.values()) == Decimal("100.00")


def test_payer_who_left_room_is_still_credited():
    ledger = read_ledger([1, 2], [entry(9, "40")])
    balances = compute_balances(ledger)
    assert balances == {1: Decimal("-20"), 2: Decimal("-20"), 9: Decimal("40")}


def test_custom_share_policy():
    def first_member_pays_all(total, member_ids):
        return {uid: (total if i == 0 else Decimal("0")) for i, uid in enumerate(sorted(member_ids))}

    ledger = read_ledger([1, 2], [entry(2, "30")])
    assert compute_balances(ledger, share_policy=first_member_pays_all) == {1: Decimal("-30"), 2: Decimal("30")}


def test_balances_always_sum_to_zero():
    rng = random.Random(1234)
    for _ in range(200):
        members = rng.sample(range(1, 50), rng.randint(1, 9))
        expenses = [
            entry(rng.choice(members), f"{rng.randint(1, 100000) / 100:.2f}")
            for _ in range(rng.randint(0, 12))
        ]
        ledger = read_ledger(members, expenses)
        balances = compute_balances(ledger)
        assert sum(balances.values()) == 0
        assert total_amount(ledger) == sum((e.amount for e in expenses), Decimal("0"))
