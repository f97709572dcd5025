import random
from decimal import Decimal

import pytest

from roomsplit.errors import BalanceMismatch
from roomsplit.services.settlement_calculator import compute_settlements

A, B, C, D = 1, 2, 3, 4


def as_tuples(settlements):
    return [(s.from_user_id, s.to_user_id, s.amount) for s in settlements]


def apply_settlements(balances, settlements):
    """Replay transfers; a correct plan leaves every balance at zero."""
    result = dict(balances)
    for s in settlements:
        result[s.from_user_id] += s.amount
        result[s.to_user_id] -= s.amount
    return result


def test_one_creditor_two_debtors():
    out = compute_settlements({A: Decimal("200"), B: Decimal("-100"), C: Decimal("-100")})
    assert as_tuples(out) == [(B, A, Decimal("100")), (C, A, Decimal("100"))]


def test_single_transfer():
    out = compute_settlements({A: Decimal("-50"), B: Decimal("50")})
    assert as_tuples(out) == [(A, B, Decimal("50"))]


def test_four_members_three_transfers():
    out = compute_settlements({A: Decimal("150"), B: Decimal("-50"), C: Decimal("-50"), D: Decimal("-50")})
    assert as_tuples(out) == [(B, A, Decimal("50")), (C, A, Decimal("50")), (D, A, Decimal("50"))]


def test_largest_debtor_pays_largest_creditor_first():
    out = compute_settlements({A: Decimal("70"), B: Decimal("30"), C: Decimal("-90"), D: Decimal("-10")})
    assert as_tuples(out) == [(C, A, Decimal("70")), (C, B, Decimal("20")), (D, B, Decimal("10"))]


def test_all_zero_is_nothing_to_settle():
    assert compute_settlements({A: Decimal("0"), B: Decimal("0")}) == []
    assert compute_settlements({}) == []


def test_negligible_balances_are_ignored():
    assert compute_settlements({A: Decimal("0.004"), B: Decimal("-0.004")}) == []


def test_sub_cent_balances_are_rounded_to_cents():
    out = compute_settlements({A: 0.009, B: 0.009, C: -0.018})
    assert as_tuples(out) == [(C, A, Decimal("0.01")), (C, B, Decimal("0.01"))]


def test_residual_raises_balance_mismatch():
    with pytest.raises(BalanceMismatch):
        compute_settlements({A: Decimal("100"), B: Decimal("-60")})


def test_result_does_not_depend_on_insertion_order():
    balances = {A: Decimal("25"), B: Decimal("25"), C: Decimal("-25"), D: Decimal("-25")}
    reversed_balances = dict(reversed(list(balances.items())))
    assert as_tuples(compute_settlements(balances)) == as_tuples(compute_settlements(reversed_balances))
    assert as_tuples(compute_settlements(balances)) == [(C, A, Decimal("25")), (D, B, Decimal("25"))]


def test_random_balances_settle_with_at_most_n_minus_one_transfers():
    rng = random.Random(42)
    for _ in range(300):
        users = rng.sample(range(1, 100), rng.randint(2, 10))
        cents = [rng.randint(-50000, 50000) for _ in users[:-1]]
        cents.append(-sum(cents))
        balances = {uid: Decimal(c) / 100 for uid, c in zip(users, cents)}

        out = compute_settlements(balances)

        non_zero = sum(1 for b in balances.values() if b != 0)
        assert len(out) <= max(non_zero - 1, 0)
        assert all(s.amount > 0 for s in out)
        assert all(v == 0 for v in apply_settlements(balances, out).values())
