"""Value custody primitives."""

from __future__ import annotations

import pytest

from htlc_spec.custody import Balance, pay_to, take_from, total_value
from htlc_spec.errors import ErrorCode, SpecError
from htlc_spec.test_accounts import MAKER, STRANGER, TAKER
from htlc_spec.types import AccountState, EscrowState


def test_split_and_merge() -> None:
    bal = Balance(100)
    part = bal.split(30)
    assert (bal.value, part.value) == (70, 30)
    assert bal.merge(part) == 100
    assert part.value == 0
    part.destroy_zero()


def test_split_too_much() -> None:
    with pytest.raises(SpecError) as exc:
        Balance(10).split(11)
    assert exc.value.code == ErrorCode.INVALID_AMOUNT


def test_withdraw_all_leaves_zero() -> None:
    bal = Balance(42)
    out = bal.withdraw_all()
    assert out.value == 42
    bal.destroy_zero()
    with pytest.raises(SpecError):
        out.destroy_zero()


def test_take_and_pay() -> None:
    state = EscrowState()
    state.accounts[TAKER] = AccountState(address=TAKER, balance=50)
    bal = take_from(state, TAKER, 20)
    assert state.accounts[TAKER].balance == 30
    pay_to(state, MAKER, bal)
    assert state.accounts[MAKER].balance == 20
    assert bal.value == 0
    assert total_value(state) == 50


def test_take_errors() -> None:
    state = EscrowState()
    state.accounts[TAKER] = AccountState(address=TAKER, balance=5)
    with pytest.raises(SpecError) as exc:
        take_from(state, STRANGER, 1)
    assert exc.value.code == ErrorCode.ACCOUNT_NOT_FOUND
    with pytest.raises(SpecError) as exc:
        take_from(state, TAKER, 6)
    assert exc.value.code == ErrorCode.INSUFFICIENT_BALANCE
