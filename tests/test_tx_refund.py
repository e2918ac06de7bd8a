"""Refund-to-maker specs."""

from __future__ import annotations

import pytest

from escrow_fixtures import (
    NOW,
    PART,
    REWARD,
    T2,
    T3,
    TOTAL,
    fixed_secret_set,
    partial_call,
    refund_call,
    state_with_escrow,
)
from htlc_spec.custody import total_value
from htlc_spec.errors import ErrorCode
from htlc_spec.test_accounts import MAKER, STRANGER

FIXTURE = "escrow/refund_to_maker.json"


@pytest.mark.parametrize("now", [NOW, T2, T3 + 1])
def test_refund_outside_cancellation_window(state_test_group, now: int) -> None:
    secrets = fixed_secret_set()
    pre, eid = state_with_escrow(secrets)
    post, result = state_test_group(FIXTURE, f"refund_inactive_{now - NOW}", pre, refund_call(eid, now=now))
    assert result.error.code == ErrorCode.WINDOW_NOT_ACTIVE
    assert post is pre


@pytest.mark.parametrize("now", [T2 + 1, T3])
def test_refund_by_anyone(state_test_group, now: int) -> None:
    secrets = fixed_secret_set()
    pre, eid = state_with_escrow(secrets)
    post, result = state_test_group(FIXTURE, f"refund_ok_{now - NOW}", pre, refund_call(eid, caller=STRANGER, now=now))

    assert result.ok
    assert result.payout is None
    assert post.accounts[MAKER].balance == TOTAL + REWARD
    assert STRANGER not in post.accounts
    assert eid not in post.escrows
    assert total_value(post) == total_value(pre)


def test_refund_after_partial_fill(state_test_group) -> None:
    secrets = fixed_secret_set()
    state, eid = state_with_escrow(secrets, lock_index=1)
    state, partial = state_test_group(FIXTURE, "refund_partial_setup", state, partial_call(eid, secrets, 1, PART))
    assert partial.ok
    post, result = state_test_group(FIXTURE, "refund_after_partial", state, refund_call(eid))
    assert result.ok
    assert post.accounts[MAKER].balance == TOTAL - PART + REWARD


def test_refund_after_completion(state_test_group) -> None:
    secrets = fixed_secret_set()
    state, eid = state_with_escrow(secrets)
    state, done = state_test_group(
        FIXTURE, "refund_completed_setup", state, partial_call(eid, secrets, secrets.num_parts + 1, TOTAL)
    )
    assert done.ok
    assert done.payout.reward.value == REWARD
    post, result = state_test_group(FIXTURE, "refund_completed", state, refund_call(eid))
    assert result.error.code == ErrorCode.ESCROW_NOT_FOUND
    assert post.accounts[MAKER].balance == 0


def test_refund_resolved_escrow(state_test_group) -> None:
    secrets = fixed_secret_set()
    pre, eid = state_with_escrow(secrets)
    pre.escrows[eid].is_resolved = True
    post, result = state_test_group(FIXTURE, "refund_resolved", pre, refund_call(eid))
    assert result.error.code == ErrorCode.ALREADY_RESOLVED
    assert post is pre


def test_refund_twice(state_test_group) -> None:
    secrets = fixed_secret_set()
    state, eid = state_with_escrow(secrets)
    state, first = state_test_group(FIXTURE, "refund_first", state, refund_call(eid))
    assert first.ok
    _, second = state_test_group(FIXTURE, "refund_second", state, refund_call(eid))
    assert second.error.code == ErrorCode.ESCROW_NOT_FOUND
