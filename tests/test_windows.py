"""Window resolution; upper bounds are closed."""

from __future__ import annotations

import pytest

from htlc_spec.errors import ErrorCode, SpecError
from htlc_spec.types import Timelocks, WindowState
from htlc_spec.windows import (
    require_cancellation_window,
    require_withdraw_window,
    resolve_window,
    validate_timelocks,
)

T1, T2, T3 = 1_000, 2_000, 3_000
LOCKS = Timelocks(T1, T2, T3)


@pytest.mark.parametrize(
    "now,expected",
    [
        (0, WindowState.WITHDRAWAL),
        (T1, WindowState.WITHDRAWAL),
        (T1 + 1, WindowState.PUBLIC_WITHDRAWAL),
        (T2, WindowState.PUBLIC_WITHDRAWAL),
        (T2 + 1, WindowState.CANCELLATION),
        (T3, WindowState.CANCELLATION),
        (T3 + 1, WindowState.EXPIRED),
    ],
)
def test_resolve_window(now: int, expected: WindowState) -> None:
    assert resolve_window(now, LOCKS) == expected


@pytest.mark.parametrize("now", [T2 + 1, T3, T3 + 1])
def test_withdraw_closed(now: int) -> None:
    with pytest.raises(SpecError) as exc:
        require_withdraw_window(now, LOCKS)
    assert exc.value.code == ErrorCode.WINDOW_EXPIRED


@pytest.mark.parametrize("now", [T1, T2, T3 + 1])
def test_cancellation_only_in_its_window(now: int) -> None:
    with pytest.raises(SpecError) as exc:
        require_cancellation_window(now, LOCKS)
    assert exc.value.code == ErrorCode.WINDOW_NOT_ACTIVE
    assert require_cancellation_window(T2 + 1, LOCKS) == WindowState.CANCELLATION


@pytest.mark.parametrize(
    "now,locks",
    [
        (T1, LOCKS),
        (0, Timelocks(T1, T1, T3)),
        (0, Timelocks(T1, T2, T2)),
        (0, Timelocks(T3, T2, T1)),
    ],
)
def test_validate_timelocks_ordering(now: int, locks: Timelocks) -> None:
    with pytest.raises(SpecError) as exc:
        validate_timelocks(now, locks)
    assert exc.value.code == ErrorCode.INVALID_WINDOW_ORDERING


def test_validate_timelocks_ok() -> None:
    validate_timelocks(T1 - 1, LOCKS)
