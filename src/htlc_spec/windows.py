"""Time window resolution (upper bounds are inclusive)."""

from __future__ import annotations

from .errors import ErrorCode, SpecError
from .types import Timelocks, WindowState

_WITHDRAW_WINDOWS = frozenset({WindowState.WITHDRAWAL, WindowState.PUBLIC_WITHDRAWAL})


def resolve_window(now: int, timelocks: Timelocks) -> WindowState:
    if now <= timelocks.withdrawal_end:
        return WindowState.WITHDRAWAL
    if now <= timelocks.public_withdrawal_end:
        return WindowState.PUBLIC_WITHDRAWAL
    if now <= timelocks.cancellation_end:
        return WindowState.CANCELLATION
    return WindowState.EXPIRED


def require_withdraw_window(now: int, timelocks: Timelocks) -> WindowState:
    window = resolve_window(now, timelocks)
    if window not in _WITHDRAW_WINDOWS:
        raise SpecError(ErrorCode.WINDOW_EXPIRED, f"withdrawal closed ({window.value})")
    return window


def require_cancellation_window(now: int, timelocks: Timelocks) -> WindowState:
    window = resolve_window(now, timelocks)
    if window != WindowState.CANCELLATION:
        raise SpecError(ErrorCode.WINDOW_NOT_ACTIVE, f"cancellation not active ({window.value})")
    return window


def validate_timelocks(now: int, timelocks: Timelocks) -> None:
    if timelocks.withdrawal_end <= now:
        raise SpecError(ErrorCode.INVALID_WINDOW_ORDERING, "withdrawal end must be after now")
    if timelocks.public_withdrawal_end <= timelocks.withdrawal_end:
        raise SpecError(ErrorCode.INVALID_WINDOW_ORDERING, "public withdrawal end out of order")
    if timelocks.cancellation_end <= timelocks.public_withdrawal_end:
        raise SpecError(ErrorCode.INVALID_WINDOW_ORDERING, "cancellation end out of order")
