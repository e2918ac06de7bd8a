"""State transition entrypoints for the HTLC escrow specs."""

from __future__ import annotations

from typing import Optional

from .errors import ErrorCode, SpecError
from .tx import escrow as tx_escrow
from .types import Call, CallType, EscrowState, Payout

_ESCROW_TYPES = frozenset({
    CallType.CREATE,
    CallType.WITHDRAW_PARTIAL,
    CallType.WITHDRAW_PARTIAL_RANGE,
    CallType.WITHDRAW_FULL,
    CallType.REFUND_TO_MAKER,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[SpecError] = None,
        escrow_id: Optional[bytes] = None,
        payout: Optional[Payout] = None,
    ):
        self.ok = ok
        self.error = error
        self.escrow_id = escrow_id
        self.payout = payout

    @classmethod
    def success(
        cls, escrow_id: Optional[bytes] = None, payout: Optional[Payout] = None
    ) -> "TransitionResult":
        return cls(True, None, escrow_id, payout)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)


def _dispatch_verify(state: EscrowState, call: Call) -> None:
    if call.call_type in _ESCROW_TYPES:
        return tx_escrow.verify(state, call)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {call.call_type}")


def _dispatch_apply(state: EscrowState, call: Call) -> tuple[EscrowState, tx_escrow.Outcome]:
    if call.call_type in _ESCROW_TYPES:
        return tx_escrow.apply(state, call)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {call.call_type}")


def _verify_common(state: EscrowState, call: Call) -> None:
    if not isinstance(call.call_type, CallType):
        raise SpecError(ErrorCode.INVALID_TYPE, "unknown call type")
    if call.now < 0:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "now must be >= 0")
    if not call.caller:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "caller address required")


def verify_call(state: EscrowState, call: Call) -> TransitionResult:
    """Verification only; never mutates ``state``."""
    try:
        _verify_common(state, call)
        _dispatch_verify(state, call)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def apply_call(state: EscrowState, call: Call) -> tuple[EscrowState, TransitionResult]:
    """Apply call to state after verification.

    Failed-call semantics:
    - Verification failure: state unchanged
    - Execution failure: state unchanged (apply works on a copy)
    """
    try:
        _verify_common(state, call)
        _dispatch_verify(state, call)
    except SpecError as exc:
        return state, TransitionResult.failure(exc)

    try:
        next_state, outcome = _dispatch_apply(state, call)
    except SpecError as exc:
        return state, TransitionResult.failure(exc)

    return next_state, TransitionResult.success(outcome.escrow_id, outcome.payout)
