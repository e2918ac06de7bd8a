"""Escrow call specs (create, partial/range/full withdrawal, refund)."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass
from typing import Optional, Sequence

from ..config import HASH_SIZE, MAX_PARTS, MIN_PARTS
from ..crypto.hashing import escrow_id_for, keccak256, nullifier_for, verify_hash_lock
from ..crypto.merkle import verify_merkle_proof
from ..custody import Balance, pay_to, take_from
from ..errors import ErrorCode, SpecError
from ..fill import (
    completion_index,
    max_cumulative_fill,
    part_size_for,
    range_fill_amount,
)
from ..types import (
    Call,
    CallType,
    CreatePayload,
    Escrow,
    EscrowState,
    Payout,
    WindowState,
    WithdrawFullPayload,
    WithdrawPartialPayload,
    WithdrawRangePayload,
)
from ..windows import (
    require_cancellation_window,
    require_withdraw_window,
    validate_timelocks,
)

_PAYLOAD_TYPES = {
    CallType.CREATE: CreatePayload,
    CallType.WITHDRAW_PARTIAL: WithdrawPartialPayload,
    CallType.WITHDRAW_PARTIAL_RANGE: WithdrawRangePayload,
    CallType.WITHDRAW_FULL: WithdrawFullPayload,
}


@dataclass
class Outcome:
    escrow_id: Optional[bytes] = None
    payout: Optional[Payout] = None


def verify(state: EscrowState, call: Call) -> None:
    expected = _PAYLOAD_TYPES.get(call.call_type)
    if expected is not None and not isinstance(call.payload, expected):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, f"{call.call_type.value} payload must be {expected.__name__}")

    ct = call.call_type
    if ct == CallType.CREATE:
        _verify_create(state, call, call.payload)
    elif ct == CallType.WITHDRAW_PARTIAL:
        _verify_withdraw_partial(state, call, call.payload)
    elif ct == CallType.WITHDRAW_PARTIAL_RANGE:
        _verify_withdraw_range(state, call, call.payload)
    elif ct == CallType.WITHDRAW_FULL:
        _verify_withdraw_full(state, call, call.payload)
    elif ct == CallType.REFUND_TO_MAKER:
        _verify_refund(state, call)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow call type: {ct}")


def apply(state: EscrowState, call: Call) -> tuple[EscrowState, Outcome]:
    ct = call.call_type
    if ct == CallType.CREATE:
        return _apply_create(state, call, call.payload)
    elif ct == CallType.WITHDRAW_PARTIAL:
        return _apply_withdraw_partial(state, call, call.payload)
    elif ct == CallType.WITHDRAW_PARTIAL_RANGE:
        return _apply_withdraw_range(state, call, call.payload)
    elif ct == CallType.WITHDRAW_FULL:
        return _apply_withdraw_full(state, call, call.payload)
    elif ct == CallType.REFUND_TO_MAKER:
        return _apply_refund(state, call)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow call type: {ct}")


# --- shared checks ---


def _require_escrow(state: EscrowState, call: Call) -> Escrow:
    escrow = state.escrows.get(call.escrow_id) if call.escrow_id is not None else None
    if escrow is None:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, "escrow not found")
    return escrow


def _require_unresolved(escrow: Escrow) -> None:
    if escrow.is_resolved:
        raise SpecError(ErrorCode.ALREADY_RESOLVED, "escrow already resolved")


def _check_secret_index(escrow: Escrow, secret_index: int) -> None:
    if secret_index < 1 or secret_index > completion_index(escrow.num_parts):
        raise SpecError(ErrorCode.INVALID_SECRET_INDEX, "secret index out of range")


def _check_secret(escrow: Escrow, secret: bytes, proof: Sequence[bytes], secret_index: int) -> bytes:
    """Hash-lock pre-filter, then Merkle membership. Returns the nullifier."""
    if not verify_hash_lock(secret, escrow.hash_lock):
        raise SpecError(ErrorCode.INVALID_HASH, "secret does not match hash lock")
    leaf = keccak256(secret)
    if not verify_merkle_proof(escrow.merkle_root, leaf, proof, secret_index - 1):
        raise SpecError(ErrorCode.INVALID_MERKLE_PROOF, "invalid merkle proof")
    return nullifier_for(secret)


def _check_unclaimed(state: EscrowState, nullifier: bytes) -> None:
    if state.registry.is_claimed(nullifier):
        raise SpecError(ErrorCode.NULLIFIER_ALREADY_USED, "nullifier already used")


def _fill_amount(escrow: Escrow, cap: int, desired_amount: int) -> int:
    if cap <= escrow.filled_amount:
        raise SpecError(ErrorCode.INVALID_FILL_AMOUNT, "secret already filled")
    available = cap - escrow.filled_amount
    actual = min(desired_amount, available)
    if actual <= 0:
        raise SpecError(ErrorCode.INVALID_FILL_AMOUNT, "nothing to fill")
    if escrow.balance.value < actual:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "fill exceeds escrow balance")
    return actual


def _record_fill(escrow: Escrow, actual: int) -> None:
    escrow.filled_amount += actual
    if escrow.filled_amount >= escrow.total_amount:
        escrow.is_resolved = True


def _disburse(
    state: EscrowState, escrow: Escrow, main: Balance, window: WindowState, caller: bytes
) -> Payout:
    """Hand out a withdrawn balance; a resolved escrow also settles its reward
    pool and is destroyed in the same call."""
    if window == WindowState.PUBLIC_WITHDRAWAL:
        pay_to(state, caller, main)
        pay_to(state, caller, escrow.reward_balance.withdraw_all())
        payout = Payout()
    elif escrow.is_resolved:
        reward = escrow.reward_balance.withdraw_all()
        if reward.value == 0:
            reward.destroy_zero()
            payout = Payout(main=main)
        else:
            payout = Payout(main=main, reward=reward)
    else:
        payout = Payout(main=main)

    if escrow.is_resolved:
        _destroy_escrow(state, escrow)
    return payout


def _destroy_escrow(state: EscrowState, escrow: Escrow) -> None:
    escrow.balance.destroy_zero()
    escrow.reward_balance.destroy_zero()
    del state.escrows[escrow.id]


# --- CREATE ---


def _verify_create(state: EscrowState, call: Call, p: CreatePayload) -> None:
    if len(p.hash_lock) != HASH_SIZE:
        raise SpecError(ErrorCode.INVALID_HASH, "hash lock must be 32 bytes")
    if len(p.merkle_root) == 0:
        raise SpecError(ErrorCode.INVALID_MERKLE_PROOF, "merkle root must not be empty")
    if p.amount <= 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "escrow amount must be > 0")
    if p.reward < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "reward must be >= 0")
    if p.num_parts < MIN_PARTS or p.num_parts > MAX_PARTS:
        raise SpecError(ErrorCode.INVALID_NUM_PARTS, f"num_parts must be in [{MIN_PARTS}, {MAX_PARTS}]")
    if part_size_for(p.amount, p.num_parts) <= 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "part size must be > 0")
    validate_timelocks(call.now, p.timelocks)
    if p.deadline <= call.now:
        raise SpecError(ErrorCode.DEADLINE_EXPIRED, "deadline must be after now")

    creator = state.accounts.get(call.caller)
    if creator is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "creator not found")
    if creator.balance < p.amount + p.reward:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")


def _apply_create(state: EscrowState, call: Call, p: CreatePayload) -> tuple[EscrowState, Outcome]:
    ns = deepcopy(state)
    eid = escrow_id_for(call.caller, ns.registry.next_escrow_index())

    ns.escrows[eid] = Escrow(
        id=eid,
        creator=call.caller,
        maker=p.maker if p.maker is not None else call.caller,
        balance=take_from(ns, call.caller, p.amount),
        reward_balance=take_from(ns, call.caller, p.reward),
        hash_lock=p.hash_lock,
        merkle_root=p.merkle_root,
        timelocks=p.timelocks,
        num_parts=p.num_parts,
        part_size=part_size_for(p.amount, p.num_parts),
        created_at=call.now,
        total_amount=p.amount,
        deadline=p.deadline,
    )
    return ns, Outcome(escrow_id=eid)


# --- WITHDRAW_PARTIAL ---


def _verify_withdraw_partial(state: EscrowState, call: Call, p: WithdrawPartialPayload) -> None:
    escrow = _require_escrow(state, call)
    _require_unresolved(escrow)
    require_withdraw_window(call.now, escrow.timelocks)
    _check_secret_index(escrow, p.secret_index)
    nullifier = _check_secret(escrow, p.secret, p.proof, p.secret_index)
    _check_unclaimed(state, nullifier)
    cap = max_cumulative_fill(escrow.total_amount, escrow.num_parts, p.secret_index)
    _fill_amount(escrow, cap, p.desired_amount)


def _apply_withdraw_partial(
    state: EscrowState, call: Call, p: WithdrawPartialPayload
) -> tuple[EscrowState, Outcome]:
    ns = deepcopy(state)
    escrow = _require_escrow(ns, call)
    window = require_withdraw_window(call.now, escrow.timelocks)

    ns.registry.claim(nullifier_for(p.secret))
    cap = max_cumulative_fill(escrow.total_amount, escrow.num_parts, p.secret_index)
    actual = _fill_amount(escrow, cap, p.desired_amount)
    _record_fill(escrow, actual)

    payout = _disburse(ns, escrow, escrow.balance.split(actual), window, call.caller)
    return ns, Outcome(escrow_id=escrow.id, payout=payout)


# --- WITHDRAW_PARTIAL_RANGE ---


def _verify_withdraw_range(state: EscrowState, call: Call, p: WithdrawRangePayload) -> None:
    escrow = _require_escrow(state, call)
    _require_unresolved(escrow)
    require_withdraw_window(call.now, escrow.timelocks)
    _check_secret_index(escrow, p.start_index)
    _check_secret_index(escrow, p.end_index)
    if p.end_index < p.start_index:
        raise SpecError(ErrorCode.INVALID_SECRET_INDEX, "end index before start index")

    start_nullifier = _check_secret(escrow, p.start_secret, p.start_proof, p.start_index)
    end_nullifier = _check_secret(escrow, p.end_secret, p.end_proof, p.end_index)
    _check_unclaimed(state, start_nullifier)
    _check_unclaimed(state, end_nullifier)

    cap = range_fill_amount(escrow.total_amount, escrow.num_parts, p.start_index, p.end_index)
    _fill_amount(escrow, cap, p.desired_amount)


def _apply_withdraw_range(
    state: EscrowState, call: Call, p: WithdrawRangePayload
) -> tuple[EscrowState, Outcome]:
    ns = deepcopy(state)
    escrow = _require_escrow(ns, call)
    window = require_withdraw_window(call.now, escrow.timelocks)

    # Only the boundary secrets are nullified; interior indices stay usable.
    ns.registry.claim_all([nullifier_for(p.start_secret), nullifier_for(p.end_secret)])
    cap = range_fill_amount(escrow.total_amount, escrow.num_parts, p.start_index, p.end_index)
    actual = _fill_amount(escrow, cap, p.desired_amount)
    _record_fill(escrow, actual)

    payout = _disburse(ns, escrow, escrow.balance.split(actual), window, call.caller)
    return ns, Outcome(escrow_id=escrow.id, payout=payout)


# --- WITHDRAW_FULL ---


def _verify_withdraw_full(state: EscrowState, call: Call, p: WithdrawFullPayload) -> None:
    escrow = _require_escrow(state, call)
    _require_unresolved(escrow)
    require_withdraw_window(call.now, escrow.timelocks)
    _check_secret_index(escrow, p.completion_index)
    nullifier = _check_secret(escrow, p.completion_secret, p.completion_proof, p.completion_index)
    _check_unclaimed(state, nullifier)
    cap = max_cumulative_fill(escrow.total_amount, escrow.num_parts, p.completion_index)
    if cap < escrow.total_amount:
        raise SpecError(ErrorCode.INVALID_FILL_AMOUNT, "secret does not authorize full payout")


def _apply_withdraw_full(
    state: EscrowState, call: Call, p: WithdrawFullPayload
) -> tuple[EscrowState, Outcome]:
    ns = deepcopy(state)
    escrow = _require_escrow(ns, call)
    window = require_withdraw_window(call.now, escrow.timelocks)

    ns.registry.claim(nullifier_for(p.completion_secret))
    escrow.is_resolved = True
    payout = _disburse(ns, escrow, escrow.balance.withdraw_all(), window, call.caller)
    return ns, Outcome(escrow_id=escrow.id, payout=payout)


# --- REFUND_TO_MAKER ---


def _verify_refund(state: EscrowState, call: Call) -> None:
    escrow = _require_escrow(state, call)
    require_cancellation_window(call.now, escrow.timelocks)
    _require_unresolved(escrow)


def _apply_refund(state: EscrowState, call: Call) -> tuple[EscrowState, Outcome]:
    ns = deepcopy(state)
    escrow = _require_escrow(ns, call)

    pay_to(ns, escrow.maker, escrow.balance.withdraw_all())
    pay_to(ns, escrow.maker, escrow.reward_balance.withdraw_all())

    _destroy_escrow(ns, escrow)
    return ns, Outcome(escrow_id=escrow.id)
