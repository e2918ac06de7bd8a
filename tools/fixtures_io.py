"""Helpers to serialize minimal fixtures for the escrow specs."""

from __future__ import annotations

from typing import Any, Optional

from htlc_spec.state_digest import compute_state_digest
from htlc_spec.types import (
    Call,
    CreatePayload,
    EscrowState,
    Payout,
    WithdrawFullPayload,
    WithdrawPartialPayload,
    WithdrawRangePayload,
)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _proof_to_json(proof: list[bytes]) -> list[str]:
    return [_bytes_to_hex(p) for p in proof]


def state_to_json(state: EscrowState) -> dict[str, Any]:
    accounts_out = [
        {"address": _bytes_to_hex(a.address), "balance": a.balance}
        for a in state.accounts.values()
    ]
    escrows_out = [
        {
            "id": _bytes_to_hex(e.id),
            "creator": _bytes_to_hex(e.creator),
            "maker": _bytes_to_hex(e.maker),
            "balance": e.balance.value,
            "reward_balance": e.reward_balance.value,
            "hash_lock": _bytes_to_hex(e.hash_lock),
            "merkle_root": _bytes_to_hex(e.merkle_root),
            "withdrawal_end": e.timelocks.withdrawal_end,
            "public_withdrawal_end": e.timelocks.public_withdrawal_end,
            "cancellation_end": e.timelocks.cancellation_end,
            "num_parts": e.num_parts,
            "part_size": e.part_size,
            "created_at": e.created_at,
            "total_amount": e.total_amount,
            "filled_amount": e.filled_amount,
            "deadline": e.deadline,
            "is_resolved": e.is_resolved,
        }
        for e in state.escrows.values()
    ]
    result: dict[str, Any] = {
        "accounts": accounts_out,
        "escrows": escrows_out,
        "registry": {
            "escrow_count": state.registry.escrow_count,
            "used_nullifiers": sorted(_bytes_to_hex(n) for n in state.registry.used_nullifiers),
        },
    }
    result["state_digest"] = compute_state_digest(result)
    return result


def _payload_to_json(payload: object) -> Optional[dict[str, Any]]:
    if payload is None:
        return None
    if isinstance(payload, CreatePayload):
        return {
            "amount": payload.amount,
            "hash_lock": _bytes_to_hex(payload.hash_lock),
            "merkle_root": _bytes_to_hex(payload.merkle_root),
            "withdrawal_end": payload.timelocks.withdrawal_end,
            "public_withdrawal_end": payload.timelocks.public_withdrawal_end,
            "cancellation_end": payload.timelocks.cancellation_end,
            "num_parts": payload.num_parts,
            "deadline": payload.deadline,
            "reward": payload.reward,
            "maker": _bytes_to_hex(payload.maker) if payload.maker is not None else None,
        }
    if isinstance(payload, WithdrawPartialPayload):
        return {
            "secret_index": payload.secret_index,
            "secret": _bytes_to_hex(payload.secret),
            "proof": _proof_to_json(payload.proof),
            "desired_amount": payload.desired_amount,
        }
    if isinstance(payload, WithdrawRangePayload):
        return {
            "start_index": payload.start_index,
            "end_index": payload.end_index,
            "start_secret": _bytes_to_hex(payload.start_secret),
            "end_secret": _bytes_to_hex(payload.end_secret),
            "start_proof": _proof_to_json(payload.start_proof),
            "end_proof": _proof_to_json(payload.end_proof),
            "desired_amount": payload.desired_amount,
        }
    if isinstance(payload, WithdrawFullPayload):
        return {
            "completion_secret": _bytes_to_hex(payload.completion_secret),
            "completion_proof": _proof_to_json(payload.completion_proof),
            "completion_index": payload.completion_index,
        }
    return {"raw": repr(payload)}


def call_to_json(call: Call) -> dict[str, Any]:
    return {
        "call_type": call.call_type.value,
        "caller": _bytes_to_hex(call.caller),
        "now": call.now,
        "escrow_id": _bytes_to_hex(call.escrow_id) if call.escrow_id is not None else None,
        "payload": _payload_to_json(call.payload),
    }


def payout_to_json(payout: Optional[Payout]) -> Optional[dict[str, Any]]:
    if payout is None:
        return None
    return {
        "main": payout.main.value,
        "reward": payout.reward.value if payout.reward is not None else None,
    }
