"""Canonical escrow state digest (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _var_bytes(data: bytes) -> bytes:
    return _u64_be(len(data)) + data


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from a serialized state.

    Accounts, escrows and nullifiers are each sorted by their key and hashed
    with BLAKE3-256 in that order.
    """
    buf = bytearray()

    accounts = post_state.get("accounts", []) if isinstance(post_state, dict) else []
    sortable = sorted(((_hex_to_bytes(a.get("address", "")), a) for a in accounts), key=lambda x: x[0])
    buf += _u64_be(len(sortable))
    for addr, acc in sortable:
        buf += _var_bytes(addr)
        buf += _u64_be(int(acc.get("balance", 0)))

    escrows = post_state.get("escrows", []) if isinstance(post_state, dict) else []
    ordered = sorted(((_hex_to_bytes(e.get("id", "")), e) for e in escrows), key=lambda x: x[0])
    buf += _u64_be(len(ordered))
    for eid, esc in ordered:
        if len(eid) != 32:
            raise ValueError(f"escrow id must be 32 bytes, got {len(eid)}")
        buf += eid
        for field in ("creator", "maker", "hash_lock", "merkle_root"):
            buf += _var_bytes(_hex_to_bytes(esc.get(field, "")))
        for field in (
            "balance",
            "reward_balance",
            "withdrawal_end",
            "public_withdrawal_end",
            "cancellation_end",
            "num_parts",
            "part_size",
            "created_at",
            "total_amount",
            "filled_amount",
            "deadline",
        ):
            buf += _u64_be(int(esc.get(field, 0)))
        buf += b"\x01" if esc.get("is_resolved") else b"\x00"

    registry = post_state.get("registry", {}) if isinstance(post_state, dict) else {}
    buf += _u64_be(int(registry.get("escrow_count", 0)))
    nullifiers = sorted(_hex_to_bytes(n) for n in registry.get("used_nullifiers", []))
    buf += _u64_be(len(nullifiers))
    for n in nullifiers:
        buf += n

    return blake3(buf).hexdigest()
