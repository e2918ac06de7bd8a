"""Keccak-256 and BLAKE3 helpers and the hash-lock check.

Keccak-256 covers the hash lock, Merkle leaves and nodes, and nullifiers.
BLAKE3 covers escrow ids and the state digest.
"""

from __future__ import annotations

import hmac

from blake3 import blake3
from Crypto.Hash import keccak

from ..config import ESCROW_ID_NONCE_SIZE, HASH_SIZE


def keccak256(data: bytes) -> bytes:
    """Keccak-256 as used by the EVM (not NIST SHA3-256)."""
    k = keccak.new(digest_bits=256)
    k.update(data)
    return k.digest()


def blake3_hash(data: bytes) -> bytes:
    return blake3(data).digest()


def hash_pair(left: bytes, right: bytes) -> bytes:
    return keccak256(left + right)


def nullifier_for(secret: bytes) -> bytes:
    return keccak256(secret)


def escrow_id_for(creator: bytes, escrow_count: int) -> bytes:
    buf = bytearray()
    buf += creator
    buf += escrow_count.to_bytes(ESCROW_ID_NONCE_SIZE, "big")
    return blake3_hash(bytes(buf))


def verify_hash_lock(secret: bytes, hash_lock: bytes) -> bool:
    if len(hash_lock) != HASH_SIZE:
        return False
    return hmac.compare_digest(keccak256(secret), hash_lock)
