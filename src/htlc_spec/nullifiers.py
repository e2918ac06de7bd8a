"""Global nullifier registry.

A nullifier is the Keccak-256 of a revealed secret. Entries are never
removed and are not scoped to an escrow: revealing a secret anywhere in the
registry consumes it for every escrow created through the same engine.

The registry is plain data. Mutual exclusion is supplied by the caller's
transaction boundary (see ``htlc_spec.engine``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .errors import ErrorCode, SpecError


@dataclass
class NullifierRegistry:
    used_nullifiers: set[bytes] = field(default_factory=set)
    escrow_count: int = 0

    def is_claimed(self, nullifier: bytes) -> bool:
        return nullifier in self.used_nullifiers

    def try_claim(self, nullifier: bytes) -> bool:
        if nullifier in self.used_nullifiers:
            return False
        self.used_nullifiers.add(nullifier)
        return True

    def claim(self, nullifier: bytes) -> None:
        if not self.try_claim(nullifier):
            raise SpecError(ErrorCode.NULLIFIER_ALREADY_USED, "nullifier already used")

    def claim_all(self, nullifiers: Iterable[bytes]) -> None:
        """Claim every nullifier or none of them."""
        batch = set(nullifiers)
        if any(n in self.used_nullifiers for n in batch):
            raise SpecError(ErrorCode.NULLIFIER_ALREADY_USED, "nullifier already used")
        self.used_nullifiers.update(batch)

    def next_escrow_index(self) -> int:
        index = self.escrow_count
        self.escrow_count += 1
        return index

    def size(self) -> int:
        return len(self.used_nullifiers)
