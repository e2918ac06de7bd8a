"""N+1 secret sets for partially fillable orders.

The maker generates one random secret per part plus a completion secret,
commits ``keccak256(secret)`` leaves to a fixed Merkle tree, and reveals
secrets one by one as fills progress.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import List, Optional

from .config import HASH_SIZE, MAX_PARTS, MIN_PARTS
from .crypto.hashing import keccak256
from .crypto.merkle import FixedMerkleTree


@dataclass
class SecretSet:
    secrets: List[bytes]
    tree: FixedMerkleTree

    @classmethod
    def generate(cls, num_parts: int, secret_size: int = HASH_SIZE) -> "SecretSet":
        if num_parts < MIN_PARTS or num_parts > MAX_PARTS:
            raise ValueError(f"num_parts must be in [{MIN_PARTS}, {MAX_PARTS}]")
        return cls.from_secrets([secrets.token_bytes(secret_size) for _ in range(num_parts + 1)])

    @classmethod
    def from_secrets(cls, values: List[bytes]) -> "SecretSet":
        return cls(secrets=list(values), tree=FixedMerkleTree([keccak256(s) for s in values]))

    @property
    def num_parts(self) -> int:
        return len(self.secrets) - 1

    @property
    def merkle_root(self) -> bytes:
        return self.tree.root

    @property
    def leaves(self) -> List[bytes]:
        return self.tree.leaves

    def secret(self, secret_index: int) -> bytes:
        """Secret for a 1-based index."""
        return self.secrets[secret_index - 1]

    def proof(self, secret_index: int) -> List[bytes]:
        return self.tree.proof(secret_index - 1)

    def hash_lock(self, secret_index: Optional[int] = None) -> bytes:
        """Hash lock committing to one secret (the completion secret by default)."""
        index = secret_index if secret_index is not None else len(self.secrets)
        return keccak256(self.secret(index))
