"""Merkle proof verification and the reference fixed Merkle tree.

Node ordering is selected by index parity: an even index means the running
hash is the left child, an odd index means it is the right child. This must
match the counterpart chain's fixed Merkle tree bit for bit, otherwise proofs
generated on one chain do not verify on the other.
"""

from __future__ import annotations

from typing import List, Sequence

from ..config import ZERO_LEAF
from .hashing import hash_pair


def verify_merkle_proof(
    root: bytes, leaf: bytes, proof: Sequence[bytes], leaf_index: int
) -> bool:
    """Return True iff ``leaf`` at 0-based ``leaf_index`` hashes up to ``root``.

    An empty proof is valid only for a single-leaf tree (``leaf == root``).
    """
    if leaf_index < 0:
        return False
    computed = leaf
    index = leaf_index
    for element in proof:
        if index % 2 == 0:
            computed = hash_pair(computed, element)
        else:
            computed = hash_pair(element, computed)
        index //= 2
    return computed == root


def tree_depth(leaf_count: int) -> int:
    if leaf_count <= 0:
        raise ValueError("leaf_count must be > 0")
    return (leaf_count - 1).bit_length()


def zero_values(levels: int, zero_element: bytes = ZERO_LEAF) -> List[bytes]:
    zeros = [zero_element]
    for _ in range(levels):
        zeros.append(hash_pair(zeros[-1], zeros[-1]))
    return zeros


class FixedMerkleTree:
    """Fixed-depth binary tree padded with per-level zero values.

    Depth is ``ceil(log2(len(leaves)))`` unless ``levels`` is given. Leaves are
    used as-is; callers hash secrets before building the tree.
    """

    def __init__(
        self,
        leaves: Sequence[bytes],
        levels: int | None = None,
        zero_element: bytes = ZERO_LEAF,
    ) -> None:
        if not leaves:
            raise ValueError("tree needs at least one leaf")
        depth = tree_depth(len(leaves)) if levels is None else levels
        if len(leaves) > (1 << depth):
            raise ValueError(f"{len(leaves)} leaves do not fit in {depth} levels")

        self.levels = depth
        self._zeros = zero_values(depth, zero_element)
        self._layers: List[List[bytes]] = [list(leaves)]
        for level in range(depth):
            prev = self._layers[level]
            nxt = []
            for i in range(0, len(prev), 2):
                left = prev[i]
                right = prev[i + 1] if i + 1 < len(prev) else self._zeros[level]
                nxt.append(hash_pair(left, right))
            self._layers.append(nxt)

    @property
    def leaves(self) -> List[bytes]:
        return list(self._layers[0])

    @property
    def layers(self) -> List[List[bytes]]:
        return [list(layer) for layer in self._layers]

    @property
    def root(self) -> bytes:
        return self._layers[-1][0]

    def proof(self, index: int) -> List[bytes]:
        if index < 0 or index >= len(self._layers[0]):
            raise IndexError(f"leaf index {index} out of range")
        path = []
        for level in range(self.levels):
            layer = self._layers[level]
            sibling = index ^ 1
            path.append(layer[sibling] if sibling < len(layer) else self._zeros[level])
            index //= 2
        return path
