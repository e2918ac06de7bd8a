"""Merkle proof verification against the reference fixed tree."""

from __future__ import annotations

import pytest

from htlc_spec.config import ZERO_LEAF
from htlc_spec.crypto.hashing import hash_pair, keccak256
from htlc_spec.crypto.merkle import FixedMerkleTree, tree_depth, verify_merkle_proof, zero_values


def _leaves(n: int) -> list[bytes]:
    return [keccak256(bytes([i]) * 32) for i in range(n)]


def _flip(data: bytes, bit: int) -> bytes:
    buf = bytearray(data)
    buf[bit // 8] ^= 1 << (bit % 8)
    return bytes(buf)


@pytest.mark.parametrize("n", [1, 2, 3, 4, 5, 8, 9, 21])
def test_every_leaf_round_trips(n: int) -> None:
    leaves = _leaves(n)
    tree = FixedMerkleTree(leaves)
    assert tree.levels == tree_depth(n)
    for i, leaf in enumerate(leaves):
        proof = tree.proof(i)
        assert len(proof) == tree.levels
        assert verify_merkle_proof(tree.root, leaf, proof, i)


@pytest.mark.parametrize("bit", [0, 7, 100, 255])
def test_single_bit_flip_in_proof_fails(bit: int) -> None:
    leaves = _leaves(5)
    tree = FixedMerkleTree(leaves)
    proof = tree.proof(3)
    for j in range(len(proof)):
        tampered = list(proof)
        tampered[j] = _flip(tampered[j], bit)
        assert not verify_merkle_proof(tree.root, leaves[3], tampered, 3)


@pytest.mark.parametrize("bit", [0, 31, 128, 255])
def test_single_bit_flip_in_leaf_fails(bit: int) -> None:
    leaves = _leaves(5)
    tree = FixedMerkleTree(leaves)
    assert not verify_merkle_proof(tree.root, _flip(leaves[2], bit), tree.proof(2), 2)


def test_empty_proof_only_for_single_leaf() -> None:
    leaf = keccak256(b"only")
    tree = FixedMerkleTree([leaf])
    assert tree.root == leaf
    assert tree.proof(0) == []
    assert verify_merkle_proof(leaf, leaf, [], 0)
    assert not verify_merkle_proof(leaf, keccak256(b"other"), [], 0)


def test_index_parity_selects_order() -> None:
    l0, l1 = _leaves(2)
    tree = FixedMerkleTree([l0, l1])
    assert tree.root == hash_pair(l0, l1)
    assert verify_merkle_proof(tree.root, l0, [l1], 0)
    assert verify_merkle_proof(tree.root, l1, [l0], 1)
    # Same proof, wrong parity.
    assert not verify_merkle_proof(tree.root, l0, [l1], 1)


def test_odd_layers_are_padded_with_zero_values() -> None:
    l0, l1, l2 = _leaves(3)
    tree = FixedMerkleTree([l0, l1, l2])
    zeros = zero_values(2)
    assert zeros[0] == ZERO_LEAF
    assert tree.root == hash_pair(hash_pair(l0, l1), hash_pair(l2, ZERO_LEAF))
    assert tree.proof(2) == [ZERO_LEAF, hash_pair(l0, l1)]


def test_explicit_levels_pad_to_fixed_depth() -> None:
    leaves = _leaves(2)
    tree = FixedMerkleTree(leaves, levels=3)
    assert tree.levels == 3
    assert len(tree.layers) == 4
    assert verify_merkle_proof(tree.root, leaves[1], tree.proof(1), 1)


def test_tree_rejects_bad_input() -> None:
    with pytest.raises(ValueError):
        FixedMerkleTree([])
    with pytest.raises(ValueError):
        FixedMerkleTree(_leaves(5), levels=2)
    with pytest.raises(IndexError):
        FixedMerkleTree(_leaves(3)).proof(3)


def test_negative_index_never_verifies() -> None:
    leaf = keccak256(b"x")
    assert not verify_merkle_proof(leaf, leaf, [], -1)
