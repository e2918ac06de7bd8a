"""HTLC escrow configuration constants.

Keep this file aligned with the destination escrow module and the EVM
counterpart's fixed Merkle tree.
"""

# Hashes
HASH_SIZE = 32
ZERO_LEAF = bytes(HASH_SIZE)

# Partial fills (N parts, N+1 secrets)
MIN_PARTS = 1
MAX_PARTS = 20

# Units
U64_MAX = (1 << 64) - 1

# Escrow id derivation: creator || escrow_count
ESCROW_ID_NONCE_SIZE = 8
