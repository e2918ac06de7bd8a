"""Core types for the HTLC escrow specs.

Only the destination-chain escrow surface is tracked here: funding, partial
and range withdrawals gated by Merkle secrets, full withdrawal, and refund.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .custody import Balance
from .nullifiers import NullifierRegistry


class CallType(Enum):
    CREATE = "create"
    WITHDRAW_PARTIAL = "withdraw_partial"
    WITHDRAW_PARTIAL_RANGE = "withdraw_partial_range"
    WITHDRAW_FULL = "withdraw_full"
    REFUND_TO_MAKER = "refund_to_maker"


class WindowState(Enum):
    WITHDRAWAL = "withdrawal"
    PUBLIC_WITHDRAWAL = "public_withdrawal"
    CANCELLATION = "cancellation"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Timelocks:
    withdrawal_end: int
    public_withdrawal_end: int
    cancellation_end: int


# --- Call payloads ---


@dataclass
class CreatePayload:
    amount: int
    hash_lock: bytes
    merkle_root: bytes
    timelocks: Timelocks
    num_parts: int
    deadline: int
    reward: int = 0
    maker: Optional[bytes] = None


@dataclass
class WithdrawPartialPayload:
    secret_index: int
    secret: bytes
    proof: List[bytes]
    desired_amount: int


@dataclass
class WithdrawRangePayload:
    start_index: int
    end_index: int
    start_secret: bytes
    end_secret: bytes
    start_proof: List[bytes]
    end_proof: List[bytes]
    desired_amount: int


@dataclass
class WithdrawFullPayload:
    completion_secret: bytes
    completion_proof: List[bytes]
    completion_index: int


@dataclass
class Call:
    """One engine operation, executed as a single atomic transaction."""

    call_type: CallType
    caller: bytes
    now: int
    escrow_id: Optional[bytes] = None
    payload: object = None


@dataclass
class Payout:
    """Value handed back to the invoking transaction.

    In the public window everything is paid to the caller directly and both
    fields are empty placeholders.
    """

    main: Balance = field(default_factory=Balance.zero)
    reward: Optional[Balance] = None

    @property
    def value(self) -> int:
        return self.main.value + (self.reward.value if self.reward is not None else 0)


# --- Ledger state ---


@dataclass
class AccountState:
    address: bytes
    balance: int = 0


@dataclass
class Escrow:
    id: bytes
    creator: bytes
    maker: bytes
    balance: Balance
    reward_balance: Balance
    hash_lock: bytes
    merkle_root: bytes
    timelocks: Timelocks
    num_parts: int
    part_size: int
    created_at: int
    total_amount: int
    deadline: int
    filled_amount: int = 0
    is_resolved: bool = False


@dataclass
class EscrowState:
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    escrows: dict[bytes, Escrow] = field(default_factory=dict)
    registry: NullifierRegistry = field(default_factory=NullifierRegistry)
