"""Escrow engine facade.

Wraps ``apply_call`` with the host-side guarantees the rules assume: calls
are serialized and a new state is committed only when a call succeeds.
"""

from __future__ import annotations

import logging
import threading
from copy import deepcopy
from typing import List, Optional

from .crypto.hashing import nullifier_for
from .custody import Balance, pay_to, total_value
from .errors import ErrorCode, SpecError
from .fill import fill_percentage, max_cumulative_fill, range_fill_amount
from .state_transition import TransitionResult, apply_call
from .types import (
    Call,
    CallType,
    CreatePayload,
    Escrow,
    EscrowState,
    Payout,
    Timelocks,
    WindowState,
    WithdrawFullPayload,
    WithdrawPartialPayload,
    WithdrawRangePayload,
)
from .windows import resolve_window

logger = logging.getLogger(__name__)


def _reward_value(payout: Payout) -> int:
    return payout.reward.value if payout.reward is not None else 0


class EscrowEngine:
    """Serialized access to one escrow state and its nullifier registry."""

    def __init__(self, state: Optional[EscrowState] = None):
        self._state = state if state is not None else EscrowState()
        self._lock = threading.RLock()
        # Unsettled payouts with the amounts they were issued for.
        self._issued: List[tuple[Payout, int, int]] = []

    # --- transaction boundary ---

    def execute(self, call: Call) -> TransitionResult:
        """Run one call atomically. Never raises for rule violations."""
        with self._lock:
            next_state, result = apply_call(self._state, call)
            if result.ok:
                self._state = next_state
                if result.payout is not None and result.payout.value > 0:
                    self._issued.append((result.payout, result.payout.main.value, _reward_value(result.payout)))
        if result.error is not None:
            logger.warning(f"{call.call_type.value} rejected: {result.error}")
        return result

    def _run(self, call: Call) -> TransitionResult:
        result = self.execute(call)
        if result.error is not None:
            raise result.error
        return result

    def snapshot(self) -> EscrowState:
        with self._lock:
            return deepcopy(self._state)

    # --- ledger ---

    def fund(self, address: bytes, amount: int) -> None:
        """Genesis credit for ``address`` (the only place value enters)."""
        if amount < 0:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "fund amount negative")
        with self._lock:
            pay_to(self._state, address, Balance(amount))

    def settle(self, address: bytes, payout: Payout) -> None:
        """Credit a payout returned by one of this engine's withdrawals.

        Each payout settles once, for the amounts it was issued with.
        """
        with self._lock:
            for i, (issued, main, reward) in enumerate(self._issued):
                if issued is payout and payout.main.value == main and _reward_value(payout) == reward:
                    del self._issued[i]
                    break
            else:
                raise SpecError(ErrorCode.INVALID_PAYLOAD, "payout was not issued by this engine")
            pay_to(self._state, address, payout.main)
            if payout.reward is not None:
                pay_to(self._state, address, payout.reward)

    def account_balance(self, address: bytes) -> int:
        with self._lock:
            account = self._state.accounts.get(address)
            return account.balance if account is not None else 0

    def total_value(self) -> int:
        with self._lock:
            return total_value(self._state)

    # --- operations ---

    def create(
        self,
        caller: bytes,
        amount: int,
        hash_lock: bytes,
        merkle_root: bytes,
        withdrawal_end: int,
        public_withdrawal_end: int,
        cancellation_end: int,
        num_parts: int,
        deadline: int,
        now: int,
        reward: int = 0,
        maker: Optional[bytes] = None,
    ) -> bytes:
        payload = CreatePayload(
            amount=amount,
            hash_lock=hash_lock,
            merkle_root=merkle_root,
            timelocks=Timelocks(withdrawal_end, public_withdrawal_end, cancellation_end),
            num_parts=num_parts,
            deadline=deadline,
            reward=reward,
            maker=maker,
        )
        result = self._run(Call(CallType.CREATE, caller, now, payload=payload))
        logger.info(f"escrow {result.escrow_id.hex()} created: amount={amount} parts={num_parts}")
        return result.escrow_id

    def withdraw_partial(
        self,
        caller: bytes,
        escrow_id: bytes,
        secret_index: int,
        secret: bytes,
        proof: List[bytes],
        desired_amount: int,
        now: int,
    ) -> Payout:
        payload = WithdrawPartialPayload(secret_index, secret, list(proof), desired_amount)
        result = self._run(Call(CallType.WITHDRAW_PARTIAL, caller, now, escrow_id, payload))
        logger.info(f"escrow {escrow_id.hex()} filled with secret {secret_index}")
        return result.payout

    def withdraw_partial_range(
        self,
        caller: bytes,
        escrow_id: bytes,
        start_index: int,
        end_index: int,
        start_secret: bytes,
        end_secret: bytes,
        start_proof: List[bytes],
        end_proof: List[bytes],
        desired_amount: int,
        now: int,
    ) -> Payout:
        payload = WithdrawRangePayload(
            start_index=start_index,
            end_index=end_index,
            start_secret=start_secret,
            end_secret=end_secret,
            start_proof=list(start_proof),
            end_proof=list(end_proof),
            desired_amount=desired_amount,
        )
        result = self._run(Call(CallType.WITHDRAW_PARTIAL_RANGE, caller, now, escrow_id, payload))
        logger.info(f"escrow {escrow_id.hex()} filled with secrets {start_index}..{end_index}")
        return result.payout

    def withdraw_full(
        self,
        caller: bytes,
        escrow_id: bytes,
        completion_secret: bytes,
        completion_proof: List[bytes],
        completion_index: int,
        now: int,
    ) -> Payout:
        payload = WithdrawFullPayload(completion_secret, list(completion_proof), completion_index)
        result = self._run(Call(CallType.WITHDRAW_FULL, caller, now, escrow_id, payload))
        logger.info(f"escrow {escrow_id.hex()} drained and destroyed")
        return result.payout

    def refund_to_maker(self, caller: bytes, escrow_id: bytes, now: int) -> None:
        self._run(Call(CallType.REFUND_TO_MAKER, caller, now, escrow_id))
        logger.info(f"escrow {escrow_id.hex()} refunded to maker")

    # --- read-only accessors ---

    def _escrow(self, escrow_id: bytes) -> Escrow:
        escrow = self._state.escrows.get(escrow_id)
        if escrow is None:
            raise SpecError(ErrorCode.ESCROW_NOT_FOUND, "escrow not found")
        return escrow

    def escrow(self, escrow_id: bytes) -> Escrow:
        with self._lock:
            return deepcopy(self._escrow(escrow_id))

    def exists(self, escrow_id: bytes) -> bool:
        with self._lock:
            return escrow_id in self._state.escrows

    def reward_balance(self, escrow_id: bytes) -> int:
        with self._lock:
            return self._escrow(escrow_id).reward_balance.value

    def current_window(self, escrow_id: bytes, now: int) -> WindowState:
        with self._lock:
            return resolve_window(now, self._escrow(escrow_id).timelocks)

    def is_nullifier_used(self, nullifier: bytes) -> bool:
        with self._lock:
            return self._state.registry.is_claimed(nullifier)

    def is_secret_used(self, secret: bytes) -> bool:
        return self.is_nullifier_used(nullifier_for(secret))

    def escrow_count(self) -> int:
        with self._lock:
            return self._state.registry.escrow_count

    def num_parts(self, escrow_id: bytes) -> int:
        with self._lock:
            return self._escrow(escrow_id).num_parts

    def part_size(self, escrow_id: bytes) -> int:
        with self._lock:
            return self._escrow(escrow_id).part_size

    def deadline(self, escrow_id: bytes) -> int:
        with self._lock:
            return self._escrow(escrow_id).deadline

    def max_cumulative_fill(self, escrow_id: bytes, secret_index: int) -> int:
        with self._lock:
            escrow = self._escrow(escrow_id)
            return max_cumulative_fill(escrow.total_amount, escrow.num_parts, secret_index)

    def range_fill_amount(self, escrow_id: bytes, start_index: int, end_index: int) -> int:
        with self._lock:
            escrow = self._escrow(escrow_id)
            return range_fill_amount(escrow.total_amount, escrow.num_parts, start_index, end_index)

    def fill_percentage(self, escrow_id: bytes) -> int:
        with self._lock:
            escrow = self._escrow(escrow_id)
            return fill_percentage(escrow.filled_amount, escrow.total_amount)
