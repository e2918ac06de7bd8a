"""Value custody: balances moved between accounts and escrows.

The engine never mints value. Every ``Balance`` it holds was split off an
account at creation time and ends up back in an account or in a payout
handed to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import U64_MAX
from .errors import ErrorCode, SpecError

if TYPE_CHECKING:
    from .types import EscrowState


@dataclass
class Balance:
    value: int = 0

    @classmethod
    def zero(cls) -> "Balance":
        return cls(0)

    def split(self, amount: int) -> "Balance":
        if amount < 0:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "split amount negative")
        if amount > self.value:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "split amount exceeds balance")
        self.value -= amount
        return Balance(amount)

    def merge(self, other: "Balance") -> int:
        if self.value + other.value > U64_MAX:
            raise SpecError(ErrorCode.OVERFLOW, "balance overflow")
        self.value += other.value
        other.value = 0
        return self.value

    def withdraw_all(self) -> "Balance":
        return self.split(self.value)

    def destroy_zero(self) -> None:
        if self.value != 0:
            raise SpecError(ErrorCode.INVALID_AMOUNT, "cannot destroy non-zero balance")


def take_from(state: EscrowState, address: bytes, amount: int) -> Balance:
    account = state.accounts.get(address)
    if account is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "account not found")
    if account.balance < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")
    account.balance -= amount
    return Balance(amount)


def pay_to(state: EscrowState, address: bytes, balance: Balance) -> None:
    from .types import AccountState

    account = state.accounts.get(address)
    if account is None:
        account = AccountState(address=address)
        state.accounts[address] = account
    if account.balance + balance.value > U64_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "receiver balance overflow")
    account.balance += balance.value
    balance.value = 0


def total_value(state: EscrowState) -> int:
    """Sum of every account and escrow pool; constant across operations
    except for payouts handed back to the caller."""
    total = sum(a.balance for a in state.accounts.values())
    for escrow in state.escrows.values():
        total += escrow.balance.value + escrow.reward_balance.value
    return total
