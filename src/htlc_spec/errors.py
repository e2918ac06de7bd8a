"""HTLC escrow error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    SUCCESS = 0x00
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Success
    SUCCESS = 0x0000

    # Validation
    INVALID_TYPE = 0x0100
    INVALID_PAYLOAD = 0x0101
    INVALID_HASH = 0x0102
    INVALID_AMOUNT = 0x0103
    INVALID_MERKLE_PROOF = 0x0104
    INVALID_FILL_AMOUNT = 0x0105
    INVALID_WINDOW_ORDERING = 0x0106
    INVALID_NUM_PARTS = 0x0107
    INVALID_SECRET_INDEX = 0x0108
    DEADLINE_EXPIRED = 0x0109

    # Authorization
    WINDOW_EXPIRED = 0x0200
    WINDOW_NOT_ACTIVE = 0x0201
    NULLIFIER_ALREADY_USED = 0x0202

    # Resource
    INSUFFICIENT_BALANCE = 0x0300
    OVERFLOW = 0x0301

    # State
    ACCOUNT_NOT_FOUND = 0x0400
    ESCROW_NOT_FOUND = 0x0401
    ALREADY_RESOLVED = 0x0402

    # Internal
    INTERNAL_ERROR = 0xFF00
    NOT_IMPLEMENTED = 0xFF01

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class SpecError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__"))
_frozen_setattr = SpecError.__setattr__


def _spec_error_setattr(self: SpecError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SpecError.__setattr__ = _spec_error_setattr  # type: ignore[method-assign]
