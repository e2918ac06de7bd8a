"""Cumulative fill arithmetic.

Secrets are numbered 1..N+1. Secret ``i <= N`` authorizes a cumulative
``i * part_size``; secret ``N+1`` (the completion secret) authorizes the
whole amount, which also covers the remainder of ``total // N``.
"""

from __future__ import annotations

from .errors import ErrorCode, SpecError


def part_size_for(total_amount: int, num_parts: int) -> int:
    if num_parts <= 0:
        raise SpecError(ErrorCode.INVALID_NUM_PARTS, "num_parts must be > 0")
    return total_amount // num_parts


def completion_index(num_parts: int) -> int:
    return num_parts + 1


def max_cumulative_fill(total_amount: int, num_parts: int, secret_index: int) -> int:
    if secret_index <= 0 or secret_index > completion_index(num_parts):
        raise SpecError(ErrorCode.INVALID_FILL_AMOUNT, "secret index has no fill")
    if secret_index == completion_index(num_parts):
        return total_amount
    return secret_index * part_size_for(total_amount, num_parts)


def validate_range(num_parts: int, start_index: int, end_index: int) -> None:
    if start_index < 1 or end_index > completion_index(num_parts) or end_index < start_index:
        raise SpecError(ErrorCode.INVALID_SECRET_INDEX, "invalid secret index range")


def range_fill_amount(
    total_amount: int, num_parts: int, start_index: int, end_index: int
) -> int:
    """Capacity unlocked by the inclusive range ``[start_index, end_index]``.

    Each index unlocks one more part relative to the previous one, so a range
    of k consecutive indices unlocks ``k * part_size`` clamped to the total.
    """
    validate_range(num_parts, start_index, end_index)
    start_max = max_cumulative_fill(total_amount, num_parts, start_index)
    end_max = max_cumulative_fill(total_amount, num_parts, end_index)
    capacity = end_max - start_max + part_size_for(total_amount, num_parts)
    return min(capacity, total_amount)


def fill_percentage(filled_amount: int, total_amount: int) -> int:
    if total_amount == 0:
        return 0
    return filled_amount * 100 // total_amount
