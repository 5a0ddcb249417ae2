"""Checked u64 arithmetic for balance mutations.

Results outside [0, 2**64 - 1] raise ``InvariantViolationError`` instead of
wrapping.
"""

from __future__ import annotations

from ..errors import InvariantViolationError
from ..state.records import U64_MAX


def checked_add(a: int, b: int, *, name: str) -> int:
    out = a + b
    if out > U64_MAX:
        raise InvariantViolationError(f"{name} overflow: {a} + {b} exceeds u64")
    return out


def checked_sub(a: int, b: int, *, name: str) -> int:
    out = a - b
    if out < 0:
        raise InvariantViolationError(f"{name} underflow: {a} - {b} < 0")
    return out
