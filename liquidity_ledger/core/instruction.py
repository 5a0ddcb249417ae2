"""
Instruction wire format.

    offset 0      opcode            0=DEPOSIT, 1=WITHDRAW, 2=CHANGE_OWNER
    offset 1..9   amount            u64 LE (DEPOSIT / WITHDRAW)
    offset 1..33  new_owner         32-byte identity (CHANGE_OWNER)

Bytes past the operand are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from ..errors import MalformedInstructionError, UnsupportedOperationError
from ..state.canonical import IDENTITY_BYTES, require_identity
from ..state.codec import decode_u64, encode_u64
from ..state.records import U64_MAX


class Opcode(IntEnum):
    DEPOSIT = 0
    WITHDRAW = 1
    CHANGE_OWNER = 2


_OPERAND_LEN = {
    Opcode.DEPOSIT: 8,
    Opcode.WITHDRAW: 8,
    Opcode.CHANGE_OWNER: IDENTITY_BYTES,
}


@dataclass(frozen=True)
class Instruction:
    opcode: Opcode
    amount: Optional[int] = None
    new_owner: Optional[bytes] = None


def read_opcode(data: bytes) -> Opcode:
    if not data:
        raise MalformedInstructionError("empty instruction data")
    raw = data[0]
    try:
        return Opcode(raw)
    except ValueError:
        raise UnsupportedOperationError(f"unknown opcode {raw}") from None


def parse_instruction(data: bytes) -> Instruction:
    """Decode instruction bytes; the opcode is validated before the operand length."""
    opcode = read_opcode(data)
    need = 1 + _OPERAND_LEN[opcode]
    if len(data) < need:
        raise MalformedInstructionError(
            f"{opcode.name} needs {need} bytes of instruction data, got {len(data)}"
        )
    if opcode is Opcode.CHANGE_OWNER:
        return Instruction(opcode=opcode, new_owner=bytes(data[1:need]))
    return Instruction(opcode=opcode, amount=decode_u64(data, 1))


def _amount_operand(amount: int) -> bytes:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0 or amount > U64_MAX:
        raise ValueError(f"amount must fit in u64: {amount}")
    return encode_u64(amount)


def deposit_instruction(amount: int) -> bytes:
    return bytes([Opcode.DEPOSIT]) + _amount_operand(amount)


def withdraw_instruction(amount: int) -> bytes:
    return bytes([Opcode.WITHDRAW]) + _amount_operand(amount)


def change_owner_instruction(new_owner: bytes) -> bytes:
    return bytes([Opcode.CHANGE_OWNER]) + require_identity(new_owner, name="new_owner")
