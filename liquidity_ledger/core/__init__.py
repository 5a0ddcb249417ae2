"""
Instruction format, operation handlers and dispatcher
"""

from .arith import checked_add, checked_sub
from .handlers import TransferFn, change_owner, deposit, withdraw
from .instruction import (
    Instruction,
    Opcode,
    change_owner_instruction,
    deposit_instruction,
    parse_instruction,
    withdraw_instruction,
)
from .processor import process_instruction

__all__ = [
    "checked_add",
    "checked_sub",
    "TransferFn",
    "change_owner",
    "deposit",
    "withdraw",
    "Instruction",
    "Opcode",
    "change_owner_instruction",
    "deposit_instruction",
    "parse_instruction",
    "withdraw_instruction",
    "process_instruction",
]
