"""
In-process host integration: account registry, transfers and signed envelopes
"""

from .host import ExecutionResult, LedgerHost
from .signing import (
    SignedInstruction,
    identity_from_pubkey,
    keypair_from_seed,
    sign_instruction,
    verify_instruction_signature,
)
from .transfer import AccountTransfer

__all__ = [
    "ExecutionResult",
    "LedgerHost",
    "SignedInstruction",
    "identity_from_pubkey",
    "keypair_from_seed",
    "sign_instruction",
    "verify_instruction_signature",
    "AccountTransfer",
]
