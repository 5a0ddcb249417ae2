"""
BLS signatures over ledger instructions.

Signing scheme:
    msg_hash = SHA256( domain_sep(f"ledger_ix_sig:{program_id_hex}", v1)
                       || u32_le(len(instruction)) || instruction
                       || u32_le(len(account_keys)) || account_keys... )
    signature = G2Basic.Sign(sk, msg_hash)

A signer's ledger identity is SHA256(domain_sep("ledger_identity", v1) || pubkey),
so a 48-byte BLS public key maps onto the 32-byte identity space.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass
from typing import Sequence, Tuple

from py_ecc.bls import G2Basic

from ..state.canonical import domain_sep_bytes, identity_to_hex, require_identity


PUBKEY_BYTES = 48
SIGNATURE_BYTES = 96

_U32 = struct.Struct("<I")


@dataclass(frozen=True)
class SignedInstruction:
    """Instruction bytes, the accounts they run against, and (pubkey, signature) pairs."""

    instruction: bytes
    account_keys: Tuple[bytes, ...]
    signatures: Tuple[Tuple[bytes, bytes], ...] = ()


def identity_from_pubkey(pubkey: bytes) -> bytes:
    if not isinstance(pubkey, (bytes, bytearray)) or len(pubkey) != PUBKEY_BYTES:
        raise ValueError(f"pubkey must be {PUBKEY_BYTES} bytes")
    return hashlib.sha256(domain_sep_bytes("ledger_identity", version=1) + bytes(pubkey)).digest()


def signing_message(program_id: bytes, instruction: bytes, account_keys: Sequence[bytes]) -> bytes:
    program_id = require_identity(program_id, name="program_id")
    parts = [
        domain_sep_bytes(f"ledger_ix_sig:{identity_to_hex(program_id)}", version=1),
        _U32.pack(len(instruction)),
        bytes(instruction),
        _U32.pack(len(account_keys)),
    ]
    parts.extend(require_identity(k, name="account_key") for k in account_keys)
    return hashlib.sha256(b"".join(parts)).digest()


def keypair_from_seed(seed: bytes) -> Tuple[int, bytes]:
    """Deterministic (secret key, public key) pair; `seed` must be at least 32 bytes."""
    sk = G2Basic.KeyGen(seed)
    return sk, G2Basic.SkToPk(sk)


def sign_instruction(
    secret_key: int,
    *,
    program_id: bytes,
    instruction: bytes,
    account_keys: Sequence[bytes],
) -> Tuple[bytes, bytes]:
    """Return the (pubkey, signature) pair to attach to a `SignedInstruction`."""
    msg = signing_message(program_id, instruction, account_keys)
    return G2Basic.SkToPk(secret_key), G2Basic.Sign(secret_key, msg)


def verify_instruction_signature(
    pubkey: bytes,
    signature: bytes,
    *,
    program_id: bytes,
    instruction: bytes,
    account_keys: Sequence[bytes],
) -> bool:
    if len(pubkey) != PUBKEY_BYTES or len(signature) != SIGNATURE_BYTES:
        return False
    msg = signing_message(program_id, instruction, account_keys)
    try:
        return bool(G2Basic.Verify(bytes(pubkey), msg, bytes(signature)))
    except (ValueError, AssertionError):
        # Malformed points are rejected by py_ecc with these exception types.
        return False
