"""
Deterministic encoding primitives shared by the codec and the signing layer.

Identities are raw 32-byte strings inside the ledger; these helpers convert
them to and from the 0x-prefixed hex form used at the edges (logs and
demo output) and build domain-separated signing prefixes.
"""

from __future__ import annotations

import re


IDENTITY_BYTES = 32

_HEX_CHARS_RE = re.compile(r"^[0-9a-fA-F]+$")


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """
    Create a domain separation prefix.

    The output is ASCII-only and NUL-terminated to make concatenation unambiguous.
    """
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    try:
        label_bytes = label.encode("ascii")
    except UnicodeEncodeError as exc:
        raise ValueError("label must be ASCII") from exc
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"liquidity_ledger:" + label_bytes + b":v" + str(version).encode("ascii") + b"\x00"


def require_identity(value: object, *, name: str) -> bytes:
    """Return `value` as immutable bytes if it is a 32-byte identity."""
    if not isinstance(value, (bytes, bytearray, memoryview)):
        raise TypeError(f"{name} must be bytes, got {type(value).__name__}")
    out = bytes(value)
    if len(out) != IDENTITY_BYTES:
        raise ValueError(f"{name} must be exactly {IDENTITY_BYTES} bytes, got {len(out)}")
    return out


def hex_to_bytes_fixed(hex_str: str, *, nbytes: int, name: str) -> bytes:
    """
    Parse a fixed-size hex string into bytes.

    Accepts either 0x-prefixed or raw hex input.
    """
    if not isinstance(hex_str, str):
        raise TypeError(f"{name} must be a str")
    if not isinstance(nbytes, int) or isinstance(nbytes, bool) or nbytes <= 0:
        raise ValueError("nbytes must be a positive int")

    s = hex_str.strip()
    if s.lower().startswith("0x"):
        s = s[2:]
    expected_len = 2 * nbytes
    if len(s) != expected_len:
        raise ValueError(f"{name} must be {nbytes} bytes (hex length {expected_len})")
    if not _HEX_CHARS_RE.fullmatch(s):
        raise ValueError(f"{name} must be valid hex")
    return bytes.fromhex(s)


def identity_from_hex(hex_str: str, *, name: str = "identity") -> bytes:
    return hex_to_bytes_fixed(hex_str, nbytes=IDENTITY_BYTES, name=name)


def identity_to_hex(identity: bytes) -> str:
    return "0x" + bytes(identity).hex()
