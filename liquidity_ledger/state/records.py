"""
In-memory ledger records.

Both records are immutable; handlers derive successors with
`dataclasses.replace` and the dispatcher serializes the final value once.
"""

from __future__ import annotations

from dataclasses import dataclass

from .canonical import require_identity


U64_MAX = 2**64 - 1

ZERO_IDENTITY = b"\x00" * 32


def _require_u64(value: object, *, name: str) -> None:
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > U64_MAX:
        raise ValueError(f"{name} must fit in u64: {value}")


@dataclass(frozen=True)
class Pool:
    """Liquidity pool record (104 bytes on the wire)."""

    owner: bytes
    funding_account: bytes
    total_liquidity: int = 0
    # Carried for layout compatibility only; depositor records are looked up by identity.
    user_liquidity_ref: bytes = ZERO_IDENTITY

    def __post_init__(self) -> None:
        object.__setattr__(self, "owner", require_identity(self.owner, name="owner"))
        object.__setattr__(
            self, "funding_account", require_identity(self.funding_account, name="funding_account")
        )
        object.__setattr__(
            self, "user_liquidity_ref", require_identity(self.user_liquidity_ref, name="user_liquidity_ref")
        )
        _require_u64(self.total_liquidity, name="total_liquidity")


@dataclass(frozen=True)
class UserBalance:
    """One depositor's tracked stake (8 bytes on the wire)."""

    amount: int = 0

    def __post_init__(self) -> None:
        _require_u64(self.amount, name="amount")
