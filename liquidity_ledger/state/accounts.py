"""
Account buffers as the host hands them to the dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .canonical import identity_to_hex, require_identity


@dataclass
class Account:
    """
    One externally-allocated account.

    - `owner` is the authority tag the host verified for `data`.
    - `funds` is the spendable value the transfer collaborator moves.
    - `is_signer` marks a direct caller signature; a host passes its verified
      signer set to the dispatcher instead.
    """

    key: bytes
    owner: bytes
    data: bytearray = field(default_factory=bytearray)
    funds: int = 0
    is_signer: bool = False

    def __post_init__(self) -> None:
        self.key = require_identity(self.key, name="key")
        self.owner = require_identity(self.owner, name="owner")
        if not isinstance(self.data, bytearray):
            self.data = bytearray(self.data)
        if not isinstance(self.funds, int) or isinstance(self.funds, bool) or self.funds < 0:
            raise ValueError(f"funds must be a non-negative int: {self.funds!r}")

    def __repr__(self) -> str:
        return (
            f"Account(key={identity_to_hex(self.key)[:12]}..., data={len(self.data)}B, "
            f"funds={self.funds}, is_signer={self.is_signer})"
        )
