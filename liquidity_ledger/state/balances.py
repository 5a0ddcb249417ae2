"""
Depositor balance buffers keyed by identity.

Implements UserBalanceStore[Identity] -> 8-byte UserBalance buffer.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional, Tuple

from .canonical import require_identity
from .codec import USER_BALANCE_LEN, decode_user_balance


Identity = bytes


class UserBalanceStore:
    """
    Keyed store of serialized `UserBalance` records, one buffer per depositor.

    Buffers are handed to the dispatcher by reference; the store itself never
    decodes or mutates amounts outside `amount_of`.
    """

    def __init__(self) -> None:
        self._buffers: Dict[Identity, bytearray] = {}

    def get(self, identity: Identity) -> Optional[bytearray]:
        """Return the buffer for `identity`, or None if the depositor has no record."""
        return self._buffers.get(require_identity(identity, name="identity"))

    def get_or_create(self, identity: Identity) -> bytearray:
        """
        Return the buffer for `identity`, allocating a zeroed record if absent.

        A freshly allocated record decodes to `UserBalance(amount=0)`.
        """
        key = require_identity(identity, name="identity")
        buf = self._buffers.get(key)
        if buf is None:
            buf = bytearray(USER_BALANCE_LEN)
            self._buffers[key] = buf
        return buf

    def amount_of(self, identity: Identity) -> int:
        """Decoded balance for `identity`. Returns 0 if not found."""
        buf = self.get(identity)
        if buf is None:
            return 0
        return decode_user_balance(buf).amount

    def items(self) -> Iterator[Tuple[Identity, int]]:
        """Yield (identity, amount) pairs in sorted identity order."""
        for key in sorted(self._buffers):
            yield key, decode_user_balance(self._buffers[key]).amount

    def total(self) -> int:
        return sum(amount for _key, amount in self.items())

    def __contains__(self, identity: object) -> bool:
        return isinstance(identity, (bytes, bytearray)) and bytes(identity) in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)

    def __repr__(self) -> str:
        return f"UserBalanceStore({len(self._buffers)} entries)"
