"""
In-process value-transfer collaborator.

Moves `funds` between registered `Account` objects. Either both sides are
updated or, on any failure, neither is.
"""

from __future__ import annotations

from typing import Mapping

from ..errors import TransferError
from ..state.accounts import Account
from ..state.canonical import identity_to_hex
from ..state.records import U64_MAX


class AccountTransfer:
    """Callable matching `TransferFn` over a key -> Account registry."""

    def __init__(self, accounts: Mapping[bytes, Account]) -> None:
        self._accounts = accounts

    def _lookup(self, key: bytes, role: str) -> Account:
        acct = self._accounts.get(bytes(key))
        if acct is None:
            raise TransferError(f"unknown {role} account {identity_to_hex(key)}")
        return acct

    def __call__(self, source: bytes, destination: bytes, amount: int) -> None:
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
            raise TransferError(f"invalid transfer amount: {amount!r}")
        src = self._lookup(source, "source")
        dst = self._lookup(destination, "destination")
        if src is dst:
            raise TransferError(f"source and destination are the same account {identity_to_hex(src.key)}")
        if src.funds < amount:
            raise TransferError(f"source holds {src.funds}, transfer needs {amount}")
        if dst.funds + amount > U64_MAX:
            raise TransferError("destination funds would overflow u64")
        src.funds -= amount
        dst.funds += amount
