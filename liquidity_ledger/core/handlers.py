"""Operation handlers: one function per opcode.

Each handler receives decoded records and resolved accounts, and returns the
successor records without touching any buffer. Ordering inside a handler is
always: check preconditions, compute checked successors, invoke the external
transfer, return. A raise at any point leaves the caller's buffers as they were.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Tuple

from ..errors import InsufficientFundsError, UnauthorizedError
from ..state.accounts import Account
from ..state.records import Pool, UserBalance
from .arith import checked_add, checked_sub

# transfer(source, destination, amount); raises TransferError on failure.
TransferFn = Callable[[bytes, bytes, int], None]


def deposit(
    pool: Pool,
    balance: UserBalance,
    *,
    depositor: Account,
    amount: int,
    transfer: TransferFn,
) -> Tuple[Pool, UserBalance]:
    """Move `amount` from the depositor into the pool's funding account and book it."""
    if depositor.funds < amount:
        raise InsufficientFundsError(f"depositor holds {depositor.funds}, deposit needs {amount}")

    new_total = checked_add(pool.total_liquidity, amount, name="total_liquidity")
    new_amount = checked_add(balance.amount, amount, name="user balance")

    transfer(depositor.key, pool.funding_account, amount)

    return replace(pool, total_liquidity=new_total), replace(balance, amount=new_amount)


def withdraw(
    pool: Pool,
    balance: UserBalance,
    *,
    recipient: Account,
    amount: int,
    transfer: TransferFn,
) -> Tuple[Pool, UserBalance]:
    """Pay `amount` out of the pool's funding account to the recipient and book it."""
    if pool.total_liquidity < amount:
        raise InsufficientFundsError(f"pool holds {pool.total_liquidity}, withdrawal needs {amount}")

    new_total = checked_sub(pool.total_liquidity, amount, name="total_liquidity")
    new_amount = checked_sub(balance.amount, amount, name="user balance")

    transfer(pool.funding_account, recipient.key, amount)

    return replace(pool, total_liquidity=new_total), replace(balance, amount=new_amount)


def change_owner(pool: Pool, *, caller: bytes, new_owner: bytes) -> Pool:
    if caller != pool.owner:
        raise UnauthorizedError("only the pool owner may change ownership")
    if new_owner == pool.owner:
        return pool
    return replace(pool, owner=new_owner)
