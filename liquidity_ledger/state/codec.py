"""
Fixed-width binary codec for ledger records.

Pool (104 bytes):
    owner (0..32) | funding_account (32..64) | total_liquidity u64 LE (64..72) | user_liquidity_ref (72..104)

UserBalance (8 bytes):
    amount u64 LE (0..8)

Decoding reads exactly the record width and ignores any trailing bytes.
Encoding into a caller-supplied buffer requires at least the record width;
a shorter destination is a caller bug and raises ValueError.
"""

from __future__ import annotations

import struct

from ..errors import MalformedAccountDataError
from .records import Pool, UserBalance


POOL_LEN = 104
USER_BALANCE_LEN = 8

_U64 = struct.Struct("<Q")
_POOL = struct.Struct("<32s32sQ32s")

if _POOL.size != POOL_LEN:
    raise RuntimeError(f"pool layout is {_POOL.size} bytes, expected {POOL_LEN}")


def _require_len(buf: bytes, width: int, *, record: str) -> None:
    if len(buf) < width:
        raise MalformedAccountDataError(f"{record} buffer is {len(buf)} bytes, need {width}")


def _require_dst(dst: bytearray, width: int, *, record: str) -> None:
    if len(dst) < width:
        raise ValueError(f"{record} destination is {len(dst)} bytes, need {width}")


def decode_u64(buf: bytes, offset: int = 0) -> int:
    return _U64.unpack_from(buf, offset)[0]


def encode_u64(value: int) -> bytes:
    return _U64.pack(value)


def decode_pool(buf: bytes) -> Pool:
    _require_len(buf, POOL_LEN, record="pool")
    owner, funding_account, total_liquidity, user_liquidity_ref = _POOL.unpack_from(buf, 0)
    return Pool(
        owner=owner,
        funding_account=funding_account,
        total_liquidity=total_liquidity,
        user_liquidity_ref=user_liquidity_ref,
    )


def encode_pool(pool: Pool) -> bytes:
    return _POOL.pack(pool.owner, pool.funding_account, pool.total_liquidity, pool.user_liquidity_ref)


def encode_pool_into(pool: Pool, dst: bytearray) -> None:
    _require_dst(dst, POOL_LEN, record="pool")
    _POOL.pack_into(dst, 0, pool.owner, pool.funding_account, pool.total_liquidity, pool.user_liquidity_ref)


def decode_user_balance(buf: bytes) -> UserBalance:
    _require_len(buf, USER_BALANCE_LEN, record="user balance")
    return UserBalance(amount=decode_u64(buf))


def encode_user_balance(balance: UserBalance) -> bytes:
    return encode_u64(balance.amount)


def encode_user_balance_into(balance: UserBalance, dst: bytearray) -> None:
    _require_dst(dst, USER_BALANCE_LEN, record="user balance")
    _U64.pack_into(dst, 0, balance.amount)
