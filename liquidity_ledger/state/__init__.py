"""
State records, binary codec and account buffers for the liquidity ledger
"""

from .accounts import Account
from .balances import UserBalanceStore
from .codec import (
    POOL_LEN,
    USER_BALANCE_LEN,
    decode_pool,
    decode_user_balance,
    encode_pool,
    encode_pool_into,
    encode_user_balance,
    encode_user_balance_into,
)
from .records import U64_MAX, Pool, UserBalance

__all__ = [
    "Account",
    "UserBalanceStore",
    "POOL_LEN",
    "USER_BALANCE_LEN",
    "decode_pool",
    "decode_user_balance",
    "encode_pool",
    "encode_pool_into",
    "encode_user_balance",
    "encode_user_balance_into",
    "U64_MAX",
    "Pool",
    "UserBalance",
]
