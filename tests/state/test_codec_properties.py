"""Property tests for the fixed-width codec."""

from __future__ import annotations

import importlib.util

import pytest

if importlib.util.find_spec("hypothesis") is None:  # pragma: no cover
    pytest.skip("hypothesis not installed", allow_module_level=True)

import hypothesis.strategies as st
from hypothesis import given

from liquidity_ledger.errors import MalformedAccountDataError
from liquidity_ledger.state.codec import (
    POOL_LEN,
    USER_BALANCE_LEN,
    decode_pool,
    decode_user_balance,
    encode_pool,
    encode_user_balance,
)


@given(st.binary(min_size=POOL_LEN, max_size=POOL_LEN))
def test_pool_encode_after_decode_is_identity(raw: bytes) -> None:
    assert encode_pool(decode_pool(raw)) == raw


@given(st.binary(min_size=USER_BALANCE_LEN, max_size=USER_BALANCE_LEN))
def test_user_balance_encode_after_decode_is_identity(raw: bytes) -> None:
    assert encode_user_balance(decode_user_balance(raw)) == raw


@given(st.binary(max_size=POOL_LEN - 1))
def test_any_short_pool_buffer_raises_malformed(raw: bytes) -> None:
    with pytest.raises(MalformedAccountDataError):
        decode_pool(raw)


@given(st.binary(max_size=USER_BALANCE_LEN - 1))
def test_any_short_user_balance_buffer_raises_malformed(raw: bytes) -> None:
    with pytest.raises(MalformedAccountDataError):
        decode_user_balance(raw)
