"""Tests for the instruction dispatcher: routing, authority and commit behavior."""

from __future__ import annotations

import logging
from typing import AbstractSet, Dict, List, Optional

import pytest

from liquidity_ledger.config import ProcessorConfig
from liquidity_ledger.core.instruction import (
    change_owner_instruction,
    deposit_instruction,
    withdraw_instruction,
)
from liquidity_ledger.core.processor import process_instruction
from liquidity_ledger.errors import ErrorKind, LedgerError, TransferError
from liquidity_ledger.integration.transfer import AccountTransfer
from liquidity_ledger.state.accounts import Account
from liquidity_ledger.state.balances import UserBalanceStore
from liquidity_ledger.state.codec import decode_pool, encode_pool, encode_user_balance_into
from liquidity_ledger.state.records import U64_MAX, Pool, UserBalance


PROGRAM = b"\xee" * 32
POOL_KEY = b"\x01" * 32
FUNDING = b"\x02" * 32
OWNER = b"\x03" * 32
USER = b"\x04" * 32
STRANGER = b"\x05" * 32


class Ledger:
    """Accounts + balances wired the way a host hands them to the dispatcher."""

    def __init__(self, *, total: int = 0, user_amount: int | None = None, user_funds: int = 0, funding_funds: int = 0):
        pool = Pool(owner=OWNER, funding_account=FUNDING, total_liquidity=total)
        self.pool_account = Account(key=POOL_KEY, owner=PROGRAM, data=bytearray(encode_pool(pool)))
        self.user = Account(key=USER, owner=USER, funds=user_funds, is_signer=True)
        self.owner = Account(key=OWNER, owner=OWNER, is_signer=True)
        self.stranger = Account(key=STRANGER, owner=STRANGER, is_signer=True)
        self.funding = Account(key=FUNDING, owner=FUNDING, funds=funding_funds)
        self.registry: Dict[bytes, Account] = {
            a.key: a for a in (self.pool_account, self.user, self.owner, self.stranger, self.funding)
        }
        self.balances = UserBalanceStore()
        if user_amount is not None:
            encode_user_balance_into(UserBalance(user_amount), self.balances.get_or_create(USER))
        self.transfer = AccountTransfer(self.registry)

    def run(
        self,
        data: bytes,
        accounts: List[Account],
        config: ProcessorConfig = ProcessorConfig(),
        signers: Optional[AbstractSet[bytes]] = None,
    ) -> Pool:
        return process_instruction(
            PROGRAM, accounts, data, balances=self.balances, transfer=self.transfer, config=config, signers=signers
        )

    def pool(self) -> Pool:
        return decode_pool(self.pool_account.data)


def _kind(exc_info) -> ErrorKind:
    assert isinstance(exc_info.value, LedgerError)
    return exc_info.value.kind


class TestDeposit:
    def test_credits_pool_and_user(self):
        lg = Ledger(total=1000, user_amount=200, user_funds=500)
        pool = lg.run(deposit_instruction(300), [lg.pool_account, lg.user, lg.funding])
        assert pool.total_liquidity == 1300
        assert lg.pool().total_liquidity == 1300
        assert lg.balances.amount_of(USER) == 500
        assert lg.user.funds == 200
        assert lg.funding.funds == 300

    def test_first_deposit_creates_balance_record(self):
        lg = Ledger(user_funds=50)
        lg.run(deposit_instruction(50), [lg.pool_account, lg.user, lg.funding])
        assert lg.balances.amount_of(USER) == 50

    def test_zero_deposit_succeeds(self):
        lg = Ledger(total=10, user_amount=10)
        assert lg.run(deposit_instruction(0), [lg.pool_account, lg.user, lg.funding]).total_liquidity == 10

    def test_insufficient_funds_leaves_everything_untouched(self):
        lg = Ledger(total=1000, user_amount=200, user_funds=10)
        before = bytes(lg.pool_account.data)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(11), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.INSUFFICIENT_FUNDS
        assert bytes(lg.pool_account.data) == before
        assert lg.balances.amount_of(USER) == 200
        assert lg.user.funds == 10

    def test_failed_first_deposit_does_not_create_record(self):
        lg = Ledger(user_funds=0)
        with pytest.raises(LedgerError):
            lg.run(deposit_instruction(1), [lg.pool_account, lg.user, lg.funding])
        assert USER not in lg.balances

    def test_transfer_failure_books_nothing(self):
        lg = Ledger(total=5, user_amount=5, user_funds=100)

        def refuse(source: bytes, destination: bytes, amount: int) -> None:
            raise TransferError("collaborator offline")

        before = bytes(lg.pool_account.data)
        with pytest.raises(LedgerError) as ei:
            process_instruction(
                PROGRAM,
                [lg.pool_account, lg.user, lg.funding],
                deposit_instruction(3),
                balances=lg.balances,
                transfer=refuse,
            )
        assert _kind(ei) is ErrorKind.TRANSFER_ERROR
        assert bytes(lg.pool_account.data) == before
        assert lg.balances.amount_of(USER) == 5

    def test_overflow_is_invariant_violation(self):
        lg = Ledger(total=U64_MAX, user_amount=0, user_funds=1)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(1), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.INVARIANT_VIOLATION
        assert lg.user.funds == 1

    def test_wrong_funding_account_is_mismatch(self):
        lg = Ledger(user_funds=10)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(1), [lg.pool_account, lg.user, lg.stranger])
        assert _kind(ei) is ErrorKind.ACCOUNT_MISMATCH

    def test_unsigned_depositor_is_unauthorized(self):
        lg = Ledger(user_funds=10)
        lg.user.is_signer = False
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(1), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.UNAUTHORIZED

    def test_signer_check_can_be_disabled(self):
        lg = Ledger(user_funds=10)
        lg.user.is_signer = False
        pool = lg.run(
            deposit_instruction(1),
            [lg.pool_account, lg.user, lg.funding],
            config=ProcessorConfig(require_signers=False),
        )
        assert pool.total_liquidity == 1


class TestWithdraw:
    def test_scenario_rejects_then_drains_user(self):
        lg = Ledger(total=1000, user_amount=200, funding_funds=1000)
        accounts = [lg.pool_account, lg.user, lg.funding]

        with pytest.raises(LedgerError) as ei:
            lg.run(withdraw_instruction(1500), accounts)
        assert _kind(ei) is ErrorKind.INSUFFICIENT_FUNDS
        assert lg.pool().total_liquidity == 1000
        assert lg.balances.amount_of(USER) == 200

        pool = lg.run(withdraw_instruction(200), accounts)
        assert pool.total_liquidity == 800
        assert lg.balances.amount_of(USER) == 0
        assert lg.user.funds == 200
        assert lg.funding.funds == 800

    def test_more_than_user_balance_is_invariant_violation(self):
        lg = Ledger(total=1000, user_amount=200, funding_funds=1000)
        with pytest.raises(LedgerError) as ei:
            lg.run(withdraw_instruction(201), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.INVARIANT_VIOLATION
        assert lg.funding.funds == 1000

    def test_no_balance_record_is_missing_account(self):
        lg = Ledger(total=1000, funding_funds=1000)
        with pytest.raises(LedgerError) as ei:
            lg.run(withdraw_instruction(1), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.MISSING_ACCOUNT

    def test_underfunded_custody_is_transfer_error(self):
        lg = Ledger(total=100, user_amount=100, funding_funds=10)
        with pytest.raises(LedgerError) as ei:
            lg.run(withdraw_instruction(50), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.TRANSFER_ERROR
        assert lg.pool().total_liquidity == 100
        assert lg.balances.amount_of(USER) == 100


class TestChangeOwner:
    def test_owner_hands_over(self):
        lg = Ledger(total=7)
        pool = lg.run(change_owner_instruction(STRANGER), [lg.pool_account, lg.owner])
        assert pool.owner == STRANGER
        assert lg.pool().owner == STRANGER
        assert lg.pool().total_liquidity == 7

    def test_non_owner_rejected(self):
        lg = Ledger()
        with pytest.raises(LedgerError) as ei:
            lg.run(change_owner_instruction(STRANGER), [lg.pool_account, lg.stranger])
        assert _kind(ei) is ErrorKind.UNAUTHORIZED
        assert lg.pool().owner == OWNER

    def test_idempotent(self):
        lg = Ledger()
        before = bytes(lg.pool_account.data)
        lg.run(change_owner_instruction(OWNER), [lg.pool_account, lg.owner])
        assert bytes(lg.pool_account.data) == before


class TestDispatch:
    def test_unknown_opcode_rewrites_nothing(self):
        lg = Ledger(total=1000, user_amount=200, user_funds=5)
        before = bytes(lg.pool_account.data)
        with pytest.raises(LedgerError) as ei:
            lg.run(b"\x03" + b"\x01" * 32, [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.UNSUPPORTED_OPERATION
        assert bytes(lg.pool_account.data) == before
        assert lg.balances.amount_of(USER) == 200

    def test_foreign_pool_buffer_rejected_before_decoding(self):
        lg = Ledger()
        lg.pool_account.owner = STRANGER
        lg.pool_account.data = bytearray(3)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(0), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.UNAUTHORIZED_BUFFER

    def test_short_pool_buffer_is_malformed(self):
        lg = Ledger()
        lg.pool_account.data = bytearray(50)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(0), [lg.pool_account, lg.user, lg.funding])
        assert _kind(ei) is ErrorKind.MALFORMED_ACCOUNT_DATA

    @pytest.mark.parametrize("n_accounts", [0, 1, 2])
    def test_missing_accounts(self, n_accounts):
        lg = Ledger(user_funds=5)
        accounts = [lg.pool_account, lg.user, lg.funding][:n_accounts]
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(1), accounts)
        assert _kind(ei) is ErrorKind.MISSING_ACCOUNT

    def test_change_owner_without_caller_is_missing_account(self):
        lg = Ledger()
        with pytest.raises(LedgerError) as ei:
            lg.run(change_owner_instruction(STRANGER), [lg.pool_account])
        assert _kind(ei) is ErrorKind.MISSING_ACCOUNT

    def test_oversized_instruction_is_malformed(self):
        lg = Ledger()
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(0) + b"\x00" * 64, [lg.pool_account, lg.user, lg.funding],
                   config=ProcessorConfig(max_instruction_bytes=40))
        assert _kind(ei) is ErrorKind.MALFORMED_INSTRUCTION

    def test_logs_commit_and_rejection(self, caplog):
        lg = Ledger(user_funds=5)
        with caplog.at_level(logging.DEBUG, logger="liquidity_ledger"):
            lg.run(deposit_instruction(5), [lg.pool_account, lg.user, lg.funding])
            with pytest.raises(LedgerError):
                lg.run(b"\x09", [lg.pool_account])
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("committed DEPOSIT") for m in messages)
        rejected = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert rejected and rejected[0].error_code == "UnsupportedOperation"


class TestSignerSet:
    def test_signer_set_overrides_account_flag(self):
        lg = Ledger(user_funds=10)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(1), [lg.pool_account, lg.user, lg.funding], signers=frozenset())
        assert _kind(ei) is ErrorKind.UNAUTHORIZED
        assert lg.user.funds == 10

    def test_signer_set_authorizes_unflagged_account(self):
        lg = Ledger(user_funds=10)
        lg.user.is_signer = False
        pool = lg.run(deposit_instruction(4), [lg.pool_account, lg.user, lg.funding], signers=frozenset({USER}))
        assert pool.total_liquidity == 4
        assert lg.user.is_signer is False


class TestFundingAccountAsUser:
    def test_deposit_from_funding_account_is_mismatch(self):
        lg = Ledger(total=100, funding_funds=100)
        lg.funding.is_signer = True
        before = bytes(lg.pool_account.data)
        with pytest.raises(LedgerError) as ei:
            lg.run(deposit_instruction(50), [lg.pool_account, lg.funding, lg.funding])
        assert _kind(ei) is ErrorKind.ACCOUNT_MISMATCH
        assert bytes(lg.pool_account.data) == before
        assert FUNDING not in lg.balances
        assert lg.funding.funds == 100

    def test_withdraw_to_funding_account_is_mismatch(self):
        lg = Ledger(total=100, funding_funds=100)
        lg.funding.is_signer = True
        encode_user_balance_into(UserBalance(100), lg.balances.get_or_create(FUNDING))
        with pytest.raises(LedgerError) as ei:
            lg.run(withdraw_instruction(100), [lg.pool_account, lg.funding, lg.funding])
        assert _kind(ei) is ErrorKind.ACCOUNT_MISMATCH
        assert lg.pool().total_liquidity == 100
        assert lg.balances.amount_of(FUNDING) == 100


def test_log_records_carry_pool_and_opcode(caplog):
    lg = Ledger(user_funds=5)
    with caplog.at_level(logging.INFO, logger="liquidity_ledger"):
        lg.run(deposit_instruction(5), [lg.pool_account, lg.user, lg.funding])
    committed = [r for r in caplog.records if r.getMessage().startswith("committed")]
    assert committed[0].pool == "0x" + POOL_KEY.hex()
    assert committed[0].opcode == "DEPOSIT"
