"""Instruction dispatcher.

``process_instruction(...)`` is the single entry point. It:

1. Bounds the instruction size and checks the pool buffer's authority tag.
2. Reads the opcode and operand.
3. Decodes the pool (and the depositor's balance, where the opcode needs one).
4. Runs the handler, which may invoke the external transfer.
5. Re-encodes every touched record into its buffer.

Nothing is written before step 5, so a raise anywhere leaves all buffers intact.

Accounts per opcode:

    DEPOSIT       [pool, depositor, funding_account]
    WITHDRAW      [pool, recipient, funding_account]
    CHANGE_OWNER  [pool, caller]
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import AbstractSet, Callable, Optional, Sequence

from ..config import ProcessorConfig
from ..errors import (
    AccountMismatchError,
    LedgerError,
    MalformedInstructionError,
    MissingAccountError,
    UnauthorizedBufferError,
    UnauthorizedError,
)
from ..state.accounts import Account
from ..state.balances import UserBalanceStore
from ..state.canonical import identity_to_hex
from ..state.codec import (
    decode_pool,
    decode_user_balance,
    encode_pool_into,
    encode_user_balance_into,
)
from ..state.records import Pool, UserBalance
from . import handlers
from .handlers import TransferFn
from .instruction import Instruction, Opcode, parse_instruction


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Outcome:
    """Successor records a handler produced; committed by the dispatcher."""

    pool: Pool
    balance_owner: Optional[bytes] = None
    balance: Optional[UserBalance] = None


@dataclass(frozen=True)
class _Invocation:
    pool: Pool
    ix: Instruction
    accounts: Sequence[Account]
    balances: UserBalanceStore
    transfer: TransferFn
    config: ProcessorConfig
    signers: Optional[AbstractSet[bytes]] = None


def _account(accounts: Sequence[Account], index: int, role: str) -> Account:
    if index >= len(accounts):
        raise MissingAccountError(f"{role} account (index {index}) not supplied")
    return accounts[index]


def _require_signer(account: Account, role: str, inv: _Invocation) -> None:
    if not inv.config.require_signers:
        return
    signed = account.key in inv.signers if inv.signers is not None else account.is_signer
    if not signed:
        raise UnauthorizedError(f"{role} {identity_to_hex(account.key)} did not sign")


def _funding(inv: _Invocation) -> Account:
    funding = _account(inv.accounts, 2, "funding")
    if funding.key != inv.pool.funding_account:
        raise AccountMismatchError(
            f"funding account {identity_to_hex(funding.key)} is not the pool's "
            f"{identity_to_hex(inv.pool.funding_account)}"
        )
    return funding


def _not_custody(account: Account, role: str, pool: Pool) -> None:
    if account.key == pool.funding_account:
        raise AccountMismatchError(f"{role} cannot be the pool's own funding account")


def _process_deposit(inv: _Invocation) -> _Outcome:
    depositor = _account(inv.accounts, 1, "depositor")
    _not_custody(depositor, "depositor", inv.pool)
    _funding(inv)
    _require_signer(depositor, "depositor", inv)

    buf = inv.balances.get(depositor.key)
    balance = decode_user_balance(buf) if buf is not None else UserBalance()

    pool, balance = handlers.deposit(
        inv.pool, balance, depositor=depositor, amount=inv.ix.amount, transfer=inv.transfer
    )
    return _Outcome(pool=pool, balance_owner=depositor.key, balance=balance)


def _process_withdraw(inv: _Invocation) -> _Outcome:
    recipient = _account(inv.accounts, 1, "recipient")
    _not_custody(recipient, "recipient", inv.pool)
    _funding(inv)
    _require_signer(recipient, "recipient", inv)

    buf = inv.balances.get(recipient.key)
    if buf is None:
        raise MissingAccountError(f"no balance record for {identity_to_hex(recipient.key)}")
    balance = decode_user_balance(buf)

    pool, balance = handlers.withdraw(
        inv.pool, balance, recipient=recipient, amount=inv.ix.amount, transfer=inv.transfer
    )
    return _Outcome(pool=pool, balance_owner=recipient.key, balance=balance)


def _process_change_owner(inv: _Invocation) -> _Outcome:
    caller = _account(inv.accounts, 1, "caller")
    _require_signer(caller, "caller", inv)
    pool = handlers.change_owner(inv.pool, caller=caller.key, new_owner=inv.ix.new_owner)
    return _Outcome(pool=pool)


_DISPATCH: dict[Opcode, Callable[[_Invocation], _Outcome]] = {
    Opcode.DEPOSIT: _process_deposit,
    Opcode.WITHDRAW: _process_withdraw,
    Opcode.CHANGE_OWNER: _process_change_owner,
}


def _commit(pool_account: Account, outcome: _Outcome, balances: UserBalanceStore) -> None:
    if outcome.balance is not None and outcome.balance_owner is not None:
        encode_user_balance_into(outcome.balance, balances.get_or_create(outcome.balance_owner))
    encode_pool_into(outcome.pool, pool_account.data)


def process_instruction(
    program_id: bytes,
    accounts: Sequence[Account],
    instruction_data: bytes,
    *,
    balances: UserBalanceStore,
    transfer: TransferFn,
    config: ProcessorConfig = ProcessorConfig(),
    signers: Optional[AbstractSet[bytes]] = None,
) -> Pool:
    """Execute one instruction against the supplied buffers.

    Returns the committed ``Pool``.

    ``signers``, when given, is the set of identities that signed this
    invocation and takes precedence over each account's ``is_signer`` flag.

    Raises:
        LedgerError: any rejection; no buffer has been rewritten when it propagates.
    """
    extra: dict[str, str] = {}
    try:
        if len(instruction_data) > config.max_instruction_bytes:
            raise MalformedInstructionError(
                f"instruction is {len(instruction_data)} bytes, limit {config.max_instruction_bytes}"
            )
        pool_account = _account(accounts, 0, "pool")
        extra["pool"] = identity_to_hex(pool_account.key)
        if pool_account.owner != program_id:
            raise UnauthorizedBufferError(
                f"pool buffer {identity_to_hex(pool_account.key)} is owned by "
                f"{identity_to_hex(pool_account.owner)}"
            )

        ix = parse_instruction(instruction_data)
        extra["opcode"] = ix.opcode.name
        logger.debug("dispatching %s on pool %s", ix.opcode.name, extra["pool"], extra=extra)

        inv = _Invocation(
            pool=decode_pool(pool_account.data),
            ix=ix,
            accounts=accounts,
            balances=balances,
            transfer=transfer,
            config=config,
            signers=signers,
        )
        outcome = _DISPATCH[ix.opcode](inv)
    except LedgerError as exc:
        logger.warning("instruction rejected: %s", exc, extra={**extra, "error_code": exc.kind.value})
        raise

    _commit(pool_account, outcome, balances)
    logger.info(
        "committed %s on pool %s (total_liquidity=%d)",
        ix.opcode.name,
        extra["pool"],
        outcome.pool.total_liquidity,
        extra=extra,
    )
    return outcome.pool
