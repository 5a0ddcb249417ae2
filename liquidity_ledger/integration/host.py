"""
In-process host for the liquidity ledger.

This is the imperative shell around `process_instruction`:
- owns the account registry and one depositor balance store per pool,
- provisions pool buffers,
- verifies BLS-signed envelopes and hands the signer set to the dispatcher,
- runs one invocation at a time under a host-wide lock,
- maps `LedgerError` onto `ExecutionResult`.

Account funds are shared by every pool, so invocations on different pools
still serialize.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

from ..config import ProcessorConfig
from ..core.handlers import TransferFn
from ..core.processor import process_instruction
from ..errors import ErrorKind, LedgerError, MissingAccountError, UnauthorizedError
from ..state.accounts import Account
from ..state.balances import UserBalanceStore
from ..state.canonical import identity_to_hex, require_identity
from ..state.codec import POOL_LEN, decode_pool, encode_pool_into
from ..state.records import Pool
from .signing import SignedInstruction, identity_from_pubkey, verify_instruction_signature
from .transfer import AccountTransfer


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionResult:
    ok: bool
    pool: Optional[Pool] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None


class LedgerHost:
    def __init__(
        self,
        program_id: bytes,
        *,
        config: Optional[ProcessorConfig] = None,
        transfer: Optional[TransferFn] = None,
    ) -> None:
        self.program_id = require_identity(program_id, name="program_id")
        self.config = config or ProcessorConfig()
        self.accounts: Dict[bytes, Account] = {}
        self._pool_balances: Dict[bytes, UserBalanceStore] = {}
        self._transfer = transfer if transfer is not None else AccountTransfer(self.accounts)
        self._lock = threading.Lock()

    # -- registry ---------------------------------------------------------

    def add_account(self, key: bytes, *, funds: int = 0, owner: Optional[bytes] = None) -> Account:
        key = require_identity(key, name="key")
        if key in self.accounts:
            raise ValueError(f"account {identity_to_hex(key)} already registered")
        acct = Account(key=key, owner=owner if owner is not None else key, funds=funds)
        self.accounts[key] = acct
        return acct

    def provision_pool(self, pool_key: bytes, *, owner: bytes, funding_account: bytes) -> Pool:
        """Allocate a program-owned pool buffer with zero liquidity."""
        pool = Pool(owner=owner, funding_account=funding_account)
        acct = self.add_account(pool_key, owner=self.program_id)
        acct.data = bytearray(POOL_LEN)
        encode_pool_into(pool, acct.data)
        self._pool_balances[acct.key] = UserBalanceStore()
        if pool.funding_account not in self.accounts:
            self.add_account(pool.funding_account)
        logger.info("provisioned pool %s", identity_to_hex(acct.key))
        return pool

    def pool(self, pool_key: bytes) -> Pool:
        return decode_pool(self.accounts[bytes(pool_key)].data)

    def balances_for(self, pool_key: bytes) -> UserBalanceStore:
        """Depositor balances recorded against `pool_key`."""
        store = self._pool_balances.get(bytes(pool_key))
        if store is None:
            raise MissingAccountError(f"pool {identity_to_hex(pool_key)} is not provisioned")
        return store

    # -- execution --------------------------------------------------------

    def _resolve(self, account_keys: Sequence[bytes]) -> List[Account]:
        resolved: List[Account] = []
        for key in account_keys:
            acct = self.accounts.get(bytes(key))
            if acct is None:
                raise MissingAccountError(f"account {identity_to_hex(key)} is not registered")
            resolved.append(acct)
        return resolved

    def submit(
        self,
        instruction: bytes,
        account_keys: Sequence[bytes],
        *,
        signers: Iterable[bytes] = (),
    ) -> ExecutionResult:
        """
        Run one instruction with `signers` already authenticated by the caller.

        The first account key names the pool. Signers are passed to the
        dispatcher per call; `Account.is_signer` is never touched.
        """
        if not account_keys:
            return _rejected(MissingAccountError("pool account not supplied"))
        signer_set = frozenset(bytes(s) for s in signers)
        with self._lock:
            try:
                balances = self.balances_for(account_keys[0])
                accounts = self._resolve(account_keys)
                pool = process_instruction(
                    self.program_id,
                    accounts,
                    instruction,
                    balances=balances,
                    transfer=self._transfer,
                    config=self.config,
                    signers=signer_set,
                )
            except LedgerError as exc:
                return _rejected(exc)
        return ExecutionResult(ok=True, pool=pool)

    def submit_signed(self, envelope: SignedInstruction) -> ExecutionResult:
        """Verify every signature in `envelope`, then run it with those identities as signers."""
        signers: List[bytes] = []
        for pubkey, signature in envelope.signatures:
            ok = verify_instruction_signature(
                pubkey,
                signature,
                program_id=self.program_id,
                instruction=envelope.instruction,
                account_keys=envelope.account_keys,
            )
            if not ok:
                return _rejected(UnauthorizedError("invalid instruction signature"))
            signers.append(identity_from_pubkey(pubkey))
        return self.submit(envelope.instruction, envelope.account_keys, signers=signers)


def _rejected(exc: LedgerError) -> ExecutionResult:
    logger.debug("host rejected instruction: %s", exc)
    return ExecutionResult(ok=False, error=str(exc), kind=exc.kind)
