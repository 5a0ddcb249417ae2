#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from liquidity_ledger.config import config_from_env, load_config
from liquidity_ledger.core.instruction import (
    change_owner_instruction,
    deposit_instruction,
    withdraw_instruction,
)
from liquidity_ledger.integration.host import ExecutionResult, LedgerHost
from liquidity_ledger.logging_setup import setup_logging
from liquidity_ledger.state.canonical import identity_to_hex


def _ident(tag: int) -> bytes:
    return bytes([tag]) * 32


def _report(step: str, result: ExecutionResult) -> bool:
    if not result.ok:
        print(f"[ledger-demo] {step}: REJECTED {result.kind.value if result.kind else '?'} ({result.error})")
        return False
    assert result.pool is not None
    print(f"[ledger-demo] {step}: ok total_liquidity={result.pool.total_liquidity}")
    return True


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Run deposit / withdraw / change-owner against an in-process ledger.")
    ap.add_argument("--config", type=Path, default=None, help="YAML processor config (defaults to env)")
    ap.add_argument("--deposit", type=int, default=1000)
    ap.add_argument("--withdraw", type=int, default=200)
    ap.add_argument("--log-level", default="WARNING")
    args = ap.parse_args(argv)

    setup_logging(args.log_level, fmt="text")
    config = load_config(args.config) if args.config is not None else config_from_env()

    program_id = _ident(0xEE)
    pool_key, funding, owner, user, new_owner = _ident(1), _ident(2), _ident(3), _ident(4), _ident(5)

    host = LedgerHost(program_id, config=config)
    host.provision_pool(pool_key, owner=owner, funding_account=funding)
    host.add_account(owner)
    host.add_account(user, funds=args.deposit)
    host.add_account(new_owner)

    ok = _report(
        f"deposit {args.deposit}",
        host.submit(deposit_instruction(args.deposit), [pool_key, user, funding], signers=[user]),
    )
    ok = _report(
        f"withdraw {args.withdraw}",
        host.submit(withdraw_instruction(args.withdraw), [pool_key, user, funding], signers=[user]),
    ) and ok
    ok = _report(
        "change owner",
        host.submit(change_owner_instruction(new_owner), [pool_key, owner], signers=[owner]),
    ) and ok

    pool = host.pool(pool_key)
    print(f"[ledger-demo] pool owner={identity_to_hex(pool.owner)} total_liquidity={pool.total_liquidity}")
    print(f"[ledger-demo] user balance={host.balances_for(pool_key).amount_of(user)} funds={host.accounts[user].funds}")
    print(f"[ledger-demo] funding account funds={host.accounts[funding].funds}")
    return 0 if ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
