# scripts/seed_devnet.py

"""
Seed a fresh ledger with a ready-to-use wrapper setup and store it as a snapshot.

Usage (from project root):

    python -m scripts.seed_devnet --fee 100 --token USDT --token DAI

What it does, in order:

- Derives deterministic devnet accounts (deployer, administrator, operator,
  treasurer, fee receiver, user) from fixed labels.
- Deploys one BaseToken per `--token` symbol (whole supply to the deployer)
  and sends `--user-funds` of each to the user account.
- Deploys the WrapperERC20 and WrapperFactory implementations, an initialized
  factory proxy, and points the factory at the wrapper implementation.
- Wraps every token through the factory.
- Saves the resulting ledger to `ledger_snapshots` (skipped with --dry-run), so
  the API can boot from it with RESTORE_SNAPSHOT_ON_START=true.
"""

from __future__ import annotations

import argparse
import json
import logging
from typing import Dict

from eth_account import Account
from web3 import Web3

from adapters.chain.wrapper_factory import WrapperFactoryAdapter
from adapters.external.database.ledger_snapshot_repository_mongodb import LedgerSnapshotRepositoryMongoDB
from config import get_settings
from core.contracts.base_token import BaseToken
from core.contracts.wrapper_erc20 import WrapperERC20
from core.contracts.wrapper_factory import WrapperFactory
from core.domain.schemas.onchain_types import LedgerCall
from core.services.ledger import Ledger
from core.services.tx_service import TxService

logger = logging.getLogger("seed_devnet")

ACCOUNT_LABELS = ("deployer", "administrator", "operator", "treasurer", "fee_receiver", "user")


def devnet_accounts() -> Dict[str, str]:
    """
    Deterministic accounts: the private key of each is keccak("wrapper-devnet/<label>").
    """
    return {
        label: Account.from_key(Web3.keccak(text=f"wrapper-devnet/{label}")).address
        for label in ACCOUNT_LABELS
    }


def seed(ledger: Ledger, *, fee: int, symbols: list[str], user_funds: int) -> Dict[str, object]:
    txs = TxService(ledger, chain=get_settings().CHAIN_NAME)
    acct = devnet_accounts()

    tokens: Dict[str, str] = {}
    for symbol in symbols:
        res = txs.deploy(acct["deployer"], BaseToken, (symbol, symbol))
        token = res["result"]["contract_address"]
        txs.send(acct["deployer"], LedgerCall(to=token, fn="transfer", args=(acct["user"], user_funds)))
        tokens[symbol] = token
        logger.info("BaseToken %s deployed at %s", symbol, token)

    wrapper_impl = txs.deploy(acct["deployer"], WrapperERC20)["result"]["contract_address"]
    factory_impl = txs.deploy(acct["deployer"], WrapperFactory)["result"]["contract_address"]
    factory = txs.deploy_proxy(
        acct["deployer"],
        factory_impl,
        "initialize",
        (acct["administrator"], acct["operator"], acct["treasurer"], acct["fee_receiver"], fee),
    )["result"]["contract_address"]
    logger.info("WrapperFactory proxy %s (impl %s), fee=%d", factory, factory_impl, fee)

    adapter = WrapperFactoryAdapter(ledger, factory)
    txs.send(acct["administrator"], adapter.fn_set_implementation(wrapper_impl))

    wrappers: Dict[str, str] = {}
    for symbol, token in tokens.items():
        res = txs.send(acct["user"], adapter.fn_deploy_wrapped_token(token))
        wrappers[symbol] = res["result"]["return_value"]
        logger.info("W-%s wrapper at %s", symbol, wrappers[symbol])

    return {
        "accounts": acct,
        "tokens": tokens,
        "factory": factory,
        "factory_implementation": factory_impl,
        "wrapper_implementation": wrapper_impl,
        "wrappers": wrappers,
        "block_number": ledger.block_number,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed a devnet ledger with tokens, a factory and wrappers.")
    parser.add_argument("--fee", type=int, default=100, help="Initial deposit fee in basis points (default 100 = 1%%).")
    parser.add_argument(
        "--token",
        dest="tokens",
        action="append",
        default=None,
        help="Symbol of an underlying token to create and wrap. Repeatable (default: USDT).",
    )
    parser.add_argument(
        "--user-funds",
        type=int,
        default=1_000 * 10**18,
        help="Amount of each token sent to the user account (default 1000e18).",
    )
    parser.add_argument("--label", default="seed", help="Snapshot label.")
    parser.add_argument("--dry-run", action="store_true", help="Do not write the snapshot to MongoDB.")
    args = parser.parse_args()

    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    ledger = Ledger.from_settings()
    summary = seed(ledger, fee=args.fee, symbols=args.tokens or ["USDT"], user_funds=args.user_funds)

    if args.dry_run:
        logger.info("Dry run: snapshot not stored.")
    else:
        snapshot_id = LedgerSnapshotRepositoryMongoDB().insert(
            ledger.snapshot(chain=settings.CHAIN_NAME, label=args.label)
        )
        summary["snapshot_id"] = snapshot_id
        logger.info("Snapshot %s stored for chain %s.", snapshot_id, settings.CHAIN_NAME)

    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
