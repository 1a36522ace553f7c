"""
og-upload: push random images to 0G storage and record each upload on chain.

Configuration comes from .env / the environment (see config.py); the
flags below override the matching variables.

Examples:
    og-upload
    og-upload --uploads 10 --delay-ms 3000
    og-upload --mode sdk --no-preflight --env-file ./testnet.env
"""
import argparse
import os
from typing import Mapping, Optional

from dotenv import find_dotenv, load_dotenv
from eth_account import Account
from web3 import Web3

from .config import UPLOAD_MODES, Settings, load_settings
from .console import Console
from .encoding import encoder_for
from .errors import ConfigError
from .image_source import ImageSource
from .retry import RetryPolicy
from .runner import BatchRunner
from .storage import CliStorageClient, IndexerClient, SdkStorageSubmitter, SegmentStorageSubmitter
from .transactions import TransactionSubmitter


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="og-upload",
        description="Upload random images to 0G storage and record each upload on chain.",
    )
    ap.add_argument("--uploads", type=int, default=None, help="Number of uploads (UPLOADS_TO_RUN)")
    ap.add_argument("--delay-ms", type=int, default=None, help="Pause between uploads in ms (DELAY_MS)")
    ap.add_argument("--mode", choices=UPLOAD_MODES, default=None, help="segment or sdk (UPLOAD_MODE)")
    ap.add_argument("--no-preflight", action="store_true", help="Skip the connection/balance check")
    ap.add_argument("--env-file", default=None, help="Path to a .env file (default: nearest .env from the current directory)")
    return ap


def _apply_overrides(env: Mapping[str, str], args) -> dict:
    merged = dict(env)
    if args.uploads is not None:
        merged["UPLOADS_TO_RUN"] = str(args.uploads)
    if args.delay_ms is not None:
        merged["DELAY_MS"] = str(args.delay_ms)
    if args.mode is not None:
        merged["UPLOAD_MODE"] = args.mode
    if args.no_preflight:
        merged["PREFLIGHT"] = "false"
    return merged


def build_runner(settings: Settings, console: Console) -> BatchRunner:
    web3 = Web3(Web3.HTTPProvider(settings.rpc_url))
    account = Account.from_key(settings.private_key)

    if settings.upload_mode == "sdk":
        storage = SdkStorageSubmitter(
            CliStorageClient(settings.storage_client_bin, settings.rpc_url,
                             settings.private_key, settings.indexer_url),
            console=console,
        )
    else:
        storage = SegmentStorageSubmitter(IndexerClient(settings.indexer_url), console=console)

    transactions = TransactionSubmitter(
        web3, account, settings, encoder_for(settings.call_encoding), console=console
    )
    retry = RetryPolicy(settings.max_attempts, settings.retry_backoff_seconds, console=console)
    return BatchRunner(
        settings,
        ImageSource(settings.image_url),
        storage,
        transactions,
        retry=retry,
        console=console,
    )


def main(argv=None, env: Optional[Mapping[str, str]] = None, console: Optional[Console] = None) -> int:
    console = console or Console()
    args = build_parser().parse_args(argv)
    console.banner()

    if env is None:
        load_dotenv(args.env_file or find_dotenv(usecwd=True))
        env = os.environ

    try:
        settings = load_settings(_apply_overrides(env, args))
    except ConfigError as e:
        console.critical(str(e))
        return 1

    try:
        runner = build_runner(settings, console)
        if settings.preflight:
            runner.preflight()
        console.section(
            f"Starting {settings.uploads} upload(s) for wallet {runner.transactions.account.address}"
        )
        runner.run()
    except KeyboardInterrupt:
        console.warn("Interrupted.")
        return 130
    except Exception as e:
        console.critical(f"A critical error occurred: {e}")
        return 1
    return 0
