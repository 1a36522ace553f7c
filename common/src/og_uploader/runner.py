import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from web3 import Web3

from .config import Settings
from .console import Console
from .content import surrogate_root
from .errors import InsufficientBalance
from .image_source import ImageSource
from .retry import RetryPolicy
from .storage import Submission, ensure_directory, temporary_payload_file
from .transactions import TransactionSubmitter


@dataclass(frozen=True)
class AttemptOutcome:
    index: int
    ok: bool
    root: Optional[str] = None
    tx_hash: Optional[str] = None
    error: Optional[str] = None


@dataclass
class BatchSummary:
    total: int
    outcomes: List[AttemptOutcome] = field(default_factory=list)

    @property
    def successful(self) -> int:
        return sum(1 for o in self.outcomes if o.ok)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.ok)


class BatchRunner:
    """
    Runs ``settings.uploads`` attempts one after the other.

    Each attempt is fetch -> storage -> record transaction. A failing
    attempt is counted and the batch moves on; the pause between attempts
    happens either way and is skipped after the last one.
    """

    def __init__(self, settings: Settings, image_source: ImageSource, storage,
                 transactions: TransactionSubmitter, retry: Optional[RetryPolicy] = None,
                 sleep: Callable[[float], None] = time.sleep, console: Optional[Console] = None):
        self.settings = settings
        self.image_source = image_source
        self.storage = storage
        self.transactions = transactions
        self.console = console or Console()
        self.retry = retry or RetryPolicy(
            settings.max_attempts, settings.retry_backoff_seconds, sleep=sleep, console=self.console
        )
        self.sleep = sleep

    def preflight(self):
        """Check the RPC answers and the wallet can pay one storage fee."""
        web3 = self.transactions.web3
        address = self.transactions.account.address
        self.console.loading(f"Checking connection to {self.settings.rpc_url}...")
        self.console.info(f"Connected to network: chainId {web3.eth.chain_id}")
        self.console.loading(f"Checking balance for wallet: {address}")
        balance = web3.eth.get_balance(address)
        self.console.info(f"Wallet balance: {Web3.from_wei(balance, 'ether')} OG")
        required = self.transactions.fee_wei
        if balance < required:
            raise InsufficientBalance(address, balance, required)

    def _onchain_root(self, submission: Submission) -> str:
        if self.settings.onchain_root == "random":
            root = surrogate_root()
            self.console.warn(f"Recording surrogate root {root} instead of content root {submission.root}")
            return root
        return submission.root

    def _record(self, submission: Submission) -> Optional[str]:
        tx = self.transactions
        if submission.tx_hash:
            # storage client already broadcast its own transaction
            tx.wait(submission.tx_hash)
            return submission.tx_hash
        if self.settings.upload_mode == "sdk":
            self.console.warn("Storage client reported no transaction hash; skipping confirmation")
            return None

        root = self._onchain_root(submission)
        # Building (nonce, gas, call data) is retried; the broadcast happens once.
        built = self.retry.call(lambda: tx.build(root, submission.data_size), "Record transaction")
        tx_hash = tx.send(built)
        tx.wait(tx_hash)
        return tx_hash

    def run_once(self, index: int) -> AttemptOutcome:
        self.console.loading("Fetching random image...")
        payload = self.image_source.fetch()
        self.console.info(f"Image fetched successfully ({len(payload)} bytes).")

        if self.settings.upload_mode == "sdk":
            with temporary_payload_file(self.settings.generated_dir, payload, self.console) as path:
                submission = self.retry.call(lambda: self.storage.submit_file(path), "Storage upload")
                tx_hash = self._record(submission)
        else:
            submission = self.retry.call(lambda: self.storage.submit(payload), "Storage submission")
            tx_hash = self._record(submission)

        self.console.info(f"File uploaded successfully! Root hash: {submission.root}")
        return AttemptOutcome(index=index, ok=True, root=submission.root, tx_hash=tx_hash)

    def run(self) -> BatchSummary:
        total = self.settings.uploads
        if self.settings.upload_mode == "sdk":
            ensure_directory(self.settings.generated_dir, self.console)

        summary = BatchSummary(total=total)
        for i in range(1, total + 1):
            self.console.process(f"Upload {i}/{total}")
            try:
                outcome = self.run_once(i)
                self.console.info(f"Upload {i} completed successfully.")
            except Exception as e:
                outcome = AttemptOutcome(index=i, ok=False, error=str(e))
                self.console.error(f"Upload {i} failed: {e}")
            summary.outcomes.append(outcome)

            if i < total:
                self.console.loading(f"Waiting for {self.settings.delay_seconds:g}s before next upload...")
                self.sleep(self.settings.delay_seconds)

        self.console.section("Upload Summary")
        self.console.info(f"Total tasks: {summary.total}")
        self.console.info(f"Successful: {summary.successful}")
        self.console.error(f"Failed: {summary.failed}")
        return summary
