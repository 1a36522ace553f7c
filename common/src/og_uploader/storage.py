"""
Getting a payload onto 0G storage.

Two ways in:

    SegmentStorageSubmitter  POST the payload as segment 0 to the indexer
                             (``/file/segment``); the on-chain record is
                             sent afterwards by TransactionSubmitter.
    SdkStorageSubmitter      hand a file path to the 0G storage client,
                             which computes the root, uploads and sends
                             its own transaction.
"""
import os
import re
import subprocess
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

import requests

from .console import Console
from .content import content_root
from .encoding import build_segment_request
from .errors import StorageClientError, StorageSubmitError


@dataclass(frozen=True)
class Submission:
    root: str
    data_size: int
    tx_hash: Optional[str] = None


class IndexerClient:
    """
    Minimal client for a 0G indexer.

    Endpoint used:
      POST /file/segment   -> accepts {root, index, data, proof}
    """

    def __init__(self, base_url: str, timeout_sec: int = 30,
                 session: Optional[requests.Session] = None):
        self.base = base_url.rstrip("/")
        self.timeout = timeout_sec
        self.session = session or requests.Session()
        self.segment_url = f"{self.base}/file/segment"

    def submit_segment(self, root: str, payload: bytes) -> None:
        body = build_segment_request(root, payload)
        try:
            resp = self.session.post(
                self.segment_url,
                json=body,
                headers={"Accept": "application/json", "Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise StorageSubmitError(f"Indexer request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise StorageSubmitError(f"Indexer HTTP {resp.status_code}: {resp.text[:300]}")


class SegmentStorageSubmitter:
    def __init__(self, indexer: IndexerClient, console: Optional[Console] = None):
        self.indexer = indexer
        self.console = console or Console()

    def submit(self, payload: bytes) -> Submission:
        root = content_root(payload)
        self.console.loading(f"Submitting {len(payload)} bytes to indexer (root {root})...")
        self.indexer.submit_segment(root, payload)
        self.console.info(f"Segment accepted by indexer: {root}")
        return Submission(root=root, data_size=len(payload))


@dataclass(frozen=True)
class UploadFailure:
    """What the storage client reported instead of a result."""

    message: str
    tx_hash: Optional[str] = None
    # True when the client may have sent its transaction before failing
    broadcast: bool = False

    def __str__(self):
        return self.message


_ROOT_RE = re.compile(r"\broot\s*[=:]\s*(0x[0-9a-fA-F]{64})", re.IGNORECASE)
_TX_RE = re.compile(r"\btx(?:[ _]?hash)?\s*[=:]\s*(0x[0-9a-fA-F]{64})", re.IGNORECASE)


class CliStorageClient:
    """
    Wraps the ``0g-storage-client`` binary.

    ``upload`` never raises for client-side failures: it returns
    ``(None, UploadFailure)`` so callers have to look at the error slot.
    The private key is passed with ``--key``, so it is visible in the
    process list while the client runs.
    """

    def __init__(self, binary: str, rpc_url: str, private_key: str, indexer_url: str,
                 timeout_sec: int = 600, run=subprocess.run):
        self.binary = binary
        self.rpc_url = rpc_url
        self.private_key = private_key
        self.indexer_url = indexer_url
        self.timeout = timeout_sec
        self._run = run

    def command(self, path: str):
        return [
            self.binary, "upload",
            "--url", self.rpc_url,
            "--key", self.private_key,
            "--indexer", self.indexer_url,
            "--file", path,
        ]

    def upload(self, path: str) -> Tuple[Optional[Submission], Optional[UploadFailure]]:
        try:
            proc = self._run(self.command(path), capture_output=True, text=True, timeout=self.timeout)
        except FileNotFoundError:
            return None, UploadFailure(f"storage client binary not found: {self.binary}")
        except subprocess.TimeoutExpired:
            # killed mid-run, a transaction may already be out
            return None, UploadFailure(f"storage client timed out after {self.timeout}s", broadcast=True)

        output = f"{proc.stdout or ''}\n{proc.stderr or ''}"
        tx = _TX_RE.search(output)
        tx_hash = tx.group(1).lower() if tx else None
        if proc.returncode != 0:
            tail = (proc.stderr or proc.stdout or "").strip().splitlines()
            message = tail[-1] if tail else f"exit code {proc.returncode}"
            return None, UploadFailure(message, tx_hash=tx_hash, broadcast=tx_hash is not None)

        root = _ROOT_RE.search(output)
        if not root:
            return None, UploadFailure(
                "storage client output did not contain a root", tx_hash=tx_hash, broadcast=True
            )
        return Submission(
            root=root.group(1).lower(),
            data_size=os.path.getsize(path),
            tx_hash=tx_hash,
        ), None


class SdkStorageSubmitter:
    def __init__(self, client: CliStorageClient, console: Optional[Console] = None):
        self.client = client
        self.console = console or Console()

    def submit_file(self, path: str) -> Submission:
        self.console.loading(f"Uploading file from path: {path}")
        submission, err = self.client.upload(path)
        if err:
            raise StorageClientError(
                f"Storage client returned an error: {err}",
                tx_hash=err.tx_hash,
                retryable=not err.broadcast,
            )
        self.console.info(f"File uploaded, root hash: {submission.root}")
        return submission


def ensure_directory(path: str, console: Optional[Console] = None) -> str:
    if not os.path.isdir(path):
        (console or Console()).loading(f"Directory {path} not found, creating...")
        os.makedirs(path, exist_ok=True)
    return path


@contextmanager
def temporary_payload_file(directory: str, payload: bytes,
                           console: Optional[Console] = None) -> Iterator[str]:
    """Write ``payload`` to a random ``.jpg`` in ``directory``; removed on every exit path."""
    console = console or Console()
    path = os.path.join(directory, f"{os.urandom(16).hex()}.jpg")
    try:
        with open(path, "wb") as f:
            f.write(payload)
        yield path
    finally:
        try:
            os.unlink(path)
            console.info(f"Temporary file {path} deleted.")
        except OSError as e:
            console.warn(f"Failed to delete temporary file: {e}")
