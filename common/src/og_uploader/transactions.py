from decimal import Decimal
from typing import Optional

from web3 import Web3

from .config import Settings
from .console import Console
from .encoding import CallEncoder
from .errors import TransactionFailed

SUCCESS_STATUS = 1


def get_raw_transaction(signed_tx):
    if hasattr(signed_tx, "raw_transaction"):
        return signed_tx.raw_transaction  # web3 v7+
    elif hasattr(signed_tx, "rawTransaction"):
        return signed_tx.rawTransaction   # web3 v6
    raise AttributeError("SignedTransaction has neither raw_transaction nor rawTransaction attribute")


class TransactionSubmitter:
    """
    Sends the record transaction for a storage submission and waits for it.

    Gas limit is the node's estimate times ``gas_multiplier``; when the
    estimate fails ``gas_limit_fallback`` is used. ``gasPrice`` is the
    configured ``gas_price_gwei`` or the node's current price.
    """

    def __init__(self, web3: Web3, account, settings: Settings,
                 encoder: CallEncoder, console: Optional[Console] = None):
        self.web3 = web3
        self.account = account
        self.settings = settings
        self.encoder = encoder
        self.console = console or Console()

    @property
    def fee_wei(self) -> int:
        return Web3.to_wei(self.settings.storage_fee, "ether")

    def explorer_link(self, tx_hash: str) -> str:
        return f"{self.settings.explorer_url}{tx_hash}"

    def build(self, root: str, data_size: int) -> dict:
        if not self.settings.contract_address:
            raise ValueError("no contract address configured for the record transaction")
        tx = {
            "from": self.account.address,
            "to": Web3.to_checksum_address(self.settings.contract_address),
            "data": Web3.to_hex(self.encoder.encode(root, data_size)),
            "value": self.fee_wei,
            "nonce": self.web3.eth.get_transaction_count(self.account.address, "pending"),
            "chainId": self.web3.eth.chain_id,
        }
        if self.settings.gas_price_gwei is not None:
            tx["gasPrice"] = Web3.to_wei(self.settings.gas_price_gwei, "gwei")
        else:
            tx["gasPrice"] = self.web3.eth.gas_price
        tx["gas"] = self.estimate_gas(tx)
        return tx

    def estimate_gas(self, tx: dict) -> int:
        try:
            estimate = self.web3.eth.estimate_gas(tx)
        except Exception as e:
            self.console.warn(
                f"Gas estimation failed ({e}), using default limit {self.settings.gas_limit_fallback}"
            )
            return self.settings.gas_limit_fallback
        return int(Decimal(estimate) * self.settings.gas_multiplier)

    def send(self, tx: dict) -> str:
        """
        Sign and broadcast ``tx`` exactly once. If the broadcast call errors
        but the node already holds the signed hash, that hash is used;
        otherwise the error propagates and nothing is re-sent.
        """
        signed = self.account.sign_transaction(tx)
        local_hash = Web3.to_hex(signed.hash)
        try:
            tx_hash = Web3.to_hex(self.web3.eth.send_raw_transaction(get_raw_transaction(signed)))
        except Exception as e:
            if not self.is_known(local_hash):
                raise
            self.console.warn(f"Broadcast raised ({e}) but the node has {local_hash}; continuing")
            tx_hash = local_hash
        self.console.info(f"Transaction sent: {tx_hash}")
        if self.settings.explorer_url:
            self.console.info(f"Explorer: {self.explorer_link(tx_hash)}")
        return tx_hash

    def is_known(self, tx_hash: str) -> bool:
        try:
            self.web3.eth.get_transaction(tx_hash)
        except Exception:
            # not found, or the node could not be asked
            return False
        return True

    def wait(self, tx_hash: str):
        self.console.loading("Waiting for confirmation...")
        receipt = self.web3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.settings.receipt_timeout
        )
        status = receipt["status"]
        if status != SUCCESS_STATUS:
            raise TransactionFailed(tx_hash, status, receipt)
        self.console.info(f"Transaction confirmed in block {receipt['blockNumber']}")
        return receipt

    def submit(self, root: str, data_size: int):
        """Build, sign, broadcast and confirm. Returns ``(tx_hash, receipt)``."""
        tx = self.build(root, data_size)
        tx_hash = self.send(tx)
        return tx_hash, self.wait(tx_hash)
