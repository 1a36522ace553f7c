import io

import pytest
from eth_account import Account
from web3 import Web3
from web3.exceptions import TransactionNotFound

from og_uploader.config import Settings
from og_uploader.console import Console

TEST_KEY = "0x" + "11" * 32
CONTRACT = "0x" + "22" * 20
TX_HASH = "0x" + "ab" * 32


class FakeEth:
    def __init__(self, status=1, balance=10 ** 18, estimate=100000, chain_id=16601, send_errors=()):
        self.status = status
        self.balance = balance
        self.estimate = estimate
        self.chain_id = chain_id
        self.gas_price = 3 * 10 ** 9
        self.sent = []
        self.estimated = []
        self.waited = []
        # errors raised by send_raw_transaction AFTER the raw tx reached the node
        self.send_errors = list(send_errors)

    def get_transaction_count(self, address, block="latest"):
        return len(self.sent)

    def estimate_gas(self, tx):
        self.estimated.append(dict(tx))
        if isinstance(self.estimate, Exception):
            raise self.estimate
        return self.estimate

    def send_raw_transaction(self, raw):
        self.sent.append(raw)
        if self.send_errors:
            raise self.send_errors.pop(0)
        return bytes.fromhex(TX_HASH[2:])

    def get_transaction(self, tx_hash):
        known = {Web3.to_hex(Web3.keccak(raw)) for raw in self.sent}
        if tx_hash not in known:
            raise TransactionNotFound(f"Transaction with hash: {tx_hash!r} not found.")
        return {"hash": tx_hash}

    def wait_for_transaction_receipt(self, tx_hash, timeout=120):
        self.waited.append((tx_hash, timeout))
        return {"status": self.status, "blockNumber": 42, "transactionHash": tx_hash}

    def get_balance(self, address):
        return self.balance


class FakeWeb3:
    def __init__(self, **kwargs):
        self.eth = FakeEth(**kwargs)


class FakeResponse:
    def __init__(self, status_code=200, content=b"", text=""):
        self.status_code = status_code
        self.content = content
        self.text = text


@pytest.fixture
def account():
    return Account.from_key(TEST_KEY)


@pytest.fixture
def console():
    return Console(stream=io.StringIO(), color=False)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        private_key=TEST_KEY,
        rpc_url="http://rpc.local",
        indexer_url="http://indexer.local",
        contract_address=CONTRACT,
        uploads=1,
        delay_ms=0,
        generated_dir=str(tmp_path / "generated-files"),
    )


@pytest.fixture
def fake_web3():
    return FakeWeb3()
