from typing import Optional


class UploaderError(Exception):
    """Base class for every error raised by the uploader."""

    # RetryPolicy gives up at once on errors that set this to False
    retryable = True


class ConfigError(UploaderError):
    pass


class ImageFetchError(UploaderError):
    pass


class StorageSubmitError(UploaderError):
    """Indexer rejected the segment or the request never completed."""


class StorageClientError(UploaderError):
    """The storage client reported an error instead of a result."""

    def __init__(self, message: str, tx_hash: Optional[str] = None, retryable: bool = True):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.retryable = retryable


class TransactionFailed(UploaderError):
    def __init__(self, tx_hash: str, status, receipt=None):
        super().__init__(f"Transaction {tx_hash} failed with status {status}")
        self.tx_hash = tx_hash
        self.status = status
        self.receipt = receipt


class InsufficientBalance(UploaderError):
    def __init__(self, address: str, balance_wei: int, required_wei: int):
        super().__init__(
            f"Wallet {address} holds {balance_wei} wei, at least {required_wei} wei is required"
        )
        self.address = address
        self.balance_wei = balance_wei
        self.required_wei = required_wei
