import os

from web3 import Web3

ROOT_BYTES = 32


def content_root(payload: bytes) -> str:
    """keccak256 of the whole payload as a ``0x``-prefixed bytes32 hex string."""
    if not payload:
        raise ValueError("payload must not be empty")
    return "0x" + bytes(Web3.keccak(payload)).hex()


def surrogate_root() -> str:
    """Random bytes32 that is NOT tied to any payload."""
    return "0x" + os.urandom(ROOT_BYTES).hex()


def root_to_bytes(root: str) -> bytes:
    value = bytes.fromhex(root[2:] if root.startswith("0x") else root)
    if len(value) != ROOT_BYTES:
        raise ValueError(f"root must be {ROOT_BYTES} bytes, got {len(value)}")
    return value
