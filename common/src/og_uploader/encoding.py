"""
Wire formats shared by the segment upload and the on-chain record.

Two things live here:

- the JSON body POSTed to ``{indexer}/file/segment``. The whole payload is
  sent as segment 0 with a single-node proof (siblings = [root], empty
  path). The indexer accepts this only for single-segment files; the proof
  layout is chosen by ``schema_version`` from ``PROOF_BUILDERS``, and an
  unknown version is refused rather than guessed.

- call data for the record transaction. ``AbiStoreEncoder`` encodes
  ``store(bytes32 root, uint64 dataSize)`` from its signature.
  ``TemplateSubmitEncoder`` replays a captured ``submit`` call
  (selector ``0xef3e12dc``) and swaps only the 32-byte root; every other
  field, including the file length, stays what the template says.
"""
import base64
from dataclasses import dataclass, field
from typing import List

from eth_abi import encode
from web3 import Web3

from .content import ROOT_BYTES, root_to_bytes

PROOF_SCHEMA_VERSION = 1
SEGMENT_INDEX = 0

WORD = 32

STORE_SIGNATURE = "store(bytes32,uint64)"
UINT64_MAX = 2 ** 64 - 1

SUBMIT_SELECTOR = bytes.fromhex("ef3e12dc")
# submit((uint256 length, bytes tags, (bytes32 root, uint256 height)[] nodes))
# captured for a single 256 KiB segment: length 0x40000, no tags, one node of height 10.
SUBMIT_TEMPLATE = SUBMIT_SELECTOR + bytes.fromhex(
    "0000000000000000000000000000000000000000000000000000000000000020"
    "0000000000000000000000000000000000000000000000000000000000040000"
    "0000000000000000000000000000000000000000000000000000000000000060"
    "0000000000000000000000000000000000000000000000000000000000000080"
    "0000000000000000000000000000000000000000000000000000000000000000"
    "0000000000000000000000000000000000000000000000000000000000000001"
    "0000000000000000000000000000000000000000000000000000000000000000"
    "000000000000000000000000000000000000000000000000000000000000000a"
)
SUBMIT_ROOT_OFFSET = len(SUBMIT_SELECTOR) + 6 * WORD


@dataclass(frozen=True)
class SegmentProof:
    siblings: List[str]
    path: List[bool] = field(default_factory=list)

    @classmethod
    def single_segment(cls, root: str) -> "SegmentProof":
        return cls(siblings=[root], path=[])

    def to_json(self) -> dict:
        return {"siblings": list(self.siblings), "path": list(self.path)}


PROOF_BUILDERS = {
    1: SegmentProof.single_segment,
}


def build_segment_request(root: str, payload: bytes, schema_version: int = PROOF_SCHEMA_VERSION) -> dict:
    """JSON body for ``POST /file/segment`` carrying the whole payload."""
    if not payload:
        raise ValueError("payload must not be empty")
    make_proof = PROOF_BUILDERS.get(schema_version)
    if make_proof is None:
        raise ValueError(f"unsupported proof schema version {schema_version}")
    root_to_bytes(root)
    return {
        "root": root,
        "index": SEGMENT_INDEX,
        "data": base64.b64encode(payload).decode("ascii"),
        "proof": make_proof(root).to_json(),
    }


class CallEncoder:
    name = "base"

    def encode(self, root: str, data_size: int) -> bytes:
        raise NotImplementedError


class AbiStoreEncoder(CallEncoder):
    name = "abi"

    def __init__(self):
        self.selector = bytes(Web3.keccak(text=STORE_SIGNATURE)[:4])

    def encode(self, root: str, data_size: int) -> bytes:
        if not 0 <= data_size <= UINT64_MAX:
            raise ValueError(f"dataSize {data_size} does not fit in uint64")
        return self.selector + encode(["bytes32", "uint64"], [root_to_bytes(root), data_size])


class TemplateSubmitEncoder(CallEncoder):
    name = "template"

    def __init__(self, template: bytes = SUBMIT_TEMPLATE, root_offset: int = SUBMIT_ROOT_OFFSET):
        if len(template) < root_offset + ROOT_BYTES:
            raise ValueError("template too short for the root field")
        if (len(template) - 4) % WORD:
            raise ValueError("template body is not word aligned")
        self.template = bytes(template)
        self.root_offset = root_offset

    def encode(self, root: str, data_size: int) -> bytes:
        # data_size is ignored, the template carries its own length.
        out = bytearray(self.template)
        out[self.root_offset:self.root_offset + ROOT_BYTES] = root_to_bytes(root)
        return bytes(out)


def encoder_for(name: str) -> CallEncoder:
    if name == AbiStoreEncoder.name:
        return AbiStoreEncoder()
    if name == TemplateSubmitEncoder.name:
        return TemplateSubmitEncoder()
    raise ValueError(f"unknown call encoding {name!r}")
