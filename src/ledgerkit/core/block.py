# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC7693-BLAKE2
"""
Block decoding.

Header (big-endian):
    u16 header_size, u16 version, u32 content_size,
    u32 epoch, u32 slot, u32 chain_length,
    32 content_hash, 32 parent_id, proof

Proof by version: 0 none, 1 (BFT) leader key + signature,
2 (Genesis Praos) pool id + VRF proof + KES signature. Proofs are carried,
not verified.

Content is `content_size` bytes of `[u16 size][fragment]` records.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from ..crypto.keys import PublicKey
from ..utils import config as CFG
from ..utils.chain_logging import get_ctx_logger
from ..utils.helpers import ReadBuf, u16_be, u32_be
from .errors import MalformedInputError, TruncatedBlockError
from .fragment import Fragment
from .hashes import BlockId, Hash, PoolId

log = get_ctx_logger("ledgerkit.core(block)")

_PROOF_SIZES = {
    CFG.BLOCK_VERSION_UNSIGNED: 0,
    CFG.BLOCK_VERSION_BFT: CFG.BLOCK_PROOF_SIZE_BFT,
    CFG.BLOCK_VERSION_GENESIS_PRAOS: CFG.BLOCK_PROOF_SIZE_GENESIS_PRAOS,
}


@dataclass(frozen=True)
class BlockHeader:
    version: int
    content_size: int
    epoch: int
    slot: int
    chain_length: int
    content_hash: Hash
    parent_id: BlockId
    proof: bytes = b""

    def __post_init__(self):
        if self.version not in _PROOF_SIZES:
            raise MalformedInputError(f"unknown block version {self.version}")
        expected = _PROOF_SIZES[self.version]
        if len(self.proof) != expected:
            raise MalformedInputError(
                f"block version {self.version} needs a {expected}-byte proof, got {len(self.proof)}")
        for name in ("content_size", "epoch", "slot", "chain_length"):
            v = getattr(self, name)
            if not 0 <= v <= CFG.MAX_U32:
                raise MalformedInputError(f"block {name} must be a u32, got {v}")
        object.__setattr__(self, "proof", bytes(self.proof))

    @property
    def header_size(self) -> int:
        return CFG.BLOCK_HEADER_COMMON_SIZE + len(self.proof)

    def as_bytes(self) -> bytes:
        return (
            u16_be(self.header_size) +
            u16_be(self.version) +
            u32_be(self.content_size) +
            u32_be(self.epoch) +
            u32_be(self.slot) +
            u32_be(self.chain_length) +
            self.content_hash.as_bytes() +
            self.parent_id.as_bytes() +
            self.proof)

    @classmethod
    def read(cls, buf: ReadBuf) -> "BlockHeader":
        header_size = buf.get_u16()
        if header_size < CFG.BLOCK_HEADER_COMMON_SIZE:
            raise MalformedInputError(f"block header size {header_size} below the fixed part")
        if header_size - 2 > buf.remaining():
            raise MalformedInputError(
                f"block header declares {header_size} bytes, only {buf.remaining() + 2} available")
        version = buf.get_u16()
        content_size = buf.get_u32()
        epoch = buf.get_u32()
        slot = buf.get_u32()
        chain_length = buf.get_u32()
        content_hash = Hash.read(buf)
        parent_id = BlockId.read(buf)
        proof = buf.get_bytes(header_size - CFG.BLOCK_HEADER_COMMON_SIZE)
        return cls(version, content_size, epoch, slot, chain_length, content_hash, parent_id, proof)

    def id(self) -> BlockId:
        return BlockId.calculate(self.as_bytes())


class FragmentSequence:
    """
    Lazy view over a block's content records.

    Nothing is decoded up front: each iteration walks the stored bytes again
    and a fragment is parsed only when it is yielded.
    """

    def __init__(self, data: bytes, start: int, end: int):
        self._data = data
        self._start = start
        self._end = end

    def _records(self) -> Iterator[ReadBuf]:
        buf = ReadBuf(self._data, self._start, self._end)
        while not buf.is_end():
            size = buf.get_u16()
            if size > buf.remaining():
                raise MalformedInputError(
                    f"fragment record of {size} bytes overruns block content ({buf.remaining()} left)")
            yield ReadBuf(self._data, buf.pos, buf.pos + size)
            buf.pos += size

    def __iter__(self) -> Iterator[Fragment]:
        for record in self._records():
            yield Fragment.read(record)

    def __len__(self) -> int:
        return sum(1 for _ in self._records())

    def __repr__(self):
        return f"<FragmentSequence {self._end - self._start} bytes>"


@dataclass(frozen=True)
class Block:
    header: BlockHeader
    data: bytes = field(repr=False)
    content_start: int = field(repr=False)

    # -------- Header accessors ----------

    def id(self) -> BlockId:
        return self.header.id()

    def parent_id(self) -> BlockId:
        return self.header.parent_id

    def epoch(self) -> int:
        return self.header.epoch

    def slot(self) -> int:
        return self.header.slot

    def chain_length(self) -> int:
        return self.header.chain_length

    def content_size(self) -> int:
        return self.header.content_size

    def content_hash(self) -> Hash:
        return self.header.content_hash

    def version(self) -> int:
        return self.header.version

    def leader_id(self) -> Optional[PoolId]:
        if self.header.version != CFG.BLOCK_VERSION_GENESIS_PRAOS:
            return None
        return PoolId(self.header.proof[:CFG.HASH_SIZE])

    def bft_leader(self) -> Optional[PublicKey]:
        if self.header.version != CFG.BLOCK_VERSION_BFT:
            return None
        return PublicKey(self.header.proof[:CFG.PUBLIC_KEY_SIZE])

    # -------- Content ----------

    def content_bytes(self) -> bytes:
        return self.data[self.content_start:self.content_start + self.header.content_size]

    def is_content_hash_valid(self) -> bool:
        return Hash.calculate(self.content_bytes()) == self.header.content_hash

    def fragments(self) -> FragmentSequence:
        return FragmentSequence(self.data, self.content_start, self.content_start + self.header.content_size)

    # -------- Serde ----------

    def as_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_bytes(cls, data: bytes) -> "Block":
        data = bytes(data)
        buf = ReadBuf(data)
        header = BlockHeader.read(buf)
        available = buf.remaining()
        if header.content_size > available:
            raise TruncatedBlockError(header.content_size, available)
        if header.content_size < available:
            raise MalformedInputError(f"block has {available - header.content_size} trailing bytes")
        block = cls(header, data, buf.pos)
        log.debug("[from_bytes] block %s epoch=%d slot=%d content=%d bytes",
                  block.id().to_hex()[:16], header.epoch, header.slot, header.content_size)
        return block

    @classmethod
    def build(cls, fragments: Iterable[Fragment], parent_id: BlockId, epoch: int = 0, slot: int = 0,
              chain_length: int = 0, version: int = CFG.BLOCK_VERSION_UNSIGNED, proof: bytes = b"") -> "Block":
        """Assemble a block around `fragments` with the given (unverified) proof bytes."""
        content = b""
        for frag in fragments:
            raw = frag.as_bytes()
            if len(raw) > CFG.MAX_FRAGMENT_SIZE:
                raise MalformedInputError(f"fragment of {len(raw)} bytes does not fit a block record")
            content += u16_be(len(raw)) + raw
        header = BlockHeader(version, len(content), epoch, slot, chain_length,
                             Hash.calculate(content), parent_id, proof)
        return cls.from_bytes(header.as_bytes() + content)

    def to_dict(self) -> dict:
        return {
            "id": self.id().to_hex(),
            "parent_id": self.header.parent_id.to_hex(),
            "version": self.header.version,
            "epoch": self.header.epoch,
            "slot": self.header.slot,
            "chain_length": self.header.chain_length,
            "content_size": self.header.content_size,
            "content_hash": self.header.content_hash.to_hex(),
            "leader_id": self.leader_id().to_hex() if self.leader_id() else None,
            "fragments": [f.id().to_hex() for f in self.fragments()],}

    def __repr__(self):
        return f"<Block {self.id().to_hex()[:16]}… epoch={self.header.epoch} slot={self.header.slot}>"
