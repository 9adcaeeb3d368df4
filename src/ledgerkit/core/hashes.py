# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC7693-BLAKE2
from __future__ import annotations

from ..utils import config as CFG
from ..utils.helpers import ReadBuf, blake2b256, expect_len, hex_to_bytes


class Digest32:
    """
    32-byte Blake2b-256 digest.

    Subclasses name the domain a digest belongs to. Two digests of different
    domains never compare equal, even over identical bytes, so a block id
    cannot be handed where a fragment id is expected by accident.
    """

    __slots__ = ("_bytes",)

    def __init__(self, data: bytes):
        object.__setattr__(self, "_bytes", expect_len(data, CFG.HASH_SIZE, type(self).__name__))

    def __setattr__(self, name, value):
        raise AttributeError(f"{type(self).__name__} is immutable")

    @classmethod
    def calculate(cls, data: bytes):
        return cls(blake2b256(data))

    @classmethod
    def from_bytes(cls, data: bytes):
        return cls(data)

    @classmethod
    def from_hex(cls, text: str):
        return cls(expect_len(hex_to_bytes(text), CFG.HASH_SIZE, cls.__name__))

    @classmethod
    def read(cls, buf: ReadBuf):
        return cls(buf.get_bytes(CFG.HASH_SIZE))

    def as_bytes(self) -> bytes:
        return self._bytes

    def to_hex(self) -> str:
        return self._bytes.hex()

    def __bytes__(self) -> bytes:
        return self._bytes

    def __eq__(self, other):
        return type(other) is type(self) and other._bytes == self._bytes

    def __hash__(self):
        return hash((type(self).__name__, self._bytes))

    def __str__(self) -> str:
        return self.to_hex()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.to_hex()[:16]}…>"


class Hash(Digest32):
    __slots__ = ()


class FragmentId(Digest32):
    __slots__ = ()


class BlockId(Digest32):
    __slots__ = ()


class TransactionSignDataHash(Digest32):
    __slots__ = ()


class PoolId(Digest32):
    __slots__ = ()


class GenesisPraosLeaderHash(Digest32):
    __slots__ = ()
