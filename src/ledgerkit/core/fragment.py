# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC7693-BLAKE2
"""
Fragments: the unit of content inside a block.

    u8 tag | payload

Transaction-carrying tags (2..7) hold a signed transaction whose extra is
the matching certificate. Initial, update proposal and update vote payloads
are kept as opaque bytes. The fragment id is Blake2b-256 of tag + payload.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Tuple, Union

import base58

from ..utils import config as CFG
from ..utils.chain_logging import get_ctx_logger
from ..utils.helpers import ReadBuf, u8, u16_be
from .errors import MalformedInputError, WrongVariantError
from .hashes import FragmentId
from .tx import PayloadKind, SignedTransaction
from .value import Value

log = get_ctx_logger("ledgerkit.core(fragment)")


class FragmentKind(IntEnum):
    INITIAL = CFG.FRAGMENT_TAG_INITIAL
    OLD_UTXO_DECLARATION = CFG.FRAGMENT_TAG_OLD_UTXO_DECLARATION
    TRANSACTION = CFG.FRAGMENT_TAG_TRANSACTION
    OWNER_STAKE_DELEGATION = CFG.FRAGMENT_TAG_OWNER_STAKE_DELEGATION
    STAKE_DELEGATION = CFG.FRAGMENT_TAG_STAKE_DELEGATION
    POOL_REGISTRATION = CFG.FRAGMENT_TAG_POOL_REGISTRATION
    POOL_RETIREMENT = CFG.FRAGMENT_TAG_POOL_RETIREMENT
    POOL_UPDATE = CFG.FRAGMENT_TAG_POOL_UPDATE
    UPDATE_PROPOSAL = CFG.FRAGMENT_TAG_UPDATE_PROPOSAL
    UPDATE_VOTE = CFG.FRAGMENT_TAG_UPDATE_VOTE

    def carries_transaction(self) -> bool:
        return int(self) in _TRANSACTION_TAGS


_TRANSACTION_TAGS = frozenset(int(k) for k in PayloadKind)
_OPAQUE_KINDS = (FragmentKind.INITIAL, FragmentKind.UPDATE_PROPOSAL, FragmentKind.UPDATE_VOTE)


# ========== Legacy utxo declaration ==========

@dataclass(frozen=True)
class OldUtxoDeclaration:
    """Balances of legacy addresses imported at genesis."""

    addrs: Tuple[Tuple[Value, bytes], ...]

    def __post_init__(self):
        entries = tuple((v, bytes(a)) for v, a in self.addrs)
        if len(entries) > 0xFF:
            raise MalformedInputError("too many legacy utxo declarations")
        for value, addr in entries:
            if not isinstance(value, Value):
                raise TypeError("declared value must be a Value")
            if len(addr) > 0xFFFF:
                raise MalformedInputError("legacy address too long")
        object.__setattr__(self, "addrs", entries)

    def size(self) -> int:
        return len(self.addrs)

    def _entry(self, index: int) -> Tuple[Value, bytes]:
        if not 0 <= index < len(self.addrs):
            raise IndexError(f"declaration index {index} out of range 0..{len(self.addrs) - 1}")
        return self.addrs[index]

    def get_address(self, index: int) -> str:
        return base58.b58encode(self._entry(index)[1]).decode("ascii")

    def get_address_bytes(self, index: int) -> bytes:
        return self._entry(index)[1]

    def get_value(self, index: int) -> Value:
        return self._entry(index)[0]

    def as_bytes(self) -> bytes:
        out = u8(len(self.addrs))
        for value, addr in self.addrs:
            out += value.to_bytes() + u16_be(len(addr)) + addr
        return out

    @classmethod
    def read(cls, buf: ReadBuf) -> "OldUtxoDeclaration":
        count = buf.get_u8()
        entries = []
        for _ in range(count):
            value = Value.read(buf)
            entries.append((value, buf.get_bytes(buf.get_u16())))
        return cls(tuple(entries))


# ========== Fragment ==========

FragmentPayload = Union[SignedTransaction, OldUtxoDeclaration, bytes]


@dataclass(frozen=True)
class Fragment:
    kind: FragmentKind
    payload: FragmentPayload = field(repr=False)

    def __post_init__(self):
        kind = FragmentKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind.carries_transaction():
            if not isinstance(self.payload, SignedTransaction):
                raise TypeError(f"{kind.name} fragment needs a SignedTransaction")
            if int(self.payload.payload_kind) != int(kind):
                raise MalformedInputError(
                    f"{kind.name} fragment cannot carry a {self.payload.payload_kind.name} transaction")
        elif kind is FragmentKind.OLD_UTXO_DECLARATION:
            if not isinstance(self.payload, OldUtxoDeclaration):
                raise TypeError("OLD_UTXO_DECLARATION fragment needs an OldUtxoDeclaration")
        else:
            if not isinstance(self.payload, (bytes, bytearray, memoryview)):
                raise TypeError(f"{kind.name} fragment needs a bytes payload")
            object.__setattr__(self, "payload", bytes(self.payload))

    # -------- Constructors ----------

    @classmethod
    def from_transaction(cls, tx: SignedTransaction) -> "Fragment":
        return cls(FragmentKind(int(tx.payload_kind)), tx)

    @classmethod
    def from_old_utxo_declaration(cls, declaration: OldUtxoDeclaration) -> "Fragment":
        return cls(FragmentKind.OLD_UTXO_DECLARATION, declaration)

    @classmethod
    def opaque(cls, kind: FragmentKind, payload: bytes) -> "Fragment":
        if FragmentKind(kind) not in _OPAQUE_KINDS:
            raise WrongVariantError(f"{FragmentKind(kind).name} fragments are not opaque")
        return cls(kind, payload)

    # -------- Accessors ----------

    def get_transaction(self) -> SignedTransaction:
        if not self.kind.carries_transaction():
            raise WrongVariantError(f"{self.kind.name} fragment is not a transaction")
        return self.payload

    def get_old_utxo_declaration(self) -> OldUtxoDeclaration:
        if self.kind is not FragmentKind.OLD_UTXO_DECLARATION:
            raise WrongVariantError(f"{self.kind.name} fragment is not an old utxo declaration")
        return self.payload

    def get_opaque_payload(self) -> bytes:
        if self.kind not in _OPAQUE_KINDS:
            raise WrongVariantError(f"{self.kind.name} fragment payload is structured")
        return self.payload

    def is_initial(self) -> bool:
        return self.kind is FragmentKind.INITIAL

    def is_old_utxo_declaration(self) -> bool:
        return self.kind is FragmentKind.OLD_UTXO_DECLARATION

    def is_transaction(self) -> bool:
        return self.kind is FragmentKind.TRANSACTION

    def is_owner_stake_delegation(self) -> bool:
        return self.kind is FragmentKind.OWNER_STAKE_DELEGATION

    def is_stake_delegation(self) -> bool:
        return self.kind is FragmentKind.STAKE_DELEGATION

    def is_pool_registration(self) -> bool:
        return self.kind is FragmentKind.POOL_REGISTRATION

    def is_pool_retirement(self) -> bool:
        return self.kind is FragmentKind.POOL_RETIREMENT

    def is_pool_update(self) -> bool:
        return self.kind is FragmentKind.POOL_UPDATE

    def is_update_proposal(self) -> bool:
        return self.kind is FragmentKind.UPDATE_PROPOSAL

    def is_update_vote(self) -> bool:
        return self.kind is FragmentKind.UPDATE_VOTE

    # -------- Serde ----------

    def as_bytes(self) -> bytes:
        if isinstance(self.payload, bytes):
            return u8(self.kind) + self.payload
        return u8(self.kind) + self.payload.as_bytes()

    def id(self) -> FragmentId:
        return FragmentId.calculate(self.as_bytes())

    @classmethod
    def read(cls, buf: ReadBuf) -> "Fragment":
        """Consumes the buffer to its end; callers bound it to one fragment."""
        tag = buf.get_u8()
        try:
            kind = FragmentKind(tag)
        except ValueError:
            raise MalformedInputError(f"unknown fragment tag {tag}") from None
        if kind.carries_transaction():
            payload = SignedTransaction.read(buf, PayloadKind(int(kind)))
        elif kind is FragmentKind.OLD_UTXO_DECLARATION:
            payload = OldUtxoDeclaration.read(buf)
        else:
            payload = buf.get_bytes(buf.remaining())
        buf.expect_end(f"{kind.name} fragment")
        return cls(kind, payload)

    @classmethod
    def from_bytes(cls, data: bytes) -> "Fragment":
        frag = cls.read(ReadBuf(bytes(data)))
        log.trace("[from_bytes] %s fragment %s", frag.kind.name, frag.id().to_hex()[:16])
        return frag

    def __repr__(self):
        return f"<Fragment {self.kind.name} {self.id().to_hex()[:16]}…>"
