# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP173
"""
Tagged addresses.

Binary layout: one tag byte, then the kind payload.

    tag = (0x80 if Test else 0x00) | kind
    Single   0x03  spending key            32 bytes
    Group    0x04  spending + account key  64 bytes
    Account  0x05  account key             32 bytes
    Multisig 0x06  merkle root             32 bytes

The human readable form is bech32 over those bytes with a caller chosen
prefix; decoding accepts any prefix.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Tuple

from ..crypto.keys import PublicKey
from ..utils import config as CFG
from ..utils.helpers import ReadBuf, bech32_decode_bytes, bech32_encode_bytes, expect_len
from .errors import MalformedAddressError, MalformedInputError


class AddressDiscrimination(Enum):
    """Network tag; keeps a test address from being used in production."""

    PRODUCTION = "production"
    TEST = "test"


class AddressKind(IntEnum):
    SINGLE = CFG.ADDR_KIND_SINGLE
    GROUP = CFG.ADDR_KIND_GROUP
    ACCOUNT = CFG.ADDR_KIND_ACCOUNT
    MULTISIG = CFG.ADDR_KIND_MULTISIG


_PAYLOAD_SIZE = {
    AddressKind.SINGLE: CFG.ADDR_SIZE_SINGLE - 1,
    AddressKind.GROUP: CFG.ADDR_SIZE_GROUP - 1,
    AddressKind.ACCOUNT: CFG.ADDR_SIZE_ACCOUNT - 1,
    AddressKind.MULTISIG: CFG.ADDR_SIZE_MULTISIG - 1,
}


def _tag(discrimination: AddressDiscrimination, kind: AddressKind) -> int:
    bit = CFG.ADDR_TAG_TEST_BIT if discrimination is AddressDiscrimination.TEST else 0
    return bit | int(kind)

def _untag(tag: int) -> Tuple[AddressDiscrimination, AddressKind]:
    discrimination = AddressDiscrimination.TEST if tag & CFG.ADDR_TAG_TEST_BIT else AddressDiscrimination.PRODUCTION
    try:
        kind = AddressKind(tag & CFG.ADDR_KIND_MASK)
    except ValueError:
        raise MalformedAddressError(f"unknown address kind in tag byte 0x{tag:02x}") from None
    return discrimination, kind


# ========== Per-kind views ==========

@dataclass(frozen=True)
class SingleAddress:
    discrimination: AddressDiscrimination
    spending_key: PublicKey

    def get_spending_key(self) -> PublicKey:
        return self.spending_key

    def to_base_address(self) -> "Address":
        return Address.single_from_public_key(self.spending_key, self.discrimination)


@dataclass(frozen=True)
class GroupAddress:
    discrimination: AddressDiscrimination
    spending_key: PublicKey
    account_key: PublicKey

    def get_spending_key(self) -> PublicKey:
        return self.spending_key

    def get_account_key(self) -> PublicKey:
        return self.account_key

    def to_base_address(self) -> "Address":
        return Address.delegation_from_public_key(self.spending_key, self.account_key, self.discrimination)


@dataclass(frozen=True)
class AccountAddress:
    discrimination: AddressDiscrimination
    account_key: PublicKey

    def get_account_key(self) -> PublicKey:
        return self.account_key

    def to_base_address(self) -> "Address":
        return Address.account_from_public_key(self.account_key, self.discrimination)


@dataclass(frozen=True)
class MultisigAddress:
    discrimination: AddressDiscrimination
    merkle_root: bytes

    def get_merkle_root(self) -> bytes:
        return self.merkle_root

    def to_base_address(self) -> "Address":
        return Address.multisig_from_merkle_root(self.merkle_root, self.discrimination)


# ========== Address ==========

@dataclass(frozen=True)
class Address:
    """
    An address of any kind:
    * a utxo address without delegation (single)
    * a utxo address delegating to an account (group)
    * an account address
    * a multisig account address
    """

    discrimination: AddressDiscrimination
    kind: AddressKind
    payload: bytes

    def __post_init__(self):
        if not isinstance(self.discrimination, AddressDiscrimination):
            raise TypeError("discrimination must be an AddressDiscrimination")
        kind = AddressKind(self.kind)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "payload", expect_len(self.payload, _PAYLOAD_SIZE[kind], f"{kind.name} address payload"))

    # -------- Constructors ----------

    @classmethod
    def single_from_public_key(cls, key: PublicKey, discrimination: AddressDiscrimination) -> "Address":
        return cls(discrimination, AddressKind.SINGLE, key.as_bytes())

    @classmethod
    def delegation_from_public_key(cls, key: PublicKey, delegation: PublicKey,
                                   discrimination: AddressDiscrimination) -> "Address":
        """Utxo address whose stake is delegated to `delegation`'s account."""
        return cls(discrimination, AddressKind.GROUP, key.as_bytes() + delegation.as_bytes())

    @classmethod
    def account_from_public_key(cls, key: PublicKey, discrimination: AddressDiscrimination) -> "Address":
        return cls(discrimination, AddressKind.ACCOUNT, key.as_bytes())

    @classmethod
    def multisig_from_merkle_root(cls, merkle_root: bytes, discrimination: AddressDiscrimination) -> "Address":
        if len(merkle_root) != CFG.HASH_SIZE:
            raise MalformedInputError("Invalid merkle root size")
        return cls(discrimination, AddressKind.MULTISIG, bytes(merkle_root))

    # -------- Serde ----------

    def as_bytes(self) -> bytes:
        return bytes([_tag(self.discrimination, self.kind)]) + self.payload

    @classmethod
    def read(cls, buf: ReadBuf) -> "Address":
        try:
            discrimination, kind = _untag(buf.get_u8())
            return cls(discrimination, kind, buf.get_bytes(_PAYLOAD_SIZE[kind]))
        except MalformedAddressError:
            raise
        except MalformedInputError as exc:
            raise MalformedAddressError(f"truncated address: {exc}") from exc

    @classmethod
    def from_bytes(cls, data: bytes) -> "Address":
        buf = ReadBuf(bytes(data))
        addr = cls.read(buf)
        if not buf.is_end():
            raise MalformedAddressError(f"address has {buf.remaining()} trailing bytes")
        return addr

    def to_string(self, prefix: str) -> str:
        return bech32_encode_bytes(prefix, self.as_bytes())

    @classmethod
    def from_string(cls, text: str) -> "Address":
        _prefix, payload = bech32_decode_bytes(text)
        return cls.from_bytes(payload)

    # -------- Views ----------

    def get_discrimination(self) -> AddressDiscrimination:
        return self.discrimination

    def get_kind(self) -> AddressKind:
        return self.kind

    def to_single_address(self) -> Optional[SingleAddress]:
        if self.kind is not AddressKind.SINGLE:
            return None
        return SingleAddress(self.discrimination, PublicKey(self.payload))

    def to_group_address(self) -> Optional[GroupAddress]:
        if self.kind is not AddressKind.GROUP:
            return None
        return GroupAddress(self.discrimination, PublicKey(self.payload[:32]), PublicKey(self.payload[32:]))

    def to_account_address(self) -> Optional[AccountAddress]:
        if self.kind is not AddressKind.ACCOUNT:
            return None
        return AccountAddress(self.discrimination, PublicKey(self.payload))

    def to_multisig_address(self) -> Optional[MultisigAddress]:
        if self.kind is not AddressKind.MULTISIG:
            return None
        return MultisigAddress(self.discrimination, self.payload)

    def __repr__(self) -> str:
        return f"<Address {self.kind.name} {self.discrimination.name} {self.payload.hex()[:16]}…>"
