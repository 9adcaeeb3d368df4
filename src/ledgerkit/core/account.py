# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from ..crypto import ed25519
from ..crypto.keys import PublicKey
from ..utils import config as CFG
from ..utils.helpers import ReadBuf, expect_len, hex_to_bytes
from .address import Address, AddressDiscrimination, AddressKind
from .errors import WrongVariantError


class AccountKind(Enum):
    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class AccountIdentifier:
    """
    An account the ledger keeps a balance for.

    SINGLE accounts are owned by one public key; MULTI accounts are
    identified by the 32-byte root of their multisig declaration.
    """

    kind: AccountKind
    key: Union[PublicKey, bytes]

    def __post_init__(self):
        if self.kind is AccountKind.SINGLE:
            if not isinstance(self.key, PublicKey):
                raise TypeError("single account needs a PublicKey")
        elif self.kind is AccountKind.MULTI:
            object.__setattr__(self, "key", expect_len(self.key, CFG.HASH_SIZE, "multisig account id"))
        else:
            raise TypeError("kind must be an AccountKind")

    @classmethod
    def single_from_public_key(cls, key: PublicKey) -> "AccountIdentifier":
        return cls(AccountKind.SINGLE, key)

    @classmethod
    def multi_from_bytes(cls, data: bytes) -> "AccountIdentifier":
        return cls(AccountKind.MULTI, bytes(data))

    @classmethod
    def from_address(cls, address: Address) -> "AccountIdentifier":
        if address.kind is AddressKind.ACCOUNT:
            return cls(AccountKind.SINGLE, PublicKey(address.payload))
        if address.kind is AddressKind.MULTISIG:
            return cls(AccountKind.MULTI, address.payload)
        raise WrongVariantError(f"{address.kind.name} address is not an account address")

    def to_address(self, discrimination: AddressDiscrimination) -> Address:
        if self.kind is AccountKind.SINGLE:
            return Address.account_from_public_key(self.key, discrimination)
        return Address.multisig_from_merkle_root(self.key, discrimination)

    def is_single(self) -> bool:
        return self.kind is AccountKind.SINGLE

    def get_public_key(self) -> PublicKey:
        if self.kind is not AccountKind.SINGLE:
            raise WrongVariantError("multisig account has no single public key")
        return self.key

    def as_bytes(self) -> bytes:
        return self.key.as_bytes() if self.kind is AccountKind.SINGLE else self.key

    def to_unspecified(self) -> "UnspecifiedAccountIdentifier":
        return UnspecifiedAccountIdentifier(self.as_bytes())

    def to_hex(self) -> str:
        return self.as_bytes().hex()


@dataclass(frozen=True)
class UnspecifiedAccountIdentifier:
    """
    32 bytes naming an account without saying which kind it is.

    Inputs and stake delegations carry only these bytes; whether they are
    a public key or a multisig id depends on the ledger state.
    """

    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", expect_len(self.data, CFG.HASH_SIZE, "account identifier"))

    @classmethod
    def from_bytes(cls, data: bytes) -> "UnspecifiedAccountIdentifier":
        return cls(bytes(data))

    @classmethod
    def from_hex(cls, text: str) -> "UnspecifiedAccountIdentifier":
        return cls(hex_to_bytes(text))

    @classmethod
    def read(cls, buf: ReadBuf) -> "UnspecifiedAccountIdentifier":
        return cls(buf.get_bytes(CFG.HASH_SIZE))

    def as_bytes(self) -> bytes:
        return self.data

    def to_hex(self) -> str:
        return self.data.hex()

    def to_account_single(self) -> AccountIdentifier:
        if not ed25519.is_valid_point(self.data):
            raise WrongVariantError("account identifier is not a valid public key")
        return AccountIdentifier(AccountKind.SINGLE, PublicKey(self.data))

    def to_account_multi(self) -> AccountIdentifier:
        return AccountIdentifier(AccountKind.MULTI, self.data)
