# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP32-Ed25519; BIP39; RFC2898-PBKDF2
"""
Hierarchical derivation of Ed25519 extended keys.

Derivation follows BIP32-Ed25519 (Khovratovich & Law) with the V2 scalar
arithmetic: child kL = kL + 8 * trunc28(zL), child kR = kR + zR, both
modulo 2^256, indices serialized little-endian.

Hard vs soft derivation
-----------------------
An index below 0x80000000 is soft: deriving the private key and then taking
its public key gives the same result as deriving the parent public key.
An index at or above 0x80000000 is hard and can only be derived from the
private key. Deriving a private key therefore never fails, while deriving a
public key fails for hard indices.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from typing import Iterable, Sequence, Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from mnemonic import Mnemonic

from ..core.errors import HardDerivationOnPublicKeyError, InvalidEncodingError, MalformedInputError
from ..utils import config as CFG
from ..utils.chain_logging import get_ctx_logger
from ..utils.helpers import (bech32_decode_expect, bech32_encode_bytes, expect_len, hmac_sha512,
                             int_to_little_endian, little_endian_to_int)
from . import ed25519
from .keys import PrivateKey, PrivateKeyKind, PublicKey, Signature, SignatureScheme

log = get_ctx_logger("ledgerkit.crypto(derivation)")

_MOD256 = 1 << 256


def is_hard_index(index: int) -> bool:
    return index >= CFG.HARD_DERIVATION_START

def _check_index(index: int) -> int:
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index <= CFG.MAX_DERIVATION_INDEX:
        raise MalformedInputError(f"derivation index must be a u32, got {index!r}")
    return index

def _add_28_mul8(x: bytes, y: bytes) -> bytes:
    total = (little_endian_to_int(x) + 8 * little_endian_to_int(y[:28])) % _MOD256
    return int_to_little_endian(total, 32)

def _add_256(x: bytes, y: bytes) -> bytes:
    return int_to_little_endian((little_endian_to_int(x) + little_endian_to_int(y)) % _MOD256, 32)

def _point_of_trunc28_mul8(zl: bytes) -> bytes:
    scalar = int_to_little_endian(8 * little_endian_to_int(zl[:28]), 32)
    return ed25519.public_from_scalar(scalar)


def derive_private(xprv: bytes, index: int) -> bytes:
    """Child xprv (kL || kR || chain code) for any index."""
    index = _check_index(index)
    ekey, chain_code = xprv[:64], xprv[64:96]
    idx = int_to_little_endian(index, 4)
    if is_hard_index(index):
        z = hmac_sha512(chain_code, b"\x00" + ekey + idx)
        i = hmac_sha512(chain_code, b"\x01" + ekey + idx)
    else:
        pk = ed25519.public_from_scalar(ekey[:32])
        z = hmac_sha512(chain_code, b"\x02" + pk + idx)
        i = hmac_sha512(chain_code, b"\x03" + pk + idx)
    left = _add_28_mul8(ekey[:32], z[:32])
    right = _add_256(ekey[32:64], z[32:64])
    return left + right + i[32:64]

def derive_public(xpub: bytes, index: int) -> bytes:
    """Child xpub (point || chain code). Hard indices are rejected."""
    index = _check_index(index)
    if is_hard_index(index):
        raise HardDerivationOnPublicKeyError(index)
    pk, chain_code = xpub[:32], xpub[32:64]
    idx = int_to_little_endian(index, 4)
    z = hmac_sha512(chain_code, b"\x02" + pk + idx)
    i = hmac_sha512(chain_code, b"\x03" + pk + idx)
    return ed25519.point_add(pk, _point_of_trunc28_mul8(z[:32])) + i[32:64]


def parse_path(path: Union[str, Iterable[int]]) -> list[int]:
    """"m/1852'/1815'/0'/0/5" or an iterable of raw indices."""
    if not isinstance(path, str):
        return [_check_index(int(i)) for i in path]
    parts = [p for p in path.strip().split("/") if p]
    if parts and parts[0] in ("m", "M"):
        parts = parts[1:]
    out = []
    for p in parts:
        hard = p.endswith(("'", "h", "H"))
        num = p[:-1] if hard else p
        if not num.isdigit():
            raise InvalidEncodingError(f"invalid derivation path component: {p!r}")
        n = int(num)
        if n >= CFG.HARD_DERIVATION_START:
            raise InvalidEncodingError(f"derivation path component out of range: {p!r}")
        out.append(n + CFG.HARD_DERIVATION_START if hard else n)
    return out


# ========== Bip32PublicKey ==========

@dataclass(frozen=True)
class Bip32PublicKey:
    data: bytes

    def __post_init__(self):
        data = expect_len(self.data, CFG.XPUB_SIZE, "Bip32PublicKey")
        if not ed25519.is_valid_point(data[:32]):
            raise MalformedInputError("Bip32PublicKey: not a valid curve point")
        object.__setattr__(self, "data", data)

    def derive(self, index: int) -> "Bip32PublicKey":
        return Bip32PublicKey(derive_public(self.data, index))

    def derive_path(self, path: Union[str, Sequence[int]]) -> "Bip32PublicKey":
        key = self
        for index in parse_path(path):
            key = key.derive(index)
        return key

    @property
    def chain_code(self) -> bytes:
        return self.data[32:]

    def to_raw_key(self) -> PublicKey:
        return PublicKey(self.data[:32])

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bip32PublicKey":
        return cls(bytes(data))

    def as_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_bech32(cls, text: str) -> "Bip32PublicKey":
        return cls(bech32_decode_expect(text, CFG.HRP_XPUB))

    def to_bech32(self) -> str:
        return bech32_encode_bytes(CFG.HRP_XPUB, self.data)


# ========== Bip32PrivateKey ==========

@dataclass(frozen=True)
class Bip32PrivateKey:
    data: bytes = field(repr=False)

    def __post_init__(self):
        data = expect_len(self.data, CFG.XPRV_SIZE, "Bip32PrivateKey")
        if not ed25519.is_clamped_extended(data):
            raise MalformedInputError("Bip32PrivateKey: scalar is not clamped")
        object.__setattr__(self, "data", data)

    def derive(self, index: int) -> "Bip32PrivateKey":
        child = Bip32PrivateKey(derive_private(self.data, index))
        log.trace("[derive] index=0x%08x hard=%s", index, is_hard_index(index))
        return child

    def derive_path(self, path: Union[str, Sequence[int]]) -> "Bip32PrivateKey":
        key = self
        for index in parse_path(path):
            key = key.derive(index)
        return key

    @classmethod
    def generate_ed25519_bip32(cls) -> "Bip32PrivateKey":
        return cls(ed25519.clamp_extended(secrets.token_bytes(CFG.XPRV_SIZE)))

    @classmethod
    def from_bip39_entropy(cls, entropy: bytes, password: bytes = b"") -> "Bip32PrivateKey":
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=CFG.BIP39_SEED_SIZE,
            salt=bytes(entropy),
            iterations=CFG.BIP39_PBKDF2_ITERATIONS,
        )
        return cls(ed25519.clamp_extended(kdf.derive(bytes(password))))

    @classmethod
    def from_mnemonic(cls, phrase: str, password: bytes = b"") -> "Bip32PrivateKey":
        mnemo = Mnemonic(CFG.BIP39_LANGUAGE)
        if not mnemo.check(phrase):
            raise InvalidEncodingError("Invalid mnemonic phrase")
        return cls.from_bip39_entropy(bytes(mnemo.to_entropy(phrase)), password)

    @property
    def chain_code(self) -> bytes:
        return self.data[64:]

    def to_raw_key(self) -> PrivateKey:
        return PrivateKey(PrivateKeyKind.EXTENDED, self.data[:64])

    def to_public(self) -> Bip32PublicKey:
        return Bip32PublicKey(ed25519.public_from_scalar(self.data[:32]) + self.chain_code)

    def sign(self, message: bytes) -> Signature:
        return Signature(SignatureScheme.ED25519_BIP32, ed25519.sign_extended(self.data[:64], message))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Bip32PrivateKey":
        return cls(bytes(data))

    def as_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_bech32(cls, text: str) -> "Bip32PrivateKey":
        try:
            return cls(bech32_decode_expect(text, CFG.HRP_XPRV))
        except MalformedInputError as exc:
            raise InvalidEncodingError("Invalid secret key") from exc

    def to_bech32(self) -> str:
        return bech32_encode_bytes(CFG.HRP_XPRV, self.data)


# ========== LegacyDaedalusPrivateKey ==========

@dataclass(frozen=True)
class LegacyDaedalusPrivateKey:
    """Legacy wallet key: an extended scalar plus chain code, used only for old utxo witnesses."""

    data: bytes = field(repr=False)

    def __post_init__(self):
        object.__setattr__(self, "data", expect_len(self.data, CFG.XPRV_SIZE, "LegacyDaedalusPrivateKey"))

    @classmethod
    def from_bytes(cls, data: bytes) -> "LegacyDaedalusPrivateKey":
        return cls(bytes(data))

    def as_bytes(self) -> bytes:
        return self.data

    def to_public(self) -> Bip32PublicKey:
        return Bip32PublicKey(ed25519.public_from_scalar(self.data[:32]) + self.data[64:])

    def sign(self, message: bytes) -> Signature:
        return Signature(SignatureScheme.ED25519_BIP32, ed25519.sign_extended(self.data[:64], message))
