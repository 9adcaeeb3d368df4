# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC8032-Ed25519; BIP173
from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from enum import Enum

from ..core.errors import InvalidEncodingError, MalformedInputError, SignatureError
from ..utils import config as CFG
from ..utils.helpers import (ReadBuf, bech32_decode_bytes, bech32_decode_expect, bech32_encode_bytes,
                             expect_len, hex_to_bytes)
from . import ed25519


# ========== PublicKey ==========

@dataclass(frozen=True)
class PublicKey:
    """Ed25519 public key (single curve point)."""

    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", expect_len(self.data, CFG.PUBLIC_KEY_SIZE, "PublicKey"))

    @classmethod
    def from_bytes(cls, data: bytes) -> "PublicKey":
        return cls(bytes(data))

    @classmethod
    def read(cls, buf: ReadBuf) -> "PublicKey":
        return cls(buf.get_bytes(CFG.PUBLIC_KEY_SIZE))

    def as_bytes(self) -> bytes:
        return self.data

    @classmethod
    def from_bech32(cls, text: str) -> "PublicKey":
        return cls(bech32_decode_expect(text, CFG.HRP_ED25519_PK))

    def to_bech32(self) -> str:
        return bech32_encode_bytes(CFG.HRP_ED25519_PK, self.data)

    def verify(self, data: bytes, signature: "Signature") -> bool:
        return signature.verify(self, data)

    def __repr__(self) -> str:
        return f"<PublicKey {self.data.hex()[:16]}…>"


# ========== Signature ==========

class SignatureScheme(Enum):
    ED25519 = "ed25519"
    ED25519_BIP32 = "ed25519bip32"

    @property
    def hrp(self) -> str:
        if self is SignatureScheme.ED25519:
            return CFG.HRP_ED25519_SIG
        return CFG.HRP_ED25519BIP32_SIG


@dataclass(frozen=True)
class Signature:
    """
    A 64-byte signature tagged with the scheme that produced it.

    Every signature kind the ledger knows about (plain message, utxo
    witness, account witness, legacy utxo witness) shares this one type.
    The scheme only selects the bech32 prefix and which key form verifies it.
    """

    scheme: SignatureScheme
    data: bytes

    def __post_init__(self):
        if not isinstance(self.scheme, SignatureScheme):
            raise TypeError("scheme must be a SignatureScheme")
        object.__setattr__(self, "data", expect_len(self.data, CFG.SIGNATURE_SIZE, "Signature"))

    @classmethod
    def from_bytes(cls, data: bytes, scheme: SignatureScheme = SignatureScheme.ED25519) -> "Signature":
        return cls(scheme, bytes(data))

    @classmethod
    def read(cls, buf: ReadBuf, scheme: SignatureScheme) -> "Signature":
        return cls(scheme, buf.get_bytes(CFG.SIGNATURE_SIZE))

    @classmethod
    def from_hex(cls, text: str, scheme: SignatureScheme = SignatureScheme.ED25519) -> "Signature":
        return cls(scheme, hex_to_bytes(text))

    @classmethod
    def from_bech32(cls, text: str) -> "Signature":
        hrp, payload = bech32_decode_bytes(text)
        for scheme in SignatureScheme:
            if scheme.hrp == hrp:
                return cls(scheme, payload)
        raise InvalidEncodingError(f"unexpected bech32 prefix for a signature: {hrp!r}")

    def as_bytes(self) -> bytes:
        return self.data

    def to_hex(self) -> str:
        return self.data.hex()

    def to_bech32(self) -> str:
        return bech32_encode_bytes(self.scheme.hrp, self.data)

    def verify(self, public_key, message: bytes) -> bool:
        # Bip32 public keys verify through their raw point.
        raw = public_key.to_raw_key() if hasattr(public_key, "to_raw_key") else public_key
        if not isinstance(raw, PublicKey):
            raise TypeError("verify expects a PublicKey or Bip32PublicKey")
        return ed25519.verify(raw.data, message, self.data)


# ========== PrivateKey ==========

class PrivateKeyKind(Enum):
    NORMAL = "normal"
    EXTENDED = "extended"


@dataclass(frozen=True)
class PrivateKey:
    """
    Ed25519 signing key, either normal (32-byte seed) or extended
    (64-byte kL || kR, as produced by hierarchical derivation).
    """

    kind: PrivateKeyKind
    secret: bytes = field(repr=False)

    def __post_init__(self):
        if self.kind is PrivateKeyKind.NORMAL:
            object.__setattr__(self, "secret", expect_len(self.secret, CFG.SECRET_KEY_SIZE, "normal secret key"))
        elif self.kind is PrivateKeyKind.EXTENDED:
            secret = expect_len(self.secret, CFG.EXTENDED_SECRET_SIZE, "extended secret key")
            if not ed25519.is_clamped_extended(secret):
                raise MalformedInputError("extended secret key is not a clamped scalar")
            object.__setattr__(self, "secret", secret)
        else:
            raise TypeError("kind must be a PrivateKeyKind")

    @classmethod
    def generate_ed25519(cls) -> "PrivateKey":
        return cls(PrivateKeyKind.NORMAL, secrets.token_bytes(CFG.SECRET_KEY_SIZE))

    @classmethod
    def generate_ed25519extended(cls) -> "PrivateKey":
        return cls(PrivateKeyKind.EXTENDED, ed25519.clamp_extended(secrets.token_bytes(CFG.EXTENDED_SECRET_SIZE)))

    @classmethod
    def from_normal_bytes(cls, data: bytes) -> "PrivateKey":
        data = bytes(data)
        if len(data) == CFG.SECRET_KEYPAIR_SIZE:
            # libsodium layout: seed || public key
            seed, pub = data[:32], data[32:]
            if ed25519.public_from_seed(seed) != pub:
                raise MalformedInputError("normal secret key: public half does not match seed")
            data = seed
        return cls(PrivateKeyKind.NORMAL, data)

    @classmethod
    def from_extended_bytes(cls, data: bytes) -> "PrivateKey":
        return cls(PrivateKeyKind.EXTENDED, bytes(data))

    @classmethod
    def from_bech32(cls, text: str) -> "PrivateKey":
        hrp, payload = bech32_decode_bytes(text)
        if hrp == CFG.HRP_ED25519E_SK:
            return cls.from_extended_bytes(payload)
        if hrp == CFG.HRP_ED25519_SK:
            return cls.from_normal_bytes(payload)
        raise InvalidEncodingError("Invalid secret key")

    def to_bech32(self) -> str:
        if self.kind is PrivateKeyKind.EXTENDED:
            return bech32_encode_bytes(CFG.HRP_ED25519E_SK, self.secret)
        return bech32_encode_bytes(CFG.HRP_ED25519_SK, self.secret)

    def as_bytes(self) -> bytes:
        return self.secret

    def to_public(self) -> PublicKey:
        if self.kind is PrivateKeyKind.EXTENDED:
            return PublicKey(ed25519.public_from_scalar(self.secret[:32]))
        return PublicKey(ed25519.public_from_seed(self.secret))

    def sign(self, message: bytes) -> Signature:
        if self.kind is PrivateKeyKind.EXTENDED:
            return Signature(SignatureScheme.ED25519, ed25519.sign_extended(self.secret, message))
        return Signature(SignatureScheme.ED25519, ed25519.sign(self.secret, message))


# ========== Leader keys (opaque) ==========

@dataclass(frozen=True)
class KesPublicKey:
    """SumEd25519-12 public key. Only carried, never used for signing here."""

    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", expect_len(self.data, CFG.KES_PUBLIC_KEY_SIZE, "KesPublicKey"))

    @classmethod
    def from_bech32(cls, text: str) -> "KesPublicKey":
        try:
            return cls(bech32_decode_expect(text, CFG.HRP_KES_PK))
        except MalformedInputError as exc:
            raise InvalidEncodingError("Malformed kes public key") from exc

    def to_bech32(self) -> str:
        return bech32_encode_bytes(CFG.HRP_KES_PK, self.data)

    def as_bytes(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class VrfPublicKey:
    """Curve25519-2HashDH public key."""

    data: bytes

    def __post_init__(self):
        object.__setattr__(self, "data", expect_len(self.data, CFG.VRF_PUBLIC_KEY_SIZE, "VrfPublicKey"))

    @classmethod
    def from_bech32(cls, text: str) -> "VrfPublicKey":
        try:
            return cls(bech32_decode_expect(text, CFG.HRP_VRF_PK))
        except MalformedInputError as exc:
            raise InvalidEncodingError("Malformed vrf public key") from exc

    def to_bech32(self) -> str:
        return bech32_encode_bytes(CFG.HRP_VRF_PK, self.data)

    def as_bytes(self) -> bytes:
        return self.data


def ensure_signature(sig: Signature, scheme: SignatureScheme) -> Signature:
    if not isinstance(sig, Signature) or sig.scheme is not scheme:
        raise SignatureError(f"expected a {scheme.value} signature")
    return sig
