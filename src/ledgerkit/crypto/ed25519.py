# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC8032-Ed25519; BIP32-Ed25519; libsodium
"""
Ed25519 primitives on top of libsodium (PyNaCl).

Normal keys go through nacl.signing. Extended keys (kL || kR, as produced by
BIP32-Ed25519 derivation) have no seed, so signing is assembled from the
libsodium scalar and group bindings following RFC 8032 section 5.1.6 with
the expanded key supplied directly.
"""
from __future__ import annotations

import nacl.bindings as sodium
from nacl.exceptions import BadSignatureError
from nacl.signing import SigningKey, VerifyKey

from ..utils import config as CFG
from ..utils.helpers import sha512

_ZERO32 = b"\x00" * 32


def _reduce32(scalar: bytes) -> bytes:
    return sodium.crypto_core_ed25519_scalar_reduce(bytes(scalar) + _ZERO32)

def _reduce64(digest: bytes) -> bytes:
    return sodium.crypto_core_ed25519_scalar_reduce(bytes(digest))


# -----------------------------
# PUBLIC KEYS
# -----------------------------

def public_from_seed(seed: bytes) -> bytes:
    return bytes(SigningKey(bytes(seed)).verify_key)

def public_from_scalar(scalar: bytes) -> bytes:
    """Point for an unclamped little-endian scalar (first half of an extended key)."""
    return sodium.crypto_scalarmult_ed25519_base_noclamp(_reduce32(scalar))

def point_add(p: bytes, q: bytes) -> bytes:
    return sodium.crypto_core_ed25519_add(bytes(p), bytes(q))

def is_valid_point(p: bytes) -> bool:
    if len(p) != CFG.PUBLIC_KEY_SIZE:
        return False
    return bool(sodium.crypto_core_ed25519_is_valid_point(bytes(p)))


# -----------------------------
# EXTENDED SCALARS
# -----------------------------

def clamp_extended(key: bytes) -> bytes:
    """Clamp kL so that it is a multiple of 8 with bit 254 set and bits 253/255 clear."""
    k = bytearray(key)
    k[0] &= 0b1111_1000
    k[31] &= 0b0001_1111
    k[31] |= 0b0100_0000
    return bytes(k)

def is_clamped_extended(key: bytes) -> bool:
    return len(key) >= 32 and (key[0] & 0b0000_0111) == 0 and (key[31] & 0b1100_0000) == 0b0100_0000


# -----------------------------
# SIGN / VERIFY
# -----------------------------

def sign(seed: bytes, message: bytes) -> bytes:
    return SigningKey(bytes(seed)).sign(bytes(message)).signature

def sign_extended(extended: bytes, message: bytes) -> bytes:
    kl, kr = bytes(extended[:32]), bytes(extended[32:64])
    message = bytes(message)
    a = _reduce32(kl)
    pk = sodium.crypto_scalarmult_ed25519_base_noclamp(a)
    r = _reduce64(sha512(kr + message))
    big_r = sodium.crypto_scalarmult_ed25519_base_noclamp(r)
    h = _reduce64(sha512(big_r + pk + message))
    s = sodium.crypto_core_ed25519_scalar_add(r, sodium.crypto_core_ed25519_scalar_mul(h, a))
    return big_r + s

def verify(public_key: bytes, message: bytes, signature: bytes) -> bool:
    if len(public_key) != CFG.PUBLIC_KEY_SIZE or len(signature) != CFG.SIGNATURE_SIZE:
        return False
    try:
        VerifyKey(bytes(public_key)).verify(bytes(message), bytes(signature))
        return True
    except BadSignatureError:
        return False
