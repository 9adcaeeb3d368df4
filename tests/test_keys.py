# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC8032-Ed25519; BIP173

import hashlib
import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from ledgerkit.core.errors import InvalidChecksumError, InvalidEncodingError, MalformedInputError  # noqa: E402
from ledgerkit.crypto.keys import (KesPublicKey, PrivateKey, PrivateKeyKind, PublicKey, Signature,  # noqa: E402
                                   SignatureScheme)

SEED = bytes(range(32))
MESSAGE = b"ledgerkit signing test"


def _rfc8032_expand(seed: bytes) -> bytes:
    h = bytearray(hashlib.sha512(seed).digest())
    h[0] &= 248
    h[31] &= 127
    h[31] |= 64
    return bytes(h)


def _flip(data: bytes, index: int = 0) -> bytes:
    b = bytearray(data)
    b[index] ^= 0x01
    return bytes(b)


def test_normal_key_sign_verify():
    sk = PrivateKey.from_normal_bytes(SEED)
    pk = sk.to_public()
    sig = sk.sign(MESSAGE)
    assert sig.scheme is SignatureScheme.ED25519
    assert pk.verify(MESSAGE, sig)
    assert not pk.verify(MESSAGE + b"!", sig)


@pytest.mark.parametrize("index", [0, 5, 11, 21])
def test_altered_message_does_not_verify(index):
    for sk in (PrivateKey.from_normal_bytes(SEED), PrivateKey.from_extended_bytes(_rfc8032_expand(SEED))):
        sig = sk.sign(MESSAGE)
        assert sk.to_public().verify(MESSAGE, sig)
        assert not sk.to_public().verify(_flip(MESSAGE, index), sig)


@pytest.mark.parametrize("index", [0, 31, 32, 63])
def test_altered_signature_does_not_verify(index):
    sk = PrivateKey.generate_ed25519()
    sig = sk.sign(MESSAGE)
    altered = Signature(sig.scheme, _flip(sig.as_bytes(), index))
    assert not sk.to_public().verify(MESSAGE, altered)


def test_extended_signing_matches_rfc8032():
    normal = PrivateKey.from_normal_bytes(SEED)
    extended = PrivateKey.from_extended_bytes(_rfc8032_expand(SEED))
    assert extended.kind is PrivateKeyKind.EXTENDED
    assert extended.to_public() == normal.to_public()
    assert extended.sign(MESSAGE).as_bytes() == normal.sign(MESSAGE).as_bytes()


def test_generated_extended_key_verifies():
    sk = PrivateKey.generate_ed25519extended()
    sig = sk.sign(MESSAGE)
    assert sk.to_public().verify(MESSAGE, sig)


def test_normal_key_keypair_form():
    pk = PrivateKey.from_normal_bytes(SEED).to_public()
    sk = PrivateKey.from_normal_bytes(SEED + pk.as_bytes())
    assert sk.as_bytes() == SEED
    with pytest.raises(MalformedInputError):
        PrivateKey.from_normal_bytes(SEED + _flip(pk.as_bytes()))


@pytest.mark.parametrize("size", [0, 31, 33, 96])
def test_normal_key_wrong_size(size):
    with pytest.raises(MalformedInputError):
        PrivateKey.from_normal_bytes(b"\x01" * size)


def test_extended_key_must_be_clamped():
    bad = bytearray(_rfc8032_expand(SEED))
    bad[0] |= 0x01
    with pytest.raises(MalformedInputError):
        PrivateKey.from_extended_bytes(bytes(bad))


def test_private_key_bech32_roundtrip():
    normal = PrivateKey.from_normal_bytes(SEED)
    text = normal.to_bech32()
    assert text.startswith("ed25519_sk1")
    assert PrivateKey.from_bech32(text) == normal

    extended = PrivateKey.generate_ed25519extended()
    text = extended.to_bech32()
    assert text.startswith("ed25519e_sk1")
    assert PrivateKey.from_bech32(text) == extended


def test_private_key_bech32_rejects_other_prefix():
    pk_text = PrivateKey.from_normal_bytes(SEED).to_public().to_bech32()
    with pytest.raises(InvalidEncodingError):
        PrivateKey.from_bech32(pk_text)


def test_public_key_bech32_checksum():
    text = PrivateKey.from_normal_bytes(SEED).to_public().to_bech32()
    assert PublicKey.from_bech32(text).as_bytes() == PrivateKey.from_normal_bytes(SEED).to_public().as_bytes()
    last = "q" if text[-1] != "q" else "p"
    with pytest.raises(InvalidChecksumError):
        PublicKey.from_bech32(text[:-1] + last)


def test_signature_encodings():
    sig = PrivateKey.from_normal_bytes(SEED).sign(MESSAGE)
    assert Signature.from_hex(sig.to_hex()) == sig
    assert Signature.from_bech32(sig.to_bech32()) == sig
    assert sig.to_bech32().startswith("ed25519_sig1")
    with pytest.raises(MalformedInputError):
        Signature.from_bytes(sig.as_bytes()[:63])


def test_kes_key_bech32():
    kes = KesPublicKey(b"\x05" * 32)
    assert kes.to_bech32().startswith("kes25519-12-pk1")
    assert KesPublicKey.from_bech32(kes.to_bech32()) == kes
    with pytest.raises(InvalidEncodingError):
        KesPublicKey.from_bech32(PublicKey(b"\x05" * 32).to_bech32())
