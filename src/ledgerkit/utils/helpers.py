# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP173; RFC7693-BLAKE2; RFC2104-HMAC
from __future__ import annotations
import hashlib, hmac
from typing import Tuple
from bech32 import CHARSET, bech32_encode, bech32_verify_checksum, convertbits

from ..core.errors import InvalidChecksumError, InvalidEncodingError, MalformedInputError


# -----------------------------
# HASHING
# -----------------------------

def blake2b256(data: bytes) -> bytes:
    return hashlib.blake2b(bytes(data), digest_size=32).digest()

def sha512(data: bytes) -> bytes:
    return hashlib.sha512(bytes(data)).digest()

def hmac_sha512(key: bytes, data: bytes) -> bytes:
    return hmac.new(bytes(key), bytes(data), hashlib.sha512).digest()


# -----------------------------
# ENDIANNESS
# -----------------------------

def u8(n: int) -> bytes:
    return int(n).to_bytes(1, "big")

def u16_be(n: int) -> bytes:
    return int(n).to_bytes(2, "big")

def u32_be(n: int) -> bytes:
    return int(n).to_bytes(4, "big")

def u64_be(n: int) -> bytes:
    return int(n).to_bytes(8, "big")

def u128_be(n: int) -> bytes:
    return int(n).to_bytes(16, "big")

def int_to_little_endian(n: int, length: int) -> bytes:
    return n.to_bytes(length, "little")

def little_endian_to_int(b: bytes) -> int:
    return int.from_bytes(b, "little")


# -----------------------------
# BYTE INPUT
# -----------------------------

def hex_to_bytes(s: str) -> bytes:
    try:
        return bytes.fromhex(s.strip())
    except ValueError as exc:
        raise InvalidEncodingError(f"invalid hex string: {exc}") from exc

def expect_len(data: bytes, size: int, what: str) -> bytes:
    data = bytes(data)
    if len(data) != size:
        raise MalformedInputError(f"{what}: expected {size} bytes, got {len(data)}")
    return data

def parse_decimal(s: str, bits: int, what: str) -> int:
    """Canonical unsigned base-10 text; no sign, no separators."""
    if not isinstance(s, str) or not s or not s.isascii() or not s.isdigit():
        raise InvalidEncodingError(f"{what}: not an unsigned decimal: {s!r}")
    n = int(s)
    if n >= (1 << bits):
        raise InvalidEncodingError(f"{what}: {s} does not fit in {bits} bits")
    return n


class ReadBuf:
    """Cursor over an immutable byte range. Every read is bounds-checked."""

    def __init__(self, data: bytes, start: int = 0, end: int | None = None):
        self.data = bytes(data) if not isinstance(data, bytes) else data
        self.pos = int(start)
        self.end = len(self.data) if end is None else int(end)

    def remaining(self) -> int:
        return self.end - self.pos

    def is_end(self) -> bool:
        return self.pos >= self.end

    def get_bytes(self, n: int) -> bytes:
        if n < 0 or self.pos + n > self.end:
            raise MalformedInputError(
                f"truncated input: need {n} bytes at offset {self.pos}, {self.remaining()} left")
        out = self.data[self.pos:self.pos + n]
        self.pos += n
        return out

    def get_u8(self) -> int:
        return self.get_bytes(1)[0]

    def get_u16(self) -> int:
        return int.from_bytes(self.get_bytes(2), "big")

    def get_u32(self) -> int:
        return int.from_bytes(self.get_bytes(4), "big")

    def get_u64(self) -> int:
        return int.from_bytes(self.get_bytes(8), "big")

    def get_u128(self) -> int:
        return int.from_bytes(self.get_bytes(16), "big")

    def expect_end(self, what: str = "input") -> None:
        if self.pos != self.end:
            raise MalformedInputError(f"{what}: {self.remaining()} trailing bytes")


# -----------------------------
# BECH32
# -----------------------------
# The reference decoder caps strings at 90 characters, which is too short for
# group addresses and key material, so only its checksum primitives are reused.

def _check_hrp(hrp: str) -> str:
    if not isinstance(hrp, str) or not hrp:
        raise InvalidEncodingError("empty bech32 prefix")
    if len(hrp) > 83:
        raise InvalidEncodingError(f"bech32 prefix longer than 83 characters: {len(hrp)}")
    if any(ord(c) < 33 or ord(c) > 126 for c in hrp):
        raise InvalidEncodingError(f"bech32 prefix contains invalid characters: {hrp!r}")
    if hrp.lower() != hrp and hrp.upper() != hrp:
        raise InvalidEncodingError(f"bech32 prefix mixes upper and lower case: {hrp!r}")
    return hrp.lower()

def bech32_encode_bytes(hrp: str, payload: bytes) -> str:
    hrp = _check_hrp(hrp)
    data = convertbits(bytes(payload), 8, 5, True)
    return bech32_encode(hrp, data)

def bech32_decode_bytes(text: str) -> Tuple[str, bytes]:
    if not isinstance(text, str) or not text:
        raise InvalidEncodingError("empty bech32 string")
    if any(ord(c) < 33 or ord(c) > 126 for c in text):
        raise InvalidEncodingError("bech32 string contains invalid characters")
    if text.lower() != text and text.upper() != text:
        raise InvalidEncodingError("bech32 string mixes upper and lower case")
    s = text.lower()
    pos = s.rfind("1")
    if pos < 1 or pos + 7 > len(s):
        raise InvalidEncodingError("bech32 separator missing or misplaced")
    hrp = s[:pos]
    try:
        data = [CHARSET.index(c) for c in s[pos + 1:]]
    except ValueError as exc:
        raise InvalidEncodingError("bech32 data part contains invalid characters") from exc
    if not bech32_verify_checksum(hrp, data):
        raise InvalidChecksumError(f"bech32 checksum mismatch for prefix {hrp!r}")
    decoded = convertbits(data[:-6], 5, 8, False)
    if decoded is None:
        raise InvalidEncodingError("bech32 payload has invalid padding")
    return hrp, bytes(decoded)

def bech32_decode_expect(text: str, hrp: str) -> bytes:
    got, payload = bech32_decode_bytes(text)
    if got != hrp:
        raise InvalidEncodingError(f"unexpected bech32 prefix: expected {hrp!r}, got {got!r}")
    return payload
