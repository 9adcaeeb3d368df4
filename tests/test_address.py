# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP173

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from ledgerkit.core.account import AccountIdentifier, AccountKind, UnspecifiedAccountIdentifier  # noqa: E402
from ledgerkit.core.address import Address, AddressDiscrimination, AddressKind  # noqa: E402
from ledgerkit.core.errors import (InvalidChecksumError, InvalidEncodingError, MalformedAddressError,  # noqa: E402
                                   MalformedInputError, WrongVariantError)
from ledgerkit.crypto.keys import PrivateKey  # noqa: E402

TEST = AddressDiscrimination.TEST
PROD = AddressDiscrimination.PRODUCTION
MERKLE_ROOT = bytes(range(32))


def _pk(n: int):
    return PrivateKey.from_normal_bytes(bytes([n]) * 32).to_public()


def _all_kinds(discrimination):
    return [
        Address.single_from_public_key(_pk(1), discrimination),
        Address.delegation_from_public_key(_pk(1), _pk(2), discrimination),
        Address.account_from_public_key(_pk(3), discrimination),
        Address.multisig_from_merkle_root(MERKLE_ROOT, discrimination),
    ]


def test_single_address_view():
    addr = Address.single_from_public_key(_pk(1), TEST)
    assert addr.get_kind() is AddressKind.SINGLE
    assert addr.get_discrimination() is TEST
    single = addr.to_single_address()
    assert single is not None
    assert single.get_spending_key() == _pk(1)
    assert addr.to_group_address() is None
    assert addr.to_account_address() is None
    assert addr.to_multisig_address() is None
    assert single.to_base_address() == addr


def test_group_address_view():
    addr = Address.delegation_from_public_key(_pk(1), _pk(2), PROD)
    group = addr.to_group_address()
    assert group.get_spending_key() == _pk(1)
    assert group.get_account_key() == _pk(2)
    assert addr.to_single_address() is None


@pytest.mark.parametrize("discrimination,tag_bit", [(TEST, 0x80), (PROD, 0x00)])
def test_tag_byte_layout(discrimination, tag_bit):
    sizes = [33, 65, 33, 33]
    kinds = [0x03, 0x04, 0x05, 0x06]
    for addr, size, kind in zip(_all_kinds(discrimination), sizes, kinds):
        raw = addr.as_bytes()
        assert len(raw) == size
        assert raw[0] == tag_bit | kind
        assert Address.from_bytes(raw) == addr


@pytest.mark.parametrize("prefix", ["ta", "ca", "addr", "anything"])
def test_string_roundtrip_any_prefix(prefix):
    for addr in _all_kinds(TEST):
        text = addr.to_string(prefix)
        assert text.startswith(prefix + "1")
        assert Address.from_string(text) == addr


def test_bad_checksum():
    text = Address.single_from_public_key(_pk(1), TEST).to_string("ta")
    last = "q" if text[-1] != "q" else "p"
    with pytest.raises(InvalidChecksumError):
        Address.from_string(text[:-1] + last)


@pytest.mark.parametrize("raw", [
    b"",
    bytes([0x83]) + b"\x00" * 31,
    bytes([0x84]) + b"\x00" * 32,
    bytes([0x07]) + b"\x00" * 32,
    bytes([0x83]) + b"\x00" * 33,
])
def test_malformed_address_bytes(raw):
    with pytest.raises(MalformedAddressError):
        Address.from_bytes(raw)


def test_multisig_root_must_be_32_bytes():
    with pytest.raises(MalformedInputError):
        Address.multisig_from_merkle_root(b"\x00" * 31, TEST)


def test_account_identifier_from_address():
    acc = AccountIdentifier.from_address(Address.account_from_public_key(_pk(3), TEST))
    assert acc.kind is AccountKind.SINGLE
    assert acc.get_public_key() == _pk(3)
    assert acc.to_address(TEST) == Address.account_from_public_key(_pk(3), TEST)

    multi = AccountIdentifier.from_address(Address.multisig_from_merkle_root(MERKLE_ROOT, PROD))
    assert multi.kind is AccountKind.MULTI
    assert multi.to_address(PROD).to_multisig_address().get_merkle_root() == MERKLE_ROOT
    with pytest.raises(WrongVariantError):
        multi.get_public_key()

    with pytest.raises(WrongVariantError):
        AccountIdentifier.from_address(Address.single_from_public_key(_pk(1), TEST))


def test_unspecified_account_identifier():
    acc = AccountIdentifier.single_from_public_key(_pk(4))
    unspecified = acc.to_unspecified()
    assert unspecified.to_hex() == _pk(4).as_bytes().hex()
    assert unspecified.to_account_single() == acc
    assert unspecified.to_account_multi().kind is AccountKind.MULTI

    not_a_point = UnspecifiedAccountIdentifier(b"\x00" * 32)
    with pytest.raises(WrongVariantError):
        not_a_point.to_account_single()
    assert not_a_point.to_account_multi().as_bytes() == b"\x00" * 32


def test_upper_case_prefix_roundtrip():
    addr = Address.single_from_public_key(_pk(1), TEST)
    text = addr.to_string("TA")
    assert text == addr.to_string("ta")
    assert Address.from_string(text) == addr
    assert Address.from_string(text.upper()) == addr


@pytest.mark.parametrize("prefix", ["", "Ta", "t a", "té", "x" * 84])
def test_invalid_prefix_rejected(prefix):
    with pytest.raises(InvalidEncodingError):
        Address.single_from_public_key(_pk(1), TEST).to_string(prefix)
