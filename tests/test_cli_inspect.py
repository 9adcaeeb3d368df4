# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP173; BIP32-Ed25519

import json
import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from apps.cli_inspect import main  # noqa: E402
from ledgerkit.core.address import Address, AddressDiscrimination  # noqa: E402
from ledgerkit.core.block import Block  # noqa: E402
from ledgerkit.core.fragment import Fragment, FragmentKind  # noqa: E402
from ledgerkit.core.hashes import BlockId  # noqa: E402
from ledgerkit.crypto.derivation import Bip32PrivateKey  # noqa: E402


def _run(capsys, *argv):
    code = main(list(argv))
    return code, capsys.readouterr()


def test_derive_prints_test_address(capsys):
    root = Bip32PrivateKey.from_bip39_entropy(b"\x05" * 16)
    code, out = _run(capsys, "derive", root.to_bech32(), "m/0/1", "--test")
    assert code == 0
    data = json.loads(out.out)
    child = root.derive(0).derive(1)
    assert data["xpub"] == child.to_public().to_bech32()
    assert data["address"].startswith("ta1")
    addr = Address.from_string(data["address"])
    assert addr.get_discrimination() is AddressDiscrimination.TEST
    assert addr.to_single_address().get_spending_key() == child.to_public().to_raw_key()


def test_address_command(capsys):
    root = Bip32PrivateKey.from_bip39_entropy(b"\x05" * 16)
    pk = root.to_public().to_raw_key()
    text = Address.account_from_public_key(pk, AddressDiscrimination.PRODUCTION).to_string("ca")
    code, out = _run(capsys, "address", text)
    assert code == 0
    data = json.loads(out.out)
    assert data["kind"] == "account"
    assert data["account_key"] == pk.to_bech32()


def test_fragment_command(capsys):
    frag = Fragment.opaque(FragmentKind.UPDATE_VOTE, b"\x01\x02")
    code, out = _run(capsys, "fragment", frag.as_bytes().hex())
    assert code == 0
    assert json.loads(out.out)["id"] == frag.id().to_hex()


def test_block_command(capsys, tmp_path):
    frag = Fragment.opaque(FragmentKind.INITIAL, b"\x00")
    block = Block.build([frag], BlockId(b"\x01" * 32), epoch=1, slot=2)
    path = tmp_path / "block.bin"
    path.write_bytes(block.as_bytes())
    code, out = _run(capsys, "block", str(path))
    assert code == 0
    data = json.loads(out.out)
    assert data["fragments"] == [frag.id().to_hex()]
    assert data["content_hash_valid"] is True


def test_errors_return_nonzero(capsys):
    code, out = _run(capsys, "fragment", "ff")
    assert code == 1
    assert out.err.startswith("error:")
    code, out = _run(capsys, "block", "/nonexistent/block.bin")
    assert code == 1
