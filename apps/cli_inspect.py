# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: BIP173; BIP32-Ed25519

import argparse, json, sys
from pathlib import Path

# ---------------- Local Project ----------------
from ledgerkit.core.address import Address, AddressDiscrimination
from ledgerkit.core.block import Block
from ledgerkit.core.errors import LedgerError
from ledgerkit.core.fragment import Fragment
from ledgerkit.crypto.derivation import Bip32PrivateKey
from ledgerkit.utils.helpers import hex_to_bytes
from ledgerkit.utils import config as CFG

from ledgerkit.utils.chain_logging import setup_logging, get_ctx_logger

log = get_ctx_logger("apps.cli_inspect")


def _print(obj) -> None:
    print(json.dumps(obj, indent=2))


def cmd_address(args) -> int:
    addr = Address.from_string(args.address)
    out = {
        "kind": addr.get_kind().name.lower(),
        "discrimination": addr.get_discrimination().value,
        "bytes": addr.as_bytes().hex(),}
    single = addr.to_single_address()
    group = addr.to_group_address()
    account = addr.to_account_address()
    if single is not None:
        out["spending_key"] = single.get_spending_key().to_bech32()
    elif group is not None:
        out["spending_key"] = group.get_spending_key().to_bech32()
        out["account_key"] = group.get_account_key().to_bech32()
    elif account is not None:
        out["account_key"] = account.get_account_key().to_bech32()
    else:
        out["merkle_root"] = addr.to_multisig_address().get_merkle_root().hex()
    _print(out)
    return 0


def cmd_fragment(args) -> int:
    frag = Fragment.from_bytes(hex_to_bytes(args.hex))
    out = {"kind": frag.kind.name.lower(), "id": frag.id().to_hex()}
    if frag.kind.carries_transaction():
        out["transaction"] = frag.get_transaction().to_dict()
    elif frag.is_old_utxo_declaration():
        decl = frag.get_old_utxo_declaration()
        out["declarations"] = [
            {"address": decl.get_address(i), "value": decl.get_value(i).to_str()} for i in range(decl.size())]
    _print(out)
    return 0


def cmd_block(args) -> int:
    block = Block.from_bytes(Path(args.file).read_bytes())
    out = block.to_dict()
    out["content_hash_valid"] = block.is_content_hash_valid()
    _print(out)
    return 0


def cmd_derive(args) -> int:
    root = Bip32PrivateKey.from_bech32(args.xprv)
    child = root.derive_path(args.path)
    pub = child.to_public()
    if args.test:
        discrimination, prefix = AddressDiscrimination.TEST, CFG.ADDRESS_PREFIX_TEST
    else:
        discrimination, prefix = AddressDiscrimination.PRODUCTION, CFG.ADDRESS_PREFIX_PROD
    address = Address.single_from_public_key(pub.to_raw_key(), discrimination)
    _print({
        "path": args.path,
        "xprv": child.to_bech32(),
        "xpub": pub.to_bech32(),
        "public_key": pub.to_raw_key().to_bech32(),
        "address": address.to_string(prefix),})
    return 0


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="LedgerKit inspector for addresses, fragments, blocks and keys")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("address", help="Decode a bech32 address")
    p.add_argument("address")
    p.set_defaults(func=cmd_address)

    p = sub.add_parser("fragment", help="Decode a hex encoded fragment")
    p.add_argument("hex")
    p.set_defaults(func=cmd_fragment)

    p = sub.add_parser("block", help="Decode a binary block file")
    p.add_argument("file")
    p.set_defaults(func=cmd_block)

    p = sub.add_parser("derive", help="Derive a child key from an xprv")
    p.add_argument("xprv", help="Bip32 private key (xprv1...)")
    p.add_argument("path", help="Derivation path, e.g. m/1852'/1815'/0'/0/0")
    p.add_argument("--test", action="store_true", help="Print a test-network address")
    p.set_defaults(func=cmd_derive)
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    try:
        return args.func(args)
    except (LedgerError, OSError) as exc:
        log.debug("[main] %s failed: %s", args.command, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    setup_logging(force=True)
    sys.exit(main())
