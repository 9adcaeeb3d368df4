# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC8032-Ed25519; RFC7693-BLAKE2

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from ledgerkit.core.account import AccountIdentifier  # noqa: E402
from ledgerkit.core.address import Address, AddressDiscrimination  # noqa: E402
from ledgerkit.core.certificate import DelegationType, OwnerStakeDelegation  # noqa: E402
from ledgerkit.core.errors import (MalformedInputError, SignatureError, TransactionBuildError,  # noqa: E402
                                   ValueArithmeticError, WrongVariantError)
from ledgerkit.core.fee import Fee, LinearFee  # noqa: E402
from ledgerkit.core.hashes import FragmentId, Hash, PoolId, TransactionSignDataHash  # noqa: E402
from ledgerkit.core.tx import (Balance, Input, InputKind, OutputPolicy, PayloadKind, SignedTransaction,  # noqa: E402
                               Transaction, TransactionBuilder, TransactionFinalizer, UtxoPointer, Witness,
                               WitnessKind)
from ledgerkit.core.value import SpendingCounter, Value  # noqa: E402
from ledgerkit.crypto.derivation import Bip32PrivateKey  # noqa: E402
from ledgerkit.crypto.keys import PrivateKey, Signature  # noqa: E402
from ledgerkit.utils.config import MAX_VALUE  # noqa: E402

GENESIS = Hash.calculate(b"genesis block")
FEE = Fee.linear_fee(Value(200_000), Value(50_000), Value(100_000))
TEST = AddressDiscrimination.TEST


def _sk(n: int) -> PrivateKey:
    return PrivateKey.from_normal_bytes(bytes([n]) * 32)


def _addr(n: int) -> Address:
    return Address.single_from_public_key(_sk(n).to_public(), TEST)


def _utxo_input(value: int, index: int = 0) -> Input:
    return Input.from_utxo(UtxoPointer.new(FragmentId.calculate(b"prev"), index, Value(value)))


def _builder(input_value: int, *outputs: int, extra=None) -> TransactionBuilder:
    builder = TransactionBuilder(extra)
    builder.add_input(_utxo_input(input_value))
    for i, v in enumerate(outputs):
        builder.add_output(_addr(10 + i), Value(v))
    return builder


def _sign_utxo(tx: Transaction, key: PrivateKey) -> SignedTransaction:
    finalizer = TransactionFinalizer(tx)
    for i in range(tx.nb_inputs):
        finalizer.set_witness(i, Witness.for_utxo(GENESIS, finalizer.get_tx_sign_data_hash(), key))
    return finalizer.finalize()


# ---------------- Fees ----------------

def test_linear_fee_scenario():
    tx = _builder(1_000_000, 100, 200).seal()
    assert FEE.calculate(tx) == Value(350_000)
    assert LinearFee(200_000, 50_000, 100_000).calculate(False, 1, 2) == Value(350_000)


def test_fee_with_certificate():
    cert = OwnerStakeDelegation.new(DelegationType.full(PoolId(b"\x01" * 32)))
    tx = _builder(1_000_000, 100, 200, extra=cert).seal()
    assert tx.payload_kind is PayloadKind.OWNER_STAKE_DELEGATION
    assert FEE.calculate(tx) == Value(450_000)


# ---------------- Inputs ----------------

def test_utxo_input_layout():
    inp = _utxo_input(1234, index=7)
    raw = inp.as_bytes()
    assert len(raw) == 41
    assert raw[0] == 7
    assert raw[1:9] == (1234).to_bytes(8, "big")
    assert raw[9:] == FragmentId.calculate(b"prev").as_bytes()
    assert inp.get_type() is InputKind.UTXO
    assert Input.from_bytes(raw) == inp
    assert inp.get_utxo_pointer().output_index == 7
    with pytest.raises(WrongVariantError):
        inp.get_account_identifier()


def test_account_input_layout():
    account = AccountIdentifier.single_from_public_key(_sk(3).to_public())
    inp = Input.from_account(account, Value(99))
    raw = inp.as_bytes()
    assert raw[0] == 0xFF
    assert inp.is_account() and not inp.is_utxo()
    assert inp.get_account_identifier().to_account_single() == account
    with pytest.raises(WrongVariantError):
        inp.get_utxo_pointer()


def test_utxo_pointer_index_range():
    with pytest.raises(MalformedInputError):
        UtxoPointer.new(FragmentId.calculate(b"x"), 255, Value(1))


# ---------------- Builder ----------------

def test_seal_keeps_balance():
    builder = _builder(1_000_000, 500_000)
    balance = builder.get_balance(FEE)
    assert balance.is_positive()
    assert balance.get_value() == Value(200_000)


def test_seal_with_change_output():
    builder = _builder(1_000_000, 500_000)
    change = _addr(99)
    tx = builder.seal_with_output_policy(FEE, OutputPolicy.one(change))
    assert tx.nb_outputs == 2
    assert tx.outputs()[-1].address == change
    assert tx.outputs()[-1].value == Value(150_000)
    assert tx.balance(FEE).is_zero()


def test_seal_forget_donates_excess():
    tx = _builder(1_000_000, 500_000).seal_with_output_policy(FEE, OutputPolicy.forget())
    assert tx.nb_outputs == 1
    assert tx.balance(FEE).get_value() == Value(200_000)


def test_seal_change_too_small_is_forgotten():
    tx = _builder(1_000_000, 660_000).seal_with_output_policy(FEE, OutputPolicy.one(_addr(99)))
    assert tx.nb_outputs == 1
    assert tx.balance(FEE).get_value() == Value(40_000)


def test_seal_exact_balance_unchanged():
    tx = _builder(1_000_000, 700_000).seal_with_output_policy(FEE, OutputPolicy.one(_addr(99)))
    assert tx.nb_outputs == 1
    assert tx.balance(FEE).is_zero()


def test_seal_not_enough_input():
    builder = _builder(300_000, 100)
    assert builder.get_balance(FEE).is_negative()
    with pytest.raises(TransactionBuildError):
        builder.seal_with_output_policy(FEE, OutputPolicy.forget())


def test_builder_output_limit():
    builder = TransactionBuilder()
    for _ in range(255):
        builder.add_output(_addr(1), Value(1))
    with pytest.raises(TransactionBuildError):
        builder.add_output(_addr(1), Value(1))


# ---------------- Transaction body ----------------

def test_sign_data_hash_is_body_hash():
    tx = _builder(1_000_000, 1, 2).seal()
    body = tx.as_bytes()
    assert body[0] == 1 and body[1] == 2
    assert tx.id() == TransactionSignDataHash.calculate(body)
    assert Transaction.from_bytes(body) == tx


def test_transaction_with_certificate_needs_payload_kind():
    cert = OwnerStakeDelegation.new(DelegationType.non_delegated())
    tx = _builder(1_000_000, 1, extra=cert).seal()
    assert Transaction.from_bytes(tx.as_bytes(), PayloadKind.OWNER_STAKE_DELEGATION) == tx
    assert tx.certificate().get_owner_stake_delegation() == cert
    with pytest.raises(MalformedInputError):
        Transaction.from_bytes(tx.as_bytes())


# ---------------- Witnesses ----------------

def test_utxo_witness_verify():
    tx = _builder(1_000_000, 1).seal()
    sk = _sk(1)
    w = Witness.for_utxo(GENESIS, tx.id(), sk)
    assert w.kind is WitnessKind.UTXO
    assert w.verify(GENESIS, tx.id(), sk.to_public())
    assert not w.verify(Hash.calculate(b"other chain"), tx.id(), sk.to_public())
    assert not w.verify(GENESIS, tx.id(), _sk(2).to_public())
    with pytest.raises(SignatureError):
        w.verify(GENESIS, tx.id())


def test_account_witness_binds_counter():
    tx = _builder(1_000_000, 1).seal()
    sk = _sk(4)
    w = Witness.for_account(GENESIS, tx.id(), sk, SpendingCounter.from_u32(5))
    assert w.verify(GENESIS, tx.id(), sk.to_public(), SpendingCounter.from_u32(5))
    assert not w.verify(GENESIS, tx.id(), sk.to_public(), SpendingCounter.from_u32(6))
    assert Witness.from_bytes(w.as_bytes()) == w
    assert w.as_bytes()[0] == 2


def test_external_witness_matches_internal():
    tx = _builder(1_000_000, 1).seal()
    sk = _sk(1)
    sig = sk.sign(GENESIS.as_bytes() + tx.id().as_bytes())
    assert Witness.from_external_utxo(sig) == Witness.for_utxo(GENESIS, tx.id(), sk)


def test_legacy_icarus_witness():
    tx = _builder(1_000_000, 1).seal()
    key = Bip32PrivateKey.from_bip39_entropy(b"\x01" * 16)
    w = Witness.for_legacy_icarus_utxo(GENESIS, tx.id(), key)
    assert w.kind is WitnessKind.OLD_UTXO
    assert w.verify(GENESIS, tx.id())
    raw = w.as_bytes()
    assert len(raw) == 1 + 64 + 64
    assert Witness.from_bytes(raw) == w
    assert Witness.from_bech32(w.to_bech32()) == w
    assert w.to_bech32().startswith("witness1")
    again = Witness.from_external_legacy_icarus_utxo(key.to_public(), w.signature)
    assert again == w


def test_altered_witness_fails():
    tx = _builder(1_000_000, 1).seal()
    sk = _sk(1)
    w = Witness.for_utxo(GENESIS, tx.id(), sk)
    raw = bytearray(w.signature.as_bytes())
    raw[10] ^= 0xFF
    altered = Witness.from_external_utxo(Signature.from_bytes(bytes(raw)))
    assert not altered.verify(GENESIS, tx.id(), sk.to_public())


def test_unknown_witness_tag():
    with pytest.raises(MalformedInputError):
        Witness.from_bytes(b"\x07" + b"\x00" * 64)


# ---------------- Finalizer ----------------

def test_finalizer_requires_every_witness():
    builder = _builder(600_000, 1)
    builder.add_input(_utxo_input(600_000, index=1))
    finalizer = TransactionFinalizer(builder.seal())
    finalizer.set_witness(0, Witness.for_utxo(GENESIS, finalizer.get_tx_sign_data_hash(), _sk(1)))
    with pytest.raises(TransactionBuildError):
        finalizer.finalize()
    with pytest.raises(TransactionBuildError):
        finalizer.set_witness(2, Witness.for_utxo(GENESIS, finalizer.get_tx_sign_data_hash(), _sk(1)))


def test_signed_transaction_roundtrip_and_verify():
    tx = _builder(1_000_000, 300_000).seal_with_output_policy(FEE, OutputPolicy.one(_addr(50)))
    stx = _sign_utxo(tx, _sk(1))
    assert stx.id() == tx.id()
    raw = stx.as_bytes()
    assert raw.startswith(tx.as_bytes())
    assert SignedTransaction.from_bytes(raw) == stx
    assert stx.verify(GENESIS, [_sk(1).to_public()])
    assert not stx.verify(GENESIS, [_sk(2).to_public()])
    with pytest.raises(MalformedInputError):
        SignedTransaction.from_bytes(raw + b"\x00")
    with pytest.raises(TransactionBuildError):
        SignedTransaction(tx, ())


def test_balance_shortfall_beyond_u64():
    with pytest.raises(ValueArithmeticError):
        Balance.compute(Value(0), Value(MAX_VALUE), Value(MAX_VALUE))
    builder = TransactionBuilder()
    builder.add_input(_utxo_input(1))
    builder.add_output(_addr(1), Value(MAX_VALUE))
    with pytest.raises(TransactionBuildError):
        builder.seal_with_output_policy(FEE, OutputPolicy.one(_addr(2)))


def test_verify_needs_a_counter_per_witness():
    stx = _sign_utxo(_builder(1_000_000, 1).seal(), _sk(1))
    with pytest.raises(SignatureError):
        stx.verify(GENESIS, [_sk(1).to_public()], [])
    assert stx.verify(GENESIS, [_sk(1).to_public()], [None])
