# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: RFC8032-Ed25519; RFC7693-BLAKE2
"""
Transactions.

Body:
    u8 nb_inputs, u8 nb_outputs,
    nb_inputs  * [u8 index_or_account][u64 value][32 pointer]
    nb_outputs * [address bytes][u64 value]
    extra      (certificate body, or nothing)

The sign data hash is Blake2b-256 of the body. A signed transaction is the
body followed by one witness per input, in input order:

    u8 0 (old utxo) | 64 xpub | 64 sig
    u8 1 (utxo)     | 64 sig
    u8 2 (account)  | 64 sig

Witness messages are genesis_hash || sign_data_hash, with the u32
spending counter appended for account witnesses.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional, Sequence, Tuple, Union

from ..crypto.derivation import Bip32PrivateKey, Bip32PublicKey, LegacyDaedalusPrivateKey
from ..crypto.keys import PrivateKey, PublicKey, Signature, SignatureScheme, ensure_signature
from ..utils import config as CFG
from ..utils.chain_logging import get_ctx_logger
from ..utils.helpers import ReadBuf, bech32_decode_expect, bech32_encode_bytes, u8
from .account import AccountIdentifier, UnspecifiedAccountIdentifier
from .address import Address
from .certificate import Certificate, CertificateKind, CertificatePayload
from .errors import (MalformedInputError, SignatureError, TransactionBuildError, ValueArithmeticError,
                     WrongVariantError)
from .hashes import FragmentId, Hash, TransactionSignDataHash
from .value import SpendingCounter, Value

log = get_ctx_logger("ledgerkit.core(tx)")


# ========== Inputs & outputs ==========

@dataclass(frozen=True)
class UtxoPointer:
    fragment_id: FragmentId
    output_index: int
    value: Value

    def __post_init__(self):
        if not isinstance(self.fragment_id, FragmentId):
            raise TypeError("fragment_id must be a FragmentId")
        idx = self.output_index
        if isinstance(idx, bool) or not isinstance(idx, int) or not 0 <= idx < CFG.INPUT_ACCOUNT_MARKER:
            raise MalformedInputError(f"output index must be in 0..{CFG.INPUT_ACCOUNT_MARKER - 1}, got {idx!r}")

    @classmethod
    def new(cls, fragment_id: FragmentId, output_index: int, value: Value) -> "UtxoPointer":
        return cls(fragment_id, output_index, value)


class InputKind(Enum):
    UTXO = "utxo"
    ACCOUNT = "account"


@dataclass(frozen=True)
class Input:
    index_or_account: int
    amount: Value
    pointer: bytes

    def __post_init__(self):
        if not 0 <= int(self.index_or_account) <= 0xFF:
            raise MalformedInputError("index_or_account must be a u8")
        if not isinstance(self.amount, Value):
            raise TypeError("amount must be a Value")
        if len(self.pointer) != CFG.HASH_SIZE:
            raise MalformedInputError(f"input pointer must be {CFG.HASH_SIZE} bytes")
        object.__setattr__(self, "pointer", bytes(self.pointer))

    @classmethod
    def from_utxo(cls, utxo_pointer: UtxoPointer) -> "Input":
        return cls(utxo_pointer.output_index, utxo_pointer.value, utxo_pointer.fragment_id.as_bytes())

    @classmethod
    def from_account(cls, account: Union[AccountIdentifier, UnspecifiedAccountIdentifier], value: Value) -> "Input":
        return cls(CFG.INPUT_ACCOUNT_MARKER, value, account.as_bytes())

    def get_type(self) -> InputKind:
        return InputKind.ACCOUNT if self.index_or_account == CFG.INPUT_ACCOUNT_MARKER else InputKind.UTXO

    def is_account(self) -> bool:
        return self.get_type() is InputKind.ACCOUNT

    def is_utxo(self) -> bool:
        return self.get_type() is InputKind.UTXO

    def value(self) -> Value:
        return self.amount

    def get_utxo_pointer(self) -> UtxoPointer:
        if not self.is_utxo():
            raise WrongVariantError("input is an account input")
        return UtxoPointer(FragmentId(self.pointer), self.index_or_account, self.amount)

    def get_account_identifier(self) -> UnspecifiedAccountIdentifier:
        if not self.is_account():
            raise WrongVariantError("input is a utxo input")
        return UnspecifiedAccountIdentifier(self.pointer)

    def as_bytes(self) -> bytes:
        return u8(self.index_or_account) + self.amount.to_bytes() + self.pointer

    @classmethod
    def read(cls, buf: ReadBuf) -> "Input":
        index = buf.get_u8()
        value = Value.read(buf)
        return cls(index, value, buf.get_bytes(CFG.HASH_SIZE))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Input":
        buf = ReadBuf(bytes(data))
        inp = cls.read(buf)
        buf.expect_end("Input")
        return inp

    def to_dict(self) -> dict:
        return {
            "type": self.get_type().value,
            "index_or_account": self.index_or_account,
            "value": self.amount.amount,
            "pointer": self.pointer.hex(),}

    def __repr__(self):
        if self.is_account():
            return f"<Input account={self.pointer.hex()[:16]}… value={self.amount}>"
        return f"<Input {self.pointer.hex()[:16]}…:{self.index_or_account} value={self.amount}>"


@dataclass(frozen=True)
class Output:
    address: Address
    value: Value

    def __post_init__(self):
        if not isinstance(self.address, Address):
            raise TypeError("address must be an Address")
        if not isinstance(self.value, Value):
            raise TypeError("value must be a Value")

    def as_bytes(self) -> bytes:
        return self.address.as_bytes() + self.value.to_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "Output":
        address = Address.read(buf)
        return cls(address, Value.read(buf))

    def to_dict(self) -> dict:
        return {"address": self.address.as_bytes().hex(), "value": self.value.amount}

    def __repr__(self):
        return f"<Output {self.address.kind.name} value={self.value}>"


# ========== Balance ==========

class BalanceKind(Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    ZERO = "zero"


@dataclass(frozen=True)
class Balance:
    """Inputs minus outputs minus fee, kept as a sign plus a magnitude."""

    kind: BalanceKind
    value: Value

    @classmethod
    def compute(cls, inputs: Value, outputs: Value, fee: Value) -> "Balance":
        spent = outputs.checked_add(fee)
        if inputs > spent:
            return cls(BalanceKind.POSITIVE, inputs.checked_sub(spent))
        if inputs < spent:
            return cls(BalanceKind.NEGATIVE, spent.checked_sub(inputs))
        return cls(BalanceKind.ZERO, Value.zero())

    def get_sign(self) -> str:
        return self.kind.value

    def is_positive(self) -> bool:
        return self.kind is BalanceKind.POSITIVE

    def is_negative(self) -> bool:
        return self.kind is BalanceKind.NEGATIVE

    def is_zero(self) -> bool:
        return self.kind is BalanceKind.ZERO

    def get_value(self) -> Value:
        return self.value


# ========== Transaction ==========

class PayloadKind(IntEnum):
    # values are the fragment tags used to carry each kind of transaction
    NO_EXTRA = CFG.FRAGMENT_TAG_TRANSACTION
    OWNER_STAKE_DELEGATION = CFG.FRAGMENT_TAG_OWNER_STAKE_DELEGATION
    STAKE_DELEGATION = CFG.FRAGMENT_TAG_STAKE_DELEGATION
    POOL_REGISTRATION = CFG.FRAGMENT_TAG_POOL_REGISTRATION
    POOL_RETIREMENT = CFG.FRAGMENT_TAG_POOL_RETIREMENT
    POOL_UPDATE = CFG.FRAGMENT_TAG_POOL_UPDATE

    @property
    def certificate_kind(self) -> Optional[CertificateKind]:
        if self is PayloadKind.NO_EXTRA:
            return None
        return CertificateKind(int(self))

    @classmethod
    def of(cls, extra: Optional[CertificatePayload]) -> "PayloadKind":
        if extra is None:
            return cls.NO_EXTRA
        return cls(int(Certificate.from_payload(extra).kind))


def _check_counts(nb_inputs: int, nb_outputs: int, exc=MalformedInputError):
    if nb_inputs > CFG.MAX_TX_INPUTS:
        raise exc(f"too many inputs: {nb_inputs} > {CFG.MAX_TX_INPUTS}")
    if nb_outputs > CFG.MAX_TX_OUTPUTS:
        raise exc(f"too many outputs: {nb_outputs} > {CFG.MAX_TX_OUTPUTS}")


@dataclass(frozen=True)
class Transaction:
    """Unsigned transaction body. The payload kind is fixed by `extra`."""

    input_list: Tuple[Input, ...]
    output_list: Tuple[Output, ...]
    extra: Optional[CertificatePayload] = None
    payload_kind: PayloadKind = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "input_list", tuple(self.input_list))
        object.__setattr__(self, "output_list", tuple(self.output_list))
        _check_counts(len(self.input_list), len(self.output_list))
        object.__setattr__(self, "payload_kind", PayloadKind.of(self.extra))

    # -------- Accessors ----------

    def inputs(self) -> List[Input]:
        return list(self.input_list)

    def outputs(self) -> List[Output]:
        return list(self.output_list)

    @property
    def nb_inputs(self) -> int:
        return len(self.input_list)

    @property
    def nb_outputs(self) -> int:
        return len(self.output_list)

    def has_certificate(self) -> bool:
        return self.extra is not None

    def certificate(self) -> Optional[Certificate]:
        if self.extra is None:
            return None
        return Certificate.from_payload(self.extra)

    # -------- Balance helpers ----------

    def input_total(self) -> Value:
        return Value.sum(i.value() for i in self.input_list)

    def output_total(self) -> Value:
        return Value.sum(o.value for o in self.output_list)

    def balance(self, fee) -> Balance:
        return Balance.compute(self.input_total(), self.output_total(), fee.calculate(self))

    # -------- IDs ----------

    def id(self) -> TransactionSignDataHash:
        return TransactionSignDataHash.calculate(self.as_bytes())

    # -------- Serde ----------

    def as_bytes(self) -> bytes:
        out = u8(self.nb_inputs) + u8(self.nb_outputs)
        out += b"".join(i.as_bytes() for i in self.input_list)
        out += b"".join(o.as_bytes() for o in self.output_list)
        if self.extra is not None:
            out += self.extra.as_bytes()
        return out

    @classmethod
    def read(cls, buf: ReadBuf, payload_kind: PayloadKind = PayloadKind.NO_EXTRA) -> "Transaction":
        nb_inputs = buf.get_u8()
        nb_outputs = buf.get_u8()
        inputs = [Input.read(buf) for _ in range(nb_inputs)]
        outputs = [Output.read(buf) for _ in range(nb_outputs)]
        cert_kind = PayloadKind(payload_kind).certificate_kind
        extra = cert_kind.payload_class.read(buf) if cert_kind is not None else None
        return cls(tuple(inputs), tuple(outputs), extra)

    @classmethod
    def from_bytes(cls, data: bytes, payload_kind: PayloadKind = PayloadKind.NO_EXTRA) -> "Transaction":
        buf = ReadBuf(bytes(data))
        tx = cls.read(buf, payload_kind)
        buf.expect_end("Transaction")
        return tx

    def to_dict(self) -> dict:
        return {
            "id": self.id().to_hex(),
            "payload": self.payload_kind.name.lower(),
            "inputs": [i.to_dict() for i in self.input_list],
            "outputs": [o.to_dict() for o in self.output_list],
            "extra": self.extra.as_bytes().hex() if self.extra is not None else None,}

    def __repr__(self):
        return f"<Transaction {self.payload_kind.name} vin={self.nb_inputs} vout={self.nb_outputs}>"


# ========== Output policy ==========

class OutputPolicyKind(Enum):
    FORGET = "forget"
    ONE = "one"


@dataclass(frozen=True)
class OutputPolicy:
    """What to do with excess input when sealing a transaction."""

    kind: OutputPolicyKind
    address: Optional[Address] = None

    @classmethod
    def forget(cls) -> "OutputPolicy":
        return cls(OutputPolicyKind.FORGET)

    @classmethod
    def one(cls, address: Address) -> "OutputPolicy":
        if not isinstance(address, Address):
            raise TypeError("change policy needs an Address")
        return cls(OutputPolicyKind.ONE, address)


# ========== Witness ==========

class WitnessKind(IntEnum):
    OLD_UTXO = CFG.WITNESS_TAG_OLD_UTXO
    UTXO = CFG.WITNESS_TAG_UTXO
    ACCOUNT = CFG.WITNESS_TAG_ACCOUNT


def _utxo_message(genesis_hash: Hash, sign_data_hash: TransactionSignDataHash) -> bytes:
    return genesis_hash.as_bytes() + sign_data_hash.as_bytes()

def _account_message(genesis_hash: Hash, sign_data_hash: TransactionSignDataHash,
                     spending_counter: SpendingCounter) -> bytes:
    return _utxo_message(genesis_hash, sign_data_hash) + spending_counter.to_bytes()

def _raw_private(key) -> PrivateKey:
    if isinstance(key, PrivateKey):
        return key
    if isinstance(key, Bip32PrivateKey):
        return key.to_raw_key()
    raise TypeError(f"expected a PrivateKey, got {type(key).__name__}")


@dataclass(frozen=True)
class Witness:
    """
    Proof that the owner of an input authorised the transaction.

    UTXO and ACCOUNT witnesses are plain Ed25519 signatures checked
    against a key the ledger knows. OLD_UTXO witnesses carry their own
    legacy extended public key, since legacy addresses only commit to it.
    """

    kind: WitnessKind
    signature: Signature
    xpub: Optional[Bip32PublicKey] = None

    def __post_init__(self):
        kind = WitnessKind(self.kind)
        object.__setattr__(self, "kind", kind)
        if kind is WitnessKind.OLD_UTXO:
            ensure_signature(self.signature, SignatureScheme.ED25519_BIP32)
            if not isinstance(self.xpub, Bip32PublicKey):
                raise SignatureError("legacy utxo witness needs the signer's extended public key")
        else:
            ensure_signature(self.signature, SignatureScheme.ED25519)
            if self.xpub is not None:
                raise SignatureError(f"{kind.name} witness carries no public key")

    # -------- Constructors ----------

    @classmethod
    def for_utxo(cls, genesis_hash: Hash, transaction_id: TransactionSignDataHash,
                 secret_key: PrivateKey) -> "Witness":
        sig = _raw_private(secret_key).sign(_utxo_message(genesis_hash, transaction_id))
        return cls(WitnessKind.UTXO, sig)

    @classmethod
    def from_external_utxo(cls, witness: Signature) -> "Witness":
        return cls(WitnessKind.UTXO, witness)

    @classmethod
    def for_account(cls, genesis_hash: Hash, transaction_id: TransactionSignDataHash,
                    secret_key: PrivateKey, account_spending_counter: SpendingCounter) -> "Witness":
        msg = _account_message(genesis_hash, transaction_id, account_spending_counter)
        return cls(WitnessKind.ACCOUNT, _raw_private(secret_key).sign(msg))

    @classmethod
    def from_external_account(cls, witness: Signature) -> "Witness":
        return cls(WitnessKind.ACCOUNT, witness)

    @classmethod
    def for_legacy_icarus_utxo(cls, genesis_hash: Hash, transaction_id: TransactionSignDataHash,
                               secret_key: Bip32PrivateKey) -> "Witness":
        sig = secret_key.sign(_utxo_message(genesis_hash, transaction_id))
        return cls(WitnessKind.OLD_UTXO, sig, secret_key.to_public())

    @classmethod
    def from_external_legacy_icarus_utxo(cls, key: Bip32PublicKey, witness: Signature) -> "Witness":
        return cls(WitnessKind.OLD_UTXO, witness, key)

    @classmethod
    def for_legacy_daedalus_utxo(cls, genesis_hash: Hash, transaction_id: TransactionSignDataHash,
                                 secret_key: LegacyDaedalusPrivateKey) -> "Witness":
        sig = secret_key.sign(_utxo_message(genesis_hash, transaction_id))
        return cls(WitnessKind.OLD_UTXO, sig, secret_key.to_public())

    # -------- Verification ----------

    def verify(self, genesis_hash: Hash, sign_data_hash: TransactionSignDataHash,
               public_key: Optional[PublicKey] = None,
               spending_counter: Optional[SpendingCounter] = None) -> bool:
        if self.kind is WitnessKind.OLD_UTXO:
            return self.signature.verify(self.xpub, _utxo_message(genesis_hash, sign_data_hash))
        if public_key is None:
            raise SignatureError(f"{self.kind.name} witness needs the owner's public key to verify")
        if self.kind is WitnessKind.UTXO:
            return self.signature.verify(public_key, _utxo_message(genesis_hash, sign_data_hash))
        if spending_counter is None:
            raise SignatureError("account witness needs the spending counter to verify")
        return self.signature.verify(public_key, _account_message(genesis_hash, sign_data_hash, spending_counter))

    # -------- Serde ----------

    def as_bytes(self) -> bytes:
        out = u8(self.kind)
        if self.kind is WitnessKind.OLD_UTXO:
            out += self.xpub.as_bytes()
        return out + self.signature.as_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "Witness":
        tag = buf.get_u8()
        try:
            kind = WitnessKind(tag)
        except ValueError:
            raise MalformedInputError(f"unknown witness tag {tag}") from None
        if kind is WitnessKind.OLD_UTXO:
            xpub = Bip32PublicKey(buf.get_bytes(CFG.XPUB_SIZE))
            return cls(kind, Signature.read(buf, SignatureScheme.ED25519_BIP32), xpub)
        return cls(kind, Signature.read(buf, SignatureScheme.ED25519))

    @classmethod
    def from_bytes(cls, data: bytes) -> "Witness":
        buf = ReadBuf(bytes(data))
        w = cls.read(buf)
        buf.expect_end("Witness")
        return w

    def to_bech32(self) -> str:
        return bech32_encode_bytes(CFG.HRP_WITNESS, self.as_bytes())

    @classmethod
    def from_bech32(cls, text: str) -> "Witness":
        return cls.from_bytes(bech32_decode_expect(text, CFG.HRP_WITNESS))

    def __repr__(self):
        return f"<Witness {self.kind.name} sig={self.signature.to_hex()[:16]}…>"


# ========== Signed transaction ==========

@dataclass(frozen=True)
class SignedTransaction:
    transaction: Transaction
    witness_list: Tuple[Witness, ...]

    def __post_init__(self):
        object.__setattr__(self, "witness_list", tuple(self.witness_list))
        if len(self.witness_list) != self.transaction.nb_inputs:
            raise TransactionBuildError(
                f"expected {self.transaction.nb_inputs} witnesses, got {len(self.witness_list)}")

    def id(self) -> TransactionSignDataHash:
        return self.transaction.id()

    def inputs(self) -> List[Input]:
        return self.transaction.inputs()

    def outputs(self) -> List[Output]:
        return self.transaction.outputs()

    def witnesses(self) -> List[Witness]:
        return list(self.witness_list)

    def certificate(self) -> Optional[Certificate]:
        return self.transaction.certificate()

    @property
    def payload_kind(self) -> PayloadKind:
        return self.transaction.payload_kind

    @property
    def nb_inputs(self) -> int:
        return self.transaction.nb_inputs

    @property
    def nb_outputs(self) -> int:
        return self.transaction.nb_outputs

    def has_certificate(self) -> bool:
        return self.transaction.has_certificate()

    def verify(self, genesis_hash: Hash, keys: Sequence[Optional[PublicKey]],
               spending_counters: Optional[Sequence[Optional[SpendingCounter]]] = None) -> bool:
        """
        Check every witness against its input's owner key.

        `keys[i]` is the key owning input i (ignored for legacy witnesses,
        which carry their own); `spending_counters[i]` is only read for
        account witnesses.
        """
        if len(keys) != len(self.witness_list):
            raise SignatureError(f"need {len(self.witness_list)} keys, got {len(keys)}")
        counters = list(spending_counters) if spending_counters is not None else [None] * len(keys)
        if len(counters) != len(self.witness_list):
            raise SignatureError(f"need {len(self.witness_list)} spending counters, got {len(counters)}")
        sign_data_hash = self.id()
        for i, witness in enumerate(self.witness_list):
            if not witness.verify(genesis_hash, sign_data_hash, keys[i], counters[i]):
                log.debug("[verify] witness %d of %s does not verify", i, sign_data_hash.to_hex()[:16])
                return False
        return True

    def as_bytes(self) -> bytes:
        return self.transaction.as_bytes() + b"".join(w.as_bytes() for w in self.witness_list)

    @classmethod
    def read(cls, buf: ReadBuf, payload_kind: PayloadKind = PayloadKind.NO_EXTRA) -> "SignedTransaction":
        tx = Transaction.read(buf, payload_kind)
        witnesses = [Witness.read(buf) for _ in range(tx.nb_inputs)]
        return cls(tx, tuple(witnesses))

    @classmethod
    def from_bytes(cls, data: bytes, payload_kind: PayloadKind = PayloadKind.NO_EXTRA) -> "SignedTransaction":
        buf = ReadBuf(bytes(data))
        stx = cls.read(buf, payload_kind)
        buf.expect_end("SignedTransaction")
        return stx

    def to_dict(self) -> dict:
        d = self.transaction.to_dict()
        d["witnesses"] = [w.as_bytes().hex() for w in self.witness_list]
        return d

    def __repr__(self):
        return f"<SignedTransaction {self.id().to_hex()[:16]}… vin={self.nb_inputs} vout={self.nb_outputs}>"


# ========== Builder / finalizer ==========

class TransactionBuilder:
    """Accumulates inputs and outputs, then seals them into a Transaction."""

    def __init__(self, extra: Optional[CertificatePayload] = None):
        if extra is not None:
            Certificate.from_payload(extra)
        self.extra = extra
        self._inputs: List[Input] = []
        self._outputs: List[Output] = []

    @classmethod
    def new_payload(cls, certificate: Certificate) -> "TransactionBuilder":
        return cls(certificate.payload)

    def add_input(self, input: Input) -> None:
        if len(self._inputs) >= CFG.MAX_TX_INPUTS:
            raise TransactionBuildError(f"transaction already has {CFG.MAX_TX_INPUTS} inputs")
        self._inputs.append(input)

    def add_output(self, address: Address, value: Value) -> None:
        if len(self._outputs) >= CFG.MAX_TX_OUTPUTS:
            raise TransactionBuildError(f"transaction already has {CFG.MAX_TX_OUTPUTS} outputs")
        self._outputs.append(Output(address, value))

    @property
    def nb_inputs(self) -> int:
        return len(self._inputs)

    @property
    def nb_outputs(self) -> int:
        return len(self._outputs)

    def has_certificate(self) -> bool:
        return self.extra is not None

    def get_input_total(self) -> Value:
        return Value.sum(i.value() for i in self._inputs)

    def get_output_total(self) -> Value:
        return Value.sum(o.value for o in self._outputs)

    def estimate_fee(self, fee) -> Value:
        return fee.calculate(self)

    def get_balance(self, fee) -> Balance:
        return Balance.compute(self.get_input_total(), self.get_output_total(), self.estimate_fee(fee))

    def seal(self) -> Transaction:
        return Transaction(tuple(self._inputs), tuple(self._outputs), self.extra)

    def seal_with_output_policy(self, fee, output_policy: OutputPolicy) -> Transaction:
        try:
            balance = self.get_balance(fee)
        except ValueArithmeticError as exc:
            raise TransactionBuildError(f"cannot balance transaction: {exc}") from exc
        if balance.is_negative():
            raise TransactionBuildError(f"not enough input value to cover outputs and fee, missing {balance.value}")
        if balance.is_zero() or output_policy.kind is OutputPolicyKind.FORGET:
            return self.seal()

        excess = balance.value
        if self.nb_outputs >= CFG.MAX_TX_OUTPUTS:
            log.debug("[seal] no room for a change output, %s goes to fee", excess)
            return self.seal()
        fee_now = self.estimate_fee(fee)
        fee_with_change = fee.calculate_for(self.has_certificate(), self.nb_inputs, self.nb_outputs + 1)
        extra_cost = fee_with_change.checked_sub(fee_now)
        if excess <= extra_cost:
            log.debug("[seal] excess %s does not cover the change output cost %s", excess, extra_cost)
            return self.seal()
        change = Output(output_policy.address, excess.checked_sub(extra_cost))
        return Transaction(tuple(self._inputs), tuple(self._outputs) + (change,), self.extra)


class TransactionFinalizer:
    """Collects one witness per input of a sealed transaction."""

    def __init__(self, transaction: Transaction):
        self.transaction = transaction
        self._witnesses: List[Optional[Witness]] = [None] * transaction.nb_inputs

    def get_tx_sign_data_hash(self) -> TransactionSignDataHash:
        return self.transaction.id()

    def set_witness(self, index: int, witness: Witness) -> None:
        if not 0 <= index < len(self._witnesses):
            raise TransactionBuildError(f"witness index {index} out of range for {len(self._witnesses)} inputs")
        if not isinstance(witness, Witness):
            raise TypeError("set_witness expects a Witness")
        self._witnesses[index] = witness

    def finalize(self) -> SignedTransaction:
        missing = [i for i, w in enumerate(self._witnesses) if w is None]
        if missing:
            raise TransactionBuildError(f"missing witnesses for inputs {missing}")
        stx = SignedTransaction(self.transaction, tuple(self._witnesses))
        log.debug("[finalize] %s signed with %d witnesses", stx.id().to_hex()[:16], len(self._witnesses))
        return stx
