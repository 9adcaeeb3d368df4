# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
"""
Stake and pool certificates.

Every certificate body is self-delimiting so it can be read from the tail
of a transaction body without a length prefix. Integers are big-endian.

    DelegationType       u8 0
                       | u8 1, pool_id(32)
                       | u8 parts(>=2), u8 count, count * (pool_id(32), u8 part)
    StakeDelegation      account_id(32), DelegationType
    OwnerStakeDelegation DelegationType
    PoolRegistration     u128 serial, u64 start_validity, u64 management_threshold,
                         u8 n_owners, u8 n_operators, owners(32 each), operators(32 each),
                         TaxType, reward account, kes_pk(32), vrf_pk(32)
    TaxType              u64 fixed, u64 numerator, u64 denominator, u64 max_limit (0 = none)
    reward account       u8 0 | u8 1, key(32) | u8 2, multisig id(32)
    PoolRetirement       pool_id(32), u64 retirement_time
    PoolUpdate           pool_id(32), u64 start_validity, previous_keys(32), kes_pk(32), vrf_pk(32)
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional, Sequence, Tuple, Union

from ..crypto.keys import KesPublicKey, PublicKey, VrfPublicKey
from ..utils import config as CFG
from ..utils.helpers import ReadBuf, u8, u64_be
from .account import AccountIdentifier, AccountKind, UnspecifiedAccountIdentifier
from .errors import InvalidRatioSpecError, MalformedInputError, WrongVariantError
from .hashes import GenesisPraosLeaderHash, PoolId
from .value import U128, TimeOffsetSeconds, Value


def _read_exact(cls, data: bytes):
    buf = ReadBuf(bytes(data))
    obj = cls.read(buf)
    buf.expect_end(cls.__name__)
    return obj


# ========== Delegation ==========

@dataclass(frozen=True)
class PoolDelegationRatio:
    pool: PoolId
    part: int

    def __post_init__(self):
        if not isinstance(self.pool, PoolId):
            raise TypeError("pool must be a PoolId")
        if isinstance(self.part, bool) or not isinstance(self.part, int) or not 0 <= self.part <= 0xFF:
            raise MalformedInputError(f"delegation part must be a u8, got {self.part!r}")


@dataclass(frozen=True)
class DelegationRatio:
    """
    Stake split across several pools.

    `parts` is the denominator; each pool gets `part / parts` of the stake.
    A valid ratio names at least two pools, gives each a non-zero part, and
    the parts add up to `parts` exactly.
    """

    parts: int
    pools: Tuple[PoolDelegationRatio, ...]

    def __post_init__(self):
        object.__setattr__(self, "pools", tuple(self.pools))
        reason = self._invalid_reason(self.parts, self.pools)
        if reason:
            raise InvalidRatioSpecError(reason)

    @staticmethod
    def _invalid_reason(parts: int, pools: Sequence[PoolDelegationRatio]) -> Optional[str]:
        if isinstance(parts, bool) or not isinstance(parts, int) or not 0 <= parts <= 0xFF:
            return f"parts must be a u8, got {parts!r}"
        if len(pools) < CFG.DELEGATION_RATIO_MIN_POOLS:
            return f"a ratio needs at least {CFG.DELEGATION_RATIO_MIN_POOLS} pools, got {len(pools)}"
        if len(pools) > 0xFF:
            return "too many pools in ratio"
        if any(p.part == 0 for p in pools):
            return "every pool part must be non-zero"
        total = sum(p.part for p in pools)
        if total != parts:
            return f"pool parts add up to {total}, expected {parts}"
        return None

    @classmethod
    def new(cls, parts: int, pools: Sequence[PoolDelegationRatio]) -> Optional["DelegationRatio"]:
        pools = tuple(pools)
        if cls._invalid_reason(parts, pools):
            return None
        return cls(parts, pools)

    @classmethod
    def create(cls, parts: int, pools: Sequence[PoolDelegationRatio]) -> "DelegationRatio":
        return cls(parts, tuple(pools))

    def to_bytes(self) -> bytes:
        out = u8(self.parts) + u8(len(self.pools))
        for p in self.pools:
            out += p.pool.as_bytes() + u8(p.part)
        return out


class DelegationKind(Enum):
    NON_DELEGATED = "non_delegated"
    FULL = "full"
    RATIO = "ratio"


@dataclass(frozen=True)
class DelegationType:
    kind: DelegationKind
    pool: Optional[PoolId] = None
    ratio_spec: Optional[DelegationRatio] = None

    def __post_init__(self):
        if self.kind is DelegationKind.FULL and not isinstance(self.pool, PoolId):
            raise TypeError("full delegation needs a PoolId")
        if self.kind is DelegationKind.RATIO and not isinstance(self.ratio_spec, DelegationRatio):
            raise TypeError("ratio delegation needs a DelegationRatio")

    @classmethod
    def non_delegated(cls) -> "DelegationType":
        return cls(DelegationKind.NON_DELEGATED)

    @classmethod
    def full(cls, pool_id: PoolId) -> "DelegationType":
        return cls(DelegationKind.FULL, pool=pool_id)

    @classmethod
    def ratio(cls, ratio: DelegationRatio) -> "DelegationType":
        return cls(DelegationKind.RATIO, ratio_spec=ratio)

    def get_kind(self) -> DelegationKind:
        return self.kind

    def get_full(self) -> Optional[PoolId]:
        return self.pool if self.kind is DelegationKind.FULL else None

    def get_ratio(self) -> Optional[DelegationRatio]:
        return self.ratio_spec if self.kind is DelegationKind.RATIO else None

    def to_bytes(self) -> bytes:
        if self.kind is DelegationKind.NON_DELEGATED:
            return u8(CFG.DELEGATION_TAG_NON_DELEGATED)
        if self.kind is DelegationKind.FULL:
            return u8(CFG.DELEGATION_TAG_FULL) + self.pool.as_bytes()
        return self.ratio_spec.to_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "DelegationType":
        tag = buf.get_u8()
        if tag == CFG.DELEGATION_TAG_NON_DELEGATED:
            return cls.non_delegated()
        if tag == CFG.DELEGATION_TAG_FULL:
            return cls.full(PoolId.read(buf))
        count = buf.get_u8()
        pools = [PoolDelegationRatio(PoolId.read(buf), buf.get_u8()) for _ in range(count)]
        ratio = DelegationRatio.new(tag, pools)
        if ratio is None:
            raise MalformedInputError("invalid delegation ratio on the wire")
        return cls.ratio(ratio)


# ========== Rewards & leader keys ==========

@dataclass(frozen=True)
class TaxType:
    """
    Pool operator tax: `fixed` first, then `numerator / denominator` of the
    remainder, capped at `max_limit` when one is set.
    """

    fixed: Value
    ratio_numerator: int
    ratio_denominator: int
    max_limit: Optional[Value] = None

    def __post_init__(self):
        if not isinstance(self.fixed, Value):
            object.__setattr__(self, "fixed", Value(self.fixed))
        for name in ("ratio_numerator", "ratio_denominator"):
            n = getattr(self, name)
            if isinstance(n, bool) or not isinstance(n, int) or not 0 <= n <= CFG.MAX_VALUE:
                raise MalformedInputError(f"TaxType {name} must be a u64, got {n!r}")
        if self.ratio_denominator == 0:
            raise MalformedInputError("TaxType ratio denominator must be non-zero")
        if self.max_limit is not None:
            limit = self.max_limit if isinstance(self.max_limit, Value) else Value(self.max_limit)
            if limit.amount == 0:
                raise MalformedInputError("TaxType max_limit must be positive; use None for no limit")
            object.__setattr__(self, "max_limit", limit)

    @classmethod
    def zero(cls) -> "TaxType":
        return cls(Value.zero(), 0, 1, None)

    def get_fixed(self) -> Value:
        return self.fixed

    def get_max_limit(self) -> Optional[Value]:
        return self.max_limit

    def to_bytes(self) -> bytes:
        limit = self.max_limit.amount if self.max_limit is not None else 0
        return (self.fixed.to_bytes() + u64_be(self.ratio_numerator)
                + u64_be(self.ratio_denominator) + u64_be(limit))

    @classmethod
    def read(cls, buf: ReadBuf) -> "TaxType":
        fixed = Value.read(buf)
        numerator = buf.get_u64()
        denominator = buf.get_u64()
        limit = buf.get_u64()
        return cls(fixed, numerator, denominator, Value(limit) if limit else None)


@dataclass(frozen=True)
class GenesisPraosLeader:
    kes_public_key: KesPublicKey
    vrf_public_key: VrfPublicKey

    @classmethod
    def new(cls, kes_public_key: KesPublicKey, vrf_public_key: VrfPublicKey) -> "GenesisPraosLeader":
        return cls(kes_public_key, vrf_public_key)

    def to_bytes(self) -> bytes:
        return self.kes_public_key.as_bytes() + self.vrf_public_key.as_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "GenesisPraosLeader":
        kes = KesPublicKey(buf.get_bytes(CFG.KES_PUBLIC_KEY_SIZE))
        vrf = VrfPublicKey(buf.get_bytes(CFG.VRF_PUBLIC_KEY_SIZE))
        return cls(kes, vrf)

    def digest(self) -> GenesisPraosLeaderHash:
        return GenesisPraosLeaderHash.calculate(self.to_bytes())


def _write_reward_account(account: Optional[AccountIdentifier]) -> bytes:
    if account is None:
        return u8(CFG.REWARD_ACCOUNT_NONE)
    if account.kind is AccountKind.SINGLE:
        return u8(CFG.REWARD_ACCOUNT_SINGLE) + account.as_bytes()
    return u8(CFG.REWARD_ACCOUNT_MULTI) + account.as_bytes()

def _read_reward_account(buf: ReadBuf) -> Optional[AccountIdentifier]:
    tag = buf.get_u8()
    if tag == CFG.REWARD_ACCOUNT_NONE:
        return None
    if tag == CFG.REWARD_ACCOUNT_SINGLE:
        return AccountIdentifier.single_from_public_key(PublicKey.read(buf))
    if tag == CFG.REWARD_ACCOUNT_MULTI:
        return AccountIdentifier.multi_from_bytes(buf.get_bytes(CFG.HASH_SIZE))
    raise MalformedInputError(f"unknown reward account tag {tag}")


# ========== Certificates ==========

@dataclass(frozen=True)
class StakeDelegation:
    account_id: UnspecifiedAccountIdentifier
    delegation: DelegationType

    @classmethod
    def new(cls, delegation_type: DelegationType, account: PublicKey) -> "StakeDelegation":
        return cls(UnspecifiedAccountIdentifier(account.as_bytes()), delegation_type)

    def delegation_type(self) -> DelegationType:
        return self.delegation

    def account(self) -> UnspecifiedAccountIdentifier:
        return self.account_id

    def as_bytes(self) -> bytes:
        return self.account_id.as_bytes() + self.delegation.to_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "StakeDelegation":
        account = UnspecifiedAccountIdentifier.read(buf)
        return cls(account, DelegationType.read(buf))

    @classmethod
    def from_bytes(cls, data: bytes) -> "StakeDelegation":
        return _read_exact(cls, data)


@dataclass(frozen=True)
class OwnerStakeDelegation:
    """Delegation of the stake held by the transaction's own input account."""

    delegation: DelegationType

    @classmethod
    def new(cls, delegation_type: DelegationType) -> "OwnerStakeDelegation":
        return cls(delegation_type)

    def delegation_type(self) -> DelegationType:
        return self.delegation

    def as_bytes(self) -> bytes:
        return self.delegation.to_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "OwnerStakeDelegation":
        return cls(DelegationType.read(buf))

    @classmethod
    def from_bytes(cls, data: bytes) -> "OwnerStakeDelegation":
        return _read_exact(cls, data)


@dataclass(frozen=True)
class PoolRegistration:
    serial: U128
    owners: Tuple[PublicKey, ...]
    operators: Tuple[PublicKey, ...]
    management_threshold: int
    start_validity: TimeOffsetSeconds
    rewards: TaxType
    reward_account: Optional[AccountIdentifier]
    keys: GenesisPraosLeader

    def __post_init__(self):
        object.__setattr__(self, "owners", tuple(self.owners))
        object.__setattr__(self, "operators", tuple(self.operators))
        if not self.owners:
            raise MalformedInputError("pool registration needs at least one owner")
        if len(self.owners) > 0xFF or len(self.operators) > 0xFF:
            raise MalformedInputError("too many pool owners or operators")
        t = self.management_threshold
        if isinstance(t, bool) or not isinstance(t, int) or not 1 <= t <= len(self.owners):
            raise MalformedInputError(
                f"management threshold must be in 1..{len(self.owners)}, got {t!r}")

    @classmethod
    def new(cls, serial: U128, owners: Sequence[PublicKey], operators: Sequence[PublicKey],
            management_threshold: int, start_validity: TimeOffsetSeconds,
            leader_keys: GenesisPraosLeader, rewards: Optional[TaxType] = None,
            reward_account: Optional[AccountIdentifier] = None) -> "PoolRegistration":
        return cls(serial, tuple(owners), tuple(operators), management_threshold, start_validity,
                   rewards or TaxType.zero(), reward_account, leader_keys)

    def id(self) -> PoolId:
        ident = self.serial.to_be_bytes()
        ident += b"".join(k.as_bytes() for k in self.owners)
        ident += b"".join(k.as_bytes() for k in self.operators)
        ident += self.keys.to_bytes()
        return PoolId.calculate(ident)

    def as_bytes(self) -> bytes:
        out = self.serial.to_be_bytes()
        out += self.start_validity.to_bytes()
        out += u64_be(self.management_threshold)
        out += u8(len(self.owners)) + u8(len(self.operators))
        out += b"".join(k.as_bytes() for k in self.owners)
        out += b"".join(k.as_bytes() for k in self.operators)
        out += self.rewards.to_bytes()
        out += _write_reward_account(self.reward_account)
        out += self.keys.to_bytes()
        return out

    @classmethod
    def read(cls, buf: ReadBuf) -> "PoolRegistration":
        serial = U128(buf.get_u128())
        start_validity = TimeOffsetSeconds.read(buf)
        threshold = buf.get_u64()
        n_owners = buf.get_u8()
        n_operators = buf.get_u8()
        owners = [PublicKey.read(buf) for _ in range(n_owners)]
        operators = [PublicKey.read(buf) for _ in range(n_operators)]
        rewards = TaxType.read(buf)
        reward_account = _read_reward_account(buf)
        keys = GenesisPraosLeader.read(buf)
        return cls(serial, tuple(owners), tuple(operators), threshold, start_validity,
                   rewards, reward_account, keys)

    @classmethod
    def from_bytes(cls, data: bytes) -> "PoolRegistration":
        return _read_exact(cls, data)


@dataclass(frozen=True)
class PoolRetirement:
    pool_id: PoolId
    retirement_time: TimeOffsetSeconds

    def as_bytes(self) -> bytes:
        return self.pool_id.as_bytes() + self.retirement_time.to_bytes()

    @classmethod
    def read(cls, buf: ReadBuf) -> "PoolRetirement":
        pool_id = PoolId.read(buf)
        return cls(pool_id, TimeOffsetSeconds.read(buf))

    @classmethod
    def from_bytes(cls, data: bytes) -> "PoolRetirement":
        return _read_exact(cls, data)


@dataclass(frozen=True)
class PoolUpdate:
    """Rotates a pool's leader keys; `previous_keys` must hash the keys being replaced."""

    pool_id: PoolId
    start_validity: TimeOffsetSeconds
    previous_keys: GenesisPraosLeaderHash
    updated_keys: GenesisPraosLeader

    def as_bytes(self) -> bytes:
        return (self.pool_id.as_bytes() + self.start_validity.to_bytes()
                + self.previous_keys.as_bytes() + self.updated_keys.to_bytes())

    @classmethod
    def read(cls, buf: ReadBuf) -> "PoolUpdate":
        pool_id = PoolId.read(buf)
        start_validity = TimeOffsetSeconds.read(buf)
        previous = GenesisPraosLeaderHash.read(buf)
        return cls(pool_id, start_validity, previous, GenesisPraosLeader.read(buf))

    @classmethod
    def from_bytes(cls, data: bytes) -> "PoolUpdate":
        return _read_exact(cls, data)


CertificatePayload = Union[StakeDelegation, OwnerStakeDelegation, PoolRegistration, PoolRetirement, PoolUpdate]


class CertificateKind(IntEnum):
    # same numbering as the fragment tags carrying them
    OWNER_STAKE_DELEGATION = CFG.FRAGMENT_TAG_OWNER_STAKE_DELEGATION
    STAKE_DELEGATION = CFG.FRAGMENT_TAG_STAKE_DELEGATION
    POOL_REGISTRATION = CFG.FRAGMENT_TAG_POOL_REGISTRATION
    POOL_RETIREMENT = CFG.FRAGMENT_TAG_POOL_RETIREMENT
    POOL_UPDATE = CFG.FRAGMENT_TAG_POOL_UPDATE

    @property
    def payload_class(self):
        return _PAYLOAD_CLASSES[self]


_PAYLOAD_CLASSES = {
    CertificateKind.OWNER_STAKE_DELEGATION: OwnerStakeDelegation,
    CertificateKind.STAKE_DELEGATION: StakeDelegation,
    CertificateKind.POOL_REGISTRATION: PoolRegistration,
    CertificateKind.POOL_RETIREMENT: PoolRetirement,
    CertificateKind.POOL_UPDATE: PoolUpdate,
}


@dataclass(frozen=True)
class Certificate:
    kind: CertificateKind
    payload: CertificatePayload = field(repr=False)

    def __post_init__(self):
        kind = CertificateKind(self.kind)
        if not isinstance(self.payload, kind.payload_class):
            raise TypeError(f"{kind.name} certificate needs a {kind.payload_class.__name__}")
        object.__setattr__(self, "kind", kind)

    @classmethod
    def from_payload(cls, payload: CertificatePayload) -> "Certificate":
        for kind, klass in _PAYLOAD_CLASSES.items():
            if isinstance(payload, klass):
                return cls(kind, payload)
        raise TypeError(f"not a certificate payload: {type(payload).__name__}")

    @classmethod
    def stake_delegation(cls, stake_delegation: StakeDelegation) -> "Certificate":
        return cls(CertificateKind.STAKE_DELEGATION, stake_delegation)

    @classmethod
    def owner_stake_delegation(cls, owner_stake: OwnerStakeDelegation) -> "Certificate":
        return cls(CertificateKind.OWNER_STAKE_DELEGATION, owner_stake)

    @classmethod
    def stake_pool_registration(cls, pool_registration: PoolRegistration) -> "Certificate":
        return cls(CertificateKind.POOL_REGISTRATION, pool_registration)

    @classmethod
    def stake_pool_retirement(cls, pool_retirement: PoolRetirement) -> "Certificate":
        return cls(CertificateKind.POOL_RETIREMENT, pool_retirement)

    @classmethod
    def stake_pool_update(cls, pool_update: PoolUpdate) -> "Certificate":
        return cls(CertificateKind.POOL_UPDATE, pool_update)

    def get_type(self) -> CertificateKind:
        return self.kind

    def _expect(self, kind: CertificateKind):
        if self.kind is not kind:
            raise WrongVariantError(f"certificate is {self.kind.name}, not {kind.name}")
        return self.payload

    def get_stake_delegation(self) -> StakeDelegation:
        return self._expect(CertificateKind.STAKE_DELEGATION)

    def get_owner_stake_delegation(self) -> OwnerStakeDelegation:
        return self._expect(CertificateKind.OWNER_STAKE_DELEGATION)

    def get_pool_registration(self) -> PoolRegistration:
        return self._expect(CertificateKind.POOL_REGISTRATION)

    def get_pool_retirement(self) -> PoolRetirement:
        return self._expect(CertificateKind.POOL_RETIREMENT)

    def get_pool_update(self) -> PoolUpdate:
        return self._expect(CertificateKind.POOL_UPDATE)

    def as_bytes(self) -> bytes:
        return self.payload.as_bytes()

    def to_bytes(self) -> bytes:
        return u8(self.kind) + self.payload.as_bytes()

    @classmethod
    def from_bytes(cls, data: bytes) -> "Certificate":
        buf = ReadBuf(bytes(data))
        tag = buf.get_u8()
        try:
            kind = CertificateKind(tag)
        except ValueError:
            raise MalformedInputError(f"unknown certificate kind {tag}") from None
        payload = kind.payload_class.read(buf)
        buf.expect_end("Certificate")
        return cls(kind, payload)
