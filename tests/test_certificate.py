# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md

import os
import sys

import pytest

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
SRC_ROOT = os.path.join(PROJECT_ROOT, "src")
for path in (PROJECT_ROOT, SRC_ROOT):
    if path not in sys.path:
        sys.path.append(path)

from ledgerkit.core.account import AccountIdentifier  # noqa: E402
from ledgerkit.core.certificate import (Certificate, CertificateKind, DelegationKind, DelegationRatio,  # noqa: E402
                                        DelegationType, GenesisPraosLeader, OwnerStakeDelegation,
                                        PoolDelegationRatio, PoolRegistration, PoolRetirement, PoolUpdate,
                                        StakeDelegation, TaxType)
from ledgerkit.core.errors import InvalidRatioSpecError, MalformedInputError, WrongVariantError  # noqa: E402
from ledgerkit.core.hashes import PoolId  # noqa: E402
from ledgerkit.core.value import U128, TimeOffsetSeconds, Value  # noqa: E402
from ledgerkit.crypto.keys import KesPublicKey, PrivateKey, VrfPublicKey  # noqa: E402

POOL_A = PoolId(b"\xaa" * 32)
POOL_B = PoolId(b"\xbb" * 32)
POOL_C = PoolId(b"\xcc" * 32)


def _pk(n: int):
    return PrivateKey.from_normal_bytes(bytes([n]) * 32).to_public()


def _leader(n: int = 1) -> GenesisPraosLeader:
    return GenesisPraosLeader.new(KesPublicKey(bytes([n]) * 32), VrfPublicKey(bytes([n + 1]) * 32))


def _registration(**overrides) -> PoolRegistration:
    fields = dict(
        serial=U128(1234),
        owners=(_pk(1), _pk(2)),
        operators=(_pk(3),),
        management_threshold=1,
        start_validity=TimeOffsetSeconds(0),
        rewards=TaxType(Value(100), 1, 10, Value(5000)),
        reward_account=AccountIdentifier.single_from_public_key(_pk(9)),
        keys=_leader(),
    )
    fields.update(overrides)
    return PoolRegistration(**fields)


# ---------------- Delegation ratio ----------------

def test_delegation_ratio_valid():
    ratio = DelegationRatio.new(10, [PoolDelegationRatio(POOL_A, 5), PoolDelegationRatio(POOL_B, 5)])
    assert ratio is not None
    assert ratio.parts == 10
    assert [p.pool for p in ratio.pools] == [POOL_A, POOL_B]


@pytest.mark.parametrize("parts,pools", [
    (10, [(POOL_A, 10)]),
    (10, [(POOL_A, 10), (POOL_B, 0)]),
    (10, [(POOL_A, 3), (POOL_B, 3)]),
    (3, [(POOL_A, 1), (POOL_B, 1), (POOL_C, 2)]),
    (0, []),
])
def test_delegation_ratio_invalid(parts, pools):
    specs = [PoolDelegationRatio(p, n) for p, n in pools]
    assert DelegationRatio.new(parts, specs) is None
    with pytest.raises(InvalidRatioSpecError):
        DelegationRatio.create(parts, specs)


def test_delegation_type_accessors():
    assert DelegationType.non_delegated().get_kind() is DelegationKind.NON_DELEGATED
    assert DelegationType.non_delegated().get_full() is None
    full = DelegationType.full(POOL_A)
    assert full.get_kind() is DelegationKind.FULL
    assert full.get_full() == POOL_A
    ratio = DelegationType.ratio(DelegationRatio.create(4, [PoolDelegationRatio(POOL_A, 1),
                                                            PoolDelegationRatio(POOL_B, 3)]))
    assert ratio.get_full() is None
    assert ratio.get_ratio().parts == 4


@pytest.mark.parametrize("delegation", [
    DelegationType.non_delegated(),
    DelegationType.full(POOL_A),
    DelegationType.ratio(DelegationRatio.create(3, [PoolDelegationRatio(POOL_A, 1), PoolDelegationRatio(POOL_B, 2)])),
])
def test_stake_delegation_bytes(delegation):
    cert = StakeDelegation.new(delegation, _pk(5))
    raw = cert.as_bytes()
    assert raw[:32] == _pk(5).as_bytes()
    back = StakeDelegation.from_bytes(raw)
    assert back == cert
    assert back.delegation_type() == delegation
    with pytest.raises(MalformedInputError):
        StakeDelegation.from_bytes(raw + b"\x00")


def test_ratio_with_bad_parts_rejected_on_wire():
    raw = b"\x00" * 32 + bytes([5, 2]) + POOL_A.as_bytes() + b"\x01" + POOL_B.as_bytes() + b"\x01"
    with pytest.raises(MalformedInputError):
        StakeDelegation.from_bytes(raw)


def test_owner_stake_delegation_bytes():
    cert = OwnerStakeDelegation.new(DelegationType.full(POOL_B))
    assert cert.as_bytes() == b"\x01" + POOL_B.as_bytes()
    assert OwnerStakeDelegation.from_bytes(cert.as_bytes()) == cert


# ---------------- Pools ----------------

def test_tax_type_rules():
    assert TaxType.zero().get_max_limit() is None
    with pytest.raises(MalformedInputError):
        TaxType(Value(0), 1, 0)
    with pytest.raises(MalformedInputError):
        TaxType(Value(0), 1, 2, Value(0))


def test_pool_registration_roundtrip():
    reg = _registration()
    assert PoolRegistration.from_bytes(reg.as_bytes()) == reg
    no_reward = _registration(reward_account=None, rewards=TaxType.zero())
    assert PoolRegistration.from_bytes(no_reward.as_bytes()) == no_reward
    multi = _registration(reward_account=AccountIdentifier.multi_from_bytes(b"\x07" * 32))
    assert PoolRegistration.from_bytes(multi.as_bytes()) == multi


def test_pool_id_ignores_non_identity_fields():
    base = _registration()
    assert base.id() == _registration(rewards=TaxType.zero()).id()
    assert base.id() == _registration(reward_account=None).id()
    assert base.id() == _registration(start_validity=TimeOffsetSeconds(99)).id()
    assert base.id() == _registration(management_threshold=2).id()
    assert base.id() != _registration(serial=U128(1235)).id()
    assert base.id() != _registration(owners=(_pk(1),)).id()
    assert base.id() != _registration(keys=_leader(7)).id()


@pytest.mark.parametrize("threshold", [0, 3])
def test_pool_registration_threshold(threshold):
    with pytest.raises(MalformedInputError):
        _registration(management_threshold=threshold)


def test_pool_registration_needs_owner():
    with pytest.raises(MalformedInputError):
        _registration(owners=())


def test_pool_retirement_and_update():
    retirement = PoolRetirement(POOL_A, TimeOffsetSeconds(86400))
    assert PoolRetirement.from_bytes(retirement.as_bytes()) == retirement
    assert len(retirement.as_bytes()) == 40

    old, new = _leader(1), _leader(3)
    update = PoolUpdate(POOL_A, TimeOffsetSeconds(10), old.digest(), new)
    back = PoolUpdate.from_bytes(update.as_bytes())
    assert back == update
    assert back.previous_keys == old.digest()
    assert back.updated_keys == new


# ---------------- Certificate wrapper ----------------

def test_certificate_wrapper():
    reg = _registration()
    cert = Certificate.stake_pool_registration(reg)
    assert cert.get_type() is CertificateKind.POOL_REGISTRATION
    assert cert.get_pool_registration() == reg
    assert cert.as_bytes() == reg.as_bytes()
    with pytest.raises(WrongVariantError):
        cert.get_stake_delegation()
    assert Certificate.from_bytes(cert.to_bytes()) == cert


@pytest.mark.parametrize("cert", [
    Certificate.stake_delegation(StakeDelegation.new(DelegationType.full(POOL_A), PrivateKey.from_normal_bytes(b"\x01" * 32).to_public())),
    Certificate.owner_stake_delegation(OwnerStakeDelegation.new(DelegationType.non_delegated())),
    Certificate.stake_pool_retirement(PoolRetirement(POOL_B, TimeOffsetSeconds(1))),
])
def test_certificate_standalone_form(cert):
    raw = cert.to_bytes()
    assert raw[0] == int(cert.get_type())
    assert Certificate.from_bytes(raw) == cert


def test_certificate_unknown_kind():
    with pytest.raises(MalformedInputError):
        Certificate.from_bytes(b"\x2a" + b"\x00" * 40)
