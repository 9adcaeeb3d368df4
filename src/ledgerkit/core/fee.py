# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..utils import config as CFG
from .value import Value


@dataclass(frozen=True)
class LinearFee:
    """fee = constant + coefficient * (inputs + outputs) [+ certificate]"""

    constant: Value
    coefficient: Value
    certificate: Value

    def __post_init__(self):
        for name in ("constant", "coefficient", "certificate"):
            v = getattr(self, name)
            if not isinstance(v, Value):
                object.__setattr__(self, name, Value(v))

    def calculate(self, has_certificate: bool, nb_inputs: int, nb_outputs: int) -> Value:
        fee = self.constant.checked_add(self.coefficient.checked_mul(int(nb_inputs) + int(nb_outputs)))
        if has_certificate:
            fee = fee.checked_add(self.certificate)
        return fee


class FeeVariant(Enum):
    LINEAR = "linear"


@dataclass(frozen=True)
class Fee:
    """Fee algorithm. Only the linear variant exists."""

    variant: FeeVariant
    algorithm: LinearFee

    @classmethod
    def linear_fee(cls, constant, coefficient, certificate) -> "Fee":
        return cls(FeeVariant.LINEAR, LinearFee(constant, coefficient, certificate))

    @classmethod
    def default(cls) -> "Fee":
        return cls.linear_fee(CFG.DEFAULT_FEE_CONSTANT, CFG.DEFAULT_FEE_COEFFICIENT, CFG.DEFAULT_FEE_CERTIFICATE)

    def calculate(self, tx) -> Value:
        """`tx` is anything exposing nb_inputs, nb_outputs and has_certificate()."""
        return self.algorithm.calculate(tx.has_certificate(), tx.nb_inputs, tx.nb_outputs)

    def calculate_for(self, has_certificate: bool, nb_inputs: int, nb_outputs: int) -> Value:
        return self.algorithm.calculate(has_certificate, nb_inputs, nb_outputs)
