# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md
from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import ClassVar, Iterable

from ..utils import config as CFG
from ..utils.helpers import ReadBuf, expect_len, parse_decimal, u32_be, u64_be, u128_be
from .errors import ValueArithmeticError


# ========== Value ==========

@total_ordering
@dataclass(frozen=True)
class Value:
    """Unsigned 64-bit amount. Arithmetic is checked, never wraps."""

    amount: int = 0

    MAX: ClassVar["Value"]

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError("Value amount must be an integer")
        if not 0 <= self.amount <= CFG.MAX_VALUE:
            raise ValueArithmeticError(f"value {self.amount} out of u64 range")

    @classmethod
    def zero(cls) -> "Value":
        return cls(0)

    @classmethod
    def from_str(cls, s: str) -> "Value":
        return cls(parse_decimal(s, 64, "Value"))

    def to_str(self) -> str:
        return str(self.amount)

    def checked_add(self, other: "Value") -> "Value":
        total = self.amount + int(other)
        if total > CFG.MAX_VALUE:
            raise ValueArithmeticError(f"value overflow: {self.amount} + {int(other)}")
        return Value(total)

    def checked_sub(self, other: "Value") -> "Value":
        rest = self.amount - int(other)
        if rest < 0:
            raise ValueArithmeticError(f"value underflow: {self.amount} - {int(other)}")
        return Value(rest)

    def checked_mul(self, factor: int) -> "Value":
        total = self.amount * int(factor)
        if total > CFG.MAX_VALUE:
            raise ValueArithmeticError(f"value overflow: {self.amount} * {int(factor)}")
        return Value(total)

    @classmethod
    def sum(cls, values: Iterable["Value"]) -> "Value":
        acc = cls.zero()
        for v in values:
            acc = acc.checked_add(v)
        return acc

    def to_bytes(self) -> bytes:
        return u64_be(self.amount)

    @classmethod
    def read(cls, buf: ReadBuf) -> "Value":
        return cls(buf.get_u64())

    def __int__(self) -> int:
        return self.amount

    def __lt__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self.amount < other.amount

    def __str__(self) -> str:
        return self.to_str()


Value.MAX = Value(CFG.MAX_VALUE)


# ========== U128 ==========

@dataclass(frozen=True)
class U128:
    number: int

    def __post_init__(self):
        if isinstance(self.number, bool) or not isinstance(self.number, int):
            raise TypeError("U128 must wrap an integer")
        if not 0 <= self.number <= CFG.MAX_U128:
            raise ValueArithmeticError(f"{self.number} out of u128 range")

    @classmethod
    def from_be_bytes(cls, data: bytes) -> "U128":
        return cls(int.from_bytes(expect_len(data, 16, "U128"), "big"))

    @classmethod
    def from_le_bytes(cls, data: bytes) -> "U128":
        return cls(int.from_bytes(expect_len(data, 16, "U128"), "little"))

    @classmethod
    def from_str(cls, s: str) -> "U128":
        return cls(parse_decimal(s, 128, "U128"))

    def to_str(self) -> str:
        return str(self.number)

    def to_be_bytes(self) -> bytes:
        return u128_be(self.number)

    def __int__(self) -> int:
        return self.number


# ========== TimeOffsetSeconds ==========

@dataclass(frozen=True)
class TimeOffsetSeconds:
    """Seconds since the start of the chain's timeline."""

    seconds: int

    def __post_init__(self):
        if isinstance(self.seconds, bool) or not isinstance(self.seconds, int):
            raise TypeError("TimeOffsetSeconds must wrap an integer")
        if not 0 <= self.seconds <= CFG.MAX_VALUE:
            raise ValueArithmeticError(f"time offset {self.seconds} out of u64 range")

    @classmethod
    def from_string(cls, number: str) -> "TimeOffsetSeconds":
        return cls(parse_decimal(number, 64, "TimeOffsetSeconds"))

    def to_string(self) -> str:
        return str(self.seconds)

    def to_bytes(self) -> bytes:
        return u64_be(self.seconds)

    @classmethod
    def read(cls, buf: ReadBuf) -> "TimeOffsetSeconds":
        return cls(buf.get_u64())

    def __int__(self) -> int:
        return self.seconds


# ========== SpendingCounter ==========

@dataclass(frozen=True)
class SpendingCounter:
    """
    Spending counter associated to an account.

    Every time the owner spends from the account the counter is incremented.
    The witness must carry the counter the ledger holds at spend time, which
    makes a signed account transaction impossible to replay.
    """

    counter: int = 0

    def __post_init__(self):
        if isinstance(self.counter, bool) or not isinstance(self.counter, int):
            raise TypeError("SpendingCounter must wrap an integer")
        if not 0 <= self.counter <= CFG.MAX_U32:
            raise ValueArithmeticError(f"spending counter {self.counter} out of u32 range")

    @classmethod
    def zero(cls) -> "SpendingCounter":
        return cls(0)

    @classmethod
    def from_u32(cls, counter: int) -> "SpendingCounter":
        return cls(int(counter))

    def increment(self) -> "SpendingCounter":
        if self.counter == CFG.MAX_U32:
            raise ValueArithmeticError("spending counter exhausted")
        return SpendingCounter(self.counter + 1)

    def to_bytes(self) -> bytes:
        return u32_be(self.counter)

    def __int__(self) -> int:
        return self.counter
