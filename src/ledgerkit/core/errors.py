# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Tsar Studio
# Part of LedgerKit - see LICENSE and TRADEMARKS.md
# Refs: see REFERENCES.md


class LedgerError(ValueError):
    """Base class for every failure reported by ledgerkit."""


class MalformedInputError(LedgerError):
    """Wrong byte length, truncated buffer, trailing bytes or unknown tag."""


class MalformedAddressError(MalformedInputError):
    pass


class InvalidEncodingError(LedgerError):
    """Text form (bech32, hex, decimal) cannot be decoded."""


class InvalidChecksumError(InvalidEncodingError):
    pass


class ValueArithmeticError(LedgerError):
    """Overflow or underflow on a checked amount or counter."""


class HardDerivationOnPublicKeyError(LedgerError):
    def __init__(self, index: int):
        super().__init__(f"cannot derive public key with hard index 0x{index:08x}")
        self.index = index


class WrongVariantError(LedgerError):
    """Accessor used on a tagged value holding another variant."""


class InvalidRatioSpecError(LedgerError):
    pass


class TruncatedBlockError(MalformedInputError):
    def __init__(self, declared: int, available: int):
        super().__init__(f"block declares {declared} content bytes, only {available} available")
        self.declared = declared
        self.available = available


class TransactionBuildError(LedgerError):
    pass


class SignatureError(LedgerError):
    pass
