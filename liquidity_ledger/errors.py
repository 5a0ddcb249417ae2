"""Exception types for the liquidity ledger.

Every failure raised by the codec, the handlers and the dispatcher is a
``LedgerError`` carrying an ``ErrorKind``. The host layer maps them onto
``ExecutionResult`` for callers that prefer result inspection.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNAUTHORIZED_BUFFER = "UnauthorizedBuffer"
    MALFORMED_ACCOUNT_DATA = "MalformedAccountData"
    MALFORMED_INSTRUCTION = "MalformedInstruction"
    UNSUPPORTED_OPERATION = "UnsupportedOperation"
    INSUFFICIENT_FUNDS = "InsufficientFunds"
    UNAUTHORIZED = "Unauthorized"
    INVARIANT_VIOLATION = "InvariantViolation"
    TRANSFER_ERROR = "TransferError"
    MISSING_ACCOUNT = "MissingAccount"
    ACCOUNT_MISMATCH = "AccountMismatch"


class LedgerError(Exception):
    """Base class; subclasses pin ``kind``."""

    kind: ErrorKind

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(f"{self.kind.value}: {message}" if message else self.kind.value)


class UnauthorizedBufferError(LedgerError):
    """Raised when an account buffer is not owned by the executing program."""

    kind = ErrorKind.UNAUTHORIZED_BUFFER


class MalformedAccountDataError(LedgerError):
    """Raised when a buffer is too short to decode its record."""

    kind = ErrorKind.MALFORMED_ACCOUNT_DATA


class MalformedInstructionError(LedgerError):
    """Raised when instruction bytes are empty, oversized or truncated."""

    kind = ErrorKind.MALFORMED_INSTRUCTION


class UnsupportedOperationError(LedgerError):
    kind = ErrorKind.UNSUPPORTED_OPERATION


class InsufficientFundsError(LedgerError):
    kind = ErrorKind.INSUFFICIENT_FUNDS


class UnauthorizedError(LedgerError):
    """Raised when a caller lacks the identity or signature an operation needs."""

    kind = ErrorKind.UNAUTHORIZED


class InvariantViolationError(LedgerError):
    """Raised when a balance would underflow zero or overflow u64."""

    kind = ErrorKind.INVARIANT_VIOLATION


class TransferError(LedgerError):
    """Raised by transfer collaborators when funds could not be moved."""

    kind = ErrorKind.TRANSFER_ERROR


class MissingAccountError(LedgerError):
    kind = ErrorKind.MISSING_ACCOUNT


class AccountMismatchError(LedgerError):
    """Raised when an account passed in a role differs from the one the pool records."""

    kind = ErrorKind.ACCOUNT_MISMATCH
