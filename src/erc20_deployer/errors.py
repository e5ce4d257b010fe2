"""
Error taxonomy for the deployment pipeline.

Every failure surfaced by this package is a DeployerError subclass with a
fixed ErrorKind, so callers branch on ``err.kind`` rather than on message
text. The underlying exception is kept on ``cause`` and chained with
``raise ... from``.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "ErrorKind",
    "DeployerError",
    "ProviderInitError",
    "AccountLoadError",
    "CompileError",
    "ABILoadError",
    "DeployError",
    "CallError",
    "TransactionError",
]


class ErrorKind(str, Enum):
    PROVIDER_INIT = "PROVIDER_INIT"
    ACCOUNT_LOAD = "ACCOUNT_LOAD"
    COMPILE = "COMPILE"
    ABI_LOAD = "ABI_LOAD"
    DEPLOY = "DEPLOY"
    CALL = "CALL"
    TRANSACTION = "TRANSACTION"


class DeployerError(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error description.
        kind: Member of ErrorKind identifying the failing boundary.
        stage: Pipeline stage reached when the error occurred, if any.
        tx_hash: Transaction hash, when the failure happened after submission.
        details: Additional structured context.
        cause: The underlying exception, if any.
    """

    kind: ErrorKind = ErrorKind.DEPLOY

    def __init__(
        self,
        message: str,
        *,
        stage: Optional[str] = None,
        tx_hash: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.tx_hash = tx_hash
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        parts = [f"[{self.kind.value}] {self.message}"]
        if self.stage:
            parts.append(f"(stage: {self.stage})")
        if self.tx_hash:
            parts.append(f"(tx: {self.tx_hash[:10]}...)")
        if self.cause is not None:
            parts.append(f"caused by {type(self.cause).__name__}: {self.cause}")
        return " ".join(parts)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"kind={self.kind.value!r}, "
            f"stage={self.stage!r}, "
            f"tx_hash={self.tx_hash!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for JSON serialization."""
        return {
            "error": self.__class__.__name__,
            "kind": self.kind.value,
            "message": self.message,
            "stage": self.stage,
            "tx_hash": self.tx_hash,
            "details": self.details,
            "cause": repr(self.cause) if self.cause is not None else None,
        }


class ProviderInitError(DeployerError):
    """Raised when the node endpoint cannot be read or the transport cannot be built."""

    kind = ErrorKind.PROVIDER_INIT


class AccountLoadError(DeployerError):
    """Raised when a named signing identity cannot be loaded from the keystore."""

    kind = ErrorKind.ACCOUNT_LOAD


class CompileError(DeployerError):
    """Raised when an expected compiled artifact is not available.

    Compiler diagnostics themselves are returned, not raised; this error is
    for callers that need an artifact the compilation did not produce.
    """

    kind = ErrorKind.COMPILE


class ABILoadError(DeployerError):
    """Raised when a persisted artifact file or its contract entry is missing."""

    kind = ErrorKind.ABI_LOAD


class DeployError(DeployerError):
    """Raised when any step of the deployment sequence fails."""

    kind = ErrorKind.DEPLOY


class CallError(DeployerError):
    """Raised when a read-only contract call fails."""

    kind = ErrorKind.CALL


class TransactionError(DeployerError):
    """Raised when a state-mutating contract call fails."""

    kind = ErrorKind.TRANSACTION
