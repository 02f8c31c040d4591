"""Operation results — validation failures are returned, not raised."""

from __future__ import annotations

from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")


class LedgerErrorKind(str, Enum):
    """Why a ledger operation was rejected.

    Every kind is a local validation failure: the caller corrects the
    input and resubmits.  None of them leaves partially-applied state.
    """

    PRICE_INVALID = "ERR_PRICE_INVALID"
    INPUT_INVALID = "ERR_INPUT_INVALID"
    ITEM_UNAVAILABLE = "ERR_ITEM_UNAVAILABLE"
    SELF_TRADE_BLOCKED = "ERR_SELF_TRADE_BLOCKED"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"


class LedgerOperationError(RuntimeError):
    """Raised by ``LedgerResult.unwrap()`` for a rejected operation."""

    def __init__(self, kind: LedgerErrorKind, message: str = "") -> None:
        self.kind = kind
        super().__init__(f"{kind.value}: {message}" if message else kind.value)


class LedgerResult(BaseModel, Generic[T]):
    """Discriminated outcome of a ledger operation.

    Exactly one of ``value`` (when ``ok``) or ``error`` (when not) is
    meaningful.

    Examples
    --------
    >>> LedgerResult.success(1).ok
    True
    >>> LedgerResult.failure(LedgerErrorKind.UNAUTHORIZED).error.value
    'ERR_UNAUTHORIZED'
    """

    model_config = ConfigDict(frozen=True)

    ok: bool
    value: T | None = None
    error: LedgerErrorKind | None = None
    message: str = ""

    @classmethod
    def success(cls, value: T) -> LedgerResult[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: LedgerErrorKind, message: str = "") -> LedgerResult[T]:
        return cls(ok=False, error=error, message=message)

    def unwrap(self) -> T:
        """Return the success value or raise ``LedgerOperationError``."""
        if not self.ok:
            if self.error is None:
                raise ValueError("Failed LedgerResult carries no error kind.")
            raise LedgerOperationError(self.error, self.message)
        return self.value  # type: ignore[return-value]
