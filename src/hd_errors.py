"""
Exceptions raised by extended key construction and derivation.

Structural errors are fixed only by changing inputs. ChildKeyDeriveError
subclasses carrying HINT_TRY_NEXT_INDEX are per-index arithmetic failures:
retry the derivation with index + 1.
"""

from typing import Optional


class HDKeyError(Exception):
    """Base class for all extended key errors."""

    retryable = False


class InvalidSeedLength(HDKeyError, ValueError):
    pass


class DepthExceeded(HDKeyError, ValueError):
    pass


class MalformedPath(HDKeyError, ValueError):
    pass


class InvalidIndex(HDKeyError, ValueError):
    pass


class InvalidCurve(HDKeyError, ValueError):
    pass


class InvalidPrivateKey(HDKeyError, ValueError):
    pass


class CurveAlreadyBound(HDKeyError):
    pass


class CurveNotSet(HDKeyError):
    pass


class ChildKeyDeriveError(HDKeyError):
    """Failure while combining child key material with the parent key."""

    HINT_TRY_NEXT_INDEX = "try_next_index"
    default_hint: Optional[str] = None

    def __init__(self, message: str, hint: Optional[str] = None):
        super().__init__(message)
        self.hint = hint if hint is not None else self.default_hint

    @property
    def retryable(self) -> bool:
        return self.hint == self.HINT_TRY_NEXT_INDEX


class ChildExceedsOrder(ChildKeyDeriveError):
    default_hint = ChildKeyDeriveError.HINT_TRY_NEXT_INDEX


class KeyConversionFailed(ChildKeyDeriveError):
    default_hint = ChildKeyDeriveError.HINT_TRY_NEXT_INDEX


class NonPositiveKey(ChildKeyDeriveError):
    default_hint = ChildKeyDeriveError.HINT_TRY_NEXT_INDEX


class CurveOrderInvalid(ChildKeyDeriveError):
    pass
