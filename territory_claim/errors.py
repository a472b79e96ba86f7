"""Central error types used across the claiming engine.

Gameplay outcomes (rejected closures, forced stops, dropped samples) are
values, see :mod:`territory_claim.rejections`. The exceptions here signal
caller misuse of a session.
"""

from __future__ import annotations


class ClaimEngineError(RuntimeError):
    """Base error for claiming engine contract violations."""


class SessionNotActiveError(ClaimEngineError):
    """Raised when a tracking operation is attempted with no active session."""


class SessionAlreadyClosedError(ClaimEngineError):
    """Raised when a closed claim receives further samples or confirmations."""


class SessionAlreadyActiveError(ClaimEngineError):
    """Raised when tracking is started while another recording is open."""


class InvalidThresholdsError(ValueError):
    """Raised when a threshold bundle violates its own invariants."""


__all__ = [
    "ClaimEngineError",
    "SessionNotActiveError",
    "SessionAlreadyClosedError",
    "SessionAlreadyActiveError",
    "InvalidThresholdsError",
]
