"""
Error taxonomy for the recommendation engine.

- ConfigurationError: missing endpoint/credentials. Fatal, surfaced to the caller.
- UpstreamUnavailable: embedding, trending, history or store call failed. Recoverable.
- PartialComputationFailure: one candidate failed to score. Recorded, never raised out of a batch.

"No history" is not an error: the profiler returns an empty profile.
"""

from typing import Optional


class CinerankError(Exception):
    """Base class for engine errors."""


class ConfigurationError(CinerankError, ValueError):
    """Required configuration (API key, endpoint, path) is missing or invalid."""


class UpstreamUnavailable(CinerankError):
    """An external collaborator could not be reached or returned garbage."""

    def __init__(self, source: str, message: str = ""):
        self.source = source
        super().__init__(f"{source} unavailable: {message}" if message else f"{source} unavailable")


class PartialComputationFailure(CinerankError):
    """Scoring a single candidate failed; the batch continues without it."""

    def __init__(self, item_id: str, cause: Optional[BaseException] = None):
        self.item_id = item_id
        self.cause = cause
        detail = f"{type(cause).__name__}: {cause}" if cause is not None else "unknown error"
        super().__init__(f"candidate {item_id} failed: {detail}")
