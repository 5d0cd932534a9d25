from __future__ import annotations

from typing import Optional


class ChainLookupError(Exception):
    pass


class DataSourceError(ChainLookupError):
    pass


class RateLimitError(DataSourceError):
    pass


class AuthenticationError(DataSourceError):
    pass


class InvalidQuery(ChainLookupError, ValueError):
    pass


class ResolutionFailed(ChainLookupError):
    """
    A probe failed for a reason other than "not found".
    Carries the kind of the failing probe and the underlying error.
    """

    def __init__(self, probe_kind: str, cause: Optional[BaseException]) -> None:
        super().__init__(f"{probe_kind} probe failed: {cause}")
        self.probe_kind = probe_kind
        self.cause = cause


class ReconciliationFailed(ChainLookupError):

    def __init__(self, address: str, cause: Optional[BaseException]) -> None:
        super().__init__(f"could not reconcile history for {address}: {cause}")
        self.address = address
        self.cause = cause
