"""
Error taxonomy for the charger search pipeline.

Only IndexUnavailable and SearchTimeout ever reach the caller.
AttributeFetchPartial and MalformedAttribute describe problems that the
pipeline recovers from locally and reports through logging.
"""
from typing import Iterable, Optional


class ChargerFinderError(Exception):
    """Base class for charger finder errors."""


class IndexUnavailable(ChargerFinderError):
    """The geo index could not be reached or the radius query failed."""


class SearchTimeout(ChargerFinderError):
    """A search did not complete before its deadline."""

    def __init__(self, timeout: float):
        super().__init__(f"Search exceeded deadline of {timeout:.3f}s")
        self.timeout = timeout


class AttributeFetchPartial(ChargerFinderError):
    """One or more attribute lookups failed or returned no record."""

    def __init__(self, missing: Iterable[str] = (), failed: Iterable[str] = ()):
        self.missing = list(missing)
        self.failed = list(failed)
        super().__init__(
            f"{len(self.missing)} missing, {len(self.failed)} failed attribute records"
        )


class MalformedAttribute(ChargerFinderError):
    """A stored field could not be parsed or coerced."""

    def __init__(self, field: str, raw: Optional[str], reason: str):
        self.field = field
        self.raw = raw
        self.reason = reason
        shown = raw if raw is None or len(raw) <= 80 else f"{raw[:80]}..."
        super().__init__(f"{field}={shown!r}: {reason}")
