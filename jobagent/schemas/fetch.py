"""
Fetch schemas - one request and one result per values fragment.

Both live only within a single merge call.
"""

from dataclasses import dataclass
from typing import Optional

from .sources import RepoCoordinates


@dataclass(frozen=True)
class FetchRequest:
    """
    A request to fetch one fragment.

    index preserves the caller's ordering independent of completion order.
    """
    index: int
    path: str
    coordinates: RepoCoordinates


@dataclass(frozen=True)
class FetchResult:
    """Exactly one per FetchRequest: content on success, error on failure."""
    index: int
    path: str
    content: Optional[bytes] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
