"""Data models for extracted links."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, List, Optional


class LinkStatus(str, Enum):
    """Lifecycle of a link during one run, in order."""

    PENDING = "pending"
    FETCHING = "fetching"
    CHECKING = "checking"
    VERIFIED = "verified"
    INVALID = "invalid"
    INACCURATE = "inaccurate"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL

    @property
    def rank(self) -> int:
        """Position in the ``pending → fetching → checking → terminal`` sequence."""
        return min(_ORDER.index(self), 3)


_ORDER = list(LinkStatus)
_TERMINAL = {LinkStatus.VERIFIED, LinkStatus.INVALID, LinkStatus.INACCURATE}


@dataclass
class LinkFeatures:
    """Numeric-token features of the sentence containing a link."""

    anchor_has_number: bool = False
    sentence_has_number: bool = False
    unlinked_numbers: List[str] = field(default_factory=list)
    numbers_in_anchors: List[str] = field(default_factory=list)
    anchor_numbers: List[str] = field(default_factory=list)
    sentence_numbers: List[str] = field(default_factory=list)


@dataclass
class Link:
    """One hyperlink occurrence found in the source text."""

    text: str
    url: str
    context: str = ""
    sentence: str = ""
    features: LinkFeatures = field(default_factory=LinkFeatures)
    is_citation: bool = False
    status: LinkStatus = LinkStatus.PENDING

    # Attached by the verification engine.
    analysis: str = ""
    suggested_url: Optional[str] = None
    exact_quote: Optional[str] = None
    redirect_url: Optional[str] = None

    def advance(self, status: LinkStatus) -> None:
        """Move to *status*, refusing to go back to an earlier phase."""
        if status.rank < self.status.rank or (
            self.status.is_terminal and status != self.status
        ):
            raise ValueError(f"cannot move link from {self.status.value} to {status.value}")
        self.status = status

    def reset(self) -> None:
        """Drop the outcome of any previous verification run."""
        self.status = LinkStatus.PENDING
        self.analysis = ""
        self.suggested_url = None
        self.exact_quote = None
        self.redirect_url = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
