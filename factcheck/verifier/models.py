"""Verification result records emitted to the rendering layer."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Optional

from factcheck.extractor.models import Link, LinkStatus


@dataclass
class VerificationResult:
    """Snapshot of one link's verification state."""

    original_url: str
    link_text: str = ""
    context: str = ""
    is_citation: bool = False
    status: LinkStatus = LinkStatus.PENDING
    analysis: str = ""
    suggested_url: Optional[str] = None
    exact_quote: Optional[str] = None
    redirect_url: Optional[str] = None

    @classmethod
    def for_link(cls, link: Link, status: Optional[LinkStatus] = None) -> "VerificationResult":
        return cls(
            original_url=link.url,
            link_text=link.text,
            context=link.context,
            is_citation=link.is_citation,
            status=status or link.status,
            analysis=link.analysis,
            suggested_url=link.suggested_url,
            exact_quote=link.exact_quote,
            redirect_url=link.redirect_url,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
