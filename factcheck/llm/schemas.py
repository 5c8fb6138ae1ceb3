"""Pydantic schemas for the JSON replies the pipeline asks the model for.

Each prompt requests exactly one documented shape.  :func:`parse_response`
validates the model's text against that shape and raises
:class:`~factcheck.errors.ResponseParseError` on any deviation so callers can
take their fallback path.
"""

from __future__ import annotations

from typing import List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from factcheck.errors import ResponseParseError

T = TypeVar("T", bound=BaseModel)


class _Reply(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class LinkLabel(_Reply):
    index: int
    is_citation: bool = Field(alias="isCitation")


class ClassificationResponse(_Reply):
    """``{"links": [{"index": 0, "isCitation": true}, ...]}``"""

    links: List[LinkLabel]


class RelevanceResponse(_Reply):
    """``{"isRelevant": bool, "reasoning": str}``"""

    is_relevant: bool = Field(alias="isRelevant")
    reasoning: str = ""


class CitationCheckResponse(_Reply):
    """``{"isCorrect": bool, "reasoning": str, "exactQuote": str|null, "suggestedUrl": str|null}``"""

    is_correct: bool = Field(alias="isCorrect")
    reasoning: str = ""
    exact_quote: Optional[str] = Field(default=None, alias="exactQuote")
    suggested_url: Optional[str] = Field(default=None, alias="suggestedUrl")


def _strip_fence(raw: str) -> str:
    """Remove a surrounding Markdown code fence (```json … ```)."""
    text = raw.strip()
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()
    return text


def parse_response(raw: str, schema: Type[T]) -> T:
    """Validate the model reply *raw* against *schema*.

    Raises:
        ResponseParseError: If *raw* is empty, not JSON, or the wrong shape.
    """
    text = _strip_fence(raw or "")
    if not text:
        raise ResponseParseError("empty model response")
    try:
        return schema.model_validate_json(text)
    except ValidationError as exc:
        raise ResponseParseError(
            f"response does not match {schema.__name__}: {exc.error_count()} error(s)"
        ) from exc
