"""LLM checks run during the verify phase.

``check_relevance``  — regular links: does the anchor describe the page?
``check_citation``   — citations: does the page support the claim?

Both build a single prompt, call the provider chain and validate the JSON
reply against its schema.  Provider and parse errors propagate; the engine
decides how each one degrades.
"""

from __future__ import annotations

import re

from factcheck.extractor.links import strip_links
from factcheck.extractor.models import Link
from factcheck.llm.providers import TASK_VERIFY, ProviderChain
from factcheck.llm.schemas import CitationCheckResponse, RelevanceResponse, parse_response
from factcheck.scraper.models import PageContent

SECONDARY_SOURCE_INDICATORS = (
    "according to",
    "reported by",
    "study published in",
    "research from",
    "cited in",
    "source:",
    "via",
    "as reported",
    "originally published",
)
_SECONDARY_RE = re.compile(
    r"(?<!\w)(?:" + "|".join(re.escape(s) for s in SECONDARY_SOURCE_INDICATORS) + r")(?!\w)"
)

RELEVANCE_SYSTEM = "You are a concise link relevance checker. Always output strict JSON only."
CITATION_SYSTEM = "You are a concise fact-checking assistant. Always output strict JSON only."


def looks_secondary(page: PageContent) -> bool:
    """``True`` if the page text reads like it is reporting someone else's source."""
    return _SECONDARY_RE.search((page.text or "").lower()) is not None


def relevance_prompt(link: Link, page: PageContent) -> str:
    return (
        "Task: Decide if the anchor text reasonably describes or relates to the linked "
        "page's content.\n\n"
        f"Anchor Text: {link.text}\n"
        f"Link URL: {link.url}\n\n"
        f"Page Content (excerpt):\n{page.text}\n\n"
        "Rules\n"
        "- Use only the provided content excerpt.\n"
        "- True if the anchor text closely matches the page's topic/claims; otherwise false.\n\n"
        "Output (JSON only):\n"
        '{\n  "isRelevant": true|false,\n  "reasoning": "1 short sentence (<=160 chars)"\n}\n'
        "No prose, no extra keys."
    )


def citation_prompt(link: Link, page: PageContent, links_limit: int = 10) -> str:
    sample = "\n".join(f"- {l.text} -> {l.url}" for l in page.links[:links_limit]) or "(none)"
    if looks_secondary(page):
        source_rule = (
            "This looks like a secondary source; prefer the primary source if it is "
            "visible among the links."
        )
    else:
        source_rule = "If the page appears to cite another source, note it."
    return (
        "Task: Determine if the link supports the claim in context using the provided "
        "page content.\n\n"
        f"Context: {strip_links(link.context)}\n"
        f"Link Text: {link.text}\n"
        f"Link URL: {link.url}\n\n"
        f"Page Content (excerpt):\n{page.text}\n\n"
        f"Links on Page (sample):\n{sample}\n\n"
        "Decision Rules\n"
        "1) Correct if key facts in the context (numbers, entities, quotes, findings) appear "
        "in the page content or close paraphrase without contradiction.\n"
        "2) Incorrect if key facts are absent, contradicted, or the page is about a "
        "different topic.\n"
        f"3) {source_rule}\n"
        "4) If you mark as correct, include the exact quote (verbatim) from the provided "
        "content; otherwise leave exactQuote null.\n\n"
        "Output (JSON only):\n"
        "{\n"
        '  "isCorrect": true|false,\n'
        '  "reasoning": "1-2 sentences (<=240 chars). Start with whether key facts were found.",\n'
        '  "exactQuote": "Verbatim sentence(s) from the excerpt if isCorrect=true, else null",\n'
        '  "suggestedUrl": "Primary source URL if clearly present in the listed links, else null"\n'
        "}\n"
        "No prose, no extra keys."
    )


def check_relevance(chat: ProviderChain, link: Link, page: PageContent) -> RelevanceResponse:
    raw = chat.complete(
        [
            {"role": "system", "content": RELEVANCE_SYSTEM},
            {"role": "user", "content": relevance_prompt(link, page)},
        ],
        task=TASK_VERIFY,
    )
    return parse_response(raw, RelevanceResponse)


def check_citation(chat: ProviderChain, link: Link, page: PageContent) -> CitationCheckResponse:
    raw = chat.complete(
        [
            {"role": "system", "content": CITATION_SYSTEM},
            {"role": "user", "content": citation_prompt(link, page)},
        ],
        task=TASK_VERIFY,
    )
    return parse_response(raw, CitationCheckResponse)
