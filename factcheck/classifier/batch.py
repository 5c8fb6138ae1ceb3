"""Batch link classification through the LLM, with heuristic safety net.

``classify_links`` sends every link in a single prompt, applies the model's
``{index, isCitation}`` labels, then always runs
:func:`~factcheck.classifier.heuristics.refine_with_heuristics`.  Any
transport failure, malformed reply or empty label list routes to
:func:`~factcheck.classifier.heuristics.fallback_classification` instead, so
the function never raises.
"""

from __future__ import annotations

import json
from typing import List

from factcheck.classifier.heuristics import fallback_classification, refine_with_heuristics
from factcheck.extractor.models import Link
from factcheck.llm.providers import TASK_CLASSIFY, Message, ProviderChain
from factcheck.llm.schemas import ClassificationResponse, parse_response

SYSTEM_PROMPT = "You are a deterministic link classifier. Output strict JSON only."

_RULES = """\
You are classifying links as CITATION or REGULAR.

Definitions (strict)
- CITATION: the link is meant as the source for a specific factual claim or statistic in the same sentence.
- REGULAR: navigation, definition or related reading; not the source of a concrete claim in that sentence.

Rules (deterministic)
1) If the anchor text itself contains a numeral/percent (e.g. "81%", "208% increase"), mark CITATION.
2) If the sentence contains a numeral/percent that is NOT part of any link's anchor text in that sentence, a nearby link that plausibly points to a source (report/study/stats/news) is CITATION.
3) If the sentence's numerals already appear inside some anchor text in that sentence, other generic anchors in that sentence are REGULAR.
4) Attribution phrases such as "according to", "reported", "study", "research", "survey" strengthen CITATION when paired with (1) or (2).
5) When uncertain, prefer REGULAR.

Decide using only the provided sentence. No external knowledge."""


def _item_block(index: int, link: Link) -> str:
    f = link.features
    return (
        f"[{index}] Sentence: {json.dumps(link.sentence or link.context)}\n"
        f"Anchor: {json.dumps(link.text)}\n"
        f"URL: {link.url}\n"
        f"NumbersInSentence: {json.dumps(f.sentence_numbers)}\n"
        f"NumbersInAnchorsThisSentence: {json.dumps(f.numbers_in_anchors)}\n"
        f"NumbersInThisAnchor: {json.dumps(f.anchor_numbers)}\n"
        f"UnlinkedNumbers: {json.dumps(f.unlinked_numbers)}"
    )


def build_prompt(links: List[Link]) -> str:
    """Return the single user prompt that enumerates every link."""
    items = "\n\n".join(_item_block(i, link) for i, link in enumerate(links))
    return (
        f"{_RULES}\n\n"
        f"Items ({len(links)}):\n{items}\n\n"
        "Output (JSON only):\n"
        f'{{ "links": [ {{"index": 0, "isCitation": true|false}}, ... up to {len(links) - 1} ] }}\n'
        "Cover every index exactly once. No prose, no extra keys."
    )


def build_messages(links: List[Link]) -> list[Message]:
    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": build_prompt(links)},
    ]


def classify_links(links: List[Link], chat: ProviderChain) -> List[Link]:
    """Set ``is_citation`` on every link in place and return the list.

    Indices missing from the model's reply are labelled regular until the
    heuristic override pass.
    """
    if not links:
        return links

    print(f"[CLASSIFYING] Sending {len(links)} link(s) to the model …")
    try:
        raw = chat.complete(build_messages(links), task=TASK_CLASSIFY, temperature=0)
        reply = parse_response(raw, ClassificationResponse)
        if not reply.links:
            raise ValueError("model returned no classifications")
    except Exception as exc:  # noqa: BLE001
        print(f"[CLASSIFYING] Model classification failed ({exc}); using heuristics.")
        fallback_classification(links)
        return refine_with_heuristics(links)

    for link in links:
        link.is_citation = False
    for label in reply.links:
        if 0 <= label.index < len(links):
            links[label.index].is_citation = label.is_citation

    refine_with_heuristics(links)
    citations = sum(1 for link in links if link.is_citation)
    print(f"[CLASSIFYING] {citations} citation(s), {len(links) - citations} regular link(s).")
    return links
