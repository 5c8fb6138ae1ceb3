"""Classifier package — citation vs. regular link labelling."""

from factcheck.classifier.batch import classify_links
from factcheck.classifier.heuristics import (
    fallback_classification,
    is_citation,
    refine_with_heuristics,
)

__all__ = [
    "classify_links",
    "fallback_classification",
    "is_citation",
    "refine_with_heuristics",
]
