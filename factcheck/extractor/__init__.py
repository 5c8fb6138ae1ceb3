"""Extractor package — Markdown links with context and numeric features."""

from factcheck.extractor.links import extract, extract_unique
from factcheck.extractor.models import Link, LinkFeatures, LinkStatus

__all__ = ["extract", "extract_unique", "Link", "LinkFeatures", "LinkStatus"]
