"""Scraper package — proxy-backed page fetch & HTML text extraction."""

from factcheck.scraper.extractor import extract_text_and_links, html_to_markdown
from factcheck.scraper.fetcher import ContentFetcher
from factcheck.scraper.models import FetchedData, HttpStatus, PageContent, PageLink

__all__ = [
    "ContentFetcher",
    "extract_text_and_links",
    "html_to_markdown",
    "FetchedData",
    "HttpStatus",
    "PageContent",
    "PageLink",
]
