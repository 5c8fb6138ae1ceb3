"""End-to-end tests for the pipeline coordinator.

Mocking strategy:
- ``respx`` fakes the URL-fetch proxy so the real ``ContentFetcher`` runs.
- The provider chain is a ``MagicMock`` answering classification and
  verification prompts by task.
- The renderer is a ``MagicMock`` so calls can be asserted in order.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import httpx
import pytest
import respx

from factcheck.config import Settings
from factcheck.errors import ConfigurationError
from factcheck.extractor import LinkStatus
from factcheck.llm.providers import TASK_CLASSIFY
from factcheck.runner import FactCheckPipeline

_PROXY = "http://proxy.test/api/fetch-url"
_CLAIM = "According to a [study](https://example.com/study) 81% of users agreed."
_PAGE = "In our survey, 81% of users agreed that the redesign helped."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _settings(**overrides) -> Settings:
    base = dict(
        fetch_proxy_url=_PROXY,
        openai_api_key="",
        openrouter_api_key="",
        llm_providers=["openai", "openrouter"],
    )
    base.update(overrides)
    return Settings(**base)


def _chat(labels: list[bool]) -> MagicMock:
    def _complete(messages, *, task=None, temperature=None):
        if task == TASK_CLASSIFY:
            return json.dumps({"links": [{"index": i, "isCitation": c} for i, c in enumerate(labels)]})
        return json.dumps({
            "isCorrect": True,
            "reasoning": "The page states the figure.",
            "exactQuote": "81% of users agreed",
            "suggestedUrl": None,
        })

    chat = MagicMock()
    chat.complete.side_effect = _complete
    return chat


def _proxy(request: httpx.Request) -> httpx.Response:
    target = request.url.params["url"]
    if target.endswith("/missing"):
        return httpx.Response(404, json={"error": "Failed to fetch: 404 Not Found", "status": 404})
    return httpx.Response(
        200,
        json={"text": _PAGE, "links": [], "status": {"url": target, "http_code": 200}},
    )


# ---------------------------------------------------------------------------
# Full run
# ---------------------------------------------------------------------------

class TestRun:
    def test_verified_citation_end_to_end(self) -> None:
        renderer = MagicMock()
        pipeline = FactCheckPipeline(_settings(), chat=_chat([True]))

        with respx.mock:
            respx.get(url__startswith=_PROXY).mock(side_effect=_proxy)
            results = pipeline.run(_CLAIM, renderer=renderer)

        [result] = results
        assert result.is_citation is True
        assert result.status == LinkStatus.VERIFIED
        assert result.exact_quote == "81% of users agreed"
        assert "81% of users agreed" in result.analysis

        renderer.render.assert_called_once()
        [links] = renderer.render.call_args[0]
        assert [l.url for l in links] == ["https://example.com/study"]
        statuses = [c.args[1].status for c in renderer.update.call_args_list]
        assert statuses == [LinkStatus.FETCHING, LinkStatus.CHECKING, LinkStatus.VERIFIED]

    def test_broken_link_is_invalid(self) -> None:
        md = "Read the [docs](https://example.com/missing) first."
        pipeline = FactCheckPipeline(_settings(), chat=_chat([False]))

        with respx.mock:
            respx.get(url__startswith=_PROXY).mock(side_effect=_proxy)
            [result] = pipeline.run(md)

        assert result.status == LinkStatus.INVALID
        assert "404" in result.analysis
        assert "Not Found" in result.analysis

    def test_duplicate_urls_checked_once(self) -> None:
        md = "[a](https://example.com/a) and [b](https://example.com/a)."
        pipeline = FactCheckPipeline(_settings(), chat=_chat([False]))

        with respx.mock:
            route = respx.get(url__startswith=_PROXY).mock(side_effect=_proxy)
            results = pipeline.run(md)

        assert len(results) == 1
        assert results[0].link_text == "a"
        assert route.call_count == 1

    def test_rerun_is_idempotent(self) -> None:
        pipeline = FactCheckPipeline(_settings(), chat=_chat([True]))

        with respx.mock:
            respx.get(url__startswith=_PROXY).mock(side_effect=_proxy)
            first = [r.to_dict() for r in pipeline.run(_CLAIM)]
            second = [r.to_dict() for r in pipeline.run(_CLAIM)]

        assert first == second

    def test_missing_credentials_fail_before_any_work(self) -> None:
        renderer = MagicMock()
        pipeline = FactCheckPipeline(_settings())

        with respx.mock:
            route = respx.get(url__startswith=_PROXY).mock(side_effect=_proxy)
            with pytest.raises(ConfigurationError):
                pipeline.run(_CLAIM, renderer=renderer)

        renderer.render.assert_not_called()
        assert route.call_count == 0


# ---------------------------------------------------------------------------
# Individual stages
# ---------------------------------------------------------------------------

class TestStages:
    def test_heuristic_classification_needs_no_provider(self) -> None:
        pipeline = FactCheckPipeline(_settings())
        links = pipeline.classify(pipeline.extract(_CLAIM), heuristic_only=True)
        assert links[0].is_citation is True

    def test_model_classification_needs_a_provider(self) -> None:
        pipeline = FactCheckPipeline(_settings())
        with pytest.raises(ConfigurationError):
            pipeline.classify(pipeline.extract(_CLAIM))

    def test_chain_is_built_from_settings(self) -> None:
        pipeline = FactCheckPipeline(_settings(openrouter_api_key="or-key"))
        assert [p.name for p in pipeline.chat.providers] == ["OpenRouter"]
