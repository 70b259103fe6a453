"""Portfolio fetch pipeline: list, summarize concurrently, aggregate.

The listing step is fatal: if GitHub refuses or returns garbage, the whole run
fails and no summaries are produced. Every tagged repository is then summarized
concurrently with `asyncio.gather`; a failure for one repository removes only
that card.

There is no concurrency cap. That is fine for a personal account's handful of
repositories and is the first thing to revisit for larger listings.
"""
from __future__ import annotations
from typing import Any, List, Optional
import asyncio
import logging

import httpx

from .cache import SummaryCache
from .config import Settings
from .errors import ConfigurationError
from .github import list_portfolio_repos
from .summarizer import OpenAIGenerator, ReadmeSummarizer
from .models import SummaryRecord

log = logging.getLogger(__name__)


def make_client(settings: Settings) -> httpx.AsyncClient:
    """Return an AsyncClient for the GitHub API (no timeout unless configured)."""
    return httpx.AsyncClient(base_url=settings.github_api_url, timeout=settings.github_timeout)


def make_generator(settings: Settings) -> OpenAIGenerator:
    """Build the OpenAI generation service from settings.

    Raises:
        ConfigurationError: OPENAI_API_KEY is not set.
    """
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY must be set to generate summaries")
    return OpenAIGenerator(
        model=settings.model,
        api_key=settings.openai_api_key,
        temperature=settings.temperature,
        prompt_template=settings.prompt_template,
        tracing=settings.tracing,
    )


async def _run(
    client: httpx.AsyncClient,
    summarizer: ReadmeSummarizer,
    settings: Settings,
    marker: str,
) -> List[SummaryRecord]:
    repos = await list_portfolio_repos(
        client, settings.github_token, marker=marker, api_version=settings.github_api_version
    )
    results = await asyncio.gather(
        *(
            summarizer.summarize_or_none(client, repo, settings.github_token, settings.github_api_version)
            for repo in repos
        )
    )
    records = [r for r in results if r is not None]
    if len(records) < len(repos):
        log.warning("%d of %d repositories dropped", len(repos) - len(records), len(repos))
    return records


async def get_portfolio_projects(
    settings: Settings,
    generator: Any | None = None,
    cache: SummaryCache | None = None,
    client: httpx.AsyncClient | None = None,
    marker: Optional[str] = None,
) -> List[SummaryRecord]:
    """Return card-ready summaries for every repository tagged with the marker.

    Args:
        settings: Loaded settings (token, API URL, marker, model).
        generator: Generation service; defaults to `OpenAIGenerator` from settings.
        cache: Summary cache to read and fill; a fresh one when omitted.
        client: GitHub client to reuse; one is created and closed otherwise.
        marker: Overrides `settings.marker`.

    Raises:
        UpstreamError: The repository listing failed.
        MalformedResponseError: The repository listing had an unexpected shape.
        ConfigurationError: No generator was given and no OpenAI key is configured.
    """
    if generator is None:
        generator = make_generator(settings)
    summarizer = ReadmeSummarizer(generator, cache)
    marker = marker or settings.marker
    if client is not None:
        return await _run(client, summarizer, settings, marker)
    async with make_client(settings) as own_client:
        return await _run(own_client, summarizer, settings, marker)
