"""GitHub API client utilities for the portfolio pipeline.

Both calls are async and take an `httpx.AsyncClient` whose `base_url` points at
the GitHub API, so one client is shared by a whole pipeline run and tests can
swap in an `httpx.MockTransport`.

Only a single request is made for the listing: no pagination and no retries.

Example:
    ```python
    async with httpx.AsyncClient(base_url="https://api.github.com") as client:
        repos = await list_portfolio_repos(client, token, marker="#portfolio")
        readme = await fetch_readme(client, repos[0].full_name, token)
    ```
"""
from __future__ import annotations
from typing import Any, Dict, List
import logging

import httpx
from pydantic import ValidationError

from .errors import MalformedResponseError, UpstreamError
from .models import README_NOT_FOUND, Repository

log = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
RAW_ACCEPT = "application/vnd.github.v3.raw"


def _headers(token: str | None, api_version: str = API_VERSION, accept: str | None = None) -> Dict[str, str]:
    """Construct HTTP headers for GitHub API requests."""
    h = {"X-GitHub-Api-Version": api_version}
    if accept:
        h["Accept"] = accept
    if token:
        h["Authorization"] = f"Bearer {token}"
    return h


def _parse_repos(payload: Any) -> List[Repository]:
    if not isinstance(payload, list):
        raise MalformedResponseError("Expected an array of repositories from GitHub.")
    repos = []
    for item in payload:
        if not isinstance(item, dict):
            raise MalformedResponseError(f"Expected a repository object, got {type(item).__name__}.")
        try:
            repos.append(Repository.model_validate(item))
        except ValidationError as e:
            raise MalformedResponseError(f"Invalid repository object: {e}") from e
    return repos


async def list_portfolio_repos(
    client: httpx.AsyncClient,
    token: str | None,
    marker: str = "#portfolio",
    api_version: str = API_VERSION,
) -> List[Repository]:
    """Return the authenticated user's repositories tagged with `marker`.

    Args:
        client: Async client with `base_url` set to the GitHub API.
        token: Bearer token of the account whose repositories are listed.
        marker: Substring the repository description must contain.
        api_version: Value of the `X-GitHub-Api-Version` header.

    Returns:
        Repositories whose description contains the marker, in API order.

    Raises:
        UpstreamError: GitHub answered with a non-success status.
        MalformedResponseError: The body is not a list of repository objects.
    """
    r = await client.get("/user/repos", headers=_headers(token, api_version))
    if not r.is_success:
        raise UpstreamError(r.status_code, r.text)
    try:
        payload = r.json()
    except ValueError as e:
        raise MalformedResponseError("GitHub returned a non-JSON repository listing.") from e

    repos = _parse_repos(payload)
    tagged = [repo for repo in repos if repo.has_marker(marker)]
    log.info("GitHub listed %d repositories, %d tagged %r", len(repos), len(tagged), marker)
    return tagged


async def fetch_readme(
    client: httpx.AsyncClient,
    full_name: str,
    token: str | None,
    api_version: str = API_VERSION,
) -> str:
    """Return the raw README text of `full_name`.

    A non-success status is not an error: the sentinel `"README not found."`
    is returned so the repository still gets a card. Transport errors
    propagate to the caller.
    """
    r = await client.get(
        f"/repos/{full_name}/readme",
        headers=_headers(token, api_version, accept=RAW_ACCEPT),
    )
    if not r.is_success:
        log.debug("README for %s unavailable (status %d)", full_name, r.status_code)
        return README_NOT_FOUND
    return r.text
