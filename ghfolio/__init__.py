"""AI-summarized GitHub portfolio backend.

Lists the repositories of a GitHub account that carry a marker token
(`#portfolio` by default) in their description, summarizes each README with a
language model into a short description and tech stack, and returns
card-ready records. An allow-listed admin moderates visitor feedback and edits
per-project retrospectives stored in Supabase.

Quick Start:
    ```python
    import asyncio
    import ghfolio

    settings = ghfolio.load_settings()
    cards = asyncio.run(ghfolio.get_portfolio_projects(settings))
    ```

CLI Usage:
    ```bash
    ghfolio projects --format md
    ghfolio feedback list --status pending
    ghfolio feedback approve-pending --token "$GHFOLIO_ADMIN_TOKEN"
    ```
"""

__version__ = "0.1.0"

# Re-export main functionality for easy importing
from .core import (
    AdminAuthorizer,
    FeedbackStore,
    RetrospectiveStore,
    Settings,
    SummaryCache,
    SummaryRecord,
    UpstreamError,
    MalformedResponseError,
    get_portfolio_projects,
    list_portfolio_repos,
    load_settings,
    OpenAIGenerator,
    ReadmeSummarizer,
)

__all__ = [
    "AdminAuthorizer",
    "FeedbackStore",
    "RetrospectiveStore",
    "Settings",
    "SummaryCache",
    "SummaryRecord",
    "UpstreamError",
    "MalformedResponseError",
    "get_portfolio_projects",
    "list_portfolio_repos",
    "load_settings",
    "OpenAIGenerator",
    "ReadmeSummarizer",
]
