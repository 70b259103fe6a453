"""Core functionality for the portfolio backend.

This module contains the core business logic for:
- GitHub API interactions and the README summarization pipeline
- Admin authorization and Supabase-backed moderation
- Configuration management
"""

from .cache import SummaryCache
from .config import Settings, load_settings
from .errors import (
    AdminRequiredError,
    ConfigurationError,
    GenerationParseError,
    GhfolioError,
    MalformedResponseError,
    StoreError,
    UpstreamError,
)
from .github import fetch_readme, list_portfolio_repos
from .models import Feedback, FeedbackSubmission, GeneratedSummary, Repository, SummaryRecord
from .pipeline import get_portfolio_projects
from .summarizer import OpenAIGenerator, ReadmeSummarizer, parse_summary
from .auth import AdminAuthorizer
from .store import FeedbackStore, RetrospectiveStore

__all__ = [
    "SummaryCache",
    "Settings",
    "load_settings",
    "AdminRequiredError",
    "ConfigurationError",
    "GenerationParseError",
    "GhfolioError",
    "MalformedResponseError",
    "StoreError",
    "UpstreamError",
    "fetch_readme",
    "list_portfolio_repos",
    "Feedback",
    "FeedbackSubmission",
    "GeneratedSummary",
    "Repository",
    "SummaryRecord",
    "get_portfolio_projects",
    "OpenAIGenerator",
    "ReadmeSummarizer",
    "parse_summary",
    "AdminAuthorizer",
    "FeedbackStore",
    "RetrospectiveStore",
]
