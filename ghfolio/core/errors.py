"""Exception types raised by ghfolio.

Listing failures (`UpstreamError`, `MalformedResponseError`) abort a whole
pipeline run. Inside the per-repository summarizer the same failures only drop
that repository. `GenerationParseError` never leaves the summarizer: it is
turned into the degraded summary.
"""
from __future__ import annotations


class GhfolioError(Exception):
    """Base class for every error ghfolio raises on purpose."""


class UpstreamError(GhfolioError):
    """An external API answered with a non-success status.

    Attributes:
        status_code: HTTP status returned by the upstream service.
        body: Raw response body, kept for diagnostics.
    """

    def __init__(self, status_code: int, body: str, service: str = "GitHub API"):
        self.status_code = status_code
        self.body = body
        self.service = service
        super().__init__(f"{service} error: {status_code} - {body}")


class MalformedResponseError(GhfolioError):
    """An external API answered successfully but with an unexpected shape."""


class GenerationParseError(GhfolioError):
    """The generation service reply did not match the summary schema."""

    def __init__(self, raw: str, reason: str):
        self.raw = raw
        self.reason = reason
        super().__init__(f"Failed to parse AI summary response ({reason}): {raw!r}")


class AdminRequiredError(GhfolioError, PermissionError):
    """A mutating operation was attempted without admin rights."""


class StoreError(GhfolioError):
    """The hosted database rejected or failed a request."""


class ConfigurationError(GhfolioError):
    """A required setting (API key, service URL) is missing."""
