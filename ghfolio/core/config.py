"""Configuration management for ghfolio.

This module handles loading and merging configuration from multiple sources:
1. Environment variables (highest priority, `.env` is loaded first)
2. TOML configuration file (medium priority)
3. Default values (lowest priority)

Example config.toml:
    ```toml
    [github]
    marker = "#portfolio"
    timeout = 30

    [summarizer]
    model = "gpt-4.1-nano"
    temperature = 0.7

    [supabase]
    url = "https://xyz.supabase.co"

    [admin]
    emails = ["me@example.com"]
    ```

Environment Variables:
    GITHUB_TOKEN: Bearer token for the GitHub API.
    GITHUB_API_URL: Override the GitHub API base URL.
    GITHUB_TIMEOUT: Per-call timeout in seconds (unset means no timeout).
    PORTFOLIO_MARKER: Override the description marker token.
    OPENAI_API_KEY: Key for the generation service.
    SUMMARY_MODEL: Override the model name.
    SUPABASE_URL / SUPABASE_ANON_KEY: Hosted database and auth provider.
    ADMIN_EMAILS: Comma separated admin allow-list.
    LANGFUSE_PUBLIC_KEY: Enables Langfuse tracing when present.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Tuple
import os
import tomllib  # Python 3.11+

from dotenv import load_dotenv

DEFAULT_MARKER = "#portfolio"


@dataclass
class Settings:
    """Runtime configuration derived from `config.toml` and environment.

    Values are merged with precedence: environment > config file > defaults.
    """

    # GitHub
    github_token: str | None = None
    github_api_url: str = "https://api.github.com"
    github_api_version: str = "2022-11-28"
    marker: str = DEFAULT_MARKER
    github_timeout: float | None = None

    # Generation service
    openai_api_key: str | None = None
    model: str = "gpt-4.1-nano"
    temperature: float = 0.7
    prompt_template: str | None = None
    tracing: bool = False

    # Supabase / admin
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    admin_emails: Tuple[str, ...] = field(default_factory=tuple)


def parse_admin_emails(value: str | Iterable[str] | None) -> Tuple[str, ...]:
    """Normalize an allow-list to stripped, lower-cased, non-empty entries.

    Args:
        value: Comma-separated string (as in ADMIN_EMAILS) or an iterable of emails.

    Returns:
        Tuple of normalized emails; empty when `value` is empty or None.
    """
    if not value:
        return ()
    items = value.split(",") if isinstance(value, str) else value
    return tuple(e.strip().lower() for e in items if e and e.strip())


def read_file_text(path: Path | None) -> str | None:
    """Read a text file if it exists.

    Args:
        path: Path to the file, or None.

    Returns:
        File contents as UTF-8 text, or None if `path` is unset or missing.
    """
    if not path:
        return None
    if path.exists():
        return path.read_text(encoding="utf-8")
    return None


def load_config(path: str = "config.toml") -> dict:
    """Load a TOML config file into a dictionary.

    Args:
        path: Path to the TOML file. Defaults to "config.toml".

    Returns:
        Parsed configuration, or an empty dict if the file does not exist.
    """
    p = Path(path)
    if not p.exists():
        return {}
    with p.open("rb") as f:
        return tomllib.load(f)


def _optional_float(value) -> float | None:
    """Convert a config or env value to float; None and "" stay None."""
    if value is None or value == "":
        return None
    return float(value)


def load_settings(config_path: str | None = None) -> Settings:
    """Create a `Settings` object from `.env`, config file and environment.

    Args:
        config_path: Path to TOML config file. Defaults to "config.toml".

    Returns:
        Settings object with merged configuration from all sources.
    """
    load_dotenv()
    cfg = load_config(config_path or "config.toml")

    s = Settings()

    # github section
    gh = cfg.get("github", {})
    s.github_token = os.getenv("GITHUB_TOKEN", s.github_token)
    s.github_api_url = os.getenv("GITHUB_API_URL", gh.get("api_url", s.github_api_url))
    s.github_api_version = gh.get("api_version", s.github_api_version)
    s.marker = os.getenv("PORTFOLIO_MARKER", gh.get("marker", s.marker))
    s.github_timeout = _optional_float(os.getenv("GITHUB_TIMEOUT", gh.get("timeout")))

    # summarizer section
    summ = cfg.get("summarizer", {})
    s.openai_api_key = os.getenv("OPENAI_API_KEY", s.openai_api_key)
    s.model = os.getenv("SUMMARY_MODEL", summ.get("model", s.model))
    s.temperature = float(summ.get("temperature", s.temperature))

    # prompt section
    pr = cfg.get("prompt", {})
    tmpl_path = pr.get("template_file")
    s.prompt_template = read_file_text(Path(tmpl_path)) if tmpl_path else None

    # tracing section
    tr = cfg.get("tracing", {})
    s.tracing = bool(tr.get("enabled", bool(os.getenv("LANGFUSE_PUBLIC_KEY"))))

    # supabase / admin sections
    sb = cfg.get("supabase", {})
    s.supabase_url = os.getenv("SUPABASE_URL", sb.get("url", s.supabase_url))
    s.supabase_anon_key = os.getenv("SUPABASE_ANON_KEY", s.supabase_anon_key)
    adm = cfg.get("admin", {})
    s.admin_emails = parse_admin_emails(os.getenv("ADMIN_EMAILS") or adm.get("emails"))

    return s
