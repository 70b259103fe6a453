"""README summarization for portfolio cards.

A generation service turns README text into a JSON reply with `text`,
`deployedUrl` and `techStack`. Replies are parsed into a tagged result
(`Parsed` or `Malformed`); a malformed reply becomes the degraded summary
instead of an error, so one bad reply never breaks a batch.

Any object with an `async agenerate(readme: str) -> str` method can act as the
generation service. `OpenAIGenerator` is the production one, built on a
LangChain `prompt | llm | parser` chain with optional Langfuse tracing.

Example:
    ```python
    generator = OpenAIGenerator(model="gpt-4.1-nano", api_key="sk-...")
    summarizer = ReadmeSummarizer(generator, SummaryCache())
    async with httpx.AsyncClient(base_url="https://api.github.com") as client:
        record = await summarizer.summarize(client, repo, token)
    ```
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Optional
import json
import logging

import httpx
from langfuse import get_client
from langfuse.langchain import CallbackHandler
from langchain_core.output_parsers import StrOutputParser
from langchain_core.prompts import PromptTemplate
from langchain_openai import ChatOpenAI
from pydantic import ValidationError

from .cache import SummaryCache
from .errors import GenerationParseError
from .github import API_VERSION, fetch_readme
from .models import GeneratedSummary, Malformed, ParseResult, Parsed, Repository, SummaryRecord

log = logging.getLogger(__name__)

DEFAULT_PROMPT_PATH = Path(__file__).resolve().parents[1] / "prompts" / "readme_summary.txt"


def load_prompt_template(path: str | Path = DEFAULT_PROMPT_PATH) -> PromptTemplate:
    """Load a single-block PromptTemplate from a .txt file.

    The template must contain a `{readme}` placeholder; literal JSON braces
    are written doubled (`{{` and `}}`).
    """
    tmpl = Path(path).read_text(encoding="utf-8")
    return PromptTemplate.from_template(tmpl)


def _check_reply(data: Any) -> GeneratedSummary:
    if not isinstance(data, dict):
        raise GenerationParseError(json.dumps(data), "reply is not a JSON object")
    if not isinstance(data.get("text"), str):
        raise GenerationParseError(json.dumps(data), "missing or non-string 'text'")
    stack = data.get("techStack")
    if not isinstance(stack, list) or not all(isinstance(t, str) for t in stack):
        raise GenerationParseError(json.dumps(data), "missing or invalid 'techStack'")
    url = data.get("deployedUrl")
    if url is not None and not isinstance(url, str):
        raise GenerationParseError(json.dumps(data), "'deployedUrl' is neither string nor null")
    try:
        return GeneratedSummary(text=data["text"], deployed_url=url, tech_stack=stack)
    except ValidationError as e:
        raise GenerationParseError(json.dumps(data), str(e)) from e


def parse_summary(raw: Optional[str]) -> ParseResult:
    """Parse a generation reply into `Parsed` or `Malformed`."""
    if raw is None:
        return Malformed(raw="", reason="empty reply")
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        return Malformed(raw=raw, reason=f"invalid JSON: {e}")
    try:
        return Parsed(_check_reply(data))
    except GenerationParseError as e:
        return Malformed(raw=raw, reason=e.reason)


def resolve_summary(result: ParseResult) -> GeneratedSummary:
    """Return the parsed summary, or the degraded one for a malformed reply."""
    if isinstance(result, Parsed):
        return result.summary
    log.warning("Failed to parse AI summary response (%s): %r", result.reason, result.raw)
    return GeneratedSummary.degraded()


async def summarize_readme(generator: Any, readme: str) -> GeneratedSummary:
    """Ask `generator` for a summary of `readme` and normalize the reply."""
    raw = await generator.agenerate(readme)
    return resolve_summary(parse_summary(raw))


# ---- OpenAI generator --------------------------------------------------------

class OpenAIGenerator:
    """Generation service backed by an OpenAI chat model through LangChain.

    Attributes:
        model: The ChatOpenAI instance, bound to JSON response format.
        prompt: The PromptTemplate embedding the README.
        tracing: Whether Langfuse callbacks are attached to each call.
    """

    def __init__(self, model: str = "gpt-4.1-nano",
                 api_key: str | None = None,
                 temperature: float = 0.7,
                 prompt_template: str | None = None,
                 tracing: bool = False):
        self.model = ChatOpenAI(
            model=model,
            api_key=api_key,
            temperature=temperature,
        ).bind(response_format={"type": "json_object"})
        self.prompt = (
            PromptTemplate.from_template(prompt_template)
            if prompt_template
            else load_prompt_template()
        )
        self.tracing = tracing

    async def agenerate(self, readme: str) -> str:
        chain = self.prompt | self.model | StrOutputParser()
        if not self.tracing:
            return await chain.ainvoke({"readme": readme})

        langfuse = get_client()
        try:
            return await chain.ainvoke({"readme": readme}, config={"callbacks": [CallbackHandler()]})
        finally:
            langfuse.flush()


# ---- per-repository summarizer ----------------------------------------------

class ReadmeSummarizer:
    """Fetches, summarizes and caches one repository at a time.

    The cache is checked after the README fetch and before the generation
    call; a hit is returned verbatim even if the README changed.
    """

    def __init__(self, generator: Any, cache: SummaryCache | None = None):
        self.generator = generator
        self.cache = cache if cache is not None else SummaryCache()

    async def summarize(
        self,
        client: httpx.AsyncClient,
        repo: Repository,
        token: str | None,
        api_version: str = API_VERSION,
    ) -> SummaryRecord:
        readme = await fetch_readme(client, repo.full_name, token, api_version)

        cached = self.cache.get(repo.full_name)
        if cached is not None:
            log.debug("summary cache hit for %s", repo.full_name)
            return cached

        generated = await summarize_readme(self.generator, readme)
        record = SummaryRecord.build(repo, generated)
        self.cache.put(repo.full_name, record)
        return record

    async def summarize_or_none(
        self,
        client: httpx.AsyncClient,
        repo: Repository,
        token: str | None,
        api_version: str = API_VERSION,
    ) -> SummaryRecord | None:
        """Like `summarize`, but any failure drops this repository only."""
        try:
            return await self.summarize(client, repo, token, api_version)
        except Exception:
            log.exception("Error processing repo %s", repo.name)
            return None
