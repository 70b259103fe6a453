"""Pydantic models shared by the pipeline, the stores and the CLI."""
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

README_NOT_FOUND = "README not found."
SUMMARY_FAILED = "Summary failed."


class Repository(BaseModel):
    """A repository descriptor as returned by `GET /user/repos`."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    full_name: str
    description: Optional[str] = None
    html_url: str

    def has_marker(self, marker: str) -> bool:
        return bool(self.description) and marker in self.description


class GeneratedSummary(BaseModel):
    """The structured reply of the generation service."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    text: str
    deployed_url: Optional[str] = Field(default=None, alias="deployedUrl")
    tech_stack: List[str] = Field(default_factory=list, alias="techStack")

    @field_validator("deployed_url")
    @classmethod
    def _blank_url_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @classmethod
    def degraded(cls) -> "GeneratedSummary":
        """Fallback used when a reply cannot be parsed."""
        return cls(text=SUMMARY_FAILED, deployed_url=None, tech_stack=[])

    def to_reply(self) -> dict:
        return self.model_dump(by_alias=True)


class SummaryRecord(BaseModel):
    """Card-ready summary of one repository; the unit stored in the cache.

    `retrospective` is filled only when a card is joined with its stored
    retrospective; cached records never carry one.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str
    full_name: str = Field(alias="fullName")
    summary: str
    technologies: List[str] = Field(default_factory=list)
    deployed_url: Optional[str] = Field(default=None, alias="deployedUrl")
    github_url: str = Field(alias="githubUrl")
    retrospective: Optional[str] = None

    @classmethod
    def build(cls, repo: Repository, generated: GeneratedSummary) -> "SummaryRecord":
        return cls(
            name=repo.name,
            full_name=repo.full_name,
            summary=generated.text,
            technologies=list(generated.tech_stack),
            deployed_url=generated.deployed_url,
            github_url=repo.html_url,
        )


@dataclass(frozen=True)
class Parsed:
    summary: GeneratedSummary


@dataclass(frozen=True)
class Malformed:
    raw: str
    reason: str = ""


ParseResult = Union[Parsed, Malformed]


class FeedbackSubmission(BaseModel):
    """Visitor input for a new feedback entry."""

    author: str = Field(min_length=1)
    email: EmailStr
    comment: str = Field(min_length=1)

    @field_validator("author", "comment", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class Feedback(BaseModel):
    """A row of the `project_feedback` table."""

    model_config = ConfigDict(extra="ignore")

    id: str
    project_id: str
    author: str
    email: str
    comment: str
    approved: bool = False
    created_at: datetime

    @field_validator("id", "project_id", mode="before")
    @classmethod
    def _as_str(cls, v):
        return str(v) if v is not None else v


class Retrospective(BaseModel):
    """A row of the `project_retrospectives` table."""

    model_config = ConfigDict(extra="ignore")

    project_id: str
    project_name: Optional[str] = None
    retrospective: str = ""
