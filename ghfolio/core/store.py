"""Feedback and retrospective storage on Supabase.

Tables:
    project_feedback: id, project_id, author, email, comment, approved, created_at
    project_retrospectives: project_id (unique), project_name, retrospective

Visitors may submit feedback and read approved entries. Approving, deleting
and editing retrospectives require an admin token; Supabase row-level security
remains the authoritative check, these calls refuse early.
"""
from __future__ import annotations
from typing import Any, Iterable, List, Optional
import logging

from postgrest.exceptions import APIError

from .auth import AdminAuthorizer
from .errors import StoreError
from .models import Feedback, FeedbackSubmission, Retrospective

log = logging.getLogger(__name__)

FEEDBACK_TABLE = "project_feedback"
RETROSPECTIVE_TABLE = "project_retrospectives"


def _execute(query: Any, action: str) -> List[dict]:
    """Run a PostgREST query and return its rows.

    Args:
        query: A query builder with an `execute()` method.
        action: Short description used in log lines and error messages.

    Returns:
        The response rows, or an empty list when there are none.

    Raises:
        StoreError: The database rejected the request.
    """
    try:
        response = query.execute()
    except APIError as e:
        log.error("Error %s: %s", action, e)
        raise StoreError(f"Error {action}: {e.message}") from e
    return response.data or []


class FeedbackStore:
    """Visitor feedback in the `project_feedback` table.

    Attributes:
        client: Supabase client.
        authorizer: Checks admin tokens before any mutation.
    """

    def __init__(self, client: Any, authorizer: AdminAuthorizer):
        self.client = client
        self.authorizer = authorizer

    def _table(self):
        return self.client.table(FEEDBACK_TABLE)

    def submit(self, project_id: str, submission: FeedbackSubmission) -> Optional[Feedback]:
        """Insert a visitor's feedback. New entries always start unapproved.

        Args:
            project_id: Full name of the repository the feedback is about.
            submission: Validated author, email and comment.

        Returns:
            The stored row, or None if the database returned no representation.
        """
        row = {
            "project_id": project_id,
            "author": submission.author,
            "email": str(submission.email),
            "comment": submission.comment,
            "approved": False,
        }
        data = _execute(self._table().insert(row), "submitting feedback")
        return Feedback.model_validate(data[0]) if data else None

    def list(self, approved: Optional[bool] = None, project_id: Optional[str] = None) -> List[Feedback]:
        """Return feedback newest first, optionally filtered.

        Args:
            approved: Keep only approved (True) or pending (False) entries.
            project_id: Keep only entries for this repository.

        Returns:
            Matching feedback ordered by `created_at` descending.
        """
        query = self._table().select("*")
        if project_id is not None:
            query = query.eq("project_id", project_id)
        if approved is not None:
            query = query.eq("approved", approved)
        query = query.order("created_at", desc=True)
        return [Feedback.model_validate(r) for r in _execute(query, "loading feedbacks")]

    def list_for_project(self, project_id: str, include_pending: bool = False) -> List[Feedback]:
        """Feedback shown on a project card; pending entries only for admins."""
        return self.list(approved=None if include_pending else True, project_id=project_id)

    def approve(self, feedback_id: str, token: Optional[str]) -> None:
        """Mark one entry approved.

        Raises:
            AdminRequiredError: `token` does not belong to an admin.
        """
        self.authorizer.require_admin(token)
        _execute(self._table().update({"approved": True}).eq("id", feedback_id), "approving feedback")

    def approve_many(self, feedback_ids: Iterable[str], token: Optional[str]) -> int:
        """Approve every id in `feedback_ids` with a single update.

        Args:
            feedback_ids: Ids to approve; duplicates are collapsed.
            token: Session token of the caller.

        Returns:
            Number of distinct ids sent to the database.

        Raises:
            AdminRequiredError: `token` does not belong to an admin.
        """
        ids = list(dict.fromkeys(feedback_ids))
        self.authorizer.require_admin(token)
        if not ids:
            return 0
        _execute(self._table().update({"approved": True}).in_("id", ids), "approving feedbacks")
        return len(ids)

    def delete(self, feedback_id: str, token: Optional[str]) -> None:
        """Remove one entry (admin only)."""
        self.authorizer.require_admin(token)
        _execute(self._table().delete().eq("id", feedback_id), "deleting feedback")


class RetrospectiveStore:
    """Per-project retrospectives, one row per project in `project_retrospectives`."""

    def __init__(self, client: Any, authorizer: AdminAuthorizer):
        self.client = client
        self.authorizer = authorizer

    def get(self, project_id: str) -> Optional[str]:
        """Return the retrospective text for a project.

        Args:
            project_id: Full name of the repository.

        Returns:
            The text, or None when no row exists or the text is empty.
        """
        query = (
            self.client.table(RETROSPECTIVE_TABLE)
            .select("*")
            .eq("project_id", project_id)
            .limit(1)
        )
        data = _execute(query, "loading retrospective")
        if not data:
            return None
        return Retrospective.model_validate(data[0]).retrospective or None

    def save(self, project_id: str, project_name: str, text: str, token: Optional[str]) -> Retrospective:
        """Create or replace the retrospective of `project_id` (admin only).

        Args:
            project_id: Full name of the repository; the upsert conflict key.
            project_name: Display name stored alongside.
            text: Retrospective body.
            token: Session token of the caller.

        Returns:
            The record that was written.
        """
        self.authorizer.require_admin(token)
        record = Retrospective(project_id=project_id, project_name=project_name, retrospective=text)
        query = self.client.table(RETROSPECTIVE_TABLE).upsert(record.model_dump(), on_conflict="project_id")
        _execute(query, "saving retrospective")
        return record
