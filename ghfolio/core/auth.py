"""Admin authorization against the Supabase auth provider.

Admins sign in with an emailed one-time link. A bearer token is an admin
token when the account behind it has a verified email on the allow-list.
Emails are compared stripped and lower-cased on both sides.
"""
from __future__ import annotations
from typing import Any, Iterable, Optional
import logging

from .config import parse_admin_emails
from .errors import AdminRequiredError

log = logging.getLogger(__name__)


def _normalize(email: Optional[str]) -> str:
    return (email or "").strip().lower()


class AdminAuthorizer:
    """Decides whether a token or an email belongs to the admin.

    Args:
        client: A Supabase client (only `client.auth` is used).
        admin_emails: The allow-list, as configured.
    """

    def __init__(self, client: Any, admin_emails: Iterable[str]):
        self.client = client
        self.admin_emails = frozenset(parse_admin_emails(list(admin_emails)))

    def is_allowed_email(self, email: Optional[str]) -> bool:
        email = _normalize(email)
        return bool(email) and email in self.admin_emails

    def email_for_token(self, token: Optional[str]) -> Optional[str]:
        """Return the email of the account behind `token`, or None."""
        if not token:
            return None
        try:
            response = self.client.auth.get_user(token)
        except Exception:
            log.warning("Admin verification failed for supplied token", exc_info=True)
            return None
        user = getattr(response, "user", None)
        return getattr(user, "email", None) if user else None

    def is_admin(self, token: Optional[str]) -> bool:
        """True when `token` resolves to an allow-listed email. Never raises."""
        try:
            return self.is_allowed_email(self.email_for_token(token))
        except Exception:
            log.exception("Admin verification error")
            return False

    def require_admin(self, token: Optional[str]) -> None:
        if not self.is_admin(token):
            raise AdminRequiredError("Admin access required")

    def request_sign_in(self, email: str, redirect_to: Optional[str] = None) -> bool:
        """Email a one-time sign-in link if `email` is on the allow-list.

        Returns:
            True when a link was sent, False when the email is not allowed.
        """
        if not self.is_allowed_email(email):
            log.info("Sign-in refused for %s: not on the admin list", email)
            return False
        credentials: dict = {"email": email.strip()}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        self.client.auth.sign_in_with_otp(credentials)
        return True
