"""Command-line interface for ghfolio.

Generates portfolio cards from GitHub and drives the admin moderation flows.

Usage:
    ```bash
    # Cards as JSON (default) or Markdown
    ghfolio projects
    ghfolio projects --format md --out build/projects.md
    ghfolio projects --with-retro

    # Feedback moderation (admin token from --token or GHFOLIO_ADMIN_TOKEN)
    ghfolio feedback list --status pending
    ghfolio feedback approve 12 13
    ghfolio feedback approve-pending
    ghfolio feedback delete 12

    # Retrospectives and admin sign-in
    ghfolio retro show octocat/hello
    ghfolio retro save octocat/hello hello "Would do it in Rust next time."
    ghfolio admin login me@example.com --redirect https://example.com
    ```

Configuration:
    - Command-line arguments (highest priority)
    - Environment variables / .env
    - config.toml file (lowest priority)
"""
from __future__ import annotations
from typing import Any, List, Optional
import argparse
import asyncio
import json
import logging
import os
import sys

from pydantic import ValidationError

from ..core.auth import AdminAuthorizer
from ..core.config import Settings, load_settings
from ..core.errors import GhfolioError
from ..core.models import FeedbackSubmission, SummaryRecord
from ..core.pipeline import get_portfolio_projects
from ..core.store import FeedbackStore, RetrospectiveStore
from ..core.supa import get_supabase


def to_markdown(records: List[SummaryRecord]) -> str:
    """Convert portfolio cards to a Markdown list."""
    lines = []
    for rec in records:
        tech = f" — _{', '.join(rec.technologies)}_" if rec.technologies else ""
        live = f" ([live]({rec.deployed_url}))" if rec.deployed_url else ""
        lines.append(f"- [{rec.name}]({rec.github_url}){live}{tech}: {rec.summary}")
        if rec.retrospective:
            lines.append(f"  - Retrospective: {rec.retrospective}")
    return "\n".join(lines)


def _write(payload: str, out: Optional[str], count: int) -> None:
    if out:
        os.makedirs(os.path.dirname(out) or ".", exist_ok=True)
        with open(out, "w", encoding="utf-8") as f:
            f.write(payload)
        print(f"wrote {out} ({count} projects)")
    else:
        print(payload)


def _authorizer(settings: Settings, client: Any) -> AdminAuthorizer:
    return AdminAuthorizer(client, settings.admin_emails)


def _token(args: argparse.Namespace) -> Optional[str]:
    return args.token or os.getenv("GHFOLIO_ADMIN_TOKEN")


def with_retrospectives(records: List[SummaryRecord], store: RetrospectiveStore) -> List[SummaryRecord]:
    """Return copies of `records` carrying their stored retrospective, if any."""
    return [r.model_copy(update={"retrospective": store.get(r.full_name)}) for r in records]


# ---- commands ----------------------------------------------------------------

def cmd_projects(args: argparse.Namespace, settings: Settings) -> int:
    records = asyncio.run(get_portfolio_projects(settings, marker=args.marker))
    if args.with_retro:
        client = get_supabase(settings)
        records = with_retrospectives(records, RetrospectiveStore(client, _authorizer(settings, client)))
    if args.format == "json":
        payload = json.dumps(
            [r.model_dump(mode="json", by_alias=True) for r in records],
            ensure_ascii=False,
            indent=2,
        )
    else:
        payload = to_markdown(records)
    _write(payload, args.out, len(records))
    return 0


def cmd_feedback(args: argparse.Namespace, settings: Settings) -> int:
    client = get_supabase(settings)
    store = FeedbackStore(client, _authorizer(settings, client))

    if args.action == "list":
        approved = {"all": None, "pending": False, "approved": True}[args.status]
        items = store.list(approved=approved, project_id=args.project)
        print(json.dumps([f.model_dump(mode="json") for f in items], ensure_ascii=False, indent=2))
    elif args.action == "submit":
        try:
            submission = FeedbackSubmission(author=args.author, email=args.email, comment=args.comment)
        except ValidationError as e:
            print(f"invalid feedback: {e.errors()[0]['msg']}", file=sys.stderr)
            return 2
        store.submit(args.project, submission)
        print("Thank you for your feedback! It will be reviewed before being published.")
    elif args.action == "approve":
        n = store.approve_many(args.ids, _token(args))
        print(f"approved {n} feedback(s)")
    elif args.action == "approve-pending":
        pending = [f.id for f in store.list(approved=False, project_id=args.project)]
        n = store.approve_many(pending, _token(args))
        print(f"approved {n} pending feedback(s)")
    elif args.action == "delete":
        store.delete(args.id, _token(args))
        print(f"deleted {args.id}")
    return 0


def cmd_retro(args: argparse.Namespace, settings: Settings) -> int:
    client = get_supabase(settings)
    store = RetrospectiveStore(client, _authorizer(settings, client))

    if args.action == "show":
        text = store.get(args.project)
        print(text or "No retrospective available for this project yet.")
    else:
        store.save(args.project, args.name, args.text, _token(args))
        print("Retrospective saved successfully!")
    return 0


def cmd_admin(args: argparse.Namespace, settings: Settings) -> int:
    if args.action == "check-email":
        allowed = AdminAuthorizer(None, settings.admin_emails).is_allowed_email(args.email)
        print(json.dumps({"allowed": allowed}))
        return 0 if allowed else 1

    client = get_supabase(settings)
    auth = _authorizer(settings, client)
    if args.action == "verify":
        email = auth.email_for_token(_token(args))
        is_admin = auth.is_allowed_email(email)
        print(json.dumps({"isAdmin": is_admin, "user": {"email": email}}))
        return 0 if is_admin else 1
    if not auth.request_sign_in(args.email, redirect_to=args.redirect):
        print("Access denied. You're not on the admin list.", file=sys.stderr)
        return 1
    print(f"sign-in link sent to {args.email}")
    return 0


# ---- parser -------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ghfolio", description="AI-summarized GitHub portfolio backend.")
    p.add_argument("--config", help="Path to config.toml (defaults to ./config.toml if present)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="command", required=True)

    pr = sub.add_parser("projects", help="Summarize tagged repositories into cards")
    pr.add_argument("--format", choices=["json", "md"], default="json", help="Output format")
    pr.add_argument("--out", help="Write to file instead of stdout")
    pr.add_argument("--marker", help="Description marker token (default from config: #portfolio)")
    pr.add_argument("--with-retro", action="store_true",
                    help="Attach each project's retrospective from Supabase")
    pr.set_defaults(func=cmd_projects)

    fb = sub.add_parser("feedback", help="Visitor feedback and moderation")
    fb.add_argument("--token", help="Admin access token (or GHFOLIO_ADMIN_TOKEN)")
    fb_sub = fb.add_subparsers(dest="action", required=True)
    fl = fb_sub.add_parser("list")
    fl.add_argument("--status", choices=["all", "pending", "approved"], default="all")
    fl.add_argument("--project", help="Only feedback for this project id")
    fs = fb_sub.add_parser("submit")
    fs.add_argument("project")
    fs.add_argument("--author", required=True)
    fs.add_argument("--email", required=True)
    fs.add_argument("--comment", required=True)
    fa = fb_sub.add_parser("approve")
    fa.add_argument("ids", nargs="+")
    fp = fb_sub.add_parser("approve-pending")
    fp.add_argument("--project", help="Only pending feedback for this project id")
    fd = fb_sub.add_parser("delete")
    fd.add_argument("id")
    fb.set_defaults(func=cmd_feedback)

    rt = sub.add_parser("retro", help="Per-project retrospectives")
    rt.add_argument("--token", help="Admin access token (or GHFOLIO_ADMIN_TOKEN)")
    rt_sub = rt.add_subparsers(dest="action", required=True)
    rs = rt_sub.add_parser("show")
    rs.add_argument("project")
    rv = rt_sub.add_parser("save")
    rv.add_argument("project")
    rv.add_argument("name")
    rv.add_argument("text")
    rt.set_defaults(func=cmd_retro)

    ad = sub.add_parser("admin", help="Admin allow-list and sign-in")
    ad.add_argument("--token", help="Admin access token (or GHFOLIO_ADMIN_TOKEN)")
    ad_sub = ad.add_subparsers(dest="action", required=True)
    ac = ad_sub.add_parser("check-email")
    ac.add_argument("email")
    ad_sub.add_parser("verify")
    al = ad_sub.add_parser("login")
    al.add_argument("email")
    al.add_argument("--redirect", help="URL the emailed link redirects to")
    ad.set_defaults(func=cmd_admin)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    Raises:
        SystemExit: With the command's exit status; 1 on ghfolio errors.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings(args.config or "config.toml")
    try:
        code = args.func(args, settings)
    except GhfolioError as e:
        print(f"error: {e}", file=sys.stderr)
        code = 1
    sys.exit(code)


if __name__ == "__main__":
    main()
