"""CLI tests with the pipeline and Supabase patched out."""

import importlib
import json
from unittest.mock import patch

import pytest

from ghfolio.core.config import Settings
from ghfolio.core.errors import UpstreamError
from ghfolio.core.models import SummaryRecord

cli = importlib.import_module("ghfolio.cli.main")

CARDS = [
    SummaryRecord(
        name="alpha",
        full_name="octocat/alpha",
        summary="First project.",
        technologies=["Python"],
        deployed_url="https://alpha.dev",
        github_url="https://github.com/octocat/alpha",
    ),
    SummaryRecord(
        name="beta",
        full_name="octocat/beta",
        summary="Summary failed.",
        github_url="https://github.com/octocat/beta",
    ),
]


@pytest.fixture(autouse=True)
def fixed_settings(monkeypatch):
    settings = Settings(admin_emails=("admin@example.com",))
    monkeypatch.setattr(cli, "load_settings", lambda path=None: settings)
    monkeypatch.delenv("GHFOLIO_ADMIN_TOKEN", raising=False)
    return settings


def run(argv):
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


def test_to_markdown():
    md = cli.to_markdown(CARDS)
    assert md.splitlines() == [
        "- [alpha](https://github.com/octocat/alpha) ([live](https://alpha.dev)) — _Python_: First project.",
        "- [beta](https://github.com/octocat/beta): Summary failed.",
    ]


def test_projects_json(capsys):
    async def fake_projects(settings, marker=None):
        return CARDS

    with patch.object(cli, "get_portfolio_projects", fake_projects):
        assert run(["projects"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data[0]["githubUrl"] == "https://github.com/octocat/alpha"
    assert data[0]["deployedUrl"] == "https://alpha.dev"
    assert data[1]["technologies"] == []


def test_projects_writes_file(tmp_path, capsys):
    async def fake_projects(settings, marker=None):
        return CARDS

    out = tmp_path / "site" / "projects.md"
    with patch.object(cli, "get_portfolio_projects", fake_projects):
        assert run(["projects", "--format", "md", "--out", str(out)]) == 0
    assert out.read_text(encoding="utf-8").startswith("- [alpha]")
    assert "(2 projects)" in capsys.readouterr().out


def test_upstream_error_exits_1(capsys):
    async def failing(settings, marker=None):
        raise UpstreamError(403, "forbidden")

    with patch.object(cli, "get_portfolio_projects", failing):
        assert run(["projects"]) == 1
    assert "403 - forbidden" in capsys.readouterr().err


def test_check_email(capsys):
    assert run(["admin", "check-email", "ADMIN@example.com"]) == 0
    assert json.loads(capsys.readouterr().out) == {"allowed": True}
    assert run(["admin", "check-email", "someone@example.com"]) == 1


def test_feedback_moderation_flow(supabase, capsys):
    with patch.object(cli, "get_supabase", lambda settings: supabase):
        assert run(["feedback", "submit", "octocat/alpha", "--author", "Ada",
                    "--email", "ada@example.com", "--comment", "Great"]) == 0
        assert run(["feedback", "approve-pending"]) == 1
        assert run(["feedback", "--token", "admin-token", "approve-pending"]) == 0
    assert supabase.tables["project_feedback"][0]["approved"] is True
    assert "approved 1 pending feedback(s)" in capsys.readouterr().out


def test_feedback_submit_rejects_bad_email(supabase, capsys):
    with patch.object(cli, "get_supabase", lambda settings: supabase):
        assert run(["feedback", "submit", "octocat/alpha", "--author", "Ada",
                    "--email", "nope", "--comment", "Great"]) == 2
    assert "project_feedback" not in supabase.tables


def test_retro_save_and_show(supabase, capsys, monkeypatch):
    monkeypatch.setenv("GHFOLIO_ADMIN_TOKEN", "admin-token")
    with patch.object(cli, "get_supabase", lambda settings: supabase):
        assert run(["retro", "save", "octocat/alpha", "alpha", "Ship smaller PRs."]) == 0
        assert run(["retro", "show", "octocat/alpha"]) == 0
    assert capsys.readouterr().out.splitlines()[-1] == "Ship smaller PRs."


def test_projects_without_openai_key_exits_1(capsys):
    assert run(["projects"]) == 1
    err = capsys.readouterr().err
    assert err.startswith("error: ")
    assert "OPENAI_API_KEY" in err


def test_projects_with_retro(supabase, capsys):
    async def fake_projects(settings, marker=None):
        return CARDS

    supabase.tables["project_retrospectives"] = [
        {"project_id": "octocat/alpha", "project_name": "alpha", "retrospective": "Start with tests."},
    ]
    with patch.object(cli, "get_portfolio_projects", fake_projects), \
            patch.object(cli, "get_supabase", lambda settings: supabase):
        assert run(["projects", "--with-retro"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert [d["retrospective"] for d in data] == ["Start with tests.", None]
    assert CARDS[0].retrospective is None


def test_to_markdown_with_retrospective():
    card = CARDS[1].model_copy(update={"retrospective": "Cache earlier."})
    assert cli.to_markdown([card]).splitlines() == [
        "- [beta](https://github.com/octocat/beta): Summary failed.",
        "  - Retrospective: Cache earlier.",
    ]
