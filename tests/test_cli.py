from __future__ import annotations

import json

import pytest

from issuemirror import cli
from issuemirror.github_rest import GitHubRestClient
from issuemirror.models import FieldDescriptor, FieldOption, ProjectHandle


class _FakeProjects:
    def __init__(self, rest, logger=None):
        self.rest = rest

    def resolve_project(self, organization, number):
        return ProjectHandle(id=f"PVT_{organization}_{number}", title="Roadmap")

    def list_fields(self, project_id):
        return [
            FieldDescriptor(
                name="Status",
                id="F_status",
                options=(FieldOption("Todo", "O_todo"), FieldOption("Done", "O_done")),
            )
        ]


@pytest.fixture
def runner_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("INPUT_GITHUB_TOKEN", "ghp_source")
    monkeypatch.setenv("INPUT_DESTINATION_ORG", "acme")
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/widgets")
    return tmp_path


def test_resolve_field_prints_ids(monkeypatch, capsys):
    monkeypatch.setenv("GITHUB_TOKEN", "ghp_cli")
    monkeypatch.setattr(cli, "ProjectsClient", _FakeProjects)

    rc = cli.main(
        ["resolve-field", "--org", "acme", "--project", "7", "--field", "status", "--value", "DONE"]
    )

    assert rc == 0
    out = capsys.readouterr().out
    document = json.loads(out[out.index("{"):])
    assert document == {
        "project": {"id": "PVT_acme_7", "title": "Roadmap"},
        "field": "F_status",
        "value": "O_done",
    }


def test_resolve_field_unknown_value(monkeypatch, capsys):
    monkeypatch.setattr(cli, "ProjectsClient", _FakeProjects)

    rc = cli.main(
        [
            "resolve-field",
            "--org", "acme",
            "--project", "7",
            "--field", "Status",
            "--value", "Blocked",
            "--token", "ghp_arg",
        ]
    )

    assert rc == 1
    err = capsys.readouterr().err
    assert "[resolve-field] Project value 'Blocked' does not exist." in err


def test_resolve_field_requires_token(capsys):
    rc = cli.main(["resolve-field", "--org", "a", "--project", "1", "--field", "f", "--value", "v"])
    assert rc == 1
    assert "GitHub token required" in capsys.readouterr().err


def test_sync_missing_configuration(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("GITHUB_REPOSITORY", "octo/widgets")

    rc = cli.main(["sync", "--event-name", "workflow_dispatch"])

    assert rc == 1
    assert "Input required and not supplied: GITHUB_TOKEN" in capsys.readouterr().out


def test_sync_unsupported_event_fails(runner_env, capsys):
    rc = cli.main(["sync", "--event-name", "push"])

    assert rc == 1
    assert "Event 'push' is not expected. Failing." in capsys.readouterr().out


def test_sync_workflow_dispatch_without_issues(runner_env, monkeypatch, capsys):
    calls = []

    def fake_list_issues(self, *, state="open", labels=None):
        calls.append((self.repo, state, labels))
        return []

    monkeypatch.setattr(GitHubRestClient, "list_issues", fake_list_issues)

    rc = cli.main(["--log-format", "actions", "sync", "--event-name", "workflow_dispatch"])

    assert rc == 0
    assert calls == [("octo/widgets", "all", None)]
    out = capsys.readouterr().out
    assert "::notice::No issues found" in out
    assert "Operation finished successfully!" in out


def test_sync_issue_event_skipped(runner_env, monkeypatch, capsys):
    monkeypatch.setenv("INPUT_LABELS", "bug")
    event = runner_env / "event.json"
    event.write_text(
        json.dumps(
            {"action": "labeled", "label": {"name": "docs"}, "issue": {"number": 3, "title": "T"}}
        ),
        encoding="utf-8",
    )

    rc = cli.main(["sync", "--event-name", "issues", "--event-path", str(event)])

    assert rc == 0
    assert "Skipped assignment as it didn't fulfill requirements." in capsys.readouterr().out


def test_quiet_mode_hides_info(runner_env, monkeypatch, capsys):
    monkeypatch.setenv("ISSUEMIRROR_QUIET", "1")
    monkeypatch.setattr(GitHubRestClient, "list_issues", lambda self, **kw: [])

    rc = cli.main(["sync", "--event-name", "workflow_dispatch"])

    assert rc == 0
    assert "Operation finished successfully!" not in capsys.readouterr().out


def test_help_lists_subcommands(capsys):
    with pytest.raises(SystemExit):
        cli.main(["--help"])
    out = capsys.readouterr().out
    assert "sync" in out
    assert "resolve-field" in out


def test_sync_undecodable_event_payload(runner_env, capsys):
    event = runner_env / "event.json"
    event.write_bytes(b'{"action": "opened", "issue": {"title": "\xff"}}')

    rc = cli.main(["sync", "--event-name", "issues", "--event-path", str(event)])

    assert rc == 1
    assert "is not valid UTF-8" in capsys.readouterr().out


def test_resolve_field_and_sync_share_token_variables(monkeypatch, capsys):
    seen = []

    class _RecordingProjects(_FakeProjects):
        def __init__(self, rest, logger=None):
            super().__init__(rest, logger)
            seen.append(rest.token)

    monkeypatch.setenv("ISSUEMIRROR_GITHUB_TOKEN", "ghp_pkg")
    monkeypatch.setattr(cli, "ProjectsClient", _RecordingProjects)

    rc = cli.main(
        ["resolve-field", "--org", "acme", "--project", "7", "--field", "Status", "--value", "Todo"]
    )

    assert rc == 0
    assert seen == ["ghp_pkg"]
    assert cli.TOKEN_FALLBACK_VARS[0] == "ISSUEMIRROR_GITHUB_TOKEN"
