"""CLI parser and dispatch tests."""

from __future__ import annotations

import io
from pathlib import Path

import pytest

from mcq.app import App
from mcq.cli import _build_parser, _context_config, main
from mcq.config import ContextDefaults, McqConfig
from mcq.llm.registry import Provider
from mcq.llm.streaming import StreamEvent
from tests._fixtures.fakes import FakeStreamClient, ScriptedPrompter, deltas, failing, fake_system


def _app(tmp_path: Path, client: FakeStreamClient) -> App:
    return App(
        McqConfig(environ={"ANTHROPIC_API_KEY": "sk-ant-1111"}),
        prompter=ScriptedPrompter(),
        system=fake_system(tmp_path, fail=("git",)),
        clients={Provider.ANTHROPIC: client},
        cwd=tmp_path,
        out=io.StringIO(),
        err=io.StringIO(),
    )


def test_cli_accepts_verbose_before_and_after_command() -> None:
    parser = _build_parser()

    before = parser.parse_args(["-vv", "ai", "models"])
    after = parser.parse_args(["ai", "jira", "--verbose", "Add dark mode"])

    assert before.verbose == 2
    assert (after.group, after.command, after.verbose) == ("ai", "jira", 1)


def test_cli_joins_feature_request_words() -> None:
    args = _build_parser().parse_args(["ai", "jira", "-m", "gpt-5", "Add", "dark", "mode"])

    assert args.model == "gpt-5"
    assert args.text == ["Add", "dark", "mode"]


def test_cli_jira_new_accepts_overrides_and_dry_run() -> None:
    args = _build_parser().parse_args(
        ["jira", "new", "--dry-run", "--url", "https://x", "--project-prefix", "ABC", "Add SSO"]
    )

    assert args.dry_run is True
    assert args.url == "https://x"
    assert args.project_prefix == "ABC"


def test_cli_requires_a_command() -> None:
    with pytest.raises(SystemExit):
        _build_parser().parse_args(["ai"])


def test_context_config_defaults_to_auto_detect() -> None:
    args = _build_parser().parse_args(["ai", "jira", "x"])

    config = _context_config(args, ContextDefaults())

    assert config.auto_detect is True
    assert config.max_commits == 10


def test_context_config_honours_explicit_includes() -> None:
    args = _build_parser().parse_args(
        ["ai", "jira", "--include-readme", "--include-commits", "--max-commits", "3", "x"]
    )

    config = _context_config(args, ContextDefaults(max_file_size=1024))

    assert config.auto_detect is False
    assert config.include_readme and config.include_commits
    assert not config.include_structure
    assert config.max_commits == 3
    assert config.max_file_size == 1024


def test_context_config_no_context_disables_everything() -> None:
    args = _build_parser().parse_args(["ai", "jira", "--no-context", "--include-readme", "x"])

    assert _context_config(args, ContextDefaults()).any_enabled() is False


def test_dry_run_prints_story_and_exits_cleanly(tmp_path: Path) -> None:
    client = FakeStreamClient(
        deltas("As a user, ", "I want dark mode so that my eyes hurt less.")
    )
    app = _app(tmp_path, client)

    main(["jira", "new", "--dry-run", "--no-context", "-m", "claude", "Add", "dark", "mode"], app=app)

    out = app.out.getvalue()  # type: ignore[attr-defined]
    assert "As a user, I want dark mode so that my eyes hurt less.\n" in out
    assert "🔍 Dry run: no JIRA issue created." in out
    assert "Feature Request: Add dark mode" in client.prompts[0]


def test_token_limit_failure_exits_with_remediation(tmp_path: Path) -> None:
    client = FakeStreamClient(
        [StreamEvent.delta("As a")] + failing("input exceeds maximum context")
    )
    app = _app(tmp_path, client)

    with pytest.raises(SystemExit) as excinfo:
        main(["ai", "jira", "--no-context", "--no-clipboard", "Add dark mode"], app=app)

    assert excinfo.value.code == 1
    err = app.err.getvalue()  # type: ignore[attr-defined]
    assert "❌ Prompt Exceeds Model Context Limit" in err
    assert "--no-context" in err


def test_jira_flags_override_configuration(tmp_path: Path) -> None:
    app = _app(tmp_path, FakeStreamClient())

    with pytest.raises(SystemExit) as excinfo:
        main(["jira", "show", "--url", "https://override.example", "--username", "me", "7"], app=app)

    assert excinfo.value.code == 1
    assert app.config.jira.url == "https://override.example"
    assert app.config.jira.username == "me"
    assert "jira password/token not configured" in app.err.getvalue()  # type: ignore[attr-defined]


def test_failed_context_test_exits_non_zero(tmp_path: Path) -> None:
    app = _app(tmp_path, FakeStreamClient())

    with pytest.raises(SystemExit) as excinfo:
        main(["context", "test"], app=app)

    assert excinfo.value.code == 1


def test_templates_list_succeeds(tmp_path: Path) -> None:
    app = _app(tmp_path, FakeStreamClient())

    main(["templates", "list"], app=app)

    assert "• user_story" in app.out.getvalue()  # type: ignore[attr-defined]


def test_invalid_config_file_exits(tmp_path: Path, monkeypatch) -> None:
    config_file = tmp_path / ".mcq.yml"
    config_file.write_text("jira: [broken", encoding="utf-8")
    monkeypatch.delenv("MCQ_CONFIG", raising=False)

    with pytest.raises(SystemExit) as excinfo:
        main(["--config", str(config_file), "config", "show"])

    assert excinfo.value.code == 1
