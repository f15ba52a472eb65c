"""Tests for mcq.jira.manager."""

from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from mcq.config import JiraConfig
from mcq.errors import ErrorCode, UserError
from mcq.jira.client import Comment, Issue, JiraError
from mcq.jira.manager import JiraManager, ValidationError, validate_inputs
from mcq.jira.titles import TitleExtractor
from tests._fixtures.fakes import ScriptedPrompter

CONFIG = JiraConfig(
    url="https://acme.atlassian.net",
    username="dev@acme.io",
    api_token="token-123",
    project_prefix="PROJ",
)
STORY = "As a user, I want a dashboard so that I can monitor metrics.\n- shows charts"


class StubClient:
    def __init__(self, issue: Optional[Issue] = None, error: Optional[JiraError] = None) -> None:
        self.issue = issue
        self.error = error
        self.created: List[Dict[str, Any]] = []
        self.fetched: List[str] = []

    def get_issue(self, issue_key: str) -> Issue:
        self.fetched.append(issue_key)
        if self.error is not None:
            raise self.error
        assert self.issue is not None
        return self.issue

    def create_issue(self, fields: Dict[str, Any]) -> str:
        if self.error is not None:
            raise self.error
        self.created.append(fields)
        return "PROJ-101"

    def get_user_display_name(self, account_id: str) -> Optional[str]:
        return "Jane Doe"

    def browse_url(self, issue_key: str) -> str:
        return f"https://acme.atlassian.net/browse/{issue_key}"


def _manager(client: StubClient, prompter: ScriptedPrompter, config: JiraConfig = CONFIG):  # type: ignore[no-untyped-def]
    out = io.StringIO()
    return JiraManager(config, client, prompter, out=out), out  # type: ignore[arg-type]


def _titles(prompter: ScriptedPrompter, title: str = "# Add metrics dashboard\n") -> TitleExtractor:
    return TitleExtractor(lambda story, request: title, prompter, out=io.StringIO())


def test_validate_inputs_rejects_blank_values() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate_inputs("  ", "request")
    assert excinfo.value.field == "userStory"

    with pytest.raises(ValidationError) as excinfo:
        validate_inputs("story", "")
    assert str(excinfo.value) == "validation error for field 'featureRequest': cannot be empty"


def test_create_issue_builds_story_fields() -> None:
    client = StubClient()
    prompter = ScriptedPrompter(yes_no=[True])
    manager, _ = _manager(client, prompter)

    key = manager.create_issue(STORY, "metrics", _titles(prompter))

    assert key == "PROJ-101"
    assert client.created == [
        {
            "project": {"key": "PROJ"},
            "issuetype": {"name": "Story"},
            "summary": "Add metrics dashboard",
            "description": (
                "As a user, I want a dashboard so that I can monitor metrics.\n* shows charts"
            ),
        }
    ]


def test_create_issue_requires_project_prefix() -> None:
    config = JiraConfig(url="https://x", username="u", api_token="t")
    prompter = ScriptedPrompter()
    manager, _ = _manager(StubClient(), prompter, config)

    with pytest.raises(UserError) as excinfo:
        manager.create_issue(STORY, "metrics", _titles(prompter))

    assert excinfo.value.code is ErrorCode.JIRA_CONFIG_MISSING
    assert excinfo.value.details == ["JIRA_PROJECT_PREFIX environment variable is required"]


def test_create_issue_classifies_auth_failures() -> None:
    prompter = ScriptedPrompter(yes_no=[True])
    manager, _ = _manager(StubClient(error=JiraError("rejected", status=401)), prompter)

    with pytest.raises(UserError) as excinfo:
        manager.create_issue(STORY, "metrics", _titles(prompter))

    assert excinfo.value.code is ErrorCode.JIRA_AUTH_FAILED


def test_create_issue_404_points_at_url_and_project() -> None:
    prompter = ScriptedPrompter(yes_no=[True])
    manager, _ = _manager(StubClient(error=JiraError("project not found", status=404)), prompter)

    with pytest.raises(UserError) as excinfo:
        manager.create_issue(STORY, "metrics", _titles(prompter))

    assert excinfo.value.code is ErrorCode.UNKNOWN_ERROR
    assert excinfo.value.details == [
        "JIRA returned 404: check the instance URL and project prefix"
    ]


def test_fetch_issue_normalizes_key_and_maps_not_found() -> None:
    client = StubClient(error=JiraError("missing", status=404))
    manager, _ = _manager(client, ScriptedPrompter())

    with pytest.raises(UserError) as excinfo:
        manager.fetch_issue("123")

    assert client.fetched == ["PROJ-123"]
    assert excinfo.value.code is ErrorCode.ISSUE_NOT_FOUND


def test_show_issue_renders_fields_and_comments() -> None:
    issue = Issue(
        key="PROJ-7",
        summary="Add dark mode",
        description="h2. Goal\n* toggle for [~accountid:abc]",
        status="In Progress",
        priority="High",
        issue_type="Story",
        assignee="Jane Doe",
        sprint="Sprint 12",
        labels=["ui", "theme"],
        created=datetime(2024, 3, 1, 10, 15, 30, tzinfo=timezone.utc),
        comments=[Comment(author="Sam Roe", body="Line one\nLine two")],
    )
    prompter = ScriptedPrompter(yes_no=[True])
    manager, out = _manager(StubClient(issue=issue), prompter)

    manager.show_issue("PROJ-7")

    text = out.getvalue()
    assert "🔍 Jira Issue: PROJ-7" in text
    assert "📋 Summary: Add dark mode" in text
    assert "📊 Status: In Progress" in text
    assert "👤 Assignee: Jane Doe" in text
    assert "📢 Reporter" not in text
    assert "📅 Created: 2024-03-01 10:15:30" in text
    assert "🔄 Updated: unknown" in text
    assert "🏃 Sprint: Sprint 12" in text
    assert "🏷️  Labels: ui, theme" in text
    assert "📄 Description:\n## Goal\n- toggle for @Jane Doe\n" in text
    assert "💬 Comments (1) available." in text
    assert "1. Sam Roe (unknown):\n   Line one\n   Line two\n" in text
    assert prompter.questions == ["Show comments?"]


def test_show_issue_can_skip_comments() -> None:
    issue = Issue(key="PROJ-7", comments=[Comment(author="Sam", body="hidden")])
    manager, out = _manager(StubClient(issue=issue), ScriptedPrompter(yes_no=[False]))

    manager.show_issue("PROJ-7")

    assert "Skipping comments." in out.getvalue()
    assert "hidden" not in out.getvalue()
