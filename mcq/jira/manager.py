"""High-level JIRA flows: create a story from generated text, show an issue."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Optional, TextIO

from ..config import JiraConfig
from ..errors import ErrorCode, UserError, classify_error
from ..logging import get_logger, log_fields
from ..models import ExtractedTitle
from ..prompter import UserPrompter
from .client import Issue, JiraClient, JiraError
from .markup import WikiFormatter, markdown_to_wiki
from .titles import TitleExtractor

ISSUE_TYPE = "Story"
_RULE = "=" * 50
_COMMENT_RULE = "-" * 30
_DISPLAY_DATE = "%Y-%m-%d %H:%M:%S"


class ValidationError(ValueError):
    def __init__(self, field: str, message: str) -> None:
        super().__init__(f"validation error for field '{field}': {message}")
        self.field = field
        self.message = message


def validate_inputs(user_story: str, feature_request: str) -> None:
    if not user_story.strip():
        raise ValidationError("userStory", "cannot be empty")
    if not feature_request.strip():
        raise ValidationError("featureRequest", "cannot be empty")


class JiraManager:
    """Wraps :class:`JiraClient` with display and issue-creation workflows."""

    def __init__(
        self,
        config: JiraConfig,
        client: JiraClient,
        prompter: UserPrompter,
        *,
        out: TextIO | None = None,
    ) -> None:
        self.config = config
        self.client = client
        self._prompter = prompter
        self._out = out or sys.stdout
        self._logger = get_logger("jira")

    def create_issue(
        self,
        user_story: str,
        feature_request: str,
        titles: TitleExtractor,
    ) -> str:
        """Create a Story from ``user_story`` and return the new issue key."""
        validate_inputs(user_story, feature_request)
        project_key = self.config.project_prefix
        if not project_key:
            raise UserError(
                ErrorCode.JIRA_CONFIG_MISSING,
                details=["JIRA_PROJECT_PREFIX environment variable is required"],
            )

        title: ExtractedTitle = titles.extract(user_story, feature_request)
        fields = {
            "project": {"key": project_key},
            "issuetype": {"name": ISSUE_TYPE},
            "summary": title.text,
            "description": markdown_to_wiki(user_story),
        }
        self._logger.info(
            log_fields("Creating issue", project=project_key, title_source=title.source.value)
        )
        try:
            issue_key = self.client.create_issue(fields)
        except JiraError as exc:
            raise classify_error(exc, "Failed to create issue", caller="jira-create") from exc
        self._logger.info(log_fields("Issue created", key=issue_key))
        return issue_key

    def fetch_issue(self, issue_key: str) -> Issue:
        key = self.config.normalize_issue_key(issue_key)
        try:
            return self.client.get_issue(key)
        except JiraError as exc:
            raise classify_error(exc, f"Failed to fetch issue {key}", caller="jira") from exc

    def show_issue(self, issue_key: str) -> Issue:
        issue = self.fetch_issue(issue_key)
        self.display(issue)
        return issue

    def display(self, issue: Issue) -> None:
        formatter = WikiFormatter(user_lookup=self._lookup_user)
        write = self._out.write

        write(f"\n🔍 Jira Issue: {issue.key}\n")
        write(f"{_RULE}\n")
        write(f"📋 Summary: {formatter.to_markdown(issue.summary)}\n")
        write(f"📝 Type: {issue.issue_type}\n")
        write(f"📊 Status: {issue.status}\n")
        write(f"⚡ Priority: {issue.priority}\n")
        if issue.assignee:
            write(f"👤 Assignee: {issue.assignee}\n")
        if issue.reporter:
            write(f"📢 Reporter: {issue.reporter}\n")
        write(f"📅 Created: {_format_date(issue.created)}\n")
        write(f"🔄 Updated: {_format_date(issue.updated)}\n")
        if issue.sprint:
            write(f"🏃 Sprint: {issue.sprint}\n")
        if issue.parent:
            write(f"👨‍👩‍👧‍👦 Parent: {issue.parent}\n")
        if issue.labels:
            write(f"🏷️  Labels: {', '.join(issue.labels)}\n")
        if issue.components:
            write(f"🧩 Components: {', '.join(issue.components)}\n")
        if issue.fix_versions:
            write(f"🔧 Fix Versions: {', '.join(issue.fix_versions)}\n")

        if issue.description:
            write("\n📄 Description:\n")
            write(f"{formatter.to_markdown(issue.description)}\n")

        self._display_comments(issue, formatter)
        write(f"{_RULE}\n")

    def _display_comments(self, issue: Issue, formatter: WikiFormatter) -> None:
        if not issue.comments:
            return
        self._out.write(f"\n💬 Comments ({len(issue.comments)}) available.\n")
        if not self._prompter.ask_yes_no("Show comments?", default=True):
            self._out.write("Skipping comments.\n")
            return

        self._out.write(f"{_COMMENT_RULE}\n")
        for index, comment in enumerate(issue.comments, start=1):
            self._out.write(f"{index}. {comment.author} ({_format_date(comment.created)}):\n")
            body = formatter.to_markdown(comment.body).replace("\n", "\n   ")
            self._out.write(f"   {body}\n\n")

    def _lookup_user(self, account_id: str) -> Optional[str]:
        try:
            return self.client.get_user_display_name(account_id)
        except JiraError as exc:
            self._logger.debug("Could not resolve account %s: %s", account_id, exc)
            return None


def _format_date(value: Optional[datetime]) -> str:
    return value.strftime(_DISPLAY_DATE) if value is not None else "unknown"


__all__ = ["ISSUE_TYPE", "JiraManager", "ValidationError", "validate_inputs"]
