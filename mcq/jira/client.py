"""Minimal JIRA REST v2 client over urllib with basic auth."""

from __future__ import annotations

import base64
import json
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, TextIO
from urllib.error import HTTPError, URLError
from urllib.parse import quote, urlencode
from urllib.request import Request, urlopen

from ..config import DEFAULT_REQUEST_TIMEOUT, JiraConfig
from ..errors import ServiceError
from ..logging import get_logger, log_fields

DATE_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"
SPRINT_FIELD = "customfield_10020"


class JiraError(ServiceError):
    """HTTP or transport failure talking to JIRA."""


@dataclass
class Comment:
    author: str
    body: str
    created: Optional[datetime] = None
    updated: Optional[datetime] = None


@dataclass
class Issue:
    """The fields of an issue that ``jira show`` displays."""

    key: str
    summary: str = ""
    description: str = ""
    status: str = ""
    priority: str = ""
    issue_type: str = ""
    assignee: str = ""
    reporter: str = ""
    sprint: str = ""
    parent: str = ""
    labels: List[str] = field(default_factory=list)
    components: List[str] = field(default_factory=list)
    fix_versions: List[str] = field(default_factory=list)
    created: Optional[datetime] = None
    updated: Optional[datetime] = None
    comments: List[Comment] = field(default_factory=list)


class JiraClient:
    """Fetches issues and comments and creates stories."""

    def __init__(
        self,
        config: JiraConfig,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        out: TextIO | None = None,
    ) -> None:
        config.require()
        self.base_url = (config.url or "").rstrip("/")
        self._auth = _basic_auth(config.username or "", config.secret or "")
        self.timeout = timeout
        self._out = out or sys.stdout
        self._logger = get_logger("jira.client")

    def get_issue(self, issue_key: str) -> Issue:
        """Fetch ``issue_key``; a comment failure is reported and tolerated."""
        payload = self._request("GET", f"/rest/api/2/issue/{quote(issue_key)}")
        issue = parse_issue(payload)
        try:
            issue.comments = self.get_comments(issue_key)
        except JiraError as exc:
            self._out.write(f"⚠️  Warning: Could not fetch comments: {exc}\n")
        return issue

    def get_comments(self, issue_key: str) -> List[Comment]:
        payload = self._request("GET", f"/rest/api/2/issue/{quote(issue_key)}/comment")
        comments = []
        for item in _as_list(payload.get("comments")):
            if not isinstance(item, dict):
                continue
            comments.append(
                Comment(
                    author=_nested(item, "author", "displayName"),
                    body=str(item.get("body") or ""),
                    created=parse_timestamp(item.get("created")),
                    updated=parse_timestamp(item.get("updated")),
                )
            )
        return comments

    def create_issue(self, fields: Dict[str, Any]) -> str:
        payload = self._request("POST", "/rest/api/2/issue", body={"fields": fields})
        key = payload.get("key")
        if not isinstance(key, str) or not key:
            raise JiraError("create issue response did not include an issue key")
        return key

    def get_user_display_name(self, account_id: str) -> Optional[str]:
        query = urlencode({"accountId": account_id})
        payload = self._request("GET", f"/rest/api/2/user?{query}")
        name = payload.get("displayName")
        return name if isinstance(name, str) and name else None

    def browse_url(self, issue_key: str) -> str:
        return f"{self.base_url}/browse/{issue_key}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        body: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json", "Authorization": self._auth}
        data = None
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        request = Request(url, data=data, headers=headers, method=method)
        self._logger.debug(log_fields("JIRA request", method=method, path=path))

        try:
            with urlopen(request, timeout=self.timeout) as response:  # type: ignore[arg-type]
                raw = response.read()
        except HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore") if hasattr(exc, "read") else ""
            raise JiraError(
                f"JIRA API request failed with status {exc.code}",
                status=exc.code,
                provider_message=_error_text(detail) or str(exc.reason or ""),
            ) from exc
        except URLError as exc:
            raise JiraError(f"JIRA connection failed: {exc.reason}") from exc

        if not raw:
            return {}
        try:
            payload = json.loads(raw.decode("utf-8"))
        except json.JSONDecodeError as exc:
            raise JiraError("JIRA returned invalid JSON") from exc
        return payload if isinstance(payload, dict) else {}


def parse_issue(payload: Dict[str, Any]) -> Issue:
    fields = payload.get("fields") if isinstance(payload.get("fields"), dict) else {}
    return Issue(
        key=str(payload.get("key") or ""),
        summary=str(fields.get("summary") or ""),
        description=str(fields.get("description") or ""),
        status=_nested(fields, "status", "name"),
        priority=_nested(fields, "priority", "name"),
        issue_type=_nested(fields, "issuetype", "name"),
        assignee=_nested(fields, "assignee", "displayName"),
        reporter=_nested(fields, "reporter", "displayName"),
        parent=_nested(fields, "parent", "key"),
        sprint=_sprint_name(fields.get(SPRINT_FIELD)),
        labels=[str(label) for label in _as_list(fields.get("labels"))],
        components=_names(fields.get("components")),
        fix_versions=_names(fields.get("fixVersions")),
        created=parse_timestamp(fields.get("created")),
        updated=parse_timestamp(fields.get("updated")),
    )


def parse_timestamp(value: Any) -> Optional[datetime]:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.strptime(value, DATE_FORMAT)
    except ValueError:
        return None


def _basic_auth(username: str, secret: str) -> str:
    token = base64.b64encode(f"{username}:{secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _nested(data: Dict[str, Any], key: str, attribute: str) -> str:
    value = data.get(key)
    if isinstance(value, dict):
        return str(value.get(attribute) or "")
    return ""


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _names(value: Any) -> List[str]:
    return [
        str(item["name"])
        for item in _as_list(value)
        if isinstance(item, dict) and item.get("name")
    ]


def _sprint_name(value: Any) -> str:
    sprints = _as_list(value)
    if sprints and isinstance(sprints[0], dict):
        name = sprints[0].get("name")
        return name if isinstance(name, str) else ""
    return ""


def _error_text(body: str) -> str:
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return body.strip()
    if not isinstance(payload, dict):
        return body.strip()
    messages = [str(message) for message in _as_list(payload.get("errorMessages"))]
    errors = payload.get("errors")
    if isinstance(errors, dict):
        messages.extend(f"{key}: {value}" for key, value in errors.items())
    return "; ".join(messages) or body.strip()


__all__ = [
    "Comment",
    "Issue",
    "JiraClient",
    "JiraError",
    "parse_issue",
    "parse_timestamp",
]
