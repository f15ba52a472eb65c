"""User-facing error taxonomy and the classifier that maps failures onto it."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


class ErrorCode(str, enum.Enum):
    JIRA_AUTH_FAILED = "JIRA_AUTH_FAILED"
    JIRA_CONFIG_MISSING = "JIRA_CONFIG_MISSING"
    MODEL_NOT_AVAILABLE = "MODEL_NOT_AVAILABLE"
    ISSUE_NOT_FOUND = "ISSUE_NOT_FOUND"
    CONTEXT_GATHERING_FAILED = "CONTEXT_GATHERING_FAILED"
    CLIPBOARD_FAILED = "CLIPBOARD_FAILED"
    MODEL_TOKEN_LIMIT = "MODEL_TOKEN_LIMIT"
    STREAM_TIMEOUT = "STREAM_TIMEOUT"
    STREAM_NETWORK = "STREAM_NETWORK"
    STREAM_PROTOCOL = "STREAM_PROTOCOL"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


@dataclass(frozen=True)
class _ErrorText:
    summary: str
    suggestion: str
    remediation: Tuple[str, ...]
    fatal: bool = True


_CATALOG = {
    ErrorCode.JIRA_AUTH_FAILED: _ErrorText(
        "❌ JIRA Authentication Failed",
        "Check your credentials and try again",
        (
            "Verify JIRA_INSTANCE_URL is correct",
            "Check JIRA_API_TOKEN is valid",
            "Run 'mcq config test' to validate setup",
            "Run 'mcq config setup' for interactive configuration",
        ),
    ),
    ErrorCode.JIRA_CONFIG_MISSING: _ErrorText(
        "❌ JIRA Configuration Missing",
        "Set up JIRA configuration first",
        (
            "Set JIRA_INSTANCE_URL environment variable",
            "Set JIRA_USERNAME environment variable",
            "Set JIRA_API_TOKEN environment variable",
            "Run 'mcq config setup' for guided setup",
        ),
    ),
    ErrorCode.MODEL_NOT_AVAILABLE: _ErrorText(
        "❌ AI Model Not Available",
        "Set up API keys for your preferred model",
        (
            "Set ANTHROPIC_API_KEY for Claude models",
            "Set OPENAI_API_KEY for GPT models",
            "Run 'mcq ai models' to see available options",
            "Run 'mcq config setup' for guided setup",
        ),
    ),
    ErrorCode.ISSUE_NOT_FOUND: _ErrorText(
        "❌ JIRA Issue Not Found",
        "Check the issue key and try again",
        (
            "Verify the issue key is correct (e.g., PROJ-123)",
            "Check if you have access to this issue",
            "Verify the JIRA project prefix is correct",
            "Run 'mcq config show' to check JIRA_PROJECT_PREFIX",
        ),
    ),
    ErrorCode.CONTEXT_GATHERING_FAILED: _ErrorText(
        "⚠️  Context Gathering Failed",
        "Continuing without context (results may be less accurate)",
        (
            "Check if you're in a Git repository",
            "Verify file permissions for README and config files",
            "Use --no-context flag to skip context gathering",
            "Run 'mcq context test' to diagnose issues",
        ),
        fatal=False,
    ),
    ErrorCode.CLIPBOARD_FAILED: _ErrorText(
        "⚠️  Clipboard Copy Failed",
        "Content is still displayed above",
        (
            "Check if pbcopy (macOS), wl-copy or xclip (Linux) is available",
            "Try copying the content manually",
            "Use --no-clipboard flag to skip clipboard copy",
        ),
        fatal=False,
    ),
    ErrorCode.MODEL_TOKEN_LIMIT: _ErrorText(
        "❌ Prompt Exceeds Model Context Limit",
        "Try reducing context with --no-context or specific context flags",
        (
            "Re-run with --no-context",
            "Pick fewer --include-* flags or lower --max-commits",
            "Try a faster model with a smaller prompt (e.g. --model gpt-5-mini)",
        ),
    ),
    ErrorCode.STREAM_TIMEOUT: _ErrorText(
        "❌ AI Response Timed Out",
        "The provider did not finish responding in time",
        (
            "Check your network connection",
            "Raise llm.stream_timeout in .mcq.yml or set MCQ_STREAM_TIMEOUT",
            "Reduce context with --no-context",
        ),
    ),
    ErrorCode.STREAM_NETWORK: _ErrorText(
        "❌ Network Error While Contacting AI Provider",
        "Check your connection and try again",
        (
            "Verify internet connectivity",
            "Check proxy and firewall settings",
            "Retry the command",
        ),
    ),
    ErrorCode.STREAM_PROTOCOL: _ErrorText(
        "❌ Unexpected Response From AI Provider",
        "The provider returned data mcq could not understand",
        (
            "Retry the command",
            "Try a different model with --model",
            "Use --verbose to inspect the raw stream",
        ),
    ),
}

_UNKNOWN_SUGGESTION = "Please try again or check your configuration"
_UNKNOWN_REMEDIATION = (
    "Run 'mcq config test' to validate setup",
    "Use --verbose flag for detailed error information",
    "Check the documentation for troubleshooting",
)


class ServiceError(RuntimeError):
    """Structured failure raised by an HTTP-backed adapter."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        provider_message: str = "",
        partial: str = "",
    ) -> None:
        super().__init__(message)
        self.status = status
        self.provider_message = provider_message
        self.partial = partial

    def __str__(self) -> str:
        base = super().__str__()
        if self.provider_message and self.provider_message not in base:
            return f"{base}: {self.provider_message}"
        return base


class UserError(Exception):
    """A failure that can be shown to the user with remediation steps."""

    def __init__(
        self,
        code: ErrorCode,
        *,
        summary: Optional[str] = None,
        suggestion: Optional[str] = None,
        remediation: Optional[Sequence[str]] = None,
        wrapped: Optional[BaseException] = None,
        details: Optional[Sequence[str]] = None,
    ) -> None:
        text = _CATALOG.get(code)
        self.code = code
        self.summary = summary or (text.summary if text else "❌ Unexpected error")
        self.suggestion = suggestion if suggestion is not None else (
            text.suggestion if text else _UNKNOWN_SUGGESTION
        )
        if remediation is not None:
            self.remediation = tuple(remediation)
        else:
            self.remediation = text.remediation if text else _UNKNOWN_REMEDIATION
        self.wrapped = wrapped
        self.details: List[str] = list(details or ())
        self.fatal = text.fatal if text else True
        super().__init__(self.summary)

    def render(self, *, verbose: bool = False) -> str:
        lines = [self.summary]
        if self.suggestion:
            lines.append(f"💡 {self.suggestion}")
        for detail in self.details:
            lines.append(f"   {detail}")
        if self.remediation:
            lines.append("")
            lines.append("🔧 Troubleshooting steps:")
            for index, step in enumerate(self.remediation, start=1):
                lines.append(f"   {index}. {step}")
        if verbose and self.wrapped is not None:
            lines.append("")
            lines.append(f"🐛 Cause: {type(self.wrapped).__name__}: {self.wrapped}")
        return "\n".join(lines)


_AUTH_KEYWORDS = ("authentication", "unauthorized", "invalid api key", "invalid x-api-key")
_NOT_FOUND_KEYWORDS = ("not found", "404")
_TOKEN_LIMIT_KEYWORDS = (
    "context length",
    "context_length",
    "maximum context",
    "input too long",
    "prompt is too long",
)
_CREDENTIAL_KEYWORDS = ("api key", "token")
_TIMEOUT_KEYWORDS = ("timeout", "timed out", "deadline exceeded")
_NETWORK_KEYWORDS = ("connection", "network", "dial", "broken pipe")
_PROTOCOL_KEYWORDS = ("unmarshal", "json", "empty response")
_CLIPBOARD_KEYWORDS = ("clipboard", "pbcopy")
_CONFIG_KEYWORDS = ("configuration", "not configured")
_JIRA_CALLERS = ("jira", "jira-create")


def _contains(text: str, keywords: Sequence[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify_error(
    exc: BaseException,
    operation: str,
    *,
    caller: str = "ai",
    partial: str = "",
) -> UserError:
    """Map ``exc`` to a :class:`UserError`.

    ``caller`` is ``"ai"``, ``"jira"`` for issue lookups or ``"jira-create"``;
    only lookups treat a 404 as a missing issue.
    """
    if isinstance(exc, UserError):
        return exc

    partial = partial or getattr(exc, "partial", "") or ""
    status = getattr(exc, "status", None)
    kind = getattr(exc, "kind", None)
    jira = caller in _JIRA_CALLERS
    auth_code = ErrorCode.JIRA_AUTH_FAILED if jira else ErrorCode.MODEL_NOT_AVAILABLE
    text = str(exc).lower()

    code: Optional[ErrorCode] = None
    if status in (401, 403):
        code = auth_code
    elif status == 404 and caller == "jira":
        code = ErrorCode.ISSUE_NOT_FOUND
    elif status == 404 and jira:
        return UserError(
            ErrorCode.UNKNOWN_ERROR,
            summary=f"❌ {operation}",
            wrapped=exc,
            details=["JIRA returned 404: check the instance URL and project prefix"],
        )
    elif kind in ("timeout", "cancelled"):
        code = ErrorCode.STREAM_TIMEOUT
    elif kind == "network":
        code = ErrorCode.STREAM_NETWORK

    if code is None:
        if _contains(text, _AUTH_KEYWORDS):
            code = auth_code
        elif caller == "jira" and _contains(text, _NOT_FOUND_KEYWORDS):
            code = ErrorCode.ISSUE_NOT_FOUND
        elif _contains(text, _TOKEN_LIMIT_KEYWORDS):
            code = ErrorCode.MODEL_TOKEN_LIMIT
        elif _contains(text, _CREDENTIAL_KEYWORDS):
            code = auth_code
        elif _contains(text, _TIMEOUT_KEYWORDS):
            code = ErrorCode.STREAM_TIMEOUT
        elif _contains(text, _NETWORK_KEYWORDS):
            code = ErrorCode.STREAM_NETWORK
        elif kind == "protocol" or _contains(text, _PROTOCOL_KEYWORDS):
            code = ErrorCode.STREAM_PROTOCOL
        elif _contains(text, _CLIPBOARD_KEYWORDS):
            code = ErrorCode.CLIPBOARD_FAILED
        elif jira and _contains(text, _CONFIG_KEYWORDS):
            code = ErrorCode.JIRA_CONFIG_MISSING

    if code is None:
        return UserError(ErrorCode.UNKNOWN_ERROR, summary=f"❌ {operation}", wrapped=exc)

    details: List[str] = []
    summary: Optional[str] = None
    if code is ErrorCode.MODEL_TOKEN_LIMIT and partial:
        details.append(f"Partial response: {len(partial)} characters received before the failure")
    elif code is ErrorCode.STREAM_TIMEOUT and partial:
        summary = "❌ AI Response Timed Out (response incomplete)"
        details.append(f"Partial response: {len(partial)} characters received before the timeout")
    elif code is ErrorCode.STREAM_NETWORK and partial:
        details.append(f"Partial response: {len(partial)} characters received before the connection failed")
    return UserError(code, summary=summary, wrapped=exc, details=details)


__all__ = ["ErrorCode", "ServiceError", "UserError", "classify_error"]
