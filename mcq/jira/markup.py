"""Conversion between Markdown-style text and JIRA wiki markup."""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import quote, urlsplit, urlunsplit

from ..logging import get_logger

# Prefix rules are matched against the raw line, before any stripping.
_LINE_PREFIXES: Tuple[Tuple[str, str], ...] = (
    ("    - ", "*** "),
    ("  - ", "** "),
    ("- ", "* "),
    ("  1. ", "## "),
    ("1. ", "# "),
    ("### ", "h3. "),
    ("## ", "h2. "),
)


def markdown_to_wiki(text: str) -> str:
    """Convert Markdown-style text (as produced by the models) to JIRA wiki markup."""
    result: List[str] = []
    in_code = False
    for raw in text.split("\n"):
        line = raw.rstrip()
        stripped = line.strip()

        if stripped.startswith("```"):
            lang = stripped[3:].strip()
            if in_code or not lang:
                result.append("{code}")
            else:
                result.append(f"{{code:{lang}}}")
            in_code = not in_code
            continue
        if in_code:
            result.append(line)
            continue
        if not stripped:
            result.append("")
            continue

        result.append(_convert_line(line, stripped))
    return "\n".join(result)


def _convert_line(line: str, stripped: str) -> str:
    for prefix, replacement in _LINE_PREFIXES:
        if line.startswith(prefix):
            return replacement + line[len(prefix) :].strip()

    if len(stripped) > 4 and stripped.startswith("**") and stripped.endswith("**"):
        return "*" + stripped[2:-2].strip() + "*"
    if (
        len(stripped) > 2
        and stripped.startswith("*")
        and stripped.endswith("*")
        and not stripped.startswith("**")
        and not stripped.startswith("* ")
    ):
        return "_" + stripped[1:-1].strip() + "_"
    if len(stripped) > 2 and stripped.startswith("`") and stripped.endswith("`"):
        return "{{" + stripped[1:-1].strip() + "}}"
    return line


_USER_MENTION = re.compile(r"\[~accountid:([^\]]*)\]")
_SMART_LINK = re.compile(r"\[([^\[\]|]*)\|([^\[\]|]*)(?:\|smart-link)?\]")
_NOFORMAT = re.compile(r"\{noformat\}(.*?)\{noformat\}", re.DOTALL)
_CODE_BLOCK = re.compile(r"\{code(?::([^}]*))?\}(.*?)\{code\}", re.DOTALL)
_INLINE_CODE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_HEADING = re.compile(r"^h([1-6])\. ", re.MULTILINE)
_BULLET = re.compile(r"^(\*+) (?=\S)", re.MULTILINE)
_LINE_BREAK_TAGS = ("<br>", "<br/>", "<br />", "<p>", "</p>")
_INLINE_TAGS = ("<strong>", "</strong>", "<em>", "</em>", "<b>", "</b>", "<i>", "</i>")
_ANY_TAG = re.compile(r"<[^>]*>")
_URL_SAFE = "/%:@!$&'()*+,;=-._~"
_MAX_PASSES = 5


class WikiFormatter:
    """Renders JIRA wiki markup as readable Markdown.

    ``user_lookup`` resolves an account id to a display name. Results are
    cached per formatter; a failed or empty lookup falls back to
    ``@user-<last 8 characters of the id>``.
    """

    def __init__(self, user_lookup: Optional[Callable[[str], Optional[str]]] = None) -> None:
        self._user_lookup = user_lookup
        self._user_cache: Dict[str, str] = {}
        self._logger = get_logger("jira.markup")

    def to_markdown(self, text: str) -> str:
        result = self._convert(text or "")
        for _ in range(_MAX_PASSES):
            again = self._convert(result)
            if again == result:
                break
            result = again
        return result

    def _convert(self, text: str) -> str:
        text = _USER_MENTION.sub(lambda match: self._mention(match.group(1)), text)
        text = _SMART_LINK.sub(_smart_link, text)
        text = _NOFORMAT.sub(lambda match: _fence("", match.group(1)), text)
        text = _CODE_BLOCK.sub(
            lambda match: _fence((match.group(1) or "").strip(), match.group(2)), text
        )
        text = _INLINE_CODE.sub(lambda match: f"`{match.group(1)}`", text)
        text = _HEADING.sub(lambda match: "#" * int(match.group(1)) + " ", text)
        text = _BULLET.sub(lambda match: "  " * (len(match.group(1)) - 1) + "- ", text)
        return _clean_html(text)

    def _mention(self, account_id: str) -> str:
        cached = self._user_cache.get(account_id)
        if cached is not None:
            return cached

        name: Optional[str] = None
        if self._user_lookup is not None:
            try:
                name = self._user_lookup(account_id)
            except (OSError, RuntimeError, ValueError) as exc:
                self._logger.debug("User lookup failed for %s: %s", account_id, exc)
        rendered = f"@{name}" if name else f"@user-{account_id[-8:]}"
        self._user_cache[account_id] = rendered
        return rendered


def _smart_link(match: "re.Match[str]") -> str:
    text, url = match.group(1), match.group(2)
    normalized = normalize_url(url)
    if text == url:
        return normalized
    return f"[{text}]({normalized})"


def normalize_url(url: str) -> str:
    """Parse and re-serialise ``url``, escaping characters unsafe in a path."""
    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return url
    path = quote(parts.path, safe=_URL_SAFE)
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))


def _fence(lang: str, content: str) -> str:
    body = content.strip("\n")
    return f"```{lang}\n{body}\n```"


def _clean_html(text: str) -> str:
    for tag in _LINE_BREAK_TAGS:
        text = text.replace(tag, "\n")
    for tag in _INLINE_TAGS:
        text = text.replace(tag, "")
    previous = None
    while previous != text:
        previous = text
        text = _ANY_TAG.sub("", text)
    return text.strip()


__all__ = ["WikiFormatter", "markdown_to_wiki", "normalize_url"]
