"""Issue title extraction: AI suggestion, manual override, pattern fallback."""

from __future__ import annotations

import sys
from typing import Callable, Optional, TextIO

from ..errors import UserError
from ..logging import get_logger, log_fields
from ..models import ExtractedTitle, TitleSource, truncate_title
from ..prompter import UserPrompter


def clean_title(title: str) -> str:
    """Trim a model-produced title and drop leading heading markers."""
    return truncate_title(title.strip().lstrip("#"))


def extract_title_with_patterns(user_story: str, feature_request: str) -> str:
    """Derive a title from the story text without calling a model."""
    lines = [line.strip() for line in user_story.split("\n")]
    for line in lines:
        if not line.startswith("As a") or "I want " not in line:
            continue
        goal = line.split("I want ", 1)[1].split(" so that", 1)[0].strip()
        if goal:
            return truncate_title(goal)

    for line in lines:
        if line.startswith("I want"):
            remainder = line[len("I want") :].strip()
            if remainder:
                return truncate_title(remainder)
        if line.startswith("User should"):
            return truncate_title(line)

    return truncate_title(feature_request)


class TitleExtractor:
    """Chooses the summary for a new issue, asking the user along the way."""

    def __init__(
        self,
        generate_title: Callable[[str, str], str],
        prompter: UserPrompter,
        *,
        out: TextIO | None = None,
    ) -> None:
        self._generate_title = generate_title
        self._prompter = prompter
        self._out = out or sys.stdout
        self._logger = get_logger("jira.titles")

    def extract(self, user_story: str, feature_request: str) -> ExtractedTitle:
        ai_title: Optional[str] = None
        try:
            ai_title = clean_title(self._generate_title(user_story, feature_request))
        except UserError as exc:
            self._logger.info(log_fields("AI title extraction failed", code=exc.code.value))
            self._out.write(f"⚠️  Warning: AI title extraction failed: {exc.summary}\n")
            self._out.write("Falling back to pattern-based extraction...\n")

        if ai_title:
            self._out.write(f'\n🤖 AI-generated title: "{ai_title}"\n')
            if self._prompter.ask_yes_no("Use this title for the Jira issue?", default=False):
                return self._chosen(TitleSource.AI, ai_title)

        override = truncate_title(
            self._prompter.ask_line(
                "Enter custom title (or press Enter to use pattern-based extraction): "
            )
        )
        if override:
            return self._chosen(TitleSource.USER_OVERRIDE, override)

        return self._chosen(
            TitleSource.PATTERN_FALLBACK,
            extract_title_with_patterns(user_story, feature_request),
        )

    def _chosen(self, source: TitleSource, text: str) -> ExtractedTitle:
        self._logger.info(log_fields("Title selected", source=source.value, chars=len(text)))
        return ExtractedTitle(source=source, text=text)


__all__ = ["TitleExtractor", "clean_title", "extract_title_with_patterns"]
