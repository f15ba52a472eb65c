"""Core data models shared across mcq components."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

DEFAULT_MAX_COMMITS = 10
DEFAULT_MAX_FILE_SIZE = 50 * 1024
TITLE_MAX_LENGTH = 100


class ProjectType(str, enum.Enum):
    """Coarse classification of the working tree."""

    CLI = "CLI Tool"
    WEB_API = "Web API"
    LIBRARY = "Library"
    APPLICATION = "Application"


@dataclass(frozen=True)
class RepoContext:
    """Immutable snapshot of the repository used to enrich prompts."""

    project_name: str = ""
    module_path: str = ""
    language_version: str = ""
    dependencies: Tuple[str, ...] = ()
    readme: str = ""
    recent_commits: Tuple[str, ...] = ()
    directory_structure: str = ""
    config_files: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    project_type: str = ProjectType.APPLICATION.value

    @property
    def total_size(self) -> int:
        """Characters of README plus rendered structure."""
        return len(self.readme) + len(self.directory_structure)


@dataclass(frozen=True)
class ContextConfig:
    """Which context subtasks to run and with what limits."""

    auto_detect: bool = False
    include_readme: bool = False
    include_go_mod: bool = False
    include_commits: bool = False
    include_structure: bool = False
    include_configs: bool = False
    max_commits: int = DEFAULT_MAX_COMMITS
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    @classmethod
    def none(cls) -> "ContextConfig":
        return cls()

    @classmethod
    def auto(cls) -> "ContextConfig":
        return cls(auto_detect=True).resolved()

    def any_enabled(self) -> bool:
        return (
            self.auto_detect
            or self.include_readme
            or self.include_go_mod
            or self.include_commits
            or self.include_structure
            or self.include_configs
        )

    def resolved(self) -> "ContextConfig":
        """Return the effective config, expanding ``auto_detect``."""
        if not self.auto_detect:
            return self
        return replace(
            self,
            include_readme=True,
            include_go_mod=True,
            include_commits=True,
            include_structure=True,
            include_configs=True,
            max_commits=DEFAULT_MAX_COMMITS,
            max_file_size=DEFAULT_MAX_FILE_SIZE,
        )


class PromptKind(str, enum.Enum):
    """The LLM tasks mcq knows how to prompt for."""

    USER_STORY = "user_story"
    TITLE_EXTRACTION = "title_extraction"
    DESCRIPTION_IMPROVEMENT = "description_improvement"
    DESCRIPTION_FROM_TITLE = "description_from_title"

    @property
    def template_name(self) -> str:
        return f"{self.value}.tpl"


@dataclass
class PromptConfig:
    """Inputs for rendering one prompt."""

    kind: PromptKind
    feature_request: str = ""
    original_description: str = ""
    user_story: str = ""
    repo_context: Optional[RepoContext] = None


class TitleSource(str, enum.Enum):
    AI = "ai"
    USER_OVERRIDE = "user_override"
    PATTERN_FALLBACK = "pattern_fallback"


@dataclass(frozen=True)
class ExtractedTitle:
    """Issue summary chosen for a generated story."""

    source: TitleSource
    text: str


def truncate_title(text: str, limit: int = TITLE_MAX_LENGTH) -> str:
    """Trim ``text`` and cap it at ``limit`` characters with an ellipsis."""
    text = text.strip()
    if len(text) > limit:
        return text[: limit - 3] + "..."
    return text


__all__ = [
    "ContextConfig",
    "DEFAULT_MAX_COMMITS",
    "DEFAULT_MAX_FILE_SIZE",
    "ExtractedTitle",
    "ProjectType",
    "PromptConfig",
    "PromptKind",
    "RepoContext",
    "TITLE_MAX_LENGTH",
    "TitleSource",
    "truncate_title",
]
