"""Renders prompts from built-in or user-supplied Jinja templates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import (
    DictLoader,
    Environment,
    FileSystemLoader,
    StrictUndefined,
    Template,
    TemplateError,
)

from ..context.formatter import format_context
from ..logging import get_logger, log_fields
from ..models import PromptConfig, PromptKind, RepoContext
from .templates import DEFAULT_TEMPLATES, DESCRIPTIONS, scaffold_text

LARGE_PROMPT_CHARS = 100_000


@dataclass(frozen=True)
class TemplateInfo:
    """Where the template for one prompt kind comes from."""

    kind: PromptKind
    file_name: str
    description: str
    source: str


class PromptRenderer:
    """Maps a :class:`PromptConfig` to prompt text.

    Templates resolve per kind: cache, then ``<prompts_dir>/<kind>.tpl``, then
    the built-in default. A custom template that fails to parse or render is
    replaced by the built-in for that call.
    """

    def __init__(self, prompts_dir: Path | None = None) -> None:
        self.prompts_dir = prompts_dir
        self._logger = get_logger("prompting")
        self._default_env = self._create_env(
            DictLoader({kind.template_name: text for kind, text in DEFAULT_TEMPLATES.items()})
        )
        self._custom_env: Optional[Environment] = None
        if prompts_dir is not None and prompts_dir.is_dir():
            self._custom_env = self._create_env(FileSystemLoader(str(prompts_dir)))
        self._cache: Dict[PromptKind, Template] = {}

    def render(self, config: PromptConfig) -> str:
        template = self._template(config.kind)
        data = self._template_data(config)
        try:
            prompt = template.render(**data)
        except Exception as exc:
            if not self._is_custom(template):
                raise
            self._logger.warning(
                "Custom template %s failed (%s); using built-in", config.kind.template_name, exc
            )
            self._cache[config.kind] = self._default_template(config.kind)
            prompt = self._cache[config.kind].render(**data)

        self._logger.info(log_fields("Prompt rendered", kind=config.kind.value, chars=len(prompt)))
        if len(prompt) > LARGE_PROMPT_CHARS:
            self._logger.warning(
                "Prompt is very large (%d chars) and may exceed model limits", len(prompt)
            )
        return prompt

    def validate(self) -> List[str]:
        """Render every template against sample data and return the problems found."""
        problems: List[str] = []
        if self.prompts_dir is not None and not self.prompts_dir.is_dir():
            problems.append(f"prompts directory does not exist: {self.prompts_dir}")

        sample_context = RepoContext(
            project_name="example",
            module_path="github.com/example/example",
            language_version="1.22",
            dependencies=("github.com/spf13/cobra",),
            readme="Example README",
            recent_commits=("abc1234 Initial commit",),
            directory_structure="./\ncmd/\n",
        )
        for kind in PromptKind:
            sample = PromptConfig(
                kind=kind,
                feature_request="Test feature request",
                original_description="Test description",
                user_story="Test user story",
                repo_context=sample_context,
            )
            try:
                template = self._load(kind, strict=True)
                template.render(**self._template_data(sample))
            except Exception as exc:
                problems.append(f"template validation failed for {kind.value}: {exc}")
        return problems

    def describe(self) -> List[TemplateInfo]:
        infos = []
        for kind in PromptKind:
            custom = self._custom_path(kind)
            source = str(custom) if custom is not None else "built-in"
            infos.append(TemplateInfo(kind, kind.template_name, DESCRIPTIONS[kind], source))
        return infos

    @staticmethod
    def scaffold(directory: Path) -> Dict[str, List[Path]]:
        """Write commented copies of the built-in templates, keeping existing files."""
        directory.mkdir(parents=True, exist_ok=True)
        result: Dict[str, List[Path]] = {"written": [], "skipped": []}
        for kind in PromptKind:
            path = directory / kind.template_name
            if path.exists():
                result["skipped"].append(path)
                continue
            path.write_text(scaffold_text(kind), encoding="utf-8")
            result["written"].append(path)
        return result

    # ------------------------------------------------------------------
    # Helpers

    def _template(self, kind: PromptKind) -> Template:
        cached = self._cache.get(kind)
        if cached is not None:
            return cached
        try:
            template = self._load(kind, strict=False)
        except TemplateError as exc:
            self._logger.warning(
                "Custom template %s is invalid (%s); using built-in", kind.template_name, exc
            )
            template = self._default_template(kind)
        self._cache[kind] = template
        return template

    def _load(self, kind: PromptKind, *, strict: bool) -> Template:
        custom = self._custom_path(kind)
        if custom is None or self._custom_env is None:
            if self.prompts_dir is not None and not strict:
                self._logger.info("Template file not found, using default: %s", kind.template_name)
            return self._default_template(kind)
        template = self._custom_env.get_template(kind.template_name)
        self._logger.info("Loaded custom template %s", custom)
        return template

    def _custom_path(self, kind: PromptKind) -> Optional[Path]:
        if self.prompts_dir is None:
            return None
        path = self.prompts_dir / kind.template_name
        return path if path.is_file() else None

    def _default_template(self, kind: PromptKind) -> Template:
        return self._default_env.get_template(kind.template_name)

    def _is_custom(self, template: Template) -> bool:
        return self._custom_env is not None and template.environment is self._custom_env

    @staticmethod
    def _template_data(config: PromptConfig) -> Dict[str, Any]:
        context = config.repo_context
        return {
            "feature_request": config.feature_request,
            "user_story": config.user_story,
            "original_description": config.original_description,
            "repository_context": context,
            "project_name": context.project_name if context else "",
            "module_path": context.module_path if context else "",
            "language_version": context.language_version if context else "",
            "project_type": context.project_type if context else "",
            "readme": context.readme if context else "",
            "recent_commits": list(context.recent_commits) if context else [],
            "dependencies": list(context.dependencies) if context else [],
            "directory_structure": context.directory_structure if context else "",
            "config_files": dict(context.config_files) if context else {},
            "now": datetime.now(),
        }

    @staticmethod
    def _create_env(loader: Any) -> Environment:
        env = Environment(
            loader=loader,
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )
        env.globals["format_context"] = format_context
        env.filters["format_context"] = format_context
        return env


__all__ = ["LARGE_PROMPT_CHARS", "PromptRenderer", "TemplateInfo"]
