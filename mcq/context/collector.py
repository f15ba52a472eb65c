"""Bounded repository context gathering for prompt enrichment."""

from __future__ import annotations

import os
import posixpath
import sys
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Optional, TextIO, Tuple

from ..logging import get_logger, log_fields
from ..models import ContextConfig, ProjectType, RepoContext
from ..system import SystemCalls
from .constants import (
    CLI_FRAMEWORK_HINTS,
    CONFIG_ALLOWLIST,
    DOCS_DIR,
    IMPORTANT_EXTENSIONS,
    IMPORTANT_NAMES,
    LARGE_CONTEXT_CHARS,
    MAX_STRUCTURE_DEPTH,
    MODULE_MANIFEST,
    README_CANDIDATES,
    SKIP_NAMES,
    WEB_FRAMEWORK_HINTS,
)


class ContextError(RuntimeError):
    """Raised by a single gathering subtask."""


@dataclass
class _Draft:
    project_name: str = ""
    module_path: str = ""
    language_version: str = ""
    dependencies: List[str] = field(default_factory=list)
    readme: str = ""
    recent_commits: List[str] = field(default_factory=list)
    directory_structure: str = ""
    config_files: Dict[str, str] = field(default_factory=dict)

    def is_empty(self) -> bool:
        return not (
            self.project_name
            or self.readme
            or self.recent_commits
            or self.directory_structure
            or self.config_files
        )

    def freeze(self) -> RepoContext:
        return RepoContext(
            project_name=self.project_name,
            module_path=self.module_path,
            language_version=self.language_version,
            dependencies=tuple(self.dependencies),
            readme=self.readme,
            recent_commits=tuple(self.recent_commits),
            directory_structure=self.directory_structure,
            config_files=MappingProxyType(dict(self.config_files)),
            project_type=classify_project(self).value,
        )


class ContextCollector:
    """Runs the enabled context subtasks in a fixed order and never raises."""

    def __init__(
        self,
        root: Path | None = None,
        *,
        system: SystemCalls | None = None,
        out: TextIO | None = None,
    ) -> None:
        self.root = (root or Path.cwd()).resolve()
        self._system = system or SystemCalls(cwd=self.root)
        self._out = out or sys.stdout
        self._logger = get_logger("context")
        self.diagnostics: List[str] = []

    def gather(self, config: ContextConfig) -> Optional[RepoContext]:
        """Collect a snapshot; ``None`` when nothing was requested or nothing was found."""
        self.diagnostics = []
        if not config.any_enabled():
            return None

        config = config.resolved()
        self._logger.info("Gathering repository context")
        draft = _Draft()
        steps: List[Tuple[bool, str, Callable[[_Draft, ContextConfig], None]]] = [
            (config.include_go_mod, "module manifest", self._gather_module),
            (config.include_readme, "readme", self._gather_readme),
            (config.include_commits, "recent commits", self._gather_commits),
            (config.include_structure, "directory structure", self._gather_structure),
            (config.include_configs, "config files", self._gather_config_files),
        ]
        for enabled, label, step in steps:
            if not enabled:
                continue
            try:
                step(draft, config)
            except (OSError, RuntimeError, ValueError) as exc:
                self._logger.info(log_fields("Context subtask failed", subtask=label, error=exc))
                self.diagnostics.append(f"{label}: {exc}")

        if draft.is_empty() and self.diagnostics:
            self._logger.error(
                "Context gathering failed completely: %s", "; ".join(self.diagnostics)
            )
            return None
        if self.diagnostics:
            self._logger.info(
                log_fields("Partial context gathered with errors", error_count=len(self.diagnostics))
            )

        context = draft.freeze()
        self._report(context)
        return context

    def _report(self, context: RepoContext) -> None:
        readme_chars = len(context.readme)
        structure_chars = len(context.directory_structure)
        total = context.total_size
        self._logger.info(
            log_fields(
                "Context size info",
                readme_chars=readme_chars,
                structure_chars=structure_chars,
                total_chars=total,
                commits=len(context.recent_commits),
                deps=len(context.dependencies),
            )
        )
        if total > LARGE_CONTEXT_CHARS:
            self._logger.warning("Large context (%d chars) may exceed token limits", total)
            self._out.write(
                f"⚠️  Warning: Large context ({total} chars) may exceed token limits\n"
            )

    # ------------------------------------------------------------------
    # Subtasks

    def _gather_module(self, draft: _Draft, config: ContextConfig) -> None:
        manifest = self.root / MODULE_MANIFEST
        if not manifest.is_file():
            raise ContextError(f"{MODULE_MANIFEST} not found")
        module_path, version, dependencies = parse_module_manifest(
            manifest.read_text(encoding="utf-8")
        )
        draft.module_path = module_path
        draft.project_name = posixpath.basename(module_path.rstrip("/")) if module_path else ""
        draft.language_version = version
        draft.dependencies = dependencies

    def _gather_readme(self, draft: _Draft, config: ContextConfig) -> None:
        readme = _first_existing(self.root, README_CANDIDATES) or ""

        docs_root = self.root / DOCS_DIR
        if docs_root.is_dir():
            docs_readme = _first_existing(docs_root, README_CANDIDATES)
            if docs_readme is not None:
                if readme:
                    readme += "\n\n## Documentation\n\n" + docs_readme
                else:
                    readme = docs_readme
            for path in _iter_docs(docs_root):
                try:
                    content = path.read_text(encoding="utf-8")
                except (OSError, UnicodeDecodeError) as exc:
                    self._logger.debug("Skipping %s: %s", path, exc)
                    continue
                readme += f"\n\n### {_section_title(path.stem)}\n\n" + content

        if not readme:
            raise ContextError("no README file found")
        draft.readme = readme

    def _gather_commits(self, draft: _Draft, config: ContextConfig) -> None:
        draft.recent_commits = self._system.git_log(config.max_commits)[: config.max_commits]

    def _gather_structure(self, draft: _Draft, config: ContextConfig) -> None:
        lines: List[str] = ["./"]
        for dirpath, dirnames, filenames in os.walk(self.root):
            current = Path(dirpath)
            rel_dir = current.relative_to(self.root).as_posix() if current != self.root else ""
            depth = rel_dir.count("/") + 1 if rel_dir else 0

            kept_dirs = []
            for name in sorted(dirnames):
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if name.startswith(".") or _is_skipped(rel_path):
                    continue
                kept_dirs.append(name)
            # Directories at the depth limit are listed but not descended into.
            dirnames[:] = kept_dirs if depth < MAX_STRUCTURE_DEPTH else []

            if rel_dir:
                lines.append("  " * (depth - 1) + current.name + "/")

            for name in sorted(filenames):
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _is_skipped(rel_path) or not is_important_file(name):
                    continue
                lines.append("  " * rel_path.count("/") + name)

        if len(lines) == 1:
            raise ContextError("no directories or important files found")
        draft.directory_structure = "\n".join(lines) + "\n"

    def _gather_config_files(self, draft: _Draft, config: ContextConfig) -> None:
        for name in CONFIG_ALLOWLIST:
            path = self.root / name
            if not path.is_file() or path.stat().st_size > config.max_file_size:
                continue
            draft.config_files[name] = path.read_text(encoding="utf-8", errors="replace")


def parse_module_manifest(text: str) -> Tuple[str, str, List[str]]:
    """Return ``(module_path, language_version, dependencies)`` from a go.mod body."""
    module_path = ""
    version = ""
    dependencies: List[str] = []
    in_require_block = False
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("//"):
            continue
        if in_require_block:
            if line.startswith(")"):
                in_require_block = False
                continue
            dependencies.append(line.split()[0])
            continue
        if line.startswith("module "):
            module_path = line[len("module ") :].strip()
        elif line.startswith("go "):
            version = line[len("go ") :].strip()
        elif line.startswith("require "):
            remainder = line[len("require ") :].strip()
            if remainder.startswith("("):
                in_require_block = True
            elif remainder:
                dependencies.append(remainder.split()[0])
        elif line == "require(":
            in_require_block = True
    return module_path, version, dependencies


def is_important_file(name: str) -> bool:
    if name in IMPORTANT_NAMES:
        return True
    suffix = os.path.splitext(name)[1].lower()
    return suffix in IMPORTANT_EXTENSIONS


def classify_project(draft: _Draft | RepoContext) -> ProjectType:
    readme = draft.readme
    if "CLI" in readme or "command" in readme:
        return ProjectType.CLI
    if "API" in readme or "server" in readme:
        return ProjectType.WEB_API
    if "library" in readme or "package" in readme:
        return ProjectType.LIBRARY

    for dependency in draft.dependencies:
        if any(hint in dependency for hint in WEB_FRAMEWORK_HINTS):
            return ProjectType.WEB_API
        if any(hint in dependency for hint in CLI_FRAMEWORK_HINTS):
            return ProjectType.CLI

    structure = draft.directory_structure
    if "cmd/" in structure:
        return ProjectType.CLI
    if "api/" in structure or "server/" in structure:
        return ProjectType.WEB_API
    return ProjectType.APPLICATION


def _is_skipped(rel_path: str) -> bool:
    return any(name in rel_path for name in SKIP_NAMES)


def _first_existing(directory: Path, candidates: Tuple[str, ...]) -> Optional[str]:
    for name in candidates:
        path = directory / name
        if path.is_file():
            return path.read_text(encoding="utf-8", errors="replace")
    return None


def _iter_docs(docs_root: Path) -> List[Path]:
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(docs_root):
        dirnames.sort()
        for name in sorted(filenames):
            if name.endswith(".md") and "README" not in name:
                found.append(Path(dirpath) / name)
    return found


def _section_title(stem: str) -> str:
    words = stem.replace("-", " ").replace("_", " ").split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words)


__all__ = [
    "ContextCollector",
    "ContextError",
    "classify_project",
    "is_important_file",
    "parse_module_manifest",
]
