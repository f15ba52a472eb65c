"""Helper utilities for constructing temporary repositories in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping

from mcq.context.collector import ContextCollector
from mcq.models import ContextConfig, RepoContext
from mcq.system import SystemCalls


class RepoBuilder:
    """Utility for writing files into a throwaway repository and gathering its context."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the repository."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def collector(self, system: SystemCalls | None = None) -> ContextCollector:
        return ContextCollector(self.root, system=system or SystemCalls(cwd=self.root))

    def gather(self, config: ContextConfig, system: SystemCalls | None = None) -> RepoContext | None:
        """Return a fresh context snapshot of the repository contents."""
        return self.collector(system).gather(config)

    def path(self) -> Path:
        """Return the repository root path."""
        return self.root


__all__ = ["RepoBuilder"]
