"""Markdown rendering of a repository snapshot for prompts."""

from __future__ import annotations

from typing import List, Optional

from ..models import RepoContext

MAX_DEPENDENCIES = 10
MAX_COMMITS = 5
README_EXCERPT_CHARS = 1000
CONFIG_EXCERPT_CHARS = 500


def format_context(context: Optional[RepoContext]) -> str:
    """Render ``context`` as the "Repository Context" prompt section."""
    if context is None:
        return ""

    parts: List[str] = ["\n## Repository Context\n\n"]

    parts.append("### Project Information\n")
    parts.append(f"- **Project Name**: {context.project_name}\n")
    parts.append(f"- **Module Path**: {context.module_path}\n")
    parts.append(f"- **Go Version**: {context.language_version}\n")
    parts.append(f"- **Project Type**: {context.project_type}\n\n")

    if context.dependencies:
        parts.append("### Key Dependencies\n")
        for dependency in context.dependencies[:MAX_DEPENDENCIES]:
            parts.append(f"- {dependency}\n")
        parts.append("\n")

    if context.readme:
        excerpt = context.readme
        if len(excerpt) > README_EXCERPT_CHARS:
            excerpt = excerpt[:README_EXCERPT_CHARS] + "..."
        parts.append("### Project Overview\n")
        parts.append(f"{excerpt}\n\n")

    if context.recent_commits:
        parts.append("### Recent Development Activity\n")
        for commit in context.recent_commits[:MAX_COMMITS]:
            parts.append(f"- {commit}\n")
        parts.append("\n")

    if context.directory_structure:
        parts.append(f"### Project Structure\n```\n{context.directory_structure}\n```\n\n")

    if context.config_files:
        parts.append("### Configuration Files\n")
        for name in sorted(context.config_files):
            content = context.config_files[name]
            if len(content) > CONFIG_EXCERPT_CHARS:
                content = content[:CONFIG_EXCERPT_CHARS] + "..."
            parts.append(f"**{name}**:\n```\n{content}\n```\n\n")

    return "".join(parts)


__all__ = ["format_context"]
