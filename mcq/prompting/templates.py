"""Built-in prompt templates, one per prompt kind."""

from __future__ import annotations

from typing import Dict

from ..models import PromptKind

USER_STORY_TEMPLATE = """\
Please convert the following vague feature request into a detailed user story. The user story should follow the format: "As a [user type], I want [goal] so that [benefit]". Additionally, include any relevant acceptance criteria and technical considerations. Provide ONLY the user story.


Please provide a comprehensive user story:
1. With the main user story in the specified format
2. With acceptance criteria
3. With any relevant technical notes or considerations
4. Keep the total output under 1000 words

Do NOT add any additional questions or commentary.
The response must ONLY be the user story.
NOTHING ELSE.

Feature Request: {{ feature_request }}
{% if repository_context %}
{{ format_context(repository_context) }}
{% endif %}
"""

TITLE_EXTRACTION_TEMPLATE = """\
Create a NEW concise, clear title (maximum 100 characters) for a Jira issue from the following user story and old title. The new title should be action-oriented and summarize the main goal or feature.
Provide ONLY the new jira title
Do NOT provide any other output.

Original Feature Request: {{ feature_request }}

User Story:
{{ user_story }}
"""

DESCRIPTION_IMPROVEMENT_TEMPLATE = """\
Improve the following Jira issue description. Make it:
1. More comprehensive and detailed
2. Better structured and readable
3. Include proper user story format if missing
4. Add acceptance criteria if not present
5. Add technical considerations
6. Ensure it follows best practices for user stories

Preserve the existing intent and structure, but enhance clarity, completeness, and professionalism.

Original Description:
{{ original_description }}
{% if repository_context %}
{{ format_context(repository_context) }}
{% endif %}
"""

DESCRIPTION_FROM_TITLE_TEMPLATE = """\
Create a comprehensive user story description from the following Jira issue title.

The description should:
1. Follow the user story format: "As a [user type], I want [goal] so that [benefit]"
2. Be detailed and specific, not just repeating the title
3. Include acceptance criteria
4. Include technical considerations
5. Be comprehensive and well-structured

Title: {{ original_description }}
{% if repository_context %}
{{ format_context(repository_context) }}
{% endif %}
"""

DEFAULT_TEMPLATES: Dict[PromptKind, str] = {
    PromptKind.USER_STORY: USER_STORY_TEMPLATE,
    PromptKind.TITLE_EXTRACTION: TITLE_EXTRACTION_TEMPLATE,
    PromptKind.DESCRIPTION_IMPROVEMENT: DESCRIPTION_IMPROVEMENT_TEMPLATE,
    PromptKind.DESCRIPTION_FROM_TITLE: DESCRIPTION_FROM_TITLE_TEMPLATE,
}

DESCRIPTIONS: Dict[PromptKind, str] = {
    PromptKind.USER_STORY: "Generates detailed user stories from feature requests",
    PromptKind.TITLE_EXTRACTION: "Extracts concise titles from user stories for JIRA issues",
    PromptKind.DESCRIPTION_IMPROVEMENT: "Rewrites an existing issue description into a fuller user story",
    PromptKind.DESCRIPTION_FROM_TITLE: "Writes a user story description from an issue title alone",
}

_CONTEXT_VARIABLES = """\
- repository_context: Repository snapshot (None when context is disabled)
- project_name: Project name from go.mod
- module_path: Module path from go.mod
- language_version: Go version from go.mod
- project_type: Detected project type
- readme: README content (plus docs/)
- recent_commits: Recent commit messages (list)
- dependencies: Module dependencies (list)
- directory_structure: Directory structure
- config_files: Configuration file contents (mapping)
- format_context(ctx): Renders the standard "Repository Context" section
"""

_KIND_VARIABLES: Dict[PromptKind, str] = {
    PromptKind.USER_STORY: "- feature_request: The user's feature request\n" + _CONTEXT_VARIABLES,
    PromptKind.TITLE_EXTRACTION: (
        "- feature_request: The original feature request\n"
        "- user_story: The generated user story\n"
    ),
    PromptKind.DESCRIPTION_IMPROVEMENT: (
        "- original_description: The description being improved\n" + _CONTEXT_VARIABLES
    ),
    PromptKind.DESCRIPTION_FROM_TITLE: (
        "- original_description: The issue title\n" + _CONTEXT_VARIABLES
    ),
}


def scaffold_text(kind: PromptKind) -> str:
    """Return the built-in template for ``kind`` with a commented variable list."""
    title = kind.value.replace("_", " ").title()
    header = (
        "{#\n"
        f"{title} Template\n"
        "Available variables:\n"
        f"{_KIND_VARIABLES[kind]}"
        "- now: Current timestamp\n"
        "#}\n"
    )
    return header + DEFAULT_TEMPLATES[kind]


__all__ = ["DEFAULT_TEMPLATES", "DESCRIPTIONS", "scaffold_text"]
