"""Tests for mcq.prompting.renderer."""

from __future__ import annotations

from pathlib import Path

from mcq.models import PromptConfig, PromptKind, RepoContext
from mcq.prompting.renderer import PromptRenderer


def test_default_user_story_prompt_includes_request() -> None:
    renderer = PromptRenderer()

    prompt = renderer.render(
        PromptConfig(kind=PromptKind.USER_STORY, feature_request="Add dark mode")
    )

    assert "As a [user type], I want [goal] so that [benefit]" in prompt
    assert "Feature Request: Add dark mode" in prompt
    assert "## Repository Context" not in prompt


def test_user_story_prompt_appends_repository_context() -> None:
    renderer = PromptRenderer()
    context = RepoContext(project_name="widgets", readme="Widgets CLI")

    prompt = renderer.render(
        PromptConfig(kind=PromptKind.USER_STORY, feature_request="x", repo_context=context)
    )

    assert "## Repository Context" in prompt
    assert "- **Project Name**: widgets" in prompt


def test_title_prompt_carries_story_and_request() -> None:
    prompt = PromptRenderer().render(
        PromptConfig(
            kind=PromptKind.TITLE_EXTRACTION,
            feature_request="dashboard please",
            user_story="As a user, I want a dashboard",
        )
    )

    assert "Original Feature Request: dashboard please" in prompt
    assert "As a user, I want a dashboard" in prompt


def test_description_prompts_use_original_description() -> None:
    renderer = PromptRenderer()

    improved = renderer.render(
        PromptConfig(kind=PromptKind.DESCRIPTION_IMPROVEMENT, original_description="Old text")
    )
    from_title = renderer.render(
        PromptConfig(kind=PromptKind.DESCRIPTION_FROM_TITLE, original_description="Login page")
    )

    assert "Original Description:\nOld text" in improved
    assert "Title: Login page" in from_title


def test_custom_template_overrides_builtin(tmp_path: Path) -> None:
    (tmp_path / "user_story.tpl").write_text(
        "Custom for {{ project_name or 'unknown' }}: {{ feature_request }}\n", encoding="utf-8"
    )
    renderer = PromptRenderer(tmp_path)

    prompt = renderer.render(PromptConfig(kind=PromptKind.USER_STORY, feature_request="Add SSO"))

    assert prompt == "Custom for unknown: Add SSO\n"


def test_missing_custom_template_falls_back_to_builtin(tmp_path: Path) -> None:
    renderer = PromptRenderer(tmp_path)

    prompt = renderer.render(
        PromptConfig(kind=PromptKind.TITLE_EXTRACTION, feature_request="r", user_story="s")
    )

    assert "Provide ONLY the new jira title" in prompt


def test_broken_custom_template_falls_back_at_render(tmp_path: Path) -> None:
    (tmp_path / "user_story.tpl").write_text("{{ feature_request ", encoding="utf-8")
    (tmp_path / "title_extraction.tpl").write_text("{{ no_such_variable }}", encoding="utf-8")
    renderer = PromptRenderer(tmp_path)

    story = renderer.render(PromptConfig(kind=PromptKind.USER_STORY, feature_request="SSO"))
    title = renderer.render(
        PromptConfig(kind=PromptKind.TITLE_EXTRACTION, feature_request="r", user_story="s")
    )

    assert "Feature Request: SSO" in story
    assert "Provide ONLY the new jira title" in title


def test_custom_template_runtime_error_falls_back_at_render(tmp_path: Path) -> None:
    (tmp_path / "user_story.tpl").write_text(
        "{{ feature_request }} {{ 1 // 0 }}", encoding="utf-8"
    )
    (tmp_path / "description_improvement.tpl").write_text(
        '{{ "%d" % original_description }}', encoding="utf-8"
    )
    renderer = PromptRenderer(tmp_path)

    story = renderer.render(PromptConfig(kind=PromptKind.USER_STORY, feature_request="SSO"))
    improved = renderer.render(
        PromptConfig(kind=PromptKind.DESCRIPTION_IMPROVEMENT, original_description="old text")
    )

    assert "Feature Request: SSO" in story
    assert "Original Description:\nold text" in improved


def test_validate_reports_runtime_errors(tmp_path: Path) -> None:
    (tmp_path / "user_story.tpl").write_text("{{ 1 // 0 }}", encoding="utf-8")

    problems = PromptRenderer(tmp_path).validate()

    assert len(problems) == 1
    assert problems[0].startswith("template validation failed for user_story")
    assert "division" in problems[0]


def test_validate_reports_broken_templates(tmp_path: Path) -> None:
    (tmp_path / "user_story.tpl").write_text("{% if %}", encoding="utf-8")
    (tmp_path / "title_extraction.tpl").write_text("{{ missing }}", encoding="utf-8")

    problems = PromptRenderer(tmp_path).validate()

    assert len(problems) == 2
    assert problems[0].startswith("template validation failed for user_story")
    assert problems[1].startswith("template validation failed for title_extraction")


def test_validate_flags_missing_directory(tmp_path: Path) -> None:
    problems = PromptRenderer(tmp_path / "absent").validate()

    assert problems == [f"prompts directory does not exist: {tmp_path / 'absent'}"]


def test_validate_passes_for_builtins() -> None:
    assert PromptRenderer().validate() == []


def test_describe_reports_template_sources(tmp_path: Path) -> None:
    (tmp_path / "user_story.tpl").write_text("x", encoding="utf-8")

    infos = {info.kind: info for info in PromptRenderer(tmp_path).describe()}

    assert infos[PromptKind.USER_STORY].source == str(tmp_path / "user_story.tpl")
    assert infos[PromptKind.TITLE_EXTRACTION].source == "built-in"
    assert infos[PromptKind.TITLE_EXTRACTION].file_name == "title_extraction.tpl"


def test_scaffold_writes_templates_and_keeps_existing(tmp_path: Path) -> None:
    existing = tmp_path / "user_story.tpl"
    existing.write_text("mine", encoding="utf-8")

    result = PromptRenderer.scaffold(tmp_path)

    assert result["skipped"] == [existing]
    assert len(result["written"]) == 3
    assert existing.read_text(encoding="utf-8") == "mine"
    scaffolded = (tmp_path / "title_extraction.tpl").read_text(encoding="utf-8")
    assert scaffolded.startswith("{#\nTitle Extraction Template\n")
    assert PromptRenderer(tmp_path).validate() == []
