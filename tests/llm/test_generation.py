"""Tests for mcq.llm.generation."""

from __future__ import annotations

import io

import pytest

from mcq.errors import ErrorCode, UserError
from mcq.llm.generation import Generator
from mcq.llm.registry import ModelRegistry, Provider, ResolvedModel
from mcq.llm.streaming import StreamError, StreamEvent
from mcq.models import RepoContext
from mcq.prompting.renderer import PromptRenderer
from tests._fixtures.fakes import FakeStreamClient, deltas, failing

REGISTRY = ModelRegistry()
CLAUDE = ResolvedModel(REGISTRY.get("claude"), "sk-ant-test")
GPT5 = ResolvedModel(REGISTRY.get("gpt-5"), "sk-oai-test")


def _generator(client: FakeStreamClient, out: io.StringIO, **kwargs) -> Generator:  # type: ignore[no-untyped-def]
    return Generator(PromptRenderer(), {Provider.ANTHROPIC: client}, out=out, **kwargs)


def test_user_story_streams_and_returns_text() -> None:
    client = FakeStreamClient(
        deltas("As a user, ", "I want dark mode so that my eyes hurt less.")
    )
    out = io.StringIO()

    story = _generator(client, out).user_story(CLAUDE, "Add dark mode")

    assert story == "As a user, I want dark mode so that my eyes hurt less."
    assert f"💭 {story}\n" in out.getvalue()
    assert "🤖 Generating user story with Claude Sonnet 4.5..." in out.getvalue()
    assert "🔌 Connecting to Anthropic API (Claude Sonnet 4.5)..." in out.getvalue()
    assert "Feature Request: Add dark mode" in client.prompts[0]


def test_context_is_rendered_into_prompt() -> None:
    client = FakeStreamClient(deltas("story"))

    _generator(client, io.StringIO()).user_story(
        CLAUDE, "Add SSO", RepoContext(project_name="widgets")
    )

    assert "- **Project Name**: widgets" in client.prompts[0]


def test_title_prompt_includes_story() -> None:
    client = FakeStreamClient(deltas("# Add dashboard"))

    title = _generator(client, io.StringIO()).title(CLAUDE, "As a user, I want X", "x please")

    assert title == "# Add dashboard"
    assert "As a user, I want X" in client.prompts[0]


def test_description_helpers_use_their_prompt_kinds() -> None:
    client = FakeStreamClient(deltas("better"), deltas("fresh"))
    generator = _generator(client, io.StringIO())

    assert generator.improve_description(CLAUDE, "old description") == "better"
    assert generator.description_from_title(CLAUDE, "Login page") == "fresh"
    assert "Original Description:\nold description" in client.prompts[0]
    assert "Title: Login page" in client.prompts[1]


def test_stream_failures_are_classified() -> None:
    client = FakeStreamClient(
        [StreamEvent.delta("As a")] + failing("prompt exceeds maximum context length")
    )

    with pytest.raises(UserError) as excinfo:
        _generator(client, io.StringIO()).user_story(CLAUDE, "x")

    assert excinfo.value.code is ErrorCode.MODEL_TOKEN_LIMIT
    assert isinstance(excinfo.value.wrapped, StreamError)
    assert excinfo.value.details == [
        "Partial response: 4 characters received before the failure"
    ]


def test_timeouts_are_classified_as_stream_timeout() -> None:
    client = FakeStreamClient(failing("read timeout", kind="timeout"))

    with pytest.raises(UserError) as excinfo:
        _generator(client, io.StringIO()).improve_description(CLAUDE, "x")

    assert excinfo.value.code is ErrorCode.STREAM_TIMEOUT


def test_missing_provider_client_is_model_not_available() -> None:
    with pytest.raises(UserError) as excinfo:
        _generator(FakeStreamClient(), io.StringIO()).user_story(GPT5, "x")

    assert excinfo.value.code is ErrorCode.MODEL_NOT_AVAILABLE


def test_empty_responses_are_protocol_errors() -> None:
    client = FakeStreamClient([StreamEvent.done()])

    with pytest.raises(UserError) as excinfo:
        _generator(client, io.StringIO()).user_story(CLAUDE, "x")

    assert excinfo.value.code is ErrorCode.STREAM_PROTOCOL
