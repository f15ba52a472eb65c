"""Prompt rendering plus provider dispatch for every generation task."""

from __future__ import annotations

import sys
from typing import Mapping, Optional, TextIO

from ..config import DEFAULT_STREAM_TIMEOUT
from ..errors import ErrorCode, ServiceError, UserError, classify_error
from ..logging import get_logger, log_fields
from ..models import PromptConfig, PromptKind, RepoContext
from ..prompting.renderer import PromptRenderer
from .registry import Provider, ResolvedModel
from .streaming import CancelToken, StreamClient, consume_stream

_OPERATIONS = {
    PromptKind.USER_STORY: "Failed to generate user story",
    PromptKind.TITLE_EXTRACTION: "Failed to extract title",
    PromptKind.DESCRIPTION_IMPROVEMENT: "Failed to improve description",
    PromptKind.DESCRIPTION_FROM_TITLE: "Failed to generate description from title",
}


class Generator:
    """Runs one prompt kind end to end and returns the streamed text."""

    def __init__(
        self,
        renderer: PromptRenderer,
        clients: Mapping[Provider, StreamClient],
        *,
        out: TextIO | None = None,
        stream_timeout: float = DEFAULT_STREAM_TIMEOUT,
    ) -> None:
        self.renderer = renderer
        self.clients = dict(clients)
        self.stream_timeout = stream_timeout
        self._out = out or sys.stdout
        self._logger = get_logger("llm.generation")

    def generate(
        self,
        kind: PromptKind,
        model: ResolvedModel,
        *,
        feature_request: str = "",
        original_description: str = "",
        user_story: str = "",
        repo_context: Optional[RepoContext] = None,
    ) -> str:
        prompt = self.renderer.render(
            PromptConfig(
                kind=kind,
                feature_request=feature_request,
                original_description=original_description,
                user_story=user_story,
                repo_context=repo_context,
            )
        )
        self._logger.info(
            log_fields(
                "Prompt ready",
                kind=kind.value,
                chars=len(prompt),
                context=repo_context is not None,
            )
        )

        descriptor = model.descriptor
        client = self.clients.get(model.provider)
        if client is None:
            raise UserError(
                ErrorCode.MODEL_NOT_AVAILABLE,
                details=[f"no client registered for provider {model.provider.label}"],
            )

        self._out.write(f"🔌 Connecting to {model.provider.label} API ({descriptor.display_name})...\n")
        self._out.write("💭 ")
        self._out.flush()

        cancel = CancelToken(self.stream_timeout)
        try:
            return consume_stream(client.stream(model, prompt, cancel), self._out, cancel)
        except ServiceError as exc:
            self._logger.info(
                log_fields(
                    "Generation failed",
                    kind=kind.value,
                    error=exc,
                    partial_chars=len(exc.partial),
                )
            )
            raise classify_error(exc, _OPERATIONS[kind], caller="ai") from exc
        finally:
            cancel.cancel()

    def user_story(
        self,
        model: ResolvedModel,
        feature_request: str,
        repo_context: Optional[RepoContext] = None,
    ) -> str:
        self._out.write(
            f"🤖 Generating user story with {model.descriptor.display_name}...\n"
            f"📝 Feature request: {feature_request}\n\n"
        )
        return self.generate(
            PromptKind.USER_STORY,
            model,
            feature_request=feature_request,
            repo_context=repo_context,
        )

    def title(self, model: ResolvedModel, user_story: str, feature_request: str) -> str:
        return self.generate(
            PromptKind.TITLE_EXTRACTION,
            model,
            feature_request=feature_request,
            user_story=user_story,
        )

    def improve_description(
        self,
        model: ResolvedModel,
        description: str,
        repo_context: Optional[RepoContext] = None,
    ) -> str:
        self._out.write(f"🤖 Improving description with {model.descriptor.display_name}...\n")
        return self.generate(
            PromptKind.DESCRIPTION_IMPROVEMENT,
            model,
            original_description=description,
            repo_context=repo_context,
        )

    def description_from_title(
        self,
        model: ResolvedModel,
        title: str,
        repo_context: Optional[RepoContext] = None,
    ) -> str:
        self._out.write(
            f"🤖 Generating description from title with {model.descriptor.display_name}...\n"
        )
        return self.generate(
            PromptKind.DESCRIPTION_FROM_TITLE,
            model,
            original_description=title,
            repo_context=repo_context,
        )


__all__ = ["Generator"]
