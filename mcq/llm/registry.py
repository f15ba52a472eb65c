"""Supported models and credential-aware model selection."""

from __future__ import annotations

import enum
import sys
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional, Sequence, TextIO

from ..errors import ErrorCode, UserError
from ..logging import get_logger, log_fields, mask_secret
from ..prompter import UserPrompter

DEFAULT_MAX_TOKENS = 4000
GPT5_PREFIX = "gpt-5"


class Provider(enum.Enum):
    ANTHROPIC = "anthropic"
    OPENAI = "openai"

    @property
    def label(self) -> str:
        return "Anthropic" if self is Provider.ANTHROPIC else "OpenAI"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY" if self is Provider.ANTHROPIC else "OPENAI_API_KEY"


@dataclass(frozen=True)
class ModelDescriptor:
    """Static description of one selectable model."""

    key: str
    display_name: str
    provider: Provider
    wire_id: str
    description: str
    # None means the request omits max_tokens.
    max_tokens: Optional[int]


@dataclass(frozen=True)
class ResolvedModel:
    """A descriptor paired with the credential for this invocation."""

    descriptor: ModelDescriptor
    api_key: str

    @property
    def provider(self) -> Provider:
        return self.descriptor.provider

    @property
    def masked_key(self) -> str:
        return mask_secret(self.api_key)

    def __repr__(self) -> str:
        return f"ResolvedModel(key={self.descriptor.key!r}, api_key={self.masked_key!r})"

    __str__ = __repr__


_MODELS = (
    ModelDescriptor(
        key="claude",
        display_name="Claude Sonnet 4.5",
        provider=Provider.ANTHROPIC,
        wire_id="claude-sonnet-4-5-20250929",
        description="Latest Claude model for complex reasoning",
        max_tokens=DEFAULT_MAX_TOKENS,
    ),
    ModelDescriptor(
        key="gpt-4o",
        display_name="GPT-4o",
        provider=Provider.OPENAI,
        wire_id="gpt-4o",
        description="Previous generation GPT model",
        max_tokens=DEFAULT_MAX_TOKENS,
    ),
    ModelDescriptor(
        key="gpt-5",
        display_name="GPT-5",
        provider=Provider.OPENAI,
        wire_id="gpt-5",
        description="Full power, best for complex tasks",
        max_tokens=None,
    ),
    ModelDescriptor(
        key="gpt-5-mini",
        display_name="GPT-5 Mini",
        provider=Provider.OPENAI,
        wire_id="gpt-5-mini",
        description="Faster and more cost-effective",
        max_tokens=None,
    ),
    ModelDescriptor(
        key="gpt-5-nano",
        display_name="GPT-5 Nano",
        provider=Provider.OPENAI,
        wire_id="gpt-5-nano",
        description="Optimized for simple tasks",
        max_tokens=None,
    ),
)

_PROVIDER_DEFAULTS = MappingProxyType({Provider.ANTHROPIC: "claude", Provider.OPENAI: "gpt-5"})


class ModelRegistry:
    """Immutable catalog of models in display order."""

    def __init__(self, models: Sequence[ModelDescriptor] = _MODELS) -> None:
        self._models = tuple(models)
        self._by_key = MappingProxyType({model.key: model for model in self._models})

    def list(self) -> List[ModelDescriptor]:
        return list(self._models)

    def keys(self) -> List[str]:
        return [model.key for model in self._models]

    def get(self, key: str) -> Optional[ModelDescriptor]:
        return self._by_key.get(key)

    def default_for(self, provider: Provider) -> ModelDescriptor:
        return self._by_key[_PROVIDER_DEFAULTS[provider]]


class ModelSelector:
    """Resolves an explicit or auto-detected model against available credentials."""

    def __init__(
        self,
        registry: ModelRegistry,
        prompter: UserPrompter,
        environ: Mapping[str, str],
        *,
        out: TextIO | None = None,
    ) -> None:
        self._registry = registry
        self._prompter = prompter
        self._environ = environ
        self._out = out or sys.stdout
        self._logger = get_logger("llm.selection")

    def credentials(self) -> Mapping[Provider, str]:
        return {
            provider: self._environ.get(provider.env_var, "")
            for provider in Provider
        }

    def select(self, explicit_key: str | None = None) -> ResolvedModel:
        keys = self.credentials()
        self._logger.debug(
            log_fields(
                "API keys",
                anthropic=mask_secret(keys[Provider.ANTHROPIC]),
                openai=mask_secret(keys[Provider.OPENAI]),
            )
        )

        if explicit_key:
            descriptor = self._registry.get(explicit_key)
            if descriptor is None:
                raise UserError(
                    ErrorCode.MODEL_NOT_AVAILABLE,
                    details=[
                        f"unsupported model: {explicit_key} "
                        f"(choose from {', '.join(self._registry.keys())})"
                    ],
                )
            return self._resolve(descriptor, keys)

        available = [provider for provider in Provider if keys[provider]]
        if not available:
            raise UserError(ErrorCode.MODEL_NOT_AVAILABLE)
        if len(available) == 1:
            return self._resolve(self._registry.default_for(available[0]), keys)
        return self._interactive(keys)

    def _interactive(self, keys: Mapping[Provider, str]) -> ResolvedModel:
        candidates = [model for model in self._registry.list() if keys[model.provider]]
        options = [
            f"{model.display_name} ({model.provider.label}) - {model.description}"
            for model in candidates
        ]
        self._out.write("🔑 Both Claude and OpenAI API keys are available.\n")
        try:
            index = self._prompter.ask_choice("Which model would you like to use?", options)
        except (EOFError, OSError):
            self._out.write("\n⚠️  Error reading input, using default model.\n")
            self._out.write("   This is normal in non-interactive environments.\n")
            return self._resolve(self._registry.default_for(Provider.ANTHROPIC), keys)
        except ValueError as exc:
            raise UserError(ErrorCode.MODEL_NOT_AVAILABLE, details=[str(exc)], wrapped=exc) from exc
        return self._resolve(candidates[index], keys)

    def _resolve(self, descriptor: ModelDescriptor, keys: Mapping[Provider, str]) -> ResolvedModel:
        api_key = keys[descriptor.provider]
        if not api_key:
            raise UserError(
                ErrorCode.MODEL_NOT_AVAILABLE,
                details=[f"{descriptor.provider.env_var} is not set for model {descriptor.key}"],
            )
        resolved = ResolvedModel(descriptor=descriptor, api_key=api_key)
        self._logger.info(
            log_fields(
                "Selected model",
                name=descriptor.display_name,
                provider=descriptor.provider.value,
                key=resolved.masked_key,
            )
        )
        return resolved


__all__ = [
    "DEFAULT_MAX_TOKENS",
    "GPT5_PREFIX",
    "ModelDescriptor",
    "ModelRegistry",
    "ModelSelector",
    "Provider",
    "ResolvedModel",
]
