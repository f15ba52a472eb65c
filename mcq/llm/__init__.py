"""Model selection and streaming provider clients."""

from .anthropic_client import AnthropicClient
from .generation import Generator
from .openai_client import OpenAIClient
from .registry import ModelRegistry, ModelSelector, Provider, ResolvedModel
from .streaming import CancelToken, StreamError, StreamEvent, consume_stream

__all__ = [
    "AnthropicClient",
    "CancelToken",
    "Generator",
    "ModelRegistry",
    "ModelSelector",
    "OpenAIClient",
    "Provider",
    "ResolvedModel",
    "StreamError",
    "StreamEvent",
    "consume_stream",
]
