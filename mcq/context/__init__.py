"""Repository context gathering and prompt formatting."""

from .collector import ContextCollector
from .formatter import format_context

__all__ = ["ContextCollector", "format_context"]
