"""Prompt templates and rendering."""

from .renderer import PromptRenderer

__all__ = ["PromptRenderer"]
