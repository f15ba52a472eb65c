"""JIRA integration: REST client, markup conversion and issue workflows."""

from .client import JiraClient, JiraError
from .manager import JiraManager
from .markup import WikiFormatter, markdown_to_wiki
from .titles import TitleExtractor, clean_title, extract_title_with_patterns

__all__ = [
    "JiraClient",
    "JiraError",
    "JiraManager",
    "TitleExtractor",
    "WikiFormatter",
    "clean_title",
    "extract_title_with_patterns",
    "markdown_to_wiki",
]
