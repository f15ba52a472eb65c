"""mcq: feature requests to user stories and JIRA issues."""

__version__ = "0.1.0"
