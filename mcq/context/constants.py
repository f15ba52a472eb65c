"""Shared constants for repository context gathering."""

from __future__ import annotations

MODULE_MANIFEST = "go.mod"

README_CANDIDATES: tuple[str, ...] = ("README.md", "README.rst", "README.txt", "README")

DOCS_DIR = "docs"

# Substring match against the relative path.
SKIP_NAMES: tuple[str, ...] = (
    "vendor",
    "node_modules",
    ".git",
    "build",
    "dist",
    "target",
    "bin",
    "obj",
)

MAX_STRUCTURE_DEPTH = 3

IMPORTANT_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".go",
        ".py",
        ".md",
        ".yaml",
        ".yml",
        ".json",
        ".toml",
        ".env",
        ".dockerfile",
    }
)

IMPORTANT_NAMES: frozenset[str] = frozenset(
    {
        "go.mod",
        "go.sum",
        "README",
        "LICENSE",
        "CHANGELOG",
        "Dockerfile",
        "Makefile",
        ".gitignore",
        ".env",
    }
)

CONFIG_ALLOWLIST: tuple[str, ...] = (
    "go.mod",
    "go.sum",
    "Makefile",
    "Dockerfile",
    ".dockerignore",
    "docker-compose.yml",
    "docker-compose.yaml",
    ".env",
    ".env.example",
    "config.yaml",
    "config.yml",
    "config.json",
    ".gitignore",
)

LARGE_CONTEXT_CHARS = 100_000

WEB_FRAMEWORK_HINTS: tuple[str, ...] = ("gin", "echo", "fiber")
CLI_FRAMEWORK_HINTS: tuple[str, ...] = ("cobra", "cli")
