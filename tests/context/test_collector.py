"""Tests for mcq.context.collector."""

from __future__ import annotations

import io

from mcq.context.collector import (
    ContextCollector,
    classify_project,
    is_important_file,
    parse_module_manifest,
)
from mcq.models import ContextConfig, ProjectType, RepoContext
from tests._fixtures.fakes import fake_system
from tests._fixtures.repo_builder import RepoBuilder

GO_MOD = """
module github.com/acme/widgets

go 1.22

require (
    github.com/spf13/cobra v1.8.0
    // indirect comment
    gopkg.in/yaml.v3 v3.0.1
)

require github.com/stretchr/testify v1.9.0
"""


def test_parse_module_manifest_reads_module_version_and_requires() -> None:
    module_path, version, dependencies = parse_module_manifest(GO_MOD)

    assert module_path == "github.com/acme/widgets"
    assert version == "1.22"
    assert dependencies == [
        "github.com/spf13/cobra",
        "gopkg.in/yaml.v3",
        "github.com/stretchr/testify",
    ]


def test_gather_returns_none_when_nothing_requested(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"go.mod": GO_MOD})

    assert repo_builder.gather(ContextConfig.none()) is None


def test_auto_context_tolerates_missing_git_history(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "go.mod": GO_MOD,
            "README.md": "# Widgets\n\nA command line tool for widgets.\n",
        }
    )
    system = fake_system(repo_builder.path(), fail=["git"])
    collector = repo_builder.collector(system)

    context = collector.gather(ContextConfig(auto_detect=True))

    assert context is not None
    assert context.project_name == "widgets"
    assert context.module_path == "github.com/acme/widgets"
    assert context.readme.startswith("# Widgets")
    assert context.recent_commits == ()
    assert len(collector.diagnostics) == 1
    assert collector.diagnostics[0].startswith("recent commits:")


def test_gather_returns_none_when_every_subtask_fails(repo_builder: RepoBuilder) -> None:
    system = fake_system(repo_builder.path(), fail=["git"])
    collector = repo_builder.collector(system)

    context = collector.gather(
        ContextConfig(include_readme=True, include_go_mod=True, include_commits=True)
    )

    assert context is None
    assert [diagnostic.split(":")[0] for diagnostic in collector.diagnostics] == [
        "module manifest",
        "readme",
        "recent commits",
    ]


def test_commits_are_capped_at_max_commits(repo_builder: RepoBuilder) -> None:
    log = "".join(f"{index:07x} Commit {index}\n" for index in range(8))
    system = fake_system(repo_builder.path(), outputs={"git": log})

    context = repo_builder.gather(
        ContextConfig(include_commits=True, max_commits=3), system=system
    )

    assert context is not None
    assert len(context.recent_commits) == 3
    assert context.recent_commits[0] == "0000000 Commit 0"


def test_readme_merges_docs_folder(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "README.md": "Root readme",
            "docs/README.md": "Docs readme",
            "docs/setup-guide.md": "Install it",
            "docs/notes.txt": "ignored",
        }
    )

    context = repo_builder.gather(ContextConfig(include_readme=True))

    assert context is not None
    assert context.readme == (
        "Root readme"
        "\n\n## Documentation\n\nDocs readme"
        "\n\n### Setup Guide\n\nInstall it"
    )


def test_structure_respects_depth_and_skip_rules(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "go.mod": "module example.com/app\n",
            "README.md": "app",
            "cmd/mcq/main.go": "package main",
            "cmd/mcq/logo.png": "binary",
            "internal/jira/client/client.go": "package client",
            "internal/jira/client/deep/hidden.go": "package deep",
            "node_modules/left-pad/index.json": "{}",
            ".cache/state.json": "{}",
        }
    )

    context = repo_builder.gather(ContextConfig(include_structure=True))

    assert context is not None
    assert context.directory_structure == (
        "./\n"
        "README.md\n"
        "go.mod\n"
        "cmd/\n"
        "  mcq/\n"
        "    main.go\n"
        "internal/\n"
        "  jira/\n"
        "    client/\n"
        "      client.go\n"
    )


def test_config_files_skip_oversized_entries(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "Makefile": "test:\n\tgo test ./...\n",
            "config.yaml": "x" * 200,
            "unrelated.yaml": "not on the allowlist",
        }
    )

    context = repo_builder.gather(ContextConfig(include_configs=True, max_file_size=100))

    assert context is not None
    assert dict(context.config_files) == {"Makefile": "test:\n\tgo test ./...\n"}


def test_large_context_prints_warning(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"README.md": "word " * 25_000})
    out = io.StringIO()
    collector = ContextCollector(repo_builder.path(), out=out)

    collector.gather(ContextConfig(include_readme=True))

    assert "Large context" in out.getvalue()


def test_is_important_file() -> None:
    assert is_important_file("main.go")
    assert is_important_file("Dockerfile")
    assert is_important_file("settings.YAML")
    assert not is_important_file("logo.png")


def test_classify_project_prefers_readme_then_dependencies_then_layout() -> None:
    assert classify_project(RepoContext(readme="A CLI for widgets")) is ProjectType.CLI
    assert classify_project(RepoContext(readme="REST API server")) is ProjectType.WEB_API
    assert (
        classify_project(RepoContext(dependencies=("github.com/gin-gonic/gin",)))
        is ProjectType.WEB_API
    )
    assert classify_project(RepoContext(directory_structure="./\ncmd/\n")) is ProjectType.CLI
    assert classify_project(RepoContext()) is ProjectType.APPLICATION
