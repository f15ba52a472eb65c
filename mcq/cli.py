"""CLI entrypoints for mcq commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

from .app import App
from .config import ConfigError, ContextDefaults, McqConfig, load_config
from .errors import UserError
from .jira.manager import ValidationError
from .llm.registry import ModelRegistry
from .logging import configure_logging, get_logger
from .models import ContextConfig


def _add_verbose_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default: object = argparse.SUPPRESS if suppress_default else 0
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=default,
        help="Increase log verbosity (repeat up to three times).",
    )
    parser.add_argument(
        "--verbosity",
        type=int,
        choices=range(0, 4),
        default=argparse.SUPPRESS if suppress_default else None,
        metavar="N",
        help="Set verbosity level: 0=off, 1=basic, 2=detailed, 3=verbose.",
    )


def _add_ai_options(parser: argparse.ArgumentParser) -> None:
    models = ", ".join(f"'{key}'" for key in ModelRegistry().keys())
    parser.add_argument(
        "-m",
        "--model",
        default=None,
        help=f"AI model to use: {models} (auto-detected if not specified).",
    )
    parser.add_argument(
        "--auto-context",
        action="store_true",
        help="Automatically detect and include relevant repository context.",
    )
    parser.add_argument("--include-readme", action="store_true", help="Include README content.")
    parser.add_argument(
        "--include-go-mod", action="store_true", help="Include go.mod information."
    )
    parser.add_argument(
        "--include-commits", action="store_true", help="Include recent commit messages."
    )
    parser.add_argument(
        "--include-structure", action="store_true", help="Include directory structure."
    )
    parser.add_argument(
        "--include-configs", action="store_true", help="Include configuration files."
    )
    parser.add_argument(
        "--max-commits",
        type=int,
        default=None,
        help="Maximum number of recent commits to include (default 10).",
    )
    parser.add_argument(
        "--no-context", action="store_true", help="Skip context gathering entirely."
    )
    parser.add_argument(
        "--no-clipboard", action="store_true", help="Do not copy the result to the clipboard."
    )


def _add_jira_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--url", help="Jira instance URL (or JIRA_INSTANCE_URL).")
    parser.add_argument("--username", help="Jira username (or JIRA_USERNAME).")
    parser.add_argument("--token", help="Jira API token (or JIRA_API_TOKEN).")
    parser.add_argument("--password", help="Jira password (or JIRA_PASSWORD).")
    parser.add_argument(
        "--project-prefix", help="Jira project prefix (or JIRA_PROJECT_PREFIX)."
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcq",
        description="Turn feature requests into user stories and JIRA issues.",
    )
    _add_verbose_options(parser)
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the YAML configuration file (defaults to ./.mcq.yml or MCQ_CONFIG).",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Also write logs to a file.")
    groups = parser.add_subparsers(dest="group", required=True)

    ai_parser = groups.add_parser("ai", help="AI-powered commands.")
    ai_commands = ai_parser.add_subparsers(dest="command", required=True)
    for name, help_text, metavar in (
        ("jira", "Convert a vague feature request into a user story.", "feature_request"),
        ("improve", "Improve an existing issue description.", "description"),
        ("describe", "Write a user story description from an issue title.", "title"),
    ):
        command = ai_commands.add_parser(name, help=help_text)
        _add_verbose_options(command, suppress_default=True)
        _add_ai_options(command)
        command.add_argument("text", nargs="+", metavar=metavar)
    models_parser = ai_commands.add_parser("models", help="List supported models.")
    _add_verbose_options(models_parser, suppress_default=True)

    jira_parser = groups.add_parser("jira", help="Jira integration commands.")
    jira_commands = jira_parser.add_subparsers(dest="command", required=True)
    new_parser = jira_commands.add_parser("new", help="Create a Jira issue from a feature request.")
    _add_verbose_options(new_parser, suppress_default=True)
    _add_ai_options(new_parser)
    _add_jira_options(new_parser)
    new_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Generate the user story without creating an issue.",
    )
    new_parser.add_argument("text", nargs="+", metavar="feature_request")
    show_parser = jira_commands.add_parser("show", help="Display a Jira issue.")
    _add_verbose_options(show_parser, suppress_default=True)
    _add_jira_options(show_parser)
    show_parser.add_argument("issue_key")
    improve_parser = jira_commands.add_parser(
        "improve", help="Generate an improved description for an existing issue."
    )
    _add_verbose_options(improve_parser, suppress_default=True)
    _add_ai_options(improve_parser)
    _add_jira_options(improve_parser)
    improve_parser.add_argument("issue_key")

    templates_parser = groups.add_parser("templates", help="Manage AI prompt templates.")
    template_commands = templates_parser.add_subparsers(dest="command", required=True)
    generate_parser = template_commands.add_parser("generate", help="Write example templates.")
    generate_parser.add_argument("directory", nargs="?", default=".")
    template_commands.add_parser("validate", help="Validate prompt templates.")
    template_commands.add_parser("list", help="List available prompt types.")

    context_parser = groups.add_parser("context", help="Test repository context gathering.")
    context_commands = context_parser.add_subparsers(dest="command", required=True)
    context_test = context_commands.add_parser("test", help="Gather context and print a summary.")
    _add_verbose_options(context_test, suppress_default=True)

    config_parser = groups.add_parser("config", help="Manage CLI configuration.")
    config_commands = config_parser.add_subparsers(dest="command", required=True)
    config_commands.add_parser("setup", help="Interactive configuration setup.")
    config_commands.add_parser("test", help="Test current configuration.")
    config_commands.add_parser("show", help="Show current configuration.")

    return parser


def _verbosity(args: argparse.Namespace) -> int:
    explicit = getattr(args, "verbosity", None)
    if explicit is not None:
        return int(explicit)
    return min(int(getattr(args, "verbose", 0) or 0), 3)


def _context_config(args: argparse.Namespace, defaults: ContextDefaults) -> ContextConfig:
    if args.no_context:
        return ContextConfig.none()
    includes = (
        args.include_readme,
        args.include_go_mod,
        args.include_commits,
        args.include_structure,
        args.include_configs,
    )
    return ContextConfig(
        auto_detect=args.auto_context or not any(includes),
        include_readme=args.include_readme,
        include_go_mod=args.include_go_mod,
        include_commits=args.include_commits,
        include_structure=args.include_structure,
        include_configs=args.include_configs,
        max_commits=args.max_commits if args.max_commits else defaults.max_commits,
        max_file_size=defaults.max_file_size,
    )


def _apply_jira_options(config: McqConfig, args: argparse.Namespace) -> None:
    for option, attribute in (
        ("url", "url"),
        ("username", "username"),
        ("token", "api_token"),
        ("password", "password"),
        ("project_prefix", "project_prefix"),
    ):
        value = getattr(args, option, None)
        if value:
            setattr(config.jira, attribute, value)


def main(argv: list[str] | None = None, *, app: Optional[App] = None) -> None:
    """CLI entrypoint for mcq commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    verbosity = _verbosity(args)
    configure_logging(verbosity=verbosity, log_file=args.log_file)
    logger = get_logger("cli")

    if app is None:
        try:
            config = load_config(args.config)
        except (ConfigError, OSError) as exc:
            parser.exit(1, f"❌ Configuration error: {exc}\n")
        app = App(config, verbose=verbosity > 0)
    _apply_jira_options(app.config, args)

    try:
        ok = _dispatch(app, args)
    except UserError as exc:
        app.warn(exc)
        logger.debug("Command failed with %s", exc.code.value)
        if exc.fatal:
            parser.exit(1)
        ok = True
    except ValidationError as exc:
        parser.exit(1, f"❌ {exc}\n")
    except KeyboardInterrupt:
        parser.exit(130, "\nInterrupted\n")
    if not ok:
        parser.exit(1)


def _dispatch(app: App, args: argparse.Namespace) -> bool:
    group, command = args.group, args.command

    if group == "ai":
        if command == "models":
            app.ai_models()
            return True
        text = " ".join(args.text)
        options = {
            "model_key": args.model,
            "context_config": _context_config(args, app.config.context),
            "clipboard": not args.no_clipboard,
        }
        if command == "jira":
            app.ai_jira(text, **options)
        elif command == "improve":
            app.ai_improve(text, **options)
        else:
            app.ai_describe(text, **options)
        return True

    if group == "jira":
        if command == "show":
            app.jira_show(args.issue_key)
        elif command == "new":
            app.jira_new(
                " ".join(args.text),
                model_key=args.model,
                context_config=_context_config(args, app.config.context),
                dry_run=args.dry_run,
            )
        else:
            app.jira_improve(
                args.issue_key,
                model_key=args.model,
                context_config=_context_config(args, app.config.context),
                clipboard=not args.no_clipboard,
            )
        return True

    if group == "templates":
        if command == "generate":
            app.templates_generate(Path(args.directory))
            return True
        if command == "list":
            app.templates_list()
            return True
        return app.templates_validate()

    if group == "context":
        return app.context_test()

    if command == "setup":
        app.config_setup()
        return True
    if command == "test":
        return app.config_test()
    app.config_show()
    return True


if __name__ == "__main__":
    main(sys.argv[1:])
