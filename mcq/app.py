"""Composition root wiring configuration, adapters and user-facing flows."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Mapping, Optional, TextIO

from .config import McqConfig, save_config
from .context.collector import ContextCollector
from .errors import ErrorCode, UserError
from .jira.client import JiraClient
from .jira.manager import JiraManager
from .jira.titles import TitleExtractor
from .llm.anthropic_client import AnthropicClient
from .llm.generation import Generator
from .llm.openai_client import OpenAIClient
from .llm.registry import ModelRegistry, ModelSelector, Provider, ResolvedModel
from .llm.streaming import StreamClient
from .logging import get_logger, log_fields, mask_secret
from .models import ContextConfig, RepoContext
from .prompter import ConsolePrompter, UserPrompter
from .prompting.renderer import PromptRenderer
from .system import SystemCalls

_STORY_RULE = "=" * 60
_HEADER_RULE = "=" * 28


class App:
    """Builds every collaborator for one invocation and runs the CLI verbs."""

    def __init__(
        self,
        config: McqConfig,
        *,
        prompter: UserPrompter | None = None,
        system: SystemCalls | None = None,
        clients: Mapping[Provider, StreamClient] | None = None,
        jira_client: JiraClient | None = None,
        registry: ModelRegistry | None = None,
        cwd: Path | None = None,
        out: TextIO | None = None,
        err: TextIO | None = None,
        verbose: bool = False,
    ) -> None:
        self.config = config
        self.cwd = cwd or Path.cwd()
        self.out = out or sys.stdout
        self.err = err or sys.stderr
        self.verbose = verbose
        self.prompter = prompter or ConsolePrompter(stdout=self.out)
        self.system = system or SystemCalls(cwd=self.cwd)
        self.registry = registry or ModelRegistry()
        self.renderer = PromptRenderer(config.templates.prompts_dir)
        if clients is None:
            clients = {
                Provider.ANTHROPIC: AnthropicClient(
                    request_timeout=config.llm.request_timeout, out=self.out
                ),
                Provider.OPENAI: OpenAIClient(request_timeout=config.llm.request_timeout),
            }
        self.generator = Generator(
            self.renderer,
            clients,
            out=self.out,
            stream_timeout=config.llm.stream_timeout,
        )
        self.selector = ModelSelector(self.registry, self.prompter, config.environ, out=self.out)
        self._jira_client = jira_client
        self.logger = get_logger("app")

    # ------------------------------------------------------------------
    # Shared steps

    def warn(self, error: UserError) -> None:
        self.err.write(error.render(verbose=self.verbose) + "\n")

    def select_model(self, explicit_key: str | None = None) -> ResolvedModel:
        return self.selector.select(explicit_key or self.config.llm.model)

    def gather_context(self, context_config: ContextConfig) -> Optional[RepoContext]:
        """Collect repository context; failures are reported and never fatal."""
        if not context_config.any_enabled():
            return None
        collector = ContextCollector(self.cwd, system=self.system, out=self.out)
        context = collector.gather(context_config)
        if context is None and collector.diagnostics:
            self.warn(
                UserError(ErrorCode.CONTEXT_GATHERING_FAILED, details=collector.diagnostics)
            )
        return context

    def generate_story(
        self,
        feature_request: str,
        *,
        model: ResolvedModel,
        context_config: ContextConfig,
    ) -> str:
        repo_context = self.gather_context(context_config)
        return self.generator.user_story(model, feature_request, repo_context)

    def deliver(self, text: str, *, clipboard: bool = True) -> None:
        """Copy ``text`` to the clipboard (best effort) and print it between rules."""
        if clipboard:
            self.out.write("\n📋 Copying to clipboard...\n")
            try:
                tool = self.system.copy_to_clipboard(text)
            except RuntimeError as exc:
                self.warn(UserError(ErrorCode.CLIPBOARD_FAILED, wrapped=exc, details=[str(exc)]))
            else:
                self.logger.info(log_fields("Copied to clipboard", tool=tool, chars=len(text)))
                self.out.write("✅ User story generated and copied to clipboard!\n")
        self.out.write(f"\n{_STORY_RULE}\n{text}\n{_STORY_RULE}\n")

    def jira_manager(self) -> JiraManager:
        if self._jira_client is None:
            self._jira_client = JiraClient(
                self.config.jira, timeout=self.config.llm.request_timeout, out=self.out
            )
        return JiraManager(self.config.jira, self._jira_client, self.prompter, out=self.out)

    # ------------------------------------------------------------------
    # ai

    def ai_jira(
        self,
        feature_request: str,
        *,
        model_key: str | None,
        context_config: ContextConfig,
        clipboard: bool = True,
    ) -> str:
        self.logger.info(log_fields("Starting ai jira", feature_request=feature_request))
        model = self.select_model(model_key)
        story = self.generate_story(feature_request, model=model, context_config=context_config)
        self.deliver(story, clipboard=clipboard)
        return story

    def ai_improve(
        self,
        description: str,
        *,
        model_key: str | None,
        context_config: ContextConfig,
        clipboard: bool = True,
    ) -> str:
        model = self.select_model(model_key)
        repo_context = self.gather_context(context_config)
        improved = self.generator.improve_description(model, description, repo_context)
        self.deliver(improved, clipboard=clipboard)
        return improved

    def ai_describe(
        self,
        title: str,
        *,
        model_key: str | None,
        context_config: ContextConfig,
        clipboard: bool = True,
    ) -> str:
        model = self.select_model(model_key)
        repo_context = self.gather_context(context_config)
        description = self.generator.description_from_title(model, title, repo_context)
        self.deliver(description, clipboard=clipboard)
        return description

    def ai_models(self) -> None:
        keys = self.selector.credentials()
        self.out.write("🤖 Available models:\n")
        for descriptor in self.registry.list():
            status = "✅" if keys[descriptor.provider] else "❌"
            self.out.write(
                f"  {status} {descriptor.key:<11} {descriptor.display_name} "
                f"({descriptor.provider.label}) - {descriptor.description}\n"
            )
        self.out.write("\n💡 Models marked ❌ need ")
        self.out.write("ANTHROPIC_API_KEY (Claude) or OPENAI_API_KEY (GPT).\n")

    # ------------------------------------------------------------------
    # jira

    def jira_new(
        self,
        feature_request: str,
        *,
        model_key: str | None,
        context_config: ContextConfig,
        dry_run: bool = False,
    ) -> Optional[str]:
        """Generate a story and, unless ``dry_run``, create it as a JIRA issue."""
        manager = None if dry_run else self.jira_manager()
        model = self.select_model(model_key)
        story = self.generate_story(feature_request, model=model, context_config=context_config)
        if manager is None:
            self.out.write("\n🔍 Dry run: no JIRA issue created.\n")
            self.out.write(f"\n{_STORY_RULE}\n{story}\n{_STORY_RULE}\n")
            return None

        titles = TitleExtractor(
            lambda user_story, request: self.generator.title(model, user_story, request),
            self.prompter,
            out=self.out,
        )
        issue_key = manager.create_issue(story, feature_request, titles)
        self.out.write(f"\n✅ Created issue {issue_key}\n")
        self.out.write(f"🔗 {manager.client.browse_url(issue_key)}\n")
        return issue_key

    def jira_show(self, issue_key: str) -> None:
        self.jira_manager().show_issue(issue_key)

    def jira_improve(
        self,
        issue_key: str,
        *,
        model_key: str | None,
        context_config: ContextConfig,
        clipboard: bool = True,
    ) -> str:
        """Rewrite an issue's description; the issue itself is left unchanged."""
        issue = self.jira_manager().fetch_issue(issue_key)
        model = self.select_model(model_key)
        repo_context = self.gather_context(context_config)
        if issue.description.strip():
            text = self.generator.improve_description(model, issue.description, repo_context)
        else:
            text = self.generator.description_from_title(model, issue.summary, repo_context)
        self.deliver(text, clipboard=clipboard)
        return text

    # ------------------------------------------------------------------
    # templates

    def templates_generate(self, directory: Path) -> None:
        result = self.renderer.scaffold(directory)
        for path in result["skipped"]:
            self.out.write(f"⚠️  Template file already exists: {path}\n")
        for path in result["written"]:
            self.out.write(f"✅ Generated template: {path}\n")
        self.out.write(f"\n📁 Template files generated in: {directory}\n")
        self.out.write("💡 Set MCQ_PROMPTS_DIR environment variable to use these templates:\n")
        self.out.write(f"   export MCQ_PROMPTS_DIR={directory}\n")

    def templates_list(self) -> None:
        self.out.write("Available prompt types:\n")
        for info in self.renderer.describe():
            self.out.write(f"• {info.kind.value}\n")
            self.out.write(f"  Template file: {info.file_name}\n")
            self.out.write(f"  Description: {info.description}\n")
            self.out.write(f"  Source: {info.source}\n")

    def templates_validate(self) -> bool:
        problems = self.renderer.validate()
        if problems:
            self.out.write("❌ Template validation failed:\n")
            for problem in problems:
                self.out.write(f"   • {problem}\n")
            return False
        self.out.write("✅ All templates are valid\n")
        return True

    # ------------------------------------------------------------------
    # context

    def context_test(self) -> bool:
        write = self.out.write
        write("🧪 Testing Context Gathering\n")
        write(f"{_HEADER_RULE}\n\n")
        write("📥 Gathering repository context...\n")

        collector = ContextCollector(self.cwd, system=self.system, out=self.out)
        context = collector.gather(ContextConfig.auto())
        if context is None:
            self._context_diagnostics(collector.diagnostics)
            return False

        write("\n✅ Context gathered successfully!\n\n")
        write("📊 Context Summary:\n-------------------\n\n")
        if context.project_name:
            write(f"📦 Project: {context.project_name}\n")
            write(f"   Module Path: {context.module_path}\n")
            write(f"   Go Version: {context.language_version}\n")
            write(f"   Project Type: {context.project_type}\n")
            if context.dependencies:
                write(f"   Dependencies: {len(context.dependencies)} found\n")
                for dependency in context.dependencies[:5]:
                    write(f"      - {dependency}\n")
                if len(context.dependencies) > 5:
                    write(f"      ... and {len(context.dependencies) - 5} more\n")
            write("\n")

        if context.readme:
            write(_readme_heading(context.readme) + "\n")
            preview = context.readme[:500] + ("..." if len(context.readme) > 500 else "")
            write(f"   {preview}\n")
            if len(context.readme) > 500:
                write(f"   [... {len(context.readme) - 500} more characters of documentation]\n")
            write("\n")

        if context.recent_commits:
            write(f"📝 Recent Commits ({len(context.recent_commits)}):\n")
            for index, commit in enumerate(context.recent_commits[:5], start=1):
                if len(commit) > 80:
                    commit = commit[:80] + "..."
                write(f"   {index}. {commit}\n")
            if len(context.recent_commits) > 5:
                write(f"   ... and {len(context.recent_commits) - 5} more commits\n")
            write("\n")

        if context.directory_structure:
            lines = context.directory_structure.rstrip("\n").split("\n")
            preview = "\n".join(lines[:20])
            if len(lines) > 20:
                preview += "\n   ... (truncated)"
            write(f"📁 Directory Structure:\n{preview}\n\n")

        if context.config_files:
            write(f"⚙️ Configuration Files ({len(context.config_files)}):\n")
            for name in sorted(context.config_files):
                content = context.config_files[name]
                preview = content[:150] + ("..." if len(content) > 150 else "")
                write(f"   • {name}\n     {preview}\n\n")

        if collector.diagnostics:
            write("⚠️  Some context sources were unavailable:\n")
            for diagnostic in collector.diagnostics:
                write(f"   • {diagnostic}\n")
            write("\n")

        write("✅ Context test completed successfully!\n\n")
        write("💡 This context is used to improve AI-generated user stories\n")
        write("   by providing relevant information about your repository.\n")
        return True

    def _context_diagnostics(self, diagnostics: List[str]) -> None:
        write = self.out.write
        write("\n❌ Context gathering failed or returned no data\n\n")
        write("🔍 Diagnostic Information:\n-------------------------\n\n")
        for diagnostic in diagnostics:
            write(f"   • {diagnostic}\n")
        write("\nChecking for common issues...\n\n")
        if (self.cwd / ".git").exists():
            write("✅ In a Git repository\n\n")
        else:
            write("⚠️  Not in a Git repository (Git history not available)\n\n")
        if (self.cwd / "go.mod").is_file():
            write("✅ go.mod file found\n\n")
        else:
            write("⚠️  go.mod file not found\n\n")
        readme_found = any(
            (base / name).is_file()
            for base in (self.cwd, self.cwd / "docs")
            for name in ("README.md", "readme.md", "README.txt", "README")
        )
        if readme_found:
            write("✅ README file found (checked root and docs/)\n\n")
        else:
            write("⚠️  README file not found (checked root and docs/)\n\n")
        write("💡 Recommendations:\n")
        write("  • Try running from the repository root directory\n")
        write("  • Verify files are readable (check permissions)\n")
        write("  • Use 'mcq ai jira --no-context' to skip context\n\n")

    # ------------------------------------------------------------------
    # config

    def config_show(self) -> None:
        jira = self.config.jira
        env = self.config.environ
        write = self.out.write
        write("📋 Current Configuration\n")
        write(f"{'=' * 24}\n\n")
        write(f"📁 Config File: {self._config_file_label()}\n\n")

        write("📋 JIRA Settings:\n")
        write(f"   • URL: {jira.url or ''}\n")
        write(f"   • Username: {jira.username or ''}\n")
        write(f"   • Token: {mask_secret(jira.secret)}\n")
        write(f"   • Project Prefix: {jira.project_prefix or ''}\n\n")

        write("🤖 AI Settings:\n")
        write(f"   • Anthropic API Key: {mask_secret(self.config.anthropic_api_key)}\n")
        write(f"   • OpenAI API Key: {mask_secret(self.config.openai_api_key)}\n")
        write(f"   • Default Model: {self.config.llm.model or '(auto-detect)'}\n")
        write(f"   • Stream Timeout: {self.config.llm.stream_timeout:g}s\n\n")

        write("📝 Template Settings:\n")
        if self.config.templates.prompts_dir is None:
            write("   • Template Directory: (using default templates)\n\n")
        else:
            write(f"   • Template Directory: {self.config.templates.prompts_dir}\n\n")

        write("🌍 Environment Variables:\n")
        for name in ("JIRA_INSTANCE_URL", "JIRA_USERNAME"):
            write(f"   • {name}: {env.get(name, '')}\n")
        write(f"   • JIRA_API_TOKEN: {mask_secret(env.get('JIRA_API_TOKEN'))}\n")
        write(f"   • JIRA_PROJECT_PREFIX: {env.get('JIRA_PROJECT_PREFIX', '')}\n")
        write(f"   • ANTHROPIC_API_KEY: {mask_secret(env.get('ANTHROPIC_API_KEY'))}\n")
        write(f"   • OPENAI_API_KEY: {mask_secret(env.get('OPENAI_API_KEY'))}\n")
        write(f"   • MCQ_PROMPTS_DIR: {env.get('MCQ_PROMPTS_DIR', '')}\n")

    def config_test(self) -> bool:
        write = self.out.write
        write("🧪 Testing Configuration\n")
        write(f"{'=' * 24}\n\n")

        ok = True
        write("📋 Testing JIRA Configuration...\n")
        problems = self.config.jira.missing()
        if problems:
            ok = False
            self.warn(UserError(ErrorCode.JIRA_CONFIG_MISSING, details=problems))
        else:
            write("✅ JIRA configuration is valid\n")
            write(f"   • URL: {self.config.jira.url}\n")
        write("\n")

        write("🤖 Testing AI Configuration...\n")
        anthropic_key = self.config.anthropic_api_key
        openai_key = self.config.openai_api_key
        if not anthropic_key and not openai_key:
            ok = False
            write("❌ No AI API keys found\n")
            write("   • Set ANTHROPIC_API_KEY for Claude models\n")
            write("   • Set OPENAI_API_KEY for GPT models\n")
        else:
            write("✅ AI configuration is valid\n")
            if anthropic_key:
                write(f"   • Anthropic API Key: {mask_secret(anthropic_key)}\n")
            if openai_key:
                write(f"   • OpenAI API Key: {mask_secret(openai_key)}\n")

        write("\n📝 Testing Templates...\n")
        template_problems = self.renderer.validate()
        if template_problems:
            ok = False
            for problem in template_problems:
                write(f"❌ {problem}\n")
        else:
            write("✅ Templates render correctly\n")

        write("\n🎉 Configuration test completed!\n")
        return ok

    def config_setup(self) -> Optional[Path]:
        """Interactively collect settings and write the non-secret ones to YAML."""
        jira = self.config.jira
        write = self.out.write
        write("🔧 MCQ Configuration Setup\n")
        write("==========================\n\n")
        write("📋 JIRA Configuration\n---------------------\n")
        jira.url = self._ask_setting(
            "JIRA Instance URL", jira.url, "https://yourcompany.atlassian.net"
        )
        jira.username = self._ask_setting("JIRA Username/Email", jira.username, "user@company.com")
        masked = mask_secret(jira.api_token) if jira.api_token else None
        token = self._ask_setting("JIRA API Token", masked, "your_api_token_here")
        if token and not token.startswith("***"):
            jira.api_token = token
        jira.project_prefix = self._ask_setting("JIRA Project Prefix", jira.project_prefix, "PROJ")
        write("\n")

        write("🤖 AI Configuration\n-------------------\n")
        model = self._ask_setting(
            f"Default model ({', '.join(self.registry.keys())})",
            self.config.llm.model,
            "auto-detect",
        )
        if model and self.registry.get(model) is not None:
            self.config.llm.model = model
        write("\n")

        write("📝 Template Configuration\n-------------------------\n")
        if self.prompter.ask_yes_no(
            "Would you like to customize AI prompt templates?", default=False
        ):
            current = self.config.templates.prompts_dir
            directory = self._ask_setting(
                "Template directory path", str(current) if current else None, "./templates"
            )
            if directory:
                self.config.templates.prompts_dir = Path(directory)
                write(f"✅ Template directory set to: {directory}\n")
                if self.prompter.ask_yes_no("Generate example template files?", default=True):
                    try:
                        self.renderer.scaffold(self.cwd / directory)
                    except OSError as exc:
                        write(f"❌ Failed to generate templates: {exc}\n")
                    else:
                        write(f"✅ Example templates generated in: {directory}\n")
        write("\n")

        saved: Optional[Path] = None
        if self.prompter.ask_yes_no("Save this configuration?", default=True):
            saved = save_config(self.config)
            write(f"✅ Configuration saved successfully to {saved}\n")
            if jira.api_token:
                write("💡 Secrets are not written to disk. Export your token:\n")
                write("   export JIRA_API_TOKEN=<your token>\n")
        else:
            write("Configuration not saved.\n")

        if self.prompter.ask_yes_no("Test the configuration now?", default=True):
            write("\n")
            self.config_test()
        return saved

    def _ask_setting(self, label: str, current: Optional[str], placeholder: str) -> Optional[str]:
        shown = current or placeholder
        answer = self.prompter.ask_line(f"{label} [{shown}]: ")
        return answer or current

    def _config_file_label(self) -> str:
        path = self.config.path
        if path is None or not path.exists():
            return "(none, using environment only)"
        return str(path)


def _readme_heading(readme: str) -> str:
    docs_count = readme.count("\n\n###")
    if docs_count > 0:
        return f"📄 README (includes root README + {docs_count} docs files from docs/ folder)"
    if "## Documentation" in readme:
        return "📄 README (includes root README + docs/README.md)"
    return "📄 README:"


__all__ = ["App"]
