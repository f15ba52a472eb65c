"""Configuration loading for mcq (.mcq.yml plus environment overrides)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .errors import ErrorCode, UserError
from .models import DEFAULT_MAX_COMMITS, DEFAULT_MAX_FILE_SIZE

CONFIG_FILENAME = ".mcq.yml"
DEFAULT_STREAM_TIMEOUT = 300.0
DEFAULT_REQUEST_TIMEOUT = 30.0


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class JiraConfig:
    """Issue tracker connection settings."""

    url: Optional[str] = None
    username: Optional[str] = None
    api_token: Optional[str] = None
    password: Optional[str] = None
    project_prefix: Optional[str] = None

    @property
    def secret(self) -> Optional[str]:
        # An API token takes precedence over a password.
        return self.api_token or self.password

    def missing(self) -> List[str]:
        problems: List[str] = []
        if not self.url:
            problems.append(
                "jira URL not configured. Set JIRA_INSTANCE_URL or jira.url in .mcq.yml"
            )
        if not self.username:
            problems.append(
                "jira username not configured. Set JIRA_USERNAME or jira.username in .mcq.yml"
            )
        if not self.secret:
            problems.append(
                "jira password/token not configured. Set JIRA_PASSWORD or JIRA_API_TOKEN"
            )
        return problems

    def require(self) -> "JiraConfig":
        """Return ``self`` or raise ``JIRA_CONFIG_MISSING`` naming what is absent."""
        problems = self.missing()
        if problems:
            raise UserError(ErrorCode.JIRA_CONFIG_MISSING, details=problems)
        return self

    def normalize_issue_key(self, issue_key: str) -> str:
        """Prefix a bare issue number with the configured project key."""
        issue_key = issue_key.strip()
        if "-" in issue_key or not self.project_prefix:
            return issue_key
        return f"{self.project_prefix}-{issue_key}"


@dataclass
class LLMConfig:
    """Model selection and streaming deadlines."""

    model: Optional[str] = None
    stream_timeout: float = DEFAULT_STREAM_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT


@dataclass
class TemplateConfig:
    prompts_dir: Optional[Path] = None


@dataclass
class ContextDefaults:
    max_commits: int = DEFAULT_MAX_COMMITS
    max_file_size: int = DEFAULT_MAX_FILE_SIZE


@dataclass
class McqConfig:
    """Effective settings for one invocation."""

    path: Optional[Path] = None
    jira: JiraConfig = field(default_factory=JiraConfig)
    llm: LLMConfig = field(default_factory=LLMConfig)
    templates: TemplateConfig = field(default_factory=TemplateConfig)
    context: ContextDefaults = field(default_factory=ContextDefaults)
    environ: Dict[str, str] = field(default_factory=dict)

    @property
    def anthropic_api_key(self) -> Optional[str]:
        return self.environ.get("ANTHROPIC_API_KEY") or None

    @property
    def openai_api_key(self) -> Optional[str]:
        return self.environ.get("OPENAI_API_KEY") or None


def resolve_config_path(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> Path:
    env = os.environ if environ is None else environ
    if path is None and env.get("MCQ_CONFIG"):
        path = Path(env["MCQ_CONFIG"])
    if path is None:
        path = (cwd or Path.cwd()) / CONFIG_FILENAME
    path = path.expanduser()
    if path.is_dir():
        return (path / CONFIG_FILENAME).resolve()
    return path.resolve()


def load_config(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    cwd: Path | None = None,
) -> McqConfig:
    """Load ``.mcq.yml`` (if present) and apply environment overrides."""
    env = dict(os.environ if environ is None else environ)
    config_file = resolve_config_path(path, environ=env, cwd=cwd)

    data: Dict[str, Any] = {}
    if config_file.exists():
        data = _read_config(config_file)

    jira_data = _as_dict(data.get("jira"))
    jira = JiraConfig(
        url=_as_str(jira_data.get("url")),
        username=_as_str(jira_data.get("username")),
        api_token=_as_str(jira_data.get("api_token")),
        password=_as_str(jira_data.get("password")),
        project_prefix=_as_str(jira_data.get("project_prefix")),
    )

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(model=_as_str(llm_data.get("model")))
    stream_timeout = _as_float(llm_data.get("stream_timeout"))
    if stream_timeout:
        llm.stream_timeout = stream_timeout
    request_timeout = _as_float(llm_data.get("request_timeout"))
    if request_timeout:
        llm.request_timeout = request_timeout

    templates_data = _as_dict(data.get("templates"))
    prompts_dir = _as_str(templates_data.get("prompts_dir"))
    templates = TemplateConfig(
        prompts_dir=(config_file.parent / prompts_dir) if prompts_dir else None
    )

    context_data = _as_dict(data.get("context"))
    context = ContextDefaults()
    max_commits = _as_int(context_data.get("max_commits"))
    if max_commits is not None and max_commits > 0:
        context.max_commits = max_commits
    max_file_size = _as_int(context_data.get("max_file_size"))
    if max_file_size is not None and max_file_size > 0:
        context.max_file_size = max_file_size

    config = McqConfig(
        path=config_file,
        jira=jira,
        llm=llm,
        templates=templates,
        context=context,
        environ=env,
    )
    _apply_environment(config, env)
    return config


def save_config(config: McqConfig, path: Path | None = None) -> Path:
    """Persist the non-secret settings of ``config`` as YAML."""
    target = path or config.path or Path.cwd() / CONFIG_FILENAME
    payload: Dict[str, Any] = {}
    jira = {
        key: value
        for key, value in (
            ("url", config.jira.url),
            ("username", config.jira.username),
            ("project_prefix", config.jira.project_prefix),
        )
        if value
    }
    if jira:
        payload["jira"] = jira
    llm: Dict[str, Any] = {}
    if config.llm.model:
        llm["model"] = config.llm.model
    if config.llm.stream_timeout != DEFAULT_STREAM_TIMEOUT:
        llm["stream_timeout"] = config.llm.stream_timeout
    if llm:
        payload["llm"] = llm
    if config.templates.prompts_dir is not None:
        payload["templates"] = {"prompts_dir": str(config.templates.prompts_dir)}
    target.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")
    return target


_ENV_OVERRIDES = (
    ("JIRA_INSTANCE_URL", "jira", "url"),
    ("JIRA_USERNAME", "jira", "username"),
    ("JIRA_API_TOKEN", "jira", "api_token"),
    ("JIRA_PASSWORD", "jira", "password"),
    ("JIRA_PROJECT_PREFIX", "jira", "project_prefix"),
    ("MCQ_MODEL", "llm", "model"),
)


def _apply_environment(config: McqConfig, env: Mapping[str, str]) -> None:
    for variable, section, attribute in _ENV_OVERRIDES:
        value = env.get(variable)
        if value:
            setattr(getattr(config, section), attribute, value)

    prompts_dir = env.get("MCQ_PROMPTS_DIR")
    if prompts_dir:
        config.templates.prompts_dir = Path(prompts_dir).expanduser()

    stream_timeout = _as_float(env.get("MCQ_STREAM_TIMEOUT"))
    if stream_timeout:
        config.llm.stream_timeout = stream_timeout


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and value != "" else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "ContextDefaults",
    "JiraConfig",
    "LLMConfig",
    "McqConfig",
    "TemplateConfig",
    "load_config",
    "resolve_config_path",
    "save_config",
]
