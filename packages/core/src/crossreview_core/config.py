import copy
import os
from pathlib import Path
from typing import Optional

import yaml

from crossreview_core.errors import ConfigurationError
from crossreview_core.models import CommentLanguage

DEFAULT_MAX_DIFF_BYTES = 120_000
DEFAULT_SYSTEM_PROMPT = (
    "You are a strict senior code reviewer. Output Markdown with sections: Critical, Major, Minor, Suggestions."
)

DEFAULT_CONFIG: dict = {
    "defaults": {
        "max_diff_bytes": DEFAULT_MAX_DIFF_BYTES,
        "system_prompt": None,  # None = use DEFAULT_SYSTEM_PROMPT
        "review_guide_path": None,  # markdown file appended to the system prompt
        "comment_language": "ko",
    },
    "hosts": {},  # hostname -> {token, token_env, token_command, api_base}
    "providers": {},  # openai / anthropic / gemini -> {enabled, command, args, use_stdin, model, api_key, ...}
}

PROJECT_CONFIG_PATH = ".crossreview.yml"
CONFIG_ENV_VAR = "CROSSREVIEW_CONFIG"


def user_config_path() -> Path:
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "crossreview" / "config.yml"


def load_config(
    config_path: Optional[str] = None,
    cli_overrides: Optional[dict] = None,
    user_path: Optional[Path] = None,
) -> dict:
    """
    Load configuration by merging (in order of precedence, lowest first):
      1. Built-in defaults
      2. The user config file (~/.config/crossreview/config.yml)
      3. The project config file (.crossreview.yml, or config_path / $CROSSREVIEW_CONFIG)
      4. CLI overrides for the ``defaults`` section

    Nested mappings are merged key by key so a project file can override a
    single provider setting without restating the whole section.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    _merge_file(config, user_path if user_path is not None else user_config_path())

    explicit = config_path or os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        path = Path(explicit)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {explicit}")
        _merge_file(config, path)
    else:
        _merge_file(config, Path(PROJECT_CONFIG_PATH))

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config["defaults"][key] = value

    return config


def _merge_file(config: dict, path: Path) -> None:
    if not path.exists():
        return
    try:
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}")
    if not isinstance(file_config, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping at the top level.")
    deep_merge(config, file_config)


def deep_merge(base: dict, incoming: dict) -> dict:
    """Recursively merge incoming into base in place; later values win."""
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def max_diff_bytes(config: dict) -> int:
    return config.get("defaults", {}).get("max_diff_bytes") or DEFAULT_MAX_DIFF_BYTES


def comment_language(config: dict) -> CommentLanguage:
    return CommentLanguage.from_config(config.get("defaults", {}).get("comment_language"))


def host_config(config: dict, host: str) -> dict | None:
    return config.get("hosts", {}).get(host)


def provider_config(config: dict, provider_id: str) -> dict | None:
    """Return the provider section, or None when it is absent or disabled."""
    section = config.get("providers", {}).get(provider_id)
    if section is None:
        return None
    if section.get("enabled", True) is False:
        return None
    return section


def resolve_api_key(provider_cfg: dict) -> str | None:
    """Inline ``api_key`` first, then the variable named by ``api_key_env``."""
    key = (provider_cfg.get("api_key") or "").strip()
    if key:
        return key
    env_name = (provider_cfg.get("api_key_env") or "").strip()
    if env_name:
        value = os.environ.get(env_name, "").strip()
        if value:
            return value
    return None


def resolve_configured_token(host_cfg: dict | None) -> tuple[str | None, str | None]:
    """Resolve a host token from the inline ``token`` or ``token_env`` settings only.

    Returns ``(token, source)``. When ``token_env`` names an unset variable the
    token is None and source is ``env:NAME (missing)``.
    """
    if not host_cfg:
        return None, None
    token = (host_cfg.get("token") or "").strip()
    if token:
        return token, "inline"
    env_name = (host_cfg.get("token_env") or "").strip()
    if env_name:
        value = os.environ.get(env_name, "").strip()
        if value:
            return value, f"env:{env_name}"
        return None, f"env:{env_name} (missing)"
    return None, None


def load_system_prompt(config: dict) -> str:
    """
    Build the system prompt sent with every primary review.

    Uses ``defaults.system_prompt`` (or the built-in default) and, when
    ``defaults.review_guide_path`` is set, appends the guide's contents.
    """
    defaults = config.get("defaults", {})
    prompt = defaults.get("system_prompt") or DEFAULT_SYSTEM_PROMPT

    guide_path = defaults.get("review_guide_path")
    if not guide_path:
        return prompt

    p = Path(guide_path)
    if not p.exists():
        raise ConfigurationError(f"Review guide file not found: {guide_path}")
    guide = p.read_text().strip()
    if not guide:
        return prompt
    return f"{prompt}\n\nReview guide (must follow):\n{guide}"
