import os
import re
import yaml
from pathlib import Path
from typing import Any, Dict

from clickward.core.errors import ConfigLoadError

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]+))?\}")

CONFIG_FILENAME = "clickward.yaml"
ALLOWED_SECTIONS = {"clickward", "ports", "node_logging"}


def interpolate_env_vars(content: str) -> str:
    """Replace ${VAR} or ${VAR:default} with environment variables."""
    def replace_match(match: re.Match) -> str:
        var_name = match.group(1)
        default_value = match.group(2) if match.group(2) is not None else ""
        return os.environ.get(var_name, default_value)

    return ENV_VAR_PATTERN.sub(replace_match, content)


def load_config(path: Path) -> Dict[str, Any]:
    """
    Load clickward.yaml with environment variable interpolation.

    Only the clickward, ports and node_logging sections are kept. A missing
    file means defaults; a malformed one raises ConfigLoadError.
    """
    if not path.exists():
        return {}

    try:
        content = path.read_text()
        interpolated_content = interpolate_env_vars(content)
        full_config = yaml.safe_load(interpolated_content) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigLoadError(str(path), str(exc)) from exc

    if not isinstance(full_config, dict):
        raise ConfigLoadError(str(path), "top level must be a mapping")

    return {k: v for k, v in full_config.items() if k in ALLOWED_SECTIONS}


def resolve_config_path(root: Path) -> Path:
    """Prefer clickward.yaml under the root, then the working directory."""
    config_path = root / CONFIG_FILENAME
    if not config_path.exists():
        config_path = Path.cwd() / CONFIG_FILENAME
    return config_path
