"""Configuration loader for portainerdeploy."""

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from portainerdeploy.errors import ConfigurationError
from portainerdeploy.errors_catalog import actionable_error


class ConfigLoader:
    """Loads YAML configuration files for CLI defaults."""

    SUPPORTED_KEYS = {
        "branch",
        "commit",
        "portainer_url",
        "username",
        "password",
        "images",
        "stack_name",
        "endpoint",
        "compose_environment",
        "compose_file",
        "standalone",
        "force_pull",
        "verbose",
        "log_file",
        "dry_run",
        "report_file",
        "request_timeout",
    }

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigurationError(f"Config file not found: {config_path}")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigurationError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigurationError("Config file must contain a YAML mapping at the root.")

        unknown = sorted(set(parsed.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigurationError(f"Unknown configuration keys: {unknown_list}")

        images = parsed.get("images")
        if isinstance(images, list):
            parsed["images"] = ",".join(str(image) for image in images)

        return parsed


def parse_compose_environment(raw: Union[str, Mapping[str, Any], None]) -> Dict[str, str]:
    """Parse the extra compose environment from a JSON object string or a mapping.

    Key order is preserved. Numbers and booleans are rendered as JSON text.
    """
    if raw is None or raw == "":
        return {}

    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(
                actionable_error("invalid_compose_environment", reason=str(exc))
            ) from exc
    else:
        parsed = raw

    if not isinstance(parsed, Mapping):
        raise ConfigurationError(
            actionable_error("invalid_compose_environment", reason="expected a JSON object")
        )

    env: Dict[str, str] = {}
    for name, value in parsed.items():
        if isinstance(value, str):
            env[str(name)] = value
        elif value is None or isinstance(value, (bool, int, float)):
            env[str(name)] = json.dumps(value)
        else:
            raise ConfigurationError(
                actionable_error(
                    "invalid_compose_environment",
                    reason=f"value of {name} must be a string",
                )
            )
    return env
