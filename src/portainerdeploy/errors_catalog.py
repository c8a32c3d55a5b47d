"""Actionable error catalog for portainerdeploy."""

from typing import Dict

_ERROR_MESSAGES: Dict[str, Dict[str, str]] = {
    "missing_option": {
        "what": "Missing required option '{option}'.",
        "next": "Pass `{flag}`, set `{envvar}`, or add `{key}` to the config file.",
    },
    "missing_commit": {
        "what": "Commit identifier is missing, the release tag cannot be computed.",
        "next": "Set `DRONE_COMMIT_SHA` or pass `--commit`.",
    },
    "login_failed": {
        "what": "Login to {url} failed with status {status}.",
        "next": "Check the Portainer username and password configured for this pipeline.",
    },
    "endpoint_not_found": {
        "what": "Endpoint {name} not found.",
        "next": "Check the endpoint name in Portainer under Environments.",
    },
    "registry_not_found": {
        "what": "Registry {host} is not configured in Portainer.",
        "next": "Add the registry in Portainer under Registries or use a public image.",
    },
    "swarm_not_found": {
        "what": "Could not determine the swarm ID of endpoint {endpoint_id}.",
        "next": "Enable standalone mode if the endpoint is not a swarm manager.",
    },
    "compose_file_unreadable": {
        "what": "Could not read compose file {path}: {reason}",
        "next": "Check `--compose-file` (PLUGIN_COMPOSE_FILE) points to a readable file.",
    },
    "invalid_compose_environment": {
        "what": "Invalid compose environment: {reason}",
        "next": "Provide a JSON object of string values, e.g. '{{\"KEY\": \"value\"}}'.",
    },
}


def actionable_error(code: str, **kwargs: str) -> str:
    if code not in _ERROR_MESSAGES:
        raise KeyError(f"Unknown error catalog key: {code}")

    template = _ERROR_MESSAGES[code]
    what = template["what"].format(**kwargs)
    next_step = template["next"].format(**kwargs)
    return f"{what} Suggested action: {next_step}"
