"""Shared constants for portainerdeploy."""

DEFAULT_COMPOSE_FILE = "docker-compose.yml"
DEFAULT_CONFIG_FILE = ".portainerdeploy.yml"
DEFAULT_REQUEST_TIMEOUT = 60.0

PUBLIC_REGISTRY_HOST = "docker.io"
MAIN_BRANCH = "main"
SHORT_SHA_LENGTH = 8

SUCCESS_STATUS_CODES = (200, 201)

# Portainer stack types
STACK_TYPE_SWARM = 1
STACK_TYPE_COMPOSE = 2

REGISTRY_AUTH_HEADER = "X-Registry-Auth"
