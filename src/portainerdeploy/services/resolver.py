"""Resolution of endpoint and registry names to Portainer identifiers."""

import base64
import json
import threading
from typing import List, Optional

from portainerdeploy.constants import PUBLIC_REGISTRY_HOST
from portainerdeploy.errors import RemoteCallError, ResourceNotFoundError
from portainerdeploy.errors_catalog import actionable_error
from portainerdeploy.models import Endpoint, Registry


def registry_host(image_name: str) -> str:
    """Return the registry part of an image reference.

    References without a ``/`` (``nginx:latest``) live on the public registry.
    """
    if "/" not in image_name:
        return PUBLIC_REGISTRY_HOST
    return image_name.split("/", 1)[0]


def encode_registry_auth(registry_id: int) -> str:
    payload = json.dumps({"registryId": registry_id}, separators=(",", ":"))
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


class ResourceResolver:
    """Maps endpoint names and registry hosts to control-plane identifiers.

    The registry list is fetched at most once per instance and reused by every
    later lookup, including lookups issued concurrently by image pulls.
    """

    def __init__(self, client, logger, public_registry_host: str = PUBLIC_REGISTRY_HOST):
        self.client = client
        self.logger = logger
        self.public_registry_host = public_registry_host
        self._registries: Optional[List[Registry]] = None
        self._registries_lock = threading.Lock()

    def resolve_endpoint(self, name: str) -> Endpoint:
        self.logger.info("Retrieving endpoints...")
        data = self.client.request("GET", "/endpoints", "Get endpoints")
        if not isinstance(data, list):
            raise RemoteCallError("Get endpoints returned an unexpected payload.")

        try:
            endpoints = [Endpoint(id=item["Id"], name=item.get("Name", "")) for item in data]
        except (AttributeError, KeyError, TypeError) as exc:
            raise RemoteCallError(f"Get endpoints returned a malformed entry: {exc!r}") from exc

        for endpoint in endpoints:
            if endpoint.name == name:
                self.logger.info("Endpoint %s found with ID %s", name, endpoint.id)
                return endpoint

        raise ResourceNotFoundError(actionable_error("endpoint_not_found", name=name))

    def registries(self) -> List[Registry]:
        with self._registries_lock:
            if self._registries is None:
                self.logger.info("Retrieving registries...")
                data = self.client.request("GET", "/registries", "Get registries")
                if not isinstance(data, list):
                    raise RemoteCallError("Get registries returned an unexpected payload.")
                try:
                    self._registries = [
                        Registry(id=item["Id"], url=item.get("URL", "")) for item in data
                    ]
                except (AttributeError, KeyError, TypeError) as exc:
                    raise RemoteCallError(
                        f"Get registries returned a malformed entry: {exc!r}"
                    ) from exc
            return self._registries

    def find_registry(self, host: str) -> Registry:
        for registry in self.registries():
            if registry.url == host:
                return registry
        raise ResourceNotFoundError(actionable_error("registry_not_found", host=host))

    def resolve_registry_auth(self, host: str) -> Optional[str]:
        """Return the ``X-Registry-Auth`` value for ``host``, or None for the public registry."""
        if host == self.public_registry_host:
            return None

        registry = self.find_registry(host)
        self.logger.debug("Registry %s found with ID %s", host, registry.id)
        return encode_registry_auth(registry.id)
