"""Stack create-or-update reconciliation."""

import json
from typing import Any, Dict, List, Mapping, Optional

from portainerdeploy.constants import STACK_TYPE_COMPOSE, STACK_TYPE_SWARM
from portainerdeploy.errors import RemoteCallError, ResourceNotFoundError
from portainerdeploy.errors_catalog import actionable_error
from portainerdeploy.models import Stack, StackAction


def build_compose_environment(
    release_tag: str,
    url_prefix: str,
    stack_name: str,
    extra: Optional[Mapping[str, str]] = None,
) -> List[Dict[str, str]]:
    """Build the stack ``Env`` list: the three fixed entries, then ``extra`` in order.

    Names are not de-duplicated.
    """
    env = [
        {"name": "RELEASE_TAG", "value": release_tag},
        {"name": "URL_PREFIX", "value": url_prefix},
        {"name": "STACK_NAME", "value": stack_name},
    ]
    for name, value in (extra or {}).items():
        env.append({"name": name, "value": value})
    return env


def find_stack(stacks: List[Stack], name: str) -> Optional[Stack]:
    for stack in stacks:
        if stack.name == name:
            return stack
    return None


class StackService:
    """Decides between creating and updating the target stack and issues the call."""

    def __init__(self, client, logger, console):
        self.client = client
        self.logger = logger
        self.console = console

    def resolve_swarm_id(self, endpoint_id: int) -> str:
        self.logger.info("Retrieving swarm ID of endpoint %s...", endpoint_id)
        data = self.client.request("GET", f"/endpoints/{endpoint_id}/docker/swarm", "Get swarm ID")
        swarm_id = data.get("ID") if isinstance(data, dict) else None
        if not swarm_id:
            raise ResourceNotFoundError(
                actionable_error("swarm_not_found", endpoint_id=str(endpoint_id))
            )
        self.logger.info("Swarm ID: %s", swarm_id)
        return swarm_id

    def list_stacks(self, swarm_id: Optional[str] = None) -> List[Stack]:
        params = None
        if swarm_id:
            params = {"filters": json.dumps({"SwarmID": swarm_id}, separators=(",", ":"))}

        self.logger.info("Retrieving stacks list...")
        data = self.client.request("GET", "/stacks", "Get stacks", params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise RemoteCallError("Get stacks returned an unexpected payload.")
        try:
            return [Stack(id=item["Id"], name=item.get("Name", "")) for item in data]
        except (AttributeError, KeyError, TypeError) as exc:
            raise RemoteCallError(f"Get stacks returned a malformed entry: {exc!r}") from exc

    def create_stack(
        self,
        endpoint_id: int,
        stack_name: str,
        compose_content: str,
        env: List[Dict[str, str]],
        swarm_id: Optional[str] = None,
    ) -> StackAction:
        stack_type = STACK_TYPE_SWARM if swarm_id else STACK_TYPE_COMPOSE
        body: Dict[str, Any] = {
            "Name": stack_name,
            "StackFileContent": compose_content,
            "Env": env,
            "Prune": True,
        }
        if swarm_id:
            body["SwarmID"] = swarm_id

        self.console.print(f"[blue]Creating stack {stack_name}...[/blue]")
        data = self.client.request(
            "POST",
            "/stacks",
            f"Create stack {stack_name}",
            params={"type": stack_type, "method": "string", "endpointId": endpoint_id},
            json_body=body,
        )
        stack_id = data.get("Id") if isinstance(data, dict) else None
        return StackAction(action="create", stack_name=stack_name, stack_id=stack_id)

    def update_stack(
        self,
        endpoint_id: int,
        stack: Stack,
        compose_content: str,
        env: List[Dict[str, str]],
        pull_image: bool = False,
    ) -> StackAction:
        self.console.print(f"[blue]Updating stack {stack.name} (ID:{stack.id})...[/blue]")
        self.client.request(
            "PUT",
            f"/stacks/{stack.id}",
            f"Update stack {stack.name}",
            params={"endpointId": endpoint_id},
            json_body={
                "id": stack.id,
                "StackFileContent": compose_content,
                "Env": env,
                "Prune": True,
                "PullImage": bool(pull_image),
            },
        )
        return StackAction(action="update", stack_name=stack.name, stack_id=stack.id)

    def reconcile(
        self,
        endpoint_id: int,
        stack_name: str,
        stacks: List[Stack],
        compose_content: str,
        env: List[Dict[str, str]],
        swarm_id: Optional[str] = None,
        force_pull: bool = False,
    ) -> StackAction:
        existing = find_stack(stacks, stack_name)
        if existing is None:
            return self.create_stack(endpoint_id, stack_name, compose_content, env, swarm_id=swarm_id)
        return self.update_stack(endpoint_id, existing, compose_content, env, pull_image=force_pull)
