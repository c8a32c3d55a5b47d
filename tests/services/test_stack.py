import json

import pytest

from portainerdeploy.errors import RemoteCallError, ResourceNotFoundError
from portainerdeploy.models import Stack
from portainerdeploy.services.stack import (
    StackService,
    build_compose_environment,
    find_stack,
)


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeClient:
    def __init__(self, responses=None):
        self.responses = responses or {}
        self.calls = []

    def request(self, method, path, stage, **kwargs):
        self.calls.append({"method": method, "path": path, **kwargs})
        return self.responses.get((method, path))


def _service(client):
    return StackService(client=client, logger=DummyLogger(), console=DummyConsole())


ENV = [{"name": "RELEASE_TAG", "value": "dev-12345678"}]


def test_compose_environment_keeps_fixed_entries_first():
    env = build_compose_environment("dev-12345678", "dev.", "web", {"A": "1", "B": "2"})

    assert [item["name"] for item in env] == ["RELEASE_TAG", "URL_PREFIX", "STACK_NAME", "A", "B"]
    assert env[0] == {"name": "RELEASE_TAG", "value": "dev-12345678"}
    assert env[1] == {"name": "URL_PREFIX", "value": "dev."}
    assert env[2] == {"name": "STACK_NAME", "value": "web"}


def test_compose_environment_does_not_deduplicate_names():
    env = build_compose_environment("dev-12345678", "dev.", "web", {"STACK_NAME": "other"})

    assert [item["name"] for item in env].count("STACK_NAME") == 2
    assert env[-1] == {"name": "STACK_NAME", "value": "other"}


def test_find_stack_matches_exact_name():
    stacks = [Stack(id=3, name="web-staging"), Stack(id=7, name="web")]

    assert find_stack(stacks, "web") == Stack(id=7, name="web")
    assert find_stack(stacks, "api") is None


def test_existing_stack_is_updated_in_place():
    client = FakeClient()
    service = _service(client)

    outcome = service.reconcile(
        endpoint_id=2,
        stack_name="web",
        stacks=[Stack(id=7, name="web")],
        compose_content="services: {}\n",
        env=ENV,
        force_pull=True,
    )

    assert outcome.action == "update"
    assert outcome.stack_id == 7
    assert len(client.calls) == 1
    call = client.calls[0]
    assert call["method"] == "PUT"
    assert call["path"] == "/stacks/7"
    assert call["params"] == {"endpointId": 2}
    assert call["json_body"] == {
        "id": 7,
        "StackFileContent": "services: {}\n",
        "Env": ENV,
        "Prune": True,
        "PullImage": True,
    }


def test_missing_stack_is_created_as_compose_stack_in_standalone_mode():
    client = FakeClient({("POST", "/stacks"): {"Id": 12, "Name": "web"}})
    service = _service(client)

    outcome = service.reconcile(
        endpoint_id=2,
        stack_name="web",
        stacks=[Stack(id=3, name="api")],
        compose_content="services: {}\n",
        env=ENV,
    )

    assert outcome.action == "create"
    assert outcome.stack_id == 12
    call = client.calls[0]
    assert call["method"] == "POST"
    assert call["path"] == "/stacks"
    assert call["params"] == {"type": 2, "method": "string", "endpointId": 2}
    assert call["json_body"] == {
        "Name": "web",
        "StackFileContent": "services: {}\n",
        "Env": ENV,
        "Prune": True,
    }


def test_missing_stack_is_created_as_swarm_stack_with_swarm_id():
    client = FakeClient()
    service = _service(client)

    service.reconcile(
        endpoint_id=2,
        stack_name="web",
        stacks=[],
        compose_content="services: {}\n",
        env=ENV,
        swarm_id="swarm-1",
    )

    call = client.calls[0]
    assert call["params"]["type"] == 1
    assert call["json_body"]["SwarmID"] == "swarm-1"
    assert call["json_body"]["Prune"] is True


def test_list_stacks_filters_by_swarm_id():
    client = FakeClient({("GET", "/stacks"): [{"Id": 7, "Name": "web"}]})
    service = _service(client)

    stacks = service.list_stacks("swarm-1")

    assert stacks == [Stack(id=7, name="web")]
    assert json.loads(client.calls[0]["params"]["filters"]) == {"SwarmID": "swarm-1"}


def test_list_stacks_without_swarm_has_no_filter():
    client = FakeClient({("GET", "/stacks"): []})
    service = _service(client)

    assert service.list_stacks() == []
    assert client.calls[0]["params"] is None


def test_resolve_swarm_id_reads_id_field():
    client = FakeClient({("GET", "/endpoints/2/docker/swarm"): {"ID": "swarm-1"}})

    assert _service(client).resolve_swarm_id(2) == "swarm-1"


def test_resolve_swarm_id_fails_without_id():
    client = FakeClient({("GET", "/endpoints/2/docker/swarm"): {"message": "not a swarm"}})

    with pytest.raises(ResourceNotFoundError, match="swarm ID of endpoint 2"):
        _service(client).resolve_swarm_id(2)


def test_malformed_stack_entry_is_a_remote_call_error():
    client = FakeClient({("GET", "/stacks"): [{"Name": "web"}]})

    with pytest.raises(RemoteCallError, match="Get stacks returned a malformed entry"):
        _service(client).list_stacks()
