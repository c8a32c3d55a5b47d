import pytest

from portainerdeploy.errors import RemoteCallError
from portainerdeploy.services.api_client import PortainerClient


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def error(self, *_args, **_kwargs):
        return None


class FakeResponse:
    def __init__(self, status_code, payload=None, text=None):
        self.status_code = status_code
        self.payload = payload
        self.text = text if text is not None else ("" if payload is None else str(payload))

    def json(self):
        if self.payload is None:
            raise ValueError("no json")
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.calls = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class FakeRequestsModule:
    class RequestException(Exception):
        pass

    def __init__(self, session):
        self.session = session

    def Session(self):
        return self.session


def _client(session, base_url="https://portainer.example.com"):
    return PortainerClient(
        base_url=base_url,
        logger=DummyLogger(),
        timeout=5,
        requests_module=FakeRequestsModule(session),
    )


def test_request_returns_decoded_json_for_success():
    session = FakeSession(response=FakeResponse(200, [{"Id": 1, "Name": "local"}]))
    client = _client(session, base_url="https://portainer.example.com/")

    data = client.request("GET", "/endpoints", "Get endpoints")

    assert data == [{"Id": 1, "Name": "local"}]
    method, url, kwargs = session.calls[0]
    assert method == "GET"
    assert url == "https://portainer.example.com/api/endpoints"
    assert kwargs["timeout"] == 5


def test_request_returns_none_for_empty_success_body():
    client = _client(FakeSession(response=FakeResponse(201)))

    assert client.request("POST", "/stacks", "Create stack") is None


def test_server_error_is_reported_with_body():
    session = FakeSession(response=FakeResponse(502, text="bad gateway"))
    client = _client(session)

    with pytest.raises(RemoteCallError, match="Get stacks failed with status 502: bad gateway"):
        client.request("GET", "/stacks", "Get stacks")


def test_unexpected_non_success_status_is_a_failure():
    client = _client(FakeSession(response=FakeResponse(204)))

    with pytest.raises(RemoteCallError, match="status 204"):
        client.request("GET", "/stacks", "Get stacks")


def test_transport_error_is_wrapped():
    session = FakeSession(error=FakeRequestsModule.RequestException("connection refused"))
    client = _client(session)

    with pytest.raises(RemoteCallError, match="connection refused"):
        client.request("GET", "/endpoints", "Get endpoints")


def test_bearer_token_is_attached_to_session():
    session = FakeSession(response=FakeResponse(200, {}))
    client = _client(session)

    client.set_bearer_token("abc.def")

    assert session.headers["Authorization"] == "Bearer abc.def"
