"""HTTP client for the Portainer API."""

from typing import Any, Dict, Optional

import requests

from portainerdeploy.constants import DEFAULT_REQUEST_TIMEOUT, SUCCESS_STATUS_CODES
from portainerdeploy.errors import RemoteCallError


class PortainerClient:
    """Thin wrapper around a ``requests`` session bound to ``<base_url>/api``.

    Every response, including 5xx ones, is handed back as a regular response
    so the body can be logged before the run aborts. Only statuses in
    ``SUCCESS_STATUS_CODES`` count as success.
    """

    def __init__(
        self,
        base_url: str,
        logger,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        requests_module=requests,
    ):
        self.base_url = f"{base_url.rstrip('/')}/api"
        self.logger = logger
        self.timeout = timeout
        self.requests = requests_module
        self.session = requests_module.Session()

    def set_bearer_token(self, token: str):
        self.session.headers["Authorization"] = f"Bearer {token}"

    def request(
        self,
        method: str,
        path: str,
        stage: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        response = self.send(method, path, stage, params=params, json_body=json_body, headers=headers)
        if response.status_code not in SUCCESS_STATUS_CODES:
            body = self._body_text(response)
            self.logger.error("%s failed with status %s: %s", stage, response.status_code, body)
            raise RemoteCallError(f"{stage} failed with status {response.status_code}: {body}")
        return self.decode(response)

    def send(
        self,
        method: str,
        path: str,
        stage: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        """Issue a request without judging the status code."""
        url = f"{self.base_url}{path}"
        self.logger.debug("%s %s params=%s", method, url, params)

        try:
            response = self.session.request(
                method,
                url,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except self.requests.RequestException as exc:
            raise RemoteCallError(f"{stage} failed: {exc}") from exc

        self.logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def decode(response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _body_text(response) -> str:
        text = getattr(response, "text", "") or ""
        return text.strip() or "<empty body>"
