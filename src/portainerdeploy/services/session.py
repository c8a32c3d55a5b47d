"""Authentication against the Portainer API."""

from portainerdeploy.constants import SUCCESS_STATUS_CODES
from portainerdeploy.errors import AuthenticationError
from portainerdeploy.errors_catalog import actionable_error


class SessionService:
    """Obtains the bearer token used for the rest of the run."""

    def __init__(self, client, logger, console):
        self.client = client
        self.logger = logger
        self.console = console

    def authenticate(self, username: str, password: str) -> str:
        self.logger.info("Trying to authenticate as %s...", username)
        response = self.client.send(
            "POST",
            "/auth",
            "Login",
            json_body={"Username": username, "Password": password},
        )

        if response.status_code not in SUCCESS_STATUS_CODES:
            self.logger.error("Login response: %s", getattr(response, "text", ""))
            raise AuthenticationError(
                actionable_error(
                    "login_failed",
                    url=self.client.base_url,
                    status=str(response.status_code),
                )
            )

        data = self.client.decode(response)
        token = data.get("jwt") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationError("Login succeeded but the response carried no jwt token.")

        self.client.set_bearer_token(token)
        self.console.print("[green]Authenticated.[/green]")
        return token
