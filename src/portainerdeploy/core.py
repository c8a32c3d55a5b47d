import logging
import uuid
from typing import Any, Dict, List, Mapping, Optional, Union

import requests
from rich.console import Console

from .constants import DEFAULT_COMPOSE_FILE, DEFAULT_REQUEST_TIMEOUT
from .errors import ConfigurationError, DeployerError
from .errors_catalog import actionable_error
from .models import Endpoint, Stack, StackAction
from .release import build_release_tag, build_url_prefix
from .services.api_client import PortainerClient
from .services.compose_file import ComposeFileService
from .services.config_loader import parse_compose_environment
from .services.image_pull import ImagePullService, parse_image_list
from .services.report import ReportService
from .services.resolver import ResourceResolver, registry_host
from .services.session import SessionService
from .services.stack import StackService, build_compose_environment, find_stack

console = Console()
logger = logging.getLogger("portainerdeploy")

REQUIRED_SETTINGS = (
    ("portainer_url", "portainer_url", "--portainer-url", "PLUGIN_PORTAINER_URL"),
    ("username", "username", "--username", "PLUGIN_PORTAINER_USERNAME"),
    ("password", "password", "--password", "PLUGIN_PORTAINER_PASSWORD"),
    ("stack_name", "stack_name", "--stack-name", "PLUGIN_STACK_NAME"),
    ("endpoint", "endpoint_name", "--endpoint", "PLUGIN_ENDPOINT"),
)


class PortainerDeployer:
    """Publishes images and reconciles one stack on a Portainer instance.

    One instance covers exactly one run: it owns the API session, the bearer
    token and the registry cache shared by the concurrent image pulls.
    """

    def __init__(
        self,
        portainer_url: str,
        username: str,
        password: str,
        stack_name: str,
        endpoint: str,
        branch: Optional[str] = None,
        commit: Optional[str] = None,
        images: Optional[str] = None,
        compose_environment: Union[str, Mapping[str, Any], None] = None,
        compose_file: Optional[str] = None,
        standalone: bool = False,
        force_pull: bool = False,
        dry_run: bool = False,
        report_file: Optional[str] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        requests_module=requests,
    ):
        self.portainer_url = portainer_url
        self.username = username
        self.password = password
        self.stack_name = stack_name
        self.endpoint_name = endpoint
        self.branch = branch
        self.commit = commit
        self.images: List[str] = parse_image_list(images)
        self.compose_environment: Dict[str, str] = parse_compose_environment(compose_environment)
        self.compose_file = compose_file or DEFAULT_COMPOSE_FILE
        self.standalone = standalone
        self.force_pull = force_pull
        self.dry_run = dry_run
        self.run_id = uuid.uuid4().hex[:10]
        self.current_step_name: Optional[str] = None

        self._validate_required()

        self.client = PortainerClient(
            base_url=portainer_url,
            logger=logger,
            timeout=request_timeout,
            requests_module=requests_module,
        )
        self.session_service = SessionService(client=self.client, logger=logger, console=console)
        self.resolver = ResourceResolver(client=self.client, logger=logger)
        self.image_pull_service = ImagePullService(
            client=self.client,
            resolver=self.resolver,
            logger=logger,
            console=console,
        )
        self.stack_service = StackService(client=self.client, logger=logger, console=console)
        self.compose_file_service = ComposeFileService(logger=logger)
        self.report_service = ReportService(report_file=report_file, logger=logger)

    def _validate_required(self):
        for key, attribute, flag, envvar in REQUIRED_SETTINGS:
            if not getattr(self, attribute):
                raise ConfigurationError(
                    actionable_error(
                        "missing_option",
                        option=key,
                        flag=flag,
                        envvar=envvar,
                        key=key,
                    )
                )

    def _build_report_metadata(self) -> Dict[str, Any]:
        return {
            "portainer_url": self.portainer_url,
            "username": self.username,
            "stack_name": self.stack_name,
            "endpoint": self.endpoint_name,
            "branch": self.branch,
            "commit": self.commit,
            "images": self.images,
            "compose_file": self.compose_file,
            "standalone": self.standalone,
            "force_pull": self.force_pull,
            "dry_run": self.dry_run,
        }

    def log_parameters(self):
        logger.info("Running portainerdeploy with the following params:")
        logger.info("  Portainer URL: %s", self.portainer_url)
        logger.info("  Portainer Username: %s", self.username)
        logger.info("  Images: %s", ", ".join(self.images) or "<none>")
        logger.info("  Stack Name: %s", self.stack_name)
        logger.info("  Endpoint Name: %s", self.endpoint_name)
        logger.info("  Compose Environment: %s", self.compose_environment)
        logger.info("  Docker Compose File: %s", self.compose_file)
        logger.info("  Standalone Mode: %s", self.standalone)
        logger.info("  Force Pull: %s", self.force_pull)
        if self.dry_run:
            logger.info("  Dry Run: enabled")

    def _run_step(self, name: str, callback, *args, **kwargs):
        self.report_service.step_started(name)
        self.current_step_name = name

        try:
            result = callback(*args, **kwargs)
        except Exception as exc:
            self.report_service.step_finished(name, "failed", error=str(exc))
            raise

        self.report_service.step_finished(name, "success")
        self.current_step_name = None
        return result

    def authenticate(self) -> str:
        return self.session_service.authenticate(self.username, self.password)

    def resolve_endpoint(self) -> Endpoint:
        return self.resolver.resolve_endpoint(self.endpoint_name)

    def pull_images(self, endpoint: Endpoint, release_tag: str) -> List[str]:
        return self.image_pull_service.pull_all(endpoint.id, self.images, release_tag)

    def check_registries(self):
        """Resolve every image's registry credential without pulling anything."""
        for image_name in self.images:
            self.resolver.resolve_registry_auth(registry_host(image_name))

    def build_environment(self, release_tag: str) -> List[Dict[str, str]]:
        return build_compose_environment(
            release_tag=release_tag,
            url_prefix=build_url_prefix(self.branch),
            stack_name=self.stack_name,
            extra=self.compose_environment,
        )

    def plan_stack(self, stacks: List[Stack]) -> StackAction:
        existing = find_stack(stacks, self.stack_name)
        if existing is None:
            return StackAction(action="create", stack_name=self.stack_name, dry_run=True)
        return StackAction(
            action="update",
            stack_name=existing.name,
            stack_id=existing.id,
            dry_run=True,
        )

    def deploy(self) -> StackAction:
        release_tag = build_release_tag(self.branch, self.commit)
        logger.info("Release tag: %s", release_tag)

        self._run_step("authenticate", self.authenticate)
        endpoint = self._run_step("resolve_endpoint", self.resolve_endpoint)

        if self.dry_run:
            self._run_step("check_registries", self.check_registries)
        elif self.images:
            pulled = self._run_step("pull_images", self.pull_images, endpoint, release_tag)
            self.report_service.set_images(pulled)

        logger.info("Standalone mode enabled: %s", self.standalone)
        swarm_id: Optional[str] = None
        if not self.standalone:
            swarm_id = self._run_step("resolve_swarm_id", self.stack_service.resolve_swarm_id, endpoint.id)

        stacks = self._run_step("list_stacks", self.stack_service.list_stacks, swarm_id)
        compose_content = self._run_step(
            "read_compose_file",
            self.compose_file_service.read,
            self.compose_file,
        )
        env = self.build_environment(release_tag)

        if self.dry_run:
            outcome = self.plan_stack(stacks)
            target = outcome.stack_name
            if outcome.stack_id is not None:
                target = f"{target} (ID:{outcome.stack_id})"
            console.print(
                f"[yellow]Dry run: would {outcome.action} stack {target} "
                f"with {len(env)} environment variable(s).[/yellow]"
            )
            for image_name in self.images:
                console.print(f"[yellow]Dry run: would pull {image_name}:{release_tag}[/yellow]")
        else:
            outcome = self._run_step(
                "reconcile_stack",
                self.stack_service.reconcile,
                endpoint.id,
                self.stack_name,
                stacks,
                compose_content,
                env,
                swarm_id=swarm_id,
                force_pull=self.force_pull,
            )

        self.report_service.set_stack(
            outcome.action,
            outcome.stack_name,
            outcome.stack_id,
            outcome.dry_run,
        )
        return outcome

    def run(self) -> int:
        exit_code = 1
        report_status = "failed"
        report_error: Optional[str] = None

        try:
            self.log_parameters()
            self.report_service.start_run(self.run_id, self._build_report_metadata())
            self.deploy()
            logger.info("Done.")
            report_status = "success"
            exit_code = 0
            return exit_code
        except DeployerError as exc:
            stage = self.current_step_name or "setup"
            console.print(f"[bold red]Error during {stage}:[/bold red] {exc}")
            logger.error("%s failed: %s", stage, exc)
            report_error = str(exc)
            return exit_code
        except Exception as exc:
            console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            report_error = str(exc)
            return exit_code
        finally:
            self.report_service.finalize(report_status, error=report_error)
