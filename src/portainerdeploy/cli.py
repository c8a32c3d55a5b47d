import logging
import os

import click
from rich.logging import RichHandler

from .constants import DEFAULT_CONFIG_FILE, DEFAULT_REQUEST_TIMEOUT
from .core import PortainerDeployer
from .errors import DeployerError
from .services.config_loader import ConfigLoader


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None and cli_value != "":
        return cli_value
    if key in config:
        return config[key]
    return default


def _resolve_flag(cli_value, config, key):
    value = _resolve_option(cli_value, config, key, default=False)
    if isinstance(value, bool):
        return value
    try:
        return click.BOOL.convert(value, None, None)
    except click.BadParameter as exc:
        raise click.ClickException(f"Invalid boolean value for '{key}': {value!r}") from exc


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(rich_tracebacks=True, show_level=False, show_path=False)],
)


@click.command()
@click.option("--branch", envvar="DRONE_BRANCH", help="Branch being deployed.")
@click.option("--commit", envvar="DRONE_COMMIT_SHA", help="Commit SHA being deployed.")
@click.option("--portainer-url", envvar="PLUGIN_PORTAINER_URL", help="Portainer base URL.")
@click.option("--username", envvar="PLUGIN_PORTAINER_USERNAME", help="Portainer username.")
@click.option("--password", envvar="PLUGIN_PORTAINER_PASSWORD", help="Portainer password.")
@click.option(
    "--images",
    envvar="PLUGIN_IMAGES",
    help="Comma-separated list of images to pull before updating the stack.",
)
@click.option("--stack-name", envvar="PLUGIN_STACK_NAME", help="Name of the stack to create or update.")
@click.option("--endpoint", envvar="PLUGIN_ENDPOINT", help="Name of the Portainer endpoint.")
@click.option(
    "--compose-environment",
    envvar="PLUGIN_COMPOSE_ENVIRONMENT",
    help="JSON object of additional stack environment variables.",
)
@click.option(
    "--compose-file",
    envvar="PLUGIN_COMPOSE_FILE",
    type=click.Path(),
    help="Path to the compose file (default: docker-compose.yml).",
)
@click.option(
    "--standalone",
    envvar="PLUGIN_STANDALONE",
    type=click.BOOL,
    default=None,
    help="Deploy to a standalone Docker endpoint instead of a swarm.",
)
@click.option(
    "--force-pull",
    envvar="PLUGIN_FORCE_PULL",
    type=click.BOOL,
    default=None,
    help="Ask Portainer to re-pull images when updating the stack.",
)
@click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .portainerdeploy.yml if present.",
)
@click.option(
    "--verbose",
    envvar="PLUGIN_VERBOSE",
    type=click.BOOL,
    default=None,
    help="Enable verbose logging",
)
@click.option("--log-file", envvar="PLUGIN_LOG_FILE", type=click.Path(), help="Path to log file")
@click.option(
    "--dry-run",
    envvar="PLUGIN_DRY_RUN",
    type=click.BOOL,
    default=None,
    help="Resolve everything and print the plan without pulling images or changing the stack.",
)
@click.option(
    "--report-file",
    envvar="PLUGIN_REPORT_FILE",
    type=click.Path(),
    help="Write a JSON run report to this path.",
)
@click.option(
    "--request-timeout",
    envvar="PLUGIN_REQUEST_TIMEOUT",
    type=float,
    default=None,
    help="Timeout in seconds for each Portainer API call.",
)
def main(
    branch,
    commit,
    portainer_url,
    username,
    password,
    images,
    stack_name,
    endpoint,
    compose_environment,
    compose_file,
    standalone,
    force_pull,
    config,
    verbose,
    log_file,
    dry_run,
    report_file,
    request_timeout,
):
    """Pull images and create or update a Portainer stack."""
    logger = logging.getLogger("portainerdeploy")

    try:
        config_loader = ConfigLoader()
        resolved_config = config
        if resolved_config is None:
            default_config_path = os.path.join(os.getcwd(), DEFAULT_CONFIG_FILE)
            if os.path.exists(default_config_path):
                resolved_config = default_config_path

        config_values = config_loader.load(resolved_config)
    except DeployerError as exc:
        raise click.ClickException(str(exc)) from exc

    branch = _resolve_option(branch, config_values, "branch")
    commit = _resolve_option(commit, config_values, "commit")
    portainer_url = _resolve_option(portainer_url, config_values, "portainer_url")
    username = _resolve_option(username, config_values, "username")
    password = _resolve_option(password, config_values, "password")
    images = _resolve_option(images, config_values, "images")
    stack_name = _resolve_option(stack_name, config_values, "stack_name")
    endpoint = _resolve_option(endpoint, config_values, "endpoint")
    compose_environment = _resolve_option(compose_environment, config_values, "compose_environment")
    compose_file = _resolve_option(compose_file, config_values, "compose_file")
    standalone = _resolve_flag(standalone, config_values, "standalone")
    force_pull = _resolve_flag(force_pull, config_values, "force_pull")
    verbose = _resolve_flag(verbose, config_values, "verbose")
    log_file = _resolve_option(log_file, config_values, "log_file")
    dry_run = _resolve_flag(dry_run, config_values, "dry_run")
    report_file = _resolve_option(report_file, config_values, "report_file")
    request_timeout = float(
        _resolve_option(
            request_timeout,
            config_values,
            "request_timeout",
            default=DEFAULT_REQUEST_TIMEOUT,
        )
    )

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)

    try:
        deployer = PortainerDeployer(
            portainer_url=portainer_url,
            username=username,
            password=password,
            stack_name=stack_name,
            endpoint=endpoint,
            branch=branch,
            commit=commit,
            images=images,
            compose_environment=compose_environment,
            compose_file=compose_file,
            standalone=standalone,
            force_pull=force_pull,
            dry_run=dry_run,
            report_file=report_file,
            request_timeout=request_timeout,
        )
    except DeployerError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(deployer.run())


if __name__ == "__main__":
    main()
