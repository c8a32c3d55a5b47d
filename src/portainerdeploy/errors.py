"""Domain errors for portainerdeploy."""


class DeployerError(RuntimeError):
    """Raised when the deployment cannot continue safely."""


class ConfigurationError(DeployerError):
    """A required input is missing or malformed."""


class AuthenticationError(DeployerError):
    """The control plane rejected the credentials."""


class ResourceNotFoundError(DeployerError):
    """An endpoint, registry, swarm or stack could not be resolved."""


class RemoteCallError(DeployerError):
    """A control-plane call failed or returned a non-success status."""


class LocalIOError(DeployerError):
    """A local file could not be read."""
