"""
portainerdeploy - Publish images and reconcile Portainer stacks from CI
"""

__version__ = "0.3.0"

from .core import PortainerDeployer
from .errors import DeployerError

__all__ = ["PortainerDeployer", "DeployerError"]
