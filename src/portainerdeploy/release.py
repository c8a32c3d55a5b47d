"""Release tag and URL prefix derivation."""

from typing import Optional

from portainerdeploy.constants import MAIN_BRANCH, SHORT_SHA_LENGTH
from portainerdeploy.errors import ConfigurationError
from portainerdeploy.errors_catalog import actionable_error


def build_release_tag(branch: Optional[str], commit_sha: Optional[str]) -> str:
    """Return ``<branch>-<first 8 chars of commit>``."""
    if not commit_sha or not commit_sha.strip():
        raise ConfigurationError(actionable_error("missing_commit"))
    if not branch:
        raise ConfigurationError(
            actionable_error(
                "missing_option",
                option="branch",
                flag="--branch",
                envvar="DRONE_BRANCH",
                key="branch",
            )
        )
    return f"{branch}-{commit_sha.strip()[:SHORT_SHA_LENGTH]}"


def build_url_prefix(branch: str) -> str:
    if branch == MAIN_BRANCH:
        return ""
    return f"{branch}."
