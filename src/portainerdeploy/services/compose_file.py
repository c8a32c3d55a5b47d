"""Compose file loading."""

from pathlib import Path

from portainerdeploy.errors import LocalIOError
from portainerdeploy.errors_catalog import actionable_error


class ComposeFileService:
    def __init__(self, logger):
        self.logger = logger

    def read(self, path: str) -> str:
        self.logger.info("Reading compose file %s", path)
        try:
            return Path(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LocalIOError(
                actionable_error("compose_file_unreadable", path=path, reason=str(exc))
            ) from exc
