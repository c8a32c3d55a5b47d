import pytest

from portainerdeploy.errors import LocalIOError
from portainerdeploy.services.compose_file import ComposeFileService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None


def test_read_returns_file_contents(tmp_path):
    compose = tmp_path / "docker-compose.yml"
    compose.write_text("services:\n  web:\n    image: nginx\n", encoding="utf-8")

    content = ComposeFileService(logger=DummyLogger()).read(str(compose))

    assert content == "services:\n  web:\n    image: nginx\n"


def test_read_fails_for_missing_file(tmp_path):
    with pytest.raises(LocalIOError, match="Could not read compose file"):
        ComposeFileService(logger=DummyLogger()).read(str(tmp_path / "missing.yml"))
