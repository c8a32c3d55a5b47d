import pytest

from portainerdeploy.errors import ConfigurationError
from portainerdeploy.services.config_loader import ConfigLoader, parse_compose_environment


def test_config_loader_loads_yaml_mapping(tmp_path):
    config_file = tmp_path / ".portainerdeploy.yml"
    config_file.write_text(
        "portainer_url: https://portainer.example.com\n"
        "stack_name: web\n"
        "standalone: true\n"
        "images:\n"
        "  - registry.example.com/web\n"
        "  - docker.io/nginx\n",
        encoding="utf-8",
    )

    loader = ConfigLoader()
    loaded = loader.load(str(config_file))

    assert loaded["portainer_url"] == "https://portainer.example.com"
    assert loaded["stack_name"] == "web"
    assert loaded["standalone"] is True
    assert loaded["images"] == "registry.example.com/web,docker.io/nginx"


def test_config_loader_rejects_unknown_keys(tmp_path):
    config_file = tmp_path / ".portainerdeploy.yml"
    config_file.write_text("unknown_key: true\n", encoding="utf-8")

    loader = ConfigLoader()

    with pytest.raises(ConfigurationError, match="Unknown configuration keys"):
        loader.load(str(config_file))


def test_config_loader_rejects_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Config file not found"):
        ConfigLoader().load(str(tmp_path / "missing.yml"))


def test_parse_compose_environment_preserves_order():
    env = parse_compose_environment('{"B": "2", "A": "1", "DEBUG": true, "WORKERS": 4}')

    assert list(env.items()) == [("B", "2"), ("A", "1"), ("DEBUG", "true"), ("WORKERS", "4")]


def test_parse_compose_environment_accepts_mapping_and_empty_values():
    assert parse_compose_environment({"A": "1"}) == {"A": "1"}
    assert parse_compose_environment("") == {}
    assert parse_compose_environment(None) == {}


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"A": {"nested": "x"}}'])
def test_parse_compose_environment_rejects_invalid_input(raw):
    with pytest.raises(ConfigurationError, match="Invalid compose environment"):
        parse_compose_environment(raw)
