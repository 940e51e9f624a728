"""
Configuration (config.py)

Tests layered loading, type validation and the process-wide config.
"""

import logging
import os

import pytest

from routemark.config import (
    ConfigLoader,
    RoutemarkConfig,
    configure_logging,
    get_config,
    set_config,
)
from routemark.faults import ConfigInvalidFault


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate from RM_* variables and any routemark.yaml in the cwd."""
    for key in list(os.environ):
        if key.startswith("RM_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


class TestDefaults:

    def test_defaults(self):
        config = RoutemarkConfig()
        assert config.strict_bindings is True
        assert config.default_instantiation == "singleton"
        assert config.content_types == {}
        assert config.views_dir is None

    def test_invalid_instantiation(self):
        with pytest.raises(ConfigInvalidFault) as excinfo:
            RoutemarkConfig(default_instantiation="pooled")
        assert excinfo.value.metadata["key"] == "default_instantiation"

    def test_frozen(self):
        with pytest.raises(AttributeError):
            RoutemarkConfig().strict_bindings = False


class TestLoader:

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(
            "strict_bindings: false\n"
            "content_types:\n"
            "  ndjson: application/x-ndjson\n"
        )
        config = ConfigLoader.load(path=str(path)).build()
        assert config.strict_bindings is False
        assert config.content_types == {"ndjson": "application/x-ndjson"}

    def test_json_file(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text('{"log_level": "DEBUG"}')
        assert ConfigLoader.load(path=str(path)).build().log_level == "DEBUG"

    def test_default_yaml_picked_up(self, tmp_path):
        (tmp_path / "routemark.yaml").write_text("views_dir: templates\n")
        assert ConfigLoader.load().build().views_dir == "templates"

    def test_missing_file_ignored(self, tmp_path):
        assert ConfigLoader.load(path=str(tmp_path / "nope.yaml")).build() == RoutemarkConfig()

    def test_env_file(self, tmp_path):
        env = tmp_path / ".env"
        env.write_text("RM_DEFAULT_INSTANTIATION=per_request\nOTHER=1\n")
        loader = ConfigLoader.load(env_file=str(env))
        assert loader.build().default_instantiation == "per_request"
        assert "other" not in loader.to_dict()

    def test_environment_nesting(self, monkeypatch):
        monkeypatch.setenv("RM_CONTENT_TYPES__CSV", "text/csv")
        monkeypatch.setenv("RM_STRICT_BINDINGS", "no")
        config = ConfigLoader.load().build()
        assert config.content_types == {"csv": "text/csv"}
        assert config.strict_bindings is False

    def test_precedence(self, tmp_path, monkeypatch):
        path = tmp_path / "settings.yaml"
        path.write_text("log_level: WARNING\ntext_content_type: text/a\njson_content_type: app/a\n")
        env = tmp_path / ".env"
        env.write_text("RM_TEXT_CONTENT_TYPE=text/b\nRM_JSON_CONTENT_TYPE=app/b\n")
        monkeypatch.setenv("RM_JSON_CONTENT_TYPE", "app/c")

        config = ConfigLoader.load(
            path=str(path), env_file=str(env), overrides={"log_level": "ERROR"},
        ).build()
        assert config.log_level == "ERROR"
        assert config.text_content_type == "text/b"
        assert config.json_content_type == "app/c"

    def test_custom_prefix(self, monkeypatch):
        monkeypatch.setenv("APP_LOG_LEVEL", "DEBUG")
        assert ConfigLoader.load(env_prefix="APP_").build().log_level == "DEBUG"

    def test_json_values(self, monkeypatch):
        monkeypatch.setenv("RM_CONTENT_TYPES", '{"md": "text/markdown"}')
        assert ConfigLoader.load().build().content_types == {"md": "text/markdown"}

    def test_wrong_type_rejected(self):
        loader = ConfigLoader.load(overrides={"strict_bindings": "maybe"})
        with pytest.raises(ConfigInvalidFault) as excinfo:
            loader.build()
        assert excinfo.value.metadata["key"] == "strict_bindings"

    def test_unknown_keys_ignored(self):
        assert ConfigLoader.load(overrides={"colour": "blue"}).build() == RoutemarkConfig()

    def test_get_dotted(self):
        loader = ConfigLoader.load(overrides={"content_types": {"csv": "text/csv"}})
        assert loader.get("content_types.csv") == "text/csv"
        assert loader.get("content_types.tsv", "none") == "none"


class TestActiveConfig:

    def test_set_config_returns_previous(self):
        before = get_config()
        previous = set_config(strict_bindings=False)
        assert previous is before
        assert get_config().strict_bindings is False
        assert get_config().default_instantiation == before.default_instantiation

    def test_set_config_object(self):
        config = RoutemarkConfig(log_level="DEBUG")
        set_config(config)
        assert get_config() is config

    def test_configure_logging(self):
        configure_logging("debug")
        assert logging.getLogger("routemark").level == logging.DEBUG
        configure_logging("WARNING")
        assert logging.getLogger("routemark").level == logging.WARNING
        logging.getLogger("routemark").setLevel(logging.NOTSET)
