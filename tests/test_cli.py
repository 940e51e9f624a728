"""
Command line (cli/)

Tests ``routemark routes`` and ``routemark serve`` against a sample
controller module written to a temporary directory.
"""

import json
import logging
import sys
import textwrap

import pytest
from click.testing import CliRunner

from routemark import Router
from routemark.cli.__main__ import cli

SAMPLE = textwrap.dedent('''
    from routemark import Controller, GET, POST, add_controllers


    class Users(Controller, prefix="/users"):

        @GET("/")
        def index(self, rev):
            return []

        @POST("/")
        def create(self, rev):
            return {}


    class Health(Controller, prefix="/health"):

        @GET()
        def check(self, rev):
            return {"ok": True}


    router = add_controllers([Health])
    not_routes = 42
''')


@pytest.fixture
def sample(tmp_path, monkeypatch):
    """Importable ``sample_app`` module; cwd is the temporary directory."""
    (tmp_path / "sample_app.py").write_text(SAMPLE)
    monkeypatch.chdir(tmp_path)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.setenv("RM_LOG_LEVEL", "WARNING")

    logger = logging.getLogger("routemark")
    handlers = list(logger.handlers)
    yield "sample_app"
    sys.modules.pop("sample_app", None)
    logger.handlers[:] = handlers
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def runner():
    return CliRunner()


class TestRoutes:

    def test_module_target(self, runner, sample):
        result = runner.invoke(cli, ["routes", sample])
        assert result.exit_code == 0, result.output
        lines = [line.split() for line in result.output.splitlines() if line.strip()]
        assert lines[0] == ["GET", "/users", "Users.index"]
        assert lines[1] == ["POST", "/users", "Users.create"]
        assert lines[2] == ["GET", "/health", "Health.check"]
        assert "3 routes" in result.output

    def test_class_targets_keep_order(self, runner, sample):
        result = runner.invoke(cli, ["routes", f"{sample}:Health", f"{sample}:Users"])
        assert result.exit_code == 0, result.output
        assert result.output.index("/health") < result.output.index("/users")

    def test_router_target(self, runner, sample):
        result = runner.invoke(cli, ["routes", f"{sample}:router"])
        assert result.exit_code == 0, result.output
        assert "Health.check" in result.output
        assert "Users" not in result.output

    def test_json_output(self, runner, sample):
        result = runner.invoke(cli, ["routes", "--json", f"{sample}:Health"])
        assert result.exit_code == 0, result.output
        rows = json.loads(result.output)
        assert rows[0]["verb"] == "GET"
        assert rows[0]["path"] == "/health"
        assert rows[0]["method"] == "check"

    def test_verbose_lists_handlers(self, runner, sample):
        result = runner.invoke(cli, ["-v", "routes", f"{sample}:Health"])
        assert result.exit_code == 0, result.output
        assert "[check]" in result.output

    def test_missing_module(self, runner, sample):
        result = runner.invoke(cli, ["routes", "no_such_module_here"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_wrong_target_type(self, runner, sample):
        result = runner.invoke(cli, ["routes", f"{sample}:not_routes"])
        assert result.exit_code == 1

    def test_requires_target(self, runner, sample):
        result = runner.invoke(cli, ["routes"])
        assert result.exit_code != 0


class TestServe:

    def test_serves_router(self, runner, sample, monkeypatch):
        served = {}

        def fake_run(app, **kwargs):
            served["app"] = app
            served.update(kwargs)

        monkeypatch.setattr("uvicorn.run", fake_run)
        result = runner.invoke(cli, ["serve", f"{sample}:router", "--port", "9001"])
        assert result.exit_code == 0, result.output
        assert isinstance(served["app"], Router)
        assert served["port"] == 9001
        assert served["host"] == "127.0.0.1"

    def test_reload_passes_import_string(self, runner, sample, monkeypatch):
        served = {}

        def fake_run(app, **kwargs):
            served["app"] = app
            served.update(kwargs)

        monkeypatch.setattr("uvicorn.run", fake_run)
        result = runner.invoke(cli, ["serve", f"{sample}:router", "--reload"])
        assert result.exit_code == 0, result.output
        assert served["app"] == f"{sample}:router"
        assert served["reload"] is True

    def test_bad_target(self, runner, sample):
        result = runner.invoke(cli, ["serve", "missing_mod:router"])
        assert result.exit_code == 1


class TestVersion:

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "routemark" in result.output
