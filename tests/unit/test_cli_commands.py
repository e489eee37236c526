"""Unit tests for the CLI — Typer command registration and basic behavior."""

from __future__ import annotations

from pathlib import Path

from typer.testing import CliRunner

from knative_router.cli.app import app

runner = CliRunner()


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    """The CLI must register all expected commands and show help."""

    def test_help_flag(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "services" in result.output
        assert "resolve" in result.output
        assert "versions" in result.output

    def test_resolve_help(self):
        result = runner.invoke(app, ["resolve", "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: commands
# ---------------------------------------------------------------------------


class TestServicesCommand:

    def test_lists_services(self, environment_file: Path):
        result = runner.invoke(app, ["services", "-e", str(environment_file)])
        assert result.exit_code == 0
        assert "c1" in result.output
        assert "e1" in result.output
        assert "8082" in result.output

    def test_kind_filter(self, environment_file: Path):
        result = runner.invoke(app, ["services", "-e", str(environment_file), "--kind", "channel"])
        assert result.exit_code == 0
        assert "c1" in result.output
        assert "8081" not in result.output

    def test_missing_environment(self, tmp_path: Path):
        result = runner.invoke(app, ["services", "-e", str(tmp_path / "missing.json")])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_no_source_configured(self):
        result = runner.invoke(app, ["services"])
        assert result.exit_code == 1
        assert "Cannot load Knative configuration" in result.output


class TestResolveCommand:

    def test_resolves_declared_endpoint(self, environment_file: Path):
        result = runner.invoke(app, ["resolve", "knative:endpoint/e1", "-e", str(environment_file)])
        assert result.exit_code == 0
        assert "http://0.0.0.0:8081/" in result.output

    def test_resolves_default_channel(self, environment_file: Path):
        result = runner.invoke(app, ["resolve", "knative:channel/other", "-e", str(environment_file)])
        assert result.exit_code == 0
        assert "http://other-channel:80/" in result.output

    def test_configuration_from_env_variable(self, environment_file: Path):
        result = runner.invoke(
            app,
            ["resolve", "knative:endpoint/e2"],
            env={"KNATIVE_CONFIGURATION": f"file:{environment_file}"},
        )
        assert result.exit_code == 0
        assert "http://0.0.0.0:8082/" in result.output

    def test_transport_options_checked(self, environment_file: Path):
        result = runner.invoke(
            app, ["resolve", "knative:endpoint/e1?transport.timeout=abc", "-e", str(environment_file)]
        )
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_bad_uri(self, environment_file: Path):
        result = runner.invoke(app, ["resolve", "http://nope", "-e", str(environment_file)])
        assert result.exit_code == 1
        assert "Error" in result.output


class TestVersionsCommand:

    def test_lists_versions(self):
        result = runner.invoke(app, ["versions"])
        assert result.exit_code == 0
        for version in ("0.1", "0.2", "0.3"):
            assert version in result.output
