"""Tests for process settings — env-driven via KNATIVE_* variables."""

from __future__ import annotations

import pytest

from knative_router.config import KnativeSettings


class TestKnativeSettings:
    def test_defaults(self, settings: KnativeSettings):
        assert settings.configuration is None
        assert settings.environment_path is None
        assert settings.cloud_events_spec_version == "0.1"
        assert settings.json_serialization_enabled is False
        assert settings.log_level == "INFO"

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KNATIVE_CONFIGURATION", '[{"type": "channel", "name": "c"}]')
        monkeypatch.setenv("KNATIVE_ENVIRONMENT_PATH", "/etc/knative/env.json")
        monkeypatch.setenv("KNATIVE_LOG_LEVEL", "DEBUG")
        settings = KnativeSettings(_env_file=None)
        assert settings.configuration.startswith("[")
        assert settings.environment_path == "/etc/knative/env.json"
        assert settings.log_level == "DEBUG"

    def test_env_file(self, tmp_path, monkeypatch: pytest.MonkeyPatch):
        env_file = tmp_path / ".env"
        env_file.write_text("KNATIVE_CLOUD_EVENTS_SPEC_VERSION=0.3\n", encoding="utf-8")
        settings = KnativeSettings(_env_file=env_file)
        assert settings.cloud_events_spec_version == "0.3"

    def test_unrelated_variables_ignored(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KNATIVE_SOMETHING_ELSE", "x")
        assert KnativeSettings(_env_file=None).log_level == "INFO"
