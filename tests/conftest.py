"""Shared test fixtures for knative_router."""

from __future__ import annotations

import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from knative_router.config import KnativeSettings
from knative_router.core.environment import Environment
from knative_router.models.service import ServiceDefinition, ServiceKind
from knative_router.transport.local import LocalTransport

SAMPLE_ENVIRONMENT: list[dict[str, Any]] = [
    {
        "type": "channel",
        "protocol": "http",
        "name": "c1",
        "host": "",
        "port": -1,
        "metadata": {"service.path": "/"},
    },
    {
        "type": "endpoint",
        "protocol": "http",
        "name": "e1",
        "host": "0.0.0.0",
        "port": 8081,
        "metadata": {"service.path": "/"},
    },
    {
        "type": "endpoint",
        "protocol": "http",
        "name": "e2",
        "host": "0.0.0.0",
        "port": 8082,
        "metadata": {"service.path": "/"},
    },
]


@pytest.fixture(autouse=True)
def _isolate_knative_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep KNATIVE_* variables of the host process out of the tests."""
    for name in list(os.environ):
        if name.startswith("KNATIVE_"):
            monkeypatch.delenv(name)


@pytest.fixture
def settings() -> KnativeSettings:
    """Settings that ignore any .env file in the working directory."""
    return KnativeSettings(_env_file=None)


@pytest.fixture
def environment_file(tmp_path: Path) -> Path:
    """A three-service environment written to a temp file."""
    path = tmp_path / "environment.json"
    path.write_text(json.dumps(SAMPLE_ENVIRONMENT), encoding="utf-8")
    return path


@pytest.fixture
def transport() -> LocalTransport:
    return LocalTransport()


@pytest.fixture
def make_service() -> Callable[..., ServiceDefinition]:
    """Factory fixture: build a ServiceDefinition with sensible defaults."""

    def _factory(
        name: str = "myEndpoint",
        kind: ServiceKind = ServiceKind.ENDPOINT,
        **overrides: Any,
    ) -> ServiceDefinition:
        defaults: dict[str, Any] = {
            "kind": kind,
            "protocol": "http",
            "name": name,
            "host": "localhost",
            "port": 8080,
            "metadata": {},
        }
        defaults.update(overrides)
        return ServiceDefinition(**defaults)

    return _factory


@pytest.fixture
def make_environment(
    make_service: Callable[..., ServiceDefinition],
) -> Callable[..., Environment]:
    """Factory fixture: an Environment from service override dicts."""

    def _factory(*services: dict[str, Any]) -> Environment:
        return Environment.of(*(make_service(**s) for s in services))

    return _factory
