"""KnativeComponent — entry point for creating ``knative:`` endpoints.

The component owns the component-level configuration, the environment,
the transport and the cache of endpoints.  Each canonical logical URI maps
to at most one endpoint for the lifetime of the component.

Environment resolution order:

1. an explicit environment (argument or configuration);
2. ``environment_path`` (argument or ``KNATIVE_ENVIRONMENT_PATH``);
3. the ``KNATIVE_CONFIGURATION`` environment variable, holding either a
   ``file:``/``classpath:`` reference or the serialized JSON array.

The environment is loaded at most once.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from knative_router.config import KnativeSettings
from knative_router.core.environment import Environment
from knative_router.core.placeholders import PlaceholderResolver
from knative_router.errors import ConfigError
from knative_router.router.configuration import KnativeConfiguration
from knative_router.router.endpoint import KnativeEndpoint
from knative_router.router.uri import parse_logical_uri
from knative_router.transport import Transport
from knative_router.transport.local import LocalTransport

logger = logging.getLogger(__name__)


class KnativeComponent:
    """Creates and caches ``KnativeEndpoint`` instances.

    Parameters
    ----------
    configuration:
        Component-level defaults.  Built from ``settings`` when omitted.
    environment:
        Explicit environment; takes precedence over any path or variable.
    environment_path:
        Resource reference passed to ``Environment.load``.
    transport:
        Physical transport; a fresh ``LocalTransport`` when omitted, with a
        warning since nothing then leaves the process.
    properties:
        Values for ``{{key}}`` placeholders in zone metadata.
    settings:
        Process settings; read from the environment when omitted.

    Examples
    --------
    >>> env = Environment.load('[{"type": "endpoint", "name": "sink", "host": "h", "port": 8080}]')
    >>> component = KnativeComponent(environment=env)
    >>> component.create_endpoint("knative:endpoint/sink").physical_uri
    'http://h:8080/'
    """

    def __init__(
        self,
        configuration: KnativeConfiguration | None = None,
        *,
        environment: Environment | None = None,
        environment_path: str | Path | None = None,
        transport: Transport | None = None,
        properties: Mapping[str, str] | None = None,
        settings: KnativeSettings | None = None,
    ) -> None:
        self._settings = settings or KnativeSettings()
        if configuration is None:
            configuration = KnativeConfiguration.from_settings(self._settings)
        if environment is not None:
            configuration = configuration.with_environment(environment)
        self._configuration = configuration
        self._environment_path = environment_path or self._settings.environment_path
        if transport is None:
            logger.warning(
                "No transport given; using the in-process LocalTransport. "
                "Pass transport=HttpTransport() to reach the network."
            )
            transport = LocalTransport()
        self._transport: Transport = transport
        self._placeholders = PlaceholderResolver(properties)
        self._endpoints: dict[str, KnativeEndpoint] = {}
        self._lock = threading.Lock()
        self._started = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def configuration(self) -> KnativeConfiguration:
        return self._configuration

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def endpoints(self) -> list[KnativeEndpoint]:
        with self._lock:
            return list(self._endpoints.values())

    @property
    def started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def create_endpoint(self, uri: str) -> KnativeEndpoint:
        """Return the endpoint for *uri*, creating it on first use.

        Raises
        ------
        ConfigError
            If the URI is malformed, no environment can be obtained, or the
            endpoint cannot be resolved.
        """
        logical = parse_logical_uri(uri)
        key = logical.canonical
        with self._lock:
            endpoint = self._endpoints.get(key)
            if endpoint is not None:
                return endpoint

            configuration = self._configuration.with_parameters(logical.params)
            if configuration.environment is None:
                self._configuration = self._configuration.with_environment(
                    self._load_environment()
                )
                configuration = configuration.with_environment(self._configuration.environment)

            endpoint = KnativeEndpoint(
                logical,
                configuration,
                transport=self._transport,
                placeholders=self._placeholders,
            )
            if self._started:
                endpoint.start()
            self._endpoints[key] = endpoint
        return endpoint

    def environment(self) -> Environment:
        """Return the environment, loading it if needed."""
        with self._lock:
            if self._configuration.environment is None:
                self._configuration = self._configuration.with_environment(
                    self._load_environment()
                )
            return self._configuration.environment

    def _load_environment(self) -> Environment:
        if self._environment_path:
            return Environment.load(self._environment_path)
        if self._settings.configuration:
            return Environment.from_env_value(self._settings.configuration)
        raise ConfigError("Cannot load Knative configuration from file or env variable")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start every endpoint created so far and any created later.

        If an endpoint fails to start, the ones already started are stopped
        in reverse order and the error propagates.
        """
        with self._lock:
            endpoints = list(self._endpoints.values())
            self._started = True
        started: list[KnativeEndpoint] = []
        try:
            for endpoint in endpoints:
                endpoint.start()
                started.append(endpoint)
        except Exception:
            with self._lock:
                self._started = False
            for endpoint in reversed(started):
                try:
                    endpoint.stop()
                except Exception as exc:  # noqa: BLE001
                    logger.error("Failed to stop endpoint %s: %s", endpoint.canonical_uri, exc)
            raise
        logger.info("Knative component started (%d endpoint(s)).", len(endpoints))

    def stop(self) -> None:
        with self._lock:
            endpoints = list(self._endpoints.values())
            self._started = False
        errors: list[Exception] = []
        for endpoint in reversed(endpoints):
            try:
                endpoint.stop()
            except Exception as exc:  # noqa: BLE001
                logger.error("Failed to stop endpoint %s: %s", endpoint.canonical_uri, exc)
                errors.append(exc)
        logger.info("Knative component stopped.")
        if errors:
            raise errors[0]

    def __enter__(self) -> KnativeComponent:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()

    def __repr__(self) -> str:
        return f"KnativeComponent(endpoints={len(self._endpoints)}, started={self._started})"
