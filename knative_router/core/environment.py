"""Knative environment — the load-once registry of service definitions.

An environment is a JSON array of service-definition objects::

    [
      {"type": "endpoint", "protocol": "http", "name": "myEndpoint",
       "host": "my-node", "port": 9001,
       "metadata": {"service.path": "/a/path"}}
    ]

It can be supplied inline, from a file, from a package resource
(``classpath:<package>/<resource>``) or as a raw serialized string held in
an environment variable.  Once built, an ``Environment`` is never mutated,
so concurrent lookups need no locking.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from importlib import resources
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from knative_router.errors import ConfigError, NotFoundError
from knative_router.models.service import ServiceDefinition, ServiceKind

logger = logging.getLogger(__name__)

FILE_PREFIX = "file:"
CLASSPATH_PREFIX = "classpath:"
CHANNEL_SUFFIX = "-channel"


class Environment(BaseModel):
    """Ordered, immutable collection of ``ServiceDefinition`` entries.

    Lookups are by ``(kind, name)`` and the first structural match wins.

    Examples
    --------
    >>> env = Environment.load('[{"type": "channel", "name": "c1"}]')
    >>> env.lookup(ServiceKind.CHANNEL, "c1").name
    'c1'
    >>> env.lookup_or_default(ServiceKind.CHANNEL, "other").name
    'other-channel'
    """

    model_config = ConfigDict(frozen=True)

    services: tuple[ServiceDefinition, ...] = ()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def of(cls, *services: ServiceDefinition) -> Environment:
        return cls(services=services)

    @classmethod
    def load(cls, source: str | Path | Sequence[Any]) -> Environment:
        """Build an environment from *source*.

        Parameters
        ----------
        source:
            An inline list of definition mappings, a ``Path``, or a string
            that is either a ``file:``/``classpath:`` reference, a raw JSON
            array, or a plain filesystem path.

        Raises
        ------
        ConfigError
            If the resource is missing or unreadable, or its content is not
            a JSON array of service-definition objects.
        """
        if isinstance(source, Path):
            return cls._from_document(_read_file(source), str(source))
        if isinstance(source, str):
            text = source.strip()
            if text.startswith(FILE_PREFIX):
                path = Path(text[len(FILE_PREFIX):])
                return cls._from_document(_read_file(path), text)
            if text.startswith(CLASSPATH_PREFIX):
                return cls._from_document(_read_resource(text[len(CLASSPATH_PREFIX):]), text)
            if text.startswith("["):
                return cls._from_document(text, "<inline>")
            return cls._from_document(_read_file(Path(text)), text)
        return cls._from_entries(source, "<inline>")

    @classmethod
    def from_env_value(cls, value: str) -> Environment:
        """Build an environment from the value of the configuration variable.

        A ``file:`` or ``classpath:`` prefix names a resource; anything else
        is taken to be the serialized JSON array itself.
        """
        text = value.strip()
        if text.startswith((FILE_PREFIX, CLASSPATH_PREFIX)):
            return cls.load(text)
        return cls._from_document(text, "<environment variable>")

    @classmethod
    def _from_document(cls, text: str, origin: str) -> Environment:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigError(f"Invalid environment JSON in {origin}: {exc}") from exc
        return cls._from_entries(data, origin)

    @classmethod
    def _from_entries(cls, data: Any, origin: str) -> Environment:
        if not isinstance(data, list):
            raise ConfigError(
                f"Environment in {origin} must be a JSON array, got {type(data).__name__}"
            )
        services: list[ServiceDefinition] = []
        for index, entry in enumerate(data):
            if isinstance(entry, ServiceDefinition):
                services.append(entry)
                continue
            if not isinstance(entry, dict):
                raise ConfigError(
                    f"Environment entry {index} in {origin} must be an object, "
                    f"got {type(entry).__name__}"
                )
            try:
                services.append(ServiceDefinition.model_validate(entry))
            except ValidationError as exc:
                raise ConfigError(
                    f"Invalid service definition {index} in {origin}: {exc}"
                ) from exc

        seen: set[tuple[ServiceKind, str]] = set()
        for service in services:
            key = (service.kind, service.name)
            if key in seen:
                logger.warning(
                    "Duplicate %s definition %r in %s; the first one wins.",
                    service.kind.value,
                    service.name,
                    origin,
                )
            seen.add(key)

        logger.info("Loaded %d service definition(s) from %s.", len(services), origin)
        return cls(services=tuple(services))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, kind: ServiceKind | str, name: str) -> ServiceDefinition | None:
        """Return the first definition matching ``(kind, name)`` exactly."""
        kind = ServiceKind(kind)
        for service in self.services:
            if service.kind == kind and service.name == name:
                return service
        return None

    def lookup_or_default(self, kind: ServiceKind | str, name: str) -> ServiceDefinition:
        """Like ``lookup`` but synthesize a conventional definition if absent.

        Channels are addressed as ``<name>-channel``; endpoints keep their
        name.  Host and port are left for the address resolver to derive.
        """
        kind = ServiceKind(kind)
        service = self.lookup(kind, name)
        if service is not None:
            return service
        if kind == ServiceKind.CHANNEL:
            name = name + CHANNEL_SUFFIX
        logger.debug("No %s named %r declared; using defaults.", kind.value, name)
        return ServiceDefinition(kind=kind, name=name, host="", port=-1)

    def mandatory_lookup(self, kind: ServiceKind | str, name: str) -> ServiceDefinition:
        """Like ``lookup`` but raise ``NotFoundError`` when absent."""
        kind = ServiceKind(kind)
        service = self.lookup(kind, name)
        if service is None:
            raise NotFoundError(kind.value, name)
        return service

    def of_kind(self, kind: ServiceKind | str) -> list[ServiceDefinition]:
        kind = ServiceKind(kind)
        return [s for s in self.services if s.kind == kind]

    def __len__(self) -> int:
        return len(self.services)


# ---------------------------------------------------------------------------
# Resource helpers
# ---------------------------------------------------------------------------


def _read_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Unable to read environment from {path}: {exc}") from exc


def _read_resource(reference: str) -> str:
    """Read ``<package>/<resource>`` from an importable package."""
    reference = reference.lstrip("/")
    package, sep, resource = reference.partition("/")
    if not sep or not package or not resource:
        raise ConfigError(
            f"Invalid classpath reference {reference!r}; expected <package>/<resource>"
        )
    try:
        return resources.files(package).joinpath(resource).read_text(encoding="utf-8")
    except (ModuleNotFoundError, OSError) as exc:
        raise ConfigError(f"Unable to read environment resource {reference!r}: {exc}") from exc
