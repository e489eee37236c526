"""Service definition models — the entries of a Knative environment."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


class ServiceKind(str, Enum):
    """The two kinds of logical service a route can address."""

    ENDPOINT = "endpoint"
    CHANNEL = "channel"


class ServiceProtocol(str, Enum):
    """Protocols the address resolver knows how to materialize."""

    HTTP = "http"
    HTTPS = "https"


DEFAULT_PORTS: dict[ServiceProtocol, int] = {
    ServiceProtocol.HTTP: 80,
    ServiceProtocol.HTTPS: 443,
}

# Metadata keys recognised on a ServiceDefinition
SERVICE_META_PATH = "service.path"
SERVICE_META_ZONE = "service.zone"
KNATIVE_EVENT_TYPE = "knative.event.type"
CONTENT_TYPE = "content.type"
FILTER_HEADER_NAME = "filter.header.name"
FILTER_HEADER_VALUE = "filter.header.value"


class ServiceDefinition(BaseModel):
    """Immutable description of one logical service.

    ``protocol`` is kept as a plain string so that environments naming a
    protocol we cannot serve still load; the resolver rejects them when an
    endpoint actually tries to use one.  ``metadata`` is a read-only view;
    use ``with_path`` to derive a definition with another path.

    Examples
    --------
    >>> svc = ServiceDefinition(
    ...     kind=ServiceKind.ENDPOINT,
    ...     name="myEndpoint",
    ...     host="my-node",
    ...     port=9001,
    ...     metadata={SERVICE_META_PATH: "/a/path"},
    ... )
    >>> svc.path
    '/a/path'
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: ServiceKind = Field(alias="type")
    protocol: str = ServiceProtocol.HTTP.value
    name: str = Field(min_length=1)
    host: str = ""
    port: int = -1
    metadata: Mapping[str, str] = Field(default_factory=dict, validate_default=True)

    @field_validator("metadata")
    @classmethod
    def _freeze_metadata(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_serializer("metadata")
    def _dump_metadata(self, value: Mapping[str, str]) -> dict[str, Any]:
        return dict(value)

    @property
    def path(self) -> str | None:
        return self.metadata.get(SERVICE_META_PATH)

    @property
    def zone(self) -> str | None:
        return self.metadata.get(SERVICE_META_ZONE)

    @property
    def event_type(self) -> str | None:
        return self.metadata.get(KNATIVE_EVENT_TYPE)

    @property
    def content_type(self) -> str | None:
        return self.metadata.get(CONTENT_TYPE)

    @property
    def filter_header_name(self) -> str | None:
        return self.metadata.get(FILTER_HEADER_NAME)

    @property
    def filter_header_value(self) -> str | None:
        return self.metadata.get(FILTER_HEADER_VALUE)

    def with_path(self, path: str) -> ServiceDefinition:
        """Return a copy whose ``service.path`` metadata is *path*."""
        return self.model_copy(
            update={"metadata": MappingProxyType({**self.metadata, SERVICE_META_PATH: path})}
        )
