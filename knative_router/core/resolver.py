"""Address resolution — logical service definition to physical URI.

Resolution is a pure string computation: no network calls, no mutation of
the service definition.  Given the same definition, sub-path and options it
always produces the same address.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict, Field

from knative_router.core.placeholders import PlaceholderResolver
from knative_router.errors import ConfigError
from knative_router.models.service import (
    DEFAULT_PORTS,
    ServiceDefinition,
    ServiceProtocol,
)

logger = logging.getLogger(__name__)

FILTER_PARAM_PREFIX = "filter."


class ResolvedAddress(BaseModel):
    """Physical location of a logical service."""

    model_config = ConfigDict(frozen=True)

    scheme: str
    host: str
    port: int
    path: str = "/"
    query: dict[str, str] = Field(default_factory=dict)

    @property
    def uri(self) -> str:
        uri = f"{self.scheme}://{self.host}:{self.port}{self.path}"
        if self.query:
            uri += "?" + urlencode(sorted(self.query.items()))
        return uri

    def __str__(self) -> str:
        return self.uri


def resolve_address(
    service: ServiceDefinition,
    sub_path: str | None = None,
    *,
    transport_options: Mapping[str, Any] | None = None,
    placeholders: PlaceholderResolver | None = None,
    filter_header_name: str | None = None,
    filter_header_value: str | None = None,
) -> ResolvedAddress:
    """Compute the physical address of *service*.

    Parameters
    ----------
    service:
        The (possibly synthesized) service definition.
    sub_path:
        Path taken from the logical URI.  Overrides ``service.path``.
    transport_options:
        Options forwarded to the transport as query parameters.  They win
        over filter parameters on key collision.
    placeholders:
        Used to expand placeholders in the zone metadata.
    filter_header_name, filter_header_value:
        Override the filter declared in the service metadata.

    Raises
    ------
    ConfigError
        If the protocol is unsupported or no host can be derived.
    """
    try:
        protocol = ServiceProtocol(service.protocol)
    except ValueError as exc:
        raise ConfigError(f"unsupported protocol: {service.protocol}") from exc

    host = service.host or _derive_host(service, placeholders)
    if not host:
        raise ConfigError(f"Unable to derive a host for service {service.name!r}")

    port = service.port if service.port != -1 else DEFAULT_PORTS[protocol]

    path = sub_path or service.path or "/"
    if not path.startswith("/"):
        path = "/" + path

    query: dict[str, str] = {}
    filter_name = filter_header_name or service.filter_header_name
    filter_value = filter_header_value or service.filter_header_value
    if filter_name and filter_value:
        query[FILTER_PARAM_PREFIX + filter_name] = filter_value
    for key, value in (transport_options or {}).items():
        query[key] = _stringify(value)

    address = ResolvedAddress(
        scheme=protocol.value, host=host, port=port, path=path, query=query
    )
    logger.debug("Resolved %s %r to %s", service.kind.value, service.name, address.uri)
    return address


def _derive_host(
    service: ServiceDefinition, placeholders: PlaceholderResolver | None
) -> str:
    """Host derived from the service name, qualified by its zone if any."""
    zone = service.zone
    if zone:
        resolver = placeholders or PlaceholderResolver()
        zone = resolver.resolve(zone)
        if zone is None:
            logger.warning(
                "Unable to resolve zone %r for %r; using the bare name.",
                service.zone,
                service.name,
            )
    if zone:
        return f"{service.name}.{zone}"
    return service.name


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
