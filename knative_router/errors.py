"""Error hierarchy shared by the registry, resolver, codecs and router."""

from __future__ import annotations


class KnativeError(RuntimeError):
    """Base class for every error raised by knative_router."""


class ConfigError(KnativeError):
    """Raised when an endpoint cannot be configured.

    Covers an unresolvable environment source, an unsupported protocol,
    a missing host after derivation, an unknown CloudEvents spec version
    and malformed logical URIs.  Never retried.
    """


class NotFoundError(ConfigError):
    """Raised by a mandatory lookup of an undeclared service."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f'Unable to find the service "{name}" with type "{kind}"')
        self.kind = kind
        self.name = name


class ParseError(KnativeError):
    """Raised when an inbound event cannot be decoded."""


class TransportError(KnativeError):
    """Raised when a physical send or receive fails."""
