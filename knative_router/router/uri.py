"""Parsing of logical ``knative:`` URIs.

Syntax::

    knative:<type>/<name>[/<sub-path>][?param=value&...]

``knative://<type>/...`` is accepted as well.  The canonical form, used as
the endpoint identity and as the CloudEvents source, is
``knative://<type>/<name>[/<sub-path>][?<params sorted by name>]``.
"""

from __future__ import annotations

from urllib.parse import parse_qsl, urlencode

from pydantic import BaseModel, ConfigDict, Field

from knative_router.errors import ConfigError
from knative_router.models.service import ServiceKind

SCHEME = "knative"


class LogicalUri(BaseModel):
    """A parsed logical endpoint or channel reference."""

    model_config = ConfigDict(frozen=True)

    kind: ServiceKind
    name: str
    sub_path: str | None = None
    params: dict[str, str] = Field(default_factory=dict)

    @property
    def canonical(self) -> str:
        uri = f"{SCHEME}://{self.kind.value}/{self.name}{self.sub_path or ''}"
        if self.params:
            uri += "?" + urlencode(sorted(self.params.items()))
        return uri

    def __str__(self) -> str:
        return self.canonical


def parse_logical_uri(uri: str) -> LogicalUri:
    """Parse *uri*.

    Raises
    ------
    ConfigError
        If the scheme is not ``knative``, the type is unknown or the name
        is missing.
    """
    scheme, sep, remaining = uri.partition(":")
    if not sep or scheme != SCHEME:
        raise ConfigError(f"Not a {SCHEME} URI: {uri!r}")
    if remaining.startswith("//"):
        remaining = remaining[2:]

    remaining, _, query = remaining.partition("?")
    kind_text, _, target = remaining.partition("/")
    try:
        kind = ServiceKind(kind_text)
    except ValueError as exc:
        raise ConfigError(
            f"Unknown type {kind_text!r} in {uri!r}; expected one of "
            f"{', '.join(k.value for k in ServiceKind)}"
        ) from exc

    name, slash, sub_path = target.partition("/")
    if not name:
        raise ConfigError(f"Missing name in {uri!r}")

    params: dict[str, str] = {}
    for key, value in parse_qsl(query, keep_blank_values=True):
        params[key] = value

    return LogicalUri(
        kind=kind,
        name=name,
        sub_path=f"/{sub_path}" if slash and sub_path else None,
        params=params,
    )
