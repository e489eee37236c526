"""CloudEvents codecs, keyed by spec version.

Versions are registered explicitly in ``CLOUD_EVENTS_SPECS``; selecting an
unregistered version is a configuration error.
"""

from __future__ import annotations

from knative_router.cloudevents.base import (
    DEFAULT_EVENT_TYPE,
    CloudEventAttribute,
    CloudEventsConsumer,
    CloudEventsProducer,
    CloudEventsSpec,
)
from knative_router.cloudevents.converter import ContentModeConverter
from knative_router.cloudevents.v01 import V01
from knative_router.cloudevents.v02 import V02
from knative_router.cloudevents.v03 import V03
from knative_router.errors import ConfigError

DEFAULT_SPEC_VERSION = V01.version

CLOUD_EVENTS_SPECS: dict[str, CloudEventsSpec] = {
    spec.version: spec for spec in (V01, V02, V03)
}


def for_spec_version(version: str) -> CloudEventsSpec:
    """Return the codec registered for *version*.

    Raises
    ------
    ConfigError
        If no codec is registered under *version*.
    """
    spec = CLOUD_EVENTS_SPECS.get(version)
    if spec is None:
        raise ConfigError(
            f"Unsupported CloudEvents spec version {version!r}; "
            f"supported: {', '.join(sorted(CLOUD_EVENTS_SPECS))}"
        )
    return spec


__all__ = [
    "CLOUD_EVENTS_SPECS",
    "DEFAULT_EVENT_TYPE",
    "DEFAULT_SPEC_VERSION",
    "CloudEventAttribute",
    "CloudEventsConsumer",
    "CloudEventsProducer",
    "CloudEventsSpec",
    "ContentModeConverter",
    "V01",
    "V02",
    "V03",
    "for_spec_version",
]
