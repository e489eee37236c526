"""Resolved per-endpoint configuration."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from knative_router.cloudevents import DEFAULT_SPEC_VERSION
from knative_router.config import KnativeSettings
from knative_router.core.environment import Environment
from knative_router.errors import ConfigError

TRANSPORT_PARAM_PREFIX = "transport."

# URI parameter name -> configuration field
URI_PARAMETERS: dict[str, str] = {
    "jsonSerializationEnabled": "json_serialization_enabled",
    "cloudEventsSpecVersion": "cloud_events_spec_version",
    "cloudEventsType": "cloud_events_type",
    "filterHeaderName": "filter_header_name",
    "filterHeaderValue": "filter_header_value",
}


class KnativeConfiguration(BaseModel):
    """Component defaults merged with the parameters of one endpoint URI.

    Created once when an endpoint is built and never changed afterwards.
    """

    model_config = ConfigDict(frozen=True)

    environment: Environment | None = None
    cloud_events_spec_version: str = DEFAULT_SPEC_VERSION
    json_serialization_enabled: bool = False
    cloud_events_type: str | None = None
    transport_options: dict[str, Any] = Field(default_factory=dict)
    filter_header_name: str | None = None
    filter_header_value: str | None = None

    @classmethod
    def from_settings(cls, settings: KnativeSettings) -> KnativeConfiguration:
        return cls(
            cloud_events_spec_version=settings.cloud_events_spec_version,
            json_serialization_enabled=settings.json_serialization_enabled,
        )

    def with_environment(self, environment: Environment) -> KnativeConfiguration:
        return self.model_copy(update={"environment": environment})

    def with_parameters(self, params: Mapping[str, str]) -> KnativeConfiguration:
        """Return a copy overridden by logical-URI *params*.

        ``transport.<option>`` parameters are added to ``transport_options``
        without the prefix.

        Raises
        ------
        ConfigError
            On an unknown parameter or a value of the wrong type.
        """
        if not params:
            return self
        options = dict(self.transport_options)
        updates: dict[str, Any] = {}
        for key, value in params.items():
            if key.startswith(TRANSPORT_PARAM_PREFIX):
                options[key[len(TRANSPORT_PARAM_PREFIX):]] = value
            elif key in URI_PARAMETERS:
                updates[URI_PARAMETERS[key]] = value
            else:
                raise ConfigError(
                    f"Unknown parameter {key!r}; supported: "
                    f"{', '.join(sorted(URI_PARAMETERS))} and {TRANSPORT_PARAM_PREFIX}*"
                )
        merged = {
            **self.model_dump(exclude={"environment"}),
            **updates,
            "transport_options": options,
            "environment": self.environment,
        }
        try:
            return type(self).model_validate(merged)
        except ValidationError as exc:
            raise ConfigError(f"Invalid endpoint parameters {dict(params)}: {exc}") from exc
