"""Process-level settings — env-driven via pydantic-settings.

All settings can be overridden with ``KNATIVE_*`` environment variables or
a ``.env`` file in the working directory.

Examples
--------
Point the router at an environment file::

    export KNATIVE_ENVIRONMENT_PATH=/etc/knative/environment.json

or inline the environment itself (or a ``file:``/``classpath:`` reference)::

    export KNATIVE_CONFIGURATION='[{"type": "endpoint", "name": "sink"}]'
"""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class KnativeSettings(BaseSettings):
    """Component-level defaults read from the process environment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="KNATIVE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Serialized environment, or a file:/classpath: reference to one
    configuration: str | None = None
    environment_path: str | None = None

    cloud_events_spec_version: str = "0.1"
    json_serialization_enabled: bool = False

    log_level: str = "INFO"
