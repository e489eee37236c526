"""Data models: service definitions, messages and CloudEvents."""

from knative_router.models.message import (
    CONTENT_TYPE_HEADER,
    MIME_STRUCTURED_CONTENT_MODE,
    CloudEvent,
    Message,
)
from knative_router.models.service import (
    ServiceDefinition,
    ServiceKind,
    ServiceProtocol,
)

__all__ = [
    "CONTENT_TYPE_HEADER",
    "MIME_STRUCTURED_CONTENT_MODE",
    "CloudEvent",
    "Message",
    "ServiceDefinition",
    "ServiceKind",
    "ServiceProtocol",
]
