"""knative_router: CloudEvents wire codecs and logical endpoint routing.

- Load-once service registry (``Environment``) with default synthesis
- Address resolution with zone qualification and filter parameters
- CloudEvents 0.1 / 0.2 / 0.3 codecs, binary and structured content modes
- ``knative:`` endpoints composing codecs with a pluggable transport
"""

__version__ = "0.1.0"

from knative_router.core.environment import Environment
from knative_router.errors import (
    ConfigError,
    KnativeError,
    NotFoundError,
    ParseError,
    TransportError,
)
from knative_router.models.message import CloudEvent, Message
from knative_router.models.service import ServiceDefinition, ServiceKind
from knative_router.router.component import KnativeComponent
from knative_router.router.configuration import KnativeConfiguration
from knative_router.router.endpoint import KnativeEndpoint

__all__ = [
    "CloudEvent",
    "ConfigError",
    "Environment",
    "KnativeComponent",
    "KnativeConfiguration",
    "KnativeEndpoint",
    "KnativeError",
    "Message",
    "NotFoundError",
    "ParseError",
    "ServiceDefinition",
    "ServiceKind",
    "TransportError",
    "__version__",
]
