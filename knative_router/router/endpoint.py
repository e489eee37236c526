"""KnativeEndpoint — one logical endpoint bound to its physical target.

The endpoint is built once per canonical logical URI.  At construction it
looks up (or synthesizes) the service definition, resolves the physical
address and asks the transport for a physical endpoint.  Producers and
consumers created from it splice the CloudEvents processors in front of,
or behind, the physical transport.
"""

from __future__ import annotations

import logging
from typing import Any

from knative_router.cloudevents import ContentModeConverter, for_spec_version
from knative_router.cloudevents.base import CloudEventsSpec
from knative_router.core.pipeline import Pipeline, Processor
from knative_router.core.placeholders import PlaceholderResolver
from knative_router.core.resolver import ResolvedAddress, resolve_address
from knative_router.errors import ConfigError
from knative_router.models.message import Message
from knative_router.models.service import ServiceDefinition, ServiceKind
from knative_router.router.configuration import KnativeConfiguration
from knative_router.router.uri import LogicalUri
from knative_router.transport import PhysicalConsumer, PhysicalEndpoint, PhysicalProducer, Transport

logger = logging.getLogger(__name__)


class KnativeEndpoint:
    """A logical endpoint or channel.

    Parameters
    ----------
    uri:
        The parsed logical URI.
    configuration:
        Resolved configuration; must carry an environment.
    transport:
        Materializes the physical endpoint for the resolved address.
    placeholders:
        Used for zone qualification of derived hosts.

    Raises
    ------
    ConfigError
        If the configuration has no environment, the spec version is
        unknown, or the address cannot be resolved.
    """

    def __init__(
        self,
        uri: LogicalUri,
        configuration: KnativeConfiguration,
        *,
        transport: Transport,
        placeholders: PlaceholderResolver | None = None,
    ) -> None:
        if configuration.environment is None:
            raise ConfigError(f"No Knative environment available for {uri.canonical}")

        self._uri = uri
        self._configuration = configuration
        self._spec = for_spec_version(configuration.cloud_events_spec_version)

        service = configuration.environment.lookup_or_default(uri.kind, uri.name)
        if uri.sub_path:
            service = service.with_path(uri.sub_path)
        self._service = service

        self._address = resolve_address(
            service,
            uri.sub_path,
            transport_options=configuration.transport_options,
            placeholders=placeholders,
            filter_header_name=configuration.filter_header_name,
            filter_header_value=configuration.filter_header_value,
        )
        self._physical = transport.endpoint(self._address.uri)
        self._started = False
        logger.info("Created endpoint %s -> %s", uri.canonical, self._address.uri)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def canonical_uri(self) -> str:
        return self._uri.canonical

    @property
    def logical_uri(self) -> LogicalUri:
        return self._uri

    @property
    def kind(self) -> ServiceKind:
        return self._uri.kind

    @property
    def name(self) -> str:
        return self._uri.name

    @property
    def configuration(self) -> KnativeConfiguration:
        return self._configuration

    @property
    def service(self) -> ServiceDefinition:
        return self._service

    @property
    def spec(self) -> CloudEventsSpec:
        return self._spec

    @property
    def address(self) -> ResolvedAddress:
        return self._address

    @property
    def physical_uri(self) -> str:
        return self._address.uri

    @property
    def endpoint(self) -> PhysicalEndpoint:
        return self._physical

    @property
    def started(self) -> bool:
        return self._started

    # ------------------------------------------------------------------
    # Producer / consumer
    # ------------------------------------------------------------------

    def create_producer(self) -> KnativeProducer:
        """CloudEvents encode -> content-mode convert -> physical send."""
        encoder = self._spec.producer_processor(self)
        converter = ContentModeConverter(self._spec, self._configuration.json_serialization_enabled)
        return KnativeProducer(self, Pipeline(encoder, converter), self._physical.create_producer())

    def create_consumer(self, processor: Processor) -> KnativeConsumer:
        """Physical receive -> CloudEvents decode -> *processor*."""
        decoder = self._spec.consumer_processor(self)
        consumer = self._physical.create_consumer(Pipeline(decoder, processor))
        return KnativeConsumer(self, consumer)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._started:
            return
        try:
            self._physical.start()
        except Exception:
            try:
                self._physical.stop()
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Failed to stop %s after a failed start: %s", self.canonical_uri, exc
                )
            raise
        self._started = True
        logger.info("Started endpoint %s", self.canonical_uri)

    def stop(self) -> None:
        if not self._started:
            return
        try:
            self._physical.stop()
        finally:
            self._started = False
        logger.info("Stopped endpoint %s", self.canonical_uri)

    def __enter__(self) -> KnativeEndpoint:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()

    def __repr__(self) -> str:
        return (
            f"KnativeEndpoint(uri={self.canonical_uri!r}, "
            f"physical={self.physical_uri!r}, started={self._started})"
        )


class KnativeProducer:
    """Encodes and sends messages; in-out, so the reply replaces the message."""

    def __init__(
        self,
        endpoint: KnativeEndpoint,
        encoder: Processor,
        producer: PhysicalProducer,
    ) -> None:
        self._endpoint = endpoint
        self._encoder = encoder
        self._producer = producer

    @property
    def endpoint(self) -> KnativeEndpoint:
        return self._endpoint

    def process(self, message: Message) -> Message:
        """Send *message* and overwrite it with the reply, which is returned."""
        self._encoder(message)
        reply = self._producer.send(message)
        message.copy_from(reply)
        return message

    __call__ = process

    def send_body(self, body: Any, headers: dict[str, Any] | None = None) -> Message:
        return self.process(Message(headers=dict(headers or {}), body=body))


class KnativeConsumer:
    """Wraps the physical consumer carrying the decode pipeline."""

    def __init__(self, endpoint: KnativeEndpoint, consumer: PhysicalConsumer) -> None:
        self._endpoint = endpoint
        self._consumer = consumer

    @property
    def endpoint(self) -> KnativeEndpoint:
        return self._endpoint

    def start(self) -> None:
        self._consumer.start()

    def stop(self) -> None:
        self._consumer.stop()

    def __enter__(self) -> KnativeConsumer:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()
