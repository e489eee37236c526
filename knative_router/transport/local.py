"""In-process loopback transport.

``LocalTransport`` stands in for an HTTP listener/client pair inside one
process.  Consumers register a listener on ``(host, port, path)``; producers
deliver to the first listener at that address whose filters accept the
message.  Filters come from ``filter.<Header>=<value>`` query parameters
on the consumer's URI, which lets several logical consumers share one
physical listener.

Messages cross the "wire" as copies with string header values, so neither
side can observe the other's later mutations.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import httpx

from knative_router.core.pipeline import Processor
from knative_router.core.resolver import FILTER_PARAM_PREFIX
from knative_router.errors import TransportError
from knative_router.models.message import Message

logger = logging.getLogger(__name__)

_Address = tuple[str, int, str]


def _wire_copy(message: Message) -> Message:
    return Message(
        headers={name: str(value) for name, value in message.headers.items() if value is not None},
        body=message.body,
    )


class _Listener:
    def __init__(self, processor: Processor, filters: dict[str, str]) -> None:
        self.processor = processor
        self.filters = filters

    def accepts(self, message: Message) -> bool:
        return all(
            message.get_header(name) == value for name, value in self.filters.items()
        )


class LocalTransport:
    """Loopback transport keyed by physical address.

    Examples
    --------
    >>> transport = LocalTransport()
    >>> endpoint = transport.endpoint("http://localhost:80/")
    >>> endpoint.start()
    >>> consumer = endpoint.create_consumer(lambda m: None)
    >>> consumer.start()
    >>> transport.listener_count
    1
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: dict[_Address, list[_Listener]] = {}

    def endpoint(self, uri: str) -> LocalEndpoint:
        return LocalEndpoint(self, uri)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return sum(len(listeners) for listeners in self._listeners.values())

    # ------------------------------------------------------------------
    # Internal: listener table
    # ------------------------------------------------------------------

    def _register(self, address: _Address, listener: _Listener) -> None:
        with self._lock:
            self._listeners.setdefault(address, []).append(listener)

    def _unregister(self, address: _Address, listener: _Listener) -> None:
        with self._lock:
            listeners = self._listeners.get(address, [])
            if listener in listeners:
                listeners.remove(listener)
            if not listeners:
                self._listeners.pop(address, None)

    def _deliver(self, address: _Address, message: Message) -> Message:
        with self._lock:
            listeners = list(self._listeners.get(address, []))
        host, port, path = address
        if not listeners:
            raise TransportError(f"No consumer listening on {host}:{port}{path}")

        request = _wire_copy(message)
        for listener in listeners:
            if listener.accepts(request):
                listener.processor(request)
                logger.debug("Delivered message to %s:%d%s", host, port, path)
                return _wire_copy(request)
        raise TransportError(f"No consumer on {host}:{port}{path} accepts the message")

    def __repr__(self) -> str:
        return f"LocalTransport(listeners={self.listener_count})"


class LocalEndpoint:
    """A physical endpoint of a ``LocalTransport``."""

    def __init__(self, transport: LocalTransport, uri: str) -> None:
        url = httpx.URL(uri)
        self._transport = transport
        self._uri = uri
        port = url.port or (443 if url.scheme == "https" else 80)
        self._address: _Address = (url.host, port, url.path or "/")
        self._filters = {
            key[len(FILTER_PARAM_PREFIX):]: value
            for key, value in url.params.multi_items()
            if key.startswith(FILTER_PARAM_PREFIX)
        }
        self._consumers: list[LocalConsumer] = []
        self._started = False

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def filters(self) -> dict[str, str]:
        return dict(self._filters)

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        self._started = True
        logger.debug("Local endpoint %s started.", self._uri)

    def stop(self) -> None:
        for consumer in list(self._consumers):
            consumer.stop()
        self._started = False
        logger.debug("Local endpoint %s stopped.", self._uri)

    def create_producer(self) -> LocalProducer:
        return LocalProducer(self)

    def create_consumer(self, processor: Processor) -> LocalConsumer:
        return LocalConsumer(self, processor)

    def _require_started(self, action: str) -> None:
        if not self._started:
            raise TransportError(f"Cannot {action}: endpoint {self._uri} is not started")

    def __repr__(self) -> str:
        return f"LocalEndpoint(uri={self._uri!r}, started={self._started})"


class LocalProducer:
    def __init__(self, endpoint: LocalEndpoint) -> None:
        self._endpoint = endpoint

    def send(self, message: Message) -> Message:
        self._endpoint._require_started("send")
        return self._endpoint._transport._deliver(self._endpoint._address, message)


class LocalConsumer:
    def __init__(self, endpoint: LocalEndpoint, processor: Processor) -> None:
        self._endpoint = endpoint
        self._listener = _Listener(processor, endpoint._filters)
        self._started = False

    @property
    def started(self) -> bool:
        return self._started

    def start(self) -> None:
        if self._started:
            return
        self._endpoint._require_started("start consumer")
        self._endpoint._transport._register(self._endpoint._address, self._listener)
        self._endpoint._consumers.append(self)
        self._started = True
        logger.info("Consumer listening on %s", self._endpoint.uri)

    def stop(self) -> None:
        if not self._started:
            return
        self._endpoint._transport._unregister(self._endpoint._address, self._listener)
        self._endpoint._consumers.remove(self)
        self._started = False
        logger.info("Consumer on %s stopped", self._endpoint.uri)

    def __enter__(self) -> LocalConsumer:
        self.start()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.stop()
