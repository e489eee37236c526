"""httpx-backed transport for the producer side.

The resolved URI carries transport options as query parameters.  A few of
them configure the client and are consumed here; ``filter.*`` parameters
only concern listeners and are dropped.  Everything else is sent on to the
server unchanged.

Receiving requires an HTTP server, which this package does not provide:
``create_consumer`` raises ``TransportError``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, NoReturn

import httpx

from knative_router.core.pipeline import Processor
from knative_router.core.resolver import FILTER_PARAM_PREFIX
from knative_router.errors import ConfigError, TransportError
from knative_router.models.message import Message

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0


def _flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _seconds(key: str, value: str, uri: str) -> float:
    try:
        seconds = float(value)
    except ValueError as exc:
        raise ConfigError(f"Invalid {key} option {value!r} in {uri}: not a number") from exc
    if seconds <= 0:
        raise ConfigError(f"Invalid {key} option {value!r} in {uri}: must be positive")
    return seconds


def _encode_body(body: Any) -> bytes:
    if body is None:
        return b""
    if isinstance(body, (bytes, bytearray)):
        return bytes(body)
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


class HttpTransport:
    """Creates ``HttpEndpoint`` instances sharing client settings.

    Parameters
    ----------
    transport:
        Optional httpx transport, e.g. ``httpx.MockTransport`` in tests.
    timeout:
        Default request timeout in seconds; a ``timeout`` query option on
        the endpoint URI overrides it.
    """

    def __init__(
        self,
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._transport = transport
        self._timeout = timeout

    def endpoint(self, uri: str) -> HttpEndpoint:
        return HttpEndpoint(
            uri, transport=self._transport, default_timeout=self._timeout
        )


class HttpEndpoint:
    """One physical HTTP target; owns an ``httpx.Client`` while started."""

    def __init__(
        self,
        uri: str,
        *,
        transport: httpx.BaseTransport | None = None,
        default_timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        url = httpx.URL(uri)
        params: list[tuple[str, str]] = []
        client_options: dict[str, Any] = {"timeout": default_timeout}
        for key, value in url.params.multi_items():
            if key.startswith(FILTER_PARAM_PREFIX):
                continue
            if key == "timeout":
                client_options["timeout"] = _seconds(key, value, uri)
            elif key == "followRedirects":
                client_options["follow_redirects"] = _flag(value)
            elif key == "verify":
                client_options["verify"] = _flag(value)
            else:
                params.append((key, value))
        if transport is not None:
            client_options["transport"] = transport

        self._uri = uri
        self._target = url.copy_with(params=params)
        self._client_options = client_options
        self._client: httpx.Client | None = None

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def target(self) -> str:
        """The URL requests are actually sent to."""
        return str(self._target)

    @property
    def started(self) -> bool:
        return self._client is not None

    def start(self) -> None:
        if self._client is None:
            self._client = httpx.Client(**self._client_options)
            logger.debug("HTTP endpoint %s started.", self._uri)

    def stop(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("HTTP endpoint %s stopped.", self._uri)

    def create_producer(self) -> HttpProducer:
        return HttpProducer(self)

    def create_consumer(self, processor: Processor) -> NoReturn:
        raise TransportError(
            f"Cannot consume from {self._uri}: HttpTransport only supports producers"
        )

    def __repr__(self) -> str:
        return f"HttpEndpoint(uri={self._uri!r}, started={self.started})"


class HttpProducer:
    """POSTs messages to the endpoint target and returns the reply."""

    def __init__(self, endpoint: HttpEndpoint) -> None:
        self._endpoint = endpoint

    def send(self, message: Message) -> Message:
        client = self._endpoint._client
        if client is None:
            raise TransportError(f"Cannot send: endpoint {self._endpoint.uri} is not started")
        headers = {
            name: str(value) for name, value in message.headers.items() if value is not None
        }
        try:
            response = client.post(
                self._endpoint._target, content=_encode_body(message.body), headers=headers
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise TransportError(f"POST {self._endpoint.target} failed: {exc}") from exc

        logger.debug(
            "POST %s -> %d (%d bytes)",
            self._endpoint.target,
            response.status_code,
            len(response.content),
        )
        return Message(headers=dict(response.headers), body=response.content)

