"""Message bus contract used by devices and properties."""

from __future__ import annotations

import asyncio
from typing import Protocol

from .exceptions import TransportError
from .types import PublishCallback


class MessageBusClient(Protocol):
    """Publish/subscribe client a device talks to.

    Callbacks receive ``None`` once the broker acknowledged the request, or the
    exception describing why it failed. They may be invoked from any thread.
    """

    def subscribe(self, topic: str, on_done: PublishCallback) -> None:
        """Subscribe to ``topic``."""

    def unsubscribe(self, topic: str) -> None:
        """Stop receiving messages for ``topic``."""

    def publish(self, topic: str, payload: str, on_done: PublishCallback) -> None:
        """Publish ``payload`` on ``topic``."""


async def async_publish(
    client: MessageBusClient,
    topic: str,
    payload: str,
    device_id: str | None = None,
) -> None:
    """Publish and wait for the acknowledgement.

    Raises TransportError carrying the underlying failure when the client
    refuses the publish or reports it as failed. There is no timeout: an
    acknowledgement that never arrives leaves the caller waiting.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[None] = loop.create_future()

    def _resolve(error: Exception | None) -> None:
        if future.done():
            return
        if error is None:
            future.set_result(None)
        else:
            future.set_exception(
                TransportError(
                    f"Could not publish to {topic}: {error}", error, device_id
                )
            )

    def _on_done(error: Exception | None) -> None:
        loop.call_soon_threadsafe(_resolve, error)

    try:
        client.publish(topic, payload, _on_done)
    except (OSError, ValueError) as err:
        raise TransportError(f"Could not publish to {topic}: {err}", err, device_id) from err

    await future
