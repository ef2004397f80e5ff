"""
UDP Event Transport
===================

Best-effort broadcast of setpoint changes to off-process listeners.
A datagram carries one JSON-encoded SetpointChanged event. Delivery is
fire-and-forget: nothing is retried and no failure reaches the caller.
"""

from __future__ import annotations

import logging
import socket
from typing import Callable, Optional

from pydantic import ValidationError

from ..config import EventTransportSettings
from .setpoints import NotificationSink, SetpointChanged, SetpointEventBus

logger = logging.getLogger(__name__)

MAX_DATAGRAM_BYTES = 65507


class UdpBroadcaster:
    """
    Sink adapter that sends each event as a single UDP datagram.

    The destination is resolved once, when the broadcaster is created, and
    events go out over one non-blocking socket. A host that cannot be
    resolved disables sending for the lifetime of the broadcaster.
    """

    def __init__(self, settings: Optional[EventTransportSettings] = None):
        self.settings = settings or EventTransportSettings.from_env()
        self._address: Optional[tuple] = None
        self._sock: Optional[socket.socket] = None
        if self.settings.enabled:
            self._open()

    def _open(self) -> None:
        host, port = self.settings.host, self.settings.port
        try:
            family, _, _, _, address = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
            sock = socket.socket(family, socket.SOCK_DGRAM)
        except OSError as e:
            logger.warning("Setpoint events disabled, cannot reach udp://%s:%s: %s", host, port, e)
            return
        sock.setblocking(False)
        self._address = address
        self._sock = sock

    @property
    def enabled(self) -> bool:
        return self._sock is not None

    def send(self, event: SetpointChanged) -> bool:
        """
        Send one event without blocking.

        Returns:
            True if the datagram was handed to the OS, False otherwise
        """
        if self._sock is None:
            return False
        try:
            self._sock.sendto(event.to_json().encode("utf-8"), self._address)
            return True
        except Exception as e:
            logger.debug(
                "Dropped setpoint event for %s to udp://%s:%s: %s",
                event.participant_id, self.settings.host, self.settings.port, e,
            )
            return False

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None

    def __call__(self, event: SetpointChanged) -> None:
        self.send(event)


class SetpointNotifier:
    """
    Notification sink handed to the control engine.

    Publishes every event to the in-process bus, then best-effort to the
    optional external transport.
    """

    def __init__(
        self,
        bus: Optional[SetpointEventBus] = None,
        transport: Optional[NotificationSink] = None,
    ):
        self.bus = bus if bus is not None else SetpointEventBus()
        self.transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Optional[EventTransportSettings] = None,
        bus: Optional[SetpointEventBus] = None,
    ) -> "SetpointNotifier":
        settings = settings or EventTransportSettings.from_env()
        transport = UdpBroadcaster(settings) if settings.enabled else None
        return cls(bus=bus, transport=transport)

    def subscribe(self, listener: NotificationSink) -> Callable[[], None]:
        return self.bus.subscribe(listener)

    def __call__(self, event: SetpointChanged) -> None:
        self.bus.publish(event)
        if self.transport is None:
            return
        try:
            self.transport(event)
        except Exception as e:
            logger.debug("Event transport failed for %s: %s", event.participant_id, e)

    def close(self) -> None:
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()


def receive_events(
    sock: socket.socket,
    handler: NotificationSink,
    max_messages: Optional[int] = None,
) -> int:
    """
    Decode setpoint events from a bound UDP socket and pass them to a handler.

    Undecodable datagrams are logged and skipped. A socket timeout ends
    the loop.

    Returns:
        Number of events handed to the handler
    """
    handled = 0
    received = 0
    while max_messages is None or received < max_messages:
        try:
            data, remote = sock.recvfrom(MAX_DATAGRAM_BYTES)
        except socket.timeout:
            break
        received += 1
        try:
            event = SetpointChanged.from_json(data)
        except ValidationError as e:
            logger.warning("Invalid event from %s:%s: %s", remote[0], remote[1], e)
            continue
        handler(event)
        handled += 1
    return handled


def listen(
    host: str,
    port: int,
    handler: NotificationSink,
    max_messages: Optional[int] = None,
    timeout: Optional[float] = None,
) -> int:
    """
    Bind a UDP socket and receive setpoint events until stopped.

    Args:
        host: Address to bind
        port: Port to bind
        handler: Called for every decoded event
        max_messages: Stop after this many datagrams (None = forever)
        timeout: Socket receive timeout in seconds (None = block)

    Returns:
        Number of events handed to the handler
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind((host, port))
        sock.settimeout(timeout)
        logger.info("Listening for setpoint events on udp://%s:%s", host, port)
        return receive_events(sock, handler, max_messages)
