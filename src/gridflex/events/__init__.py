"""
Change Notification Layer
=========================

- SetpointChanged: structured setpoint change event
- SetpointEventBus: synchronous in-process subscribers
- UdpBroadcaster: best-effort off-process transport
- SetpointNotifier: the sink the control engine calls
"""

from .setpoints import (
    EVENT_NAME,
    NotificationSink,
    SetpointChangeReason,
    SetpointChanged,
    SetpointEventBus,
)
from .udp import SetpointNotifier, UdpBroadcaster, listen, receive_events

__all__ = [
    "EVENT_NAME",
    "NotificationSink",
    "SetpointChangeReason",
    "SetpointChanged",
    "SetpointEventBus",
    "SetpointNotifier",
    "UdpBroadcaster",
    "listen",
    "receive_events",
]
