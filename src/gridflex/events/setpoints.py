"""
Setpoint Change Events
======================

Structured notifications emitted by the control engine whenever a
participant's setpoint actually moves, plus the in-process bus that
delivers them synchronously to subscribers.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

EVENT_NAME = "participant.setpoint.changed"


def utc_ms() -> int:
    return int(time.time() * 1000)


class SetpointChangeReason(str, Enum):
    RESTRICT = "RESTRICT"
    RELEASE = "RELEASE"


class SetpointChanged(BaseModel):
    """One participant setpoint change caused by one congestion point."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: Literal["participant.setpoint.changed"] = EVENT_NAME
    participant_id: str
    cp_id: str
    reason: SetpointChangeReason
    old_setpoint: float
    new_setpoint: float
    flex_reduced: Optional[float] = Field(None, description="Measured flex use taken away (RESTRICT only).")
    cycle_ts: int = Field(..., description="Timestamp (epoch ms) of the control cycle.")
    emitted_at: int = Field(default_factory=utc_ms, description="Wall-clock emission time (epoch ms).")

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "SetpointChanged":
        return cls.model_validate_json(raw)


NotificationSink = Callable[[SetpointChanged], None]


class SetpointEventBus:
    """
    Synchronous in-process publish/subscribe for setpoint changes.

    Listeners run in subscription order on the publishing thread; an
    exception raised by a listener propagates to the publisher. When the
    publisher is the control engine, the pass that emitted the event stops
    there and the topology keeps whatever setpoints and state it had
    already changed.
    """

    def __init__(self):
        self._listeners: List[NotificationSink] = []

    def __len__(self) -> int:
        return len(self._listeners)

    def subscribe(self, listener: NotificationSink) -> Callable[[], None]:
        """
        Register a listener.

        Returns:
            Callable that removes the listener again
        """
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: NotificationSink) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def publish(self, event: SetpointChanged) -> None:
        for listener in list(self._listeners):
            listener(event)

    __call__ = publish
