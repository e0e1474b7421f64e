"""
Session transport contract and its event channel.
"""
import logging
import queue
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

from .events import TransportEvent

logger = logging.getLogger("transport")


class SessionTarget(str, Enum):
    """What a call is started against."""
    ASSISTANT = "assistant"
    WORKFLOW = "workflow"


class SessionTransport(ABC):
    """
    A real-time voice session.

    Implementations start and stop calls; everything the call reports back
    is pushed onto ``events`` and consumed by the lifecycle controller.
    """

    def __init__(self):
        self.events: "queue.Queue[TransportEvent]" = queue.Queue()

    @abstractmethod
    def start(self,
              target: str,
              variables: Dict[str, Any],
              target_kind: SessionTarget = SessionTarget.ASSISTANT) -> Optional[str]:
        """
        Start a call.

        Returns:
            Call id assigned by the transport, if any

        Raises:
            TransportError: If the call could not be started
        """

    @abstractmethod
    def stop(self) -> None:
        """End the current call."""

    def emit(self, event: TransportEvent) -> None:
        """Push an event onto the channel."""
        logger.debug("Transport event: %s", event.event_type.value)
        self.events.put(event)

    def next_event(self, timeout: Optional[float] = None) -> Optional[TransportEvent]:
        """Block for the next event, or return None after ``timeout`` seconds."""
        try:
            return self.events.get(timeout=timeout)
        except queue.Empty:
            return None

    def pending_events(self) -> List[TransportEvent]:
        """Take every event already queued without waiting."""
        pending = []
        while True:
            try:
                pending.append(self.events.get_nowait())
            except queue.Empty:
                return pending
