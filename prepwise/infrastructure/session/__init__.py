"""
Voice session transport: event types, the transport contract and Vapi.
"""

from .events import (
    TransportEvent, TransportEventType, MessageType, MessageRole, TranscriptType,
    TranscriptUpdate, FunctionCall, SessionMessage
)
from .transport import SessionTransport, SessionTarget
from .vapi import VapiTransport

__all__ = [
    "TransportEvent", "TransportEventType", "MessageType", "MessageRole", "TranscriptType",
    "TranscriptUpdate", "FunctionCall", "SessionMessage",
    "SessionTransport", "SessionTarget", "VapiTransport",
]
