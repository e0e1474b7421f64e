"""
Typed events delivered by a voice session transport.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class TransportEventType(str, Enum):
    """Kinds of events a session transport emits."""
    CALL_START = "call-start"
    CALL_END = "call-end"
    MESSAGE = "message"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    ERROR = "error"


class MessageType(str, Enum):
    """Kinds of in-call messages."""
    TRANSCRIPT = "transcript"
    FUNCTION_CALL = "function-call"


class MessageRole(str, Enum):
    USER = "user"
    SYSTEM = "system"
    ASSISTANT = "assistant"


class TranscriptType(str, Enum):
    PARTIAL = "partial"
    FINAL = "final"


@dataclass
class TranscriptUpdate:
    """Speech-to-text output for one utterance."""
    role: MessageRole
    transcript_type: TranscriptType
    transcript: str
    type: MessageType = field(default=MessageType.TRANSCRIPT, init=False)

    @property
    def is_final(self) -> bool:
        return self.transcript_type == TranscriptType.FINAL


@dataclass
class FunctionCall:
    """The assistant invoked a tool."""
    name: str
    parameters: Any = None
    type: MessageType = field(default=MessageType.FUNCTION_CALL, init=False)


SessionMessage = Union[TranscriptUpdate, FunctionCall]


@dataclass
class TransportEvent:
    """One event from the transport channel."""
    event_type: TransportEventType
    message: Optional[SessionMessage] = None
    error: Optional[str] = None
    call_id: Optional[str] = None

    @classmethod
    def call_started(cls, call_id: Optional[str] = None) -> 'TransportEvent':
        return cls(TransportEventType.CALL_START, call_id=call_id)

    @classmethod
    def call_ended(cls, call_id: Optional[str] = None) -> 'TransportEvent':
        return cls(TransportEventType.CALL_END, call_id=call_id)

    @classmethod
    def message_received(cls, message: SessionMessage, call_id: Optional[str] = None) -> 'TransportEvent':
        return cls(TransportEventType.MESSAGE, message=message, call_id=call_id)

    @classmethod
    def speech_started(cls, call_id: Optional[str] = None) -> 'TransportEvent':
        return cls(TransportEventType.SPEECH_START, call_id=call_id)

    @classmethod
    def speech_ended(cls, call_id: Optional[str] = None) -> 'TransportEvent':
        return cls(TransportEventType.SPEECH_END, call_id=call_id)

    @classmethod
    def failed(cls, error: str, call_id: Optional[str] = None) -> 'TransportEvent':
        return cls(TransportEventType.ERROR, error=error, call_id=call_id)
