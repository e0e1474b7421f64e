"""
Vapi voice sessions over the REST API and server-message webhook.

The browser joins the call through ``web_call_url``; Vapi reports call progress
to our webhook, and ``handle_server_message`` turns those reports into
transport events.
"""
import logging
from typing import Any, Dict, Optional

import requests

from .events import (
    TransportEvent, TranscriptUpdate, FunctionCall, MessageRole, TranscriptType
)
from .transport import SessionTransport, SessionTarget
from ...errors import TransportError
from ...config import VAPI_BASE_URL, VAPI_TIMEOUT

logger = logging.getLogger("vapi")


class VapiTransport(SessionTransport):
    """One Vapi web call."""

    def __init__(self, api_key: str, base_url: str = VAPI_BASE_URL, timeout: int = VAPI_TIMEOUT):
        super().__init__()
        if not api_key:
            raise ValueError("api_key is required for Vapi sessions")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.call_id: Optional[str] = None
        self.web_call_url: Optional[str] = None
        self.control_url: Optional[str] = None

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def start(self,
              target: str,
              variables: Dict[str, Any],
              target_kind: SessionTarget = SessionTarget.ASSISTANT) -> Optional[str]:
        if not target:
            raise TransportError(f"No {target_kind.value} id configured for this call")

        if target_kind == SessionTarget.WORKFLOW:
            body = {"workflowId": target, "workflowOverrides": {"variableValues": variables}}
        else:
            body = {"assistantId": target, "assistantOverrides": {"variableValues": variables}}

        try:
            resp = requests.post(f"{self.base_url}/call/web", headers=self._headers(), json=body, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Vapi request failed: {e}") from e
        if resp.status_code >= 400:
            raise TransportError(f"Vapi error {resp.status_code}: {resp.text}")

        call = resp.json()
        self.call_id = call.get("id")
        self.web_call_url = call.get("webCallUrl")
        self.control_url = (call.get("monitor") or {}).get("controlUrl")
        logger.info("Started Vapi call %s against %s %s", self.call_id, target_kind.value, target)
        return self.call_id

    def stop(self) -> None:
        if not self.control_url:
            logger.warning("No control URL for call %s; relying on the client to hang up", self.call_id)
            return
        try:
            resp = requests.post(self.control_url, json={"type": "end-call"}, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Vapi end-call failed: {e}") from e
        if resp.status_code >= 400:
            raise TransportError(f"Vapi end-call error {resp.status_code}: {resp.text}")
        logger.info("Requested end of Vapi call %s", self.call_id)

    @staticmethod
    def call_id_of(payload: Dict[str, Any]) -> Optional[str]:
        """Call id a webhook payload belongs to."""
        message = payload.get("message") or {}
        return (message.get("call") or {}).get("id")

    def handle_server_message(self, payload: Dict[str, Any]) -> Optional[TransportEvent]:
        """
        Translate one webhook payload into a transport event and queue it.

        Returns:
            The queued event, or None if the message is not relevant
        """
        message = payload.get("message") or {}
        kind = message.get("type") or ""
        call_id = self.call_id_of(payload)
        event = None

        if kind == "status-update":
            status = message.get("status")
            if status == "in-progress":
                event = TransportEvent.call_started(call_id)
            elif status == "ended":
                event = TransportEvent.call_ended(call_id)
        elif kind == "end-of-call-report":
            event = TransportEvent.call_ended(call_id)
        elif kind.startswith("transcript"):
            try:
                update = TranscriptUpdate(
                    role=MessageRole(message.get("role")),
                    transcript_type=TranscriptType(message.get("transcriptType")),
                    transcript=message.get("transcript") or "",
                )
            except ValueError as e:
                logger.warning("Malformed transcript message: %s", e)
                return None
            event = TransportEvent.message_received(update, call_id)
        elif kind == "speech-update":
            # Only the interviewer's speech drives the speaking indicator
            if message.get("role") == MessageRole.ASSISTANT.value:
                if message.get("status") == "started":
                    event = TransportEvent.speech_started(call_id)
                elif message.get("status") == "stopped":
                    event = TransportEvent.speech_ended(call_id)
        elif kind == "function-call":
            call = message.get("functionCall") or {}
            event = TransportEvent.message_received(
                FunctionCall(name=call.get("name") or "", parameters=call.get("parameters")), call_id
            )
        elif kind == "hang":
            event = TransportEvent.failed("Assistant stopped responding", call_id)
        elif kind == "conversation-update":
            # Final lines already arrive as transcript messages
            logger.debug("Conversation update for call %s", call_id)
        else:
            logger.debug("Ignoring Vapi server message of type %r", kind)

        if event is not None:
            self.emit(event)
        return event
