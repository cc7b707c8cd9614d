"""Contract with the external real-time voice channel.

The controller only depends on start/stop and the on/off event
subscription surface below; transport details stay inside the channel.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Protocol

from interviewcall.states import Speaker

logger = logging.getLogger(__name__)

CALL_START = "call-start"
CALL_END = "call-end"
MESSAGE = "message"
SPEECH_START = "speech-start"
SPEECH_END = "speech-end"
ERROR = "error"
CALL_START_SUCCESS = "call-start-success"
CALL_START_FAILED = "call-start-failed"

CHANNEL_EVENTS = (
    CALL_START,
    CALL_END,
    MESSAGE,
    SPEECH_START,
    SPEECH_END,
    ERROR,
    CALL_START_SUCCESS,
    CALL_START_FAILED,
)


class VoiceChannel(Protocol):
    async def start(self, target_id: str, parameters: dict) -> Any: ...

    async def stop(self) -> None: ...

    def on(self, event: str, handler: Callable) -> None: ...

    def off(self, event: str, handler: Callable) -> None: ...


class EventKind(Enum):
    CALL_START = "call-start"
    CALL_END = "call-end"
    PARTIAL_TRANSCRIPT = "partial-transcript"
    FINAL_TRANSCRIPT = "final-transcript"
    SPEECH_START = "speech-start"
    SPEECH_END = "speech-end"
    ERROR = "error"
    START_FAILED = "start-failed"

    @property
    def proves_live_call(self) -> bool:
        """Events that can only arrive once audio is flowing."""
        return self in (
            EventKind.PARTIAL_TRANSCRIPT,
            EventKind.FINAL_TRANSCRIPT,
            EventKind.SPEECH_START,
            EventKind.SPEECH_END,
        )


@dataclass(frozen=True)
class ChannelEvent:
    kind: EventKind
    speaker: Optional[Speaker] = None
    text: str = ""
    error: Any = None


def parse_channel_message(message: dict) -> Optional[ChannelEvent]:
    """Translate a raw ``message`` payload into a ChannelEvent.

    Returns None for message types the controller does not act on
    (function calls, status updates, conversation snapshots, ...).
    """
    if not isinstance(message, dict):
        return None

    msg_type = message.get("type")
    if msg_type == "transcript":
        try:
            speaker = Speaker(message.get("role"))
        except ValueError:
            logger.warning("Transcript with unknown role: %r", message.get("role"))
            return None
        text = message.get("transcript") or ""
        transcript_type = message.get("transcriptType")
        if transcript_type == "partial":
            return ChannelEvent(EventKind.PARTIAL_TRANSCRIPT, speaker=speaker, text=text)
        if transcript_type == "final":
            return ChannelEvent(EventKind.FINAL_TRANSCRIPT, speaker=speaker, text=text)
        logger.debug("Ignoring transcript of type %r", transcript_type)
        return None

    if msg_type == "speech-update":
        status = message.get("status")
        if status == "started":
            return ChannelEvent(EventKind.SPEECH_START)
        if status == "stopped":
            return ChannelEvent(EventKind.SPEECH_END)
        return None

    return None


class ChannelSubscription:
    """Scoped set of handlers registered on a channel for one call attempt.

    Handlers are registered once on ``open()`` (or ``with`` entry) and all
    removed on ``close()``. Closing twice is harmless.
    """

    def __init__(self, channel: VoiceChannel, handlers: dict[str, Callable]):
        self.channel = channel
        self.handlers = dict(handlers)
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def open(self) -> "ChannelSubscription":
        if self._active:
            return self
        for event, handler in self.handlers.items():
            self.channel.on(event, handler)
        self._active = True
        return self

    def close(self) -> None:
        if not self._active:
            return
        self._active = False
        for event, handler in self.handlers.items():
            try:
                self.channel.off(event, handler)
            except Exception as e:
                logger.warning("Failed to unsubscribe %s handler: %s", event, e)

    def __enter__(self) -> "ChannelSubscription":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
