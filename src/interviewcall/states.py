from enum import Enum

TERMINAL_STATES = {"finished", "ejected"}
STARTABLE_STATES = {"idle", "finished", "ejected"}
LIVE_STATES = {"connecting", "active"}


class CallStatus(Enum):
    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    FINISHED = "finished"
    EJECTED = "ejected"

    @property
    def is_terminal(self) -> bool:
        return self.value in TERMINAL_STATES

    @property
    def can_start(self) -> bool:
        return self.value in STARTABLE_STATES

    @property
    def is_live(self) -> bool:
        return self.value in LIVE_STATES


class SessionMode(Enum):
    GENERATE = "generate"
    INTERVIEW = "interview"


class Speaker(Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
