from dataclasses import dataclass, field
from typing import Optional

from interviewcall.states import CallStatus, SessionMode, Speaker

SLOT_ORDER = ("role", "type", "level", "techstack", "amount")


def _empty_slots() -> dict:
    return {name: "" for name in SLOT_ORDER}


@dataclass
class CallSession:
    mode: SessionMode = SessionMode.GENERATE
    status: CallStatus = CallStatus.IDLE
    attempt: int = 0

    # Live transcript
    transcript_log: list = field(default_factory=list)
    partial_text: str = ""
    partial_speaker: Optional[Speaker] = None
    assistant_speaking: bool = False

    # Slot filling (generate mode)
    slot_values: dict = field(default_factory=_empty_slots)
    next_slot_index: int = 0

    # Completion trigger
    completion_triggered: bool = False
    completion_pending: bool = False
    result_id: Optional[str] = None

    # Feedback (interview mode)
    feedback_requested: bool = False
    feedback_id: Optional[str] = None

    # Outcome
    navigated_to: str = ""
    error_message: str = ""

    # Call metadata (used in post-call)
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def slot_count(self) -> int:
        return len(self.slot_values)

    @property
    def slots_complete(self) -> bool:
        return self.next_slot_index >= self.slot_count

    def ordered_slots(self) -> list[tuple[str, str]]:
        """Slot (name, value) pairs in question order."""
        return list(self.slot_values.items())

    @property
    def last_message(self) -> str:
        """Most recent finalized utterance, for the live caption."""
        if not self.transcript_log:
            return ""
        return self.transcript_log[-1]["content"]
