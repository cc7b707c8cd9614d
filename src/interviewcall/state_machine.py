import logging
import time

from interviewcall.session import CallSession
from interviewcall.states import CallStatus

logger = logging.getLogger(__name__)


class InvalidTransition(Exception):
    """Raised when a caller forces an edge that is not in TRANSITIONS."""

    def __init__(self, current: CallStatus, target: CallStatus):
        super().__init__(f"Cannot transition from {current.value} to {target.value}")
        self.current = current
        self.target = target


TRANSITIONS = {
    CallStatus.IDLE: {CallStatus.CONNECTING},
    CallStatus.CONNECTING: {CallStatus.ACTIVE, CallStatus.EJECTED, CallStatus.IDLE},
    CallStatus.ACTIVE: {CallStatus.FINISHED, CallStatus.EJECTED, CallStatus.IDLE},
    CallStatus.FINISHED: {CallStatus.CONNECTING},
    CallStatus.EJECTED: {CallStatus.CONNECTING},
}


def valid_transitions(status: CallStatus) -> set[CallStatus]:
    return TRANSITIONS.get(status, set())


def can_transition(session: CallSession, new_status: CallStatus) -> bool:
    return new_status in valid_transitions(session.status)


def transition(session: CallSession, new_status: CallStatus, reason: str = "") -> None:
    """Move ``session`` to ``new_status`` or raise InvalidTransition."""
    if not can_transition(session, new_status):
        raise InvalidTransition(session.status, new_status)

    old = session.status
    session.status = new_status
    if new_status == CallStatus.CONNECTING:
        session.start_time = time.time()
    elif new_status.is_terminal:
        session.end_time = time.time()
    if new_status != CallStatus.ACTIVE:
        session.partial_text = ""
        session.partial_speaker = None
        session.assistant_speaking = False

    logger.info(
        "[attempt %d] %s -> %s%s",
        session.attempt,
        old.value,
        new_status.value,
        f" ({reason})" if reason else "",
    )


def try_transition(session: CallSession, new_status: CallStatus, reason: str = "") -> bool:
    """Transition if legal; otherwise log and leave the session untouched."""
    if not can_transition(session, new_status):
        logger.debug(
            "[attempt %d] ignoring %s -> %s (%s)",
            session.attempt,
            session.status.value,
            new_status.value,
            reason or "not allowed",
        )
        return False
    transition(session, new_status, reason)
    return True
