import asyncio
import logging
from typing import Optional

from interviewcall.session import CallSession
from interviewcall.tools import BackendClient

logger = logging.getLogger(__name__)


class CompletionTrigger:
    """Once-only guard around the generate-and-persist request.

    ``acquire`` must be called synchronously in the same reaction that saw
    the slots complete; only the caller that gets True may ``fire``.
    """

    def __init__(self, client: BackendClient, settle_delay: float = 2.0):
        self.client = client
        self.settle_delay = settle_delay

    def acquire(self, session: CallSession) -> bool:
        if session.completion_triggered:
            logger.debug("[attempt %d] completion already triggered", session.attempt)
            return False
        if not session.slots_complete:
            logger.warning(
                "[attempt %d] refusing completion with %d/%d slots",
                session.attempt,
                session.next_slot_index,
                session.slot_count,
            )
            return False
        session.completion_triggered = True
        session.completion_pending = True
        return True

    def release(self, session: CallSession) -> None:
        """Allow a later explicit retry after a failed request."""
        session.completion_triggered = False
        session.completion_pending = False

    async def fire(self, session: CallSession, user_id: str) -> Optional[str]:
        """Send the collected slots downstream; return the new interview id.

        Returns None on any failure. The session is not mutated here so the
        caller can discard the outcome if the attempt went stale meanwhile.
        """
        if self.settle_delay > 0:
            # Let the assistant finish its closing line before the call drops.
            await asyncio.sleep(self.settle_delay)

        slots = dict(session.slot_values)
        logger.info("[attempt %d] generating interview from slots: %s", session.attempt, slots)
        result = await self.client.generate_interview(
            role=slots.get("role", ""),
            type=slots.get("type", ""),
            level=slots.get("level", ""),
            techstack=slots.get("techstack", ""),
            amount=slots.get("amount", ""),
            user_id=user_id,
        )

        interview_id = result.get("interviewId")
        if result.get("success") and isinstance(interview_id, str) and interview_id.strip():
            logger.info("[attempt %d] interview generated: %s", session.attempt, interview_id)
            return interview_id

        logger.error("[attempt %d] interview generation failed: %s", session.attempt, result)
        return None
