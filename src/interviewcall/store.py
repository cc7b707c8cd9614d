import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Optional, Protocol

logger = logging.getLogger(__name__)

INTERVIEW_COVERS = [
    "/adobe.png",
    "/amazon.png",
    "/facebook.png",
    "/hostinger.png",
    "/pinterest.png",
    "/quora.png",
    "/reddit.png",
    "/skype.png",
    "/spotify.png",
    "/telegram.png",
    "/tiktok.png",
    "/yahoo.png",
]


def random_interview_cover() -> str:
    return f"/covers{random.choice(INTERVIEW_COVERS)}"


def build_interview_record(
    role: str,
    type: str,
    level: str,
    techstack: list[str],
    questions: list[str],
    user_id: Optional[str] = None,
    include_user: bool = False,
) -> dict:
    """Build the persisted interview document.

    ``userId`` is only present when the caller supplied one (even if null).
    """
    record = {
        "role": role,
        "type": type,
        "level": level,
        "techstack": techstack,
        "questions": questions,
        "finalized": True,
        "coverImage": random_interview_cover(),
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }
    if include_user:
        record["userId"] = user_id
    return record


def build_feedback_record(interview_id: str, user_id: Optional[str], feedback: dict) -> dict:
    """Build the persisted feedback document for one interview."""
    return {
        "interviewId": interview_id,
        "userId": user_id,
        "totalScore": feedback["totalScore"],
        "categoryScores": feedback.get("categoryScores", []),
        "strengths": feedback.get("strengths", []),
        "areasForImprovement": feedback.get("areasForImprovement", []),
        "finalAssessment": feedback.get("finalAssessment", ""),
        "createdAt": datetime.now(timezone.utc).isoformat(),
    }


class InterviewStore(Protocol):
    async def add(self, record: dict) -> str: ...

    async def get(self, interview_id: str) -> Optional[dict]: ...

    async def list_by_user(self, user_id: str) -> list[dict]: ...

    async def list_latest(self, user_id: str, limit: int = 20) -> list[dict]: ...

    async def add_feedback(self, record: dict) -> str: ...

    async def get_feedback_by_interview(self, interview_id: str) -> Optional[dict]: ...


class InMemoryInterviewStore:
    """Process-local interview storage for development and tests."""

    def __init__(self):
        self._records: dict[str, dict] = {}
        self._feedback: dict[str, dict] = {}

    async def add(self, record: dict) -> str:
        interview_id = uuid.uuid4().hex
        self._records[interview_id] = dict(record)
        logger.info("Interview saved with id %s", interview_id)
        return interview_id

    async def get(self, interview_id: str) -> Optional[dict]:
        record = self._records.get(interview_id)
        if record is None:
            return None
        return {"id": interview_id, **record}

    async def list_by_user(self, user_id: str) -> list[dict]:
        """All of a user's interviews, newest first."""
        found = [
            {"id": iid, **rec}
            for iid, rec in self._records.items()
            if rec.get("userId") == user_id
        ]
        return sorted(found, key=lambda r: r.get("createdAt", ""), reverse=True)

    async def list_latest(self, user_id: str, limit: int = 20) -> list[dict]:
        """Finalized interviews by other users, newest first."""
        found = [
            {"id": iid, **rec}
            for iid, rec in self._records.items()
            if rec.get("finalized") and rec.get("userId") != user_id
        ]
        found.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
        return found[:limit]

    async def add_feedback(self, record: dict) -> str:
        feedback_id = uuid.uuid4().hex
        self._feedback[feedback_id] = dict(record)
        logger.info("Feedback saved with id %s for interview %s", feedback_id, record.get("interviewId"))
        return feedback_id

    async def get_feedback_by_interview(self, interview_id: str) -> Optional[dict]:
        """Most recent feedback stored for the interview, or None."""
        found = [
            {"id": fid, **rec}
            for fid, rec in self._feedback.items()
            if rec.get("interviewId") == interview_id
        ]
        if not found:
            return None
        return max(found, key=lambda r: r.get("createdAt", ""))
