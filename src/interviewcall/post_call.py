import json
import logging
from typing import Optional

from interviewcall.session import CallSession
from interviewcall.transcript import to_json_array, to_timestamped_dump
from interviewcall.tools import BackendClient

logger = logging.getLogger(__name__)


def build_feedback_payload(session: CallSession, interview_id: str, user_id: str) -> dict:
    """Build the feedback request body from a finished interview session."""
    return {
        "interviewId": interview_id,
        "userId": user_id,
        "transcript": to_json_array(session.transcript_log),
    }


def chunk_transcript_dump(dump: dict, max_bytes: int = 3500) -> list[str]:
    """Split a transcript dump into chunks that fit within log line limits.

    Each chunk is a string: TRANSCRIPT_DUMP|N/M|{json}
    The first chunk carries the header fields and as many entries as fit;
    later chunks carry only entries.
    """
    header = {k: v for k, v in dump.items() if k != "entries"}
    entries = dump.get("entries", [])

    if not entries:
        payload = json.dumps({**header, "entries": []})
        return [f"TRANSCRIPT_DUMP|1/1|{payload}"]

    chunks_entries: list[list[dict]] = []
    current_chunk: list[dict] = []
    current_size = len(json.dumps({**header, "entries": []}).encode("utf-8"))

    for entry in entries:
        entry_size = len(json.dumps(entry).encode("utf-8")) + 2  # separator overhead

        if current_chunk and (current_size + entry_size) > max_bytes:
            chunks_entries.append(current_chunk)
            current_chunk = []
            current_size = len(json.dumps({"entries": []}).encode("utf-8"))

        current_chunk.append(entry)
        current_size += entry_size

    if current_chunk:
        chunks_entries.append(current_chunk)

    total = len(chunks_entries)
    result = []
    for i, chunk_entries in enumerate(chunks_entries):
        if i == 0:
            payload = json.dumps({**header, "entries": chunk_entries})
        else:
            payload = json.dumps({"entries": chunk_entries})
        result.append(f"TRANSCRIPT_DUMP|{i + 1}/{total}|{payload}")

    return result


def log_transcript_dump(session: CallSession) -> None:
    """Emit the attempt's transcript as TRANSCRIPT_DUMP log lines."""
    dump = to_timestamped_dump(
        session.transcript_log,
        start_time=session.start_time,
        attempt=session.attempt,
        mode=session.mode.value,
        final_status=session.status.value,
    )
    if session.start_time > 0 and session.end_time > 0:
        dump["duration_s"] = round(session.end_time - session.start_time, 1)
    else:
        dump["duration_s"] = 0
    for line in chunk_transcript_dump(dump):
        logger.info(line)


async def handle_call_finished(
    session: CallSession,
    client: BackendClient,
    interview_id: str,
    user_id: str,
) -> Optional[str]:
    """Request feedback for a finished interview; return the feedback id.

    Returns None when the request fails or the backend reports no id.
    """
    if not interview_id:
        logger.warning("[attempt %d] no interview id, skipping feedback", session.attempt)
        return None

    payload = build_feedback_payload(session, interview_id, user_id)
    if not payload["transcript"]:
        logger.warning("[attempt %d] empty transcript, requesting feedback anyway", session.attempt)

    result = await client.create_feedback(
        interview_id=payload["interviewId"],
        user_id=payload["userId"],
        transcript=payload["transcript"],
    )
    logger.info("[attempt %d] feedback result: %s", session.attempt, result)

    feedback_id = result.get("feedbackId")
    if result.get("success") and isinstance(feedback_id, str) and feedback_id:
        return feedback_id
    return None
