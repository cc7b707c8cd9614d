from interviewcall.states import Speaker

_LABELS = {
    Speaker.ASSISTANT.value: "Interviewer",
    Speaker.USER.value: "Candidate",
    Speaker.SYSTEM.value: "System",
}


def to_plain_text(log: list[dict]) -> str:
    """Convert transcript log to plain text.

    Assistant lines are prefixed with "Interviewer:", user lines with
    "Candidate:", system lines with "System:".
    """
    if not log:
        return ""

    lines = []
    for entry in log:
        label = _LABELS.get(entry.get("role", ""))
        if label:
            lines.append(f"{label}: {entry['content']}")
    return "\n".join(lines)


def to_json_array(log: list[dict]) -> list[dict]:
    """Convert transcript log to the {role, content} list sent for feedback.

    System lines are dropped; only the conversation is scored.
    """
    if not log:
        return []

    return [
        {"role": entry["role"], "content": entry["content"]}
        for entry in log
        if entry.get("role") in (Speaker.USER.value, Speaker.ASSISTANT.value)
    ]


def to_timestamped_dump(
    log: list[dict],
    start_time: float,
    attempt: int,
    mode: str,
    final_status: str,
) -> dict:
    """Build a timestamped transcript dump dict for structured logging.

    Timestamps are converted to relative seconds from call start.
    If start_time is 0, uses the first entry's timestamp as base.
    Entries missing a timestamp key are skipped.
    """
    base_time = start_time
    if base_time <= 0 and log:
        for entry in log:
            if "timestamp" in entry:
                base_time = entry["timestamp"]
                break

    entries = []
    for entry in log:
        if "timestamp" not in entry:
            continue
        entries.append({
            "t": round(entry["timestamp"] - base_time, 1),
            "role": entry["role"],
            "content": entry.get("content", ""),
        })

    return {
        "attempt": attempt,
        "mode": mode,
        "final_status": final_status,
        "entries": entries,
    }
