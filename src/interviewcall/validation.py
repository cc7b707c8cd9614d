import json
import logging
import re

logger = logging.getLogger(__name__)


def strip_keywords(text: str, keywords: set[str] | frozenset[str]) -> str:
    """Remove every keyword that appears in text as a whole word (not substring).

    Longer keywords are removed first so "uh-huh" is not split by "uh".
    """
    result = text.lower()
    for kw in sorted(keywords, key=len, reverse=True):
        result = re.sub(rf"\b{re.escape(kw)}\b", " ", result)
    return result


# Acknowledgements the assistant's prompts tend to draw out between questions.
FILLER_PHRASES = frozenset({
    "yes", "yeah", "yep", "yup", "ok", "okay", "sure", "alright", "right",
    "got it", "sounds good", "cool", "great", "fine", "thanks", "thank you",
    "hello", "hi", "hey", "uh-huh", "mm-hmm", "hmm", "um", "uh",
})

# Utterances at or above this length always count as content.
FILLER_MAX_LENGTH = 12

# Channel error messages that mean the call is gone for good.
FATAL_ERROR_MARKERS = (
    "ejection",
    "ejected",
    "meeting has ended",
    "meeting ended",
)


def normalize_utterance(text: str) -> str:
    """Trim, lowercase and strip surrounding punctuation."""
    return text.strip().lower().strip(" .,!?;:\"'")


def is_filler(text: str) -> bool:
    """True for short utterances made up only of acknowledgements.

    "yes" and "ok, got it" are filler; "Yes, Go" still carries an answer.
    """
    normalized = normalize_utterance(text)
    if not normalized:
        return True
    if len(normalized) >= FILLER_MAX_LENGTH:
        return False
    if normalized in FILLER_PHRASES:
        return True
    leftover = strip_keywords(normalized, FILLER_PHRASES)
    return not re.sub(r"[\W_]+", "", leftover)


def error_message(error) -> str:
    """Pull a readable message out of whatever the channel reported."""
    if error is None:
        return ""
    if isinstance(error, BaseException):
        return str(error)
    if isinstance(error, dict):
        for key in ("message", "errorMsg", "error"):
            value = error.get(key)
            if isinstance(value, dict):
                nested = error_message(value)
                if nested:
                    return nested
            elif value:
                return str(value)
        return ""
    return str(error)


def is_fatal_channel_error(message: str) -> bool:
    lower = message.lower()
    return any(marker in lower for marker in FATAL_ERROR_MARKERS)


def parse_techstack(techstack) -> list[str]:
    """Accept a list or a comma-separated string; anything else is empty."""
    if isinstance(techstack, (list, tuple)):
        return [str(t).strip() for t in techstack if str(t).strip()]
    if isinstance(techstack, str) and techstack.strip():
        return [t.strip() for t in techstack.split(",") if t.strip()]
    if techstack:
        logger.warning("Invalid techstack value: %r (%s)", techstack, type(techstack).__name__)
    return []


def _strip_fence(raw: str) -> str:
    text = raw.strip()
    fenced = re.match(r"^```(?:json)?\s*(.*?)\s*```$", text, re.DOTALL)
    if fenced:
        return fenced.group(1)
    return text


def parse_questions(raw: str) -> list[str]:
    """Parse the model's JSON array of questions.

    Models sometimes wrap the array in a markdown fence; that is stripped.
    Anything that still is not a JSON list degrades to an empty list.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(_strip_fence(raw))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error("Failed to parse generated questions: %s (%s)", raw[:200], e)
        return []
    if not isinstance(parsed, list):
        logger.error("Generated questions are not a list: %s", raw[:200])
        return []
    return [str(q).strip() for q in parsed if str(q).strip()]


def _score(value) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        score = round(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return max(0, min(100, score))


def _string_list(value) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item).strip() for item in value if str(item).strip()]


def parse_feedback(raw: str) -> dict | None:
    """Parse the model's JSON feedback object.

    Returns None unless the content is a JSON object with a numeric
    ``totalScore``. Scores are clamped to 0-100; category entries without a
    usable score are dropped.
    """
    if not raw:
        return None
    try:
        parsed = json.loads(_strip_fence(raw))
    except (json.JSONDecodeError, TypeError) as e:
        logger.error("Failed to parse generated feedback: %s (%s)", raw[:200], e)
        return None
    if not isinstance(parsed, dict):
        logger.error("Generated feedback is not an object: %s", raw[:200])
        return None

    total = _score(parsed.get("totalScore"))
    if total is None:
        logger.error("Generated feedback has no usable totalScore: %r", parsed.get("totalScore"))
        return None

    categories = []
    for item in parsed.get("categoryScores") or []:
        if not isinstance(item, dict):
            continue
        score = _score(item.get("score"))
        if score is None or not item.get("name"):
            continue
        categories.append({
            "name": str(item["name"]),
            "score": score,
            "comment": str(item.get("comment") or ""),
        })

    return {
        "totalScore": total,
        "categoryScores": categories,
        "strengths": _string_list(parsed.get("strengths")),
        "areasForImprovement": _string_list(parsed.get("areasForImprovement")),
        "finalAssessment": str(parsed.get("finalAssessment") or ""),
    }
