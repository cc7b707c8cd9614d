"""Route decisions for the end of a call.

The controller never navigates itself; it hands one of these routes to the
navigation collaborator exactly once per attempt.
"""

from typing import Optional

HOME_ROUTE = "/"


def interview_route(interview_id: str) -> str:
    return f"/interview/{interview_id}"


def feedback_route(interview_id: str) -> str:
    return f"/interview/{interview_id}/feedback"


def _usable_id(value: Optional[str]) -> bool:
    return isinstance(value, str) and value.strip() != ""


def route_after_generation(result_id: Optional[str]) -> str:
    """A generated interview opens directly; otherwise go home."""
    if _usable_id(result_id):
        return interview_route(result_id)
    return HOME_ROUTE


def route_after_interview(interview_id: Optional[str], feedback_id: Optional[str]) -> str:
    """Feedback view when feedback was stored, home otherwise."""
    if _usable_id(interview_id) and _usable_id(feedback_id):
        return feedback_route(interview_id)
    return HOME_ROUTE
