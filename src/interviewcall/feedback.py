"""Interview scoring from a finished call's transcript.

The model is asked for a fixed set of categories and a single JSON object;
``parse_feedback`` normalizes what comes back. Unlike question generation, a
reply that cannot be parsed is a failure: an empty score sheet is not useful
to show.
"""

import httpx
import logging

from interviewcall.config import LLMConfig
from interviewcall.llm import LLMError, chat_completion
from interviewcall.prompts import get_feedback_prompt
from interviewcall.validation import parse_feedback

logger = logging.getLogger(__name__)


class FeedbackGenerationError(Exception):
    """The model could not be reached or returned unusable feedback."""


async def generate_feedback(
    config: LLMConfig,
    transcript: list[dict],
    client: httpx.AsyncClient | None = None,
) -> dict:
    prompt = get_feedback_prompt(transcript)
    try:
        content = await chat_completion(config, prompt, temperature=0.2, client=client)
    except LLMError as e:
        raise FeedbackGenerationError(str(e)) from e

    feedback = parse_feedback(content)
    if feedback is None:
        raise FeedbackGenerationError("Model returned malformed feedback")
    logger.info("Generated feedback: total score %d", feedback["totalScore"])
    return feedback
