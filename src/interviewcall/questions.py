import httpx
import logging

from interviewcall.config import LLMConfig
from interviewcall.llm import LLMError, chat_completion
from interviewcall.prompts import get_questions_prompt
from interviewcall.validation import parse_questions

logger = logging.getLogger(__name__)


class QuestionGenerationError(Exception):
    """The language model could not be reached or returned no content."""


async def generate_questions(
    config: LLMConfig,
    role: str,
    type: str,
    level: str,
    techstack: list[str],
    amount,
    client: httpx.AsyncClient | None = None,
) -> list[str]:
    """Ask the model for interview questions.

    Transport failures raise QuestionGenerationError. Content that does not
    parse as a JSON list of strings degrades to an empty list.
    """
    prompt = get_questions_prompt(role, type, level, techstack, amount)
    try:
        content = await chat_completion(config, prompt, temperature=0.7, client=client)
    except LLMError as e:
        raise QuestionGenerationError(str(e)) from e

    questions = parse_questions(content)
    logger.info("Generated %d questions for %s (%s)", len(questions), role, level)
    return questions
