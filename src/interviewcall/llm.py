import httpx
import logging

from interviewcall.config import LLMConfig

logger = logging.getLogger(__name__)


class LLMError(Exception):
    """The language model could not be reached or returned no content."""


async def chat_completion(
    config: LLMConfig,
    prompt: str,
    temperature: float = 0.7,
    client: httpx.AsyncClient | None = None,
) -> str:
    """Send one user prompt to an OpenAI-compatible chat endpoint.

    Returns the assistant message content. Transport errors, error statuses
    and responses without a message raise LLMError.
    """
    own_client = client is None
    if own_client:
        client = httpx.AsyncClient(timeout=config.timeout_s)
    try:
        resp = await client.post(
            config.api_url,
            headers={"Authorization": f"Bearer {config.api_key}"},
            json={
                "model": config.model,
                "temperature": temperature,
                "messages": [{"role": "user", "content": prompt}],
            },
        )
        resp.raise_for_status()
        content = resp.json()["choices"][0]["message"]["content"]
    except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
        logger.error("LLM request to %s failed: %s", config.api_url, e)
        raise LLMError(str(e)) from e
    finally:
        if own_client:
            await client.aclose()
    return content or ""
