"""Configuration for the call controller and the question service.

Values are read from the environment once, at construction, and passed in;
nothing reads os.environ mid-call. ``validate_config`` is called from the
server entry point so that a missing key causes a clear startup failure
rather than a broken first call.
"""

import os
import sys
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

REQUIRED_VARS = [
    "BACKEND_URL",
    "LLM_API_KEY",
]

OPTIONAL_VARS = [
    "VAPI_WEB_TOKEN",
    "VAPI_ASSISTANT_ID",
    "VAPI_WORKFLOW_ID",
    "BACKEND_API_KEY",
    "LLM_API_URL",
    "LLM_MODEL",
    "LOG_LEVEL",
]


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Env var %s=%r is not a number, using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class AgentConfig:
    """Settings injected into SessionController."""

    public_key: str = ""
    assistant_id: str = ""
    workflow_id: str = ""
    backend_url: str = ""
    api_key: str = ""
    connect_timeout_s: float = 30.0
    completion_delay_s: float = 2.0
    request_timeout_s: float = 10.0

    @classmethod
    def from_env(cls) -> "AgentConfig":
        return cls(
            public_key=os.getenv("VAPI_WEB_TOKEN", ""),
            assistant_id=os.getenv("VAPI_ASSISTANT_ID", ""),
            workflow_id=os.getenv("VAPI_WORKFLOW_ID", ""),
            backend_url=os.getenv("BACKEND_URL", ""),
            api_key=os.getenv("BACKEND_API_KEY", ""),
            connect_timeout_s=_float_env("CONNECT_TIMEOUT_S", 30.0),
            completion_delay_s=_float_env("COMPLETION_DELAY_S", 2.0),
            request_timeout_s=_float_env("REQUEST_TIMEOUT_S", 10.0),
        )


@dataclass(frozen=True)
class LLMConfig:
    """Settings for the question-generation model."""

    api_key: str = ""
    api_url: str = "https://api.openai.com/v1/chat/completions"
    model: str = "gpt-4o-mini"
    timeout_s: float = 30.0

    @classmethod
    def from_env(cls) -> "LLMConfig":
        return cls(
            api_key=os.getenv("LLM_API_KEY", ""),
            api_url=os.getenv("LLM_API_URL", "") or cls.api_url,
            model=os.getenv("LLM_MODEL", "") or cls.model,
            timeout_s=_float_env("LLM_TIMEOUT_S", 30.0),
        )


def validate_config() -> None:
    """Validate environment variables at startup.

    Exits the process with a clear error if any required variable is missing
    or empty.  Logs warnings for missing optional variables.
    """
    missing = [var for var in REQUIRED_VARS if not os.getenv(var)]

    if missing:
        print(
            f"\nFATAL: Missing required environment variables:\n"
            f"  {', '.join(missing)}\n"
            f"\nSet them in .env or in the deployment environment.\n",
            file=sys.stderr,
        )
        sys.exit(1)

    for var in OPTIONAL_VARS:
        if not os.getenv(var):
            logger.warning("Optional env var %s is not set", var)
