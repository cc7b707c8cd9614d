import httpx
import logging

from interviewcall.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)

GENERATE_PATH = "/api/vapi/generate"
FEEDBACK_PATH = "/api/feedback"


class BackendClient:
    """HTTP client for the interview backend.

    Wraps each call with a circuit breaker: after 3 consecutive failures,
    backend calls are skipped for 60s and failure dicts are returned so the
    controller can end the call cleanly instead of hanging.
    Methods never raise; failures come back as {"success": False, "error": ...}.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._circuit = CircuitBreaker(
            failure_threshold=3,
            cooldown_seconds=60.0,
            label="interview backend",
        )
        if client is not None:
            self._client = client
        else:
            headers = {"Content-Type": "application/json"}
            if api_key:
                headers["X-API-Key"] = api_key
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=self.timeout,
            )

    async def close(self):
        """Close the shared HTTP client."""
        await self._client.aclose()

    async def _post(self, path: str, payload: dict, label: str) -> dict:
        if not self._circuit.should_try():
            logger.warning("Backend circuit breaker open, skipping %s", label)
            return {"success": False, "error": "Interview backend unavailable"}
        try:
            resp = await self._client.post(path, json=payload)
            if resp.status_code >= 400:
                logger.error("%s returned %d: %s", label, resp.status_code, resp.text[:500])
            resp.raise_for_status()
            body = resp.json()
            self._circuit.record_success()
        except Exception as e:
            self._circuit.record_failure()
            logger.error("%s failed: %s", label, e)
            return {"success": False, "error": str(e)}
        if not isinstance(body, dict):
            logger.error("%s returned a non-object body: %r", label, body)
            return {"success": False, "error": "Malformed response"}
        return body

    async def generate_interview(
        self,
        role: str,
        type: str,
        level: str,
        techstack: str,
        amount: str,
        user_id: str,
    ) -> dict:
        """Ask the backend to generate and persist interview questions."""
        return await self._post(
            GENERATE_PATH,
            {
                "role": role,
                "type": type,
                "level": level,
                "techstack": techstack,
                "amount": amount,
                "userid": user_id,
            },
            "generate_interview",
        )

    async def create_feedback(self, interview_id: str, user_id: str, transcript: list[dict]) -> dict:
        """Ask the backend to score a finished interview from its transcript."""
        return await self._post(
            FEEDBACK_PATH,
            {
                "interviewId": interview_id,
                "userId": user_id,
                "transcript": transcript,
            },
            "create_feedback",
        )
