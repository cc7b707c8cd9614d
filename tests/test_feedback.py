import json
import pytest
import httpx
import respx

from interviewcall.config import LLMConfig
from interviewcall.feedback import FeedbackGenerationError, generate_feedback

API_URL = "https://llm.example.com/v1/chat/completions"

TRANSCRIPT = [
    {"role": "assistant", "content": "What is a goroutine?"},
    {"role": "user", "content": "A lightweight thread managed by the Go runtime."},
]


@pytest.fixture
def llm_config():
    return LLMConfig(api_key="sk-test", api_url=API_URL, model="test-model")


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestGenerateFeedback:
    @pytest.mark.asyncio
    async def test_returns_normalized_feedback(self, llm_config):
        reply = json.dumps({
            "totalScore": 81,
            "categoryScores": [{"name": "Technical Knowledge", "score": 85, "comment": "Accurate"}],
            "strengths": ["Precise"],
            "areasForImprovement": ["Give examples"],
            "finalAssessment": "Strong fundamentals.",
        })
        with respx.mock:
            route = respx.post(API_URL).mock(return_value=httpx.Response(200, json=_completion(reply)))
            feedback = await generate_feedback(llm_config, TRANSCRIPT)

        assert feedback["totalScore"] == 81
        assert feedback["categoryScores"][0]["name"] == "Technical Knowledge"
        body = json.loads(route.calls[0].request.content)
        prompt = body["messages"][0]["content"]
        assert "- user: A lightweight thread managed by the Go runtime." in prompt
        assert body["temperature"] == 0.2

    @pytest.mark.asyncio
    async def test_malformed_reply_raises(self, llm_config):
        with respx.mock:
            respx.post(API_URL).mock(
                return_value=httpx.Response(200, json=_completion("The candidate did well."))
            )
            with pytest.raises(FeedbackGenerationError):
                await generate_feedback(llm_config, TRANSCRIPT)

    @pytest.mark.asyncio
    async def test_transport_error_raises(self, llm_config):
        with respx.mock:
            respx.post(API_URL).mock(side_effect=httpx.ConnectError("refused"))
            with pytest.raises(FeedbackGenerationError):
                await generate_feedback(llm_config, TRANSCRIPT)
