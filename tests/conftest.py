from collections import defaultdict
from unittest.mock import AsyncMock, MagicMock

import pytest

from interviewcall.config import AgentConfig
from interviewcall.controller import SessionController
from interviewcall.states import SessionMode


class FakeChannel:
    """In-memory voice channel: records start/stop and lets tests emit events."""

    def __init__(self):
        self.handlers = defaultdict(list)
        self.calls = []
        self.start_error = None
        self.stop_error = None
        self.on_start = None
        self.on_stop = None

    async def start(self, target_id, parameters):
        self.calls.append(("start", target_id, parameters))
        if self.start_error is not None:
            raise self.start_error
        if self.on_start is not None:
            self.on_start()
        return {"id": "call_1"}

    async def stop(self):
        self.calls.append(("stop",))
        if self.on_stop is not None:
            self.on_stop()
        if self.stop_error is not None:
            raise self.stop_error

    def on(self, event, handler):
        self.handlers[event].append(handler)

    def off(self, event, handler):
        self.handlers[event].remove(handler)

    def emit(self, event, *args):
        for handler in list(self.handlers[event]):
            handler(*args)

    def say(self, role, text, final=True):
        self.emit("message", {
            "type": "transcript",
            "transcriptType": "final" if final else "partial",
            "role": role,
            "transcript": text,
        })

    @property
    def subscriber_count(self):
        return sum(len(h) for h in self.handlers.values())

    @property
    def stop_count(self):
        return sum(1 for c in self.calls if c[0] == "stop")

    @property
    def start_count(self):
        return sum(1 for c in self.calls if c[0] == "start")


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def client():
    client = AsyncMock()
    client.generate_interview.return_value = {"success": True, "interviewId": "iv_123"}
    client.create_feedback.return_value = {"success": True, "feedbackId": "fb_1"}
    return client


@pytest.fixture
def config():
    return AgentConfig(
        public_key="pk_test",
        assistant_id="asst_1",
        workflow_id="wf_1",
        backend_url="https://backend.example.com",
        connect_timeout_s=5.0,
        completion_delay_s=0,
    )


@pytest.fixture
def navigate():
    return MagicMock()


@pytest.fixture
def notify():
    return MagicMock()


@pytest.fixture
def controller(channel, client, config, navigate, notify):
    return SessionController(
        channel,
        client,
        config,
        mode=SessionMode.GENERATE,
        user_id="user_1",
        user_name="Ada",
        navigate=navigate,
        notify=notify,
    )


@pytest.fixture
def interview_controller(channel, client, config, navigate, notify):
    return SessionController(
        channel,
        client,
        config,
        mode=SessionMode.INTERVIEW,
        user_id="user_1",
        user_name="Ada",
        interview_id="iv_9",
        questions=["Tell me about yourself.", "What is a goroutine?"],
        navigate=navigate,
        notify=notify,
    )
