import asyncio
import logging
import time
from typing import Callable

from interviewcall.channel import (
    CALL_END,
    CALL_START,
    CALL_START_FAILED,
    CALL_START_SUCCESS,
    ERROR,
    MESSAGE,
    SPEECH_END,
    SPEECH_START,
    ChannelEvent,
    ChannelSubscription,
    EventKind,
    VoiceChannel,
    parse_channel_message,
)
from interviewcall.completion import CompletionTrigger
from interviewcall.config import AgentConfig
from interviewcall.extraction import extract_slot
from interviewcall.navigation import route_after_generation, route_after_interview
from interviewcall.post_call import handle_call_finished, log_transcript_dump
from interviewcall.session import CallSession
from interviewcall.state_machine import transition, try_transition
from interviewcall.states import CallStatus, SessionMode, Speaker
from interviewcall.tools import BackendClient
from interviewcall.validation import error_message, is_fatal_channel_error

logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "We couldn't create your interview. Please try again."
FEEDBACK_FAILED_MESSAGE = "We couldn't generate feedback for this interview."
CONNECT_TIMEOUT_MESSAGE = "Could not connect the call. Please try again."
NOT_CONFIGURED_MESSAGE = "The voice assistant is not configured."


class SessionController:
    """Drives one interview screen's calls through the voice channel.

    Lifecycle per attempt:
      start_call() -> CONNECTING -> ACTIVE -> FINISHED
                                 \\-> EJECTED (fatal channel error)
                                 \\-> IDLE    (transient error, data discarded)

    In GENERATE mode every substantive user answer fills the next slot; once
    all slots are filled the CompletionTrigger sends them downstream exactly
    once and the call is closed. In INTERVIEW mode the transcript is only
    logged, and feedback is requested once the call finishes.

    Channel events are handled synchronously; network calls run as tracked
    background tasks that check on completion that their attempt is still
    the current one.
    """

    def __init__(
        self,
        channel: VoiceChannel,
        client: BackendClient,
        config: AgentConfig,
        *,
        mode: SessionMode,
        user_id: str,
        navigate: Callable[[str], None],
        notify: Callable[[str], None] | None = None,
        user_name: str = "",
        interview_id: str = "",
        questions: list[str] | None = None,
    ):
        self.channel = channel
        self.client = client
        self.config = config
        self.mode = mode
        self.user_id = user_id
        self.user_name = user_name
        self.interview_id = interview_id
        self.questions = list(questions or [])
        self.navigate = navigate
        self.notify = notify
        self.completion = CompletionTrigger(client, settle_delay=config.completion_delay_s)

        self.session = CallSession(mode=mode)
        self._attempt = 0
        self._subscription: ChannelSubscription | None = None
        self._connect_timer: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def status(self) -> CallStatus:
        return self.session.status

    # ── User actions ──

    async def start_call(self) -> bool:
        """Begin a new attempt. Returns True if the call is connecting or live."""
        if not self.session.status.can_start:
            logger.warning("start_call ignored while %s", self.session.status.value)
            return False

        target_id, parameters = self._call_target()
        if not target_id:
            logger.error("No %s target configured", self.mode.value)
            self._notify(NOT_CONFIGURED_MESSAGE)
            return False

        self._release_attempt()
        self._attempt += 1
        session = CallSession(mode=self.mode, attempt=self._attempt)
        self.session = session
        transition(session, CallStatus.CONNECTING, "start_call")

        # Never run two channel sessions at once.
        try:
            await self.channel.stop()
        except Exception as e:
            logger.debug("No existing call to stop: %s", e)

        if not self._is_current(session):
            return False

        self._subscription = ChannelSubscription(self.channel, self._handlers()).open()

        try:
            await self.channel.start(target_id, parameters)
        except Exception as e:
            logger.error("[attempt %d] call start failed: %s", session.attempt, e)
            if self._is_current(session) and session.status.is_live:
                self._fail(session, f"Call failed: {error_message(e) or 'Unknown error'}")
            return False

        if not self._is_current(session):
            return False
        if session.status == CallStatus.CONNECTING:
            self._connect_timer = asyncio.create_task(self._connect_timeout(session))
        return session.status.is_live

    async def end_call(self) -> bool:
        """User hangs up. Finishes immediately; the channel's own close is a no-op.

        Hanging up while still connecting cancels the attempt and returns to
        IDLE without a notification.
        """
        session = self.session
        if session.status == CallStatus.CONNECTING:
            self._reset(session, "user cancelled connect")
            await self._stop_channel(session)
            return True
        if session.status != CallStatus.ACTIVE:
            logger.warning("end_call ignored while %s", session.status.value)
            return False
        self._finish(session, "user ended call")
        await self._stop_channel(session)
        return True

    async def wait_for_pending(self) -> None:
        """Wait for in-flight completion/feedback requests to settle."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        """Tear down when the screen goes away."""
        session = self.session
        self._cancel_connect_timer()
        for task in list(self._tasks):
            task.cancel()
        await self.wait_for_pending()
        self._release_attempt()
        if session.status.is_live:
            await self._stop_channel(session)

    # ── Channel events ──

    def _handlers(self) -> dict:
        return {
            CALL_START: self._on_call_start,
            CALL_END: self._on_call_end,
            MESSAGE: self._on_message,
            SPEECH_START: self._on_speech_start,
            SPEECH_END: self._on_speech_end,
            ERROR: self._on_error,
            CALL_START_SUCCESS: self._on_call_start,
            CALL_START_FAILED: self._on_call_start_failed,
        }

    def _on_call_start(self, *_):
        self.handle_event(ChannelEvent(EventKind.CALL_START))

    def _on_call_start_failed(self, event=None, *_):
        self.handle_event(ChannelEvent(EventKind.START_FAILED, error=event))

    def _on_call_end(self, *_):
        self.handle_event(ChannelEvent(EventKind.CALL_END))

    def _on_message(self, message=None, *_):
        event = parse_channel_message(message)
        if event is not None:
            self.handle_event(event)

    def _on_speech_start(self, *_):
        self.handle_event(ChannelEvent(EventKind.SPEECH_START))

    def _on_speech_end(self, *_):
        self.handle_event(ChannelEvent(EventKind.SPEECH_END))

    def _on_error(self, error=None, *_):
        self.handle_event(ChannelEvent(EventKind.ERROR, error=error))

    def handle_event(self, event: ChannelEvent) -> None:
        """Apply one channel event to the current session. Never raises."""
        session = self.session

        if event.kind == EventKind.ERROR:
            self._handle_error(session, event.error)
            return
        if event.kind == EventKind.START_FAILED:
            self._handle_start_failed(session, event.error)
            return

        if session.status == CallStatus.CONNECTING:
            if event.kind == EventKind.CALL_START:
                transition(session, CallStatus.ACTIVE, "call-start")
                self._cancel_connect_timer()
                return
            if event.kind.proves_live_call:
                # The call-start confirmation is not reliable; audio events prove the call.
                transition(session, CallStatus.ACTIVE, f"{event.kind.value} while connecting")
                self._cancel_connect_timer()
            else:
                logger.info("[attempt %d] %s while connecting, ignored", session.attempt, event.kind.value)
                return

        if session.status != CallStatus.ACTIVE:
            logger.debug(
                "[attempt %d] ignoring %s while %s",
                session.attempt,
                event.kind.value,
                session.status.value,
            )
            return

        if event.kind == EventKind.CALL_START:
            logger.debug("[attempt %d] duplicate call-start", session.attempt)
        elif event.kind == EventKind.CALL_END:
            self._finish(session, "channel closed")
        elif event.kind == EventKind.PARTIAL_TRANSCRIPT:
            session.partial_text = event.text
            session.partial_speaker = event.speaker
        elif event.kind == EventKind.FINAL_TRANSCRIPT:
            self._handle_final_transcript(session, event)
        elif event.kind == EventKind.SPEECH_START:
            session.assistant_speaking = True
        elif event.kind == EventKind.SPEECH_END:
            session.assistant_speaking = False

    def _handle_final_transcript(self, session: CallSession, event: ChannelEvent) -> None:
        session.partial_text = ""
        session.partial_speaker = None

        text = event.text
        if not text.strip():
            return
        if event.speaker is None:
            logger.warning("[attempt %d] final transcript without speaker, ignored: %r", session.attempt, text)
            return

        session.transcript_log.append({
            "role": event.speaker.value,
            "content": text,
            "timestamp": time.time(),
        })
        logger.info("[attempt %d] %s: %s", session.attempt, event.speaker.value, text)

        if event.speaker != Speaker.USER or session.mode != SessionMode.GENERATE:
            return

        result = extract_slot(
            list(session.slot_values),
            session.slot_values,
            session.next_slot_index,
            text,
        )
        if not result.accepted:
            return
        session.slot_values = result.values
        session.next_slot_index = result.next_index
        if result.is_complete:
            self._trigger_completion(session)

    def _handle_error(self, session: CallSession, error) -> None:
        message = error_message(error) or "Unknown error occurred"
        logger.error("[attempt %d] channel error: %s", session.attempt, message)

        if not session.status.is_live:
            logger.debug("[attempt %d] error while %s, ignored", session.attempt, session.status.value)
            return

        if is_fatal_channel_error(message):
            transition(session, CallStatus.EJECTED, "channel ejected")
            session.error_message = message
            self._close_attempt(session)
            return

        self._fail(session, f"Call error: {message}")
        self._spawn(self._stop_channel(session), "stop after error")

    def _handle_start_failed(self, session: CallSession, error) -> None:
        message = error_message(error) or "Unknown error"
        logger.error("[attempt %d] channel reported start failure: %s", session.attempt, message)
        if session.status != CallStatus.CONNECTING:
            logger.debug("[attempt %d] start failure while %s, ignored", session.attempt, session.status.value)
            return
        self._fail(session, f"Call failed: {message}")
        self._spawn(self._stop_channel(session), "stop after start failure")

    # ── Terminal transitions ──

    def _finish(self, session: CallSession, reason: str) -> None:
        if not try_transition(session, CallStatus.FINISHED, reason):
            return
        self._close_attempt(session)

        if session.mode == SessionMode.INTERVIEW:
            if not session.feedback_requested:
                session.feedback_requested = True
                self._spawn(self._request_feedback(session), "feedback")
        else:
            self._maybe_navigate(session)

    def _fail(self, session: CallSession, message: str) -> None:
        """Transient failure: back to IDLE with a fresh, empty session."""
        self._reset(session, "transient failure", message)
        self._notify(message)

    def _reset(self, session: CallSession, reason: str, message: str = "") -> None:
        transition(session, CallStatus.IDLE, reason)
        session.error_message = message
        self._close_attempt(session)
        fresh = CallSession(mode=self.mode, attempt=session.attempt)
        fresh.error_message = message
        self.session = fresh

    def _close_attempt(self, session: CallSession) -> None:
        self._release_attempt()
        log_transcript_dump(session)

    def _release_attempt(self) -> None:
        self._cancel_connect_timer()
        if self._subscription is not None:
            self._subscription.close()
            self._subscription = None

    # ── Completion (generate mode) ──

    def _trigger_completion(self, session: CallSession) -> None:
        if self.completion.acquire(session):
            self._spawn(self._complete(session), "completion")

    async def _complete(self, session: CallSession) -> None:
        try:
            result_id = await self.completion.fire(session, self.user_id)
        except Exception as e:
            logger.error("[attempt %d] completion request raised: %s", session.attempt, e)
            result_id = None

        if not self._is_current(session):
            logger.warning(
                "[attempt %d] discarding stale completion result %r",
                session.attempt,
                result_id,
            )
            return

        if result_id:
            session.completion_pending = False
            session.result_id = result_id
        else:
            self.completion.release(session)
            self._notify(GENERATION_FAILED_MESSAGE)

        if session.status == CallStatus.ACTIVE:
            self._finish(session, "slots submitted")
            await self._stop_channel(session)
        self._maybe_navigate(session)

    # ── Feedback (interview mode) ──

    async def _request_feedback(self, session: CallSession) -> None:
        try:
            feedback_id = await handle_call_finished(
                session, self.client, self.interview_id, self.user_id
            )
        except Exception as e:
            logger.error("[attempt %d] feedback request raised: %s", session.attempt, e)
            feedback_id = None

        if not self._is_current(session):
            logger.warning("[attempt %d] discarding stale feedback result %r", session.attempt, feedback_id)
            return

        session.feedback_id = feedback_id
        if not feedback_id:
            self._notify(FEEDBACK_FAILED_MESSAGE)
        self._navigate(session, route_after_interview(self.interview_id, feedback_id))

    # ── Navigation ──

    def _maybe_navigate(self, session: CallSession) -> None:
        if session.mode != SessionMode.GENERATE or session.status != CallStatus.FINISHED:
            return
        if session.completion_pending:
            logger.debug("[attempt %d] waiting for completion before navigating", session.attempt)
            return
        self._navigate(session, route_after_generation(session.result_id))

    def _navigate(self, session: CallSession, route: str) -> None:
        if session.navigated_to:
            return
        session.navigated_to = route
        logger.info("[attempt %d] navigating to %s", session.attempt, route)
        try:
            self.navigate(route)
        except Exception as e:
            logger.error("Navigation to %s failed: %s", route, e)

    # ── Helpers ──

    def _call_target(self) -> tuple[str, dict]:
        variables = {"username": self.user_name, "userid": self.user_id}
        if self.mode == SessionMode.GENERATE:
            return self.config.workflow_id, {"variableValues": variables}
        if self.questions:
            variables["questions"] = "\n".join(f"- {q}" for q in self.questions)
        return self.config.assistant_id, {"variableValues": variables}

    def _is_current(self, session: CallSession) -> bool:
        return session is self.session

    async def _stop_channel(self, session: CallSession) -> None:
        if session.attempt != self._attempt:
            logger.debug("[attempt %d] skipping stop, attempt %d owns the channel", session.attempt, self._attempt)
            return
        try:
            await self.channel.stop()
        except Exception as e:
            logger.warning("[attempt %d] channel stop failed: %s", session.attempt, e)

    async def _connect_timeout(self, session: CallSession) -> None:
        await asyncio.sleep(self.config.connect_timeout_s)
        if not self._is_current(session) or session.status != CallStatus.CONNECTING:
            return
        logger.warning(
            "[attempt %d] no sign of a live call after %.0fs",
            session.attempt,
            self.config.connect_timeout_s,
        )
        self._fail(session, CONNECT_TIMEOUT_MESSAGE)
        await self._stop_channel(session)

    def _cancel_connect_timer(self) -> None:
        timer = self._connect_timer
        self._connect_timer = None
        if timer is not None and not timer.done() and timer is not asyncio.current_task():
            timer.cancel()

    def _spawn(self, coro, label: str) -> asyncio.Task:
        task = asyncio.create_task(self._guarded(coro, label))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, coro, label: str) -> None:
        """Run background work, catching errors to prevent silent crashes."""
        try:
            await coro
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error("Background %s failed: %s", label, e)

    def _notify(self, message: str) -> None:
        if self.notify is None:
            logger.warning("User notification: %s", message)
            return
        try:
            self.notify(message)
        except Exception as e:
            logger.error("Notification failed: %s", e)
