from interviewcall.session import CallSession, SLOT_ORDER
from interviewcall.states import CallStatus, SessionMode


class TestCallSession:
    def test_defaults(self):
        s = CallSession()
        assert s.status == CallStatus.IDLE
        assert s.mode == SessionMode.GENERATE
        assert s.attempt == 0
        assert s.transcript_log == []
        assert s.next_slot_index == 0
        assert s.completion_triggered is False
        assert s.result_id is None

    def test_slots_start_empty_in_order(self):
        s = CallSession()
        assert list(s.slot_values) == list(SLOT_ORDER)
        assert all(v == "" for v in s.slot_values.values())
        assert s.slot_count == 5

    def test_sessions_do_not_share_state(self):
        a = CallSession()
        b = CallSession()
        a.slot_values["role"] = "Backend"
        a.transcript_log.append({"role": "user", "content": "hi"})
        assert b.slot_values["role"] == ""
        assert b.transcript_log == []

    def test_slots_complete(self):
        s = CallSession()
        assert not s.slots_complete
        s.next_slot_index = 5
        assert s.slots_complete

    def test_ordered_slots(self):
        s = CallSession()
        s.slot_values["role"] = "Backend"
        assert s.ordered_slots()[0] == ("role", "Backend")
        assert [name for name, _ in s.ordered_slots()] == list(SLOT_ORDER)

    def test_last_message(self):
        s = CallSession()
        assert s.last_message == ""
        s.transcript_log.append({"role": "assistant", "content": "What role?"})
        s.transcript_log.append({"role": "user", "content": "Backend"})
        assert s.last_message == "Backend"
