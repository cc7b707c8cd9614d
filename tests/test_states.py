from interviewcall.states import CallStatus, SessionMode, Speaker


class TestCallStatus:
    def test_terminal_states(self):
        assert CallStatus.FINISHED.is_terminal
        assert CallStatus.EJECTED.is_terminal
        assert not CallStatus.IDLE.is_terminal
        assert not CallStatus.CONNECTING.is_terminal
        assert not CallStatus.ACTIVE.is_terminal

    def test_startable_states(self):
        startable = {s for s in CallStatus if s.can_start}
        assert startable == {CallStatus.IDLE, CallStatus.FINISHED, CallStatus.EJECTED}

    def test_live_states(self):
        live = {s for s in CallStatus if s.is_live}
        assert live == {CallStatus.CONNECTING, CallStatus.ACTIVE}

    def test_no_state_is_both_live_and_startable(self):
        for s in CallStatus:
            assert not (s.is_live and s.can_start)

    def test_status_values(self):
        assert CallStatus("active") is CallStatus.ACTIVE


def test_speaker_values_match_channel_roles():
    assert Speaker("user") is Speaker.USER
    assert Speaker("assistant") is Speaker.ASSISTANT


def test_session_modes():
    assert {m.value for m in SessionMode} == {"generate", "interview"}
