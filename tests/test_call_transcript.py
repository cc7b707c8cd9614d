import json
import sys
import os

# Add scripts to path so we can import the module
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "scripts"))
from call_transcript import parse_transcript_lines, format_transcript


def _dump(attempt=1, entries=None, **extra):
    return {
        "attempt": attempt,
        "mode": "generate",
        "final_status": "finished",
        "duration_s": 30.0,
        "entries": entries or [],
        **extra,
    }


class TestParseTranscriptLines:
    def test_single_chunk_with_log_prefix(self):
        dump = _dump(entries=[
            {"t": 0.0, "role": "assistant", "content": "What role?"},
            {"t": 2.3, "role": "user", "content": "Backend"},
        ])
        lines = [
            "2026-01-01 10:00:00 INFO interviewcall.controller: [attempt 1] active -> finished",
            f"2026-01-01 10:00:00 INFO interviewcall.post_call: TRANSCRIPT_DUMP|1/1|{json.dumps(dump)}",
        ]
        result = parse_transcript_lines(lines)
        assert len(result) == 1
        assert result[0]["attempt"] == 1
        assert len(result[0]["entries"]) == 2

    def test_multi_chunk_reassembly(self):
        chunk1 = json.dumps(_dump(entries=[{"t": 0.0, "role": "assistant", "content": "A"}]))
        chunk2 = json.dumps({"entries": [{"t": 5.0, "role": "user", "content": "B"}]})
        lines = [
            f"TRANSCRIPT_DUMP|1/2|{chunk1}",
            f"TRANSCRIPT_DUMP|2/2|{chunk2}",
        ]
        result = parse_transcript_lines(lines)
        assert len(result) == 1
        assert [e["content"] for e in result[0]["entries"]] == ["A", "B"]

    def test_attempt_filter(self):
        lines = [
            f"TRANSCRIPT_DUMP|1/1|{json.dumps(_dump(attempt=1))}",
            f"TRANSCRIPT_DUMP|1/1|{json.dumps(_dump(attempt=2))}",
        ]
        result = parse_transcript_lines(lines, attempt=2)
        assert len(result) == 1
        assert result[0]["attempt"] == 2

    def test_no_transcript_lines_returns_empty(self):
        assert parse_transcript_lines(["INFO something else"]) == []

    def test_corrupted_json_skipped(self):
        lines = [
            "TRANSCRIPT_DUMP|1/1|{not json",
            f"TRANSCRIPT_DUMP|1/1|{json.dumps(_dump(attempt=4))}",
        ]
        result = parse_transcript_lines(lines)
        assert [t["attempt"] for t in result] == [4]


class TestFormatTranscript:
    def test_basic_formatting(self):
        output = format_transcript(_dump(attempt=3, entries=[
            {"t": 0.0, "role": "assistant", "content": "What role?"},
            {"t": 1.0, "role": "user", "content": "Backend"},
        ]))
        assert "Attempt 3 | generate | 30.0s | finished" in output
        assert "  0.0s Interviewer: What role?" in output
        assert "  1.0s Candidate: Backend" in output

    def test_gap_annotation_shown_for_notable_gap(self):
        output = format_transcript(_dump(entries=[
            {"t": 0.0, "role": "assistant", "content": "A"},
            {"t": 3.0, "role": "user", "content": "B"},
        ]))
        assert "┆ +3.0s" in output
        assert "SLOW" not in output

    def test_slow_annotation_for_large_gap(self):
        output = format_transcript(_dump(entries=[
            {"t": 0.0, "role": "assistant", "content": "A"},
            {"t": 6.5, "role": "user", "content": "B"},
        ]))
        assert "+6.5s ⚠ SLOW" in output

    def test_custom_gap_threshold(self):
        entries = [
            {"t": 0.0, "role": "assistant", "content": "A"},
            {"t": 1.5, "role": "user", "content": "B"},
        ]
        assert "┆" not in format_transcript(_dump(entries=entries))
        assert "┆ +1.5s" in format_transcript(_dump(entries=entries), gap_threshold=1.0)

    def test_call_ended_marker(self):
        output = format_transcript(_dump(entries=[{"t": 0.0, "role": "system", "content": "x"}]))
        assert output.splitlines()[-1] == " 30.0s ☎ Call ended"
        assert "System: x" in output
