from interviewcall.validation import (
    FILLER_PHRASES,
    error_message,
    is_fatal_channel_error,
    is_filler,
    normalize_utterance,
    parse_feedback,
    parse_questions,
    parse_techstack,
    strip_keywords,
)


class TestStripKeywords:
    def test_whole_word(self):
        assert strip_keywords("ok then", {"ok"}).split() == ["then"]

    def test_not_substring(self):
        assert strip_keywords("broken", {"ok"}) == "broken"

    def test_longest_first(self):
        assert strip_keywords("uh-huh", FILLER_PHRASES).strip() == ""


class TestIsFiller:
    def test_acknowledgements(self):
        for text in ["yes", "Yeah.", "OK", "got it!", "sounds good", "mm-hmm", "Thank you."]:
            assert is_filler(text), text

    def test_empty_is_filler(self):
        assert is_filler("")
        assert is_filler("  ...  ")

    def test_short_answers_are_content(self):
        for text in ["Backend", "Senior", "5", "Go, React", "Technical"]:
            assert not is_filler(text), text

    def test_several_acknowledgements_are_filler(self):
        assert is_filler("ok, got it")
        assert is_filler("yeah sure")

    def test_acknowledgement_with_answer_is_content(self):
        for text in ["Yes, Go", "Sure, five", "OK, senior"]:
            assert not is_filler(text), text

    def test_long_utterance_is_content(self):
        assert not is_filler("okay so backend please")

    def test_normalize(self):
        assert normalize_utterance("  Okay!! ") == "okay"


class TestErrorMessage:
    def test_exception(self):
        assert error_message(RuntimeError("boom")) == "boom"

    def test_nested_dict(self):
        assert error_message({"error": {"message": "Meeting has ended"}}) == "Meeting has ended"

    def test_error_msg_key(self):
        assert error_message({"errorMsg": "Meeting ended due to ejection"}) == "Meeting ended due to ejection"

    def test_none_and_str(self):
        assert error_message(None) == ""
        assert error_message("plain") == "plain"


class TestFatalChannelError:
    def test_fatal_markers(self):
        assert is_fatal_channel_error("Meeting ended due to ejection")
        assert is_fatal_channel_error("meeting has ended")
        assert is_fatal_channel_error("You were EJECTED")

    def test_transient(self):
        assert not is_fatal_channel_error("network timeout")


class TestParseTechstack:
    def test_comma_string(self):
        assert parse_techstack("Go, Postgres ,") == ["Go", "Postgres"]

    def test_list(self):
        assert parse_techstack(["React", " Node "]) == ["React", "Node"]

    def test_invalid_types(self):
        assert parse_techstack(None) == []
        assert parse_techstack(42) == []
        assert parse_techstack({"a": 1}) == []


class TestParseQuestions:
    def test_plain_array(self):
        assert parse_questions('["Q1", "Q2"]') == ["Q1", "Q2"]

    def test_fenced_array(self):
        assert parse_questions('```json\n["Q1"]\n```') == ["Q1"]

    def test_malformed(self):
        assert parse_questions("Here are your questions: Q1") == []
        assert parse_questions('{"q": "Q1"}') == []
        assert parse_questions("") == []


class TestParseFeedback:
    def test_fenced_object(self):
        raw = '```json\n{"totalScore": 70, "strengths": ["Calm"], "finalAssessment": "Fine"}\n```'
        feedback = parse_feedback(raw)
        assert feedback["totalScore"] == 70
        assert feedback["strengths"] == ["Calm"]
        assert feedback["categoryScores"] == []
        assert feedback["areasForImprovement"] == []

    def test_scores_clamped_and_bad_categories_dropped(self):
        raw = (
            '{"totalScore": "120", "categoryScores": ['
            '{"name": "Problem Solving", "score": -5},'
            '{"name": "Cultural Fit", "score": "n/a"},'
            '"oops"]}'
        )
        feedback = parse_feedback(raw)
        assert feedback["totalScore"] == 100
        assert feedback["categoryScores"] == [{"name": "Problem Solving", "score": 0, "comment": ""}]

    def test_unusable(self):
        assert parse_feedback("") is None
        assert parse_feedback("great job") is None
        assert parse_feedback('["a"]') is None
        assert parse_feedback('{"totalScore": null}') is None
