"""
Unit tests for extracting and validating quiz JSON from completion text.
"""
import json

import pytest

from hgtracker.core.errors import MalformedResponseError, QuizErrorKind
from hgtracker.services.quiz_parsing import extract_json_payload, parse_quiz_questions


def make_question(n=1, **overrides):
    q = {
        "question": f"Question {n}?",
        "options": ["A", "B", "C", "D"],
        "correctAnswer": n % 4,
    }
    q.update(overrides)
    return q


def make_questions(count):
    return [make_question(i) for i in range(1, count + 1)]


class TestExtractJsonPayload:
    def test_fenced_json_block(self):
        text = 'Here you go:\n```json\n[{"a": 1}]\n```\nEnjoy!'
        assert extract_json_payload(text) == '[{"a": 1}]'

    def test_fence_without_language(self):
        text = '```\n[1, 2]\n```'
        assert extract_json_payload(text) == "[1, 2]"

    def test_bracket_span_inside_prose(self):
        text = 'Sure! [{"a": [1, 2]}] Hope this helps.'
        assert extract_json_payload(text) == '[{"a": [1, 2]}]'

    def test_first_array_only(self):
        text = 'Result: [1, 2] and also see note [3]'
        assert extract_json_payload(text) == "[1, 2]"

    def test_brackets_inside_strings_are_ignored(self):
        text = 'Answer: [{"question": "What does ] mean?", "x": "[a"}] trailing'
        assert extract_json_payload(text) == '[{"question": "What does ] mean?", "x": "[a"}]'

    def test_escaped_quote_inside_string(self):
        text = 'x [{"q": "say \\"hi]\\""}] y'
        assert extract_json_payload(text) == '[{"q": "say \\"hi]\\""}]'

    def test_non_json_fence_is_skipped(self):
        text = "Note:\n```text\nGenerated for you\n```\n[1, 2]"
        assert extract_json_payload(text) == "[1, 2]"

    def test_untagged_prose_fence_is_skipped(self):
        text = "```\nHere are your questions\n```\nSee: [3, 4]"
        assert extract_json_payload(text) == "[3, 4]"

    def test_second_fence_used_when_first_is_prose(self):
        text = "```\nintro\n```\nthen\n```json\n[5]\n```"
        assert extract_json_payload(text) == "[5]"

    def test_no_json_returns_stripped_text(self):
        assert extract_json_payload("  no json here  ") == "no json here"

    def test_unbalanced_returns_stripped_text(self):
        assert extract_json_payload("start [1, 2") == "start [1, 2"


class TestParseQuizQuestions:
    def test_fenced_five_questions(self):
        text = "```json\n" + json.dumps(make_questions(5)) + "\n```"
        questions = parse_quiz_questions(text)
        assert len(questions) == 5
        assert questions[0].question == "Question 1?"
        assert questions[0].options == ["A", "B", "C", "D"]
        assert questions[0].correct_answer == 1

    def test_bare_array(self):
        questions = parse_quiz_questions(json.dumps(make_questions(2)))
        assert [q.correct_answer for q in questions] == [1, 2]

    def test_prose_wrapped_array(self):
        text = "Here are your questions:\n" + json.dumps(make_questions(3)) + "\nGood luck!"
        assert len(parse_quiz_questions(text)) == 3

    def test_array_after_non_json_fence(self):
        text = "Note:\n```text\nGenerated for you\n```\n" + json.dumps([make_question(1)])
        questions = parse_quiz_questions(text)
        assert len(questions) == 1
        assert questions[0].correct_answer == 1

    def test_integral_float_answer_accepted(self):
        questions = parse_quiz_questions(json.dumps([make_question(correctAnswer=2.0)]))
        assert questions[0].correct_answer == 2

    def test_missing_options_rejects_whole_response(self):
        items = make_questions(4)
        del items[2]["options"]
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_quiz_questions(json.dumps(items))
        assert exc_info.value.details["index"] == 2
        assert exc_info.value.kind == QuizErrorKind.malformed_response

    @pytest.mark.parametrize("bad", [
        make_question(question=""),
        make_question(question="   "),
        make_question(question=None),
        make_question(options=["A", "B", "C"]),
        make_question(options=["A", "B", "C", "D", "E"]),
        make_question(options=["A", "B", 3, "D"]),
        make_question(options="A,B,C,D"),
        make_question(correctAnswer="1"),
        make_question(correctAnswer=True),
        make_question(correctAnswer=1.5),
        make_question(correctAnswer=4),
        make_question(correctAnswer=-1),
        "just a string",
    ])
    def test_invalid_element_rejected(self, bad):
        items = [make_question(1), bad]
        with pytest.raises(MalformedResponseError) as exc_info:
            parse_quiz_questions(json.dumps(items))
        assert exc_info.value.details["index"] == 1

    def test_not_json(self):
        with pytest.raises(MalformedResponseError):
            parse_quiz_questions("I'm sorry, I can't help with that.")

    def test_object_instead_of_array(self):
        with pytest.raises(MalformedResponseError, match="not an array"):
            parse_quiz_questions('{"question": "What?"}')

    def test_empty_array(self):
        with pytest.raises(MalformedResponseError, match="empty"):
            parse_quiz_questions("[]")

    def test_empty_text(self):
        with pytest.raises(MalformedResponseError):
            parse_quiz_questions("   ")

    def test_truncated_json(self):
        text = json.dumps(make_questions(2))[:-10]
        with pytest.raises(MalformedResponseError):
            parse_quiz_questions(text)
