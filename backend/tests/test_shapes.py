"""
Tests for response-shape parsing: JSON extraction, the newline fallback for
string arrays, and alias resolution for object arrays.
"""

import pytest

from gemini.errors import MalformedResponse
from gemini.shapes import FREE_TEXT, FieldSpec, JsonObjectArray, JsonStringArray
from gemini.tasks import flashcards_shape, quiz_shape
from models.learning import FlashcardDraft, QuizQuestion


class TestFreeText:

    def test_strips_surrounding_whitespace(self):
        assert FREE_TEXT.parse("\n  An answer.\n\n") == "An answer."

    def test_keeps_inner_formatting(self):
        raw = "Line one\n\n```python\nprint(1)\n```"
        assert FREE_TEXT.parse(raw) == raw


class TestJsonStringArray:

    def test_returns_bracketed_array(self):
        raw = 'Here you go:\n["What is a closure?", "Explain the GIL?"]\nGood luck!'
        assert JsonStringArray(2).parse(raw) == ["What is a closure?", "Explain the GIL?"]

    def test_truncates_to_requested_count(self):
        raw = '["Q1?", "Q2?", "Q3?", "Q4?"]'
        assert JsonStringArray(2).parse(raw) == ["Q1?", "Q2?"]

    def test_array_spanning_lines(self):
        raw = '```json\n[\n  "First?",\n  "Second?"\n]\n```'
        assert JsonStringArray(5).parse(raw) == ["First?", "Second?"]

    def test_non_string_items_are_stringified(self):
        assert JsonStringArray(3).parse("[1, 2.5]") == ["1", "2.5"]

    def test_newline_fallback_strips_numbering(self):
        raw = (
            "Here are some questions:\n"
            "1. What is dependency injection?\n"
            "2) How does garbage collection work?\n"
            "\n"
            "3. Why use async IO?\n"
        )
        assert JsonStringArray(5).parse(raw) == [
            "What is dependency injection?",
            "How does garbage collection work?",
            "Why use async IO?",
        ]

    def test_newline_fallback_caps_count_and_keeps_order(self):
        raw = "1. A?\n2. B?\n3. C?"
        assert JsonStringArray(2).parse(raw) == ["A?", "B?"]

    def test_invalid_json_in_brackets_uses_fallback(self):
        raw = "[not json at all]\n1. Is this a question?"
        assert JsonStringArray(2).parse(raw) == ["Is this a question?"]

    def test_greedy_match_past_array_falls_back(self):
        raw = '[{"a": 1}] extra ]'
        # greedy match spans to the last bracket and fails to parse
        assert JsonStringArray(2).parse(raw) == []

    def test_all_lines_when_not_questions_only(self):
        raw = "Hi Sam, loved the role.\n\nHello team, quick note."
        shape = JsonStringArray(3, questions_only=False)
        assert shape.parse(raw) == ["Hi Sam, loved the role.", "Hello team, quick note."]


class TestJsonObjectArray:

    def test_alias_fields_populate_targets(self):
        raw = '[{"question": "What is REST?", "answer": "An architectural style."},' \
              ' {"question": "What is gRPC?", "answer": "An RPC framework."}]'
        cards = flashcards_shape(10).parse(raw)

        assert cards == [
            FlashcardDraft(front="What is REST?", back="An architectural style."),
            FlashcardDraft(front="What is gRPC?", back="An RPC framework."),
        ]

    def test_primary_name_wins_over_alias(self):
        raw = '[{"front": "F", "question": "Q", "back": "B"}]'
        assert flashcards_shape(1).parse(raw) == [FlashcardDraft(front="F", back="B")]

    def test_missing_fields_default_instead_of_dropping(self):
        raw = '[{"front": "Only a front"}, "not an object"]'
        cards = flashcards_shape(5).parse(raw)

        assert cards == [
            FlashcardDraft(front="Only a front", back=""),
            FlashcardDraft(front="", back=""),
        ]

    def test_quiz_defaults_and_coercion(self):
        raw = """
        [
          {"question": "Q1", "options": ["a", "b", "c", "d"], "correctAnswer": 2, "explanation": "why"},
          {"question": "Q2", "options": "a,b", "correctAnswer": "1"},
          {"question": "Q3", "options": ["x", "y"], "correct_answer": 1.0}
        ]
        """
        questions = quiz_shape(5).parse(raw)

        assert questions[0] == QuizQuestion(
            question="Q1", options=["a", "b", "c", "d"], correct_answer=2, explanation="why"
        )
        assert questions[1].options == []
        assert questions[1].correct_answer == 0
        assert questions[1].explanation == ""
        assert questions[2].correct_answer == 1

    def test_truncates_to_count(self):
        raw = '[{"front": "1"}, {"front": "2"}, {"front": "3"}]'
        assert [c.front for c in flashcards_shape(2).parse(raw)] == ["1", "2"]

    def test_empty_array_is_malformed(self):
        with pytest.raises(MalformedResponse):
            flashcards_shape(3).parse("[]")

    def test_invalid_json_is_malformed(self):
        with pytest.raises(MalformedResponse, match="flashcards"):
            flashcards_shape(3).parse('[{"front": "unterminated}]')

    def test_no_array_is_malformed(self):
        with pytest.raises(MalformedResponse):
            quiz_shape(3).parse("Sorry, I cannot help with that.")

    def test_default_builder_returns_dicts(self):
        shape = JsonObjectArray((FieldSpec("name", ("name", "title")),))
        assert shape.parse('[{"title": "x"}]') == [{"name": "x"}]
