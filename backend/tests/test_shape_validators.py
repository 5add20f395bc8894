"""
VoiceSnap Backend — Shape Validator Unit Tests
================================================

What:  Each shape accepts a minimal well-formed value and rejects the first
       violation with an index-qualified message.
"""

import pytest

from voicesnap.services.shape_validators import SCHEMAS, Shape, validate


class TestRegistry:

    def test_every_shape_has_a_schema(self):
        assert set(SCHEMAS) == set(Shape)

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            SCHEMAS[Shape.QUIZ] = SCHEMAS[Shape.FAQ]

    def test_accepts_shape_name_strings(self):
        assert validate("actionItems", [{"task": "Ship it"}]).valid is True


@pytest.mark.parametrize("shape, value", [
    (Shape.FLASHCARDS, [{"front": "Term", "back": "Definition"}]),
    (Shape.QUIZ, [{"question": "Q?", "options": ["A", "B"], "correctIndex": 1}]),
    (Shape.ACTION_ITEMS, [{"task": "Email Bob", "assignee": None, "deadline": None}]),
    (Shape.ACTION_ITEMS, [{"task": "Email Bob"}]),
    (Shape.HIGHLIGHTS, ["A memorable quote"]),
    (Shape.FAQ, [{"question": "Why?", "answer": "Because."}]),
    (Shape.MINDMAP, {"center": "Topic", "branches": [{"topic": "Sub", "subtopics": ["x"]}]}),
    (Shape.MINDMAP, {"center": "Topic", "branches": []}),
    (Shape.FLASHCARDS, []),
])
def test_accepts_minimal_instances(shape, value):
    outcome = validate(shape, value)
    assert outcome.valid is True
    assert outcome.error_detail is None
    assert outcome.parsed_value == value


@pytest.mark.parametrize("shape, value, detail", [
    (Shape.FLASHCARDS, {"front": "x"}, "Expected array of flashcards"),
    (Shape.FLASHCARDS, ["card"], "Flashcard 0 is not an object"),
    (Shape.FLASHCARDS, [{"front": "a", "back": "b"}, {"front": "  ", "back": "b"}],
     "Flashcard 1 missing valid 'front' field"),
    (Shape.FLASHCARDS, [{"front": "a"}], "Flashcard 0 missing valid 'back' field"),
    (Shape.QUIZ, "nope", "Expected array of questions"),
    (Shape.QUIZ, [None], "Question 0 is not an object"),
    (Shape.QUIZ, [{"question": "", "options": ["A", "B"], "correctIndex": 0}],
     "Question 0 missing valid 'question' field"),
    (Shape.QUIZ, [{"question": "Q", "options": ["A"], "correctIndex": 0}],
     "Question 0 missing valid 'options' array"),
    (Shape.QUIZ, [{"question": "Q?", "options": ["A", "B"], "correctIndex": 5}],
     "Question 0 has invalid 'correctIndex'"),
    (Shape.QUIZ, [{"question": "Q?", "options": ["A", "B"], "correctIndex": -1}],
     "Question 0 has invalid 'correctIndex'"),
    (Shape.QUIZ, [{"question": "Q?", "options": ["A", "B"], "correctIndex": "0"}],
     "Question 0 has invalid 'correctIndex'"),
    (Shape.QUIZ, [{"question": "Q?", "options": ["A", "B"], "correctIndex": True}],
     "Question 0 has invalid 'correctIndex'"),
    (Shape.ACTION_ITEMS, None, "Expected array of action items"),
    (Shape.ACTION_ITEMS, [{"task": "ok"}, 7], "Action item 1 is not an object"),
    (Shape.ACTION_ITEMS, [{"assignee": "Ann"}], "Action item 0 missing valid 'task' field"),
    (Shape.HIGHLIGHTS, {"h": 1}, "Expected array of highlights"),
    (Shape.HIGHLIGHTS, ["fine", ""], "Highlight 1 is not a valid string"),
    (Shape.HIGHLIGHTS, [3], "Highlight 0 is not a valid string"),
    (Shape.FAQ, "faq", "Expected array of FAQs"),
    (Shape.FAQ, [[]], "FAQ 0 is not an object"),
    (Shape.FAQ, [{"answer": "A"}], "FAQ 0 missing valid 'question' field"),
    (Shape.FAQ, [{"question": "Q", "answer": None}], "FAQ 0 missing valid 'answer' field"),
    (Shape.MINDMAP, [], "Expected mindmap object"),
    (Shape.MINDMAP, {"center": " ", "branches": []}, "Missing valid center topic"),
    (Shape.MINDMAP, {"center": "C"}, "Missing branches array"),
    (Shape.MINDMAP, {"center": "C", "branches": ["b"]}, "Branch 0 is not an object"),
    (Shape.MINDMAP, {"center": "C", "branches": [{"subtopics": []}]},
     "Branch 0 missing valid 'topic' field"),
    (Shape.MINDMAP, {"center": "C", "branches": [{"topic": "T", "subtopics": []}, {"topic": "U"}]},
     "Branch 1 missing 'subtopics' array"),
])
def test_reports_first_violation(shape, value, detail):
    outcome = validate(shape, value)
    assert outcome.valid is False
    assert outcome.error_detail == detail
    assert outcome.parsed_value is None


def test_stops_at_first_failure():
    value = [{"front": "", "back": ""}, {"front": "", "back": ""}]
    assert validate(Shape.FLASHCARDS, value).error_detail == "Flashcard 0 missing valid 'front' field"


class TestQuizCorrectIndex:

    def test_integral_float_is_accepted(self):
        value = [{"question": "Q?", "options": ["A", "B"], "correctIndex": 1.0}]
        outcome = validate(Shape.QUIZ, value)
        assert outcome.valid is True
        assert outcome.parsed_value == value

    def test_fractional_float_is_rejected(self):
        value = [{"question": "Q?", "options": ["A", "B"], "correctIndex": 0.5}]
        assert validate(Shape.QUIZ, value).error_detail == "Question 0 has invalid 'correctIndex'"

    def test_integral_float_out_of_range_is_rejected(self):
        value = [{"question": "Q?", "options": ["A", "B"], "correctIndex": 2.0}]
        assert validate(Shape.QUIZ, value).error_detail == "Question 0 has invalid 'correctIndex'"

    def test_options_checked_before_index(self):
        value = [{"question": "Q?", "options": "AB", "correctIndex": 9}]
        assert validate(Shape.QUIZ, value).error_detail == "Question 0 missing valid 'options' array"


def test_extra_keys_are_kept_in_parsed_value():
    value = [{"task": "Ship", "priority": "high"}]
    assert validate(Shape.ACTION_ITEMS, value).parsed_value == value
