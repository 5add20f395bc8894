"""
VoiceSnap Backend — Structured Output Shape Validators
========================================================

What:  Structural checks for each kind of JSON artifact the service produces.
How:   One Pydantic model (or list-of-model type) per `Shape`, validated
       through a `TypeAdapter`. The first entry of `ValidationError.errors()`
       is turned into a short message naming the offending index and field.
       The registry is checked for completeness at import time, so adding a
       Shape without a schema fails immediately.
Who:   Called by response_parser.parse_and_validate after unwrapping.

Rules:
    flashcards   list of {front: str, back: str}
    quiz         list of {question: str, options: list (>= 2), correctIndex: int in range}
    actionItems  list of {task: str, assignee?: any, deadline?: any}
    highlights   list of str
    faq          list of {question: str, answer: str}
    mindmap      {center: str, branches: list of {topic: str, subtopics: list}}

    "str" above means a non-blank string. `correctIndex` also accepts an
    integral float such as 1.0, since JSON has a single number type.
    The validated value is returned as parsed (extra keys kept).
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Callable, Dict, Mapping, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_core import ErrorDetails, PydanticCustomError


class Shape(str, Enum):
    FLASHCARDS = "flashcards"
    QUIZ = "quiz"
    ACTION_ITEMS = "actionItems"
    HIGHLIGHTS = "highlights"
    FAQ = "faq"
    MINDMAP = "mindmap"


@dataclass(frozen=True)
class ValidationOutcome:
    """Result of validating one parsed value against one Shape."""

    valid: bool
    error_detail: Optional[str] = None
    parsed_value: Any = None


# ══════════════════════════════════════════════════════════════════════════
# Output Models
# ══════════════════════════════════════════════════════════════════════════

NonBlankStr = Annotated[str, StringConstraints(strict=True, strip_whitespace=True, min_length=1)]


class Flashcard(BaseModel):
    front: NonBlankStr
    back: NonBlankStr


class QuizQuestion(BaseModel):
    question: NonBlankStr
    options: list[Any] = Field(min_length=2)
    correctIndex: StrictInt

    @field_validator("correctIndex", mode="before")
    @classmethod
    def integral_float_to_int(cls, value: Any) -> Any:
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value

    @model_validator(mode="after")
    def index_within_options(self) -> "QuizQuestion":
        if not 0 <= self.correctIndex < len(self.options):
            raise PydanticCustomError("correct_index_range", "correctIndex is out of range")
        return self


class ActionItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    task: NonBlankStr
    assignee: Any = None
    deadline: Any = None


class FaqEntry(BaseModel):
    question: NonBlankStr
    answer: NonBlankStr


class Branch(BaseModel):
    topic: NonBlankStr
    subtopics: list[Any]


class MindMap(BaseModel):
    center: NonBlankStr
    branches: list[Branch]


# ══════════════════════════════════════════════════════════════════════════
# Error Messages
# ══════════════════════════════════════════════════════════════════════════

def _describe_items(
    label: str,
    plural: str,
    field_messages: Optional[Dict[str, str]] = None,
    item_messages: Optional[Dict[str, str]] = None,
) -> Callable[[ErrorDetails], str]:
    """
    Build a describer for list-of-object shapes.

    loc ()             → "Expected array of <plural>"
    loc (i,)           → "<label> i is not an object" (or item_messages[type])
    loc (i, field, …)  → "<label> i missing valid '<field>' field" (or field_messages[field])
    """
    field_messages = field_messages or {}
    item_messages = item_messages or {}

    def describe(error: ErrorDetails) -> str:
        loc = error["loc"]
        if not loc:
            return f"Expected array of {plural}"
        if len(loc) == 1:
            return f"{label} {loc[0]} {item_messages.get(error['type'], 'is not an object')}"
        field = loc[1]
        return f"{label} {loc[0]} {field_messages.get(field, f'missing valid {field!r} field')}"

    return describe


def _describe_highlights(error: ErrorDetails) -> str:
    loc = error["loc"]
    if not loc:
        return "Expected array of highlights"
    return f"Highlight {loc[0]} is not a valid string"


def _describe_mindmap(error: ErrorDetails) -> str:
    loc = error["loc"]
    if not loc:
        return "Expected mindmap object"
    if loc[0] == "center":
        return "Missing valid center topic"
    if len(loc) == 1:
        return "Missing branches array"
    if len(loc) == 2:
        return f"Branch {loc[1]} is not an object"
    if loc[2] == "topic":
        return f"Branch {loc[1]} missing valid 'topic' field"
    return f"Branch {loc[1]} missing 'subtopics' array"


# ══════════════════════════════════════════════════════════════════════════
# Registry
# ══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ShapeSchema:
    """A shape's type adapter plus the describer for its first error."""

    adapter: TypeAdapter
    describe: Callable[[ErrorDetails], str]


SCHEMAS: Mapping[Shape, ShapeSchema] = MappingProxyType({
    Shape.FLASHCARDS: ShapeSchema(
        TypeAdapter(list[Flashcard]),
        _describe_items("Flashcard", "flashcards"),
    ),
    Shape.QUIZ: ShapeSchema(
        TypeAdapter(list[QuizQuestion]),
        _describe_items(
            "Question",
            "questions",
            field_messages={
                "options": "missing valid 'options' array",
                "correctIndex": "has invalid 'correctIndex'",
            },
            item_messages={"correct_index_range": "has invalid 'correctIndex'"},
        ),
    ),
    Shape.ACTION_ITEMS: ShapeSchema(
        TypeAdapter(list[ActionItem]),
        _describe_items("Action item", "action items"),
    ),
    Shape.HIGHLIGHTS: ShapeSchema(TypeAdapter(list[NonBlankStr]), _describe_highlights),
    Shape.FAQ: ShapeSchema(
        TypeAdapter(list[FaqEntry]),
        _describe_items("FAQ", "FAQs"),
    ),
    Shape.MINDMAP: ShapeSchema(TypeAdapter(MindMap), _describe_mindmap),
})

_missing = set(Shape) - set(SCHEMAS)
if _missing:
    raise RuntimeError(f"No schema registered for shapes: {sorted(s.value for s in _missing)}")


def validate(shape: Shape, data: Any) -> ValidationOutcome:
    """Validate an already-parsed JSON value against `shape`. Never raises."""
    schema = SCHEMAS[Shape(shape)]
    try:
        schema.adapter.validate_python(data)
    except ValidationError as e:
        return ValidationOutcome(valid=False, error_detail=schema.describe(e.errors()[0]))
    return ValidationOutcome(valid=True, parsed_value=data)
