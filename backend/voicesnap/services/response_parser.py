"""
VoiceSnap Backend — Response Unwrapper
========================================

What:  Turns raw generated text into a parsed JSON value.
How:   Strips a surrounding markdown code fence (with an optional language
       tag) and hands the rest to json.loads. No semantic checks here.
Who:   TranscriptService, for every structured operation.

Accepted inputs (all parse to the same value):
    [{"front": "X", "back": "Y"}]
    ```json
    [{"front": "X", "back": "Y"}]
    ```
    ```[{"front": "X", "back": "Y"}]```
"""

import json
import logging
import re
from typing import Any, Union

from voicesnap.exceptions import ResponseParseError
from voicesnap.services.error_classifier import ClassifiedError, ErrorKind
from voicesnap.services.shape_validators import Shape, ValidationOutcome, validate

logger = logging.getLogger(__name__)

FENCE = "```"

# Opening fence followed by either a language tag ending the line, or a bare
# "json" tag glued to the payload.
_OPENING_FENCE = re.compile(r"^```(?:[\w+.-]*[ \t]*\r?\n|json(?![\w]))", re.IGNORECASE)


def strip_fences(raw_text: str) -> str:
    """Remove one leading and one trailing code fence, if present."""
    cleaned = raw_text.strip()
    match = _OPENING_FENCE.match(cleaned)
    if match:
        cleaned = cleaned[match.end():]
    elif cleaned.startswith(FENCE):
        cleaned = cleaned[len(FENCE):]
    if cleaned.endswith(FENCE):
        cleaned = cleaned[:-len(FENCE)]
    return cleaned.strip()


def unwrap(raw_text: str) -> Any:
    """
    Parse generated text as a single JSON value.

    Raises:
        ResponseParseError: input is not a string, or not valid JSON once the
            fences are removed.
    """
    if not isinstance(raw_text, str):
        raise ResponseParseError(context={"input_type": type(raw_text).__name__})
    try:
        return json.loads(strip_fences(raw_text))
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            raw_text=raw_text,
            context={"line": e.lineno, "column": e.colno, "reason": e.msg},
        ) from e
    except (ValueError, RecursionError) as e:
        # Integer digit limit or nesting too deep for the decoder
        raise ResponseParseError(
            raw_text=raw_text,
            context={"reason": type(e).__name__},
        ) from e


def parse_and_validate(raw_text: str, shape: Shape) -> Union[ValidationOutcome, ClassifiedError]:
    """
    Unwrap `raw_text` and validate it against `shape`.

    Returns:
        A valid ValidationOutcome carrying the parsed value, or a
        ClassifiedError of kind PARSE_ERROR / SCHEMA_ERROR.
    """
    try:
        parsed = unwrap(raw_text)
    except ResponseParseError as e:
        logger.warning("Could not parse %s response: %s", Shape(shape).value, e.context)
        return ClassifiedError(
            kind=ErrorKind.PARSE_ERROR,
            message=e.message,
            retryable=False,
        )

    outcome = validate(shape, parsed)
    if not outcome.valid:
        logger.warning("%s response failed validation: %s", Shape(shape).value, outcome.error_detail)
        return ClassifiedError(
            kind=ErrorKind.SCHEMA_ERROR,
            message=outcome.error_detail or "Response did not match the expected format",
            retryable=False,
        )
    return outcome
