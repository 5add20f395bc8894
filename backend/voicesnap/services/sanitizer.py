"""
VoiceSnap Backend — Prompt Input Sanitizer
============================================

What:  Cleans and bounds untrusted text before it is embedded in a prompt.
How:   Applies a declarative SanitizationPolicy: truncate to the policy's
       maximum length, then replace every case-insensitive match of each
       injection-trigger rule with a redaction marker.
Who:   Called by TranscriptService on transcripts, chat questions and
       translation input.

Policy versioning:
    Rules live in data (DEFAULT_POLICY), not in control flow. Changing the
    rule set means publishing a new policy with a bumped `version`; the
    version is logged whenever something gets redacted.

Idempotency:
    The redaction marker matches none of the rules, and the output never
    exceeds `max_length`, so sanitize(sanitize(x)) == sanitize(x).
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Pattern, Tuple

logger = logging.getLogger(__name__)

REDACTION_MARKER = "[FILTERED]"
MAX_INPUT_LENGTH = 100_000


@dataclass(frozen=True)
class SanitizationRule:
    """One pattern→replacement pair. Patterns are compiled case-insensitive."""

    name: str
    pattern: Pattern[str]
    replacement: str = REDACTION_MARKER

    @classmethod
    def of(cls, name: str, regex: str, replacement: str = REDACTION_MARKER) -> "SanitizationRule":
        return cls(name=name, pattern=re.compile(regex, re.IGNORECASE), replacement=replacement)


@dataclass(frozen=True)
class SanitizationPolicy:
    version: str
    max_length: int
    rules: Tuple[SanitizationRule, ...]


DEFAULT_POLICY = SanitizationPolicy(
    version="1",
    max_length=MAX_INPUT_LENGTH,
    rules=(
        SanitizationRule.of("ignore_instructions", r"ignore (all )?(previous|above|prior) instructions"),
        SanitizationRule.of("disregard_instructions", r"disregard (all )?(previous|above|prior) instructions"),
        SanitizationRule.of("forget_instructions", r"forget (all )?(previous|above|prior) instructions"),
        SanitizationRule.of("new_instructions", r"new instructions:"),
        SanitizationRule.of("system_prompt", r"system prompt:"),
        SanitizationRule.of("inst_open", r"\[INST\]"),
        SanitizationRule.of("inst_close", r"\[/INST\]"),
        SanitizationRule.of("im_start", r"<\|im_start\|>"),
        SanitizationRule.of("im_end", r"<\|im_end\|>"),
        SanitizationRule.of("human_role", r"Human:"),
        SanitizationRule.of("assistant_role", r"Assistant:"),
    ),
)


def sanitize(text: Any, policy: SanitizationPolicy = DEFAULT_POLICY) -> str:
    """
    Bound and scrub untrusted text. Total: non-string input yields "".

    Steps:
        1. Truncate to policy.max_length.
        2. Apply each rule, in order, to the whole text.
        3. Re-bound to policy.max_length (markers can be longer than the
           phrase they replace).
    """
    if not isinstance(text, str):
        return ""

    if len(text) > policy.max_length:
        text = text[:policy.max_length]

    redacted = 0
    for rule in policy.rules:
        text, count = rule.pattern.subn(rule.replacement, text)
        redacted += count

    if redacted:
        logger.info(
            "Sanitizer redacted %d suspicious phrase(s) (policy v%s)",
            redacted,
            policy.version,
        )

    return text[:policy.max_length]
