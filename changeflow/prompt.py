"""Prompt template interpolation and instruction formatting.

Templates reference variables as ``${name}`` where ``name`` consists of
letters, digits, underscores and hyphens. Interpolation never fails: unknown
and malformed placeholders are left in the output verbatim and reported
through :class:`InterpolationResult` so callers can decide how strict to be.
"""

from __future__ import annotations

import re
import string
from typing import Dict, Iterable, List, Mapping, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .constants import CHANGE_REQUEST_VARIABLE, DEFAULT_PROMPT_PREFIX, NO_INSTRUCTIONS
from .errors import InterpolationError

# ``${`` followed by anything up to an optional closing brace. A match
# without the closing brace is an unterminated placeholder; it stops before
# the next ``$`` so a following placeholder is still seen.
_PLACEHOLDER_RE = re.compile(r"\$\{([^{}$]*)(\}?)")
_NAME_RE = re.compile(r"[A-Za-z0-9_-]+")

# Only runs that end a word are collapsed, so values such as ``../docs`` survive.
_REPEATED_PUNCTUATION_RE = re.compile(r"([.,!?;:])\1+(?=\s|$)")
_SENTENCE_BREAK_RE = re.compile(r"(?<=[.!?])\s+")
_SENTENCE_ENDINGS = (".", "!", "?")


class PromptVariables(BaseModel):
    """Variables available to prompt templates.

    ``change_request_file_path`` is the one variable every step can rely on.
    ``extra`` carries any additional names without changing this model.
    """

    model_config = ConfigDict(frozen=True)

    change_request_file_path: str = ""
    extra: Dict[str, str] = Field(default_factory=dict)

    @field_validator("extra")
    @classmethod
    def _validate_extra_names(cls, value: Dict[str, str]) -> Dict[str, str]:
        for name in value:
            if not is_valid_variable_name(name):
                raise ValueError(f"invalid variable name: {name!r}")
            if name == CHANGE_REQUEST_VARIABLE:
                raise ValueError(
                    f"{CHANGE_REQUEST_VARIABLE} must be set through its own field"
                )
        return value

    def as_map(self) -> Dict[str, str]:
        """Return the flat name to value mapping used for substitution."""
        values = dict(self.extra)
        if self.change_request_file_path:
            values[CHANGE_REQUEST_VARIABLE] = self.change_request_file_path
        return values


class InterpolationResult(BaseModel):
    """Interpolated text plus the placeholders that could not be resolved."""

    text: str
    missing_vars: List[str] = Field(default_factory=list)
    malformed_vars: List[str] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.missing_vars or self.malformed_vars)

    def raise_for_issues(
        self, message: str = "prompt interpolation encountered issues"
    ) -> None:
        """Raise :class:`InterpolationError` if any placeholder was unresolved."""
        if self.has_issues:
            raise InterpolationError(message, self.malformed_vars, self.missing_vars)


Variables = Union[PromptVariables, Mapping[str, str]]


def is_valid_variable_name(name: str) -> bool:
    return _NAME_RE.fullmatch(name) is not None


def _unique_preserve_order(values: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        ordered.append(value)
    return ordered


def _as_mapping(variables: Variables) -> Mapping[str, str]:
    if isinstance(variables, PromptVariables):
        return variables.as_map()
    return variables


def _substitute(
    template: str, values: Mapping[str, str]
) -> Tuple[str, List[str], List[str]]:
    missing: List[str] = []
    malformed: List[str] = []

    def replace(match: re.Match) -> str:
        name, closing = match.group(1), match.group(2)
        if closing and is_valid_variable_name(name):
            if name in values:
                return values[name]
            missing.append(name)
        else:
            malformed.append(name.strip() or match.group(0))
        return match.group(0)

    text = _PLACEHOLDER_RE.sub(replace, template)
    return text, _unique_preserve_order(missing), _unique_preserve_order(malformed)


def interpolate(template: str, variables: Variables) -> str:
    """Replace known ``${name}`` placeholders in ``template``."""
    text, _, _ = _substitute(template, _as_mapping(variables))
    return text


def interpolate_with_diagnostics(
    template: str, variables: Variables
) -> InterpolationResult:
    """Interpolate ``template`` and report missing and malformed placeholders.

    Args:
        template: Prompt template containing ``${name}`` placeholders.
        variables: Either a :class:`PromptVariables` or a plain mapping.

    Returns:
        The interpolated text with ``missing_vars`` (well formed but not
        provided) and ``malformed_vars`` (bad syntax) listed separately.
    """
    text, missing, malformed = _substitute(template, _as_mapping(variables))
    return InterpolationResult(text=text, missing_vars=missing, malformed_vars=malformed)


def interpolate_with_map(template: str, variables: Mapping[str, str]) -> str:
    """Interpolate using an arbitrary mapping of variable names to values."""
    text, _, _ = _substitute(template, variables)
    return text


def validate_prompt(template: str) -> None:
    """Raise :class:`InterpolationError` if ``template`` has malformed placeholders."""
    _, _, malformed = _substitute(template, {})
    if malformed:
        raise InterpolationError("prompt contains malformed variables", malformed)


def default_prompt(description: str) -> str:
    """Instruction used for steps without an authored prompt."""
    return DEFAULT_PROMPT_PREFIX + description


# ----------------------------------------------------------------------
# Instruction formatting
# ----------------------------------------------------------------------


def clean_punctuation(text: str) -> str:
    """Collapse trailing runs of the same punctuation mark (``...`` becomes ``.``)."""
    return _REPEATED_PUNCTUATION_RE.sub(r"\1", text)


def is_invalid_sentence(sentence: str) -> bool:
    """Return ``True`` for empty fragments or fragments made only of punctuation."""
    stripped = sentence.strip()
    if not stripped:
        return True
    return all(ch in string.punctuation or ch.isspace() for ch in stripped)


def extract_sentences(text: str) -> List[str]:
    """Split ``text`` into sentences, one per line break or sentence end."""
    sentences: List[str] = []
    for line in clean_punctuation(text).splitlines():
        for fragment in _SENTENCE_BREAK_RE.split(line):
            fragment = fragment.strip()
            if is_invalid_sentence(fragment):
                continue
            if not fragment.endswith(_SENTENCE_ENDINGS):
                fragment = fragment.rstrip(",;:") + "."
            sentences.append(fragment)
    return sentences


def format_as_instructions(text: str) -> str:
    """Render ``text`` as a numbered instruction list.

    Falls back to a single generic instruction when nothing usable remains,
    so a step never produces an empty artifact.
    """
    sentences = extract_sentences(text)
    if not sentences:
        return NO_INSTRUCTIONS
    return "".join(f"{number}. {sentence}\n" for number, sentence in enumerate(sentences, 1))


__all__ = [
    "PromptVariables",
    "InterpolationResult",
    "is_valid_variable_name",
    "interpolate",
    "interpolate_with_diagnostics",
    "interpolate_with_map",
    "validate_prompt",
    "default_prompt",
    "clean_punctuation",
    "is_invalid_sentence",
    "extract_sentences",
    "format_as_instructions",
]
