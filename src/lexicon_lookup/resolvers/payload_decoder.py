"""
Decoder for structured payloads embedded in free-text model output.

Models wrap the JSON answer in prose, code fences or slightly invalid
syntax. decode_translation_payload tries, in order:

1. strict: the whole text (or its fenced block) is one JSON object
2. balanced: the first brace-balanced object found by scanning the text
3. line-window: the lines from the first "{" line to the last "}" line,
   parsed as JSON after trailing-comma repair, then as a Python literal

Every step is pure and total. The result is a DecodeResult holding either a
validated TranslationPayload or the error that explains the failure.
"""
import ast
import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Tuple

from pydantic import ValidationError

from ..exceptions import ParseError, PayloadValidationError
from ..schemas import TranslationPayload

_FENCE_RE = re.compile(r"```(?:json|JSON|javascript|js)?\s*([\s\S]*?)```")
_TRAILING_COMMA_RE = re.compile(r",\s*([}\]])")
_JSON_LITERALS = (
    (re.compile(r"\btrue\b"), "True"),
    (re.compile(r"\bfalse\b"), "False"),
    (re.compile(r"\bnull\b"), "None"),
)

STRATEGY_STRICT = "strict"
STRATEGY_BALANCED = "balanced"
STRATEGY_LINE_WINDOW = "line-window"


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of decoding one response.

    Attributes:
        payload: Validated payload, None on failure
        strategy: Name of the strategy that succeeded
        error: ParseError (nothing extractable) or PayloadValidationError
            (extracted but invalid), None on success
    """
    payload: Optional[TranslationPayload]
    strategy: Optional[str] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.payload is not None


def _strict(text: str) -> Optional[Any]:
    fenced = _FENCE_RE.search(text)
    candidate = fenced.group(1) if fenced else text
    try:
        return json.loads(candidate.strip())
    except (ValueError, TypeError):
        return None


def _balanced_objects(text: str) -> Iterator[str]:
    """Yield every top-level {...} substring, honoring quoted strings."""
    depth = 0
    start = -1
    in_string = False
    escaped = False
    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = depth > 0
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start:index + 1]


def _balanced(text: str) -> Optional[Any]:
    for candidate in _balanced_objects(text):
        try:
            value = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(value, dict):
            return value
    return None


def _parse_lenient(candidate: str) -> Optional[Any]:
    repaired = _TRAILING_COMMA_RE.sub(r"\1", candidate)
    try:
        return json.loads(repaired)
    except ValueError:
        pass
    for pattern, replacement in _JSON_LITERALS:
        repaired = pattern.sub(replacement, repaired)
    try:
        return ast.literal_eval(repaired)
    except (ValueError, SyntaxError, TypeError, MemoryError, RecursionError):
        return None


def _line_window(text: str) -> Optional[Any]:
    lines = text.splitlines()
    start = next((i for i, line in enumerate(lines) if line.strip().startswith("{")), None)
    if start is None:
        return None
    end = next(
        (i for i in range(len(lines) - 1, start - 1, -1) if lines[i].strip().endswith("}")),
        None,
    )
    if end is None:
        return None
    window = "\n".join(lines[start:end + 1]).strip()
    # Drop prose glued to the braces on the boundary lines
    window = window[window.index("{"):window.rindex("}") + 1]
    return _parse_lenient(window)


_STRATEGIES: List[Tuple[str, Callable[[str], Optional[Any]]]] = [
    (STRATEGY_STRICT, _strict),
    (STRATEGY_BALANCED, _balanced),
    (STRATEGY_LINE_WINDOW, _line_window),
]


def decode_translation_payload(text: Optional[str]) -> DecodeResult:
    """
    Extract and validate a TranslationPayload from model output.

    Never raises; inspect ``result.ok`` / ``result.error``.

    :param text: Raw response text
    :return: DecodeResult
    """
    if not text or not text.strip():
        return DecodeResult(payload=None, error=ParseError("empty response"))

    validation_error: Optional[PayloadValidationError] = None
    for name, strategy in _STRATEGIES:
        candidate = strategy(text)
        if not isinstance(candidate, dict):
            continue
        try:
            return DecodeResult(payload=TranslationPayload.model_validate(candidate), strategy=name)
        except ValidationError as e:
            validation_error = PayloadValidationError(
                f"{name} extraction produced an invalid payload: {e.error_count()} error(s)"
            )

    if validation_error is not None:
        return DecodeResult(payload=None, error=validation_error)
    return DecodeResult(payload=None, error=ParseError("no structured payload found"))
