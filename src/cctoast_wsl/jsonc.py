"""
JSONC (JSON with comments) parsing.

Comments are removed by a small character scanner rather than a regex, so that
comment-like text inside string literals ("http://...", "/* ... */") survives
untouched. Newlines inside removed comments are kept, which keeps line numbers
in later JSON syntax errors aligned with the original text.

parse() never raises on malformed input: it returns best-effort data plus a
list of ParseError records. parse_settings() is the strict entry point for
callers that need a usable settings document.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from cctoast_wsl.errors import JsoncParseError, SettingsValidationError

UNTERMINATED_COMMENT = "Unterminated multi-line comment"
JSON_SYNTAX_ERROR = "JSON syntax error"


class ScanState(Enum):
    """Scanner states for comment stripping."""

    NORMAL = "normal"
    IN_STRING = "in_string"
    IN_LINE_COMMENT = "in_line_comment"
    IN_BLOCK_COMMENT = "in_block_comment"


@dataclass(frozen=True)
class ParseError:
    """A parse problem with its position in the original text."""

    message: str
    line: int  # 1-based
    column: int  # 1-based
    offset: int  # 0-based


@dataclass(frozen=True)
class ParseOptions:
    """Comment handling switches.

    allow_comments=False skips comment handling entirely, so any comment
    surfaces as a JSON syntax error. strip_comments=False still scans for
    comment problems but leaves the comments in place.
    """

    allow_comments: bool = True
    strip_comments: bool = True


@dataclass
class ParseResult:
    data: Any
    errors: list[ParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass
class _Stripped:
    text: str
    origin: list[int]  # origin[i] = offset in source of text[i]
    errors: list[ParseError]


def line_column(text: str, offset: int) -> tuple[int, int]:
    """Convert a 0-based offset into a 1-based (line, column) pair."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    last_newline = text.rfind("\n", 0, offset)
    return line, offset - last_newline


def _error_at(text: str, offset: int, message: str) -> ParseError:
    line, column = line_column(text, offset)
    return ParseError(message=message, line=line, column=column, offset=offset)


def _strip_comments(text: str) -> _Stripped:
    out: list[str] = []
    origin: list[int] = []
    errors: list[ParseError] = []

    state = ScanState.NORMAL
    escaped = False
    block_start = 0
    i = 0
    length = len(text)

    while i < length:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < length else ""

        if state is ScanState.NORMAL:
            if ch == "/" and nxt == "/":
                state = ScanState.IN_LINE_COMMENT
                i += 2
                continue
            if ch == "/" and nxt == "*":
                state = ScanState.IN_BLOCK_COMMENT
                block_start = i
                i += 2
                continue
            if ch == '"':
                state = ScanState.IN_STRING
                escaped = False
            out.append(ch)
            origin.append(i)

        elif state is ScanState.IN_STRING:
            out.append(ch)
            origin.append(i)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                state = ScanState.NORMAL

        elif state is ScanState.IN_LINE_COMMENT:
            if ch == "\n":
                state = ScanState.NORMAL
                out.append(ch)
                origin.append(i)

        else:  # IN_BLOCK_COMMENT
            if ch == "*" and nxt == "/":
                state = ScanState.NORMAL
                i += 2
                continue
            if ch == "\n":
                out.append(ch)
                origin.append(i)

        i += 1

    if state is ScanState.IN_BLOCK_COMMENT:
        errors.append(_error_at(text, block_start, UNTERMINATED_COMMENT))

    return _Stripped(text="".join(out), origin=origin, errors=errors)


class _NonStandardConstant(ValueError):
    """NaN / Infinity / -Infinity, which Python's json accepts and JSON does not."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(token)


def _reject_constant(token: str) -> Any:
    raise _NonStandardConstant(token)


def _find_outside_strings(source: str, token: str) -> int:
    """Offset of the first occurrence of token that is not inside a string literal."""
    in_string = False
    escaped = False
    for i, ch in enumerate(source):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif source.startswith(token, i):
            return i
    return len(source)


def _syntax_error(text: str, origin: list[int], pos: int, detail: str) -> ParseError:
    """Syntax error at pos in the stripped source, positioned on the original text."""
    offset = origin[pos] if pos < len(origin) else len(text)
    line, column = line_column(text, offset)
    return ParseError(
        message=f"{JSON_SYNTAX_ERROR} at line {line}, column {column}: {detail}",
        line=line,
        column=column,
        offset=offset,
    )


def parse(text: str, options: ParseOptions | None = None) -> ParseResult:
    """
    Parse JSONC text.

    Returns a ParseResult whose data is {} whenever any error was recorded.
    Empty or whitespace-only input is reported as a JSON syntax error.
    """
    options = options or ParseOptions()
    errors: list[ParseError] = []

    if options.allow_comments:
        stripped = _strip_comments(text)
        errors.extend(stripped.errors)
        if options.strip_comments:
            source, origin = stripped.text, stripped.origin
        else:
            source, origin = text, list(range(len(text)))
    else:
        source, origin = text, list(range(len(text)))

    try:
        data = json.loads(source, parse_constant=_reject_constant)
    except json.JSONDecodeError as e:
        errors.append(_syntax_error(text, origin, e.pos, e.msg))
        return ParseResult(data={}, errors=errors)
    except _NonStandardConstant as e:
        pos = _find_outside_strings(source, e.token)
        errors.append(_syntax_error(text, origin, pos, f"{e.token} is not valid JSON"))
        return ParseResult(data={}, errors=errors)

    return ParseResult(data={} if errors else data, errors=errors)


def validate(text: str) -> list[ParseError]:
    """Return parse errors for text without keeping the data."""
    return parse(text).errors


def parse_quick(text: str) -> Any | None:
    """Return parsed data, or None when the text has any error."""
    result = parse(text)
    return result.data if result.ok else None


def validate_settings(data: Any) -> dict[str, Any]:
    """Check the top-level settings shape, returning the document on success."""
    if not isinstance(data, dict):
        raise SettingsValidationError(
            f"expected a JSON object at the top level, got {type(data).__name__}"
        )
    hooks = data.get("hooks")
    if "hooks" in data and not isinstance(hooks, dict):
        raise SettingsValidationError(
            f'"hooks" must be an object, got {type(hooks).__name__}'
        )
    return data


def parse_settings(text: str) -> dict[str, Any]:
    """
    Parse settings text strictly.

    Raises:
        JsoncParseError: text is not valid JSONC
        SettingsValidationError: valid JSON with the wrong shape
    """
    result = parse(text)
    if result.errors:
        raise JsoncParseError(result.errors)
    return validate_settings(result.data)
