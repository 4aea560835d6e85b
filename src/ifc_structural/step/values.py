"""Attribute values of STEP entity statements.

Every attribute of a parsed entity is one of five variants:
Null, Text, Number, Reference or ValueList. The set is closed; callers
dispatch with isinstance checks instead of inspecting raw strings.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Union

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_REFERENCE_RE = re.compile(r"^#(\d+)$")
_X2_RE = re.compile(r"\\X2\\(.*?)\\X0\\", re.IGNORECASE | re.DOTALL)
_X4_RE = re.compile(r"\\X4\\(.*?)\\X0\\", re.IGNORECASE | re.DOTALL)
_X_RE = re.compile(r"\\X\\([0-9A-Fa-f]{2})")


@dataclass(frozen=True)
class Null:
    """Unset attribute (`$` or an empty slot)."""


@dataclass(frozen=True)
class Text:
    """Quoted string, or any raw token that is not otherwise classifiable."""

    value: str


@dataclass(frozen=True)
class Number:
    value: float


@dataclass(frozen=True)
class Reference:
    """Pointer to another entity by its `#id`."""

    id: int


@dataclass(frozen=True)
class ValueList:
    """Parenthesized aggregate; items may nest."""

    items: tuple[AttributeValue, ...] = ()

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)


AttributeValue = Union[Null, Text, Number, Reference, ValueList]

NULL = Null()


def decode_step_string(raw: str) -> str:
    """Decode the body of a quoted STEP string.

    Collapses doubled quotes and expands the `\\X\\`, `\\X2\\` and `\\X4\\`
    hex escapes. Malformed escapes are left as written.
    """
    s = raw.replace("''", "'")
    if "\\" not in s:
        return s

    def _decode_wide(width: int):
        def _decode(m: re.Match[str]) -> str:
            hex_data = re.sub(r"[^0-9A-Fa-f]", "", m.group(1))
            if not hex_data or len(hex_data) % width != 0:
                return m.group(0)
            return "".join(
                chr(int(hex_data[i : i + width], 16))
                for i in range(0, len(hex_data), width)
            )
        return _decode

    s = _X2_RE.sub(_decode_wide(4), s)
    s = _X4_RE.sub(_decode_wide(8), s)
    s = _X_RE.sub(lambda m: chr(int(m.group(1), 16)), s)
    return s.replace("\\\\", "\\")


def split_attributes(text: str) -> list[str]:
    """Split an attribute string on top-level commas.

    Tracks parenthesis depth and string mode in one left-to-right scan.
    A doubled quote inside a string toggles string mode twice, so it
    never ends the string. Tokens are returned stripped; a trailing empty
    slot after a comma is kept so it can become Null.
    """
    tokens: list[str] = []
    current: list[str] = []
    depth = 0
    in_string = False
    saw_separator = False

    for ch in text:
        if ch == "'":
            in_string = not in_string
        elif not in_string:
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
            elif ch == "," and depth == 0:
                tokens.append("".join(current).strip())
                current = []
                saw_separator = True
                continue
        current.append(ch)

    tail = "".join(current).strip()
    if tail or saw_separator:
        tokens.append(tail)
    return tokens


def parse_value(token: str) -> AttributeValue:
    """Classify a single attribute token.

    Order: empty/`$` → Null, quoted → Text, `#digits` → Reference,
    numeric → Number, parenthesized → ValueList, anything else → raw Text
    (enumerations like `.T.`, derived `*`, typed values like
    `IFCLABEL('x')`, and malformed tokens). Numeric literals that overflow
    to infinity stay raw Text.
    """
    token = token.strip()
    if not token or token == "$":
        return NULL
    if len(token) >= 2 and token[0] == "'" and token[-1] == "'":
        return Text(decode_step_string(token[1:-1]))
    ref = _REFERENCE_RE.match(token)
    if ref:
        return Reference(int(ref.group(1)))
    if _NUMBER_RE.match(token):
        value = float(token)
        if math.isfinite(value):
            return Number(value)
        return Text(token)
    if token[0] == "(" and token[-1] == ")":
        return ValueList(parse_attributes(token[1:-1]))
    return Text(token)


def parse_attributes(text: str) -> tuple[AttributeValue, ...]:
    """Parse the comma-separated body of an entity statement."""
    return tuple(parse_value(token) for token in split_attributes(text))
