"""
Format strings used by variable transforms.

A format string is the replacement part of ``${VAR/regex/format/flags}``:
literal text mixed with capture group references such as ``$1``, ``${1}``,
``${1:/upcase}``, ``${1:+if}``, ``${1:-else}``, ``${1:else}`` and
``${1:?if:else}``. Conditional branches are themselves format strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from lsp_snippet.nodes import MAX_NESTING, is_digit, is_ident_part, is_ident_start

CASE_UPCASE = "upcase"
CASE_DOWNCASE = "downcase"
CASE_CAPITALIZE = "capitalize"


@dataclass(frozen=True)
class FormatText:
    text: str


@dataclass(frozen=True)
class GroupRef:
    group: int


@dataclass(frozen=True)
class CaseGroupRef:
    group: int
    op: str


@dataclass(frozen=True)
class ConditionalGroupRef:
    group: int
    if_value: FormatString | None
    else_value: FormatString | None


FormatToken = Union[FormatText, GroupRef, CaseGroupRef, ConditionalGroupRef]


@dataclass(frozen=True)
class FormatString:
    """A parsed format string."""

    tokens: tuple[FormatToken, ...] = ()

    @classmethod
    def parse(cls, source: str, pos: int = 0, stop_char: str | None = None) -> tuple[FormatString, int]:
        """Parse a format string starting at ``pos``.

        Scanning stops before the first unescaped ``stop_char`` (or at the end
        of ``source``). Returns the parsed format string and the position
        where scanning stopped.
        """
        parser = _FormatParser(source, pos)
        result = parser.parse(stop_char)
        return result, parser.pos

    def group_numbers(self) -> set[int]:
        numbers: set[int] = set()
        for token in self.tokens:
            if isinstance(token, (GroupRef, CaseGroupRef)):
                numbers.add(token.group)
            elif isinstance(token, ConditionalGroupRef):
                numbers.add(token.group)
                for branch in (token.if_value, token.else_value):
                    if branch is not None:
                        numbers |= branch.group_numbers()
        return numbers

    def evaluate(self, match) -> str:
        """Expand this format string against a regex match."""
        parts: list[str] = []
        self._expand(match, parts)
        return "".join(parts)

    def _expand(self, match, parts: list[str]) -> None:
        for token in self.tokens:
            if isinstance(token, FormatText):
                parts.append(token.text)
            elif isinstance(token, GroupRef):
                value = _group_value(match, token.group)
                if value is not None:
                    parts.append(value)
            elif isinstance(token, CaseGroupRef):
                value = _group_value(match, token.group)
                if value:
                    parts.append(_apply_case(token.op, value))
            elif isinstance(token, ConditionalGroupRef):
                value = _group_value(match, token.group)
                if value is not None:
                    if token.if_value is not None:
                        token.if_value._expand(match, parts)
                    else:
                        parts.append(value)
                elif token.else_value is not None:
                    token.else_value._expand(match, parts)


def _group_value(match, group: int) -> str | None:
    # Group numbers are validated against the pattern when the transform is
    # parsed; None here means the group did not take part in the match.
    return match.group(group)


def _apply_case(op: str, value: str) -> str:
    if op == CASE_UPCASE:
        return value.upper()
    if op == CASE_DOWNCASE:
        return value.lower()
    if op == CASE_CAPITALIZE:
        return value[0].upper() + value[1:]
    return value


class _FormatParser:
    """Recursive-descent scanner over a shared source string."""

    def __init__(self, source: str, pos: int):
        self.source = source
        self.pos = pos
        # start position of a "$" -> (token or None, end position)
        self._groups: dict[int, tuple[FormatToken | None, int]] = {}
        self._depth = 0

    def parse(self, stop_char: str | None) -> FormatString:
        tokens: list[FormatToken] = []
        text: list[str] = []
        source = self.source
        while self.pos < len(source):
            ch = source[self.pos]
            if stop_char is not None and ch == stop_char:
                break
            if ch == "$":
                token = self._parse_group()
                if token is not None:
                    if text:
                        tokens.append(FormatText("".join(text)))
                        text = []
                    tokens.append(token)
                    continue
            self.pos += 1
            if ch == "\\" and self.pos < len(source):
                next_ch = source[self.pos]
                if next_ch in ("$", "\\") or next_ch == stop_char:
                    text.append(next_ch)
                    self.pos += 1
                    continue
            text.append(ch)
        if text:
            tokens.append(FormatText("".join(text)))
        return FormatString(tuple(tokens))

    def _parse_group(self) -> FormatToken | None:
        # Memoized like snippet constructs: a failed conditional rescans its branches.
        start = self.pos
        cached = self._groups.get(start)
        if cached is None:
            token = None
            if self._depth < MAX_NESTING:
                self._depth += 1
                self.pos += 1  # eat '$'
                if self._accept("{"):
                    token = self._parse_braced_group()
                else:
                    group = self._parse_int()
                    if group is not None:
                        token = GroupRef(group)
                self._depth -= 1
            cached = (token, self.pos if token is not None else start)
            self._groups[start] = cached
        token, end = cached
        self.pos = end
        return token

    def _parse_braced_group(self) -> FormatToken | None:
        group = self._parse_int()
        if group is None:
            return None
        if self._accept("}"):
            return GroupRef(group)
        if not self._accept(":"):
            return None
        if self._accept("/"):
            op = self._parse_ident()
            if op is not None and self._accept("}"):
                return CaseGroupRef(group, op)
        elif self._accept("+"):
            if_value = self.parse("}")
            if self._accept("}"):
                return ConditionalGroupRef(group, if_value, None)
        elif self._accept("?"):
            if_value = self.parse(":")
            if self._accept(":"):
                else_value = self.parse("}")
                if self._accept("}"):
                    return ConditionalGroupRef(group, if_value, else_value)
        else:
            self._accept("-")
            else_value = self.parse("}")
            if self._accept("}"):
                return ConditionalGroupRef(group, None, else_value)
        return None

    def _parse_int(self) -> int | None:
        start = self.pos
        while self.pos < len(self.source) and is_digit(self.source[self.pos]):
            self.pos += 1
        if self.pos == start:
            return None
        return int(self.source[start:self.pos])

    def _parse_ident(self) -> str | None:
        source = self.source
        if self.pos >= len(source) or not is_ident_start(source[self.pos]):
            return None
        start = self.pos
        self.pos += 1
        while self.pos < len(source) and is_ident_part(source[self.pos]):
            self.pos += 1
        return source[start:self.pos]

    def _accept(self, ch: str) -> bool:
        if self.pos < len(self.source) and self.source[self.pos] == ch:
            self.pos += 1
            return True
        return False
