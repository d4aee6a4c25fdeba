"""Errors raised while parsing module-definition text."""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    """The kind of low-level parse step that failed."""

    TAG = "Tag"
    CHAR = "Character"
    DIGIT = "Digit"
    HEX_DIGIT = "Hexadecimal Digit"
    MAP_RES = "Map on Result"
    TAKE_WHILE1 = "TakeWhile1"
    IS_NOT = "IsNot"
    VERIFY = "predicate verification"
    SATISFY = "Satisfy"
    FAIL = "Fail"
    ALT = "Alternative"
    MANY1 = "Many1"
    MULTISPACE = "Multiple spaces"
    CRLF = "CrLf"
    EOF = "End of file"

    @property
    def description(self) -> str:
        return self.value


class ParseFailure(Exception):
    """A parser could not match the input at ``offset``.

    A failure marked ``fatal`` is not recovered from by alternatives: it
    aborts the whole parse.
    """

    def __init__(self, offset: int, kind: ErrorKind, fatal: bool = False) -> None:
        super().__init__(offset, kind, fatal)
        self.offset = offset
        self.kind = kind
        self.fatal = fatal

    def __str__(self) -> str:
        return f"{self.kind.description} at offset {self.offset}"


def line_and_column(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based line and column of ``offset`` in ``text``."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def _line_containing(text: str, offset: int) -> str:
    offset = max(0, min(offset, len(text)))
    line_start = text.rfind("\n", 0, offset) + 1
    line_end = text.find("\n", line_start)
    if line_end == -1:
        line_end = len(text)
    return text[line_start:line_end]


class ParseError(Exception):
    """A located parse error, reported with the offending line."""

    def __init__(self, line: int, column: int, fragment: str, kind: ErrorKind) -> None:
        super().__init__(line, column, fragment, kind)
        self.line = line
        self.column = column
        self.fragment = fragment
        self.kind = kind

    @classmethod
    def from_failure(cls, text: str, failure: ParseFailure) -> "ParseError":
        """Build a located error for ``failure`` raised while parsing ``text``."""
        line, column = line_and_column(text, failure.offset)
        return cls(line, column, _line_containing(text, failure.offset), failure.kind)

    def __str__(self) -> str:
        return (
            f"at {self.line}:{self.column}: parse error: {self.kind.description}\n"
            f"{self.line:>5} | {self.fragment}\n"
            f"{' ':>5} | {'^':>{self.column}}\n"
        )