# services/analyzer/app/utils/json_scan.py
"""String/escape-aware scanning of JSON-ish text.

Every scan shares one discipline: a ``"`` toggles the in-string flag unless
it is escaped, a ``\\`` escapes the next character, and brackets are only
counted outside strings.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Tuple

_CLOSER = {"{": "}", "[": "]"}


@dataclass(frozen=True)
class ScanResult:
    start: int
    end: int             # exclusive
    balanced: bool
    pending: str = ""    # closers still owed at `end` (truncation scans only)

    def slice(self, text: str) -> str:
        if self.start < 0:
            return ""
        return text[self.start:self.end] + self.pending


NOT_FOUND = ScanResult(-1, -1, False)


def iter_unquoted(text: str, start: int = 0) -> Iterator[Tuple[int, str]]:
    """Yield (index, char) for every character outside string literals.

    Quote characters themselves are not yielded.
    """
    in_string = False
    escape_next = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape_next:
            escape_next = False
            continue
        if ch == "\\":
            escape_next = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if not in_string:
            yield i, ch


def scan_first_object(text: str, start: int = 0) -> ScanResult:
    """Span of the first top-level ``{...}`` at or after `start`."""
    first = text.find("{", start)
    if first == -1:
        return NOT_FOUND
    depth = 0
    for i, ch in iter_unquoted(text, first):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return ScanResult(first, i + 1, True)
    return ScanResult(first, len(text), False)


def scan_last_complete_object(text: str, start: int = 0) -> ScanResult:
    """Span from the first ``{`` to the last point where depth returned to zero.

    Meant for responses cut off mid-stream: everything up to the last fully
    closed top-level object is very likely valid even if the whole is not.
    """
    first = text.find("{", start)
    if first == -1:
        return NOT_FOUND
    depth = 0
    last_zero = -1
    for i, ch in iter_unquoted(text, first):
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                last_zero = i
    if last_zero == -1:
        return ScanResult(first, len(text), False)
    return ScanResult(first, last_zero + 1, True)


def _inside_array_entry(stack: List[str]) -> bool:
    """True if an open container on the stack is an element of an open array."""
    return "]" in stack[:-1]


def scan_truncated(text: str, start: int = 0) -> ScanResult:
    """Cut point for a response that ends before its top-level object closes.

    Tracks both ``{`` and ``[``. A cut is taken just past a ``}``/``]``, or
    just past an opening ``[``, but only where no array entry is left half
    written, so a truncated last element (nested values included) is dropped
    whole. `pending` holds the closers for the containers still open there.
    """
    first = text.find("{", start)
    if first == -1:
        return NOT_FOUND
    stack: List[str] = []
    cut = -1
    pending = ""
    for i, ch in iter_unquoted(text, first):
        if ch in _CLOSER:
            stack.append(_CLOSER[ch])
            if ch == "[" and not _inside_array_entry(stack):
                cut = i + 1
                pending = "".join(reversed(stack))
        elif ch in "}]":
            if not stack or stack[-1] != ch:
                # mismatched closer: nothing after this point is trustworthy
                break
            stack.pop()
            if not stack:
                return ScanResult(first, i + 1, True)
            if not _inside_array_entry(stack):
                cut = i + 1
                pending = "".join(reversed(stack))
    if cut == -1:
        return ScanResult(first, len(text), False)
    return ScanResult(first, cut, False, pending)
