# services/analyzer/app/utils/json_sanitize.py
"""Cheap, non-destructive clean-up of a model response before parsing."""
from __future__ import annotations
import re
from typing import List

from .json_scan import scan_first_object

_FENCE_OPEN_RE = re.compile(r"^```[\w+-]*[ \t]*(?:\r?\n|$)")
_FENCE_CLOSE_RE = re.compile(r"(?:\r?\n|^)[ \t]*```[ \t]*$")
_FENCE_LINE_RE = re.compile(r"^\s*```[\w+-]*\s*$")


def strip_outer_fences(text: str) -> str:
    """Drop a leading ```lang opener and a trailing ``` closer."""
    s = text.strip()
    if not s.startswith("```"):
        return s
    s = _FENCE_OPEN_RE.sub("", s, count=1)
    s = _FENCE_CLOSE_RE.sub("", s, count=1)
    return s.strip()


def strip_fence_lines(text: str) -> str:
    """Remove lines that hold nothing but a fence marker.

    A JSON string cannot contain a raw newline, so such a line is never
    string content.
    """
    if "```" not in text:
        return text
    lines: List[str] = [ln for ln in text.splitlines() if not _FENCE_LINE_RE.match(ln)]
    return "\n".join(lines)


def strip_comments(text: str) -> str:
    """Remove // line comments and /* */ block comments outside strings."""
    out: List[str] = []
    i, n = 0, len(text)
    in_string = False
    escape_next = False
    while i < n:
        ch = text[i]
        if in_string:
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            out.append(ch)
            i += 1
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
            continue
        if text.startswith("//", i):
            i += 2
            while i < n and text[i] not in "\r\n":
                i += 1
            continue
        if text.startswith("/*", i):
            end = text.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def anchor_object(text: str) -> str:
    """Keep only the first balanced {...} span; unchanged if there is none."""
    span = scan_first_object(text)
    if not span.balanced:
        return text
    return text[span.start:span.end]


def strip_trailing_commas(text: str) -> str:
    """Remove commas (and runs of commas) that directly precede } or ]."""
    out: List[str] = []
    i, n = 0, len(text)
    in_string = False
    escape_next = False
    while i < n:
        ch = text[i]
        if in_string:
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            out.append(ch)
            i += 1
            continue
        if ch == '"':
            in_string = True
        elif ch == ",":
            j = i + 1
            while j < n and (text[j].isspace() or text[j] == ","):
                j += 1
            if j < n and text[j] in "}]":
                i += 1
                continue
        out.append(ch)
        i += 1
    return "".join(out)


SANITIZE_STEPS = (
    strip_outer_fences,
    strip_fence_lines,
    strip_comments,
    anchor_object,
    strip_trailing_commas,
)


def sanitize(text: str) -> str:
    for step in SANITIZE_STEPS:
        text = step(text)
    return text.strip()
