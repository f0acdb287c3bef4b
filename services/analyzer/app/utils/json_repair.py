# services/analyzer/app/utils/json_repair.py
"""Targeted rewrites for known LLM failure modes.

Only run after sanitize+parse has failed. Rules are ordered: the two
object-level removals run first so the bare-value quoting rule sees fewer
malformed fragments. Every rule is idempotent.
"""
from __future__ import annotations
import json
import logging
import re
from typing import Callable, List, Optional, Tuple

from .json_scan import iter_unquoted, scan_first_object

logger = logging.getLogger("analyzer.json_repair")

# ""-tokens with no key: preceded by , { [ and followed by , } ]
_KEYLESS_EMPTY_RE = re.compile(r'([,{\[])(\s*""\s*)+(?=[,}\]])')

_PLACEHOLDER_KEY_RE = re.compile(
    r"placeholder|_comment|_insights_|_{3,}|^__.*__$",
    re.IGNORECASE,
)
_LITERAL_RE = re.compile(r"(?:true|false|null)(?![\w-])")
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?$")
_DISCRIMINATORS = ("type", "category")
# `, "key":` start of the next field
_NEXT_KEY_RE = re.compile(r',\s*"[^"\n]*"\s*:')


def _string_spans(text: str) -> List[Tuple[int, int]]:
    """(start, end) of every string literal, end exclusive, quotes included."""
    spans: List[Tuple[int, int]] = []
    i, n = 0, len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            j = i + 1
            while j < n:
                if text[j] == "\\":
                    j += 2
                    continue
                if text[j] == '"':
                    break
                j += 1
            spans.append((i, min(j + 1, n)))
            i = j + 1
            continue
        i += 1
    return spans


def _prev_significant(text: str, i: int) -> str:
    j = i - 1
    while j >= 0 and text[j].isspace():
        j -= 1
    return text[j] if j >= 0 else ""


def _is_word_start(ch: str) -> bool:
    return ch.isalpha() or (not ch.isascii() and (ch.isalnum() or ch == "_"))


# ---------------------------------------------------------------
# 1. keyless empty strings
# ---------------------------------------------------------------
def drop_keyless_empty_strings(text: str) -> str:
    """`{"title": "", "", ""}` -> `{"title": "",,}` (separators fixed later)."""
    out: List[str] = []
    last = 0
    # only rewrite the gaps between string literals' *contents*
    for start, end in _string_spans(text):
        if end - start == 2 and text[start:end] == '""':
            continue
        out.append(_KEYLESS_EMPTY_RE.sub(r"\1", text[last:start]))
        out.append(text[start:end])
        last = end
    out.append(_KEYLESS_EMPTY_RE.sub(r"\1", text[last:]))
    return "".join(out)


# ---------------------------------------------------------------
# 2. placeholder objects inside arrays
# ---------------------------------------------------------------
def _is_placeholder_object(fragment: str) -> bool:
    try:
        obj = json.loads(collapse_separators(fragment))
    except (ValueError, RecursionError):
        return False
    if not isinstance(obj, dict) or len(obj) < 2:
        return False
    if any(isinstance(v, (dict, list)) for v in obj.values()):
        return False
    tag = next((k for k in _DISCRIMINATORS if k in obj), None)
    if tag is None or not str(obj[tag]).strip():
        return False
    return all(
        v is None or (isinstance(v, str) and not v.strip())
        for k, v in obj.items() if k != tag
    )


def drop_placeholder_objects(text: str) -> str:
    """Remove array entries like `{"type": "render", "title": "", "impact": ""}`."""
    cuts: List[Tuple[int, int]] = []
    for i, ch in iter_unquoted(text):
        if ch != "{" or (cuts and i < cuts[-1][1]):
            continue
        if _prev_significant(text, i) not in ("[", ","):
            continue
        span = scan_first_object(text, i)
        if span.balanced and _is_placeholder_object(text[span.start:span.end]):
            cuts.append((span.start, span.end))
    if not cuts:
        return text
    logger.debug("dropping placeholder array entries", extra={"count": len(cuts)})
    out: List[str] = []
    last = 0
    for start, end in cuts:
        out.append(text[last:start])
        last = end
    out.append(text[last:])
    return "".join(out)


# ---------------------------------------------------------------
# 3. bare / half-quoted string values
# ---------------------------------------------------------------
def _escape(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def _closes_value(text: str, q: int) -> bool:
    """True if the quote at q is followed by , } ] or a line end."""
    j = q + 1
    while j < len(text) and text[j] in " \t":
        j += 1
    return j >= len(text) or text[j] in ",}]\r\n"


def _bare_value_end(text: str, i: int) -> Tuple[int, int]:
    """(value_end, resume_at) for a bare value starting at i."""
    line_end = text.find("\n", i)
    if line_end == -1:
        line_end = len(text)
    q = text.find('"', i, line_end)
    while q != -1:
        if _NEXT_KEY_RE.search(text, i, q):
            # the quote belongs to a later field; the value is wholly bare
            break
        if _closes_value(text, q):
            # only the opening quote is missing: `"k": value text",`
            return q, q + 1
        q = text.find('"', q + 1, line_end)
    j = i
    while j < line_end and text[j] not in ",}]":
        j += 1
    return j, j


def quote_bare_values(text: str) -> str:
    """Quote values that follow `": ` and start with a letter.

    Literals (true/false/null) and numbers are left alone; nothing inside an
    existing string is touched.
    """
    out: List[str] = []
    last = 0
    i, n = 0, len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == '"':
            in_string = not in_string
            i += 1
            continue
        if in_string or ch != ":" or _prev_significant(text, i) != '"':
            i += 1
            continue
        j = i + 1
        while j < n and text[j] in " \t":
            j += 1
        if j >= n or not _is_word_start(text[j]) or _LITERAL_RE.match(text, j):
            i = j
            continue
        end, resume = _bare_value_end(text, j)
        value = text[j:end].strip()
        if value and not _NUMBER_RE.match(value):
            out.append(text[last:j])
            out.append(f'"{_escape(value)}"')
            last = resume
        # the value (and a consumed closing quote) is behind us: back outside strings
        i = max(resume, j + 1)
    if not out:
        return text
    out.append(text[last:])
    return "".join(out)


# ---------------------------------------------------------------
# 4. placeholder / comment fields
# ---------------------------------------------------------------
def _value_end(text: str, i: int) -> int:
    """End (exclusive) of the JSON value starting at or after i."""
    n = len(text)
    while i < n and text[i].isspace():
        i += 1
    if i >= n:
        return n
    ch = text[i]
    if ch == '"':
        j = i + 1
        while j < n:
            if text[j] == "\\":
                j += 2
                continue
            if text[j] == '"':
                return j + 1
            j += 1
        return n
    if ch in "{[":
        closer = "}" if ch == "{" else "]"
        depth = 0
        for j, c in iter_unquoted(text, i):
            if c == ch:
                depth += 1
            elif c == closer:
                depth -= 1
                if depth == 0:
                    return j + 1
        return n
    j = i
    while j < n and text[j] not in ",}]\n":
        j += 1
    return j


def _placeholder_field_at(text: str, start: int, end: int) -> Optional[int]:
    """If text[start:end] is a placeholder key followed by ':', return the field end."""
    key = text[start + 1:end - 1]
    if not _PLACEHOLDER_KEY_RE.search(key):
        return None
    j = end
    while j < len(text) and text[j].isspace():
        j += 1
    if j >= len(text) or text[j] != ":":
        return None
    return _value_end(text, j + 1)


def drop_placeholder_fields(text: str) -> str:
    """Remove `"_placeholder_": ...`, `"__note__": ...` style fields."""
    out: List[str] = []
    last = 0
    for start, end in _string_spans(text):
        if start < last:
            continue
        field_end = _placeholder_field_at(text, start, end)
        if field_end is None:
            continue
        out.append(text[last:start])
        last = field_end
    if not out:
        return text
    out.append(text[last:])
    return "".join(out)


# ---------------------------------------------------------------
# 5. separators
# ---------------------------------------------------------------
def collapse_separators(text: str) -> str:
    """Drop duplicate commas and commas directly after { [ or before } ]."""
    out: List[str] = []
    in_string = False
    escape_next = False
    prev = ""          # last significant char emitted outside strings
    n = len(text)
    for i, ch in enumerate(text):
        if in_string:
            out.append(ch)
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
                prev = '"'
            continue
        if ch == '"':
            in_string = True
            out.append(ch)
            continue
        if ch == ",":
            j = i + 1
            while j < n and (text[j].isspace() or text[j] == ","):
                j += 1
            nxt = text[j] if j < n else ""
            if prev in ("", ",", "{", "[") or nxt in ("}", "]", ""):
                continue
        out.append(ch)
        if not ch.isspace():
            prev = ch
    return "".join(out)


RepairRule = Callable[[str], str]

REPAIR_RULES: Tuple[RepairRule, ...] = (
    drop_keyless_empty_strings,
    drop_placeholder_objects,
    quote_bare_values,
    drop_placeholder_fields,
    collapse_separators,
)


def repair(text: str) -> str:
    for rule in REPAIR_RULES:
        fixed = rule(text)
        if fixed != text:
            logger.debug("repair rule applied", extra={"rule": rule.__name__})
        text = fixed
    return text
