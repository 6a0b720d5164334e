# extractor.py
# Pulls a candidate plan object out of free-form oracle text.
#
# Order: fenced ```json block first, then a string-aware brace scan over the
# whole response. Returns None when nothing plan-shaped is found.

import re

from plan_architect.errors import ExtractionError

# Objects with a tasks array win over objects that only mention an alias.
PLAN_MARKERS = ('"tasks"', '"steps"')
ALIAS_MARKERS = ('"plan"', '"actions"')

_THINK_RE = re.compile(r"<(think|thinking)>.*?</\1>", re.DOTALL)
_FENCE_RE = re.compile(r"```[\w-]*[ \t]*\n?(.*?)```", re.DOTALL)


def strip_thinking_tags(text: str) -> str:
    """Remove ``<think>`` / ``<thinking>`` reasoning blocks."""
    return _THINK_RE.sub("", text).strip()


def _has_marker(candidate: str, markers: tuple[str, ...]) -> bool:
    return any(marker in candidate for marker in markers)


def _fenced_blocks(text: str) -> list[str]:
    return [match.group(1).strip() for match in _FENCE_RE.finditer(text)]


def iter_top_level_objects(text: str) -> list[str]:
    """
    Return every brace-balanced top-level ``{...}`` span, left to right.

    Braces inside JSON string literals are ignored. A ``}`` with no open
    object is skipped, and an object still open at end of text is dropped.
    """
    spans: list[str] = []
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
            # Quotes only open strings inside an object; prose quotes are noise.
            if depth > 0:
                in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}":
            if depth == 0:
                continue
            depth -= 1
            if depth == 0:
                spans.append(text[start : index + 1])

    return spans


def extract_json(text: str) -> str | None:
    """
    Return the substring most likely to be the intended JSON plan, or None.

    Fenced blocks are searched before bare objects. A candidate carrying
    ``"tasks"`` or ``"steps"`` anywhere in the text beats any candidate that
    only carries ``"plan"`` or ``"actions"``.
    """
    blocks = _fenced_blocks(text)
    objects = iter_top_level_objects(text)

    for markers in (PLAN_MARKERS, ALIAS_MARKERS):
        for candidate in blocks + objects:
            if _has_marker(candidate, markers):
                return candidate

    return None


def require_json(text: str) -> str:
    """Like :func:`extract_json` but raises :class:`ExtractionError` on a miss."""
    candidate = extract_json(text)
    if candidate is None:
        raise ExtractionError(
            "No JSON object containing a \"tasks\" array was found in the response."
        )
    return candidate
