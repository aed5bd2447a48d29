"""Locate and parse individual sections of a bundle without parsing the whole document.

A section is a top-level property of the bundle (``"tasks": [...]``). The
scanner finds the property key, walks forward counting bracket depth while
skipping over string literals, and hands only the balanced substring to
``json.loads``. A section that is missing, has the wrong shape or fails to
parse degrades to ``None`` instead of failing the whole import.
"""

import json
import logging
import re
from typing import Any, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Characters that change nesting depth or open a string literal
_STRUCTURAL = re.compile(r'["\[\]{}]')
# Remainder of a string literal after its opening quote, escapes included
_STRING_TAIL = re.compile(r'[^"\\]*(?:\\.[^"\\]*)*"', re.DOTALL)

_CLOSERS = {'[': ']', '{': '}'}


def name_variants(name: str) -> List[str]:
    """Casing variants tried for a property key, in priority order."""
    variants = [name, name.lower(), name.upper(), name[:1].upper() + name[1:].lower()]
    return list(dict.fromkeys(variants))


def _skip_whitespace(source: str, pos: int) -> int:
    while pos < len(source) and source[pos].isspace():
        pos += 1
    return pos


def _locate_value(name: str, source: str) -> Optional[Tuple[int, str]]:
    """Return the index of the first non-whitespace character after ``"name":``.

    Returns:
        Tuple of (value start index, matched key variant), or None when no
        variant of the key occurs in ``source``.
    """
    for variant in name_variants(name):
        match = re.search(r'"' + re.escape(variant) + r'"\s*:', source)
        if match:
            return _skip_whitespace(source, match.end()), variant
    # Any other casing, e.g. "DailyPlans"
    match = re.search(r'"' + re.escape(name) + r'"\s*:', source, re.IGNORECASE)
    if match:
        return _skip_whitespace(source, match.end()), source[match.start() + 1:match.start() + 1 + len(name)]
    return None


def find_balanced_end(source: str, start: int) -> Optional[int]:
    """Find the end of the array or object opening at ``source[start]``.

    Brackets inside double-quoted strings (including escaped quotes) are not
    counted. Only the bracket kind that opened the value changes the depth.

    Returns:
        Index one past the matching closing bracket, or None if the input ends
        before the value is balanced.
    """
    opener = source[start]
    closer = _CLOSERS[opener]
    depth = 0
    pos = start
    while True:
        match = _STRUCTURAL.search(source, pos)
        if match is None:
            return None
        char = match.group()
        pos = match.end()
        if char == '"':
            tail = _STRING_TAIL.match(source, pos)
            if tail is None:
                return None
            pos = tail.end()
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return pos


def _extract_value(name: str, source: str, opener: str) -> Any:
    located = _locate_value(name, source)
    if located is None:
        logger.info(f'Section "{name}" not found in JSON')
        return None

    start, matched = located
    found = source[start:start + 1]
    if found != opener:
        if source.startswith('null', start):
            logger.info(f'Section "{matched}" is null')
        else:
            logger.warning(f'Expected {opener} for start of "{matched}", found {found!r}')
        return None

    end = find_balanced_end(source, start)
    if end is None:
        logger.error(f'Malformed JSON: unbalanced brackets in "{matched}"')
        return None

    section_json = source[start:end]
    try:
        return json.loads(section_json)
    except json.JSONDecodeError as e:
        logger.error(f'Error parsing "{matched}" section: {e}')
        logger.debug(f"Section JSON snippet: {section_json[:100]}...")
        return None


def extract_section(name: str, source: str) -> Optional[List[Any]]:
    """Extract the array value of the top-level property ``name``.

    Args:
        name: Logical section name, e.g. "tasks"
        source: Raw JSON document text

    Returns:
        The parsed list, or None when the section is absent, not an array, or
        does not parse on its own.
    """
    return _extract_value(name, source, '[')


def extract_object(name: str, source: str) -> Optional[dict]:
    """Extract the object value of the property ``name`` using the same balanced scan.

    Nested objects and arrays inside the value are handled, so a work schedule
    with a full ``shifts`` list is recovered intact.
    """
    return _extract_value(name, source, '{')


def scan_top_level_keys(source: str) -> List[str]:
    """List the keys of the root object by scanning characters.

    Nothing below the first nesting level is decoded. Scanning stops at the
    root's closing brace or where the document becomes malformed.
    """
    start = _skip_whitespace(source, 0)
    if source[start:start + 1] != '{':
        return []

    keys: List[str] = []
    depth = 0
    pos = start
    while True:
        match = _STRUCTURAL.search(source, pos)
        if match is None:
            break
        char = match.group()
        pos = match.end()
        if char == '"':
            tail = _STRING_TAIL.match(source, pos)
            if tail is None:
                break
            if depth == 1:
                after = _skip_whitespace(source, tail.end())
                if source[after:after + 1] == ':':
                    literal = source[match.start():tail.end()]
                    try:
                        keys.append(json.loads(literal))
                    except json.JSONDecodeError:
                        keys.append(literal[1:-1])
            pos = tail.end()
        elif char in _CLOSERS:
            depth += 1
        else:
            depth -= 1
            if depth == 0:
                break
    return keys
