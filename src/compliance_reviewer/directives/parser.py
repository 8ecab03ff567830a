"""
Directive Parser

Extracts `[ASSERT] key: value` statements from guidance markdown and
compiles them into typed Directive objects.
"""

import re
import logging
from typing import List, Optional, Pattern

from ..models.directive import Directive, DirectiveKind, DirectiveSet, LangPattern, PATTERN_KINDS


logger = logging.getLogger(__name__)

ASSERT_MARKER = '[ASSERT]'

_STATEMENT_PATTERN = re.compile(r'^\s*\[ASSERT\]\s*(.+)$', re.IGNORECASE)
_KEY_VALUE_SEPARATOR = re.compile(r':\s*')
_TRUTHY_PATTERN = re.compile(r'true|1|yes', re.IGNORECASE)
_REGEX_LITERAL = re.compile(r'^/(.+)/([a-z]*)$', re.DOTALL)

_LITERAL_FLAGS = {
    'i': re.IGNORECASE,
    'm': re.MULTILINE,
    's': re.DOTALL,
}


def extract_directive_lines(markdown: str) -> List[str]:
    """Return every line whose stripped, upper-cased form starts with [ASSERT]."""
    if not markdown:
        return []
    return [
        line for line in re.split(r'\r?\n', markdown)
        if line.strip().upper().startswith(ASSERT_MARKER)
    ]


def compile_pattern(value: str) -> Pattern[str]:
    """
    Compile a directive value into a regular expression.

    A `/pattern/flags` literal is accepted; `g`, `u` and `y` flags are
    ignored, `i`, `m` and `s` map to their Python equivalents.

    Raises:
        re.error: if the pattern does not compile
    """
    literal = _REGEX_LITERAL.match(value)
    if literal and set(literal.group(2)) <= set('gimsuy'):
        flags = 0
        for letter in literal.group(2):
            flags |= _LITERAL_FLAGS.get(letter, 0)
        return re.compile(literal.group(1), flags)
    return re.compile(value)


def format_pattern(pattern: Pattern[str]) -> str:
    """Render a compiled pattern as `/source/flags` for findings."""
    flags = ''
    if pattern.flags & re.IGNORECASE:
        flags += 'i'
    if pattern.flags & re.MULTILINE:
        flags += 'm'
    if pattern.flags & re.DOTALL:
        flags += 's'
    return f'/{pattern.pattern}/{flags}'


def parse_directive(line: str) -> Optional[Directive]:
    """
    Parse one `[ASSERT]` line.

    Returns:
        Directive, or None for unknown keys, empty values, non-numeric
        sizes or patterns that fail to compile
    """
    match = _STATEMENT_PATTERN.match(line)
    if not match:
        return None

    statement = match.group(1).strip()
    parts = _KEY_VALUE_SEPARATOR.split(statement, maxsplit=1)
    key = parts[0].strip().lower()
    value = parts[1].strip() if len(parts) > 1 else ''

    kind = DirectiveKind.from_key(key)
    if kind is None:
        logger.debug(f"Ignoring unknown directive key: {key}")
        return None
    if not value:
        logger.debug(f"Ignoring directive without value: {key}")
        return None

    try:
        if kind is DirectiveKind.REQUIRE_TESTS:
            return Directive(kind, bool(_TRUTHY_PATTERN.search(value)), line)

        if kind is DirectiveKind.MAX_FILE_BYTES:
            try:
                size = int(value)
            except ValueError:
                logger.debug(f"Ignoring non-numeric max-file-bytes: {value}")
                return None
            if size <= 0:
                return None
            return Directive(kind, size, line)

        if kind is DirectiveKind.ENFORCE_LICENSE_HEADER_LANG:
            lang, sep, pattern = value.partition('=')
            lang = lang.strip().lower()
            if not sep or not lang or not pattern.strip():
                logger.debug(f"Ignoring malformed lang header directive: {value}")
                return None
            return Directive(kind, LangPattern(lang, compile_pattern(pattern.strip())), line)

        if kind in PATTERN_KINDS:
            return Directive(kind, compile_pattern(value), line)
    except re.error as e:
        logger.debug(f"Dropping directive {key} with invalid pattern {value!r}: {e}")
        return None

    return None


def parse_directives(markdown: str) -> DirectiveSet:
    """
    Parse all directives in guidance markdown.

    Args:
        markdown: Guidance text, possibly empty

    Returns:
        DirectiveSet with compiled directives and the raw [ASSERT] lines
    """
    raw_lines = extract_directive_lines(markdown)
    directives = []
    for line in raw_lines:
        directive = parse_directive(line)
        if directive is not None:
            directives.append(directive)

    directive_set = DirectiveSet(directives=directives, raw=raw_lines)
    if raw_lines:
        logger.debug(f"Parsed {len(directives)}/{len(raw_lines)} directives: {directive_set.summary()}")
    return directive_set
