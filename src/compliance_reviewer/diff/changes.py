"""
Changed-file extraction

Lightweight line scanners over raw diff text used by the compliance
evaluator: changed-path extraction, code/test classification and
per-file indexes of added lines.
"""

import re
from dataclasses import dataclass
from typing import Dict, List


CODE_FILE_PATTERN = re.compile(r'\.(ts|tsx|js|jsx|py|go|java|kt|rb|php|cs|cpp|c|rs|sh|swift)$', re.IGNORECASE)
TEST_FILE_PATTERN = re.compile(r'(test|spec)\.(ts|tsx|js|jsx|py|go|java|kt|rb|php|cs|cpp|c|rs)$', re.IGNORECASE)

_NEW_FILE_MARKER = re.compile(r'^\+\+\+\s+[ab]/(.+)$')
_GIT_HEADER = re.compile(r'^diff --git a/(.+?) b/(.+)$')
_HUNK_NEW_START = re.compile(r'^@@\s+-\d+(?:,\d+)?\s+\+(\d+)(?:,\d+)?\s+@@')


@dataclass(frozen=True)
class AddedLine:
    """Added line with its post-image line number"""
    line: int
    text: str


def _split_lines(diff_text: str) -> List[str]:
    return diff_text.replace('\r\n', '\n').split('\n')


def parse_changed_files(diff_text: str) -> List[str]:
    """
    Extract changed file paths in first-seen order.

    Reads `+++ a/…`/`+++ b/…` markers and both sides of `diff --git` headers.
    """
    files: Dict[str, None] = {}
    for line in _split_lines(diff_text):
        marker = _NEW_FILE_MARKER.match(line)
        if marker:
            files.setdefault(marker.group(1), None)
        header = _GIT_HEADER.match(line)
        if header:
            files.setdefault(header.group(1), None)
            files.setdefault(header.group(2), None)
    return list(files)


def is_code_file(file_path: str) -> bool:
    return bool(CODE_FILE_PATTERN.search(file_path))


def is_test_file(file_path: str) -> bool:
    return bool(TEST_FILE_PATTERN.search(file_path))


def collect_added_lines_by_file(diff_text: str) -> Dict[str, List[AddedLine]]:
    """
    Index added lines per file with post-image line numbers.

    The counter restarts at the most recent `@@ … +N @@` header and
    advances on added, context and blank lines.
    """
    index: Dict[str, List[AddedLine]] = {}
    current_file = None
    new_line = 0

    for line in _split_lines(diff_text):
        if line.startswith('diff --git '):
            current_file = None
            continue
        marker = _NEW_FILE_MARKER.match(line)
        if marker:
            current_file = marker.group(1)
            index.setdefault(current_file, [])
            continue
        hunk = _HUNK_NEW_START.match(line)
        if hunk:
            new_line = int(hunk.group(1))
            continue
        if current_file is None:
            continue
        if line.startswith('+') and not line.startswith('+++'):
            index[current_file].append(AddedLine(new_line, line[1:]))
            new_line += 1
        elif line.startswith(' ') or line == '':
            new_line += 1

    return index


def collect_added_hunks_by_file(diff_text: str) -> Dict[str, List[str]]:
    """Group added lines per file into hunk texts (joined with newlines)."""
    index: Dict[str, List[str]] = {}
    current_file = None
    current_hunk: List[str] = []

    def flush() -> None:
        if current_file is not None and current_hunk:
            index.setdefault(current_file, []).append('\n'.join(current_hunk))

    for line in _split_lines(diff_text):
        if line.startswith('diff --git '):
            flush()
            current_file = None
            current_hunk = []
            continue
        marker = _NEW_FILE_MARKER.match(line)
        if marker:
            flush()
            current_hunk = []
            current_file = marker.group(1)
            index.setdefault(current_file, [])
            continue
        if current_file is None:
            continue
        if line.startswith('@@ '):
            flush()
            current_hunk = []
        elif line.startswith('+') and not line.startswith('+++'):
            current_hunk.append(line[1:])

    flush()
    return index
