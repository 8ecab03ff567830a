"""
Diff Normalizer

Parses raw unified/git diff text into a structured file/hunk model.
Line classification is driven by a small state machine so that partial or
malformed input degrades to recorded errors instead of exceptions.
"""

import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from ..models.diff import DiffFile, DiffLine, Hunk, NormalizedDiff


logger = logging.getLogger(__name__)

DEV_NULL = '/dev/null'


class ParseState(Enum):
    """Line classification states"""
    SEEKING_FILE_HEADER = 'seeking-file-header'
    IN_HUNK_HEADER = 'in-hunk-header'
    IN_HUNK_BODY = 'in-hunk-body'


@dataclass
class _HunkBuilder:
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    header: str
    lines: List[DiffLine] = field(default_factory=list)
    old_cursor: int = 0
    new_cursor: int = 0

    def __post_init__(self):
        self.old_cursor = self.old_start
        self.new_cursor = self.new_start

    def expects(self, line: str) -> bool:
        """Whether the header counts still claim this body line."""
        old_left = self.old_lines - (self.old_cursor - self.old_start)
        new_left = self.new_lines - (self.new_cursor - self.new_start)
        marker = line[:1]
        if marker == '-':
            return old_left > 0
        if marker == '+':
            return new_left > 0
        if marker == ' ' or line == '':
            return old_left > 0 and new_left > 0
        return False

    def add(self, marker: str, content: str) -> str:
        if marker == '+':
            self.lines.append(DiffLine('addition', content, new_line_number=self.new_cursor))
            self.new_cursor += 1
            return 'addition'
        if marker == '-':
            self.lines.append(DiffLine('deletion', content, old_line_number=self.old_cursor))
            self.old_cursor += 1
            return 'deletion'
        self.lines.append(DiffLine('context', content, self.old_cursor, self.new_cursor))
        self.old_cursor += 1
        self.new_cursor += 1
        return 'context'

    def build(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_lines=self.old_lines,
            new_start=self.new_start,
            new_lines=self.new_lines,
            lines=list(self.lines),
            header=self.header,
        )


@dataclass
class _FileBuilder:
    path: str = ''
    old_path: Optional[str] = None
    created: bool = False
    deleted: bool = False
    renamed: bool = False
    binary: bool = False
    has_markers: bool = False
    additions: int = 0
    deletions: int = 0
    hunks: List[_HunkBuilder] = field(default_factory=list)


class DiffNormalizer:
    """
    Normalizer for unified and git diff text.

    Holds only compiled patterns, so a single instance can be shared
    between callers.
    """

    def __init__(self):
        """Initialize diff normalizer."""
        self.hunk_header_pattern = re.compile(r'^@@\s*-(\d+)(?:,(\d+))?\s*\+(\d+)(?:,(\d+))?\s*@@(.*)$')
        self.git_header_pattern = re.compile(r'^diff --git a/(.+?) b/(.+)$')
        self.bare_git_header_pattern = re.compile(r'^diff --git (\S+) (\S+)$')
        self.marker_path_pattern = re.compile(r'^(?:---|\+\+\+) (.+?)(?:\t.*)?$')
        self.binary_file_pattern = re.compile(r'^(?:Binary files? .* differ|GIT binary patch)')

    def normalize(
        self,
        diff_text: str,
        strip_level: int = 0,
        max_file_size: Optional[int] = None,
        allow_binary: bool = True,
        strict_validation: bool = False,
    ) -> NormalizedDiff:
        """
        Parse diff text into a NormalizedDiff.

        Args:
            diff_text: Raw diff content
            strip_level: Leading path segments to drop after a/ b/ removal
            max_file_size: Byte ceiling on the raw diff, None for no limit
            allow_binary: Whether binary files pass without an error entry
            strict_validation: Whether any error invalidates the result

        Returns:
            NormalizedDiff (never raises for malformed diff content)
        """
        if not isinstance(diff_text, str):
            raise TypeError("diff_text must be a string")
        if strip_level < 0:
            raise ValueError("strip_level must be non-negative")

        text = diff_text.replace('\r\n', '\n').replace('\r', '\n')

        if not text.strip():
            return self._invalid(strip_level, 'unknown', 'Empty diff content')

        size = len(text.encode('utf-8'))
        if max_file_size is not None and size > max_file_size:
            logger.warning(f"Diff rejected: {size} bytes exceeds limit of {max_file_size}")
            return self._invalid(
                strip_level, 'unknown', f'Diff size exceeds maximum limit ({size} > {max_file_size} bytes)'
            )

        lines = text.split('\n')
        diff_format = self.detect_format(lines)
        if diff_format == 'unknown':
            return self._invalid(strip_level, diff_format, 'Unsupported or unrecognized diff format')

        errors: List[str] = []
        try:
            builders = self._parse_lines(lines)
        except (ValueError, IndexError) as e:
            logger.error(f"Diff parsing failed: {e}")
            return self._invalid(strip_level, diff_format, f'Diff parsing failed: {e}')

        files = []
        for builder in builders:
            diff_file = self._finalize_file(builder, strip_level, allow_binary, errors)
            if diff_file is not None:
                files.append(diff_file)

        is_valid = True
        if not files:
            errors.append('Unsupported or unrecognized diff format')
            is_valid = False
        if strict_validation and errors:
            is_valid = False

        result = NormalizedDiff(
            is_valid=is_valid,
            format=diff_format,
            strip_level=strip_level,
            files=files,
            total_additions=sum(f.additions for f in files),
            total_deletions=sum(f.deletions for f in files),
            total_files=len(files),
            errors=errors,
        )
        logger.debug(
            f"Normalized {diff_format} diff: {result.total_files} files, "
            f"+{result.total_additions}/-{result.total_deletions}, {len(errors)} errors"
        )
        return result

    def detect_format(self, lines: List[str]) -> str:
        """
        Detect diff format.

        Returns:
            'git' when any `diff --git` line exists, 'unified' when a
            `---`/`+++` pair exists, otherwise 'unknown'
        """
        if any(line.startswith('diff --git ') for line in lines):
            return 'git'
        for index in range(len(lines) - 1):
            if self._is_marker_pair(lines, index):
                return 'unified'
        return 'unknown'

    def _parse_lines(self, lines: List[str]) -> List[_FileBuilder]:
        builders: List[_FileBuilder] = []
        state = ParseState.SEEKING_FILE_HEADER
        current: Optional[_FileBuilder] = None
        hunk: Optional[_HunkBuilder] = None

        index = 0
        while index < len(lines):
            line = lines[index]

            # lines still owed to the hunk are body lines even if they look like markers
            if state is ParseState.IN_HUNK_BODY and hunk.expects(line):
                self._add_body_line(current, hunk, line[:1] or ' ', line[1:])
                index += 1
                continue

            if line.startswith('diff --git '):
                self._close_hunk(current, hunk)
                hunk = None
                current = self._start_git_file(line)
                builders.append(current)
                state = ParseState.IN_HUNK_HEADER
                index += 1
                continue

            if self._is_marker_pair(lines, index):
                self._close_hunk(current, hunk)
                hunk = None
                if current is None or current.has_markers:
                    current = _FileBuilder()
                    builders.append(current)
                self._apply_markers(current, lines[index], lines[index + 1])
                state = ParseState.IN_HUNK_HEADER
                index += 2
                continue

            if state is ParseState.SEEKING_FILE_HEADER:
                index += 1
                continue

            if line.startswith('@@'):
                self._close_hunk(current, hunk)
                hunk = self._start_hunk(line)
                state = ParseState.IN_HUNK_BODY if hunk else ParseState.IN_HUNK_HEADER
                index += 1
                continue

            if state is ParseState.IN_HUNK_HEADER:
                self._apply_extended_header(current, line)
                index += 1
                continue

            # IN_HUNK_BODY
            marker = line[:1]
            if marker in ('+', '-', ' '):
                self._add_body_line(current, hunk, marker, line[1:])
            elif marker == '\\' or line == '':
                # "\ No newline at end of file" and blank separators
                pass
            else:
                self._close_hunk(current, hunk)
                hunk = None
                state = ParseState.IN_HUNK_HEADER
                continue
            index += 1

        self._close_hunk(current, hunk)
        return builders

    @staticmethod
    def _add_body_line(current: _FileBuilder, hunk: _HunkBuilder, marker: str, content: str) -> None:
        kind = hunk.add(marker, content)
        if kind == 'addition':
            current.additions += 1
        elif kind == 'deletion':
            current.deletions += 1

    def _start_git_file(self, line: str) -> _FileBuilder:
        builder = _FileBuilder()
        match = self.git_header_pattern.match(line) or self.bare_git_header_pattern.match(line)
        if not match:
            logger.debug(f"Unparseable git header, waiting for file markers: {line}")
            return builder

        old_path, new_path = match.group(1), match.group(2)
        builder.path = new_path
        if old_path != new_path:
            builder.old_path = old_path
            builder.renamed = True
        return builder

    def _apply_markers(self, builder: _FileBuilder, old_line: str, new_line: str) -> None:
        builder.has_markers = True
        old_path = self._marker_path(old_line, 'a/')
        new_path = self._marker_path(new_line, 'b/')

        if old_path == DEV_NULL:
            builder.created = True
        if new_path == DEV_NULL:
            builder.deleted = True

        if not builder.path:
            if new_path and new_path != DEV_NULL:
                builder.path = new_path
            elif old_path and old_path != DEV_NULL:
                builder.path = old_path

        if (old_path and new_path and DEV_NULL not in (old_path, new_path)
                and old_path != new_path and not builder.renamed):
            builder.old_path = old_path
            builder.renamed = True

    def _marker_path(self, line: str, prefix: str) -> Optional[str]:
        match = self.marker_path_pattern.match(line)
        if not match:
            return None
        path = match.group(1).strip()
        if path.startswith(prefix):
            path = path[len(prefix):]
        return path

    def _apply_extended_header(self, builder: _FileBuilder, line: str) -> None:
        if line.startswith('new file mode'):
            builder.created = True
        elif line.startswith('deleted file mode'):
            builder.deleted = True
        elif line.startswith('rename from '):
            builder.old_path = line[len('rename from '):].strip()
            builder.renamed = True
        elif line.startswith('rename to '):
            builder.path = line[len('rename to '):].strip()
            builder.renamed = True
        elif self.binary_file_pattern.match(line):
            builder.binary = True

    def _start_hunk(self, line: str) -> Optional[_HunkBuilder]:
        match = self.hunk_header_pattern.match(line)
        if not match:
            logger.debug(f"Skipping malformed hunk header: {line}")
            return None

        return _HunkBuilder(
            old_start=int(match.group(1)),
            old_lines=int(match.group(2) or 1),
            new_start=int(match.group(3)),
            new_lines=int(match.group(4) or 1),
            header=line,
        )

    @staticmethod
    def _close_hunk(builder: Optional[_FileBuilder], hunk: Optional[_HunkBuilder]) -> None:
        if builder is not None and hunk is not None:
            builder.hunks.append(hunk)

    @staticmethod
    def _is_marker_pair(lines: List[str], index: int) -> bool:
        return (
            index + 1 < len(lines)
            and lines[index].startswith('--- ')
            and lines[index + 1].startswith('+++ ')
        )

    def _finalize_file(
        self, builder: _FileBuilder, strip_level: int, allow_binary: bool, errors: List[str]
    ) -> Optional[DiffFile]:
        if not builder.path:
            errors.append('File found without valid path')
            return None

        path = apply_strip_level(builder.path, strip_level)
        old_path = apply_strip_level(builder.old_path, strip_level) if builder.old_path else None
        renamed = builder.renamed and old_path is not None

        if builder.binary:
            if not allow_binary:
                errors.append(f'Binary file not allowed: {path}')
            return DiffFile(
                path=path,
                old_path=old_path if renamed else None,
                created=builder.created,
                deleted=builder.deleted,
                renamed=renamed,
                binary=True,
            )

        return DiffFile(
            path=path,
            old_path=old_path if renamed else None,
            created=builder.created,
            deleted=builder.deleted,
            renamed=renamed,
            binary=False,
            additions=builder.additions,
            deletions=builder.deletions,
            hunks=[h.build() for h in builder.hunks],
        )

    @staticmethod
    def _invalid(strip_level: int, diff_format: str, error: str) -> NormalizedDiff:
        return NormalizedDiff(is_valid=False, format=diff_format, strip_level=strip_level, errors=[error])


def apply_strip_level(path: str, strip_level: int) -> str:
    """
    Drop `strip_level` leading `/` segments from a path.

    Falls back to the unstripped path when nothing would remain.
    """
    if strip_level <= 0:
        return path
    parts = path.split('/')
    if strip_level >= len(parts):
        return path
    return '/'.join(parts[strip_level:]) or path


_default_normalizer = DiffNormalizer()


def normalize_diff(
    diff_text: str,
    strip_level: int = 0,
    max_file_size: Optional[int] = None,
    allow_binary: bool = True,
    strict_validation: bool = False,
) -> NormalizedDiff:
    """Parse diff text into a NormalizedDiff."""
    return _default_normalizer.normalize(
        diff_text,
        strip_level=strip_level,
        max_file_size=max_file_size,
        allow_binary=allow_binary,
        strict_validation=strict_validation,
    )


def extract_diff_files(diff_text: str, strip_level: int = 0) -> List[str]:
    """Return the post-strip paths of every file in the diff."""
    return normalize_diff(diff_text, strip_level=strip_level).paths


def validate_diff(diff_text: str) -> Tuple[bool, List[str]]:
    """Validate diff structure with strict validation enabled."""
    result = normalize_diff(diff_text, strict_validation=True)
    return result.is_valid, list(result.errors)
