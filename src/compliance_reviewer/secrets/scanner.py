"""
Secret Scanner

Pattern and entropy based credential detection over file content or the
added lines of a diff, with false-positive suppression.
"""

import os
import re
import time
import logging
from bisect import bisect_left, bisect_right
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern, Tuple

from ..models.secret import SecretFinding, SecretPattern, SecretScanOptions, SecretScanResult
from .patterns import DEFAULT_SECRET_PATTERNS, calculate_entropy


logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.8
CONTEXT_LINES = 2

FALSE_POSITIVE_PATTERNS = (
    re.compile(r'test[_-]?key', re.IGNORECASE),
    re.compile(r'fake[_-]?key', re.IGNORECASE),
    re.compile(r'dummy[_-]?key', re.IGNORECASE),
    re.compile(r'sample[_-]?key', re.IGNORECASE),
    re.compile(r'example[_-]?key', re.IGNORECASE),
    re.compile(r'placeholder', re.IGNORECASE),
    re.compile(r'YOUR[_-]?KEY[_-]?HERE', re.IGNORECASE),
    re.compile(r'REPLACE[_-]?ME', re.IGNORECASE),
    re.compile(r'\{\{.*\}\}'),  # template variables
    re.compile(r'\$\{.*\}'),  # environment variables
    re.compile(r'%.*%'),  # windows environment variables
    re.compile(r'\[.*\]'),  # placeholder brackets
)

_DIFF_FILE_MARKER = re.compile(r'^\+\+\+ b/(.+)$')
_DIFF_HUNK_HEADER = re.compile(r'^@@ -\d+(?:,\d+)? \+(\d+)(?:,\d+)? @@')


@dataclass(frozen=True)
class _Candidate:
    pattern: SecretPattern
    start: int
    end: int
    text: str


class LineIndex:
    """Line-start offsets of a text, computed once and searched by bisection."""

    def __init__(self, content: str):
        self.content = content
        self.starts = [0] + [m.end() for m in re.finditer('\n', content)]

    def line_of(self, index: int) -> int:
        """0-based line index of a character offset."""
        return bisect_right(self.starts, index) - 1

    def line_column(self, index: int) -> Tuple[int, int]:
        line_index = self.line_of(index)
        return line_index + 1, index - self.starts[line_index] + 1

    def context(self, index: int, context_lines: int = CONTEXT_LINES) -> str:
        line_index = self.line_of(index)
        first = max(0, line_index - context_lines)
        last = min(len(self.starts) - 1, line_index + context_lines)
        stop = self.starts[last + 1] - 1 if last + 1 < len(self.starts) else len(self.content)
        return self.content[self.starts[first]:stop]


def get_line_column(content: str, index: int) -> Tuple[int, int]:
    """1-based line and column of a character offset."""
    return LineIndex(content).line_column(index)


def extract_context(content: str, index: int, context_lines: int = CONTEXT_LINES) -> str:
    """Lines surrounding the offset (±context_lines)."""
    return LineIndex(content).context(index, context_lines)


def is_whitelisted(text: str, whitelist_patterns: Iterable[Pattern[str]]) -> bool:
    return any(pattern.search(text) for pattern in whitelist_patterns)


def is_false_positive(match: str, context: str) -> bool:
    """Check built-in placeholder/template heuristics over match and context."""
    combined = f'{match} {context}'.lower()
    return any(pattern.search(combined) for pattern in FALSE_POSITIVE_PATTERNS)


class SecretScanner:
    """
    Scanner for credential-shaped substrings.

    Holds scan options only; each call returns fresh findings.
    """

    def __init__(self, options: Optional[SecretScanOptions] = None):
        """
        Initialize secret scanner.

        Args:
            options: Scan options, defaults when None
        """
        self.options = options or SecretScanOptions()
        self.patterns = list(self.options.patterns or DEFAULT_SECRET_PATTERNS)

    def should_scan(self, file_path: str, content: str) -> bool:
        """Apply exclusion, extension and size filters."""
        if any(pattern.search(file_path) for pattern in self.options.exclude_files):
            logger.debug(f"Skipping excluded file: {file_path}")
            return False

        allowed = self.options.allowed_file_types
        if allowed:
            ext = os.path.splitext(file_path)[1]
            if ext not in allowed:
                logger.debug(f"Skipping file type {ext or '(none)'}: {file_path}")
                return False

        if len(content) > self.options.max_file_size:
            logger.debug(f"Skipping oversized file: {file_path} ({len(content)} chars)")
            return False

        return True

    def scan(self, content: str, file_path: str) -> List[SecretFinding]:
        """
        Scan one file's content.

        Args:
            content: File content
            file_path: Path used for filtering and reporting

        Returns:
            Findings ordered by pattern precedence, then position
        """
        if not self.should_scan(file_path, content):
            return []
        return self._scan_content(content, file_path)

    def _scan_content(self, content: str, file_path: str) -> List[SecretFinding]:
        index = LineIndex(content)
        findings = []
        for candidate in self._collect_candidates(content):
            finding = self._to_finding(candidate, index, file_path)
            if finding is not None:
                findings.append(finding)
        return findings

    def _collect_candidates(self, content: str) -> List[_Candidate]:
        """Raw matches with overlaps resolved in favour of earlier patterns."""
        accepted: List[_Candidate] = []
        # accepted spans are disjoint, so sorted starts imply sorted ends
        starts: List[int] = []
        ends: List[int] = []
        for secret_pattern in self.patterns:
            for match in secret_pattern.pattern.finditer(content):
                start, end = match.span()
                if start == end:
                    continue
                previous = bisect_left(starts, end) - 1
                if previous >= 0 and ends[previous] > start:
                    continue
                position = bisect_left(starts, start)
                starts.insert(position, start)
                ends.insert(position, end)
                accepted.append(_Candidate(secret_pattern, start, end, match.group(0)))
        return accepted

    def _to_finding(self, candidate: _Candidate, index: LineIndex, file_path: str) -> Optional[SecretFinding]:
        context = index.context(candidate.start)

        if is_whitelisted(candidate.text, self.options.whitelist_patterns):
            return None
        if is_false_positive(candidate.text, context):
            return None

        confidence, entropy = self.score(candidate.pattern, candidate.text)
        line, column = index.line_column(candidate.start)

        return SecretFinding(
            id=f'{candidate.pattern.name}_{line}_{column}',
            type=candidate.pattern.name,
            severity=candidate.pattern.severity,
            category=candidate.pattern.category,
            description=candidate.pattern.description,
            file=file_path,
            line=line,
            column=column,
            match=candidate.text,
            context=context.strip(),
            confidence=confidence,
            entropy=entropy,
        )

    def score(self, secret_pattern: SecretPattern, text: str) -> Tuple[float, Optional[float]]:
        """
        Compute confidence and entropy for a match.

        Returns:
            Tuple of (confidence, entropy or None)
        """
        confidence = BASE_CONFIDENCE
        entropy = None

        if self.options.enable_entropy_analysis and secret_pattern.entropy:
            entropy = calculate_entropy(text)
            if entropy >= secret_pattern.entropy.threshold:
                confidence = min(0.95, confidence + 0.1)
            elif entropy < self.options.min_entropy_threshold:
                confidence = max(0.3, confidence - 0.2)

        if 'generic' in secret_pattern.name:
            confidence = max(0.5, confidence - 0.2)

        if secret_pattern.name == 'password_field':
            confidence = max(0.3, confidence - 0.3)

        return round(confidence, 4), entropy

    def scan_files(self, files: Iterable[Tuple[str, str]]) -> SecretScanResult:
        """
        Scan several (path, content) pairs.

        Returns:
            SecretScanResult; per-file failures are recorded in errors.
            files_scanned and total_lines count only files that pass
            should_scan.
        """
        started = time.perf_counter()
        findings: List[SecretFinding] = []
        errors: List[str] = []
        total_lines = 0
        files_scanned = 0

        for path, content in files:
            if not self.should_scan(path, content):
                continue
            files_scanned += 1
            total_lines += content.count('\n') + 1
            try:
                findings.extend(self._scan_content(content, path))
            except (ValueError, re.error) as e:
                logger.warning(f"Error scanning {path}: {e}")
                errors.append(f'Error scanning {path}: {e}')

        logger.info(f"Scanned {files_scanned} files, {len(findings)} potential secrets")
        return SecretScanResult(
            findings=findings,
            files_scanned=files_scanned,
            total_lines=total_lines,
            scan_time=(time.perf_counter() - started) * 1000,
            is_valid=not errors,
            errors=errors,
        )

    def scan_diff(self, diff_text: str) -> SecretScanResult:
        """
        Scan only the added lines of a diff.

        Findings carry post-image line numbers taken from the most recent
        `@@ … +N @@` header.
        """
        started = time.perf_counter()
        findings: List[SecretFinding] = []
        lines = diff_text.replace('\r\n', '\n').split('\n')
        files_seen = set()
        current_file = ''
        line_number = 0

        for line in lines:
            if line.startswith('+++'):
                marker = _DIFF_FILE_MARKER.match(line)
                current_file = marker.group(1) if marker else ''
                line_number = 0
                if current_file:
                    files_seen.add(current_file)
                continue

            if line.startswith('@@'):
                hunk = _DIFF_HUNK_HEADER.match(line)
                if hunk:
                    line_number = int(hunk.group(1)) - 1
                continue

            if line.startswith('+'):
                line_number += 1
                if not current_file:
                    continue
                for finding in self.scan(line[1:], current_file):
                    findings.append(self._relocate(finding, current_file, line_number))
            elif not line.startswith('-') and not line.startswith('\\'):
                line_number += 1

        logger.info(f"Scanned diff: {len(files_seen)} files, {len(findings)} potential secrets in added lines")
        return SecretScanResult(
            findings=findings,
            files_scanned=len(files_seen),
            total_lines=len(lines),
            scan_time=(time.perf_counter() - started) * 1000,
            is_valid=True,
            errors=[],
        )

    @staticmethod
    def _relocate(finding: SecretFinding, file_path: str, line_number: int) -> SecretFinding:
        return SecretFinding(
            id=f'{finding.type}_{file_path}_{line_number}_{finding.column}',
            type=finding.type,
            severity=finding.severity,
            category=finding.category,
            description=finding.description,
            file=file_path,
            line=line_number,
            column=finding.column,
            match=finding.match,
            context=finding.context,
            confidence=finding.confidence,
            entropy=finding.entropy,
        )


def scan_for_secrets(
    content: str, file_path: str, options: Optional[SecretScanOptions] = None
) -> List[SecretFinding]:
    """Scan one file's content for secrets."""
    return SecretScanner(options).scan(content, file_path)


def scan_files(files, options: Optional[SecretScanOptions] = None) -> SecretScanResult:
    """
    Scan multiple files.

    Args:
        files: Iterable of (path, content) pairs or objects with
            `path`/`content` attributes or keys
        options: Scan options
    """
    pairs = []
    for item in files:
        if isinstance(item, tuple):
            pairs.append(item)
        elif isinstance(item, dict):
            pairs.append((item['path'], item['content']))
        else:
            pairs.append((item.path, item.content))
    return SecretScanner(options).scan_files(pairs)


def scan_diff_for_secrets(diff_text: str, options: Optional[SecretScanOptions] = None) -> SecretScanResult:
    """Scan the added lines of a diff for secrets."""
    return SecretScanner(options).scan_diff(diff_text)
