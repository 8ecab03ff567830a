"""
Guidance Summarizer

Turns guidance markdown into a checklist of rules and recommends quality
gate commands from repository manifests.
"""

import re
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from ..models.compliance import ChecklistRule


logger = logging.getLogger(__name__)


@dataclass
class GuidanceSection:
    """Markdown section containing guidance lines."""
    title: str
    level: int
    line_start: int


class RuleSummarizer:
    """
    Summarizes `[ASSERT]` statements into checklist rules.

    Categories come from the statement text first and the enclosing
    section title second; priority from the strength of its wording.
    """

    def __init__(self):
        """Initialize rule summarizer."""
        self.statement_pattern = re.compile(r'^\s*\[ASSERT\]\s*(.+)$', re.IGNORECASE)
        self.header_pattern = re.compile(r'^(#{1,6})\s+(.+)$')

        self.category_keywords = {
            'security': ['secret', 'credential', 'password', 'token', 'deny-import', 'security', 'auth', '보안'],
            'licensing': ['license', 'licence', 'copyright', 'deny-header', '라이선스'],
            'testing': ['test', 'spec', 'coverage', '테스트'],
            'documentation': ['doc', 'readme', 'changelog', 'comment', '문서'],
            'performance': ['performance', 'max-file-bytes', 'size', '성능'],
            'style': ['style', 'format', 'lint', 'naming', 'commit-type', '스타일'],
        }

        self.priority_patterns = {
            'critical': [r'(?i)\b(secret|credential|private key|prohibited|forbid|disallow|deny)'],
            'high': [r'(?i)\b(must|required?|mandatory|shall|always|never)\b', r'(필수|반드시|금지)'],
            'low': [r'(?i)\b(may|optional|consider|nice to have)\b', r'(권장|선택)'],
        }

    def summarize(self, markdown: str, max_items: int = 200) -> List[ChecklistRule]:
        """
        Build checklist rules from guidance markdown.

        Args:
            markdown: Guidance document
            max_items: Maximum number of rules returned

        Returns:
            Rules with ids R1..Rn in document order
        """
        if max_items <= 0:
            raise ValueError("max_items must be positive")

        rules: List[ChecklistRule] = []
        section: Optional[GuidanceSection] = None

        for index, line in enumerate(re.split(r'\r?\n', markdown or '')):
            header = self.header_pattern.match(line)
            if header:
                section = GuidanceSection(header.group(2).strip(), len(header.group(1)), index + 1)
                continue

            match = self.statement_pattern.match(line)
            if not match:
                continue

            text = match.group(1).strip()
            section_title = section.title if section else None
            rules.append(ChecklistRule(
                id=f'R{len(rules) + 1}',
                text=text,
                category=self._determine_category(text, section_title),
                priority=self._determine_priority(text),
                section=section_title,
            ))
            if len(rules) >= max_items:
                break

        logger.debug(f"Summarized {len(rules)} checklist rules")
        return rules

    def _determine_category(self, text: str, section_title: Optional[str]) -> str:
        """Determine category from statement text, then section title."""
        for candidate in (text, section_title or ''):
            lowered = candidate.lower()
            for category, keywords in self.category_keywords.items():
                if any(keyword in lowered for keyword in keywords):
                    return category
        return 'compliance'

    def _determine_priority(self, text: str) -> str:
        for priority in ('critical', 'high', 'low'):
            for pattern in self.priority_patterns[priority]:
                if re.search(pattern, text):
                    return priority
        return 'medium'


QUALITY_GATES = (
    (re.compile(r'package\.json$'), ['npm run -s lint || true', 'npm test --silent || true']),
    (re.compile(r'pyproject\.toml$|requirements\.txt$'), ['ruff check . || true', 'pytest -q || true']),
    (re.compile(r'go\.mod$'), ['go vet ./... || true', 'go test ./... || true']),
    (re.compile(r'pom\.xml$|build\.gradle'), ['mvn -q test || true']),
)


def summarize_rules(markdown: str, max_items: int = 200) -> List[ChecklistRule]:
    """Summarize `[ASSERT]` statements in markdown into checklist rules."""
    return RuleSummarizer().summarize(markdown, max_items)


def infer_quality_gates(paths: Iterable[str]) -> List[str]:
    """
    Recommend lint/test commands from the manifest files present.

    Returns:
        Deduplicated commands in manifest-table order
    """
    paths = list(paths)
    commands: List[str] = []
    for pattern, gate_commands in QUALITY_GATES:
        if any(pattern.search(path) for path in paths):
            for command in gate_commands:
                if command not in commands:
                    commands.append(command)
    return commands
