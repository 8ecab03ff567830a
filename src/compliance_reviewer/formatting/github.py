"""
GitHub Check Run Formatter

Formats compliance results as GitHub check-run payloads and PR comment
bodies. Pure formatting; nothing here talks to the GitHub API.
"""

import uuid
import logging
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
from dataclasses import dataclass

from ..models.compliance import ComplianceFinding, ComplianceResult


logger = logging.getLogger(__name__)

CHECK_RUN_NAME = "Compliance Review"
MAX_ANNOTATIONS = 50  # GitHub accepts at most 50 annotations per request
GENERIC_ANNOTATION_PATH = "README.md"


@dataclass
class CheckRunAnnotation:
    """Check-run annotation anchored to a file line."""
    path: str
    start_line: int
    end_line: int
    annotation_level: str  # 'notice', 'warning', 'failure'
    message: str
    title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'path': self.path,
            'start_line': self.start_line,
            'end_line': self.end_line,
            'annotation_level': self.annotation_level,
            'message': self.message,
        }
        if self.title:
            data['title'] = self.title
        return data


class CheckRunFormatter:
    """
    Formats compliance results for GitHub.

    Builds the check-run body (conclusion, title, summary, annotations)
    and a PR comment summarizing the same result.
    """

    def __init__(self, language: str = "english"):
        """
        Initialize check-run formatter.

        Args:
            language: Language for PR comment headings ("korean" or "english")
        """
        self.language = language
        self.max_comment_length = 65536  # GitHub's comment limit
        self.max_failures_in_comment = 5
        self.max_warnings_in_comment = 3

    def conclusion(self, result: ComplianceResult) -> str:
        """failure on any fail, neutral on any warn, success otherwise."""
        if result.has_failures:
            return 'failure'
        if result.has_warnings:
            return 'neutral'
        return 'success'

    def title(self, conclusion: str) -> str:
        if conclusion == 'success':
            return 'Compliance Check Passed'
        if conclusion == 'failure':
            return 'Compliance Check Failed'
        return 'Compliance Check Completed with Warnings'

    def build_annotations(self, result: ComplianceResult) -> List[CheckRunAnnotation]:
        """
        Collect annotations for failing and warning findings.

        File-bound findings are annotated at their line (line 1 when
        unknown); generic findings land on README.md line 1.
        """
        annotations = []
        for finding in result.findings + result.secret_findings:
            annotation = self._finding_annotation(finding)
            if annotation is not None:
                annotations.append(annotation)

        for generic in result.generic_findings:
            if generic.level not in ('fail', 'warn'):
                continue
            is_fail = generic.level == 'fail'
            annotations.append(CheckRunAnnotation(
                path=GENERIC_ANNOTATION_PATH,
                start_line=1,
                end_line=1,
                annotation_level='failure' if is_fail else 'warning',
                message=generic.note,
                title=f"{'Error' if is_fail else 'Warning'}: General Issue",
            ))

        if len(annotations) > MAX_ANNOTATIONS:
            logger.warning(f"Limiting annotations to {MAX_ANNOTATIONS} (had {len(annotations)})")
        return annotations[:MAX_ANNOTATIONS]

    @staticmethod
    def _finding_annotation(finding: ComplianceFinding) -> Optional[CheckRunAnnotation]:
        if not finding.file or finding.status not in ('fail', 'warn'):
            return None
        line = finding.line or 1
        if finding.status == 'fail':
            return CheckRunAnnotation(finding.file, line, line, 'failure', finding.note,
                                      f'Compliance Issue: {finding.id}')
        return CheckRunAnnotation(finding.file, line, line, 'warning', finding.note,
                                  f'Compliance Warning: {finding.id}')

    def format_summary(self, result: ComplianceResult) -> str:
        """Markdown summary shown on the check run."""
        summary = result.summary
        lines = [
            "**Compliance Check Results**",
            "",
            f"- **Files Changed**: {summary.files_changed}",
            f"- **Code Files**: {summary.code_files_changed}",
            f"- **Test Files**: {summary.test_files_changed}",
            f"- **Secrets Detected**: {summary.secrets_detected}",
            f"- **License Violations**: {summary.license_violations}",
        ]
        if summary.large_files:
            lines.extend(["", f"**Large Files**: {', '.join(summary.large_files)}"])
        lines.extend(["", f"**Directives Applied**: {', '.join(summary.directives_applied) or 'None'}"])
        return '\n'.join(lines)

    def format_check_run(
        self,
        result: ComplianceResult,
        head_sha: str,
        details_url: Optional[str] = None,
        started_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Build a completed check-run request body.

        Args:
            result: Compliance evaluation result
            head_sha: Commit the check run is attached to
            details_url: Optional link to detailed results
            started_at: When evaluation started (defaults to now)

        Returns:
            Dict ready to POST to the check-runs endpoint
        """
        completed_at = datetime.now(timezone.utc)
        conclusion = self.conclusion(result)
        annotations = self.build_annotations(result)

        payload = {
            'name': CHECK_RUN_NAME,
            'head_sha': head_sha,
            'status': 'completed',
            'conclusion': conclusion,
            'started_at': (started_at or completed_at).isoformat(),
            'completed_at': completed_at.isoformat(),
            'external_id': str(uuid.uuid4()),
            'output': {
                'title': self.title(conclusion),
                'summary': self.format_summary(result),
                'annotations': [a.to_dict() for a in annotations],
            },
        }
        if details_url:
            payload['details_url'] = details_url

        logger.info(f"Formatted check run for {head_sha}: {conclusion}, {len(annotations)} annotations")
        return payload

    def format_pr_comment(self, result: ComplianceResult, check_run_url: Optional[str] = None) -> str:
        """Markdown PR comment summarizing the result."""
        summary = result.summary
        findings = result.findings + result.secret_findings
        korean = self.language == "korean"

        if result.has_failures:
            emoji = '❌'
            status = '확인이 필요한 문제가 있습니다' if korean else 'Issues found that require attention'
        elif result.has_warnings:
            emoji = '⚠️'
            status = '경고가 있습니다' if korean else 'Some warnings detected'
        else:
            emoji = '✅'
            status = '모든 검사를 통과했습니다!' if korean else 'All checks passed!'

        sections = [
            f"## {emoji} {CHECK_RUN_NAME}",
            f"**Status**: {status}",
            "\n".join([
                "### 요약" if korean else "### Summary",
                f"- **Files Changed**: {summary.files_changed}",
                f"- **Code Files**: {summary.code_files_changed} | **Test Files**: {summary.test_files_changed}",
                f"- **Secrets Detected**: {summary.secrets_detected} | "
                f"**License Violations**: {summary.license_violations}",
            ]),
        ]

        if summary.large_files:
            sections.append("\n".join(
                ["### ⚠️ Large Files Detected"] + [f"- `{path}`" for path in summary.large_files]
            ))

        failures = [f for f in findings if f.status == 'fail'][:self.max_failures_in_comment]
        if failures:
            sections.append("\n".join(["### ❌ Issues Requiring Attention"] + [self._finding_line(f) for f in failures]))

        warnings = [f for f in findings if f.status == 'warn'][:self.max_warnings_in_comment]
        if warnings:
            sections.append("\n".join(["### ⚠️ Warnings"] + [self._finding_line(f) for f in warnings]))

        generic_failures = result.get_generic_findings_by_level('fail')
        if generic_failures:
            sections.append("\n".join(
                ["### 일반 문제" if korean else "### General Issues"] + [f"- {g.note}" for g in generic_failures]
            ))

        if check_run_url:
            sections.append(f"[View detailed results in the check run]({check_run_url})")

        body = "\n\n".join(sections)
        return self._truncate_comment(body)

    @staticmethod
    def _finding_line(finding: ComplianceFinding) -> str:
        location = ''
        if finding.file:
            location = f" ({finding.file}{f':{finding.line}' if finding.line else ''})"
        return f"- **{finding.id}**: {finding.note}{location}"

    def _truncate_comment(self, comment: str) -> str:
        """Truncate comment to fit GitHub limits."""
        if len(comment) <= self.max_comment_length:
            return comment

        truncated = comment[:self.max_comment_length - 200]
        last_newline = truncated.rfind('\n')
        if last_newline > 0:
            truncated = truncated[:last_newline]

        if self.language == "korean":
            truncation_msg = "\n\n---\n*⚠️ 코멘트가 너무 길어서 일부가 생략되었습니다.*"
        else:
            truncation_msg = "\n\n---\n*⚠️ Comment truncated due to length limit.*"
        return truncated + truncation_msg


def format_check_run(result: ComplianceResult, head_sha: str, details_url: Optional[str] = None) -> Dict[str, Any]:
    """Build a check-run payload with default formatting."""
    return CheckRunFormatter().format_check_run(result, head_sha, details_url)


def format_pr_comment(result: ComplianceResult, check_run_url: Optional[str] = None) -> str:
    """Build a PR comment body with default formatting."""
    return CheckRunFormatter().format_pr_comment(result, check_run_url)
