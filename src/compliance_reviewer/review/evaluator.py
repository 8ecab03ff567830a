"""
Compliance Evaluator

Runs every deterministic check over a pull request diff and produces a
ComplianceResult: changed-file classification, secret scanning, license
header validation, test requirements, guidance directives and checklist
placeholders.
"""

import re
import logging
from typing import Callable, Dict, Iterable, List, Optional, Pattern

from ..config import ComplianceConfig, LicenseConfig, SecretsConfig
from ..diff.changes import (
    collect_added_hunks_by_file,
    collect_added_lines_by_file,
    is_code_file,
    is_test_file,
    parse_changed_files,
)
from ..directives.headers import canonical_to_lang_regex, ext_to_lang
from ..directives.parser import format_pattern, parse_directives
from ..license.detector import validate_license_headers
from ..models.compliance import (
    ChecklistRule,
    ComplianceFinding,
    ComplianceResult,
    ComplianceSummary,
    GenericFinding,
)
from ..models.directive import DirectiveKind, DirectiveSet
from ..models.license import LicenseValidationOptions
from ..models.secret import SecretScanOptions
from ..secrets.scanner import SecretScanner


logger = logging.getLogger(__name__)

HEADER_WINDOW = 2000
CHECKLIST_NOTE_LIMIT = 120

_LICENSE_POLICY_PATTERN = re.compile(
    r'\b(required|allowed|prohibited|banned|forbidden)[ _-]?licen[sc]es?\s*:\s*([^\n]+)',
    re.IGNORECASE,
)
_LICENSE_POLICY_KEYS = {
    'required': 'required_licenses',
    'allowed': 'allowed_licenses',
    'prohibited': 'prohibited_licenses',
    'banned': 'prohibited_licenses',
    'forbidden': 'prohibited_licenses',
}
# words joining list items, not identifiers
_LICENSE_LIST_CONNECTORS = {'and', 'or', 'and/or'}


def truncate(text: str, limit: int) -> str:
    """Cut text to `limit` characters, ending with an ellipsis when cut."""
    if len(text) <= limit:
        return text
    return text[:limit - 1] + '…'


def extract_license_policy(guidance_text: str) -> Dict[str, List[str]]:
    """
    Pull license lists out of free guidance text.

    Recognizes lines like `allowed licenses: Apache-2.0, MIT`; `banned`
    and `forbidden` are read as prohibited. Items are split on commas and
    whitespace, and `and`/`or` connectors are dropped. Later lines for the
    same list replace earlier ones.
    """
    policy: Dict[str, List[str]] = {}
    for match in _LICENSE_POLICY_PATTERN.finditer(guidance_text or ''):
        key = _LICENSE_POLICY_KEYS[match.group(1).lower()]
        values = [v.strip('`"\'.;') for v in re.split(r'[,\s]+', match.group(2))]
        policy[key] = [v for v in values if v and v.lower() not in _LICENSE_LIST_CONNECTORS]
    return policy


class ComplianceEvaluator:
    """
    Deterministic compliance checks over a pull request.

    Sub-checks run in a fixed order; a failure inside one of them is
    reported as a generic finding and never stops the others.
    """

    def __init__(
        self,
        compliance_config: Optional[ComplianceConfig] = None,
        secrets_config: Optional[SecretsConfig] = None,
        license_config: Optional[LicenseConfig] = None,
    ):
        """
        Initialize compliance evaluator.

        Args:
            compliance_config: Defaults for require_tests / max_file_bytes
            secrets_config: Entropy and whitelist settings for secret scanning
            license_config: Header scan depth and baseline license lists
        """
        self.compliance_config = compliance_config or ComplianceConfig()
        self.secrets_config = secrets_config or SecretsConfig()
        self.license_config = license_config or LicenseConfig()

    def evaluate(
        self,
        diff: str,
        checklist: Optional[Iterable[ChecklistRule]] = None,
        require_tests: Optional[bool] = None,
        max_file_bytes: Optional[int] = None,
        guidance_text: str = '',
        pr_labels: Optional[List[str]] = None,
        pr_title: str = '',
        file_contents: Optional[Dict[str, str]] = None,
    ) -> ComplianceResult:
        """
        Evaluate a diff against guidance directives and a checklist.

        Args:
            diff: Raw unified or git diff text
            checklist: Free-text rules; each becomes an `na` finding
            require_tests: Warn when code changes without tests
            max_file_bytes: Size limit for `file_contents` entries
            guidance_text: Markdown carrying `[ASSERT]` directives
            pr_labels: Labels on the pull request
            pr_title: Pull request title
            file_contents: Post-change contents keyed by path

        Returns:
            ComplianceResult with summary, findings and generic findings
        """
        if require_tests is None:
            require_tests = self.compliance_config.require_tests
        if max_file_bytes is None:
            max_file_bytes = self.compliance_config.max_file_bytes

        files = parse_changed_files(diff)
        code_files = [f for f in files if is_code_file(f)]
        test_files = [f for f in files if is_test_file(f)]
        directives = parse_directives(guidance_text)
        logger.info(
            f"Evaluating diff: {len(files)} files ({len(code_files)} code, {len(test_files)} test), "
            f"{len(directives)} directives"
        )
        logger.debug(f"Directive summary: {directives.summary()}")

        summary = ComplianceSummary(
            files_changed=len(files),
            code_files_changed=len(code_files),
            test_files_changed=len(test_files),
        )
        generic: List[GenericFinding] = []
        secret_findings: List[ComplianceFinding] = []

        def run(name: str, level: str, check: Callable[[], None]) -> None:
            try:
                check()
            except Exception as e:
                logger.warning(f"{name} check failed: {e}")
                generic.append(GenericFinding(level, f"{name} check could not be completed: {e}"))

        run('Secret scan', 'warn',
            lambda: self._check_secrets(diff, max_file_bytes, summary, generic, secret_findings))

        if file_contents:
            run('License validation', 'warn',
                lambda: self._check_licenses(file_contents, guidance_text, summary, generic))

        if not diff.endswith('\n'):
            generic.append(GenericFinding('warn', 'Diff does not end with a newline (EOF newline recommended).'))

        tests_missing = bool(code_files) and not test_files
        directive_requires_tests = directives.require_tests
        tests_required = require_tests if directive_requires_tests is None else directive_requires_tests
        if tests_required and tests_missing and directive_requires_tests is not True:
            generic.append(GenericFinding(
                'warn', 'Code changed but no test files changed. Consider adding/updating tests.'
            ))

        applied = summary.directives_applied
        context = _DirectiveContext(
            diff=diff,
            files=files,
            directives=directives,
            file_contents=file_contents,
            pr_labels=pr_labels or [],
            pr_title=pr_title or '',
            max_file_bytes=max_file_bytes,
            tests_missing=tests_missing,
        )
        for kind, check in self._directive_checks():
            if not check.applies(context):
                continue
            applied.append(kind.value)
            run(f'Directive {kind.value}', 'warn', lambda check=check: generic.extend(check(context)))

        # without the directive the parameter limit still applies
        if file_contents and not directives.has(DirectiveKind.MAX_FILE_BYTES):
            run('File size', 'warn', lambda: generic.extend(_check_file_sizes(context, context.max_file_bytes)))
        summary.large_files.extend(context.large_files)

        findings = [
            ComplianceFinding(
                id=rule.id,
                status='na',
                note=f'Cannot deterministically verify: "{truncate(rule.text, CHECKLIST_NOTE_LIMIT)}". '
                     f'Ensure compliance.',
            )
            for rule in checklist or []
        ]

        result = ComplianceResult(
            summary=summary,
            findings=findings,
            generic_findings=generic,
            directives_raw=list(directives.raw),
            secret_findings=secret_findings,
        )
        logger.info(
            f"Evaluation complete: {len(result.get_generic_findings_by_level('fail'))} fail, "
            f"{len(result.get_generic_findings_by_level('warn'))} warn, "
            f"directives applied: {', '.join(applied) or 'none'}"
        )
        return result

    def _check_secrets(
        self,
        diff: str,
        max_file_bytes: int,
        summary: ComplianceSummary,
        generic: List[GenericFinding],
        secret_findings: List[ComplianceFinding],
    ) -> None:
        options = SecretScanOptions(
            whitelist_patterns=[re.compile(p) for p in self.secrets_config.whitelist_patterns],
            enable_entropy_analysis=self.secrets_config.enable_entropy_analysis,
            min_entropy_threshold=self.secrets_config.min_entropy_threshold,
            max_file_size=max_file_bytes or self.secrets_config.max_file_size,
        )
        result = SecretScanner(options).scan_diff(diff)
        summary.secrets_detected = len(result.findings)

        for severity in ('critical', 'high', 'medium', 'low'):
            bucket = result.get_findings_by_severity(severity)
            if not bucket:
                continue
            types = list(dict.fromkeys(f.type for f in bucket))
            generic.append(GenericFinding(
                'fail' if severity in ('critical', 'high') else 'warn',
                f"{severity.upper()}: {len(bucket)} {severity}-severity secrets detected ({', '.join(types)})",
            ))

        for finding in result.findings:
            secret_findings.append(ComplianceFinding(
                id=f'secret:{finding.type}',
                status='fail' if finding.is_blocking else 'warn',
                note=f'Secret detected in {finding.file}:{finding.line} - {finding.description} '
                     f'(confidence: {round(finding.confidence * 100)}%)',
                file=finding.file,
                line=finding.line,
            ))

    def _license_options(self, guidance_text: str) -> LicenseValidationOptions:
        options = LicenseValidationOptions(
            required_licenses=list(self.license_config.required_licenses),
            allowed_licenses=list(self.license_config.allowed_licenses),
            prohibited_licenses=list(self.license_config.prohibited_licenses),
            max_header_lines=self.license_config.max_header_lines,
            copyright_holder=self.license_config.copyright_holder,
            default_license=self.license_config.default_license,
        )
        for key, values in extract_license_policy(guidance_text).items():
            setattr(options, key, values)
        return options

    def _check_licenses(
        self,
        file_contents: Dict[str, str],
        guidance_text: str,
        summary: ComplianceSummary,
        generic: List[GenericFinding],
    ) -> None:
        files = [(path, content) for path, content in file_contents.items() if is_code_file(path)]
        if not files:
            return

        report = validate_license_headers(files, self._license_options(guidance_text))
        for result in report.results:
            errors = [issue.message for issue in result.issues if issue.severity == 'error']
            warnings = [issue.message for issue in result.issues if issue.severity == 'warning']
            summary.license_violations += len(errors)
            if errors:
                generic.append(GenericFinding(
                    'fail', f"License compliance failure in {result.file}: {'; '.join(errors)}"
                ))
            if warnings:
                generic.append(GenericFinding(
                    'warn', f"License compliance warning in {result.file}: {'; '.join(warnings)}"
                ))
            for suggestion in result.suggestions:
                generic.append(GenericFinding(
                    'info', f'License suggestion for {result.file}: {suggestion.description}'
                ))

        if report.missing_headers:
            generic.append(GenericFinding('warn', f'{report.missing_headers} files are missing license headers'))
        if len(report.license_breakdown) > 1:
            distribution = ', '.join(f'{spdx}: {count}' for spdx, count in report.license_breakdown.items())
            generic.append(GenericFinding('info', f'License distribution across files: {distribution}'))

    @staticmethod
    def _directive_checks():
        return (
            (DirectiveKind.DISALLOW_PATH, _check_disallow_path),
            (DirectiveKind.FORBID_PATTERN, _check_forbid_pattern),
            (DirectiveKind.REQUIRE_FILE, _check_require_file),
            (DirectiveKind.REQUIRE_TESTS, _check_require_tests),
            (DirectiveKind.MAX_FILE_BYTES, _check_max_file_bytes),
            (DirectiveKind.REQUIRE_LABEL, _check_require_label),
            (DirectiveKind.BLOCK_COMMIT_TYPE, _check_block_commit_type),
            (DirectiveKind.DENY_IMPORT, _check_deny_import),
            (DirectiveKind.ENFORCE_LICENSE_HEADER, _check_license_header),
            (DirectiveKind.ENFORCE_LICENSE_HEADER_EXACT, _check_license_header_exact),
            (DirectiveKind.DENY_HEADER, _check_deny_header),
            (DirectiveKind.ENFORCE_LICENSE_HEADER_LANG, _check_license_header_lang),
        )


class _DirectiveContext:
    """Inputs shared by the directive checks of one evaluation."""

    def __init__(self, diff, files, directives: DirectiveSet, file_contents, pr_labels, pr_title,
                 max_file_bytes, tests_missing):
        self.diff = diff
        self.files = files
        self.directives = directives
        self.file_contents = file_contents
        self.pr_labels = pr_labels
        self.pr_title = pr_title
        self.max_file_bytes = max_file_bytes
        self.tests_missing = tests_missing
        self.large_files: List[str] = []

    def patterns(self, kind: DirectiveKind) -> List[Pattern[str]]:
        return self.directives.patterns(kind)

    def code_file_heads(self):
        """(path, first HEADER_WINDOW chars) for code files with known content."""
        for path, content in (self.file_contents or {}).items():
            if is_code_file(path):
                yield path, content[:HEADER_WINDOW]


def _directive_check(applies: Callable[[_DirectiveContext], bool]):
    def decorator(func):
        func.applies = applies
        return func
    return decorator


def _present(kind: DirectiveKind) -> Callable[[_DirectiveContext], bool]:
    return lambda context: context.directives.has(kind)


def _present_with_contents(kind: DirectiveKind) -> Callable[[_DirectiveContext], bool]:
    return lambda context: context.file_contents is not None and context.directives.has(kind)


@_directive_check(_present(DirectiveKind.DISALLOW_PATH))
def _check_disallow_path(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    for pattern in context.patterns(DirectiveKind.DISALLOW_PATH):
        violated = [f for f in context.files if pattern.search(f)]
        if violated:
            findings.append(GenericFinding(
                'fail', f"disallow-path violated: {format_pattern(pattern)} matched {', '.join(violated)}"
            ))
    return findings


@_directive_check(_present(DirectiveKind.FORBID_PATTERN))
def _check_forbid_pattern(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    for pattern in context.patterns(DirectiveKind.FORBID_PATTERN):
        hits = sum(1 for _ in pattern.finditer(context.diff))
        if hits > 0:
            findings.append(GenericFinding(
                'fail', f'forbid-pattern hit {hits} occurrences for {format_pattern(pattern)}'
            ))
    return findings


@_directive_check(_present(DirectiveKind.REQUIRE_FILE))
def _check_require_file(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    for pattern in context.patterns(DirectiveKind.REQUIRE_FILE):
        if not any(pattern.search(f) for f in context.files):
            findings.append(GenericFinding(
                'fail', f'require-file not satisfied: expected a changed file matching {format_pattern(pattern)}'
            ))
    return findings


@_directive_check(_present(DirectiveKind.REQUIRE_TESTS))
def _check_require_tests(context: _DirectiveContext) -> List[GenericFinding]:
    if context.directives.require_tests and context.tests_missing:
        return [GenericFinding('fail', 'Directive require-tests=true violated: no test files changed.')]
    return []


def _check_file_sizes(context: _DirectiveContext, limit: int) -> List[GenericFinding]:
    """Compare UTF-8 byte sizes of known file contents against the limit."""
    findings = []
    for path, content in (context.file_contents or {}).items():
        size = len(content.encode('utf-8'))
        if size > limit:
            context.large_files.append(path)
            findings.append(GenericFinding('fail', f'max-file-bytes exceeded for {path}: {size} > {limit} bytes'))
    return findings


@_directive_check(_present(DirectiveKind.MAX_FILE_BYTES))
def _check_max_file_bytes(context: _DirectiveContext) -> List[GenericFinding]:
    return _check_file_sizes(context, context.directives.max_file_bytes)


@_directive_check(_present(DirectiveKind.REQUIRE_LABEL))
def _check_require_label(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    for pattern in context.patterns(DirectiveKind.REQUIRE_LABEL):
        if not any(pattern.search(label) for label in context.pr_labels):
            findings.append(GenericFinding(
                'fail', f'require-label not satisfied: no PR label matches {format_pattern(pattern)}'
            ))
    return findings


@_directive_check(_present(DirectiveKind.BLOCK_COMMIT_TYPE))
def _check_block_commit_type(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    for pattern in context.patterns(DirectiveKind.BLOCK_COMMIT_TYPE):
        if context.pr_title and pattern.search(context.pr_title):
            findings.append(GenericFinding(
                'fail', f'block-commit-type violated: PR title "{context.pr_title}" matches {format_pattern(pattern)}'
            ))
    return findings


@_directive_check(_present(DirectiveKind.DENY_IMPORT))
def _check_deny_import(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    patterns = context.patterns(DirectiveKind.DENY_IMPORT)
    for path, lines in collect_added_lines_by_file(context.diff).items():
        if not is_code_file(path):
            continue
        for added in lines:
            for pattern in patterns:
                if pattern.search(added.text):
                    findings.append(GenericFinding(
                        'fail',
                        f'deny-import violated for {path}: "{added.text.strip()}" matches {format_pattern(pattern)}',
                    ))
    return findings


@_directive_check(_present(DirectiveKind.ENFORCE_LICENSE_HEADER))
def _check_license_header(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    patterns = context.patterns(DirectiveKind.ENFORCE_LICENSE_HEADER)
    for path, hunks in collect_added_hunks_by_file(context.diff).items():
        if not is_code_file(path):
            continue
        first = hunks[0] if hunks else ''
        for pattern in patterns:
            if not pattern.search(first):
                findings.append(GenericFinding(
                    'fail',
                    f'enforce-license-header failed for {path}: header regex {format_pattern(pattern)} '
                    f'not found in first added hunk',
                ))
    return findings


@_directive_check(_present_with_contents(DirectiveKind.ENFORCE_LICENSE_HEADER_EXACT))
def _check_license_header_exact(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    patterns = context.patterns(DirectiveKind.ENFORCE_LICENSE_HEADER_EXACT)
    for path, head in context.code_file_heads():
        for pattern in patterns:
            if not pattern.search(head):
                findings.append(GenericFinding(
                    'fail',
                    f'enforce-license-header-exact failed for {path}: regex {format_pattern(pattern)} '
                    f'not found at file start',
                ))
    return findings


@_directive_check(_present_with_contents(DirectiveKind.DENY_HEADER))
def _check_deny_header(context: _DirectiveContext) -> List[GenericFinding]:
    findings = []
    patterns = context.patterns(DirectiveKind.DENY_HEADER)
    for path, head in context.code_file_heads():
        for pattern in patterns:
            if pattern.search(head):
                findings.append(GenericFinding(
                    'fail', f'deny-header violated for {path}: regex {format_pattern(pattern)} matched file header'
                ))
    return findings


def _lang_header_applies(context: _DirectiveContext) -> bool:
    return context.file_contents is not None and (
        context.directives.has(DirectiveKind.ENFORCE_LICENSE_HEADER_LANG)
        or context.directives.has(DirectiveKind.ENFORCE_LICENSE_HEADER_CANONICAL)
    )


@_directive_check(_lang_header_applies)
def _check_license_header_lang(context: _DirectiveContext) -> List[GenericFinding]:
    explicit = context.directives.lang_patterns
    canonical = context.directives.canonical_pattern
    expanded = canonical_to_lang_regex(canonical) if canonical is not None else {}

    findings = []
    for path, head in context.code_file_heads():
        lang = ext_to_lang(path)
        if not lang:
            continue
        pattern = explicit.get(lang) or expanded.get(lang)
        if pattern is None:
            continue
        if not pattern.search(head):
            findings.append(GenericFinding(
                'fail',
                f'enforce-license-header-lang failed for {path} (lang={lang}): '
                f'regex {format_pattern(pattern)} not found at file start',
            ))
    return findings


def assert_compliance(
    diff: str,
    checklist: Optional[Iterable[ChecklistRule]] = None,
    require_tests: bool = True,
    max_file_bytes: int = 500_000,
    guidance_text: str = '',
    pr_labels: Optional[List[str]] = None,
    pr_title: str = '',
    file_contents: Optional[Dict[str, str]] = None,
) -> ComplianceResult:
    """Evaluate a diff with default settings."""
    return ComplianceEvaluator().evaluate(
        diff,
        checklist=checklist,
        require_tests=require_tests,
        max_file_bytes=max_file_bytes,
        guidance_text=guidance_text,
        pr_labels=pr_labels,
        pr_title=pr_title,
        file_contents=file_contents,
    )
