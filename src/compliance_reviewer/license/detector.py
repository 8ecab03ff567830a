"""
License Header Detector

Extracts the leading license comment of a file, classifies it against the
known templates and validates it against license policies.
"""

import re
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Tuple, Union

from ..exceptions import UnsupportedFileTypeError
from ..models.license import (
    CompatibilityResult,
    HeaderLocation,
    LicenseDetectionResult,
    LicenseIssue,
    LicenseReport,
    LicenseSuggestion,
    LicenseTemplate,
    LicenseValidationOptions,
    LicenseValidationResult,
)
from .templates import DEFAULT_LICENSE_TEMPLATES, find_template, get_comment_style, get_template


logger = logging.getLogger(__name__)

DETECTION_THRESHOLD = 0.7
SUGGESTION_THRESHOLD = 0.8
SHORTCUT_CONFIDENCE = 0.9
SHORT_FORM_CONFIDENCE = 0.8

HEADER_KEYWORDS = ('license', 'copyright', 'permission', 'redistribution', 'apache', 'mit', 'gpl', 'bsd')
CODE_MARKERS = ('import ', 'package ', 'function ', 'class ', 'const ', 'var ', 'let ')

COPYRIGHT_PATTERN = re.compile(r'copyright\s+(\(c\)\s*)?(\d{4})', re.IGNORECASE)
COPYRIGHT_YEARS_PATTERN = re.compile(r'copyright\s+(?:\(c\)\s*)?(\d{4})(?:-(\d{4}))?', re.IGNORECASE)

# Family keywords for the short-form "licensed under X" rule
SHORT_FORM_KEYWORDS = {
    'Apache-2.0': ('apache',),
    'MIT': ('mit',),
    'GPL-3.0': ('gpl', 'gnu'),
    'BSD-3-Clause': ('bsd',),
    'BSD-2-Clause': ('bsd',),
}


def _locate_header(content: str, max_lines: int) -> Tuple[str, int, int]:
    lines = content.replace('\r\n', '\n').split('\n')
    header_lines: List[str] = []
    start = -1

    for index, raw in enumerate(lines[:max_lines]):
        line = raw.strip()
        lowered = line.lower()
        if start < 0:
            if not line:
                continue
            if not any(keyword in lowered for keyword in HEADER_KEYWORDS):
                continue
            start = index

        header_lines.append(raw)
        looks_like_code = (
            any(marker in line for marker in CODE_MARKERS)
            or ('{' in line and 'copyright' not in line)
            or 'DOCTYPE' in line
        )
        if looks_like_code:
            break

    text = '\n'.join(header_lines).strip()
    if not text:
        return '', 0, 0
    return text, start + 1, start + len(header_lines)


def extract_license_header(content: str, max_lines: int = 50) -> str:
    """
    Extract the license-looking header from the first `max_lines` lines.

    The header starts at the first line mentioning a license keyword and
    ends at the first line that looks like code.
    """
    return _locate_header(content, max_lines)[0]


def normalize_license_text(text: str) -> str:
    """Lowercase, replace punctuation with spaces and collapse whitespace."""
    text = re.sub(r'\s+', ' ', text.lower())
    text = re.sub(r'[^\w\s]', ' ', text)
    return re.sub(r'\s+', ' ', text).strip()


def _mentions(normalized: str, word: str) -> bool:
    return f' {normalized} '.find(f' {word} ') >= 0


def calculate_similarity(text: str, reference: str) -> float:
    """
    Similarity of two license texts in [0, 1].

    Exact normalized match scores 1.0, a family's distinctive phrases
    against a reference mentioning that family score 0.9, otherwise the
    Jaccard index of the word sets.
    """
    norm1 = normalize_license_text(text)
    norm2 = normalize_license_text(reference)
    if norm1 == norm2:
        return 1.0

    if ('permission is hereby granted free of charge' in norm1
            and 'without restriction' in norm1
            and 'software is provided as is' in norm1
            and _mentions(norm2, 'mit')):
        return SHORTCUT_CONFIDENCE

    if (('apache license version 2 0' in norm1 or 'http www apache org licenses license 2 0' in norm1)
            and ('compliance with the license' in norm1 or 'licensed under the apache' in norm1)
            and _mentions(norm2, 'apache')):
        return SHORTCUT_CONFIDENCE

    if (('gnu general public license' in norm1 or 'free software foundation' in norm1)
            and 'redistribute it and or modify' in norm1
            and (_mentions(norm2, 'gpl') or _mentions(norm2, 'gnu'))):
        return SHORTCUT_CONFIDENCE

    if ('redistribution and use in source and binary forms' in norm1
            and 'following conditions are met' in norm1
            and _mentions(norm2, 'bsd')):
        return SHORTCUT_CONFIDENCE

    return _jaccard(norm1, norm2)


def _jaccard(norm1: str, norm2: str) -> float:
    words1 = set(norm1.split(' ')) if norm1 else set()
    words2 = set(norm2.split(' ')) if norm2 else set()
    union = words1 | words2
    if not union:
        return 0.0
    return len(words1 & words2) / len(union)


def score_template(header_text: str, template: LicenseTemplate) -> float:
    """Best confidence of the header against one template."""
    confidence = max(
        calculate_similarity(header_text, template.template),
        calculate_similarity(header_text, f'{template.name} {template.spdx_id}'),
    )

    normalized = normalize_license_text(header_text)
    if 'license' in normalized:
        keywords = SHORT_FORM_KEYWORDS.get(template.spdx_id, ())
        if any(_mentions(normalized, keyword) for keyword in keywords):
            confidence = max(confidence, SHORT_FORM_CONFIDENCE)

    return confidence


def _copyright_issues(header_text: str, current_year: int) -> List[LicenseIssue]:
    issues = []
    if not COPYRIGHT_PATTERN.search(header_text):
        issues.append(LicenseIssue('missing', 'warning', 'Copyright notice not found or incomplete'))

    years = COPYRIGHT_YEARS_PATTERN.search(header_text)
    if years:
        end_year = int(years.group(2) or years.group(1))
        if end_year < current_year - 1:
            issues.append(LicenseIssue(
                'outdated', 'info',
                f'Copyright year may be outdated (found {end_year}, current {current_year})',
            ))
    return issues


def detect_license(
    header_text: str,
    current_year: Optional[int] = None,
    require_copyright: bool = True,
) -> LicenseDetectionResult:
    """
    Classify a header against the known templates.

    Args:
        header_text: Extracted header text
        current_year: Year used for staleness checks (defaults to today)
        require_copyright: Whether a missing copyright line is reported

    Returns:
        LicenseDetectionResult with detected=True iff the best template
        scores at least 0.7
    """
    if not header_text.strip():
        return LicenseDetectionResult(
            detected=False,
            confidence=0.0,
            location=HeaderLocation(0, 0, ''),
            issues=[LicenseIssue('missing', 'error', 'No license header found')],
        )

    year = current_year or datetime.now().year
    # Ties (e.g. both BSD variants at 0.9) go to the closer template body
    normalized = normalize_license_text(header_text)
    best_template: Optional[LicenseTemplate] = None
    best_key = (0.0, 0.0)
    for template in DEFAULT_LICENSE_TEMPLATES:
        key = (
            score_template(header_text, template),
            _jaccard(normalized, normalize_license_text(template.template)),
        )
        if best_template is None or key > best_key:
            best_template, best_key = template, key
    best_confidence = best_key[0]

    issues = _copyright_issues(header_text, year)
    if not require_copyright:
        issues = [issue for issue in issues if issue.type != 'missing']

    location = HeaderLocation(1, len(header_text.split('\n')), header_text)
    if best_template is not None and best_confidence >= DETECTION_THRESHOLD:
        return LicenseDetectionResult(
            detected=True,
            confidence=best_confidence,
            license_name=best_template.name,
            spdx_id=best_template.spdx_id,
            location=location,
            issues=issues,
        )

    issues.append(LicenseIssue('invalid', 'error', 'License header found but could not identify license type'))
    return LicenseDetectionResult(detected=False, confidence=best_confidence, location=location, issues=issues)


def generate_license_header(
    file_path: str,
    template: Union[LicenseTemplate, str],
    copyright_holder: str,
    year: Optional[int] = None,
) -> str:
    """
    Render a license header in the file's comment style.

    Args:
        file_path: Target file (extension selects the comment style)
        template: LicenseTemplate or SPDX id
        copyright_holder: Name placed on the copyright line
        year: Copyright year (defaults to the current year)

    Raises:
        UnsupportedFileTypeError: no comment style for the extension
        UnknownLicenseError: unknown SPDX id
    """
    style = get_comment_style(file_path)
    if style is None:
        raise UnsupportedFileTypeError(file_path)
    if isinstance(template, str):
        template = get_template(template)

    body = f'Copyright (c) {year or datetime.now().year} {copyright_holder}\n\n{template.template}'
    lines = [style.prefix + line for line in body.split('\n')]
    if style.is_block:
        lines = [style.block_start] + lines + [style.block_end]
    return '\n'.join(lines) + '\n'


def _policy_issues(spdx_id: str, options: LicenseValidationOptions) -> List[LicenseIssue]:
    issues = []
    if options.required_licenses and spdx_id not in options.required_licenses:
        issues.append(LicenseIssue(
            'invalid', 'error',
            f'License {spdx_id} is not in required licenses: {", ".join(options.required_licenses)}',
        ))
    if options.allowed_licenses and spdx_id not in options.allowed_licenses:
        issues.append(LicenseIssue(
            'invalid', 'error',
            f'License {spdx_id} is not in allowed licenses: {", ".join(options.allowed_licenses)}',
        ))
    if spdx_id in options.prohibited_licenses:
        issues.append(LicenseIssue('incompatible', 'error', f'License {spdx_id} is prohibited'))
    return issues


def _suggest_header(
    file_path: str, detection: LicenseDetectionResult, options: LicenseValidationOptions
) -> Optional[LicenseSuggestion]:
    default_id = (options.required_licenses or options.allowed_licenses or [options.default_license])[0]
    template = find_template(default_id)
    if template is None:
        logger.debug(f"No template for suggested license {default_id}")
        return None
    try:
        header = generate_license_header(file_path, template, options.copyright_holder, options.current_year)
    except UnsupportedFileTypeError:
        logger.debug(f"No header suggestion for unsupported file type: {file_path}")
        return None

    action = 'update' if detection.detected else 'add'
    return LicenseSuggestion(
        type=action,
        description=f'{action.capitalize()} {template.name} header',
        suggested_header=header,
        spdx_id=template.spdx_id,
    )


def validate_license_header(
    content: str, file_path: str, options: Optional[LicenseValidationOptions] = None
) -> LicenseValidationResult:
    """
    Validate one file's license header against policy.

    Returns:
        LicenseValidationResult; is_valid is False when any error issue exists
    """
    options = options or LicenseValidationOptions()
    header_text, start_line, end_line = _locate_header(content, options.max_header_lines)
    detection = detect_license(header_text, options.current_year, options.require_copyright)
    if header_text:
        detection.location = HeaderLocation(start_line, end_line, header_text)

    issues = list(detection.issues)
    if detection.detected:
        issues.extend(_policy_issues(detection.spdx_id, options))
        if options.strict_matching and detection.confidence < SUGGESTION_THRESHOLD:
            issues.append(LicenseIssue(
                'format', 'error',
                f'License header does not closely match the {detection.spdx_id} template '
                f'(confidence {detection.confidence:.2f})',
            ))

    suggestions = []
    if not detection.detected or detection.confidence < SUGGESTION_THRESHOLD:
        suggestion = _suggest_header(file_path, detection, options)
        if suggestion is not None:
            suggestions.append(suggestion)

    meets_requirements = not options.required_licenses or (
        detection.detected and detection.spdx_id in options.required_licenses
    )
    license_compatibility = (
        not options.prohibited_licenses
        or not detection.detected
        or detection.spdx_id not in options.prohibited_licenses
    )

    result = LicenseValidationResult(
        is_valid=not any(issue.severity == 'error' for issue in issues),
        file=file_path,
        detection=detection,
        suggestions=suggestions,
        issues=issues,
        meets_requirements=meets_requirements,
        license_compatibility=license_compatibility,
        header_format_valid=detection.detected and detection.confidence > DETECTION_THRESHOLD,
    )
    logger.debug(
        f"License check {file_path}: detected={detection.detected} "
        f"spdx={detection.spdx_id} confidence={detection.confidence:.2f} errors={result.error_count}"
    )
    return result


def validate_license_headers(
    files: Iterable[Tuple[str, str]], options: Optional[LicenseValidationOptions] = None
) -> LicenseReport:
    """Validate several (path, content) pairs and summarize the results."""
    results = [validate_license_header(content, path, options) for path, content in files]

    breakdown = {}
    for result in results:
        if result.detection.detected and result.detection.spdx_id:
            breakdown[result.detection.spdx_id] = breakdown.get(result.detection.spdx_id, 0) + 1

    report = LicenseReport(
        results=results,
        total_files=len(results),
        valid_files=sum(1 for r in results if r.is_valid),
        invalid_files=sum(1 for r in results if not r.is_valid),
        missing_headers=sum(1 for r in results if not r.detection.detected),
        license_breakdown=breakdown,
    )
    logger.info(f"Validated license headers: {report.valid_files}/{report.total_files} valid")
    return report


def check_license_compatibility(license1: str, license2: str) -> CompatibilityResult:
    """
    Check whether two licenses can be combined.

    Unknown SPDX ids are never compatible; strong copyleft against a
    permissive license is flagged; otherwise the explicit allow-lists decide.
    """
    template1 = find_template(license1)
    template2 = find_template(license2)
    if template1 is None or template2 is None:
        return CompatibilityResult(
            compatible=False,
            issues=['Unknown license(s) cannot be checked for compatibility'],
        )

    issues = []
    warnings = []
    if template1.copyleft_level == 'strong' and template2.copyleft_level == 'none':
        issues.append(f'{license1} (copyleft) may not be compatible with {license2} (permissive)')
    if template2.copyleft_level == 'strong' and template1.copyleft_level == 'none':
        issues.append(f'{license2} (copyleft) may not be compatible with {license1} (permissive)')

    explicitly_compatible = license2 in template1.compatibility or license1 in template2.compatibility
    if not explicitly_compatible and not issues:
        warnings.append(f'License compatibility between {license1} and {license2} should be verified manually')

    return CompatibilityResult(
        compatible=explicitly_compatible and not issues,
        issues=issues,
        warnings=warnings,
    )
