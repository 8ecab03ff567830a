"""
Data Models

Compliance Reviewer 시스템의 핵심 데이터 모델들
"""

from .diff import DiffLine, Hunk, DiffFile, NormalizedDiff, NormalizeDiffRequest
from .directive import DirectiveKind, Directive, DirectiveSet, LangPattern
from .secret import (
    EntropyRequirement,
    SecretPattern,
    SecretFinding,
    SecretScanOptions,
    SecretScanResult,
    SecretScanRequest,
    SecretPatternRequest,
)
from .license import (
    LicenseTemplate,
    CommentStyle,
    LicenseIssue,
    HeaderLocation,
    LicenseDetectionResult,
    LicenseSuggestion,
    LicenseValidationOptions,
    LicenseValidationResult,
    LicenseReport,
    CompatibilityResult,
    LicenseValidateRequest,
    LicenseGenerateRequest,
    LicenseCompatibilityRequest,
)
from .compliance import (
    ChecklistRule,
    ComplianceFinding,
    GenericFinding,
    ComplianceSummary,
    ComplianceResult,
    ComplianceRequest,
    SummarizeRulesRequest,
    QualityGatesRequest,
    RepositoryRequest,
    FileContentsRequest,
)
from .guidance import (
    GuidanceDocument,
    BundledPackInfo,
    BundledPack,
    SelectInstructionPackRequest,
)

__all__ = [
    "DiffLine",
    "Hunk",
    "DiffFile",
    "NormalizedDiff",
    "NormalizeDiffRequest",
    "DirectiveKind",
    "Directive",
    "DirectiveSet",
    "LangPattern",
    "EntropyRequirement",
    "SecretPattern",
    "SecretFinding",
    "SecretScanOptions",
    "SecretScanResult",
    "SecretScanRequest",
    "SecretPatternRequest",
    "LicenseTemplate",
    "CommentStyle",
    "LicenseIssue",
    "HeaderLocation",
    "LicenseDetectionResult",
    "LicenseSuggestion",
    "LicenseValidationOptions",
    "LicenseValidationResult",
    "LicenseReport",
    "CompatibilityResult",
    "LicenseValidateRequest",
    "LicenseGenerateRequest",
    "LicenseCompatibilityRequest",
    "ChecklistRule",
    "ComplianceFinding",
    "GenericFinding",
    "ComplianceSummary",
    "ComplianceResult",
    "ComplianceRequest",
    "SummarizeRulesRequest",
    "QualityGatesRequest",
    "RepositoryRequest",
    "FileContentsRequest",
    "GuidanceDocument",
    "BundledPackInfo",
    "BundledPack",
    "SelectInstructionPackRequest",
]
