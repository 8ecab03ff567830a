"""
License Data Models

라이선스 헤더 탐지 및 검증 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


ISSUE_TYPES = {'missing', 'invalid', 'incompatible', 'outdated', 'format'}
ISSUE_SEVERITIES = {'error', 'warning', 'info'}
COPYLEFT_LEVELS = {'none', 'weak', 'strong'}


@dataclass(frozen=True)
class LicenseTemplate:
    """알려진 라이선스 템플릿"""
    name: str
    spdx_id: str
    template: str
    compatibility: List[str] = field(default_factory=list)
    copyleft_level: str = 'none'

    def __post_init__(self):
        """데이터 검증"""
        if self.copyleft_level not in COPYLEFT_LEVELS:
            raise ValueError(f"Invalid copyleft level: {self.copyleft_level}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'spdxId': self.spdx_id,
            'template': self.template,
            'compatibility': list(self.compatibility),
            'copyleftLevel': self.copyleft_level,
        }


@dataclass(frozen=True)
class CommentStyle:
    """언어별 주석 스타일"""
    prefix: str
    extensions: Tuple[str, ...] = ()
    block_start: Optional[str] = None
    block_end: Optional[str] = None

    @property
    def is_block(self) -> bool:
        return bool(self.block_start and self.block_end)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'blockStart': self.block_start or '',
            'blockEnd': self.block_end or '',
            'linePrefix': self.prefix,
            'extensions': list(self.extensions),
        }


@dataclass(frozen=True)
class LicenseIssue:
    """라이선스 관련 문제"""
    type: str  # 'missing', 'invalid', 'incompatible', 'outdated', 'format'
    severity: str  # 'error', 'warning', 'info'
    message: str
    line: Optional[int] = None
    suggestion: Optional[str] = None

    def __post_init__(self):
        """데이터 검증"""
        if self.type not in ISSUE_TYPES:
            raise ValueError(f"Invalid issue type: {self.type}")
        if self.severity not in ISSUE_SEVERITIES:
            raise ValueError(f"Invalid issue severity: {self.severity}")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'type': self.type, 'severity': self.severity, 'message': self.message}
        if self.line is not None:
            data['line'] = self.line
        if self.suggestion is not None:
            data['suggestion'] = self.suggestion
        return data


@dataclass(frozen=True)
class HeaderLocation:
    start_line: int
    end_line: int
    header_text: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'startLine': self.start_line, 'endLine': self.end_line, 'headerText': self.header_text}


@dataclass
class LicenseDetectionResult:
    """라이선스 탐지 결과"""
    detected: bool
    confidence: float
    license_name: Optional[str] = None
    spdx_id: Optional[str] = None
    location: Optional[HeaderLocation] = None
    issues: List[LicenseIssue] = field(default_factory=list)

    def __post_init__(self):
        """데이터 검증"""
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0.0 and 1.0")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'detected': self.detected, 'confidence': self.confidence}
        if self.license_name is not None:
            data['licenseName'] = self.license_name
        if self.spdx_id is not None:
            data['spdxId'] = self.spdx_id
        if self.location is not None:
            data['location'] = self.location.to_dict()
        data['issues'] = [issue.to_dict() for issue in self.issues]
        return data


@dataclass(frozen=True)
class LicenseSuggestion:
    """헤더 추가/수정 제안"""
    type: str  # 'add', 'update'
    description: str
    suggested_header: str
    spdx_id: str
    line: int = 1
    column: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'description': self.description,
            'suggestedHeader': self.suggested_header,
            'license': self.spdx_id,
            'location': {'line': self.line, 'column': self.column},
        }


@dataclass
class LicenseValidationOptions:
    """라이선스 검증 옵션"""
    required_licenses: List[str] = field(default_factory=list)
    allowed_licenses: List[str] = field(default_factory=list)
    prohibited_licenses: List[str] = field(default_factory=list)
    require_copyright: bool = True
    max_header_lines: int = 50
    strict_matching: bool = False
    current_year: Optional[int] = None
    copyright_holder: str = '[COPYRIGHT_HOLDER]'
    default_license: str = 'Apache-2.0'


@dataclass
class LicenseValidationResult:
    """파일 단위 라이선스 검증 결과"""
    is_valid: bool
    file: str
    detection: LicenseDetectionResult
    suggestions: List[LicenseSuggestion] = field(default_factory=list)
    issues: List[LicenseIssue] = field(default_factory=list)
    meets_requirements: bool = True
    license_compatibility: bool = True
    header_format_valid: bool = False

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == 'error')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isValid': self.is_valid,
            'file': self.file,
            'detection': self.detection.to_dict(),
            'suggestions': [s.to_dict() for s in self.suggestions],
            'issues': [i.to_dict() for i in self.issues],
            'compliance': {
                'meetsRequirements': self.meets_requirements,
                'licenseCompatibility': self.license_compatibility,
                'headerFormatValid': self.header_format_valid,
            },
        }


@dataclass
class LicenseReport:
    """여러 파일 검증 결과 요약"""
    results: List[LicenseValidationResult]
    total_files: int = 0
    valid_files: int = 0
    invalid_files: int = 0
    missing_headers: int = 0
    license_breakdown: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'results': [r.to_dict() for r in self.results],
            'summary': {
                'totalFiles': self.total_files,
                'validFiles': self.valid_files,
                'invalidFiles': self.invalid_files,
                'missingHeaders': self.missing_headers,
                'licenseBreakdown': dict(self.license_breakdown),
            },
        }


@dataclass(frozen=True)
class CompatibilityResult:
    """두 라이선스 간 호환성"""
    compatible: bool
    issues: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {'compatible': self.compatible, 'issues': list(self.issues), 'warnings': list(self.warnings)}


# Pydantic models for API validation
class LicenseOptionsRequest(BaseModel):
    """API 요청용 라이선스 검증 옵션"""
    model_config = ConfigDict(populate_by_name=True)

    required_licenses: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices('requiredLicenses', 'required_licenses')
    )
    allowed_licenses: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices('allowedLicenses', 'allowed_licenses')
    )
    prohibited_licenses: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices('prohibitedLicenses', 'prohibited_licenses')
    )
    require_copyright: bool = Field(True, validation_alias=AliasChoices('requireCopyright', 'require_copyright'))
    max_header_lines: int = Field(50, validation_alias=AliasChoices('maxHeaderLines', 'max_header_lines'))
    strict_matching: bool = Field(False, validation_alias=AliasChoices('strictMatching', 'strict_matching'))

    @field_validator('max_header_lines')
    @classmethod
    def validate_max_header_lines(cls, v):
        if v <= 0:
            raise ValueError('maxHeaderLines must be positive')
        return v

    def to_options(self) -> LicenseValidationOptions:
        return LicenseValidationOptions(
            required_licenses=list(self.required_licenses),
            allowed_licenses=list(self.allowed_licenses),
            prohibited_licenses=list(self.prohibited_licenses),
            require_copyright=self.require_copyright,
            max_header_lines=self.max_header_lines,
            strict_matching=self.strict_matching,
        )


class LicenseFileRequest(BaseModel):
    path: str
    content: str


class LicenseValidateRequest(BaseModel):
    """API 요청용 라이선스 검증 모델"""
    files: List[LicenseFileRequest]
    options: LicenseOptionsRequest = Field(default_factory=LicenseOptionsRequest)

    @field_validator('files')
    @classmethod
    def validate_files(cls, v):
        if not v:
            raise ValueError('At least one file is required')
        return v


class LicenseGenerateRequest(BaseModel):
    """API 요청용 라이선스 헤더 생성 모델"""
    model_config = ConfigDict(populate_by_name=True)

    file_path: str = Field(validation_alias=AliasChoices('filePath', 'file_path', 'path'))
    license: str = 'Apache-2.0'
    copyright_holder: str = Field(
        '[COPYRIGHT_HOLDER]', validation_alias=AliasChoices('copyrightHolder', 'copyright_holder', 'holder')
    )
    year: Optional[int] = None


class LicenseCompatibilityRequest(BaseModel):
    """API 요청용 라이선스 호환성 모델"""
    license1: str
    license2: str
