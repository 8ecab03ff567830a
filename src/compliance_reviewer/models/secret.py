"""
Secret Data Models

시크릿 탐지 관련 데이터 모델들
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Pattern
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


SEVERITIES = ('critical', 'high', 'medium', 'low')

DEFAULT_ALLOWED_FILE_TYPES = [
    '.ts', '.tsx', '.js', '.jsx', '.py', '.java', '.go', '.rb', '.php',
    '.cs', '.cpp', '.c', '.h', '.kt', '.rs', '.swift', '.sh',
]

DEFAULT_EXCLUDE_FILES = [r'node_modules', r'\.git', r'coverage', r'dist', r'build']


@dataclass(frozen=True)
class EntropyRequirement:
    """엔트로피 요구 조건"""
    threshold: float
    charset: str


@dataclass(frozen=True)
class SecretPattern:
    """이름이 붙은 시크릿 탐지 패턴"""
    name: str
    pattern: Pattern[str]
    description: str
    severity: str  # 'critical', 'high', 'medium', 'low'
    category: str
    entropy: Optional[EntropyRequirement] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'name': self.name,
            'pattern': self.pattern.pattern,
            'description': self.description,
            'severity': self.severity,
            'category': self.category,
        }
        if self.entropy:
            data['entropy'] = {'threshold': self.entropy.threshold, 'charset': self.entropy.charset}
        return data


@dataclass(frozen=True)
class SecretFinding:
    """시크릿 탐지 결과"""
    id: str
    type: str
    severity: str
    category: str
    description: str
    file: str
    line: int
    column: int
    match: str
    context: str
    confidence: float
    entropy: Optional[float] = None

    def __post_init__(self):
        """데이터 검증"""
        if self.severity not in SEVERITIES:
            raise ValueError(f"Invalid severity: {self.severity}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0.0 and 1.0")
        if self.line <= 0 or self.column <= 0:
            raise ValueError("Line and column must be positive")

    @property
    def is_blocking(self) -> bool:
        """머지를 막아야 하는 심각도인지 확인"""
        return self.severity in ('critical', 'high')

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'type': self.type,
            'severity': self.severity,
            'category': self.category,
            'description': self.description,
            'file': self.file,
            'line': self.line,
            'column': self.column,
            'match': self.match,
            'context': self.context,
            'confidence': self.confidence,
        }
        if self.entropy is not None:
            data['entropy'] = self.entropy
        return data


@dataclass
class SecretScanOptions:
    """시크릿 스캔 옵션"""
    patterns: Optional[List[SecretPattern]] = None
    whitelist_patterns: List[Pattern[str]] = field(default_factory=list)
    enable_entropy_analysis: bool = True
    min_entropy_threshold: float = 4.0
    max_file_size: int = 1024 * 1024  # 1MB
    allowed_file_types: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_FILE_TYPES))
    exclude_files: List[Pattern[str]] = field(
        default_factory=lambda: [re.compile(p) for p in DEFAULT_EXCLUDE_FILES]
    )


@dataclass
class SecretScanResult:
    """스캔 결과 전체"""
    findings: List[SecretFinding]
    files_scanned: int
    total_lines: int
    scan_time: float  # milliseconds
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def get_findings_by_severity(self, severity: str) -> List[SecretFinding]:
        """특정 심각도의 탐지 결과 반환"""
        return [f for f in self.findings if f.severity == severity]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'findings': [f.to_dict() for f in self.findings],
            'filesScanned': self.files_scanned,
            'totalLines': self.total_lines,
            'scanTime': self.scan_time,
            'isValid': self.is_valid,
            'errors': list(self.errors),
        }


# Pydantic models for API validation
class FileContentRequest(BaseModel):
    """API 요청용 파일 내용 모델"""
    path: str
    content: str

    @field_validator('path')
    @classmethod
    def validate_path(cls, v):
        if not v.strip():
            raise ValueError('File path cannot be empty')
        return v


class SecretScanOptionsRequest(BaseModel):
    """API 요청용 스캔 옵션 모델"""
    model_config = ConfigDict(populate_by_name=True)

    whitelist_patterns: List[str] = Field(
        default_factory=list, validation_alias=AliasChoices('whitelistPatterns', 'whitelist_patterns')
    )
    enable_entropy_analysis: bool = Field(
        True, validation_alias=AliasChoices('enableEntropyAnalysis', 'enable_entropy_analysis')
    )
    min_entropy_threshold: float = Field(
        4.0, validation_alias=AliasChoices('minEntropyThreshold', 'min_entropy_threshold')
    )
    max_file_size: int = Field(1024 * 1024, validation_alias=AliasChoices('maxFileSize', 'max_file_size'))
    allowed_file_types: Optional[List[str]] = Field(
        None, validation_alias=AliasChoices('allowedFileTypes', 'allowed_file_types')
    )
    exclude_files: Optional[List[str]] = Field(
        None, validation_alias=AliasChoices('excludeFiles', 'exclude_files')
    )

    @field_validator('whitelist_patterns', 'exclude_files')
    @classmethod
    def validate_regexes(cls, v):
        for pattern in v or []:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f'Invalid regex pattern {pattern!r}: {e}')
        return v

    def to_options(self) -> SecretScanOptions:
        """내부 옵션 객체로 변환"""
        options = SecretScanOptions(
            whitelist_patterns=[re.compile(p) for p in self.whitelist_patterns],
            enable_entropy_analysis=self.enable_entropy_analysis,
            min_entropy_threshold=self.min_entropy_threshold,
            max_file_size=self.max_file_size,
        )
        if self.allowed_file_types is not None:
            options.allowed_file_types = list(self.allowed_file_types)
        if self.exclude_files is not None:
            options.exclude_files = [re.compile(p) for p in self.exclude_files]
        return options


class SecretScanRequest(BaseModel):
    """API 요청용 시크릿 스캔 모델 (diff 또는 files 중 하나)"""
    diff: Optional[str] = None
    files: Optional[List[FileContentRequest]] = None
    options: SecretScanOptionsRequest = Field(default_factory=SecretScanOptionsRequest)

    @model_validator(mode='after')
    def validate_source(self):
        if not self.diff and not self.files:
            raise ValueError('Either diff or files is required')
        return self


class EntropyRequirementRequest(BaseModel):
    threshold: float
    charset: str


class SecretPatternRequest(BaseModel):
    """API 요청용 패턴 검증 모델 (검증 자체는 validate_secret_pattern에서 수행)"""
    name: str = ''
    pattern: str = ''
    description: str = ''
    severity: str = ''
    category: str = ''
    entropy: Optional[EntropyRequirementRequest] = None
