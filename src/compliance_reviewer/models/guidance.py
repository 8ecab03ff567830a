"""
Guidance Data Models

번들 가이드 팩 관련 데이터 모델들
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


DEFAULT_PACK_VERSION = '1.0.0'
SELECTION_MODES = {'org', 'repo', 'merged'}


@dataclass(frozen=True)
class GuidanceDocument:
    """팩에 포함된 가이드 문서"""
    path: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {'path': self.path, 'content': self.content}


@dataclass
class BundledPackInfo:
    """번들 팩 메타데이터"""
    id: str
    title: str
    description: str
    version: str = DEFAULT_PACK_VERSION
    policies: List[str] = field(default_factory=list)
    personas: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'version': self.version,
            'policies': list(self.policies),
            'personas': list(self.personas),
        }


@dataclass
class BundledPack:
    """번들 팩 전체 내용 및 검증 결과"""
    id: str
    title: str
    description: str
    version: str
    policies: List[GuidanceDocument] = field(default_factory=list)
    personas: List[GuidanceDocument] = field(default_factory=list)
    combined_markdown: str = ''
    validation_errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.validation_errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'version': self.version,
            'policies': [doc.to_dict() for doc in self.policies],
            'personas': [doc.to_dict() for doc in self.personas],
            'combinedMarkdown': self.combined_markdown,
            'isValid': self.is_valid,
            'validationErrors': list(self.validation_errors),
        }


class SelectInstructionPackRequest(BaseModel):
    """API 요청용 번들 팩 선택 모델"""
    model_config = ConfigDict(populate_by_name=True)

    pack_id: str = Field(..., validation_alias=AliasChoices('packId', 'pack_id'))
    owner: Optional[str] = None
    repo: Optional[str] = None
    ref: Optional[str] = None
    mode: str = 'merged'

    @field_validator('pack_id')
    @classmethod
    def validate_pack_id(cls, v):
        if not v.strip():
            raise ValueError('packId cannot be empty')
        return v

    @field_validator('mode')
    @classmethod
    def validate_mode(cls, v):
        if v not in SELECTION_MODES:
            raise ValueError(f"mode must be one of: {', '.join(sorted(SELECTION_MODES))}")
        return v

    @property
    def has_repository(self) -> bool:
        return bool(self.owner and self.repo and self.ref)
