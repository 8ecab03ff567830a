"""
Compliance Reviewer

Pull Request 변경 사항에 대한 결정적 컴플라이언스 검사 엔진
(diff 정규화, 정책 지시문, 시크릿 탐지, 라이선스 헤더 검증)
"""

__version__ = "1.0.0"

from .review.evaluator import ComplianceEvaluator, assert_compliance
from .api import ComplianceReviewerAPI

__all__ = ["ComplianceEvaluator", "assert_compliance", "ComplianceReviewerAPI"]
