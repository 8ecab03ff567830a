"""
Compliance Review

This module runs the deterministic compliance checks over a PR diff
and collects their findings.
"""

from .evaluator import ComplianceEvaluator, assert_compliance, extract_license_policy

__all__ = ['ComplianceEvaluator', 'assert_compliance', 'extract_license_policy']
