"""
Result Formatting

This module formats compliance results as GitHub check runs
and PR comments.
"""

from .github import CheckRunFormatter, CheckRunAnnotation, format_check_run, format_pr_comment

__all__ = ['CheckRunFormatter', 'CheckRunAnnotation', 'format_check_run', 'format_pr_comment']
