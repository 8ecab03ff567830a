"""
GitHub Integration Layer

This module provides GitHub API integration for file content retrieval
and repository guidance loading.
"""

from .client import GitHubClient, GitHubAPIError, RateLimitExceeded, ResponseCache

__all__ = ['GitHubClient', 'GitHubAPIError', 'RateLimitExceeded', 'ResponseCache']
