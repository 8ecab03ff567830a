"""
GitHub API Client

Handles GitHub API authentication, rate limiting, and communication.
Provides methods for file content retrieval and guidance document loading.
"""

import re
import time
import base64
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple
from datetime import datetime
from urllib.parse import quote
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..exceptions import ComplianceReviewerError


logger = logging.getLogger(__name__)

COPILOT_INSTRUCTIONS_PATH = '.github/copilot-instructions.md'
INSTRUCTIONS_DIR = '.github/instructions'
PERSONAS_DIR = '.github/personas'
GUIDANCE_FILE_PATTERN = re.compile(r'\.(md|mdx|txt|ya?ml|json)$', re.IGNORECASE)


class GitHubAPIError(ComplianceReviewerError):
    """GitHub API related errors"""
    def __init__(self, message: str, status_code: Optional[int] = None, response_data: Optional[Dict] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data


class RateLimitExceeded(GitHubAPIError):
    """GitHub API rate limit exceeded"""
    def __init__(self, reset_time: datetime):
        super().__init__(f"Rate limit exceeded. Resets at {reset_time}", status_code=429)
        self.reset_time = reset_time


class ResponseCache:
    """
    TTL cache for GitHub responses.

    Passed to the client explicitly so several clients can share one cache
    and tests can inspect or replace it.
    """

    def __init__(self, ttl_seconds: int = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self.ttl_seconds:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class GitHubClient:
    """
    GitHub API client with authentication, rate limiting, and error handling.

    Provides methods for:
    - Reading file contents at a ref
    - Loading repository guidance (.github instructions and personas)
    - API rate limit management
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.github.com",
        timeout: int = 30,
        cache: Optional[ResponseCache] = None,
    ):
        """
        Initialize GitHub client.

        Args:
            token: GitHub installation or personal access token
            base_url: GitHub API base URL (default: https://api.github.com)
            timeout: Request timeout in seconds
            cache: Optional response cache shared across calls
        """
        self.token = token
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.cache = cache
        self.session = self._create_session()
        self.rate_limit_remaining = 5000
        self.rate_limit_reset = datetime.now()

    def _create_session(self) -> requests.Session:
        """Create requests session with retry strategy and authentication."""
        session = requests.Session()

        # Configure retry strategy
        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Accept': 'application/vnd.github+json',
            'User-Agent': 'Compliance-Reviewer/1.0'
        })

        return session

    def _check_rate_limit(self) -> None:
        """Check and handle GitHub API rate limits."""
        if self.rate_limit_remaining <= 10 and datetime.now() < self.rate_limit_reset:
            logger.warning(f"Rate limit low ({self.rate_limit_remaining}), resets at {self.rate_limit_reset}")
            raise RateLimitExceeded(self.rate_limit_reset)

    def _update_rate_limit(self, response: requests.Response) -> None:
        """Update rate limit information from response headers."""
        if 'X-RateLimit-Remaining' in response.headers:
            self.rate_limit_remaining = int(response.headers['X-RateLimit-Remaining'])

        if 'X-RateLimit-Reset' in response.headers:
            reset_timestamp = int(response.headers['X-RateLimit-Reset'])
            self.rate_limit_reset = datetime.fromtimestamp(reset_timestamp)

    def _make_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated request to GitHub API with rate limiting.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (without base URL)
            **kwargs: Additional arguments for requests

        Returns:
            Response object

        Raises:
            GitHubAPIError: For API errors
            RateLimitExceeded: When rate limit is exceeded
        """
        self._check_rate_limit()

        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        kwargs.setdefault('timeout', self.timeout)

        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            logger.error(f"Request failed: {e}")
            raise GitHubAPIError(f"Request failed: {str(e)}")

        self._update_rate_limit(response)

        if response.status_code == 429 or (
            response.status_code == 403 and response.headers.get('X-RateLimit-Remaining') == '0'
        ):
            reset_time = datetime.fromtimestamp(int(response.headers.get('X-RateLimit-Reset', time.time() + 3600)))
            raise RateLimitExceeded(reset_time)

        if not response.ok:
            try:
                error_data = response.json() if response.content else {}
            except ValueError:
                error_data = {}
            raise GitHubAPIError(
                f"GitHub API error: {response.status_code} - {error_data.get('message', 'Unknown error')}",
                status_code=response.status_code,
                response_data=error_data
            )

        return response

    @staticmethod
    def _contents_endpoint(owner: str, repo: str, path: str) -> str:
        return f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}"

    def _cached(self, key: str, loader: Callable[[], Any]) -> Any:
        if self.cache is not None:
            value = self.cache.get(key)
            if value is not None:
                logger.debug(f"Cache hit: {key}")
                return value
        value = loader()
        if self.cache is not None and value is not None:
            self.cache.set(key, value)
        return value

    def get_raw_file(self, owner: str, repo: str, ref: str, path: str) -> Optional[str]:
        """
        Get a file's raw text at a ref.

        Returns:
            File content, or None when the file does not exist
        """
        def load() -> Optional[str]:
            try:
                response = self._make_request(
                    'GET',
                    self._contents_endpoint(owner, repo, path),
                    params={'ref': ref},
                    headers={'Accept': 'application/vnd.github.raw'},
                )
            except GitHubAPIError as e:
                if e.status_code == 404:
                    logger.debug(f"File not found: {owner}/{repo}@{ref}:{path}")
                    return None
                raise
            return response.text

        return self._cached(f"raw:{owner}/{repo}@{ref}:{path}", load)

    def get_file_contents(self, owner: str, repo: str, ref: str, paths: List[str]) -> Dict[str, str]:
        """
        Get contents of several files at a ref.

        Args:
            owner: Repository owner
            repo: Repository name
            ref: Branch, tag or commit SHA
            paths: File paths to fetch

        Returns:
            Mapping of path to content; missing files are left out
        """
        logger.info(f"Fetching {len(paths)} files from {owner}/{repo}@{ref}")

        contents = {}
        for path in paths:
            content = self.get_raw_file(owner, repo, ref, path)
            if content is not None:
                contents[path] = content

        logger.info(f"Fetched {len(contents)}/{len(paths)} files")
        return contents

    def get_content(self, owner: str, repo: str, ref: str, path: str) -> Optional[str]:
        """Get a file through the JSON contents API, decoding its base64 body."""
        def load() -> Optional[str]:
            try:
                data = self._make_request(
                    'GET', self._contents_endpoint(owner, repo, path), params={'ref': ref}
                ).json()
            except GitHubAPIError as e:
                if e.status_code == 404:
                    return None
                raise
            if not isinstance(data, dict) or not data.get('content'):
                return None
            if data.get('encoding', 'base64') != 'base64':
                return data['content']
            return base64.b64decode(data['content']).decode('utf-8')

        return self._cached(f"content:{owner}/{repo}@{ref}:{path}", load)

    def list_directory(self, owner: str, repo: str, ref: str, path: str) -> List[Dict]:
        """
        List a directory at a ref.

        Returns:
            Entries with `path`, `type` and `name`; empty when the directory is missing
        """
        def load() -> List[Dict]:
            try:
                data = self._make_request(
                    'GET', self._contents_endpoint(owner, repo, path), params={'ref': ref}
                ).json()
            except GitHubAPIError as e:
                if e.status_code == 404:
                    logger.debug(f"Directory not found: {path}")
                    return []
                raise
            if not isinstance(data, list):
                return []
            return [{'path': e.get('path'), 'type': e.get('type'), 'name': e.get('name')} for e in data]

        return self._cached(f"dir:{owner}/{repo}@{ref}:{path}", load)

    def _load_guidance_dir(self, owner: str, repo: str, ref: str, path: str) -> Dict[str, str]:
        documents = {}
        for entry in self.list_directory(owner, repo, ref, path):
            if entry['type'] != 'file' or not GUIDANCE_FILE_PATTERN.search(entry['name'] or ''):
                continue
            content = self.get_content(owner, repo, ref, entry['path'])
            if content:
                documents[entry['name']] = content
        return documents

    def load_rules(self, owner: str, repo: str, ref: str) -> Dict[str, Any]:
        """
        Load repository guidance documents.

        Reads `.github/copilot-instructions.md` plus every markdown, text,
        YAML or JSON file under `.github/instructions/` and `.github/personas/`.

        Returns:
            Dict with copilot, instructions, personas, combinedMarkdown and files
        """
        logger.info(f"Loading guidance for {owner}/{repo}@{ref}")

        copilot = self.get_content(owner, repo, ref, COPILOT_INSTRUCTIONS_PATH)
        files = []

        instructions = self._load_guidance_dir(owner, repo, ref, INSTRUCTIONS_DIR)
        files.extend(f"{INSTRUCTIONS_DIR}/{name}" for name in instructions)
        personas = self._load_guidance_dir(owner, repo, ref, PERSONAS_DIR)
        files.extend(f"{PERSONAS_DIR}/{name}" for name in personas)
        if copilot:
            files.append(COPILOT_INSTRUCTIONS_PATH)

        sections = []
        if copilot:
            sections.append(f"# {COPILOT_INSTRUCTIONS_PATH}\n\n{copilot}")
        sections.extend(f"# {INSTRUCTIONS_DIR}/{name}\n\n{content}" for name, content in instructions.items())
        sections.extend(f"# {PERSONAS_DIR}/{name}\n\n{content}" for name, content in personas.items())

        logger.info(f"Loaded {len(files)} guidance documents")
        return {
            'copilot': copilot,
            'instructions': instructions,
            'personas': personas,
            'combinedMarkdown': '\n\n'.join(sections),
            'files': files,
        }

    def get_rate_limit_status(self) -> Dict:
        """
        Get current rate limit status.

        Returns:
            Rate limit information
        """
        try:
            response = self._make_request('GET', '/rate_limit')
            return response.json()
        except GitHubAPIError as e:
            logger.error(f"Failed to get rate limit status: {e}")
            return {
                'rate': {
                    'remaining': self.rate_limit_remaining,
                    'reset': int(self.rate_limit_reset.timestamp())
                }
            }
