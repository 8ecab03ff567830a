"""
Unit tests for the GitHub client.
"""

import base64
import time
from datetime import datetime

import pytest
import requests
from unittest.mock import Mock, patch

from compliance_reviewer.github.client import (
    COPILOT_INSTRUCTIONS_PATH,
    GitHubAPIError,
    GitHubClient,
    RateLimitExceeded,
    ResponseCache,
)


def mock_response(status_code=200, json_data=None, text='', headers=None):
    """Build a requests.Response stand-in."""
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.headers = headers or {}
    response.json.return_value = json_data if json_data is not None else {}
    response.text = text
    response.content = b'{}' if json_data is not None else text.encode('utf-8')
    return response


def encoded(content):
    return {'content': base64.b64encode(content.encode('utf-8')).decode('ascii'), 'encoding': 'base64'}


class TestResponseCache:
    """Tests for the TTL cache."""

    def test_get_and_expire(self):
        now = [100.0]
        cache = ResponseCache(ttl_seconds=10, clock=lambda: now[0])

        cache.set('k', 'v')
        assert cache.get('k') == 'v'
        assert len(cache) == 1

        now[0] = 111.0
        assert cache.get('k') is None
        assert len(cache) == 0

    def test_clear(self):
        cache = ResponseCache()
        cache.set('a', 1)
        cache.clear()
        assert cache.get('a') is None


class TestGitHubClient:
    """Unit tests for GitHubClient."""

    def test_client_initialization(self):
        """Session carries auth, accept and user-agent headers."""
        client = GitHubClient('ghp_test_token', base_url='https://github.example.com/api/v3/')

        assert client.base_url == 'https://github.example.com/api/v3'
        assert client.session.headers['Authorization'] == 'Bearer ghp_test_token'
        assert client.session.headers['Accept'] == 'application/vnd.github+json'
        assert client.session.headers['User-Agent'] == 'Compliance-Reviewer/1.0'

    def test_make_request_updates_rate_limit(self):
        client = GitHubClient('token')
        reset = int(time.time()) + 3600
        with patch.object(client.session, 'request', return_value=mock_response(
            json_data={'ok': True},
            headers={'X-RateLimit-Remaining': '4999', 'X-RateLimit-Reset': str(reset)},
        )) as mock_request:
            response = client._make_request('GET', '/test/endpoint')

        assert response.json() == {'ok': True}
        assert client.rate_limit_remaining == 4999
        args, kwargs = mock_request.call_args
        assert args == ('GET', 'https://api.github.com/test/endpoint')
        assert kwargs['timeout'] == 30

    def test_rate_limited_response(self):
        client = GitHubClient('token')
        headers = {'X-RateLimit-Remaining': '0', 'X-RateLimit-Reset': str(int(time.time()) + 3600)}
        with patch.object(client.session, 'request', return_value=mock_response(403, {}, headers=headers)):
            with pytest.raises(RateLimitExceeded) as exc_info:
                client._make_request('GET', '/x')

        assert exc_info.value.status_code == 429

    def test_low_budget_blocks_before_request(self):
        client = GitHubClient('token')
        client.rate_limit_remaining = 5
        client.rate_limit_reset = datetime.fromtimestamp(time.time() + 600)

        with patch.object(client.session, 'request') as mock_request:
            with pytest.raises(RateLimitExceeded):
                client._make_request('GET', '/x')
        mock_request.assert_not_called()

    def test_error_response(self):
        client = GitHubClient('token')
        with patch.object(client.session, 'request', return_value=mock_response(500, {'message': 'Server Error'})):
            with pytest.raises(GitHubAPIError) as exc_info:
                client._make_request('GET', '/x')

        assert exc_info.value.status_code == 500
        assert 'Server Error' in str(exc_info.value)

    def test_network_failure(self):
        client = GitHubClient('token')
        with patch.object(client.session, 'request', side_effect=requests.ConnectionError('down')):
            with pytest.raises(GitHubAPIError, match='Request failed'):
                client._make_request('GET', '/x')

    def test_get_file_contents_skips_missing(self):
        """Raw fetch per path; 404s are left out of the mapping."""
        client = GitHubClient('token')
        responses = {
            'src/app.js': mock_response(text='const a = 1;\n'),
            'gone.js': mock_response(404, {'message': 'Not Found'}),
        }

        def fake_request(method, url, **kwargs):
            path = url.split('/contents/', 1)[1]
            assert kwargs['params'] == {'ref': 'main'}
            assert kwargs['headers'] == {'Accept': 'application/vnd.github.raw'}
            return responses[path]

        with patch.object(client.session, 'request', side_effect=fake_request):
            contents = client.get_file_contents('acme', 'app', 'main', ['src/app.js', 'gone.js'])

        assert contents == {'src/app.js': 'const a = 1;\n'}

    def test_cache_avoids_second_request(self):
        client = GitHubClient('token', cache=ResponseCache())
        with patch.object(client.session, 'request', return_value=mock_response(text='x')) as mock_request:
            assert client.get_raw_file('acme', 'app', 'main', 'a.py') == 'x'
            assert client.get_raw_file('acme', 'app', 'main', 'a.py') == 'x'

        assert mock_request.call_count == 1

    def test_get_content_decodes_base64(self):
        client = GitHubClient('token')
        with patch.object(client.session, 'request', return_value=mock_response(json_data=encoded('hello'))):
            assert client.get_content('acme', 'app', 'main', 'README.md') == 'hello'

    def test_list_directory_missing(self):
        client = GitHubClient('token')
        with patch.object(client.session, 'request', return_value=mock_response(404, {'message': 'Not Found'})):
            assert client.list_directory('acme', 'app', 'main', '.github/instructions') == []

    def test_load_rules(self):
        """Copilot instructions come first, then instruction and persona documents."""
        client = GitHubClient('token')
        listings = {
            '.github/instructions': [
                {'path': '.github/instructions/security.md', 'type': 'file', 'name': 'security.md'},
                {'path': '.github/instructions/logo.png', 'type': 'file', 'name': 'logo.png'},
                {'path': '.github/instructions/nested', 'type': 'dir', 'name': 'nested'},
            ],
        }
        files = {
            COPILOT_INSTRUCTIONS_PATH: '[ASSERT] require-tests: true',
            '.github/instructions/security.md': '[ASSERT] disallow-path: ^secrets/',
        }

        def fake_request(method, url, **kwargs):
            path = url.split('/contents/', 1)[1]
            if path in listings:
                return mock_response(json_data=listings[path])
            if path in files:
                return mock_response(json_data=encoded(files[path]))
            return mock_response(404, {'message': 'Not Found'})

        with patch.object(client.session, 'request', side_effect=fake_request):
            rules = client.load_rules('acme', 'app', 'main')

        assert rules['copilot'] == '[ASSERT] require-tests: true'
        assert rules['instructions'] == {'security.md': '[ASSERT] disallow-path: ^secrets/'}
        assert rules['personas'] == {}
        assert rules['files'] == ['.github/instructions/security.md', COPILOT_INSTRUCTIONS_PATH]
        assert rules['combinedMarkdown'] == (
            '# .github/copilot-instructions.md\n\n[ASSERT] require-tests: true\n\n'
            '# .github/instructions/security.md\n\n[ASSERT] disallow-path: ^secrets/'
        )

    def test_rate_limit_status_fallback(self):
        client = GitHubClient('token')
        with patch.object(client.session, 'request', return_value=mock_response(500, {'message': 'x'})):
            status = client.get_rate_limit_status()

        assert status['rate']['remaining'] == client.rate_limit_remaining
