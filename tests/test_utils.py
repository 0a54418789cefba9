"""
Tests for common utility functions module.

Tests safe_json_parse(), write_json(), BundleLoader and URLMatcher
without touching anything outside a temporary directory.
"""

import json

import pytest

from mockgen.common import BundleLoader, BundleParseError, URLMatcher, safe_json_parse, write_json
from mockgen.common.errors import BindError, PortInUseError, ScanError


class TestSafeJsonParse:
    """Test suite for safe_json_parse() function."""

    def test_valid_json(self):
        assert safe_json_parse('{"a": 1}') == {'a': 1}

    def test_bytes(self):
        assert safe_json_parse(b'[1, 2]') == [1, 2]

    def test_invalid_json_returns_default(self):
        assert safe_json_parse('{nope', default={}) == {}

    def test_empty_returns_default(self):
        assert safe_json_parse(b'', default='empty') == 'empty'
        assert safe_json_parse(None) is None

    def test_invalid_utf8_returns_default(self):
        assert safe_json_parse(b'\xff\xfe\x00', default={}) == {}


class TestWriteJson:
    """Test suite for write_json() function."""

    def test_creates_parents(self, tmp_path):
        path = write_json(tmp_path / 'a' / 'b' / 'out.json', {'x': 'é'})

        text = path.read_text(encoding='utf-8')
        assert json.loads(text) == {'x': 'é'}
        assert text.endswith('\n')
        assert 'é' in text


class TestBundleLoader:
    """Test suite for BundleLoader."""

    def test_missing_file_is_empty(self, tmp_path):
        loader = BundleLoader(tmp_path / 'mock.json')

        assert not loader.exists()
        assert loader.load() == {}

    def test_preserves_key_order(self, tmp_path):
        path = tmp_path / 'mock.json'
        path.write_text('{"/b": {}, "/a": {}, "/c": {}}', encoding='utf-8')

        assert list(BundleLoader(path).load()) == ['/b', '/a', '/c']

    def test_invalid_json(self, tmp_path):
        path = tmp_path / 'mock.json'
        path.write_text('{"/b": ', encoding='utf-8')

        with pytest.raises(BundleParseError, match='Cannot read mock bundle'):
            BundleLoader(path).load()

    def test_non_object(self, tmp_path):
        path = tmp_path / 'mock.json'
        path.write_text('[]', encoding='utf-8')

        with pytest.raises(BundleParseError, match='Expected an object'):
            BundleLoader(path).load()


class TestURLMatcher:
    """Test suite for URLMatcher."""

    @pytest.mark.parametrize('raw,expected', [
        ('/users/', '/users'),
        ('//users//1', '/users/1'),
        ('/users?page=2', '/users'),
        ('/users#top', '/users'),
        ('', '/'),
        ('users', '/users'),
    ])
    def test_normalize_path(self, raw, expected):
        assert URLMatcher.normalize_path(raw) == expected

    def test_route_pattern_strips_host(self):
        assert URLMatcher.route_pattern('https://api.example.com/v1/users?x=1') == '/v1/users'
        assert URLMatcher.route_pattern('//cdn.example.com/a') == '/a'

    def test_route_pattern_strips_base_url(self):
        assert URLMatcher.route_pattern('http://localhost:8080/api/users', 'http://localhost:8080/api') == '/users'

    def test_openapi_path(self):
        path, params = URLMatcher.openapi_path('/orgs/:org/users/42/teams/7')

        assert path == '/orgs/{org}/users/{id}/teams/{id}'
        assert [p['name'] for p in params] == ['org', 'id']


class TestErrors:
    """Test suite for error messages."""

    def test_scan_error(self):
        error = ScanError('a.js', 'binary file')

        assert str(error) == 'Cannot scan a.js: binary file'
        assert error.reason == 'binary file'

    def test_port_in_use_is_bind_error(self):
        error = PortInUseError('127.0.0.1', 3000, 10)

        assert isinstance(error, BindError)
        assert str(error) == 'No free port on 127.0.0.1 in range 3000-3009'
