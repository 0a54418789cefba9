"""
Tests for MockGen Route Matcher

Tests the route table including:
- Pattern matching on ":param" segments
- First-match priority in table order
- Method-prefixed bundle keys
- Stateful GET fallback
- Skipping invalid bundle entries
"""

import pytest

from mockgen.common import URLMatcher
from mockgen.mock.generator import ResponseDefinition
from mockgen.mock.matcher import Route, RouteTable


def route(pattern, method='GET', **kwargs):
    return Route(pattern=pattern, definition=ResponseDefinition(method=method, **kwargs))


class TestPatternMatches:
    """Test segment-wise pattern matching."""

    @pytest.mark.parametrize('pattern,path,expected', [
        ('/users/:id', '/users/123', True),
        ('/users/:id', '/users', False),
        ('/users/:id', '/users/1/posts', False),
        ('/users', '/users', True),
        ('/users', '/Users', False),
        ('/:a/:b', '/x/y', True),
        ('/', '/', True),
    ])
    def test_pattern_matches(self, pattern, path, expected):
        assert URLMatcher.pattern_matches(pattern, path) is expected


class TestRouteTable:
    """Test first-match lookup."""

    def test_first_match_wins_over_specificity(self):
        """Earlier generic routes shadow later specific ones."""
        table = RouteTable([route('/a/:x', body='generic'), route('/a/b', body='specific')])

        result = table.find('GET', '/a/b')

        assert result.matched
        assert result.route.definition.body == 'generic'

    def test_method_must_match(self):
        table = RouteTable([route('/users', method='POST')])

        assert not table.find('GET', '/users').matched
        assert table.find('post', '/users').matched

    def test_path_normalized_before_matching(self):
        table = RouteTable([route('/users/:id')])

        assert table.find('GET', '/users//7/?q=1').matched

    def test_no_match_reason(self):
        result = RouteTable().find('GET', '/nothing')

        assert not result.matched
        assert result.reason == 'No mock for GET /nothing'
        assert result.to_dict() == {'matched': False, 'pattern': None, 'reason': 'No mock for GET /nothing'}

    def test_stateful_get_fallback(self):
        """A GET on a stateful POST route's path replays its state."""
        table = RouteTable([route('/notes', method='POST', status=201, stateful=True)])

        result = table.find('GET', '/notes')

        assert result.matched
        assert result.reason == 'Stateful replay'

    def test_no_fallback_for_other_methods(self):
        table = RouteTable([route('/notes', method='POST', stateful=True)])

        assert not table.find('PUT', '/notes').matched

    def test_table_is_immutable(self):
        table = RouteTable([route('/a')])

        assert isinstance(table.routes, tuple)
        assert len(table) == 1
        assert [r.pattern for r in table] == ['/a']


class TestFromBundle:
    """Test building tables from mock bundles."""

    def test_keeps_bundle_order(self):
        table = RouteTable.from_bundle({
            '/users/:id': {'method': 'GET', 'body': 1},
            '/users/me': {'method': 'GET', 'body': 2},
        })

        assert [r.pattern for r in table] == ['/users/:id', '/users/me']
        assert table.find('GET', '/users/me').route.definition.body == 1

    def test_method_prefixed_keys(self):
        table = RouteTable.from_bundle({
            '/users': {'method': 'GET', 'body': []},
            'POST /users': {'method': 'POST', 'status': 201, 'body': {'id': 1}},
        })

        assert [r.pattern for r in table] == ['/users', '/users']
        assert table.find('POST', '/users').route.definition.status == 201

    def test_invalid_entries_skipped(self, caplog):
        table = RouteTable.from_bundle({
            '/bad': {'status': 200},
            '/worse': 'nope',
            '/good': {'method': 'GET'},
        })

        assert [r.pattern for r in table] == ['/good']
        assert "Skipping mock '/bad'" in caplog.text
