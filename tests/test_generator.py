"""
Tests for MockGen Response Generator

Tests the heuristic generator including:
- URL classification (auth, action, CRUD)
- Status code selection
- Resource inference and field shapes
- Config template overrides
- Response definition parsing
"""

import random
from datetime import datetime, timezone

import pytest

from mockgen.config import MockgenConfig
from mockgen.mock.generator import (
    MockGenerator,
    ResponseDefinition,
    classify,
    extract_id,
    infer_resource_name,
    is_collection,
    mock_resource,
    select_status,
)

FIXED_NOW = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def generator():
    """Generator with a fixed clock and seeded ids."""
    return MockGenerator(rng=random.Random(7), clock=lambda: FIXED_NOW)


class TestClassify:
    """Test URL classification."""

    @pytest.mark.parametrize('url,expected', [
        ('/api/auth/login', ('auth', 'login')),
        ('/api/users/sign-up', ('auth', 'sign-up')),
        ('/api/token/refresh', ('auth', 'refresh')),
        ('/api/users/1/deactivate', ('action', 'deactivate')),
        ('/api/users/1/activate', ('action', 'activate')),
        ('/api/orders/42/approve', ('action', 'approve')),
        ('/api/reports/export', ('action', 'export')),
        ('/api/users', ('crud', None)),
        ('/api/users/42', ('crud', None)),
    ])
    def test_classification(self, url, expected):
        assert classify(url) == expected

    def test_auth_checked_before_action(self):
        """A URL holding both kinds of keyword is auth."""
        assert classify('/api/verify/send')[0] == 'auth'

    def test_substring_hit_in_last_segments(self):
        """Keywords inside the last two segments count as hits."""
        assert classify('/api/userLogin') == ('auth', 'login')

    def test_query_string_ignored(self):
        assert classify('/api/users?redirect=login') == ('crud', None)


class TestSelectStatus:
    """Test status selection."""

    @pytest.mark.parametrize('method,category,status', [
        ('DELETE', 'crud', 204),
        ('DELETE', 'action', 204),
        ('POST', 'crud', 201),
        ('POST', 'auth', 200),
        ('POST', 'action', 200),
        ('GET', 'crud', 200),
        ('PUT', 'crud', 200),
        ('patch', 'crud', 200),
    ])
    def test_status_table(self, method, category, status):
        assert select_status(method, category) == status


class TestResourceInference:
    """Test resource naming helpers."""

    def test_infer_resource_name(self):
        assert infer_resource_name('/api/users') == 'user'
        assert infer_resource_name('/api/users/42') == 'user'
        assert infer_resource_name('/api/users/:id') == 'user'
        assert infer_resource_name('https://api.example.com/v1/orders') == 'order'
        assert infer_resource_name('/') == 'resource'

    def test_extract_id(self):
        assert extract_id('/api/users/42') == 42
        assert extract_id('/api/users') is None

    def test_is_collection(self):
        assert is_collection('/api/users')
        assert not is_collection('/api/users/42')
        assert not is_collection('/api/users/:id')

    def test_resource_templates(self):
        """Field shapes are chosen by keyword in the resource name."""
        assert 'email' in mock_resource('user', 1, FIXED_NOW)
        assert 'email' in mock_resource('profile', 1, FIXED_NOW)
        assert 'price' in mock_resource('product', 1, FIXED_NOW)
        assert 'slug' in mock_resource('categorie', 1, FIXED_NOW)

    def test_generic_resource_shape(self):
        body = mock_resource('widget', 3, FIXED_NOW)

        assert body == {
            'id': 3,
            'name': 'Widget 3',
            'description': 'Mock widget',
            'createdAt': '2024-01-15T10:30:00Z',
            'updatedAt': '2024-01-15T10:30:00Z',
        }


class TestMockGenerator:
    """Test full definition generation."""

    def test_get_collection(self, generator):
        definition = generator.generate('GET', '/api/users')

        assert definition.status == 200
        assert [item['id'] for item in definition.body] == [1, 2]

    def test_get_single(self, generator):
        definition = generator.generate('GET', '/api/products/17')

        assert definition.body['id'] == 17
        assert definition.body['sku'] == 'SKU-00017'

    def test_post_creates(self, generator):
        definition = generator.generate('POST', '/api/users')

        assert definition.status == 201
        assert definition.body['created'] is True
        assert 1 <= definition.body['id'] <= 1000

    def test_put_updates(self, generator):
        definition = generator.generate('PUT', '/api/orders/9')

        assert definition.body['id'] == 9
        assert definition.body['updated'] is True

    def test_delete_has_no_body(self, generator):
        definition = generator.generate('DELETE', '/api/users/1')

        assert definition.status == 204
        assert definition.body is None
        assert 'body' not in definition.to_dict()

    def test_login(self, generator):
        definition = generator.generate('POST', '/api/auth/login')

        assert definition.status == 200
        assert definition.body['token'] == 'mock-jwt-token'
        assert definition.body['expiresAt'] == '2024-01-15T11:30:00Z'

    def test_logout(self, generator):
        body = generator.generate('POST', '/api/auth/logout').body

        assert body['success'] is True
        assert body['message'] == 'Logged out successfully'

    def test_state_action(self, generator):
        """State-changing actions report the new state with a timestamp."""
        body = generator.generate('POST', '/api/orders/42/approve').body

        assert body == {'id': 42, 'status': 'approved', 'approvedAt': '2024-01-15T10:30:00Z'}

    def test_generic_action(self, generator):
        body = generator.generate('POST', '/api/reports/sync').body

        assert body['message'] == 'Sync completed successfully'

    def test_lowercase_method(self, generator):
        assert generator.generate('get', '/api/users').method == 'GET'

    def test_generate_for_endpoint(self, generator):
        class FakeEndpoint:
            method = 'GET'
            url = '/api/users'

        assert generator.generate_for(FakeEndpoint()).status == 200


class TestTemplateOverride:
    """Test config response templates."""

    def test_template_wins_over_heuristics(self):
        """Even a DELETE gets the template's status and body."""
        config = MockgenConfig(response_templates={
            '/api/users/1': {'status': 202, 'body': {'queued': True}}
        })

        definition = MockGenerator(config=config).generate('DELETE', '/api/users/1')

        assert definition.status == 202
        assert definition.body == {'queued': True}

    def test_template_without_body_is_the_body(self):
        config = MockgenConfig(response_templates={'/api/ping': {'pong': True}})

        definition = MockGenerator(config=config).generate('GET', '/api/ping')

        assert definition.status == 200
        assert definition.body == {'pong': True}

    def test_non_object_template(self):
        config = MockgenConfig(response_templates={'/api/tags': ['a', 'b']})

        assert MockGenerator(config=config).generate('GET', '/api/tags').body == ['a', 'b']

    def test_invalid_template_status_defaults(self):
        config = MockgenConfig(response_templates={'/x': {'status': 'ok', 'body': 1}})

        assert MockGenerator(config=config).generate('GET', '/x').status == 200


class TestResponseDefinition:
    """Test bundle entry parsing."""

    def test_round_trip(self):
        definition = ResponseDefinition(method='POST', status=201, body={'id': 1}, stateful=True)

        assert ResponseDefinition.from_dict(definition.to_dict()) == definition

    def test_defaults(self):
        definition = ResponseDefinition.from_dict({'method': 'get'})

        assert definition.method == 'GET'
        assert definition.status == 200
        assert definition.headers == {'content-type': 'application/json'}

    def test_stateful_defaults_to_created(self):
        assert ResponseDefinition.from_dict({'method': 'POST', 'stateful': True}).status == 201

    def test_responses_are_whole_responses(self):
        definition = ResponseDefinition.from_dict({
            'method': 'GET',
            'responses': [{'status': 503, 'body': {'error': 'down'}}, {'headers': {'x-mock': '1'}}]
        })

        assert definition.alternatives is None
        assert definition.responses == [
            {'status': 503, 'headers': {'content-type': 'application/json'}, 'body': {'error': 'down'}},
            {'status': 200, 'headers': {'x-mock': '1'}, 'body': {}},
        ]
        assert ResponseDefinition.from_dict(definition.to_dict()) == definition

    @pytest.mark.parametrize('data', [
        [],
        {},
        {'method': 'GET', 'status': 'ok'},
        {'method': 'GET', 'status': 99},
        {'method': 'GET', 'status': True},
        {'method': 'GET', 'headers': []},
        {'method': 'GET', 'alternatives': []},
        {'method': 'GET', 'responses': [1, 2]},
        {'method': 'GET', 'responses': [{'status': 'bad'}]},
    ])
    def test_invalid_entries(self, data):
        with pytest.raises(ValueError):
            ResponseDefinition.from_dict(data)
