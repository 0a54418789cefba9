"""
Tests for MockGen CLI

Tests the command handlers end to end on a temporary workspace.
"""

import json

import pytest
import yaml

from mockgen.cli import build_parser, main


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / 'web').mkdir()
    (tmp_path / 'web' / 'api.ts').write_text(
        "export const list = () => fetch('/api/users');\n"
        "export const create = (u) => axios.post('/api/users', u);\n",
        encoding='utf-8'
    )
    return tmp_path


class TestParser:
    """Test argument parsing."""

    def test_serve_defaults(self):
        args = build_parser().parse_args(['serve'])

        assert args.root == '.'
        assert args.port == 3000
        assert args.max_port_attempts == 10
        assert args.host == '127.0.0.1'

    def test_openapi_format(self):
        assert build_parser().parse_args(['openapi', '--format', 'yaml']).format == 'yaml'


class TestCommands:
    """Test command handlers."""

    def test_scan(self, workspace, capsys):
        main(['scan', str(workspace), '--verbose'])

        entries = json.loads((workspace / '.mockgen' / 'endpoints.json').read_text(encoding='utf-8'))
        assert [(e['method'], e['url'], e['location']) for e in entries] == [
            ('GET', '/api/users', 'web/api.ts:1'),
            ('POST', '/api/users', 'web/api.ts:2'),
        ]
        assert 'Exported 2 endpoints' in capsys.readouterr().out

    def test_scan_empty(self, tmp_path, capsys):
        main(['scan', str(tmp_path)])

        assert 'No endpoints found' in capsys.readouterr().out
        assert not (tmp_path / '.mockgen' / 'endpoints.json').exists()

    def test_generate(self, workspace):
        main(['generate', str(workspace), '--split', '--stateful'])

        bundle = json.loads((workspace / '.mockgen' / 'mock.json').read_text(encoding='utf-8'))
        assert list(bundle) == ['/api/users', 'POST /api/users']
        assert bundle['POST /api/users']['stateful'] is True
        assert (workspace / '.mockgen' / 'config.json').exists()
        assert sorted(p.name for p in (workspace / '.mockgen' / 'mocks').iterdir()) == [
            'GET__api_users.json', 'POST__api_users.json'
        ]

    def test_openapi_yaml(self, workspace):
        main(['openapi', str(workspace), '--format', 'yaml'])

        document = yaml.safe_load((workspace / '.mockgen' / 'swagger.yaml').read_text(encoding='utf-8'))
        assert set(document['paths']['/api/users']) == {'get', 'post'}

    def test_openapi_output_path(self, workspace, tmp_path):
        out = tmp_path / 'docs' / 'api.json'

        main(['openapi', str(workspace), '-o', str(out)])

        assert json.loads(out.read_text(encoding='utf-8'))['openapi'] == '3.0.3'

    def test_serve_bind_error_exits(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(['serve', str(tmp_path), '--host', '203.0.113.1', '--max-port-attempts', '1'])

        assert exc_info.value.code == 1
        assert 'Cannot bind' in capsys.readouterr().out

    def test_no_command(self):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
