"""
MockGen OpenAPI Builder

Builds an OpenAPI 3.0.3 description from discovered endpoints and
their generated mocks, with schemas inferred from the mock bodies.
"""

import json
import re
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml

from ..common import URLMatcher
from .generator import MockGenerator
from .schema import SchemaRegistry

OPENAPI_VERSION = '3.0.3'
DEFAULT_SERVER = 'http://localhost:3000'

DEFAULT_ERRORS = {
    '400': {'description': 'Bad Request'},
    '401': {'description': 'Unauthorized'},
    '404': {'description': 'Not Found'},
    '500': {'description': 'Internal Server Error'},
}

_BODY_METHODS = ('post', 'put', 'patch')


class _NoAliasDumper(yaml.SafeDumper):
    """Examples are shared between request and response; write them out in full."""

    def ignore_aliases(self, data):
        return True


def schema_name(url: str) -> str:
    """Schema name from the last URL segment: "/users/42" -> "Id", "/users" -> "Users"."""
    parts = URLMatcher.split_path(URLMatcher.route_pattern(url))
    last = parts[-1] if parts else 'Root'
    last = re.sub(r'\d+', 'Id', last.lstrip(':')) or 'Root'
    return last[:1].upper() + last[1:]


class OpenAPIBuilder:
    """
    Accumulates endpoints into one OpenAPI document.

    The schema registry lives for one build, so schema names are shared
    by every endpoint added to the same builder.

    Example:
        builder = OpenAPIBuilder(MockGenerator(config), server_url=config.base_url)
        builder.add_all(endpoints)
        builder.write(paths.openapi_file('yaml'), fmt='yaml')
    """

    def __init__(
        self,
        generator: Optional[MockGenerator] = None,
        server_url: Optional[str] = None,
        title: str = 'MockGen API'
    ):
        self.generator = generator or MockGenerator()
        self.registry = SchemaRegistry()
        self.document: Dict[str, Any] = {
            'openapi': OPENAPI_VERSION,
            'info': {
                'title': title,
                'description': 'Auto-generated API documentation from MockGen',
                'version': '1.0.0'
            },
            'servers': [
                {'url': server_url or DEFAULT_SERVER, 'description': 'Local Mock Server'}
            ],
            'paths': {},
            'components': {'schemas': self.registry.schemas}
        }

    def add(self, method: str, url: str) -> Dict[str, Any]:
        """
        Add one endpoint as an operation.

        Returns:
            The operation object that was added
        """
        path, params = URLMatcher.openapi_path(url)
        verb = method.lower()
        mock = self.generator.generate(method, url)
        name = schema_name(url)

        operation: Dict[str, Any] = {'summary': f'{method.upper()} {path}'}
        if params:
            operation['parameters'] = params

        example = mock.body if mock.body is not None else {}

        if verb in _BODY_METHODS:
            operation['requestBody'] = {
                'required': True,
                'content': {
                    'application/json': {
                        'schema': self.registry.infer(example, f'{name}Request').to_dict(),
                        'example': example
                    }
                }
            }

        success: Dict[str, Any] = {'description': f'Mocked response for {method.upper()} {path}'}
        if mock.body is not None:
            success['content'] = {
                'application/json': {
                    'schema': self.registry.infer(mock.body, name).to_dict(),
                    'example': mock.body
                }
            }

        operation['responses'] = {str(mock.status): success, **DEFAULT_ERRORS}
        self.document['paths'].setdefault(path, {})[verb] = operation
        return operation

    def add_all(self, endpoints: Iterable) -> 'OpenAPIBuilder':
        for endpoint in endpoints:
            self.add(endpoint.method, endpoint.url)
        return self

    def to_dict(self) -> Dict[str, Any]:
        return self.document

    def dumps(self, fmt: str = 'json') -> str:
        """Serialize as "json" or "yaml"."""
        if fmt == 'yaml':
            return yaml.dump(self.document, Dumper=_NoAliasDumper, sort_keys=False, allow_unicode=True)
        return json.dumps(self.document, indent=2, ensure_ascii=False)

    def write(self, path: Union[str, Path], fmt: str = 'json') -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.dumps(fmt))
        return path
