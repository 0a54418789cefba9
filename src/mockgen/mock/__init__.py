"""
MockGen Mock Module

Mock generation and serving for discovered endpoints.

This module provides:
- Heuristic response generation with config overrides
- Schema inference and OpenAPI document building
- Mock bundle construction
- Ordered route table with first-match lookup
- FastAPI-based mock server with stateful routes
"""

from .generator import MockGenerator, ResponseDefinition, classify, infer_resource_name, select_status
from .schema import SchemaRegistry, PrimitiveSchema, ArraySchema, ObjectRef
from .openapi import OpenAPIBuilder
from .bundle import build_mock_bundle, write_mock_files
from .matcher import Route, RouteTable, MatchResult
from .state import StateStore, IdCounter, TemplateRenderer
from .server import MockServer, MockConfig, MockMetrics, ServerState, create_mock_server

__all__ = [
    # Generator
    'MockGenerator',
    'ResponseDefinition',
    'classify',
    'infer_resource_name',
    'select_status',

    # Schema / OpenAPI
    'SchemaRegistry',
    'PrimitiveSchema',
    'ArraySchema',
    'ObjectRef',
    'OpenAPIBuilder',

    # Bundle
    'build_mock_bundle',
    'write_mock_files',

    # Matcher
    'Route',
    'RouteTable',
    'MatchResult',

    # State
    'StateStore',
    'IdCounter',
    'TemplateRenderer',

    # Server
    'MockServer',
    'MockConfig',
    'MockMetrics',
    'ServerState',
    'create_mock_server',
]
