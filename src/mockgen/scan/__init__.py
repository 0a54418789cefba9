"""
MockGen Scan Module

Discovers HTTP endpoints in a source tree.

This module provides:
- Pattern rules for client calls and server route declarations
- Endpoint extractor with per-file alias tracking and deduplication
- Workspace file discovery and endpoints bundle formatting
"""

from .extractor import (
    Endpoint,
    EndpointExtractor,
    SourceFile,
    deduplicate,
    dialect_for,
    discover_files,
    format_endpoints,
    line_number,
    read_source,
)
from .rules import DEFAULT_RULES, PatternRule, collect_aliases, normalize_url

__all__ = [
    'Endpoint',
    'EndpointExtractor',
    'SourceFile',
    'deduplicate',
    'dialect_for',
    'discover_files',
    'format_endpoints',
    'line_number',
    'read_source',
    'DEFAULT_RULES',
    'PatternRule',
    'collect_aliases',
    'normalize_url',
]
