"""
MockGen Common Utilities

Shared utilities and helpers used across MockGen modules.
"""

from .errors import (
    MockgenError,
    ScanError,
    ConfigParseError,
    BundleParseError,
    TemplateRenderError,
    BindError,
    PortInUseError,
)
from .utils import safe_json_parse, write_json, BundleLoader
from .url_utils import URLMatcher, PARAM_MARKER

__all__ = [
    'MockgenError',
    'ScanError',
    'ConfigParseError',
    'BundleParseError',
    'TemplateRenderError',
    'BindError',
    'PortInUseError',
    'safe_json_parse',
    'write_json',
    'BundleLoader',
    'URLMatcher',
    'PARAM_MARKER',
]
