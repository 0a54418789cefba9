"""
MockGen URL Utilities

Shared URL parsing, normalization, and route pattern matching utilities.
"""

import re
from typing import List, Optional, Tuple
from urllib.parse import urlparse

PARAM_MARKER = ':'

_NUMERIC = re.compile(r'^\d+$')
_SCHEME = re.compile(r'^[a-zA-Z][a-zA-Z0-9+.-]*://')


class URLMatcher:
    """Handles path splitting, normalization and route pattern matching."""

    @staticmethod
    def split_path(path: str) -> List[str]:
        """Split a path into its non-empty segments."""
        return [segment for segment in path.split('/') if segment]

    @staticmethod
    def normalize_path(path: str) -> str:
        """
        Normalize a request path for matching and state keys.

        Drops query string, fragment, repeated and trailing slashes.

        Args:
            path: Raw request path

        Returns:
            Path in the form "/a/b", or "/" for the root
        """
        path = path.split('?', 1)[0].split('#', 1)[0]
        return '/' + '/'.join(URLMatcher.split_path(path))

    @staticmethod
    def is_param(segment: str) -> bool:
        return segment.startswith(PARAM_MARKER)

    @staticmethod
    def is_numeric(segment: str) -> bool:
        return bool(_NUMERIC.match(segment))

    @staticmethod
    def pattern_matches(pattern: str, path: str) -> bool:
        """
        Check whether a route pattern matches a request path.

        Both must have the same number of non-empty segments, and every
        pattern segment must either be a ":name" parameter or equal the
        path segment at the same index.

        Args:
            pattern: Route pattern such as "/users/:id"
            path: Request path such as "/users/123"

        Returns:
            True if the pattern matches
        """
        pattern_parts = URLMatcher.split_path(pattern)
        path_parts = URLMatcher.split_path(path)

        if len(pattern_parts) != len(path_parts):
            return False

        return all(
            URLMatcher.is_param(part) or part == path_parts[i]
            for i, part in enumerate(pattern_parts)
        )

    @staticmethod
    def route_pattern(url: str, base_url: Optional[str] = None) -> str:
        """
        Turn a discovered URL into a route pattern.

        Strips the configured base URL, scheme and host, query string and
        fragment so that only the normalized path remains.

        Args:
            url: URL as found in source
            base_url: Optional base URL to strip first

        Returns:
            Normalized route pattern
        """
        if base_url and url.startswith(base_url):
            url = url[len(base_url):]

        if _SCHEME.match(url) or url.startswith('//'):
            url = urlparse(url).path

        return URLMatcher.normalize_path(url)

    @staticmethod
    def openapi_path(url: str) -> Tuple[str, List[dict]]:
        """
        Rewrite a URL into an OpenAPI path template.

        Numeric segments become "{id}" integer parameters and ":name"
        segments become "{name}" string parameters.

        Returns:
            Tuple of (templated path, list of parameter objects)
        """
        params: List[dict] = []
        seen = set()
        parts = []

        for part in URLMatcher.split_path(URLMatcher.route_pattern(url)):
            if URLMatcher.is_numeric(part):
                name, schema_type = 'id', 'integer'
            elif URLMatcher.is_param(part) and len(part) > 1:
                name, schema_type = part[1:], 'string'
            else:
                parts.append(part)
                continue

            parts.append('{' + name + '}')
            if name not in seen:
                seen.add(name)
                params.append({
                    'name': name,
                    'in': 'path',
                    'required': True,
                    'schema': {'type': schema_type}
                })

        return '/' + '/'.join(parts), params
