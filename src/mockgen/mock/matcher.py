"""
MockGen Route Matcher

Ordered route table and first-match lookup for the mock server.

Match priority is table order only: the first route whose method and
pattern fit the request wins, even if a later route is more specific.
Given "/a/:x" before "/a/b", a request for "/a/b" gets "/a/:x".
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

from ..common import URLMatcher
from .generator import ResponseDefinition

logger = logging.getLogger("mockgen.mock")

_METHOD_PREFIX = re.compile(r'^[A-Za-z]+\s+(?=/)')


@dataclass(frozen=True)
class Route:
    """One route pattern bound to its response definition."""

    pattern: str
    definition: ResponseDefinition

    @property
    def method(self) -> str:
        return self.definition.method

    def matches(self, method: str, path: str) -> bool:
        return self.method == method and URLMatcher.pattern_matches(self.pattern, path)


@dataclass(frozen=True)
class MatchResult:
    """Result of matching a request against the route table."""

    matched: bool
    route: Optional[Route] = None
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            'matched': self.matched,
            'pattern': self.route.pattern if self.route else None,
            'reason': self.reason
        }


class RouteTable:
    """
    Immutable ordered list of routes.

    The server swaps whole tables on reload and never mutates one in
    place, so a request holding a table reference sees one consistent
    version of it.
    """

    def __init__(self, routes: Optional[List[Route]] = None):
        self._routes: Tuple[Route, ...] = tuple(routes or ())

    def __len__(self) -> int:
        return len(self._routes)

    def __iter__(self) -> Iterator[Route]:
        return iter(self._routes)

    @property
    def routes(self) -> Tuple[Route, ...]:
        return self._routes

    @classmethod
    def from_bundle(cls, bundle: Dict[str, Any]) -> 'RouteTable':
        """
        Build a table from a mock bundle mapping, keeping its key order.

        Keys are route patterns, optionally prefixed with a method
        ("POST /users"). Entries that are not valid definitions are
        skipped with a warning.
        """
        routes: List[Route] = []
        for key, data in bundle.items():
            pattern = URLMatcher.normalize_path(_METHOD_PREFIX.sub('', str(key)))
            try:
                definition = ResponseDefinition.from_dict(data)
            except ValueError as e:
                logger.warning(f"Skipping mock '{key}': {e}")
                continue
            routes.append(Route(pattern=pattern, definition=definition))
        return cls(routes)

    def find(self, method: str, path: str) -> MatchResult:
        """
        Find the first route matching a request.

        A GET that no GET route matches falls back to the first stateful
        route on the same path, which replays its recorded bodies.

        Args:
            method: Request method
            path: Request path

        Returns:
            MatchResult
        """
        method = method.upper()
        path = URLMatcher.normalize_path(path)

        for route in self._routes:
            if route.matches(method, path):
                return MatchResult(matched=True, route=route, reason="Pattern match")

        if method == 'GET':
            for route in self._routes:
                if route.definition.stateful and URLMatcher.pattern_matches(route.pattern, path):
                    return MatchResult(matched=True, route=route, reason="Stateful replay")

        return MatchResult(matched=False, reason=f"No mock for {method} {path}")
