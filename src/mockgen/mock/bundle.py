"""
MockGen Mock Bundle

Builds the mock bundle (route pattern -> response definition) from
discovered endpoints and writes it, or one file per endpoint, to disk.
"""

import logging
import re
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from ..common import URLMatcher, write_json
from .generator import MockGenerator, ResponseDefinition

logger = logging.getLogger("mockgen.generator")

_UNSAFE_FILENAME = re.compile(r'[/:?&=*<>|"\\\s]')


def bundle_key(method: str, pattern: str) -> str:
    """Key used when a pattern is already taken by another method."""
    return f"{method.upper()} {pattern}"


def build_mock_bundle(
    endpoints: Iterable,
    generator: Optional[MockGenerator] = None,
    stateful_posts: bool = False
) -> Dict[str, Dict[str, Any]]:
    """
    Generate a response definition for every endpoint.

    Route patterns are the endpoint URL paths with the configured base
    URL stripped. The first method seen for a pattern owns the bare
    pattern key; other methods on the same pattern are keyed
    "METHOD /pattern". Bundle order follows endpoint order.

    Args:
        endpoints: Endpoint occurrences
        generator: MockGenerator to use (defaults to a plain one)
        stateful_posts: Mark POST definitions stateful

    Returns:
        Ordered mock bundle mapping
    """
    generator = generator or MockGenerator()
    base_url = generator.config.base_url
    bundle: Dict[str, Dict[str, Any]] = OrderedDict()
    claimed = set()

    for endpoint in endpoints:
        pattern = URLMatcher.route_pattern(endpoint.url, base_url)
        method = endpoint.method.upper()
        if (method, pattern) in claimed:
            continue
        claimed.add((method, pattern))

        definition = generator.generate(method, endpoint.url)
        if stateful_posts and method == 'POST':
            definition.stateful = True

        key = pattern if pattern not in bundle else bundle_key(method, pattern)
        bundle[key] = definition.to_dict()

    logger.info(f"Generated {len(bundle)} mock definitions")
    return bundle


def mock_filename(method: str, url: str) -> str:
    """File name for a single endpoint mock: GET_/users/:id -> GET__users__id.json."""
    return f"{method.upper()}_{_UNSAFE_FILENAME.sub('_', url)}.json"


def write_mock_files(
    endpoints: Iterable,
    directory: Union[str, Path],
    generator: Optional[MockGenerator] = None
) -> List[Path]:
    """
    Write one mock file per endpoint.

    Returns:
        Paths written
    """
    generator = generator or MockGenerator()
    directory = Path(directory)
    written = []
    for endpoint in endpoints:
        definition: ResponseDefinition = generator.generate(endpoint.method, endpoint.url)
        path = directory / mock_filename(endpoint.method, endpoint.url)
        written.append(write_json(path, definition.to_dict()))
    return written
