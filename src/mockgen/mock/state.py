"""
MockGen Route State

Append-only per-path state for stateful routes, and the placeholder
renderer that turns a body template into the stored record.

Placeholders:
- {{auto}}        next id from the server's counter (one id per body)
- {{body.field}}  field of the parsed request body; dotted paths reach
                  into nested objects
"""

import copy
import json
import re
from typing import Any, Dict, List, Optional

from ..common import TemplateRenderError

_PLACEHOLDER = re.compile(r'\{\{\s*([^{}]{0,256}?)\s*\}\}')
_FIELD_PATH = re.compile(r'^[A-Za-z_$][\w$-]*(?:\.[A-Za-z_$0-9][\w$-]*)*$')

MUTATION_METHODS = frozenset({'POST', 'PUT', 'PATCH'})


class IdCounter:
    """Monotonic id source owned by one server instance."""

    def __init__(self, start: int = 1):
        self._next = start

    def peek(self) -> int:
        return self._next

    def next(self) -> int:
        value = self._next
        self._next += 1
        return value


class StateStore:
    """
    Per-path, append-only log of JSON bodies.

    Appends never await, so on a single-threaded event loop each append
    completes before another request can touch the same path.
    """

    def __init__(self):
        self._entries: Dict[str, List[Any]] = {}

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, path: str, body: Any) -> List[Any]:
        entries = self._entries.setdefault(path, [])
        entries.append(body)
        return entries

    def get(self, path: str) -> Optional[List[Any]]:
        """Copy of the log for a path, or None if nothing was recorded."""
        entries = self._entries.get(path)
        return list(entries) if entries is not None else None

    def to_dict(self) -> Dict[str, List[Any]]:
        return {path: list(entries) for path, entries in self._entries.items()}


def _lookup(body: Any, path: str) -> Any:
    value = body
    for part in path.split('.'):
        if isinstance(value, dict) and part in value:
            value = value[part]
        else:
            return None
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ''
    if isinstance(value, str):
        return value
    return json.dumps(value)


class TemplateRenderer:
    """
    Renders body templates against a request body.

    Example:
        renderer = TemplateRenderer(IdCounter(1))
        renderer.render({'id': '{{auto}}', 'from': '{{body.name}}'}, {'name': 'alice'})
        # {'id': '1', 'from': 'alice'}
    """

    def __init__(self, ids: IdCounter):
        self.ids = ids

    def render(self, template: Any, request_body: Any) -> Any:
        """
        Substitute placeholders in every string of a template.

        Substitution is textual; a missing request field renders as "".

        Args:
            template: Body template (any JSON value)
            request_body: Parsed request body

        Returns:
            Rendered copy of the template

        Raises:
            TemplateRenderError: On an unknown or malformed placeholder
        """
        self._check(template)
        auto_id = self.ids.next() if self._uses_auto(template) else None
        return self._render(copy.deepcopy(template), request_body, auto_id)

    def _render(self, value: Any, request_body: Any, auto_id: Optional[int]) -> Any:
        if isinstance(value, dict):
            return {k: self._render(v, request_body, auto_id) for k, v in value.items()}
        if isinstance(value, list):
            return [self._render(v, request_body, auto_id) for v in value]
        if isinstance(value, str):
            return _PLACEHOLDER.sub(lambda m: self._resolve(m.group(1), request_body, auto_id), value)
        return value

    def _resolve(self, name: str, request_body: Any, auto_id: Optional[int]) -> str:
        if name == 'auto':
            return str(auto_id)
        return _as_text(_lookup(request_body, name[len('body.'):]))

    def _check(self, value: Any) -> None:
        for text in _strings(value):
            for m in _PLACEHOLDER.finditer(text):
                name = m.group(1)
                if name == 'auto':
                    continue
                if name.startswith('body.') and _FIELD_PATH.match(name[len('body.'):]):
                    continue
                raise TemplateRenderError(f"Unknown placeholder '{m.group(0)}'")

    def _uses_auto(self, value: Any) -> bool:
        return any(
            m.group(1) == 'auto'
            for text in _strings(value)
            for m in _PLACEHOLDER.finditer(text)
        )


def _strings(value: Any):
    if isinstance(value, dict):
        for item in value.values():
            yield from _strings(item)
    elif isinstance(value, list):
        for item in value:
            yield from _strings(item)
    elif isinstance(value, str):
        yield value
