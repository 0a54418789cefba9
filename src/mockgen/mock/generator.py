"""
MockGen Response Generator

Heuristic mock generation for discovered endpoints.

Features:
- Config template overrides per URL
- URL classification into auth, action and CRUD endpoints
- Status code selection by method and classification
- Resource name inference and realistic resource field shapes
"""

import random
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..common import URLMatcher
from ..config import MockgenConfig

JSON_HEADERS = {'content-type': 'application/json'}

AUTH = 'auth'
ACTION = 'action'
CRUD = 'crud'

# Checked in order; the first keyword with a hit decides the body shape.
AUTH_KEYWORDS = [
    'login', 'signin', 'sign-in', 'sign_in',
    'logout', 'signout', 'sign-out', 'sign_out',
    'register', 'signup', 'sign-up', 'sign_up',
    'forgot-password', 'forgot_password', 'forgot',
    'reset-password', 'reset_password', 'reset',
    'change-password', 'change_password',
    'verify', 'verification', 'confirm',
    'refresh-token', 'refresh_token', 'refresh',
    'authenticate', 'oauth', 'otp', '2fa', 'mfa',
]

ACTION_KEYWORDS = [
    'deactivate', 'activate', 'approve', 'reject', 'publish', 'unpublish',
    'archive', 'restore', 'send', 'export', 'import', 'cancel', 'complete',
    'assign', 'duplicate', 'upload', 'download', 'sync',
]

_MUTATIONS_WITH_TARGET = ('PUT', 'PATCH')
_ID_TAIL = re.compile(r'/(\d+)/?$')


@dataclass
class ResponseDefinition:
    """
    A mock response bound to one route pattern.

    alternatives holds bare bodies; responses holds whole response
    objects ({status, headers, body}) as written by older bundles.
    """

    method: str
    status: int = 200
    headers: Dict[str, str] = field(default_factory=lambda: dict(JSON_HEADERS))
    body: Any = None
    alternatives: Optional[List[Any]] = None
    stateful: bool = False
    responses: Optional[List[Dict[str, Any]]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to mock bundle entry; optional fields only when set."""
        data: Dict[str, Any] = {
            'method': self.method,
            'status': self.status,
            'headers': dict(self.headers),
        }
        if self.body is not None:
            data['body'] = self.body
        if self.alternatives is not None:
            data['alternatives'] = list(self.alternatives)
        if self.responses is not None:
            data['responses'] = [dict(r) for r in self.responses]
        if self.stateful:
            data['stateful'] = True
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ResponseDefinition':
        """
        Create definition from a mock bundle entry.

        Raises:
            ValueError: If the entry is not a usable definition
        """
        if not isinstance(data, dict):
            raise ValueError(f"definition must be an object, got {type(data).__name__}")

        method = data.get('method')
        if not isinstance(method, str) or not method:
            raise ValueError("definition has no method")

        stateful = bool(data.get('stateful', False))
        status = _check_status(data.get('status', 201 if stateful else 200))
        headers = _check_headers(data.get('headers'))

        alternatives = data.get('alternatives')
        if alternatives is not None and (not isinstance(alternatives, list) or not alternatives):
            raise ValueError("alternatives must be a non-empty array")

        responses = data.get('responses')
        if responses is not None:
            if not isinstance(responses, list) or not responses:
                raise ValueError("responses must be a non-empty array")
            if not all(isinstance(r, dict) for r in responses):
                raise ValueError("responses entries must be objects")
            responses = [
                {
                    'status': _check_status(r.get('status', 200)),
                    'headers': _check_headers(r.get('headers')),
                    'body': r.get('body', {}),
                }
                for r in responses
            ]

        return cls(
            method=method.upper(),
            status=status,
            headers=headers,
            body=data.get('body'),
            alternatives=alternatives,
            stateful=stateful,
            responses=responses
        )


def _check_status(status: Any) -> int:
    if isinstance(status, bool) or not isinstance(status, int) or not 100 <= status <= 599:
        raise ValueError(f"invalid status {status!r}")
    return status


def _check_headers(headers: Any) -> Dict[str, str]:
    if headers is None:
        return dict(JSON_HEADERS)
    if not isinstance(headers, dict):
        raise ValueError("headers must be an object")
    return {str(k): str(v) for k, v in headers.items()}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec='seconds').replace('+00:00', 'Z')


def _contains_token(text: str, keyword: str) -> bool:
    return re.search(rf'(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])', text) is not None


def classify(url: str) -> Tuple[str, Optional[str]]:
    """
    Classify a URL as an auth, action or CRUD endpoint.

    A keyword hits when it appears as a whole token anywhere in the
    lowercased URL, or as a substring of one of its last two path
    segments. Auth keywords are tried before action keywords.

    Args:
        url: Endpoint URL

    Returns:
        Tuple of (category, matching keyword or None for crud)
    """
    lowered = url.lower().split('?', 1)[0]
    tail = URLMatcher.split_path(lowered)[-2:]

    for category, keywords in ((AUTH, AUTH_KEYWORDS), (ACTION, ACTION_KEYWORDS)):
        for keyword in keywords:
            if _contains_token(lowered, keyword) or any(keyword in segment for segment in tail):
                return category, keyword

    return CRUD, None


def select_status(method: str, category: str) -> int:
    """Status code for a method and URL category."""
    method = method.upper()
    if method == 'DELETE':
        return 204
    if method == 'POST':
        return 201 if category == CRUD else 200
    return 200


def _is_id_segment(segment: str) -> bool:
    return URLMatcher.is_numeric(segment) or URLMatcher.is_param(segment)


def infer_resource_name(url: str) -> str:
    """
    Naively infer the singular resource name addressed by a URL.

    "/api/users" -> "user", "/api/users/42" -> "user".
    """
    parts = URLMatcher.split_path(URLMatcher.route_pattern(url))
    if parts and _is_id_segment(parts[-1]):
        parts = parts[:-1]

    name = parts[-1] if parts else ''
    if name.endswith('s'):
        name = name[:-1]
    return name or 'resource'


def extract_id(url: str) -> Optional[int]:
    """Numeric id in the last path segment, if any."""
    match = _ID_TAIL.search(URLMatcher.route_pattern(url))
    return int(match.group(1)) if match else None


def is_collection(url: str) -> bool:
    """A URL is a collection unless its last segment is an id or parameter."""
    parts = URLMatcher.split_path(URLMatcher.route_pattern(url))
    return not (parts and _is_id_segment(parts[-1]))


# ---------------------------------------------------------------------------
# Resource shapes
# ---------------------------------------------------------------------------

def _user(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'name': 'John Doe',
        'email': f'user{id}@example.com',
        'role': 'user',
        'active': True,
        'createdAt': _iso(now),
    }


def _product(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'title': f'Sample Product {id}',
        'description': 'A high quality sample product',
        'price': 49.99,
        'currency': 'USD',
        'inStock': True,
        'sku': f'SKU-{id:05d}',
    }


def _order(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'userId': 1,
        'items': [{'productId': 1, 'quantity': 2, 'price': 49.99}],
        'total': 99.98,
        'status': 'pending',
        'createdAt': _iso(now),
    }


def _post(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'title': f'Post {id}',
        'body': 'Lorem ipsum dolor sit amet.',
        'authorId': 1,
        'published': True,
        'createdAt': _iso(now),
    }


def _comment(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'postId': 1,
        'authorId': 1,
        'text': 'Great post!',
        'createdAt': _iso(now),
    }


def _category(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'name': f'Category {id}',
        'slug': f'category-{id}',
        'parentId': None,
    }


def _file(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'filename': f'document-{id}.pdf',
        'mimeType': 'application/pdf',
        'size': 102400,
        'url': f'https://files.example.com/document-{id}.pdf',
        'uploadedAt': _iso(now),
    }


def _notification(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'type': 'info',
        'message': 'You have a new message',
        'read': False,
        'createdAt': _iso(now),
    }


def _payment(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'orderId': 1,
        'amount': 99.98,
        'currency': 'USD',
        'method': 'card',
        'status': 'succeeded',
        'paidAt': _iso(now),
    }


def _address(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'street': '123 Main St',
        'city': 'Springfield',
        'state': 'IL',
        'postalCode': '62701',
        'country': 'US',
    }


def _review(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'productId': 1,
        'userId': 1,
        'rating': 5,
        'comment': 'Excellent!',
        'createdAt': _iso(now),
    }


def _cart(id: int, now: datetime) -> Dict[str, Any]:
    return {
        'id': id,
        'userId': 1,
        'items': [{'productId': 1, 'quantity': 1, 'price': 49.99}],
        'total': 49.99,
        'updatedAt': _iso(now),
    }


RESOURCE_TEMPLATES: List[Tuple[str, Callable[[int, datetime], Dict[str, Any]]]] = [
    ('user', _user),
    ('profile', _user),
    ('product', _product),
    ('order', _order),
    ('post', _post),
    ('comment', _comment),
    ('categor', _category),
    ('file', _file),
    ('notification', _notification),
    ('payment', _payment),
    ('address', _address),
    ('review', _review),
    ('cart', _cart),
]


def mock_resource(resource: str, id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Realistic fields for a resource, chosen by keyword in its name.

    Falls back to a generic id/name/description/timestamps shape.
    """
    now = now or _now()
    name = resource.lower()
    for keyword, builder in RESOURCE_TEMPLATES:
        if keyword in name:
            return builder(id, now)

    return {
        'id': id,
        'name': f'{resource[:1].upper()}{resource[1:]} {id}',
        'description': f'Mock {resource}',
        'createdAt': _iso(now),
        'updatedAt': _iso(now),
    }


class MockGenerator:
    """
    Turns an endpoint (method, URL) into a response definition.

    Config templates win over every heuristic. Otherwise the URL is
    classified, a status picked from the method table, and a body built
    from canned auth/action shapes or resource templates.

    Example:
        generator = MockGenerator(config=load_config(root))
        definition = generator.generate('GET', '/api/users/7')
        print(definition.status, definition.body)
    """

    def __init__(
        self,
        config: Optional[MockgenConfig] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize generator.

        Args:
            config: Config with response templates (defaults to empty)
            rng: Random source for generated ids
            clock: Returns the current time for timestamps
        """
        self.config = config or MockgenConfig()
        self.rng = rng or random.Random()
        self.clock = clock or _now

    def generate(self, method: str, url: str) -> ResponseDefinition:
        """
        Generate the response definition for one endpoint.

        Args:
            method: HTTP method
            url: Endpoint URL as discovered

        Returns:
            ResponseDefinition
        """
        method = method.upper()

        template = self.config.template_for(url)
        if template is not None:
            return self._from_template(method, template)

        category, keyword = classify(url)
        status = select_status(method, category)

        if method == 'DELETE':
            return ResponseDefinition(method=method, status=status)

        if category == AUTH:
            body = self._auth_body(keyword, url)
        elif category == ACTION:
            body = self._action_body(keyword, url)
        else:
            body = self._crud_body(method, url)

        return ResponseDefinition(method=method, status=status, body=body)

    def generate_for(self, endpoint) -> ResponseDefinition:
        """Generate for an Endpoint occurrence."""
        return self.generate(endpoint.method, endpoint.url)

    def _from_template(self, method: str, template: Any) -> ResponseDefinition:
        if not isinstance(template, dict):
            return ResponseDefinition(method=method, status=200, body=template)

        status = template.get('status')
        headers = template.get('headers')
        if not isinstance(status, int) or isinstance(status, bool):
            status = 200
        if not isinstance(headers, dict):
            headers = dict(JSON_HEADERS)
        return ResponseDefinition(
            method=method,
            status=status,
            headers=headers,
            body=template.get('body', template)
        )

    def _random_id(self) -> int:
        return self.rng.randint(1, 1000)

    def _crud_body(self, method: str, url: str) -> Any:
        resource = infer_resource_name(url)
        now = self.clock()

        if method == 'GET' and is_collection(url):
            return [mock_resource(resource, 1, now), mock_resource(resource, 2, now)]
        if method == 'GET':
            return mock_resource(resource, extract_id(url) or 1, now)
        if method == 'POST':
            return {**mock_resource(resource, self._random_id(), now), 'created': True}
        if method in _MUTATIONS_WITH_TARGET:
            return {**mock_resource(resource, extract_id(url) or 1, now), 'updated': True}
        return mock_resource(resource, extract_id(url) or 1, now)

    def _auth_body(self, keyword: str, url: str) -> Dict[str, Any]:
        now = self.clock()
        if keyword in ('login', 'signin', 'sign-in', 'sign_in', 'authenticate', 'oauth'):
            return {
                'token': 'mock-jwt-token',
                'refreshToken': 'mock-refresh-token',
                'user': {'id': 1, 'name': 'John Doe', 'email': 'john@example.com'},
                'expiresIn': 3600,
                'expiresAt': _iso(now + timedelta(hours=1)),
            }
        if keyword in ('register', 'signup', 'sign-up', 'sign_up'):
            return {
                'id': self._random_id(),
                'name': 'John Doe',
                'email': 'john@example.com',
                'verified': False,
                'message': 'Registration successful. Please verify your email.',
                'createdAt': _iso(now),
            }
        if keyword in ('logout', 'signout', 'sign-out', 'sign_out'):
            return {'success': True, 'message': 'Logged out successfully', 'timestamp': _iso(now)}
        if keyword.startswith(('forgot', 'reset', 'change')):
            return {
                'success': True,
                'message': 'Password instructions processed successfully',
                'timestamp': _iso(now),
            }
        if keyword in ('verify', 'verification', 'confirm'):
            return {'success': True, 'verified': True, 'timestamp': _iso(now)}
        return {'success': True, 'token': 'mock-jwt-token', 'timestamp': _iso(now)}

    def _action_body(self, keyword: str, url: str) -> Dict[str, Any]:
        now = _iso(self.clock())
        id = extract_id(url) or _trailing_id_before_action(url) or 1
        states = {
            'activate': ('active', 'activatedAt'),
            'deactivate': ('inactive', 'deactivatedAt'),
            'approve': ('approved', 'approvedAt'),
            'reject': ('rejected', 'rejectedAt'),
            'publish': ('published', 'publishedAt'),
            'unpublish': ('draft', 'unpublishedAt'),
            'archive': ('archived', 'archivedAt'),
            'restore': ('active', 'restoredAt'),
            'send': ('sent', 'sentAt'),
            'cancel': ('cancelled', 'cancelledAt'),
            'complete': ('completed', 'completedAt'),
        }
        if keyword in states:
            status, stamp = states[keyword]
            return {'id': id, 'status': status, stamp: now}
        if keyword == 'export':
            return {
                'success': True,
                'downloadUrl': f'https://files.example.com/exports/export-{id}.csv',
                'expiresAt': now,
            }
        return {'success': True, 'message': f'{keyword.capitalize()} completed successfully', 'timestamp': now}


def _trailing_id_before_action(url: str) -> Optional[int]:
    """Id in "/orders/42/approve"-style URLs."""
    parts = URLMatcher.split_path(URLMatcher.route_pattern(url))
    if len(parts) >= 2 and URLMatcher.is_numeric(parts[-2]):
        return int(parts[-2])
    return None
