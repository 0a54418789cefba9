"""
MockGen Scan Rules

Ordered pattern rules that recognize HTTP call sites and route
declarations in loosely structured source text.

Rules come in two families, evaluated in this order:
- client: network calls made by application code (fetch, axios and
  its instances, data-fetching hook wrappers, API-client objects)
- server: route declarations of web frameworks (Express, NestJS, Flask,
  FastAPI, Spring, Actix, Rocket, Axum, net/http, gin)

Every pattern is built from negated character classes with explicit
length bounds so that scanning a file is linear in its size, whatever
the input looks like.
"""

import re
from dataclasses import dataclass, field
from re import Match, Pattern
from typing import Callable, FrozenSet, Iterator, List, NamedTuple, Optional, Set, Tuple

JAVASCRIPT = 'javascript'
PYTHON = 'python'
RUST = 'rust'
JAVA = 'java'
GO = 'go'

DIALECT_EXTENSIONS = {
    '.js': JAVASCRIPT,
    '.jsx': JAVASCRIPT,
    '.mjs': JAVASCRIPT,
    '.cjs': JAVASCRIPT,
    '.ts': JAVASCRIPT,
    '.tsx': JAVASCRIPT,
    '.py': PYTHON,
    '.rs': RUST,
    '.java': JAVA,
    '.kt': JAVA,
    '.go': GO,
}

# Upper bound on a URL literal; longer strings are not endpoints.
MAX_URL_LENGTH = 2048

# How far past a data-fetching hook anchor a call may appear.
CONTEXT_WINDOW = 400

# How far past a fetch() URL its options object is searched for a method.
FETCH_OPTIONS_WINDOW = 200

IDENT = r'[A-Za-z_$][\w$]{0,127}'
PY_IDENT = r'[A-Za-z_]\w{0,127}'
VERB_GROUP = r'(?P<verb>get|post|put|delete|patch|head|options)'


def _literal(quotes: str, prefix: str = '') -> str:
    """String literal with one of the given quote characters, URL in group "url"."""
    return (
        rf'{prefix}(?P<q>[{quotes}])'
        rf'(?P<url>[^\'"`\\\n]{{1,{MAX_URL_LENGTH}}})(?P=q)'
    )


JS_LITERAL = _literal('\'"`')
PY_LITERAL = _literal('\'"', prefix=r'(?P<prefix>[rRuUfFbB]{1,2})?')
DQ_LITERAL = _literal('"')
GO_LITERAL = _literal('"`')

# Template and route-parameter normalization
TEMPLATE_PLACEHOLDER = ':id'
_LEADING_INTERPOLATION = re.compile(r'^\$\{[^{}\n]{0,256}\}(?=/)')
_INTERPOLATION = re.compile(r'\$\{[^{}\n]{0,256}\}')
_LEADING_FSTRING_FIELD = re.compile(r'^\{[^{}\n]{0,256}\}(?=/)')
_ANGLE_PARAM = re.compile(r'<(?:[A-Za-z_]\w{0,63}:)?(?P<name>[A-Za-z_]\w{0,63})(?:\.\.)?>')
_BRACE_PARAM = re.compile(r'\{(?P<name>[A-Za-z_]\w{0,63})(?::[^{}\n]{0,128})?\}')
_BRACE_EXPR = re.compile(r'\{[^{}\n]{0,256}\}')
_URL_SHAPED = re.compile(r'^(?:/|[A-Za-z][A-Za-z0-9+.-]{0,31}://|\$\{)')


def looks_like_url(url: str) -> bool:
    """True for a leading "/", a scheme, or a leading template interpolation."""
    return bool(_URL_SHAPED.match(url.strip()))


def normalize_url(url: str, fstring: bool = False) -> Optional[str]:
    """
    Normalize a URL literal found in source.

    Template interpolations, "${...}" in JavaScript and "{...}" in Python
    f-strings, become the fixed ":id" placeholder; a leading interpolation
    directly followed by "/" is a base URL and is dropped. In plain
    literals, framework route parameters such as "{id}", "<id>" or
    "<int:id>" become ":id"-style parameters.

    Args:
        url: Raw URL text between the quotes
        fstring: The literal is a Python f-string

    Returns:
        Normalized URL, or None if it still holds an unresolved
        interpolation marker
    """
    url = url.strip()
    if fstring:
        url = _LEADING_FSTRING_FIELD.sub('', url)
        url = _BRACE_EXPR.sub(TEMPLATE_PLACEHOLDER, url)

    url = _LEADING_INTERPOLATION.sub('', url)
    url = _INTERPOLATION.sub(TEMPLATE_PLACEHOLDER, url)
    if '${' in url:
        return None

    url = _ANGLE_PARAM.sub(lambda m: ':' + m.group('name'), url)
    url = _BRACE_PARAM.sub(lambda m: ':' + m.group('name'), url)
    url = _BRACE_EXPR.sub(TEMPLATE_PLACEHOLDER, url)
    if '{' in url or '}' in url or not url:
        return None

    return url


def is_fstring(m: Match) -> bool:
    prefix = m.groupdict().get('prefix') or ''
    return 'f' in prefix.lower()


class RuleMatch(NamedTuple):
    """One raw hit of a rule inside a file."""

    offset: int
    method: str
    url: str
    raw: str


class FileContext(NamedTuple):
    """Per-file facts collected before invocation rules run."""

    dialect: str
    aliases: FrozenSet[str]


MethodDetector = Callable[[Match, str], List[str]]


def verb_method(m: Match, text: str) -> List[str]:
    return [m.group('verb').upper()]


def fixed_method(method: str) -> MethodDetector:
    def detect(m: Match, text: str) -> List[str]:
        return [method]
    return detect


_FETCH_METHOD = re.compile(r'method\s*:\s*[\'"`](?P<verb>[A-Za-z]{3,7})[\'"`]')
_NEXT_FETCH = re.compile(r'(?<![\w$])fetch\s*\(')


def fetch_method(m: Match, text: str) -> List[str]:
    """Read the method from a fetch() options object, defaulting to GET."""
    end = min(len(text), m.end() + FETCH_OPTIONS_WINDOW)
    next_call = _NEXT_FETCH.search(text, m.end(), end)
    if next_call:
        end = next_call.start()
    found = _FETCH_METHOD.search(text, m.end(), end)
    return [found.group('verb').upper()] if found else ['GET']


_FLASK_METHODS = re.compile(r'[\'"](?P<verb>GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)[\'"]', re.IGNORECASE)


def flask_methods(m: Match, text: str) -> List[str]:
    """Methods listed in a Flask route's methods=[...] argument, defaulting to GET."""
    args = m.group('args') or ''
    if 'methods' not in args:
        return ['GET']
    methods = []
    for found in _FLASK_METHODS.finditer(args):
        verb = found.group('verb').upper()
        if verb not in methods:
            methods.append(verb)
    return methods or ['GET']


@dataclass
class PatternRule:
    """
    A (method detector, URL detector, anchor pattern) triple.

    The anchor pattern locates a candidate, its "url" group is the URL
    detector, and method_of turns the match into one or more methods.
    """

    name: str
    family: str
    dialects: FrozenSet[str]
    pattern: Pattern
    method_of: MethodDetector = verb_method

    def applies_to(self, dialect: str) -> bool:
        return dialect in self.dialects

    def accept(self, m: Match, context: FileContext) -> bool:
        return True

    def iter_matches(self, text: str, context: FileContext) -> Iterator[RuleMatch]:
        """Yield hits in position order; each call builds a fresh iterator."""
        yield from self._matches_in(text, context, 0, len(text))

    def _matches_in(self, text: str, context: FileContext, pos: int, endpos: int) -> Iterator[RuleMatch]:
        for m in self.pattern.finditer(text, pos, endpos):
            if not self.accept(m, context):
                continue
            url = normalize_url(m.group('url'), fstring=is_fstring(m))
            if url is None:
                continue
            for method in self.method_of(m, text):
                yield RuleMatch(m.start(), method, url, m.group(0))


@dataclass
class ObjectCallRule(PatternRule):
    """
    Call-through on a named object, e.g. api.get('/users').

    Accepts only objects whose name passes the rule's predicate, which
    keeps the alias, wrapper and default-export rules apart.
    """

    accepts_object: Callable[[str, FileContext], bool] = field(default=lambda obj, ctx: True)

    def accept(self, m: Match, context: FileContext) -> bool:
        return self.accepts_object(m.group('obj'), context)


@dataclass
class ContextWindowRule(PatternRule):
    """
    Calls recognized only inside a bounded window after an anchor keyword.

    The anchor pattern finds the data-fetching wrapper (useQuery, useSWR,
    createAsyncThunk, ...). A URL-shaped literal first argument of the
    wrapper is an endpoint on its own; otherwise calls matching
    inner_pattern with a URL-shaped literal within CONTEXT_WINDOW
    characters after the anchor are. Hooks in unkeyed_hooks take a name,
    not a URL, as first argument and always use the window.
    """

    inner_pattern: Optional[Pattern] = None
    key_pattern: Optional[Pattern] = None
    window: int = CONTEXT_WINDOW
    accepts_object: Callable[[str, FileContext], bool] = field(default=lambda obj, ctx: True)
    unkeyed_hooks: FrozenSet[str] = frozenset()

    def iter_matches(self, text: str, context: FileContext) -> Iterator[RuleMatch]:
        for anchor in self.pattern.finditer(text):
            hook = anchor.group('hook')
            key = None
            if self.key_pattern and hook not in self.unkeyed_hooks:
                key = self.key_pattern.match(text, anchor.end())
            if key and looks_like_url(key.group('url')):
                url = normalize_url(key.group('url'))
                if url is not None:
                    method = 'POST' if 'Mutation' in hook else 'GET'
                    yield RuleMatch(key.start(), method, url, anchor.group(0) + key.group(0))
                continue

            endpos = min(len(text), anchor.end() + self.window)
            for m in self.inner_pattern.finditer(text, anchor.end(), endpos):
                if not self.accepts_object(m.group('obj'), context):
                    continue
                if not looks_like_url(m.group('url')):
                    continue
                url = normalize_url(m.group('url'))
                if url is None:
                    continue
                yield RuleMatch(m.start(), m.group('verb').upper(), url, m.group(0))


# ---------------------------------------------------------------------------
# Alias pre-pass
# ---------------------------------------------------------------------------

ALIAS_PATTERNS = {
    JAVASCRIPT: [
        # const api = axios.create({...})
        re.compile(rf'(?:const|let|var)\s+(?P<name>{IDENT})\s*(?::\s*[\w$.<>]{{1,64}}\s*)?=\s*axios\.create\s*\('),
        # import http from 'axios'
        re.compile(rf'import\s+(?P<name>{IDENT})\s*(?:,\s*\{{[^{{}}]{{0,512}}\}}\s*)?from\s*[\'"]axios[\'"]'),
        # import * as http from 'axios'
        re.compile(rf'import\s+\*\s+as\s+(?P<name>{IDENT})\s+from\s*[\'"]axios[\'"]'),
        # const http = require('axios')
        re.compile(rf'(?:const|let|var)\s+(?P<name>{IDENT})\s*=\s*require\s*\(\s*[\'"]axios[\'"]\s*\)'),
    ],
    PYTHON: [
        # session = requests.Session() / client = httpx.Client(...)
        re.compile(rf'(?P<name>{PY_IDENT})\s*=\s*(?:requests\.Session|httpx\.(?:Async)?Client)\s*\('),
        # with httpx.Client() as client:
        re.compile(rf'(?:requests\.Session|httpx\.(?:Async)?Client)\s*\([^()\n]{{0,256}}\)\s+as\s+(?P<name>{PY_IDENT})'),
        # import requests as rq
        re.compile(rf'import\s+(?:requests|httpx)\s+as\s+(?P<name>{PY_IDENT})'),
    ],
}

DEFAULT_EXPORTS = {
    JAVASCRIPT: frozenset({'axios'}),
    PYTHON: frozenset({'requests', 'httpx'}),
}


def collect_aliases(text: str, dialect: str) -> FrozenSet[str]:
    """
    Collect local names bound to an HTTP client in one file.

    Args:
        text: File contents
        dialect: Dialect of the file

    Returns:
        Alias names; never shared across files
    """
    names: Set[str] = set()
    for pattern in ALIAS_PATTERNS.get(dialect, []):
        for m in pattern.finditer(text):
            names.add(m.group('name'))
    return frozenset(names - DEFAULT_EXPORTS.get(dialect, frozenset()))


# ---------------------------------------------------------------------------
# Object name predicates
# ---------------------------------------------------------------------------

_API_CLIENT_NAME = re.compile(r'^\$?(?:[A-Za-z_$][\w$]{0,63}?)?(?:api|Api|API|client|Client|http|Http|HTTP)$')
_SERVER_OBJECTS = frozenset({'app', 'router', 'server', 'fastify', 'routes'})


def _strip_this(obj: str) -> str:
    return obj[5:] if obj.startswith('this.') else obj


def is_alias(obj: str, context: FileContext) -> bool:
    return obj in context.aliases


def is_api_client_name(obj: str, context: FileContext) -> bool:
    name = _strip_this(obj)
    return (
        bool(_API_CLIENT_NAME.match(name))
        and name not in context.aliases
        and name not in DEFAULT_EXPORTS.get(context.dialect, frozenset())
    )


def is_wrapped_call_target(obj: str, context: FileContext) -> bool:
    """Objects not already claimed by the default-export, alias or API-client rules."""
    name = _strip_this(obj)
    return (
        name not in DEFAULT_EXPORTS.get(context.dialect, frozenset())
        and name not in context.aliases
        and not _API_CLIENT_NAME.match(name)
        and name not in _SERVER_OBJECTS
    )


# ---------------------------------------------------------------------------
# Rule table
# ---------------------------------------------------------------------------

_JS = frozenset({JAVASCRIPT})
_PY = frozenset({PYTHON})

_JS_CALL = re.compile(
    rf'(?<![\w$])(?P<obj>(?:this\.)?{IDENT})\.{VERB_GROUP}\s*\(\s*{JS_LITERAL}'
)
_PY_CALL = re.compile(
    rf'(?<![\w.])(?P<obj>{PY_IDENT})\.{VERB_GROUP}\s*\(\s*{PY_LITERAL}'
)

CLIENT_RULES: List[PatternRule] = [
    PatternRule(
        name='fetch',
        family='client',
        dialects=_JS,
        pattern=re.compile(rf'(?<![\w$])fetch\s*\(\s*{JS_LITERAL}'),
        method_of=fetch_method,
    ),
    PatternRule(
        name='axios-default',
        family='client',
        dialects=_JS,
        pattern=re.compile(rf'(?<![\w$.])axios\.{VERB_GROUP}\s*\(\s*{JS_LITERAL}'),
    ),
    PatternRule(
        name='python-client-default',
        family='client',
        dialects=_PY,
        pattern=re.compile(rf'(?<![\w.])(?:requests|httpx)\.{VERB_GROUP}\s*\(\s*{PY_LITERAL}'),
    ),
    ObjectCallRule(
        name='client-alias',
        family='client',
        dialects=_JS,
        pattern=_JS_CALL,
        accepts_object=is_alias,
    ),
    ObjectCallRule(
        name='python-client-alias',
        family='client',
        dialects=_PY,
        pattern=_PY_CALL,
        accepts_object=is_alias,
    ),
    ContextWindowRule(
        name='data-fetching-hook',
        family='client',
        dialects=_JS,
        pattern=re.compile(
            r'(?<![\w$])(?P<hook>useQuery|useSuspenseQuery|useInfiniteQuery|useMutation|'
            r'useSWR|useSWRMutation|useSWRInfinite|useFetch|useLazyFetch|createAsyncThunk)\s*'
            r'(?:<[^<>()\n]{0,256}>\s*)?\('
        ),
        key_pattern=re.compile(rf'\s*{JS_LITERAL}\s*[,)]'),
        inner_pattern=_JS_CALL,
        accepts_object=is_wrapped_call_target,
        unkeyed_hooks=frozenset({'createAsyncThunk'}),
    ),
    ObjectCallRule(
        name='api-client-wrapper',
        family='client',
        dialects=_JS,
        pattern=_JS_CALL,
        accepts_object=is_api_client_name,
    ),
]

SERVER_RULES: List[PatternRule] = [
    ObjectCallRule(
        name='express-route',
        family='server',
        dialects=_JS,
        pattern=re.compile(
            rf'(?<![\w$.@])(?P<obj>app|router|server|fastify|routes)\.{VERB_GROUP}\s*\(\s*{JS_LITERAL}'
        ),
    ),
    PatternRule(
        name='nest-decorator',
        family='server',
        dialects=_JS,
        pattern=re.compile(rf'@(?P<verb>Get|Post|Put|Delete|Patch|Head|Options)\s*\(\s*{JS_LITERAL}'),
    ),
    PatternRule(
        name='python-route-decorator',
        family='server',
        dialects=_PY,
        pattern=re.compile(rf'@(?P<obj>{PY_IDENT})\.{VERB_GROUP}\s*\(\s*{PY_LITERAL}'),
    ),
    PatternRule(
        name='flask-route',
        family='server',
        dialects=_PY,
        pattern=re.compile(rf'@(?P<obj>{PY_IDENT})\.route\s*\(\s*{PY_LITERAL}(?P<args>[^)\n]{{0,256}})'),
        method_of=flask_methods,
    ),
    PatternRule(
        name='spring-mapping',
        family='server',
        dialects=frozenset({JAVA}),
        pattern=re.compile(
            rf'@(?P<verb>Get|Post|Put|Delete|Patch)Mapping\s*\(\s*(?:(?:value|path)\s*=\s*)?\{{?\s*{DQ_LITERAL}'
        ),
    ),
    PatternRule(
        name='actix-resource',
        family='server',
        dialects=frozenset({RUST}),
        pattern=re.compile(rf'web::resource\s*\(\s*{DQ_LITERAL}\s*\)'),
        method_of=fixed_method('GET'),
    ),
    PatternRule(
        name='actix-route',
        family='server',
        dialects=frozenset({RUST}),
        pattern=re.compile(rf'\.route\s*\(\s*{DQ_LITERAL}\s*,\s*web::{VERB_GROUP}\s*\('),
    ),
    PatternRule(
        name='rocket-attribute',
        family='server',
        dialects=frozenset({RUST}),
        pattern=re.compile(rf'#\[{VERB_GROUP}\s*\(\s*{DQ_LITERAL}'),
    ),
    PatternRule(
        name='axum-route',
        family='server',
        dialects=frozenset({RUST}),
        pattern=re.compile(rf'\broute\s*\(\s*{DQ_LITERAL}\s*,\s*{VERB_GROUP}\s*\('),
    ),
    PatternRule(
        name='go-handle-func',
        family='server',
        dialects=frozenset({GO}),
        pattern=re.compile(rf'\b(?:http|mux)\.HandleFunc\s*\(\s*{GO_LITERAL}'),
        method_of=fixed_method('GET'),
    ),
    PatternRule(
        name='go-router-verb',
        family='server',
        dialects=frozenset({GO}),
        pattern=re.compile(rf'\b(?P<obj>[A-Za-z_]\w{{0,63}})\.(?P<verb>GET|POST|PUT|DELETE|PATCH)\s*\(\s*{GO_LITERAL}'),
    ),
]

DEFAULT_RULES: Tuple[PatternRule, ...] = tuple(CLIENT_RULES + SERVER_RULES)
