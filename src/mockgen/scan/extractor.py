"""
MockGen Endpoint Extractor

Best-effort scanner that discovers HTTP endpoints in a source tree
without parsing it.

Features:
- Client call sites and server route declarations across dialects
  (JavaScript/TypeScript, Python, Rust, Java/Kotlin, Go)
- Per-file alias tracking for HTTP-client instances
- First-wins deduplication on (file, url, method)
- Optional thread-pool fan-out with deterministic, order-preserving merge
"""

import logging
import os
import re
from bisect import bisect_left
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple, Union

from ..common import ScanError
from .rules import DEFAULT_RULES, DIALECT_EXTENSIONS, FileContext, PatternRule, collect_aliases

logger = logging.getLogger("mockgen.scan")

EXCLUDED_DIRS = frozenset({
    'node_modules', '.git', 'dist', 'out', 'build', '.mockgen',
    '__pycache__', '.venv', 'venv', 'target',
})

# Larger files are generated bundles, not hand-written API code.
MAX_FILE_BYTES = 2 * 1024 * 1024

_LINE_BREAK = re.compile(r'\r\n|\r|\n')


@dataclass(frozen=True)
class Endpoint:
    """One HTTP call or route declaration found in a file."""

    file: str
    line: int
    url: str
    method: str
    raw: str

    @property
    def key(self) -> Tuple[str, str, str]:
        """Deduplication key."""
        return (self.file, self.url, self.method)

    def to_dict(self, root: Optional[Union[str, Path]] = None) -> Dict[str, Any]:
        """
        Convert to the endpoints bundle entry format.

        Args:
            root: Workspace root; when given, file is made relative to it

        Returns:
            Dict with file, line, url, method, location, raw
        """
        file = self.file
        if root is not None:
            try:
                file = Path(self.file).relative_to(Path(root)).as_posix()
            except ValueError:
                pass
        return {
            'file': file,
            'line': self.line,
            'url': self.url,
            'method': self.method,
            'location': f"{file}:{self.line}",
            'raw': self.raw
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Endpoint':
        return cls(
            file=data.get('file', ''),
            line=int(data.get('line', 1)),
            url=data['url'],
            method=data.get('method', 'GET').upper(),
            raw=data.get('raw', '')
        )


class SourceFile(NamedTuple):
    """A file handed to the extractor: path, text and optional dialect hint."""

    path: str
    text: str
    dialect: Optional[str] = None


def dialect_for(path: Union[str, Path]) -> Optional[str]:
    """Dialect implied by a file extension, or None if the file is not scanned."""
    return DIALECT_EXTENSIONS.get(Path(path).suffix.lower())


class LineIndex:
    """Line-break positions of one file's text, for offset to line lookups."""

    def __init__(self, text: str):
        self._breaks = [m.start() for m in _LINE_BREAK.finditer(text)]

    def line_of(self, offset: int) -> int:
        """1-based line of a character offset: breaks before it, plus one."""
        return bisect_left(self._breaks, offset) + 1


def line_number(text: str, offset: int) -> int:
    """1-based line of a character offset, counting \\r\\n, \\r and \\n breaks."""
    return LineIndex(text[:offset]).line_of(offset)


def read_source(path: Union[str, Path], max_bytes: int = MAX_FILE_BYTES) -> str:
    """
    Read a source file as UTF-8 text.

    Raises:
        ScanError: If the file is unreadable, too large, or binary
    """
    try:
        size = os.path.getsize(path)
        if size > max_bytes:
            raise ScanError(str(path), f"file too large ({size} bytes)")
        with open(path, 'rb') as f:
            data = f.read()
    except OSError as e:
        raise ScanError(str(path), str(e)) from e

    if b'\x00' in data[:8192]:
        raise ScanError(str(path), "binary file")

    try:
        return data.decode('utf-8-sig')
    except UnicodeDecodeError as e:
        raise ScanError(str(path), f"not UTF-8 text: {e}") from e


def discover_files(root: Union[str, Path]) -> List[Path]:
    """
    List scannable files under a workspace root in sorted order.

    Excluded directories are pruned; the walk order is sorted so that
    repeated scans enumerate files identically.
    """
    root = Path(root)
    found: List[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        for name in sorted(filenames):
            if dialect_for(name):
                found.append(Path(dirpath) / name)
    return found


def deduplicate(endpoints: Iterable[Endpoint]) -> List[Endpoint]:
    """Keep the first endpoint for every (file, url, method) key, preserving order."""
    seen = set()
    unique: List[Endpoint] = []
    for endpoint in endpoints:
        if endpoint.key in seen:
            continue
        seen.add(endpoint.key)
        unique.append(endpoint)
    return unique


def format_endpoints(endpoints: Iterable[Endpoint], root: Optional[Union[str, Path]] = None) -> List[Dict[str, Any]]:
    """
    Build the persisted endpoints bundle.

    Returns:
        Entries sorted by (file, line, method, url)
    """
    entries = [e.to_dict(root) for e in endpoints]
    entries.sort(key=lambda e: (e['file'], e['line'], e['method'], e['url']))
    return entries


class EndpointExtractor:
    """
    Pattern-based endpoint extractor.

    Each file is scanned on its own: an alias pre-pass collects local
    HTTP-client names, then every rule applicable to the file's dialect
    runs in table order. Results are merged in input order and
    deduplicated first-wins.

    Example:
        extractor = EndpointExtractor(workers=4)
        endpoints = extractor.scan_workspace("/path/to/project")
        for e in endpoints:
            print(f"{e.method} {e.url}  ({e.file}:{e.line})")
    """

    def __init__(
        self,
        rules: Optional[Sequence[PatternRule]] = None,
        workers: int = 1,
        max_file_bytes: int = MAX_FILE_BYTES
    ):
        """
        Initialize extractor.

        Args:
            rules: Ordered rule table (defaults to DEFAULT_RULES)
            workers: Number of threads used to scan files
            max_file_bytes: Files larger than this are skipped
        """
        self.rules = tuple(rules) if rules is not None else DEFAULT_RULES
        self.workers = max(1, workers)
        self.max_file_bytes = max_file_bytes

    def scan_text(self, path: str, text: str, dialect: Optional[str] = None) -> List[Endpoint]:
        """
        Scan one file's text.

        Args:
            path: File path recorded on each endpoint
            text: File contents
            dialect: Dialect hint; inferred from the extension when None

        Returns:
            Endpoints in rule order, then match position (not deduplicated)
        """
        dialect = dialect or dialect_for(path)
        if not dialect:
            return []

        context = FileContext(dialect=dialect, aliases=collect_aliases(text, dialect))
        lines = LineIndex(text)
        found: List[Endpoint] = []

        for rule in self.rules:
            if not rule.applies_to(dialect):
                continue
            for hit in rule.iter_matches(text, context):
                found.append(Endpoint(
                    file=path,
                    line=lines.line_of(hit.offset),
                    url=hit.url,
                    method=hit.method,
                    raw=hit.raw
                ))
        return found

    def extract(self, sources: Iterable[SourceFile]) -> List[Endpoint]:
        """
        Scan a batch of in-memory files.

        Args:
            sources: (path, text, dialect hint) triples

        Returns:
            Deduplicated endpoints in input order
        """
        return self._merge(self._map(lambda s: self.scan_text(*s), list(sources)))

    def scan_paths(self, paths: Iterable[Union[str, Path]]) -> List[Endpoint]:
        """
        Read and scan files from disk; unreadable or binary files are skipped.

        Returns:
            Deduplicated endpoints in input order
        """
        return self._merge(self._map(self._scan_path, [str(p) for p in paths]))

    def scan_workspace(self, root: Union[str, Path]) -> List[Endpoint]:
        """Scan every supported file under a workspace root."""
        files = discover_files(root)
        logger.info(f"Scanning {len(files)} files under {root}")
        endpoints = self.scan_paths(files)
        logger.info(f"Found {len(endpoints)} endpoints")
        return endpoints

    def _scan_path(self, path: str) -> List[Endpoint]:
        try:
            text = read_source(path, self.max_file_bytes)
        except ScanError as e:
            logger.debug(f"Skipping {e.path}: {e.reason}")
            return []
        return self.scan_text(path, text)

    def _map(self, fn, items: list) -> List[List[Endpoint]]:
        # executor.map yields results in submission order
        if self.workers == 1 or len(items) < 2:
            return [fn(item) for item in items]
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(fn, items))

    @staticmethod
    def _merge(per_file: List[List[Endpoint]]) -> List[Endpoint]:
        return deduplicate(e for endpoints in per_file for e in endpoints)
