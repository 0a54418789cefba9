"""
MockGen Common Utilities

Shared JSON helpers for reading and writing the artifacts kept under
the project's .mockgen directory.
"""

import json
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, Union

from .errors import BundleParseError


def safe_json_parse(json_string: Union[str, bytes, None], default: Any = None) -> Any:
    """
    Safely parse JSON string with error handling.

    Args:
        json_string: JSON text (str or UTF-8 bytes) to parse
        default: Default value to return if parsing fails

    Returns:
        Parsed JSON object, or default if parsing fails

    Example:
        body = safe_json_parse(await request.body(), default={})
    """
    if not json_string:
        return default

    try:
        return json.loads(json_string)
    except (json.JSONDecodeError, TypeError, ValueError):
        return default


def write_json(path: Union[str, Path], data: Any) -> Path:
    """
    Write data as pretty-printed UTF-8 JSON, creating parent directories.

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=2, ensure_ascii=False)
        f.write('\n')
    return path


class BundleLoader:
    """
    Loader for mock bundle files (mock.json).

    A bundle is a JSON object mapping route pattern to response definition.
    Key order is preserved since it decides match priority.

    Example:
        loader = BundleLoader(".mockgen/mock.json")
        bundle = loader.load()

        for pattern, definition in bundle.items():
            print(pattern, definition['method'])
    """

    def __init__(self, file_path: Union[str, Path]):
        """
        Initialize bundle loader.

        Args:
            file_path: Path to mock bundle JSON file
        """
        self.file_path = Path(file_path)

    def exists(self) -> bool:
        return self.file_path.is_file()

    def load(self) -> Dict[str, Any]:
        """
        Load the bundle.

        Returns:
            Ordered mapping of route pattern to definition; empty if the
            file does not exist

        Raises:
            BundleParseError: If the file is unreadable, not JSON, or not an object
        """
        if not self.exists():
            return OrderedDict()

        try:
            with open(self.file_path, 'r', encoding='utf-8') as f:
                data = json.load(f, object_pairs_hook=OrderedDict)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise BundleParseError(f"Cannot read mock bundle {self.file_path}: {e}") from e

        if not isinstance(data, dict):
            raise BundleParseError(
                f"Unexpected JSON format in {self.file_path}. "
                f"Expected an object of route -> definition, got {type(data).__name__}"
            )
        return data
