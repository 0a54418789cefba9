"""
MockGen Configuration

Project layout under the .mockgen directory and the user-editable
config document holding the base URL and per-URL response templates.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Union

from .common import ConfigParseError, write_json

logger = logging.getLogger("mockgen.config")

MOCKGEN_DIR = ".mockgen"


@dataclass
class ProjectPaths:
    """Conventional artifact locations for one workspace root."""

    root: Path

    def __post_init__(self):
        self.root = Path(self.root)

    @property
    def mockgen_dir(self) -> Path:
        return self.root / MOCKGEN_DIR

    @property
    def endpoints_file(self) -> Path:
        return self.mockgen_dir / "endpoints.json"

    @property
    def mock_bundle_file(self) -> Path:
        return self.mockgen_dir / "mock.json"

    @property
    def config_file(self) -> Path:
        return self.mockgen_dir / "config.json"

    @property
    def mocks_dir(self) -> Path:
        return self.mockgen_dir / "mocks"

    def openapi_file(self, fmt: str = "json") -> Path:
        return self.mockgen_dir / f"swagger.{fmt}"


@dataclass
class MockgenConfig:
    """User overrides for mock generation."""

    base_url: str = ""
    response_templates: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MockgenConfig':
        """
        Create config from the on-disk document.

        Raises:
            ConfigParseError: If a field has the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigParseError(f"Config must be a JSON object, got {type(data).__name__}")

        base_url = data.get('baseURL') or ""
        templates = data.get('responseTemplates') or {}

        if not isinstance(base_url, str):
            raise ConfigParseError("baseURL must be a string")
        if not isinstance(templates, dict):
            raise ConfigParseError("responseTemplates must be an object")

        return cls(base_url=base_url, response_templates=templates)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'baseURL': self.base_url,
            'responseTemplates': self.response_templates
        }

    def template_for(self, url: str) -> Any:
        """Return the response template registered for a URL, or None."""
        return self.response_templates.get(url)


def read_config(path: Union[str, Path]) -> MockgenConfig:
    """
    Read a config document strictly.

    Raises:
        ConfigParseError: If the file cannot be read or is malformed
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigParseError(f"Cannot read config {path}: {e}") from e
    return MockgenConfig.from_dict(data)


def load_config(root: Union[str, Path]) -> MockgenConfig:
    """
    Load the project config, creating it with defaults if absent.

    A malformed config is reported as a warning and defaults are used;
    the file on disk is left as is so the user can fix it.

    Args:
        root: Workspace root directory

    Returns:
        MockgenConfig instance
    """
    paths = ProjectPaths(root)
    config_file = paths.config_file

    if not config_file.exists():
        config = MockgenConfig()
        try:
            write_json(config_file, config.to_dict())
            logger.info(f"Created default config at {config_file}")
        except OSError as e:
            logger.warning(f"Could not create default config at {config_file}: {e}")
        return config

    try:
        return read_config(config_file)
    except ConfigParseError as e:
        logger.warning(f"{e}; using default config")
        return MockgenConfig()
