"""Configuration for pneuma. Read from ~/.config/pneuma.json.

Example::

    {
      "extension": ".md",
      "editor": "vim",
      "sites": [{"name": "blog", "path": "~/sites/blog"}]
    }
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".md"
DEFAULT_EDITOR = "vi"


class ConfigError(Exception):
    """The configuration file is missing or malformed."""


@dataclass
class SiteConfig:
    name: str
    path: Path


@dataclass
class PneumaConfig:
    extension: str = DEFAULT_EXTENSION
    editor: str = DEFAULT_EDITOR
    sites: list[SiteConfig] = field(default_factory=list)

    def find_site(self, name: str) -> SiteConfig | None:
        for site in self.sites:
            if site.name == name:
                return site
        return None


def default_config_path() -> Path:
    env_path = os.environ.get("PNEUMA_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".config" / "pneuma.json"


def _default_editor() -> str:
    return os.environ.get("VISUAL") or os.environ.get("EDITOR") or DEFAULT_EDITOR


def site_from_dict(data: object, position: int) -> SiteConfig:
    """Deserialize one entry of the ``sites`` list."""
    if not isinstance(data, dict):
        raise ConfigError(f"site #{position} must be an object")
    path = data.get("path")
    if not isinstance(path, str) or not path.strip():
        raise ConfigError(f"site #{position} has no path")
    resolved = Path(path).expanduser()
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        name = resolved.name
    return SiteConfig(name=name, path=resolved)


def config_from_dict(data: object) -> PneumaConfig:
    """Deserialize a PneumaConfig from a JSON-compatible dict."""
    if not isinstance(data, dict):
        raise ConfigError("configuration must be a JSON object")

    extension = data.get("extension") or DEFAULT_EXTENSION
    if not isinstance(extension, str):
        raise ConfigError("extension must be a string")
    if not extension.startswith("."):
        extension = "." + extension

    editor = data.get("editor") or _default_editor()
    if not isinstance(editor, str):
        raise ConfigError("editor must be a string")

    raw_sites = data.get("sites") or []
    if not isinstance(raw_sites, list):
        raise ConfigError("sites must be a list")
    sites = [site_from_dict(s, i + 1) for i, s in enumerate(raw_sites)]
    if not sites:
        raise ConfigError("no sites configured")

    return PneumaConfig(extension=extension, editor=editor, sites=sites)


def load_config(path: Path | None = None) -> PneumaConfig:
    """Read and validate the configuration file."""
    config_path = path or default_config_path()
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigError(f"config file not found: {config_path}") from e
    except OSError as e:
        raise ConfigError(f"cannot read {config_path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON in {config_path}: {e}") from e

    config = config_from_dict(data)
    logger.info("Loaded %d site(s) from %s", len(config.sites), config_path)
    return config
