"""Hugo front matter: YAML (``---``), TOML (``+++``) or JSON (``{``)."""

from __future__ import annotations

import json
import tomllib
from typing import Any

import yaml

YAML_FENCE = "---"
TOML_FENCE = "+++"


class FrontMatterError(ValueError):
    """The front matter block could not be parsed."""


def _split_fenced(text: str, fence: str) -> tuple[str, str] | None:
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].strip() != fence:
        return None
    for i in range(1, len(lines)):
        if lines[i].strip() == fence:
            return "".join(lines[1:i]), "".join(lines[i + 1:])
    raise FrontMatterError(f"unterminated front matter (missing closing {fence})")


def _split_json(text: str) -> tuple[str, str]:
    decoder = json.JSONDecoder()
    try:
        _, end = decoder.raw_decode(text)
    except json.JSONDecodeError as e:
        raise FrontMatterError(f"invalid JSON front matter: {e}") from e
    return text[:end], text[end:].lstrip("\r\n")


def parse(text: str) -> tuple[dict[str, Any], str]:
    """Split *text* into ``(metadata, body)``.

    Content without front matter yields an empty dict and the whole text.
    """
    stripped = text.lstrip("\ufeff")

    try:
        split = _split_fenced(stripped, YAML_FENCE)
        if split is not None:
            meta = yaml.safe_load(split[0]) or {}
            body = split[1]
        else:
            split = _split_fenced(stripped, TOML_FENCE)
            if split is not None:
                meta = tomllib.loads(split[0])
                body = split[1]
            elif stripped.lstrip().startswith("{"):
                raw, body = _split_json(stripped.lstrip())
                meta = json.loads(raw)
            else:
                return {}, text
    except (yaml.YAMLError, ValueError) as e:
        # Also covers dates PyYAML cannot build, such as 2023-02-30
        raise FrontMatterError(str(e)) from e

    if not isinstance(meta, dict):
        raise FrontMatterError("front matter is not a mapping")
    return meta, body


def dump(meta: dict[str, Any], body: str = "") -> str:
    """Render YAML front matter followed by *body*."""
    block = yaml.safe_dump(meta, sort_keys=False, allow_unicode=True)
    return f"{YAML_FENCE}\n{block}{YAML_FENCE}\n{body}"
