"""JSON serialization and deserialization for assembly configurations.

This module converts ``.docassembler.json`` files to and from
:class:`AssembleConfiguration`.

Key features:
- camelCase property names, ``null`` values omitted when writing
- ``//`` and ``/* */`` comments tolerated when reading
- Deterministic, indented output
- Atomic file writing to prevent corruption
"""

from __future__ import annotations

import json
import os
import re
from pathlib import Path
from tempfile import NamedTemporaryFile

from docassembler.model.config import AssembleConfiguration, ConfigurationError

# Strings are matched first so comment markers inside them survive.
_JSON_COMMENT_RE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.DOTALL)


def strip_json_comments(text: str) -> str:
    """Remove line and block comments outside of JSON strings."""
    return _JSON_COMMENT_RE.sub(lambda m: m.group(1) or "", text)


def config_from_json(text: str) -> AssembleConfiguration:
    """Deserialize a configuration from JSON text.

    Raises:
        ConfigurationError: If the text is not valid JSON or misses required fields
    """
    try:
        data = json.loads(strip_json_comments(text))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid configuration JSON: {exc}") from exc
    return AssembleConfiguration.from_dict(data)


def config_to_json(config: AssembleConfiguration, *, pretty: bool = True) -> str:
    """Serialize a configuration to JSON text."""
    return json.dumps(config.to_dict(), ensure_ascii=False, indent=2 if pretty else None)


def load_configuration(path: Path) -> AssembleConfiguration:
    """Read a configuration file.

    Raises:
        ConfigurationError: If the file doesn't exist or can't be parsed
    """
    if not path.is_file():
        raise ConfigurationError(f"Configuration file '{path}' doesn't exist.")
    return config_from_json(path.read_text(encoding="utf-8"))


def save_configuration(path: Path, config: AssembleConfiguration) -> None:
    atomic_write_text(path, config_to_json(config) + "\n")


def atomic_write_text(path: Path, data: str, *, encoding: str = "utf-8") -> None:
    """Atomically write text to a file by writing to a temp file then replacing.

    Ensures parent directories exist and minimizes risk of partial writes.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with NamedTemporaryFile("w", encoding=encoding, dir=str(path.parent), delete=False) as tmp:
        tmp.write(data)
        tmp.flush()
        os.fsync(tmp.fileno())
        tmp_path = Path(tmp.name)
    os.replace(tmp_path, path)


__all__ = [
    "atomic_write_text",
    "config_from_json",
    "config_to_json",
    "load_configuration",
    "save_configuration",
    "strip_json_comments",
]
