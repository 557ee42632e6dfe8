"""Format codecs for config files.

Each codec turns file bytes into a top-level mapping and a mapping back into
human-readable text. Codecs raise `ValueError` or `TypeError` on failure; the
loader wraps those with the offending path.
"""

from __future__ import annotations

import json
import tomllib
from typing import Any, Dict, Mapping, Protocol

from layered_config.models import FileFormat


class Codec(Protocol):
    def decode(self, data: bytes) -> dict[str, Any]:
        """Parse file contents into a top-level mapping."""

    def encode_pretty(self, document: Mapping[str, Any]) -> str:
        """Serialise a mapping into indented, human-editable text."""


def _require_mapping(data: Any, *, format_name: str) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level {format_name} must be a mapping, got: {type(data).__name__}")
    return data


class JsonCodec:
    def decode(self, data: bytes) -> dict[str, Any]:
        return _require_mapping(json.loads(data), format_name="JSON")

    def encode_pretty(self, document: Mapping[str, Any]) -> str:
        return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


class TomlCodec:
    def decode(self, data: bytes) -> dict[str, Any]:
        return tomllib.loads(data.decode("utf-8"))

    def encode_pretty(self, document: Mapping[str, Any]) -> str:
        try:
            import tomli_w  # type: ignore[import-not-found]
        except ModuleNotFoundError as e:  # pragma: no cover
            raise ModuleNotFoundError(
                "Missing dependency: tomli-w is required to write TOML config files. Install 'tomli-w'."
            ) from e

        return tomli_w.dumps(document)


class YamlCodec:
    def decode(self, data: bytes) -> dict[str, Any]:
        yaml = _import_yaml()
        try:
            loaded = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise ValueError(str(e)) from e
        return _require_mapping(loaded, format_name="YAML")

    def encode_pretty(self, document: Mapping[str, Any]) -> str:
        yaml = _import_yaml()
        try:
            return yaml.safe_dump(dict(document), sort_keys=False, allow_unicode=True, default_flow_style=False)
        except yaml.YAMLError as e:
            raise TypeError(str(e)) from e


def _import_yaml():
    try:
        import yaml  # type: ignore[import-not-found]
    except ModuleNotFoundError as e:  # pragma: no cover
        raise ModuleNotFoundError(
            "Missing dependency: PyYAML is required to load YAML config files. Install 'PyYAML'."
        ) from e
    return yaml


_CODECS: Dict[str, Codec] = {
    "json": JsonCodec(),
    "toml": TomlCodec(),
    "yaml": YamlCodec(),
}


def register_codec(format: str, codec: Codec) -> None:
    """Install or replace the codec used for `format`."""
    _CODECS[format] = codec


def get_codec(format: FileFormat | str) -> Codec:
    try:
        return _CODECS[format]
    except KeyError:
        raise KeyError(f"No codec registered for format: {format}") from None
