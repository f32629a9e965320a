"""Text codecs: turn document bytes into a generic tree and back."""

from __future__ import annotations

import configparser
import io
import json
from datetime import date
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import yaml
from pydantic import BaseModel, ConfigDict, Field

from configtree.accessors import parse_number
from configtree.errors import CodecError, MalformedPathError
from configtree.path import join_path, split_path

__all__ = [
    "CodecOptions",
    "TextCodec",
    "YamlCodec",
    "JsonCodec",
    "IniCodec",
    "PropertiesCodec",
    "codec_for_path",
]


class CodecOptions(BaseModel):
    """Rendering options shared by the bundled codecs."""

    model_config = ConfigDict(frozen=True)

    indent: int = Field(default=2, ge=1, le=10)
    encoding: str = "utf-8"
    default_flow_style: bool = False


@runtime_checkable
class TextCodec(Protocol):
    """Boundary between the section tree and a concrete text syntax.

    ``parse`` returns a mapping of scalars, lists and mappings; ``render`` is
    its inverse. Both raise :class:`CodecError` on failure.
    """

    name: str
    encoding: str

    def parse(self, data: bytes | str, source: str | None = None) -> dict[str, Any]: ...

    def render(self, tree: dict[str, Any]) -> bytes: ...


def _decode(data: bytes | str, encoding: str, source: str | None) -> str:
    if isinstance(data, str):
        return data
    try:
        return data.decode(encoding)
    except UnicodeDecodeError as e:
        raise CodecError(f"Cannot decode document as {encoding}: {e}", source=source, cause=e) from e


def _check_root(tree: Any, source: str | None) -> dict[str, Any]:
    if tree is None:
        return {}
    if not isinstance(tree, dict):
        raise CodecError(f"Document root must be a mapping, got {type(tree).__name__}", source=source)
    return tree


class YamlCodec:
    """Block-style YAML on PyYAML's safe loader and dumper."""

    name = "yaml"

    def __init__(self, options: CodecOptions | None = None, **kwargs: Any) -> None:
        self.options = options or CodecOptions(**kwargs)

    @property
    def encoding(self) -> str:
        return self.options.encoding

    def parse(self, data: bytes | str, source: str | None = None) -> dict[str, Any]:
        text = _decode(data, self.options.encoding, source)
        try:
            tree = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise CodecError(f"Invalid YAML: {e}", source=source, cause=e) from e
        return _check_root(tree, source)

    def render(self, tree: dict[str, Any]) -> bytes:
        try:
            text = yaml.safe_dump(
                tree,
                default_flow_style=self.options.default_flow_style,
                indent=self.options.indent,
                sort_keys=False,
                allow_unicode=True,
            )
        except yaml.YAMLError as e:
            raise CodecError(f"Cannot render YAML: {e}", cause=e) from e
        return text.encode(self.options.encoding)


class JsonCodec:
    """JSON documents via the standard library."""

    name = "json"

    def __init__(self, options: CodecOptions | None = None, **kwargs: Any) -> None:
        self.options = options or CodecOptions(**kwargs)

    @property
    def encoding(self) -> str:
        return self.options.encoding

    def parse(self, data: bytes | str, source: str | None = None) -> dict[str, Any]:
        text = _decode(data, self.options.encoding, source)
        if not text.strip():
            return {}
        try:
            tree = json.loads(text)
        except json.JSONDecodeError as e:
            raise CodecError(f"Invalid JSON: {e}", source=source, cause=e) from e
        return _check_root(tree, source)

    def render(self, tree: dict[str, Any]) -> bytes:
        try:
            text = json.dumps(tree, indent=self.options.indent, ensure_ascii=False, default=_json_default)
        except (TypeError, ValueError) as e:
            raise CodecError(f"Cannot render JSON: {e}", cause=e) from e
        return (text + "\n").encode(self.options.encoding)


def _json_default(value: Any) -> Any:
    isoformat = getattr(value, "isoformat", None)
    if callable(isoformat):
        return isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# ----- Flat key/value syntaxes -----


def _text_to_scalar(text: str) -> Any:
    """Read one INI/properties value: quoted string, JSON list, bool or number."""
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] == '"':
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text[1:-1]
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return text
        return parsed if isinstance(parsed, list) else text
    lowered = text.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    number = parse_number(text)
    return text if number is None else number


def _scalar_to_text(key: str, value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (str, date)):
        text = value.isoformat() if isinstance(value, date) else value
        return json.dumps(text, ensure_ascii=False)
    if isinstance(value, list):
        try:
            return json.dumps(value, ensure_ascii=False, default=_json_default)
        except (TypeError, ValueError) as e:
            raise CodecError(f"Cannot render value of '{key}': {e}", cause=e) from e
    raise CodecError(f"Cannot render value of '{key}' of type {type(value).__name__}")


def _flatten(tree: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    """Dotted key/value pairs for every non-mapping leaf; ``None`` is skipped."""
    pairs: list[tuple[str, Any]] = []
    for key, value in tree.items():
        dotted = join_path(prefix, str(key))
        if isinstance(value, dict):
            pairs.extend(_flatten(value, dotted))
        elif value is not None:
            pairs.append((dotted, value))
    return pairs


def _nest(pairs: list[tuple[str, Any]], source: str | None) -> dict[str, Any]:
    """Build a nested tree from dotted keys; a later key wins over an earlier scalar."""
    tree: dict[str, Any] = {}
    for key, value in pairs:
        try:
            segments = split_path(key)
        except MalformedPathError as e:
            raise CodecError(f"Invalid key {key!r}: {e.message}", source=source, cause=e) from e
        node = tree
        for segment in segments[:-1]:
            child = node.get(segment)
            if not isinstance(child, dict):
                child = {}
                node[segment] = child
            node = child
        if isinstance(value, dict) and isinstance(node.get(segments[-1]), dict):
            continue
        node[segments[-1]] = value
    return tree


class IniCodec:
    """INI documents on the standard library ``configparser``.

    Every ``[section]`` becomes a child section of the root; dotted section
    names and dotted keys nest further. Values read as quoted strings, JSON
    lists, booleans or numbers, anything else as plain text. Entries of a
    ``[DEFAULT]`` section are inherited by every other section, as
    ``configparser`` does.
    """

    name = "ini"

    def __init__(self, options: CodecOptions | None = None, **kwargs: Any) -> None:
        self.options = options or CodecOptions(**kwargs)

    @property
    def encoding(self) -> str:
        return self.options.encoding

    def _parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        return parser

    def parse(self, data: bytes | str, source: str | None = None) -> dict[str, Any]:
        text = _decode(data, self.options.encoding, source)
        parser = self._parser()
        try:
            parser.read_string(text, source=source or "<string>")
        except configparser.Error as e:
            raise CodecError(f"Invalid INI: {e}", source=source, cause=e) from e
        pairs: list[tuple[str, Any]] = []
        for section in parser.sections():
            pairs.append((section, {}))
            for key, value in parser.items(section, raw=True):
                pairs.append((join_path(section, key), _text_to_scalar(value)))
        return _nest(pairs, source)

    def render(self, tree: dict[str, Any]) -> bytes:
        parser = self._parser()
        for section, values in tree.items():
            if not isinstance(values, dict):
                raise CodecError(f"INI documents hold values only inside sections, found top-level key '{section}'")
            try:
                parser.add_section(str(section))
            except ValueError as e:
                raise CodecError(f"Cannot render INI section '{section}': {e}", cause=e) from e
            for key, value in _flatten(values):
                parser.set(str(section), key, _scalar_to_text(join_path(str(section), key), value))
        buffer = io.StringIO()
        parser.write(buffer)
        return buffer.getvalue().encode(self.options.encoding)


class PropertiesCodec:
    """Java-style ``.properties`` documents: one dotted ``key=value`` per line.

    Dotted keys map onto nested sections. Lines starting with ``#`` or ``!``
    are comments and a trailing backslash continues a value on the next
    line. Values are read like :class:`IniCodec` values.
    """

    name = "properties"

    def __init__(self, options: CodecOptions | None = None, **kwargs: Any) -> None:
        self.options = options or CodecOptions(**kwargs)

    @property
    def encoding(self) -> str:
        return self.options.encoding

    def parse(self, data: bytes | str, source: str | None = None) -> dict[str, Any]:
        text = _decode(data, self.options.encoding, source)
        pairs: list[tuple[str, Any]] = []
        for line in _logical_lines(text):
            stripped = line.strip()
            if not stripped or stripped[0] in "#!":
                continue
            key, value = _split_entry(stripped)
            pairs.append((key, _text_to_scalar(value)))
        return _nest(pairs, source)

    def render(self, tree: dict[str, Any]) -> bytes:
        lines = [f"{key}={_scalar_to_text(key, value)}\n" for key, value in _flatten(tree)]
        return "".join(lines).encode(self.options.encoding)


def _logical_lines(text: str) -> list[str]:
    lines: list[str] = []
    pending = ""
    for raw in text.splitlines():
        line = pending + (raw.lstrip() if pending else raw)
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending = line[:-1]
            continue
        pending = ""
        lines.append(line)
    if pending:
        lines.append(pending)
    return lines


def _split_entry(line: str) -> tuple[str, str]:
    positions = [i for i in (line.find("="), line.find(":")) if i >= 0]
    if not positions:
        return line, ""
    index = min(positions)
    return line[:index].strip(), line[index + 1 :]


_SUFFIX_CODECS: dict[str, type] = {
    ".yml": YamlCodec,
    ".yaml": YamlCodec,
    ".json": JsonCodec,
    ".ini": IniCodec,
    ".properties": PropertiesCodec,
}


def codec_for_path(path: str | Path | None) -> TextCodec:
    """Pick a codec from a file suffix; YAML when unknown."""
    suffix = Path(path).suffix.lower() if path is not None else ""
    return _SUFFIX_CODECS.get(suffix, YamlCodec)()
