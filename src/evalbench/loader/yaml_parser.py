"""YAML parsing that remembers where every key came from.

Suite files are parsed twice over the same node tree: once into plain
Python data with the safe constructor, and once walked to record the
1-indexed (line, column) of every mapping key under its dotted path
(``generation.model``, ``dataset.0.input``). Validation errors use the
map to point at the offending line.
"""

from __future__ import annotations

from pathlib import Path

import yaml

LineMap = dict[str, tuple[int, int]]


class YAMLParseError(Exception):
    """YAML syntax error with its 1-indexed position, when known."""

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
        filename: str = "<string>",
    ) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        super().__init__(message)


def _record_positions(node: yaml.Node, prefix: str, line_map: LineMap) -> None:
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            if not isinstance(key_node, yaml.ScalarNode):
                continue
            path = f"{prefix}.{key_node.value}" if prefix else str(key_node.value)
            mark = key_node.start_mark
            line_map[path] = (mark.line + 1, mark.column + 1)
            _record_positions(value_node, path, line_map)
    elif isinstance(node, yaml.SequenceNode):
        for index, item in enumerate(node.value):
            path = f"{prefix}.{index}" if prefix else str(index)
            mark = item.start_mark
            line_map.setdefault(path, (mark.line + 1, mark.column + 1))
            _record_positions(item, path, line_map)


def parse_yaml_with_lines(source: str, filename: str = "<string>") -> tuple[dict | None, LineMap]:
    """Parse YAML text into (data, line_map).

    Returns (None, {}) when the document is empty or not a mapping.

    Raises:
        YAMLParseError: If the text is not valid YAML.
    """
    loader = yaml.SafeLoader(source)
    try:
        node = loader.get_single_node()
        data = loader.construct_document(node) if node is not None else None
    except yaml.YAMLError as exc:
        mark = getattr(exc, "problem_mark", None)
        raise YAMLParseError(
            str(exc),
            line=mark.line + 1 if mark is not None else None,
            column=mark.column + 1 if mark is not None else None,
            filename=filename,
        ) from exc
    finally:
        loader.dispose()

    if not isinstance(data, dict):
        return None, {}

    line_map: LineMap = {}
    _record_positions(node, "", line_map)
    return data, line_map


def parse_yaml_file(path: Path) -> tuple[dict | None, LineMap]:
    """Parse a YAML file into (data, line_map).

    Raises:
        YAMLParseError: If the file is not valid YAML.
        FileNotFoundError: If the file does not exist.
    """
    return parse_yaml_with_lines(path.read_text(encoding="utf-8"), filename=str(path))