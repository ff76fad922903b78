"""Suite validation: YAML parsing plus pydantic validation with positions.

Every problem found is collected rather than stopping at the first, so
``evalbench validate`` can report all of them in one pass.
"""

from __future__ import annotations

import difflib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from evalbench.loader.yaml_parser import LineMap, YAMLParseError, parse_yaml_file, parse_yaml_with_lines
from evalbench.models.suite import EvalSuite

SUITE_FIELDS: list[str] = list(EvalSuite.model_fields.keys())


@dataclass
class ValidationErrorDetail:
    """One problem in a suite file.

    Attributes:
        field: Dotted path of the offending field, or ``<yaml>``.
        message: Human-readable description.
        type: Pydantic error type, or an evalbench-specific one.
        line: 1-indexed source line, if known.
        col: 1-indexed source column, if known.
        suggestion: "Did you mean ...?" hint for misspelled fields.
    """

    field: str
    message: str
    type: str
    line: int | None = None
    col: int | None = None
    suggestion: str | None = None
    input_value: Any = field(default=None, repr=False)


def _position(path: str, line_map: LineMap) -> tuple[int | None, int | None]:
    parts = path.split(".")
    while parts:
        candidate = ".".join(parts)
        if candidate in line_map:
            return line_map[candidate]
        parts.pop()
    return None, None


def _suggest(name: str, choices: list[str]) -> str | None:
    matches = difflib.get_close_matches(name, choices, n=1, cutoff=0.6)
    return f"Did you mean '{matches[0]}'?" if matches else None


def _syntax_error(exc: YAMLParseError) -> ValidationErrorDetail:
    return ValidationErrorDetail(
        field="<yaml>",
        message=exc.message,
        type="yaml_syntax_error",
        line=exc.line,
        col=exc.column,
    )


def validate_suite_data(
    raw_data: dict[str, Any],
    line_map: LineMap,
    base_dir: Path | None = None,
) -> tuple[EvalSuite | None, list[ValidationErrorDetail]]:
    """Validate parsed suite data.

    Args:
        raw_data: Parsed YAML mapping.
        line_map: Dotted key path -> (line, col).
        base_dir: Directory a relative dataset_file resolves against.
            When given, the dataset file must exist.

    Returns:
        (suite, []) on success, or (None, errors).
    """
    try:
        suite = EvalSuite.model_validate(raw_data)
    except ValidationError as exc:
        errors = []
        for err in exc.errors():
            loc = err.get("loc", ())
            path = ".".join(str(part) for part in loc)
            error_type = err.get("type", "unknown")
            line, col = _position(path, line_map)
            suggestion = None
            if error_type == "extra_forbidden" and len(loc) == 1:
                suggestion = _suggest(str(loc[0]), SUITE_FIELDS)
            errors.append(
                ValidationErrorDetail(
                    field=path,
                    message=err.get("msg", "Validation error"),
                    type=error_type,
                    line=line,
                    col=col,
                    suggestion=suggestion,
                    input_value=err.get("input"),
                )
            )
        return None, errors

    errors: list[ValidationErrorDetail] = []
    if suite.dataset_file and base_dir is not None:
        path = Path(suite.dataset_file)
        if not path.is_absolute():
            path = base_dir / path
        if not path.exists():
            line, col = _position("dataset_file", line_map)
            errors.append(
                ValidationErrorDetail(
                    field="dataset_file",
                    message=f"Dataset file not found: {path}",
                    type="file_not_found",
                    line=line,
                    col=col,
                )
            )
    if errors:
        return None, errors
    return suite, []


def validate_suite_string(
    source: str,
    filename: str = "<string>",
    base_dir: Path | None = None,
) -> tuple[EvalSuite | None, list[ValidationErrorDetail]]:
    """Validate a suite given as YAML text."""
    try:
        raw_data, line_map = parse_yaml_with_lines(source, filename=filename)
    except YAMLParseError as exc:
        return None, [_syntax_error(exc)]

    if raw_data is None:
        return None, [
            ValidationErrorDetail(
                field="<yaml>",
                message="Suite must be a YAML mapping",
                type="empty_input",
            )
        ]
    return validate_suite_data(raw_data, line_map, base_dir=base_dir)


def validate_suite_file(path: Path) -> tuple[EvalSuite | None, list[ValidationErrorDetail]]:
    """Validate a suite YAML file. The dataset_file is resolved next to it."""
    try:
        raw_data, line_map = parse_yaml_file(path)
    except YAMLParseError as exc:
        return None, [_syntax_error(exc)]

    if raw_data is None:
        return None, [
            ValidationErrorDetail(
                field="<yaml>",
                message="File is empty or not a YAML mapping",
                type="empty_file",
            )
        ]
    return validate_suite_data(raw_data, line_map, base_dir=path.parent)
