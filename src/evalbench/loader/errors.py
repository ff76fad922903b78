"""Rendering of suite validation errors for terminals and CI logs."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from evalbench.loader.validator import ValidationErrorDetail

ERROR_CODES: dict[str, str] = {
    "extra_forbidden": "E001",
    "missing": "E002",
    "value_error": "E003",
    "greater_than_equal": "E003",
    "less_than_equal": "E003",
    "literal_error": "E005",
    "yaml_syntax_error": "E006",
    "empty_file": "E007",
    "empty_input": "E007",
    "file_not_found": "E008",
}

ERROR_DESCRIPTIONS: dict[str, str] = {
    "E001": "unknown field",
    "E002": "required field missing",
    "E003": "invalid value",
    "E004": "type mismatch",
    "E005": "invalid choice",
    "E006": "YAML syntax error",
    "E007": "empty suite",
    "E008": "missing file",
}


def error_code(error_type: str) -> str:
    if error_type in ERROR_CODES:
        return ERROR_CODES[error_type]
    if error_type.endswith(("_type", "_parsing")):
        return "E004"
    return "E999"


class ErrorFormatter:
    """Formats ValidationErrorDetails as annotated snippets or CI lines.

    Args:
        ci_mode: Force one-line ``file:line:col -- field: message`` output.
            None reads the CI environment variable.
    """

    def __init__(self, ci_mode: bool | None = None) -> None:
        if ci_mode is None:
            ci_mode = os.environ.get("CI", "").lower() in ("true", "1", "yes")
        self.ci_mode = ci_mode

    def format_error(self, error: ValidationErrorDetail, source_lines: list[str], filename: str) -> str:
        if self.ci_mode:
            hint = f" ({error.suggestion})" if error.suggestion else ""
            return f"{filename}:{error.line or 0}:{error.col or 0} -- {error.field}: {error.message}{hint}"

        code = error_code(error.type)
        out = [f"error[{code}]: {ERROR_DESCRIPTIONS.get(code, 'validation error')}"]
        location = f"{filename}:{error.line}:{error.col or 1}" if error.line else filename
        out.append(f"  --> {location}")

        index = (error.line or 0) - 1
        if 0 <= index < len(source_lines):
            text = source_lines[index].rstrip()
            number = str(error.line)
            gutter = " " * len(number)
            key = error.field.rsplit(".", 1)[-1]
            start = text.find(key)
            out.append(f" {gutter} |")
            out.append(f" {number} | {text}")
            if start >= 0:
                out.append(f" {gutter} | {' ' * start}{'^' * len(key)} {error.message}")
            else:
                out.append(f" {gutter} | {error.message}")
        else:
            out.append(f"   | {error.field}: {error.message}")

        if error.suggestion:
            out.append(f"   = help: {error.suggestion}")
        return "\n".join(out)

    def format_all(self, errors: list[ValidationErrorDetail], source: str, filename: str) -> str:
        source_lines = source.splitlines()
        return "\n\n".join(self.format_error(e, source_lines, filename) for e in errors)
