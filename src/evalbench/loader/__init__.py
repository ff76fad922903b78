"""Suite loading and validation with line-numbered errors."""

from evalbench.loader.errors import ErrorFormatter
from evalbench.loader.validator import (
    ValidationErrorDetail,
    validate_suite_data,
    validate_suite_file,
    validate_suite_string,
)
from evalbench.loader.yaml_parser import YAMLParseError, parse_yaml_file, parse_yaml_with_lines

__all__ = [
    "ErrorFormatter",
    "ValidationErrorDetail",
    "YAMLParseError",
    "parse_yaml_file",
    "parse_yaml_with_lines",
    "validate_suite_data",
    "validate_suite_file",
    "validate_suite_string",
]
