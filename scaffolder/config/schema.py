"""
Settings Schema.

This module declares the persisted scaffolder settings and validates values
against them.

Key features:
- One typed field per setting, with description and optional pattern
- Optional settings (default None) that have no built-in value
- Secret settings that are never echoed back
"""

import re
from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Raised when a field definition is inconsistent."""

    pass


class ValidationError(SchemaError):
    """Raised when value validation fails."""

    pass


@dataclass
class ConfigField:
    """
    A persisted setting.

    Attributes:
        type_: The expected type of the value
        default: Built-in value (None means "not set")
        description: Human-readable description, written as a comment
        pattern: Regular expression a string value must match (optional)
        secret: Whether the value must be masked when displayed
    """

    type_: type
    default: Any
    description: str = ""
    pattern: str | None = None
    secret: bool = False

    def __post_init__(self):
        if self.default is not None and not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )
        if self.pattern is not None and self.type_ is not str:
            raise SchemaError("pattern is only supported for str fields")
        if self.default is not None:
            self.validate(self.default)

    def validate(self, value: Any) -> None:
        """
        Check a value against this field.

        Raises:
            ValidationError: If the value has the wrong type, is empty or
                does not match the pattern
        """
        if not isinstance(value, self.type_):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.type_ is str:
            if not value.strip():
                raise ValidationError("Value must not be empty")
            if self.pattern is not None and not re.fullmatch(self.pattern, value):
                raise ValidationError(f"Value {value!r} does not match {self.pattern}")


# GitHub account names: alphanumerics and single hyphens
_OWNER_PATTERN = r"[A-Za-z0-9](?:[A-Za-z0-9]|-(?=[A-Za-z0-9]))*"
_PREFIX_PATTERN = r"[A-Za-z0-9._-]+"

SETTINGS_SCHEMA: dict[str, ConfigField] = {
    "gh_auth_token": ConfigField(
        str,
        None,
        "GitHub token used to access private plugin repositories and raise rate limits",
        secret=True,
    ),
    "gh_org": ConfigField(
        str,
        "ui5-community",
        "GitHub organization to look up available plugins",
        pattern=_OWNER_PATTERN,
    ),
    "sub_generator_prefix": ConfigField(
        str,
        "generator-ui5-",
        "Repository name prefix marking a plugin",
        pattern=_PREFIX_PATTERN,
    ),
    "add_gh_org": ConfigField(
        str,
        None,
        "GitHub organization or user to look up additional plugins",
        pattern=_OWNER_PATTERN,
    ),
    "add_sub_generator_prefix": ConfigField(
        str,
        "generator-",
        "Repository name prefix for the additional plugins",
        pattern=_PREFIX_PATTERN,
    ),
    "cache_dir": ConfigField(str, None, "Directory holding the downloaded plugins"),
    "api_url": ConfigField(
        str,
        "https://api.github.com",
        "Base URL of the GitHub REST API",
        pattern=r"https?://\S+",
    ),
}


def validate_config(config: dict[str, Any], schema: dict[str, ConfigField]) -> None:
    """
    Validate persisted settings against a schema.

    Settings missing from the file fall back to their defaults and are not an
    error.

    Raises:
        ValidationError: If an unknown setting is present or a value is invalid
    """
    for key in config:
        if key not in schema:
            raise ValidationError(f"Unknown configuration field: {key}")

    for key, value in config.items():
        try:
            schema[key].validate(value)
        except ValidationError as e:
            raise ValidationError(f"Field '{key}': {e}") from e


def generate_default_config(schema: dict[str, ConfigField]) -> dict[str, Any]:
    """Return the built-in value of every setting that has one."""
    return {key: field.default for key, field in schema.items() if field.default is not None}
