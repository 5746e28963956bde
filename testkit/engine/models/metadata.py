"""Typed description of a test case's requirements and attributes."""

from __future__ import annotations

import datetime
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from testkit.engine.exceptions import FormatError, ParseError
from testkit.engine.units import Bytes

DEFAULT_TIMEOUT = datetime.timedelta(seconds=300)

USER_METADATA_PREFIX = "X-"


class Metadata(BaseModel):
    """Immutable metadata of a test case.

    Instances are normally created through ``MetadataBuilder`` or the
    property parser; direct construction runs the same validation.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    description: str = Field(default="", description="Free-form description")
    has_cleanup: bool = Field(default=False, description="Whether cleanup runs")
    timeout: datetime.timedelta = Field(
        default=DEFAULT_TIMEOUT, description="Maximum run time of the body"
    )
    allowed_architectures: frozenset[str] = Field(
        default_factory=frozenset, description="Empty means any architecture"
    )
    allowed_platforms: frozenset[str] = Field(
        default_factory=frozenset, description="Empty means any platform"
    )
    required_configs: frozenset[str] = Field(
        default_factory=frozenset, description="Configuration variable names"
    )
    required_files: frozenset[Path] = Field(
        default_factory=frozenset, description="Absolute paths that must exist"
    )
    required_memory: Bytes = Field(
        default=Bytes(0), description="Minimum physical memory, 0 for none"
    )
    required_programs: frozenset[Path] = Field(
        default_factory=frozenset, description="Absolute paths or names in PATH"
    )
    required_user: str = Field(
        default="", description="'root', 'unprivileged' or empty"
    )
    user_metadata: Mapping[str, str] = Field(
        default_factory=lambda: MappingProxyType({}),
        description="Free-form X- properties",
    )

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: datetime.timedelta) -> datetime.timedelta:
        if value <= datetime.timedelta(0):
            raise ValueError("timeout must be positive")
        return value

    @field_validator("required_memory", mode="before")
    @classmethod
    def _check_memory(cls, value: Any) -> Bytes:
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError("required memory must be a non-negative integer")
        return Bytes(value)

    @field_validator("required_files")
    @classmethod
    def _check_files(cls, value: frozenset[Path]) -> frozenset[Path]:
        for path in value:
            if not path.is_absolute():
                raise ValueError(f"required file '{path}' is not absolute")
        return value

    @field_validator("required_programs")
    @classmethod
    def _check_programs(cls, value: frozenset[Path]) -> frozenset[Path]:
        for path in value:
            if not path.is_absolute() and len(path.parts) != 1:
                raise ValueError(
                    f"required program '{path}' must be an absolute path "
                    "or a bare name"
                )
        return value

    @field_validator("user_metadata")
    @classmethod
    def _check_user_metadata(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        for key in value:
            if not is_user_metadata_key(key):
                raise ValueError(
                    f"user metadata key '{key}' must start with "
                    f"'{USER_METADATA_PREFIX}'"
                )
        return MappingProxyType(dict(sorted(value.items())))

    def __hash__(self) -> int:
        return hash(
            (
                tuple(getattr(self, name) for name in FIELDS),
                frozenset(self.user_metadata.items()),
            )
        )

    def to_properties(self) -> dict[str, str]:
        """Return the canonical property map of this metadata.

        Only fields that differ from their defaults are emitted. Lists
        are sorted and joined with single spaces; user metadata is always
        included verbatim.
        """
        defaults = Metadata()
        properties: dict[str, str] = {}
        for name, field_spec in FIELDS.items():
            value = getattr(self, name)
            if value != getattr(defaults, name):
                properties[field_spec.property_name] = field_spec.formatter(value)
        properties.update(self.user_metadata)
        return properties


def is_user_metadata_key(key: str) -> bool:
    """Whether a property name is a free-form user property."""
    return key.startswith(USER_METADATA_PREFIX) and len(key) > len(
        USER_METADATA_PREFIX
    )


def _parse_bool(text: str) -> bool:
    if text == "true":
        return True
    if text == "false":
        return False
    raise ParseError(f"'{text}' is not a boolean; use 'true' or 'false'")


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


def _parse_timeout(text: str) -> datetime.timedelta:
    stripped = text.strip()
    if not (stripped.isascii() and stripped.isdigit()):
        raise ParseError(f"'{text}' is not a positive integer number of seconds")
    seconds = int(stripped)
    if seconds == 0:
        raise ParseError("timeout must be positive")
    return datetime.timedelta(seconds=seconds)


def _format_timeout(value: datetime.timedelta) -> str:
    return str(int(value.total_seconds()))


def _parse_words(text: str) -> frozenset[str]:
    return frozenset(text.split())


def _parse_paths(text: str) -> frozenset[Path]:
    return frozenset(Path(word) for word in text.split())


def _format_set(value: Iterable[object]) -> str:
    return " ".join(sorted(str(item) for item in value))


def _parse_string(text: str) -> str:
    return text


def _format_string(value: str) -> str:
    return value


@dataclass(frozen=True)
class FieldSpec:
    """How a metadata field maps to and from its property string."""

    property_name: str
    parser: Callable[[str], Any]
    formatter: Callable[[Any], str]


FIELDS: dict[str, FieldSpec] = {
    "description": FieldSpec("descr", _parse_string, _format_string),
    "has_cleanup": FieldSpec("has.cleanup", _parse_bool, _format_bool),
    "allowed_architectures": FieldSpec("require.arch", _parse_words, _format_set),
    "required_configs": FieldSpec("require.config", _parse_words, _format_set),
    "required_files": FieldSpec("require.files", _parse_paths, _format_set),
    "allowed_platforms": FieldSpec("require.machine", _parse_words, _format_set),
    "required_memory": FieldSpec("require.memory", Bytes.parse, Bytes.compact),
    "required_programs": FieldSpec("require.progs", _parse_paths, _format_set),
    "required_user": FieldSpec("require.user", _parse_string, _format_string),
    "timeout": FieldSpec("timeout", _parse_timeout, _format_timeout),
}

PROPERTY_FIELDS: dict[str, str] = {
    field_spec.property_name: name for name, field_spec in FIELDS.items()
}


class MetadataBuilder:
    """Accumulates metadata fields and validates them on ``build``."""

    def __init__(self, base: Metadata | None = None) -> None:
        """Initialize the builder, optionally seeded from existing metadata."""
        self._values: dict[str, Any] = {}
        if base is not None:
            self._values = {
                name: getattr(base, name) for name in Metadata.model_fields
            }
            self._values["user_metadata"] = dict(base.user_metadata)

    def _add(self, field: str, item: object) -> MetadataBuilder:
        current = self._values.get(field, frozenset())
        self._values[field] = frozenset(current) | {item}
        return self

    def set_description(self, description: str) -> MetadataBuilder:
        """Set the free-form description."""
        self._values["description"] = description
        return self

    def set_has_cleanup(self, has_cleanup: bool) -> MetadataBuilder:
        """Set whether the test case has a cleanup routine."""
        self._values["has_cleanup"] = has_cleanup
        return self

    def set_timeout(self, timeout: datetime.timedelta) -> MetadataBuilder:
        """Set the run time limit of the test body."""
        self._values["timeout"] = timeout
        return self

    def add_allowed_architecture(self, arch: str) -> MetadataBuilder:
        """Allow running on the given architecture."""
        return self._add("allowed_architectures", arch)

    def add_allowed_platform(self, platform: str) -> MetadataBuilder:
        """Allow running on the given platform."""
        return self._add("allowed_platforms", platform)

    def add_required_config(self, name: str) -> MetadataBuilder:
        """Require a configuration variable to be defined."""
        return self._add("required_configs", name)

    def add_required_file(self, path: Path) -> MetadataBuilder:
        """Require an absolute path to exist."""
        return self._add("required_files", Path(path))

    def set_required_memory(self, memory: int) -> MetadataBuilder:
        """Set the minimum amount of physical memory, in bytes."""
        self._values["required_memory"] = memory
        return self

    def add_required_program(self, path: Path) -> MetadataBuilder:
        """Require a program, given as an absolute path or a name in PATH."""
        return self._add("required_programs", Path(path))

    def set_required_user(self, user: str) -> MetadataBuilder:
        """Set the privileges the test case runs with."""
        self._values["required_user"] = user
        return self

    def add_custom(self, key: str, value: str) -> MetadataBuilder:
        """Record a user-defined ``X-`` property."""
        user_metadata = dict(self._values.get("user_metadata", {}))
        user_metadata[key] = value
        self._values["user_metadata"] = user_metadata
        return self

    def set_string(self, field: str, text: str) -> MetadataBuilder:
        """Set a field from its textual property representation.

        Raises:
            FormatError: If the field is unknown or the text is malformed

        """
        field_spec = FIELDS.get(field)
        if field_spec is None:
            raise FormatError(f"Unknown metadata field '{field}'")
        try:
            self._values[field] = field_spec.parser(text)
        except ParseError as e:
            raise FormatError(
                f"Invalid value for property '{field_spec.property_name}': {e}"
            ) from e
        return self

    def set_properties(self, properties: Mapping[str, str]) -> MetadataBuilder:
        """Apply several properties keyed by field name."""
        for field, text in properties.items():
            self.set_string(field, text)
        return self

    def build(self) -> Metadata:
        """Validate the accumulated values and create the metadata.

        Raises:
            FormatError: If any field holds an invalid value

        """
        try:
            return Metadata(**self._values)
        except ValidationError as e:
            raise FormatError(f"Invalid test case metadata: {e}") from e
