"""Tests for test case metadata."""

import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from testkit.engine.exceptions import FormatError
from testkit.engine.models.metadata import (
    DEFAULT_TIMEOUT,
    FIELDS,
    PROPERTY_FIELDS,
    Metadata,
    MetadataBuilder,
)


def test_metadata_defaults() -> None:
    """Metadata has empty requirements by default."""
    metadata = MetadataBuilder().build()
    assert metadata.description == ""
    assert not metadata.has_cleanup
    assert metadata.timeout == DEFAULT_TIMEOUT == datetime.timedelta(seconds=300)
    assert metadata.allowed_architectures == frozenset()
    assert metadata.allowed_platforms == frozenset()
    assert metadata.required_configs == frozenset()
    assert metadata.required_files == frozenset()
    assert metadata.required_memory == 0
    assert metadata.required_programs == frozenset()
    assert metadata.required_user == ""
    assert metadata.user_metadata == {}
    assert metadata.to_properties() == {}


def test_metadata_is_immutable() -> None:
    """Metadata fields and user properties cannot be modified."""
    metadata = MetadataBuilder().add_custom("X-foo", "value").build()
    with pytest.raises(ValidationError):
        metadata.description = "changed"  # type: ignore[misc]
    with pytest.raises(TypeError):
        metadata.user_metadata["X-foo"] = "mutated"  # type: ignore[index]
    with pytest.raises(TypeError):
        metadata.user_metadata["X-new"] = "added"  # type: ignore[index]
    assert metadata.to_properties() == {"X-foo": "value"}
    assert MetadataBuilder().build().user_metadata == {}


def test_metadata_is_hashable() -> None:
    """Equal metadata hashes equally."""
    first = MetadataBuilder().add_custom("X-a", "1").add_custom("X-b", "2").build()
    second = MetadataBuilder().add_custom("X-b", "2").add_custom("X-a", "1").build()
    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second, MetadataBuilder().build()}) == 2


def test_builder_typed_setters() -> None:
    """The builder accumulates typed values."""
    metadata = (
        MetadataBuilder()
        .set_description("Some text")
        .set_has_cleanup(True)
        .set_timeout(datetime.timedelta(seconds=10))
        .add_allowed_architecture("i386")
        .add_allowed_architecture("x86_64")
        .add_allowed_architecture("i386")
        .add_allowed_platform("amd64")
        .add_required_config("var1")
        .add_required_file(Path("/etc/passwd"))
        .set_required_memory(1024)
        .add_required_program(Path("/bin/ls"))
        .add_required_program(Path("svn"))
        .set_required_user("root")
        .add_custom("X-foo", "bar")
        .build()
    )
    assert metadata.description == "Some text"
    assert metadata.has_cleanup
    assert metadata.timeout == datetime.timedelta(seconds=10)
    assert metadata.allowed_architectures == {"i386", "x86_64"}
    assert metadata.allowed_platforms == {"amd64"}
    assert metadata.required_configs == {"var1"}
    assert metadata.required_files == {Path("/etc/passwd")}
    assert metadata.required_memory == 1024
    assert metadata.required_programs == {Path("/bin/ls"), Path("svn")}
    assert metadata.required_user == "root"
    assert metadata.user_metadata == {"X-foo": "bar"}


def test_builder_set_string() -> None:
    """set_string parses textual values by field name."""
    metadata = (
        MetadataBuilder()
        .set_string("allowed_platforms", "foo bar baz")
        .set_string("required_memory", "2k")
        .build()
    )
    assert metadata.allowed_platforms == {"foo", "bar", "baz"}
    assert metadata.required_memory == 2048


def test_builder_set_string_unknown_field() -> None:
    """set_string rejects fields that do not exist."""
    with pytest.raises(FormatError, match="Unknown metadata field 'foo'"):
        MetadataBuilder().set_string("foo", "bar")


def test_builder_set_string_bad_value() -> None:
    """set_string reports the property whose value is malformed."""
    with pytest.raises(FormatError, match="property 'require.memory'"):
        MetadataBuilder().set_string("required_memory", "12q")


def test_builder_from_base() -> None:
    """A builder seeded from metadata keeps its values."""
    base = MetadataBuilder().set_description("base").add_custom("X-a", "1").build()
    derived = MetadataBuilder(base).add_allowed_platform("amd64").build()
    assert derived.description == "base"
    assert derived.user_metadata == {"X-a": "1"}
    assert derived.allowed_platforms == {"amd64"}
    assert base.allowed_platforms == frozenset()


@pytest.mark.parametrize(
    ("builder", "message"),
    [
        (MetadataBuilder().set_timeout(datetime.timedelta(0)), "timeout"),
        (MetadataBuilder().add_required_file(Path("relative")), "not absolute"),
        (MetadataBuilder().add_required_program(Path("a/b")), "bare name"),
        (MetadataBuilder().add_custom("foo", "bar"), "must start with 'X-'"),
        (MetadataBuilder().set_required_memory(-1), "non-negative"),
    ],
)
def test_build_validation(builder: MetadataBuilder, message: str) -> None:
    """build raises FormatError for invalid accumulated values."""
    with pytest.raises(FormatError, match=message):
        builder.build()


def test_field_registry_is_consistent() -> None:
    """Every metadata field except user metadata has a property name."""
    assert set(FIELDS) == set(Metadata.model_fields) - {"user_metadata"}
    assert len(PROPERTY_FIELDS) == len(FIELDS)
    assert set(PROPERTY_FIELDS) == {
        "descr",
        "has.cleanup",
        "require.arch",
        "require.config",
        "require.files",
        "require.machine",
        "require.memory",
        "require.progs",
        "require.user",
        "timeout",
    }


def test_to_properties_sorts_lists() -> None:
    """to_properties emits sorted, space-separated lists."""
    metadata = (
        MetadataBuilder()
        .set_string("allowed_architectures", "x86_64 i386 macppc")
        .set_string("required_files", "/z /a/b")
        .set_string("required_memory", "1m")
        .build()
    )
    assert metadata.to_properties() == {
        "require.arch": "i386 macppc x86_64",
        "require.files": "/a/b /z",
        "require.memory": "1m",
    }
