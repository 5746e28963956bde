"""Conversion between raw test case properties and typed metadata."""

import logging
from collections.abc import Mapping

from testkit.engine.exceptions import FormatError
from testkit.engine.models.metadata import (
    PROPERTY_FIELDS,
    Metadata,
    MetadataBuilder,
    is_user_metadata_key,
)

logger = logging.getLogger(__name__)


def from_properties(properties: Mapping[str, str]) -> Metadata:
    """Build metadata from the properties declared by a test case.

    Args:
        properties: Flat map of property names (``descr``, ``require.arch``,
            ``timeout``, ``X-*``, ...) to their textual values

    Returns:
        Validated metadata

    Raises:
        FormatError: If a property is unknown or a value is malformed; no
            metadata is produced in that case

    """
    builder = MetadataBuilder()
    for name, value in properties.items():
        field = PROPERTY_FIELDS.get(name)
        if field is not None:
            builder.set_string(field, value)
        elif is_user_metadata_key(name):
            builder.add_custom(name, value)
        else:
            logger.debug(f"Rejecting unknown property {name}={value!r}")
            raise FormatError(f"Unknown test case metadata property '{name}'")
    return builder.build()


def all_properties(metadata: Metadata) -> dict[str, str]:
    """Return the canonical property map of some metadata."""
    return metadata.to_properties()
