"""Data models for test programs, test case metadata and results."""

from testkit.engine.models.metadata import (
    DEFAULT_TIMEOUT,
    Metadata,
    MetadataBuilder,
)
from testkit.engine.models.test_program import TestProgram
from testkit.engine.models.test_result import TestResult

__all__ = [
    "DEFAULT_TIMEOUT",
    "Metadata",
    "MetadataBuilder",
    "TestProgram",
    "TestResult",
]
