"""Tests for test result models."""

import pytest
from pydantic import ValidationError

from testkit.engine.models.test_result import TestResult


def test_test_result_constructors() -> None:
    """Each constructor produces its result type."""
    assert TestResult.passed() == TestResult(type="passed")
    assert TestResult.failed("boom") == TestResult(type="failed", reason="boom")
    assert TestResult.skipped("why") == TestResult(type="skipped", reason="why")
    assert TestResult.expected_failure("known").type == "expected_failure"
    assert TestResult.broken().reason is None


@pytest.mark.parametrize(
    ("result", "good"),
    [
        (TestResult.passed(), True),
        (TestResult.skipped("x"), True),
        (TestResult.expected_failure("x"), True),
        (TestResult.failed("x"), False),
        (TestResult.broken("x"), False),
    ],
)
def test_test_result_good(result: TestResult, good: bool) -> None:
    """good() is true for outcomes that do not need attention."""
    assert result.good() is good


def test_test_result_str() -> None:
    """str() includes the reason when present."""
    assert str(TestResult.passed()) == "passed"
    assert str(TestResult.skipped("Hello!")) == "skipped: Hello!"


def test_test_result_invalid_type() -> None:
    """TestResult rejects unknown result types."""
    with pytest.raises(ValidationError) as exc_info:
        TestResult(type="invalid")  # type: ignore[arg-type]
    assert "type" in str(exc_info.value)


def test_test_result_is_immutable() -> None:
    """Results cannot be modified after creation."""
    result = TestResult.failed("x")
    with pytest.raises(ValidationError):
        result.reason = "y"  # type: ignore[misc]
