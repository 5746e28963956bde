"""Parse the list of test cases printed by a test program."""

import logging
import re

from testkit.engine.exceptions import FormatError
from testkit.engine.executor import TestCaseExecutor
from testkit.engine.models.test_program import TestProgram
from testkit.engine.models.test_result import TestResult
from testkit.engine.test_case import BaseTestCase, FakeTestCase, TestCase

logger = logging.getLogger(__name__)

LIST_CONTENT_TYPE = 'Content-Type: application/X-atf-tp; version="1"'

LIST_FAILURE_NAME = "__test_cases_list__"

_PROPERTY_RE = re.compile(r"^([A-Za-z0-9][A-Za-z0-9.\-_]*): (.*)$")


def parse_properties(text: str) -> list[tuple[str, dict[str, str]]]:
    """Split a test case listing into per-test-case property maps.

    Args:
        text: Output of the test program's list operation: a content-type
            header, a blank line, then blank-line separated blocks of
            ``name: value`` lines, each starting with ``ident``

    Returns:
        Pairs of test case name and its remaining properties, in listing
        order

    Raises:
        FormatError: If the listing is malformed

    """
    lines = text.splitlines()
    if not lines or lines[0] != LIST_CONTENT_TYPE:
        raise FormatError(
            f"Invalid header for test case list; expecting '{LIST_CONTENT_TYPE}'"
        )
    if len(lines) < 2 or lines[1] != "":
        raise FormatError("Invalid header for test case list; missing blank line")

    test_cases: list[tuple[str, dict[str, str]]] = []
    current: dict[str, str] | None = None
    for number, line in enumerate(lines[2:], start=3):
        if not line:
            current = None
            continue

        match = _PROPERTY_RE.match(line)
        if match is None:
            raise FormatError(f"Invalid property at line {number}: '{line}'")
        name, value = match.groups()

        if current is None:
            if name != "ident":
                raise FormatError(
                    f"Test case definition at line {number} must start with "
                    f"'ident', not '{name}'"
                )
            if not value:
                raise FormatError(f"Empty test case name at line {number}")
            if any(ident == value for ident, _ in test_cases):
                raise FormatError(f"Duplicate test case '{value}'")
            current = {}
            test_cases.append((value, current))
        elif name == "ident":
            raise FormatError(
                f"Missing blank line before test case '{value}' at line {number}"
            )
        elif name in current:
            raise FormatError(f"Duplicate property '{name}' at line {number}")
        else:
            current[name] = value

    if not test_cases:
        raise FormatError("No test cases")
    return test_cases


def parse_test_cases(
    test_program: TestProgram, text: str, executor: TestCaseExecutor
) -> list[TestCase]:
    """Build the test cases described by a listing.

    Raises:
        FormatError: If the listing or any test case's properties are
            malformed

    """
    test_cases: list[TestCase] = []
    for name, properties in parse_properties(text):
        try:
            test_cases.append(
                TestCase.from_properties(test_program, name, properties, executor)
            )
        except FormatError as e:
            raise FormatError(f"Invalid test case '{name}': {e}") from e
    return test_cases


def load_test_cases(
    test_program: TestProgram, text: str, executor: TestCaseExecutor
) -> list[BaseTestCase]:
    """Build the test cases of a program, reporting a broken listing.

    Returns:
        The parsed test cases or, if the listing cannot be parsed, a single
        synthetic test case whose result is broken with the reason

    """
    try:
        return list(parse_test_cases(test_program, text, executor))
    except FormatError as e:
        logger.error(f"Cannot list test cases of {test_program.absolute_path}: {e}")
        return [
            FakeTestCase(
                test_program,
                LIST_FAILURE_NAME,
                "Represents the correct processing of the test cases list",
                TestResult.broken(str(e)),
            )
        ]
