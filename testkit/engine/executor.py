"""Interfaces to the machinery that actually runs test cases."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from testkit.engine.config.tree import ConfigTree
from testkit.engine.models.test_result import TestResult
from testkit.engine.requirements import Environment

if TYPE_CHECKING:
    from testkit.engine.test_case import BaseTestCase

logger = logging.getLogger(__name__)


class TestCaseHooks(ABC):
    """Observer notified about the output of a running test case."""

    __test__ = False

    @abstractmethod
    def got_stdout(self, file: Path) -> None:
        """Handle the file that captured the test case's stdout.

        Only called if the test case wrote something to stdout.
        """

    @abstractmethod
    def got_stderr(self, file: Path) -> None:
        """Handle the file that captured the test case's stderr.

        Only called if the test case wrote something to stderr.
        """


class NullHooks(TestCaseHooks):
    """Hooks that ignore all output."""

    def got_stdout(self, file: Path) -> None:
        """Ignore stdout."""

    def got_stderr(self, file: Path) -> None:
        """Ignore stderr."""


class TestCaseExecutor(ABC):
    """Runs the body of a test case in an isolated process."""

    __test__ = False

    @abstractmethod
    def run_test_case(
        self,
        test_case: BaseTestCase,
        config: ConfigTree,
        hooks: TestCaseHooks,
    ) -> TestResult:
        """Run a test case and report its outcome.

        Args:
            test_case: Test case to run; its metadata carries the timeout
                and the privileges to run with
            config: User configuration
            hooks: Receives the captured output files

        Returns:
            Result of the test case

        """


def run_test_case(
    test_case: BaseTestCase,
    config: ConfigTree,
    hooks: TestCaseHooks,
    environment: Environment | None = None,
) -> TestResult:
    """Run a test case if its requirements are met.

    Args:
        test_case: Test case to run
        config: User configuration
        hooks: Receives the captured output files
        environment: Host snapshot to check against; captured from the
            running process when not given

    Returns:
        A skipped result naming the unmet requirement, or the result of
        running the test case

    """
    test_id = f"{test_case.test_program.binary}:{test_case.name}"
    if environment is None:
        environment = Environment.current(
            config, test_case.test_program.test_suite_name
        )

    reason = test_case.check_requirements(environment)
    if reason:
        logger.info(f"Skipping {test_id}: {reason}")
        return TestResult.skipped(reason)

    logger.info(f"Running {test_id}")
    result = test_case.run(config, hooks)
    logger.info(f"Test result: {test_id} = {result}")
    return result
