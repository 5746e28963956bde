"""Shared fixtures for unit tests."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from testkit.engine.config.tree import ConfigTree
from testkit.engine.config.user_files import empty_config
from testkit.engine.executor import TestCaseExecutor
from testkit.engine.models.test_program import TestProgram
from testkit.engine.passwd import UserRecord
from testkit.engine.requirements import Environment


@pytest.fixture
def test_program() -> TestProgram:
    """Create a test program in the 'suite' test suite."""
    return TestProgram(
        interface="atf",
        binary=Path("program"),
        root=Path("/usr/tests"),
        test_suite_name="suite",
    )


@pytest.fixture
def executor() -> MagicMock:
    """Create an executor that records its calls."""
    return MagicMock(spec=TestCaseExecutor)


EnvironmentFactory = Callable[..., Environment]


@pytest.fixture
def make_env() -> EnvironmentFactory:
    """Return a builder of environment snapshots independent of the host."""

    def make(
        config: ConfigTree | None = None,
        *,
        uid: int = 123,
        path: str = "",
        work_directory: Path = Path("/"),
        memory: int = 0,
    ) -> Environment:
        if config is None:
            config = empty_config()
        return Environment(
            config=config,
            test_suite_name="suite",
            architecture=config.get_string("architecture", ""),
            platform=config.get_string("platform", ""),
            user=UserRecord(name="", uid=uid, gid=1),
            work_directory=work_directory,
            path=path,
            memory_probe=lambda: memory,
        )

    return make
