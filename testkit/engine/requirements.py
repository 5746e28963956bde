"""Admission control: decide whether a test case can run on this host."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from testkit.engine.config.tree import ConfigTree
from testkit.engine.exceptions import InvalidKeyError
from testkit.engine.memory import physical_memory
from testkit.engine.models.metadata import Metadata
from testkit.engine.passwd import UserRecord, current_user
from testkit.engine.units import Bytes

logger = logging.getLogger(__name__)

# Configuration variable names that live at the top of the tree instead of
# under the test suite, mapped to their key.
_GLOBAL_CONFIG_VARIABLES: dict[str, str] = {
    "unprivileged-user": "unprivileged_user",
}


class Environment(BaseModel):
    """Snapshot of the host facts a requirement check depends on."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    config: ConfigTree = Field(..., description="User configuration")
    test_suite_name: str = Field(..., description="Suite of the test program")
    architecture: str = Field(default="", description="Current architecture")
    platform: str = Field(default="", description="Current platform")
    user: UserRecord = Field(..., description="Identity the checks assume")
    work_directory: Path = Field(..., description="Current working directory")
    path: str = Field(default="", description="Value of the PATH variable")
    memory_probe: Callable[[], int] = Field(
        default=physical_memory,
        description="Returns the physical memory in bytes, 0 if unknown",
    )

    @classmethod
    def current(cls, config: ConfigTree, test_suite_name: str) -> Environment:
        """Capture the state of the running process."""
        return cls(
            config=config,
            test_suite_name=test_suite_name,
            architecture=config.get_string("architecture", ""),
            platform=config.get_string("platform", ""),
            user=current_user(),
            work_directory=Path.cwd(),
            path=os.environ.get("PATH", ""),
        )


def _config_key(name: str, test_suite_name: str) -> str:
    if name in _GLOBAL_CONFIG_VARIABLES:
        return _GLOBAL_CONFIG_VARIABLES[name]
    return f"test_suites.{test_suite_name}.{name}"


def _check_configs(required_configs: frozenset[str], env: Environment) -> str:
    for name in sorted(required_configs):
        try:
            defined = env.config.is_set(_config_key(name, env.test_suite_name))
        except InvalidKeyError:
            defined = False
        if not defined:
            return f"Required configuration property '{name}' not defined"
    return ""


def _check_user(required_user: str, env: Environment) -> str:
    if required_user == "root":
        if not env.user.is_root():
            return "Requires root privileges"
    elif required_user == "unprivileged":
        if env.user.is_root() and not env.config.is_set("unprivileged_user"):
            return (
                "Requires an unprivileged user but the unprivileged-user "
                "configuration variable is not defined"
            )
    return ""


def _exists(path: Path) -> bool:
    try:
        return path.exists()
    except OSError:
        return False


def _is_file(path: Path) -> bool:
    try:
        return path.is_file()
    except OSError:
        return False


def _check_files(required_files: frozenset[Path]) -> str:
    for path in sorted(required_files):
        if not _exists(path):
            return f"'{path}' not found"
    return ""


def _check_memory(required_memory: Bytes, env: Environment) -> str:
    if required_memory == 0:
        return ""
    available = Bytes(env.memory_probe())
    if available == 0:
        logger.warning("Cannot determine physical memory; skipping memory check")
        return ""
    if required_memory > available:
        return f"Requires {required_memory} of memory but only {available} available"
    return ""


def _is_executable(path: Path) -> bool:
    try:
        return path.is_file() and os.access(path, os.X_OK)
    except OSError:
        return False


def find_in_path(name: str, search_path: str, work_directory: Path) -> Path | None:
    """Locate an executable by name in a PATH-style directory list.

    Args:
        name: Bare program name
        search_path: Directories separated by ``os.pathsep``
        work_directory: Base for relative directories in the list

    Returns:
        Path to the first executable match, or None

    """
    for directory in search_path.split(os.pathsep):
        if not directory:
            continue
        candidate = work_directory / directory / name
        if _is_executable(candidate):
            return candidate
    return None


def _check_programs(required_programs: frozenset[Path], env: Environment) -> str:
    for program in sorted(required_programs):
        if program.is_absolute():
            if not _is_file(program):
                return f"'{program}' not found"
        elif find_in_path(str(program), env.path, env.work_directory) is None:
            return f"'{program}' not found in PATH"
    return ""


def check_requirements(metadata: Metadata, env: Environment) -> str:
    """Check whether the requirements of a test case are met.

    The checks run in a fixed order (architecture, platform, configuration
    variables, user, files, memory, programs) and stop at the first
    failure. Items within a single requirement are visited in sorted
    order.

    Args:
        metadata: Requirements declared by the test case
        env: Facts about the host to check against

    Returns:
        An empty string if the test case can run; otherwise the reason
        why it cannot

    """
    reason = ""
    if (
        metadata.allowed_architectures
        and env.architecture not in metadata.allowed_architectures
    ):
        reason = f"Current architecture '{env.architecture}' not supported"
    elif metadata.allowed_platforms and env.platform not in metadata.allowed_platforms:
        reason = f"Current platform '{env.platform}' not supported"
    else:
        reason = (
            _check_configs(metadata.required_configs, env)
            or _check_user(metadata.required_user, env)
            or _check_files(metadata.required_files)
            or _check_memory(metadata.required_memory, env)
            or _check_programs(metadata.required_programs, env)
        )

    if reason:
        logger.debug(f"Requirement not met: {reason}")
    return reason
