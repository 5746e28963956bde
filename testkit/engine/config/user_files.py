"""Construction of configuration trees for test runs."""

import logging
import platform
from pathlib import Path

import yaml

from testkit.engine.config.tree import ConfigTree
from testkit.engine.exceptions import ConfigError
from testkit.engine.passwd import find_user_by_name

logger = logging.getLogger(__name__)


def empty_config() -> ConfigTree:
    """Return a tree with only the mandatory keys, all blank."""
    tree = ConfigTree()
    tree.set_string("architecture", "")
    tree.set_string("platform", "")
    return tree


def default_config() -> ConfigTree:
    """Return a tree describing the running host."""
    tree = ConfigTree()
    tree.set_string("architecture", platform.machine().lower())
    tree.set_string("platform", platform.system().lower())
    return tree


def load_config(config_file: Path) -> ConfigTree:
    """Load a configuration file on top of the host defaults.

    Args:
        config_file: Path to a YAML document whose top level is a mapping.
            ``unprivileged_user`` may be a user name or a mapping with
            ``name``, ``uid`` and ``gid``.

    Returns:
        Configuration tree with the file's values overriding the defaults

    Raises:
        ConfigError: If the file is missing, is not valid YAML, or holds
            values the tree cannot represent

    """
    if not config_file.exists():
        raise ConfigError(f"Configuration file not found: {config_file}")

    try:
        with config_file.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {config_file} must be a mapping")

    unprivileged_user = data.pop("unprivileged_user", None)

    tree = default_config()
    try:
        tree.merge(data)
    except ConfigError as e:
        raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e

    if isinstance(unprivileged_user, str):
        try:
            tree.set_user("unprivileged_user", find_user_by_name(unprivileged_user))
        except KeyError:
            raise ConfigError(
                f"Unknown user '{unprivileged_user}' in {config_file}"
            ) from None
    elif unprivileged_user is not None:
        if not isinstance(unprivileged_user, dict) or set(unprivileged_user) != {
            "name",
            "uid",
            "gid",
        }:
            raise ConfigError(
                f"Invalid unprivileged_user in {config_file}: "
                "expected a user name or a name/uid/gid mapping"
            )
        try:
            tree.merge({"unprivileged_user": unprivileged_user})
        except ConfigError as e:
            raise ConfigError(f"Invalid configuration in {config_file}: {e}") from e

    logger.debug(f"Loaded {len(tree)} configuration keys from {config_file}")
    return tree
