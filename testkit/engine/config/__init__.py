"""Configuration trees and their construction."""

from testkit.engine.config.tree import ConfigNode, ConfigTree, StringNode, UserNode
from testkit.engine.config.user_files import default_config, empty_config, load_config

__all__ = [
    "ConfigNode",
    "ConfigTree",
    "StringNode",
    "UserNode",
    "default_config",
    "empty_config",
    "load_config",
]
