"""Exceptions raised by the test case engine."""


class EngineError(Exception):
    """Base class for all engine errors."""


class FormatError(EngineError):
    """A test case declaration does not follow the property grammar."""


class ParseError(FormatError):
    """A textual value could not be converted to its typed form."""


class ConfigError(EngineError):
    """Problem with the configuration tree or its source file."""


class InvalidKeyError(ConfigError):
    """A configuration key is malformed or clashes with the tree layout."""


class UnknownKeyError(ConfigError):
    """A configuration key was read but has never been set."""


class ValueTypeError(ConfigError):
    """A configuration key holds a different kind of value than requested."""
