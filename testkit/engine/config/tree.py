"""Hierarchical configuration tree addressed by dotted keys."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any, Literal, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from testkit.engine.exceptions import InvalidKeyError, UnknownKeyError, ValueTypeError
from testkit.engine.passwd import UserRecord


class StringNode(BaseModel):
    """Leaf holding a plain string."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["string"] = "string"
    value: str = Field(..., description="Stored text")

    def render(self) -> str:
        return self.value


class UserNode(BaseModel):
    """Leaf holding a system user."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["user"] = "user"
    value: UserRecord = Field(..., description="Stored user")

    def render(self) -> str:
        return self.value.name


ConfigNode = StringNode | UserNode

_NodeT = TypeVar("_NodeT", StringNode, UserNode)

_MISSING: Any = object()


def split_key(key: str) -> tuple[str, ...]:
    """Split a dotted key into its components.

    Raises:
        InvalidKeyError: If the key or any of its components is empty

    """
    if not key:
        raise InvalidKeyError("Empty configuration key")
    parts = tuple(key.split("."))
    if any(not part for part in parts):
        raise InvalidKeyError(f"Invalid configuration key '{key}'")
    return parts


class ConfigTree:
    """Typed key/value store with dotted-path keys.

    Leaves are either strings or users. The tree keeps the invariant that
    no leaf is the prefix of another key, so ``a.b`` and ``a.b.c`` cannot
    both be set.
    """

    def __init__(self) -> None:
        """Initialize an empty tree."""
        self._nodes: dict[tuple[str, ...], ConfigNode] = {}

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(".".join(parts) for parts in self._nodes))

    def __len__(self) -> int:
        return len(self._nodes)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigTree):
            return NotImplemented
        return self._nodes == other._nodes

    def __repr__(self) -> str:
        return f"ConfigTree({self.all_properties()!r})"

    def copy(self) -> ConfigTree:
        """Return an independent tree with the same contents."""
        tree = ConfigTree()
        tree._nodes = dict(self._nodes)
        return tree

    def is_set(self, key: str) -> bool:
        """Whether a leaf exists at the given key."""
        return split_key(key) in self._nodes

    def set(self, key: str, node: ConfigNode) -> None:
        """Store a leaf, replacing any previous leaf at the same key.

        Raises:
            InvalidKeyError: If the key is malformed, passes through an
                existing leaf, or names an inner node

        """
        parts = split_key(key)
        for length in range(1, len(parts)):
            if parts[:length] in self._nodes:
                raise InvalidKeyError(
                    f"Cannot set '{key}': '{'.'.join(parts[:length])}' is a leaf"
                )
        if parts not in self._nodes and any(
            existing[: len(parts)] == parts for existing in self._nodes
        ):
            raise InvalidKeyError(f"Cannot set '{key}': it has nested keys")
        self._nodes[parts] = node

    def set_string(self, key: str, value: str) -> None:
        """Store a string leaf."""
        self.set(key, StringNode(value=value))

    def set_user(self, key: str, value: UserRecord) -> None:
        """Store a user leaf."""
        self.set(key, UserNode(value=value))

    def unset(self, key: str) -> None:
        """Remove a leaf if present."""
        self._nodes.pop(split_key(key), None)

    def lookup(self, key: str) -> ConfigNode:
        """Return the raw leaf stored at a key.

        Raises:
            UnknownKeyError: If the key has not been set

        """
        try:
            return self._nodes[split_key(key)]
        except KeyError:
            raise UnknownKeyError(f"Configuration key '{key}' is not set") from None

    def _get(self, key: str, node_type: type[_NodeT]) -> _NodeT:
        node = self.lookup(key)
        if not isinstance(node, node_type):
            expected = node_type.model_fields["kind"].default
            raise ValueTypeError(
                f"Configuration key '{key}' holds a {node.kind}, not a {expected}"
            )
        return node

    def get_string(self, key: str, default: str = _MISSING) -> str:
        """Return the string stored at a key.

        Args:
            key: Dotted key to read
            default: Value to return when the key is not set; without it
                an unset key raises

        Raises:
            UnknownKeyError: If the key is unset and there is no default
            ValueTypeError: If the key holds a user

        """
        if default is not _MISSING and not self.is_set(key):
            return default
        return self._get(key, StringNode).value

    def get_user(self, key: str) -> UserRecord:
        """Return the user stored at a key.

        Raises:
            UnknownKeyError: If the key is unset
            ValueTypeError: If the key holds a string

        """
        return self._get(key, UserNode).value

    def all_properties(self, prefix: str = "") -> dict[str, str]:
        """Flatten the leaves under a prefix into strings.

        Args:
            prefix: Dotted key of an inner node; keys in the result are
                relative to it. Empty means the whole tree.

        """
        base = split_key(prefix) if prefix else ()
        properties: dict[str, str] = {}
        for parts, node in self._nodes.items():
            if parts[: len(base)] == base and len(parts) > len(base):
                properties[".".join(parts[len(base) :])] = node.render()
        return dict(sorted(properties.items()))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ConfigTree:
        """Build a tree from nested mappings.

        Nested mappings become dotted keys. A mapping with exactly the
        ``name``, ``uid`` and ``gid`` keys becomes a user leaf; any other
        scalar is stored as its string form.

        Raises:
            InvalidKeyError: If a key is not a valid key component
            ValueTypeError: If a value is a list or null

        """
        tree = cls()
        tree.merge(data)
        return tree

    def merge(self, data: Mapping[str, Any], prefix: str = "") -> None:
        """Overlay nested mappings onto this tree (see ``from_mapping``)."""
        for name, value in data.items():
            key = f"{prefix}.{name}" if prefix else str(name)
            if isinstance(value, Mapping):
                if set(value) == {"name", "uid", "gid"}:
                    try:
                        user = UserRecord.model_validate(dict(value))
                    except ValidationError as e:
                        raise ValueTypeError(
                            f"Invalid user for configuration key '{key}': {e}"
                        ) from e
                    self.set_user(key, user)
                else:
                    self.merge(value, key)
            elif isinstance(value, bool):
                self.set_string(key, "true" if value else "false")
            elif isinstance(value, (str, int, float)):
                self.set_string(key, str(value))
            else:
                raise ValueTypeError(
                    f"Unsupported value for configuration key '{key}': {value!r}"
                )
