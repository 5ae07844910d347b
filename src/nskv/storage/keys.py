"""Key namespace codec.

Keys of the form ``<namespace>:<id>`` belong to a namespace and are tracked in
that namespace's index set. Every other key shape is still storable, it is
just never indexed.
"""

from typing import NamedTuple, Optional

NAMESPACE_SEPARATOR = ":"
NAMESPACE_WILDCARD = "*"
GLOB_METACHARACTERS = frozenset("*?[]")


class KeyParts(NamedTuple):
    """A key split into its namespace and id segments."""

    namespace: str
    id: str


def decompose(key: str) -> Optional[KeyParts]:
    """Split a key into (namespace, id).

    Only keys made of exactly two non-empty segments joined by a single colon
    decompose. Anything else returns None; this is not an error.

    Args:
        key: Key to inspect

    Returns:
        KeyParts if the key is namespaced, None otherwise

    Example:
        >>> decompose("pad:foo")
        KeyParts(namespace='pad', id='foo')
        >>> decompose("pad:foo:revs") is None
        True
    """
    segments = key.split(NAMESPACE_SEPARATOR)
    if len(segments) != 2:
        return None

    namespace, key_id = segments
    if not namespace or not key_id:
        return None
    return KeyParts(namespace, key_id)


def is_indexable(key: str) -> bool:
    """Check whether a key belongs to a namespace index."""
    return decompose(key) is not None


def index_key(namespace: str, prefix: str) -> str:
    """Build the Redis key of the index set for a namespace.

    Args:
        namespace: Namespace whose members the set holds
        prefix: Reserved index prefix

    Returns:
        Key of the form ``<prefix>:keys:<namespace>``
    """
    return f"{prefix}:keys:{namespace}"


def is_reserved(key: str, prefix: str) -> bool:
    """Check whether a key falls inside the reserved index keyspace."""
    return key.startswith(f"{prefix}:keys:")


def parse_namespace_pattern(pattern: str) -> Optional[str]:
    """Extract the namespace from a ``<namespace>:*`` pattern.

    The namespace must be non-empty and free of colons and glob
    metacharacters, and the pattern must end in a single ``*``.

    Args:
        pattern: Glob-style key pattern

    Returns:
        The namespace, or None if the pattern has any other shape
    """
    namespace, separator, rest = pattern.partition(NAMESPACE_SEPARATOR)
    if not separator or rest != NAMESPACE_WILDCARD:
        return None
    if not namespace or GLOB_METACHARACTERS.intersection(namespace):
        return None
    return namespace
