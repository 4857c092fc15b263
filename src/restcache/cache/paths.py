"""Resource path model used by the cache key builder and the invalidator.

A resource path such as ``/products/123/reviews`` is decomposed into its
non-empty segments (``["products", "123", "reviews"]``) and re-joined with a
key-safe delimiter (``products+123+reviews``). The slash is never written
into a cache key because backends with pattern search treat it specially.

The invalidator walks :func:`ancestor_prefixes` from the most specific
prefix upwards, stopping at a configurable floor.
"""

from __future__ import annotations

from restcache.exceptions import InvalidResourcePathError

PATH_SEPARATOR = "/"
"""Separator between segments in a resource path."""

KEY_PATH_DELIMITER = "+"
"""Separator between segments once a path is encoded into a cache key."""


def split_path(path: str) -> list[str]:
    """Split *path* into its non-empty segments.

    Leading and trailing separators are ignored, as are empty components
    produced by doubled separators. The empty path and ``"/"`` both yield
    an empty list.

    Example::

        split_path("/products/123/")  # ["products", "123"]
    """
    return [segment for segment in path.split(PATH_SEPARATOR) if segment]


def join_segments(segments: list[str], delimiter: str = KEY_PATH_DELIMITER) -> str:
    """Join *segments* with *delimiter* (the key-safe ``+`` by default)."""
    return delimiter.join(segments)


def encode_path(path: str) -> str:
    """Return the key-safe encoding of *path* (``/a/b`` becomes ``a+b``)."""
    return join_segments(split_path(path))


def validate_path(path: object) -> str:
    """Check that *path* can be encoded into a cache key and return it.

    Raises:
        InvalidResourcePathError: If *path* is not a string or contains the
            key-safe delimiter, which would make two distinct paths
            encode to the same key.
    """
    if not isinstance(path, str):
        raise InvalidResourcePathError(
            f"Resource path must be a string, got {type(path).__name__}"
        )
    if KEY_PATH_DELIMITER in path:
        raise InvalidResourcePathError(
            f"Resource path {path!r} must not contain {KEY_PATH_DELIMITER!r}"
        )
    return path


def ancestor_prefixes(segments: list[str], floor: int) -> list[list[str]]:
    """Return the prefixes of *segments* visited by the invalidation walk.

    The full path is always included first. Shorter prefixes follow, one
    segment at a time, for as long as more than *floor* segments remain
    after dropping the last one.

    Example::

        ancestor_prefixes(["a", "b", "c", "d"], floor=2)
        # [["a", "b", "c", "d"], ["a", "b", "c"]]
        ancestor_prefixes(["a", "b"], floor=2)
        # [["a", "b"]]
    """
    if floor < 0:
        raise ValueError(f"floor must not be negative, got {floor}")
    current = list(segments)
    result: list[list[str]] = []
    while True:
        result.append(list(current))
        if current:
            current.pop()
        if len(current) <= floor:
            return result
