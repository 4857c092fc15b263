"""Deterministic cache keys for API calls.

A key is built from the six inputs that identify a call -- HTTP method,
resource path, query parameters, body, header parameters and the response
type hint -- joined in a fixed order with :data:`FIELD_SEPARATOR`::

    GET-products+123-QP:<sha256>-PD-HP-RT:json

Parameter maps are reduced to a SHA-256 digest of a canonical JSON
serialization (mapping keys sorted at every level), so two calls carrying
the same logical parameters built in a different insertion order share a
key. Empty parameter groups keep their bare label. The path is encoded with
:func:`~restcache.cache.paths.encode_path` so that every key for a GET on
``/a/b`` starts with :func:`search_prefix` of ``["a", "b"]``.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import BaseModel

from restcache.cache.paths import KEY_PATH_DELIMITER, encode_path, join_segments

FIELD_SEPARATOR = "-"
"""Separator between the fields of a cache key."""

CACHEABLE_METHOD = "GET"
"""The only HTTP method whose responses are cached."""

QUERY_LABEL = "QP"
POST_DATA_LABEL = "PD"
HEADER_LABEL = "HP"
RESPONSE_TYPE_LABEL = "RT"


def build_key(
    method: str,
    path: str,
    query_params: Any = None,
    post_data: Any = None,
    header_params: Any = None,
    response_type: Any = None,
) -> str:
    """Build the cache key for one API call.

    Args:
        method: HTTP method; compared case-insensitively.
        path: Resource path such as ``/products/123``.
        query_params: Query string parameters (mapping or sequence of pairs).
        post_data: Request body (mapping, sequence, model, or scalar).
        header_params: Request headers.
        response_type: Deserialisation hint passed to the transport, either
            a string or a class.

    Returns:
        The key string. Identical inputs always produce identical keys.
    """
    fields = [
        method.upper(),
        encode_path(path),
        _labelled(QUERY_LABEL, query_params),
        _labelled(POST_DATA_LABEL, post_data),
        _labelled(HEADER_LABEL, header_params),
        _response_type_label(response_type),
    ]
    return FIELD_SEPARATOR.join(fields)


def search_prefix(segments: list[str]) -> str:
    """Return the pattern matching cached GETs for the path made of *segments*."""
    return CACHEABLE_METHOD + FIELD_SEPARATOR + join_segments(segments)


def key_matches(key: str, pattern: str) -> bool:
    """Return True if *key* belongs to the path *pattern* or one of its descendants.

    A backend prefix search for ``GET-products+12`` also returns keys for
    ``products/123``; those siblings are rejected here because the character
    after the pattern must end the path (``-``) or start a child segment
    (``+``).
    """
    if not key.startswith(pattern):
        return False
    return key[len(pattern):len(pattern) + 1] in (FIELD_SEPARATOR, KEY_PATH_DELIMITER)


def digest(params: Any) -> str:
    """Return the SHA-256 hex digest of the canonical serialization of *params*."""
    raw = json.dumps(
        _canonical(params),
        sort_keys=True,
        separators=(",", ":"),
        default=str,
    )
    return hashlib.sha256(raw.encode("ascii")).hexdigest()


def is_empty(params: Any) -> bool:
    """Return True for ``None`` and empty containers or strings."""
    if params is None:
        return True
    if isinstance(params, (Mapping, list, tuple, set, frozenset, str, bytes)):
        return len(params) == 0
    return False


def _labelled(label: str, params: Any) -> str:
    if is_empty(params):
        return label
    return f"{label}:{digest(params)}"


def _response_type_label(response_type: Any) -> str:
    name = _response_type_name(response_type)
    if not name:
        return RESPONSE_TYPE_LABEL
    return f"{RESPONSE_TYPE_LABEL}:{name}"


def _response_type_name(response_type: Any) -> Optional[str]:
    if response_type is None:
        return None
    if isinstance(response_type, str):
        return response_type
    if isinstance(response_type, type):
        return f"{response_type.__module__}.{response_type.__qualname__}"
    return repr(response_type)


def _canonical(value: Any) -> Any:
    """Convert *value* into plain JSON-compatible data."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return {_canonical_key(k): _canonical(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return sorted((_canonical(v) for v in value), key=repr)
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="backslashreplace")
    return value


def _canonical_key(key: Any) -> str:
    # Non-str keys are tagged with their type so 1 and "1" stay distinct.
    # A tag starts with NUL followed by a module name; str keys that already
    # start with NUL get a second one.
    if isinstance(key, str):
        return "\x00" + key if key.startswith("\x00") else key
    kind = type(key)
    return f"\x00{kind.__module__}.{kind.__qualname__}:{key!r}"
