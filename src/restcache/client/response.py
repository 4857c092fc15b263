"""Response helpers -- extract bodies from :class:`httpx.Response` and print results.

:func:`extract_response_data` is used by the transport to deserialise
untyped responses. :func:`format_api_result` routes a call result through
:meth:`~restcache.output.OutputManager.format_response` for the CLI.
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import BaseModel

from restcache.output import get_output


def extract_response_data(response: httpx.Response) -> Any:
    """Extract the body from an HTTP response.

    Attempts to parse the body as JSON first. If that fails (e.g. the
    response is HTML or plain text), returns the raw text. Returns ``None``
    for responses with no content.
    """
    if not response.content:
        return None

    try:
        return response.json()
    except ValueError:
        pass

    return response.text


def format_api_result(result: Any) -> None:
    """Print a call result to stdout using the global output system.

    Models are dumped to JSON-compatible data first, bytes are decoded
    leniently, and ``None`` (an empty body) prints nothing.
    """
    if result is None:
        return
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json")
    elif isinstance(result, list) and result and isinstance(result[0], BaseModel):
        result = [item.model_dump(mode="json") for item in result]
    elif isinstance(result, bytes):
        result = result.decode("utf-8", errors="replace")
    get_output().format_response(result)
