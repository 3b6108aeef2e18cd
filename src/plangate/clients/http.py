"""Shared HTTP helper for collaborator clients."""

import json
from typing import Any

import httpx

from plangate.common.exceptions import CollaboratorError


async def get_json(
    http: httpx.AsyncClient,
    path: str,
    error: type[CollaboratorError],
    **kwargs: Any,
) -> dict[str, Any]:
    """GET ``path`` and return the JSON object body.

    Timeouts, transport errors, non-2xx statuses and non-object bodies are
    raised as ``error``.
    """
    try:
        resp = await http.get(path, **kwargs)
    except httpx.TimeoutException as e:
        raise error(f"Timed out calling {path}") from e
    except httpx.HTTPError as e:
        raise error(f"Request to {path} failed: {e}") from e

    if resp.status_code >= 400:
        raise error(f"{path} returned HTTP {resp.status_code}")
    try:
        data = resp.json()
    except (json.JSONDecodeError, ValueError) as e:
        raise error(f"{path} returned invalid JSON") from e
    if not isinstance(data, dict):
        raise error(f"{path} returned {type(data).__name__}, expected an object")
    return data
