"""Client for the application's live usage endpoint."""

from typing import Any, Optional

import httpx
from pydantic import ValidationError

from plangate.clients.http import get_json
from plangate.common.exceptions import UsageUnavailableError
from plangate.gating.schemas import UsageSnapshot


class UsageClient:
    """
    Reads the current count of the tracked feature for a subject.

    ``url_template`` contains ``{subject_id}``, e.g.
    ``https://app.example.com/api/users/{subject_id}/accounts/count``.
    The endpoint answers ``{"kindeId": "...", "count": 3}``.
    """

    def __init__(
        self,
        url_template: str,
        token: str = "",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url_template = url_template
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._http = httpx.AsyncClient(headers=headers, timeout=timeout, transport=transport)

    async def get_usage(self, subject_id: str) -> UsageSnapshot:
        url = self.url_template.format(subject_id=subject_id)
        data = await get_json(self._http, url, UsageUnavailableError)
        data.setdefault("subject_id", subject_id)
        try:
            return UsageSnapshot.model_validate(data)
        except ValidationError as e:
            raise UsageUnavailableError(f"Malformed usage response: {e.error_count()} errors") from e

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "UsageClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
