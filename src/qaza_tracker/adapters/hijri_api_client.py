"""Calendar authority HTTP client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class HijriApiClient(Protocol):
    """Interface for the calendar authority API."""

    async def convert_to_hijri(self, date_iso: str, calendar: str) -> dict[str, object]:
        """Convert a Gregorian ISO date and return raw API data."""

    async def convert_to_gregorian(
        self, year: int, month: int, day: int
    ) -> dict[str, object]:
        """Convert a Hijri date and return raw API data."""


@dataclass
class HttpxHijriApiClient(HijriApiClient):
    """HTTPX-backed calendar authority client."""

    base_url: str
    http_client: httpx.AsyncClient
    api_key: str | None = None
    timeout_seconds: float = 5.0

    @classmethod
    def create(
        cls, base_url: str, api_key: str | None = None, timeout_seconds: float = 5.0
    ) -> "HttpxHijriApiClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            api_key=api_key,
            timeout_seconds=timeout_seconds,
        )

    async def convert_to_hijri(self, date_iso: str, calendar: str) -> dict[str, object]:
        """Convert a Gregorian date to Hijri."""
        return await self._post(
            "/hijri/convert", {"date": date_iso, "calendar": calendar}
        )

    async def convert_to_gregorian(
        self, year: int, month: int, day: int
    ) -> dict[str, object]:
        """Convert a Hijri date to Gregorian."""
        return await self._post(
            "/hijri/to-gregorian", {"year": year, "month": month, "day": day}
        )

    async def _post(self, path: str, payload: dict[str, object]) -> dict[str, object]:
        headers = {"X-API-Key": self.api_key} if self.api_key else None
        response = await self.http_client.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=headers,
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
