"""
Catalog API HTTP Client.

Thin async wrapper over the single ``/api/data`` route. Every failure is
raised as ``CatalogApiError`` so the sync layer can decide between queueing
an operation (network failure, 5xx) and surfacing it (4xx).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class CatalogApiError(Exception):
    def __init__(self, message: str, *, status_code: Optional[int] = None, payload: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}

    @property
    def retryable(self) -> bool:
        """Network failures and server errors; the request may succeed later."""
        return self.status_code is None or self.status_code >= 500


class CatalogApiClient:
    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self.base_url}/api/data"

    async def _request(
        self,
        method: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.request(method, self.url, params=params, json=json, headers=headers)
        except httpx.HTTPError as e:
            logger.info("Catalog API unreachable (%s %s): %s", method, self.url, e)
            raise CatalogApiError(f"Catalog API unreachable: {e}") from e

        try:
            data = response.json() if response.content else {}
        except ValueError as e:
            raise CatalogApiError("Catalog API returned invalid JSON") from e

        if response.status_code >= 400:
            payload = data if isinstance(data, dict) else {}
            message = payload.get("error") or payload.get("detail") or f"HTTP {response.status_code}"
            raise CatalogApiError(str(message), status_code=response.status_code, payload=payload)
        return data

    async def fetch_all(self) -> Dict[str, Any]:
        return await self._request("GET")

    async def create(self, entity_type: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        result = await self._request("POST", json={"type": entity_type, **fields})
        return result[entity_type]

    async def delete(self, entity_type: str, key: Optional[str] = None) -> None:
        params = {"type": entity_type}
        if key is not None:
            params["key"] = key
        await self._request("DELETE", params=params)

    async def clear_all(self) -> None:
        await self.delete("all")

    async def rename_subcategory(self, key: str, name: str) -> Dict[str, Any]:
        result = await self._request("PUT", json={"type": "subcategory", "key": key, "name": name})
        return result["subcategory"]
