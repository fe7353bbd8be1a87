
import logging
from typing import List, Optional, Protocol

import httpx

from common import ids
from dashboard_service.errors import ClaimError, LoadError, StockServiceError
from dashboard_service.models import Item

logger = logging.getLogger("stock_client")


class StockService(Protocol):
    async def fetch_inventory(self) -> List[Item]: ...

    async def claim_one(self, item_id: str) -> Item: ...


def _error_from_response(response: httpx.Response, fallback: str, error_cls: type) -> StockServiceError:
    code = None
    message = fallback
    try:
        detail = response.json().get("error") or {}
        code = detail.get("code")
        message = detail.get("message") or fallback
    except (ValueError, AttributeError):
        pass
    return error_cls(message, code=code)


class HttpStockService:
    """StockService over the inventory service's HTTP API."""

    def __init__(
        self,
        base_url: str,
        load_timeout_ms: int = 10000,
        claim_timeout_ms: int = 5000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.load_timeout_ms = load_timeout_ms
        self.claim_timeout_ms = claim_timeout_ms
        self._transport = transport

    def _client(self, timeout_ms: int) -> httpx.AsyncClient:
        # Convert ms to seconds
        timeout_sec = timeout_ms / 1000.0
        return httpx.AsyncClient(transport=self._transport, timeout=timeout_sec)

    async def fetch_inventory(self) -> List[Item]:
        url = f"{self.base_url}/inventory"
        correlation_id = ids.generate_correlation_id()
        headers = {"X-Correlation-Id": correlation_id}

        try:
            async with self._client(self.load_timeout_ms) as client:
                response = await client.get(url, headers=headers)
        except httpx.TimeoutException as e:
            raise LoadError("Inventory service timed out", code="INVENTORY_TIMEOUT") from e
        except httpx.RequestError as e:
            raise LoadError("Inventory service unreachable", code="INVENTORY_UNREACHABLE") from e

        if response.status_code >= 400:
            logger.warning(
                "Inventory load failed with %d, correlation %s", response.status_code, correlation_id
            )
            raise _error_from_response(response, "Failed to load inventory", LoadError)

        try:
            return [Item.model_validate(raw) for raw in response.json()]
        except ValueError as e:
            raise LoadError("Inventory service returned a malformed list", code="BAD_RESPONSE") from e

    async def claim_one(self, item_id: str) -> Item:
        url = f"{self.base_url}/inventory/{item_id}/claim"
        correlation_id = ids.generate_correlation_id()
        headers = {"X-Correlation-Id": correlation_id}

        try:
            async with self._client(self.claim_timeout_ms) as client:
                response = await client.post(url, headers=headers)
        except httpx.TimeoutException as e:
            raise ClaimError("Inventory service timed out", code="INVENTORY_TIMEOUT") from e
        except httpx.RequestError as e:
            raise ClaimError("Inventory service unreachable", code="INVENTORY_UNREACHABLE") from e

        if response.status_code >= 400:
            logger.warning(
                "Claim for %s failed with %d, correlation %s", item_id, response.status_code, correlation_id
            )
            raise _error_from_response(response, "Failed to claim item", ClaimError)

        try:
            return Item.model_validate(response.json()["item"])
        except (KeyError, TypeError, ValueError) as e:
            raise ClaimError("Inventory service returned a malformed item", code="BAD_RESPONSE") from e
