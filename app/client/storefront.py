"""Async HTTP client for the storefront API."""
from typing import Any, Dict, Optional

import httpx
import structlog

from app.core.config import settings

logger = structlog.get_logger()


class StorefrontAPIError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


def _require_success(response: httpx.Response, context: str) -> Dict[str, Any]:
    payload = _json_or_text(response)
    if response.status_code >= 400:
        message = payload.get("message") if isinstance(payload, dict) else payload
        raise StorefrontAPIError(f"{context} failed ({response.status_code}): {message}", response.status_code)
    if not isinstance(payload, dict):
        raise StorefrontAPIError(f"{context} returned non-JSON payload: {payload}", response.status_code)
    if payload.get("success") is False:
        raise StorefrontAPIError(f"{context} returned success=false: {payload.get('message')}", response.status_code)
    return payload.get("data") or {}


class StorefrontClient:
    """Thin wrapper around the public product and cart endpoints.

    Pass ``transport`` to route requests somewhere other than the network,
    e.g. ``httpx.MockTransport`` or ``httpx.ASGITransport(app=app)``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.STOREFRONT_API_URL,
            timeout=timeout if timeout is not None else settings.CLIENT_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def __aenter__(self) -> "StorefrontClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_product(self, slug: str) -> Dict[str, Any]:
        response = await self._client.get(f"/products/{slug}")
        return _require_success(response, f"Fetch product {slug}")["product"]

    async def create_cart(self) -> Dict[str, Any]:
        response = await self._client.post("/cart")
        return _require_success(response, "Create cart")

    async def add_to_cart(self, cart_token: str, variant_id: int, quantity: int) -> Dict[str, Any]:
        response = await self._client.post(
            f"/cart/{cart_token}/items",
            json={"variant_id": variant_id, "quantity": quantity},
        )
        return _require_success(response, "Add to cart")

    async def apply_coupon(self, cart_token: str, code: str) -> Dict[str, Any]:
        response = await self._client.post(f"/cart/{cart_token}/coupon", json={"code": code})
        return _require_success(response, "Apply coupon")

    async def remove_coupon(self, cart_token: str) -> Dict[str, Any]:
        response = await self._client.delete(f"/cart/{cart_token}/coupon")
        return _require_success(response, "Remove coupon")
