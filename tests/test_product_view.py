import asyncio
import json

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from app.client.product_view import ProductView, RequestSequencer
from app.client.storefront import StorefrontAPIError, StorefrontClient
from app.core.exceptions import NoMatchingVariant, OutOfStock
from app.main import app
from app.services.variant_service import SelectionState


def _product_payload(slug: str, variant_offset: int = 0) -> dict:
    return {
        "slug": slug,
        "flavor_options": [{"id": 1, "name": "Chocolate"}, {"id": 2, "name": "Vanilla"}],
        "weight_options": [
            {"id": 10, "value": 1, "unit": "kg", "label": "1kg"},
            {"id": 11, "value": 2, "unit": "kg", "label": "2kg"},
        ],
        "variants": [
            {"id": variant_offset + 1, "flavor_id": 1, "weight_id": 10, "quantity": 5, "is_active": True},
            {"id": variant_offset + 2, "flavor_id": 2, "weight_id": 11, "quantity": 2, "is_active": True},
        ],
    }


def _envelope(data) -> dict:
    return {"success": True, "message": "Success", "data": data, "errors": None}


def _client_for(handler) -> StorefrontClient:
    return StorefrontClient(base_url="http://storefront.test/api/v1", transport=httpx.MockTransport(handler))


def test_request_sequencer_only_latest_is_current():
    sequencer = RequestSequencer()
    first = sequencer.issue()
    second = sequencer.issue()

    assert second > first
    assert sequencer.is_latest(second) is True
    assert sequencer.is_latest(first) is False


def test_stale_product_response_is_discarded():
    async def handler(request: httpx.Request) -> httpx.Response:
        slug = request.url.path.rsplit("/", 1)[-1]
        if slug == "slow-whey":
            await asyncio.sleep(0.05)
        return httpx.Response(200, json=_envelope({"product": _product_payload(slug)}))

    async def scenario():
        async with _client_for(handler) as storefront:
            view = ProductView(storefront)
            results = await asyncio.gather(view.load("slow-whey"), view.load("fast-whey"))
            return view, results

    view, results = asyncio.run(scenario())

    assert results == [False, True]
    assert view.product["slug"] == "fast-whey"
    assert view.state == SelectionState.FULLY_SELECTED


def test_view_selection_delegates_to_state_machine():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=_envelope({"product": _product_payload("whey")}))

    async def scenario():
        async with _client_for(handler) as storefront:
            view = ProductView(storefront)
            await view.load("whey")
            return view

    view = asyncio.run(scenario())

    assert view.selected_variant.id == 1
    view.select_flavor(2)
    assert view.selector.selected_weight.id == 11
    clamp = view.set_quantity(9)
    assert clamp.quantity == 2
    assert clamp.limited_stock is True

    with pytest.raises(NoMatchingVariant):
        view.select_weight(404)


def test_add_to_cart_allows_one_request_in_flight():
    cart_requests = []

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            return httpx.Response(200, json=_envelope({"product": _product_payload("whey")}))
        cart_requests.append(json.loads(request.content))
        await asyncio.sleep(0.05)
        return httpx.Response(201, json=_envelope({"cart_item_id": 7, "cart": {}}))

    async def scenario():
        async with _client_for(handler) as storefront:
            view = ProductView(storefront)
            await view.load("whey")
            results = await asyncio.gather(view.add_to_cart("cart-token"), view.add_to_cart("cart-token"))
            return view, results

    view, results = asyncio.run(scenario())

    assert results[0]["cart_item_id"] == 7
    assert results[1] is None
    assert cart_requests == [{"variant_id": 1, "quantity": 1}]
    assert view.is_adding is False


def test_add_to_cart_without_selection_raises():
    def handler(request: httpx.Request) -> httpx.Response:
        payload = _product_payload("sold-out")
        for variant in payload["variants"]:
            variant["quantity"] = 0
        return httpx.Response(200, json=_envelope({"product": payload}))

    async def scenario():
        async with _client_for(handler) as storefront:
            view = ProductView(storefront)
            await view.load("sold-out")
            await view.add_to_cart("cart-token")

    with pytest.raises(NoMatchingVariant):
        asyncio.run(scenario())


def test_add_to_cart_out_of_stock_sends_no_request():
    cart_requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            payload = _product_payload("whey")
            payload["variants"][1]["quantity"] = 0
            return httpx.Response(200, json=_envelope({"product": payload}))
        cart_requests.append(json.loads(request.content))
        return httpx.Response(201, json=_envelope({"cart_item_id": 7, "cart": {}}))

    async def scenario():
        async with _client_for(handler) as storefront:
            view = ProductView(storefront)
            await view.load("whey")
            view.select_flavor(2)
            assert view.selected_variant.id == 2
            await view.add_to_cart("cart-token")

    with pytest.raises(OutOfStock):
        asyncio.run(scenario())
    assert cart_requests == []


def test_failed_stale_product_request_is_discarded():
    async def handler(request: httpx.Request) -> httpx.Response:
        slug = request.url.path.rsplit("/", 1)[-1]
        if slug == "old-whey":
            await asyncio.sleep(0.05)
            return httpx.Response(404, json={"success": False, "message": "Product not found", "data": None, "errors": []})
        return httpx.Response(200, json=_envelope({"product": _product_payload(slug)}))

    async def scenario():
        async with _client_for(handler) as storefront:
            view = ProductView(storefront)
            results = await asyncio.gather(view.load("old-whey"), view.load("new-whey"))
            return view, results

    view, results = asyncio.run(scenario())

    assert results == [False, True]
    assert view.product["slug"] == "new-whey"


def test_error_envelope_raises_storefront_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"success": False, "message": "Product not found", "data": None, "errors": []})

    async def scenario():
        async with _client_for(handler) as storefront:
            await storefront.get_product("missing")

    with pytest.raises(StorefrontAPIError) as exc_info:
        asyncio.run(scenario())
    assert exc_info.value.status_code == 404
    assert "Product not found" in str(exc_info.value)


def test_client_against_application(client: TestClient, db_session: Session, admin_headers: dict):
    client.post(
        "/api/v1/admin/products",
        json={
            "name": "Whey Isolate",
            "flavors": [{"name": "Chocolate"}],
            "weights": [{"value": 1, "unit": "kg"}],
            "variants": [{"sku": "ISO-C-1", "flavor_index": 0, "weight_index": 0, "price": 1500, "quantity": 3}],
        },
        headers=admin_headers,
    )
    coupon = client.post(
        "/api/v1/coupons/",
        json={"code": "ISO100", "discount_type": "fixed", "discount_value": 100},
        headers=admin_headers,
    )
    assert coupon.status_code == 201

    async def scenario():
        transport = httpx.ASGITransport(app=app)
        async with StorefrontClient(base_url="http://testserver/api/v1", transport=transport) as storefront:
            view = ProductView(storefront)
            await view.load("whey-isolate")
            cart = await storefront.create_cart()
            view.set_quantity(2)
            added = await view.add_to_cart(cart["token"])
            discounted = await storefront.apply_coupon(cart["token"], "iso100")
            restored = await storefront.remove_coupon(cart["token"])
            return added, discounted, restored

    added, discounted, restored = asyncio.run(scenario())

    assert added["cart"]["totals"]["subtotal"] == 3000.0
    assert discounted["coupon_code"] == "ISO100"
    assert discounted["totals"]["total"] == 2900.0
    assert restored["totals"]["total"] == 3000.0
