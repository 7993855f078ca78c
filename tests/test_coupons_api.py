from fastapi.testclient import TestClient


def _create(client: TestClient, headers: dict, **overrides):
    payload = {"code": "summer20", "discount_type": "percentage", "discount_value": 20, "max_discount": 500}
    payload.update(overrides)
    return client.post("/api/v1/coupons/", json=payload, headers=headers)


def test_coupon_routes_require_admin_key(client: TestClient, admin_headers: dict):
    assert client.get("/api/v1/coupons/").status_code == 403
    assert client.get("/api/v1/coupons/", headers={"X-Admin-Key": "wrong"}).status_code == 403
    assert client.get("/api/v1/coupons/", headers=admin_headers).status_code == 200


def test_create_coupon_stores_upper_case_code(client: TestClient, admin_headers: dict):
    response = _create(client, admin_headers)

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["code"] == "SUMMER20"
    assert data["discount_type"] == "percentage"
    assert data["is_active"] is True

    duplicate = _create(client, admin_headers, code="Summer20")
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Coupon code already exists"


def test_percentage_over_hundred_is_rejected(client: TestClient, admin_headers: dict):
    response = _create(client, admin_headers, code="TOOMUCH", discount_value=150)

    assert response.status_code == 400


def test_update_list_and_delete_coupon(client: TestClient, admin_headers: dict):
    coupon_id = _create(client, admin_headers).json()["data"]["id"]

    updated = client.put(
        f"/api/v1/coupons/{coupon_id}",
        json={"is_active": False, "min_order_value": 1500},
        headers=admin_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["is_active"] is False
    assert updated.json()["data"]["min_order_value"] == 1500

    listed = client.get("/api/v1/coupons/", headers=admin_headers).json()["data"]
    assert [c["code"] for c in listed] == ["SUMMER20"]

    deleted = client.delete(f"/api/v1/coupons/{coupon_id}", headers=admin_headers)
    assert deleted.status_code == 200
    assert client.delete(f"/api/v1/coupons/{coupon_id}", headers=admin_headers).status_code == 404


def test_inactive_coupon_cannot_be_applied(client: TestClient, admin_headers: dict):
    coupon_id = _create(client, admin_headers, code="PAUSED", discount_type="fixed", discount_value=50).json()["data"]["id"]
    client.put(f"/api/v1/coupons/{coupon_id}", json={"is_active": False}, headers=admin_headers)
    token = client.post("/api/v1/cart").json()["data"]["token"]

    response = client.post(f"/api/v1/cart/{token}/coupon", json={"code": "PAUSED"})

    assert response.status_code == 400
