from fastapi.testclient import TestClient


def _product_payload(**overrides) -> dict:
    payload = {
        "name": "Creatine Monohydrate",
        "description": "Micronised creatine",
        "flavors": [{"name": "Unflavored"}, {"name": "Lemon"}],
        "weights": [{"value": 250, "unit": "g"}, {"value": 500, "unit": "g"}],
        "variants": [
            {"sku": "CREA-UNF-250", "flavor_index": 0, "weight_index": 0, "price": 799, "quantity": 10},
            {"sku": "CREA-LEM-500", "flavor_index": 1, "weight_index": 1, "price": 1399, "sale_price": 1199, "quantity": 4},
        ],
        "image_urls": ["/img/creatine.jpg"],
    }
    payload.update(overrides)
    return payload


def test_create_product_requires_admin_key(client: TestClient):
    response = client.post("/api/v1/admin/products", json=_product_payload())

    assert response.status_code == 403
    assert response.json()["message"] == "Admin access required"


def test_create_product_with_options_and_variants(client: TestClient, admin_headers: dict):
    response = client.post("/api/v1/admin/products", json=_product_payload(), headers=admin_headers)

    assert response.status_code == 201
    product = response.json()["data"]["product"]
    assert product["slug"] == "creatine-monohydrate"
    assert [w["label"] for w in product["weight_options"]] == ["250g", "500g"]
    assert product["base_price"] == 799.0
    lemon = next(f for f in product["flavor_options"] if f["name"] == "Lemon")
    lemon_variant = next(v for v in product["variants"] if v["sku"] == "CREA-LEM-500")
    assert lemon_variant["flavor_id"] == lemon["id"]

    public = client.get("/api/v1/products/creatine-monohydrate")
    assert public.status_code == 200


def test_duplicate_active_combination_is_rejected(client: TestClient, admin_headers: dict):
    variants = [
        {"sku": "DUP-1", "flavor_index": 0, "weight_index": 0, "price": 500, "quantity": 1},
        {"sku": "DUP-2", "flavor_index": 0, "weight_index": 0, "price": 550, "quantity": 1},
    ]

    response = client.post("/api/v1/admin/products", json=_product_payload(variants=variants), headers=admin_headers)

    assert response.status_code == 409
    assert client.get("/api/v1/products/creatine-monohydrate").status_code == 404


def test_product_without_variants_fails_validation(client: TestClient, admin_headers: dict):
    response = client.post("/api/v1/admin/products", json=_product_payload(variants=[]), headers=admin_headers)

    assert response.status_code == 422
    assert response.json()["message"] == "Validation failed"


def test_update_variant_price_and_stock(client: TestClient, admin_headers: dict):
    product = client.post("/api/v1/admin/products", json=_product_payload(), headers=admin_headers).json()["data"]["product"]
    variant_id = product["variants"][1]["id"]

    response = client.patch(
        f"/api/v1/admin/variants/{variant_id}",
        json={"sale_price": 0, "quantity": 0},
        headers=admin_headers,
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["sale_price"] is None
    assert data["quantity"] == 0


def test_reactivating_variant_cannot_duplicate_combination(client: TestClient, admin_headers: dict):
    variants = [
        {"sku": "RE-1", "flavor_index": 0, "weight_index": 0, "price": 500, "quantity": 1},
        {"sku": "RE-2", "flavor_index": 0, "weight_index": 0, "price": 550, "quantity": 1, "is_active": False},
    ]
    product = client.post(
        "/api/v1/admin/products", json=_product_payload(variants=variants), headers=admin_headers
    ).json()["data"]["product"]
    inactive_id = next(v["id"] for v in product["variants"] if v["sku"] == "RE-2")

    response = client.patch(f"/api/v1/admin/variants/{inactive_id}", json={"is_active": True}, headers=admin_headers)

    assert response.status_code == 409


def test_unknown_option_index_reports_field_error(client: TestClient, admin_headers: dict):
    variants = [{"sku": "BAD-IDX", "flavor_index": 5, "weight_index": 0, "price": 500, "quantity": 1}]

    response = client.post("/api/v1/admin/products", json=_product_payload(variants=variants), headers=admin_headers)

    assert response.status_code == 400
    payload = response.json()
    assert payload["message"] == "Unknown flavor option index 5"
    assert payload["errors"] == [{"field": "flavor_index", "value": 5}]
