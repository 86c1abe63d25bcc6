from decimal import Decimal
from uuid import uuid4

from fastapi.testclient import TestClient


def test_products_require_authentication(client: TestClient):
    response = client.get("/api/products")

    assert response.status_code == 401
    assert response.json()["code"] == "UNAUTHENTICATED"


def test_list_products(client: TestClient, client_headers, create_product):
    create_product(name="Widget", unit_price="10.00")
    create_product(name="Gadget", unit_price="20.00")

    response = client.get("/api/products", headers=client_headers)

    assert response.status_code == 200
    assert {product["name"] for product in response.json()} == {"Widget", "Gadget"}


def test_seller_creates_product(client: TestClient, seller_headers):
    response = client.post(
        "/api/products",
        json={"name": "Widget", "description": "A small widget", "unit_price": "19.99"},
        headers=seller_headers,
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["name"] == "Widget"
    assert Decimal(str(payload["unit_price"])) == Decimal("19.99")


def test_client_cannot_create_product(client: TestClient, client_headers):
    response = client.post(
        "/api/products",
        json={"name": "Widget", "unit_price": "1.00"},
        headers=client_headers,
    )

    assert response.status_code == 403
    payload = response.json()
    assert payload["code"] == "INSUFFICIENT_PERMISSIONS"
    assert payload["message"] == "Insufficient permissions. Required one of: Shop, Administrator"


def test_create_product_duplicate_name(client: TestClient, admin_headers, create_product):
    create_product(name="Widget")

    response = client.post(
        "/api/products",
        json={"name": "Widget", "unit_price": "5.00"},
        headers=admin_headers,
    )

    assert response.status_code == 422
    assert response.json()["errors"]["name"] == ["The name has already been taken."]


def test_create_product_field_rules(client: TestClient, seller_headers):
    response = client.post(
        "/api/products",
        json={"name": "x" * 256, "description": "d" * 1001, "unit_price": "-1"},
        headers=seller_headers,
    )

    assert response.status_code == 422
    assert {"name", "description", "unit_price"} <= set(response.json()["errors"])


def test_create_product_rejects_excess_precision(client: TestClient, seller_headers):
    response = client.post(
        "/api/products",
        json={"name": "Precise", "unit_price": "9.999"},
        headers=seller_headers,
    )

    assert response.status_code == 422
    assert "unit_price" in response.json()["errors"]


def test_product_price_must_fit_storage(client: TestClient, seller_headers, create_product):
    too_large = client.post(
        "/api/products",
        json={"name": "Yacht", "unit_price": "100000000.00"},
        headers=seller_headers,
    )
    assert too_large.status_code == 422
    assert "unit_price" in too_large.json()["errors"]

    product = create_product(name="Boat")
    update = client.put(
        f"/api/products/{product.id}",
        json={"unit_price": "1.001"},
        headers=seller_headers,
    )
    assert update.status_code == 422
    assert "unit_price" in update.json()["errors"]

    largest = client.post(
        "/api/products",
        json={"name": "Ship", "unit_price": "99999999.99"},
        headers=seller_headers,
    )
    assert largest.status_code == 201


def test_get_product(client: TestClient, client_headers, create_product):
    product = create_product(name="Widget", unit_price="3.50")

    response = client.get(f"/api/products/{product.id}", headers=client_headers)

    assert response.status_code == 200
    assert response.json()["id"] == str(product.id)


def test_get_product_not_found(client: TestClient, client_headers):
    response = client.get(f"/api/products/{uuid4()}", headers=client_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Product not found"


def test_update_product_partial(client: TestClient, seller_headers, create_product):
    product = create_product(name="Widget", unit_price="3.50", description="Old")

    response = client.put(
        f"/api/products/{product.id}",
        json={"unit_price": "4.25"},
        headers=seller_headers,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["name"] == "Widget"
    assert payload["description"] == "Old"
    assert Decimal(str(payload["unit_price"])) == Decimal("4.25")


def test_update_product_keeps_own_name(client: TestClient, seller_headers, create_product):
    product = create_product(name="Widget")
    create_product(name="Gadget")

    same = client.put(f"/api/products/{product.id}", json={"name": "Widget"}, headers=seller_headers)
    assert same.status_code == 200

    taken = client.put(f"/api/products/{product.id}", json={"name": "Gadget"}, headers=seller_headers)
    assert taken.status_code == 422
    assert taken.json()["errors"]["name"] == ["The name has already been taken."]


def test_update_product_rejects_null_price(client: TestClient, seller_headers, create_product):
    product = create_product()

    response = client.put(f"/api/products/{product.id}", json={"unit_price": None}, headers=seller_headers)

    assert response.status_code == 422
    assert "unit_price" in response.json()["errors"]


def test_search_matches_name_or_description(client: TestClient, client_headers, create_product):
    create_product(name="Widget")
    create_product(name="Gadget")
    create_product(name="Sprocket", description="Pairs with any widget")
    create_product(name="Bolt")

    response = client.get("/api/products/search/query", params={"query": "get"}, headers=client_headers)

    assert response.status_code == 200
    assert {product["name"] for product in response.json()} == {"Widget", "Gadget", "Sprocket"}


def test_search_treats_wildcards_literally(client: TestClient, client_headers, create_product):
    create_product(name="Widget")
    create_product(name="Bolt_Kit", description="Ships at 100% assembled")

    underscores = client.get("/api/products/search/query", params={"query": "__"}, headers=client_headers)
    literal = client.get("/api/products/search/query", params={"query": "t_K"}, headers=client_headers)
    percent = client.get("/api/products/search/query", params={"query": "0%"}, headers=client_headers)

    assert underscores.json() == []
    assert [product["name"] for product in literal.json()] == ["Bolt_Kit"]
    assert [product["name"] for product in percent.json()] == ["Bolt_Kit"]


def test_search_query_length(client: TestClient, client_headers):
    response = client.get("/api/products/search/query", params={"query": "x"}, headers=client_headers)

    assert response.status_code == 422
    assert "query" in response.json()["errors"]


def test_price_range_is_inclusive(client: TestClient, client_headers, create_product):
    create_product(name="Cheap", unit_price="5.00")
    create_product(name="Middle", unit_price="10.00")
    create_product(name="Edge", unit_price="20.00")
    create_product(name="Pricey", unit_price="20.01")

    response = client.get(
        "/api/products/price-range/filter",
        params={"min_price": "10", "max_price": "20"},
        headers=client_headers,
    )

    assert response.status_code == 200
    assert [product["name"] for product in response.json()] == ["Middle", "Edge"]


def test_price_range_max_below_min(client: TestClient, client_headers):
    response = client.get(
        "/api/products/price-range/filter",
        params={"min_price": "50", "max_price": "10"},
        headers=client_headers,
    )

    assert response.status_code == 422
    assert "max_price" in response.json()["errors"]


def test_price_range_requires_both_bounds(client: TestClient, client_headers):
    response = client.get(
        "/api/products/price-range/filter",
        params={"min_price": "10"},
        headers=client_headers,
    )

    assert response.status_code == 422
    assert "max_price" in response.json()["errors"]


def test_delete_unreferenced_product(client: TestClient, seller_headers, create_product):
    product = create_product()

    response = client.delete(f"/api/products/{product.id}", headers=seller_headers)

    assert response.status_code == 200
    assert response.json()["message"] == "Product deleted successfully"


def test_delete_referenced_product_conflicts(
    client: TestClient,
    seller_headers,
    seller,
    client_user,
    create_product,
    create_invoice,
):
    product = create_product(name="Widget")
    create_invoice(seller, client_user, [product])
    create_invoice(seller, client_user, [product])

    response = client.delete(f"/api/products/{product.id}", headers=seller_headers)

    assert response.status_code == 409
    payload = response.json()
    assert payload["message"] == "Cannot delete product. It is used in 2 invoice item(s)."
    assert payload["invoice_items_count"] == 2

    still_there = client.get(f"/api/products/{product.id}", headers=seller_headers)
    assert still_there.status_code == 200
