"""
HTTP API tests through the Flask test client (SQL-backed storage).
"""

import pytest


def _warehouse(client, headers, code="WH-A", name="Alpha"):
    response = client.post("/api/warehouses", json={"name": name, "code": code}, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _product(client, headers, sku="SKU1", reorder_level=10):
    response = client.post(
        "/api/products",
        json={"sku": sku, "name": "Widget", "category": "Tools", "reorder_level": reorder_level},
        headers=headers,
    )
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _stock(client, headers, product_id, warehouse_id, difference):
    response = client.post(
        "/api/documents/adjustments",
        json={"warehouse_id": warehouse_id, "lines": [{"product_id": product_id, "difference": difference}]},
        headers=headers,
    )
    assert response.status_code == 201, response.get_json()
    adjustment = response.get_json()
    response = client.post(f"/api/documents/adjustments/{adjustment['id']}/validate", headers=headers)
    assert response.status_code == 200, response.get_json()
    return response.get_json()


class TestAuthAndHealth:
    def test_health_is_public(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        assert response.get_json()["checks"]["database"]["status"] == "healthy"

    def test_missing_user_header(self, client):
        response = client.get("/api/products")
        assert response.status_code == 401
        assert response.get_json()["error"] == "Authentication required"

    def test_first_request_seeds_defaults(self, client, alice_headers):
        warehouses = client.get("/api/warehouses", headers=alice_headers).get_json()
        products = client.get("/api/products", headers=alice_headers).get_json()

        assert [w["code"] for w in warehouses] == ["WH-001"]
        assert [p["sku"] for p in products] == ["SAMPLE-001"]


class TestCatalogRoutes:
    def test_create_and_patch_product(self, client, alice_headers):
        product = _product(client, alice_headers, sku="abc")
        assert product["sku"] == "ABC"

        response = client.patch(f"/api/products/{product['id']}", json={"reorder_level": 3}, headers=alice_headers)
        assert response.status_code == 200
        assert response.get_json()["reorder_level"] == 3

    def test_product_payload_validation(self, client, alice_headers):
        response = client.post("/api/products", json={"name": "No SKU"}, headers=alice_headers)
        assert response.status_code == 400
        assert "sku" in response.get_json()["error"]

        response = client.post("/api/products", json={"sku": "X", "name": "Y", "price": 5}, headers=alice_headers)
        assert response.status_code == 400

        response = client.post("/api/products", json={"sku": "X", "name": "Y", "reorder_level": 2.5}, headers=alice_headers)
        assert response.status_code == 400

    def test_duplicate_warehouse_code_conflict(self, client, alice_headers):
        _warehouse(client, alice_headers, code="WH-A")

        response = client.post("/api/warehouses", json={"name": "Again", "code": "wh-a"}, headers=alice_headers)
        assert response.status_code == 409

    def test_unknown_product_404(self, client, alice_headers):
        assert client.get("/api/products/prod-missing", headers=alice_headers).status_code == 404

    def test_scopes_are_isolated(self, client, alice_headers, bob_headers):
        _warehouse(client, alice_headers, code="ONLY-ALICE")

        codes = [w["code"] for w in client.get("/api/warehouses", headers=bob_headers).get_json()]
        assert "ONLY-ALICE" not in codes


class TestDocumentRoutes:
    def test_delivery_without_stock_is_409(self, client, alice_headers):
        warehouse = _warehouse(client, alice_headers)
        product = _product(client, alice_headers)

        response = client.post(
            "/api/documents/deliveries",
            json={
                "warehouse_id": warehouse["id"],
                "status": "Ready",
                "lines": [{"product_id": product["id"], "quantity": 5}],
            },
            headers=alice_headers,
        )
        assert response.status_code == 201
        delivery = response.get_json()
        assert delivery["document_number"] == "DEL-001"

        response = client.post(f"/api/documents/deliveries/{delivery['id']}/validate", headers=alice_headers)
        assert response.status_code == 409
        body = response.get_json()
        assert body["available"] == 0
        assert body["requested"] == 5
        assert "Available: 0, Requested: 5" in body["error"]

    def test_adjust_transfer_and_read_stock(self, client, alice_headers):
        source = _warehouse(client, alice_headers, code="WH-A")
        destination = _warehouse(client, alice_headers, code="WH-B", name="Beta")
        product = _product(client, alice_headers)
        adjustment = _stock(client, alice_headers, product["id"], source["id"], 20)
        assert adjustment["status"] == "Done"
        assert adjustment["validated_at"].endswith("Z")

        response = client.post(
            "/api/documents/transfers",
            json={
                "source_warehouse_id": source["id"],
                "destination_warehouse_id": destination["id"],
                "lines": [{"product_id": product["id"], "quantity": 5}],
            },
            headers=alice_headers,
        )
        transfer = response.get_json()
        response = client.post(f"/api/documents/transfers/{transfer['id']}/validate", headers=alice_headers)
        assert response.status_code == 200

        stock = client.get(f"/api/stock/{product['id']}", headers=alice_headers).get_json()
        assert stock["total"] == 20
        assert {loc["warehouse_id"]: loc["quantity"] for loc in stock["locations"]} == {
            source["id"]: 15,
            destination["id"]: 5,
        }

        at_source = client.get(f"/api/stock/{product['id']}/{source['id']}", headers=alice_headers).get_json()
        assert at_source["quantity"] == 15

        movements = client.get(
            "/api/movements", query_string={"document_id": transfer["id"]}, headers=alice_headers
        ).get_json()
        assert sorted(m["movement_type"] for m in movements) == ["Transfer In", "Transfer Out"]

        availability = client.get(
            "/api/stock/availability",
            query_string={"product_id": product["id"], "warehouse_id": source["id"], "quantity": 16},
            headers=alice_headers,
        ).get_json()
        assert availability["is_available"] is False
        assert availability["available"] == 15

    def test_same_warehouse_transfer_is_400(self, client, alice_headers):
        warehouse = _warehouse(client, alice_headers)

        response = client.post(
            "/api/documents/transfers",
            json={"source_warehouse_id": warehouse["id"], "destination_warehouse_id": warehouse["id"]},
            headers=alice_headers,
        )
        assert response.status_code == 400

    def test_lifecycle_conflicts(self, client, alice_headers):
        warehouse = _warehouse(client, alice_headers)
        response = client.post("/api/documents/receipts", json={"warehouse_id": warehouse["id"]}, headers=alice_headers)
        receipt = response.get_json()

        assert client.post(f"/api/documents/receipts/{receipt['id']}/cancel", headers=alice_headers).status_code == 200
        response = client.post(f"/api/documents/receipts/{receipt['id']}/validate", headers=alice_headers)
        assert response.status_code == 409
        assert response.get_json()["error"] == "Cannot validate a canceled receipt"

        response = client.put(
            f"/api/documents/receipts/{receipt['id']}/lines", json={"lines": []}, headers=alice_headers
        )
        assert response.status_code == 409

    def test_delivery_status_route(self, client, alice_headers):
        warehouse = _warehouse(client, alice_headers)
        delivery = client.post(
            "/api/documents/deliveries", json={"warehouse_id": warehouse["id"]}, headers=alice_headers
        ).get_json()

        response = client.post(
            f"/api/documents/deliveries/{delivery['id']}/status", json={"status": "Waiting"}, headers=alice_headers
        )
        assert response.status_code == 200
        assert response.get_json()["status"] == "Waiting"

        response = client.post(
            f"/api/documents/deliveries/{delivery['id']}/status", json={"status": "Done"}, headers=alice_headers
        )
        assert response.status_code == 409

    @pytest.mark.parametrize("path", ["/api/documents/invoices", "/api/documents/receipts/rec-missing"])
    def test_unknown_kind_or_document_404(self, client, alice_headers, path):
        assert client.get(path, headers=alice_headers).status_code == 404

    def test_list_filters_by_status(self, client, alice_headers):
        warehouse = _warehouse(client, alice_headers)
        client.post("/api/documents/receipts", json={"warehouse_id": warehouse["id"]}, headers=alice_headers)
        client.post(
            "/api/documents/receipts", json={"warehouse_id": warehouse["id"], "status": "Waiting"}, headers=alice_headers
        )

        waiting = client.get("/api/documents/receipts", query_string={"status": "Waiting"}, headers=alice_headers)
        assert [d["status"] for d in waiting.get_json()] == ["Waiting"]
        assert client.get(
            "/api/documents/receipts", query_string={"status": "Shipped"}, headers=alice_headers
        ).status_code == 400


class TestReportAndDataRoutes:
    def test_dashboard(self, client, alice_headers):
        response = client.get("/api/reports/dashboard", headers=alice_headers)
        assert response.status_code == 200
        kpis = response.get_json()["kpis"]
        assert kpis["total_products"] == 1
        assert kpis["out_of_stock_count"] == 1

        low = client.get("/api/reports/low-stock", headers=alice_headers).get_json()
        assert [row["sku"] for row in low] == ["SAMPLE-001"]

    def test_export_import_clear(self, client, alice_headers, bob_headers):
        _warehouse(client, alice_headers, code="WH-EXPORT")
        bundle = client.get("/api/data/export", headers=alice_headers).get_json()

        response = client.post("/api/data/import", json=bundle, headers=bob_headers)
        assert response.status_code == 200
        codes = [w["code"] for w in client.get("/api/warehouses", headers=bob_headers).get_json()]
        assert "WH-EXPORT" in codes

        stats = client.get("/api/data/stats", headers=bob_headers).get_json()
        assert stats["item_count"] > 0

        assert client.delete("/api/data", headers=bob_headers).status_code == 200
        bob_stats = client.get("/api/data/stats", headers=bob_headers).get_json()
        assert "inventory_warehouses" in bob_stats["breakdown"]
        codes = [w["code"] for w in client.get("/api/warehouses", headers=bob_headers).get_json()]
        assert codes == ["WH-001"]

    def test_bad_import_is_400_and_changes_nothing(self, client, alice_headers):
        _warehouse(client, alice_headers, code="KEEP")

        response = client.post(
            "/api/data/import",
            json={"inventory_warehouses": [{"name": "missing id"}]},
            headers=alice_headers,
        )
        assert response.status_code == 400
        codes = [w["code"] for w in client.get("/api/warehouses", headers=alice_headers).get_json()]
        assert "KEEP" in codes
