"""
HTTP API tests.

Verifies:
- Mutating endpoints return 401 without an acting employee
- Ledger errors map to their status codes and JSON bodies
- Happy paths for movements, batches, sharing and reads
"""

import pytest

from conftest import employee_headers


# =============================================================================
# UNAUTHENTICATED ACCESS — 401
# =============================================================================


class TestUnauthenticatedAccess:
    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/api/transactions"),
            ("POST", "/api/transactions/batch"),
            ("POST", "/api/items"),
            ("PATCH", "/api/items/1"),
            ("POST", "/api/items/1/sizes"),
            ("POST", "/api/items/1/shared-links"),
            ("DELETE", "/api/items/1/shared-links/1"),
            ("POST", "/api/brands"),
            ("PATCH", "/api/brands/1"),
            ("POST", "/api/promoters"),
            ("PATCH", "/api/promoters/1"),
            ("POST", "/api/employees"),
            ("PATCH", "/api/employees/1"),
        ],
    )
    def test_requires_employee(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path, json={})
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"
        assert resp.json["code"] == "UNAUTHENTICATED"

    def test_inactive_employee_rejected(self, client, inactive_employee):
        resp = client.post("/api/brands", json={"name": "X"}, headers=employee_headers(inactive_employee.id))
        assert resp.status_code == 401

    def test_garbage_header_rejected(self, client, db_session):
        resp = client.post("/api/brands", json={"name": "X"}, headers={"X-Employee-Id": "abc"})
        assert resp.status_code == 401


# =============================================================================
# MOVEMENTS
# =============================================================================


class TestTransactionRoutes:
    def test_take_out_then_read_back(self, client, headers, item, size_m, promoter):
        resp = client.post("/api/transactions", json={
            "transaction_type": "take_out",
            "item_id": item.id,
            "item_size_id": size_m.id,
            "quantity": 3,
            "promoter_id": promoter.id,
            "note": "Expo",
        }, headers=headers)
        assert resp.status_code == 201
        tx_id = resp.json["transaction"]["id"]

        resp = client.get(f"/api/transactions/{tx_id}")
        assert resp.status_code == 200
        assert resp.json["transaction"]["promoter"]["id"] == promoter.id

        resp = client.get(f"/api/items/{item.id}/quantities")
        assert resp.json["quantities"] == {"original": 15, "available": 12, "in_circulation": 3, "total": 15}

    def test_insufficient_available_is_409(self, client, headers, item, size_l, promoter):
        resp = client.post("/api/transactions", json={
            "transaction_type": "take_out",
            "item_id": item.id,
            "item_size_id": size_l.id,
            "quantity": 6,
            "promoter_id": promoter.id,
        }, headers=headers)
        assert resp.status_code == 409
        assert resp.json["code"] == "INSUFFICIENT_AVAILABLE"
        assert resp.json["details"] == {"requested": 6, "available": 5}

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, "1e3"])
    def test_bad_quantity_is_400(self, client, headers, item, size_m, promoter, quantity):
        resp = client.post("/api/transactions", json={
            "transaction_type": "take_out",
            "item_id": item.id,
            "item_size_id": size_m.id,
            "quantity": quantity,
            "promoter_id": promoter.id,
        }, headers=headers)
        assert resp.status_code == 400

    def test_unknown_size_is_404(self, client, headers, item, promoter):
        resp = client.post("/api/transactions", json={
            "transaction_type": "take_out",
            "item_id": item.id,
            "item_size_id": 99999,
            "quantity": 1,
            "promoter_id": promoter.id,
        }, headers=headers)
        assert resp.status_code == 404

    def test_batch_reports_per_line(self, client, headers, item, size_m, size_l, promoter):
        resp = client.post("/api/transactions/batch", json={
            "transaction_type": "take_out",
            "promoter_id": promoter.id,
            "lines": [
                {"item_id": item.id, "item_size_id": size_m.id, "quantity": 2},
                {"item_id": item.id, "item_size_id": size_l.id, "quantity": 50},
            ],
        }, headers=headers)
        assert resp.status_code == 200
        assert resp.json["all_succeeded"] is False
        assert len(resp.json["succeeded"]) == 1
        assert resp.json["failed"][0]["error"]["code"] == "INSUFFICIENT_AVAILABLE"

    def test_batch_requires_lines(self, client, headers, promoter):
        resp = client.post("/api/transactions/batch", json={
            "transaction_type": "take_out", "promoter_id": promoter.id, "lines": [],
        }, headers=headers)
        assert resp.status_code == 400

    def test_list_with_filters(self, client, headers, item, size_m, promoter):
        for kind, qty in (("take_out", 2), ("return", 1)):
            client.post("/api/transactions", json={
                "transaction_type": kind,
                "item_id": item.id,
                "item_size_id": size_m.id,
                "quantity": qty,
                "promoter_id": promoter.id,
            }, headers=headers)

        resp = client.get("/api/transactions?transaction_type=return")
        assert resp.status_code == 200
        assert resp.json["count"] == 1
        assert resp.json["items"][0]["transaction_type"] == "return"

        resp = client.get("/api/transactions?start_date=not-a-date")
        assert resp.status_code == 400


# =============================================================================
# CATALOG & SHARING
# =============================================================================


class TestCatalogRoutes:
    def test_create_item_and_add_size(self, client, headers, brand_a):
        resp = client.post("/api/items", json={
            "brand_id": brand_a.id,
            "name": "Hoodie",
            "product_code": "HD-1",
            "sizes": [{"size": "S", "quantity": 2}],
        }, headers=headers)
        assert resp.status_code == 201
        item_id = resp.json["item"]["id"]
        assert resp.json["item"]["quantities"]["available"] == 2

        resp = client.post(f"/api/items/{item_id}/sizes", json={"size": "XL", "quantity": 3}, headers=headers)
        assert resp.status_code == 201

        resp = client.get(f"/api/items/{item_id}/sizes")
        assert [s["size"] for s in resp.json["sizes"]] == ["S", "XL"]

    def test_patch_item(self, client, headers, item):
        resp = client.patch(f"/api/items/{item.id}", json={"name": "Renamed"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["item"]["name"] == "Renamed"

        resp = client.patch(f"/api/items/{item.id}", json={"is_shared": True}, headers=headers)
        assert resp.status_code == 400

    def test_share_and_unshare(self, client, headers, item, brand_a, brand_b):
        resp = client.post(f"/api/items/{item.id}/shared-links", json={"brand_id": brand_b.id}, headers=headers)
        assert resp.status_code == 201
        assert resp.json["brand_ids"] == sorted([brand_a.id, brand_b.id])

        resp = client.get(f"/api/brands/{brand_b.id}/items")
        assert [i["id"] for i in resp.json["items"]] == [item.id]

        resp = client.delete(f"/api/items/{item.id}/shared-links/{brand_b.id}", headers=headers)
        assert resp.status_code == 200
        assert resp.json["brand_ids"] == [brand_a.id]

        resp = client.delete(f"/api/items/{item.id}/shared-links/{brand_b.id}", headers=headers)
        assert resp.status_code == 404

    def test_patch_brand_promoter_employee(self, client, headers, employee, brand_a, promoter):
        resp = client.patch(f"/api/brands/{brand_a.id}", json={"is_pinned": True, "logo_url": "a.png"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["brand"]["is_pinned"] is True

        resp = client.patch(f"/api/brands/{brand_a.id}", json={"is_active": False}, headers=headers)
        assert resp.status_code == 200
        assert client.get("/api/brands").json["brands"] == []

        resp = client.patch(f"/api/promoters/{promoter.id}", json={"notes": "Weekends only"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["promoter"]["notes"] == "Weekends only"

        resp = client.patch(f"/api/employees/{employee.id}", json={"initials": "jd"}, headers=headers)
        assert resp.status_code == 200
        assert resp.json["employee"]["initials"] == "JD"

    def test_patch_errors(self, client, headers):
        assert client.patch("/api/brands/99999", json={"name": "X"}, headers=headers).status_code == 404
        assert client.patch("/api/promoters/99999", json={"name": "X"}, headers=headers).status_code == 404
        assert client.patch("/api/employees/99999", json={"full_name": "X"}, headers=headers).status_code == 404

        resp = client.patch("/api/brands/99999", json={}, headers=headers)
        assert resp.status_code == 400
        assert resp.json["code"] == "VALIDATION_ERROR"

    def test_unlink_primary_while_shared_is_400(self, client, headers, item, brand_a, brand_b):
        client.post(f"/api/items/{item.id}/shared-links", json={"brand_id": brand_b.id}, headers=headers)

        resp = client.delete(f"/api/items/{item.id}/shared-links/{brand_a.id}", headers=headers)
        assert resp.status_code == 400
        assert resp.json["code"] == "INVALID_QUANTITY"

    def test_promoter_holdings_and_stats(self, client, headers, item, size_m, promoter):
        client.post("/api/transactions", json={
            "transaction_type": "take_out",
            "item_id": item.id,
            "item_size_id": size_m.id,
            "quantity": 4,
            "promoter_id": promoter.id,
        }, headers=headers)

        resp = client.get(f"/api/promoters/{promoter.id}/holdings")
        assert resp.status_code == 200
        assert resp.json["holdings"][0]["quantity"] == 4

        resp = client.get(f"/api/promoters/{promoter.id}/stats")
        assert resp.json["total_take_outs"] == 1

        resp = client.get("/api/promoters/99999/holdings")
        assert resp.status_code == 404

    def test_create_lists(self, client, headers):
        assert client.post("/api/brands", json={"name": "Acme"}, headers=headers).status_code == 201
        assert client.post("/api/promoters", json={"name": "Pat"}, headers=headers).status_code == 201
        assert client.post(
            "/api/employees", json={"full_name": "New Hire", "initials": "NH"}, headers=headers
        ).status_code == 201

        assert [b["name"] for b in client.get("/api/brands").json["brands"]] == ["Acme"]
        assert [p["name"] for p in client.get("/api/promoters").json["promoters"]] == ["Pat"]
        assert len(client.get("/api/employees").json["employees"]) == 2

    def test_health(self, client, employee):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"
