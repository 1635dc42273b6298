"""
HTTP routes for stock-in, stock-out and availability.

Verifies:
- Unauthenticated requests return 401, unknown roles 403
- Error translation: 400 invalid input, 403 forbidden, 404 gone, 409 insufficient
- Filters accept "all" as no filter
"""

import pytest

from conftest import auth_headers_for, days_ago


def post_in(client, headers, product, kiosk, quantity, **extra):
    payload = {
        "kios_id": kiosk.id,
        "product_id": product.id,
        "quantity": quantity,
        "business_date": days_ago(1).isoformat(),
    }
    payload.update(extra)
    return client.post("/api/stock-masuk", json=payload, headers=headers)


def post_out(client, headers, product, kiosk, quantity, **extra):
    payload = {
        "kios_id": kiosk.id,
        "product_id": product.id,
        "quantity": quantity,
        "business_date": days_ago(1).isoformat(),
    }
    payload.update(extra)
    return client.post("/api/stock-keluar", json=payload, headers=headers)


# =============================================================================
# AUTHENTICATION AND ROLES
# =============================================================================


class TestAccess:

    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/stock-masuk"),
            ("POST", "/api/stock-masuk"),
            ("GET", "/api/stock-keluar"),
            ("DELETE", "/api/stock-keluar/1"),
            ("GET", "/api/stock-tersedia"),
            ("GET", "/api/stock-tersedia/show"),
        ],
    )
    def test_requires_auth(self, client, db_session, method, path):
        resp = getattr(client, method.lower())(path)
        assert resp.status_code == 401, f"{method} {path} returned {resp.status_code}"

    def test_rejects_unknown_token(self, client, db_session):
        resp = client.get("/api/stock-masuk", headers={"Authorization": "Bearer not-a-token"})
        assert resp.status_code == 401

    def test_unknown_role_denied(self, client, unknown_role_user):
        resp = client.get("/api/stock-tersedia", headers=auth_headers_for(unknown_role_user))
        assert resp.status_code == 403

    def test_health(self, client, db_session):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json["status"] == "healthy"


# =============================================================================
# STOCK IN
# =============================================================================


class TestStockMasuk:

    def test_create_defaults_to_current_user(self, client, field_headers, field_user, product, kiosk):
        resp = post_in(client, field_headers, product, kiosk, 25, receipt_photo_ref="receipts/nota-7.jpg")

        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["user_id"] == field_user.id
        assert data["quantity"] == 25
        assert data["receipt_photo_ref"] == "receipts/nota-7.jpg"
        assert data["product"]["id"] == product.id

    @pytest.mark.parametrize(
        "override",
        [
            {"quantity": "abc"},
            {"quantity": 12.5},
            {"quantity": 0},
            {"quantity": 1_000_000},
            {"business_date": "17/10/2026"},
            {"unexpected": 1},
        ],
    )
    def test_invalid_payloads(self, client, field_headers, product, kiosk, override):
        resp = post_in(client, field_headers, product, kiosk, 5, **override)
        assert resp.status_code == 400

    def test_future_date_rejected(self, client, field_headers, product, kiosk):
        resp = post_in(client, field_headers, product, kiosk, 5, business_date=days_ago(-2).isoformat())
        assert resp.status_code == 400

    def test_missing_fields(self, client, field_headers):
        resp = client.post("/api/stock-masuk", json={"quantity": 3}, headers=field_headers)
        assert resp.status_code == 400
        assert "Missing required fields" in resp.json["error"]

    def test_list_is_scoped_to_owner(
        self, client, field_headers, other_field_headers, manager_headers, product, kiosk
    ):
        post_in(client, field_headers, product, kiosk, 1)
        post_in(client, other_field_headers, product, kiosk, 2)

        own = client.get("/api/stock-masuk?kios_id=all&month=all", headers=field_headers)
        everyone = client.get(f"/api/stock-masuk?kios_id={kiosk.id}", headers=manager_headers)

        assert [r["quantity"] for r in own.json["data"]] == [1]
        assert sorted(r["quantity"] for r in everyone.json["data"]) == [1, 2]

    def test_bad_month_filter(self, client, field_headers):
        resp = client.get("/api/stock-masuk?month=October", headers=field_headers)
        assert resp.status_code == 400

    def test_update_and_delete(self, client, field_headers, product, kiosk):
        created = post_in(client, field_headers, product, kiosk, 4).json["data"]

        resp = client.put(
            f"/api/stock-masuk/{created['id']}",
            json={
                "kios_id": kiosk.id,
                "product_id": product.id,
                "quantity": 6,
                "business_date": days_ago(2).isoformat(),
            },
            headers=field_headers,
        )
        assert resp.status_code == 200
        assert resp.json["data"]["quantity"] == 6

        resp = client.delete(f"/api/stock-masuk/{created['id']}", headers=field_headers)
        assert resp.status_code == 200

        resp = client.get(f"/api/stock-masuk/{created['id']}", headers=field_headers)
        assert resp.status_code == 404

    def test_user_id_is_not_editable(self, client, field_headers, other_field_user, product, kiosk):
        created = post_in(client, field_headers, product, kiosk, 4).json["data"]
        resp = client.put(
            f"/api/stock-masuk/{created['id']}",
            json={
                "user_id": other_field_user.id,
                "kios_id": kiosk.id,
                "product_id": product.id,
                "quantity": 4,
                "business_date": days_ago(1).isoformat(),
            },
            headers=field_headers,
        )
        assert resp.status_code == 400


# =============================================================================
# STOCK OUT
# =============================================================================


class TestStockKeluar:

    def test_insufficient_stock_is_conflict(self, client, field_headers, product, kiosk):
        post_in(client, field_headers, product, kiosk, 100)

        resp = post_out(client, field_headers, product, kiosk, 150)

        assert resp.status_code == 409
        assert resp.json["available"] == 100
        assert resp.json["kind"] == "insufficient_stock"

    def test_field_user_cannot_target_other_user(
        self, client, field_headers, other_field_user, product, kiosk
    ):
        post_in(client, field_headers, product, kiosk, 10)
        resp = post_out(client, field_headers, product, kiosk, 1, user_id=other_field_user.id)
        assert resp.status_code == 403

    def test_manager_records_for_field_user(
        self, client, field_headers, manager_headers, field_user, product, kiosk
    ):
        post_in(client, field_headers, product, kiosk, 10)
        resp = post_out(client, manager_headers, product, kiosk, 4, user_id=field_user.id)
        assert resp.status_code == 201
        assert resp.json["data"]["user_id"] == field_user.id

    def test_edit_adds_back_prior_quantity(self, client, field_headers, product, kiosk):
        post_in(client, field_headers, product, kiosk, 10)
        created = post_out(client, field_headers, product, kiosk, 8).json["data"]

        resp = client.put(
            f"/api/stock-keluar/{created['id']}",
            json={
                "kios_id": kiosk.id,
                "product_id": product.id,
                "quantity": 10,
                "business_date": days_ago(1).isoformat(),
            },
            headers=field_headers,
        )
        assert resp.status_code == 200

    def test_date_filter(self, client, field_headers, product, kiosk):
        post_in(client, field_headers, product, kiosk, 10, business_date=days_ago(3).isoformat())
        post_out(client, field_headers, product, kiosk, 1, business_date=days_ago(3).isoformat())
        post_out(client, field_headers, product, kiosk, 2, business_date=days_ago(1).isoformat())

        resp = client.get(f"/api/stock-keluar?date={days_ago(1).isoformat()}", headers=field_headers)
        assert [r["quantity"] for r in resp.json["data"]] == [2]

        resp = client.get("/api/stock-keluar?date=all&year=all", headers=field_headers)
        assert [r["quantity"] for r in resp.json["data"]] == [2, 1]

    def test_delete_unknown_row(self, client, field_headers):
        resp = client.delete("/api/stock-keluar/424242", headers=field_headers)
        assert resp.status_code == 404


# =============================================================================
# AVAILABILITY
# =============================================================================


class TestStockTersedia:

    def test_show_requires_pair(self, client, field_headers):
        resp = client.get("/api/stock-tersedia/show?product_id=1", headers=field_headers)
        assert resp.status_code == 400

    def test_show_by_role(
        self, client, field_headers, other_field_headers, manager_headers, product, kiosk
    ):
        post_in(client, field_headers, product, kiosk, 50)
        post_out(client, field_headers, product, kiosk, 20)
        post_in(client, other_field_headers, product, kiosk, 200)

        path = f"/api/stock-tersedia/show?product_id={product.id}&kios_id={kiosk.id}"
        assert client.get(path, headers=field_headers).json["data"]["available"] == 30
        assert client.get(path, headers=manager_headers).json["data"]["available"] == 230

    def test_listing_includes_summary(self, client, field_headers, manager_headers, product, kiosk):
        post_in(client, field_headers, product, kiosk, 7)

        resp = client.get("/api/stock-tersedia?kios_id=all&month=all", headers=manager_headers)

        assert resp.status_code == 200
        assert resp.json["summary"]["total_products"] == 1
        assert resp.json["summary"]["total_available"] == 7
        assert resp.json["data"][0]["kios"]["name"] == kiosk.name
