# -*- coding: utf-8 -*-
"""
Budget config, pockets and the monthly overview.
"""
import pytest

from finanzas.database import db
from finanzas.models import Category

from conftest import USER_ID, new_id


def _expense(client, headers, amount, category, date="2026-03-10", type_="expense"):
    return client.post("/api/transactions", json={
        "type": type_, "amount": amount, "date": date, "category": category}, headers=headers)


def _pocket(client, headers, name="Nómina", percentage=50, **extra):
    body = {"name": name, "percentage": percentage}
    body.update(extra)
    return client.post("/api/budget/pockets", json=body, headers=headers)


class TestConfig:

    def test_missing_config_is_null(self, client, auth_headers):
        data = client.get("/api/budget/config?year=2026", headers=auth_headers).get_json()["data"]
        assert data == {"config": None}

    def test_upsert_per_year(self, client, auth_headers):
        client.put("/api/budget/config", json={"year": 2026, "annual_revenue_target": 1000}, headers=auth_headers)
        response = client.put("/api/budget/config", json={"year": 2026, "annual_revenue_target": 2400000},
                              headers=auth_headers)
        assert response.status_code == 200
        config = client.get("/api/budget/config?year=2026", headers=auth_headers).get_json()["data"]["config"]
        assert config["annual_revenue_target"] == 2400000
        assert client.get("/api/budget/config?year=2025", headers=auth_headers).get_json()["data"]["config"] is None

    def test_required_fields(self, client, auth_headers):
        response = client.put("/api/budget/config", json={"year": 2026}, headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]["message"] == "Año y meta de facturación son requeridos"

    def test_target_must_be_positive(self, client, auth_headers):
        response = client.put("/api/budget/config", json={"year": 2026, "annual_revenue_target": -1},
                              headers=auth_headers)
        assert response.status_code == 400


class TestPockets:

    def test_create_adds_matching_expense_category(self, client, auth_headers):
        response = _pocket(client, auth_headers)
        assert response.status_code == 201
        names = [c.name for c in db.session.query(Category).filter_by(user_id=USER_ID, type="expense")]
        assert names == ["Nómina"]

    def test_existing_category_is_reused(self, client, auth_headers):
        client.post("/api/categories", json={"name": "nómina", "type": "expense"}, headers=auth_headers)
        _pocket(client, auth_headers)
        assert db.session.query(Category).filter_by(user_id=USER_ID).count() == 1

    def test_percentage_bounds(self, client, auth_headers):
        assert _pocket(client, auth_headers, percentage=101).status_code == 400
        assert _pocket(client, auth_headers, percentage=-1).status_code == 400

    def test_percentages_need_not_sum_to_hundred(self, client, auth_headers):
        _pocket(client, auth_headers, name="A", percentage=80)
        _pocket(client, auth_headers, name="B", percentage=70)
        pockets = client.get("/api/budget/pockets", headers=auth_headers).get_json()["data"]["pockets"]
        assert len(pockets) == 2

    def test_listing_follows_sort_order(self, client, auth_headers):
        _pocket(client, auth_headers, name="Segundo", sort_order=2)
        _pocket(client, auth_headers, name="Primero", sort_order=1)
        pockets = client.get("/api/budget/pockets", headers=auth_headers).get_json()["data"]["pockets"]
        assert [p["name"] for p in pockets] == ["Primero", "Segundo"]

    def test_update_and_delete(self, client, auth_headers):
        pocket = _pocket(client, auth_headers).get_json()["data"]["pocket"]
        response = client.put(f"/api/budget/pockets/{pocket['id']}", json={"percentage": 30}, headers=auth_headers)
        assert response.get_json()["data"]["pocket"]["percentage"] == 30
        assert client.delete(f"/api/budget/pockets/{pocket['id']}", headers=auth_headers).status_code == 200
        response = client.delete(f"/api/budget/pockets/{pocket['id']}", headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()["error"]["message"] == "Bolsillo no encontrado"

    def test_bulk_save(self, client, auth_headers, other_headers):
        kept = _pocket(client, auth_headers, name="Arriendo", percentage=30).get_json()["data"]["pocket"]
        foreign = _pocket(client, other_headers, name="Ajeno", percentage=10).get_json()["data"]["pocket"]

        response = client.put("/api/budget/pockets/bulk", json={"pockets": [
            {"id": kept["id"], "percentage": 35, "sort_order": 2},
            {"id": foreign["id"], "percentage": 99},
            {"name": "Ahorro", "percentage": 20, "sort_order": 1},
        ]}, headers=auth_headers)

        assert response.status_code == 200
        saved = response.get_json()["data"]["pockets"]
        assert [p["name"] for p in saved] == ["Arriendo", "Ahorro"]
        listed = client.get("/api/budget/pockets", headers=auth_headers).get_json()["data"]["pockets"]
        assert [(p["name"], p["percentage"]) for p in listed] == [("Ahorro", 20), ("Arriendo", 35)]

        other = client.get("/api/budget/pockets", headers=other_headers).get_json()["data"]["pockets"]
        assert other[0]["percentage"] == 10

    def test_bulk_requires_list(self, client, auth_headers):
        response = client.put("/api/budget/pockets/bulk", json={"pockets": "nope"}, headers=auth_headers)
        assert response.status_code == 400

    def test_bulk_new_entry_needs_name_and_percentage(self, client, auth_headers):
        response = client.put("/api/budget/pockets/bulk", json={"pockets": [{"name": "Sin porcentaje"}]},
                              headers=auth_headers)
        assert response.status_code == 400

    def test_unknown_pocket(self, client, auth_headers):
        response = client.put(f"/api/budget/pockets/{new_id()}", json={"percentage": 1}, headers=auth_headers)
        assert response.status_code == 404


class TestOverview:

    def test_pocket_over_budget(self, client, auth_headers, subscribed):
        client.put("/api/budget/config", json={"year": 2026, "annual_revenue_target": 1200000},
                   headers=auth_headers)
        _pocket(client, auth_headers, name="Nómina", percentage=50)
        _expense(client, auth_headers, 650000, "Nómina")
        _expense(client, auth_headers, 80000, "Ventas", type_="income")

        data = client.get("/api/budget/overview?year=2026&month=3", headers=auth_headers).get_json()["data"]

        assert data["monthly_estimate"] == 100000
        assert data["actual_sales"] == 80000
        assert data["sales_deviation"] == -20000
        assert data["total_budget"] == 50000
        assert data["total_actual_expenses"] == 650000

        pocket = data["pockets"][0]
        assert pocket["budget_value"] == 50000
        assert pocket["actual_value"] == 650000
        assert pocket["deviation_amount"] == 600000
        assert pocket["percentage_real"] == 1300
        assert pocket["status"] == "over"

        alert_types = [a["type"] for a in data["alerts"]]
        assert alert_types == ["warning", "danger"]
        assert data["alerts"][0]["message"] == "Ventas por debajo del estimado: 20.000 COP menos"
        assert data["alerts"][1]["pocket"] == "Nómina"

        assert len(data["annual_data"]) == 12
        march = data["annual_data"][2]
        assert march == {"month": 3, "estimated_sales": 100000, "actual_sales": 80000,
                         "actual_expenses": 650000}

    def test_pocket_join_is_case_sensitive(self, client, auth_headers, subscribed):
        client.put("/api/budget/config", json={"year": 2026, "annual_revenue_target": 1200000},
                   headers=auth_headers)
        _pocket(client, auth_headers, name="Nómina", percentage=50)
        _expense(client, auth_headers, 650000, "nómina")

        pocket = client.get("/api/budget/overview?year=2026&month=3",
                            headers=auth_headers).get_json()["data"]["pockets"][0]
        assert pocket["actual_value"] == 0
        assert pocket["status"] == "under"

    def test_without_config(self, client, auth_headers):
        _pocket(client, auth_headers)
        data = client.get("/api/budget/overview?year=2026&month=1", headers=auth_headers).get_json()["data"]
        assert data["monthly_estimate"] == 0
        assert data["pockets"][0]["budget_value"] == 0
        assert data["pockets"][0]["status"] == "on_track"
        assert data["alerts"] == []

    def test_invalid_month(self, client, auth_headers):
        response = client.get("/api/budget/overview?year=2026&month=13", headers=auth_headers)
        assert response.status_code == 400
        response = client.get("/api/budget/overview?year=2026&month=0", headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("year", [0, 1999, 2101, 10000])
    def test_year_out_of_range(self, client, auth_headers, year):
        response = client.get(f"/api/budget/overview?year={year}&month=1", headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"
