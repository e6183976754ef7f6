# -*- coding: utf-8 -*-
"""
Dashboard summary and stats aggregates.
"""
from datetime import date
from unittest.mock import patch

import pytest

from finanzas.services.dashboard import savings_rate
from finanzas.utils.money import to_decimal


def _tx(client, headers, type_, amount, day, category=None):
    response = client.post("/api/transactions", json={
        "type": type_, "amount": amount, "date": day, "category": category}, headers=headers)
    assert response.status_code == 201


@pytest.fixture
def march(client, auth_headers, subscribed):
    _tx(client, auth_headers, "income", 1000000, "2026-03-01", "Salario")
    _tx(client, auth_headers, "income", "50.005", "2026-03-01", "Salario")
    _tx(client, auth_headers, "expense", 200000, "2026-03-03", "Alimentación")
    _tx(client, auth_headers, "expense", 100000, "2026-03-03", "Transporte")
    _tx(client, auth_headers, "expense", 50000, "2026-03-20")
    _tx(client, auth_headers, "transfer", 999999, "2026-03-21")
    _tx(client, auth_headers, "expense", 70000, "2026-02-27", "Alimentación")


class TestSummary:

    def test_totals(self, client, auth_headers, march):
        data = client.get("/api/dashboard/summary?year=2026&month=3", headers=auth_headers).get_json()["data"]

        assert data["period"] == {"month": 3, "year": 2026, "startDate": "2026-03-01", "endDate": "2026-03-31"}
        assert data["totalIncome"] == 1000050.01
        assert data["totalExpenses"] == 350000
        assert data["balance"] == 650050.01
        assert data["transactionsCount"] == 6
        assert data["savingsRate"] == 65.0

    def test_breakdowns(self, client, auth_headers, march):
        data = client.get("/api/dashboard/summary?year=2026&month=3", headers=auth_headers).get_json()["data"]

        expenses = {row["name"]: row["value"] for row in data["expensesByCategory"]}
        assert expenses == {"Alimentación": 200000, "Transporte": 100000, "Sin categoría": 50000}
        assert data["incomesByCategory"] == [{"name": "Salario", "value": 1000050.01}]

        assert [d["date"] for d in data["dailyData"]] == ["2026-03-01", "2026-03-03", "2026-03-20"]
        assert data["dailyData"][1] == {"date": "2026-03-03", "income": 0, "expense": 300000}

    def test_recent_transactions(self, client, auth_headers, march):
        data = client.get("/api/dashboard/summary?year=2026&month=3", headers=auth_headers).get_json()["data"]
        recent = data["recentTransactions"]
        assert len(recent) == 5
        assert recent[0]["date"] == "2026-03-21"
        assert recent[0]["type"] == "transfer"

    def test_empty_month(self, client, auth_headers, subscribed):
        data = client.get("/api/dashboard/summary?year=2025&month=1", headers=auth_headers).get_json()["data"]
        assert data["balance"] == 0
        assert data["savingsRate"] == 0
        assert data["expensesByCategory"] == []
        assert data["recentTransactions"] == []

    def test_invalid_month(self, client, auth_headers, subscribed):
        response = client.get("/api/dashboard/summary?month=13", headers=auth_headers)
        assert response.status_code == 400

    @pytest.mark.parametrize("year", [0, 10000])
    def test_year_out_of_range(self, client, auth_headers, subscribed, year):
        response = client.get(f"/api/dashboard/summary?year={year}&month=1", headers=auth_headers)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "VALIDATION_ERROR"

    def test_requires_subscription(self, client, auth_headers):
        assert client.get("/api/dashboard/summary", headers=auth_headers).status_code == 403


class TestStats:

    def test_trailing_months(self, client, auth_headers, march):
        with patch("finanzas.routes.dashboard.utcnow") as now:
            now.return_value.date.return_value = date(2026, 3, 15)
            data = client.get("/api/dashboard/stats", headers=auth_headers).get_json()["data"]

        assert data["totalTransactions"] == 7
        assert data["totalIncome"] == 1000050.01
        assert data["totalExpenses"] == 420000
        assert data["totalBalance"] == 580050.01

        months = data["monthlyData"]
        assert [(m["month"], m["year"]) for m in months] == [
            ("oct", 2025), ("nov", 2025), ("dic", 2025), ("ene", 2026), ("feb", 2026), ("mar", 2026)]
        assert months[4]["expense"] == 70000
        assert months[5]["income"] == 1000050.01


def test_savings_rate():
    assert savings_rate(to_decimal(0), to_decimal(10)) == 0
    assert savings_rate(to_decimal(1000), to_decimal(333)) == 66.7
    assert savings_rate(to_decimal(100), to_decimal(150)) == -50.0
