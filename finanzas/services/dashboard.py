# -*- coding: utf-8 -*-
"""
Dashboard aggregates.

Everything is summed with ``Decimal`` and rounded half-up to cents only in
the response. Transfers count towards ``transactionsCount`` but are neither
income nor expense.
"""
from collections import OrderedDict, defaultdict
from datetime import date
from typing import Any, Dict, Iterable

from finanzas.database.repositories import OwnedRepository
from finanzas.models import Transaction
from finanzas.utils.dates import MONTH_LABELS, month_bounds, shift_month
from finanzas.utils.money import ZERO, money, to_decimal, total

UNCATEGORIZED = "Sin categoría"
RECENT_LIMIT = 5
TRAILING_MONTHS = 6


def _by_category(transactions: Iterable[Transaction]):
    grouped = OrderedDict()
    for t in transactions:
        name = t.category or UNCATEGORIZED
        grouped[name] = grouped.get(name, ZERO) + to_decimal(t.amount)
    return [{"name": name, "value": money(value)} for name, value in grouped.items()]


def savings_rate(income, expenses) -> float:
    if income <= 0:
        return 0
    return round(float((income - expenses) / income * 100), 1)


class DashboardService:
    def __init__(self, repo: OwnedRepository):
        self.repo = repo

    def summary(self, year: int, month: int) -> Dict[str, Any]:
        start, end = month_bounds(year, month)
        transactions = sorted(
            self.repo.transactions_between(start, end),
            key=lambda t: (t.date, t.created_at),
            reverse=True,
        )
        incomes = [t for t in transactions if t.type == "income"]
        expenses = [t for t in transactions if t.type == "expense"]
        total_income = total(t.amount for t in incomes)
        total_expenses = total(t.amount for t in expenses)

        daily = defaultdict(lambda: {"income": ZERO, "expense": ZERO})
        for t in incomes + expenses:
            daily[t.date][t.type] += to_decimal(t.amount)

        return {
            "period": {
                "month": month,
                "year": year,
                "startDate": start.isoformat(),
                "endDate": end.isoformat(),
            },
            "balance": money(total_income - total_expenses),
            "totalIncome": money(total_income),
            "totalExpenses": money(total_expenses),
            "transactionsCount": len(transactions),
            "savingsRate": savings_rate(total_income, total_expenses),
            "expensesByCategory": _by_category(expenses),
            "incomesByCategory": _by_category(incomes),
            "dailyData": [
                {"date": day.isoformat(), "income": money(v["income"]), "expense": money(v["expense"])}
                for day, v in sorted(daily.items())
            ],
            "recentTransactions": [
                {
                    "id": t.id,
                    "type": t.type,
                    "amount": float(t.amount),
                    "category": t.category,
                    "description": t.description,
                    "date": t.date.isoformat(),
                }
                for t in transactions[:RECENT_LIMIT]
            ],
        }

    def stats(self, today: date) -> Dict[str, Any]:
        everything = self.repo.transactions_between(None, None)
        total_income = total(t.amount for t in everything if t.type == "income")
        total_expenses = total(t.amount for t in everything if t.type == "expense")

        monthly = []
        for delta in range(TRAILING_MONTHS - 1, -1, -1):
            year, month = shift_month(today.year, today.month, -delta)
            start, end = month_bounds(year, month)
            rows = self.repo.transactions_between(start, end, types=("income", "expense"))
            monthly.append({
                "month": MONTH_LABELS[month - 1],
                "year": year,
                "income": money(total(t.amount for t in rows if t.type == "income")),
                "expense": money(total(t.amount for t in rows if t.type == "expense")),
            })

        return {
            "totalBalance": money(total_income - total_expenses),
            "totalIncome": money(total_income),
            "totalExpenses": money(total_expenses),
            "totalTransactions": len(everything),
            "monthlyData": monthly,
        }
