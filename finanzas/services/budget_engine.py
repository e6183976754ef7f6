# -*- coding: utf-8 -*-
"""
Budget allocation engine.

The annual revenue target is spread evenly over twelve months. Each pocket
receives its percentage of that monthly estimate and is compared with the
month's expenses filed under a category of exactly the same name (case
sensitive). There is no foreign key between pockets and categories; the name
is the join.
"""
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, List

from finanzas.database.repositories import OwnedRepository
from finanzas.services.structured_logging import get_logger
from finanzas.utils.dates import month_bounds
from finanzas.utils.money import ZERO, format_cop, money, quantize, to_decimal, total

logger = get_logger('finanzas.budget')

UNCATEGORIZED = "Sin categoría"
HUNDRED = Decimal("100")
MONTHS_PER_YEAR = 12


def pocket_status(deviation: Decimal) -> str:
    if deviation > 0:
        return "over"
    if deviation < 0:
        return "under"
    return "on_track"


class BudgetEngine:
    def __init__(self, repo: OwnedRepository):
        self.repo = repo

    def _month_totals(self, year: int, month: int):
        start, end = month_bounds(year, month)
        transactions = self.repo.transactions_between(start, end, types=("income", "expense"))
        income = total(t.amount for t in transactions if t.type == "income")
        expenses_by_category = defaultdict(lambda: ZERO)
        for t in transactions:
            if t.type == "expense":
                expenses_by_category[t.category or UNCATEGORIZED] += to_decimal(t.amount)
        return income, dict(expenses_by_category)

    def pocket_overview(self, pocket, monthly_estimate: Decimal,
                        expenses_by_category: Dict[str, Decimal]) -> Dict[str, Any]:
        percentage = to_decimal(pocket.percentage)
        budget_value = quantize(monthly_estimate * percentage / HUNDRED)
        actual_value = quantize(expenses_by_category.get(pocket.name, ZERO))
        deviation = actual_value - budget_value

        if budget_value > 0:
            percentage_real = quantize(actual_value / budget_value * HUNDRED)
            deviation_percent = quantize(deviation / budget_value * HUNDRED)
        else:
            percentage_real = deviation_percent = ZERO

        return {
            "id": pocket.id,
            "name": pocket.name,
            "percentage": float(percentage),
            "budget_value": float(budget_value),
            "actual_value": float(actual_value),
            "percentage_real": float(percentage_real),
            "deviation_amount": float(deviation),
            "deviation_percent": float(deviation_percent),
            "status": pocket_status(deviation),
        }

    def annual_data(self, year: int, monthly_estimate: Decimal) -> List[Dict[str, Any]]:
        """One row per month of ``year``; issues one query per month."""
        rows = []
        for month in range(1, MONTHS_PER_YEAR + 1):
            income, expenses = self._month_totals(year, month)
            rows.append({
                "month": month,
                "estimated_sales": money(monthly_estimate),
                "actual_sales": money(income),
                "actual_expenses": money(total(expenses.values())),
            })
        return rows

    @staticmethod
    def alerts(sales_deviation: Decimal, pockets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        alerts = []
        if sales_deviation < 0:
            alerts.append({
                "type": "warning",
                "message": f"Ventas por debajo del estimado: {format_cop(abs(sales_deviation))} COP menos",
            })
        for pocket in pockets:
            if pocket["status"] != "over":
                continue
            alerts.append({
                "type": "danger",
                "pocket": pocket["name"],
                "message": (
                    f"{pocket['name']} se pasó del presupuesto: "
                    f"+{format_cop(pocket['deviation_amount'])} COP ({pocket['deviation_percent']}%)"
                ),
            })
        return alerts

    def overview(self, year: int, month: int) -> Dict[str, Any]:
        config = self.repo.budget_config(year)
        annual_target = to_decimal(config.annual_revenue_target) if config else ZERO
        monthly_estimate = annual_target / MONTHS_PER_YEAR

        pockets = self.repo.pockets()
        actual_sales, expenses_by_category = self._month_totals(year, month)

        pocket_rows = [self.pocket_overview(p, monthly_estimate, expenses_by_category) for p in pockets]
        sales_deviation = actual_sales - monthly_estimate
        total_budget = total(monthly_estimate * to_decimal(p.percentage) / HUNDRED for p in pockets)

        logger.debug("Budget overview computed", year=year, month=month, pockets=len(pocket_rows))

        return {
            "year": year,
            "month": month,
            "annual_revenue_target": float(annual_target),
            "monthly_estimate": money(monthly_estimate),
            "actual_sales": money(actual_sales),
            "sales_deviation": money(sales_deviation),
            "total_budget": money(total_budget),
            "total_actual_expenses": money(total(expenses_by_category.values())),
            "pockets": pocket_rows,
            "annual_data": self.annual_data(year, monthly_estimate),
            "alerts": self.alerts(sales_deviation, pocket_rows),
        }

