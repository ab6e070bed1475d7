# -*- coding: utf-8 -*-
"""Read-side aggregation over sales and expenses. Nothing here writes."""
from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from decimal import Decimal

from ..extensions import db
from ..errors import ValidationError
from ..models import D, cents, Material, Product, Sale, Expense, SystemConfig
from ..models.expense import DEFAULT_CATEGORY
from . import atomic, now, local_today, month_bounds, to_int
from .catalog import number, materials_by_id, line_cost, low_stock

logger = logging.getLogger(__name__)


# ------------ snapshot / recompute -------------------------------------------
class Snapshot:
    """Value frozen on the sale when it was recorded."""

    def __init__(self, value):
        self.value = D(value)

    def resolve(self) -> Decimal:
        return self.value


class Recompute:
    """Legacy row without a snapshot: derive the value from current data."""

    def __init__(self, formula):
        self.formula = formula

    def resolve(self) -> Decimal:
        return D(self.formula())


def sale_fees(sale: Sale):
    if sale.fee_snapshot is not None:
        return Snapshot(sale.fee_snapshot)
    # no net revenue recorded: no fees known
    return Recompute(lambda: D(sale.total_amount) - D(sale.net_revenue) if sale.net_revenue is not None else 0)


def sale_cogs(sale: Sale, index: dict[int, Material] | None = None, products: dict[int, Product] | None = None):
    if sale.cost_snapshot is not None:
        return Snapshot(sale.cost_snapshot)

    def formula() -> Decimal:
        mats = materials_by_id() if index is None else index
        total = Decimal("0")
        for item in sale.items:
            p = products.get(item.product_id) if products is not None else db.session.get(Product, item.product_id)
            if p is not None:
                total += line_cost(p, item.quantity, mats)
        return total

    return Recompute(formula)


def sale_margin(sale: Sale, index=None, products=None) -> Decimal:
    return D(sale.total_amount) - sale_fees(sale).resolve() - sale_cogs(sale, index, products).resolve()


# ------------ period filters --------------------------------------------------
def sales_between(start: datetime, end: datetime) -> list[Sale]:
    return (
        Sale.query.filter(Sale.date >= start, Sale.date < end)
        .order_by(Sale.date.asc(), Sale.id.asc())
        .all()
    )


def sales_in_month(year: int, month: int) -> list[Sale]:
    start, end, _ = month_bounds(year, month)
    return sales_between(start, end)


def expenses_in_month(year: int, month: int) -> list[Expense]:
    start, end, _ = month_bounds(year, month)
    return (
        Expense.query.filter(Expense.date >= start, Expense.date < end)
        .order_by(Expense.date.asc(), Expense.id.asc())
        .all()
    )


def _products_by_id() -> dict[int, Product]:
    return {p.id: p for p in Product.query.all()}


# ------------ monthly report --------------------------------------------------
def contribution_margin(sales: list[Sale]) -> Decimal:
    index, products = materials_by_id(), _products_by_id()
    return sum((sale_margin(s, index, products) for s in sales), Decimal("0"))


def monthly_report(year: int, month: int) -> dict:
    sales = sales_in_month(year, month)
    index, products = materials_by_id(), _products_by_id()

    gross = sum((D(s.total_amount) for s in sales), Decimal("0"))
    fees = sum((sale_fees(s).resolve() for s in sales), Decimal("0"))
    cogs = sum((sale_cogs(s, index, products).resolve() for s in sales), Decimal("0"))
    margin = gross - fees - cogs
    expenses = sum((D(e.amount) for e in expenses_in_month(year, month)), Decimal("0"))

    return {
        "year": year,
        "month": month,
        "gross_revenue": gross,
        "total_fees": fees,
        "total_cogs": cogs,
        "contribution_margin": margin,
        "total_expenses": expenses,
        "net_profit": margin - expenses,
        "sales_count": len(sales),
    }


def daily_margin(year: int, month: int) -> list[dict]:
    """Contribution margin per day of the month."""
    _, _, days = month_bounds(year, month)
    index, products = materials_by_id(), _products_by_id()
    by_day = {d: Decimal("0") for d in range(1, days + 1)}
    for s in sales_in_month(year, month):
        by_day[s.date.day] += sale_margin(s, index, products)
    return [{"day": d, "profit": v} for d, v in by_day.items()]


def monthly_net_profit(year: int) -> list[dict]:
    """Net profit for each month of the year."""
    index, products = materials_by_id(), _products_by_id()
    rows = []
    for m in range(1, 13):
        margin = sum((sale_margin(s, index, products) for s in sales_in_month(year, m)), Decimal("0"))
        exp = sum((D(e.amount) for e in expenses_in_month(year, m)), Decimal("0"))
        rows.append({"month": m, "net_profit": margin - exp})
    return rows


def insight_context(year: int, month: int, top: int = 5) -> dict:
    """Figures handed to the AI collaborator."""
    rep = monthly_report(year, month)
    names = [p.name for p in Product.query.order_by(Product.id).limit(top).all()]
    return {
        "grossRevenue": float(rep["gross_revenue"]),
        "totalFees": float(rep["total_fees"]),
        "totalCOGS": float(rep["total_cogs"]),
        "contributionMargin": float(rep["contribution_margin"]),
        "totalExpenses": float(rep["total_expenses"]),
        "netProfit": float(rep["net_profit"]),
        "topProductNames": names,
    }


# ------------ dashboard -------------------------------------------------------
def daily_message() -> str:
    cfg = db.session.get(SystemConfig, 1)
    return (cfg.daily_message if cfg else "") or ""


def set_daily_message(text: str) -> SystemConfig:
    with atomic():
        cfg = db.session.get(SystemConfig, 1)
        if cfg is None:
            cfg = SystemConfig(id=1)
            db.session.add(cfg)
        cfg.daily_message = text or ""
    return cfg


def dashboard(today: date | None = None) -> dict:
    today = today or local_today()
    start = datetime(today.year, today.month, today.day)
    end = start + timedelta(days=1)
    todays = sales_between(start, end)
    return {
        "sales_today_total": sum((D(s.total_amount) for s in todays), Decimal("0")),
        "sales_today_count": len(todays),
        "pending_orders": Sale.query.filter(Sale.status == "PENDING").count(),
        "in_production": Sale.query.filter(Sale.status == "IN_PRODUCTION").count(),
        "low_stock": [
            {"id": m.id, "name": m.name, "unit": m.unit,
             "current_stock": float(D(m.current_stock)), "min_stock": float(D(m.min_stock))}
            for m in sorted(low_stock(), key=lambda x: x.name.lower())
        ],
        "daily_message": daily_message(),
    }


# ------------ expenses --------------------------------------------------------
def add_expense(description: str, amount, category: str | None = None, when: datetime | None = None) -> Expense:
    description = (description or "").strip()
    if not description:
        raise ValidationError("no_description")
    amt = number(amount, "bad_amount", positive=True)
    with atomic():
        e = Expense(
            description=description,
            amount=cents(amt),
            category=(category or "").strip() or DEFAULT_CATEGORY,
            date=when or now(),
        )
        db.session.add(e)
    logger.info("expense %s %s (%s)", e.description, e.amount, e.category)
    return e


def delete_expense(expense_id) -> bool:
    e = db.session.get(Expense, to_int(expense_id))
    if not e:
        return False
    with atomic():
        db.session.delete(e)
    return True
