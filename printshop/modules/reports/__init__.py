# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, request, jsonify
from flask_login import login_required

from ...formatting import fmt_date, fmt_money
from ...models import D, Expense
from ...security import roles_required
from ...services import parse_month, reports
from ...services.ai import get_insights

bp = Blueprint("reports", __name__, url_prefix="/reports")

MONEY_KEYS = ("gross_revenue", "total_fees", "total_cogs", "contribution_margin", "total_expenses", "net_profit")


def _expense(e: Expense) -> dict:
    return {
        "id": e.id,
        "description": e.description,
        "amount": float(D(e.amount)),
        "category": e.category,
        "date": e.date.isoformat() if e.date else None,
        "date_label": fmt_date(e.date),
    }


@bp.get("/")
@login_required
@roles_required("ADMIN")
def index():
    y, m = parse_month(request.args.get("month"))
    rep = reports.monthly_report(y, m)
    rep["formatted"] = {k: fmt_money(rep[k]) for k in MONEY_KEYS}
    return jsonify({"ok": True, "report": rep})


@bp.get("/series")
@login_required
@roles_required("ADMIN")
def series():
    y, m = parse_month(request.args.get("month"))
    return jsonify({
        "ok": True,
        "daily": reports.daily_margin(y, m),
        "monthly": reports.monthly_net_profit(y),
    })


# ------------ expenses --------------------------------------------------------
@bp.get("/expenses")
@login_required
@roles_required("ADMIN")
def expenses():
    y, m = parse_month(request.args.get("month"))
    return jsonify({"ok": True, "items": [_expense(e) for e in reports.expenses_in_month(y, m)]})


@bp.post("/expenses")
@login_required
@roles_required("ADMIN")
def expense_create():
    payload = request.get_json(force=True, silent=True) or {}
    e = reports.add_expense(payload.get("description"), payload.get("amount"), payload.get("category"))
    return jsonify({"ok": True, "item": _expense(e)}), 201


@bp.post("/expenses/<int:expense_id>/delete")
@login_required
@roles_required("ADMIN")
def expense_delete(expense_id: int):
    if not reports.delete_expense(expense_id):
        return jsonify({"ok": False, "error": "no_expense"}), 404
    return jsonify({"ok": True})


# ------------ AI --------------------------------------------------------------
@bp.post("/insight")
@login_required
@roles_required("ADMIN")
def insight():
    y, m = parse_month(request.args.get("month"))
    text = get_insights().summarize_business(reports.insight_context(y, m))
    return jsonify({"ok": True, "text": text})
