# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, request, jsonify
from flask_login import login_required

from ...security import roles_required
from ...services import sales

bp = Blueprint("sales", __name__, url_prefix="/sales")


def _flag(v) -> bool:
    return str(v).strip().lower() in ("1", "true", "yes", "on")


@bp.get("/")
@login_required
def index():
    try:
        limit = max(1, min(int(request.args.get("limit", 10)), 500))
    except ValueError:
        limit = 10
    return jsonify({"ok": True, "items": [sales.sale_row(s) for s in sales.recent_sales(limit)]})


@bp.post("/")
@login_required
def create():
    payload = request.get_json(force=True, silent=True) or {}
    sale = sales.create_sale(
        payload.get("product_id"),
        payload.get("marketplace_id"),
        payload.get("quantity", 1),
        payment_method=payload.get("payment_method") or "PIX",
        customer_name=payload.get("customer_name"),
        confirm=_flag(payload.get("confirm", False)),
    )
    return jsonify({"ok": True, "item": sales.sale_row(sale)}), 201


@bp.post("/<int:sale_id>/status")
@login_required
def set_status(sale_id: int):
    payload = request.get_json(force=True, silent=True) or {}
    sale = sales.update_status(sale_id, payload.get("status"))
    return jsonify({"ok": True, "item": sales.sale_row(sale)})


@bp.post("/<int:sale_id>/delete")
@login_required
@roles_required("ADMIN")
def delete(sale_id: int):
    payload = request.get_json(force=True, silent=True) or {}
    if not _flag(payload.get("confirm", False)):
        return jsonify({"ok": False, "error": "confirm_required"}), 409
    if not sales.delete_sale(sale_id):
        return jsonify({"ok": False, "error": "no_sale"}), 404
    return jsonify({"ok": True})
