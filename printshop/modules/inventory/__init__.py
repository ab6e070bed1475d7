# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user

from ...models import D, InventoryTransaction
from ...services import stock

bp = Blueprint("inventory", __name__, url_prefix="/inventory")


def _row(t: InventoryTransaction) -> dict:
    return {
        "id": t.id,
        "date": t.date.isoformat() if t.date else None,
        "material_id": t.material_id,
        "material_name": t.material_name,
        "type": t.type,
        "quantity": float(D(t.quantity)),
        "user_name": t.user_name or "",
    }


@bp.get("/")
@login_required
def index():
    only_losses = request.args.get("type", "").upper() == "LOSS"
    items = stock.list_transactions(only_losses=only_losses)
    return jsonify({"ok": True, "items": [_row(t) for t in items]})


@bp.post("/")
@login_required
def record():
    payload = request.get_json(force=True, silent=True) or {}
    tr = stock.record_transaction(
        payload.get("material_id"),
        payload.get("type"),
        payload.get("quantity"),
        user=current_user,
    )
    return jsonify({"ok": True, "item": _row(tr)}), 201


@bp.post("/<int:tr_id>/delete")
@login_required
def delete(tr_id: int):
    # stock is moved back by the reverse of the entry
    if not stock.delete_transaction(tr_id):
        return jsonify({"ok": False, "error": "not_found"}), 404
    return jsonify({"ok": True})
