# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, request, jsonify
from flask_login import login_required

from ...models import D, OperationalTarget, OperationalLog
from ...security import roles_required
from ...services import operations

bp = Blueprint("operations", __name__, url_prefix="/operations")


def _target(t: OperationalTarget) -> dict:
    return {
        "id": t.id,
        "metric_name": t.metric_name,
        "target_daily": float(D(t.target_daily)),
        "unit_rate": float(D(t.unit_rate)),
    }


def _log(log: OperationalLog) -> dict:
    return {
        "id": log.id,
        "date": log.date.isoformat() if log.date else None,
        "metric_name": log.metric_name,
        "value": float(D(log.value)),
    }


@bp.get("/")
@login_required
def index():
    targets = OperationalTarget.query.order_by(OperationalTarget.id).all()
    return jsonify({
        "ok": True,
        "targets": [_target(t) for t in targets],
        "logs": [_log(x) for x in operations.list_logs(limit=50)],
    })


@bp.post("/targets")
@login_required
@roles_required("ADMIN")
def target_create():
    t = operations.add_target(request.get_json(force=True, silent=True) or {})
    return jsonify({"ok": True, "item": _target(t)}), 201


@bp.post("/targets/<int:target_id>")
@login_required
@roles_required("ADMIN")
def target_update(target_id: int):
    t = operations.update_target(target_id, request.get_json(force=True, silent=True) or {})
    return jsonify({"ok": True, "item": _target(t)})


@bp.post("/targets/<int:target_id>/delete")
@login_required
@roles_required("ADMIN")
def target_delete(target_id: int):
    if not operations.delete_target(target_id):
        return jsonify({"ok": False, "error": "no_target"}), 404
    return jsonify({"ok": True})


@bp.post("/logs")
@login_required
def log_create():
    payload = request.get_json(force=True, silent=True) or {}
    log = operations.record_log(payload.get("target_id"), payload.get("value"))
    return jsonify({"ok": True, "item": _log(log)}), 201
