# -*- coding: utf-8 -*-
from __future__ import annotations

import logging

from flask import Blueprint, request, jsonify, Response
from flask_login import login_required, current_user

from ...extensions import db
from ...models import User
from ...models.user import ROLES
from ...security import roles_required
from ...services import atomic, backup, local_today, reports

logger = logging.getLogger(__name__)

bp = Blueprint("settings", __name__, url_prefix="/settings")


def _payload() -> dict:
    return request.get_json(force=True, silent=True) or {}


def _user(u: User) -> dict:
    return {"id": u.id, "name": u.name, "role": u.role}


# ------------ users -----------------------------------------------------------
@bp.get("/users")
@login_required
@roles_required("ADMIN")
def users():
    return jsonify({"ok": True, "items": [_user(u) for u in User.query.order_by(User.name).all()]})


@bp.post("/users")
@login_required
@roles_required("ADMIN")
def user_create():
    p = _payload()
    name = (p.get("name") or "").strip()
    pin = str(p.get("pin") or "").strip()
    role = (p.get("role") or "EMPLOYEE").upper()
    if not name:
        return jsonify({"ok": False, "error": "no_name"}), 400
    if not pin:
        return jsonify({"ok": False, "error": "no_pin"}), 400
    if role not in ROLES:
        return jsonify({"ok": False, "error": "bad_role"}), 400
    with atomic():
        u = User(name=name, pin=pin, role=role)
        db.session.add(u)
    logger.info("user %s (%s) created by %s", u.name, u.role, current_user.name)
    return jsonify({"ok": True, "item": _user(u)}), 201


@bp.post("/users/<int:user_id>/delete")
@login_required
@roles_required("ADMIN")
def user_delete(user_id: int):
    u = db.session.get(User, user_id)
    if not u:
        return jsonify({"ok": False, "error": "no_user"}), 404
    if User.query.count() <= 1:
        return jsonify({"ok": False, "error": "last_user"}), 400
    # payroll history keeps user_id/user_name
    with atomic():
        db.session.delete(u)
    logger.info("user %s deleted by %s", user_id, current_user.name)
    return jsonify({"ok": True})


# ------------ daily message ---------------------------------------------------
@bp.get("/message")
@login_required
def message():
    return jsonify({"ok": True, "message": reports.daily_message()})


@bp.post("/message")
@login_required
@roles_required("ADMIN")
def message_update():
    cfg = reports.set_daily_message(_payload().get("message") or "")
    return jsonify({"ok": True, "message": cfg.daily_message})


# ------------ backup ----------------------------------------------------------
@bp.get("/export")
@login_required
@roles_required("ADMIN")
def export():
    fname = f"printshop-backup-{local_today():%Y-%m-%d}.json"
    return Response(
        backup.export_json(),
        mimetype="application/json",
        headers={"Content-Disposition": f'attachment; filename="{fname}"'},
    )


@bp.post("/import")
@login_required
@roles_required("ADMIN")
def import_():
    f = request.files.get("file")
    doc = f.read() if f else request.get_data()
    who = current_user.name
    replaced = backup.import_state(doc)
    logger.info("backup imported by %s: %s", who, ", ".join(replaced))
    return jsonify({"ok": True, "replaced": replaced})
