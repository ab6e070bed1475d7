# -*- coding: utf-8 -*-
import logging

from flask import Blueprint, request, jsonify
from flask_login import login_user, logout_user, login_required, current_user

from ..extensions import db
from ..models.user import User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)


def _me(u: User) -> dict:
    return {"id": u.id, "name": u.name, "role": u.role}


@auth_bp.get("/login")
def users():
    # the login screen picks a user then asks for the PIN
    return jsonify({"ok": True, "users": [_me(u) for u in User.query.order_by(User.name).all()]})


@auth_bp.post("/login")
def login():
    payload = request.get_json(force=True, silent=True) or {}
    try:
        uid = int(payload.get("user_id"))
    except (TypeError, ValueError):
        return jsonify({"ok": False, "error": "bad_request"}), 400
    u = db.session.get(User, uid)
    if not u or not u.check_pin(str(payload.get("pin", "")).strip()):
        logger.warning("failed login for user id %s", uid)
        return jsonify({"ok": False, "error": "bad_pin"}), 401
    login_user(u, remember=True)
    logger.info("%s logged in", u.name)
    return jsonify({"ok": True, "user": _me(u)})


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    return jsonify({"ok": True})


@auth_bp.get("/me")
@login_required
def me():
    return jsonify({"ok": True, "user": _me(current_user)})
