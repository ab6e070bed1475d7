# -*- coding: utf-8 -*-
from __future__ import annotations


from flask import Blueprint, request, jsonify
from flask_login import login_required

from ...errors import ValidationError
from ...extensions import db
from ...models import D, User, PayrollTransaction
from ...security import roles_required
from ...services import local_today, payroll

bp = Blueprint("payroll", __name__, url_prefix="/payroll")


def _tr(t: PayrollTransaction) -> dict:
    return {
        "id": t.id,
        "type": t.type,
        "status": t.status,
        "amount": float(D(t.amount)),
        "date": t.date.isoformat() if t.date else None,
        "description": t.description or "",
        "details": t.details,
    }


def _user(u: User) -> dict:
    return {
        "id": u.id,
        "name": u.name,
        "role": u.role,
        "payroll_config": u.payroll_config,
        "pending_advances": [_tr(t) for t in payroll.pending_advances(u.id)],
        "slips": [_tr(t) for t in payroll.slips_for(u.id)],
    }


@bp.get("/")
@login_required
@roles_required("ADMIN")
def index():
    # the listing is one of the triggers that lays down due slips
    payroll.generate_due_slips(local_today())
    users = User.query.order_by(User.name).all()
    return jsonify({"ok": True, "users": [_user(u) for u in users]})


@bp.post("/users/<int:user_id>/config")
@login_required
@roles_required("ADMIN")
def config(user_id: int):
    u = payroll.update_payroll_config(user_id, request.get_json(force=True, silent=True) or {})
    return jsonify({"ok": True, "user": _user(u)})


@bp.post("/advances")
@login_required
@roles_required("ADMIN")
def advance():
    payload = request.get_json(force=True, silent=True) or {}
    tr = payroll.add_advance(payload.get("user_id"), payload.get("amount"))
    return jsonify({"ok": True, "item": _tr(tr)}), 201


@bp.get("/slips/<int:slip_id>")
@login_required
@roles_required("ADMIN")
def slip_preview(slip_id: int):
    slip = db.session.get(PayrollTransaction, slip_id)
    if not slip or slip.type != "SALARY_SLIP":
        return jsonify({"ok": False, "error": "no_slip"}), 404
    user = db.session.get(User, slip.user_id)
    if not user:
        raise ValidationError("no_user")
    penalty = request.args.get("penalty_amount") or None
    b = payroll.compute_slip(user, slip.date.year, slip.date.month, penalty)
    return jsonify({"ok": True, "slip": _tr(slip), "breakdown": b})


@bp.post("/slips/<int:slip_id>/confirm")
@login_required
@roles_required("ADMIN")
def slip_confirm(slip_id: int):
    payload = request.get_json(force=True, silent=True) or {}
    penalty = payload.get("penalty_amount")
    slip = payroll.confirm_payment(
        slip_id,
        penalty_amount=penalty if penalty not in (None, "") else None,
        allow_negative=bool(payload.get("allow_negative")),
    )
    return jsonify({"ok": True, "slip": _tr(slip)})
