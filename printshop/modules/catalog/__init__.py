# -*- coding: utf-8 -*-
from __future__ import annotations

from flask import Blueprint, request, jsonify
from flask_login import login_required

from ...extensions import db
from ...models import D, Material, Marketplace
from ...security import roles_required
from ...services import catalog, to_int
from ...services.ai import get_insights

bp = Blueprint("catalog", __name__, url_prefix="/catalog")


def _payload() -> dict:
    return request.get_json(force=True, silent=True) or {}


def material_row(m: Material) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "unit": m.unit,
        "cost_per_unit": float(D(m.cost_per_unit)),
        "current_stock": float(D(m.current_stock)),
        "min_stock": float(D(m.min_stock)),
        "loss_percentage": float(D(m.loss_percentage)),
        "low": D(m.current_stock) <= D(m.min_stock),
    }


def marketplace_row(mkp: Marketplace) -> dict:
    row = {"id": mkp.id}
    for k in catalog.MARKETPLACE_FIELDS:
        v = getattr(mkp, k)
        row[k] = v if k == "name" else float(D(v))
    return row


# ------------ materials -------------------------------------------------------
@bp.get("/materials")
@login_required
def materials():
    items = Material.query.order_by(Material.name).all()
    return jsonify({"ok": True, "items": [material_row(m) for m in items]})


@bp.post("/materials")
@login_required
@roles_required("ADMIN")
def material_create():
    m = catalog.add_material(_payload())
    return jsonify({"ok": True, "item": material_row(m)}), 201


@bp.post("/materials/<int:material_id>")
@login_required
@roles_required("ADMIN")
def material_update(material_id: int):
    m = catalog.update_material(material_id, _payload())
    return jsonify({"ok": True, "item": material_row(m)})


@bp.post("/materials/<int:material_id>/delete")
@login_required
@roles_required("ADMIN")
def material_delete(material_id: int):
    if not catalog.delete_material(material_id):
        return jsonify({"ok": False, "error": "no_material"}), 404
    return jsonify({"ok": True})


# ------------ products --------------------------------------------------------
@bp.get("/products")
@login_required
def products():
    return jsonify({"ok": True, "items": catalog.product_rows()})


@bp.post("/products")
@login_required
@roles_required("ADMIN")
def product_create():
    p = catalog.add_product(_payload())
    return jsonify({"ok": True, "id": p.id}), 201


@bp.post("/products/<int:product_id>")
@login_required
@roles_required("ADMIN")
def product_update(product_id: int):
    p = catalog.update_product(product_id, _payload())
    return jsonify({"ok": True, "id": p.id})


@bp.post("/products/<int:product_id>/delete")
@login_required
@roles_required("ADMIN")
def product_delete(product_id: int):
    if not catalog.delete_product(product_id):
        return jsonify({"ok": False, "error": "no_product"}), 404
    return jsonify({"ok": True})


@bp.post("/products/describe")
@login_required
def product_describe():
    """Marketing text for a product name and its materials (AI, best effort)."""
    payload = _payload()
    name = (payload.get("name") or "").strip()
    if not name:
        return jsonify({"ok": False, "error": "no_name"}), 400
    ids = [to_int(x, "bad_material") for x in payload.get("material_ids") or []]
    names = [m.name for m in (db.session.get(Material, i) for i in ids) if m is not None]
    text = get_insights().suggest_description(name, names)
    return jsonify({"ok": True, "description": text})


# ------------ marketplaces ----------------------------------------------------
@bp.get("/marketplaces")
@login_required
def marketplaces():
    items = Marketplace.query.order_by(Marketplace.id).all()
    return jsonify({"ok": True, "items": [marketplace_row(m) for m in items]})


@bp.post("/marketplaces")
@login_required
@roles_required("ADMIN")
def marketplace_create():
    mkp = catalog.add_marketplace(_payload())
    return jsonify({"ok": True, "item": marketplace_row(mkp)}), 201


@bp.post("/marketplaces/<int:marketplace_id>")
@login_required
@roles_required("ADMIN")
def marketplace_update(marketplace_id: int):
    mkp = catalog.update_marketplace(marketplace_id, _payload())
    return jsonify({"ok": True, "item": marketplace_row(mkp)})


@bp.post("/marketplaces/<int:marketplace_id>/delete")
@login_required
@roles_required("ADMIN")
def marketplace_delete(marketplace_id: int):
    if not catalog.delete_marketplace(marketplace_id):
        return jsonify({"ok": False, "error": "no_marketplace"}), 404
    return jsonify({"ok": True})
