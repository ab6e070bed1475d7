# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation

from ..extensions import db
from ..errors import ValidationError
from ..models import D, cents, Material, Product, ProductMaterial, Marketplace
from ..models.catalog import UNITS
from . import atomic, to_int

logger = logging.getLogger(__name__)


def number(v, code: str, *, positive: bool = False, allow_none: bool = False) -> Decimal | None:
    if v in (None, ""):
        if allow_none:
            return None
        raise ValidationError(code)
    try:
        x = D(str(v).replace(",", "."))
    except InvalidOperation:
        raise ValidationError(code)
    if not x.is_finite() or (positive and x <= 0):
        raise ValidationError(code)
    return x


def percent(v, code: str) -> Decimal:
    x = number(v if v not in (None, "") else 0, code)
    if x < 0 or x > 100:
        raise ValidationError(code)
    return x


# ------------ lookups ---------------------------------------------------------
def materials_by_id() -> dict[int, Material]:
    return {m.id: m for m in Material.query.all()}


def required_materials(product: Product, quantity) -> dict[int, Decimal]:
    """material_id -> quantity consumed by `quantity` units of the product."""
    need: dict[int, Decimal] = {}
    for line in product.materials:
        need[line.material_id] = need.get(line.material_id, Decimal("0")) + D(line.quantity) * D(quantity)
    return need


def material_cost(product: Product, index: dict[int, Material] | None = None) -> Decimal:
    """Materials cost of one unit; dangling material references cost nothing."""
    index = materials_by_id() if index is None else index
    total = Decimal("0")
    for line in product.materials:
        m = index.get(line.material_id)
        if m is not None:
            total += D(m.cost_per_unit) * D(line.quantity)
    return total


def line_cost(product: Product, quantity, index: dict[int, Material] | None = None) -> Decimal:
    """(materials + labor) × quantity, rounded to cents."""
    return cents((material_cost(product, index) + D(product.labor_cost)) * D(quantity))


# ------------ materials -------------------------------------------------------
def _material_fields(data: dict, current: Material | None = None) -> dict:
    name = (data.get("name") or (current.name if current else "") or "").strip()
    if not name:
        raise ValidationError("no_name")
    unit = (data.get("unit") or (current.unit if current else "UN") or "UN").upper()
    if unit not in UNITS:
        raise ValidationError("bad_unit")
    cost = data.get("cost_per_unit", current.cost_per_unit if current else None)
    return {
        "name": name,
        "unit": unit,
        "cost_per_unit": number(cost, "bad_cost", positive=True),
        "current_stock": number(data.get("current_stock", current.current_stock if current else 0) or 0, "bad_stock"),
        "min_stock": number(data.get("min_stock", current.min_stock if current else 0) or 0, "bad_stock"),
        "loss_percentage": percent(data.get("loss_percentage", current.loss_percentage if current else 0), "bad_percent"),
    }


def add_material(data: dict) -> Material:
    fields = _material_fields(data)
    with atomic():
        m = Material(**fields)
        db.session.add(m)
    logger.info("material %s created", m.name)
    return m


def update_material(material_id, data: dict) -> Material:
    m = db.session.get(Material, to_int(material_id))
    if not m:
        raise ValidationError("no_material")
    fields = _material_fields(data, m)
    with atomic():
        for k, v in fields.items():
            setattr(m, k, v)
    return m


def delete_material(material_id) -> bool:
    m = db.session.get(Material, to_int(material_id))
    if not m:
        return False
    # bill-of-materials lines and history keep the id as a dangling reference
    with atomic():
        db.session.delete(m)
    logger.info("material %s deleted", material_id)
    return True


def low_stock(index: dict[int, Material] | None = None) -> list[Material]:
    items = (index or materials_by_id()).values()
    return [m for m in items if D(m.current_stock) <= D(m.min_stock)]


# ------------ products --------------------------------------------------------
def _bom_lines(rows) -> list[ProductMaterial]:
    lines: list[ProductMaterial] = []
    for r in rows or []:
        mid = to_int(r.get("material_id"), "bad_material")
        qty = number(r.get("quantity"), "bad_quantity", positive=True)
        lines.append(ProductMaterial(material_id=mid, quantity=qty))
    return lines


def add_product(data: dict) -> Product:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("no_name")
    price = number(data.get("selling_price"), "bad_price", positive=True)
    labor = number(data.get("labor_cost") or 0, "bad_price")
    lines = _bom_lines(data.get("materials"))
    with atomic():
        p = Product(name=name, is_kit=bool(data.get("is_kit")), selling_price=price, labor_cost=labor)
        p.materials = lines
        db.session.add(p)
    logger.info("product %s created with %d materials", p.name, len(lines))
    return p


def update_product(product_id, data: dict) -> Product:
    p = db.session.get(Product, to_int(product_id))
    if not p:
        raise ValidationError("no_product")
    with atomic():
        if "name" in data:
            name = (data.get("name") or "").strip()
            if not name:
                raise ValidationError("no_name")
            p.name = name
        if "selling_price" in data:
            p.selling_price = number(data.get("selling_price"), "bad_price", positive=True)
        if "labor_cost" in data:
            p.labor_cost = number(data.get("labor_cost") or 0, "bad_price")
        if "is_kit" in data:
            p.is_kit = bool(data.get("is_kit"))
        if "materials" in data:
            p.materials = _bom_lines(data.get("materials"))
    return p


def delete_product(product_id) -> bool:
    p = db.session.get(Product, to_int(product_id))
    if not p:
        return False
    with atomic():
        db.session.delete(p)
    return True


def product_rows() -> list[dict]:
    index = materials_by_id()
    rows = []
    for p in Product.query.order_by(Product.name).all():
        cost = material_cost(p, index) + D(p.labor_cost)
        price = D(p.selling_price)
        rows.append({
            "id": p.id,
            "name": p.name,
            "is_kit": bool(p.is_kit),
            "selling_price": float(price),
            "labor_cost": float(D(p.labor_cost)),
            "unit_cost": float(cents(cost)),
            "margin_percent": float(cents((price - cost) / price * 100)) if price else 0.0,
            "materials": [
                {
                    "material_id": line.material_id,
                    "name": index[line.material_id].name if line.material_id in index else None,
                    "quantity": float(D(line.quantity)),
                }
                for line in p.materials
            ],
        })
    return rows


# ------------ marketplaces ----------------------------------------------------
MARKETPLACE_FIELDS = (
    "name", "fixed_fee", "variable_fee_percent", "ads_fee_percent", "shipping_cost", "tax_percent",
)

def _marketplace_fields(data: dict) -> dict:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("no_name")
    return {
        "name": name,
        "fixed_fee": number(data.get("fixed_fee") or 0, "bad_fee"),
        "variable_fee_percent": number(data.get("variable_fee_percent") or 0, "bad_fee"),
        "ads_fee_percent": number(data.get("ads_fee_percent") or 0, "bad_fee"),
        "shipping_cost": number(data.get("shipping_cost") or 0, "bad_fee"),
        "tax_percent": number(data.get("tax_percent") or 0, "bad_fee"),
    }


def add_marketplace(data: dict) -> Marketplace:
    fields = _marketplace_fields(data)
    with atomic():
        mkp = Marketplace(**fields)
        db.session.add(mkp)
    return mkp


def update_marketplace(marketplace_id, data: dict) -> Marketplace:
    mkp = db.session.get(Marketplace, to_int(marketplace_id))
    if not mkp:
        raise ValidationError("no_marketplace")
    merged = {k: getattr(mkp, k) for k in MARKETPLACE_FIELDS}
    merged.update({k: v for k, v in data.items() if k in merged})
    fields = _marketplace_fields(merged)
    with atomic():
        for k, v in fields.items():
            setattr(mkp, k, v)
    return mkp


def delete_marketplace(marketplace_id) -> bool:
    mkp = db.session.get(Marketplace, to_int(marketplace_id))
    if not mkp:
        return False
    with atomic():
        db.session.delete(mkp)
    return True
