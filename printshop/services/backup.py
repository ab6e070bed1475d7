# -*- coding: utf-8 -*-
"""Whole-state backup as one JSON document.

The document layout matches the browser backups of the shop
(`backup-panda-YYYY-MM-DD.json`): eleven top-level keys, camelCase fields.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Callable

from ..extensions import db
from ..errors import ValidationError
from ..models import (
    D, Material, Product, ProductMaterial, Marketplace, Sale, SaleItem,
    InventoryTransaction, OperationalTarget, OperationalLog, User,
    PayrollTransaction, Expense, SystemConfig,
)
from ..models.catalog import UNITS
from ..models.expense import DEFAULT_CATEGORY
from ..models.payroll import PAYROLL_TYPES, PAYROLL_STATUSES
from ..models.sales import SALE_STATUSES, PAYMENT_METHODS
from ..models.user import ROLES, SALARY_TYPES
from . import atomic, now
from .stock import TRANSACTION_TYPES

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "materials", "products", "sales", "logs", "expenses", "targets",
    "marketplaces", "users", "inventoryHistory", "payrollTransactions", "systemConfig",
)


# ------------ encoding helpers ------------------------------------------------
def _num(v) -> float:
    return float(D(v))


def _opt_num(v) -> float | None:
    return None if v is None else float(D(v))


def _ts(v: datetime | None) -> str | None:
    return v.isoformat() if v else None


def _parse_ts(v) -> datetime:
    if not v:
        return now()
    s = str(v).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        # browser backups are in UTC; the ledger is in local time
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def _id(v) -> int | None:
    """Integer id, or None so the database assigns one."""
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def _ref(v) -> int:
    """Integer id of a referenced row; anything else rejects the backup."""
    return int(v)


def _choice(v, allowed: tuple, default: str) -> str:
    """One of `allowed`; anything else rejects the backup."""
    v = v or default
    if v not in allowed:
        raise ValueError(f"unexpected value {v!r}")
    return v


# ------------ export ----------------------------------------------------------
def _material(m: Material) -> dict:
    return {
        "id": m.id,
        "name": m.name,
        "unit": m.unit,
        "costPerUnit": _num(m.cost_per_unit),
        "currentStock": _num(m.current_stock),
        "minStock": _num(m.min_stock),
        "lossPercentage": _num(m.loss_percentage),
    }


def _product(p: Product) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "isKit": bool(p.is_kit),
        "materials": [{"materialId": line.material_id, "quantity": _num(line.quantity)} for line in p.materials],
        "sellingPrice": _num(p.selling_price),
        "laborCost": _num(p.labor_cost),
    }


def _sale(s: Sale) -> dict:
    d = {
        "id": s.id,
        "date": _ts(s.date),
        "items": [
            {"productId": i.product_id, "quantity": _num(i.quantity), "unitPrice": _num(i.unit_price)}
            for i in s.items
        ],
        "marketplaceId": s.marketplace_id,
        "platform": s.platform or "",
        "paymentMethod": s.payment_method,
        "totalAmount": _num(s.total_amount),
        "netRevenue": _opt_num(s.net_revenue),
        "customerName": s.customer_name or "",
        "status": s.status,
    }
    # absent snapshot marks a legacy sale
    if s.cost_snapshot is not None:
        d["costSnapshot"] = _num(s.cost_snapshot)
    if s.fee_snapshot is not None:
        d["feeSnapshot"] = _num(s.fee_snapshot)
    return d


def _user(u: User) -> dict:
    d = {"id": u.id, "name": u.name, "pin": u.pin, "role": u.role}
    cfg = u.payroll_config
    if cfg:
        d["payrollConfig"] = {
            "salaryType": cfg["salary_type"],
            "baseValue": _num(cfg["base_value"]),
            "cutoffDay": int(cfg["cutoff_day"]),
            "wastePenaltyPercent": _num(cfg["waste_penalty_percent"]),
        }
    return d


def _payroll(t: PayrollTransaction) -> dict:
    d = {
        "id": t.id,
        "userId": t.user_id,
        "userName": t.user_name or "",
        "type": t.type,
        "amount": _num(t.amount),
        "date": _ts(t.date),
        "status": t.status,
        "description": t.description or "",
    }
    if t.details is not None:
        d["details"] = t.details
    return d


def export_state() -> dict[str, Any]:
    cfg = db.session.get(SystemConfig, 1)
    return {
        "materials": [_material(m) for m in Material.query.order_by(Material.id).all()],
        "products": [_product(p) for p in Product.query.order_by(Product.id).all()],
        "sales": [_sale(s) for s in Sale.query.order_by(Sale.id).all()],
        "logs": [
            {"id": log.id, "date": _ts(log.date), "metricName": log.metric_name, "value": _num(log.value)}
            for log in OperationalLog.query.order_by(OperationalLog.id).all()
        ],
        "expenses": [
            {"id": e.id, "description": e.description, "amount": _num(e.amount),
             "date": _ts(e.date), "category": e.category}
            for e in Expense.query.order_by(Expense.id).all()
        ],
        "targets": [
            {"id": t.id, "metricName": t.metric_name, "targetDaily": _num(t.target_daily), "unitRate": _num(t.unit_rate)}
            for t in OperationalTarget.query.order_by(OperationalTarget.id).all()
        ],
        "marketplaces": [
            {"id": m.id, "name": m.name, "fixedFee": _num(m.fixed_fee),
             "variableFeePercent": _num(m.variable_fee_percent), "adsFeePercent": _num(m.ads_fee_percent),
             "shippingCost": _num(m.shipping_cost), "taxPercent": _num(m.tax_percent)}
            for m in Marketplace.query.order_by(Marketplace.id).all()
        ],
        "users": [_user(u) for u in User.query.order_by(User.id).all()],
        "inventoryHistory": [
            {"id": t.id, "date": _ts(t.date), "materialId": t.material_id, "materialName": t.material_name or "",
             "type": t.type, "quantity": _num(t.quantity), "userName": t.user_name or "", "userId": t.user_id}
            for t in InventoryTransaction.query.order_by(InventoryTransaction.id).all()
        ],
        "payrollTransactions": [_payroll(t) for t in PayrollTransaction.query.order_by(PayrollTransaction.id).all()],
        "systemConfig": {"dailyMessage": (cfg.daily_message if cfg else "") or ""},
    }


def export_json() -> str:
    return json.dumps(export_state(), ensure_ascii=False)


# ------------ import ----------------------------------------------------------
def _load_material(r: dict):
    return Material(
        id=_id(r.get("id")),
        name=str(r["name"]),
        unit=_choice(r.get("unit"), UNITS, "UN"),
        cost_per_unit=D(r.get("costPerUnit") or 0),
        current_stock=D(r.get("currentStock") or 0),
        min_stock=D(r.get("minStock") or 0),
        loss_percentage=D(r.get("lossPercentage") or 0),
    )


def _load_product(r: dict):
    p = Product(
        id=_id(r.get("id")),
        name=str(r["name"]),
        is_kit=bool(r.get("isKit")),
        selling_price=D(r.get("sellingPrice") or 0),
        labor_cost=D(r.get("laborCost") or 0),
    )
    p.materials = [
        ProductMaterial(material_id=_ref(x["materialId"]), quantity=D(x.get("quantity") or 0))
        for x in r.get("materials") or []
    ]
    return p


def _load_sale(r: dict):
    s = Sale(
        id=_id(r.get("id")),
        date=_parse_ts(r.get("date")),
        marketplace_id=_id(r.get("marketplaceId")),
        platform=r.get("platform") or "",
        payment_method=_choice(r.get("paymentMethod"), PAYMENT_METHODS, "PIX"),
        total_amount=D(r.get("totalAmount") or 0),
        net_revenue=None if r.get("netRevenue") is None else D(r["netRevenue"]),
        cost_snapshot=None if r.get("costSnapshot") is None else D(r["costSnapshot"]),
        fee_snapshot=None if r.get("feeSnapshot") is None else D(r["feeSnapshot"]),
        customer_name=r.get("customerName") or "",
        status=_choice(r.get("status"), SALE_STATUSES, "PENDING"),
    )
    s.items = [
        SaleItem(product_id=_ref(i["productId"]), quantity=D(i.get("quantity") or 0), unit_price=D(i.get("unitPrice") or 0))
        for i in r.get("items") or []
    ]
    return s


def _load_log(r: dict):
    return OperationalLog(id=_id(r.get("id")), date=_parse_ts(r.get("date")),
                          metric_name=str(r["metricName"]), value=D(r.get("value") or 0))


def _load_expense(r: dict):
    return Expense(id=_id(r.get("id")), description=str(r.get("description") or ""), amount=D(r.get("amount") or 0),
                   date=_parse_ts(r.get("date")), category=r.get("category") or DEFAULT_CATEGORY)


def _load_target(r: dict):
    return OperationalTarget(id=_id(r.get("id")), metric_name=str(r["metricName"]),
                             target_daily=D(r.get("targetDaily") or 0), unit_rate=D(r.get("unitRate") or 0))


def _load_marketplace(r: dict):
    return Marketplace(
        id=_id(r.get("id")),
        name=str(r["name"]),
        fixed_fee=D(r.get("fixedFee") or 0),
        variable_fee_percent=D(r.get("variableFeePercent") or 0),
        ads_fee_percent=D(r.get("adsFeePercent") or 0),
        shipping_cost=D(r.get("shippingCost") or 0),
        tax_percent=D(r.get("taxPercent") or 0),
    )


def _load_user(r: dict):
    u = User(
        id=_id(r.get("id")),
        name=str(r["name"]),
        pin=str(r.get("pin") or ""),
        role=_choice(r.get("role"), ROLES, "EMPLOYEE"),
    )
    cfg = r.get("payrollConfig")
    if cfg:
        u.salary_type = _choice(cfg.get("salaryType"), SALARY_TYPES, "FIXED")
        u.base_value = D(cfg.get("baseValue") or 0)
        u.cutoff_day = int(cfg.get("cutoffDay") or 5)
        u.waste_penalty_percent = D(cfg.get("wastePenaltyPercent") or 0)
    return u


def _load_inventory(r: dict):
    return InventoryTransaction(
        id=_id(r.get("id")),
        date=_parse_ts(r.get("date")),
        material_id=_ref(r["materialId"]),
        material_name=r.get("materialName") or "",
        type=_choice(r.get("type"), TRANSACTION_TYPES, "ADD"),
        quantity=D(r.get("quantity") or 0),
        user_id=_id(r.get("userId")),
        user_name=r.get("userName") or "",
    )


def _load_payroll(r: dict):
    t = PayrollTransaction(
        id=_id(r.get("id")),
        user_id=_ref(r["userId"]),
        user_name=r.get("userName") or "",
        type=_choice(r.get("type"), PAYROLL_TYPES, "ADVANCE"),
        amount=D(r.get("amount") or 0),
        date=_parse_ts(r.get("date")),
        status=_choice(r.get("status"), PAYROLL_STATUSES, "PENDING"),
        description=r.get("description") or "",
    )
    t.details = r.get("details") if isinstance(r.get("details"), dict) else None
    return t


# key -> (tables replaced, row loader); child tables first
_LOADERS: dict[str, tuple[tuple, Callable[[dict], Any]]] = {
    "materials": ((Material,), _load_material),
    "products": ((ProductMaterial, Product), _load_product),
    "sales": ((SaleItem, Sale), _load_sale),
    "logs": ((OperationalLog,), _load_log),
    "expenses": ((Expense,), _load_expense),
    "targets": ((OperationalTarget,), _load_target),
    "marketplaces": ((Marketplace,), _load_marketplace),
    "users": ((User,), _load_user),
    "inventoryHistory": ((InventoryTransaction,), _load_inventory),
    "payrollTransactions": ((PayrollTransaction,), _load_payroll),
}


def import_state(doc) -> list[str]:
    """Replace every collection present in `doc`; absent keys stay as they are.

    The whole document is parsed before anything is written, so a bad
    backup leaves the database untouched. Returns the replaced keys.
    """
    if isinstance(doc, (str, bytes)):
        try:
            doc = json.loads(doc)
        except ValueError:
            raise ValidationError("bad_backup")
    if not isinstance(doc, dict):
        raise ValidationError("bad_backup")

    parsed: dict[str, list] = {}
    try:
        for key, (_, loader) in _LOADERS.items():
            rows = doc.get(key)
            if rows is None:
                continue
            if not isinstance(rows, list):
                raise ValidationError("bad_backup", f"{key} is not a list")
            parsed[key] = [loader(r) for r in rows]
        message = None
        if doc.get("systemConfig") is not None:
            sc = doc["systemConfig"]
            if not isinstance(sc, dict):
                raise ValidationError("bad_backup", "systemConfig is not an object")
            message = str(sc.get("dailyMessage") or "")
    except (KeyError, TypeError, ValueError, ArithmeticError, AttributeError) as e:
        logger.warning("backup rejected: %s", e)
        raise ValidationError("bad_backup")

    with atomic():
        for key in parsed:
            for model in _LOADERS[key][0]:
                db.session.query(model).delete(synchronize_session=False)
        db.session.expunge_all()
        for objs in parsed.values():
            db.session.add_all(objs)
        if message is not None:
            db.session.query(SystemConfig).delete(synchronize_session=False)
            db.session.add(SystemConfig(id=1, daily_message=message))

    replaced = list(parsed) + (["systemConfig"] if message is not None else [])
    logger.info("backup imported: %s", ", ".join(replaced) or "nothing")
    return replaced
