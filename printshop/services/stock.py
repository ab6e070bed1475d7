# -*- coding: utf-8 -*-
"""Stock ledger: running material quantities and the inventory movement log."""
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..errors import ValidationError
from ..models import D, Material, InventoryTransaction
from . import atomic, now, to_int
from .catalog import number

logger = logging.getLogger(__name__)

TRANSACTION_TYPES = ("ADD", "LOSS")


def signed_delta(kind: str, quantity) -> Decimal:
    """ADD raises stock, LOSS lowers it."""
    q = D(quantity)
    return q if kind == "ADD" else -q


def is_below_minimum(m: Material) -> bool:
    return D(m.current_stock) < D(m.min_stock)


def apply_delta(material_id, signed_quantity) -> Material | None:
    """Move stock without bounds checks. A deleted material is a no-op.

    Does not commit; callers own the transaction.
    """
    m = db.session.get(Material, material_id) if material_id is not None else None
    if m is None:
        logger.info("stock delta %s for missing material %s ignored", signed_quantity, material_id)
        return None
    m.current_stock = D(m.current_stock) + D(signed_quantity)
    if is_below_minimum(m):
        logger.warning("material %s below minimum: %s < %s", m.name, m.current_stock, m.min_stock)
    return m


def reverse(tr: InventoryTransaction) -> Material | None:
    return apply_delta(tr.material_id, -signed_delta(tr.type, tr.quantity))


# ------------ transaction log -------------------------------------------------
def record_transaction(material_id, kind: str, quantity, user=None, when: datetime | None = None) -> InventoryTransaction:
    kind = (kind or "").upper()
    if kind not in TRANSACTION_TYPES:
        raise ValidationError("bad_type")
    qty = number(quantity, "bad_quantity", positive=True)
    m = db.session.get(Material, to_int(material_id, "no_material"))
    if not m:
        raise ValidationError("no_material")

    with atomic():
        apply_delta(m.id, signed_delta(kind, qty))
        tr = InventoryTransaction(
            date=when or now(),
            material_id=m.id,
            material_name=m.name,
            type=kind,
            quantity=qty,
            user_id=getattr(user, "id", None),
            user_name=getattr(user, "name", "") or "",
        )
        db.session.add(tr)
    logger.info("inventory %s %s of %s by %s", kind, qty, m.name, tr.user_name or "-")
    return tr


def delete_transaction(tr_id) -> bool:
    tr = db.session.get(InventoryTransaction, to_int(tr_id))
    if not tr:
        return False
    with atomic():
        reverse(tr)
        db.session.delete(tr)
    logger.info("inventory transaction %s reverted", tr_id)
    return True


def list_transactions(only_losses: bool = False) -> list[InventoryTransaction]:
    q = InventoryTransaction.query
    if only_losses:
        q = q.filter(InventoryTransaction.type == "LOSS")
    return q.order_by(InventoryTransaction.date.desc(), InventoryTransaction.id.desc()).all()
