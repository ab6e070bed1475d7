# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..errors import ValidationError, StockWarning
from ..models import D, cents, Material, Product, Marketplace, Sale, SaleItem
from ..models.sales import SALE_STATUSES, PAYMENT_METHODS
from . import atomic, now, to_int
from .catalog import number, materials_by_id, required_materials, line_cost
from .stock import apply_delta

logger = logging.getLogger(__name__)


def marketplace_fees(mkp: Marketplace, total) -> Decimal:
    """fixed + variable% + ads% + tax% of the total + shipping, in cents."""
    total = D(total)
    pct = D(mkp.variable_fee_percent) + D(mkp.ads_fee_percent) + D(mkp.tax_percent)
    return cents(D(mkp.fixed_fee) + total * pct / 100 + D(mkp.shipping_cost))


def check_stock(product: Product, quantity, index: dict[int, Material] | None = None) -> list[dict]:
    """Materials that would end below their minimum after the sale."""
    index = materials_by_id() if index is None else index
    missing: list[dict] = []
    for mid, needed in required_materials(product, quantity).items():
        m = index.get(mid)
        if m is None:
            continue
        remaining = D(m.current_stock) - needed
        if remaining < D(m.min_stock):
            missing.append({
                "material_id": m.id,
                "name": m.name,
                "current": float(D(m.current_stock)),
                "needed": float(needed),
                "remaining": float(remaining),
            })
    return missing


def create_sale(
    product_id,
    marketplace_id,
    quantity,
    payment_method: str = "PIX",
    customer_name: str | None = None,
    confirm: bool = False,
    when: datetime | None = None,
) -> Sale:
    """Record a sale with frozen cost/fee snapshots and deduct its materials.

    Raises StockWarning (nothing written) when materials would drop below
    their minimum, unless `confirm` is set.
    """
    product = db.session.get(Product, to_int(product_id, "no_product"))
    if not product:
        raise ValidationError("no_product")
    mkp = db.session.get(Marketplace, to_int(marketplace_id, "no_marketplace"))
    if not mkp:
        raise ValidationError("no_marketplace")
    qty = number(quantity, "bad_quantity", positive=True)
    payment_method = (payment_method or "PIX").upper()
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError("bad_payment_method")

    index = materials_by_id()
    missing = check_stock(product, qty, index)
    if missing and not confirm:
        logger.warning("sale of %s x%s needs confirmation: %d materials short", product.name, qty, len(missing))
        raise StockWarning(missing)

    total = cents(D(product.selling_price) * qty)
    fees = marketplace_fees(mkp, total)
    cost = line_cost(product, qty, index)

    with atomic():
        sale = Sale(
            date=when or now(),
            marketplace_id=mkp.id,
            platform=mkp.name,
            payment_method=payment_method,
            total_amount=total,
            net_revenue=total - fees,
            cost_snapshot=cost,
            fee_snapshot=fees,
            customer_name=(customer_name or "").strip(),
            status="PENDING",
        )
        sale.items = [SaleItem(product_id=product.id, quantity=qty, unit_price=D(product.selling_price))]
        db.session.add(sale)
        for mid, needed in required_materials(product, qty).items():
            apply_delta(mid, -needed)
    logger.info("sale %s: %s x%s via %s total=%s fees=%s cost=%s",
                sale.id, product.name, qty, mkp.name, total, fees, cost)
    return sale


def delete_sale(sale_id) -> bool:
    """Remove a sale and give its materials back to stock.

    Uses the bill-of-materials as it is now, not as it was at sale time.
    """
    sale = db.session.get(Sale, to_int(sale_id))
    if not sale:
        return False
    with atomic():
        for item in sale.items:
            product = db.session.get(Product, item.product_id)
            if product is None:
                continue
            for mid, qty in required_materials(product, item.quantity).items():
                apply_delta(mid, qty)
        db.session.delete(sale)
    logger.info("sale %s deleted, stock restored", sale_id)
    return True


def update_status(sale_id, status: str) -> Sale:
    status = (status or "").upper()
    if status not in SALE_STATUSES:
        raise ValidationError("bad_status")
    sale = db.session.get(Sale, to_int(sale_id))
    if not sale:
        raise ValidationError("no_sale")
    with atomic():
        sale.status = status
    return sale


def recent_sales(limit: int = 10) -> list[Sale]:
    return Sale.query.order_by(Sale.date.desc(), Sale.id.desc()).limit(limit).all()


def sale_row(sale: Sale) -> dict:
    names = {p.id: p.name for p in Product.query.filter(Product.id.in_([i.product_id for i in sale.items])).all()} if sale.items else {}
    return {
        "id": sale.id,
        "date": sale.date.isoformat() if sale.date else None,
        "platform": sale.platform,
        "payment_method": sale.payment_method,
        "customer_name": sale.customer_name or "",
        "status": sale.status,
        "total_amount": float(D(sale.total_amount)),
        "net_revenue": float(D(sale.net_revenue)) if sale.net_revenue is not None else None,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": names.get(i.product_id),
                "quantity": float(D(i.quantity)),
                "unit_price": float(D(i.unit_price)),
            }
            for i in sale.items
        ],
    }
