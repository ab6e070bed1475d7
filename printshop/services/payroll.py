# -*- coding: utf-8 -*-
"""Monthly compensation: base + bonus - advances - waste penalty."""
from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

from ..extensions import db
from ..errors import ValidationError, NegativePayrollWarning
from ..models import (
    D, cents, User, Product, Material, OperationalTarget, OperationalLog,
    InventoryTransaction, PayrollTransaction, Expense,
)
from ..models.user import SALARY_TYPES, DEFAULT_PAYROLL_CONFIG
from ..models.expense import PAYROLL_CATEGORY
from . import atomic, now, local_today, month_bounds, to_int
from .catalog import number, required_materials
from .reports import sales_in_month, contribution_margin

logger = logging.getLogger(__name__)


def _config(user: User) -> dict:
    return user.payroll_config or dict(DEFAULT_PAYROLL_CONFIG)


# ------------ components ------------------------------------------------------
def monthly_contribution(year: int, month: int) -> Decimal:
    return contribution_margin(sales_in_month(year, month))


def base_pay(user: User, year: int, month: int) -> Decimal:
    cfg = _config(user)
    if cfg["salary_type"] == "PROFIT_SHARE":
        return monthly_contribution(year, month) * D(cfg["base_value"]) / 100
    return D(cfg["base_value"])


def bonus_for(year: int, month: int) -> Decimal:
    """Σ targets (month's logged value for the metric × unit rate)."""
    start, end, _ = month_bounds(year, month)
    logs = OperationalLog.query.filter(OperationalLog.date >= start, OperationalLog.date < end).all()
    per_metric: dict[str, Decimal] = {}
    for log in logs:
        per_metric[log.metric_name] = per_metric.get(log.metric_name, Decimal("0")) + D(log.value)
    total = Decimal("0")
    for t in OperationalTarget.query.all():
        total += per_metric.get(t.metric_name, Decimal("0")) * D(t.unit_rate)
    return total


def pending_advances(user_id: int) -> list[PayrollTransaction]:
    """Every outstanding advance of the user, whatever month it was taken."""
    return (
        PayrollTransaction.query.filter_by(user_id=user_id, type="ADVANCE", status="PENDING")
        .order_by(PayrollTransaction.date.asc(), PayrollTransaction.id.asc())
        .all()
    )


def theoretical_consumption(year: int, month: int) -> dict[int, Decimal]:
    """material_id -> quantity the month's sales should have consumed."""
    used: dict[int, Decimal] = {}
    products: dict[int, Product | None] = {}
    for sale in sales_in_month(year, month):
        for item in sale.items:
            if item.product_id not in products:
                products[item.product_id] = db.session.get(Product, item.product_id)
            p = products[item.product_id]
            if p is None:
                continue
            for mid, qty in required_materials(p, item.quantity).items():
                used[mid] = used.get(mid, Decimal("0")) + qty
    return used


def waste_penalty(user: User, year: int, month: int) -> tuple[Decimal, list[dict]]:
    """User's share of the material loss above each material's tolerance.

    Loss within `loss_percentage` of theoretical consumption is free; the
    excess cost is split by each user's share of the month's LOSS entries
    and charged at `waste_penalty_percent`.
    """
    pct = D(_config(user)["waste_penalty_percent"])
    if pct <= 0:
        return Decimal("0"), []

    start, end, _ = month_bounds(year, month)
    theoretical = theoretical_consumption(year, month)
    losses = InventoryTransaction.query.filter(
        InventoryTransaction.type == "LOSS",
        InventoryTransaction.date >= start,
        InventoryTransaction.date < end,
    ).all()

    total = Decimal("0")
    details: list[dict] = []
    for mat in Material.query.order_by(Material.id).all():
        used = theoretical.get(mat.id, Decimal("0"))
        allowed = used * D(mat.loss_percentage) / 100
        mat_losses = [t for t in losses if t.material_id == mat.id]
        actual = sum((D(t.quantity) for t in mat_losses), Decimal("0"))
        if actual <= allowed:
            continue
        excess = actual - allowed
        excess_cost = excess * D(mat.cost_per_unit)
        mine = sum((D(t.quantity) for t in mat_losses if t.user_id == user.id), Decimal("0"))
        if mine <= 0:
            continue
        penalty = excess_cost * (mine / actual) * pct / 100
        total += penalty
        details.append({
            "material_name": mat.name,
            "theoretical": used,
            "allowed_loss": allowed,
            "actual_total_loss": actual,
            "excess_qty": excess,
            "user_loss_qty": mine,
            "penalty_amount": penalty,
        })
    return total, details


def compute_slip(user: User, year: int, month: int, penalty_amount=None) -> dict:
    base = cents(base_pay(user, year, month))
    bonus = cents(bonus_for(year, month))
    advances = cents(sum((D(t.amount) for t in pending_advances(user.id)), Decimal("0")))
    if penalty_amount is None:
        penalty, details = waste_penalty(user, year, month)
    else:
        penalty, details = number(penalty_amount, "bad_penalty"), []
    penalty = cents(penalty)
    return {
        "base": base,
        "bonus": bonus,
        "advances": advances,
        "waste_penalty": penalty,
        "total": base + bonus - advances - penalty,
        "waste_details": details,
    }


# ------------ transactions ----------------------------------------------------
def add_advance(user_id, amount, when: datetime | None = None) -> PayrollTransaction:
    u = db.session.get(User, to_int(user_id, "no_user"))
    if not u:
        raise ValidationError("no_user")
    amt = number(amount, "bad_amount", positive=True)
    with atomic():
        tr = PayrollTransaction(
            user_id=u.id,
            user_name=u.name,
            type="ADVANCE",
            amount=cents(amt),
            date=when or now(),
            status="PENDING",
            description="Advance",
        )
        db.session.add(tr)
    logger.info("advance %s for %s", tr.amount, u.name)
    return tr


def confirm_payment(slip_id, penalty_amount=None, allow_negative: bool = False,
                    when: datetime | None = None) -> PayrollTransaction:
    """Pay a slip, settle all pending advances and book the PAYROLL expense.

    All three writes share one commit.
    """
    slip = db.session.get(PayrollTransaction, to_int(slip_id, "no_slip"))
    if not slip or slip.type != "SALARY_SLIP":
        raise ValidationError("no_slip")
    if slip.status != "PENDING":
        raise ValidationError("already_paid")
    user = db.session.get(User, slip.user_id)
    if not user:
        raise ValidationError("no_user")

    b = compute_slip(user, slip.date.year, slip.date.month, penalty_amount)
    if b["total"] < 0 and not allow_negative:
        logger.warning("slip %s for %s is negative: %s", slip.id, user.name, b["total"])
        raise NegativePayrollWarning(b)

    with atomic():
        slip.status = "PAID"
        slip.amount = b["total"]
        slip.details = {
            "base": float(b["base"]),
            "bonus": float(b["bonus"]),
            "advances": float(b["advances"]),
            "wastePenalty": float(b["waste_penalty"]),
        }
        for adv in pending_advances(user.id):
            adv.status = "PAID"
        db.session.add(Expense(
            description=f"Salary - {user.name}",
            amount=b["total"],
            date=when or now(),
            category=PAYROLL_CATEGORY,
        ))
    logger.info("slip %s paid to %s: %s", slip.id, user.name, b["total"])
    return slip


def slips_for(user_id: int) -> list[PayrollTransaction]:
    return (
        PayrollTransaction.query.filter_by(user_id=user_id, type="SALARY_SLIP")
        .order_by(PayrollTransaction.date.desc(), PayrollTransaction.id.desc())
        .all()
    )


# ------------ config ----------------------------------------------------------
def update_payroll_config(user_id, data: dict, today: date | None = None) -> User:
    u = db.session.get(User, to_int(user_id, "no_user"))
    if not u:
        raise ValidationError("no_user")
    cfg = _config(u)
    cfg.update({k: v for k, v in data.items() if k in DEFAULT_PAYROLL_CONFIG and v is not None})

    salary_type = str(cfg["salary_type"]).upper()
    if salary_type not in SALARY_TYPES:
        raise ValidationError("bad_salary_type")
    base_value = number(cfg["base_value"], "bad_base_value")
    if base_value < 0:
        raise ValidationError("bad_base_value")
    cutoff = to_int(cfg["cutoff_day"], "bad_cutoff_day")
    if not 1 <= cutoff <= 31:
        raise ValidationError("bad_cutoff_day")
    penalty = number(cfg["waste_penalty_percent"], "bad_percent")
    if penalty < 0 or penalty > 100:
        raise ValidationError("bad_percent")

    with atomic():
        u.salary_type = salary_type
        u.base_value = base_value
        u.cutoff_day = cutoff
        u.waste_penalty_percent = penalty
    generate_due_slips(today or local_today())
    return u


# ------------ slip generation -------------------------------------------------
def generate_due_slips(today: date) -> list[PayrollTransaction]:
    """Create the month's pending slip for every user past their cutoff day.

    Catches up when the cutoff day itself was missed; at most one slip per
    (user, month). Safe to run any number of times.
    """
    start, end, days = month_bounds(today.year, today.month)
    created: list[PayrollTransaction] = []
    users = User.query.filter(User.salary_type.isnot(None)).order_by(User.id).all()
    with atomic():
        for u in users:
            cutoff = min(u.cutoff_day or DEFAULT_PAYROLL_CONFIG["cutoff_day"], days)
            if today.day < cutoff:
                continue
            exists = PayrollTransaction.query.filter(
                PayrollTransaction.user_id == u.id,
                PayrollTransaction.type == "SALARY_SLIP",
                PayrollTransaction.date >= start,
                PayrollTransaction.date < end,
            ).first()
            if exists:
                continue
            slip = PayrollTransaction(
                user_id=u.id,
                user_name=u.name,
                type="SALARY_SLIP",
                status="PENDING",
                amount=0,
                date=datetime(today.year, today.month, today.day),
                description=f"Salary ref. {today:%m/%Y}",
            )
            db.session.add(slip)
            created.append(slip)
    for slip in created:
        logger.info("salary slip generated for %s (%s)", slip.user_name, today.strftime("%Y-%m"))
    return created
