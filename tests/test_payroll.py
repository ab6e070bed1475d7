# -*- coding: utf-8 -*-
from datetime import date, datetime
from decimal import Decimal

import pytest

from printshop.errors import NegativePayrollWarning, ValidationError
from printshop.models import D, Expense, OperationalTarget, PayrollTransaction
from printshop.services import operations, payroll, sales, stock

MARCH = date(2024, 3, 1)


def at(day, month=3):
    return datetime(2024, month, day, 12)


def _configure(user, **cfg):
    return payroll.update_payroll_config(user.id, cfg, today=MARCH)


def test_fixed_salary_with_bonus_and_advance(db, employee):
    _configure(employee, salary_type="FIXED", base_value=1500)
    t = operations.add_target({"metric_name": "Packages", "target_daily": 99, "unit_rate": "0.50"})
    operations.record_log(t.id, 25, when=at(3), today=MARCH)
    operations.record_log(t.id, 15, when=at(4), today=MARCH)
    payroll.add_advance(employee.id, 100, when=at(2))

    b = payroll.compute_slip(employee, 2024, 3)
    assert b["base"] == Decimal("1500.00")
    assert b["bonus"] == Decimal("20.00")
    assert b["advances"] == Decimal("100.00")
    assert b["waste_penalty"] == Decimal("0.00")
    assert b["total"] == Decimal("1420.00")


def test_logs_outside_the_month_do_not_count(db, employee):
    _configure(employee, base_value=0)
    t = operations.add_target({"metric_name": "Ads", "unit_rate": 2})
    operations.record_log(t.id, 10, when=at(28, month=2), today=MARCH)
    assert payroll.bonus_for(2024, 3) == Decimal("0")


def test_profit_share_uses_contribution_margin(db, shop, employee):
    _configure(employee, salary_type="PROFIT_SHARE", base_value=10)
    sales.create_sale(shop["product"].id, shop["marketplace"].id, 3, when=at(10))
    # 300 revenue - 0 fees - 75 cost
    assert payroll.compute_slip(employee, 2024, 3)["base"] == Decimal("22.50")


def _waste_month(shop, user, loss_qty=4, pct=50):
    _configure(user, waste_penalty_percent=pct)
    s = sales.create_sale(shop["product"].id, shop["marketplace"].id, 3, when=at(10))
    if loss_qty:
        stock.record_transaction(shop["material"].id, "LOSS", loss_qty, user=user, when=at(11))
    return s


def test_waste_penalty_scenario(db, shop, employee):
    s = _waste_month(shop, employee)
    assert D(s.cost_snapshot) == Decimal("75.00")

    penalty, details = payroll.waste_penalty(employee, 2024, 3)
    assert penalty == Decimal("2.50")
    [d] = details
    assert d["material_name"] == "M"
    assert d["theoretical"] == Decimal("30")
    assert d["allowed_loss"] == Decimal("1.5")
    assert d["actual_total_loss"] == Decimal("4")
    assert d["excess_qty"] == Decimal("2.5")
    assert payroll.compute_slip(employee, 2024, 3)["waste_penalty"] == Decimal("2.50")


def test_zero_percent_means_no_penalty(db, shop, employee):
    _waste_month(shop, employee, pct=0)
    assert payroll.waste_penalty(employee, 2024, 3) == (Decimal("0"), [])


def test_loss_within_tolerance_is_free(db, shop, employee):
    _waste_month(shop, employee, loss_qty="1.5")
    assert payroll.waste_penalty(employee, 2024, 3) == (Decimal("0"), [])


def test_penalty_split_by_share_of_losses(db, shop, employee, admin):
    _waste_month(shop, employee, loss_qty=2)
    stock.record_transaction(shop["material"].id, "LOSS", 2, user=admin, when=at(12))
    penalty, _ = payroll.waste_penalty(employee, 2024, 3)
    assert penalty == Decimal("1.25")


def test_manual_penalty_override(db, shop, employee):
    _waste_month(shop, employee)
    assert payroll.compute_slip(employee, 2024, 3, penalty_amount="3")["waste_penalty"] == Decimal("3.00")
    with pytest.raises(ValidationError):
        payroll.compute_slip(employee, 2024, 3, penalty_amount="lots")


def _slip(user, day=5):
    [slip] = payroll.generate_due_slips(date(2024, 3, day))
    assert slip.user_id == user.id
    return slip


def test_confirmation_settles_everything(db, employee):
    _configure(employee, base_value=1500)
    payroll.add_advance(employee.id, 100, when=at(1, month=2))
    slip = _slip(employee)
    payroll.add_advance(employee.id, 50, when=at(20))

    paid = payroll.confirm_payment(slip.id, when=at(31))
    assert paid.status == "PAID"
    assert D(paid.amount) == Decimal("1350.00")
    assert paid.details == {"base": 1500.0, "bonus": 0.0, "advances": 150.0, "wastePenalty": 0.0}
    assert payroll.pending_advances(employee.id) == []

    [expense] = Expense.query.filter_by(category="PAYROLL").all()
    assert D(expense.amount) == Decimal("1350.00")
    assert expense.description == "Salary - Worker"

    with pytest.raises(ValidationError) as exc:
        payroll.confirm_payment(slip.id)
    assert exc.value.code == "already_paid"


def test_negative_total_needs_override(db, employee):
    _configure(employee, base_value=100)
    payroll.add_advance(employee.id, 200, when=at(2))
    slip = _slip(employee)

    with pytest.raises(NegativePayrollWarning) as exc:
        payroll.confirm_payment(slip.id)
    assert exc.value.breakdown["total"] == Decimal("-100.00")
    assert db.session.get(PayrollTransaction, slip.id).status == "PENDING"
    assert len(payroll.pending_advances(employee.id)) == 1
    assert Expense.query.count() == 0

    payroll.confirm_payment(slip.id, allow_negative=True)
    assert D(db.session.get(PayrollTransaction, slip.id).amount) == Decimal("-100.00")


def test_slip_generation_is_idempotent(db, employee):
    _configure(employee, cutoff_day=10)
    assert payroll.generate_due_slips(date(2024, 3, 9)) == []
    assert len(payroll.generate_due_slips(date(2024, 3, 10))) == 1
    assert payroll.generate_due_slips(date(2024, 3, 10)) == []
    # missed cutoff day is caught up later in the month
    assert payroll.generate_due_slips(date(2024, 3, 25)) == []
    [slip] = payroll.slips_for(employee.id)
    assert slip.description == "Salary ref. 03/2024"
    assert payroll.generate_due_slips(date(2024, 4, 11))[0].date == datetime(2024, 4, 11)


def test_cutoff_beyond_month_end(db, employee):
    _configure(employee, cutoff_day=31)
    assert payroll.generate_due_slips(date(2024, 2, 28)) == []
    assert len(payroll.generate_due_slips(date(2024, 2, 29))) == 1


def test_users_without_config_get_no_slip(db, employee):
    assert payroll.generate_due_slips(date(2024, 3, 31)) == []


def test_record_log_triggers_slip_generation(db, employee):
    _configure(employee, cutoff_day=5)
    t = operations.add_target({"metric_name": "Ads", "unit_rate": 1})
    operations.record_log(t.id, 1, when=at(6), today=date(2024, 3, 6))
    assert len(payroll.slips_for(employee.id)) == 1


@pytest.mark.parametrize("cfg,code", [
    (dict(salary_type="HOURLY"), "bad_salary_type"),
    (dict(base_value=-1), "bad_base_value"),
    (dict(cutoff_day=0), "bad_cutoff_day"),
    (dict(cutoff_day=32), "bad_cutoff_day"),
    (dict(waste_penalty_percent=101), "bad_percent"),
])
def test_config_validation(db, employee, cfg, code):
    with pytest.raises(ValidationError) as exc:
        _configure(employee, **cfg)
    assert exc.value.code == code
    assert employee.payroll_config is None


def test_advance_validation(db, employee):
    with pytest.raises(ValidationError):
        payroll.add_advance(employee.id, 0)
    with pytest.raises(ValidationError) as exc:
        payroll.add_advance(999, 10)
    assert exc.value.code == "no_user"


def test_renamed_target_stops_counting_old_logs(db, employee):
    t = operations.add_target({"metric_name": "Ads", "unit_rate": 1})
    operations.record_log(t.id, 5, when=at(3), today=MARCH)
    operations.update_target(t.id, {"metric_name": "Listings"})
    assert payroll.bonus_for(2024, 3) == Decimal("0")
    assert OperationalTarget.query.count() == 1
