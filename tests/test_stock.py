# -*- coding: utf-8 -*-
from decimal import Decimal

import pytest

from printshop.errors import ValidationError
from printshop.models import D, InventoryTransaction, Material
from printshop.services import stock


def test_add_and_loss_move_stock(shop, db, employee):
    m = shop["material"]
    stock.record_transaction(m.id, "ADD", 50, user=employee)
    stock.record_transaction(m.id, "LOSS", 20, user=employee)
    assert D(db.session.get(Material, m.id).current_stock) == Decimal("1030")
    losses = stock.list_transactions(only_losses=True)
    assert [t.type for t in losses] == ["LOSS"]
    assert losses[0].user_name == "Worker"


def test_deleting_an_entry_reverses_it(shop, db):
    m = shop["material"]
    before = D(m.current_stock)
    for kind, qty in (("ADD", "12.5"), ("LOSS", "3")):
        tr = stock.record_transaction(m.id, kind, qty)
        assert stock.delete_transaction(tr.id) is True
        assert D(db.session.get(Material, m.id).current_stock) == before
    assert InventoryTransaction.query.count() == 0


def test_loss_may_drive_stock_negative(shop, db):
    m = shop["material"]
    stock.record_transaction(m.id, "LOSS", 1500)
    assert D(db.session.get(Material, m.id).current_stock) == Decimal("-500")
    assert stock.is_below_minimum(db.session.get(Material, m.id))


@pytest.mark.parametrize("kind,qty,code", [
    ("MOVE", 1, "bad_type"),
    ("ADD", 0, "bad_quantity"),
    ("ADD", "-2", "bad_quantity"),
    ("LOSS", "abc", "bad_quantity"),
])
def test_rejected_entries(shop, kind, qty, code):
    with pytest.raises(ValidationError) as exc:
        stock.record_transaction(shop["material"].id, kind, qty)
    assert exc.value.code == code
    assert InventoryTransaction.query.count() == 0


def test_unknown_material(db):
    with pytest.raises(ValidationError) as exc:
        stock.record_transaction(999, "ADD", 1)
    assert exc.value.code == "no_material"


def test_delta_on_deleted_material_is_ignored(db):
    assert stock.apply_delta(42, Decimal("5")) is None
    assert stock.delete_transaction(42) is False


def test_entry_survives_material_deletion(shop, db):
    m = shop["material"]
    tr = stock.record_transaction(m.id, "ADD", 5)
    db.session.delete(m)
    db.session.commit()
    # reversing an entry whose material is gone only drops the entry
    assert stock.delete_transaction(tr.id) is True
