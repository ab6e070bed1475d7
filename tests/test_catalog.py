# -*- coding: utf-8 -*-
from decimal import Decimal

import pytest

from printshop.errors import ValidationError
from printshop.models import D, Marketplace, Material, OperationalTarget, Product, ProductMaterial
from printshop.services import catalog, operations


@pytest.fixture()
def ink(db):
    return catalog.add_material({"name": "Ink", "unit": "L", "cost_per_unit": 150, "loss_percentage": 2})


def test_add_product_with_bill_of_materials(shop, ink):
    m = shop["material"]
    p = catalog.add_product({
        "name": "Banner",
        "selling_price": "80",
        "labor_cost": "4,50",
        "materials": [{"material_id": m.id, "quantity": 2}, {"material_id": ink.id, "quantity": "0.1"}],
    })
    assert [line.material_id for line in p.materials] == [m.id, ink.id]
    # 2 x 2.00 + 0.1 x 150 + 4.50
    assert catalog.line_cost(p, 1) == Decimal("23.50")


def test_failed_update_leaves_product_untouched(shop, db):
    pid = shop["product"].id
    with pytest.raises(ValidationError) as exc:
        catalog.update_product(pid, {"name": "Renamed", "selling_price": "free"})
    assert exc.value.code == "bad_price"
    p = db.session.get(Product, pid)
    assert p.name == "P"
    assert D(p.selling_price) == Decimal("100")


def test_update_replaces_bill_of_materials(shop, ink, db):
    m = shop["material"]
    pid = shop["product"].id
    catalog.update_product(pid, {"materials": [{"material_id": m.id, "quantity": 1},
                                               {"material_id": ink.id, "quantity": 1}]})
    assert ProductMaterial.query.count() == 2

    catalog.update_product(pid, {"materials": [{"material_id": ink.id, "quantity": 3}]})
    [line] = ProductMaterial.query.all()
    assert line.material_id == ink.id
    assert D(line.quantity) == Decimal("3")
    assert db.session.get(Product, pid).name == "P"


def test_partial_product_update(shop, db):
    pid = shop["product"].id
    catalog.update_product(pid, {"labor_cost": 7, "is_kit": True})
    p = db.session.get(Product, pid)
    assert D(p.labor_cost) == Decimal("7")
    assert p.is_kit is True
    assert len(p.materials) == 1


def test_delete_product_drops_its_lines(shop):
    pid = shop["product"].id
    assert catalog.delete_product(pid) is True
    assert ProductMaterial.query.count() == 0
    assert catalog.delete_product(pid) is False
    with pytest.raises(ValidationError) as exc:
        catalog.update_product(pid, {"name": "X"})
    assert exc.value.code == "no_product"


def test_marketplace_partial_update_keeps_other_fees(db):
    mkp = catalog.add_marketplace({"name": "Shopee", "fixed_fee": 3, "variable_fee_percent": 18,
                                   "ads_fee_percent": 2, "shipping_cost": 15, "tax_percent": 4})
    catalog.update_marketplace(mkp.id, {"fixed_fee": "4,00"})
    mkp = db.session.get(Marketplace, mkp.id)
    assert mkp.name == "Shopee"
    assert D(mkp.fixed_fee) == Decimal("4")
    assert D(mkp.variable_fee_percent) == Decimal("18")
    assert D(mkp.ads_fee_percent) == Decimal("2")
    assert D(mkp.shipping_cost) == Decimal("15")
    assert D(mkp.tax_percent) == Decimal("4")

    with pytest.raises(ValidationError) as exc:
        catalog.update_marketplace(mkp.id, {"name": "  "})
    assert exc.value.code == "no_name"


def test_delete_marketplace(db):
    mkp = catalog.add_marketplace({"name": "Balcão"})
    assert catalog.delete_marketplace(mkp.id) is True
    assert Marketplace.query.count() == 0
    assert catalog.delete_marketplace(mkp.id) is False


@pytest.mark.parametrize("data,code", [
    ({"unit": "UN", "cost_per_unit": 1}, "no_name"),
    ({"name": "X", "unit": "BOX", "cost_per_unit": 1}, "bad_unit"),
    ({"name": "X", "cost_per_unit": 0}, "bad_cost"),
    ({"name": "X", "cost_per_unit": 1, "loss_percentage": 120}, "bad_percent"),
])
def test_material_validation(db, data, code):
    with pytest.raises(ValidationError) as exc:
        catalog.add_material(data)
    assert exc.value.code == code
    assert Material.query.count() == 0


def test_delete_target(db):
    t = operations.add_target({"metric_name": "Anúncios Criados", "target_daily": 5, "unit_rate": 2})
    assert operations.delete_target(t.id) is True
    assert OperationalTarget.query.count() == 0
    assert operations.delete_target(t.id) is False
