# -*- coding: utf-8 -*-
import importlib.util
import json
from pathlib import Path

from printshop import create_app
from printshop.config import TestConfig
from printshop.extensions import db as _db
from printshop.models import Marketplace, Material, SystemConfig, User
from printshop.seed import seed_defaults


def test_login_required(client):
    rv = client.get("/")
    assert rv.status_code == 401
    assert rv.get_json()["ok"] is False


def test_login_with_pin(client, admin):
    rv = client.post("/login", json={"user_id": admin.id, "pin": "9999"})
    assert rv.status_code == 401
    assert rv.get_json()["error"] == "bad_pin"
    rv = client.post("/login", json={"user_id": admin.id, "pin": "1234"})
    assert rv.get_json()["user"]["role"] == "ADMIN"
    assert client.get("/me").get_json()["user"]["name"] == "Admin"


def test_employee_cannot_open_reports(client, employee, login):
    login(employee)
    assert client.get("/reports/").status_code == 403
    assert client.get("/").status_code == 200


def test_material_crud(client, admin, login):
    login(admin)
    rv = client.post("/catalog/materials", json={"name": "Lona", "unit": "m2", "cost_per_unit": "8,90"})
    assert rv.status_code == 201
    item = rv.get_json()["item"]
    assert item["unit"] == "M2" and item["cost_per_unit"] == 8.9

    rv = client.post("/catalog/materials", json={"name": "Lona", "unit": "BOX", "cost_per_unit": 1})
    assert rv.status_code == 400
    assert rv.get_json() == {"ok": False, "error": "bad_unit"}

    rv = client.post(f"/catalog/materials/{item['id']}", json={"min_stock": 5})
    assert rv.get_json()["item"]["min_stock"] == 5.0
    assert client.post(f"/catalog/materials/{item['id']}/delete").get_json() == {"ok": True}
    assert client.post(f"/catalog/materials/{item['id']}/delete").status_code == 404


def test_product_listing_shows_margin(client, admin, login, shop):
    login(admin)
    [row] = client.get("/catalog/products").get_json()["items"]
    assert row["unit_cost"] == 25.0
    assert row["margin_percent"] == 75.0
    assert row["materials"][0]["name"] == "M"


def test_sale_flow(client, employee, admin, login, shop, db):
    m = db.session.get(Material, shop["material"].id)
    m.min_stock = 995
    db.session.commit()
    login(employee)
    payload = {"product_id": shop["product"].id, "marketplace_id": shop["marketplace"].id, "quantity": 1}

    rv = client.post("/sales/", json=payload)
    assert rv.status_code == 409
    body = rv.get_json()
    assert body["error"] == "low_stock"
    assert body["shortfalls"][0]["name"] == "M"

    rv = client.post("/sales/", json={**payload, "confirm": True})
    assert rv.status_code == 201
    sale_id = rv.get_json()["item"]["id"]

    rv = client.post(f"/sales/{sale_id}/status", json={"status": "COMPLETED"})
    assert rv.get_json()["item"]["status"] == "COMPLETED"

    assert client.post(f"/sales/{sale_id}/delete", json={"confirm": True}).status_code == 403
    client.post("/logout")
    login(admin)
    assert client.post(f"/sales/{sale_id}/delete").get_json()["error"] == "confirm_required"
    assert client.post(f"/sales/{sale_id}/delete", json={"confirm": True}).get_json() == {"ok": True}
    assert float(db.session.get(Material, m.id).current_stock) == 1000


def test_inventory_routes(client, employee, login, shop):
    login(employee)
    rv = client.post("/inventory/", json={"material_id": shop["material"].id, "type": "LOSS", "quantity": 2})
    assert rv.status_code == 201
    tr = rv.get_json()["item"]
    assert tr["user_name"] == "Worker"
    assert len(client.get("/inventory/?type=LOSS").get_json()["items"]) == 1
    assert client.post(f"/inventory/{tr['id']}/delete").get_json() == {"ok": True}


def test_payroll_confirm_negative(client, admin, employee, login):
    login(admin)
    client.post(f"/payroll/users/{employee.id}/config", json={"base_value": 10, "cutoff_day": 1})
    client.post("/payroll/advances", json={"user_id": employee.id, "amount": 50})
    users = client.get("/payroll/").get_json()["users"]
    worker = [u for u in users if u["id"] == employee.id][0]
    [slip] = worker["slips"]

    preview = client.get(f"/payroll/slips/{slip['id']}").get_json()["breakdown"]
    assert preview["total"] == -40.0

    rv = client.post(f"/payroll/slips/{slip['id']}/confirm", json={})
    assert rv.status_code == 409
    assert rv.get_json()["error"] == "negative_total"
    rv = client.post(f"/payroll/slips/{slip['id']}/confirm", json={"allow_negative": True})
    assert rv.get_json()["slip"]["status"] == "PAID"


def test_reports_and_insight(client, admin, login, shop, stub_ai):
    login(admin)
    client.post("/reports/expenses", json={"description": "Aluguel", "amount": 1000})
    rep = client.get("/reports/").get_json()["report"]
    assert rep["total_expenses"] == 1000.0
    assert rep["formatted"]["net_profit"] == "-R$ 1.000,00"
    assert len(client.get("/reports/series").get_json()["monthly"]) == 12

    stub_ai(reply="Tudo certo")
    assert client.post("/reports/insight").get_json()["text"] == "Tudo certo"


def test_describe_product(client, employee, login, shop, stub_ai):
    login(employee)
    stub_ai(reply="Produto premium")
    rv = client.post("/catalog/products/describe", json={"name": "P", "material_ids": [shop["material"].id]})
    assert rv.get_json()["description"] == "Produto premium"


def test_last_user_cannot_be_deleted(client, admin, login):
    login(admin)
    rv = client.post(f"/settings/users/{admin.id}/delete")
    assert rv.status_code == 400
    assert rv.get_json()["error"] == "last_user"
    rv = client.post("/settings/users", json={"name": "Caixa", "pin": "4321", "role": "employee"})
    assert rv.get_json()["item"]["role"] == "EMPLOYEE"


def test_backup_download_and_upload(client, admin, login, shop):
    login(admin)
    rv = client.get("/settings/export")
    assert "attachment" in rv.headers["Content-Disposition"]
    doc = json.loads(rv.data)
    doc["materials"][0]["name"] = "M renamed"
    rv = client.post("/settings/import", data=json.dumps(doc), content_type="application/json")
    assert rv.get_json()["ok"] is True
    assert client.post("/settings/import", data="garbage").get_json()["error"] == "bad_backup"


def test_daily_message(client, admin, login):
    login(admin)
    client.post("/settings/message", json={"message": "Bom dia"})
    assert client.get("/").get_json()["daily_message"] == "Bom dia"


def test_generate_slips_command(app, employee):
    rv = app.test_cli_runner().invoke(args=["generate-slips"])
    assert "0 slip(s) created" in rv.output


class SeededConfig(TestConfig):
    SEED_DEFAULTS = True


def test_empty_database_is_seeded():
    app = create_app(SeededConfig)
    with app.app_context():
        assert User.query.count() == 2
        assert Marketplace.query.count() == 3
        assert _db.session.get(SystemConfig, 1).daily_message == "Bem-vindo! Nenhuma mensagem hoje."
        assert seed_defaults() is False
        _db.session.remove()
        _db.drop_all()


def test_recreate_script_reseeds(monkeypatch):
    path = Path(__file__).resolve().parents[1] / "scripts" / "recreate_db.py"
    spec = importlib.util.spec_from_file_location("recreate_db", path)
    script = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(script)

    apps = []

    def factory(_config):
        apps.append(create_app(TestConfig))
        return apps[-1]

    monkeypatch.setattr(script, "create_app", factory)
    assert script.main() == 0
    with apps[0].app_context():
        assert User.query.count() == 2
        assert Material.query.count() == 2
        _db.session.remove()
        _db.drop_all()
