# -*- coding: utf-8 -*-

import pytest

from printshop import create_app
from printshop.config import TestConfig
from printshop.extensions import db as _db
from printshop.models import Material, Marketplace, Product, ProductMaterial, User
from printshop.services.ai import InsightService


@pytest.fixture()
def app():
    app = create_app(TestConfig)
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db(app):
    return _db


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def admin(db):
    u = User(name="Admin", pin="1234", role="ADMIN")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture()
def employee(db):
    u = User(name="Worker", pin="0000", role="EMPLOYEE")
    db.session.add(u)
    db.session.commit()
    return u


@pytest.fixture()
def login(client):
    def _login(user, pin=None):
        rv = client.post("/login", json={"user_id": user.id, "pin": pin or user.pin})
        assert rv.status_code == 200, rv.get_json()
        return rv
    return _login


@pytest.fixture()
def shop(db):
    """Material M (2.00/unit, 5% loss), product P (10 M, price 100, labor 5), a fee-free counter."""
    m = Material(name="M", unit="UN", cost_per_unit=2, current_stock=1000, min_stock=0, loss_percentage=5)
    counter = Marketplace(name="Counter", fixed_fee=0, variable_fee_percent=0,
                          ads_fee_percent=0, shipping_cost=0, tax_percent=0)
    db.session.add_all([m, counter])
    db.session.flush()
    p = Product(name="P", is_kit=False, selling_price=100, labor_cost=5)
    p.materials = [ProductMaterial(material_id=m.id, quantity=10)]
    db.session.add(p)
    db.session.commit()
    return {"material": m, "product": p, "marketplace": counter}


class StubCompletions:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        msg = type("Msg", (), {"content": self.reply})()
        choice = type("Choice", (), {"message": msg})()
        return type("Resp", (), {"choices": [choice]})()


class StubClient:
    def __init__(self, reply=None, error=None):
        self.completions = StubCompletions(reply, error)
        self.chat = type("Chat", (), {"completions": self.completions})()


@pytest.fixture()
def stub_ai(app):
    def _install(reply=None, error=None):
        client = StubClient(reply, error)
        app.extensions["insights"] = InsightService(client=client)
        return client.completions
    return _install


