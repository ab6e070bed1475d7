from datetime import datetime
from ..extensions import db

SALE_STATUSES = ("PENDING", "IN_PRODUCTION", "COMPLETED")
PAYMENT_METHODS = ("PIX", "CARD", "CASH")


class Sale(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, default=datetime.now, index=True)
    marketplace_id = db.Column(db.Integer, nullable=True)
    platform = db.Column(db.String(120), default="")
    payment_method = db.Column(db.String(8), default="PIX")  # PIX|CARD|CASH
    total_amount = db.Column(db.Numeric(12, 2), default=0)
    net_revenue = db.Column(db.Numeric(12, 2), nullable=True)
    # frozen at creation; NULL on legacy rows
    cost_snapshot = db.Column(db.Numeric(12, 2), nullable=True)
    fee_snapshot = db.Column(db.Numeric(12, 2), nullable=True)
    customer_name = db.Column(db.String(180), default="")
    status = db.Column(db.String(16), default="PENDING")  # PENDING|IN_PRODUCTION|COMPLETED

    items = db.relationship(
        "SaleItem",
        backref="sale",
        cascade="all, delete-orphan",
        order_by="SaleItem.id",
    )


class SaleItem(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sale.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, nullable=False, index=True)
    quantity = db.Column(db.Numeric(12, 3), nullable=False, default=1)
    unit_price = db.Column(db.Numeric(12, 2), default=0)
