from datetime import datetime
from ..extensions import db

PAYROLL_CATEGORY = "PAYROLL"
DEFAULT_CATEGORY = "GERAL"


class Expense(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    description = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Numeric(12, 2), nullable=False)
    date = db.Column(db.DateTime, default=datetime.now, index=True)
    category = db.Column(db.String(64), default=DEFAULT_CATEGORY)


class SystemConfig(db.Model):
    """Single-row settings table."""

    id = db.Column(db.Integer, primary_key=True)
    daily_message = db.Column(db.Text, default="")
