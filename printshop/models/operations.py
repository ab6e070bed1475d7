from datetime import datetime
from ..extensions import db


class OperationalTarget(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    metric_name = db.Column(db.String(120), nullable=False)
    target_daily = db.Column(db.Numeric(12, 2), default=0)
    unit_rate = db.Column(db.Numeric(12, 2), default=0)


class OperationalLog(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, default=datetime.now, index=True)
    # matched against OperationalTarget.metric_name by string equality
    metric_name = db.Column(db.String(120), nullable=False, index=True)
    value = db.Column(db.Numeric(12, 2), nullable=False)
