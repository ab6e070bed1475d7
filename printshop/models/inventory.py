from datetime import datetime
from ..extensions import db


class InventoryTransaction(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.DateTime, default=datetime.now, index=True)
    material_id = db.Column(db.Integer, nullable=False, index=True)
    material_name = db.Column(db.String(180), default="")
    type = db.Column(db.String(8), nullable=False)  # ADD|LOSS
    quantity = db.Column(db.Numeric(12, 3), nullable=False)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    user_name = db.Column(db.String(128), default="")
