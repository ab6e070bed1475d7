import json
from datetime import datetime
from ..extensions import db

PAYROLL_TYPES = ("ADVANCE", "SALARY_SLIP")
PAYROLL_STATUSES = ("PENDING", "PAID")


class PayrollTransaction(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=False, index=True)
    user_name = db.Column(db.String(128), default="")
    type = db.Column(db.String(16), nullable=False)  # ADVANCE|SALARY_SLIP
    amount = db.Column(db.Numeric(12, 2), default=0)  # 0 on a slip until PAID
    date = db.Column(db.DateTime, default=datetime.now, index=True)
    status = db.Column(db.String(16), default="PENDING")  # PENDING|PAID
    description = db.Column(db.String(255), default="")
    # frozen {base, bonus, advances, wastePenalty} once paid
    details_json = db.Column(db.Text)

    @property
    def details(self) -> dict | None:
        if not self.details_json:
            return None
        try:
            v = json.loads(self.details_json)
        except ValueError:
            return None
        return v if isinstance(v, dict) else None

    @details.setter
    def details(self, value: dict | None) -> None:
        self.details_json = json.dumps(value) if value is not None else None
