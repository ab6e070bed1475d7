from flask_login import UserMixin
from ..extensions import db, login_manager

ROLES = ("ADMIN", "EMPLOYEE")
SALARY_TYPES = ("FIXED", "PROFIT_SHARE")

DEFAULT_PAYROLL_CONFIG = {
    "salary_type": "FIXED",
    "base_value": 0,
    "cutoff_day": 5,
    "waste_penalty_percent": 0,
}


class User(db.Model, UserMixin):
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    pin = db.Column(db.String(32), nullable=False)  # plaintext
    role = db.Column(db.String(16), default="EMPLOYEE")  # ADMIN|EMPLOYEE

    # payroll config; absent while salary_type is NULL
    salary_type = db.Column(db.String(16), nullable=True)  # FIXED|PROFIT_SHARE
    base_value = db.Column(db.Numeric(12, 2), nullable=True)  # amount or percent
    cutoff_day = db.Column(db.Integer, nullable=True)  # 1..31
    waste_penalty_percent = db.Column(db.Numeric(6, 2), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def payroll_config(self) -> dict | None:
        if not self.salary_type:
            return None
        return {
            "salary_type": self.salary_type,
            "base_value": self.base_value or 0,
            "cutoff_day": self.cutoff_day or DEFAULT_PAYROLL_CONFIG["cutoff_day"],
            "waste_penalty_percent": self.waste_penalty_percent or 0,
        }

    def check_pin(self, pin: str) -> bool:
        return (pin or "") == (self.pin or "")


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
