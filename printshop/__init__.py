# -*- coding: utf-8 -*-
import logging
from datetime import datetime, date
from decimal import Decimal

import click
from flask import Flask, jsonify
from flask.json.provider import DefaultJSONProvider
from flask_login import login_required
from werkzeug.exceptions import HTTPException

from .config import Config, ensure_instance
from .extensions import db, migrate, login_manager
from .errors import ValidationError, StockWarning, NegativePayrollWarning
from .formatting import fmt_date, fmt_money

# blueprints
from .auth import auth_bp
from .modules.catalog import bp as catalog_bp
from .modules.inventory import bp as inventory_bp
from .modules.sales import bp as sales_bp
from .modules.operations import bp as operations_bp
from .modules.payroll import bp as payroll_bp
from .modules.reports import bp as reports_bp
from .modules.settings import bp as settings_bp

from .seed import seed_defaults
from .services.reports import dashboard
from .services import local_today
from .services.payroll import generate_due_slips


class LedgerJSONProvider(DefaultJSONProvider):
    """Decimals as numbers, datetimes as ISO strings."""

    @staticmethod
    def default(o):
        if isinstance(o, Decimal):
            return float(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return DefaultJSONProvider.default(o)


def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.json = LedgerJSONProvider(app)
    app.config.from_object(config_object or Config)
    ensure_instance(app)

    logging.basicConfig(
        level=getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # --- jinja filters ---
    app.add_template_filter(fmt_date, "fmt_date")
    app.add_template_filter(fmt_money, "fmt_money")

    # --- errors -> JSON ---
    @app.errorhandler(ValidationError)
    def on_validation(e):
        return jsonify({"ok": False, "error": e.code}), 400

    @app.errorhandler(StockWarning)
    def on_stock_warning(e):
        return jsonify({"ok": False, "error": "low_stock", "shortfalls": e.shortfalls}), 409

    @app.errorhandler(NegativePayrollWarning)
    def on_negative_payroll(e):
        return jsonify({"ok": False, "error": "negative_total", "breakdown": e.breakdown}), 409

    @app.errorhandler(HTTPException)
    def on_http(e):
        return jsonify({"ok": False, "error": e.name.lower().replace(" ", "_")}), e.code

    # --- blueprints ---
    app.register_blueprint(auth_bp)
    app.register_blueprint(catalog_bp)
    app.register_blueprint(inventory_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(operations_bp)
    app.register_blueprint(payroll_bp)
    app.register_blueprint(reports_bp)
    app.register_blueprint(settings_bp)

    with app.app_context():
        db.create_all()
        if app.config.get("SEED_DEFAULTS"):
            seed_defaults()

    # --- home ---
    @app.route("/")
    @login_required
    def home():
        return jsonify({"ok": True, **dashboard()})

    @app.cli.command("generate-slips")
    def generate_slips_cmd():
        """Create due salary slips for the current month (cron)."""
        created = generate_due_slips(local_today())
        click.echo(f"{len(created)} slip(s) created")

    return app
