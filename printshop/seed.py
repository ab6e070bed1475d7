# -*- coding: utf-8 -*-
"""Starter data for an empty database."""
from __future__ import annotations

import logging

from .extensions import db
from .models import Material, OperationalTarget, Marketplace, User, SystemConfig

logger = logging.getLogger(__name__)

DEFAULT_MATERIALS = [
    dict(name="Papel Couché 150g", unit="M2", cost_per_unit=2.50, current_stock=100, min_stock=20, loss_percentage=5),
    dict(name="Tinta Vinílica Preta", unit="L", cost_per_unit=150.00, current_stock=5, min_stock=1, loss_percentage=2),
]

DEFAULT_TARGETS = [
    dict(metric_name="Anúncios Criados", target_daily=5, unit_rate=2.00),
    dict(metric_name="Pacotes Enviados", target_daily=20, unit_rate=0.50),
]

DEFAULT_MARKETPLACES = [
    dict(name="Mercado Livre - Clássico", fixed_fee=5.00, variable_fee_percent=12,
         ads_fee_percent=0, shipping_cost=20, tax_percent=4),
    dict(name="Shopee", fixed_fee=3.00, variable_fee_percent=18,
         ads_fee_percent=2, shipping_cost=15, tax_percent=4),
    dict(name="Balcão / Loja Física", fixed_fee=0, variable_fee_percent=0,
         ads_fee_percent=0, shipping_cost=0, tax_percent=0),
]

DEFAULT_USERS = [
    dict(name="Administrador", pin="1234", role="ADMIN"),
    dict(name="Funcionário", pin="0000", role="EMPLOYEE"),
]

DEFAULT_MESSAGE = "Bem-vindo! Nenhuma mensagem hoje."


def seed_defaults() -> bool:
    """Fill an empty database. Returns False when users already exist."""
    if User.query.first() is not None:
        return False
    db.session.add_all([Material(**m) for m in DEFAULT_MATERIALS])
    db.session.add_all([OperationalTarget(**t) for t in DEFAULT_TARGETS])
    db.session.add_all([Marketplace(**m) for m in DEFAULT_MARKETPLACES])
    db.session.add_all([User(**u) for u in DEFAULT_USERS])
    if db.session.get(SystemConfig, 1) is None:
        db.session.add(SystemConfig(id=1, daily_message=DEFAULT_MESSAGE))
    db.session.commit()
    logger.info("empty database seeded with defaults")
    return True
